"""Custom exceptions for the SPARQL query analyser."""


class QueryAnalyserError(Exception):
    """Base exception for all query analyser errors."""
    pass


class ConfigurationError(QueryAnalyserError):
    """Raised when configuration loading or validation fails."""
    pass


class QueryParseError(QueryAnalyserError):
    """Raised when a query cannot be turned into an algebra tree."""
    pass


class UnknownPrefixError(QueryParseError):
    """Raised when a query uses a prefix that has no declaration."""

    def __init__(self, prefix: str):
        self.prefix = prefix
        super().__init__(f"Unknown namespace prefix: '{prefix}'")


class ExportError(QueryAnalyserError):
    """Raised when statistics cannot be written out."""
    pass

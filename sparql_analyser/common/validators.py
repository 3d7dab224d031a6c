"""Shared validation functions for the query analyser."""

def validate_query_not_empty(query) -> None:
    """Validate query is not empty or whitespace-only."""
    if not query or not isinstance(query, str):
        raise ValueError("Query text is required and must be a non-empty string")
    if not query.strip():
        raise ValueError("Query cannot be empty or whitespace-only")


def validate_query_length(query, max_length: int) -> None:
    """Validate query does not exceed maximum length."""
    query_length = len(query)
    if query_length > max_length:
        raise ValueError(
            f"Query exceeds maximum length of {max_length:,} characters "
            f"(got {query_length:,})."
        )


def validate_prefix_dictionary(prefixes) -> None:
    """Validate a prefix dictionary maps prefix names to IRI strings."""
    if not isinstance(prefixes, dict):
        raise ValueError(f"prefixes must be a dictionary, got {type(prefixes).__name__}")
    for name, iri in prefixes.items():
        if not isinstance(name, str) or not isinstance(iri, str):
            raise ValueError(f"Invalid prefix entry: {name!r} -> {iri!r}")
        if not iri.strip():
            raise ValueError(f"Prefix '{name}' maps to an empty IRI")

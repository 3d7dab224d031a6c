"""
RDF terms used in triple patterns.

Provides:
- Variable: unbound query variable
- IRI: bound identifier (a resource)
- Literal: bound literal value (a resource)
- BlankNode: anonymous node, unbound for counting purposes
"""

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class Variable:
    """A SPARQL variable (?name)."""
    name: str

    def __str__(self) -> str:
        return f"?{self.name}"


@dataclass(frozen=True)
class IRI:
    """An absolute IRI."""
    value: str

    def __str__(self) -> str:
        return f"<{self.value}>"


@dataclass(frozen=True)
class Literal:
    """
    An RDF literal.

    `lexical` is the raw lexical form; `datatype` and `language` are mutually
    exclusive. Numeric and boolean literals written without quotes keep
    `quoted=False` so they serialize the way they were written.
    """
    lexical: str
    datatype: Optional[str] = None
    language: Optional[str] = None
    quoted: bool = True


@dataclass(frozen=True)
class BlankNode:
    """A blank node label (_:b0 or generated from [] / collections)."""
    label: str

    def __str__(self) -> str:
        return f"_:{self.label}"


Term = Union[Variable, IRI, Literal, BlankNode]


def is_resource(term) -> bool:
    """True for bound terms (IRIs and literals)."""
    return isinstance(term, (IRI, Literal))

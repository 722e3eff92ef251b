__version__ = "1.0.0"

from .config import Duplicates, Layout, ParserOptions
from .parser import (
    DuplicateName,
    EmptyQuery,
    MalformedAnnotation,
    ParseError,
    Queries,
    QueryWithoutName,
    parse,
)

__all__ = [
    "Duplicates",
    "DuplicateName",
    "EmptyQuery",
    "Layout",
    "MalformedAnnotation",
    "ParseError",
    "ParserOptions",
    "Queries",
    "QueryWithoutName",
    "parse",
]

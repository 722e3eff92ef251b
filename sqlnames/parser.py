from __future__ import annotations

import enum
import logging
import re
from collections.abc import Iterator, Mapping
from typing import Any

import attr

from .config import Duplicates, Layout, ParserOptions

logger = logging.getLogger("sqlnames")

ANNOTATION = re.compile(r"^\s*--\s*name\s*:\s*(\S+)\s*$")
ANNOTATION_PREFIX = re.compile(r"^\s*--\s*name\s*:")
LINE_BREAK = re.compile(r"\r\n|\r|\n")


class ParseError(Exception):
    def __init__(self, lineno: int, *args: Any) -> None:
        super().__init__(*args)
        self.lineno = lineno

    @property
    def message(self) -> str:
        return super().__str__()

    def __str__(self) -> str:
        return f"line {self.lineno}: {self.message}"


class QueryWithoutName(ParseError):
    def __init__(self, lineno: int, query: str) -> None:
        super().__init__(lineno)
        self.query = query

    @property
    def message(self) -> str:
        return f"query without name: '{self.query}'"


class EmptyQuery(ParseError):
    def __init__(self, lineno: int, name: str) -> None:
        super().__init__(lineno)
        self.name = name

    @property
    def message(self) -> str:
        return f"no query for name '{self.name}'"


class MalformedAnnotation(ParseError):
    def __init__(self, lineno: int, line: str) -> None:
        super().__init__(lineno)
        self.line = line

    @property
    def message(self) -> str:
        return f"malformed annotation: '{self.line}'"


class DuplicateName(ParseError):
    def __init__(self, lineno: int, name: str) -> None:
        super().__init__(lineno)
        self.name = name

    @property
    def message(self) -> str:
        return f"name '{self.name}' already defined"


class LineType(enum.Enum):
    EMPTY = enum.auto()
    ANNOTATION = enum.auto()
    MALFORMED = enum.auto()
    QUERY = enum.auto()


def remove_block_comments(text: str) -> str:
    r"""Blank out /* ... */ comments, keeping line breaks so that line numbers
    are unchanged.

    >>> remove_block_comments("123\nabc")
    '123\nabc'
    >>> remove_block_comments("123/*qqq*/ /*123**/ 321") == "123" + " " * 17 + "321"
    True
    >>> remove_block_comments("123/*9\nqqq\nz*/321")
    '123   \n   \n   321'

    An unterminated comment is left as is:

    >>> remove_block_comments("a /* b */ c /* d") == "a" + " " * 9 + "c /* d"
    True
    """
    parts = []
    pos = 0
    while True:
        start = text.find("/*", pos)
        if start == -1:
            break
        end = text.find("*/", start + 2)
        if end == -1:
            break
        end += 2
        parts.append(text[pos:start])
        parts.append("".join(c if c.isspace() else " " for c in text[start:end]))
        pos = end
    parts.append(text[pos:])
    return "".join(parts)


def split_lines(text: str) -> list[str]:
    r"""Split 'text' on '\n', '\r\n' and '\r' only; other characters that
    str.splitlines() treats as line boundaries stay in the line.

    >>> split_lines("a\r\nb\x0cc\rd\n")
    ['a', 'b\x0cc', 'd']
    >>> split_lines("")
    []
    """
    lines = LINE_BREAK.split(text)
    if lines[-1] == "":
        lines.pop()
    return lines


def strip_line_comment(line: str) -> str:
    """Remove a trailing '--' comment and surrounding whitespace.

    >>> strip_line_comment("33 -- 123")
    '33'
    >>> strip_line_comment("  -- nothing here")
    ''
    """
    return line.split("--", 1)[0].strip()


def classify(line: str) -> tuple[LineType, str]:
    """Return the type of 'line' along with its meaningful content: the name
    for an annotation, the comment-free statement text for a query line.

    >>> classify(" --  name:start")
    (<LineType.ANNOTATION: 2>, 'start')
    >>> classify("-- name: start end ")
    (<LineType.MALFORMED: 3>, '-- name: start end')
    >>> classify("0 -- name: start")
    (<LineType.QUERY: 4>, '0')
    >>> classify("   -- a comment")
    (<LineType.EMPTY: 1>, '')
    """
    m = ANNOTATION.match(line)
    if m:
        return LineType.ANNOTATION, m.group(1)
    if ANNOTATION_PREFIX.match(line):
        return LineType.MALFORMED, line.strip()
    content = strip_line_comment(line)
    if not content:
        return LineType.EMPTY, content
    return LineType.QUERY, content


@attr.s(auto_attribs=True, frozen=True, slots=True, eq=False)
class Queries(Mapping[str, str]):
    """Read-only mapping of query names to SQL text.

    >>> q = Queries({"a": "SELECT 1;"})
    >>> q["a"]
    'SELECT 1;'
    >>> q.get("b") is None
    True
    >>> q == {"a": "SELECT 1;"}
    True
    """

    _values: dict[str, str] = attr.ib(converter=dict, factory=dict)

    def __getitem__(self, name: str) -> str:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)


@attr.s(auto_attribs=True, slots=True)
class Segment:
    """Lines collected after an annotation; 'name' is None for text which does
    not belong to any query: the 'preamble' before the first annotation, or
    what follows a malformed one.
    """

    name: str | None
    lineno: int
    preamble: bool = False
    lines: list[str] = attr.ib(factory=list)

    def render(self, layout: Layout) -> str:
        if layout is Layout.COMPACT:
            return " ".join(self.lines)
        start, end = 0, len(self.lines)
        while start < end and not self.lines[start].strip():
            start += 1
        while end > start and not self.lines[end - 1].strip():
            end -= 1
        return "\n".join(self.lines[start:end])


def close(segment: Segment, queries: dict[str, str], options: ParserOptions) -> None:
    if segment.name is None:
        return
    body = segment.render(options.layout)
    if not body:
        if options.strict:
            raise EmptyQuery(segment.lineno, segment.name)
        logger.debug(
            "ignoring name '%s' at line %d: no query", segment.name, segment.lineno
        )
        return
    if segment.name in queries:
        if options.duplicates is Duplicates.ERROR:
            raise DuplicateName(segment.lineno, segment.name)
        if options.duplicates is Duplicates.MERGE:
            sep = " " if options.layout is Layout.COMPACT else "\n"
            queries[segment.name] = sep.join([queries[segment.name], body])
            logger.debug(
                "query '%s' extended at line %d", segment.name, segment.lineno
            )
            return
        logger.debug(
            "query '%s' overwritten at line %d", segment.name, segment.lineno
        )
    queries[segment.name] = body


def parse(text: str, options: ParserOptions | None = None) -> Queries:
    r"""Parse 'text' for queries introduced by '-- name: <name>' lines.

    Lines before the first annotation are dropped. With default options,
    this never fails: segments without a usable annotation produce no entry
    and a name defined twice keeps its last query (see ParserOptions.duplicates).

    >>> q = parse(
    ...     "-- name: select\nSELECT * FROM users;\n\n"
    ...     "-- name: delete\nDELETE FROM users WHERE id = $1;"
    ... )
    >>> q.get("select")
    'SELECT * FROM users;'
    >>> q.get("delete")
    'DELETE FROM users WHERE id = $1;'
    >>> q.get("update") is None
    True

    >>> parse("-- name: a\nX;\n-- name: a\nY;")["a"]
    'Y;'
    >>> parse("-- name: a\nX;\n-- name: a\nY;", ParserOptions(duplicates="error"))
    Traceback (most recent call last):
      ...
    sqlnames.parser.DuplicateName: line 3: name 'a' already defined
    >>> parse("-- name: a\nX;\n-- name: a\nY;", ParserOptions(duplicates="merge"))["a"]
    'X;\nY;'

    >>> compact = ParserOptions(layout="compact")
    >>> parse("-- just comment\n--name: x\n/* two\n lines */\nselect 2 -- two\n  ;", compact)["x"]
    'select 2 ;'
    >>> parse("SELECT 1;", ParserOptions(strict=True))
    Traceback (most recent call last):
      ...
    sqlnames.parser.QueryWithoutName: line 1: query without name: 'SELECT 1;'
    """
    if options is None:
        options = ParserOptions()
    compact = options.layout is Layout.COMPACT
    raw_lines = split_lines(text)
    clean_lines = split_lines(remove_block_comments(text))
    queries: dict[str, str] = {}
    segment = Segment(None, 0, preamble=True)
    for lineno, (raw, clean) in enumerate(zip(raw_lines, clean_lines), start=1):
        ty, value = classify(clean)
        if ty is LineType.ANNOTATION:
            close(segment, queries, options)
            segment = Segment(value, lineno)
            continue
        if ty is LineType.MALFORMED:
            close(segment, queries, options)
            if options.strict:
                raise MalformedAnnotation(lineno, value)
            logger.debug("ignoring malformed annotation at line %d: %s", lineno, value)
            segment = Segment(None, lineno)
            continue
        if segment.name is None:
            if options.strict and segment.preamble and ty is LineType.QUERY:
                raise QueryWithoutName(lineno, value)
            continue
        if not compact:
            segment.lines.append(raw)
        elif ty is LineType.QUERY:
            segment.lines.append(value)
    close(segment, queries, options)
    return Queries(queries)

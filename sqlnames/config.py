from __future__ import annotations

import configparser
import enum
import importlib.resources
import io
from typing import IO, Any, TypeVar

import attr


class ConfigurationError(Exception):
    def __init__(self, filename: str, message: str) -> None:
        super().__init__(message)
        self.filename = filename
        self.message = message

    def __str__(self) -> str:
        return f"{self.filename}: {self.message}"


class InvalidSection(ConfigurationError):
    def __init__(self, filename: str, section: str) -> None:
        super().__init__(filename, f"unknown section [{section}]")
        self.section = section


class InvalidOptions(ConfigurationError):
    def __init__(self, filename: str, section: str, reason: str) -> None:
        super().__init__(filename, f"[{section}] {reason}")
        self.section = section


class Duplicates(enum.Enum):
    """Policy for a query name defined more than once: keep the last query,
    fail, or append the new query to the previous one.

    >>> Duplicates("error")
    <Duplicates.ERROR: 'error'>
    """

    OVERWRITE = "overwrite"
    ERROR = "error"
    MERGE = "merge"


class Layout(enum.Enum):
    """How lines of a query body are rendered.

    'verbatim' keeps lines as written, only dropping blank lines around the
    body; 'compact' strips comments and joins remaining lines with a space.
    """

    VERBATIM = "verbatim"
    COMPACT = "compact"


@attr.s(auto_attribs=True, frozen=True, slots=True)
class ParserOptions:
    """Options driving parse().

    >>> ParserOptions(duplicates="error").duplicates
    <Duplicates.ERROR: 'error'>
    >>> ParserOptions(layout="tabular")
    Traceback (most recent call last):
      ...
    ValueError: 'tabular' is not a valid Layout
    """

    duplicates: Duplicates = attr.ib(
        default=Duplicates.OVERWRITE, converter=Duplicates
    )
    layout: Layout = attr.ib(default=Layout.VERBATIM, converter=Layout)
    strict: bool = False

    _T = TypeVar("_T", bound="ParserOptions")

    @classmethod
    def from_config_section(cls: type[_T], section: configparser.SectionProxy) -> _T:
        """Build options from a [parser] section, every option being optional."""
        unknown = set(section) - set(attr.fields_dict(cls))
        if unknown:
            raise ValueError(f"unknown option(s): {', '.join(sorted(unknown))}")
        values: dict[str, Any] = {}
        strict = section.getboolean("strict")
        if strict is not None:
            values["strict"] = strict
        for optname in ("duplicates", "layout"):
            value = section.get(optname)
            if value is not None:
                values[optname] = value.strip().lower()
        return cls(**values)


@attr.s(auto_attribs=True, frozen=True, slots=True)
class BuiltinProfile:
    name: str
    content: IO[str]

    @classmethod
    def get(cls, name: str) -> BuiltinProfile | None:
        resource = importlib.resources.files("sqlnames") / "profiles" / f"{name}.conf"
        if not resource.is_file():
            return None
        return cls(name, io.StringIO(resource.read_text()))


@attr.s(auto_attribs=True, frozen=True, slots=True)
class Configuration:
    name: str
    values: dict[str, ParserOptions]

    def options(self) -> ParserOptions:
        return self.values.get("parser", ParserOptions())

    _T = TypeVar("_T", bound="Configuration")

    @classmethod
    def parse(cls: type[_T], f: IO[str], name: str) -> _T:
        r"""Parse configuration from 'f'.

        >>> from io import StringIO

        >>> f = StringIO('[parser]\nduplicates = error\nstrict = on\n')
        >>> cfg = Configuration.parse(f, "f.ini")
        >>> cfg.name
        'f.ini'
        >>> cfg.options()
        ParserOptions(duplicates=<Duplicates.ERROR: 'error'>, layout=<Layout.VERBATIM: 'verbatim'>, strict=True)

        >>> bad = StringIO("[global]\nx=1")
        >>> Configuration.parse(bad, "bad.ini")
        Traceback (most recent call last):
          ...
        sqlnames.config.InvalidSection: bad.ini: unknown section [global]
        >>> bad = StringIO("[queries]\n")
        >>> Configuration.parse(bad, "bad.ini")
        Traceback (most recent call last):
          ...
        sqlnames.config.InvalidSection: bad.ini: unknown section [queries]
        >>> bad = StringIO("[parser]\nx=1")
        >>> Configuration.parse(bad, "bad.ini")
        Traceback (most recent call last):
          ...
        sqlnames.config.InvalidOptions: bad.ini: [parser] unknown option(s): x
        >>> bad = StringIO("[parser]\nlayout=wide")
        >>> Configuration.parse(bad, "bad.ini")
        Traceback (most recent call last):
          ...
        sqlnames.config.InvalidOptions: bad.ini: [parser] 'wide' is not a valid Layout
        """
        p = configparser.ConfigParser(default_section="global", strict=True)
        try:
            p.read_file(f)
        except configparser.Error as e:
            raise ConfigurationError(name, f"not an INI file: {e}") from None
        config: dict[str, ParserOptions] = {}
        for sname, section in p.items():
            if sname == p.default_section:
                if section:
                    raise InvalidSection(name, p.default_section)
                continue
            if sname != "parser":
                raise InvalidSection(name, sname)
            try:
                config[sname] = ParserOptions.from_config_section(section)
            except ValueError as e:
                raise InvalidOptions(name, sname, str(e)) from None
        return cls(name=name, values=config)

    @classmethod
    def builtin(cls: type[_T], profile: str) -> _T:
        builtin_profile = BuiltinProfile.get(profile)
        if builtin_profile is None:
            raise FileNotFoundError(f"profile {profile!r} not found")
        return cls.parse(builtin_profile.content, builtin_profile.name)

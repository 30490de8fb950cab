"""Lightweight data models shared by the marker and the analyzer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Severity(str, Enum):
    IGNORE = "ignore"
    WARNING = "warning"
    ERROR = "error"

    @classmethod
    def parse(cls, value: "str | Severity") -> "Severity":
        if isinstance(value, Severity):
            return value
        normalized = str(value).strip().lower()
        aliases = {
            "off": cls.IGNORE,
            "none": cls.IGNORE,
            "false": cls.IGNORE,
            "ignore": cls.IGNORE,
            "warn": cls.WARNING,
            "warning": cls.WARNING,
            "error": cls.ERROR,
        }
        if normalized not in aliases:
            raise ValueError(f"Unknown severity: {value!r}")
        return aliases[normalized]


class ReferenceKind(str, Enum):
    NAME = "name"
    CALL = "call"
    ATTRIBUTE = "attribute"
    IMPORT = "import"
    WILDCARD_IMPORT = "wildcard_import"
    OVERLOAD = "overload"


@dataclass(frozen=True)
class Location:
    line: int
    column: int
    path: str | None = None


@dataclass(frozen=True)
class DeprecationMarker:
    target: str
    message: str
    location: Location | None = None


@dataclass(frozen=True)
class SymbolReference:
    location: Location
    resolved_target: str | None
    reference_kind: ReferenceKind
    name: str


@dataclass(frozen=True)
class Diagnostic:
    location: Location
    message: str
    severity: Severity
    target: str
    reference_kind: ReferenceKind
    code: str = "deprecated"

    def to_dict(self) -> dict:
        return {
            "path": self.location.path,
            "line": self.location.line,
            "column": self.location.column,
            "message": self.message,
            "severity": self.severity.value,
            "target": self.target,
            "reference_kind": self.reference_kind.value,
            "code": self.code,
        }


# Parameter kinds, named after inspect.Parameter kinds.
POSITIONAL_ONLY = "positional_only"
POSITIONAL_OR_KEYWORD = "positional_or_keyword"
VAR_POSITIONAL = "var_positional"
KEYWORD_ONLY = "keyword_only"
VAR_KEYWORD = "var_keyword"


@dataclass(frozen=True)
class Parameter:
    name: str
    kind: str
    annotation: str | None = None
    has_default: bool = False


@dataclass(frozen=True)
class Decorator:
    name: tuple[str, ...]
    message: str | None = None
    is_call: bool = False


@dataclass(frozen=True)
class Definition:
    kind: str  # class | function
    name: str
    qualname: str
    scope_id: int
    body_scope_id: int
    location: Location
    decorators: tuple[Decorator, ...] = ()
    params: tuple[Parameter, ...] | None = None
    returns: tuple[str, ...] | None = None
    bases: tuple[tuple[str, ...], ...] = ()


@dataclass(frozen=True)
class Binding:
    kind: str  # definition | module | from | value | annotated | self | cls | opaque
    target: str | None = None
    name: str | None = None
    value: tuple[str, ...] | None = None
    # literal first argument when the value is a call, e.g. ``todo = deprecated("...")``
    message: str | None = None


@dataclass
class Scope:
    id: int
    kind: str  # module | class | function
    qualname: str
    parent: int | None
    bindings: dict[str, list[Binding]] = field(default_factory=dict)
    globals: set[str] = field(default_factory=set)
    star_imports: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ArgExpr:
    kind: str | None = None
    literal: object = None
    has_literal: bool = False
    chain: tuple[str, ...] | None = None


@dataclass(frozen=True)
class CallSite:
    args: tuple[ArgExpr, ...] = ()
    keywords: tuple[tuple[str, ArgExpr], ...] = ()
    star: bool = False
    double_star: bool = False


@dataclass(frozen=True)
class NameUse:
    parts: tuple[str, ...]
    location: Location
    scope_id: int
    kind: ReferenceKind
    call: CallSite | None = None
    report_from: int = 0
    import_from: str | None = None
    part_locations: tuple[Location, ...] = ()

    def location_of(self, index: int) -> Location:
        if index < len(self.part_locations):
            return self.part_locations[index]
        return self.location

"""Declaration model - the exported surface of one source package.

This module defines the input of the binder. An external parser resolves the
source package and produces these nodes; the binder consumes them as-is.

Architecture:
    Package -> Frontend (types, signatures, codes) -> [Binding] -> Backend -> Stubs

Only exported declarations reach the binder. Declared order is significant:
call codes are derived from it (see frontend/codes.py).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal


# ============================================================
# TYPES
#
# All types are frozen (immutable, hashable). Type strings in the
# serialized model use source syntax: int64, []byte, *S, error.
# ============================================================


@dataclass(unsafe_hash=True)
class Type:
    """Base for all types. Abstract."""


BasicKind = Literal[
    "bool",
    "int",
    "int8",
    "int16",
    "int32",
    "int64",
    "uint",
    "uint8",
    "uint16",
    "uint32",
    "uint64",
    "uintptr",
    "float32",
    "float64",
    "complex64",
    "complex128",
    "string",
]

BASIC_KINDS: frozenset[str] = frozenset(
    {
        "bool",
        "int",
        "int8",
        "int16",
        "int32",
        "int64",
        "uint",
        "uint8",
        "uint16",
        "uint32",
        "uint64",
        "uintptr",
        "float32",
        "float64",
        "complex64",
        "complex128",
        "string",
    }
)


@dataclass(unsafe_hash=True)
class Basic(Type):
    """Predeclared scalar type.

    `byte` is an alias of uint8 and `rune` of int32; the alias is lost.
    """

    kind: BasicKind

    def __str__(self) -> str:
        return self.kind


@dataclass(unsafe_hash=True)
class Slice(Type):
    """Slice type. Only []byte crosses the boundary."""

    elem: Type

    def __str__(self) -> str:
        return "[]" + str(self.elem)


@dataclass(unsafe_hash=True)
class Pointer(Type):
    """Pointer type. Only pointers to named structs cross the boundary."""

    elem: Type

    def __str__(self) -> str:
        return "*" + str(self.elem)


@dataclass(unsafe_hash=True)
class Map(Type):
    """Map type. Never crosses the boundary."""

    key: Type
    value: Type

    def __str__(self) -> str:
        return "map[" + str(self.key) + "]" + str(self.value)


@dataclass(unsafe_hash=True)
class Named(Type):
    """Reference to a named type by package and name.

    pkg is the defining package's name. A Named whose pkg differs from the
    package being bound is a cross-package reference.
    """

    name: str
    pkg: str

    def __str__(self) -> str:
        return self.pkg + "." + self.name


@dataclass(unsafe_hash=True)
class ErrorType(Type):
    """The distinguished failure type."""

    def __str__(self) -> str:
        return "error"


@dataclass(unsafe_hash=True)
class Opaque(Type):
    """Any type the model has no node for (chan, func, array, struct literal)."""

    text: str

    def __str__(self) -> str:
        return self.text


ERROR = ErrorType()
BOOL = Basic("bool")
INT = Basic("int")
INT32 = Basic("int32")
INT64 = Basic("int64")
FLOAT64 = Basic("float64")
STRING = Basic("string")
BYTE = Basic("uint8")
BYTES = Slice(BYTE)


def is_error(typ: Type) -> bool:
    return isinstance(typ, ErrorType)


def is_exported(name: str) -> bool:
    """Exported names start with an upper-case letter."""
    return len(name) > 0 and name[0].isupper()


# ============================================================
# DECLARATIONS
# ============================================================


@dataclass
class Var:
    """Parameter, result or struct field. name may be empty for results."""

    name: str
    typ: Type


@dataclass
class Func:
    """Function or method.

    Invariants:
    - params and results are in declared order
    - methods carry no receiver here; the owning Struct is the receiver
    """

    name: str
    params: list[Var] = field(default_factory=list)
    results: list[Var] = field(default_factory=list)


@dataclass
class Struct:
    """Named struct type.

    Invariants:
    - fields and methods hold exported members only, in declared order
    - embeds names same-package structs embedded by pointer or value
    """

    name: str
    fields: list[Var] = field(default_factory=list)
    methods: list[Func] = field(default_factory=list)
    embeds: list[str] = field(default_factory=list)


@dataclass
class Interface:
    """Named interface type."""

    name: str
    methods: list[Func] = field(default_factory=list)


Decl = Func | Struct | Interface


@dataclass
class Package:
    """A complete package to bind.

    Invariants:
    - funcs are exported package-level functions in canonical order
      (sorted upstream; the binder does not re-sort)
    - types holds exported structs and interfaces in canonical order
    """

    path: str
    name: str
    funcs: list[Func] = field(default_factory=list)
    types: list[Struct | Interface] = field(default_factory=list)

    @property
    def structs(self) -> list[Struct]:
        return [t for t in self.types if isinstance(t, Struct)]

    @property
    def interfaces(self) -> list[Interface]:
        return [t for t in self.types if isinstance(t, Interface)]

    def lookup(self, name: str) -> Struct | Interface | None:
        for t in self.types:
            if t.name == name:
                return t
        return None


def exported_only(pkg: Package) -> Package:
    """Drop unexported functions, types, fields and methods, keeping order."""
    types: list[Struct | Interface] = []
    for t in pkg.types:
        if not is_exported(t.name):
            continue
        if isinstance(t, Struct):
            types.append(
                Struct(
                    name=t.name,
                    fields=[f for f in t.fields if is_exported(f.name)],
                    methods=[m for m in t.methods if is_exported(m.name)],
                    embeds=list(t.embeds),
                )
            )
        else:
            types.append(
                Interface(name=t.name, methods=[m for m in t.methods if is_exported(m.name)])
            )
    return Package(
        path=pkg.path,
        name=pkg.name,
        funcs=[f for f in pkg.funcs if is_exported(f.name)],
        types=types,
    )

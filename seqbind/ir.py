"""Binding IR - the agreed contract between caller stubs and callee dispatchers.

The frontend derives a Binding from a declaration model. Both backends read
the same Binding, so every decision that affects the wire lives here: the
WireType of every value, the calling convention of every signature, and the
CallSite address of every callable surface.

Architecture:
    Package -> Frontend (types, signatures, codes) -> [Binding] -> Backend
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Literal

from .errors import BindError
from .model import Package, Type


# ============================================================
# WIRE TYPES
# ============================================================

WireType = Literal["Bool", "Int32", "Int64", "Float64", "String", "Bytes", "ObjectRef"]
"""Canonical on-the-wire encoding category.

| Wire      | Encoding                    | Go          | ObjC       | Python |
|-----------|-----------------------------|-------------|------------|--------|
| Bool      | 1 byte                      | bool        | BOOL       | bool   |
| Int32     | 4 bytes two's complement    | int32       | int32_t    | int    |
| Int64     | 8 bytes two's complement    | int64       | int64_t    | int    |
| Float64   | 8 bytes IEEE-754            | float64     | double     | float  |
| String    | int32 length + UTF-8 bytes  | string      | NSString*  | str    |
| Bytes     | int32 length + raw bytes    | []byte      | NSData*    | bytes  |
| ObjectRef | int32 handle (0 = nil)      | *seq.Ref    | GoSeqRef*  | Proxy  |

All integers are little-endian. There is no padding and no tag in the stream.
"""

WIRE_TYPES: tuple[str, ...] = ("Bool", "Int32", "Int64", "Float64", "String", "Bytes", "ObjectRef")


@dataclass(unsafe_hash=True)
class TypeMapping:
    """How one source type crosses the boundary.

    Invariants:
    - wire == "ObjectRef" iff decl is set
    - wrapper is the generated proxy type name when decl is set
    - pointer is True when the source type was *Decl
    """

    wire: WireType
    source: Type
    decl: str | None = None
    decl_kind: Literal["struct", "interface"] | None = None
    wrapper: str | None = None
    pointer: bool = False


# ============================================================
# CALL SHAPES
# ============================================================

Convention = Literal["void", "value", "error", "value_error"]
"""Result classification after normalization.

| Convention  | Source results  | Wire response                  |
|-------------|-----------------|--------------------------------|
| void        | ()              | (empty)                        |
| value       | (T)             | T                              |
| error       | (error)         | String message                 |
| value_error | (T, error)      | T, then String message         |

An empty message means success; a non-empty message means failure.
"""


@dataclass
class ParamShape:
    """One named, mapped value in a call shape."""

    name: str
    mapping: TypeMapping

    @property
    def wire(self) -> WireType:
        return self.mapping.wire


@dataclass
class CallShape:
    """Canonical calling convention for one callable surface.

    Invariants:
    - result is None iff convention is "void" or "error"
    - params are in declared order with unique names
    """

    name: str
    params: list[ParamShape]
    convention: Convention
    result: ParamShape | None = None
    error_name: str = "error"

    @property
    def returns_value(self) -> bool:
        return self.convention == "value"

    @property
    def has_error(self) -> bool:
        return self.convention in ("error", "value_error")


# ============================================================
# CALL SITES
# ============================================================


@dataclass(frozen=True)
class CallSite:
    """(descriptor, code): the address of one callable surface."""

    descriptor: str
    code: int

    def __str__(self) -> str:
        return self.descriptor + "#" + hex(self.code)


MemberKind = Literal["func", "field_get", "field_set", "method"]


@dataclass
class Member:
    """One callable surface with its address and normalized shape.

    shape is None when the frontend rejected the declaration or when the
    owner is an interface (interfaces get addresses but no stubs). A
    rejected member keeps its code so siblings do not shift.
    """

    site: CallSite
    kind: MemberKind
    name: str
    owner: str | None = None
    shape: CallShape | None = None

    @property
    def bound(self) -> bool:
        return self.shape is not None


@dataclass
class BoundType:
    """A named struct or interface and its members in code order."""

    name: str
    kind: Literal["struct", "interface"]
    descriptor: str
    wrapper: str
    members: list[Member] = field(default_factory=list)

    def fields(self) -> list[tuple[Member, Member]]:
        """(getter, setter) pairs in field order."""
        getters = [m for m in self.members if m.kind == "field_get"]
        setters = [m for m in self.members if m.kind == "field_set"]
        return list(zip(getters, setters))

    def methods(self) -> list[Member]:
        return [m for m in self.members if m.kind == "method"]


@dataclass
class Binding:
    """Complete binding of one package.

    Invariants (post-frontend):
    - every (descriptor, code) pair is unique
    - ref_types lists every type mapped to ObjectRef, in declared order
    """

    pkg: Package
    prefix: str
    descriptor: str
    funcs: list[Member] = field(default_factory=list)
    types: list[BoundType] = field(default_factory=list)
    ref_types: list[str] = field(default_factory=list)
    _errors: list[BindError] = field(default_factory=list)

    def add_error(self, err: BindError) -> None:
        self._errors.append(err)

    def errors(self) -> list[BindError]:
        return self._errors

    def ok(self) -> bool:
        return len(self._errors) == 0

    def members(self) -> Iterator[Member]:
        yield from self.funcs
        for t in self.types:
            yield from t.members

    def lookup(self, site: CallSite) -> Member | None:
        for m in self.members():
            if m.site == site:
                return m
        return None

    def bound_type(self, name: str) -> BoundType | None:
        for t in self.types:
            if t.name == name:
                return t
        return None

    def sites(self) -> dict[CallSite, str]:
        """Map of every CallSite to a readable member name."""
        result: dict[CallSite, str] = {}
        for m in self.members():
            label = m.name if m.owner is None else m.owner + "." + m.name
            if m.kind == "field_get":
                label += ".get"
            elif m.kind == "field_set":
                label += ".set"
            result[m.site] = label
        return result

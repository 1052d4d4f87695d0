"""Type mapping: source types to WireTypes.

Only scalars, strings, byte slices, and named structs or interfaces defined
in the package being bound cross the boundary. The failure type is folded
into the calling convention by signatures.py and never mapped here.
"""

from __future__ import annotations

from ..errors import UnsupportedType
from ..ir import TypeMapping, WireType
from ..model import (
    Basic,
    ErrorType,
    Interface,
    Named,
    Package,
    Pointer,
    Slice,
    Struct,
    Type,
    is_exported,
)

# Source basic kind -> WireType
_BASIC_WIRE: dict[str, WireType] = {
    "bool": "Bool",
    "int8": "Int32",
    "int16": "Int32",
    "int32": "Int32",
    "uint8": "Int32",
    "uint16": "Int32",
    "int": "Int64",
    "int64": "Int64",
    "uint": "Int64",
    "uint32": "Int64",
    "uint64": "Int64",
    "float32": "Float64",
    "float64": "Float64",
    "string": "String",
}


def capitalize(name: str) -> str:
    """Uppercase the first character only."""
    return (name[0].upper() + name[1:]) if name else ""


def name_prefix(pkg: Package) -> str:
    """Namespace prefix of generated wrapper types: Go + capitalized package name."""
    return "Go" + capitalize(pkg.name)


class TypeMapper:
    """Map types of one package. Raises UnsupportedType on rejection."""

    def __init__(self, pkg: Package) -> None:
        self.pkg = pkg
        self.prefix = name_prefix(pkg)

    def map_type(self, typ: Type, decl: str = "") -> TypeMapping:
        if isinstance(typ, ErrorType):
            raise UnsupportedType(decl, "unsupported type: error is only allowed as the last result")
        if isinstance(typ, Basic):
            wire = _BASIC_WIRE.get(typ.kind)
            if wire is None:
                raise UnsupportedType(decl, "unsupported type: " + str(typ))
            return TypeMapping(wire=wire, source=typ)
        if isinstance(typ, Slice):
            # byte is an alias of uint8
            if typ.elem == Basic("uint8"):
                return TypeMapping(wire="Bytes", source=typ)
            raise UnsupportedType(decl, "unsupported type: " + str(typ))
        if isinstance(typ, Pointer):
            if isinstance(typ.elem, Named):
                inner = self._map_named(typ.elem, decl)
                if inner.decl_kind != "struct":
                    raise UnsupportedType(decl, "unsupported pointer to type: " + str(typ))
                return TypeMapping(
                    wire="ObjectRef",
                    source=typ,
                    decl=inner.decl,
                    decl_kind=inner.decl_kind,
                    wrapper=inner.wrapper,
                    pointer=True,
                )
            raise UnsupportedType(decl, "unsupported pointer to type: " + str(typ))
        if isinstance(typ, Named):
            return self._map_named(typ, decl)
        raise UnsupportedType(decl, "unsupported type: " + str(typ))

    def _map_named(self, typ: Named, decl: str) -> TypeMapping:
        if typ.pkg != self.pkg.name:
            raise UnsupportedType(
                decl,
                "type "
                + typ.name
                + " is in package "
                + typ.pkg
                + "; only types defined in package "
                + self.pkg.name
                + " is supported",
            )
        if not is_exported(typ.name):
            raise UnsupportedType(decl, "unsupported, unexported type " + str(typ))
        target = self.pkg.lookup(typ.name)
        if isinstance(target, Struct):
            kind = "struct"
        elif isinstance(target, Interface):
            kind = "interface"
        else:
            raise UnsupportedType(decl, "unsupported, named type " + str(typ))
        return TypeMapping(
            wire="ObjectRef",
            source=typ,
            decl=typ.name,
            decl_kind=kind,
            wrapper=self.prefix + typ.name,
        )


def collect_ref_types(pkg: Package) -> list[str]:
    """Named types that map to ObjectRef, in declared order (drives forward declarations)."""
    return [t.name for t in pkg.types if is_exported(t.name)]

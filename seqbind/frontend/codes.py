"""Ordinal code assignment.

Every callable surface gets a (descriptor, code) address derived only from
declaration kind and declared order. Caller and callee halves are generated
independently and agree on addresses through these rules alone:

| Surface           | Descriptor          | Code            |
|-------------------|---------------------|-----------------|
| free function i   | <pkg>               | i + 1           |
| field i getter    | go.<pkg>.<Type>     | (i << 8) | 0x0f |
| field i setter    | go.<pkg>.<Type>     | (i << 8) | 0x1f |
| method i          | go.<pkg>.<Type>     | (i << 8) | 0x0c |

Low bytes 0x0f, 0x1f and 0x0c keep the three domains disjoint for any i.
Free functions live under their own descriptor.
"""

from __future__ import annotations

from ..ir import CallSite
from ..model import Func, Interface, Package, Struct, is_exported

FIELD_GET_TAG = 0x0F
FIELD_SET_TAG = 0x1F
METHOD_TAG = 0x0C


def func_descriptor(pkg: Package) -> str:
    return pkg.name


def type_descriptor(pkg: Package, name: str) -> str:
    return "go." + pkg.name + "." + name


def func_code(i: int) -> int:
    return i + 1


def field_get_code(i: int) -> int:
    return (i << 8) | FIELD_GET_TAG


def field_set_code(i: int) -> int:
    return (i << 8) | FIELD_SET_TAG


def method_code(i: int) -> int:
    return (i << 8) | METHOD_TAG


def method_set(pkg: Package, struct: Struct) -> list[Func]:
    """Exported methods of *struct: own methods, then promoted ones.

    Promotion walks embeds in order, depth-first; a name already in the set
    shadows deeper ones. Embeds resolve against all of pkg, so an unexported
    embedded struct still promotes its exported methods.
    """
    result: list[Func] = []
    seen: set[str] = set()
    visiting: set[str] = set()

    def walk(s: Struct) -> None:
        if s.name in visiting:
            return
        visiting.add(s.name)
        for m in s.methods:
            if is_exported(m.name) and m.name not in seen:
                seen.add(m.name)
                result.append(m)
        for embedded in s.embeds:
            target = pkg.lookup(embedded)
            if isinstance(target, Struct):
                walk(target)

    walk(struct)
    return result


def assign_func_sites(pkg: Package) -> list[tuple[CallSite, Func]]:
    desc = func_descriptor(pkg)
    return [(CallSite(desc, func_code(i)), f) for i, f in enumerate(pkg.funcs)]


def assign_struct_sites(
    pkg: Package, struct: Struct, scope: Package | None = None
) -> list[tuple[CallSite, str, object]]:
    """Sites of one struct as (site, kind, member) in code order.

    kind is field_get, field_set or method; member is the Var or Func.
    scope is the package embeds resolve against, before unexported
    declarations were dropped; it defaults to pkg.
    """
    desc = type_descriptor(pkg, struct.name)
    result: list[tuple[CallSite, str, object]] = []
    for i, f in enumerate(struct.fields):
        result.append((CallSite(desc, field_get_code(i)), "field_get", f))
        result.append((CallSite(desc, field_set_code(i)), "field_set", f))
    for i, m in enumerate(method_set(scope if scope is not None else pkg, struct)):
        result.append((CallSite(desc, method_code(i)), "method", m))
    return result


def assign_interface_sites(pkg: Package, iface: Interface) -> list[tuple[CallSite, Func]]:
    desc = type_descriptor(pkg, iface.name)
    return [(CallSite(desc, method_code(i)), m) for i, m in enumerate(iface.methods)]


def check_unique(sites: list[CallSite]) -> list[CallSite]:
    """Return sites that appear more than once."""
    seen: set[CallSite] = set()
    dups: list[CallSite] = []
    for s in sites:
        if s in seen:
            dups.append(s)
        seen.add(s)
    return dups

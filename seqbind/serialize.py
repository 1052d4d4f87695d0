"""Conversion between the declaration model / Binding and JSON-compatible dicts."""

from __future__ import annotations

import re

from .ir import Binding, CallShape, Member, ParamShape
from .model import (
    BASIC_KINDS,
    ERROR,
    Basic,
    Func,
    Interface,
    Map,
    Named,
    Opaque,
    Package,
    Pointer,
    Slice,
    Struct,
    Type,
    Var,
)

_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_ALIASES: dict[str, str] = {"byte": "uint8", "rune": "int32"}


class ModelError(Exception):
    """Malformed declaration model input."""


# ---------------------------------------------------------------------------
# Type strings
# ---------------------------------------------------------------------------


def parse_type(text: str, pkg: str) -> Type:
    """Parse a source type string. Unknown shapes become Opaque."""
    s = text.strip()
    if s == "":
        raise ModelError("empty type")
    if s == "error":
        return ERROR
    if s in _ALIASES:
        return Basic(_ALIASES[s])
    if s in BASIC_KINDS:
        return Basic(s)
    if s.startswith("[]"):
        return Slice(parse_type(s[2:], pkg))
    if s.startswith("*"):
        return Pointer(parse_type(s[1:], pkg))
    if s.startswith("map["):
        close = _matching_bracket(s, 3)
        if close < 0:
            raise ModelError("unbalanced map type: " + text)
        return Map(parse_type(s[4:close], pkg), parse_type(s[close + 1 :], pkg))
    if "." in s:
        qual, _, name = s.rpartition(".")
        if _IDENT_RE.match(qual) and _IDENT_RE.match(name):
            return Named(name, qual)
    if _IDENT_RE.match(s):
        return Named(s, pkg)
    return Opaque(s)


def _matching_bracket(s: str, start: int) -> int:
    depth = 0
    for i in range(start, len(s)):
        if s[i] == "[":
            depth += 1
        elif s[i] == "]":
            depth -= 1
            if depth == 0:
                return i
    return -1


def format_type(typ: Type, pkg: str) -> str:
    """Inverse of parse_type; same-package names are unqualified."""
    if isinstance(typ, Named) and typ.pkg == pkg:
        return typ.name
    if isinstance(typ, Slice):
        return "[]" + format_type(typ.elem, pkg)
    if isinstance(typ, Pointer):
        return "*" + format_type(typ.elem, pkg)
    if isinstance(typ, Map):
        return "map[" + format_type(typ.key, pkg) + "]" + format_type(typ.value, pkg)
    return str(typ)


# ---------------------------------------------------------------------------
# Declaration model
# ---------------------------------------------------------------------------


def _require(d: dict, key: str, where: str) -> object:
    if not isinstance(d, dict):
        raise ModelError(where + ": expected object, got " + type(d).__name__)
    if key not in d:
        raise ModelError(where + ": missing '" + key + "'")
    return d[key]


def _vars_from_list(items: list, pkg: str, where: str) -> list[Var]:
    result: list[Var] = []
    for item in items:
        if not isinstance(item, dict):
            raise ModelError(where + ": expected object, got " + type(item).__name__)
        typ = parse_type(str(_require(item, "type", where)), pkg)
        result.append(Var(name=str(item.get("name", "")), typ=typ))
    return result


def _func_from_dict(d: dict, pkg: str) -> Func:
    name = str(_require(d, "name", "func"))
    return Func(
        name=name,
        params=_vars_from_list(d.get("params", []), pkg, name),
        results=_vars_from_list(d.get("results", []), pkg, name),
    )


def package_from_dict(d: dict) -> Package:
    """Build a Package from its JSON form.

    {"path": ..., "name": ..., "funcs": [...], "types": [{"kind": "struct" | "interface", ...}]}
    """
    if not isinstance(d, dict):
        raise ModelError("model: expected object")
    name = str(_require(d, "name", "package"))
    pkg = Package(path=str(d.get("path", name)), name=name)
    for f in d.get("funcs", []):
        pkg.funcs.append(_func_from_dict(f, name))
    for t in d.get("types", []):
        tname = str(_require(t, "name", "type"))
        kind = t.get("kind", "struct")
        methods = [_func_from_dict(m, name) for m in t.get("methods", [])]
        if kind == "struct":
            pkg.types.append(
                Struct(
                    name=tname,
                    fields=_vars_from_list(t.get("fields", []), name, tname),
                    methods=methods,
                    embeds=[str(e) for e in t.get("embeds", [])],
                )
            )
        elif kind == "interface":
            pkg.types.append(Interface(name=tname, methods=methods))
        else:
            raise ModelError(tname + ": unknown kind '" + str(kind) + "'")
    return pkg


def _vars_to_list(vs: list[Var], pkg: str) -> list[dict[str, object]]:
    result: list[dict[str, object]] = []
    for v in vs:
        entry: dict[str, object] = {}
        if v.name:
            entry["name"] = v.name
        entry["type"] = format_type(v.typ, pkg)
        result.append(entry)
    return result


def _func_to_dict(f: Func, pkg: str) -> dict[str, object]:
    return {
        "name": f.name,
        "params": _vars_to_list(f.params, pkg),
        "results": _vars_to_list(f.results, pkg),
    }


def package_to_dict(pkg: Package) -> dict[str, object]:
    types: list[dict[str, object]] = []
    for t in pkg.types:
        if isinstance(t, Struct):
            types.append(
                {
                    "kind": "struct",
                    "name": t.name,
                    "fields": _vars_to_list(t.fields, pkg.name),
                    "methods": [_func_to_dict(m, pkg.name) for m in t.methods],
                    "embeds": list(t.embeds),
                }
            )
        else:
            types.append(
                {
                    "kind": "interface",
                    "name": t.name,
                    "methods": [_func_to_dict(m, pkg.name) for m in t.methods],
                }
            )
    return {
        "path": pkg.path,
        "name": pkg.name,
        "funcs": [_func_to_dict(f, pkg.name) for f in pkg.funcs],
        "types": types,
    }


# ---------------------------------------------------------------------------
# Binding (phase dumps)
# ---------------------------------------------------------------------------


def _param_to_dict(p: ParamShape, pkg: str) -> dict[str, object]:
    d: dict[str, object] = {
        "name": p.name,
        "type": format_type(p.mapping.source, pkg),
        "wire": p.wire,
    }
    if p.mapping.wrapper is not None:
        d["wrapper"] = p.mapping.wrapper
    return d


def shape_to_dict(shape: CallShape, pkg: str) -> dict[str, object]:
    d: dict[str, object] = {
        "params": [_param_to_dict(p, pkg) for p in shape.params],
        "convention": shape.convention,
    }
    if shape.result is not None:
        d["result"] = _param_to_dict(shape.result, pkg)
    return d


def _member_key(m: Member) -> str:
    key = m.name if m.owner is None else m.owner + "." + m.name
    if m.kind == "field_get":
        return key + ".get"
    if m.kind == "field_set":
        return key + ".set"
    return key


def types_to_dict(binding: Binding) -> dict[str, object]:
    """Wire type of every bound value, keyed by member."""
    values: dict[str, object] = {}
    for m in binding.members():
        if m.shape is None:
            continue
        entry: dict[str, object] = {p.name: p.wire for p in m.shape.params}
        if m.shape.result is not None:
            entry["return"] = m.shape.result.wire
        values[_member_key(m)] = entry
    return {
        "prefix": binding.prefix,
        "ref_types": list(binding.ref_types),
        "values": values,
        "errors": [str(e) for e in binding.errors()],
    }


def signatures_to_dict(binding: Binding) -> dict[str, object]:
    pkg = binding.pkg.name
    shapes: dict[str, object] = {}
    for m in binding.members():
        if m.shape is not None:
            shapes[_member_key(m)] = shape_to_dict(m.shape, pkg)
    return {"shapes": shapes, "errors": [str(e) for e in binding.errors()]}


def codes_to_dict(binding: Binding) -> dict[str, object]:
    """Descriptor -> member -> code."""
    result: dict[str, dict[str, int]] = {}
    for m in binding.members():
        codes = result.setdefault(m.site.descriptor, {})
        codes[_member_key(m)] = m.site.code
    return {"descriptors": result}

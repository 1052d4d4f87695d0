"""Frontend package - converts a declaration model to a Binding."""

from __future__ import annotations

import logging
from typing import Callable

from ..errors import BindError, DuplicateSite
from ..ir import Binding, BoundType, CallShape, Member
from ..model import Func, Package, Struct, Var, exported_only
from .codes import (
    assign_func_sites,
    assign_interface_sites,
    assign_struct_sites,
    check_unique,
    func_descriptor,
    type_descriptor,
)
from .signatures import getter_shape, normalize, setter_shape
from .types import TypeMapper, collect_ref_types

logger = logging.getLogger(__name__)


def analyze(pkg: Package) -> Binding:
    """Frontend pipeline: Package -> Binding.

    Rejected declarations are recorded on the Binding and skipped; their
    siblings are still bound. Codes are assigned before any rejection.
    """
    source = pkg
    pkg = exported_only(pkg)
    mapper = TypeMapper(pkg)
    binding = Binding(pkg=pkg, prefix=mapper.prefix, descriptor=func_descriptor(pkg))
    binding.ref_types = collect_ref_types(pkg)
    for site, func in assign_func_sites(pkg):
        member = Member(site=site, kind="func", name=func.name)
        member.shape = _shape_or_error(binding, normalize, func, mapper)
        binding.funcs.append(member)
    for typ in pkg.types:
        bound = BoundType(
            name=typ.name,
            kind="struct" if isinstance(typ, Struct) else "interface",
            descriptor=type_descriptor(pkg, typ.name),
            wrapper=mapper.prefix + typ.name,
        )
        if isinstance(typ, Struct):
            _bind_struct(binding, bound, typ, mapper, source)
        else:
            # Interfaces get addresses but no stubs.
            logger.warning("TODO: %s", typ.name)
            for site, method in assign_interface_sites(pkg, typ):
                bound.members.append(
                    Member(site=site, kind="method", name=method.name, owner=typ.name)
                )
        binding.types.append(bound)
    dups = check_unique([m.site for m in binding.members()])
    if dups:
        raise DuplicateSite(dups)
    for err in binding.errors():
        logger.warning("skipping %s: %s", err.decl, err)
    logger.debug(
        "bound %d functions and %d types of package %s",
        len(binding.funcs),
        len(binding.types),
        pkg.name,
    )
    return binding


def _bind_struct(
    binding: Binding, bound: BoundType, struct: Struct, mapper: TypeMapper, source: Package
) -> None:
    # A rejected field type is reported once, by the getter.
    rejected: set[str] = set()
    for site, kind, decl in assign_struct_sites(binding.pkg, struct, source):
        member = Member(site=site, kind=kind, name=decl.name, owner=struct.name)
        if kind == "method":
            assert isinstance(decl, Func)
            member.shape = _shape_or_error(binding, normalize, decl, mapper, struct.name)
        elif decl.name not in rejected:
            assert isinstance(decl, Var)
            make = getter_shape if kind == "field_get" else setter_shape
            member.shape = _shape_or_error(binding, make, decl, mapper, struct.name)
            if member.shape is None:
                rejected.add(decl.name)
        bound.members.append(member)


def _shape_or_error(
    binding: Binding, make: Callable[..., CallShape], *args: object
) -> CallShape | None:
    try:
        return make(*args)
    except BindError as e:
        binding.add_error(e)
        return None

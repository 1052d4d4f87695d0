"""Signature normalization: any exported signature -> one CallShape.

Foreign runtimes rarely have multiple return values, so every signature
collapses to at most one value plus an optional failure message.
"""

from __future__ import annotations

import re

from ..errors import ResultNotError, TooManyResults
from ..ir import CallShape, ParamShape
from ..model import Func, Var, is_error
from .types import TypeMapper

# Source names that collide with synthesized parameter names
PARAM_RE = re.compile(r"^p[0-9]+$")


def param_name(params: list[Var], i: int) -> str:
    """Name of parameter i, synthesized when absent or reserved."""
    name = params[i].name
    if name == "" or name == "_" or PARAM_RE.match(name):
        return "p" + str(i)
    return name


def result_name(var: Var) -> str:
    if var.name == "" or var.name == "_" or PARAM_RE.match(var.name):
        return "ret0_"
    return var.name


def normalize(func: Func, mapper: TypeMapper, owner: str | None = None) -> CallShape:
    """Build the CallShape of func. Raises BindError subclasses on rejection."""
    label = func.name if owner is None else owner + "." + func.name
    params: list[ParamShape] = []
    for i in range(len(func.params)):
        p = func.params[i]
        params.append(ParamShape(param_name(func.params, i), mapper.map_type(p.typ, label)))
    results = func.results
    if len(results) == 0:
        return CallShape(name=func.name, params=params, convention="void")
    if len(results) == 1:
        r = results[0]
        if is_error(r.typ):
            return CallShape(name=func.name, params=params, convention="error")
        ret = ParamShape(result_name(r), mapper.map_type(r.typ, label))
        return CallShape(name=func.name, params=params, convention="value", result=ret)
    if len(results) == 2:
        if not is_error(results[1].typ):
            raise ResultNotError(label, "second result value must be of type error: " + label)
        if is_error(results[0].typ):
            raise ResultNotError(label, "first result value must not be of type error: " + label)
        ret = ParamShape(result_name(results[0]), mapper.map_type(results[0].typ, label))
        return CallShape(name=func.name, params=params, convention="value_error", result=ret)
    raise TooManyResults(label, "too many result values: " + label)


def getter_shape(field: Var, mapper: TypeMapper, owner: str) -> CallShape:
    """Field getter: no params, the field value as result."""
    ret = ParamShape("ret_", mapper.map_type(field.typ, owner + "." + field.name))
    return CallShape(name=field.name, params=[], convention="value", result=ret)


def setter_shape(field: Var, mapper: TypeMapper, owner: str) -> CallShape:
    """Field setter: one param v, no result."""
    v = ParamShape("v", mapper.map_type(field.typ, owner + "." + field.name))
    return CallShape(name="set" + field.name, params=[v], convention="void")

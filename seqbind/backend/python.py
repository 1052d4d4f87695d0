"""Live Python halves of a binding.

Unlike the Go and Objective-C backends this one emits no text: it builds the
handlers and stubs directly from the Binding, so both halves can run in one
process over a Loopback transport.

bind_callee registers one handler per bound member. The implementation is a
namespace (module, class or object) with an attribute per package function
and a class per bound struct; a missing struct class is a TypeError at bind
time. Failures are raised: a handler of an
error-convention member catches Exception and writes its message.

bind_caller builds stub functions and one Proxy subclass per bound type.
A non-empty failure message raises CallError.
"""

from __future__ import annotations

import logging
from types import SimpleNamespace
from typing import Callable

from ..errors import CallError, UnknownRef
from ..ir import Binding, BoundType, CallShape, Member, TypeMapping
from ..model import Basic
from ..seq.buffer import ZERO_VALUES, Buffer, to_signed64, to_unsigned64
from ..seq.dispatch import DispatchTable, Handler, default_table
from ..seq.refs import NIL, ProxyCache, RefTable
from ..seq.transport import Transport
from .util import require_ok

logger = logging.getLogger(__name__)


# ============================================================
# SCALAR CONVERSIONS
# ============================================================


def _is_uint64(m: TypeMapping) -> bool:
    return isinstance(m.source, Basic) and m.source.kind in ("uint64", "uint")


def encode_scalar(m: TypeMapping, value: object) -> object:
    """Native value -> wire value for non-ObjectRef mappings."""
    if _is_uint64(m):
        return to_signed64(int(value))  # type: ignore[call-overload]
    if m.wire == "Bool":
        return bool(value)
    if m.wire == "Float64":
        return float(value)  # type: ignore[arg-type]
    return value


def decode_scalar(m: TypeMapping, value: object) -> object:
    """Wire value -> native value for non-ObjectRef mappings."""
    if _is_uint64(m):
        return to_unsigned64(value)  # type: ignore[arg-type]
    return value


# ============================================================
# CALLEE
# ============================================================


class _Callee:
    """Handler factory for one binding and one implementation."""

    def __init__(self, binding: Binding, impl: object, refs: RefTable) -> None:
        self.binding = binding
        self.impl = impl
        self.refs = refs
        self.classes: dict[str, type] = {}
        for bound in binding.types:
            cls = getattr(impl, bound.name, None)
            if isinstance(cls, type):
                self.classes[bound.name] = cls
            elif bound.kind == "struct":
                raise TypeError("implementation has no class for struct " + bound.name)

    def expected(self, decl: str | None) -> type | None:
        return self.classes.get(str(decl))

    def read(self, in_: Buffer, m: TypeMapping) -> object:
        if m.wire == "ObjectRef":
            return self.refs.get(in_.read_ref(), self.expected(m.decl))
        return decode_scalar(m, in_.read(m.wire))

    def write(self, out: Buffer, m: TypeMapping, value: object) -> None:
        if m.wire == "ObjectRef":
            cls = self.expected(m.decl)
            if value is not None and cls is not None and not isinstance(value, cls):
                raise TypeError(
                    "expected " + cls.__name__ + " for " + str(m.decl) + ", got " + type(value).__name__
                )
            out.write_ref(self.refs.ref(value))
            return
        out.write(m.wire, encode_scalar(m, value))

    def receiver(self, in_: Buffer, owner: str) -> object:
        handle = in_.read_ref()
        obj = self.refs.get(handle, self.expected(owner))
        if obj is None:
            raise UnknownRef(handle)
        return obj

    def call_handler(self, shape: CallShape, target: Callable[[Buffer], Callable[..., object]]) -> Handler:
        """Handler that resolves the callable from the request, then invokes it."""

        def handle(out: Buffer, in_: Buffer) -> None:
            fn = target(in_)
            args = [self.read(in_, p.mapping) for p in shape.params]
            if not shape.has_error:
                result = fn(*args)
                if shape.result is not None:
                    self.write(out, shape.result.mapping, result)
                return
            try:
                result = fn(*args)
            except Exception as exc:
                message = str(exc) or type(exc).__name__
                logger.debug("%s failed: %s", shape.name, message)
                if shape.result is not None:
                    _write_zero(out, shape.result.mapping)
                out.write_string(message)
                return
            if shape.result is not None:
                self.write(out, shape.result.mapping, result)
            out.write_string("")

        return handle

    def member_handler(self, member: Member) -> Handler:
        shape = member.shape
        assert shape is not None
        if member.kind == "func":
            fn = getattr(self.impl, member.name)
            return self.call_handler(shape, lambda in_: fn)
        owner = str(member.owner)
        if member.kind == "method":
            return self.call_handler(
                shape, lambda in_: getattr(self.receiver(in_, owner), member.name)
            )
        if member.kind == "field_get":
            result = shape.result
            assert result is not None

            def get(out: Buffer, in_: Buffer) -> None:
                obj = self.receiver(in_, owner)
                self.write(out, result.mapping, getattr(obj, member.name))

            return get
        param = shape.params[0]

        def set_(out: Buffer, in_: Buffer) -> None:
            obj = self.receiver(in_, owner)
            setattr(obj, member.name, self.read(in_, param.mapping))

        return set_


def _write_zero(out: Buffer, m: TypeMapping) -> None:
    if m.wire == "ObjectRef":
        out.write_ref(NIL)
    else:
        out.write(m.wire, ZERO_VALUES[m.wire])


def bind_callee(
    binding: Binding,
    impl: object,
    table: DispatchTable | None = None,
    refs: RefTable | None = None,
) -> DispatchTable:
    """Register a handler for every bound member of binding on table."""
    require_ok(binding)
    table = table if table is not None else default_table()
    callee = _Callee(binding, impl, refs if refs is not None else RefTable())
    count = 0
    for member in binding.members():
        if not member.bound:
            continue
        table.register(member.site.descriptor, member.site.code, callee.member_handler(member))
        count += 1
    logger.info("registered %d handlers for package %s", count, binding.pkg.name)
    return table


# ============================================================
# CALLER
# ============================================================


class Proxy:
    """Caller-side wrapper of a callee object, bound to one handle."""

    descriptor = ""

    def __init__(self, ref: int) -> None:
        self.ref = ref

    def __repr__(self) -> str:
        return type(self).__name__ + "(ref=" + str(self.ref) + ")"


class _Caller:
    """Stub factory for one binding over one transport."""

    def __init__(self, binding: Binding, transport: Transport, proxies: ProxyCache) -> None:
        self.binding = binding
        self.transport = transport
        self.proxies = proxies
        self.classes: dict[str, type[Proxy]] = {}

    def write(self, in_: Buffer, m: TypeMapping, value: object) -> None:
        if m.wire == "ObjectRef":
            if value is None:
                in_.write_ref(NIL)
                return
            if not isinstance(value, Proxy):
                raise TypeError("expected " + str(m.wrapper) + ", got " + type(value).__name__)
            in_.write_ref(value.ref)
            return
        in_.write(m.wire, encode_scalar(m, value))

    def read(self, out: Buffer, m: TypeMapping) -> object:
        if m.wire == "ObjectRef":
            cls = self.classes[str(m.decl)]
            return self.proxies.get_or_create(out.read_ref(), cls)
        return decode_scalar(m, out.read(m.wire))

    def invoke(self, member: Member, receiver: Proxy | None, args: tuple[object, ...]) -> object:
        shape = member.shape
        assert shape is not None
        if len(args) != len(shape.params):
            raise TypeError(
                shape.name + "() takes " + str(len(shape.params)) + " arguments ("
                + str(len(args)) + " given)"
            )
        site = member.site
        in_ = Buffer()
        out = Buffer()
        try:
            if receiver is not None:
                in_.write_ref(receiver.ref)
            for p, arg in zip(shape.params, args):
                self.write(in_, p.mapping, arg)
            self.transport.send(site.descriptor, site.code, in_, out)
            result = None
            if shape.result is not None:
                result = self.read(out, shape.result.mapping)
            if shape.has_error:
                message = out.read_string()
                if message:
                    raise CallError(message, site.descriptor, site.code)
            return result
        finally:
            in_.free()
            out.free()

    def func_stub(self, member: Member) -> Callable[..., object]:
        def stub(*args: object) -> object:
            return self.invoke(member, None, args)

        stub.__name__ = member.name
        stub.__qualname__ = member.name
        return stub

    def method_stub(self, member: Member) -> Callable[..., object]:
        def stub(proxy: Proxy, *args: object) -> object:
            return self.invoke(member, proxy, args)

        stub.__name__ = member.name
        return stub

    def proxy_class(self, bound: BoundType) -> type[Proxy]:
        attrs: dict[str, object] = {"descriptor": bound.descriptor, "__module__": __name__}
        if bound.kind == "struct":
            for getter, setter in bound.fields():
                if not getter.bound:
                    continue
                fset = self.method_stub(setter) if setter.bound else None
                attrs[getter.name] = property(self.method_stub(getter), fset)
            for method in bound.methods():
                if method.bound:
                    attrs[method.name] = self.method_stub(method)
        cls = type(bound.wrapper, (Proxy,), attrs)
        self.classes[bound.name] = cls
        return cls


def bind_caller(
    binding: Binding,
    transport: Transport,
    proxies: ProxyCache | None = None,
) -> SimpleNamespace:
    """Stub namespace for binding: one function per bound package function and
    one Proxy subclass per bound type, under both its wrapper name and its
    declared name.
    """
    require_ok(binding)
    caller = _Caller(binding, transport, proxies if proxies is not None else ProxyCache())
    ns = SimpleNamespace()
    for bound in binding.types:
        cls = caller.proxy_class(bound)
        setattr(ns, bound.wrapper, cls)
        setattr(ns, bound.name, cls)
    for member in binding.funcs:
        if member.bound:
            setattr(ns, member.name, caller.func_stub(member))
    return ns

"""In-process round trips through the Python caller and callee halves."""

import pytest

from seqbind.backend.python import Proxy, bind_callee, bind_caller
from seqbind.errors import CallError, DispatchMiss, GenerationFailed, RefTypeMismatch
from seqbind.frontend import analyze
from seqbind.model import ERROR, INT64, STRING, Basic, Func, Interface, Named, Package, Pointer, Slice, Struct, Var
from seqbind.seq import Buffer, DispatchTable, Loopback, ProxyCache, RefTable


def test_sum(live) -> None:
    assert live.api.Sum(3, 4) == 7
    assert live.transport.calls == 1


def test_strings_and_bytes(live) -> None:
    assert live.api.Hello("gopher") == "Hello, gopher!"
    assert live.api.Hello("") == "Hello, !"
    assert live.api.BytesAppend(b"ab", b"") == b"ab"
    assert live.api.BytesAppend(b"", b"") == b""


def test_void_calls(live, impl) -> None:
    assert live.api.Hi() is None
    assert live.api.Int(-5) is None
    assert live.api.CollectS(3, 10) == 3
    assert impl.calls == [("Hi",), ("Int", -5), ("CollectS", 3, 10)]


def test_returns_error(live) -> None:
    assert live.api.ReturnsError(True) == "Hi"
    with pytest.raises(CallError) as exc:
        live.api.ReturnsError(False)
    assert exc.value.message == "Error"
    assert exc.value.descriptor == "testpkg"
    assert exc.value.code == 8


def test_struct_fields_and_methods(live) -> None:
    s = live.api.NewS(1.5, 2.0)
    assert isinstance(s, live.api.GoTestpkgS)
    assert isinstance(s, Proxy)
    assert s.X == 1.5
    s.X = 10.0
    assert s.X == 10.0
    assert s.Sum() == 12.0
    assert s.TryTwoStrings("a", "b") == "ab"
    assert live.api.CallSSum(s) == 12.0


def test_proxy_identity(live) -> None:
    s = live.api.NewS(1.0, 2.0)
    obj = live.refs.get(s.ref)
    assert live.refs.ref(obj) == s.ref
    # The callee hands back the same object: same handle, same proxy.
    assert live.proxies.get_or_create(s.ref, live.api.S) is s


def _linked_package() -> Package:
    node = Pointer(Named("Node", "l"))
    return Package(
        path="example.com/l",
        name="l",
        funcs=[
            Func("Make", [], [Var("", node)]),
            Func("Same", [Var("n", node)], [Var("", node)]),
        ],
        types=[Struct("Node", fields=[Var("Next", node)])],
    )


class LinkedImpl:
    class Node:
        def __init__(self) -> None:
            self.Next = None

    @staticmethod
    def Make():
        return LinkedImpl.Node()

    @staticmethod
    def Same(n):
        return n


def test_object_round_trip_keeps_proxy() -> None:
    binding = analyze(_linked_package())
    refs = RefTable()
    api = bind_caller(binding, Loopback(bind_callee(binding, LinkedImpl, DispatchTable(), refs)))
    n = api.Make()
    assert api.Same(n) is n
    assert n.Next is None
    n.Next = n
    assert n.Next is n
    assert isinstance(refs.get(n.ref), LinkedImpl.Node)
    other = api.Make()
    assert other is not n
    assert other.ref != n.ref


def test_missing_struct_class_fails_binding() -> None:
    binding = analyze(_linked_package())

    class Impl:
        @staticmethod
        def Make():
            return None

    with pytest.raises(TypeError, match="no class for struct Node"):
        bind_callee(binding, Impl, DispatchTable())


def test_callee_checks_returned_objects() -> None:
    binding = analyze(_linked_package())

    class Impl(LinkedImpl):
        @staticmethod
        def Make():
            return object()

    table = bind_callee(binding, Impl, DispatchTable())
    api = bind_caller(binding, Loopback(table))
    with pytest.raises(TypeError, match="expected Node for Node, got object"):
        api.Make()


def test_declared_name_alias(live) -> None:
    assert live.api.S is live.api.GoTestpkgS
    assert live.api.S.descriptor == "go.testpkg.S"


def test_wrong_argument_count(live) -> None:
    with pytest.raises(TypeError):
        live.api.Sum(1)
    assert live.transport.calls == 0


def test_ref_argument_must_be_proxy(live) -> None:
    with pytest.raises(TypeError):
        live.api.CallSSum(object())


def test_uint64_bit_pattern() -> None:
    pkg = Package(
        path="example.com/u",
        name="u",
        funcs=[Func("Echo", [Var("v", Basic("uint64"))], [Var("", Basic("uint64"))])],
    )
    binding = analyze(pkg)
    table = DispatchTable()
    seen: list[int] = []

    class Impl:
        @staticmethod
        def Echo(v: int) -> int:
            seen.append(v)
            return v

    bind_callee(binding, Impl, table)
    api = bind_caller(binding, Loopback(table))
    top = (1 << 64) - 1
    assert api.Echo(top) == top
    assert seen == [top]


def test_error_only_and_empty_message() -> None:
    pkg = Package(
        path="example.com/e",
        name="e",
        funcs=[
            Func("Check", [Var("ok", Basic("bool"))], [Var("", ERROR)]),
            Func("Get", [], [Var("", INT64), Var("", ERROR)]),
        ],
    )
    binding = analyze(pkg)

    class Impl:
        @staticmethod
        def Check(ok: bool) -> None:
            if not ok:
                raise KeyError()

        @staticmethod
        def Get() -> int:
            raise RuntimeError("boom")

    table = bind_callee(binding, Impl, DispatchTable())
    api = bind_caller(binding, Loopback(table))
    assert api.Check(True) is None
    with pytest.raises(CallError) as exc:
        api.Check(False)
    # An exception without text reports its class name.
    assert exc.value.message == "KeyError"
    with pytest.raises(CallError, match="boom"):
        api.Get()


def test_failure_writes_zero_value() -> None:
    pkg = Package(
        path="example.com/e",
        name="e",
        funcs=[Func("Get", [], [Var("", STRING), Var("", ERROR)])],
    )
    binding = analyze(pkg)

    class Impl:
        @staticmethod
        def Get() -> str:
            raise ValueError("nope")

    table = bind_callee(binding, Impl, DispatchTable())
    out = Buffer()
    table.dispatch("e", 1, out, Buffer())
    reader = Buffer(out.getvalue())
    assert reader.read_string() == ""
    assert reader.read_string() == "nope"
    assert reader.remaining() == 0


def test_nil_ref_crosses_as_none() -> None:
    pkg = Package(
        path="example.com/n",
        name="n",
        funcs=[Func("Maybe", [Var("t", Pointer(Named("T", "n")))], [Var("", Pointer(Named("T", "n")))])],
        types=[Struct("T")],
    )
    binding = analyze(pkg)

    class Impl:
        class T:
            pass

        @staticmethod
        def Maybe(t):
            return t

    api = bind_caller(binding, Loopback(bind_callee(binding, Impl, DispatchTable())))
    assert api.Maybe(None) is None


def test_callee_checks_ref_types() -> None:
    pkg = Package(
        path="example.com/r",
        name="r",
        funcs=[
            Func("MakeA", [], [Var("", Pointer(Named("A", "r")))]),
            Func("UseB", [Var("b", Pointer(Named("B", "r")))]),
        ],
        types=[Struct("A"), Struct("B")],
    )
    binding = analyze(pkg)

    class Impl:
        class A:
            pass

        class B:
            pass

        @staticmethod
        def MakeA():
            return Impl.A()

        @staticmethod
        def UseB(b) -> None:
            pass

    api = bind_caller(binding, Loopback(bind_callee(binding, Impl, DispatchTable())))
    a = api.MakeA()
    # Forge a B proxy over A's handle.
    with pytest.raises(RefTypeMismatch):
        api.UseB(api.B(a.ref))


def test_interface_proxy_has_no_methods() -> None:
    pkg = Package(
        path="example.com/i",
        name="i",
        funcs=[Func("Current", [], [Var("", Named("Clock", "i"))])],
        types=[Interface("Clock", methods=[Func("Now", [], [Var("", INT64)])])],
    )
    binding = analyze(pkg)

    class Impl:
        class RealClock:
            def Now(self) -> int:
                return 1

        @staticmethod
        def Current():
            return Impl.RealClock()

    api = bind_caller(binding, Loopback(bind_callee(binding, Impl, DispatchTable())))
    clock = api.Current()
    assert isinstance(clock, api.GoIClock)
    assert not hasattr(clock, "Now")


def test_mismatched_halves_are_fatal(binding) -> None:
    api = bind_caller(binding, Loopback(DispatchTable()))
    with pytest.raises(DispatchMiss):
        api.Sum(1, 2)


def test_buffers_freed_after_call(binding, impl) -> None:
    table = bind_callee(binding, impl, DispatchTable())
    seen: list[Buffer] = []

    class Recording(Loopback):
        def send(self, descriptor, code, in_, out):
            seen.extend([in_, out])
            super().send(descriptor, code, in_, out)

    api = bind_caller(binding, Recording(table))
    with pytest.raises(CallError):
        api.ReturnsError(False)
    assert len(seen) == 2
    assert all(b.freed for b in seen)


def test_generation_refused_with_diagnostics(impl) -> None:
    pkg = Package(path="example.com/b", name="b", funcs=[Func("Bad", [Var("xs", Slice(INT64))])])
    binding = analyze(pkg)
    with pytest.raises(GenerationFailed):
        bind_callee(binding, impl, DispatchTable())
    with pytest.raises(GenerationFailed):
        bind_caller(binding, Loopback(DispatchTable()))


def test_separate_ref_tables_do_not_share_handles(binding, impl) -> None:
    refs = RefTable()
    table = bind_callee(binding, impl, DispatchTable(), refs)
    api = bind_caller(binding, Loopback(table), ProxyCache())
    s = api.NewS(0.0, 0.0)
    assert s.ref in refs

"""Ordinal code assignment and frontend analysis tests."""

import json
import logging
from pathlib import Path

import pytest

from seqbind.errors import DuplicateSite
from seqbind.frontend import analyze
from seqbind.frontend.codes import (
    assign_struct_sites,
    check_unique,
    field_get_code,
    field_set_code,
    method_code,
    method_set,
)
from seqbind.ir import CallSite
from seqbind.model import ERROR, FLOAT64, INT64, STRING, Func, Interface, Package, Slice, Struct, Var
from seqbind.serialize import codes_to_dict, package_from_dict

TESTPKG_JSON = Path(__file__).parent / "testdata" / "testpkg.json"


def test_testpkg_function_codes(binding) -> None:
    codes = {m.name: m.site.code for m in binding.funcs}
    assert codes == {
        "BytesAppend": 1,
        "CallSSum": 2,
        "CollectS": 3,
        "Hello": 4,
        "Hi": 5,
        "Int": 6,
        "NewS": 7,
        "ReturnsError": 8,
        "Sum": 9,
    }
    assert {m.site.descriptor for m in binding.funcs} == {"testpkg"}


def test_testpkg_struct_codes(binding) -> None:
    s = binding.bound_type("S")
    assert s is not None
    assert s.descriptor == "go.testpkg.S"
    assert s.wrapper == "GoTestpkgS"
    assert [(m.kind, m.name, m.site.code) for m in s.members] == [
        ("field_get", "X", 0x00F),
        ("field_set", "X", 0x01F),
        ("field_get", "Y", 0x10F),
        ("field_set", "Y", 0x11F),
        ("method", "Sum", 0x00C),
        ("method", "TryTwoStrings", 0x10C),
    ]


def test_code_domains_are_disjoint() -> None:
    codes = set()
    for i in range(300):
        codes.update([field_get_code(i), field_set_code(i), method_code(i)])
    assert len(codes) == 900


def test_deterministic() -> None:
    first = analyze(package_from_dict(json.loads(TESTPKG_JSON.read_text())))
    second = analyze(package_from_dict(json.loads(TESTPKG_JSON.read_text())))
    assert first.pkg is not second.pkg
    assert codes_to_dict(first) == codes_to_dict(second)


def test_rejected_member_keeps_slot() -> None:
    pkg = Package(
        path="example.com/p",
        name="p",
        funcs=[
            Func("A", [], [Var("", INT64)]),
            Func("Bad", [Var("xs", Slice(INT64))]),
            Func("C", [], [Var("", STRING)]),
        ],
    )
    binding = analyze(pkg)
    assert [(m.name, m.site.code, m.bound) for m in binding.funcs] == [
        ("A", 1, True),
        ("Bad", 2, False),
        ("C", 3, True),
    ]
    assert [str(e) for e in binding.errors()] == ["unsupported type: []int64"]
    assert not binding.ok()


def test_rejected_field_reported_once() -> None:
    pkg = Package(
        path="example.com/p",
        name="p",
        types=[Struct("T", fields=[Var("Xs", Slice(INT64)), Var("Y", FLOAT64)])],
    )
    binding = analyze(pkg)
    t = binding.bound_type("T")
    assert t is not None
    assert [m.bound for m in t.members] == [False, False, True, True]
    assert len(binding.errors()) == 1


def test_unexported_declarations_skipped() -> None:
    pkg = Package(
        path="example.com/p",
        name="p",
        funcs=[Func("helper"), Func("Public")],
        types=[Struct("T", fields=[Var("x", INT64), Var("Y", INT64)], methods=[Func("m"), Func("M")])],
    )
    binding = analyze(pkg)
    assert [(m.name, m.site.code) for m in binding.funcs] == [("Public", 1)]
    t = binding.bound_type("T")
    assert t is not None
    assert [(m.name, m.site.code) for m in t.members] == [("Y", 0x0F), ("Y", 0x1F), ("M", 0x0C)]


def test_promoted_methods_follow_own_methods() -> None:
    pkg = Package(
        path="example.com/p",
        name="p",
        types=[
            Struct("Base", methods=[Func("Name"), Func("ID")]),
            Struct("Derived", methods=[Func("Name"), Func("Extra")], embeds=["Base"]),
        ],
    )
    derived = pkg.lookup("Derived")
    assert isinstance(derived, Struct)
    assert [m.name for m in method_set(pkg, derived)] == ["Name", "Extra", "ID"]
    sites = assign_struct_sites(pkg, derived)
    assert [(kind, site.code) for site, kind, _ in sites] == [
        ("method", 0x00C),
        ("method", 0x10C),
        ("method", 0x20C),
    ]


def test_embed_cycle_terminates() -> None:
    pkg = Package(
        path="example.com/p",
        name="p",
        types=[
            Struct("A", methods=[Func("Fa")], embeds=["B"]),
            Struct("B", methods=[Func("Fb")], embeds=["A"]),
        ],
    )
    a = pkg.lookup("A")
    assert isinstance(a, Struct)
    assert [m.name for m in method_set(pkg, a)] == ["Fa", "Fb"]


def test_interface_gets_sites_without_shapes(caplog) -> None:
    pkg = Package(
        path="example.com/p",
        name="p",
        types=[Interface("Runner", methods=[Func("Run", [], [Var("", ERROR)]), Func("Stop")])],
    )
    with caplog.at_level(logging.WARNING, logger="seqbind"):
        binding = analyze(pkg)
    iface = binding.bound_type("Runner")
    assert iface is not None
    assert iface.kind == "interface"
    assert [(m.name, m.site.code, m.bound) for m in iface.members] == [
        ("Run", 0x00C, False),
        ("Stop", 0x10C, False),
    ]
    assert binding.ok()
    assert "TODO: Runner" in caplog.text


def test_check_unique() -> None:
    a = CallSite("d", 1)
    assert check_unique([a, CallSite("d", 2)]) == []
    assert check_unique([a, CallSite("d", 1)]) == [a]


def test_sites_labels(binding) -> None:
    labels = binding.sites()
    assert labels[CallSite("testpkg", 9)] == "Sum"
    assert labels[CallSite("go.testpkg.S", 0x10F)] == "S.Y.get"
    assert labels[CallSite("go.testpkg.S", 0x11F)] == "S.Y.set"
    assert labels[CallSite("go.testpkg.S", 0x00C)] == "S.Sum"


def test_unexported_embed_promotes_exported_methods() -> None:
    pkg = Package(
        path="example.com/p",
        name="p",
        types=[
            Struct("base", methods=[Func("Name", [], [Var("", STRING)]), Func("reset")]),
            Struct("D", methods=[Func("Own")], embeds=["base"]),
        ],
    )
    binding = analyze(pkg)
    assert binding.bound_type("base") is None
    d = binding.bound_type("D")
    assert d is not None
    assert [(m.name, m.site.code, m.bound) for m in d.members] == [
        ("Own", 0x00C, True),
        ("Name", 0x10C, True),
    ]


def test_duplicate_sites_are_fatal() -> None:
    pkg = Package(
        path="example.com/p",
        name="p",
        types=[Struct("T", methods=[Func("A")]), Struct("T", methods=[Func("B")])],
    )
    with pytest.raises(DuplicateSite) as exc:
        analyze(pkg)
    assert str(exc.value) == "duplicate call sites: go.p.T#0xc"

"""Type mapper tests."""

import pytest

from seqbind.errors import UnsupportedType
from seqbind.frontend.types import TypeMapper, collect_ref_types, name_prefix
from seqbind.model import (
    BYTES,
    ERROR,
    Basic,
    Interface,
    Map,
    Named,
    Opaque,
    Package,
    Pointer,
    Slice,
    Struct,
    Var,
)


def make_pkg() -> Package:
    return Package(
        path="example.com/geo",
        name="geo",
        types=[
            Struct(name="Point", fields=[Var("X", Basic("float64"))]),
            Interface(name="Shape"),
            Struct(name="hidden"),
        ],
    )


@pytest.fixture
def mapper() -> TypeMapper:
    return TypeMapper(make_pkg())


@pytest.mark.parametrize(
    "kind,wire",
    [
        ("bool", "Bool"),
        ("int8", "Int32"),
        ("int16", "Int32"),
        ("int32", "Int32"),
        ("uint8", "Int32"),
        ("uint16", "Int32"),
        ("int", "Int64"),
        ("int64", "Int64"),
        ("uint", "Int64"),
        ("uint32", "Int64"),
        ("uint64", "Int64"),
        ("float32", "Float64"),
        ("float64", "Float64"),
        ("string", "String"),
    ],
)
def test_basic_kinds(mapper: TypeMapper, kind: str, wire: str) -> None:
    m = mapper.map_type(Basic(kind))
    assert m.wire == wire
    assert m.decl is None


def test_byte_slice_is_bytes(mapper: TypeMapper) -> None:
    assert mapper.map_type(BYTES).wire == "Bytes"


def test_pointer_to_struct_is_ref(mapper: TypeMapper) -> None:
    m = mapper.map_type(Pointer(Named("Point", "geo")))
    assert m.wire == "ObjectRef"
    assert m.decl == "Point"
    assert m.decl_kind == "struct"
    assert m.wrapper == "GoGeoPoint"
    assert m.pointer


def test_value_struct_is_ref(mapper: TypeMapper) -> None:
    m = mapper.map_type(Named("Point", "geo"))
    assert m.wire == "ObjectRef"
    assert not m.pointer


def test_interface_is_ref(mapper: TypeMapper) -> None:
    m = mapper.map_type(Named("Shape", "geo"))
    assert m.wire == "ObjectRef"
    assert m.decl_kind == "interface"
    assert m.wrapper == "GoGeoShape"


@pytest.mark.parametrize(
    "typ,message",
    [
        (Basic("uintptr"), "unsupported type: uintptr"),
        (Basic("complex64"), "unsupported type: complex64"),
        (Basic("complex128"), "unsupported type: complex128"),
        (Slice(Basic("int")), "unsupported type: []int"),
        (Map(Basic("string"), Basic("int")), "unsupported type: map[string]int"),
        (Pointer(Basic("int")), "unsupported pointer to type: *int"),
        (Pointer(Named("Shape", "geo")), "unsupported pointer to type: *geo.Shape"),
        (Opaque("chan int"), "unsupported type: chan int"),
        (Named("hidden", "geo"), "unsupported, unexported type geo.hidden"),
        (Named("Missing", "geo"), "unsupported, named type geo.Missing"),
        (
            Named("Buffer", "bytes"),
            "type Buffer is in package bytes; only types defined in package geo is supported",
        ),
    ],
)
def test_rejected(mapper: TypeMapper, typ, message: str) -> None:
    with pytest.raises(UnsupportedType) as exc:
        mapper.map_type(typ, "F")
    assert str(exc.value) == message
    assert exc.value.decl == "F"
    assert exc.value.kind == "types"


def test_error_type_is_not_a_value(mapper: TypeMapper) -> None:
    with pytest.raises(UnsupportedType):
        mapper.map_type(ERROR)


def test_name_prefix() -> None:
    assert name_prefix(Package(path="x/testpkg", name="testpkg")) == "GoTestpkg"
    assert name_prefix(Package(path="x/Geo", name="Geo")) == "GoGeo"


def test_ref_types_in_declared_order() -> None:
    assert collect_ref_types(make_pkg()) == ["Point", "Shape"]

import pytest
from hypothesis import given
from hypothesis import strategies as st

from borshkit.containers import HashMap, Option, Vec
from borshkit.primitives import I8, STRING, U8, U64
from borshkit.reader import BorshError, Reader
from borshkit.schema import (
    ArrayDef,
    BorshSchemaContainer,
    EmptyFields,
    EnumDef,
    NamedFields,
    SequenceDef,
    StructDef,
    TupleDef,
    UnnamedFields,
)
from borshkit.schema_helpers import (
    container_schema,
    deserialize_container,
    main,
    serialize_container,
    try_from_slice_with_schema,
    try_to_vec_with_schema,
)

PRIMITIVES = {
    "bool", "char", "f32", "f64", "i8", "i16", "i32", "i64", "i128",
    "u8", "u16", "u32", "u64", "u128", "string", "nil",
}


def _sample_container():
    return BorshSchemaContainer(
        declaration="A",
        definitions={
            "A": EnumDef((("Bacon", "ABacon"), ("Salad", "ASalad"))),
            "ABacon": StructDef(EmptyFields()),
            "ASalad": StructDef(UnnamedFields(["Tomatoes", "Array<u64, 32>"])),
            "Tomatoes": StructDef(NamedFields([("seeds", "Vec<u64>")])),
            "Array<u64, 32>": ArrayDef(length=32, elements="u64"),
            "Vec<u64>": SequenceDef("u64"),
            "Tuple<u64, string>": TupleDef(["u64", "string"]),
        },
    )


def test_empty_container_wire_bytes():
    container = BorshSchemaContainer(declaration="u8", definitions={})
    assert serialize_container(container) == b"\x02\x00\x00\x00u8\x00\x00\x00\x00"


def test_container_round_trip():
    container = _sample_container()
    reader = Reader(serialize_container(container))
    assert deserialize_container(reader) == container
    assert reader.remaining() == 0


def test_container_encoding_is_independent_of_insertion_order():
    container = _sample_container()
    reordered = BorshSchemaContainer(
        declaration=container.declaration,
        definitions=dict(reversed(list(container.definitions.items()))),
    )
    assert serialize_container(reordered) == serialize_container(container)


def test_deserialize_container_leaves_trailing_bytes():
    data = serialize_container(_sample_container()) + b"\x07"
    reader = Reader(data)
    deserialize_container(reader)
    assert reader.remaining() == 1


def test_invalid_definition_variant():
    data = b"\x01\x00\x00\x00A" + b"\x01\x00\x00\x00" + b"\x01\x00\x00\x00A" + bytes([9])
    with pytest.raises(BorshError) as info:
        deserialize_container(Reader(data))
    assert str(info.value) == "Unexpected variant index: 9"


def test_container_schema_declaration_and_variants():
    schema = container_schema()
    assert schema.declaration == "BorshSchemaContainer"
    variants = [name for name, _ in schema.definitions["Definition"].variants]
    assert variants == ["Array", "Sequence", "Tuple", "Enum", "Struct"]


def test_container_schema_is_closed():
    schema = container_schema()
    referenced = set()
    for definition in schema.definitions.values():
        if isinstance(definition, (ArrayDef, SequenceDef)):
            referenced.add(definition.elements)
        elif isinstance(definition, TupleDef):
            referenced.update(definition.elements)
        elif isinstance(definition, EnumDef):
            referenced.update(decl for _, decl in definition.variants)
        elif isinstance(definition, StructDef):
            fields = definition.fields
            if isinstance(fields, NamedFields):
                referenced.update(decl for _, decl in fields.fields)
            elif isinstance(fields, UnnamedFields):
                referenced.update(fields.elements)
    assert referenced <= set(schema.definitions) | PRIMITIVES


def test_container_schema_round_trips_through_itself():
    schema = container_schema()
    data = serialize_container(schema)
    assert deserialize_container(Reader(data)) == schema


def test_with_schema_wire_bytes_for_u8():
    assert try_to_vec_with_schema(U8, 5) == b"\x02\x00\x00\x00u8\x00\x00\x00\x00\x05"


@pytest.mark.parametrize(
    "borsh_type, value",
    [
        (U64, 2**64 - 1),
        (Option(STRING), "hello"),
        (Option(STRING), None),
        (Vec(Vec(U64)), [[1, 2], [], [3]]),
        (HashMap(U64, STRING), {1: "one", 2: "two"}),
    ],
)
def test_with_schema_round_trip(borsh_type, value):
    data = try_to_vec_with_schema(borsh_type, value)
    assert try_from_slice_with_schema(borsh_type, data) == value


def test_with_schema_prefix_is_the_container():
    data = try_to_vec_with_schema(Vec(U64), [1, 2, 3])
    reader = Reader(data)
    assert deserialize_container(reader) == Vec(U64).schema_container()
    assert Vec(U64).deserialize(reader) == [1, 2, 3]


def test_schema_mismatch():
    data = try_to_vec_with_schema(Vec(U8), b"\x01\x02")
    with pytest.raises(BorshError) as info:
        try_from_slice_with_schema(Vec(I8), data)
    assert str(info.value) == "Borsh schema does not match"


def test_with_schema_extra_bytes():
    data = try_to_vec_with_schema(U8, 1) + b"\x00"
    with pytest.raises(BorshError) as info:
        try_from_slice_with_schema(U8, data)
    assert str(info.value) == "Not all bytes read"


def test_main_writes_schema_file(tmp_path, capsys):
    output = tmp_path / "schema.dat"
    assert main([str(output)]) == 0
    assert deserialize_container(Reader(output.read_bytes())) == container_schema()
    assert "BorshSchemaContainer" in capsys.readouterr().out


_names = st.text(min_size=1, max_size=8)
_definitions = st.one_of(
    st.builds(ArrayDef, length=st.integers(0, 2**32 - 1), elements=_names),
    st.builds(SequenceDef, _names),
    st.builds(TupleDef, st.lists(_names, max_size=4)),
    st.builds(EnumDef, st.lists(st.tuples(_names, _names), max_size=4)),
    st.builds(
        StructDef,
        st.one_of(
            st.builds(NamedFields, st.lists(st.tuples(_names, _names), max_size=4)),
            st.builds(UnnamedFields, st.lists(_names, max_size=4)),
            st.just(EmptyFields()),
        ),
    ),
)


@given(_names, st.dictionaries(_names, _definitions, max_size=5))
def test_arbitrary_container_round_trip(declaration, definitions):
    container = BorshSchemaContainer(declaration=declaration, definitions=definitions)
    reader = Reader(serialize_container(container))
    assert deserialize_container(reader) == container
    assert reader.remaining() == 0
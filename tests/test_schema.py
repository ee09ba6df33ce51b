import pytest

from borshkit.schema import (
    ArrayDef,
    BorshSchemaContainer,
    EmptyFields,
    EnumDef,
    NamedFields,
    SchemaConflictError,
    SequenceDef,
    StructDef,
    TupleDef,
    UnnamedFields,
    add_definition,
)


def test_add_definition_inserts_new_entry():
    defs = {}
    add_definition("Vec<u64>", SequenceDef("u64"), defs)
    assert defs == {"Vec<u64>": SequenceDef("u64")}


def test_add_same_definition_twice_is_allowed():
    defs = {}
    definition = EnumDef([("None", "nil"), ("Some", "u64")])
    add_definition("Option<u64>", definition, defs)
    add_definition("Option<u64>", EnumDef((("None", "nil"), ("Some", "u64"))), defs)
    assert defs == {"Option<u64>": definition}


def test_conflicting_definition_raises():
    defs = {"A": StructDef(EmptyFields())}
    with pytest.raises(SchemaConflictError, match="Redefining type schema"):
        add_definition("A", StructDef(UnnamedFields(["u64"])), defs)
    assert defs["A"] == StructDef(EmptyFields())


def test_lists_and_tuples_compare_equal():
    assert TupleDef(["u64", "string"]) == TupleDef(("u64", "string"))
    assert NamedFields([["x", "u64"]]) == NamedFields((("x", "u64"),))
    assert UnnamedFields(["u8"]) == UnnamedFields(("u8",))


def test_definitions_are_hashable():
    seen = {ArrayDef(32, "u64"), ArrayDef(32, "u64"), SequenceDef("u64")}
    assert len(seen) == 2


def test_different_kinds_are_unequal():
    assert not (ArrayDef(9, "u64") == SequenceDef("u64"))
    assert not (StructDef(EmptyFields()) == StructDef(UnnamedFields([])))


def test_struct_def_defaults_to_empty_fields():
    assert StructDef() == StructDef(EmptyFields())


def test_container_equality():
    first = BorshSchemaContainer(
        "Tuple<u64, string>", {"Tuple<u64, string>": TupleDef(["u64", "string"])}
    )
    second = BorshSchemaContainer(
        "Tuple<u64, string>", {"Tuple<u64, string>": TupleDef(("u64", "string"))}
    )
    assert first == second
    assert first != BorshSchemaContainer("Tuple<u64, string>")
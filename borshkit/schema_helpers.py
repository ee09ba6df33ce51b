"""Encoding of schema containers, and values prefixed with their own schema."""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO, Dict, Iterable, Sequence as SequenceType, Tuple as TupleType

from borshkit.containers import HashMap, Tuple, Vec
from borshkit.primitives import STRING, U32, BorshType
from borshkit.reader import BorshError, ErrorKind, Reader
from borshkit.schema import (
    ArrayDef,
    BorshSchemaContainer,
    Declaration,
    Definition,
    EmptyFields,
    EnumDef,
    NamedFields,
    SequenceDef,
    StructDef,
    TupleDef,
    UnnamedFields,
    add_definition,
)

SCHEMA_MISMATCH_MESSAGE = "Borsh schema does not match"
DEFAULT_OUTPUT = "schema_schema.dat"

_STRINGS = Vec(STRING)
_PAIRS = Vec(Tuple(STRING, STRING))


def _unexpected_variant(index: int) -> BorshError:
    return BorshError(ErrorKind.INVALID_INPUT, f"Unexpected variant index: {index}")


def _add_named_struct(
    name: Declaration,
    fields: Iterable[TupleType[str, BorshType]],
    definitions: Dict[Declaration, Definition],
) -> None:
    fields = list(fields)
    definition = StructDef(
        NamedFields(tuple((field, kind.declaration()) for field, kind in fields))
    )
    add_definition(name, definition, definitions)
    for _, kind in fields:
        kind.add_definitions_recursively(definitions)


def _add_unnamed_struct(
    name: Declaration,
    elements: SequenceType[BorshType],
    definitions: Dict[Declaration, Definition],
) -> None:
    definition = StructDef(UnnamedFields(tuple(kind.declaration() for kind in elements)))
    add_definition(name, definition, definitions)
    for kind in elements:
        kind.add_definitions_recursively(definitions)


def _add_enum(
    name: Declaration,
    variants: SequenceType[str],
    definitions: Dict[Declaration, Definition],
) -> None:
    definition = EnumDef(tuple((variant, f"{name}{variant}") for variant in variants))
    add_definition(name, definition, definitions)


@dataclass(frozen=True)
class _FieldsType(BorshType):
    """The tagged union describing the fields of a struct."""

    def serialize(self, value: Any, writer: BinaryIO) -> None:
        if isinstance(value, NamedFields):
            writer.write(b"\x00")
            _PAIRS.serialize(value.fields, writer)
        elif isinstance(value, UnnamedFields):
            writer.write(b"\x01")
            _STRINGS.serialize(value.elements, writer)
        elif isinstance(value, EmptyFields):
            writer.write(b"\x02")
        else:
            raise TypeError(f"expected struct fields, got {type(value).__name__}")

    def deserialize(self, reader: Reader) -> Any:
        tag = reader.read_byte()
        if tag == 0:
            return NamedFields(_PAIRS.deserialize(reader))
        if tag == 1:
            return UnnamedFields(_STRINGS.deserialize(reader))
        if tag == 2:
            return EmptyFields()
        raise _unexpected_variant(tag)

    def declaration(self) -> Declaration:
        return "Fields"

    def add_definitions_recursively(self, definitions: Dict[Declaration, Definition]) -> None:
        name = self.declaration()
        _add_enum(name, ("NamedFields", "UnnamedFields", "Empty"), definitions)
        _add_unnamed_struct(f"{name}NamedFields", (_PAIRS,), definitions)
        _add_unnamed_struct(f"{name}UnnamedFields", (_STRINGS,), definitions)
        add_definition(f"{name}Empty", StructDef(EmptyFields()), definitions)


_FIELDS = _FieldsType()


@dataclass(frozen=True)
class _DefinitionType(BorshType):
    """The tagged union describing the layout of one type."""

    def serialize(self, value: Any, writer: BinaryIO) -> None:
        if isinstance(value, ArrayDef):
            writer.write(b"\x00")
            U32.serialize(value.length, writer)
            STRING.serialize(value.elements, writer)
        elif isinstance(value, SequenceDef):
            writer.write(b"\x01")
            STRING.serialize(value.elements, writer)
        elif isinstance(value, TupleDef):
            writer.write(b"\x02")
            _STRINGS.serialize(value.elements, writer)
        elif isinstance(value, EnumDef):
            writer.write(b"\x03")
            _PAIRS.serialize(value.variants, writer)
        elif isinstance(value, StructDef):
            writer.write(b"\x04")
            _FIELDS.serialize(value.fields, writer)
        else:
            raise TypeError(f"expected a definition, got {type(value).__name__}")

    def deserialize(self, reader: Reader) -> Any:
        tag = reader.read_byte()
        if tag == 0:
            length = U32.deserialize(reader)
            return ArrayDef(length=length, elements=STRING.deserialize(reader))
        if tag == 1:
            return SequenceDef(STRING.deserialize(reader))
        if tag == 2:
            return TupleDef(_STRINGS.deserialize(reader))
        if tag == 3:
            return EnumDef(_PAIRS.deserialize(reader))
        if tag == 4:
            return StructDef(_FIELDS.deserialize(reader))
        raise _unexpected_variant(tag)

    def declaration(self) -> Declaration:
        return "Definition"

    def add_definitions_recursively(self, definitions: Dict[Declaration, Definition]) -> None:
        name = self.declaration()
        _add_enum(name, ("Array", "Sequence", "Tuple", "Enum", "Struct"), definitions)
        _add_named_struct(
            f"{name}Array", (("length", U32), ("elements", STRING)), definitions
        )
        _add_named_struct(f"{name}Sequence", (("elements", STRING),), definitions)
        _add_named_struct(f"{name}Tuple", (("elements", _STRINGS),), definitions)
        _add_named_struct(f"{name}Enum", (("variants", _PAIRS),), definitions)
        _add_named_struct(f"{name}Struct", (("fields", _FIELDS),), definitions)


_DEFINITION = _DefinitionType()
_DEFINITIONS_MAP = HashMap(STRING, _DEFINITION)


@dataclass(frozen=True)
class _ContainerType(BorshType):
    """The encoding of a whole schema container."""

    def serialize(self, value: Any, writer: BinaryIO) -> None:
        STRING.serialize(value.declaration, writer)
        _DEFINITIONS_MAP.serialize(value.definitions, writer)

    def deserialize(self, reader: Reader) -> BorshSchemaContainer:
        declaration = STRING.deserialize(reader)
        definitions = _DEFINITIONS_MAP.deserialize(reader)
        return BorshSchemaContainer(declaration=declaration, definitions=definitions)

    def declaration(self) -> Declaration:
        return "BorshSchemaContainer"

    def add_definitions_recursively(self, definitions: Dict[Declaration, Definition]) -> None:
        _add_named_struct(
            self.declaration(),
            (("declaration", STRING), ("definitions", _DEFINITIONS_MAP)),
            definitions,
        )


_CONTAINER = _ContainerType()


def serialize_container(container: BorshSchemaContainer) -> bytes:
    """Encode a schema container in Borsh."""
    return _CONTAINER.to_bytes(container)


def deserialize_container(reader: Reader) -> BorshSchemaContainer:
    """Read one schema container from ``reader``."""
    return _CONTAINER.deserialize(reader)


def container_schema() -> BorshSchemaContainer:
    """Return the schema describing schema containers themselves."""
    return _CONTAINER.schema_container()


def try_to_vec_with_schema(borsh_type: BorshType, value: Any) -> bytes:
    """Encode ``value`` prefixed with the encoded schema of ``borsh_type``."""
    return serialize_container(borsh_type.schema_container()) + borsh_type.to_bytes(value)


def try_from_slice_with_schema(borsh_type: BorshType, data: bytes) -> Any:
    """Decode a schema-prefixed value, checking the schema matches ``borsh_type``."""
    reader = Reader(data)
    schema = deserialize_container(reader)
    value = borsh_type.deserialize(reader)
    reader.finish()
    if borsh_type.schema_container() != schema:
        raise BorshError(ErrorKind.INVALID_DATA, SCHEMA_MISMATCH_MESSAGE)
    return value


def main(argv: SequenceType[str] | None = None) -> int:
    """Print the schema of schema containers and write its encoding to a file."""
    parser = argparse.ArgumentParser(
        description="Write the Borsh schema of schema containers to a file."
    )
    parser.add_argument("output", nargs="?", default=DEFAULT_OUTPUT)
    args = parser.parse_args(argv)
    container = container_schema()
    print(container)
    Path(args.output).write_bytes(serialize_container(container))
    return 0
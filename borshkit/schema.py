"""Schema descriptions of Borsh types.

A declaration is a string naming a type, e.g. ``HashMap<u64, string>``; a
definition describes how such a type is laid out on the wire.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Tuple, Union

Declaration = str
VariantName = str
FieldName = str

REDEFINITION_MESSAGE = (
    "Redefining type schema for the same type name. "
    "Types with the same names are not supported."
)


def _pairs(items) -> Tuple[Tuple[str, str], ...]:
    return tuple((str(name), str(decl)) for name, decl in items)


@dataclass(frozen=True)
class NamedFields:
    """A struct with named fields."""

    fields: Tuple[Tuple[FieldName, Declaration], ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", _pairs(self.fields))


@dataclass(frozen=True)
class UnnamedFields:
    """A struct with positional fields, structurally a tuple."""

    elements: Tuple[Declaration, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "elements", tuple(self.elements))


@dataclass(frozen=True)
class EmptyFields:
    """A struct with no fields."""


Fields = Union[NamedFields, UnnamedFields, EmptyFields]


@dataclass(frozen=True)
class ArrayDef:
    """A fixed-length array of same-type elements."""

    length: int
    elements: Declaration


@dataclass(frozen=True)
class SequenceDef:
    """A run-time-length sequence of same-type elements."""

    elements: Declaration


@dataclass(frozen=True)
class TupleDef:
    """A fixed-size tuple of possibly different element types."""

    elements: Tuple[Declaration, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "elements", tuple(self.elements))


@dataclass(frozen=True)
class EnumDef:
    """A tagged union; each variant has an associated declaration."""

    variants: Tuple[Tuple[VariantName, Declaration], ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "variants", _pairs(self.variants))


@dataclass(frozen=True)
class StructDef:
    """A structure with named, unnamed or no fields."""

    fields: Fields = field(default_factory=EmptyFields)


Definition = Union[ArrayDef, SequenceDef, TupleDef, EnumDef, StructDef]


@dataclass
class BorshSchemaContainer:
    """All schema information needed to deserialize a single type."""

    declaration: Declaration
    definitions: Dict[Declaration, Definition] = field(default_factory=dict)


class SchemaConflictError(ValueError):
    """Two different definitions were given for the same declaration."""


def add_definition(
    declaration: Declaration,
    definition: Definition,
    definitions: Dict[Declaration, Definition],
) -> None:
    """Record ``definition`` under ``declaration``; an equal existing entry is kept."""
    existing = definitions.setdefault(declaration, definition)
    if existing != definition:
        raise SchemaConflictError(REDEFINITION_MESSAGE)
"""Borsh encodings of composite types: sequences, arrays, options, results, tuples, collections."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, BinaryIO, Dict, Generic, List, TypeVar

from borshkit.primitives import U8, U32, UNIT, BorshType, Unit
from borshkit.reader import BorshError, ErrorKind, Reader
from borshkit.schema import (
    ArrayDef,
    Declaration,
    Definition,
    EnumDef,
    SequenceDef,
    TupleDef,
    add_definition,
)

MAX_SIZE_HINT_BYTES = 4096
_U32_MAX = 2**32 - 1

T = TypeVar("T")


def cautious(hint: int, element_size: int) -> int:
    """Bound a length prefix to a safe preallocation size of at least one element."""
    return max(min(hint, MAX_SIZE_HINT_BYTES // element_size), 1)


def _write_length(length: int, writer: BinaryIO) -> None:
    if length > _U32_MAX:
        raise BorshError(ErrorKind.INVALID_INPUT)
    writer.write(length.to_bytes(4, "little"))


def _is_u8(borsh_type: BorshType) -> bool:
    return borsh_type == U8


def _u8_bytes(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    return bytes(list(value))


def _is_zero_sized(borsh_type: BorshType) -> bool:
    if isinstance(borsh_type, Unit):
        return True
    if isinstance(borsh_type, Array):
        return borsh_type.length == 0 or _is_zero_sized(borsh_type.element)
    if isinstance(borsh_type, Tuple):
        return all(_is_zero_sized(element) for element in borsh_type.elements)
    return False


class _Repeated(Sequence):
    """An immutable sequence holding one value repeated ``length`` times."""

    __slots__ = ("_value", "_length")

    def __init__(self, value: Any, length: int) -> None:
        self._value = value
        self._length = length

    def __len__(self) -> int:
        return self._length

    def __getitem__(self, index):
        if isinstance(index, slice):
            return _Repeated(self._value, len(range(self._length)[index]))
        range(self._length)[index]
        return self._value

    def __eq__(self, other: object) -> bool:
        if isinstance(other, _Repeated):
            return self._length == other._length and (
                self._length == 0 or self._value == other._value
            )
        if isinstance(other, Sequence) and not isinstance(other, (str, bytes, bytearray)):
            return len(other) == self._length and all(item == self._value for item in other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"[{self._value!r}] * {self._length}"


@dataclass(frozen=True)
class Ok(Generic[T]):
    """The success side of a Result value."""

    value: T


@dataclass(frozen=True)
class Err(Generic[T]):
    """The failure side of a Result value."""

    value: T


@dataclass(frozen=True)
class Vec(BorshType):
    """A u32-length-prefixed sequence; ``Vec(U8)`` decodes to ``bytes``."""

    element: BorshType

    def serialize(self, value: Any, writer: BinaryIO) -> None:
        if _is_u8(self.element):
            data = _u8_bytes(value)
            _write_length(len(data), writer)
            writer.write(data)
            return
        items = value if isinstance(value, Sequence) else list(value)
        _write_length(len(items), writer)
        for item in items:
            self.element.serialize(item, writer)

    def deserialize(self, reader: Reader) -> Any:
        length = U32.deserialize(reader)
        if _is_u8(self.element):
            return reader.read(length) if length else b""
        if length == 0:
            return []
        if _is_zero_sized(self.element):
            return _Repeated(self.element.deserialize(reader), length)
        return [self.element.deserialize(reader) for _ in range(length)]

    def declaration(self) -> Declaration:
        return f"Vec<{self.element.declaration()}>"

    def add_definitions_recursively(self, definitions: Dict[Declaration, Definition]) -> None:
        add_definition(
            self.declaration(), SequenceDef(self.element.declaration()), definitions
        )
        self.element.add_definitions_recursively(definitions)


@dataclass(frozen=True)
class Array(BorshType):
    """A fixed-length array without a length prefix; ``Array(U8, n)`` decodes to ``bytes``."""

    element: BorshType
    length: int

    def __post_init__(self) -> None:
        if self.length < 0:
            raise ValueError(f"array length must not be negative: {self.length}")

    def _check_length(self, actual: int) -> None:
        if actual != self.length:
            raise ValueError(f"expected {self.length} elements, got {actual}")

    def serialize(self, value: Any, writer: BinaryIO) -> None:
        if _is_u8(self.element):
            data = _u8_bytes(value)
            self._check_length(len(data))
            writer.write(data)
            return
        items = list(value)
        self._check_length(len(items))
        for item in items:
            self.element.serialize(item, writer)

    def deserialize(self, reader: Reader) -> Any:
        if _is_u8(self.element):
            return reader.read(self.length) if self.length else b""
        return [self.element.deserialize(reader) for _ in range(self.length)]

    def declaration(self) -> Declaration:
        return f"Array<{self.element.declaration()}, {self.length}>"

    def add_definitions_recursively(self, definitions: Dict[Declaration, Definition]) -> None:
        add_definition(
            self.declaration(),
            ArrayDef(length=self.length, elements=self.element.declaration()),
            definitions,
        )
        self.element.add_definitions_recursively(definitions)


@dataclass(frozen=True)
class Option(BorshType):
    """An optional value; ``None`` is absent, anything else is present."""

    element: BorshType

    def serialize(self, value: Any, writer: BinaryIO) -> None:
        if value is None:
            writer.write(b"\x00")
            return
        writer.write(b"\x01")
        self.element.serialize(value, writer)

    def deserialize(self, reader: Reader) -> Any:
        flag = reader.read_byte()
        if flag == 0:
            return None
        if flag == 1:
            return self.element.deserialize(reader)
        raise BorshError(
            ErrorKind.INVALID_INPUT,
            f"Invalid Option representation: {flag}. The first byte must be 0 or 1",
        )

    def declaration(self) -> Declaration:
        return f"Option<{self.element.declaration()}>"

    def add_definitions_recursively(self, definitions: Dict[Declaration, Definition]) -> None:
        definition = EnumDef(
            (("None", UNIT.declaration()), ("Some", self.element.declaration()))
        )
        add_definition(self.declaration(), definition, definitions)
        self.element.add_definitions_recursively(definitions)


@dataclass(frozen=True)
class Result(BorshType):
    """Either ``Ok(value)`` tagged 1 or ``Err(value)`` tagged 0."""

    ok: BorshType
    err: BorshType

    def serialize(self, value: Any, writer: BinaryIO) -> None:
        if isinstance(value, Err):
            writer.write(b"\x00")
            self.err.serialize(value.value, writer)
        elif isinstance(value, Ok):
            writer.write(b"\x01")
            self.ok.serialize(value.value, writer)
        else:
            raise TypeError(f"expected Ok or Err, got {type(value).__name__}")

    def deserialize(self, reader: Reader) -> Any:
        flag = reader.read_byte()
        if flag == 0:
            return Err(self.err.deserialize(reader))
        if flag == 1:
            return Ok(self.ok.deserialize(reader))
        raise BorshError(
            ErrorKind.INVALID_INPUT,
            f"Invalid Result representation: {flag}. The first byte must be 0 or 1",
        )

    def declaration(self) -> Declaration:
        return f"Result<{self.ok.declaration()}, {self.err.declaration()}>"

    def add_definitions_recursively(self, definitions: Dict[Declaration, Definition]) -> None:
        definition = EnumDef(
            (("Ok", self.ok.declaration()), ("Err", self.err.declaration()))
        )
        add_definition(self.declaration(), definition, definitions)
        self.ok.add_definitions_recursively(definitions)


class Tuple(BorshType):
    """A fixed sequence of two or more differently typed elements."""

    def __init__(self, *elements: BorshType) -> None:
        if len(elements) < 2:
            raise ValueError("a tuple needs at least two element types")
        self.elements = tuple(elements)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tuple):
            return NotImplemented
        return self.elements == other.elements

    def __hash__(self) -> int:
        return hash(("Tuple", self.elements))

    def __repr__(self) -> str:
        return f"Tuple{self.elements!r}"

    def serialize(self, value: Any, writer: BinaryIO) -> None:
        items = tuple(value)
        if len(items) != len(self.elements):
            raise ValueError(f"expected {len(self.elements)} elements, got {len(items)}")
        for element, item in zip(self.elements, items):
            element.serialize(item, writer)

    def deserialize(self, reader: Reader) -> tuple:
        return tuple(element.deserialize(reader) for element in self.elements)

    def declaration(self) -> Declaration:
        return f"Tuple<{', '.join(element.declaration() for element in self.elements)}>"

    def add_definitions_recursively(self, definitions: Dict[Declaration, Definition]) -> None:
        definition = TupleDef(tuple(element.declaration() for element in self.elements))
        add_definition(self.declaration(), definition, definitions)
        for element in self.elements:
            element.add_definitions_recursively(definitions)


@dataclass(frozen=True)
class _MapType(BorshType):
    key: BorshType
    value: BorshType

    def serialize(self, value: Any, writer: BinaryIO) -> None:
        items = value.items() if isinstance(value, Mapping) else value
        entries = sorted(items, key=lambda entry: entry[0])
        _write_length(len(entries), writer)
        for key, item in entries:
            self.key.serialize(key, writer)
            self.value.serialize(item, writer)

    def deserialize(self, reader: Reader) -> Dict[Any, Any]:
        length = U32.deserialize(reader)
        result: Dict[Any, Any] = {}
        for _ in range(length):
            key = self.key.deserialize(reader)
            result[key] = self.value.deserialize(reader)
        return result


class HashMap(_MapType):
    """A mapping written as a count and key-sorted entries."""

    def declaration(self) -> Declaration:
        return f"HashMap<{self.key.declaration()}, {self.value.declaration()}>"

    def add_definitions_recursively(self, definitions: Dict[Declaration, Definition]) -> None:
        entry = Tuple(self.key, self.value)
        add_definition(self.declaration(), SequenceDef(entry.declaration()), definitions)
        entry.add_definitions_recursively(definitions)


class BTreeMap(_MapType):
    """A sorted mapping; decoded entries come back in key order."""

    def deserialize(self, reader: Reader) -> Dict[Any, Any]:
        return dict(sorted(super().deserialize(reader).items(), key=lambda entry: entry[0]))


@dataclass(frozen=True)
class _SetType(BorshType):
    element: BorshType

    def serialize(self, value: Any, writer: BinaryIO) -> None:
        items = sorted(value)
        _write_length(len(items), writer)
        for item in items:
            self.element.serialize(item, writer)

    def deserialize(self, reader: Reader) -> set:
        return set(Vec(self.element).deserialize(reader))


class HashSet(_SetType):
    """A set written as a count and its sorted elements."""


class BTreeSet(_SetType):
    """A sorted set written as a count and its elements in order."""


def _sift_down(items: List[Any], pos: int, end: int) -> None:
    element = items[pos]
    child = 2 * pos + 1
    while child <= end - 2:
        if items[child] <= items[child + 1]:
            child += 1
        if element >= items[child]:
            items[pos] = element
            return
        items[pos] = items[child]
        pos = child
        child = 2 * pos + 1
    if child == end - 1 and element < items[child]:
        items[pos] = items[child]
        pos = child
    items[pos] = element


def _rebuild_max_heap(items: List[Any]) -> List[Any]:
    for pos in reversed(range(len(items) // 2)):
        _sift_down(items, pos, len(items))
    return items


@dataclass(frozen=True)
class BinaryHeap(BorshType):
    """A max-heap kept as a list in heap order; decoding restores the heap property."""

    element: BorshType

    def serialize(self, value: Any, writer: BinaryIO) -> None:
        items = list(value)
        _write_length(len(items), writer)
        for item in items:
            self.element.serialize(item, writer)

    def deserialize(self, reader: Reader) -> List[Any]:
        return _rebuild_max_heap(list(Vec(self.element).deserialize(reader)))
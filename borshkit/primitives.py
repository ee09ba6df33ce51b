"""Borsh encodings of scalar types: integers, floats, booleans, strings and addresses."""

from __future__ import annotations

import abc
import io
import ipaddress
import math
import struct
from dataclasses import dataclass
from typing import Any, BinaryIO, Dict, Tuple

from borshkit.reader import BorshError, ErrorKind, Reader
from borshkit.schema import BorshSchemaContainer, Declaration, Definition

NAN_SERIALIZE_MESSAGE = "For portability reasons we do not allow to serialize NaNs."
NAN_DESERIALIZE_MESSAGE = "For portability reasons we do not allow to deserialize NaNs."

_U32_MAX = 2**32 - 1


def _write_u32_length(length: int, writer: BinaryIO) -> None:
    if length > _U32_MAX:
        raise BorshError(ErrorKind.INVALID_INPUT)
    writer.write(length.to_bytes(4, "little"))


def _read_u32(reader: Reader) -> int:
    return int.from_bytes(reader.read(4), "little")


class BorshType(abc.ABC):
    """A description of how values of one type are encoded in Borsh."""

    @abc.abstractmethod
    def serialize(self, value: Any, writer: BinaryIO) -> None:
        """Write the encoding of ``value`` to the binary stream ``writer``."""

    @abc.abstractmethod
    def deserialize(self, reader: Reader) -> Any:
        """Read one value from ``reader``, consuming exactly its bytes."""

    def declaration(self) -> Declaration:
        """Return the schema name of this type."""
        raise TypeError(f"{type(self).__name__} has no Borsh schema")

    def add_definitions_recursively(self, definitions: Dict[Declaration, Definition]) -> None:
        """Add the definitions this type needs; primitives need none."""

    def to_bytes(self, value: Any) -> bytes:
        """Encode ``value`` into a new byte string."""
        buffer = io.BytesIO()
        self.serialize(value, buffer)
        return buffer.getvalue()

    def from_bytes(self, data: bytes) -> Any:
        """Decode a value that must occupy all of ``data``."""
        reader = Reader(data)
        value = self.deserialize(reader)
        reader.finish()
        return value

    def schema_container(self) -> BorshSchemaContainer:
        """Collect the declaration and every definition of this type."""
        definitions: Dict[Declaration, Definition] = {}
        self.add_definitions_recursively(definitions)
        return BorshSchemaContainer(declaration=self.declaration(), definitions=definitions)


@dataclass(frozen=True)
class Integer(BorshType):
    """A little-endian fixed-width integer."""

    bits: int
    signed: bool = False

    def __post_init__(self) -> None:
        if self.bits not in (8, 16, 32, 64, 128):
            raise ValueError(f"unsupported integer width: {self.bits}")

    @property
    def size(self) -> int:
        """Width of the encoding in bytes."""
        return self.bits // 8

    @property
    def bounds(self) -> Tuple[int, int]:
        """Smallest and largest representable value."""
        if self.signed:
            return -(1 << (self.bits - 1)), (1 << (self.bits - 1)) - 1
        return 0, (1 << self.bits) - 1

    def serialize(self, value: Any, writer: BinaryIO) -> None:
        number = value.__index__()
        low, high = self.bounds
        if not low <= number <= high:
            raise ValueError(f"{number} is out of range for {self.declaration()}")
        writer.write(number.to_bytes(self.size, "little", signed=self.signed))

    def deserialize(self, reader: Reader) -> int:
        return int.from_bytes(reader.read(self.size), "little", signed=self.signed)

    def declaration(self) -> Declaration:
        return f"{'i' if self.signed else 'u'}{self.bits}"


@dataclass(frozen=True)
class Float(BorshType):
    """An IEEE-754 float; NaN is refused in both directions."""

    bits: int = 64

    def __post_init__(self) -> None:
        if self.bits not in (32, 64):
            raise ValueError(f"unsupported float width: {self.bits}")

    @property
    def size(self) -> int:
        """Width of the encoding in bytes."""
        return self.bits // 8

    @property
    def _format(self) -> str:
        return "<f" if self.bits == 32 else "<d"

    def serialize(self, value: Any, writer: BinaryIO) -> None:
        number = float(value)
        if math.isnan(number):
            raise ValueError(NAN_SERIALIZE_MESSAGE)
        try:
            writer.write(struct.pack(self._format, number))
        except OverflowError as exc:
            raise ValueError(f"{number} is out of range for {self.declaration()}") from exc

    def deserialize(self, reader: Reader) -> float:
        (number,) = struct.unpack(self._format, reader.read(self.size))
        if math.isnan(number):
            raise BorshError(ErrorKind.INVALID_INPUT, NAN_DESERIALIZE_MESSAGE)
        return number

    def declaration(self) -> Declaration:
        return f"f{self.bits}"


@dataclass(frozen=True)
class Bool(BorshType):
    """A boolean stored as one byte, 0 or 1."""

    def serialize(self, value: Any, writer: BinaryIO) -> None:
        writer.write(b"\x01" if value else b"\x00")

    def deserialize(self, reader: Reader) -> bool:
        byte = reader.read_byte()
        if byte == 0:
            return False
        if byte == 1:
            return True
        raise BorshError(ErrorKind.INVALID_INPUT, f"Invalid bool representation: {byte}")

    def declaration(self) -> Declaration:
        return "bool"


def _utf8_error_message(exc: UnicodeDecodeError) -> str:
    if exc.reason == "unexpected end of data":
        return f"incomplete utf-8 byte sequence from index {exc.start}"
    return f"invalid utf-8 sequence of {exc.end - exc.start} bytes from index {exc.start}"


@dataclass(frozen=True)
class String(BorshType):
    """A UTF-8 string prefixed with its byte length as u32."""

    def serialize(self, value: Any, writer: BinaryIO) -> None:
        if not isinstance(value, str):
            raise TypeError(f"expected str, got {type(value).__name__}")
        encoded = value.encode("utf-8")
        _write_u32_length(len(encoded), writer)
        writer.write(encoded)

    def deserialize(self, reader: Reader) -> str:
        raw = reader.read(_read_u32(reader))
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise BorshError(ErrorKind.INVALID_DATA, _utf8_error_message(exc)) from exc

    def declaration(self) -> Declaration:
        return "string"


@dataclass(frozen=True)
class Unit(BorshType):
    """The empty type; encodes to no bytes and decodes to ``None``."""

    def serialize(self, value: Any, writer: BinaryIO) -> None:
        return None

    def deserialize(self, reader: Reader) -> None:
        return None

    def declaration(self) -> Declaration:
        return "nil"


@dataclass(frozen=True)
class Ipv4Addr(BorshType):
    """An IPv4 address as its four octets."""

    def serialize(self, value: Any, writer: BinaryIO) -> None:
        writer.write(ipaddress.IPv4Address(value).packed)

    def deserialize(self, reader: Reader) -> ipaddress.IPv4Address:
        return ipaddress.IPv4Address(reader.read(4))


@dataclass(frozen=True)
class Ipv6Addr(BorshType):
    """An IPv6 address as its sixteen octets."""

    def serialize(self, value: Any, writer: BinaryIO) -> None:
        writer.write(ipaddress.IPv6Address(value).packed)

    def deserialize(self, reader: Reader) -> ipaddress.IPv6Address:
        return ipaddress.IPv6Address(reader.read(16))


_PORT = Integer(16)


@dataclass(frozen=True)
class SocketAddrV4(BorshType):
    """An ``(IPv4Address, port)`` pair."""

    def serialize(self, value: Any, writer: BinaryIO) -> None:
        Ipv4Addr().serialize(value[0], writer)
        _PORT.serialize(value[1], writer)

    def deserialize(self, reader: Reader) -> Tuple[ipaddress.IPv4Address, int]:
        ip = Ipv4Addr().deserialize(reader)
        return ip, _PORT.deserialize(reader)


@dataclass(frozen=True)
class SocketAddrV6(BorshType):
    """An ``(IPv6Address, port)`` pair; flow info and scope id are not encoded."""

    def serialize(self, value: Any, writer: BinaryIO) -> None:
        Ipv6Addr().serialize(value[0], writer)
        _PORT.serialize(value[1], writer)

    def deserialize(self, reader: Reader) -> Tuple[ipaddress.IPv6Address, int]:
        ip = Ipv6Addr().deserialize(reader)
        return ip, _PORT.deserialize(reader)


@dataclass(frozen=True)
class SocketAddr(BorshType):
    """Either socket address kind, tagged 0 for IPv4 and 1 for IPv6."""

    def serialize(self, value: Any, writer: BinaryIO) -> None:
        ip = ipaddress.ip_address(value[0])
        if ip.version == 4:
            writer.write(b"\x00")
            SocketAddrV4().serialize((ip, value[1]), writer)
        else:
            writer.write(b"\x01")
            SocketAddrV6().serialize((ip, value[1]), writer)

    def deserialize(self, reader: Reader) -> Tuple[Any, int]:
        kind = reader.read_byte()
        if kind == 0:
            return SocketAddrV4().deserialize(reader)
        if kind == 1:
            return SocketAddrV6().deserialize(reader)
        raise BorshError(ErrorKind.INVALID_INPUT, f"Invalid SocketAddr variant: {kind}")


U8 = Integer(8)
U16 = Integer(16)
U32 = Integer(32)
U64 = Integer(64)
U128 = Integer(128)
I8 = Integer(8, signed=True)
I16 = Integer(16, signed=True)
I32 = Integer(32, signed=True)
I64 = Integer(64, signed=True)
I128 = Integer(128, signed=True)
F32 = Float(32)
F64 = Float(64)
BOOL = Bool()
STRING = String()
UNIT = Unit()
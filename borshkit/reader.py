"""Byte reader used by deserializers, and the error type they raise."""

from __future__ import annotations

import enum

ERROR_NOT_ALL_BYTES_READ = "Not all bytes read"
ERROR_UNEXPECTED_LENGTH_OF_INPUT = "Unexpected length of input"
ERROR_OVERFLOW_ON_MACHINE_WITH_32_BIT_USIZE = "Overflow on machine with 32 bit usize"


class ErrorKind(enum.Enum):
    """General categories of (de)serialization errors."""

    NOT_FOUND = "entity not found"
    PERMISSION_DENIED = "permission denied"
    ALREADY_EXISTS = "entity already exists"
    INVALID_INPUT = "invalid input parameter"
    INVALID_DATA = "invalid data"
    WRITE_ZERO = "write zero"
    INTERRUPTED = "operation interrupted"
    OTHER = "other os error"
    UNEXPECTED_EOF = "unexpected end of file"

    def description(self) -> str:
        """Return the human-readable description of this kind."""
        return self.value


class BorshError(Exception):
    """An error raised while encoding or decoding Borsh data."""

    def __init__(self, kind: ErrorKind, message: str | None = None) -> None:
        self.kind = kind
        self.message = message
        super().__init__(message if message is not None else kind.description())

    def __str__(self) -> str:
        return self.message if self.message is not None else self.kind.description()

    def __repr__(self) -> str:
        if self.message is None:
            return f"BorshError(Kind({self.kind.name}))"
        return f"BorshError(kind={self.kind.name}, error={self.message!r})"


class Reader:
    """A cursor over an immutable byte buffer that is consumed from the front."""

    def __init__(self, data: bytes | bytearray | memoryview) -> None:
        self._data = bytes(data)
        self._pos = 0

    @property
    def position(self) -> int:
        """Number of bytes consumed so far."""
        return self._pos

    def read(self, size: int) -> bytes:
        """Consume and return exactly ``size`` bytes."""
        if size < 0:
            raise BorshError(ErrorKind.INVALID_INPUT, ERROR_UNEXPECTED_LENGTH_OF_INPUT)
        if self.remaining() < size:
            raise BorshError(ErrorKind.INVALID_INPUT, ERROR_UNEXPECTED_LENGTH_OF_INPUT)
        chunk = self._data[self._pos : self._pos + size]
        self._pos += size
        return chunk

    def read_byte(self) -> int:
        """Consume and return a single byte as an integer."""
        if self._pos >= len(self._data):
            raise BorshError(ErrorKind.INVALID_INPUT, ERROR_UNEXPECTED_LENGTH_OF_INPUT)
        value = self._data[self._pos]
        self._pos += 1
        return value

    def remaining(self) -> int:
        """Number of bytes not yet consumed."""
        return len(self._data) - self._pos

    def finish(self) -> None:
        """Raise if any bytes are left unread."""
        if self.remaining():
            raise BorshError(ErrorKind.INVALID_DATA, ERROR_NOT_ALL_BYTES_READ)

    def __len__(self) -> int:
        return self.remaining()
"""Type-length-value records as used by protocol optional parameters."""

from __future__ import annotations

import io
import struct
from typing import BinaryIO, Iterator

_HEADER = struct.Struct(">HH")


class TlvError(Exception):
    """Base class for TLV errors."""


class TlvReadError(TlvError):
    """A TLV record could not be read completely.

    ``partial`` holds the records read before the failure, when reading a list.
    """

    def __init__(self, message: str = "TLV read error", partial: "TlvList | None" = None) -> None:
        super().__init__(message)
        self.partial = partial


class TlvWriteError(TlvError):
    """A TLV record could not be written completely."""


class TypeNotFoundError(TlvError, LookupError):
    """No TLV record of the requested type exists."""


class Tlv:
    """A single record: 16-bit type, 16-bit length and a value."""

    __slots__ = ("_typ", "_value")

    def __init__(self, typ: int, value: bytes) -> None:
        if not 0 <= typ <= 0xFFFF:
            raise ValueError(f"TLV type out of range: {typ}")
        data = bytes(value)
        self._typ = typ
        self._value = data[: len(data) & 0xFFFF]

    @property
    def typ(self) -> int:
        return self._typ

    @property
    def value(self) -> bytes:
        return self._value

    @property
    def length(self) -> int:
        return len(self._value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tlv):
            return NotImplemented
        return self._typ == other._typ and self._value == other._value

    def __hash__(self) -> int:
        return hash((self._typ, self._value))

    def __repr__(self) -> str:
        return f"Tlv(typ={self._typ:#06x}, value={self._value!r})"

    def __str__(self) -> str:
        hex_value = "0x" + self._value.hex() if self._value else ""
        return f"{{tag: {self._typ:x}, len: {self.length}, val: {hex_value}}}"


def _read_u16(stream: BinaryIO) -> int:
    raw = stream.read(2)
    if not raw:
        raise EOFError("end of TLV stream")
    if len(raw) < 2:
        raise TlvReadError("truncated TLV header")
    return int.from_bytes(raw, "big")


def read_object(stream: BinaryIO) -> Tlv:
    """Read one record; raises EOFError at the end of the stream."""
    typ = _read_u16(stream)
    length = _read_u16(stream)
    value = stream.read(length)
    if length and not value:
        raise EOFError("end of TLV stream")
    if len(value) != length:
        raise TlvReadError()
    return Tlv(typ, value)


def write_object(tlv: Tlv, stream: BinaryIO) -> None:
    """Write one record to a binary stream."""
    stream.write(_HEADER.pack(tlv.typ, tlv.length))
    written = stream.write(tlv.value)
    if written is not None and written != tlv.length:
        raise TlvWriteError("TLV write error")


def from_bytes(data: bytes) -> Tlv:
    """Decode the first record in ``data``."""
    return read_object(io.BytesIO(data))


def to_bytes(tlv: Tlv) -> bytes:
    """Encode a record to bytes."""
    buffer = io.BytesIO()
    write_object(tlv, buffer)
    return buffer.getvalue()


class TlvList:
    """An ordered collection of TLV records."""

    def __init__(self) -> None:
        self._objects: list[Tlv] = []

    def __len__(self) -> int:
        return len(self._objects)

    def __iter__(self) -> Iterator[Tlv]:
        return iter(self._objects)

    def get(self, typ: int) -> Tlv:
        """Return the first record of the given type."""
        for obj in self._objects:
            if obj.typ == typ:
                return obj
        raise TypeNotFoundError(f"TLV type not found: {typ:#x}")

    def get_all(self, typ: int) -> list[Tlv]:
        return [obj for obj in self._objects if obj.typ == typ]

    def remove(self, typ: int) -> int:
        """Remove every record of the given type; return how many were removed."""
        kept = [obj for obj in self._objects if obj.typ != typ]
        removed = len(self._objects) - len(kept)
        self._objects = kept
        return removed

    def remove_object(self, obj: Tlv) -> int:
        """Remove every record equal to ``obj``; return how many were removed."""
        kept = [item for item in self._objects if item != obj]
        removed = len(self._objects) - len(kept)
        self._objects = kept
        return removed

    def add(self, typ: int, value: bytes) -> None:
        self._objects.append(Tlv(typ, value))

    def add_object(self, obj: Tlv) -> None:
        self._objects.append(obj)

    def write(self, stream: BinaryIO) -> None:
        for obj in self._objects:
            write_object(obj, stream)

    def __str__(self) -> str:
        return "[" + "".join(f"{obj}," for obj in self._objects) + "]"


def read(stream: BinaryIO) -> TlvList:
    """Read records until the stream ends."""
    objects = TlvList()
    while True:
        try:
            objects.add_object(read_object(stream))
        except EOFError:
            return objects
        except TlvReadError as exc:
            exc.partial = objects
            raise
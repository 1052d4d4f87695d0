"""Sequential wire buffer.

Values are written one after another in declared order, with no tags and no
padding; the reader knows the schema from the (descriptor, code) it agreed
to. Both halves of a binding use this codec.

| Wire      | Layout (little-endian)              |
|-----------|-------------------------------------|
| Bool      | u8 (0 or 1)                         |
| Int32     | i32                                 |
| Int64     | i64                                 |
| Float64   | f64                                 |
| String    | i32 byte length, UTF-8 bytes        |
| Bytes     | i32 byte length, raw bytes          |
| ObjectRef | i32 handle, 0 = nil                 |
"""

from __future__ import annotations

import struct

from ..errors import BufferFreed, BufferUnderflow

_BOOL = struct.Struct("<B")
_INT32 = struct.Struct("<i")
_INT64 = struct.Struct("<q")
_FLOAT64 = struct.Struct("<d")

INT32_MIN = -(1 << 31)
INT32_MAX = (1 << 31) - 1
INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1


def to_signed64(v: int) -> int:
    """Two's complement bit pattern of an unsigned 64-bit value."""
    if v < 0 or v >= (1 << 64):
        raise OverflowError("value out of range for uint64: " + str(v))
    return v - (1 << 64) if v > INT64_MAX else v


def to_unsigned64(v: int) -> int:
    return v + (1 << 64) if v < 0 else v


class Buffer:
    """Growable byte buffer with a read cursor."""

    def __init__(self, data: bytes = b"") -> None:
        self._data: bytearray | None = bytearray(data)
        self._offset: int = 0

    # --- state ---

    def _buf(self) -> bytearray:
        if self._data is None:
            raise BufferFreed("seq: buffer used after free")
        return self._data

    def free(self) -> None:
        """Release storage. Freeing twice is allowed."""
        self._data = None
        self._offset = 0

    @property
    def freed(self) -> bool:
        return self._data is None

    def getvalue(self) -> bytes:
        return bytes(self._buf())

    def remaining(self) -> int:
        return len(self._buf()) - self._offset

    def __len__(self) -> int:
        return len(self._buf())

    def _take(self, n: int) -> bytes:
        data = self._buf()
        end = self._offset + n
        if n < 0 or end > len(data):
            raise BufferUnderflow(
                "seq: read of " + str(n) + " bytes at offset " + str(self._offset)
                + " past end " + str(len(data))
            )
        chunk = bytes(data[self._offset : end])
        self._offset = end
        return chunk

    # --- writers ---

    def write_bool(self, v: bool) -> None:
        self._buf().extend(_BOOL.pack(1 if v else 0))

    def write_int32(self, v: int) -> None:
        if v < INT32_MIN or v > INT32_MAX:
            raise OverflowError("value out of range for int32: " + str(v))
        self._buf().extend(_INT32.pack(v))

    def write_int64(self, v: int) -> None:
        if v < INT64_MIN or v > INT64_MAX:
            raise OverflowError("value out of range for int64: " + str(v))
        self._buf().extend(_INT64.pack(v))

    def write_float64(self, v: float) -> None:
        self._buf().extend(_FLOAT64.pack(v))

    def write_string(self, v: str) -> None:
        raw = v.encode("utf-8")
        self.write_int32(len(raw))
        self._buf().extend(raw)

    def write_bytes(self, v: bytes) -> None:
        self.write_int32(len(v))
        self._buf().extend(v)

    def write_ref(self, handle: int) -> None:
        self.write_int32(handle)

    # --- readers ---

    def read_bool(self) -> bool:
        return _BOOL.unpack(self._take(1))[0] != 0

    def read_int32(self) -> int:
        return _INT32.unpack(self._take(4))[0]

    def read_int64(self) -> int:
        return _INT64.unpack(self._take(8))[0]

    def read_float64(self) -> float:
        return _FLOAT64.unpack(self._take(8))[0]

    def read_string(self) -> str:
        n = self.read_int32()
        return self._take(n).decode("utf-8")

    def read_bytes(self) -> bytes:
        n = self.read_int32()
        return self._take(n)

    def read_ref(self) -> int:
        return self.read_int32()

    # --- by wire type ---

    def write(self, wire: str, v: object) -> None:
        """Write v with the writer for its WireType."""
        _WRITERS[wire](self, v)

    def read(self, wire: str) -> object:
        """Read one value with the reader for its WireType."""
        return _READERS[wire](self)


_WRITERS = {
    "Bool": Buffer.write_bool,
    "Int32": Buffer.write_int32,
    "Int64": Buffer.write_int64,
    "Float64": Buffer.write_float64,
    "String": Buffer.write_string,
    "Bytes": Buffer.write_bytes,
    "ObjectRef": Buffer.write_ref,
}

_READERS = {
    "Bool": Buffer.read_bool,
    "Int32": Buffer.read_int32,
    "Int64": Buffer.read_int64,
    "Float64": Buffer.read_float64,
    "String": Buffer.read_string,
    "Bytes": Buffer.read_bytes,
    "ObjectRef": Buffer.read_ref,
}

ZERO_VALUES: dict[str, object] = {
    "Bool": False,
    "Int32": 0,
    "Int64": 0,
    "Float64": 0.0,
    "String": "",
    "Bytes": b"",
    "ObjectRef": 0,
}

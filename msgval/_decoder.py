"""Decoder: MessagePack bytes -> Value.

The Cursor owns the only mutable state (a read offset).  Every primitive
read checks the remaining length before touching the buffer, so
truncation at any depth surfaces as ERR_UNEXPECTED_DATA and never as an
IndexError or struct.error.
"""

from __future__ import annotations

import struct
from typing import Callable, Dict, List, Tuple, Union

from ._errors import (
    ERR_DATA_TOO_LARGE,
    ERR_INVALID_ENCODING,
    ERR_UNEXPECTED_DATA,
    ERR_UNSUPPORTED_VALUE,
    MsgPackError,
)
from ._tags import (
    CAT_ARRAY,
    CAT_BIN,
    CAT_BOOL,
    CAT_FLOAT32,
    CAT_FLOAT64,
    CAT_INT,
    CAT_MAP,
    CAT_NIL,
    CAT_STR,
    CAT_UINT,
    LEAD_TABLE,
    TagInfo,
)
from ._value import Bin, Bool, Float32, Float64, Int, Map, Nil, Seq, Str, UInt, Value

Buffer = Union[bytes, bytearray, memoryview]

_U16 = struct.Struct(">H")
_U32 = struct.Struct(">I")
_U64 = struct.Struct(">Q")
_SIGNED = {1: struct.Struct(">b"), 2: struct.Struct(">h"),
           4: struct.Struct(">i"), 8: struct.Struct(">q")}


def as_bytes(buf: Buffer) -> bytes:
    """Copy `buf` into immutable bytes, one element per byte.

    Only bytes, bytearray and memoryview are accepted.  A memoryview over
    wider items (an array of uint32, say) is flattened to its raw bytes.
    """
    if isinstance(buf, bytes):
        return buf
    if not isinstance(buf, (bytearray, memoryview)):
        raise MsgPackError(ERR_UNSUPPORTED_VALUE,
                           "cannot decode from {}, need a bytes-like buffer".format(type(buf).__name__))
    try:
        return memoryview(buf).cast("B").tobytes()
    except TypeError as e:
        raise MsgPackError(ERR_UNSUPPORTED_VALUE, "unusable buffer: {}".format(e))


class Cursor:
    """Read position over an immutable buffer.

    Invariant: 0 <= pos <= len(buf).  A failed read leaves pos unchanged.
    """

    __slots__ = ("buf", "pos")

    def __init__(self, buf: Buffer, pos: int = 0) -> None:
        self.buf = as_bytes(buf)
        if pos < 0 or pos > len(self.buf):
            raise MsgPackError(ERR_UNEXPECTED_DATA,
                               "offset {} outside buffer of {} bytes".format(pos, len(self.buf)))
        self.pos = pos

    def remaining(self) -> int:
        return len(self.buf) - self.pos

    def _need(self, k: int) -> None:
        if self.pos + k > len(self.buf):
            raise MsgPackError(
                ERR_UNEXPECTED_DATA,
                "need {} byte(s) at offset {}, {} left".format(k, self.pos, self.remaining()),
            )

    def read_u8(self) -> int:
        self._need(1)
        b = self.buf[self.pos]
        self.pos += 1
        return b

    def read_u16(self) -> int:
        self._need(2)
        (v,) = _U16.unpack_from(self.buf, self.pos)
        self.pos += 2
        return v

    def read_u32(self) -> int:
        self._need(4)
        (v,) = _U32.unpack_from(self.buf, self.pos)
        self.pos += 4
        return v

    def read_u64(self) -> int:
        self._need(8)
        (v,) = _U64.unpack_from(self.buf, self.pos)
        self.pos += 8
        return v

    def read_uint(self, size: int) -> int:
        """Unsigned big-endian read of 1, 2, 4 or 8 bytes."""
        if size == 1:
            return self.read_u8()
        if size == 2:
            return self.read_u16()
        if size == 4:
            return self.read_u32()
        return self.read_u64()

    def read_int(self, size: int) -> int:
        """Two's-complement big-endian read of 1, 2, 4 or 8 bytes."""
        self._need(size)
        (v,) = _SIGNED[size].unpack_from(self.buf, self.pos)
        self.pos += size
        return v

    def read_bytes(self, n: int) -> bytes:
        self._need(n)
        raw = self.buf[self.pos:self.pos + n]
        self.pos += n
        return raw


# ── Per-category parse rules ─────────────────────────────────

def _read_length(cur: Cursor, info: TagInfo) -> int:
    if info.inline is not None:
        return info.inline
    return cur.read_uint(info.size)


def _parse_nil(cur: Cursor, info: TagInfo) -> Value:
    return Nil()


def _parse_bool(cur: Cursor, info: TagInfo) -> Value:
    return Bool(info.inline == 1)


def _parse_uint(cur: Cursor, info: TagInfo) -> Value:
    if info.inline is not None:
        return UInt(info.inline, 8)
    return UInt(cur.read_uint(info.size), info.size * 8)


def _parse_int(cur: Cursor, info: TagInfo) -> Value:
    if info.inline is not None:
        return Int(info.inline, 8)
    return Int(cur.read_int(info.size), info.size * 8)


def _parse_float32(cur: Cursor, info: TagInfo) -> Value:
    return Float32.from_bits(cur.read_u32())


def _parse_float64(cur: Cursor, info: TagInfo) -> Value:
    return Float64.from_bits(cur.read_u64())


def _parse_str(cur: Cursor, info: TagInfo) -> Value:
    n = _read_length(cur, info)
    raw = cur.read_bytes(n)
    try:
        return Str(raw.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise MsgPackError(ERR_INVALID_ENCODING,
                           "invalid UTF-8 in string at byte {}".format(e.start))


def _parse_bin(cur: Cursor, info: TagInfo) -> Value:
    n = _read_length(cur, info)
    return Bin(cur.read_bytes(n))


def _parse_array(cur: Cursor, info: TagInfo) -> Value:
    count = _read_length(cur, info)
    # Every element takes at least one byte.
    if count > cur.remaining():
        raise MsgPackError(ERR_UNEXPECTED_DATA,
                           "array declares {} items, only {} bytes left".format(count, cur.remaining()))
    items: List[Value] = []
    for _ in range(count):
        items.append(decode_value(cur))
    return Seq(tuple(items))


def _parse_map(cur: Cursor, info: TagInfo) -> Value:
    count = _read_length(cur, info)
    if count * 2 > cur.remaining():
        raise MsgPackError(ERR_UNEXPECTED_DATA,
                           "map declares {} entries, only {} bytes left".format(count, cur.remaining()))
    pairs: List[Tuple[Value, Value]] = []
    for _ in range(count):
        k = decode_value(cur)
        v = decode_value(cur)
        pairs.append((k, v))
    return Map(tuple(pairs))


_PARSERS: Dict[str, Callable[[Cursor, TagInfo], Value]] = {
    CAT_NIL: _parse_nil,
    CAT_BOOL: _parse_bool,
    CAT_UINT: _parse_uint,
    CAT_INT: _parse_int,
    CAT_FLOAT32: _parse_float32,
    CAT_FLOAT64: _parse_float64,
    CAT_STR: _parse_str,
    CAT_BIN: _parse_bin,
    CAT_ARRAY: _parse_array,
    CAT_MAP: _parse_map,
}


def decode_value(cur: Cursor) -> Value:
    """Decode exactly one value at the cursor and advance past it."""
    start = cur.pos
    lead = cur.read_u8()
    info = LEAD_TABLE[lead]
    if info is None:
        raise MsgPackError(ERR_UNSUPPORTED_VALUE,
                           "unsupported type tag 0x{:02x} at offset {}".format(lead, start))
    return _PARSERS[info.category](cur, info)


def decode(buf: Buffer, offset: int = 0) -> Tuple[Value, int]:
    """Decode one value starting at `offset`; return (value, end offset)."""
    cur = Cursor(buf, offset)
    try:
        val = decode_value(cur)
    except RecursionError:
        raise MsgPackError(ERR_DATA_TOO_LARGE, "value nesting too deep to decode")
    return val, cur.pos

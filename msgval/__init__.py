"""msgval — a MessagePack codec over an explicit value model.

Encode and decode nil, booleans, integers, floats, text, binary,
arrays and maps using the narrowest header the format allows.

Quick start:
    >>> from msgval import pack, unpack, UInt, Str, Seq
    >>> pack(Seq([UInt(1), Str("a")])).hex()
    '9201a161'
    >>> unpack(bytes.fromhex("9201a161"))
    Seq(items=(UInt(value=1, width=8), Str(value='a')))

Plain Python objects go through packb/unpackb:
    >>> packb({"n": 200}).hex()
    '81a16eccc8'
    >>> unpackb(bytes.fromhex("81a16eccc8"))
    {'n': 200}

Integers compare by magnitude, so UInt(1, 8) == UInt(1) == Int(1).
"""

from __future__ import annotations

import logging
from typing import Any, List, Tuple

from ._decoder import Buffer, Cursor, as_bytes, decode, decode_value
from ._encoder import encode, encode_value
from ._errors import (
    ERR_DATA_TOO_LARGE,
    ERR_INVALID_ENCODING,
    ERR_UNEXPECTED_DATA,
    ERR_UNSUPPORTED_VALUE,
    MsgPackError,
    Result,
)
from ._native import from_native, to_native
from ._value import (
    Bin,
    Bool,
    Float32,
    Float64,
    Int,
    Map,
    Nil,
    Seq,
    Str,
    UInt,
    Value,
)

__version__ = "1.0.0"

__all__ = [
    # Core API
    "pack",
    "pack_many",
    "unpack",
    "unpack_from",
    "unpack_all",
    # Native objects
    "packb",
    "unpackb",
    "from_native",
    "to_native",
    # Non-raising API
    "pack_result",
    "unpack_result",
    "Result",
    # Value model
    "Value",
    "Nil",
    "Bool",
    "UInt",
    "Int",
    "Float32",
    "Float64",
    "Str",
    "Bin",
    "Seq",
    "Map",
    # Exception
    "MsgPackError",
    # Error codes
    "ERR_INVALID_ENCODING",
    "ERR_UNEXPECTED_DATA",
    "ERR_DATA_TOO_LARGE",
    "ERR_UNSUPPORTED_VALUE",
]

log = logging.getLogger(__name__)


# ── Core API ──────────────────────────────────────────────────

def pack(value: Value) -> bytes:
    """Encode one Value."""
    return encode(value)


def pack_many(*values: Value) -> bytes:
    """Encode several Values back to back into one buffer.

    All or nothing: if any value fails, nothing is returned.
    """
    out = bytearray()
    try:
        for value in values:
            encode_value(value, out)
    except RecursionError:
        raise MsgPackError(ERR_DATA_TOO_LARGE, "value nesting too deep to encode")
    return bytes(out)


def unpack(data: Buffer, *, strict: bool = False) -> Value:
    """Decode the value at the start of `data`.

    Bytes after the first complete value are left unread and ignored.
    With strict=True they are an ERR_UNEXPECTED_DATA error instead; use
    unpack_from() to learn where the value ended.
    """
    buf = as_bytes(data)
    value, end = decode(buf)
    if strict and end != len(buf):
        raise MsgPackError(ERR_UNEXPECTED_DATA,
                           "{} trailing byte(s) after value".format(len(buf) - end))
    return value


def unpack_from(data: Buffer, offset: int = 0) -> Tuple[Value, int]:
    """Decode one value at `offset`; return (value, offset just past it)."""
    return decode(data, offset)


def unpack_all(data: Buffer) -> List[Value]:
    """Decode consecutive values until `data` is exhausted.

    The inverse of pack_many().  A truncated final value fails the whole
    call.
    """
    cur = Cursor(data)
    values: List[Value] = []
    try:
        while cur.remaining():
            values.append(decode_value(cur))
    except RecursionError:
        raise MsgPackError(ERR_DATA_TOO_LARGE, "value nesting too deep to decode")
    return values


# ── Native objects ────────────────────────────────────────────

def packb(obj: Any) -> bytes:
    """Encode a plain Python object (see from_native for the mapping)."""
    return pack(from_native(obj))


def unpackb(data: Buffer, *, strict: bool = False) -> Any:
    """Decode to plain Python objects (see to_native for the mapping)."""
    return to_native(unpack(data, strict=strict))


# ── Non-raising API ───────────────────────────────────────────
# Truncated buffers and bad text are routine for a decoder facing the
# network.  These wrappers hand the error back as data.

def pack_result(value: Value) -> Result:
    try:
        return Result(value=pack(value))
    except MsgPackError as e:
        log.debug("pack failed: [%s] %s", e.code, e)
        return Result(error=e)


def unpack_result(data: Buffer, *, strict: bool = False) -> Result:
    try:
        return Result(value=unpack(data, strict=strict))
    except MsgPackError as e:
        log.debug("unpack failed: [%s] %s", e.code, e)
        return Result(error=e)

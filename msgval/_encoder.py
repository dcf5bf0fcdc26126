"""Encoder: Value -> MessagePack bytes.

Each variant has one writer.  Writers append to a shared bytearray
rather than returning fragments, so a deep tree is serialized without
intermediate joins.  Dispatch is keyed on the exact variant class:
anything outside the closed value set is rejected up front instead of
being coerced.
"""

from __future__ import annotations

import struct
from typing import Any, Callable, Dict

from ._constants import FALSE, FLOAT32, FLOAT64, NIL, TRUE
from ._errors import (
    ERR_DATA_TOO_LARGE,
    ERR_INVALID_ENCODING,
    ERR_UNSUPPORTED_VALUE,
    MsgPackError,
)
from ._tags import array_header, bin_header, int_bytes, map_header, str_header
from ._value import Bin, Bool, Float32, Float64, Int, Map, Nil, Seq, Str, UInt, Value


def _write_nil(val: Nil, out: bytearray) -> None:
    out.append(NIL)


def _write_bool(val: Bool, out: bytearray) -> None:
    out.append(TRUE if val.value else FALSE)


def _write_int(val: Any, out: bytearray) -> None:
    # UInt and Int share one boundary table; the width only describes
    # the source type and never widens the wire form.
    out += int_bytes(val.value)


def _write_float32(val: Float32, out: bytearray) -> None:
    out.append(FLOAT32)
    out += struct.pack(">I", val.bits)


def _write_float64(val: Float64, out: bytearray) -> None:
    out.append(FLOAT64)
    out += struct.pack(">d", val.value)


def _write_str(val: Str, out: bytearray) -> None:
    try:
        raw = val.value.encode("utf-8")
    except UnicodeEncodeError as e:
        # Lone surrogates are the only str content UTF-8 cannot carry.
        raise MsgPackError(ERR_INVALID_ENCODING,
                           "string is not encodable as UTF-8: {}".format(e.reason))
    out += str_header(len(raw))
    out += raw


def _write_bin(val: Bin, out: bytearray) -> None:
    out += bin_header(len(val.value))
    out += val.value


def _write_seq(val: Seq, out: bytearray) -> None:
    out += array_header(len(val.items))
    for item in val.items:
        encode_value(item, out)


def _write_map(val: Map, out: bytearray) -> None:
    out += map_header(len(val.pairs))
    for k, v in val.pairs:
        encode_value(k, out)
        encode_value(v, out)


_WRITERS: Dict[type, Callable[[Any, bytearray], None]] = {
    Nil: _write_nil,
    Bool: _write_bool,
    UInt: _write_int,
    Int: _write_int,
    Float32: _write_float32,
    Float64: _write_float64,
    Str: _write_str,
    Bin: _write_bin,
    Seq: _write_seq,
    Map: _write_map,
}


def encode_value(val: Value, out: bytearray) -> None:
    """Append the encoding of `val` to `out`.

    On failure `out` may hold a partial encoding; the public pack()
    discards it.
    """
    writer = _WRITERS.get(type(val))
    if writer is None:
        raise MsgPackError(ERR_UNSUPPORTED_VALUE,
                           "not a msgval Value: {}".format(type(val).__name__))
    writer(val, out)


def encode(val: Value) -> bytes:
    """Encode one value into a fresh bytes object."""
    out = bytearray()
    try:
        encode_value(val, out)
    except RecursionError:
        raise MsgPackError(ERR_DATA_TOO_LARGE, "value nesting too deep to encode")
    return bytes(out)

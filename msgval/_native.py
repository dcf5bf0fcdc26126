"""Adapter between plain Python objects and the value model.

Type mapping (Python -> Value):
    None                          -> Nil
    bool                          -> Bool
    int >= 0                      -> UInt (width 64)
    int < 0                       -> Int  (width 64)
    float                         -> Float64
    str                           -> Str
    bytes / bytearray / memoryview -> Bin
    list / tuple                  -> Seq
    dict                          -> Map  (insertion order)
    Value                         -> itself

The reverse direction maps Seq to list and Map to dict.  This is the only
module that looks at host types; the encoder itself only ever sees Values.
"""

from __future__ import annotations

from typing import Any, Dict, List

from ._constants import INT64_MIN, UINT64_MAX
from ._errors import ERR_UNSUPPORTED_VALUE, MsgPackError
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


def from_native(obj: Any) -> Value:
    """Build a Value tree from native Python objects."""
    if isinstance(obj, Value):
        return obj
    if obj is None:
        return Nil()

    # bool before int (bool subclasses int)
    if isinstance(obj, bool):
        return Bool(obj)

    if isinstance(obj, int):
        if obj < INT64_MIN or obj > UINT64_MAX:
            raise MsgPackError(ERR_UNSUPPORTED_VALUE,
                               "integer {} outside the int64/uint64 range".format(obj))
        return UInt(obj) if obj >= 0 else Int(obj)

    if isinstance(obj, float):
        return Float64(obj)

    if isinstance(obj, str):
        return Str(obj)

    if isinstance(obj, (bytes, bytearray, memoryview)):
        return Bin(bytes(obj))

    if isinstance(obj, (list, tuple)):
        return Seq(tuple(from_native(item) for item in obj))

    if isinstance(obj, dict):
        return Map(tuple((from_native(k), from_native(v)) for k, v in obj.items()))

    raise MsgPackError(ERR_UNSUPPORTED_VALUE,
                       "unsupported type: {}".format(type(obj).__name__))


def to_native(val: Value) -> Any:
    """Convert a Value tree to plain Python objects.

    Map keys must come out hashable: a key that converts to a list or a
    dict raises ERR_UNSUPPORTED_VALUE.  Duplicate keys collapse, the last
    pair winning.
    """
    if isinstance(val, Nil):
        return None
    if isinstance(val, (Bool, UInt, Int, Float32, Float64, Str, Bin)):
        return val.value
    if isinstance(val, Seq):
        out: List[Any] = [to_native(item) for item in val.items]
        return out
    if isinstance(val, Map):
        d: Dict[Any, Any] = {}
        for k, v in val.pairs:
            key = to_native(k)
            try:
                hash(key)
            except TypeError:
                raise MsgPackError(ERR_UNSUPPORTED_VALUE,
                                   "map key of type {} is not hashable".format(type(key).__name__))
            d[key] = to_native(v)
        return d
    raise MsgPackError(ERR_UNSUPPORTED_VALUE,
                       "not a msgval Value: {}".format(type(val).__name__))

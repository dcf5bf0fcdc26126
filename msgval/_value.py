"""The value model: a closed set of immutable variants.

    Nil                      nil
    Bool(value)              false / true
    UInt(value, width)       unsigned integer from a `width`-bit source type
    Int(value, width)        signed integer from a `width`-bit source type
    Float32(value)           single precision, bit-exact
    Float64(value)           double precision, bit-exact
    Str(value)               text, UTF-8 on the wire
    Bin(value)               raw bytes
    Seq(items)               ordered values
    Map(pairs)               ordered (key, value) pairs

Containers freeze their children into tuples, so a value tree is
immutable and hashable once built.  Equality follows the round-trip
rules: integers compare by magnitude (width is only a record of the
source type), floats compare by bit pattern, and everything else
compares structurally.
"""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Optional, Tuple

from ._constants import INT_WIDTHS
from ._errors import ERR_UNSUPPORTED_VALUE, MsgPackError


def _check_width(width: Any) -> None:
    if width not in INT_WIDTHS:
        raise MsgPackError(ERR_UNSUPPORTED_VALUE,
                           "integer width must be one of {}, got {!r}".format(INT_WIDTHS, width))


def _check_number(value: Any, kind: str) -> None:
    # bool before int: isinstance(True, int) is True.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MsgPackError(ERR_UNSUPPORTED_VALUE,
                           "{} needs a number, got {}".format(kind, type(value).__name__))


class Value:
    """Base class of every variant.  Not instantiated directly."""

    __slots__ = ()


@dataclass(frozen=True)
class Nil(Value):
    pass


@dataclass(frozen=True)
class Bool(Value):
    value: bool

    def __post_init__(self) -> None:
        if not isinstance(self.value, bool):
            raise MsgPackError(ERR_UNSUPPORTED_VALUE,
                               "Bool needs a bool, got {}".format(type(self.value).__name__))


# ── Integers ─────────────────────────────────────────────────

class _Integer(Value):
    """Shared equality for UInt and Int: exact magnitude, width ignored."""

    __slots__ = ()
    value: int

    def __eq__(self, other: object) -> bool:
        if isinstance(other, _Integer):
            return self.value == other.value
        if isinstance(other, Value):
            return False
        return NotImplemented

    def __hash__(self) -> int:
        return hash(("int", self.value))


@dataclass(frozen=True, eq=False)
class UInt(_Integer):
    value: int
    width: int = 64

    def __post_init__(self) -> None:
        _check_width(self.width)
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise MsgPackError(ERR_UNSUPPORTED_VALUE,
                               "UInt needs an int, got {}".format(type(self.value).__name__))
        if self.value < 0 or self.value >= 1 << self.width:
            raise MsgPackError(ERR_UNSUPPORTED_VALUE,
                               "{} outside uint{} range".format(self.value, self.width))


@dataclass(frozen=True, eq=False)
class Int(_Integer):
    value: int
    width: int = 64

    def __post_init__(self) -> None:
        _check_width(self.width)
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise MsgPackError(ERR_UNSUPPORTED_VALUE,
                               "Int needs an int, got {}".format(type(self.value).__name__))
        bound = 1 << (self.width - 1)
        if self.value < -bound or self.value >= bound:
            raise MsgPackError(ERR_UNSUPPORTED_VALUE,
                               "{} outside int{} range".format(self.value, self.width))


# ── Floats ───────────────────────────────────────────────────
# Compared by IEEE-754 bit pattern, so NaN equals itself and
# 0.0 differs from -0.0.  That is what "round trip" means for floats.

@dataclass(frozen=True, eq=False)
class Float32(Value):
    """Single-precision float, held as its 32-bit pattern.

    `value` is the nearest double and is what callers read.  `bits` is
    what goes on the wire, so NaN payloads (signalling ones included)
    survive a decode/encode cycle even though a double cannot carry them.
    """

    value: float
    bits: int = field(init=False, repr=False)

    def __post_init__(self) -> None:
        _check_number(self.value, "Float32")
        try:
            packed = struct.pack(">f", self.value)
        except OverflowError:
            raise MsgPackError(ERR_UNSUPPORTED_VALUE,
                               "{!r} does not fit in float32".format(self.value))
        # Store the value as it will actually travel.
        object.__setattr__(self, "value", struct.unpack(">f", packed)[0])
        object.__setattr__(self, "bits", struct.unpack(">I", packed)[0])

    @classmethod
    def from_bits(cls, bits: int) -> "Float32":
        if isinstance(bits, bool) or not isinstance(bits, int) or not 0 <= bits <= 0xFFFFFFFF:
            raise MsgPackError(ERR_UNSUPPORTED_VALUE,
                               "float32 bit pattern must be a 32-bit unsigned int, got {!r}".format(bits))
        f = cls(struct.unpack(">f", struct.pack(">I", bits))[0])
        object.__setattr__(f, "bits", bits)
        return f

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Float32):
            return self.bits == other.bits
        if isinstance(other, Value):
            return False
        return NotImplemented

    def __hash__(self) -> int:
        return hash(("f32", self.bits))


@dataclass(frozen=True, eq=False)
class Float64(Value):
    value: float

    def __post_init__(self) -> None:
        _check_number(self.value, "Float64")
        try:
            value = float(self.value)
        except OverflowError:
            raise MsgPackError(ERR_UNSUPPORTED_VALUE,
                               "{!r} does not fit in float64".format(self.value))
        object.__setattr__(self, "value", value)

    @classmethod
    def from_bits(cls, bits: int) -> "Float64":
        return cls(struct.unpack(">d", struct.pack(">Q", bits))[0])

    @property
    def bits(self) -> int:
        return struct.unpack(">Q", struct.pack(">d", self.value))[0]

    def is_nan(self) -> bool:
        return math.isnan(self.value)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Float64):
            return self.bits == other.bits
        if isinstance(other, Value):
            return False
        return NotImplemented

    def __hash__(self) -> int:
        return hash(("f64", self.bits))


# ── Text and binary ──────────────────────────────────────────

@dataclass(frozen=True)
class Str(Value):
    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            raise MsgPackError(ERR_UNSUPPORTED_VALUE,
                               "Str needs a str, got {}".format(type(self.value).__name__))


@dataclass(frozen=True)
class Bin(Value):
    value: bytes

    def __post_init__(self) -> None:
        if isinstance(self.value, (bytearray, memoryview)):
            object.__setattr__(self, "value", bytes(self.value))
        elif not isinstance(self.value, bytes):
            raise MsgPackError(ERR_UNSUPPORTED_VALUE,
                               "Bin needs bytes, got {}".format(type(self.value).__name__))


# ── Containers ───────────────────────────────────────────────

@dataclass(frozen=True)
class Seq(Value):
    items: Tuple[Value, ...] = ()

    def __post_init__(self) -> None:
        try:
            items = tuple(self.items)
        except TypeError:
            raise MsgPackError(ERR_UNSUPPORTED_VALUE, "Seq needs an iterable of Values")
        for item in items:
            if not isinstance(item, Value):
                raise MsgPackError(ERR_UNSUPPORTED_VALUE,
                                   "Seq item is not a Value: {}".format(type(item).__name__))
        object.__setattr__(self, "items", items)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Value]:
        return iter(self.items)

    def __getitem__(self, idx: int) -> Value:
        return self.items[idx]


@dataclass(frozen=True)
class Map(Value):
    """Ordered key/value pairs.

    Keys are not required to be unique: a decoded map keeps every pair
    it read, in wire order.  Use `get` for first-match lookup.
    """

    pairs: Tuple[Tuple[Value, Value], ...] = ()

    def __post_init__(self) -> None:
        pairs = []
        for pair in self.pairs:
            try:
                k, v = pair
            except (TypeError, ValueError):
                raise MsgPackError(ERR_UNSUPPORTED_VALUE, "Map entries must be (key, value) pairs")
            if not isinstance(k, Value) or not isinstance(v, Value):
                raise MsgPackError(ERR_UNSUPPORTED_VALUE, "Map pair must hold two Values")
            pairs.append((k, v))
        object.__setattr__(self, "pairs", tuple(pairs))

    @classmethod
    def from_items(cls, items: Iterable[Tuple[Value, Value]]) -> "Map":
        return cls(tuple(items))

    def __len__(self) -> int:
        return len(self.pairs)

    def __iter__(self) -> Iterator[Tuple[Value, Value]]:
        return iter(self.pairs)

    def keys(self) -> Tuple[Value, ...]:
        return tuple(k for k, _ in self.pairs)

    def get(self, key: Value, default: Optional[Value] = None) -> Optional[Value]:
        for k, v in self.pairs:
            if k == key:
                return v
        return default


VARIANTS = (Nil, Bool, UInt, Int, Float32, Float64, Str, Bin, Seq, Map)

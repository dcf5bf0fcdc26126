"""Type-tag resolution.

Encode side: given a magnitude or a length, choose the narrowest tag the
format allows and build the header bytes.

Decode side: a 256-entry table that classifies every leading byte into
a category plus either an inline value (fixed forms) or the width of
the field that follows.  Built once at import; lookups are O(1).

Boundary rule for integers, applied to every value regardless of the
source type it came from: the smallest tag whose numeric range contains
the value.  Non-negative values always use the unsigned family and
negative values the signed family.
"""

from __future__ import annotations

import struct
from typing import List, NamedTuple, Optional, Sequence, Tuple

from ._constants import (
    ARRAY16,
    ARRAY32,
    BIN8,
    BIN16,
    BIN32,
    FALSE,
    FIXARRAY,
    FIXARRAY_MAX,
    FIXMAP,
    FIXMAP_MAX,
    FIXSTR,
    FIXSTR_MAX,
    FLOAT32,
    FLOAT64,
    INT8,
    INT8_MIN,
    INT16,
    INT16_MIN,
    INT32,
    INT32_MIN,
    INT64,
    INT64_MIN,
    MAP16,
    MAP32,
    MAX_LENGTH,
    NEGATIVE_FIXINT,
    NEGATIVE_FIXINT_MIN,
    NIL,
    POSITIVE_FIXINT_MAX,
    STR8,
    STR16,
    STR32,
    TRUE,
    UINT8,
    UINT8_MAX,
    UINT16,
    UINT16_MAX,
    UINT32,
    UINT32_MAX,
    UINT64,
    UINT64_MAX,
)
from ._errors import ERR_DATA_TOO_LARGE, ERR_UNSUPPORTED_VALUE, MsgPackError

# ── Categories ───────────────────────────────────────────────

CAT_NIL: str = "nil"
CAT_BOOL: str = "bool"
CAT_UINT: str = "uint"
CAT_INT: str = "int"
CAT_FLOAT32: str = "float32"
CAT_FLOAT64: str = "float64"
CAT_STR: str = "str"
CAT_BIN: str = "bin"
CAT_ARRAY: str = "array"
CAT_MAP: str = "map"

# Big-endian struct formats by field width in bytes.
UNSIGNED_FMT = {1: ">B", 2: ">H", 4: ">I", 8: ">Q"}
SIGNED_FMT = {1: ">b", 2: ">h", 4: ">i", 8: ">q"}


# ── Integers ─────────────────────────────────────────────────
# (inclusive bound, tag, payload width in bytes), narrowest first.

_UNSIGNED_CLASSES: Sequence[Tuple[int, int, int]] = (
    (UINT8_MAX, UINT8, 1),
    (UINT16_MAX, UINT16, 2),
    (UINT32_MAX, UINT32, 4),
    (UINT64_MAX, UINT64, 8),
)

_SIGNED_CLASSES: Sequence[Tuple[int, int, int]] = (
    (INT8_MIN, INT8, 1),
    (INT16_MIN, INT16, 2),
    (INT32_MIN, INT32, 4),
    (INT64_MIN, INT64, 8),
)


def int_tag(n: int) -> Tuple[int, int]:
    """Return (tag byte, payload width) for integer `n`.

    Payload width 0 means a fixint: the tag byte is the whole encoding.
    """
    if n >= 0:
        if n <= POSITIVE_FIXINT_MAX:
            return n, 0
        for bound, tag, size in _UNSIGNED_CLASSES:
            if n <= bound:
                return tag, size
    else:
        if n >= NEGATIVE_FIXINT_MIN:
            return n & 0xFF, 0
        for bound, tag, size in _SIGNED_CLASSES:
            if n >= bound:
                return tag, size
    raise MsgPackError(ERR_UNSUPPORTED_VALUE,
                       "integer {} outside the int64/uint64 range".format(n))


def int_bytes(n: int) -> bytes:
    """Tag plus big-endian payload for integer `n`."""
    tag, size = int_tag(n)
    if size == 0:
        return bytes([tag])
    fmt = UNSIGNED_FMT[size] if n >= 0 else SIGNED_FMT[size]
    return bytes([tag]) + struct.pack(fmt, n)


# ── Length-prefixed families ─────────────────────────────────

def _sized_header(kind: str, n: int, fixed_base: Optional[int], fixed_max: int,
                  classes: Sequence[Tuple[int, int, int]]) -> bytes:
    if n < 0:
        raise MsgPackError(ERR_UNSUPPORTED_VALUE, "negative {} length".format(kind))
    if n > MAX_LENGTH:
        raise MsgPackError(ERR_DATA_TOO_LARGE,
                           "{} length {} exceeds {}".format(kind, n, MAX_LENGTH))
    if fixed_base is not None and n <= fixed_max:
        return bytes([fixed_base | n])
    for bound, tag, size in classes:
        if n <= bound:
            return bytes([tag]) + struct.pack(UNSIGNED_FMT[size], n)
    # MAX_LENGTH check above makes this unreachable.
    raise MsgPackError(ERR_DATA_TOO_LARGE, "{} length {}".format(kind, n))


_STR_CLASSES = ((UINT8_MAX, STR8, 1), (UINT16_MAX, STR16, 2), (UINT32_MAX, STR32, 4))
_BIN_CLASSES = ((UINT8_MAX, BIN8, 1), (UINT16_MAX, BIN16, 2), (UINT32_MAX, BIN32, 4))
_ARRAY_CLASSES = ((UINT16_MAX, ARRAY16, 2), (UINT32_MAX, ARRAY32, 4))
_MAP_CLASSES = ((UINT16_MAX, MAP16, 2), (UINT32_MAX, MAP32, 4))


def str_header(n: int) -> bytes:
    """Header for a UTF-8 payload of `n` bytes: fixstr, str8, str16 or str32."""
    return _sized_header("str", n, FIXSTR, FIXSTR_MAX, _STR_CLASSES)


def bin_header(n: int) -> bytes:
    """Header for `n` raw bytes.  There is no fixbin, so bin8 is the floor."""
    return _sized_header("bin", n, None, 0, _BIN_CLASSES)


def array_header(n: int) -> bytes:
    return _sized_header("array", n, FIXARRAY, FIXARRAY_MAX, _ARRAY_CLASSES)


def map_header(n: int) -> bytes:
    return _sized_header("map", n, FIXMAP, FIXMAP_MAX, _MAP_CLASSES)


# ── Leading-byte classification ──────────────────────────────

class TagInfo(NamedTuple):
    """What a leading byte means.

    inline: value or count carried inside the tag itself (fixed forms,
            nil and bool), else None.
    size:   width in bytes of the length field (str/bin/array/map) or of
            the scalar payload (ints, floats) that follows the tag.
    """

    category: str
    inline: Optional[int]
    size: int


def _build_lead_table() -> Tuple[Optional[TagInfo], ...]:
    table: List[Optional[TagInfo]] = [None] * 256

    for b in range(0x00, POSITIVE_FIXINT_MAX + 1):
        table[b] = TagInfo(CAT_UINT, b, 0)
    for b in range(FIXMAP, FIXMAP + FIXMAP_MAX + 1):
        table[b] = TagInfo(CAT_MAP, b & 0x0F, 0)
    for b in range(FIXARRAY, FIXARRAY + FIXARRAY_MAX + 1):
        table[b] = TagInfo(CAT_ARRAY, b & 0x0F, 0)
    for b in range(FIXSTR, FIXSTR + FIXSTR_MAX + 1):
        table[b] = TagInfo(CAT_STR, b & 0x1F, 0)
    for b in range(NEGATIVE_FIXINT, 0x100):
        table[b] = TagInfo(CAT_INT, b - 0x100, 0)

    table[NIL] = TagInfo(CAT_NIL, None, 0)
    table[FALSE] = TagInfo(CAT_BOOL, 0, 0)
    table[TRUE] = TagInfo(CAT_BOOL, 1, 0)

    table[FLOAT32] = TagInfo(CAT_FLOAT32, None, 4)
    table[FLOAT64] = TagInfo(CAT_FLOAT64, None, 8)

    for tag, size in ((UINT8, 1), (UINT16, 2), (UINT32, 4), (UINT64, 8)):
        table[tag] = TagInfo(CAT_UINT, None, size)
    for tag, size in ((INT8, 1), (INT16, 2), (INT32, 4), (INT64, 8)):
        table[tag] = TagInfo(CAT_INT, None, size)
    for tag, size in ((BIN8, 1), (BIN16, 2), (BIN32, 4)):
        table[tag] = TagInfo(CAT_BIN, None, size)
    for tag, size in ((STR8, 1), (STR16, 2), (STR32, 4)):
        table[tag] = TagInfo(CAT_STR, None, size)
    for tag, size in ((ARRAY16, 2), (ARRAY32, 4)):
        table[tag] = TagInfo(CAT_ARRAY, None, size)
    for tag, size in ((MAP16, 2), (MAP32, 4)):
        table[tag] = TagInfo(CAT_MAP, None, size)

    return tuple(table)


LEAD_TABLE = _build_lead_table()


def classify(lead: int) -> Optional[TagInfo]:
    """Classify a leading byte; None for reserved and extension tags."""
    return LEAD_TABLE[lead]

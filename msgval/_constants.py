"""MessagePack tag bytes, fixed-form ranges, and numeric bounds.

Reference: https://github.com/msgpack/msgpack/blob/master/spec.md
(format families).  Extension and timestamp tags are not supported and
are deliberately absent here.
"""

from __future__ import annotations

# ── Fixed forms (count/value packed into the tag byte) ───────
POSITIVE_FIXINT_MAX: int = 0x7F       # 0xxxxxxx
FIXMAP: int = 0x80                    # 1000xxxx
FIXARRAY: int = 0x90                  # 1001xxxx
FIXSTR: int = 0xA0                    # 101xxxxx
NEGATIVE_FIXINT: int = 0xE0           # 111xxxxx

FIXMAP_MAX: int = 15
FIXARRAY_MAX: int = 15
FIXSTR_MAX: int = 31
NEGATIVE_FIXINT_MIN: int = -32

# ── Single-byte tags ─────────────────────────────────────────
NIL: int = 0xC0
# 0xC1 is "never used" per the format.
FALSE: int = 0xC2
TRUE: int = 0xC3

BIN8: int = 0xC4
BIN16: int = 0xC5
BIN32: int = 0xC6

FLOAT32: int = 0xCA
FLOAT64: int = 0xCB

UINT8: int = 0xCC
UINT16: int = 0xCD
UINT32: int = 0xCE
UINT64: int = 0xCF

INT8: int = 0xD0
INT16: int = 0xD1
INT32: int = 0xD2
INT64: int = 0xD3

STR8: int = 0xD9
STR16: int = 0xDA
STR32: int = 0xDB

ARRAY16: int = 0xDC
ARRAY32: int = 0xDD

MAP16: int = 0xDE
MAP32: int = 0xDF

# ── Integer bounds ───────────────────────────────────────────
# Python ints are arbitrary-precision, so every bound is checked
# explicitly.  Widths are in bits.
INT_WIDTHS = (8, 16, 32, 64)

UINT8_MAX: int = 0xFF
UINT16_MAX: int = 0xFFFF
UINT32_MAX: int = 0xFFFFFFFF
UINT64_MAX: int = 0xFFFFFFFFFFFFFFFF

INT8_MIN: int = -(2**7)
INT16_MIN: int = -(2**15)
INT32_MIN: int = -(2**31)
INT64_MIN: int = -(2**63)
INT64_MAX: int = 2**63 - 1

# Largest length or count any header can carry (32-bit field).
MAX_LENGTH: int = UINT32_MAX

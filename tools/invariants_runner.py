#!/usr/bin/env python3
# tools/invariants_runner.py
#
# Codec invariants as property tests over random value trees.
#
# This runner:
# - generates random Values (every variant, boundary-heavy integers and lengths)
# - checks round trip, encode stability, minimality and truncation detection
#
# Exit code:
#   0 -> all checks passed
#   1 -> invariant violation

import os, sys, math, random
from typing import Any, List

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

from msgval import (
    ERR_UNEXPECTED_DATA, Bin, Bool, Float32, Float64, Int, Map, MsgPackError,
    Nil, Seq, Str, UInt, Value, pack, unpack,
)

SEED = int(os.environ.get("MSGVAL_SEED", "1337"))
TRIALS = int(os.environ.get("MSGVAL_TRIALS", "2000"))
MAX_GEN_DEPTH = int(os.environ.get("MSGVAL_GEN_MAX_DEPTH", "5"))
MAX_ITEMS = int(os.environ.get("MSGVAL_GEN_MAX_ITEMS", "20"))
MAX_STR = int(os.environ.get("MSGVAL_GEN_MAX_STR", "300"))

random.seed(SEED)

# Values right at and around each size-class boundary.
INT_EDGES = [0, 1, 127, 128, 255, 256, 65535, 65536, 2**32 - 1, 2**32, 2**64 - 1,
             -1, -32, -33, -128, -129, -32768, -32769, -(2**31), -(2**31) - 1, -(2**63)]
LEN_EDGES = [0, 1, 15, 16, 31, 32, 255, 256]

# (upper bound inclusive, encoded size) for non-negative / negative integers.
POS_SIZES = [(127, 1), (2**8 - 1, 2), (2**16 - 1, 3), (2**32 - 1, 5), (2**64 - 1, 9)]
NEG_SIZES = [(-32, 1), (-(2**7), 2), (-(2**15), 3), (-(2**31), 5), (-(2**63), 9)]


def minimal_int_size(n: int) -> int:
    if n >= 0:
        for bound, size in POS_SIZES:
            if n <= bound:
                return size
    for bound, size in NEG_SIZES:
        if n >= bound:
            return size
    raise ValueError(n)


def rand_int() -> Value:
    if random.random() < 0.5:
        n = random.choice(INT_EDGES)
    else:
        n = random.randint(-(2**63), 2**64 - 1) >> random.randint(0, 63)
    return UInt(n) if n >= 0 else Int(n)


def rand_len() -> int:
    return random.choice(LEN_EDGES) if random.random() < 0.5 else random.randint(0, MAX_STR)


def rand_str() -> str:
    out = []
    for _ in range(rand_len()):
        r = random.random()
        if r < 0.80:
            out.append(chr(random.randint(0x20, 0x7E)))
        elif r < 0.95:
            out.append(chr(random.randint(0x0100, 0xD7FF)))  # exclude surrogates
        else:
            out.append(chr(random.randint(0x10000, 0x10FFFF)))
    return "".join(out)


def rand_float() -> Value:
    x = random.choice([0.0, -0.0, math.inf, -math.inf, math.nan,
                       random.uniform(-1e6, 1e6), random.random()])
    return Float32(x) if random.random() < 0.3 else Float64(x)


def gen_value(depth: int) -> Value:
    r = random.random()
    if depth < MAX_GEN_DEPTH and r < 0.15:
        return Seq([gen_value(depth + 1) for _ in range(random.randint(0, MAX_ITEMS))])
    if depth < MAX_GEN_DEPTH and r < 0.30:
        return Map([(gen_value(depth + 1), gen_value(depth + 1))
                    for _ in range(random.randint(0, MAX_ITEMS))])
    if r < 0.55:
        return rand_int()
    if r < 0.65:
        return rand_float()
    if r < 0.80:
        return Str(rand_str())
    if r < 0.90:
        return Bin(bytes(random.getrandbits(8) for _ in range(rand_len())))
    return Bool(random.random() < 0.5) if random.random() < 0.5 else Nil()


def fail(msg: str, v: Any) -> int:
    print("INVARIANT FAIL:", msg)
    print("VALUE:", repr(v)[:2000])
    return 1


def main() -> int:
    for _ in range(TRIALS):
        v = gen_value(0)

        # (1) Encode stability
        b1 = pack(v)
        if pack(v) != b1:
            return fail("encode stability", v)

        # (2) Round trip, and the decoded tree re-encodes identically
        back = unpack(b1)
        if back != v:
            return fail("round trip", v)
        if pack(back) != b1:
            return fail("re-encode", v)

        # (3) Integer minimality
        if isinstance(v, (UInt, Int)) and len(b1) != minimal_int_size(v.value):
            return fail("integer minimality ({} bytes)".format(len(b1)), v)

        # (4) Every strict prefix is truncated input
        cuts: List[int] = sorted({0, len(b1) - 1} | {random.randrange(len(b1)) for _ in range(4)})
        for end in cuts:
            try:
                unpack(b1[:end])
            except MsgPackError as e:
                if e.code != ERR_UNEXPECTED_DATA:
                    return fail("prefix {} gave {}".format(end, e.code), v)
            else:
                return fail("prefix {} decoded".format(end), v)

    print(f"OK: invariants passed for TRIALS={TRIALS} seed={SEED}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

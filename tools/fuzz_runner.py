#!/usr/bin/env python3
# tools/fuzz_runner.py
#
# Decoder robustness fuzzing.
#
# Generates two fuzz categories:
#   A) uniformly random byte strings
#   B) valid encodings with bytes flipped, inserted or chopped
#
# The decoder must either return a Value or raise MsgPackError.  Any other
# exception (IndexError, struct.error, MemoryError...) prints a minimal
# repro and exits non-zero.

import os, sys, random, traceback

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

from msgval import MsgPackError, pack, packb, unpack, unpackb

SEED = int(os.environ.get("MSGVAL_SEED", "4242"))
ROUNDS = int(os.environ.get("MSGVAL_FUZZ_ROUNDS", "5000"))

random.seed(SEED)

SEEDS = [
    packb({"a": [1, 2, 3], "b": {"c": None, "d": b"\x00\x01"}}),
    packb([70000, -129, 1.5, "x" * 40, True, False]),
    packb({"k" * 20: list(range(20))}),
    packb("é" * 40),
]


def mutate(data: bytes) -> bytes:
    buf = bytearray(data)
    for _ in range(random.randint(1, 4)):
        op = random.random()
        if op < 0.5 and buf:
            buf[random.randrange(len(buf))] = random.getrandbits(8)
        elif op < 0.75:
            buf.insert(random.randint(0, len(buf)), random.getrandbits(8))
        elif buf:
            del buf[random.randrange(len(buf)):]
    return bytes(buf)


def check(data: bytes, label: str) -> None:
    try:
        val = unpack(data)
        pack(val)
        unpackb(data)
    except MsgPackError:
        pass
    except Exception:
        print("CRASH:", label)
        print("INPUT:", data.hex())
        traceback.print_exc()
        raise SystemExit(1)


def main() -> int:
    for i in range(ROUNDS):
        if i % 2 == 0:
            data = bytes(random.getrandbits(8) for _ in range(random.randint(0, 64)))
            check(data, "random")
        else:
            check(mutate(random.choice(SEEDS)), "mutated")

    print(f"OK: {ROUNDS} fuzz rounds, seed={SEED}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

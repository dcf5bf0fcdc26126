"""Unit tests for the msgval public API.

Organized by feature area.  Golden vectors live in test_conformance.py;
these tests exercise boundaries, headers and error paths that are
awkward to express as JSON vectors.
"""

from __future__ import annotations

import array
import dataclasses
import math
import os
import struct
import sys
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from msgval import (
    ERR_DATA_TOO_LARGE,
    ERR_INVALID_ENCODING,
    ERR_UNEXPECTED_DATA,
    ERR_UNSUPPORTED_VALUE,
    Bin,
    Bool,
    Float32,
    Float64,
    Int,
    Map,
    MsgPackError,
    Nil,
    Seq,
    Str,
    UInt,
    from_native,
    pack,
    pack_many,
    pack_result,
    packb,
    to_native,
    unpack,
    unpack_all,
    unpack_from,
    unpack_result,
    unpackb,
)


def _sample_message() -> bytes:
    """A nested message touching most header kinds."""
    return pack(Map([
        (Str("id"), UInt(70000)),
        (Str("neg"), Int(-200)),
        (Str("ratio"), Float64(0.25)),
        (Str("half"), Float32(0.5)),
        (Str("blob"), Bin(b"\x00\x01\x02")),
        (Str("tags"), Seq([Str("x" * 40), Bool(True), Nil()])),
        (Str("deep"), Map([(UInt(1), Seq([Seq([]), Map([])]))])),
    ]))


# ── Integer boundaries ────────────────────────────────────────

class TestIntegerEncoding(unittest.TestCase):
    def assertPacks(self, n, expected):
        self.assertEqual(packb(n), expected, "packb({})".format(n))

    def test_positive_fixint(self):
        self.assertPacks(0, b"\x00")
        self.assertPacks(1, b"\x01")
        self.assertPacks(127, b"\x7f")

    def test_uint8(self):
        self.assertPacks(128, b"\xcc\x80")
        self.assertPacks(200, b"\xcc\xc8")
        self.assertPacks(255, b"\xcc\xff")

    def test_uint16(self):
        self.assertPacks(256, b"\xcd\x01\x00")
        self.assertPacks(40000, b"\xcd\x9c\x40")
        self.assertPacks(65535, b"\xcd\xff\xff")

    def test_uint32(self):
        self.assertPacks(65536, b"\xce\x00\x01\x00\x00")
        self.assertPacks(70000, b"\xce\x00\x01\x11\x70")
        self.assertPacks(2**32 - 1, b"\xce\xff\xff\xff\xff")

    def test_uint64(self):
        self.assertPacks(2**32, b"\xcf\x00\x00\x00\x01\x00\x00\x00\x00")
        self.assertPacks(2**64 - 1, b"\xcf" + b"\xff" * 8)

    def test_negative_fixint(self):
        self.assertPacks(-1, b"\xff")
        self.assertPacks(-32, b"\xe0")

    def test_int8(self):
        self.assertPacks(-33, b"\xd0\xdf")
        self.assertPacks(-128, b"\xd0\x80")

    def test_int16(self):
        self.assertPacks(-129, b"\xd1\xff\x7f")
        self.assertPacks(-32768, b"\xd1\x80\x00")

    def test_int32(self):
        self.assertPacks(-32769, b"\xd2\xff\xff\x7f\xff")
        self.assertPacks(-(2**31), b"\xd2\x80\x00\x00\x00")

    def test_int64(self):
        self.assertPacks(-(2**31) - 1, b"\xd3\xff\xff\xff\xff\x7f\xff\xff\xff")
        self.assertPacks(-(2**63), b"\xd3\x80" + b"\x00" * 7)

    def test_signed_source_positive_uses_unsigned_tags(self):
        """Int(40000, 32) and UInt(40000) share one wire form."""
        self.assertEqual(pack(Int(40000, 32)), b"\xcd\x9c\x40")
        self.assertEqual(pack(Int(70000, 64)), pack(UInt(70000, 32)))
        self.assertEqual(pack(Int(2**40)), b"\xcf" + struct.pack(">Q", 2**40))

    def test_width_never_widens(self):
        self.assertEqual(pack(UInt(5, 64)), b"\x05")
        self.assertEqual(pack(Int(-5, 64)), b"\xfb")

    def test_minimal_length_sweep(self):
        """Each boundary pair moves to the next size class exactly once."""
        cases = [
            (127, 1), (128, 2), (255, 2), (256, 3), (65535, 3), (65536, 5),
            (2**32 - 1, 5), (2**32, 9),
            (-32, 1), (-33, 2), (-128, 2), (-129, 3), (-32768, 3), (-32769, 5),
            (-(2**31), 5), (-(2**31) - 1, 9),
        ]
        for n, size in cases:
            with self.subTest(n=n):
                self.assertEqual(len(packb(n)), size)

    def test_out_of_range(self):
        for n in (2**64, -(2**63) - 1):
            with self.subTest(n=n):
                with self.assertRaises(MsgPackError) as ctx:
                    packb(n)
                self.assertEqual(ctx.exception.code, ERR_UNSUPPORTED_VALUE)


class TestIntegerDecoding(unittest.TestCase):
    def test_widths_reflect_tag(self):
        cases = [
            (b"\x05", UInt, 8),
            (b"\xfb", Int, 8),
            (b"\xcc\x80", UInt, 8),
            (b"\xcd\x01\x00", UInt, 16),
            (b"\xce\x00\x01\x00\x00", UInt, 32),
            (b"\xcf" + b"\x00" * 7 + b"\x01", UInt, 64),
            (b"\xd0\xdf", Int, 8),
            (b"\xd1\xff\x7f", Int, 16),
            (b"\xd2\xff\xff\x7f\xff", Int, 32),
            (b"\xd3" + b"\xff" * 8, Int, 64),
        ]
        for raw, cls, width in cases:
            with self.subTest(raw=raw.hex()):
                val = unpack(raw)
                self.assertIs(type(val), cls)
                self.assertEqual(val.width, width)

    def test_signed_values(self):
        self.assertEqual(unpack(b"\xd0\xdf").value, -33)
        self.assertEqual(unpack(b"\xd1\xff\x7f").value, -129)
        self.assertEqual(unpack(b"\xd3" + b"\xff" * 8).value, -1)

    def test_non_minimal_input_accepted(self):
        self.assertEqual(unpack(b"\xcd\x00\x01"), UInt(1))
        self.assertEqual(unpack(b"\xd3" + b"\x00" * 7 + b"\x07"), UInt(7))

    def test_round_trip_extremes(self):
        for n in (0, 127, 128, 2**64 - 1, -1, -32, -33, -(2**63), 2**63 - 1):
            with self.subTest(n=n):
                self.assertEqual(unpackb(packb(n)), n)


# ── Floats ────────────────────────────────────────────────────

class TestFloats(unittest.TestCase):
    def test_float64_header(self):
        self.assertEqual(pack(Float64(1.5)), b"\xcb\x3f\xf8" + b"\x00" * 6)

    def test_float32_header(self):
        self.assertEqual(pack(Float32(1.5)), b"\xca\x3f\xc0\x00\x00")

    def test_no_downcast(self):
        """1.0 fits float32 exactly but a Float64 stays 9 bytes."""
        self.assertEqual(len(pack(Float64(1.0))), 9)

    def test_float32_rounds_on_construction(self):
        f = Float32(0.1)
        self.assertNotEqual(f.value, 0.1)
        self.assertEqual(unpack(pack(f)), f)

    def test_special_values_round_trip(self):
        for cls in (Float32, Float64):
            for x in (0.0, -0.0, math.inf, -math.inf, math.nan):
                with self.subTest(cls=cls.__name__, x=x):
                    v = cls(x)
                    self.assertEqual(unpack(pack(v)), v)

    def test_bitwise_equality(self):
        self.assertEqual(Float64(math.nan), Float64(math.nan))
        self.assertNotEqual(Float64(0.0), Float64(-0.0))
        self.assertNotEqual(Float32(1.0), Float64(1.0))

    def test_float32_signalling_nan_payload_survives(self):
        raw = b"\xca\x7f\x80\x00\x01"
        decoded = unpack(raw)
        self.assertEqual(decoded.bits, 0x7F800001)
        self.assertTrue(math.isnan(decoded.value))
        self.assertEqual(pack(decoded), raw)
        self.assertNotEqual(decoded, Float32(math.nan))

    def test_float32_from_bits_keeps_pattern(self):
        for bits in (0x7F800001, 0xFFBFFFFF, 0x00000001, 0x80000000):
            with self.subTest(bits=hex(bits)):
                self.assertEqual(Float32.from_bits(bits).bits, bits)

    def test_float32_from_bits_range(self):
        with self.assertRaises(MsgPackError) as ctx:
            Float32.from_bits(1 << 32)
        self.assertEqual(ctx.exception.code, ERR_UNSUPPORTED_VALUE)

    def test_float32_overflow(self):
        with self.assertRaises(MsgPackError) as ctx:
            Float32(1e39)
        self.assertEqual(ctx.exception.code, ERR_UNSUPPORTED_VALUE)

    def test_truncated_float(self):
        with self.assertRaises(MsgPackError) as ctx:
            unpack(b"\xca\x3f\xc0")
        self.assertEqual(ctx.exception.code, ERR_UNEXPECTED_DATA)


# ── Strings ───────────────────────────────────────────────────

class TestStrings(unittest.TestCase):
    def test_empty(self):
        self.assertEqual(pack(Str("")), b"\xa0")

    def test_fixstr_max(self):
        s = "a" * 31
        self.assertEqual(pack(Str(s)), b"\xbf" + s.encode())

    def test_str8_threshold(self):
        s = "a" * 32
        self.assertEqual(pack(Str(s)), b"\xd9\x20" + s.encode())

    def test_str8_max(self):
        self.assertEqual(pack(Str("a" * 255))[:2], b"\xd9\xff")

    def test_str16(self):
        self.assertEqual(pack(Str("a" * 256))[:3], b"\xda\x01\x00")
        self.assertEqual(pack(Str("a" * 65535))[:3], b"\xda\xff\xff")

    def test_str32(self):
        self.assertEqual(pack(Str("a" * 65536))[:5], b"\xdb\x00\x01\x00\x00")

    def test_length_counts_bytes_not_chars(self):
        """16 two-byte characters make a 32-byte payload: str8, not fixstr."""
        s = "é" * 16
        self.assertEqual(pack(Str(s))[:2], b"\xd9\x20")

    def test_unicode_round_trip(self):
        for s in ("héllo", "日本語", "\U0001F600", "\x00nul"):
            with self.subTest(s=s):
                self.assertEqual(unpack(pack(Str(s))), Str(s))

    def test_lone_surrogate_rejected(self):
        with self.assertRaises(MsgPackError) as ctx:
            pack(Str("a\ud800b"))
        self.assertEqual(ctx.exception.code, ERR_INVALID_ENCODING)

    def test_invalid_utf8_rejected(self):
        for raw in (b"\xa1\xff", b"\xa2\xc3\x28", b"\xd9\x01\x80"):
            with self.subTest(raw=raw.hex()):
                with self.assertRaises(MsgPackError) as ctx:
                    unpack(raw)
                self.assertEqual(ctx.exception.code, ERR_INVALID_ENCODING)


# ── Binary ────────────────────────────────────────────────────

class TestBinary(unittest.TestCase):
    def test_no_fixed_form(self):
        self.assertEqual(pack(Bin(b"")), b"\xc4\x00")
        self.assertEqual(pack(Bin(b"\x01")), b"\xc4\x01\x01")

    def test_bin8_max(self):
        self.assertEqual(pack(Bin(b"\x00" * 255))[:2], b"\xc4\xff")

    def test_bin16(self):
        self.assertEqual(pack(Bin(b"\x00" * 256))[:3], b"\xc5\x01\x00")

    def test_bin32(self):
        self.assertEqual(pack(Bin(b"\x00" * 65536))[:5], b"\xc6\x00\x01\x00\x00")

    def test_bytearray_is_frozen(self):
        buf = bytearray(b"abc")
        v = Bin(buf)
        buf[0] = 0
        self.assertEqual(v.value, b"abc")

    def test_round_trip(self):
        blob = bytes(range(256)) * 3
        self.assertEqual(unpack(pack(Bin(blob))), Bin(blob))


# ── Containers ────────────────────────────────────────────────

class TestContainers(unittest.TestCase):
    def test_empty_map(self):
        self.assertEqual(pack(Map([])), b"\x80")

    def test_empty_array(self):
        self.assertEqual(pack(Seq([])), b"\x90")

    def test_fixarray_max(self):
        self.assertEqual(pack(Seq([Nil()] * 15)), b"\x9f" + b"\xc0" * 15)

    def test_array16_threshold(self):
        self.assertEqual(pack(Seq([Nil()] * 16)), b"\xdc\x00\x10" + b"\xc0" * 16)

    def test_array32(self):
        packed = pack(Seq([Nil()] * 65536))
        self.assertEqual(packed[:5], b"\xdd\x00\x01\x00\x00")
        self.assertEqual(len(packed), 5 + 65536)

    def test_map16_threshold(self):
        m = Map([(UInt(i), Nil()) for i in range(16)])
        packed = pack(m)
        self.assertEqual(packed[:3], b"\xde\x00\x10")
        self.assertEqual(unpack(packed), m)

    def test_map_keeps_caller_order(self):
        m = Map([(Str("b"), UInt(1)), (Str("a"), UInt(2))])
        self.assertEqual(pack(m), b"\x82\xa1b\x01\xa1a\x02")

    def test_map_writes_key_then_value(self):
        self.assertEqual(pack(Map([(Nil(), Bool(False))])), b"\x81\xc0\xc2")

    def test_duplicate_keys_preserved_on_decode(self):
        m = unpack(b"\x82\xa1a\x01\xa1a\x02")
        self.assertEqual(len(m), 2)
        self.assertEqual(m.get(Str("a")), UInt(1))
        self.assertEqual(unpackb(b"\x82\xa1a\x01\xa1a\x02"), {"a": 2})

    def test_non_string_keys(self):
        m = Map([(UInt(1), Str("one")), (Seq([Nil()]), Bool(True))])
        self.assertEqual(unpack(pack(m)), m)

    def test_nested_round_trip(self):
        raw = _sample_message()
        self.assertEqual(pack(unpack(raw)), raw)

    def test_values_are_immutable(self):
        s = Seq([UInt(1)])
        with self.assertRaises(dataclasses.FrozenInstanceError):
            s.items = ()

    def test_values_are_hashable(self):
        d = {Seq([UInt(1)]): "a", Map([(Str("k"), Nil())]): "b"}
        self.assertEqual(d[Seq([Int(1)])], "a")


# ── Value model ───────────────────────────────────────────────

class TestValueModel(unittest.TestCase):
    def test_integer_equality_ignores_width(self):
        self.assertEqual(UInt(5, 8), Int(5, 64))
        self.assertEqual(hash(UInt(5, 8)), hash(Int(5)))

    def test_bool_is_not_integer(self):
        self.assertNotEqual(Bool(True), UInt(1))
        self.assertNotEqual(UInt(0), Bool(False))

    def test_width_range_checked(self):
        for args in ((256, 8), (-1, 8), (2**64, 64)):
            with self.subTest(args=args):
                with self.assertRaises(MsgPackError) as ctx:
                    UInt(*args)
                self.assertEqual(ctx.exception.code, ERR_UNSUPPORTED_VALUE)
        for args in ((128, 8), (-129, 8), (2**63, 64)):
            with self.subTest(args=args):
                with self.assertRaises(MsgPackError):
                    Int(*args)

    def test_bad_width(self):
        with self.assertRaises(MsgPackError):
            UInt(1, 12)

    def test_wrong_payload_types(self):
        for build in (lambda: Bool(1), lambda: UInt(True), lambda: Str(b"x"),
                      lambda: Bin("x"), lambda: Seq([1]), lambda: Map([(Str("a"), 1)]),
                      lambda: Float64("1.0")):
            with self.assertRaises(MsgPackError) as ctx:
                build()
            self.assertEqual(ctx.exception.code, ERR_UNSUPPORTED_VALUE)


# ── Decode errors ─────────────────────────────────────────────

class TestDecodeErrors(unittest.TestCase):
    def test_every_prefix_is_truncated(self):
        raw = _sample_message()
        for end in range(len(raw)):
            with self.subTest(end=end):
                with self.assertRaises(MsgPackError) as ctx:
                    unpack(raw[:end])
                self.assertEqual(ctx.exception.code, ERR_UNEXPECTED_DATA)

    def test_unknown_tags(self):
        for tag in [0xC1, 0xC7, 0xC8, 0xC9, 0xD4, 0xD5, 0xD6, 0xD7, 0xD8]:
            with self.subTest(tag=hex(tag)):
                with self.assertRaises(MsgPackError) as ctx:
                    unpack(bytes([tag]) + b"\x00" * 16)
                self.assertEqual(ctx.exception.code, ERR_UNSUPPORTED_VALUE)

    def test_unknown_tag_nested(self):
        with self.assertRaises(MsgPackError) as ctx:
            unpack(b"\x92\x01\xc1")
        self.assertEqual(ctx.exception.code, ERR_UNSUPPORTED_VALUE)

    def test_forged_counts_fail_fast(self):
        for raw in (b"\xdd\xff\xff\xff\xff", b"\xdf\xff\xff\xff\xff\xc0\xc0",
                    b"\xdb\xff\xff\xff\xff", b"\xc6\xff\xff\xff\xff\x00"):
            with self.subTest(raw=raw.hex()):
                with self.assertRaises(MsgPackError) as ctx:
                    unpack(raw)
                self.assertEqual(ctx.exception.code, ERR_UNEXPECTED_DATA)

    def test_unhashable_native_key(self):
        raw = b"\x81\x90\xc0"  # {[]: nil}
        self.assertEqual(unpack(raw), Map([(Seq([]), Nil())]))
        with self.assertRaises(MsgPackError) as ctx:
            unpackb(raw)
        self.assertEqual(ctx.exception.code, ERR_UNSUPPORTED_VALUE)

    def test_deep_nesting(self):
        raw = b"\x91" * 100_000 + b"\xc0"
        with self.assertRaises(MsgPackError) as ctx:
            unpack(raw)
        self.assertEqual(ctx.exception.code, ERR_DATA_TOO_LARGE)


# ── Trailing bytes and multiple values ────────────────────────

class TestFraming(unittest.TestCase):
    def test_trailing_ignored_by_default(self):
        self.assertEqual(unpack(b"\x01\x02"), UInt(1))

    def test_trailing_rejected_when_strict(self):
        with self.assertRaises(MsgPackError) as ctx:
            unpack(b"\x01\x02", strict=True)
        self.assertEqual(ctx.exception.code, ERR_UNEXPECTED_DATA)
        self.assertEqual(unpack(b"\x01", strict=True), UInt(1))

    def test_unpack_from_reports_end(self):
        self.assertEqual(unpack_from(b"\xa1a\x02"), (Str("a"), 2))
        self.assertEqual(unpack_from(b"\xa1a\x02", 2), (UInt(2), 3))

    def test_unpack_from_bad_offset(self):
        with self.assertRaises(MsgPackError) as ctx:
            unpack_from(b"\x01", 5)
        self.assertEqual(ctx.exception.code, ERR_UNEXPECTED_DATA)

    def test_pack_many(self):
        self.assertEqual(pack_many(UInt(1), Str("a"), Nil()), b"\x01\xa1a\xc0")
        self.assertEqual(pack_many(), b"")

    def test_unpack_all_inverts_pack_many(self):
        values = [UInt(1), Seq([Str("a")]), Map([]), Float64(2.5)]
        self.assertEqual(unpack_all(pack_many(*values)), values)

    def test_unpack_all_truncated_tail(self):
        with self.assertRaises(MsgPackError) as ctx:
            unpack_all(b"\x01\xcc")
        self.assertEqual(ctx.exception.code, ERR_UNEXPECTED_DATA)

    def test_accepts_bytearray_and_memoryview(self):
        self.assertEqual(unpack(bytearray(b"\xc3")), Bool(True))
        self.assertEqual(unpack(memoryview(b"\xc2")), Bool(False))

    def test_rejects_non_buffer_input(self):
        for data in (3, "\xc0", None, [0xC0]):
            with self.subTest(data=data):
                with self.assertRaises(MsgPackError) as ctx:
                    unpack(data)
                self.assertEqual(ctx.exception.code, ERR_UNSUPPORTED_VALUE)

    def test_wide_memoryview_counts_bytes(self):
        view = memoryview(array.array("I", [0xC0C0C0C0]))
        self.assertEqual(unpack(view), Nil())
        with self.assertRaises(MsgPackError) as ctx:
            unpack(view, strict=True)
        self.assertEqual(ctx.exception.code, ERR_UNEXPECTED_DATA)
        self.assertEqual(unpack_all(view), [Nil()] * 4)


# ── Encode errors ─────────────────────────────────────────────

class TestEncodeErrors(unittest.TestCase):
    def test_non_value_rejected(self):
        for obj in ("x", 1, None, [Nil()]):
            with self.subTest(obj=obj):
                with self.assertRaises(MsgPackError) as ctx:
                    pack(obj)
                self.assertEqual(ctx.exception.code, ERR_UNSUPPORTED_VALUE)

    def test_pack_many_is_all_or_nothing(self):
        with self.assertRaises(MsgPackError):
            pack_many(UInt(1), Str("\udfff"))

    def test_deep_nesting(self):
        v = Nil()
        for _ in range(100_000):
            v = Seq((v,))
        with self.assertRaises(MsgPackError) as ctx:
            pack(v)
        self.assertEqual(ctx.exception.code, ERR_DATA_TOO_LARGE)


# ── Native adapter ────────────────────────────────────────────

class TestNative(unittest.TestCase):
    def test_mapping(self):
        self.assertEqual(from_native(None), Nil())
        self.assertEqual(from_native(True), Bool(True))
        self.assertEqual(from_native(3), UInt(3))
        self.assertIs(type(from_native(-3)), Int)
        self.assertEqual(from_native(1.5), Float64(1.5))
        self.assertEqual(from_native("s"), Str("s"))
        self.assertEqual(from_native(bytearray(b"b")), Bin(b"b"))
        self.assertEqual(from_native((1, 2)), Seq([UInt(1), UInt(2)]))
        self.assertEqual(from_native({"k": None}), Map([(Str("k"), Nil())]))

    def test_values_pass_through(self):
        v = Float32(0.5)
        self.assertIs(from_native(v), v)
        self.assertEqual(packb([v]), b"\x91\xca\x3f\x00\x00\x00")

    def test_bool_before_int(self):
        self.assertEqual(packb(True), b"\xc3")
        self.assertEqual(packb(1), b"\x01")

    def test_unsupported_type(self):
        for obj in (object(), {1, 2}, 1j):
            with self.subTest(obj=type(obj).__name__):
                with self.assertRaises(MsgPackError) as ctx:
                    packb(obj)
                self.assertEqual(ctx.exception.code, ERR_UNSUPPORTED_VALUE)

    def test_round_trip(self):
        doc = {
            "name": "sensor",
            "id": 70000,
            "offset": -129,
            "ratio": 0.125,
            "ok": False,
            "missing": None,
            "raw": b"\x00\xff",
            "items": [1, [2, [3]], {"x": "y"}],
            7: "int key",
        }
        self.assertEqual(unpackb(packb(doc)), doc)

    def test_to_native_tuples_become_lists(self):
        self.assertEqual(unpackb(packb((1, (2,)))), [1, [2]])

    def test_to_native_rejects_non_value(self):
        with self.assertRaises(MsgPackError):
            to_native("plain")


# ── Non-raising API ───────────────────────────────────────────

class TestResultApi(unittest.TestCase):
    def test_pack_ok(self):
        r = pack_result(UInt(200))
        self.assertTrue(r.ok)
        self.assertEqual(r.value, b"\xcc\xc8")
        self.assertEqual(r.unwrap(), b"\xcc\xc8")

    def test_pack_error(self):
        r = pack_result(Str("\ud800"))
        self.assertFalse(r.ok)
        self.assertEqual(r.error.code, ERR_INVALID_ENCODING)

    def test_unpack_error(self):
        r = unpack_result(b"\xc1")
        self.assertFalse(r.ok)
        self.assertIsNone(r.value)
        self.assertEqual(r.error.code, ERR_UNSUPPORTED_VALUE)
        with self.assertRaises(MsgPackError):
            r.unwrap()

    def test_unpack_strict(self):
        self.assertEqual(unpack_result(b"\xc0\xc0", strict=True).error.code,
                         ERR_UNEXPECTED_DATA)
        self.assertEqual(unpack_result(b"\xc0\xc0").value, Nil())


if __name__ == "__main__":
    unittest.main()

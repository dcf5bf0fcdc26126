"""msgval command-line interface.

Usage:
    echo '{"a": [1, 2]}' | python3 -m msgval encode            # hex out
    echo '{"a": [1, 2]}' | python3 -m msgval encode --base64
    python3 -m msgval encode --raw --input doc.json > doc.msgpack
    python3 -m msgval decode --input doc.msgpack                # JSON out
    echo 81a161920102 | python3 -m msgval decode --hex
    python3 -m msgval version
"""

from __future__ import annotations

import argparse
import base64
import binascii
import json
import logging
import sys
from typing import Any, List, Optional

from . import MsgPackError, __version__, packb, unpackb

log = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="msgval",
        description="msgval — MessagePack encode/decode",
    )
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Log debug information to stderr")
    sub = parser.add_subparsers(dest="command")

    # ── encode ──
    enc_p = sub.add_parser("encode", help="JSON in, MessagePack out")
    enc_p.add_argument("--input", "-i", metavar="FILE",
                       help="Read JSON from FILE instead of stdin")
    enc_g = enc_p.add_mutually_exclusive_group()
    enc_g.add_argument("--base64", action="store_true", help="Emit base64 instead of hex")
    enc_g.add_argument("--raw", action="store_true", help="Emit raw bytes on stdout")

    # ── decode ──
    dec_p = sub.add_parser("decode", help="MessagePack in, JSON out")
    dec_p.add_argument("--input", "-i", metavar="FILE",
                       help="Read MessagePack from FILE instead of stdin")
    dec_g = dec_p.add_mutually_exclusive_group()
    dec_g.add_argument("--hex", action="store_true", help="Input is hex text")
    dec_g.add_argument("--base64", action="store_true", help="Input is base64 text")
    dec_p.add_argument("--strict", action="store_true",
                       help="Reject trailing bytes after the first value")

    # ── version ──
    sub.add_parser("version", help="Print version and exit")

    return parser


def _read_input(filepath: Optional[str]) -> bytes:
    """Read bytes from a file or stdin."""
    if filepath:
        with open(filepath, "rb") as f:
            return f.read()
    if sys.stdin.isatty():
        print("msgval: reading from stdin (Ctrl-D to end)...", file=sys.stderr)
    return sys.stdin.buffer.read()


def _json_default(obj: Any) -> Any:
    # Binary payloads have no JSON form; show them as base64 text.
    if isinstance(obj, bytes):
        return base64.b64encode(obj).decode("ascii")
    raise TypeError("not JSON serializable: {}".format(type(obj).__name__))


def _json_keys(obj: Any) -> Any:
    """Stringify map keys json.dumps would reject (bytes, tuples, None...)."""
    if isinstance(obj, list):
        return [_json_keys(x) for x in obj]
    if isinstance(obj, dict):
        out = {}
        for k, v in obj.items():
            if not isinstance(k, (str, int, float, bool)) and k is not None:
                k = repr(k)
            out[k] = _json_keys(v)
        return out
    return obj


def _cmd_encode(args: argparse.Namespace) -> None:
    raw = _read_input(args.input)
    doc = json.loads(raw)
    packed = packb(doc)
    log.debug("encoded %d JSON bytes into %d MessagePack bytes", len(raw), len(packed))

    if args.raw:
        sys.stdout.buffer.write(packed)
        sys.stdout.buffer.flush()
    elif args.base64:
        print(base64.b64encode(packed).decode("ascii"))
    else:
        print(packed.hex())


def _cmd_decode(args: argparse.Namespace) -> None:
    raw = _read_input(args.input)
    if args.hex:
        raw = bytes.fromhex(raw.decode("ascii").strip())
    elif args.base64:
        raw = base64.b64decode(raw.strip(), validate=True)
    log.debug("decoding %d bytes", len(raw))

    obj = unpackb(raw, strict=args.strict)
    print(json.dumps(_json_keys(obj), default=_json_default, ensure_ascii=False))


def main(argv: Optional[List[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(name)s: %(levelname)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "version":
        print(f"msgval {__version__}")
        return

    try:
        if args.command == "encode":
            _cmd_encode(args)
        elif args.command == "decode":
            _cmd_decode(args)
    except MsgPackError as e:
        print(f"msgval: error [{e.code}]: {e}", file=sys.stderr)
        sys.exit(2)
    except json.JSONDecodeError as e:
        print(f"msgval: JSON parse error: {e}", file=sys.stderr)
        sys.exit(2)
    except (ValueError, binascii.Error) as e:
        print(f"msgval: bad input encoding: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()

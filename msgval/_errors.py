"""Error codes, the exception class, and the non-raising Result value.

Every failure in the codec is one of four kinds.  They are ordinary
outcomes for a decoder fed untrusted bytes, so each carries a stable
string code that callers and conformance vectors compare against.
"""

from __future__ import annotations

from typing import Any, NamedTuple, Optional

# ── Error codes ──────────────────────────────────────────────
# Grep-friendly; the conformance vectors use these strings verbatim.

ERR_INVALID_ENCODING: str = "ERR_INVALID_ENCODING"    # text is not valid UTF-8
ERR_UNEXPECTED_DATA: str = "ERR_UNEXPECTED_DATA"      # read past end of buffer
ERR_DATA_TOO_LARGE: str = "ERR_DATA_TOO_LARGE"        # length exceeds 32-bit field
ERR_UNSUPPORTED_VALUE: str = "ERR_UNSUPPORTED_VALUE"  # no wire or in-memory form


class MsgPackError(Exception):
    """Raised by pack/unpack on any failure.

    The `.code` attribute is one of the ERR_* strings above.  A failure
    always aborts the whole call; there are no partial results.
    """

    def __init__(self, code: str, msg: str = "") -> None:
        super().__init__(msg or code)
        self.code = code


class Result(NamedTuple):
    """Outcome of pack_result/unpack_result: exactly one field is set."""

    value: Any = None
    error: Optional[MsgPackError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Any:
        """Return the value, or raise the captured error."""
        if self.error is not None:
            raise self.error
        return self.value

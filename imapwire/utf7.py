"""Modified UTF-7 for mailbox names (RFC 3501 section 5.1.3)."""

from __future__ import annotations

import base64
import binascii
from itertools import groupby

_MIN = 0x20
_MAX = 0x7E
_REPLACEMENT = "\ufffd"


class InvalidUTF7Error(ValueError):
    """Raised when input is not valid modified UTF-7."""

    def __init__(self, message: str = "utf7: invalid UTF-7") -> None:
        super().__init__(message)


def _is_direct(char: str) -> bool:
    return _MIN <= ord(char) <= _MAX


def _decode_utf8_lenient(data: bytes) -> str:
    """Decode UTF-8, replacing each byte that starts no valid sequence."""
    chars = []
    i = 0
    while i < len(data):
        for size in range(1, 5):
            try:
                char = data[i:i + size].decode("utf-8")
            except UnicodeDecodeError:
                continue
            chars.append(char)
            i += size
            break
        else:
            chars.append(_REPLACEMENT)
            i += 1
    return "".join(chars)


def _encode_run(run: str) -> str:
    cleaned = "".join(
        _REPLACEMENT if 0xD800 <= ord(c) <= 0xDFFF else c for c in run
    )
    encoded = base64.b64encode(cleaned.encode("utf-16-be")).decode("ascii")
    return "&" + encoded.rstrip("=").replace("/", ",") + "-"


def encode(data: str | bytes) -> str:
    """Encode text (or UTF-8 bytes) as modified UTF-7.

    Invalid UTF-8 bytes are encoded as U+FFFD.
    """
    text = _decode_utf8_lenient(data) if isinstance(data, (bytes, bytearray)) else data
    parts = []
    for direct, group in groupby(text, key=_is_direct):
        run = "".join(group)
        parts.append(run.replace("&", "&-") if direct else _encode_run(run))
    return "".join(parts)


def _decode_run(b64: str) -> str | None:
    if b64.endswith("=") or "/" in b64:
        return None
    padded = b64.replace(",", "/") + "=" * (-len(b64) % 4)
    try:
        raw = base64.b64decode(padded, validate=True)
    except (binascii.Error, ValueError):
        return None
    if not raw or len(raw) % 2:
        return None
    units = [int.from_bytes(raw[k:k + 2], "big") for k in range(0, len(raw), 2)]
    chars = []
    it = iter(units)
    for unit in it:
        if 0xD800 <= unit <= 0xDFFF:
            low = next(it, None)
            if low is None or not (0xD800 <= unit < 0xDC00 and 0xDC00 <= low <= 0xDFFF):
                return None
            unit = 0x10000 + ((unit - 0xD800) << 10) + (low - 0xDC00)
        elif _MIN <= unit <= _MAX:
            return None
        chars.append(chr(unit))
    return "".join(chars)


def decode(data: str | bytes) -> str:
    """Decode modified UTF-7 into text."""
    text = data.decode("latin-1") if isinstance(data, (bytes, bytearray)) else data
    out = []
    ascii_mode = True
    i = 0
    while i < len(text):
        char = text[i]
        if not _is_direct(char):
            raise InvalidUTF7Error()
        if char != "&":
            out.append(char)
            ascii_mode = True
            i += 1
            continue
        end = text.find("-", i + 1)
        if end < 0:
            raise InvalidUTF7Error()
        if end == i + 1:
            out.append("&")
            ascii_mode = True
        else:
            if not ascii_mode:
                raise InvalidUTF7Error()
            decoded = _decode_run(text[i + 1:end])
            if not decoded:
                raise InvalidUTF7Error()
            out.append(decoded)
            ascii_mode = False
        i = end + 1
    return "".join(out)
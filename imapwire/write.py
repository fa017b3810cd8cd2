"""Serialisation of IMAP fields, lists, literals and response codes."""

from __future__ import annotations

import io
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, BinaryIO, Callable, Iterable, Optional

from .seqset import SeqSet

NIL_ATOM = "NIL"
CRLF = "\r\n"
SP = " "
ASYNC_LITERAL_LIMIT = 4096

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


class RawString(str):
    """A string written verbatim, without quoting."""


@dataclass(frozen=True)
class SearchDate:
    """A date written in the search date layout ("2-Jan-2006"); None is NIL."""

    value: Optional[date] = None


class LiteralLengthError(ValueError):
    """Raised when a literal's declared length differs from its content."""

    def __init__(self, actual: int, expected: int) -> None:
        self.actual = actual
        self.expected = expected
        super().__init__(
            f"imap: size of Literal is not equal to Len() ({expected} != {actual})"
        )


class FieldFormatError(TypeError):
    """Raised when a value cannot be written as an IMAP field."""

    def __init__(self, field: Any) -> None:
        self.field = field
        super().__init__(f"imap: cannot format field: {field!r}")


def _text(value: Any) -> str:
    return value.value if isinstance(value, Enum) else str(value)


def _is_ascii(text: str) -> bool:
    return all(0x20 <= ord(c) <= 0x7E for c in text)


def _quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _format_date(value: date) -> str:
    return f"{value.day}-{_MONTHS[value.month - 1]}-{value.year:04d}"


def _format_datetime(value: datetime) -> str:
    offset = value.utcoffset() or timedelta(0)
    minutes = int(offset.total_seconds() // 60)
    sign = "-" if minutes < 0 else "+"
    hours, mins = divmod(abs(minutes), 60)
    return (f"{_format_date(value)} {value.hour:02d}:{value.minute:02d}:"
            f"{value.second:02d} {sign}{hours:02d}{mins:02d}")


def _is_literal(value: Any) -> bool:
    return hasattr(value, "read") and hasattr(value, "__len__")


def format_string_list(items: Iterable[str]) -> list:
    """Turn a list of strings into a field list."""
    return list(items)


class Writer:
    """Writes IMAP protocol data to a binary stream."""

    def __init__(
        self,
        stream: BinaryIO,
        allow_async_literals: bool = False,
        continues: Optional[Callable[[], bool]] = None,
    ) -> None:
        self.stream = stream
        self.allow_async_literals = allow_async_literals
        # Blocks until the peer answers a literal; returns False if it refused.
        self.continues = continues

    def write_string(self, text: str) -> None:
        """Write text as-is."""
        self.stream.write(text.encode("utf-8"))

    def flush(self) -> None:
        """Flush the underlying stream if it supports flushing."""
        flush = getattr(self.stream, "flush", None)
        if flush is not None:
            flush()

    def write_crlf(self) -> None:
        """Write a line ending and flush."""
        self.write_string(CRLF)
        self.flush()

    def _write_date(self, value: Optional[date], zero: Any, formatter) -> None:
        if value is None or value == zero:
            self.write_string(NIL_ATOM)
        else:
            self.write_string(_quote(formatter(value)))

    def write_field(self, field: Any) -> None:
        """Write a single field according to its type."""
        if field is None:
            self.write_string(NIL_ATOM)
        elif isinstance(field, RawString):
            self.write_string(str(field))
        elif isinstance(field, Enum):
            self.write_string(_text(field))
        elif isinstance(field, str):
            if _is_ascii(field):
                self.write_string(_quote(field))
            else:
                # 8-bit data is only allowed inside literals
                self.write_literal(field.encode("utf-8"))
        elif isinstance(field, bool):
            raise FieldFormatError(field)
        elif isinstance(field, int):
            self.write_string(str(field & 0xFFFFFFFF))
        elif isinstance(field, (bytes, bytearray, memoryview)):
            self.write_literal(field)
        elif isinstance(field, (list, tuple)):
            self.write_list(field)
        elif isinstance(field, SearchDate):
            self._write_date(field.value, date.min, _format_date)
        elif isinstance(field, datetime):
            zero = datetime.min if field.tzinfo is None else None
            self._write_date(field, zero, _format_datetime)
        elif isinstance(field, date):
            self._write_date(field, date.min, _format_date)
        elif isinstance(field, SeqSet):
            self.write_string(str(field))
        elif _is_literal(field):
            self.write_literal(field)
        else:
            raise FieldFormatError(field)

    def write_fields(self, fields: Iterable[Any]) -> None:
        """Write fields separated by spaces."""
        for index, field in enumerate(fields):
            if index:
                self.write_string(SP)
            self.write_field(field)

    def write_list(self, fields: Iterable[Any]) -> None:
        """Write fields as a parenthesised list."""
        self.write_string("(")
        self.write_fields(fields)
        self.write_string(")")

    def write_literal(self, literal: Any) -> None:
        """Write a literal: bytes, or a readable object with a length."""
        if literal is None:
            self.write_string(NIL_ATOM)
            return
        if isinstance(literal, (bytes, bytearray, memoryview)):
            reader: Any = io.BytesIO(bytes(literal))
            expected = reader.getbuffer().nbytes
        else:
            reader = literal
            expected = len(literal)

        unsync = self.allow_async_literals and expected <= ASYNC_LITERAL_LIMIT
        self.write_string("{" + str(expected) + ("+" if unsync else "") + "}" + CRLF)

        if not unsync and self.continues is not None:
            # Flush first, otherwise the continuation request may never come
            self.flush()
            if not self.continues():
                raise ConnectionError(
                    "imap: cannot send literal: no continuation request received"
                )

        chunks = []
        remaining = expected
        while remaining > 0:
            chunk = reader.read(remaining)
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)
        data = b"".join(chunks)
        self.stream.write(data)
        if len(data) != expected:
            raise LiteralLengthError(len(data), expected)
        extra = len(reader.read() or b"")
        if extra:
            raise LiteralLengthError(len(data) + extra, expected)

    def write_resp_code(self, code: Any, args: Optional[Iterable[Any]]) -> None:
        """Write a bracketed response code with its arguments."""
        self.write_string("[")
        self.write_fields([RawString(_text(code)), *(args or ())])
        self.write_string("]")

    def write_line(self, *args: Any) -> None:
        """Write fields followed by a line ending."""
        self.write_fields(args)
        self.write_crlf()


def format_fields(fields: Iterable[Any]) -> str:
    """Render fields as a parenthesised list and return it as text."""
    buffer = io.BytesIO()
    Writer(buffer).write_field(list(fields))
    return buffer.getvalue().decode("utf-8", errors="surrogateescape")
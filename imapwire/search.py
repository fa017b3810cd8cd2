"""Search criteria for the SEARCH command (RFC 3501 section 6.4.4)."""

from __future__ import annotations

import io
import re
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, BinaryIO, Callable, Iterator, Optional

from .seqset import MAX_SEQ, SeqSet, parse_seq_set
from .write import RawString, SearchDate

ANSWERED_FLAG = "\\Answered"
DELETED_FLAG = "\\Deleted"
DRAFT_FLAG = "\\Draft"
FLAGGED_FLAG = "\\Flagged"
RECENT_FLAG = "\\Recent"
SEEN_FLAG = "\\Seen"

_SYSTEM_FLAGS = (SEEN_FLAG, ANSWERED_FLAG, FLAGGED_FLAG, DELETED_FLAG, DRAFT_FLAG, RECENT_FLAG)
_ADDRESS_HEADERS = ("Bcc", "Cc", "From", "Subject", "To")
_MONTHS = ("jan", "feb", "mar", "apr", "may", "jun",
           "jul", "aug", "sep", "oct", "nov", "dec")
_DATE_RE = re.compile(r"(\d{1,2})-([A-Za-z]{3})-(\d{4})")
_TOKEN_EXTRA = set("!#$%&'*+-.^_`|~")
_ONE_DAY = timedelta(days=1)

CharsetReader = Callable[[BinaryIO], Optional[Any]]


class SearchError(ValueError):
    """Raised when search criteria fields are malformed."""


def canonical_flag(flag: str) -> str:
    """Return the canonical spelling of a system flag; other flags are unchanged."""
    lowered = flag.lower()
    for known in _SYSTEM_FLAGS:
        if known.lower() == lowered:
            return known
    return flag


def parse_number(value: Any) -> int:
    """Parse a non-negative 32-bit number from an int or an atom."""
    if isinstance(value, bool):
        raise SearchError("imap: expected a number, got a non-atom")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str):
        if not (value.isascii() and value.isdigit()):
            raise SearchError(f"imap: invalid number {value!r}")
        number = int(value)
    else:
        raise SearchError("imap: expected a number, got a non-atom")
    if not 0 <= number <= MAX_SEQ:
        raise SearchError(f"imap: number out of range {value!r}")
    return number


def _parse_date(value: Any) -> date:
    text = value if isinstance(value, str) else ""
    match = _DATE_RE.fullmatch(text)
    if match is None:
        raise SearchError(f"imap: invalid date {text!r}")
    day, month, year = match.groups()
    try:
        return date(int(year), _MONTHS.index(month.lower()) + 1, int(day))
    except ValueError:
        raise SearchError(f"imap: invalid date {text!r}") from None


def _maybe_string(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _canonical_header_key(key: str) -> str:
    if not key or any(
        not (c.isascii() and (c.isalnum() or c in _TOKEN_EXTRA)) for c in key
    ):
        return key
    chars = []
    upper = True
    for c in key:
        chars.append(c.upper() if upper else c.lower())
        upper = c == "-"
    return "".join(chars)


def _convert_field(value: Any, charset_reader: Optional[CharsetReader]) -> str:
    # Quoted strings and atoms are 7-bit already
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        stream: Any = io.BytesIO(bytes(value))
    elif hasattr(value, "read"):
        stream = value
    else:
        return ""
    if charset_reader is not None:
        decoded = charset_reader(stream)
        if decoded is not None:
            stream = decoded
    data = stream.read()
    if isinstance(data, str):
        return data
    return bytes(data).decode("utf-8", errors="replace")


_MISSING = object()


def _pop(fields: Iterator[Any]) -> Any:
    value = next(fields, _MISSING)
    if value is _MISSING:
        raise SearchError("imap: not enough fields for search key")
    return value


@dataclass
class SearchCriteria:
    """Search criteria; a message matches if it matches every field."""

    seq_num: Optional[SeqSet] = None
    uid: Optional[SeqSet] = None
    since: Optional[date] = None
    before: Optional[date] = None
    sent_since: Optional[date] = None
    sent_before: Optional[date] = None
    header: dict = field(default_factory=dict)
    body: list = field(default_factory=list)
    text: list = field(default_factory=list)
    with_flags: list = field(default_factory=list)
    without_flags: list = field(default_factory=list)
    larger: int = 0
    smaller: int = 0
    not_: list = field(default_factory=list)
    or_: list = field(default_factory=list)

    def _add_header(self, key: str, value: str) -> None:
        self.header.setdefault(_canonical_header_key(key), []).append(value)

    def parse_with_charset(
        self, fields: list, charset_reader: Optional[CharsetReader] = None
    ) -> None:
        """Parse criteria from fields.

        charset_reader optionally wraps a literal's stream to convert it to UTF-8.
        """
        iterator = iter(fields)
        for item in iterator:
            self._parse_item(item, iterator, charset_reader)

    def _parse_next(self, fields: Iterator[Any], charset_reader) -> None:
        item = next(fields, _MISSING)
        if item is not _MISSING:
            self._parse_item(item, fields, charset_reader)

    def _parse_item(self, item: Any, fields: Iterator[Any], charset_reader) -> None:
        if isinstance(item, (list, tuple)):
            self.parse_with_charset(list(item), charset_reader)
            return
        if not isinstance(item, str):
            raise SearchError(
                f"imap: invalid search criteria field type: {type(item).__name__}"
            )
        key = item.upper()

        if key == "ALL":
            pass
        elif key in ("ANSWERED", "DELETED", "DRAFT", "FLAGGED", "RECENT", "SEEN"):
            self.with_flags.append(canonical_flag("\\" + key))
        elif key in ("BCC", "CC", "FROM", "SUBJECT", "TO"):
            self._add_header(key, _convert_field(_pop(fields), charset_reader))
        elif key == "BEFORE":
            t = _parse_date(_pop(fields))
            if self.before is None or t < self.before:
                self.before = t
        elif key == "BODY":
            self.body.append(_convert_field(_pop(fields), charset_reader))
        elif key == "HEADER":
            name = _pop(fields)
            value = _pop(fields)
            self._add_header(_maybe_string(name), _convert_field(value, charset_reader))
        elif key == "KEYWORD":
            self.with_flags.append(canonical_flag(_maybe_string(_pop(fields))))
        elif key == "LARGER":
            n = parse_number(_pop(fields))
            if self.larger == 0 or n > self.larger:
                self.larger = n
        elif key == "NEW":
            self.with_flags.append(RECENT_FLAG)
            self.without_flags.append(SEEN_FLAG)
        elif key == "NOT":
            negated = SearchCriteria()
            negated._parse_next(fields, charset_reader)
            self.not_.append(negated)
        elif key == "OLD":
            self.without_flags.append(RECENT_FLAG)
        elif key == "ON":
            t = _parse_date(_pop(fields))
            self.since = t
            self.before = t + _ONE_DAY
        elif key == "OR":
            first, second = SearchCriteria(), SearchCriteria()
            first._parse_next(fields, charset_reader)
            second._parse_next(fields, charset_reader)
            self.or_.append((first, second))
        elif key == "SENTBEFORE":
            t = _parse_date(_pop(fields))
            if self.sent_before is None or t < self.sent_before:
                self.sent_before = t
        elif key == "SENTON":
            t = _parse_date(_pop(fields))
            self.sent_since = t
            self.sent_before = t + _ONE_DAY
        elif key == "SENTSINCE":
            t = _parse_date(_pop(fields))
            if self.sent_since is None or t > self.sent_since:
                self.sent_since = t
        elif key == "SINCE":
            t = _parse_date(_pop(fields))
            if self.since is None or t > self.since:
                self.since = t
        elif key == "SMALLER":
            n = parse_number(_pop(fields))
            if self.smaller == 0 or n < self.smaller:
                self.smaller = n
        elif key == "TEXT":
            self.text.append(_convert_field(_pop(fields), charset_reader))
        elif key == "UID":
            self.uid = parse_seq_set(_maybe_string(_pop(fields)))
        elif key in ("UNANSWERED", "UNDELETED", "UNDRAFT", "UNFLAGGED", "UNSEEN"):
            self.without_flags.append(canonical_flag("\\" + key[2:]))
        elif key == "UNKEYWORD":
            self.without_flags.append(canonical_flag(_maybe_string(_pop(fields))))
        else:
            self.seq_num = parse_seq_set(key)

    @staticmethod
    def _format_dates(since, before, on_key, since_key, before_key) -> list:
        if since is not None and before is not None and before - since == _ONE_DAY:
            return [RawString(on_key), SearchDate(since)]
        out: list = []
        if since is not None:
            out += [RawString(since_key), SearchDate(since)]
        if before is not None:
            out += [RawString(before_key), SearchDate(before)]
        return out

    def format(self) -> list:
        """Render the criteria as a list of fields."""
        fields: list = []
        if self.seq_num is not None:
            fields.append(self.seq_num)
        if self.uid is not None:
            fields += [RawString("UID"), self.uid]

        fields += self._format_dates(self.since, self.before, "ON", "SINCE", "BEFORE")
        fields += self._format_dates(
            self.sent_since, self.sent_before, "SENTON", "SENTSINCE", "SENTBEFORE"
        )

        for key, values in self.header.items():
            if key in _ADDRESS_HEADERS:
                prefix: list = [RawString(key.upper())]
            else:
                prefix = [RawString("HEADER"), key]
            for value in values:
                fields += [*prefix, value]

        for value in self.body:
            fields += [RawString("BODY"), value]
        for value in self.text:
            fields += [RawString("TEXT"), value]

        for flag in self.with_flags:
            if flag in _SYSTEM_FLAGS:
                fields.append(RawString(flag.lstrip("\\").upper()))
            else:
                fields += [RawString("KEYWORD"), RawString(flag)]
        for flag in self.without_flags:
            if flag == RECENT_FLAG:
                fields.append(RawString("OLD"))
            elif flag in _SYSTEM_FLAGS:
                fields.append(RawString("UN" + flag.lstrip("\\").upper()))
            else:
                fields += [RawString("UNKEYWORD"), RawString(flag)]

        if self.larger > 0:
            fields += [RawString("LARGER"), self.larger]
        if self.smaller > 0:
            fields += [RawString("SMALLER"), self.smaller]

        for negated in self.not_:
            fields += [RawString("NOT"), negated.format()]
        for first, second in self.or_:
            fields += [RawString("OR"), first.format(), second.format()]

        # No criteria at all: fall back to ALL
        if not fields:
            fields.append(RawString("ALL"))
        return fields
"""Status responses (RFC 3501 section 7.1)."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from .write import RawString, Writer


class StatusRespType(str, Enum):
    """Status response types."""

    OK = "OK"
    NO = "NO"
    BAD = "BAD"
    PREAUTH = "PREAUTH"
    BYE = "BYE"

    def __str__(self) -> str:
        return self.value


class StatusRespCode(str, Enum):
    """Status response codes."""

    ALERT = "ALERT"
    BAD_CHARSET = "BADCHARSET"
    CAPABILITY = "CAPABILITY"
    PARSE = "PARSE"
    PERMANENT_FLAGS = "PERMANENTFLAGS"
    READ_ONLY = "READ-ONLY"
    READ_WRITE = "READ-WRITE"
    TRY_CREATE = "TRYCREATE"
    UID_NEXT = "UIDNEXT"
    UID_VALIDITY = "UIDVALIDITY"
    UNSEEN = "UNSEEN"

    def __str__(self) -> str:
        return self.value


class StatusError(Exception):
    """A NO or BAD status response, carrying its info text."""

    def __init__(self, info: str, resp: Optional["StatusResp"] = None) -> None:
        self.resp = resp
        super().__init__(info)


def _text(value: Any) -> str:
    return value.value if isinstance(value, Enum) else str(value)


@dataclass
class StatusResp:
    """A status response. An empty tag is written as "*"."""

    tag: str = ""
    type: Union[StatusRespType, str] = StatusRespType.OK
    code: Union[StatusRespCode, str] = ""
    arguments: list = field(default_factory=list)
    info: str = ""

    def err(self) -> Optional[StatusError]:
        """Return a StatusError for NO or BAD responses, otherwise None."""
        if _text(self.type) in (StatusRespType.NO.value, StatusRespType.BAD.value):
            return StatusError(self.info, self)
        return None

    def raise_for_status(self) -> None:
        """Raise StatusError if this is a NO or BAD response."""
        error = self.err()
        if error is not None:
            raise error

    def write_to(self, writer: Writer) -> None:
        """Write the response as one line."""
        tag = self.tag or "*"
        writer.write_fields([RawString(tag), RawString(_text(self.type))])
        writer.write_string(" ")
        if self.code:
            writer.write_resp_code(_text(self.code), self.arguments)
            writer.write_string(" ")
        writer.write_string(self.info)
        writer.write_crlf()


class ErrStatusResp(Exception):
    """Raised by a handler to replace its default status response.

    A resp of None suppresses the response entirely.
    """

    def __init__(self, resp: Optional[StatusResp] = None) -> None:
        self.resp = resp
        super().__init__("imap: suppressed response" if resp is None else resp.info)
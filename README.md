# imapwire

Small, dependency-free pieces for producing and handling the data of the
IMAP4rev1 wire protocol (RFC 3501) in Python.

## What is inside

- `imapwire.seqset`: `Seq` and `SeqSet` for message sequence numbers and
  UIDs, including the dynamic `*` and `n:*` forms (stored with `0` standing
  for `*`). A set keeps its values sorted and merged in `SeqSet.seqs` as
  values are added with `add()`, `add_num()`, `add_range()` and `add_set()`.
  `parse_seq()` and `parse_seq_set()` raise `BadSeqSetError` on bad input.
- `imapwire.utf7`: the modified UTF-7 encoding used for mailbox names.
  `encode()` accepts text or UTF-8 bytes (invalid bytes become U+FFFD);
  `decode()` raises `InvalidUTF7Error` on bad input.
- `imapwire.write`: a `Writer` that writes Python values to a binary
  stream in IMAP syntax. `RawString` is written verbatim, other ASCII strings
  are quoted, non-ASCII strings and `bytes` become literals, integers are
  numbers, lists and tuples become parenthesised lists, `datetime` values,
  `date` values and `SearchDate` become quoted dates, `None` becomes `NIL`,
  and a `SeqSet` is written as its string form. Values it cannot write raise
  `FieldFormatError`; a literal whose length does not match its content raises
  `LiteralLengthError`. `format_fields()` renders a list of fields to a
  string.
- `imapwire.status`: `StatusResp` for tagged and untagged OK/NO/BAD/
  PREAUTH/BYE responses with an optional response code (`StatusRespType`,
  `StatusRespCode`). `err()` returns a `StatusError` for NO and BAD,
  `raise_for_status()` raises it. `ErrStatusResp` is an exception carrying a
  replacement response, or `None` to suppress one.
- `imapwire.search`: `SearchCriteria`, parsed from SEARCH command fields
  with `parse_with_charset()` and turned back into fields with `format()`,
  plus `canonical_flag()` and `parse_number()`. Malformed fields raise
  `SearchError` (or `BadSeqSetError` for bad sequence sets).

## Install

```
pip install .
```

## Examples

Sequence sets:

```python
from imapwire.seqset import SeqSet

s = SeqSet.parse("1,2,4:5,7:*")
str(s)          # "1:2,4:5,7:*"
s.contains(8)   # True
s.dynamic()     # True
```

Mailbox names:

```python
from imapwire import utf7

utf7.encode("~peter/mail/台北/日本語")   # "~peter/mail/&U,BTFw-/&ZeVnLIqe-"
utf7.decode("&Jjo-!")                    # "☺!"
```

Writing fields and status responses:

```python
import io
from imapwire.write import Writer, RawString
from imapwire.status import StatusResp, StatusRespType

buf = io.BytesIO()
StatusResp(tag="a001", type=StatusRespType.OK, code="READ-ONLY",
           info="EXAMINE completed").write_to(Writer(buf))
buf.getvalue()  # b"a001 OK [READ-ONLY] EXAMINE completed\r\n"

buf = io.BytesIO()
Writer(buf).write_line(RawString("*"), RawString("OK"))
buf.getvalue()  # b"* OK\r\n"
```

Search criteria:

```python
from imapwire.search import SearchCriteria
from imapwire.write import format_fields

c = SearchCriteria()
c.parse_with_charset(["UNSEEN", "SUBJECT", "hello"], None)
format_fields(c.format())   # '(SUBJECT "hello" UNSEEN)'
```

## What it does not do

This package only builds and checks protocol values. It has no network
code: no IMAP server or client, no connection handling, no reading or
parsing of lines from the wire, no command dispatch, no authentication and
no mailbox storage. `SearchCriteria` describes a search but does not match
it against messages.

## Running the tests

```
pip install .[test]
pytest
```
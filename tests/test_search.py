import io
from datetime import date, timedelta

import pytest

from imapwire.search import (
    ANSWERED_FLAG,
    DELETED_FLAG,
    DRAFT_FLAG,
    FLAGGED_FLAG,
    RECENT_FLAG,
    SEEN_FLAG,
    SearchCriteria,
    SearchError,
    canonical_flag,
    parse_number,
)
from imapwire.seqset import BadSeqSetError, parse_seq_set
from imapwire.write import format_fields

DATE1 = date(1997, 11, 21)
DATE2 = date(1984, 11, 5)

FULL_EXPECTED = (
    '(1:42 UID 743:938 '
    'SINCE "5-Nov-1984" BEFORE "21-Nov-1997" SENTSINCE "5-Nov-1984" SENTBEFORE "21-Nov-1997" '
    'FROM "alice@example.com" BODY "hey there" TEXT "DILLE" '
    'ANSWERED DELETED KEYWORD cc UNKEYWORD microsoft '
    'LARGER 4242 SMALLER 4342 '
    'NOT (SENTON "21-Nov-1997" HEADER "Content-Type" "text/csv") '
    'OR (ON "5-Nov-1984" DRAFT FLAGGED UNANSWERED UNDELETED OLD) (UNDRAFT UNFLAGGED UNSEEN))'
)

FULL_FIELDS = [
    "1:42", "UID", "743:938",
    "SINCE", "5-Nov-1984", "BEFORE", "21-Nov-1997",
    "SENTSINCE", "5-Nov-1984", "SENTBEFORE", "21-Nov-1997",
    "FROM", "alice@example.com", "BODY", "hey there", "TEXT", "DILLE",
    "ANSWERED", "DELETED", "KEYWORD", "cc", "UNKEYWORD", "microsoft",
    "LARGER", "4242", "SMALLER", "4342",
    "NOT", ["SENTON", "21-Nov-1997", "HEADER", "Content-Type", "text/csv"],
    "OR",
    ["ON", "5-Nov-1984", "DRAFT", "FLAGGED", "UNANSWERED", "UNDELETED", "OLD"],
    ["UNDRAFT", "UNFLAGGED", "UNSEEN"],
]


def full_criteria():
    return SearchCriteria(
        seq_num=parse_seq_set("1:42"),
        uid=parse_seq_set("743:938"),
        since=DATE2,
        before=DATE1,
        sent_since=DATE2,
        sent_before=DATE1,
        header={"From": ["alice@example.com"]},
        body=["hey there"],
        text=["DILLE"],
        with_flags=[ANSWERED_FLAG, DELETED_FLAG, "cc"],
        without_flags=["microsoft"],
        larger=4242,
        smaller=4342,
        not_=[
            SearchCriteria(
                sent_since=DATE1,
                sent_before=DATE1 + timedelta(days=1),
                header={"Content-Type": ["text/csv"]},
            )
        ],
        or_=[
            (
                SearchCriteria(
                    since=DATE2,
                    before=DATE2 + timedelta(days=1),
                    with_flags=[DRAFT_FLAG, FLAGGED_FLAG],
                    without_flags=[ANSWERED_FLAG, DELETED_FLAG, RECENT_FLAG],
                ),
                SearchCriteria(without_flags=[DRAFT_FLAG, FLAGGED_FLAG, SEEN_FLAG]),
            )
        ],
    )


def parsed(fields, charset=None):
    criteria = SearchCriteria()
    criteria.parse_with_charset(fields, charset)
    return criteria


def test_format_full():
    assert format_fields(full_criteria().format()) == FULL_EXPECTED


def test_format_empty_is_all():
    assert format_fields(SearchCriteria().format()) == "(ALL)"


def test_parse_full():
    assert parsed([FULL_FIELDS]) == full_criteria()


def test_parse_all_only():
    assert parsed(["ALL"]) == SearchCriteria()


def test_parse_new():
    assert parsed(["NEW"]) == SearchCriteria(
        with_flags=[RECENT_FLAG], without_flags=[SEEN_FLAG]
    )


def test_parse_literal_with_charset():
    literal = io.BytesIO("café".encode("utf-8"))
    result = parsed(["SUBJECT", literal], lambda r: r)
    assert result == SearchCriteria(header={"Subject": ["café"]})


def test_parse_bytes_literal_without_charset():
    assert parsed(["BODY", "café".encode("utf-8")]).body == ["café"]


def test_parse_unconvertible_field_gives_empty_string():
    assert parsed(["TEXT", 3.5]).text == [""]


def test_parse_header_key_is_canonical():
    result = parsed(["HEADER", "content-type", "text/plain"])
    assert result.header == {"Content-Type": ["text/plain"]}
    assert format_fields(result.format()) == '(HEADER "Content-Type" "text/plain")'


def test_parse_is_case_insensitive():
    assert parsed(["seen", "unflagged"]) == SearchCriteria(
        with_flags=[SEEN_FLAG], without_flags=[FLAGGED_FLAG]
    )


def test_before_keeps_earliest_and_since_latest():
    result = parsed([
        "BEFORE", "21-Nov-1997", "BEFORE", "5-Nov-1984",
        "SINCE", "5-Nov-1984", "SINCE", "21-Nov-1997",
    ])
    assert result.before == DATE2
    assert result.since == DATE1


def test_larger_keeps_max_smaller_keeps_min():
    result = parsed(["LARGER", "10", "LARGER", "20", "SMALLER", "50", "SMALLER", "30"])
    assert (result.larger, result.smaller) == (20, 30)


def test_on_round_trip():
    result = parsed(["ON", "5-Nov-1984"])
    assert (result.since, result.before) == (DATE2, DATE2 + timedelta(days=1))
    assert format_fields(result.format()) == '(ON "5-Nov-1984")'


def test_sequence_set_key():
    assert str(parsed(["2:4,7"]).seq_num) == "2:4,7"


def test_missing_argument_raises():
    with pytest.raises(SearchError):
        parsed(["BODY"])


def test_header_missing_value_raises():
    with pytest.raises(SearchError):
        parsed(["HEADER", "X-Test"])


def test_invalid_field_type_raises():
    with pytest.raises(SearchError):
        parsed([42])


def test_invalid_date_raises():
    with pytest.raises(SearchError):
        parsed(["SINCE", "yesterday"])


def test_invalid_number_raises():
    with pytest.raises(SearchError):
        parsed(["LARGER", "big"])


def test_unknown_key_raises_bad_seq_set():
    with pytest.raises(BadSeqSetError):
        parsed(["NOSUCHKEY"])


@pytest.mark.parametrize(
    "flag, expected",
    [
        ("\\SEEN", SEEN_FLAG),
        ("\\answered", ANSWERED_FLAG),
        ("\\Recent", RECENT_FLAG),
        ("cc", "cc"),
        ("$Junk", "$Junk"),
    ],
)
def test_canonical_flag(flag, expected):
    assert canonical_flag(flag) == expected


@pytest.mark.parametrize("value, expected", [("0", 0), ("4242", 4242), (7, 7), ("4294967295", 4294967295)])
def test_parse_number(value, expected):
    assert parse_number(value) == expected


@pytest.mark.parametrize("value", ["-1", "4294967296", "", "1.5", None, ["1"]])
def test_parse_number_errors(value):
    with pytest.raises(SearchError):
        parse_number(value)
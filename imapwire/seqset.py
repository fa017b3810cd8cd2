"""Message sequence numbers, ranges and sets (RFC 3501 sequence-set)."""

from __future__ import annotations

from dataclasses import dataclass, field

MAX_SEQ = 0xFFFFFFFF


class BadSeqSetError(ValueError):
    """Raised when a sequence set value is malformed."""

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"imap: bad sequence set value {value!r}")


@dataclass(frozen=True)
class Seq:
    """A single seq-number or seq-range.

    Zero stands for "*". A seq-number has start == stop. Values are kept with
    start <= stop, except for "n:*", stored as start = n and stop = 0.
    """

    start: int
    stop: int

    def contains(self, q: int) -> bool:
        """Return True if seq-number q (0 meaning "*") is contained."""
        if q == 0:
            return self.stop == 0
        return self.start != 0 and self.start <= q and (q <= self.stop or self.stop == 0)

    def less(self, q: int) -> bool:
        """Return True if this value precedes and does not contain q."""
        return (self.stop < q or q == 0) and self.stop != 0

    def merge(self, other: Seq) -> Seq | None:
        """Return the union of both values, or None if they cannot be merged."""
        s, t = self, other
        if s == t:
            return s
        if s.start != 0 and t.start != 0:
            if s.start > t.start:
                s, t = t, s
            if (s.stop >= t.stop and t.stop != 0) or s.stop == 0:
                return s
            if s.stop + 1 >= t.start:
                return Seq(s.start, t.stop)
            return None
        if s.start == 0:
            if t.stop == 0:
                return t
        elif s.stop == 0:
            return s
        return None

    def __str__(self) -> str:
        if self.start == self.stop:
            return "*" if self.start == 0 else str(self.start)
        stop = "*" if self.stop == 0 else str(self.stop)
        return f"{self.start}:{stop}"


def _parse_seq_number(value: str) -> int:
    if value.isascii() and value.isdigit() and value[0] != "0":
        number = int(value)
        if number <= MAX_SEQ:
            return number
    elif value == "*":
        return 0
    raise BadSeqSetError(value)


def parse_seq(value: str) -> Seq:
    """Parse "n" or "n:m", where either side may be "*"."""
    start_text, sep, stop_text = value.partition(":")
    if not sep:
        number = _parse_seq_number(value)
        return Seq(number, number)
    try:
        start = _parse_seq_number(start_text)
        stop = _parse_seq_number(stop_text)
    except BadSeqSetError:
        raise BadSeqSetError(value) from None
    if (stop < start and stop != 0) or start == 0:
        start, stop = stop, start
    return Seq(start, stop)


@dataclass
class SeqSet:
    """A sorted, merged set of sequence values. Empty by default."""

    seqs: list[Seq] = field(default_factory=list)

    @classmethod
    def parse(cls, text: str) -> SeqSet:
        """Build a set from a sequence-set string."""
        result = cls()
        result.add(text)
        return result

    def add(self, text: str) -> None:
        """Insert values from a sequence-set string.

        Values inserted before an error is raised stay in the set.
        """
        for part in text.split(","):
            self._insert(parse_seq(part))

    def add_num(self, *args: int) -> None:
        """Insert sequence numbers; 0 stands for "*"."""
        for number in args:
            self._insert(Seq(number, number))

    def add_range(self, start: int, stop: int) -> None:
        """Insert a range of sequence numbers."""
        if (stop < start and stop != 0) or start == 0:
            self._insert(Seq(stop, start))
        else:
            self._insert(Seq(start, stop))

    def add_set(self, other: SeqSet) -> None:
        """Insert every value of another set."""
        for value in list(other.seqs):
            self._insert(value)

    def clear(self) -> None:
        """Remove all values."""
        self.seqs.clear()

    def empty(self) -> bool:
        """Return True if the set holds no values."""
        return not self.seqs

    def dynamic(self) -> bool:
        """Return True if the set holds "*" or "n:*"."""
        return bool(self.seqs) and self.seqs[-1].stop == 0

    def contains(self, q: int) -> bool:
        """Return True if the non-zero number q is in the set.

        "n:*" contains every q >= n; "*" itself never matches.
        """
        _, found = self._search(q)
        return found and q != 0

    def __str__(self) -> str:
        return ",".join(str(value) for value in self.seqs)

    def _search(self, q: int) -> tuple[int, bool]:
        lo, hi = 0, len(self.seqs)
        while lo < hi:
            mid = (lo + hi) // 2
            if self.seqs[mid].less(q):
                lo = mid + 1
            else:
                hi = mid
        if lo == len(self.seqs):
            return lo, False
        return lo, self.seqs[lo].contains(q)

    def _insert(self, value: Seq) -> None:
        seqs = self.seqs
        i, _ = self._search(value.start)
        merged = False
        if i > 0:
            union = seqs[i - 1].merge(value)
            if union is not None:
                seqs[i - 1] = union
                merged = True
        if i == len(seqs):
            if not merged:
                seqs.append(value)
            return
        if merged:
            i -= 1
        else:
            union = seqs[i].merge(value)
            if union is None:
                seqs.insert(i, value)
                return
            seqs[i] = union
        for j in range(i + 1, len(seqs)):
            union = seqs[i].merge(seqs[j])
            if union is None:
                del seqs[i + 1:j]
                return
            seqs[i] = union
        del seqs[i + 1:]


def parse_seq_set(text: str) -> SeqSet:
    """Build a SeqSet from a sequence-set string."""
    return SeqSet.parse(text)
"""Question-bank parsing for the comma-delimited quiz format.

Each non-blank line of a bank is one record::

    subtopic,"question text",opt0,opt1,opt2,opt3,correctIndex

Fields may be wrapped in double quotes so they can carry commas. Lines that
cannot be turned into a :class:`QuestionRecord` are rejected one at a time
and reported through :class:`ParseResult`; a bad line never aborts the
whole parse.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass
from typing import Optional

from .errors import MalformedRecordError

__all__ = [
    "OPTION_COUNT",
    "QuestionRecord",
    "RejectedLine",
    "ParseResult",
    "split_fields",
    "parse_record",
    "parse_bank",
]

logger = logging.getLogger(__name__)

OPTION_COUNT = 4
_MIN_FIELDS = 3 + OPTION_COUNT

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")
# A comma separates fields only when an even number of quotes follows it.
_FIELD_SPLIT_RE = re.compile(r',(?=(?:[^"]*"[^"]*")*[^"]*$)')
_INDEX_RE = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class QuestionRecord:
    """Immutable multiple-choice question with exactly four options."""

    subtopic: str
    question_text: str
    options: tuple[str, ...]
    correct_index: int

    def __post_init__(self) -> None:
        if len(self.options) != OPTION_COUNT:
            raise MalformedRecordError(
                f"expected {OPTION_COUNT} options, found {len(self.options)}"
            )
        if not 0 <= self.correct_index < OPTION_COUNT:
            raise MalformedRecordError(
                f"correct index {self.correct_index} is out of range"
            )

    @property
    def correct_option(self) -> str:
        return self.options[self.correct_index]


@dataclass(frozen=True)
class RejectedLine:
    """Diagnostic entry for a line that failed validation."""

    line_number: int
    reason: str
    text: str


@dataclass(frozen=True)
class ParseResult:
    """Records accepted from a bank plus the lines that were skipped."""

    records: tuple[QuestionRecord, ...]
    rejected: tuple[RejectedLine, ...] = ()

    @property
    def rejected_count(self) -> int:
        return len(self.rejected)

    @property
    def is_empty(self) -> bool:
        return not self.records

    def subtopics(self) -> dict[str, int]:
        """Return record counts per subtopic in first-seen order."""

        return dict(Counter(record.subtopic for record in self.records))


def split_fields(line: str) -> list[str]:
    """Split ``line`` on commas that sit outside double-quoted spans."""

    return _FIELD_SPLIT_RE.split(line)


def _clean_field(raw: str) -> str:
    value = raw.strip()
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        value = value[1:-1]
    return value


def _parse_index(raw: str, line_number: Optional[int]) -> int:
    if not _INDEX_RE.fullmatch(raw):
        raise MalformedRecordError(
            f"correct index {raw!r} is not an integer",
            line_number=line_number,
        )
    return int(raw)


def parse_record(
    line: str, *, line_number: Optional[int] = None
) -> QuestionRecord:
    """Parse a single bank line into a :class:`QuestionRecord`.

    Raises :class:`MalformedRecordError` when the line has fewer than seven
    fields or the correct index is not an integer in ``0..3``. Fields past
    the seventh are ignored.
    """

    fields = [_clean_field(part) for part in split_fields(line)]
    if len(fields) < _MIN_FIELDS:
        raise MalformedRecordError(
            f"expected at least {_MIN_FIELDS} fields, found {len(fields)}",
            line_number=line_number,
        )
    subtopic, question_text = fields[0], fields[1]
    options = tuple(fields[2 : 2 + OPTION_COUNT])
    correct_index = _parse_index(fields[2 + OPTION_COUNT], line_number)
    try:
        return QuestionRecord(
            subtopic=subtopic,
            question_text=question_text,
            options=options,
            correct_index=correct_index,
        )
    except MalformedRecordError as exc:
        raise MalformedRecordError(
            exc.reason, line_number=line_number
        ) from exc


def parse_bank(text: Optional[str]) -> ParseResult:
    """Parse a full bank payload, skipping and reporting malformed lines.

    ``None`` or an empty payload yields an empty result.
    """

    if not text:
        logger.info("Question bank source is empty", extra={"records": 0})
        return ParseResult(records=())

    records: list[QuestionRecord] = []
    rejected: list[RejectedLine] = []
    for line_number, line in enumerate(_LINE_BREAK_RE.split(text), start=1):
        if not line.strip():
            continue
        try:
            records.append(parse_record(line, line_number=line_number))
        except MalformedRecordError as exc:
            logger.warning(
                "Skipped malformed question line",
                extra={"line_number": line_number, "reason": exc.reason},
            )
            rejected.append(
                RejectedLine(
                    line_number=line_number, reason=exc.reason, text=line
                )
            )

    logger.info(
        "Parsed question bank",
        extra={"records": len(records), "rejected": len(rejected)},
    )
    return ParseResult(records=tuple(records), rejected=tuple(rejected))

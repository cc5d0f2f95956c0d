"""Parse the pipe-delimited CNB daily fixing into rate rows."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Iterator

from cnb_rates.exceptions import MalformedRowError
from cnb_rates.ingestion.models import CnbRateRow, FeedHeader
from cnb_rates.utils.cnb import CNB_DATE_FORMAT

HEADER_LINES = 2
COLUMN_COUNT = 5
_HEADER_PATTERN = re.compile(r"^\s*(\d{2}\.\d{2}\.\d{4})(?:\s*#\s*(\d+))?")
_NUMBER_PATTERN = re.compile(r"[+-]?\d+(?:\.\d+)?", re.ASCII)


class CNBFeedParser:
    """Turn raw CNB feed text into :class:`CnbRateRow` objects.

    The first line is the publication stamp (``19.10.2026 #202``) and the
    second the column header; both are skipped regardless of content.
    """

    def parse(self, raw: str) -> list[CnbRateRow]:
        return list(self.iter_rows(raw))

    def iter_rows(self, raw: str) -> Iterator[CnbRateRow]:
        """Yield rows lazily in feed order, failing on the first bad line reached."""

        lines = raw.split("\n")
        for line in lines[HEADER_LINES:]:
            line = line.rstrip("\r")
            if not line.strip():
                continue
            yield self.parse_line(line)

    def parse_line(self, line: str) -> CnbRateRow:
        columns = line.split("|")
        if len(columns) < COLUMN_COUNT:
            raise MalformedRowError(line, f"expected {COLUMN_COUNT} columns, got {len(columns)}")
        country, title, amount_raw, code, rate_raw = columns[:COLUMN_COUNT]
        return CnbRateRow(
            country=country.strip(),
            currency_title=title.strip(),
            amount=_parse_decimal(amount_raw, line, "amount"),
            currency_code=code.strip(),
            rate=_parse_decimal(rate_raw.replace(",", "."), line, "rate"),
        )

    @staticmethod
    def parse_header(raw: str) -> FeedHeader:
        first_line = raw.split("\n", 1)[0]
        match = _HEADER_PATTERN.match(first_line)
        if not match:
            return FeedHeader()
        try:
            published_on = datetime.strptime(match.group(1), CNB_DATE_FORMAT).date()
        except ValueError:
            published_on = None
        sequence = int(match.group(2)) if match.group(2) else None
        return FeedHeader(published_on=published_on, sequence=sequence)


def _parse_decimal(value: str, line: str, field: str) -> Decimal:
    cleaned = value.strip()
    # Plain ASCII digits with an optional "." fraction; no exponents or "_".
    if not _NUMBER_PATTERN.fullmatch(cleaned):
        raise MalformedRowError(line, f"non-numeric {field} {cleaned!r}")
    try:
        return Decimal(cleaned)
    except InvalidOperation as exc:  # pragma: no cover - pattern already validated
        raise MalformedRowError(line, f"non-numeric {field} {cleaned!r}") from exc


@dataclass(frozen=True)
class CnbFeed:
    """Immutable snapshot of one downloaded feed, shared across resolutions."""

    raw: str
    rate_date: date | None = None

    def iter_rows(self) -> Iterator[CnbRateRow]:
        return CNBFeedParser().iter_rows(self.raw)

    def rows(self) -> list[CnbRateRow]:
        return CNBFeedParser().parse(self.raw)

    @property
    def header(self) -> FeedHeader:
        return CNBFeedParser.parse_header(self.raw)

    @classmethod
    def coerce(cls, value: "str | CnbFeed", rate_date: date | None = None) -> "CnbFeed":
        if isinstance(value, CnbFeed):
            return value
        return cls(raw=value, rate_date=rate_date)


__all__ = ["CNBFeedParser", "CnbFeed", "COLUMN_COUNT", "HEADER_LINES"]

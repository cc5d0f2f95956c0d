"""Data models shared across ingestion and sync modules."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal


@dataclass(slots=True)
class Currency:
    """A stored currency whose rate to CZK is kept in sync with the CNB feed."""

    id: int | None
    title: str
    short: str
    symbol: str
    exchange_rate_to_czk: Decimal | None = None


@dataclass(frozen=True, slots=True)
class CnbRateRow:
    """Representation of a single data line of the CNB daily fixing."""

    country: str
    currency_title: str
    amount: Decimal
    currency_code: str
    rate: Decimal


@dataclass(frozen=True, slots=True)
class FeedHeader:
    """Publication date and sequence number taken from the feed's first line."""

    published_on: date | None = None
    sequence: int | None = None

"""Abstractions for pluggable feed sources."""

from __future__ import annotations

from datetime import date
from typing import Protocol


class FeedSource(Protocol):
    """Contract for fetching the raw CNB feed.

    Concrete implementations return the feed body as text for ``rate_date``,
    or for today's fixing when no date is given.
    """

    def fetch(self, rate_date: date | None = None) -> str:
        ...  # pragma: no cover - protocol definition


__all__ = ["FeedSource"]

"""Pick the per-unit CZK rate of a currency out of a CNB feed."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from cnb_rates.exceptions import MalformedRowError, RateNotFoundError
from cnb_rates.ingestion.cnb_feed import CnbFeed
from cnb_rates.ingestion.models import CnbRateRow, Currency
from cnb_rates.ingestion.strategy import FeedSource
from cnb_rates.utils.cnb import is_base_currency

IDENTITY_RATE = Decimal(1)


class RateResolver:
    """Resolve exchange rates to CZK, fetching the feed only when needed."""

    def __init__(self, source: FeedSource) -> None:
        self.source = source

    @staticmethod
    def find_row(currency: Currency, feed: CnbFeed) -> CnbRateRow | None:
        """Return the first row matching the currency's title or code, or ``None``."""

        for row in feed.iter_rows():
            if row.currency_title == currency.title or row.currency_code == currency.short:
                return row
        return None

    def resolve(
        self,
        currency: Currency,
        cnb_csv: str | CnbFeed | None = None,
        rate_date: date | None = None,
    ) -> Decimal:
        """Return how many CZK one unit of ``currency`` is worth.

        The crown itself always resolves to ``1`` without touching the feed.
        ``cnb_csv`` may be a feed already downloaded by the caller; otherwise
        the feed for ``rate_date`` (today when omitted) is fetched.
        """

        if is_base_currency(currency):
            return IDENTITY_RATE

        if cnb_csv is None:
            cnb_csv = self.source.fetch(rate_date)
        feed = CnbFeed.coerce(cnb_csv, rate_date)

        row = self.find_row(currency, feed)
        if row is None:
            raise RateNotFoundError(currency)
        return per_unit_rate(row)


def per_unit_rate(row: CnbRateRow) -> Decimal:
    """Normalise a lot rate (``amount`` units) to the rate of a single unit."""

    if row.amount <= 0:
        raise MalformedRowError(
            f"{row.country}|{row.currency_title}|{row.amount}|{row.currency_code}|{row.rate}",
            "amount must be positive",
        )
    return row.rate / row.amount


__all__ = ["IDENTITY_RATE", "RateResolver", "per_unit_rate"]

"""Keep stored currencies in sync with the CNB daily exchange rate fixing."""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Callable

from cnb_rates.db.base_backend import CurrencyStore
from cnb_rates.exceptions import CnbRatesError, CurrencyNotFoundError
from cnb_rates.ingestion.cnb_feed import CnbFeed
from cnb_rates.ingestion.models import Currency
from cnb_rates.ingestion.resolver import RateResolver
from cnb_rates.ingestion.strategy import FeedSource
from cnb_rates.utils.cnb import CNB_DAILY_FEED_URL, DEFAULT_TIMEOUT_SECONDS, is_base_currency
from cnb_rates.utils.logger import get_logger

LOGGER = get_logger(__name__)

__all__ = [
    "CurrencyOutcome",
    "ExchangeRateUpdater",
    "OutcomeStatus",
    "SyncReport",
    "main",
    "parse_args",
]


class OutcomeStatus(str, Enum):
    UPDATED = "updated"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(slots=True)
class CurrencyOutcome:
    """What happened to one currency during an update."""

    currency: Currency
    status: OutcomeStatus
    previous_rate: Decimal | None = None
    new_rate: Decimal | None = None
    error: Exception | None = None


@dataclass(slots=True)
class SyncReport:
    """Per-currency outcomes collected by one sync cycle."""

    feed: CnbFeed
    outcomes: list[CurrencyOutcome] = field(default_factory=list)

    @property
    def updated(self) -> list[CurrencyOutcome]:
        return [o for o in self.outcomes if o.status is OutcomeStatus.UPDATED]

    @property
    def skipped(self) -> list[CurrencyOutcome]:
        return [o for o in self.outcomes if o.status is OutcomeStatus.SKIPPED]

    @property
    def failed(self) -> list[CurrencyOutcome]:
        return [o for o in self.outcomes if o.status is OutcomeStatus.FAILED]

    @property
    def succeeded(self) -> bool:
        return not self.failed


class ExchangeRateUpdater:
    """Fetch, resolve and persist CZK exchange rates for stored currencies."""

    def __init__(self, store: CurrencyStore, source: FeedSource) -> None:
        self.store = store
        self.source = source
        self.resolver = RateResolver(source)

    def fetch_csv_from_cnb_api(self, rate_date: date | None = None) -> str:
        """Return the raw CNB feed for ``rate_date`` (today when omitted)."""

        return self.source.fetch(rate_date)

    def pick_exchange_rate_from_cnb_csv(
        self,
        currency: Currency,
        cnb_csv: str | CnbFeed | None = None,
        rate_date: date | None = None,
    ) -> Decimal:
        """Resolve the rate of ``currency`` to CZK without persisting it."""

        return self.resolver.resolve(currency, cnb_csv, rate_date)

    def update_exchange_rate_to_czk(
        self,
        currency: Currency,
        cnb_csv: str | CnbFeed | None = None,
        rate_date: date | None = None,
    ) -> CurrencyOutcome:
        """Refresh and store the rate of a single currency.

        ``cnb_csv`` lets batch callers reuse one download; when omitted the
        feed is fetched here. Resolution and persistence errors propagate.
        """

        if is_base_currency(currency):
            return CurrencyOutcome(
                currency=currency,
                status=OutcomeStatus.SKIPPED,
                previous_rate=currency.exchange_rate_to_czk,
                new_rate=currency.exchange_rate_to_czk,
            )

        new_rate = self.pick_exchange_rate_from_cnb_csv(currency, cnb_csv, rate_date)
        previous_rate = currency.exchange_rate_to_czk
        currency.exchange_rate_to_czk = new_rate
        try:
            self.store.save_currency(currency)
        except Exception:
            currency.exchange_rate_to_czk = previous_rate
            raise
        LOGGER.info(
            "Exchange rate of currency: %s updated from %s to %s",
            currency.title,
            previous_rate,
            new_rate,
        )
        return CurrencyOutcome(
            currency=currency,
            status=OutcomeStatus.UPDATED,
            previous_rate=previous_rate,
            new_rate=new_rate,
        )

    def update_exchange_rate_by_id(
        self,
        currency_id: int,
        cnb_csv: str | CnbFeed | None = None,
        rate_date: date | None = None,
    ) -> CurrencyOutcome:
        currency = self.store.get_currency(currency_id)
        if currency is None:
            raise CurrencyNotFoundError(currency_id)
        return self.update_exchange_rate_to_czk(currency, cnb_csv, rate_date)

    def update_all_exchange_rates(self) -> SyncReport:
        """Update every stored currency from a single download of today's feed.

        Only a failed download (or listing) aborts the cycle. A currency that
        fails is logged and reported, and the loop moves on to the next one.
        """

        feed = CnbFeed(raw=self.fetch_csv_from_cnb_api())
        currencies = self.store.list_currencies()
        report = SyncReport(feed=feed)
        for currency in currencies:
            report.outcomes.append(
                self._isolated(currency, lambda c: self.update_exchange_rate_to_czk(c, feed))
            )
        LOGGER.info(
            "Exchange rate sync finished: %s updated, %s skipped, %s failed",
            len(report.updated),
            len(report.skipped),
            len(report.failed),
        )
        return report

    @staticmethod
    def _isolated(
        currency: Currency, action: Callable[[Currency], CurrencyOutcome]
    ) -> CurrencyOutcome:
        try:
            return action(currency)
        except Exception as exc:  # noqa: BLE001
            LOGGER.error(
                "Updating exchange rate of currency: %s failed: %s",
                currency.title,
                exc,
                exc_info=exc,
            )
            return CurrencyOutcome(
                currency=currency,
                status=OutcomeStatus.FAILED,
                previous_rate=currency.exchange_rate_to_czk,
                error=exc,
            )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--db",
        dest="db",
        default=None,
        help="Database DSN or SQLite file path (defaults to the bundled currencies.db)",
    )
    parser.add_argument("--feed-url", dest="feed_url", default=CNB_DAILY_FEED_URL, help="CNB feed URL")
    parser.add_argument(
        "--timeout",
        dest="timeout",
        type=float,
        default=DEFAULT_TIMEOUT_SECONDS,
        help="HTTP timeout in seconds",
    )
    parser.add_argument(
        "--currency-id",
        dest="currency_id",
        type=int,
        default=None,
        help="Update only the currency with this id",
    )
    parser.add_argument(
        "--date",
        dest="rate_date",
        type=date.fromisoformat,
        default=None,
        help="Fixing date (YYYY-MM-DD) used with --currency-id",
    )
    args = parser.parse_args(argv)
    if args.rate_date is not None and args.currency_id is None:
        parser.error("--date can only be combined with --currency-id")
    return args


def main(argv: list[str] | None = None) -> int:
    from cnb_rates import CnbRates

    args = parse_args(argv)
    with CnbRates(args.db, feed_url=args.feed_url, timeout=args.timeout) as rates:
        try:
            rates.ensure_schema()
            if args.currency_id is not None:
                outcome = rates.update_exchange_rate_by_id(args.currency_id, rate_date=args.rate_date)
                LOGGER.info("%s: %s", outcome.currency.title, outcome.status.value)
            else:
                rates.update_all_exchange_rates()
        except CnbRatesError as exc:
            LOGGER.error("Exchange rate update failed: %s", exc)
            return 1
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())

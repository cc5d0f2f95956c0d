"""Sync orchestration tests against an in-memory currency store."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Sequence

import pytest

from cnb_rates.db.base_backend import CurrencyStore
from cnb_rates.db.sqlite_manager import PersistenceResult
from cnb_rates.exceptions import (
    CurrencyNotFoundError,
    FetchError,
    MalformedRowError,
    PersistenceError,
    RateNotFoundError,
)
from cnb_rates.ingestion.models import Currency
from cnb_rates.sync.update_rates import ExchangeRateUpdater, OutcomeStatus

FEED = (
    "16.10.2026 #200\n"
    "Country|Currency|Amount|Code|Rate\n"
    "EMU|euro|1|EUR|24.300\n"
    "Hungary|forint|100|HUF|6.200\n"
    "USA|dollar|1|USD|22.500\n"
    "Japan|yen|100|JPY|oops\n"
)
WELL_FORMED_FEED = FEED.replace("Japan|yen|100|JPY|oops\n", "")


class _MemoryStore(CurrencyStore):
    def __init__(self, currencies: Sequence[Currency] = ()) -> None:
        self.rows: dict[int, Currency] = {}
        self.saved: list[tuple[int, Decimal | None]] = []
        self.fail_on: set[int] = set()
        self.add_currencies(currencies)

    def ensure_schema(self) -> None:
        return None

    def list_currencies(self) -> list[Currency]:
        return [replace(self.rows[key]) for key in sorted(self.rows)]

    def get_currency(self, currency_id: int) -> Currency | None:
        row = self.rows.get(currency_id)
        return replace(row) if row is not None else None

    def save_currency(self, currency: Currency) -> None:
        assert currency.id is not None
        if currency.id in self.fail_on:
            raise PersistenceError(f"disk full while saving {currency.short}")
        self.rows[currency.id] = replace(currency)
        self.saved.append((currency.id, currency.exchange_rate_to_czk))

    def add_currencies(self, rows: Sequence[Currency]) -> PersistenceResult:
        for row in rows:
            assert row.id is not None
            self.rows[row.id] = replace(row)
        return PersistenceResult(inserted=len(rows))


class _StaticSource:
    def __init__(self, raw: str = FEED, error: Exception | None = None) -> None:
        self.raw = raw
        self.error = error
        self.calls: list[date | None] = []

    def fetch(self, rate_date: date | None = None) -> str:
        self.calls.append(rate_date)
        if self.error is not None:
            raise self.error
        return self.raw


@pytest.fixture()
def store() -> _MemoryStore:
    return _MemoryStore(
        [
            Currency(id=1, title="Czech koruna", short="CZK", symbol="Kč", exchange_rate_to_czk=Decimal(1)),
            Currency(id=2, title="Euro", short="EUR", symbol="€", exchange_rate_to_czk=Decimal("25")),
            Currency(id=3, title="Hungarian forint", short="HUF", symbol="Ft"),
            Currency(id=4, title="Japanese yen", short="JPY", symbol="¥"),
            Currency(id=5, title="US dollar", short="USD", symbol="$"),
        ]
    )


def _rates(store: _MemoryStore) -> dict[str, Decimal | None]:
    return {row.short: row.exchange_rate_to_czk for row in store.rows.values()}


def test_update_all_fetches_once_and_isolates_failures(store: _MemoryStore) -> None:
    source = _StaticSource()
    updater = ExchangeRateUpdater(store, source)

    report = updater.update_all_exchange_rates()

    assert source.calls == [None]
    assert [o.currency.short for o in report.updated] == ["EUR", "HUF", "USD"]
    assert [o.currency.short for o in report.skipped] == ["CZK"]
    assert [o.currency.short for o in report.failed] == ["JPY"]
    assert isinstance(report.failed[0].error, MalformedRowError)
    assert report.succeeded is False
    assert _rates(store) == {
        "CZK": Decimal(1),
        "EUR": Decimal("24.3"),
        "HUF": Decimal("0.062"),
        "JPY": None,
        "USD": Decimal("22.5"),
    }


def test_update_all_logs_each_update_and_failure(
    store: _MemoryStore, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.INFO):
        ExchangeRateUpdater(store, _StaticSource()).update_all_exchange_rates()

    assert "Exchange rate of currency: Euro updated from 25 to 24.300" in caplog.text
    failures = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(failures) == 1
    assert "Japanese yen" in failures[0].getMessage()


def test_update_all_continues_after_store_failure(store: _MemoryStore) -> None:
    store.fail_on.add(2)

    report = ExchangeRateUpdater(store, _StaticSource()).update_all_exchange_rates()

    failed = {o.currency.short: o.error for o in report.failed}
    assert isinstance(failed["EUR"], PersistenceError)
    assert store.rows[2].exchange_rate_to_czk == Decimal("25")
    assert store.rows[5].exchange_rate_to_czk == Decimal("22.5")


def test_update_all_reports_currencies_missing_from_feed(store: _MemoryStore) -> None:
    store.add_currencies([Currency(id=6, title="Swiss franc", short="CHF", symbol="Fr")])

    report = ExchangeRateUpdater(store, _StaticSource(WELL_FORMED_FEED)).update_all_exchange_rates()

    failed = {o.currency.short: o.error for o in report.failed}
    assert set(failed) == {"CHF", "JPY"}
    assert all(isinstance(error, RateNotFoundError) for error in failed.values())
    assert len(report.updated) == 3


def test_currency_scanned_past_a_bad_row_fails_alone(store: _MemoryStore) -> None:
    store.add_currencies([Currency(id=6, title="Swiss franc", short="CHF", symbol="Fr")])

    report = ExchangeRateUpdater(store, _StaticSource()).update_all_exchange_rates()

    failed = {o.currency.short: o.error for o in report.failed}
    assert set(failed) == {"JPY", "CHF"}
    assert isinstance(failed["CHF"], MalformedRowError)
    assert [o.currency.short for o in report.updated] == ["EUR", "HUF", "USD"]


def test_update_all_aborts_when_feed_cannot_be_fetched(store: _MemoryStore) -> None:
    source = _StaticSource(error=FetchError("https://cnb.example", status_code=500))

    with pytest.raises(FetchError):
        ExchangeRateUpdater(store, source).update_all_exchange_rates()

    assert store.saved == []


def test_update_all_is_idempotent_for_an_unchanged_feed(store: _MemoryStore) -> None:
    updater = ExchangeRateUpdater(store, _StaticSource())

    updater.update_all_exchange_rates()
    first = _rates(store)
    updater.update_all_exchange_rates()

    assert _rates(store) == first


def test_base_currency_is_skipped_without_saving(store: _MemoryStore) -> None:
    source = _StaticSource()
    crown = store.get_currency(1)
    assert crown is not None

    outcome = ExchangeRateUpdater(store, source).update_exchange_rate_to_czk(crown)

    assert outcome.status is OutcomeStatus.SKIPPED
    assert store.saved == []
    assert source.calls == []


def test_single_update_fetches_feed_when_not_supplied(store: _MemoryStore) -> None:
    source = _StaticSource()
    euro = store.get_currency(2)
    assert euro is not None

    outcome = ExchangeRateUpdater(store, source).update_exchange_rate_to_czk(euro)

    assert outcome.status is OutcomeStatus.UPDATED
    assert outcome.previous_rate == Decimal("25")
    assert outcome.new_rate == Decimal("24.3")
    assert euro.exchange_rate_to_czk == Decimal("24.3")
    assert source.calls == [None]


def test_single_update_propagates_errors(store: _MemoryStore) -> None:
    yen = store.get_currency(4)
    assert yen is not None

    with pytest.raises(MalformedRowError):
        ExchangeRateUpdater(store, _StaticSource()).update_exchange_rate_to_czk(yen, FEED)


def test_failed_save_restores_in_memory_rate(store: _MemoryStore) -> None:
    store.fail_on.add(5)
    dollar = store.get_currency(5)
    assert dollar is not None

    with pytest.raises(PersistenceError):
        ExchangeRateUpdater(store, _StaticSource()).update_exchange_rate_to_czk(dollar, FEED)

    assert dollar.exchange_rate_to_czk is None


def test_update_by_id_uses_requested_fixing_date(store: _MemoryStore) -> None:
    source = _StaticSource()

    outcome = ExchangeRateUpdater(store, source).update_exchange_rate_by_id(
        3, rate_date=date(2026, 10, 16)
    )

    assert outcome.new_rate == Decimal("0.062")
    assert source.calls == [date(2026, 10, 16)]
    assert store.rows[3].exchange_rate_to_czk == Decimal("0.062")


def test_update_by_unknown_id_raises(store: _MemoryStore) -> None:
    source = _StaticSource()

    with pytest.raises(CurrencyNotFoundError) as excinfo:
        ExchangeRateUpdater(store, source).update_exchange_rate_by_id(99)

    assert excinfo.value.currency_id == 99
    assert source.calls == []


def test_pick_exchange_rate_does_not_persist(store: _MemoryStore) -> None:
    updater = ExchangeRateUpdater(store, _StaticSource())
    dollar = store.get_currency(5)
    assert dollar is not None

    assert updater.pick_exchange_rate_from_cnb_csv(dollar, FEED) == Decimal("22.5")
    assert store.saved == []

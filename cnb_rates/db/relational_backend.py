"""Shared logic for SQL (Postgres/MySQL) currency stores."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping, Sequence

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from cnb_rates.db.base_backend import CurrencyStore
from cnb_rates.db.sqlite_manager import PersistenceResult
from cnb_rates.exceptions import PersistenceError
from cnb_rates.ingestion.models import Currency
from cnb_rates.utils.logger import get_logger

LOGGER = get_logger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS currencies (
    id INTEGER NOT NULL PRIMARY KEY,
    title VARCHAR(255) NOT NULL,
    short VARCHAR(3) NOT NULL,
    symbol VARCHAR(16) NOT NULL DEFAULT '',
    exchange_rate_to_czk NUMERIC(18, 6) NULL
);
"""

SELECT_ALL_SQL = "SELECT id, title, short, symbol, exchange_rate_to_czk FROM currencies ORDER BY id"
SELECT_ONE_SQL = (
    "SELECT id, title, short, symbol, exchange_rate_to_czk FROM currencies WHERE id = :id"
)
NEXT_ID_SQL = "SELECT COALESCE(MAX(id), 0) + 1 FROM currencies"
INSERT_SQL = """
INSERT INTO currencies(id, title, short, symbol, exchange_rate_to_czk)
VALUES(:id, :title, :short, :symbol, :exchange_rate_to_czk)
"""
UPDATE_SQL = """
UPDATE currencies
SET title = :title,
    short = :short,
    symbol = :symbol,
    exchange_rate_to_czk = :exchange_rate_to_czk
WHERE id = :id
"""


class RelationalBackend(CurrencyStore):
    """Base class that encapsulates SQLAlchemy powered interactions."""

    def __init__(self, url: str) -> None:
        self.url = url
        self._engine_instance: Engine | None = None

    def _get_engine(self) -> Engine:
        if self._engine_instance is None:
            self._engine_instance = create_engine(self.url, future=True)
        return self._engine_instance

    def ensure_schema(self) -> None:
        try:
            with self._get_engine().begin() as connection:
                LOGGER.info("Ensuring currencies schema exists")
                connection.execute(text("SELECT 1"))
                connection.execute(text(SCHEMA_SQL))
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to ensure currencies schema: {exc}") from exc

    def list_currencies(self) -> list[Currency]:
        try:
            with self._get_engine().connect() as connection:
                return [_row_to_currency(row._mapping) for row in connection.execute(text(SELECT_ALL_SQL))]
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to list currencies: {exc}") from exc

    def get_currency(self, currency_id: int) -> Currency | None:
        try:
            with self._get_engine().connect() as connection:
                row = connection.execute(text(SELECT_ONE_SQL), {"id": currency_id}).first()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to load currency {currency_id}: {exc}") from exc
        return _row_to_currency(row._mapping) if row is not None else None

    def save_currency(self, currency: Currency) -> None:
        if currency.id is None:
            raise PersistenceError(f"Currency {currency.title!r} has no id and cannot be saved")
        try:
            with self._get_engine().begin() as connection:
                updated = connection.execute(text(UPDATE_SQL), _params(currency)).rowcount
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to save currency {currency.title!r}: {exc}") from exc
        if not updated:
            raise PersistenceError(f"Currency with id {currency.id} does not exist")

    def add_currencies(self, rows: Sequence[Currency]) -> PersistenceResult:
        result = PersistenceResult()
        if not rows:
            return result
        try:
            with self._get_engine().begin() as connection:
                for row in rows:
                    if row.id is not None and self._exists(connection, row.id):
                        connection.execute(text(UPDATE_SQL), _params(row))
                        result.updated += 1
                        continue
                    if row.id is None:
                        row.id = int(connection.execute(text(NEXT_ID_SQL)).scalar_one())
                    connection.execute(text(INSERT_SQL), _params(row))
                    result.inserted += 1
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to store currencies: {exc}") from exc
        return result

    @staticmethod
    def _exists(connection: Connection, currency_id: int) -> bool:
        return connection.execute(text(SELECT_ONE_SQL), {"id": currency_id}).first() is not None

    def close(self) -> None:  # pragma: no cover - trivial resource cleanup
        if self._engine_instance is not None:
            self._engine_instance.dispose()


def _params(currency: Currency) -> dict[str, Any]:
    return {
        "id": currency.id,
        "title": currency.title,
        "short": currency.short,
        "symbol": currency.symbol,
        "exchange_rate_to_czk": (
            str(currency.exchange_rate_to_czk)
            if currency.exchange_rate_to_czk is not None
            else None
        ),
    }


def _row_to_currency(mapping: Mapping[str, Any]) -> Currency:
    return Currency(
        id=int(mapping["id"]),
        title=mapping["title"],
        short=mapping["short"],
        symbol=mapping["symbol"],
        exchange_rate_to_czk=_normalise_rate(mapping["exchange_rate_to_czk"]),
    )


def _normalise_rate(value: object) -> Decimal | None:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


__all__ = ["RelationalBackend"]

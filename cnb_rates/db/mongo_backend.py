"""MongoDB currency store."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping, Sequence

from bson.decimal128 import Decimal128
from pymongo import MongoClient, ReplaceOne
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from cnb_rates.db.base_backend import CurrencyStore
from cnb_rates.db.sqlite_manager import PersistenceResult
from cnb_rates.exceptions import PersistenceError
from cnb_rates.ingestion.models import Currency
from cnb_rates.utils.logger import get_logger

LOGGER = get_logger(__name__)


class MongoBackend(CurrencyStore):
    """Store currencies as documents keyed by their numeric id."""

    def __init__(self, url: str, *, database: str | None = None) -> None:
        self.url = url
        self._client = MongoClient(url)
        db = self._client.get_default_database() if database is None else self._client[database]
        if db is None:
            raise ValueError("MongoDB connection URI must include a database name")
        self._collection: Collection = db["currencies"]

    def ensure_schema(self) -> None:
        try:
            LOGGER.info("Ensuring MongoDB currencies collection exists")
            self._client.admin.command("ping")
            self._collection.create_index([("short", 1)])
        except PyMongoError as exc:  # pragma: no cover - error path
            raise PersistenceError(f"Failed to ensure MongoDB schema: {exc}") from exc

    def list_currencies(self) -> list[Currency]:
        try:
            docs = self._collection.find({}).sort("_id", 1)
            return [_doc_to_currency(doc) for doc in docs]
        except PyMongoError as exc:
            raise PersistenceError(f"Failed to list MongoDB currencies: {exc}") from exc

    def get_currency(self, currency_id: int) -> Currency | None:
        try:
            doc = self._collection.find_one({"_id": currency_id})
        except PyMongoError as exc:
            raise PersistenceError(f"Failed to load MongoDB currency {currency_id}: {exc}") from exc
        return _doc_to_currency(doc) if doc is not None else None

    def save_currency(self, currency: Currency) -> None:
        if currency.id is None:
            raise PersistenceError(f"Currency {currency.title!r} has no id and cannot be saved")
        try:
            result = self._collection.update_one(
                {"_id": currency.id},
                {"$set": _currency_fields(currency)},
            )
        except PyMongoError as exc:
            raise PersistenceError(f"Failed to save MongoDB currency {currency.title!r}: {exc}") from exc
        if result.matched_count == 0:
            raise PersistenceError(f"Currency with id {currency.id} does not exist")

    def add_currencies(self, rows: Sequence[Currency]) -> PersistenceResult:
        result = PersistenceResult()
        if not rows:
            return result
        operations: list[ReplaceOne] = []
        try:
            next_id = self._next_id()
            for row in rows:
                if row.id is None:
                    row.id = next_id
                    next_id += 1
                elif self._collection.find_one({"_id": row.id}) is not None:
                    result.updated += 1
                else:
                    next_id = max(next_id, row.id + 1)
                doc = {"_id": row.id, **_currency_fields(row)}
                operations.append(ReplaceOne({"_id": row.id}, doc, upsert=True))
            self._collection.bulk_write(operations, ordered=True)
        except PyMongoError as exc:  # pragma: no cover - error path
            raise PersistenceError(f"Failed to insert MongoDB currencies: {exc}") from exc
        result.inserted = len(rows) - result.updated
        return result

    def _next_id(self) -> int:
        latest = self._collection.find_one(sort=[("_id", -1)])
        return int(latest["_id"]) + 1 if latest else 1

    def close(self) -> None:  # pragma: no cover - trivial cleanup
        self._client.close()


def _currency_fields(currency: Currency) -> dict[str, Any]:
    rate = currency.exchange_rate_to_czk
    return {
        "title": currency.title,
        "short": currency.short,
        "symbol": currency.symbol,
        "exchange_rate_to_czk": Decimal128(rate) if rate is not None else None,
    }


def _doc_to_currency(doc: Mapping[str, Any]) -> Currency:
    rate = doc.get("exchange_rate_to_czk")
    if isinstance(rate, Decimal128):
        rate = rate.to_decimal()
    elif rate is not None:
        rate = Decimal(str(rate))
    return Currency(
        id=int(doc["_id"]),
        title=doc.get("title", ""),
        short=doc.get("short", ""),
        symbol=doc.get("symbol", ""),
        exchange_rate_to_czk=rate,
    )


__all__ = ["MongoBackend"]

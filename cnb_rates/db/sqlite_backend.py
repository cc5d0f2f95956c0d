"""SQLite currency store implementation."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from cnb_rates.db import DEFAULT_SQLITE_DB_PATH
from cnb_rates.db.base_backend import CurrencyStore
from cnb_rates.db.sqlite_manager import PersistenceResult, SQLiteManager
from cnb_rates.ingestion.models import Currency


class SQLiteBackend(CurrencyStore):
    """Store currencies in the bundled SQLite database."""

    def __init__(
        self,
        db_path: str | Path = DEFAULT_SQLITE_DB_PATH,
        *,
        manager: SQLiteManager | None = None,
    ) -> None:
        self.manager = manager or SQLiteManager(db_path)
        self.db_path = Path(self.manager.db_path)

    def ensure_schema(self) -> None:
        # ``SQLiteManager`` creates the schema in its constructor.
        return None

    def list_currencies(self) -> list[Currency]:
        return self.manager.list_currencies()

    def get_currency(self, currency_id: int) -> Currency | None:
        return self.manager.get_currency(currency_id)

    def save_currency(self, currency: Currency) -> None:
        self.manager.save_currency(currency)

    def add_currencies(self, rows: Sequence[Currency]) -> PersistenceResult:
        return self.manager.add_currencies(rows)

    def close(self) -> None:  # pragma: no cover - trivial delegator
        self.manager.close()


__all__ = ["SQLiteBackend"]

"""Currency store interfaces for cnb_rates."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from cnb_rates.db.sqlite_manager import PersistenceResult
from cnb_rates.ingestion.models import Currency


class CurrencyStore(ABC):
    """Common interface implemented by every database backend."""

    @abstractmethod
    def ensure_schema(self) -> None:
        """Create required tables/collections and verify connectivity."""

    @abstractmethod
    def list_currencies(self) -> list[Currency]:
        """Return every stored currency."""

    @abstractmethod
    def get_currency(self, currency_id: int) -> Currency | None:
        """Return the currency with ``currency_id`` or ``None``."""

    @abstractmethod
    def save_currency(self, currency: Currency) -> None:
        """Persist a mutated currency; the currency must already exist."""

    @abstractmethod
    def add_currencies(self, rows: Sequence[Currency]) -> PersistenceResult:
        """Insert or overwrite currencies in bulk."""

    def close(self) -> None:  # pragma: no cover - optional cleanup hook
        """Backends may override to release connections/resources."""

    def __enter__(self) -> "CurrencyStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = ["CurrencyStore"]

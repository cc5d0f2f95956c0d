"""CNB-specific constants and helpers used across the package."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - imported only for type checking
    from cnb_rates.ingestion.models import Currency

BASE_CURRENCY_CODE = "CZK"
BASE_CURRENCY_SYMBOL = "Kč"
CNB_DATE_FORMAT = "%d.%m.%Y"
CNB_DAILY_FEED_URL = (
    "https://www.cnb.cz/en/financial-markets/foreign-exchange-market/"
    "central-bank-exchange-rate-fixing/central-bank-exchange-rate-fixing/daily.txt?date="
)
DEFAULT_TIMEOUT_SECONDS = 30.0


def is_base_currency(currency: "Currency") -> bool:
    """Return True when ``currency`` is the Czech crown itself."""

    return currency.short == BASE_CURRENCY_CODE or currency.symbol == BASE_CURRENCY_SYMBOL


def format_feed_date(day: date) -> str:
    """Render ``day`` the way the CNB feed expects it in the query string."""

    return day.strftime(CNB_DATE_FORMAT)


__all__ = [
    "BASE_CURRENCY_CODE",
    "BASE_CURRENCY_SYMBOL",
    "CNB_DATE_FORMAT",
    "CNB_DAILY_FEED_URL",
    "DEFAULT_TIMEOUT_SECONDS",
    "format_feed_date",
    "is_base_currency",
]

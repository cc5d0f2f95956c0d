"""requests-based downloader for the CNB daily exchange rate fixing."""

from __future__ import annotations

from datetime import date
from typing import Optional

import requests

from cnb_rates.exceptions import FetchError
from cnb_rates.utils.cnb import CNB_DAILY_FEED_URL, DEFAULT_TIMEOUT_SECONDS, format_feed_date
from cnb_rates.utils.logger import get_logger

LOGGER = get_logger(__name__)


class CNBFeedClient:
    """Download the pipe-delimited CNB fixing as text."""

    def __init__(
        self,
        *,
        feed_url: str = CNB_DAILY_FEED_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
        encoding: str = "utf-8",
    ) -> None:
        self.feed_url = feed_url
        self.timeout = timeout
        self.encoding = encoding
        self._owns_session = session is None
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", "cnb-rates/1.0")

    def build_url(self, rate_date: date | None = None) -> str:
        """Return the feed URL, suffixed with ``DD.MM.YYYY`` when a date is given."""

        if rate_date is None:
            return self.feed_url
        return f"{self.feed_url}{format_feed_date(rate_date)}"

    def fetch(self, rate_date: date | None = None) -> str:
        """Download the feed for ``rate_date`` (today's fixing when omitted)."""

        url = self.build_url(rate_date)
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            LOGGER.exception("Error while fetching exchange rates from CNB API for URL %s", url)
            raise FetchError(url) from exc

        if not response.ok:
            LOGGER.error(
                "CNB API returned an error status code: %s for URL: %s",
                response.status_code,
                url,
            )
            raise FetchError(url, status_code=response.status_code)

        # The fixing lists the crown as "Kč", so never trust requests' latin-1 default.
        response.encoding = self.encoding
        return response.text

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "CNBFeedClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


__all__ = ["CNBFeedClient"]

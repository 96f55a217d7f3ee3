"""HTTP transport for page fetches."""

import asyncio
import logging
from typing import Protocol

import requests

from common.errors import TransportError

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    async def fetch(self, url: str) -> str:
        """Return the page text for ``url`` or raise ``TransportError``."""
        ...


class HttpFetcher:
    """Fetches pages with ``requests`` on a worker thread so the event loop never blocks."""

    def __init__(self, timeout: float = 30.0, user_agent: str | None = None):
        self.timeout = timeout
        self.headers = {"User-Agent": user_agent} if user_agent else {}

    async def fetch(self, url: str) -> str:
        return await asyncio.to_thread(self.fetch_sync, url)

    def fetch_sync(self, url: str) -> str:
        logger.debug("Visit %s", url)
        try:
            response = requests.get(url, timeout=self.timeout, headers=self.headers)
            response.raise_for_status()
            return response.text
        except requests.Timeout as exc:
            raise TransportError(url, f"timed out after {self.timeout}s") from exc
        except requests.RequestException as exc:
            raise TransportError(url, str(exc)) from exc
        except UnicodeDecodeError as exc:
            raise TransportError(url, f"undecodable body: {exc}") from exc

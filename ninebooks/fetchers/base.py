import httpx
import asyncio
import logging
from typing import Optional, Dict, Any, List
from abc import ABC, abstractmethod
import ninebooks.config
import ninebooks.models.books
from ninebooks.utils.isbn import is_isbn_query, strip_separators

logger = logging.getLogger(__name__)


class BaseFetcher(ABC):
    source: str = ""

    def __init__(self, api_url: str, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_url = api_url
        self.client: Optional[httpx.AsyncClient] = None
        self._transport = transport
        self._max_attempts = max(1, ninebooks.config.settings.search_provider_max_attempts)
        self._retry_delay = ninebooks.config.settings.search_provider_retry_delay

    async def __aenter__(self):
        self.client = httpx.AsyncClient(
            timeout=ninebooks.config.settings.provider_request_timeout,
            follow_redirects=True,
            transport=self._transport
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.client:
            await self.client.aclose()
            self.client = None

    async def _fetch_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> Optional[Dict[str, Any]]:
        for attempt in range(self._max_attempts):
            last_attempt = attempt == self._max_attempts - 1
            try:
                response = await self.client.get(url, params=params, headers=headers)
            except httpx.TimeoutException:
                logger.warning(f"{self.source} request timed out (attempt {attempt + 1})")
                if last_attempt:
                    return None
                await asyncio.sleep(self._retry_delay * (attempt + 1))
                continue
            except httpx.HTTPError as e:
                logger.warning(f"{self.source} request failed: {str(e)}")
                return None

            if response.status_code == 200:
                return response.json()
            if response.status_code == 429 and not last_attempt:
                await asyncio.sleep(self._retry_delay * (attempt + 1))
                continue

            logger.warning(f"{self.source} API error: {response.status_code}")
            return None

        return None

    async def search(self, query: str) -> List[ninebooks.models.books.BookSearchResult]:
        if not self.has_credentials():
            return []

        if is_isbn_query(query):
            return await self.search_by_isbn(strip_separators(query))
        return await self.search_by_text(query.strip())

    @abstractmethod
    def has_credentials(self) -> bool:
        pass

    @abstractmethod
    async def search_by_text(self, query: str) -> List[ninebooks.models.books.BookSearchResult]:
        pass

    @abstractmethod
    async def search_by_isbn(self, isbn: str) -> List[ninebooks.models.books.BookSearchResult]:
        pass

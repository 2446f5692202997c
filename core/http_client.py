import logging
import httpx
from typing import Optional
from fake_useragent import UserAgent
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

logger = logging.getLogger(__name__)

class HTTPClient:
    def __init__(self, timeout: float = 15.0, client: Optional[httpx.AsyncClient] = None):
        self.ua = UserAgent()
        self.timeout = timeout
        self.client = client or httpx.AsyncClient(http2=False, follow_redirects=True)

    def _get_headers(self):
        return {
            "User-Agent": self.ua.random,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
            "DNT": "1",
            "Connection": "keep-alive",
            "Upgrade-Insecure-Requests": "1",
            "Cache-Control": "max-age=0",
        }

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((httpx.RequestError, httpx.TimeoutException)),
        reraise=True,
    )
    async def fetch(self, url: str) -> str:
        """
        Fetches a page with retries on transport errors.
        HTTP error statuses are raised immediately as httpx.HTTPStatusError.
        """
        try:
            response = await self.client.get(url, headers=self._get_headers(), timeout=self.timeout)
            response.raise_for_status()
            logger.debug(f"Fetched {url} ({len(response.text)} bytes)")
            return response.text
        except httpx.HTTPError as e:
            logger.warning(f"Failed to fetch {url}: {e}")
            raise

    async def close(self):
        await self.client.aclose()

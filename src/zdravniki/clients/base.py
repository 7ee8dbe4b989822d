"""Base async HTTP client for plain-text upstream resources.

All upstream clients inherit from this base to ensure consistent behavior:
- Async/await for non-blocking I/O
- Connection pooling shared by concurrent requests
- Defensive validation of the response before its body is trusted
- Failures returned as values, never retried here

Usage:
    class MyTextClient(BaseAsyncClient):
        async def get_readme(self) -> Ok[str] | Failure:
            return await self.fetch_text("https://example.com/README.txt")

    async with MyTextClient() as client:
        result = await client.get_readme()
"""

import logging

import httpx

from zdravniki.results import Failure, FailureKind, Ok

logger = logging.getLogger(__name__)

_TEXT_CONTENT_TYPE = "text/plain"


class BaseAsyncClient:
    """Base async HTTP client returning validated text bodies.

    Args:
        base_url: Optional base URL for relative requests
        headers: Default headers for all requests
        timeout: Request timeout in seconds (default: 30)
    """

    def __init__(
        self,
        base_url: str = "",
        headers: dict[str, str] | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.headers = headers or {}
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "BaseAsyncClient":
        """Async context manager entry."""
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.timeout,
            limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def fetch_text(self, url: str) -> Ok[str] | Failure:
        """GET a plain-text resource and return its decoded body.

        The response is rejected when the status is not 2xx, when its
        content-type is not text/plain (e.g. an HTML error page served
        with 200), or when it carries no content-length header.

        Args:
            url: Absolute URL, or a path relative to base_url

        Returns:
            Ok with the decoded body, or a FETCH Failure

        Raises:
            RuntimeError: If used outside ``async with``
        """
        if not self._client:
            raise RuntimeError("Client not initialized. Use async with context manager.")

        logger.debug("GET %s", url)

        try:
            response = await self._client.get(url)
        except httpx.TimeoutException as e:
            logger.error("Request timeout for %s: %s", url, e)
            return Failure(FailureKind.FETCH, f"Request timeout: {e}", {"url": url})
        except httpx.NetworkError as e:
            logger.error("Network error for %s: %s", url, e)
            return Failure(FailureKind.FETCH, f"Network error: {e}", {"url": url})
        except httpx.HTTPError as e:
            logger.error("HTTP error for %s: %s", url, e)
            return Failure(FailureKind.FETCH, f"HTTP error: {e}", {"url": url})

        logger.debug("Response: %d for %s", response.status_code, url)

        if not response.is_success:
            logger.error(
                "Failed to fetch file from %s: %d %s",
                url, response.status_code, response.reason_phrase,
            )
            return Failure(
                FailureKind.FETCH,
                f"Failed to fetch file from {url}: {response.reason_phrase}",
                {"url": url, "status_code": response.status_code},
            )

        content_type = response.headers.get("content-type")
        if not content_type or _TEXT_CONTENT_TYPE not in content_type.lower():
            logger.error("Invalid content type for %s: %s", url, content_type)
            return Failure(
                FailureKind.FETCH,
                f"Invalid content type: {content_type}",
                {"url": url, "content_type": content_type},
            )

        if response.headers.get("content-length") is None:
            logger.error("Content length is missing for %s", url)
            return Failure(
                FailureKind.FETCH,
                "Content length is missing",
                {"url": url},
            )

        # Upstream files are UTF-8 regardless of the declared charset
        response.encoding = "utf-8"
        return Ok(response.text)

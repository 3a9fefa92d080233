from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Literal

import httpx
from httpx_retries import Retry, RetryTransport

from webtoon_dl.core.exceptions import RateLimitedError

log = logging.getLogger(__name__)

USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:109.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14.1; rv:109.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 Edg/120.0.2210.91",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_1) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 OPR/106.0.0.0",
]
"""
List of random user agents
"""

WebtoonURL = "https://www.webtoons.com"

ImageReferer = "http://www.webtoons.com"
"""The image CDN refuses requests without a webtoons referer"""

RetryStrategy = Literal["exponential", "linear", "fixed"]


@dataclass
class WebtoonHttpClient:
    """
    An asynchronous HTTP client configured for scrapping the webtoon website.

    The client uses HTTP/2, custom headers with a randomly selected user agent,
    and is configured with high limits for maximum connections and keep-alive connections.

    Attributes:
        proxy           : Optional proxy address for making requests.
        retry_strategy  : Optional retry strategy applied by the transport.
        transport       : Optional transport replacing the default one, mostly useful for tests.
    """

    proxy: str | None = None
    retry_strategy: RetryStrategy | None = None
    transport: httpx.AsyncBaseTransport | None = None

    _client: httpx.AsyncClient = field(init=False)

    def __post_init__(self) -> None:
        self._client = httpx.AsyncClient(
            limits=httpx.Limits(max_connections=200, max_keepalive_connections=200),
            http2=True,
            headers=self._generate_headers(),
            follow_redirects=True,
            proxy=self.proxy,
            transport=self.transport or self._build_transport(),
        )

    def _build_transport(self) -> httpx.AsyncBaseTransport:
        base_transport = httpx.AsyncHTTPTransport(http2=True)
        if self.retry_strategy is None:
            log.debug("No retry strategy provided; using default transport without retry")
            return base_transport

        max_retries = 10
        retry = {
            "exponential": Retry(total=max_retries, backoff_factor=0.25, respect_retry_after_header=True),
            "linear": Retry(total=max_retries, backoff_factor=0, backoff_jitter=1, respect_retry_after_header=True),
            "fixed": Retry(total=max_retries, backoff_factor=0, backoff_jitter=0, respect_retry_after_header=True),
        }.get(self.retry_strategy)

        return RetryTransport(retry=retry, transport=base_transport)

    async def __aenter__(self) -> WebtoonHttpClient:
        await self._client.__aenter__()
        return self

    async def __aexit__(self, *_: tuple) -> None:
        await self._client.__aexit__()

    async def get(self, url: str, headers: dict[str, str] | None = None) -> httpx.Response:
        """
        Sends a GET request and raises on transport and HTTP errors.

        Raises:
            httpx.HTTPError on failure, RateLimitedError when the server answers with a 429 status.
        """
        response = await self._client.get(url, headers=headers)
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            if response.status_code == 429:
                raise RateLimitedError(f"Rate limited while fetching {url}") from exc
            raise
        return response

    async def get_html(self, url: str) -> str:
        """Fetches a page and returns its HTML."""
        return (await self.get(url)).text

    async def get_json(self, url: str) -> Any:
        """Fetches and decodes a JSON document."""
        return (await self.get(url)).json()

    async def get_image(self, url: str) -> bytes:
        """Fetches the raw bytes of an image, sending the referer expected by the image CDN."""
        response = await self.get(url, headers={"referer": ImageReferer, **self._generate_headers()})
        return response.content

    def _generate_headers(self) -> dict[str, str]:
        """
        Generates HTTP headers for the webtoon client, including a randomly chosen user agent.
        """
        return {
            "accept-language": "en-US,en;q=0.9",
            "dnt": "1",
            "user-agent": random.choice(USER_AGENTS),
        }

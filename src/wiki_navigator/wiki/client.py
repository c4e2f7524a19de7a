# ABOUTME: Async MediaWiki Action API client with endpoint discovery and per-wiki rate limiting
# ABOUTME: Turns (wiki, params) into a decoded envelope and classifies transport vs API failures

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any, TypeVar

import httpx

from wiki_navigator.utils.logging import get_logger, log_api_call
from wiki_navigator.wiki.envelopes import (
    ApiErrorResult,
    ApiResult,
    CompareResult,
    ParseResult,
    QueryResult,
    decode_response,
)
from wiki_navigator.wiki.errors import EndpointDiscoveryError, WikiAPIError, WikiResponseError, WikiTransportError
from wiki_navigator.wiki.ratelimit import TokenBucket

DEFAULT_USER_AGENT = "WikiNavigator/1.0 (https://github.com/wiki-navigator/wiki-navigator)"

# Canonical path first, then the Wikimedia-style prefix.
API_PATH_CANDIDATES = ("/api.php", "/w/api.php")

DISCOVERY_PARAMS = {"action": "query", "meta": "siteinfo", "format": "json"}

COMMON_PARAMS = {
    "format": "json",
    "formatversion": "2",
    "utf8": "1",
    "maxlag": "5",
}

COMPRESSED_BODY_PLACEHOLDER = "(compressed error response)"

R = TypeVar("R", QueryResult, ParseResult, CompareResult)


class MediaWikiClient:
    """Client for the MediaWiki Action API shared by every request in the process.

    Owns the discovered API path and the rate limiter of each wiki it has talked to;
    both live as long as the client. Independent wikis never throttle each other.
    The client does not retry.

    Args:
        user_agent: Identification string sent with every request
        timeout: Overall seconds allowed for a single call (connect + transfer)
        rate_limit: Requests per second allowed per wiki
        client: Optional pre-configured httpx client (dependency injection for tests)
    """

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 30.0,
        rate_limit: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.user_agent = user_agent
        self.timeout = timeout
        self.rate_limit = rate_limit
        self._owns_http_client = client is None
        self.http_client = client or httpx.AsyncClient(timeout=timeout)  # Allow for dependency injection
        self.http_client.headers.update({"User-Agent": user_agent, "Accept-Encoding": "gzip"})
        self._api_paths: dict[str, str] = {}
        self._discovery_locks: dict[str, asyncio.Lock] = {}
        self._limiters: dict[str, TokenBucket] = {}
        self.logger = get_logger(__name__)

    async def close(self) -> None:
        if self._owns_http_client:
            await self.http_client.aclose()

    async def __aenter__(self) -> MediaWikiClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def get_limiter(self, wiki_url: str) -> TokenBucket:
        """Return the wiki's rate limiter, creating it on first use."""
        limiter = self._limiters.get(wiki_url)
        if limiter is None:
            limiter = self._limiters.setdefault(wiki_url, TokenBucket(self.rate_limit, capacity=1))
        return limiter

    async def get_api_path(self, wiki_url: str) -> str:
        """Return the API path for a wiki, probing the candidates the first time.

        Raises:
            EndpointDiscoveryError: If no candidate answers with HTTP 200
        """
        path = self._api_paths.get(wiki_url)
        if path is not None:
            return path

        lock = self._discovery_locks.setdefault(wiki_url, asyncio.Lock())
        async with lock:
            # Another task may have finished discovery while we waited for the lock
            path = self._api_paths.get(wiki_url)
            if path is not None:
                return path

            for candidate in API_PATH_CANDIDATES:
                if await self._endpoint_answers(wiki_url + candidate):
                    self._api_paths[wiki_url] = candidate
                    self.logger.info("Discovered API endpoint", wiki_url=wiki_url, api_path=candidate)
                    return candidate

        raise EndpointDiscoveryError(wiki_url, list(API_PATH_CANDIDATES))

    async def _endpoint_answers(self, api_url: str) -> bool:
        try:
            async with asyncio.timeout(self.timeout):
                response = await self.http_client.get(api_url, params=DISCOVERY_PARAMS)
        except (httpx.HTTPError, TimeoutError) as e:
            self.logger.debug("API endpoint check failed", api_url=api_url, error=str(e))
            return False

        self.logger.debug("Checked API endpoint", api_url=api_url, status_code=response.status_code)
        return response.status_code == httpx.codes.OK

    @log_api_call("mediawiki")
    async def request(self, wiki_url: str, params: Mapping[str, Any]) -> QueryResult | ParseResult | CompareResult:
        """Issue one throttled GET against the wiki's API and decode the reply.

        Args:
            wiki_url: Scheme and host of the wiki, without a path
            params: Action parameters; output format parameters are always overridden

        Raises:
            WikiTransportError: Network failure, timeout, non-2xx status, or undecodable body
            WikiAPIError: The wiki returned an error envelope
            WikiResponseError: The reply matched no known envelope
        """
        await self.get_limiter(wiki_url).acquire()
        api_path = await self.get_api_path(wiki_url)

        query = {key: str(value) for key, value in params.items()}
        query.update(COMMON_PARAMS)

        try:
            async with asyncio.timeout(self.timeout):
                response = await self.http_client.get(wiki_url + api_path, params=query)
        except TimeoutError as e:
            raise WikiTransportError(f"request to {wiki_url} timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise WikiTransportError(f"http request to {wiki_url} failed: {e}") from e

        return self._decode(response)

    def _decode(self, response: httpx.Response) -> QueryResult | ParseResult | CompareResult:
        if not response.is_success:
            body = self._error_body(response)
            raise WikiTransportError(
                f"http status {response.status_code}: {body}", status_code=response.status_code, body=body
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise WikiTransportError(f"decode response: {e}", status_code=response.status_code) from e

        result: ApiResult = decode_response(payload)
        if isinstance(result, ApiErrorResult):
            raise WikiAPIError(code=result.code, message=result.info)
        return result

    @staticmethod
    def _error_body(response: httpx.Response) -> str:
        # httpx already inflated gzip; a body that still isn't text stays opaque
        try:
            return response.content.decode(response.encoding or "utf-8")
        except (UnicodeDecodeError, LookupError):
            return COMPRESSED_BODY_PLACEHOLDER

    async def query(self, wiki_url: str, params: Mapping[str, Any]) -> QueryResult:
        return await self._expect(wiki_url, {"action": "query", **params}, QueryResult, "query")

    async def parse(self, wiki_url: str, params: Mapping[str, Any]) -> ParseResult:
        return await self._expect(wiki_url, {"action": "parse", **params}, ParseResult, "parse")

    async def compare(self, wiki_url: str, params: Mapping[str, Any]) -> CompareResult:
        return await self._expect(wiki_url, {"action": "compare", **params}, CompareResult, "compare")

    async def _expect(self, wiki_url: str, params: Mapping[str, Any], kind: type[R], name: str) -> R:
        result = await self.request(wiki_url, params)
        if not isinstance(result, kind):
            raise WikiResponseError(f"empty {name} response")
        return result

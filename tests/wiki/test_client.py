# ABOUTME: Wire-level tests for MediaWikiClient using pytest-httpx
# ABOUTME: Covers endpoint discovery, forced parameters, error classification and timeouts

import asyncio
import re

import httpx
import pytest
import pytest_asyncio

from wiki_navigator.wiki.client import MediaWikiClient
from wiki_navigator.wiki.envelopes import ParseResult, QueryResult
from wiki_navigator.wiki.errors import EndpointDiscoveryError, WikiAPIError, WikiResponseError, WikiTransportError

WIKI_URL = "https://wiki.test"
API = re.compile(r"https://wiki\.test/api\.php(\?.*)?$")
W_API = re.compile(r"https://wiki\.test/w/api\.php(\?.*)?$")

SITEINFO = {"query": {"general": {"sitename": "Test Wiki", "mainpage": "Main Page", "lang": "en"}}}


@pytest_asyncio.fixture
async def client():
    client = MediaWikiClient(user_agent="WikiNavigatorTests/1.0", rate_limit=1000.0, timeout=5.0)
    yield client
    await client.close()


class TestEndpointDiscovery:
    @pytest.mark.asyncio
    async def test_falls_back_to_secondary_path_and_caches_it(self, client, httpx_mock):
        """Test fallback to /w/api.php and reuse of the discovered path."""
        httpx_mock.add_response(url=API, status_code=404)
        httpx_mock.add_response(url=W_API, json={"batchcomplete": True})
        httpx_mock.add_response(url=W_API, json=SITEINFO)
        httpx_mock.add_response(url=W_API, json=SITEINFO)

        first = await client.query(WIKI_URL, {"meta": "siteinfo"})
        second = await client.query(WIKI_URL, {"meta": "siteinfo"})

        assert first.general.sitename == "Test Wiki"
        assert second == first
        paths = [request.url.path for request in httpx_mock.get_requests()]
        assert paths == ["/api.php", "/w/api.php", "/w/api.php", "/w/api.php"]
        assert await client.get_api_path(WIKI_URL) == "/w/api.php"

    @pytest.mark.asyncio
    async def test_endpoint_check_is_a_siteinfo_query(self, client, httpx_mock):
        """Test that endpoint checks are lightweight siteinfo queries."""
        httpx_mock.add_response(url=API, json={"batchcomplete": True})

        assert await client.get_api_path(WIKI_URL) == "/api.php"

        check = httpx_mock.get_requests()[0]
        assert check.url.params["action"] == "query"
        assert check.url.params["meta"] == "siteinfo"
        assert check.url.params["format"] == "json"

    @pytest.mark.asyncio
    async def test_no_candidate_answers(self, client, httpx_mock):
        """Test the error raised when no candidate path answers."""
        httpx_mock.add_response(url=API, status_code=404)
        httpx_mock.add_exception(httpx.ConnectError("connection refused"), url=W_API)

        with pytest.raises(EndpointDiscoveryError) as exc_info:
            await client.query(WIKI_URL, {"meta": "siteinfo"})

        assert "no reachable API endpoint" in str(exc_info.value)
        assert exc_info.value.tried == ["/api.php", "/w/api.php"]
        assert isinstance(exc_info.value, WikiTransportError)

    @pytest.mark.asyncio
    async def test_concurrent_first_calls_check_each_candidate_once(self):
        """Test that simultaneous first requests to a wiki share a single endpoint discovery."""
        checked: list[str] = []

        async def handler(request: httpx.Request) -> httpx.Response:
            if "formatversion" not in request.url.params:
                checked.append(request.url.path)
                await asyncio.sleep(0.05)
                status = 200 if request.url.path == "/w/api.php" else 404
                return httpx.Response(status, json={"batchcomplete": True})
            return httpx.Response(200, json=SITEINFO)

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client = MediaWikiClient(client=http_client, rate_limit=1000.0)
        try:
            results = await asyncio.gather(*(client.query(WIKI_URL, {"meta": "siteinfo"}) for _ in range(3)))
        finally:
            await http_client.aclose()

        assert [result.general.sitename for result in results] == ["Test Wiki"] * 3
        assert checked == ["/api.php", "/w/api.php"]

    @pytest.mark.asyncio
    async def test_concurrent_first_use_shares_one_limiter(self):
        """Test that tasks racing to use a new wiki all receive the same limiter."""
        client = MediaWikiClient(rate_limit=5.0)

        async def first_use():
            await asyncio.sleep(0)
            return client.get_limiter(WIKI_URL)

        limiters = await asyncio.gather(*(first_use() for _ in range(5)))
        await client.close()

        assert all(limiter is limiters[0] for limiter in limiters)
        assert client.get_limiter(WIKI_URL) is limiters[0]


class TestRequestConstruction:
    @pytest.mark.asyncio
    async def test_forces_output_parameters_and_headers(self, client, httpx_mock):
        """Test that output parameters and headers are always forced."""
        httpx_mock.add_response(url=API, json={"batchcomplete": True})
        httpx_mock.add_response(url=API, json=SITEINFO)

        await client.query(WIKI_URL, {"meta": "siteinfo", "format": "xml"})

        request = httpx_mock.get_requests()[-1]
        params = request.url.params
        assert params["action"] == "query"
        assert params["format"] == "json"
        assert params["formatversion"] == "2"
        assert params["utf8"] == "1"
        assert params["maxlag"] == "5"
        assert request.headers["User-Agent"] == "WikiNavigatorTests/1.0"
        assert request.headers["Accept-Encoding"] == "gzip"

    def test_one_limiter_per_wiki(self):
        """Test that each wiki gets its own limiter."""
        client = MediaWikiClient(rate_limit=5.0)

        first = client.get_limiter("https://a.test")
        assert client.get_limiter("https://a.test") is first
        assert client.get_limiter("https://b.test") is not first
        assert first.rate == 5.0


class TestErrorClassification:
    @pytest.mark.asyncio
    async def test_error_envelope_becomes_api_error(self, client, httpx_mock):
        """Test that an error envelope raises WikiAPIError."""
        httpx_mock.add_response(url=API, json={"batchcomplete": True})
        httpx_mock.add_response(
            url=API,
            json={
                "error": {"code": "maxlag", "info": "Waiting for db1: 6 seconds lagged"},
                "query": {"general": {"sitename": "partial"}},
            },
        )

        with pytest.raises(WikiAPIError) as exc_info:
            await client.query(WIKI_URL, {"meta": "siteinfo"})

        error = exc_info.value
        assert error.code == "maxlag"
        assert error.is_overloaded
        assert str(error) == "mediawiki api error: maxlag: Waiting for db1: 6 seconds lagged"

    @pytest.mark.asyncio
    async def test_non_2xx_status_is_transport_error_with_body(self, client, httpx_mock):
        """Test that HTTP errors carry their status code and body."""
        httpx_mock.add_response(url=API, json={"batchcomplete": True})
        httpx_mock.add_response(url=API, status_code=503, text="Service Unavailable")

        with pytest.raises(WikiTransportError) as exc_info:
            await client.query(WIKI_URL, {"meta": "siteinfo"})

        assert exc_info.value.status_code == 503
        assert exc_info.value.body == "Service Unavailable"

    @pytest.mark.asyncio
    async def test_undecodable_json_is_transport_error(self, client, httpx_mock):
        """Test that a non-JSON body is a transport error."""
        httpx_mock.add_response(url=API, json={"batchcomplete": True})
        httpx_mock.add_response(url=API, text="<html>not json</html>")

        with pytest.raises(WikiTransportError):
            await client.query(WIKI_URL, {"meta": "siteinfo"})

    @pytest.mark.asyncio
    async def test_network_failure_is_transport_error(self, client, httpx_mock):
        """Test that connection failures are transport errors."""
        httpx_mock.add_response(url=API, json={"batchcomplete": True})
        httpx_mock.add_exception(httpx.ReadError("connection reset"), url=API)

        with pytest.raises(WikiTransportError, match="connection reset"):
            await client.query(WIKI_URL, {"meta": "siteinfo"})

    @pytest.mark.asyncio
    async def test_reply_without_envelope(self, client, httpx_mock):
        """Test a successful reply that carries no known envelope."""
        httpx_mock.add_response(url=API, json={"batchcomplete": True})
        httpx_mock.add_response(url=API, json={"batchcomplete": True})

        with pytest.raises(WikiResponseError):
            await client.query(WIKI_URL, {"meta": "siteinfo"})

    @pytest.mark.asyncio
    async def test_wrong_envelope_for_action(self, client, httpx_mock):
        """Test a reply whose envelope does not match the requested action."""
        httpx_mock.add_response(url=API, json={"batchcomplete": True})
        httpx_mock.add_response(url=API, json=SITEINFO)

        with pytest.raises(WikiResponseError, match="empty parse response"):
            await client.parse(WIKI_URL, {"page": "Ada Lovelace", "prop": "text"})


class TestDecodingThroughTransport:
    """Tests using httpx.MockTransport directly for behaviours pytest-httpx can't express."""

    @pytest.mark.asyncio
    async def test_overall_timeout_bounds_the_call(self):
        """Test that a slow reply is cut off by the overall timeout."""
        async def handler(request: httpx.Request) -> httpx.Response:
            if "formatversion" in request.url.params:
                await asyncio.sleep(5)
            return httpx.Response(200, json={"batchcomplete": True})

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client = MediaWikiClient(client=http_client, timeout=0.1, rate_limit=1000.0)
        try:
            with pytest.raises(WikiTransportError, match="timed out"):
                await client.query(WIKI_URL, {"meta": "siteinfo"})
        finally:
            await http_client.aclose()

    @pytest.mark.asyncio
    async def test_text_in_either_encoding(self):
        """Test rendered text as a bare string and wrapped in '*'."""
        replies = iter(
            [
                {"parse": {"title": "A", "text": "<p>bare</p>"}},
                {"parse": {"title": "A", "text": {"*": "<p>wrapped</p>"}}},
            ]
        )

        def handler(request: httpx.Request) -> httpx.Response:
            if "formatversion" not in request.url.params:
                return httpx.Response(200, json={})
            return httpx.Response(200, json=next(replies))

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client = MediaWikiClient(client=http_client, rate_limit=1000.0)
        bare = await client.parse(WIKI_URL, {"page": "A"})
        wrapped = await client.parse(WIKI_URL, {"page": "A"})
        await http_client.aclose()

        assert isinstance(bare, ParseResult)
        assert bare.text == "<p>bare</p>"
        assert wrapped.text == "<p>wrapped</p>"

    @pytest.mark.asyncio
    async def test_injected_client_is_not_closed(self):
        """Test that an injected httpx client is left open."""
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
        client = MediaWikiClient(client=http_client)
        await client.close()
        assert not http_client.is_closed
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_query_returns_typed_result(self):
        """Test that query replies decode to QueryResult."""
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"query": {"backlinks": [{"pageid": 1, "ns": 0, "title": "B"}]}})

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client = MediaWikiClient(client=http_client, rate_limit=1000.0)
        result = await client.query(WIKI_URL, {"list": "backlinks", "bltitle": "A"})
        await http_client.aclose()

        assert isinstance(result, QueryResult)
        assert [link.title for link in result.backlinks] == ["B"]

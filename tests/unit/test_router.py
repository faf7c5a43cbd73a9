"""
Unit tests for request classification and the extraction pipeline.
"""

import json
from unittest.mock import patch

import aiohttp
import pytest
from multidict import CIMultiDict
from yarl import URL

from corsgate.gateway.router import ExtractionRequest, Mode, ProxyRequest, classify, is_truthy

HTML_PAGE = """
<html><body>
  <h1>Title</h1>
  <p class="lead">Hello<b>World</b></p>
  <img src="x.png">
</body></html>
"""


def _envelope(formatted):
    return json.loads(formatted.body)


class TestClassify:
    @pytest.mark.parametrize(
        "params, mode",
        [
            ({}, Mode.STATIC),
            ({"selector": "h1"}, Mode.STATIC),
            ({"url": "", "selector": "h1", "attr": "src"}, Mode.STATIC),
            ({"url": "example.com"}, Mode.PROXY),
            ({"url": "example.com", "selector": ""}, Mode.PROXY),
            ({"url": "example.com", "attr": "href"}, Mode.PROXY),
            ({"url": "example.com", "selector": "h1"}, Mode.EXTRACT),
        ],
    )
    def test_modes(self, params, mode):
        assert classify(params) is mode


class TestIsTruthy:
    @pytest.mark.parametrize("value", ["", "1", "true", "yes", "anything"])
    def test_present_values_are_on(self, value):
        assert is_truthy(value)

    @pytest.mark.parametrize("value", [None, "0", "false", "FALSE", "no", "off"])
    def test_absent_or_false_like_values_are_off(self, value):
        assert not is_truthy(value)


class TestExtractionRequest:
    def test_from_params_normalizes_and_parses_flags(self):
        request = ExtractionRequest.from_params(
            {"url": "example.com", "selector": "img", "attr": "src", "spaced": "", "pretty": "1"}
        )

        assert request.target_url == "http://example.com"
        assert request.selector == "img"
        assert request.attribute_name == "src"
        assert request.attribute_mode
        assert request.spaced
        assert request.pretty

    def test_text_mode_when_attr_absent_or_empty(self):
        assert not ExtractionRequest.from_params({"url": "a.com", "selector": "p"}).attribute_mode
        assert not ExtractionRequest.from_params({"url": "a.com", "selector": "p", "attr": ""}).attribute_mode


class TestExtract:
    @pytest.mark.asyncio
    async def test_text_result(self, router, mock_upstream):
        mock_upstream.get("http://example.com", status=200, body="<h1>Title</h1>", content_type="text/html")

        formatted = await router.extract(ExtractionRequest(target_url="http://example.com", selector="h1"))

        assert formatted.status_code == 200
        assert formatted.body == b'{"result":"Title"}'
        assert formatted.content_type.startswith("application/json")

    @pytest.mark.asyncio
    async def test_spaced_text(self, router, mock_upstream):
        mock_upstream.get("http://example.com/p", status=200, body=HTML_PAGE, content_type="text/html")
        mock_upstream.get("http://example.com/p", status=200, body=HTML_PAGE, content_type="text/html")

        plain = await router.extract(ExtractionRequest(target_url="http://example.com/p", selector=".lead"))
        spaced = await router.extract(
            ExtractionRequest(target_url="http://example.com/p", selector=".lead", spaced=True)
        )

        assert _envelope(plain) == {"result": "HelloWorld"}
        assert _envelope(spaced) == {"result": "Hello World"}

    @pytest.mark.asyncio
    async def test_attribute_result(self, router, mock_upstream):
        mock_upstream.get("http://example.com/p", status=200, body=HTML_PAGE, content_type="text/html")

        formatted = await router.extract(
            ExtractionRequest(target_url="http://example.com/p", selector="img", attribute_name="src")
        )

        assert _envelope(formatted) == {"result": "x.png"}

    @pytest.mark.asyncio
    async def test_extraction_fetches_once_with_get(self, router, mock_upstream):
        mock_upstream.get("http://example.com/p", status=200, body=HTML_PAGE, content_type="text/html")

        await router.extract(ExtractionRequest(target_url="http://example.com/p", selector="h1"))

        assert len(mock_upstream.requests[("GET", URL("http://example.com/p"))]) == 1

    @pytest.mark.asyncio
    async def test_no_match(self, router, mock_upstream):
        mock_upstream.get("http://example.com/p", status=200, body="<p>text</p>", content_type="text/html")

        formatted = await router.extract(
            ExtractionRequest(target_url="http://example.com/p", selector="img", attribute_name="src")
        )

        assert formatted.status_code == 400
        assert _envelope(formatted)["error"]["kind"] == "NoMatchError"

    @pytest.mark.asyncio
    async def test_attribute_missing(self, router, mock_upstream):
        mock_upstream.get("http://example.com/p", status=200, body=HTML_PAGE, content_type="text/html")

        formatted = await router.extract(
            ExtractionRequest(target_url="http://example.com/p", selector="h1", attribute_name="href")
        )

        assert formatted.status_code == 400
        assert _envelope(formatted)["error"]["kind"] == "AttributeMissingError"

    @pytest.mark.asyncio
    async def test_upstream_status_is_a_fetch_failure(self, router, mock_upstream):
        mock_upstream.get("http://example.com/gone", status=404, body="<h1>Not Found</h1>", content_type="text/html")

        formatted = await router.extract(ExtractionRequest(target_url="http://example.com/gone", selector="h1"))

        assert formatted.status_code == 502
        error = _envelope(formatted)["error"]
        assert error["kind"] == "UpstreamStatusError"
        assert "404" in error["message"]

    @pytest.mark.asyncio
    async def test_network_failure(self, router, mock_upstream):
        mock_upstream.get("http://down.test/", exception=aiohttp.ClientConnectionError("Connection refused"))

        formatted = await router.extract(ExtractionRequest(target_url="http://down.test/", selector="h1"))

        assert formatted.status_code == 502
        assert _envelope(formatted)["error"]["kind"] == "NetworkError"

    @pytest.mark.asyncio
    async def test_malformed_url(self, router, mock_upstream):
        formatted = await router.extract(ExtractionRequest(target_url="http://", selector="h1"))

        assert formatted.status_code == 400
        assert _envelope(formatted)["error"]["kind"] == "MalformedURLError"

    @pytest.mark.asyncio
    async def test_invalid_selector(self, router, mock_upstream):
        mock_upstream.get("http://example.com/p", status=200, body=HTML_PAGE, content_type="text/html")

        formatted = await router.extract(ExtractionRequest(target_url="http://example.com/p", selector="p["))

        assert formatted.status_code == 400
        assert _envelope(formatted)["error"]["kind"] == "InvalidSelectorError"

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_formatted(self, router, mock_upstream):
        mock_upstream.get("http://example.com/p", status=200, body=HTML_PAGE, content_type="text/html")

        with patch("corsgate.gateway.router.SelectorEngine.from_document", side_effect=RuntimeError("parser crashed")):
            formatted = await router.extract(ExtractionRequest(target_url="http://example.com/p", selector="h1"))

        assert formatted.status_code == 502
        assert _envelope(formatted) == {"error": {"message": "parser crashed", "kind": "InternalError"}}

    @pytest.mark.asyncio
    async def test_pretty_only_changes_whitespace(self, router, mock_upstream):
        mock_upstream.get("http://example.com/p", status=200, body=HTML_PAGE, content_type="text/html")
        mock_upstream.get("http://example.com/p", status=200, body=HTML_PAGE, content_type="text/html")

        compact = await router.extract(ExtractionRequest(target_url="http://example.com/p", selector="h1"))
        pretty = await router.extract(ExtractionRequest(target_url="http://example.com/p", selector="h1", pretty=True))

        assert compact.body != pretty.body
        assert _envelope(compact) == _envelope(pretty) == {"result": "Title"}


class TestProxy:
    @pytest.mark.asyncio
    async def test_relays_upstream_status_and_body(self, router, mock_upstream):
        mock_upstream.get("http://example.com/missing", status=404, body="nope", content_type="text/plain")

        response = await router.proxy(
            ProxyRequest(target_url="http://example.com/missing", method="GET", headers=CIMultiDict())
        )

        assert response.status_code == 404
        assert response.body == b"nope"
        assert response.headers["access-control-allow-origin"] == "*"

    @pytest.mark.asyncio
    async def test_injects_credentials(self, router, mock_upstream):
        url = "https://na1.api.riotgames.com/lol/status/v4/platform-data"
        mock_upstream.get(url, status=200, body="{}")

        await router.proxy(ProxyRequest(target_url=url, method="GET", headers=CIMultiDict({"Origin": "https://me"})))

        sent = mock_upstream.requests[("GET", URL(url))][0].kwargs["headers"]
        assert sent["X-Riot-Token"] == "riot-secret"
        assert sent["Origin"] == "https://na1.api.riotgames.com"

    @pytest.mark.asyncio
    async def test_network_failure_is_formatted(self, router, mock_upstream):
        mock_upstream.get("http://down.test/", exception=aiohttp.ClientConnectionError("refused"))

        response = await router.proxy(ProxyRequest(target_url="http://down.test/", method="GET", headers=CIMultiDict()))

        assert response.status_code == 502
        assert json.loads(response.body)["error"]["kind"] == "NetworkError"

    @pytest.mark.asyncio
    async def test_malformed_target_is_formatted(self, router, mock_upstream):
        response = await router.proxy(ProxyRequest(target_url="http://", method="GET", headers=CIMultiDict()))

        assert response.status_code == 400
        assert json.loads(response.body)["error"]["kind"] == "MalformedURLError"

    @pytest.mark.asyncio
    async def test_head_keeps_upstream_content_length(self, router, mock_upstream):
        mock_upstream.head("http://example.com/big.iso", status=200, headers={"Content-Length": "12345"})

        response = await router.proxy(
            ProxyRequest(target_url="http://example.com/big.iso", method="HEAD", headers=CIMultiDict())
        )

        assert response.status_code == 200
        assert response.headers.getlist("content-length") == ["12345"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", ["ftp://x.com/", "javascript://x"])
    async def test_non_http_scheme_is_malformed(self, router, mock_upstream, url):
        response = await router.proxy(ProxyRequest(target_url=url, method="GET", headers=CIMultiDict()))

        assert response.status_code == 400
        assert json.loads(response.body)["error"]["kind"] == "MalformedURLError"

# tests/integration/test_serper.py
import httpx
import pytest
from code_mentor.search.base import NO_RESULTS, NullAugmenter
from code_mentor.search.serper import SerperAugmenter


SERPER_URL = "https://google.serper.dev/search"


@pytest.mark.asyncio
async def test_serper_formats_top_results(httpx_mock):
    httpx_mock.add_response(
        url=SERPER_URL,
        method="POST",
        json={"organic": [
            {"title": f"Result {i}", "snippet": "x" * 50, "link": f"https://example.com/{i}"}
            for i in range(5)
        ]},
    )

    augmenter = SerperAugmenter(api_key="key", max_results=2, snippet_chars=10)
    text = await augmenter.augment("code review best practices for utils.js")

    assert "Result 0" in text and "Result 1" in text
    assert "Result 2" not in text
    assert "Snippet: xxxxxxxxxx..." in text
    assert "Source: https://example.com/0" in text
    request = httpx_mock.get_request()
    assert request.headers["X-API-KEY"] == "key"


@pytest.mark.asyncio
async def test_serper_no_results_returns_sentinel(httpx_mock):
    httpx_mock.add_response(url=SERPER_URL, json={"organic": []})

    assert await SerperAugmenter(api_key="key").augment("q") == NO_RESULTS


@pytest.mark.asyncio
async def test_serper_http_error_returns_sentinel(httpx_mock):
    httpx_mock.add_response(url=SERPER_URL, status_code=429, text="rate limited")

    assert await SerperAugmenter(api_key="key").augment("q") == NO_RESULTS


@pytest.mark.asyncio
async def test_serper_network_error_returns_sentinel(httpx_mock):
    httpx_mock.add_exception(httpx.ConnectError("unreachable"))

    assert await SerperAugmenter(api_key="key").augment("q") == NO_RESULTS


@pytest.mark.asyncio
async def test_null_augmenter():
    assert await NullAugmenter().augment("anything") == NO_RESULTS

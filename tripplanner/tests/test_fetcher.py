import httpx
import pytest

from tripplanner.errors import FetchError, InvalidRequestError
from tripplanner.fetcher import RemoteTripFetcher

URL = "https://trips.example.test/default/trips"

PAYLOAD = [
    {
        "origin": "ATL",
        "destination": "PEK",
        "cost": 100,
        "duration": 120,
        "type": "flight",
        "id": "1",
        "display_name": "ATL to PEK",
    }
]


def _fetcher(handler) -> RemoteTripFetcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RemoteTripFetcher(URL, "secret", client=client)


@pytest.mark.asyncio
async def test_fetch_sends_query_and_api_key():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=PAYLOAD)

    trips = await _fetcher(handler).fetch("ATL", "PEK", "cheapest")

    assert len(seen) == 1
    request = seen[0]
    assert request.headers["x-api-key"] == "secret"
    assert request.url.params["origin"] == "ATL"
    assert request.url.params["destination"] == "PEK"
    assert request.url.params["sort_by"] == "cheapest"
    assert [t.model_dump() for t in trips] == PAYLOAD


@pytest.mark.asyncio
async def test_non_success_status_is_retryable_fetch_error():
    fetcher = _fetcher(lambda request: httpx.Response(429, json={"message": "slow down"}))

    with pytest.raises(FetchError) as info:
        await fetcher.fetch("ATL", "PEK")
    assert info.value.upstream_status == 429
    assert info.value.retryable is True
    assert info.value.code == "FETCH_ERROR"


@pytest.mark.asyncio
async def test_network_fault_is_retryable_fetch_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(FetchError) as info:
        await _fetcher(handler).fetch("ATL", "PEK")
    assert info.value.upstream_status is None
    assert info.value.retryable is True


@pytest.mark.asyncio
async def test_malformed_payload_is_fetch_error():
    fetcher = _fetcher(lambda request: httpx.Response(200, content=b"<html>oops</html>"))

    with pytest.raises(FetchError):
        await fetcher.fetch("ATL", "PEK")


@pytest.mark.asyncio
async def test_blank_route_fails_before_network_call():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=[])

    with pytest.raises(InvalidRequestError):
        await _fetcher(handler).fetch("", "PEK")
    assert calls == []


def test_missing_credentials_rejected():
    with pytest.raises(ValueError):
        RemoteTripFetcher(URL, "")

"""Tests for the ZIP code lookup client."""
import asyncio

import httpx
import pytest

from greenghost.errors import ValidationFailed
from greenghost.services.zip_lookup import ZipLookupService

AUSTIN = {
    "post code": "78701",
    "places": [{
        "place name": "Austin",
        "state": "Texas",
        "state abbreviation": "TX",
        "latitude": "30.2713",
        "longitude": "-97.7426",
    }],
}


def service_with(handler):
    return ZipLookupService(base_url="https://zip.test/us/", transport=httpx.MockTransport(handler))


def test_lookup_parses_place():
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, json=AUSTIN)

    place = asyncio.run(service_with(handler).lookup("78701"))

    assert seen == ["https://zip.test/us/78701"]
    assert place.city == "Austin"
    assert place.state_abbreviation == "TX"
    assert place.latitude == pytest.approx(30.2713)


def test_retries_once_after_server_error():
    responses = [httpx.Response(503), httpx.Response(200, json=AUSTIN)]

    place = asyncio.run(service_with(lambda request: responses.pop(0)).lookup("78701"))

    assert place.city == "Austin"
    assert responses == []


def test_retries_after_transport_error():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json=AUSTIN)

    assert asyncio.run(service_with(handler).lookup("78701")).city == "Austin"
    assert len(calls) == 2


def test_gives_up_after_two_attempts():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(502)

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(service_with(handler).lookup("78701"))

    assert len(calls) == 2


def test_client_error_is_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(429)

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(service_with(handler).lookup("78701"))

    assert len(calls) == 1


def test_unknown_zip_returns_none():
    assert asyncio.run(service_with(lambda request: httpx.Response(404)).lookup("00000")) is None


def test_response_without_places_returns_none():
    handler = lambda request: httpx.Response(200, json={"post code": "00001", "places": []})
    assert asyncio.run(service_with(handler).lookup("00001")) is None


@pytest.mark.parametrize("zip_code", ["7870", "787011", "7870a", ""])
def test_malformed_zip_never_hits_network(zip_code):
    def handler(request):
        raise AssertionError("network should not be called")

    with pytest.raises(ValidationFailed):
        asyncio.run(service_with(handler).lookup(zip_code))

from __future__ import annotations

import asyncio

import httpx

from paine.loadgen.client import HttpProbe, send_probe
from paine.metrics import ErrorType, NetworkError, ProbeOutcome, Success, Timeout


def _probe_with(handler) -> ProbeOutcome:  # type: ignore[no-untyped-def]
    async def go() -> ProbeOutcome:
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await send_probe(client, "http://example.test/health", 0.2)

    return asyncio.run(go())


def test_2xx_response_is_success_with_status() -> None:
    outcome = _probe_with(lambda request: httpx.Response(204))
    assert isinstance(outcome, Success)
    assert outcome.status_code == 204
    assert outcome.status_class == "2xx"
    assert outcome.latency_ms >= 0


def test_non_2xx_response_is_error_keeping_status() -> None:
    outcome = _probe_with(lambda request: httpx.Response(503, text="busy"))
    assert isinstance(outcome, NetworkError)
    assert outcome.error_type is ErrorType.OTHER
    assert outcome.reason == "HTTP 503"
    assert outcome.status_code == 503

    not_found = _probe_with(lambda request: httpx.Response(404))
    assert isinstance(not_found, NetworkError)
    assert not_found.status_code == 404


def test_slow_server_is_timeout() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(1.0)
        return httpx.Response(200)

    outcome = _probe_with(handler)
    assert isinstance(outcome, Timeout)
    assert outcome.forced is False


def test_transport_errors_are_classified() -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    def reset(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadError("connection reset", request=request)

    def weird(request: httpx.Request) -> httpx.Response:
        raise httpx.RemoteProtocolError("bad framing", request=request)

    def read_timeout(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    connect = _probe_with(refuse)
    assert isinstance(connect, NetworkError)
    assert connect.error_type is ErrorType.CONNECT
    assert connect.reason == "ConnectError: connection refused"

    read = _probe_with(reset)
    assert isinstance(read, NetworkError)
    assert read.error_type is ErrorType.READ

    other = _probe_with(weird)
    assert isinstance(other, NetworkError)
    assert other.error_type is ErrorType.OTHER

    assert isinstance(_probe_with(read_timeout), Timeout)


def test_http_probe_sends_headers() -> None:
    seen: dict[str, str | None] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["x-load-test"] = request.headers.get("X-Load-Test")
        return httpx.Response(200)

    async def go() -> ProbeOutcome:
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            probe = HttpProbe(client, headers={"X-Load-Test": "paine"})
            return await probe("http://example.test/", 1.0)

    outcome = asyncio.run(go())
    assert isinstance(outcome, Success)
    assert seen["x-load-test"] == "paine"

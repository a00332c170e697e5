from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Mapping

import httpx

from paine.metrics import ErrorType, NetworkError, ProbeOutcome, Success, Timeout

logger = logging.getLogger(__name__)

Probe = Callable[[str, float], Awaitable[ProbeOutcome]]


async def send_probe(
    client: httpx.AsyncClient,
    url: str,
    timeout_sec: float,
    headers: Mapping[str, str] | None = None,
) -> ProbeOutcome:
    start_mono = time.perf_counter()
    try:
        resp = await asyncio.wait_for(
            client.get(url, headers=headers, timeout=timeout_sec),
            timeout=timeout_sec,
        )
    except (httpx.TimeoutException, asyncio.TimeoutError):
        return Timeout(latency_ms=_elapsed_ms(start_mono))
    except httpx.ConnectError as exc:
        return _network_error(url, ErrorType.CONNECT, exc)
    except httpx.ReadError as exc:
        return _network_error(url, ErrorType.READ, exc)
    except httpx.HTTPError as exc:
        return _network_error(url, ErrorType.OTHER, exc)
    if not resp.is_success:
        logger.debug("GET %s answered %d", url, resp.status_code)
        return NetworkError(
            reason=f"HTTP {resp.status_code}",
            error_type=ErrorType.OTHER,
            status_code=resp.status_code,
        )
    return Success(latency_ms=_elapsed_ms(start_mono), status_code=resp.status_code)


def _elapsed_ms(start_mono: float) -> float:
    return (time.perf_counter() - start_mono) * 1000.0


def _network_error(url: str, err: ErrorType, exc: Exception) -> NetworkError:
    reason = f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__
    logger.debug("GET %s failed (%s): %s", url, err.value, reason)
    return NetworkError(reason=reason, error_type=err)


@dataclass(frozen=True, slots=True)
class HttpProbe:
    client: httpx.AsyncClient
    headers: Mapping[str, str] = field(default_factory=dict)

    async def __call__(self, url: str, timeout_sec: float) -> ProbeOutcome:
        return await send_probe(self.client, url, timeout_sec, self.headers)

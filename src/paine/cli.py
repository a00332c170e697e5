from __future__ import annotations

import argparse
import asyncio
import json
import logging
from typing import Mapping

from paine.config import DEFAULT_MAX_IN_FLIGHT, ConfigurationError, RunConfig, TargetConfig
from paine.loadgen.runner import run_load_test
from paine.metrics import RunReport

LABEL_WIDTH = 15
MAX_TARGET_CHARS = 90


def _parse_headers(raw: list[str]) -> Mapping[str, str]:
    headers: dict[str, str] = {}
    for item in raw:
        name, sep, value = item.partition(":")
        if not sep or not name.strip():
            msg = f"<header> must look like 'Name: value', got {item!r}"
            raise ConfigurationError(msg)
        headers[name.strip()] = value.strip()
    return headers


def _build_config(args: argparse.Namespace) -> RunConfig:
    target = TargetConfig(
        base_url=args.url,
        timeout_sec=args.timeout,
        headers=_parse_headers(args.header),
    )
    return RunConfig(
        target=target,
        rate_per_sec=args.rate,
        duration_sec=args.duration,
        max_in_flight=args.max_in_flight,
        drain_grace_sec=args.drain_grace,
    )


def _line(label: str, value: str) -> str:
    return f"{label:>{LABEL_WIDTH}}: {value}"


def render_report(report: RunReport) -> str:
    lines = [
        _line("Date", report.started_at.strftime("%Y-%m-%d %H:%M")),
        _line("Target", report.url[:MAX_TARGET_CHARS]),
        _line("Runtime", f"{report.elapsed_sec:.1f}s"),
        _line("Total", f"{report.total_dispatched} requests"),
        _line("Rate", f"{report.configured_rate:g} req/s"),
        _line("Achieved", f"{report.achieved_rate:.1f} req/s"),
    ]
    if report.status_codes:
        codes = ", ".join(f'"{code}": {n}' for code, n in report.status_codes.items())
        lines.append(_line("Status codes", codes))
    if report.latency is None:
        lines.append(_line("Response times", "undefined (no successful requests)"))
    else:
        lat = report.latency
        lines.append(
            _line(
                "Response times",
                f"Avg: {lat.mean_ms:.1f}ms, Min: {lat.min_ms:.1f}ms, Max: {lat.max_ms:.1f}ms",
            )
        )
        lines.append(
            _line(
                "Percentiles",
                f"p50: {lat.p50_ms:.1f}ms, p95: {lat.p95_ms:.1f}ms, p99: {lat.p99_ms:.1f}ms",
            )
        )
        lines.append(_line("Throughput", f"{report.throughput:.1f} req/s"))
    lines.append(
        _line(
            "Success",
            f"{report.success_pct:.1f}% ({report.succeeded}/{report.total_dispatched})",
        )
    )
    if report.failed > 0:
        by_type = report.network_errors_by_type
        others = report.network_errors - by_type.get("connect", 0)
        lines.append(
            _line(
                "Errors",
                f"{report.error_pct:.1f}% ({report.failed}/{report.total_dispatched}) "
                f"(Timeouts: {report.timeouts}, Connect: {by_type.get('connect', 0)}, "
                f"Others: {others}, Overload: {report.overload_rejections})",
            )
        )
    return "\n".join(lines)


def main() -> None:
    parser = argparse.ArgumentParser(prog="paine", description="Constant-rate HTTP load generator")
    parser.add_argument("-u", "--url", required=True, help="target url")
    parser.add_argument("-r", "--rate", type=float, default=10.0, help="requests per second")
    parser.add_argument("-t", "--timeout", type=float, default=10.0, help="http timeout in seconds")
    parser.add_argument("-d", "--duration", type=float, default=60.0, help="test duration in seconds")
    parser.add_argument(
        "--max-in-flight",
        type=int,
        default=DEFAULT_MAX_IN_FLIGHT,
        help="concurrency ceiling; ticks beyond it are counted as overload",
    )
    parser.add_argument(
        "--drain-grace",
        type=float,
        default=None,
        help="seconds to wait for in-flight requests after ticking stops (default: timeout)",
    )
    parser.add_argument(
        "-H",
        "--header",
        action="append",
        default=[],
        help="extra request header 'Name: value' (repeatable)",
    )
    parser.add_argument("--json", action="store_true", help="print the report as JSON")
    parser.add_argument("-v", "--verbose", action="store_true")

    args = parser.parse_args()

    if not logging.root.handlers:
        logging.basicConfig(
            level=logging.DEBUG if args.verbose else logging.INFO,
            format="%(asctime)s - %(levelname)s - %(message)s",
        )

    try:
        config = _build_config(args)
    except ConfigurationError as exc:
        parser.error(str(exc))

    report = asyncio.run(run_load_test(config))
    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print(render_report(report))


if __name__ == "__main__":
    main()

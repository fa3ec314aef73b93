"""Prometheus metrics for observability."""

import time
from collections import defaultdict
from dataclasses import dataclass, field

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware


def _format_labels(names: tuple[str, ...], values: tuple) -> str:
    return ",".join(f'{n}="{v}"' for n, v in zip(names, values))


@dataclass
class Counter:
    """Monotonic counter metric."""

    name: str
    help: str
    labels: tuple[str, ...] = ()
    _values: dict[tuple, float] = field(default_factory=lambda: defaultdict(float))

    def inc(self, amount: float = 1.0, **labels: str) -> None:
        key = tuple(str(labels.get(n, "")) for n in self.labels)
        self._values[key] += amount

    def get(self, **labels: str) -> float:
        key = tuple(str(labels.get(n, "")) for n in self.labels)
        return self._values.get(key, 0.0)

    def render(self) -> list[str]:
        lines = [f"# HELP {self.name} {self.help}", f"# TYPE {self.name} counter"]
        for key, value in self._values.items():
            if self.labels:
                lines.append(f"{self.name}{{{_format_labels(self.labels, key)}}} {value}")
            else:
                lines.append(f"{self.name} {value}")
        return lines


@dataclass
class Histogram:
    """Histogram metric with fixed buckets."""

    name: str
    help: str
    labels: tuple[str, ...] = ()
    buckets: tuple[float, ...] = (0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0)
    _counts: dict[tuple, dict[float, int]] = field(
        default_factory=lambda: defaultdict(lambda: defaultdict(int))
    )
    _sums: dict[tuple, float] = field(default_factory=lambda: defaultdict(float))
    _totals: dict[tuple, int] = field(default_factory=lambda: defaultdict(int))

    def observe(self, value: float, **labels: str) -> None:
        key = tuple(str(labels.get(n, "")) for n in self.labels)
        self._sums[key] += value
        self._totals[key] += 1
        for bucket in self.buckets:
            if value <= bucket:
                self._counts[key][bucket] += 1

    def render(self) -> list[str]:
        lines = [f"# HELP {self.name} {self.help}", f"# TYPE {self.name} histogram"]
        for key in self._sums:
            base = _format_labels(self.labels, key)
            prefix = f"{base}," if base else ""
            for bucket in self.buckets:
                # Buckets are already cumulative: observe() counts every bucket >= value
                lines.append(f'{self.name}_bucket{{{prefix}le="{bucket}"}} {self._counts[key][bucket]}')
            lines.append(f'{self.name}_bucket{{{prefix}le="+Inf"}} {self._totals[key]}')
            lines.append(f"{self.name}_sum{{{base}}} {self._sums[key]}")
            lines.append(f"{self.name}_count{{{base}}} {self._totals[key]}")
        return lines


class MetricsRegistry:
    """Registry for all metrics."""

    def __init__(self) -> None:
        self.http_requests_total = Counter(
            name="http_requests_total",
            help="Total number of HTTP requests",
            labels=("method", "path", "status"),
        )
        self.http_request_duration_seconds = Histogram(
            name="http_request_duration_seconds",
            help="HTTP request duration in seconds",
            labels=("method", "path"),
        )
        self.cache_requests_total = Counter(
            name="cache_requests_total",
            help="Redis cache lookups by result",
            labels=("result",),
        )
        self.youtube_api_requests_total = Counter(
            name="youtube_api_requests_total",
            help="YouTube Data API requests by endpoint and status",
            labels=("endpoint", "status"),
        )
        self.summaries_generated_total = Counter(
            name="summaries_generated_total",
            help="AI summaries generated by outcome",
            labels=("outcome",),
        )
        self.badges_awarded_total = Counter(
            name="badges_awarded_total",
            help="Badges awarded by rule",
            labels=("rule",),
        )

    def format_prometheus(self) -> str:
        """Format all metrics in Prometheus exposition format."""
        lines: list[str] = []
        for metric in self.__dict__.values():
            if isinstance(metric, (Counter, Histogram)):
                lines.extend(metric.render())
        return "\n".join(lines) + "\n"


# Global metrics registry
metrics = MetricsRegistry()


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware to collect HTTP metrics."""

    async def dispatch(self, request: Request, call_next) -> Response:
        method = request.method
        path = self._normalize_path(request.url.path)

        start_time = time.monotonic()
        status = "500"
        try:
            response = await call_next(request)
            status = str(response.status_code)
            return response
        finally:
            metrics.http_requests_total.inc(method=method, path=path, status=status)
            metrics.http_request_duration_seconds.observe(
                time.monotonic() - start_time, method=method, path=path
            )

    @staticmethod
    def _normalize_path(path: str) -> str:
        """Replace numeric IDs with a placeholder to keep label cardinality low."""
        return "/".join(":id" if part.isdigit() else part for part in path.split("/"))

"""Health check endpoint.

``health_check()`` builds a handler that runs named checks concurrently,
each under its own deadline, and reports the result as JSON::

    {
        "status": "healthy",
        "timestamp": "2026-01-01T00:00:00.000Z",
        "checks": {
            "database": {"status": "pass", "response_time_ms": 1.2},
            "cache": {"status": "fail", "response_time_ms": 5000.4,
                      "error": "Timed out after 5s"}
        }
    }

The endpoint answers 200 when every check passes, 503 otherwise.

Usage::

    app.get("/health")(health_check([
        HealthCheck("database", db.ping),
        HealthCheck("cache", cache.ping, timeout=1.0),
    ]))
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import anyio

from wren._internal.invoke import invoke
from wren.errors import utc_timestamp

if TYPE_CHECKING:
    from wren.context import Context
    from wren.middleware.protocol import Handler


@dataclass(frozen=True, slots=True)
class HealthCheck:
    """A named predicate. Sync or async; a falsy result or an exception fails it."""

    name: str
    check: Callable[[], Awaitable[Any] | Any]
    timeout: float = 5.0


@dataclass(frozen=True, slots=True)
class CheckResult:
    name: str
    passed: bool
    response_time_ms: float
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "status": "pass" if self.passed else "fail",
            "response_time_ms": round(self.response_time_ms, 2),
        }
        if self.error is not None:
            data["error"] = self.error
        return data


async def run_check(check: HealthCheck) -> CheckResult:
    """Run one check under its deadline. Never raises for check failures."""
    start = time.perf_counter()
    passed = False
    error: str | None = None

    with anyio.move_on_after(check.timeout) as scope:
        try:
            passed = bool(await invoke(check.check))
        except Exception as exc:
            error = str(exc) or type(exc).__name__

    if scope.cancelled_caught:
        passed = False
        error = f"Timed out after {check.timeout:g}s"
    elif not passed and error is None:
        error = "Check returned a falsy result"

    elapsed_ms = (time.perf_counter() - start) * 1000
    return CheckResult(check.name, passed, elapsed_ms, error)


async def run_checks(checks: Sequence[HealthCheck]) -> list[CheckResult]:
    """Run *checks* concurrently; results keep the order of *checks*."""
    results: list[CheckResult | None] = [None] * len(checks)

    async def run_one(index: int, check: HealthCheck) -> None:
        results[index] = await run_check(check)

    async with anyio.create_task_group() as tg:
        for index, check in enumerate(checks):
            tg.start_soon(run_one, index, check)

    return [result for result in results if result is not None]


def health_check(checks: Sequence[HealthCheck] = ()) -> Handler:
    """Build a handler reporting the status of *checks*."""
    checks = tuple(checks)

    async def handler(ctx: Context) -> None:
        results = await run_checks(checks)
        healthy = all(result.passed for result in results)
        ctx.status(200 if healthy else 503)
        await ctx.json(
            {
                "status": "healthy" if healthy else "unhealthy",
                "timestamp": utc_timestamp(),
                "checks": {result.name: result.to_dict() for result in results},
            }
        )

    return handler

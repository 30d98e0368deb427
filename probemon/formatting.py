from __future__ import annotations

from probemon.checks.results import ProbeResult


def format_result(result: ProbeResult) -> str:
    if not result.ok:
        return f"{result.target} ({result.url}) failed: {result.error}"
    return (
        f"{result.target} ({result.url}) "
        f"status={result.status_code} latency={result.duration_s:.3f}s"
    )

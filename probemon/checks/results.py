from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of one check.

    A result either carries ``status_code`` and ``duration_s`` (a response
    arrived, whatever its status) or ``error`` (no response was obtained).
    """

    target: str
    url: str
    status_code: int | None = None
    duration_s: float | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        has_response = self.status_code is not None and self.duration_s is not None
        partial = (self.status_code is None) != (self.duration_s is None)
        if self.error == "":
            raise ValueError("error description must not be empty")
        if partial or has_response == (self.error is not None):
            raise ValueError(
                "result needs either status_code and duration_s, or error"
            )

    @classmethod
    def success(
        cls, target: str, url: str, status_code: int, duration_s: float
    ) -> ProbeResult:
        return cls(target=target, url=url, status_code=status_code, duration_s=duration_s)

    @classmethod
    def failure(cls, target: str, url: str, error: str) -> ProbeResult:
        return cls(target=target, url=url, error=error or "unknown error")

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["ok"] = self.ok
        return d

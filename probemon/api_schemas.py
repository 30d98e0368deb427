from __future__ import annotations

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = Field(description="Health status")


class TargetResponse(BaseModel):
    name: str
    url: str
    interval_s: float = Field(gt=0)


class TargetStatusResponse(BaseModel):
    name: str
    url: str
    ok: bool | None = None
    last_run: str | None = None
    last_ok: str | None = None
    checks: int = 0
    failures: int = 0
    status_code: int | None = None
    duration_s: float | None = None
    error: str | None = None

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class ConfigError(ValueError):
    """Target configuration that must stop the session before it starts."""


@dataclass(frozen=True)
class Target:
    name: str
    url: str
    interval_s: float


class Defaults(BaseModel):
    interval_s: float = Field(default=30, gt=0)


class TargetSpec(BaseModel):
    name: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    interval_s: Optional[float] = Field(default=None, gt=0)

    @field_validator("url")
    @classmethod
    def _strip_url(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("url must not be blank")
        return v


class Registry(BaseModel):
    defaults: Defaults = Defaults()
    targets: List[TargetSpec] = Field(default_factory=list)

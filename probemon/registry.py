from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError

from probemon.config import settings
from probemon.models import ConfigError, Registry, Target


def load_registry(path: Path | str | None = None) -> Registry:
    path = Path(path or settings.PROBEMON_TARGETS_PATH)
    if not path.exists():
        raise ConfigError(
            f"Missing targets file at {path}. Copy targets.example.yml to targets.yml and configure it."
        )

    data = yaml.safe_load(path.read_text()) or {}
    try:
        reg = Registry.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid targets file {path}: {e}") from e

    # Names label metrics, so they must be unique
    seen = set()
    for t in reg.targets:
        if t.name in seen:
            raise ConfigError(f"Duplicate target name: {t.name}")
        seen.add(t.name)

    return reg


def apply_defaults(reg: Registry) -> dict[str, dict]:
    """
    Produce a normalized dict keyed by target name with defaults applied.
    Returns pure python dicts so they serialize cleanly.
    """
    out: dict[str, dict] = {}
    d = reg.defaults

    for t in reg.targets:
        td = t.model_dump()
        td["interval_s"] = td["interval_s"] or d.interval_s
        out[t.name] = td

    return out


def build_targets(reg: Registry) -> list[Target]:
    return [
        Target(name=name, url=t["url"], interval_s=float(t["interval_s"]))
        for name, t in apply_defaults(reg).items()
    ]

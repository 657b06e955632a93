"""Engine configuration: enumeration ceilings and curve sampling densities."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping

import yaml

DEFAULT_SURFACE_LIMIT = 50_000
DEFAULT_VOLUME_LIMIT = 10_000_000
DEFAULT_CURVE_SAMPLES = 32
DEFAULT_DISTANCE_SAMPLES = 16


@dataclass(frozen=True)
class EngineConfig:
    """Tunable constants of the shape engine.

    ``surface_limit`` caps estimated and actual surface output,
    ``volume_limit`` caps filled-volume estimates and the running count of
    tube candidates, ``curve_samples`` is the per-segment sampling density
    used to walk and measure curves, and ``distance_samples`` the density
    of the tube surface distance test.
    """

    surface_limit: int = DEFAULT_SURFACE_LIMIT
    volume_limit: int = DEFAULT_VOLUME_LIMIT
    curve_samples: int = DEFAULT_CURVE_SAMPLES
    distance_samples: int = DEFAULT_DISTANCE_SAMPLES

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f'{f.name} must be an integer, got {value!r}')
            if value < 1:
                raise ValueError(f'{f.name} must be >= 1, got {value}')

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "EngineConfig":
        data = dict(data or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f'unknown engine settings: {", ".join(unknown)}')
        return cls(**data)

    @classmethod
    def load(cls, path: Path | str) -> "EngineConfig":
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"config not found: {config_path}")
        with config_path.open("r", encoding="utf-8") as fp:
            data = yaml.safe_load(fp) or {}
        if not isinstance(data, dict):
            raise ValueError(f"config must be a mapping: {config_path}")
        return cls.from_mapping(data)

    def dump(self, path: Path | str) -> None:
        config_path = Path(path)
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with config_path.open("w", encoding="utf-8") as fp:
            yaml.safe_dump(asdict(self), fp, sort_keys=False)

    def with_changes(self, **changes: Any) -> "EngineConfig":
        return replace(self, **changes)


DEFAULT_CONFIG = EngineConfig()


__all__ = [
    'EngineConfig',
    'DEFAULT_CONFIG',
    'DEFAULT_SURFACE_LIMIT',
    'DEFAULT_VOLUME_LIMIT',
    'DEFAULT_CURVE_SAMPLES',
    'DEFAULT_DISTANCE_SAMPLES',
]

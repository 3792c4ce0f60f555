"""Configuration models for the visual regression toolkit."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "witness.config.json"

# camelCase on disk, snake_case in Python; either is accepted on load
_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PathsConfig(BaseModel):
    model_config = _CAMEL

    baseline: str = ".witness/artifacts/baselines"
    current: str = ".witness/artifacts/current"
    diff: str = ".witness/artifacts/diffs"
    reports: str = ".witness/reports"


class VisualEngineConfig(BaseModel):
    model_config = _CAMEL

    # Maximum tolerated diff_pixel_count / total_pixels for a "passed" snapshot
    threshold: float = Field(default=0.001, ge=0.0, le=1.0)
    # Per-pixel YIQ colour distance tolerance, 0 = exact match
    pixel_tolerance: float = Field(default=0.1, ge=0.0, le=1.0)
    # False exempts anti-aliased pixels from the count
    include_aa: bool = Field(default=True, alias="includeAA")
    alpha: float = Field(default=0.1, ge=0.0, le=1.0)
    diff_color: tuple[int, int, int] = (255, 0, 0)
    aa_color: tuple[int, int, int] = (255, 255, 0)

    @field_validator("diff_color", "aa_color")
    @classmethod
    def check_rgb(cls, v: tuple[int, int, int]) -> tuple[int, int, int]:
        if any(c < 0 or c > 255 for c in v):
            raise ValueError(f"colour channels must be within 0-255, got {list(v)}")
        return v


class EnvironmentConfig(BaseModel):
    model_config = _CAMEL

    width: int
    height: int
    device_scale_factor: float = 1.0


class ApiConfig(BaseModel):
    model_config = _CAMEL

    endpoint: str
    enabled: bool = True


class ServerConfig(BaseModel):
    model_config = _CAMEL

    host: str = "127.0.0.1"
    port: int = 3000


class WitnessConfig(BaseModel):
    model_config = _CAMEL

    artifact_root: str = ".witness/artifacts"
    paths: PathsConfig = Field(default_factory=PathsConfig)
    visual_engine: VisualEngineConfig = Field(default_factory=VisualEngineConfig)
    environments: dict[str, EnvironmentConfig] = Field(
        default_factory=lambda: {
            "desktop-hd": EnvironmentConfig(width=1920, height=1080),
        }
    )
    api: Optional[ApiConfig] = None
    server: ServerConfig = Field(default_factory=ServerConfig)
    max_parallel_comparisons: int = Field(default=4, ge=1)

    @field_validator("environments")
    @classmethod
    def require_environment(cls, v: dict[str, EnvironmentConfig]) -> dict[str, EnvironmentConfig]:
        if not v:
            raise ValueError("at least one environment must be defined")
        return v

    def resolve(self, cwd: Path) -> "ResolvedPaths":
        """Return the artifact directories as absolute paths under cwd."""
        return ResolvedPaths(
            artifact_root=cwd / self.artifact_root,
            baseline=cwd / self.paths.baseline,
            current=cwd / self.paths.current,
            diff=cwd / self.paths.diff,
            reports=cwd / self.paths.reports,
        )

    @classmethod
    def load(cls, path: str | Path) -> "WitnessConfig":
        """Load config from a JSON file, falling back to defaults when absent.

        Whole-line ``//`` comments are stripped before parsing.
        """
        path = Path(path)
        if not path.exists():
            logger.warning("No %s found, using default configuration", path.name)
            return cls()
        lines = path.read_text(encoding="utf-8").splitlines()
        content = "\n".join(line for line in lines if not line.strip().startswith("//"))
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ValueError(f"Failed to parse {path.name}: {e}") from e
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Invalid config in {path.name}: {e}") from e

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(by_alias=True), f, indent=2)


class ResolvedPaths(BaseModel):
    artifact_root: Path
    baseline: Path
    current: Path
    diff: Path
    reports: Path

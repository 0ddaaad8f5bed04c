"""
Render configuration.

Defaults live in RenderConfig; YAML files (configs/render.yaml) override them
key by key:

    downsample: 8
    alpha_policy: magnitude   # or radial
    light_falloff: 50
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path

import yaml

from polyviz.utils import clamp

ALPHA_POLICIES = ("magnitude", "radial")
RESAMPLE_MODES = ("nearest", "bilinear")

LIGHT_FALLOFF_MIN = 0.0
LIGHT_FALLOFF_MAX = 100.0


def clamp_light_falloff(value: float) -> float:
    """0 = near-immediate falloff, 100 = no falloff."""
    return float(clamp(float(value), LIGHT_FALLOFF_MIN, LIGHT_FALLOFF_MAX))


@dataclass(frozen=True)
class RenderConfig:
    downsample: int = 8          # linear downsample factor of the raster
    edge_margin: float = 80.0    # display px of fade band at each edge
    alpha_k: float = 96.0        # k / (|P(z)| + k)
    max_alpha: float = 1.0
    alpha_policy: str = "magnitude"
    light_falloff: float = 50.0
    resample: str = "nearest"

    def __post_init__(self):
        if int(self.downsample) < 1:
            raise ValueError(f"downsample must be >= 1, got {self.downsample}")
        if self.alpha_policy not in ALPHA_POLICIES:
            raise ValueError(f"Unknown alpha_policy: {self.alpha_policy}")
        if self.resample not in RESAMPLE_MODES:
            raise ValueError(f"Unknown resample mode: {self.resample}")
        if self.alpha_k <= 0:
            raise ValueError(f"alpha_k must be positive, got {self.alpha_k}")
        object.__setattr__(self, "downsample", int(self.downsample))
        object.__setattr__(self, "light_falloff", clamp_light_falloff(self.light_falloff))

    def with_overrides(self, **overrides) -> "RenderConfig":
        """Copy with the non-None overrides applied (CLI flags)."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def to_dict(self) -> dict:
        return asdict(self)


def load_render_config(path=None) -> RenderConfig:
    """Load a YAML config over the defaults. path=None gives the defaults."""
    if path is None:
        return RenderConfig()

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        cfg = yaml.safe_load(f) or {}

    if not isinstance(cfg, dict):
        raise ValueError(f"Config must be a mapping, got {type(cfg).__name__}")

    known = {f.name for f in fields(RenderConfig)}
    unknown = set(cfg) - known
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")

    return RenderConfig(**cfg)

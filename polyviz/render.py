"""
Domain-coloring rasterizer.

For every pixel of a downsampled raster:
    z      = viewport point under the pixel
    w      = P(z)               (Horner, raw coefficients)
    color  = LUT[phase(w)]
    alpha  = alpha policy       (magnitude + edge fade, or radial fade)
The raster is then upscaled to display size in one resize.

The raster buffer is kept between frames and only reallocated when its
dimensions change.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Optional, Sequence, Tuple

import numpy as np
from PIL import Image

from polyviz.color_map import phase_color_lut, phase_to_index
from polyviz.complex_ops import evaluate_polynomial_grid
from polyviz.config import RenderConfig
from polyviz.utils import clamp

logger = logging.getLogger(__name__)

RADIAL_BASE_FRACTION = 0.25
RADIAL_DECADE_STEP = 25.0  # falloff points per 10x of fade radius

MIN_SCALE = 1e-10
MAX_SCALE = 1e6

_RESAMPLE = {
    "nearest": Image.Resampling.NEAREST,
    "bilinear": Image.Resampling.BILINEAR,
}


@dataclass(frozen=True)
class Viewport:
    center: complex = 0j
    scale: float = 5 / 800  # complex units per display pixel

    def screen_to_complex(self, sx: float, sy: float, width: float, height: float) -> complex:
        re = (sx - width / 2) * self.scale + self.center.real
        im = -(sy - height / 2) * self.scale + self.center.imag
        return complex(re, im)

    def complex_to_screen(self, z: complex, width: float, height: float) -> Tuple[float, float]:
        x = (z.real - self.center.real) / self.scale + width / 2
        y = -(z.imag - self.center.imag) / self.scale + height / 2
        return x, y

    def panned(self, dx: float, dy: float) -> "Viewport":
        """Shift by a screen-space drag of (dx, dy) display pixels."""
        return replace(self, center=self.center + complex(-dx * self.scale, dy * self.scale))

    def zoomed_at(self, sx: float, sy: float, factor: float, width: float, height: float) -> "Viewport":
        """Zoom by factor (>1 zooms in) keeping the point under (sx, sy) fixed."""
        if factor <= 0:
            raise ValueError(f"zoom factor must be positive, got {factor}")
        anchor = self.screen_to_complex(sx, sy, width, height)
        scale = clamp(self.scale / factor, MIN_SCALE, MAX_SCALE)
        center = anchor - complex((sx - width / 2) * scale, -(sy - height / 2) * scale)
        return Viewport(center=center, scale=scale)


# -----------------------------
# Alpha policies
# -----------------------------

def edge_fade(n: int, margin: float) -> np.ndarray:
    """Linear 0 -> 1 ramp over `margin` pixels at both ends of an axis of length n."""
    p = np.arange(n, dtype=np.float64)
    if margin <= 0:
        return np.ones(n)
    back = (n - 1) - p
    return np.where(p < margin, p / margin, np.where(back < margin, back / margin, 1.0))


class MagnitudeEdgeFade:
    """alpha = k / (|P(z)| + k), times a linear fade inside a band at each edge."""

    name = "magnitude"

    def __init__(self, k: float = 96.0, edge_margin: float = 10.0, max_alpha: float = 1.0):
        self.k = k
        self.edge_margin = edge_margin  # raster pixels
        self.max_alpha = max_alpha

    def alpha(self, mag: np.ndarray, bw: int, bh: int) -> np.ndarray:
        root_alpha = self.k / (mag + self.k)
        fade_x = edge_fade(bw, self.edge_margin)[None, :]
        fade_y = edge_fade(bh, self.edge_margin)[:, None]
        return root_alpha * fade_x * fade_y * self.max_alpha


class RadialFade:
    """alpha falls linearly with distance from the raster centre, 0 at the fade radius."""

    name = "radial"

    def __init__(self, light_falloff: float = 50.0, max_alpha: float = 1.0):
        self.light_falloff = light_falloff
        self.max_alpha = max_alpha

    def fade_radius(self, bw: int, bh: int) -> float:
        base = math.sqrt(bw * bh) * RADIAL_BASE_FRACTION
        return base * 10.0 ** (self.light_falloff / RADIAL_DECADE_STEP)

    def alpha(self, mag: np.ndarray, bw: int, bh: int) -> np.ndarray:
        ys, xs = np.mgrid[0:bh, 0:bw]
        d = np.hypot(xs - (bw - 1) / 2, ys - (bh - 1) / 2)
        radius = self.fade_radius(bw, bh)
        return np.clip(1.0 - d / radius, 0.0, 1.0) * self.max_alpha


def make_alpha_policy(config: RenderConfig):
    if config.alpha_policy == "magnitude":
        return MagnitudeEdgeFade(
            k=config.alpha_k,
            edge_margin=config.edge_margin / config.downsample,
            max_alpha=config.max_alpha,
        )
    if config.alpha_policy == "radial":
        return RadialFade(light_falloff=config.light_falloff, max_alpha=config.max_alpha)
    raise ValueError(f"Unknown alpha_policy: {config.alpha_policy}")


# -----------------------------
# Renderer
# -----------------------------

class DomainColoringRenderer:
    def __init__(self, config: Optional[RenderConfig] = None, lut: Optional[np.ndarray] = None):
        self.config = config or RenderConfig()
        self.lut = phase_color_lut() if lut is None else lut
        self.policy = make_alpha_policy(self.config)
        self._raster: Optional[np.ndarray] = None
        self.buffer_reallocations = 0

    def set_config(self, config: RenderConfig):
        self.config = config
        self.policy = make_alpha_policy(config)

    def set_light_falloff(self, value: float):
        self.set_config(replace(self.config, light_falloff=value))

    def raster_size(self, width: int, height: int) -> Tuple[int, int]:
        ds = self.config.downsample
        return math.ceil(width / ds), math.ceil(height / ds)

    def _buffer(self, bw: int, bh: int) -> np.ndarray:
        if self._raster is None or self._raster.shape[:2] != (bh, bw):
            self._raster = np.zeros((bh, bw, 4), dtype=np.uint8)
            self.buffer_reallocations += 1
            logger.debug("allocated %dx%d raster buffer", bw, bh)
        return self._raster

    def sample_points(self, bw: int, bh: int, viewport: Viewport) -> np.ndarray:
        """Complex point under each raster pixel; row 0 is the top edge."""
        step = viewport.scale * self.config.downsample
        origin_re = viewport.center.real - (bw / 2) * step
        origin_im = viewport.center.imag + (bh / 2) * step
        re = origin_re + np.arange(bw) * step
        im = origin_im - np.arange(bh) * step
        return re[None, :] + 1j * im[:, None]

    def render_raster(
        self,
        width: int,
        height: int,
        viewport: Viewport,
        coefficients: Sequence[complex],
    ) -> np.ndarray:
        """Fill and return the downsampled RGBA buffer (bh, bw, 4)."""
        if width < 1 or height < 1:
            raise ValueError(f"Render size must be positive, got {width}x{height}")

        bw, bh = self.raster_size(width, height)
        raster = self._buffer(bw, bh)

        if len(coefficients) - 1 < 1:
            raster[...] = 0
            return raster

        z = self.sample_points(bw, bh, viewport)
        w = evaluate_polynomial_grid(coefficients, z)

        idx = phase_to_index(np.angle(w), len(self.lut))
        alpha = self.policy.alpha(np.abs(w), bw, bh)

        raster[..., :3] = self.lut[idx]
        raster[..., 3] = np.floor(np.nan_to_num(alpha) * 255 + 0.5).clip(0, 255).astype(np.uint8)
        return raster

    def render(
        self,
        width: int,
        height: int,
        viewport: Viewport,
        coefficients: Sequence[complex],
        out: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        """Render an RGBA frame of (height, width, 4) uint8, into `out` if given."""
        raster = self.render_raster(width, height, viewport, coefficients)

        resample = _RESAMPLE[self.config.resample]
        frame = np.asarray(Image.fromarray(raster).resize((width, height), resample=resample))

        if out is None:
            return frame.copy()
        if out.shape != (height, width, 4):
            raise ValueError(f"out has shape {out.shape}, expected {(height, width, 4)}")
        out[...] = frame
        return out

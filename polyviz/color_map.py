"""
Phase color lookup table.

Index i of the table represents raw hue i/N, i.e. phase (i/N)*2pi - pi after
the renderer's (phase + pi) shift. Colors come from a warped HSL wheel:
secondary hues are pulled toward the neighbouring primary and lightness is
shaped per hue (brighter red/blue, dimmer green/yellow).

The table is built once per process via phase_color_lut() and is read-only.
"""

import threading

import numpy as np

LUT_SIZE = 1024

SATURATION = 0.5
BASE_LIGHTNESS = 0.30
WARM_BIAS = -0.03   # ~11 degrees toward red
WARP_AMOUNT = 0.07  # ~25 degrees of shift at the secondaries

_LUT = None
_LUT_LOCK = threading.Lock()


def hsl_to_rgb(h, s, l):
    """
    Standard HSL -> RGB. h, s, l in [0,1] (scalars or arrays).
    Returns uint8 array with shape (..., 3), channels rounded half-up.
    """
    h = np.asarray(h, dtype=np.float64)
    s = np.broadcast_to(np.asarray(s, dtype=np.float64), h.shape)
    l = np.broadcast_to(np.asarray(l, dtype=np.float64), h.shape)

    q = np.where(l < 0.5, l * (1 + s), l + s - l * s)
    p = 2 * l - q

    def channel(t):
        t = np.where(t < 0, t + 1, t)
        t = np.where(t > 1, t - 1, t)
        return np.select(
            [t < 1 / 6, t < 1 / 2, t < 2 / 3],
            [p + (q - p) * 6 * t, q, p + (q - p) * (2 / 3 - t) * 6],
            default=p,
        )

    rgb = np.stack([channel(h + 1 / 3), channel(h), channel(h - 1 / 3)], axis=-1)
    return np.floor(rgb * 255 + 0.5).clip(0, 255).astype(np.uint8)


def hue_distance(a, b):
    """Circular distance between hues in [0,1]."""
    d = np.abs(np.asarray(a, dtype=np.float64) - b)
    return np.where(d < 0.5, d, 1 - d)


def bump(hue, center, radius):
    """Cosine bump: 1 at center, falling to 0 at +/- radius."""
    d = hue_distance(hue, center)
    return np.where(d < radius, (1 + np.cos(np.pi * d / radius)) / 2, 0.0)


def build_phase_lut(size: int = LUT_SIZE) -> np.ndarray:
    """Build a (size, 3) uint8 RGB table covering phase 0..2pi."""
    raw_hue = np.arange(size, dtype=np.float64) / size

    # (1 - cos(6 pi h)) / 2 is 0 at R/G/B and 1 at Y/C/M
    warp = WARP_AMOUNT * (1 - np.cos(6 * np.pi * raw_hue)) / 2
    hue = np.mod(raw_hue + warp + WARM_BIAS, 1.0)

    red_boost = 0.12 * bump(raw_hue, 0.0, 0.15)
    blue_boost = 0.05 * bump(raw_hue, 0.667, 0.12)
    green_yellow_dim = -0.08 * bump(raw_hue, 0.25, 0.15)
    lightness = BASE_LIGHTNESS + red_boost + blue_boost + green_yellow_dim

    return hsl_to_rgb(hue, SATURATION, lightness)


def phase_color_lut() -> np.ndarray:
    """Process-wide LUT, built on first use (thread-safe) and frozen."""
    global _LUT
    if _LUT is None:
        with _LUT_LOCK:
            if _LUT is None:
                lut = build_phase_lut(LUT_SIZE)
                lut.setflags(write=False)
                _LUT = lut
    return _LUT


def phase_to_index(phase, size: int = LUT_SIZE):
    """Map phase in (-pi, pi] to an integer LUT bucket in [0, size)."""
    idx = np.floor((np.asarray(phase, dtype=np.float64) + np.pi) * (size / (2 * np.pi)))
    idx = np.nan_to_num(idx, nan=0.0)
    return np.clip(idx, 0, size - 1).astype(np.intp)

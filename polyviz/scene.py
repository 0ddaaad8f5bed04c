"""
Complex plane scene: the state a frame is drawn from.

Edits (coefficients, roots, viewport, size, falloff) only mark the scene
dirty; tick() draws once per dirty period, so a burst of edits between two
ticks costs a single render.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import numpy as np

from polyviz.config import clamp_light_falloff
from polyviz.complex_ops import is_near_zero
from polyviz.polynomial import (
    InvalidDegreeError,
    Polynomial,
    RootSet,
    find_roots,
    roots_to_coefficients,
    trim_coefficients,
)
from polyviz.render import DomainColoringRenderer, Viewport

logger = logging.getLogger(__name__)

ROOT_HIT_RADIUS = 20
COEFF_HIT_RADIUS = 16

# RootSet.method for roots placed directly by the user
ROOT_EDIT = "root-edit"


class PlaneScene:
    def __init__(
        self,
        width: int,
        height: int,
        renderer: Optional[DomainColoringRenderer] = None,
        viewport: Optional[Viewport] = None,
        variable: str = "z",
    ):
        self.width = width
        self.height = height
        self.renderer = renderer or DomainColoringRenderer()
        self.viewport = viewport or Viewport()
        self.variable = variable

        self.coefficients: List[complex] = []
        self.root_set = RootSet(roots=[], converged=True)
        self.frame: Optional[np.ndarray] = None

        self.dirty = True
        self.render_count = 0

    # ---- state edits ----

    @property
    def roots(self) -> List[complex]:
        return self.root_set.roots

    @property
    def polynomial(self) -> Polynomial:
        return Polynomial(self.coefficients, self.variable)

    def set_coefficients(self, coefficients: Sequence[complex]):
        """Coefficient edit: keep at least degree 1, then re-solve for roots."""
        self.coefficients = trim_coefficients(coefficients, min_length=2)
        try:
            self.root_set = find_roots(self.coefficients)
        except InvalidDegreeError:
            # e.g. [a0, 0]: nothing to solve, the raster is still drawable
            logger.debug("coefficient edit left a constant polynomial, no roots")
            self.root_set = RootSet(roots=[], converged=True)
        self.mark_dirty()

    def set_roots(self, roots: Sequence[complex]):
        """Root edit: rebuild coefficients, keeping the current leading coefficient."""
        roots = [complex(r) for r in roots]
        if not roots:
            raise InvalidDegreeError("A root edit needs at least one root")

        leading = self.coefficients[-1] if self.coefficients else 1 + 0j
        if is_near_zero(leading):
            # e.g. after editing to [a0, 0]; a zero leading term would erase the roots
            leading = 1 + 0j

        self.coefficients = roots_to_coefficients(roots, leading)
        self.root_set = RootSet(roots=roots, converged=True, method=ROOT_EDIT)
        self.mark_dirty()

    def set_polynomial(self, poly: Polynomial):
        self.variable = poly.variable
        self.set_coefficients(poly.coefficients)

    def set_viewport(self, viewport: Viewport):
        self.viewport = viewport
        self.mark_dirty()

    def resize(self, width: int, height: int):
        self.width = width
        self.height = height
        self.mark_dirty()

    def set_light_falloff(self, value: float):
        self.renderer.set_light_falloff(clamp_light_falloff(value))
        self.mark_dirty()

    def pan(self, dx: float, dy: float):
        self.set_viewport(self.viewport.panned(dx, dy))

    def zoom_at(self, sx: float, sy: float, factor: float):
        self.set_viewport(self.viewport.zoomed_at(sx, sy, factor, self.width, self.height))

    # ---- drawing ----

    def mark_dirty(self):
        self.dirty = True

    def tick(self) -> Optional[np.ndarray]:
        """Draw if anything changed since the last tick. Returns the new frame or None."""
        if not self.dirty:
            return None
        self.dirty = False
        self.frame = self.renderer.render(self.width, self.height, self.viewport, self.coefficients)
        self.render_count += 1
        return self.frame

    # ---- coordinates / hit testing ----

    def screen_to_complex(self, sx: float, sy: float) -> complex:
        return self.viewport.screen_to_complex(sx, sy, self.width, self.height)

    def complex_to_screen(self, z: complex):
        return self.viewport.complex_to_screen(z, self.width, self.height)

    def _hit(self, points: Sequence[complex], order, sx: float, sy: float, radius: float) -> int:
        for i in order:
            x, y = self.complex_to_screen(points[i])
            dx, dy = sx - x, sy - y
            if dx * dx + dy * dy <= radius * radius:
                return i
        return -1

    def hit_test_root(self, sx: float, sy: float, radius: float = ROOT_HIT_RADIUS) -> int:
        """Index of the root under (sx, sy), or -1."""
        return self._hit(self.roots, range(len(self.roots)), sx, sy, radius)

    def hit_test_coefficient(self, sx: float, sy: float, radius: float = COEFF_HIT_RADIUS) -> int:
        """Index of the coefficient under (sx, sy), highest degree first, or -1."""
        n = len(self.coefficients)
        return self._hit(self.coefficients, range(n - 1, -1, -1), sx, sy, radius)

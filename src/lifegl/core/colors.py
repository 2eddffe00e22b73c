"""Rainbow colour cycle used for the extended variant's draw colour."""
import math
from typing import Tuple

# Cubehelix basis (Green 2011)
_A, _B, _C, _D, _E = -0.14861, 1.78277, -0.29227, -0.90649, 1.97294


def cubehelix_rgb(hue: float, saturation: float, lightness: float) -> Tuple[int, int, int]:
    """Convert a cubehelix colour (hue in degrees) to 8-bit RGB."""
    h = math.radians(hue + 120.0)
    amp = saturation * lightness * (1.0 - lightness)
    cos_h, sin_h = math.cos(h), math.sin(h)
    rgb = (lightness + amp * (_A * cos_h + _B * sin_h),
           lightness + amp * (_C * cos_h + _D * sin_h),
           lightness + amp * (_E * cos_h))
    return tuple(int(round(min(max(c, 0.0), 1.0) * 255.0)) for c in rgb)


def rainbow(t: float) -> Tuple[int, int, int]:
    """Cyclical cubehelix rainbow evaluated at ``t`` in [0, 1]."""
    if t < 0.0 or t > 1.0:
        t -= math.floor(t)
    ts = abs(t - 0.5)
    return cubehelix_rgb(360.0 * t - 100.0, 1.5 - 1.5 * ts, 0.8 - 0.9 * ts)


def rainbow_step(i: int, n: int) -> Tuple[int, int, int]:
    """Colour ``i`` of an ``n``-step sampling of the rainbow (both ends included)."""
    if not 0 <= i < n:
        raise ValueError(f"Step {i} outside gradient of {n} steps")
    if n == 1:
        return rainbow(0.0)
    return rainbow(i / (n - 1))

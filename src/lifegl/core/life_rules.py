"""Life rule, neighbour sampling and the NumPy simulation pass."""
from enum import IntEnum
from typing import Optional, Sequence, Tuple

import numpy as np

from ..utils.config import Config
from ..utils.logger import get_logger

LOG = get_logger(__name__)


class Variant(IntEnum):
    """Cell layouts. The value is the channel count of the CellGrid."""
    MONO = 1        # channel 0: liveness
    EXTENDED = 4    # RGB: embedded colour, A: liveness

    @property
    def channels(self) -> int:
        return int(self)

    @property
    def alive_channel(self) -> int:
        return 3 if self is Variant.EXTENDED else 0


class EdgePolicy(IntEnum):
    """How neighbours outside the grid are sampled."""
    DEAD = 0    # outside cells are dead
    WRAP = 1    # toroidal field
    CLAMP = 2   # repeat the border cell (clamp-to-edge texture sampling)


# Scan order used for neighbour counting and parent selection:
# row offset outer, column offset inner.
NEIGHBOR_OFFSETS: Tuple[Tuple[int, int], ...] = tuple(
    (dy, dx) for dy in (-1, 0, 1) for dx in (-1, 0, 1) if (dy, dx) != (0, 0)
)

_PAD_MODES = {
    EdgePolicy.DEAD: 'constant',
    EdgePolicy.WRAP: 'wrap',
    EdgePolicy.CLAMP: 'edge',
}

_HASH_X = np.uint32(374761393)
_HASH_Y = np.uint32(668265263)
_HASH_FRAME = 2246822519
_HASH_MIX = np.uint32(1274126177)


def parse_enum(enum_type, name):
    """Look up an enum member by case-insensitive name (``'wrap'``)."""
    if isinstance(name, enum_type):
        return name
    try:
        return enum_type[str(name).upper()]
    except KeyError:
        choices = ', '.join(m.name.lower() for m in enum_type)
        raise ValueError(f"Unknown {enum_type.__name__} '{name}', expected one of: {choices}")


def enum_setting(enum_type, name, default):
    """Like ``parse_enum`` but falls back to ``default`` for a bad stored value."""
    try:
        return parse_enum(enum_type, name)
    except ValueError as e:
        LOG.error(f"{e}, using {default}")
        return parse_enum(enum_type, default)


def next_state(alive, neighbors):
    """Conway's B3/S23 rule for one cell, or elementwise for arrays."""
    return (neighbors == 3) | (alive & (neighbors == 2))


def alive_mask(field: np.ndarray, variant: Variant,
               threshold: int = Config.LIVENESS_THRESHOLD) -> np.ndarray:
    """Boolean (height, width) liveness of a CellGrid buffer."""
    return field[:, :, variant.alive_channel] > threshold


def neighbor_view(values: np.ndarray, dy: int, dx: int, policy: EdgePolicy) -> np.ndarray:
    """Return ``values`` sampled at (y + dy, x + dx) for every cell.

    Args:
        values: Array whose first two axes are (height, width)
        dy: Row offset in [-1, 1]
        dx: Column offset in [-1, 1]
        policy: Border sampling policy
    """
    pad = [(1, 1), (1, 1)] + [(0, 0)] * (values.ndim - 2)
    padded = np.pad(values, pad, mode=_PAD_MODES[EdgePolicy(policy)])
    height, width = values.shape[:2]
    return padded[1 + dy:1 + dy + height, 1 + dx:1 + dx + width]


def count_neighbors(alive: np.ndarray, policy: EdgePolicy) -> np.ndarray:
    """Count live neighbours of every cell in a boolean mask."""
    count = np.zeros(alive.shape, dtype=np.uint8)
    for dy, dx in NEIGHBOR_OFFSETS:
        count += neighbor_view(alive, dy, dx, policy)
    return count


def life_step(alive: np.ndarray, policy: EdgePolicy = EdgePolicy.DEAD) -> np.ndarray:
    """Advance a boolean mask by one generation."""
    return next_state(alive, count_neighbors(alive, policy))


def cell_hash(x, y, frame: int) -> np.ndarray:
    """Per-cell uint32 hash, matching the GLSL and CUDA versions bit for bit."""
    x = np.asarray(x, dtype=np.uint32)
    y = np.asarray(y, dtype=np.uint32)
    frame_term = np.uint32((int(frame) * _HASH_FRAME) & 0xFFFFFFFF)
    # ufuncs wrap modulo 2**32 like the shader's uint arithmetic
    h = np.add(np.add(np.multiply(x, _HASH_X), np.multiply(y, _HASH_Y)), frame_term)
    h = np.multiply(np.bitwise_xor(h, np.right_shift(h, np.uint32(13))), _HASH_MIX)
    return np.bitwise_xor(h, np.right_shift(h, np.uint32(16)))


def brush_mask(width: int, height: int, center: Sequence[float], radius: float) -> np.ndarray:
    """Cells whose centre lies strictly within ``radius`` of ``center``."""
    if radius <= 0:
        return np.zeros((height, width), dtype=bool)
    cx, cy = float(center[0]), float(center[1])
    xs = np.arange(width, dtype=np.float64) + 0.5 - cx
    ys = np.arange(height, dtype=np.float64) + 0.5 - cy
    return (ys[:, None] ** 2 + xs[None, :] ** 2) < radius * radius


def simulation_pass(previous: np.ndarray, out: np.ndarray, variant: Variant,
                    policy: EdgePolicy, position: Sequence[float], draw_radius: float,
                    frame_bits: int, draw_color: Optional[Sequence[float]] = None,
                    evolve: bool = True) -> np.ndarray:
    """Compute the next CellGrid generation from ``previous`` into ``out``.

    This is the CPU rendition of the simulation fragment shader: Life rule
    (when ``evolve``), colour inheritance for the extended layout, then the
    brush forcing cells alive. ``previous`` is only read and ``out`` only
    written; the two must not alias.
    """
    variant = Variant(variant)
    if np.shares_memory(previous, out):
        raise ValueError("Simulation pass cannot read and write the same buffer")
    height, width = previous.shape[:2]

    if evolve:
        alive = alive_mask(previous, variant)
        next_alive = life_step(alive, policy)
        survive = alive & next_alive
        born = ~alive & next_alive

        out[...] = 0
        if variant is Variant.MONO:
            out[survive | born, 0] = 255
        else:
            out[survive, :3] = previous[survive, :3]
            # born cells take the colour of one of their three parents
            ys, xs = np.mgrid[0:height, 0:width]
            pick = cell_hash(xs, ys, frame_bits) % np.uint32(3)
            seen = np.zeros((height, width), dtype=np.uint32)
            for dy, dx in NEIGHBOR_OFFSETS:
                parent_alive = neighbor_view(alive, dy, dx, policy)
                rgb = neighbor_view(previous[:, :, :3], dy, dx, policy)
                chosen = born & parent_alive & (seen == pick)
                out[chosen, :3] = rgb[chosen]
                seen += parent_alive
            out[survive | born, 3] = 255
    else:
        out[...] = previous

    brush = brush_mask(width, height, position, draw_radius)
    if brush.any():
        if variant is Variant.MONO:
            out[brush, 0] = 255
        else:
            color = draw_color if draw_color is not None else (0.0, 0.0, 0.0, 0.0)
            out[brush, :3] = [int(round(float(c) * 255.0)) for c in color[:3]]
            out[brush, 3] = 255
    return out


def place_pattern(field: np.ndarray, variant: Variant, cells: Sequence[Tuple[int, int]],
                  origin: Tuple[int, int], color: Tuple[int, int, int] = (255, 255, 255)) -> None:
    """Set ``(dx, dy)`` offsets from ``origin`` alive, skipping out-of-field cells."""
    variant = Variant(variant)
    height, width = field.shape[:2]
    for dx, dy in cells:
        x, y = origin[0] + dx, origin[1] + dy
        if 0 <= x < width and 0 <= y < height:
            if variant is Variant.MONO:
                field[y, x, 0] = 255
            else:
                field[y, x] = (*color, 255)


GLIDER = ((1, 0), (2, 1), (0, 2), (1, 2), (2, 2))

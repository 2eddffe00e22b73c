"""Shared fixtures.

- fixed NumPy seed
- a plain-Python Life rule used as the reference implementation
"""
from typing import Callable, List, Sequence, Tuple

import numpy as np
import pytest

Grid = List[List[bool]]

@pytest.fixture(scope="session", autouse=True)
def np_seed() -> None:
    np.random.seed(12345)

def _reference_step(grid: Grid) -> Grid:
    height, width = len(grid), len(grid[0])
    out = [[False] * width for _ in range(height)]
    for y in range(height):
        for x in range(width):
            count = 0
            for dy in (-1, 0, 1):
                for dx in (-1, 0, 1):
                    if (dy or dx) and 0 <= y + dy < height and 0 <= x + dx < width:
                        count += grid[y + dy][x + dx]
            out[y][x] = count == 3 or (grid[y][x] and count == 2)
    return out

def _reference_disc(width: int, height: int, center: Tuple[float, float], radius: float) -> Grid:
    cx, cy = center
    return [[(x + 0.5 - cx) ** 2 + (y + 0.5 - cy) ** 2 < radius ** 2 for x in range(width)]
            for y in range(height)]

@pytest.fixture()
def reference_step() -> Callable[[Grid], Grid]:
    """B3/S23 on nested lists with dead cells beyond the border."""
    return _reference_step

@pytest.fixture()
def reference_disc() -> Callable[..., Grid]:
    return _reference_disc

def mono_field(width: int, height: int, cells: Sequence[Tuple[int, int]]) -> np.ndarray:
    """Mono field with ``(x, y)`` cells alive."""
    field = np.zeros((height, width, 1), dtype=np.uint8)
    for x, y in cells:
        field[y, x, 0] = 255
    return field

@pytest.fixture()
def make_mono_field() -> Callable[..., np.ndarray]:
    return mono_field

import numpy as np
import pytest

from lifegl.core.cell_grid import CellGrid, PingPong


def test_ping_pong_alternates() -> None:
    pair = PingPong('a', 'b')
    assert (pair.read, pair.write) == ('a', 'b')
    pair.swap()
    assert (pair.read, pair.write) == ('b', 'a')
    pair.swap()
    assert pair.read == 'a'


def test_cell_grid_buffers_never_alias() -> None:
    grid = CellGrid(8, 4, 4)
    assert grid.shape == (4, 8, 4)
    for _ in range(3):
        assert not np.shares_memory(grid.read, grid.write)
        grid.swap()


def test_load_rejects_wrong_shape() -> None:
    grid = CellGrid(8, 4, 1)
    with pytest.raises(ValueError):
        grid.load(np.zeros((8, 4, 1), dtype=np.uint8))


def test_reshape_keeps_overlap() -> None:
    grid = CellGrid(4, 4, 1)
    field = np.arange(16, dtype=np.uint8).reshape(4, 4, 1)
    grid.load(field)
    grid.reshape(6, 2, 1)
    assert grid.shape == (2, 6, 1)
    assert np.array_equal(grid.read[:, :4], field[:2])
    assert not grid.read[:, 4:].any()
    assert not grid.write.any()


def test_clear_resets_both_buffers() -> None:
    grid = CellGrid(3, 3, 1)
    grid.read.fill(255)
    grid.swap()
    grid.read.fill(255)
    grid.clear()
    assert grid.index == 0
    assert not grid.read.any() and not grid.write.any()

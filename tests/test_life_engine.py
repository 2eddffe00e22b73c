import numpy as np
import pytest

from lifegl.core.cursor import Camera2D
from lifegl.core.frame_state import DisplayPayload
from lifegl.core.life_engine import (LifeEngine, colorize, composite, convert_field,
                                     field_from_rgba)
from lifegl.core.life_rules import EdgePolicy, Variant, alive_mask
from lifegl.utils.config import Config


def _rgba8(color) -> np.ndarray:
    return np.round(np.asarray(color) * 255.0).astype(np.uint8)


def test_convert_field_keeps_liveness() -> None:
    mono = np.zeros((3, 4, 1), dtype=np.uint8)
    mono[1, 2, 0] = 255
    extended = convert_field(mono, Variant.MONO, Variant.EXTENDED)
    assert extended.shape == (3, 4, 4)
    assert tuple(extended[1, 2]) == (255, 255, 255, 255)
    assert alive_mask(extended, Variant.EXTENDED).sum() == 1

    back = convert_field(extended, Variant.EXTENDED, Variant.MONO)
    assert np.array_equal(back, mono)


def test_field_from_rgba_thresholds_luminance() -> None:
    rgba = np.zeros((1, 3, 4), dtype=np.uint8)
    rgba[0, 0] = (255, 255, 255, 255)
    rgba[0, 1] = (40, 40, 40, 255)
    rgba[0, 2] = (0, 255, 0, 255)   # luminance ~150
    mono = field_from_rgba(rgba, Variant.MONO)
    assert mono[0, :, 0].tolist() == [255, 0, 255]

    extended = field_from_rgba(rgba, Variant.EXTENDED)
    assert tuple(extended[0, 2]) == (0, 255, 0, 255)
    assert tuple(extended[0, 1]) == (0, 0, 0, 0)


def test_colorize_shades_mono_cells() -> None:
    field = np.zeros((2, 2, 1), dtype=np.uint8)
    field[0, 0, 0] = 255
    rgba = colorize(field, Variant.MONO)
    assert tuple(rgba[0, 0]) == tuple(_rgba8(Config.ALIVE_COLOR))
    assert tuple(rgba[1, 1]) == tuple(_rgba8(Config.DEAD_COLOR))


def test_colorize_tints_extended_cells() -> None:
    field = np.zeros((1, 1, 4), dtype=np.uint8)
    field[0, 0] = (255, 0, 0, 255)
    display = DisplayPayload(tint=(0.0, 0.0, 1.0, 0.0), tint_strength=0.5)
    r, g, b, a = colorize(field, Variant.EXTENDED, display)[0, 0]
    assert (int(r), int(g), int(b), int(a)) == (128, 0, 128, 255)


def test_composite_at_unit_scale_equals_colorize() -> None:
    field = np.zeros((8, 16, 4), dtype=np.uint8)
    field[np.random.random((8, 16)) < 0.5] = (200, 100, 50, 255)
    display = DisplayPayload(viewport=(16.0, 8.0))
    assert np.array_equal(composite(field, Variant.EXTENDED, display),
                          colorize(field, Variant.EXTENDED, display))


def test_composite_draws_border_outside_field() -> None:
    field = np.full((8, 16, 1), 255, dtype=np.uint8)
    display = DisplayPayload(viewport=(20.0, 8.0))
    out = composite(field, Variant.MONO, display)
    assert out.shape == (8, 20, 4)
    border = _rgba8(Config.BORDER_COLOR)
    assert (out[:, :2] == border).all()
    assert (out[:, -2:] == border).all()
    assert (out[:, 2:-2] == _rgba8(Config.ALIVE_COLOR)).all()


def test_composite_draws_cursor_ring() -> None:
    field = np.zeros((40, 40, 1), dtype=np.uint8)
    display = DisplayPayload(viewport=(40.0, 40.0), cursor=(20.0, 20.0), cursor_radius=10.0)
    out = composite(field, Variant.MONO, display)
    cursor = _rgba8(Config.CURSOR_COLOR)
    assert (out[20, 29] == cursor).all()      # pixel centre (29.5, 20.5) is ~9.51 away
    assert (out[20, 20] == _rgba8(Config.DEAD_COLOR)).all()


def test_composite_follows_camera() -> None:
    field = np.zeros((10, 10, 1), dtype=np.uint8)
    field[0, 0, 0] = 255
    # zoomed in 2x on the top-left cell's corner
    display = DisplayPayload(viewport=(4.0, 4.0), camera=Camera2D(position=(-5.0, 5.0), scale=0.5))
    out = composite(field, Variant.MONO, display)
    alive = _rgba8(Config.ALIVE_COLOR)
    assert (out[2:, 2:] == alive).all()
    assert (out[:2, :2] == _rgba8(Config.BORDER_COLOR)).all()


def test_engine_step_advances_generation() -> None:
    engine = LifeEngine(16, 16, Variant.MONO)
    engine.step(3)
    assert engine.generation == 3
    engine.reset()
    assert engine.generation == 0


def test_engine_get_field_is_a_copy() -> None:
    engine = LifeEngine(4, 4, Variant.MONO)
    field = engine.get_field_cpu()
    field[...] = 255
    assert engine.population == 0


def test_engine_resize_keeps_cells() -> None:
    engine = LifeEngine(10, 10, Variant.EXTENDED)
    field = np.zeros((10, 10, 4), dtype=np.uint8)
    field[2, 3] = (1, 2, 3, 255)
    field[9, 9] = (4, 5, 6, 255)
    engine.set_field(field)
    engine.resize(6, 5)
    assert (engine.width, engine.height) == (6, 5)
    result = engine.get_field_cpu()
    assert result.shape == (5, 6, 4)
    assert tuple(result[2, 3]) == (1, 2, 3, 255)
    assert engine.population == 1


def test_engine_set_variant_converts_field() -> None:
    engine = LifeEngine(8, 8, Variant.EXTENDED)
    engine.add_noise(0.5, seed=7)
    before = engine.population
    engine.set_variant(Variant.MONO)
    assert engine.get_field_cpu().shape == (8, 8, 1)
    assert engine.population == before


def test_engine_set_field_rejects_wrong_shape() -> None:
    engine = LifeEngine(8, 8, Variant.MONO)
    with pytest.raises(ValueError):
        engine.set_field(np.zeros((8, 8, 4), dtype=np.uint8))


@pytest.mark.parametrize("density,expected", [(0.0, 0), (1.0, 64)])
def test_add_noise_density_bounds(density: float, expected: int) -> None:
    engine = LifeEngine(8, 8, Variant.EXTENDED)
    engine.add_noise(density, seed=1)
    assert engine.population == expected


def test_add_noise_is_seeded() -> None:
    a, b = LifeEngine(16, 16), LifeEngine(16, 16)
    a.add_noise(0.3, seed=11)
    b.add_noise(0.3, seed=11)
    assert np.array_equal(a.get_field_cpu(), b.get_field_cpu())


def test_edge_policy_switch() -> None:
    engine = LifeEngine(8, 8, Variant.MONO)
    engine.set_edge_policy(EdgePolicy.WRAP)
    assert engine.edge_policy is EdgePolicy.WRAP

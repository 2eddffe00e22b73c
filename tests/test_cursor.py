import pytest

from lifegl.core.cursor import Camera2D, CursorMapper, CursorState, world_to_simulation
from lifegl.core.frame_state import DisplayPayload


def test_viewport_center_maps_to_world_origin() -> None:
    camera = Camera2D()
    assert camera.viewport_to_world((800.0, 450.0), (1600.0, 900.0)) == (0.0, 0.0)


@pytest.mark.parametrize("pixel", [(-1.0, 10.0), (1600.0, 10.0), (10.0, 900.0), (5.0, -0.5)])
def test_pointer_outside_viewport_maps_to_nothing(pixel) -> None:
    assert Camera2D().viewport_to_world(pixel, (1600.0, 900.0)) is None


def test_world_y_points_up() -> None:
    camera = Camera2D()
    x, y = camera.viewport_to_world((810.0, 440.0), (1600.0, 900.0))
    assert (x, y) == (10.0, 10.0)


def test_world_to_simulation_shift_and_flip() -> None:
    assert world_to_simulation((0.0, 0.0), (1600, 900)) == (800.0, 450.0)
    assert world_to_simulation((10.0, 20.0), (1600, 900)) == (810.0, 430.0)


def test_mapper_updates_cursor() -> None:
    cursor = CursorState(size=5.0)
    display = DisplayPayload(viewport=(200.0, 100.0))
    point = CursorMapper().update(cursor, (100.0, 50.0), display)
    assert point == (0.0, 0.0)
    assert cursor.pos == (0.0, 0.0)
    assert cursor.size == 5.0


@pytest.mark.parametrize("pointer", [None, (-3.0, 20.0), (250.0, 20.0)])
def test_mapper_leaves_cursor_alone_without_pointer(pointer) -> None:
    cursor = CursorState(pos=(7.0, -3.0))
    display = DisplayPayload(viewport=(200.0, 100.0))
    assert CursorMapper().update(cursor, pointer, display) is None
    assert cursor.pos == (7.0, -3.0)


def test_mapper_uses_camera() -> None:
    cursor = CursorState()
    display = DisplayPayload(viewport=(200.0, 100.0))
    display.camera.position = (30.0, -20.0)
    display.camera.scale = 0.5
    CursorMapper().update(cursor, (120.0, 50.0), display)
    assert cursor.pos == (40.0, -20.0)


def test_zoom_keeps_point_under_pointer() -> None:
    camera = Camera2D()
    viewport = (400.0, 300.0)
    before = camera.viewport_to_world((100.0, 75.0), viewport)
    camera.zoom_about((100.0, 75.0), viewport, 2.0)
    after = camera.viewport_to_world((100.0, 75.0), viewport)
    assert camera.scale == pytest.approx(0.5)
    assert after == pytest.approx(before)


def test_zoom_is_clamped() -> None:
    camera = Camera2D()
    for _ in range(200):
        camera.zoom_about((0.0, 0.0), (100.0, 100.0), 2.0)
    assert camera.scale > 0.0


def test_pan_moves_view_with_drag() -> None:
    camera = Camera2D(scale=2.0)
    camera.pan_pixels(10.0, 5.0)
    # dragging right/down moves the view left/up in world space
    assert camera.position == (-20.0, 10.0)


def test_fit_centres_field() -> None:
    camera = Camera2D(position=(5.0, 5.0), scale=3.0)
    camera.fit((100, 50), (200.0, 200.0), padding=1.0)
    assert camera.position == (0.0, 0.0)
    assert camera.scale == pytest.approx(0.5)

    assert world_to_simulation(camera.viewport_to_world((0.0, 100.0), (200.0, 200.0)),
                               (100, 50)) == pytest.approx((0.0, 25.0))

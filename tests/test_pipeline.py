from typing import List

import numpy as np
import pytest

from lifegl.core.colors import rainbow_step
from lifegl.core.life_engine import LifeEngine, composite
from lifegl.core.life_rules import Variant, alive_mask
from lifegl.core.pipeline import HostFrame, LifePipeline
from lifegl.core.resize import ResizeEvent, resize_queue


class RecordingCompositor:
    """Composites on the CPU and remembers what it was given."""

    def __init__(self):
        self.frames: List[np.ndarray] = []
        self.generations: List[int] = []

    def composite(self, engine, display) -> None:
        self.generations.append(engine.generation)
        self.frames.append(composite(engine.get_field_cpu(), engine.variant, display))


def _frame(pointer, pressed: bool, frame_count: int, *sizes) -> HostFrame:
    events = resize_queue()
    events.extend(ResizeEvent(w, h) for w, h in sizes)
    return HostFrame(pointer, pressed, frame_count, events)


@pytest.mark.parametrize("variant", list(Variant))
def test_brush_click_then_evolution_matches_reference(variant, reference_step, reference_disc) -> None:
    width, height = 64, 48
    engine = LifeEngine(width, height, variant)
    pipeline = LifePipeline(engine, brush_radius=10)

    # click at the viewport centre: world origin
    assert pipeline.run_frame(_frame((32.0, 24.0), True, 0, (width, height)))
    assert pipeline.cursor.pos == (0.0, 0.0)
    expected = reference_disc(width, height, (32.0, 24.0), 10.0)
    assert alive_mask(engine.get_field_cpu(), variant).tolist() == expected

    for frame_count in range(1, 16):
        assert pipeline.run_frame(_frame((32.0, 24.0), False, frame_count))
        expected = reference_step(expected)
        assert alive_mask(engine.get_field_cpu(), variant).tolist() == expected
    assert engine.generation == 16


def test_extended_brush_paints_frame_color() -> None:
    engine = LifeEngine(32, 32, Variant.EXTENDED)
    pipeline = LifePipeline(engine, brush_radius=3)
    pipeline.run_frame(_frame((16.0, 16.0), True, 0, (32, 32)))
    field = engine.get_field_cpu()
    assert tuple(field[16, 16]) == (*rainbow_step(0, 1000), 255)


def test_resize_is_applied_before_cursor_mapping() -> None:
    engine = LifeEngine(64, 64, Variant.MONO)
    pipeline = LifePipeline(engine)
    # with the default 1600x900 viewport this pixel would map far off-centre
    pipeline.run_frame(_frame((150.0, 100.0), False, 0, (1000, 1000), (300, 200)))
    assert pipeline.display.viewport == (300.0, 200.0)
    assert pipeline.cursor.pos == (0.0, 0.0)


def test_composite_sees_the_new_generation() -> None:
    engine = LifeEngine(16, 16, Variant.MONO)
    compositor = RecordingCompositor()
    pipeline = LifePipeline(engine, compositor, brush_radius=2)
    pipeline.run_frame(_frame((8.0, 8.0), True, 0, (16, 16)))
    assert compositor.generations == [1]
    # the painted disc is already visible in this frame's composite
    assert not np.array_equal(compositor.frames[0][8, 8], compositor.frames[0][0, 0])
    assert pipeline.display.cursor == (8.0, 8.0)
    assert pipeline.display.cursor_radius == 2.0
    assert pipeline.last_state.draw_radius > 0


def test_pointer_outside_hides_cursor_ring() -> None:
    engine = LifeEngine(16, 16, Variant.MONO)
    pipeline = LifePipeline(engine)
    pipeline.run_frame(_frame(None, False, 0, (16, 16)))
    assert pipeline.display.cursor is None
    assert pipeline.display.cursor_radius == 0.0


def test_missing_material_skips_frame() -> None:
    engine = LifeEngine(16, 16, Variant.MONO)
    compositor = RecordingCompositor()
    pipeline = LifePipeline(engine, compositor)
    engine.material = None

    assert pipeline.run_frame(_frame((8.0, 8.0), True, 0, (16, 16))) is False
    assert engine.population == 0
    assert engine.generation == 0
    assert compositor.frames == []


def test_paused_frames_still_paint() -> None:
    engine = LifeEngine(32, 32, Variant.MONO)
    pipeline = LifePipeline(engine, brush_radius=1)
    pipeline.running = False

    # pointer on a cell centre paints one cell, which would die if the rule ran
    pipeline.run_frame(_frame((16.5, 16.5), True, 0, (32, 32)))
    assert engine.population == 1
    assert engine.generation == 0

    pipeline.run_frame(_frame((16.5, 16.5), False, 1))
    assert engine.population == 1

    pipeline.request_step()
    pipeline.run_frame(_frame((16.5, 16.5), False, 2))
    assert engine.population == 0
    assert engine.generation == 1
    assert pipeline.pending_steps == 0


def test_set_engine_updates_packer() -> None:
    pipeline = LifePipeline(LifeEngine(16, 16, Variant.MONO))
    pipeline.set_engine(LifeEngine(40, 20, Variant.EXTENDED))
    assert (pipeline.packer.width, pipeline.packer.height) == (40, 20)
    assert pipeline.packer.variant is Variant.EXTENDED


def test_step_request_while_running_is_ignored() -> None:
    engine = LifeEngine(16, 16, Variant.MONO)
    pipeline = LifePipeline(engine)
    pipeline.running = True
    pipeline.request_step(3)
    for frame in range(5):
        pipeline.run_frame(_frame(None, False, frame))
    assert engine.generation == 5

    pipeline.running = False
    for frame in range(5, 10):
        pipeline.run_frame(_frame(None, False, frame))
    assert engine.generation == 5
    assert pipeline.pending_steps == 0

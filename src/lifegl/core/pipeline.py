"""Per-frame ordering of the cursor, packer, simulation and composite passes."""
from dataclasses import dataclass, field
from typing import Deque, Optional, Tuple

from .cursor import CursorMapper, CursorState, world_to_simulation
from .frame_state import DisplayPayload, FrameState, FrameStatePacker
from .resize import ResizeEvent, ViewportResizeHandler, resize_queue
from ..utils.config import Config


@dataclass
class HostFrame:
    """What the windowing host reports for one frame."""
    pointer: Optional[Tuple[float, float]]  # window pixels, None when outside/absent
    primary_pressed: bool
    frame_count: int
    resize_events: Deque[ResizeEvent] = field(default_factory=resize_queue)


class LifePipeline:
    """Runs one frame of the Life application in a fixed order.

    1. drain resize events into the display payload
    2. map the pointer into the cursor state
    3. pack the frame state into the engine's material
    4. one simulation pass
    5. composite pass

    ``engine`` is any of the Life engines; ``compositor`` is an object with a
    ``composite(engine, display)`` method, or None for headless use.
    """

    def __init__(self, engine, compositor=None, brush_radius: float = Config.DEFAULT_BRUSH_RADIUS):
        self.engine = engine
        self.compositor = compositor
        self.cursor = CursorState(size=float(brush_radius))
        self.display = DisplayPayload()
        self.mapper = CursorMapper()
        self.resize_handler = ViewportResizeHandler()
        self.packer = FrameStatePacker(engine.width, engine.height, engine.variant)
        self.running = Config.START_RUNNING
        self.pending_steps = 0
        self.last_state: Optional[FrameState] = None

    def set_engine(self, engine) -> None:
        self.engine = engine
        self.sync_engine()

    def sync_engine(self) -> None:
        """Pick up engine size or layout changes."""
        self.packer.width = self.engine.width
        self.packer.height = self.engine.height
        self.packer.variant = self.engine.variant

    def request_step(self, steps: int = 1) -> None:
        """Evolve for ``steps`` frames while paused. Ignored while running."""
        if self.running:
            return
        self.pending_steps += steps

    def run_frame(self, frame: HostFrame) -> bool:
        """Execute one frame.

        Returns:
            False when the frame was skipped because the material is missing
        """
        self.resize_handler.drain(frame.resize_events, self.display)
        pointer_world = self.mapper.update(self.cursor, frame.pointer, self.display)

        evolve = self.running or self.pending_steps > 0
        state = self.packer.pack(self.engine.material, self.cursor, frame.frame_count,
                                 frame.primary_pressed, evolve)
        if state is None:
            return False
        if evolve and not self.running:
            self.pending_steps -= 1

        self.engine.simulate(self.engine.material)

        self.display.tint = state.draw_color
        if pointer_world is not None:
            self.display.cursor = world_to_simulation(pointer_world,
                                                      (self.engine.width, self.engine.height))
            self.display.cursor_radius = state.brush_radius
        else:
            self.display.cursor = None
            self.display.cursor_radius = 0.0

        if self.compositor is not None:
            self.compositor.composite(self.engine, self.display)
        self.last_state = state
        return True

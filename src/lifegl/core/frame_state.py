"""Per-frame uniform payloads and the packer that fills them."""
from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np

from .colors import rainbow_step
from .cursor import Camera2D, CursorState, world_to_simulation
from .life_rules import Variant
from ..utils.config import Config
from ..utils.logger import get_logger

LOG = get_logger(__name__)

Color = Tuple[float, float, float, float]


def frame_bits_to_float(frame_count: int) -> np.float32:
    """Reinterpret the low 32 bits of ``frame_count`` as a float32.

    The bits are copied, not converted: ``frame_bits_to_float(1)`` is the
    smallest subnormal, not ``1.0``.
    """
    bits = np.array([frame_count & 0xFFFFFFFF], dtype=np.uint32)
    return bits.view(np.float32)[0]


def float_to_frame_bits(value) -> int:
    """Inverse of ``frame_bits_to_float``."""
    return int(np.array([value], dtype=np.float32).view(np.uint32)[0])


def rainbow_color(frame_count: int, steps: int = Config.COLOR_CYCLE_STEPS) -> Color:
    """Draw colour for ``frame_count``: rainbow position ``frame % steps``, alpha 0."""
    r, g, b = rainbow_step(frame_count % steps, steps)
    return (r / 255.0, g / 255.0, b / 255.0, 0.0)


@dataclass(frozen=True)
class FrameState:
    """Inputs the simulation pass sees for one frame."""
    position: Tuple[float, float]
    brush_radius: float
    frame_bits: int
    draw_radius: float
    draw_color: Color = (0.0, 0.0, 0.0, 0.0)
    evolve: bool = True


class LifeMaterial:
    """Uniform block read by the simulation pass.

    std140 layout, 48 bytes::

        vec4 info;        // cursor x, cursor y, frame bits, draw radius
        vec4 draw_color;
        vec4 params;      // evolve flag, unused x3
    """

    NBYTES = 48

    def __init__(self):
        self.info = np.zeros(4, dtype=np.float32)
        self.draw_color = np.zeros(4, dtype=np.float32)
        self.params = np.zeros(4, dtype=np.float32)

    def apply(self, state: FrameState) -> None:
        self.info[0] = state.position[0]
        self.info[1] = state.position[1]
        self.info.view(np.uint32)[2] = state.frame_bits
        self.info[3] = state.draw_radius
        self.draw_color[:] = state.draw_color
        self.params[0] = 1.0 if state.evolve else 0.0

    @property
    def position(self) -> Tuple[float, float]:
        return (float(self.info[0]), float(self.info[1]))

    @property
    def frame_bits(self) -> int:
        return float_to_frame_bits(self.info[2])

    @property
    def draw_radius(self) -> float:
        return float(self.info[3])

    @property
    def evolve(self) -> bool:
        return bool(self.params[0] > 0.5)

    def pack(self) -> bytes:
        return self.info.tobytes() + self.draw_color.tobytes() + self.params.tobytes()


@dataclass
class DisplayPayload:
    """Inputs the composite pass sees for one frame."""
    tint: Color = (0.0, 0.0, 0.0, 0.0)
    tint_strength: float = Config.TINT_STRENGTH
    viewport: Tuple[float, float] = (float(Config.WINDOW_WIDTH), float(Config.WINDOW_HEIGHT))
    pixel_ratio: float = 1.0
    camera: Camera2D = field(default_factory=Camera2D)
    cursor: Optional[Tuple[float, float]] = None  # simulation space, None hides the ring
    cursor_radius: float = 0.0


class FrameStatePacker:
    """Builds the FrameState for each frame and writes it into the material."""

    def __init__(self, width: int, height: int, variant: Variant = Variant.EXTENDED):
        self.width = width
        self.height = height
        self.variant = Variant(variant)

    def pack(self, material: Optional[LifeMaterial], cursor: CursorState, frame_count: int,
             pressed: bool, evolve: bool = True) -> Optional[FrameState]:
        """Fill ``material`` for this frame.

        Args:
            material: Target uniform payload, None if it could not be located
            cursor: Cursor state in world space
            frame_count: Monotonic host frame counter
            pressed: Whether the primary pointer button is held
            evolve: Whether the Life rule runs this frame

        Returns:
            The packed FrameState, or None when the frame is skipped
        """
        if material is None:
            LOG.warning(f"Material not found, skipping frame {frame_count}")
            return None

        position = world_to_simulation(cursor.pos, (self.width, self.height))
        if self.variant is Variant.EXTENDED:
            draw_color = rainbow_color(frame_count)
        else:
            draw_color = (0.0, 0.0, 0.0, 0.0)

        state = FrameState(
            position=position,
            brush_radius=float(cursor.size),
            frame_bits=frame_count & 0xFFFFFFFF,
            draw_radius=float(cursor.size) if pressed else 0.0,
            draw_color=draw_color,
            evolve=evolve,
        )
        material.apply(state)
        return state

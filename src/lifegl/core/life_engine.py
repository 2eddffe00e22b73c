"""Life simulation engine on NumPy arrays, plus CPU colourisation."""
from typing import Optional

import numpy as np

from .cell_grid import CellGrid
from .frame_state import DisplayPayload, FrameState, LifeMaterial
from .life_rules import EdgePolicy, Variant, alive_mask, simulation_pass
from ..utils.config import Config
from ..utils.logger import get_logger

LOG = get_logger(__name__)


def convert_field(field: np.ndarray, source: Variant, target: Variant) -> np.ndarray:
    """Convert a field between cell layouts, keeping liveness.

    Mono cells become white extended cells; extended cells keep only liveness.
    """
    source, target = Variant(source), Variant(target)
    if source is target:
        return field.copy()
    alive = alive_mask(field, source)
    out = np.zeros(field.shape[:2] + (target.channels,), dtype=np.uint8)
    out[alive] = 255
    return out


def field_from_rgba(rgba: np.ndarray, variant: Variant,
                    threshold: int = Config.LIVENESS_THRESHOLD) -> np.ndarray:
    """Turn an RGBA image into a field: bright pixels (luminance > threshold) are alive."""
    rgba = np.asarray(rgba, dtype=np.uint8)
    luminance = rgba[:, :, :3].astype(np.float32) @ np.array([0.299, 0.587, 0.114], dtype=np.float32)
    alive = luminance > threshold
    field = np.zeros(rgba.shape[:2] + (Variant(variant).channels,), dtype=np.uint8)
    if Variant(variant) is Variant.MONO:
        field[alive, 0] = 255
    else:
        field[alive, :3] = rgba[alive, :3]
        field[alive, 3] = 255
    return field


def colorize(field: np.ndarray, variant: Variant,
             display: Optional[DisplayPayload] = None) -> np.ndarray:
    """RGBA image of a field in simulation space, as the composite pass shades it."""
    display = display or DisplayPayload()
    dead = np.asarray(Config.DEAD_COLOR[:3], dtype=np.float32)
    if Variant(variant) is Variant.MONO:
        level = field[:, :, 0:1].astype(np.float32) / 255.0
        live = np.asarray(Config.ALIVE_COLOR[:3], dtype=np.float32)
    else:
        level = field[:, :, 3:4].astype(np.float32) / 255.0
        base = field[:, :, :3].astype(np.float32) / 255.0
        tint = np.asarray(display.tint[:3], dtype=np.float32)
        live = base + (tint - base) * display.tint_strength
    rgb = dead + (live - dead) * level

    rgba = np.empty(field.shape[:2] + (4,), dtype=np.uint8)
    rgba[:, :, :3] = np.round(np.clip(rgb, 0.0, 1.0) * 255.0)
    rgba[:, :, 3] = 255
    return rgba


def composite(field: np.ndarray, variant: Variant, display: DisplayPayload) -> np.ndarray:
    """Render a field into a viewport-sized RGBA image (CPU composite pass).

    Window pixels are mapped through the display camera into simulation
    space; pixels outside the field get the border colour, and the brush
    ring is drawn when a cursor is set.
    """
    vw, vh = int(round(display.viewport[0])), int(round(display.viewport[1]))
    height, width = field.shape[:2]
    colors = colorize(field, variant, display)
    camera = display.camera

    px = np.arange(vw, dtype=np.float64) + 0.5
    py = np.arange(vh, dtype=np.float64) + 0.5
    sx = (px - vw / 2) * camera.scale + camera.position[0] + width / 2
    sy = (py - vh / 2) * camera.scale - camera.position[1] + height / 2
    ix = np.floor(sx).astype(np.int64)
    iy = np.floor(sy).astype(np.int64)
    inside = ((iy >= 0) & (iy < height))[:, None] & ((ix >= 0) & (ix < width))[None, :]

    out = np.empty((vh, vw, 4), dtype=np.uint8)
    out[:, :] = np.round(np.asarray(Config.BORDER_COLOR) * 255.0).astype(np.uint8)
    sampled = colors[np.clip(iy, 0, height - 1)[:, None], np.clip(ix, 0, width - 1)[None, :]]
    out[inside] = sampled[inside]

    if display.cursor is not None and display.cursor_radius > 0:
        cx, cy = display.cursor
        dist = np.hypot(sx[None, :] - cx, sy[:, None] - cy)
        ring = np.abs(dist - display.cursor_radius) <= 0.5 * camera.scale
        out[ring] = np.round(np.asarray(Config.CURSOR_COLOR) * 255.0).astype(np.uint8)
    return out


class LifeEngine:
    """Life simulation on NumPy ping-pong buffers.

    Reference implementation of the simulation pass; the CUDA and GLSL
    engines follow the same interface.
    """

    name = "numpy"
    xp = np

    def __init__(self, width: int = Config.FIELD_WIDTH, height: int = Config.FIELD_HEIGHT,
                 variant: Variant = Variant.EXTENDED, edge_policy: EdgePolicy = EdgePolicy.DEAD):
        """Initialize the engine.

        Args:
            width: Field width in cells
            height: Field height in cells
            variant: Cell layout (mono or extended)
            edge_policy: Neighbour sampling at the field border
        """
        self.width = width
        self.height = height
        self.variant = Variant(variant)
        self.edge_policy = EdgePolicy(edge_policy)
        self.generation = 0

        self.grid = CellGrid(width, height, self.variant.channels, xp=self.xp)
        self.material: Optional[LifeMaterial] = LifeMaterial()

        LOG.info(f"{self.name} engine {width}x{height}, variant={self.variant.name}, "
                 f"edges={self.edge_policy.name}")

    def simulate(self, material: LifeMaterial) -> None:
        """Run one simulation pass: read the current buffer, write the other, swap."""
        simulation_pass(self.grid.read, self.grid.write, self.variant, self.edge_policy,
                        material.position, material.draw_radius, material.frame_bits,
                        material.draw_color, material.evolve)
        self._finish_pass(material)

    def _finish_pass(self, material: LifeMaterial) -> None:
        self.grid.swap()
        if material.evolve:
            self.generation += 1

    def step(self, steps: int = 1) -> None:
        """Advance the simulation by ``steps`` generations without brush input.

        Args:
            steps: Number of simulation steps to perform
        """
        material = LifeMaterial()
        for _ in range(steps):
            material.apply(FrameState(position=(0.0, 0.0), brush_radius=0.0,
                                      frame_bits=self.generation & 0xFFFFFFFF, draw_radius=0.0))
            self.simulate(material)

    def reset(self) -> None:
        """Reset the field to empty state."""
        self.grid.clear()
        self.generation = 0

    def get_field_cpu(self) -> np.ndarray:
        """Get a copy of the current field as a NumPy array."""
        return np.array(self.grid.read)

    def set_field(self, field: np.ndarray) -> None:
        """Set the current field.

        Args:
            field: uint8 array shaped (height, width, channels)
        """
        self.grid.load(field)

    def resize(self, width: int, height: int) -> None:
        """Resize the field, preserving existing cells where possible."""
        self.grid.reshape(width, height, self.variant.channels)
        self.width = width
        self.height = height

    def set_variant(self, variant: Variant) -> None:
        """Switch cell layout, converting the current field."""
        variant = Variant(variant)
        if variant is self.variant:
            return
        field = convert_field(self.get_field_cpu(), self.variant, variant)
        self.variant = variant
        self.grid.reshape(self.width, self.height, variant.channels)
        self.set_field(field)

    def set_edge_policy(self, policy: EdgePolicy) -> None:
        self.edge_policy = EdgePolicy(policy)

    def add_noise(self, density: float = Config.DEFAULT_NOISE_DENSITY,
                  seed: Optional[int] = None) -> None:
        """Make a random fraction of cells alive.

        Args:
            density: Probability of a cell being set (0.0 to 1.0)
            seed: Optional random seed
        """
        rng = np.random.default_rng(seed)
        field = self.get_field_cpu()
        mask = rng.random((self.height, self.width)) < density
        if self.variant is Variant.MONO:
            field[mask, 0] = 255
        else:
            field[mask, :3] = rng.integers(64, 256, size=(int(mask.sum()), 3), dtype=np.uint8)
            field[mask, 3] = 255
        self.set_field(field)

    def colorize(self, display: Optional[DisplayPayload] = None) -> np.ndarray:
        """RGBA snapshot of the field for export."""
        return colorize(self.get_field_cpu(), self.variant, display)

    @property
    def population(self) -> int:
        return int(np.count_nonzero(alive_mask(self.get_field_cpu(), self.variant)))

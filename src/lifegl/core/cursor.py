"""Cursor state and window/world/simulation coordinate mapping."""
from dataclasses import dataclass
from typing import Optional, Tuple

from ..utils.config import Config

Point = Tuple[float, float]


@dataclass
class CursorState:
    """Brush cursor in world space. Written by CursorMapper, read by the packer."""
    pos: Point = (0.0, 0.0)
    size: float = float(Config.DEFAULT_BRUSH_RADIUS)


@dataclass
class Camera2D:
    """Orthographic 2D camera.

    World space has its origin at the field centre and y pointing up.
    ``scale`` is world units per window pixel (smaller = zoomed in).
    """
    position: Point = (0.0, 0.0)
    scale: float = 1.0

    def viewport_to_world(self, pixel: Point, viewport: Tuple[float, float]) -> Optional[Point]:
        """Map a window pixel (origin top-left, y down) to world space.

        Returns None when the pixel is outside the viewport.
        """
        px, py = pixel
        vw, vh = viewport
        if not (0 <= px < vw and 0 <= py < vh):
            return None
        return ((px - vw / 2) * self.scale + self.position[0],
                -(py - vh / 2) * self.scale + self.position[1])

    def zoom_about(self, pixel: Point, viewport: Tuple[float, float], factor: float) -> None:
        """Zoom by ``factor`` keeping the world point under ``pixel`` fixed."""
        vw, vh = viewport
        anchor_x = (pixel[0] - vw / 2) * self.scale + self.position[0]
        anchor_y = -(pixel[1] - vh / 2) * self.scale + self.position[1]
        self.scale = min(max(self.scale / factor, Config.MIN_ZOOM_SCALE), Config.MAX_ZOOM_SCALE)
        self.position = (anchor_x - (pixel[0] - vw / 2) * self.scale,
                         anchor_y + (pixel[1] - vh / 2) * self.scale)

    def pan_pixels(self, dx: float, dy: float) -> None:
        """Drag the view by a window-pixel delta."""
        self.position = (self.position[0] - dx * self.scale,
                         self.position[1] + dy * self.scale)

    def fit(self, field_size: Tuple[int, int], viewport: Tuple[float, float],
            padding: float = 0.9) -> None:
        """Centre the field and scale it to fill ``padding`` of the viewport."""
        vw, vh = viewport
        if vw <= 0 or vh <= 0:
            self.position, self.scale = (0.0, 0.0), 1.0
            return
        zoom = min(vw / field_size[0], vh / field_size[1]) * padding
        self.position = (0.0, 0.0)
        self.scale = 1.0 / zoom


def world_to_simulation(point: Point, field_size: Tuple[int, int]) -> Point:
    """World space (centre origin, y up) to simulation texels (top-left origin, y down)."""
    width, height = field_size
    return (point[0] + width / 2, -point[1] + height / 2)


class CursorMapper:
    """Converts host pointer positions into world-space cursor updates."""

    def update(self, cursor: CursorState, pointer: Optional[Point], display) -> Optional[Point]:
        """Write the world-space pointer position into ``cursor``.

        Args:
            cursor: Cursor state to update
            pointer: Pointer position in window pixels, or None when absent
            display: DisplayPayload providing viewport size and camera

        Returns:
            The new world position, or None when nothing was updated
        """
        if pointer is None:
            return None
        point = display.camera.viewport_to_world(pointer, display.viewport)
        if point is None:
            return None
        cursor.pos = point
        return point

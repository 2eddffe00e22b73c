"""Configuration constants for the Life shader application."""
from dataclasses import dataclass
from typing import Tuple


@dataclass
class Config:
    """Application configuration."""

    # Window settings
    WINDOW_WIDTH: int = 1600
    WINDOW_HEIGHT: int = 900
    WINDOW_TITLE: str = "Conway's Game of Life - GLSL"

    # Field settings
    FIELD_WIDTH: int = 1600
    FIELD_HEIGHT: int = 900
    MAX_FIELD_SIZE: int = 4096
    MIN_FIELD_SIZE: int = 16

    # Simulation settings
    DEFAULT_FPS: int = 60
    START_RUNNING: bool = True
    LIVENESS_THRESHOLD: int = 127  # cell is alive when channel > threshold
    DEFAULT_BACKEND: str = "glsl"
    DEFAULT_VARIANT: str = "extended"
    DEFAULT_EDGE_POLICY: str = "dead"

    # Drawing tools
    DEFAULT_BRUSH_RADIUS: int = 10
    MAX_BRUSH_RADIUS: int = 100
    MIN_BRUSH_RADIUS: int = 1
    DEFAULT_NOISE_DENSITY: float = 0.3
    COLOR_CYCLE_STEPS: int = 1000

    # Camera
    MIN_ZOOM_SCALE: float = 0.05
    MAX_ZOOM_SCALE: float = 20.0

    # Colors (RGBA)
    ALIVE_COLOR: Tuple[float, float, float, float] = (1.0, 1.0, 1.0, 1.0)
    DEAD_COLOR: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 1.0)
    BORDER_COLOR: Tuple[float, float, float, float] = (0.08, 0.08, 0.1, 1.0)
    CURSOR_COLOR: Tuple[float, float, float, float] = (1.0, 1.0, 1.0, 1.0)
    TINT_STRENGTH: float = 0.35

    # CUDA settings
    THREADS_PER_BLOCK: int = 256

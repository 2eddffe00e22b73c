"""OpenGL widget hosting the Life pipeline."""
from typing import Optional, Tuple

import numpy as np
from PySide6.QtCore import Qt, QTimer, Signal
from PySide6.QtOpenGLWidgets import QOpenGLWidget
from PySide6.QtGui import QMouseEvent, QWheelEvent
from OpenGL.GL import *

from .gl_engine import GLCompositor, GLLifeEngine
from ..core.life_engine import LifeEngine
from ..core.life_rules import (GLIDER, EdgePolicy, Variant, enum_setting, parse_enum,
                               place_pattern)
from ..core.pipeline import HostFrame, LifePipeline
from ..core.resize import ResizeEvent, resize_queue
from ..utils.config import Config
from ..utils.logger import get_logger

LOG = get_logger(__name__)

BACKENDS = ('glsl', 'cuda', 'numpy')


def create_engine(backend: str, width: int, height: int,
                  variant: Variant, edge_policy: EdgePolicy) -> LifeEngine:
    """Build a Life engine for ``backend``.

    GLSL engines still need ``initialize()`` with a current GL context.

    Raises:
        ValueError: Unknown backend name
        RuntimeError: CUDA device or kernel setup failed
        ImportError: CuPy is not installed
    """
    if backend == 'glsl':
        return GLLifeEngine(width, height, variant, edge_policy)
    if backend == 'cuda':
        # CuPy ships in the optional "cuda" extra
        from ..core.cuda_engine import CudaLifeEngine
        return CudaLifeEngine(width, height, variant, edge_policy)
    if backend == 'numpy':
        return LifeEngine(width, height, variant, edge_policy)
    raise ValueError(f"Unknown backend '{backend}', expected one of: {', '.join(BACKENDS)}")


class LifeGLWidget(QOpenGLWidget):
    """OpenGL widget running the Life pipeline once per painted frame.

    The widget is the host: it tracks the pointer and primary button, counts
    frames, queues resize events and owns the offscreen targets through the
    engine and compositor.
    """

    generation_updated = Signal(int)
    field_resized = Signal(int, int)  # width, height
    backend_changed = Signal(str)

    def __init__(self, parent=None, backend: str = Config.DEFAULT_BACKEND,
                 variant: str = Config.DEFAULT_VARIANT,
                 edge_policy: str = Config.DEFAULT_EDGE_POLICY,
                 brush_radius: int = Config.DEFAULT_BRUSH_RADIUS):
        """Initialize the OpenGL widget."""
        super().__init__(parent)
        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.StrongFocus)

        variant = enum_setting(Variant, variant, Config.DEFAULT_VARIANT)
        edge_policy = enum_setting(EdgePolicy, edge_policy, Config.DEFAULT_EDGE_POLICY)
        try:
            self.engine = create_engine(backend, Config.FIELD_WIDTH, Config.FIELD_HEIGHT,
                                        variant, edge_policy)
        except (ImportError, RuntimeError, ValueError) as e:
            LOG.error(f"Backend '{backend}' unavailable ({e}), using glsl")
            backend = 'glsl'
            self.engine = create_engine(backend, Config.FIELD_WIDTH, Config.FIELD_HEIGHT,
                                        variant, edge_policy)
        self.backend = backend

        self.compositor = GLCompositor(self.defaultFramebufferObject)
        self.pipeline = LifePipeline(self.engine, self.compositor, brush_radius)

        # Host state
        self.pointer: Optional[Tuple[float, float]] = None
        self.primary_pressed = False
        self.frame_count = 0
        self.resize_events = resize_queue()
        self.last_pan_pos: Optional[Tuple[float, float]] = None
        self.noise_density = Config.DEFAULT_NOISE_DENSITY

        # Animation
        self.timer = QTimer()
        self.timer.timeout.connect(self.update)
        self.timer.start(1000 // Config.DEFAULT_FPS)

    def initializeGL(self):
        """Initialize OpenGL context."""
        glClearColor(*Config.BORDER_COLOR)
        self.compositor.initialize()
        if isinstance(self.engine, GLLifeEngine):
            self.engine.initialize()
        self.context().aboutToBeDestroyed.connect(self.cleanup)
        LOG.info(f"OpenGL {glGetString(GL_VERSION).decode()}, backend={self.backend}")

    def cleanup(self):
        """Release GL objects while the context still exists."""
        self.makeCurrent()
        if isinstance(self.engine, GLLifeEngine):
            self.engine.release()
        self.compositor.release()
        self.doneCurrent()

    def resizeGL(self, width: int, height: int):
        """Queue the new surface size for the next frame.

        Args:
            width: New widget width
            height: New widget height
        """
        self.resize_events.append(ResizeEvent(self.width(), self.height()))

    def paintGL(self):
        """Run one frame of the pipeline."""
        self.pipeline.display.pixel_ratio = self.devicePixelRatioF()
        frame = HostFrame(self.pointer, self.primary_pressed, self.frame_count, self.resize_events)
        if not self.pipeline.run_frame(frame):
            glClear(GL_COLOR_BUFFER_BIT)
        self.frame_count += 1
        self.generation_updated.emit(self.engine.generation)

    def start_simulation(self):
        """Start the simulation."""
        self.pipeline.running = True

    def stop_simulation(self):
        """Stop the simulation. Painting keeps working."""
        self.pipeline.running = False

    def step_simulation(self, steps: int = 1):
        """Evolve ``steps`` generations while paused."""
        self.pipeline.request_step(steps)

    @property
    def is_running(self) -> bool:
        return self.pipeline.running

    def mousePressEvent(self, event: QMouseEvent):
        """Handle mouse press events.

        Args:
            event: Mouse event
        """
        pos = event.position()
        self.pointer = (pos.x(), pos.y())
        if event.button() == Qt.LeftButton:
            self.primary_pressed = True
        elif event.button() == Qt.MiddleButton:
            self.last_pan_pos = (pos.x(), pos.y())

    def mouseMoveEvent(self, event: QMouseEvent):
        """Handle mouse move events.

        Args:
            event: Mouse event
        """
        pos = event.position()
        self.pointer = (pos.x(), pos.y())
        if event.buttons() & Qt.MiddleButton and self.last_pan_pos is not None:
            self.pipeline.display.camera.pan_pixels(pos.x() - self.last_pan_pos[0],
                                                    pos.y() - self.last_pan_pos[1])
            self.last_pan_pos = (pos.x(), pos.y())

    def mouseReleaseEvent(self, event: QMouseEvent):
        """Handle mouse release events.

        Args:
            event: Mouse event
        """
        if event.button() == Qt.LeftButton:
            self.primary_pressed = False
        elif event.button() == Qt.MiddleButton:
            self.last_pan_pos = None

    def leaveEvent(self, event):
        self.pointer = None
        super().leaveEvent(event)

    def wheelEvent(self, event: QWheelEvent):
        """Zoom about the pointer.

        Args:
            event: Wheel event
        """
        zoom_factor = 1.1 if event.angleDelta().y() > 0 else 1 / 1.1
        pos = event.position()
        display = self.pipeline.display
        display.camera.zoom_about((pos.x(), pos.y()), display.viewport, zoom_factor)

    def reset_viewport(self):
        """Fit the field into the window (Home function)."""
        self.pipeline.display.camera.fit((self.engine.width, self.engine.height),
                                         (self.width(), self.height()))

    def set_brush_radius(self, radius: int):
        """Set brush radius.

        Args:
            radius: New brush radius
        """
        radius = min(max(Config.MIN_BRUSH_RADIUS, radius), Config.MAX_BRUSH_RADIUS)
        self.pipeline.cursor.size = float(radius)

    def set_noise_density(self, density: float):
        """Set noise density.

        Args:
            density: Noise density (0.0 to 1.0)
        """
        self.noise_density = min(max(0.0, density), 1.0)

    def add_noise(self):
        """Add noise pattern to the field."""
        self.makeCurrent()
        self.engine.add_noise(self.noise_density)
        self.doneCurrent()

    def add_glider(self, origin: Optional[Tuple[int, int]] = None):
        """Place a glider, by default at the field centre."""
        self.makeCurrent()
        field = self.engine.get_field_cpu()
        if origin is None:
            origin = (self.engine.width // 2, self.engine.height // 2)
        place_pattern(field, self.engine.variant, GLIDER, origin)
        self.engine.set_field(field)
        self.doneCurrent()

    def clear_field(self):
        """Kill every cell and reset the generation counter."""
        self.makeCurrent()
        self.engine.reset()
        self.doneCurrent()
        self.generation_updated.emit(0)

    def set_field(self, field: np.ndarray, generation: int = 0):
        self.makeCurrent()
        self.engine.set_field(field)
        self.doneCurrent()
        self.engine.generation = generation
        self.generation_updated.emit(generation)

    def snapshot(self) -> np.ndarray:
        """RGBA image of the field as currently shaded."""
        self.makeCurrent()
        rgba = self.engine.colorize(self.pipeline.display)
        self.doneCurrent()
        return rgba

    def population(self) -> int:
        self.makeCurrent()
        count = self.engine.population
        self.doneCurrent()
        return count

    def resize_field(self, width: int, height: int):
        """Resize the field, keeping the overlapping cells."""
        width = min(max(Config.MIN_FIELD_SIZE, width), Config.MAX_FIELD_SIZE)
        height = min(max(Config.MIN_FIELD_SIZE, height), Config.MAX_FIELD_SIZE)
        self.makeCurrent()
        self.engine.resize(width, height)
        self.doneCurrent()
        self.pipeline.sync_engine()
        self.field_resized.emit(width, height)

    def set_variant(self, variant):
        self.makeCurrent()
        self.engine.set_variant(parse_enum(Variant, variant))
        self.doneCurrent()
        self.pipeline.sync_engine()

    def set_edge_policy(self, policy):
        self.makeCurrent()
        self.engine.set_edge_policy(parse_enum(EdgePolicy, policy))
        self.doneCurrent()

    def set_backend(self, backend: str) -> bool:
        """Switch simulation backend, carrying the current field across.

        Returns:
            False if the new backend could not be created; the previous
            backend stays active
        """
        if backend == self.backend:
            return True
        self.makeCurrent()
        try:
            field = self.engine.get_field_cpu()
            engine = create_engine(backend, self.engine.width, self.engine.height,
                                   self.engine.variant, self.engine.edge_policy)
            if isinstance(engine, GLLifeEngine):
                engine.initialize()
        except (ImportError, RuntimeError, ValueError) as e:
            LOG.error(f"Could not switch to {backend} backend: {e}")
            self.doneCurrent()
            return False

        engine.set_field(field)
        engine.generation = self.engine.generation
        if isinstance(self.engine, GLLifeEngine):
            self.engine.release()
        self.doneCurrent()

        self.engine = engine
        self.backend = backend
        self.pipeline.set_engine(engine)
        LOG.info(f"Switched to {backend} backend")
        self.backend_changed.emit(backend)
        return True

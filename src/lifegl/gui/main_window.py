"""Main window: toolbar, control dock, image menu and status bar around the Life view."""
from pathlib import Path

import numpy as np
from PySide6.QtWidgets import (QMainWindow, QToolBar, QWidget, QVBoxLayout, QHBoxLayout,
                               QPushButton, QLabel, QSlider, QSpinBox, QGroupBox,
                               QDockWidget, QStatusBar, QComboBox, QFileDialog, QMessageBox)
from PySide6.QtCore import Qt, QTimer, QSettings
from PySide6.QtGui import QAction, QKeySequence, QImage

from .gl_widget import BACKENDS, LifeGLWidget
from ..core.life_engine import field_from_rgba
from ..core.life_rules import EdgePolicy, Variant
from ..utils.config import Config
from ..utils.logger import get_logger

LOG = get_logger(__name__)

IMAGE_OPEN_FILTER = "Images (*.png *.jpg *.jpeg *.bmp);;PNG (*.png);;JPEG (*.jpg *.jpeg)"
IMAGE_SAVE_FILTER = "PNG (*.png);;JPEG (*.jpg)"

CONTROLS_HELP = (
    "Left button: paint live cells",
    "Middle drag: pan, wheel: zoom",
    "Space: run / pause",
    "S: one generation",
    "C: clear, N: noise, G: glider",
    "H or Home: fit field to window",
    "[ and ]: brush radius -/+ 10%",
    "Esc: quit",
)


class MainWindow(QMainWindow):
    """Top-level window hosting a LifeGLWidget."""

    def __init__(self):
        super().__init__()
        self.settings = QSettings('LifeGL', 'LifeShader')
        self.setWindowTitle(Config.WINDOW_TITLE)

        saved_geometry = self.settings.value('window_geometry')
        if saved_geometry:
            self.restoreGeometry(saved_geometry)
        else:
            self.resize(Config.WINDOW_WIDTH, Config.WINDOW_HEIGHT)

        self.last_folder = self.settings.value('last_folder', '')
        brush_radius = int(self.settings.value('brush_size', Config.DEFAULT_BRUSH_RADIUS))

        self.gl_widget = LifeGLWidget(
            backend=self.settings.value('backend', Config.DEFAULT_BACKEND),
            variant=self.settings.value('variant', Config.DEFAULT_VARIANT),
            edge_policy=self.settings.value('edge_policy', Config.DEFAULT_EDGE_POLICY),
            brush_radius=brush_radius,
        )
        self.setCentralWidget(self.gl_widget)
        self.gl_widget.generation_updated.connect(self.on_generation)
        self.gl_widget.field_resized.connect(self.on_field_resized)
        self.gl_widget.backend_changed.connect(self.on_backend_changed)

        self.build_menus()
        self.build_toolbar()
        self.build_dock(brush_radius)
        self.build_status_bar()
        self.install_shortcuts()
        self.refresh_run_action()

    # -- construction -----------------------------------------------------

    def _action(self, text: str, slot, shortcut=None) -> QAction:
        action = QAction(text, self)
        if shortcut is not None:
            action.setShortcut(shortcut)
        action.triggered.connect(slot)
        return action

    def build_menus(self):
        file_menu = self.menuBar().addMenu('&File')
        file_menu.addAction(self._action('&Open Image...', self.open_image, QKeySequence.Open))
        file_menu.addAction(self._action('&Save Image...', self.save_image, QKeySequence.Save))
        file_menu.addSeparator()
        file_menu.addAction(self._action('E&xit', self.close, QKeySequence.Quit))

    def build_toolbar(self):
        """Run controls and field tools."""
        toolbar = QToolBar("Simulation")
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        self.run_action = self._action("▶ Run", self.toggle_simulation)
        toolbar.addAction(self.run_action)
        toolbar.addAction(self._action("⏭ Step", self.step_simulation))
        toolbar.addSeparator()
        for text, slot in (("🎲 Noise", self.add_noise),
                           ("🚀 Glider", self.add_glider),
                           ("🗑 Clear", self.clear_field)):
            toolbar.addAction(self._action(text, slot))

    def _slider_row(self, layout, caption: str, low: int, high: int, value: int, slot):
        row = QHBoxLayout()
        row.addWidget(QLabel(caption))
        slider = QSlider(Qt.Horizontal)
        slider.setRange(low, high)
        slider.setValue(value)
        slider.valueChanged.connect(slot)
        row.addWidget(slider)
        readout = QLabel()
        readout.setMinimumWidth(36)
        row.addWidget(readout)
        layout.addLayout(row)
        return slider, readout

    def _combo_row(self, layout, caption: str, items, current, slot) -> QComboBox:
        row = QHBoxLayout()
        row.addWidget(QLabel(caption))
        combobox = QComboBox()
        for text, data in items:
            combobox.addItem(text, data)
        combobox.setCurrentIndex(max(combobox.findData(current), 0))
        combobox.currentIndexChanged.connect(slot)
        row.addWidget(combobox)
        layout.addLayout(row)
        return combobox

    def build_dock(self, brush_radius: int):
        """Brush, noise, field and engine settings."""
        panel = QWidget()
        panel_layout = QVBoxLayout(panel)
        engine = self.gl_widget.engine

        brush_box = QGroupBox("Brush")
        brush_rows = QVBoxLayout(brush_box)
        self.radius_slider, self.radius_readout = self._slider_row(
            brush_rows, "Radius:", Config.MIN_BRUSH_RADIUS, Config.MAX_BRUSH_RADIUS,
            brush_radius, self.set_brush_radius)
        self.density_slider, self.density_readout = self._slider_row(
            brush_rows, "Noise:", 0, 100, int(Config.DEFAULT_NOISE_DENSITY * 100),
            self.set_noise_density)
        self.radius_readout.setText(str(brush_radius))
        self.density_readout.setText(f"{Config.DEFAULT_NOISE_DENSITY:.2f}")
        panel_layout.addWidget(brush_box)

        field_box = QGroupBox("Field")
        field_rows = QVBoxLayout(field_box)
        size_row = QHBoxLayout()
        self.width_spinbox, self.height_spinbox = QSpinBox(), QSpinBox()
        for caption, spinbox, value in (("W:", self.width_spinbox, engine.width),
                                        ("H:", self.height_spinbox, engine.height)):
            spinbox.setRange(Config.MIN_FIELD_SIZE, Config.MAX_FIELD_SIZE)
            spinbox.setValue(value)
            size_row.addWidget(QLabel(caption))
            size_row.addWidget(spinbox)
        field_rows.addLayout(size_row)
        apply_size = QPushButton("Apply Size")
        apply_size.clicked.connect(self.apply_field_size)
        field_rows.addWidget(apply_size)
        panel_layout.addWidget(field_box)

        engine_box = QGroupBox("Engine")
        engine_rows = QVBoxLayout(engine_box)
        self.backend_combobox = self._combo_row(
            engine_rows, "Backend:", [(name.upper(), name) for name in BACKENDS],
            self.gl_widget.backend, self.change_backend)
        self.variant_combobox = self._combo_row(
            engine_rows, "Cells:",
            [("Mono", int(Variant.MONO)), ("Extended (RGB)", int(Variant.EXTENDED))],
            int(engine.variant), self.change_variant)
        self.edge_combobox = self._combo_row(
            engine_rows, "Edges:",
            [(policy.name.capitalize(), int(policy)) for policy in EdgePolicy],
            int(engine.edge_policy), self.change_edge_policy)
        panel_layout.addWidget(engine_box)

        help_box = QGroupBox("Controls")
        help_rows = QVBoxLayout(help_box)
        for line in CONTROLS_HELP:
            help_rows.addWidget(QLabel(line))
        panel_layout.addWidget(help_box)
        panel_layout.addStretch()

        dock = QDockWidget("Settings", self)
        dock.setAllowedAreas(Qt.LeftDockWidgetArea | Qt.RightDockWidgetArea)
        dock.setWidget(panel)
        self.addDockWidget(Qt.RightDockWidgetArea, dock)

    def build_status_bar(self):
        """Generation, field size, population and FPS readouts."""
        status = QStatusBar()
        self.setStatusBar(status)
        self.generation_readout = QLabel("Gen 0")
        status.addWidget(self.generation_readout)

        engine = self.gl_widget.engine
        self.size_readout = QLabel(f"{engine.width}×{engine.height}")
        self.population_readout = QLabel("Pop 0")
        self.fps_readout = QLabel("0 fps")
        for readout in (self.size_readout, self.population_readout, self.fps_readout):
            status.addPermanentWidget(readout)

        # population needs a GPU readback, so it is refreshed with the FPS
        self.painted_frames = 0
        self.stats_timer = QTimer(self)
        self.stats_timer.timeout.connect(self.refresh_stats)
        self.stats_timer.start(1000)

    def install_shortcuts(self):
        bindings = (
            (Qt.Key_Space, self.toggle_simulation),
            (Qt.Key_S, self.step_simulation),
            (Qt.Key_C, self.clear_field),
            (Qt.Key_N, self.add_noise),
            (Qt.Key_G, self.add_glider),
            (Qt.Key_H, self.gl_widget.reset_viewport),
            (Qt.Key_Home, self.gl_widget.reset_viewport),
            (Qt.Key_BracketLeft, lambda: self.scale_brush(0.9)),
            (Qt.Key_BracketRight, lambda: self.scale_brush(1.1)),
            (Qt.Key_Escape, self.close),
        )
        for key, slot in bindings:
            self.addAction(self._action("", slot, QKeySequence(key)))

    # -- simulation -------------------------------------------------------

    def refresh_run_action(self):
        self.run_action.setText("⏸ Pause" if self.gl_widget.is_running else "▶ Run")

    def toggle_simulation(self):
        if self.gl_widget.is_running:
            self.gl_widget.stop_simulation()
        else:
            self.gl_widget.start_simulation()
        self.refresh_run_action()

    def step_simulation(self):
        """Pause if needed, then advance one generation."""
        if self.gl_widget.is_running:
            self.gl_widget.stop_simulation()
            self.refresh_run_action()
        self.gl_widget.step_simulation()

    def clear_field(self):
        self.gl_widget.clear_field()

    def add_noise(self):
        self.gl_widget.add_noise()

    def add_glider(self):
        self.gl_widget.add_glider()
        self.statusBar().showMessage("Glider placed at field centre", 2000)

    # -- settings ---------------------------------------------------------

    def set_brush_radius(self, value: int):
        self.gl_widget.set_brush_radius(value)
        self.radius_readout.setText(str(value))

    def scale_brush(self, factor: float):
        """Grow or shrink the brush by ``factor``, moving at least one cell."""
        current = self.radius_slider.value()
        target = int(current * factor)
        if target == current:
            target += 1 if factor > 1 else -1
        self.radius_slider.setValue(min(max(target, Config.MIN_BRUSH_RADIUS), Config.MAX_BRUSH_RADIUS))

    def set_noise_density(self, value: int):
        """Slider value (0-100) to noise density."""
        density = value / 100.0
        self.gl_widget.set_noise_density(density)
        self.density_readout.setText(f"{density:.2f}")

    def apply_field_size(self):
        self.gl_widget.resize_field(self.width_spinbox.value(), self.height_spinbox.value())

    def change_backend(self):
        backend = self.backend_combobox.currentData()
        if self.gl_widget.set_backend(backend):
            return
        # put the selector back on the backend that is still running
        self.on_backend_changed(self.gl_widget.backend)
        QMessageBox.warning(self, "Backend Unavailable",
                            f"The {backend} backend could not be started; see the log.")

    def change_variant(self):
        self.gl_widget.set_variant(Variant(self.variant_combobox.currentData()))

    def change_edge_policy(self):
        self.gl_widget.set_edge_policy(EdgePolicy(self.edge_combobox.currentData()))

    # -- readouts ---------------------------------------------------------

    def on_generation(self, generation: int):
        """Called once per painted frame."""
        self.generation_readout.setText(f"Gen {generation}")
        self.painted_frames += 1

    def on_field_resized(self, width: int, height: int):
        self.size_readout.setText(f"{width}×{height}")
        self.width_spinbox.setValue(width)
        self.height_spinbox.setValue(height)

    def on_backend_changed(self, backend: str):
        self.backend_combobox.blockSignals(True)
        self.backend_combobox.setCurrentIndex(self.backend_combobox.findData(backend))
        self.backend_combobox.blockSignals(False)
        self.statusBar().showMessage(f"Simulating on {backend}", 2000)

    def refresh_stats(self):
        self.fps_readout.setText(f"{self.painted_frames} fps")
        self.painted_frames = 0
        self.population_readout.setText(f"Pop {self.gl_widget.population()}")

    # -- images -----------------------------------------------------------

    def _remember_folder(self, file_path: str):
        self.last_folder = str(Path(file_path).parent)
        self.settings.setValue('last_folder', self.last_folder)

    def load_image(self, file_path: str) -> bool:
        """Scale an image to the field and make its bright pixels alive.

        Returns:
            False if the image could not be read
        """
        image = QImage(file_path)
        if image.isNull():
            LOG.error(f"Could not read image {file_path}")
            QMessageBox.critical(self, "Open Image", f"Could not read image:\n{file_path}")
            return False

        engine = self.gl_widget.engine
        image = image.convertToFormat(QImage.Format_RGBA8888).scaled(
            engine.width, engine.height, Qt.IgnoreAspectRatio, Qt.SmoothTransformation)
        rows = np.frombuffer(image.constBits(), dtype=np.uint8).reshape(image.height(), image.bytesPerLine())
        rgba = rows[:, :image.width() * 4].reshape(image.height(), image.width(), 4)

        field = field_from_rgba(rgba, engine.variant)
        self.gl_widget.set_field(field)
        LOG.info(f"Loaded {Path(file_path).name} into {engine.width}x{engine.height} field")
        return True

    def open_image(self):
        file_path, _ = QFileDialog.getOpenFileName(self, "Open Image", self.last_folder, IMAGE_OPEN_FILTER)
        if file_path and self.load_image(file_path):
            self._remember_folder(file_path)
            self.statusBar().showMessage(f"Loaded {Path(file_path).name}", 3000)

    def save_image(self):
        """Export the shaded field (not the window) as an image."""
        file_path, _ = QFileDialog.getSaveFileName(self, "Save Image", self.last_folder, IMAGE_SAVE_FILTER)
        if not file_path:
            return

        rgba = np.ascontiguousarray(self.gl_widget.snapshot())
        height, width = rgba.shape[:2]
        image = QImage(rgba.data, width, height, width * 4, QImage.Format_RGBA8888).copy()
        if Path(file_path).suffix.lower() in ('.jpg', '.jpeg'):
            image = image.convertToFormat(QImage.Format_RGB888)

        if not image.save(file_path):
            LOG.error(f"Could not write image {file_path}")
            QMessageBox.critical(self, "Save Image", f"Could not write image:\n{file_path}")
            return
        self._remember_folder(file_path)
        self.statusBar().showMessage(f"Saved {Path(file_path).name}", 3000)

    def closeEvent(self, event):
        """Persist window and engine choices."""
        engine = self.gl_widget.engine
        for key, value in (('window_geometry', self.saveGeometry()),
                           ('brush_size', self.radius_slider.value()),
                           ('backend', self.gl_widget.backend),
                           ('variant', engine.variant.name.lower()),
                           ('edge_policy', engine.edge_policy.name.lower()),
                           ('last_folder', self.last_folder)):
            self.settings.setValue(key, value)
        super().closeEvent(event)

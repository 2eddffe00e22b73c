"""Life simulation engine running the simulation pass as a CUDA kernel."""
import math
from typing import Optional

import cupy as cp
import numpy as np

from .cuda_kernels import compile_kernels
from .frame_state import DisplayPayload, LifeMaterial, frame_bits_to_float
from .life_engine import LifeEngine
from .life_rules import EdgePolicy, Variant
from ..utils.config import Config
from ..utils.logger import get_logger

LOG = get_logger(__name__)


class CudaLifeEngine(LifeEngine):
    """GPU-accelerated Life engine on CuPy ping-pong buffers."""

    name = "cuda"
    xp = cp

    def __init__(self, width: int = Config.FIELD_WIDTH, height: int = Config.FIELD_HEIGHT,
                 variant: Variant = Variant.EXTENDED, edge_policy: EdgePolicy = EdgePolicy.DEAD):
        # Compile kernels with error checking before allocating device buffers
        try:
            device_count = cp.cuda.runtime.getDeviceCount()
            if device_count == 0:
                raise RuntimeError("No CUDA devices found")

            device_props = cp.cuda.runtime.getDeviceProperties(0)
            LOG.info(f"Using CUDA device: {device_props['name'].decode()}")

            self.kernels = compile_kernels()
            LOG.info("CUDA kernels compiled successfully")

        except (cp.cuda.runtime.CUDARuntimeError, cp.cuda.compiler.CompileException) as e:
            LOG.error(f"CUDA initialization failed: {e}")
            raise RuntimeError(f"CUDA initialization failed: {e}. "
                               f"Please ensure NVIDIA GPU with CUDA support is available.") from e

        self.threads_per_block = Config.THREADS_PER_BLOCK
        super().__init__(width, height, variant, edge_policy)

    def _calculate_grid_size(self, total_elements: int) -> int:
        """Calculate grid size for a CUDA kernel launch.

        Args:
            total_elements: Total number of elements to process

        Returns:
            Number of blocks in grid
        """
        return math.ceil(total_elements / self.threads_per_block)

    def simulate(self, material: LifeMaterial) -> None:
        """Launch the simulation kernel from the current buffer into the other one."""
        current = self.grid.read
        next_buffer = self.grid.write
        blocks = self._calculate_grid_size(self.width * self.height)
        draw = np.round(material.draw_color[:3] * 255.0).astype(np.uint8)

        try:
            self.kernels['life_step'](
                (blocks,), (self.threads_per_block,),
                (current.ravel(), next_buffer.ravel(),
                 cp.int32(self.width), cp.int32(self.height),
                 cp.int32(self.variant.channels), cp.int32(int(self.edge_policy)),
                 cp.int32(Config.LIVENESS_THRESHOLD),
                 cp.float32(material.info[0]), cp.float32(material.info[1]),
                 frame_bits_to_float(material.frame_bits),
                 cp.float32(material.info[3]),
                 cp.uint8(draw[0]), cp.uint8(draw[1]), cp.uint8(draw[2]),
                 cp.int32(1 if material.evolve else 0))
            )
            cp.cuda.runtime.deviceSynchronize()

        except cp.cuda.runtime.CUDARuntimeError as e:
            LOG.error(f"CUDA kernel execution failed: {e}")
            raise RuntimeError(f"Simulation step failed: {e}") from e

        self._finish_pass(material)

    def get_field_cpu(self) -> np.ndarray:
        """Get current field as NumPy array on CPU."""
        return cp.asnumpy(self.grid.read)

    def colorize(self, display: Optional[DisplayPayload] = None) -> np.ndarray:
        """RGBA snapshot of the field, shaded on the GPU."""
        display = display or DisplayPayload()
        total = self.width * self.height
        rgba = cp.zeros((self.height, self.width, 4), dtype=cp.uint8)
        dead, live, tint = Config.DEAD_COLOR, Config.ALIVE_COLOR, display.tint
        self.kernels['field_to_rgba'](
            (self._calculate_grid_size(total),), (self.threads_per_block,),
            (self.grid.read.ravel(), rgba.ravel(), cp.int32(total),
             cp.int32(self.variant.channels),
             *(cp.float32(c) for c in dead[:3]),
             *(cp.float32(c) for c in live[:3]),
             *(cp.float32(c) for c in tint[:3]),
             cp.float32(display.tint_strength))
        )
        return cp.asnumpy(rgba)

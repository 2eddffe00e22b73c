"""OpenGL passes: GLSL simulation engine and on-screen compositor."""
from typing import Callable, Dict, Optional

import numpy as np
from OpenGL.GL import *
from OpenGL.GL import shaders

from ..core.cell_grid import PingPong
from ..core.frame_state import DisplayPayload, LifeMaterial
from ..core.life_engine import LifeEngine, convert_field
from ..core.life_rules import EdgePolicy, Variant
from ..core.shaders import (FULLSCREEN_VERTEX_SHADER, build_composite_source,
                            build_simulation_source)
from ..utils.config import Config
from ..utils.logger import get_logger

LOG = get_logger(__name__)

MATERIAL_BINDING = 0


def _texture_formats(variant: Variant):
    """(internal format, pixel format) for a cell layout."""
    if Variant(variant) is Variant.MONO:
        return GL_R8, GL_RED
    return GL_RGBA8, GL_RGBA


def _compile_program(fragment_source: str) -> int:
    """Compile and link a fullscreen-triangle program.

    A vertex array must be bound, core profiles refuse to validate otherwise.
    """
    return shaders.compileProgram(
        shaders.compileShader(FULLSCREEN_VERTEX_SHADER, GL_VERTEX_SHADER),
        shaders.compileShader(fragment_source, GL_FRAGMENT_SHADER),
    )


def _create_texture(variant: Variant, field: np.ndarray) -> int:
    internal_format, pixel_format = _texture_formats(variant)
    height, width = field.shape[:2]
    texture = glGenTextures(1)
    glBindTexture(GL_TEXTURE_2D, texture)
    glTexParameteri(GL_TEXTURE_2D, GL_TEXTURE_MIN_FILTER, GL_NEAREST)
    glTexParameteri(GL_TEXTURE_2D, GL_TEXTURE_MAG_FILTER, GL_NEAREST)
    glTexParameteri(GL_TEXTURE_2D, GL_TEXTURE_WRAP_S, GL_CLAMP_TO_EDGE)
    glTexParameteri(GL_TEXTURE_2D, GL_TEXTURE_WRAP_T, GL_CLAMP_TO_EDGE)
    glPixelStorei(GL_UNPACK_ALIGNMENT, 1)
    glTexImage2D(GL_TEXTURE_2D, 0, internal_format, width, height, 0,
                 pixel_format, GL_UNSIGNED_BYTE, np.ascontiguousarray(field, dtype=np.uint8))
    return texture


class GLLifeEngine(LifeEngine):
    """Life engine running the simulation pass as a fragment shader.

    The CellGrid is a pair of textures, each attached to its own framebuffer.
    Every GL call needs the owning widget's context to be current; the
    material stays None until ``initialize`` has run.
    """

    name = "glsl"

    def __init__(self, width: int = Config.FIELD_WIDTH, height: int = Config.FIELD_HEIGHT,
                 variant: Variant = Variant.EXTENDED, edge_policy: EdgePolicy = EdgePolicy.DEAD):
        self.width = width
        self.height = height
        self.variant = Variant(variant)
        self.edge_policy = EdgePolicy(edge_policy)
        self.generation = 0

        # slots hold (texture, framebuffer) pairs
        self.grid = PingPong(None, None)
        self.material: Optional[LifeMaterial] = None
        self.program = None
        self.vao = None
        self.ubo = None
        self.cells_location = -1

    def initialize(self) -> None:
        """Create programs, buffers and render targets."""
        self.vao = glGenVertexArrays(1)
        glBindVertexArray(self.vao)
        self._build_program()

        self.ubo = glGenBuffers(1)
        glBindBuffer(GL_UNIFORM_BUFFER, self.ubo)
        glBufferData(GL_UNIFORM_BUFFER, LifeMaterial.NBYTES, None, GL_DYNAMIC_DRAW)

        self._create_targets(np.zeros((self.height, self.width, self.variant.channels), dtype=np.uint8))
        self.material = LifeMaterial()
        LOG.info(f"GLSL engine {self.width}x{self.height}, variant={self.variant.name}, "
                 f"edges={self.edge_policy.name}")

    def _build_program(self) -> None:
        if self.program is not None:
            glDeleteProgram(self.program)
        glBindVertexArray(self.vao)
        self.program = _compile_program(build_simulation_source(self.variant, self.edge_policy))
        block = glGetUniformBlockIndex(self.program, "LifeMaterial")
        glUniformBlockBinding(self.program, block, MATERIAL_BINDING)
        self.cells_location = glGetUniformLocation(self.program, "cells")

    def _create_targets(self, field: np.ndarray) -> None:
        targets = []
        for data in (field, np.zeros_like(field)):
            texture = _create_texture(self.variant, data)
            framebuffer = glGenFramebuffers(1)
            glBindFramebuffer(GL_FRAMEBUFFER, framebuffer)
            glFramebufferTexture2D(GL_FRAMEBUFFER, GL_COLOR_ATTACHMENT0, GL_TEXTURE_2D, texture, 0)
            status = glCheckFramebufferStatus(GL_FRAMEBUFFER)
            if status != GL_FRAMEBUFFER_COMPLETE:
                raise RuntimeError(f"Simulation framebuffer incomplete (status 0x{int(status):x})")
            targets.append((texture, framebuffer))
        self.grid.replace(*targets)

    def _release_targets(self) -> None:
        for slot in self.grid.slots:
            if slot is not None:
                texture, framebuffer = slot
                glDeleteFramebuffers(1, [framebuffer])
                glDeleteTextures([texture])
        self.grid.replace(None, None)

    def release(self) -> None:
        """Delete all GL objects."""
        self._release_targets()
        if self.program is not None:
            glDeleteProgram(self.program)
        if self.ubo is not None:
            glDeleteBuffers(1, [self.ubo])
        if self.vao is not None:
            glDeleteVertexArrays(1, [self.vao])
        self.program = self.ubo = self.vao = None
        self.material = None

    @property
    def texture(self) -> int:
        """Texture holding the latest generation."""
        return self.grid.read[0]

    def simulate(self, material: LifeMaterial) -> None:
        """Render the simulation pass into the write target, then swap."""
        payload = np.frombuffer(material.pack(), dtype=np.uint8)
        glBindBuffer(GL_UNIFORM_BUFFER, self.ubo)
        glBufferSubData(GL_UNIFORM_BUFFER, 0, LifeMaterial.NBYTES, payload)
        glBindBufferBase(GL_UNIFORM_BUFFER, MATERIAL_BINDING, self.ubo)

        read_texture, _ = self.grid.read
        _, write_framebuffer = self.grid.write
        glBindFramebuffer(GL_FRAMEBUFFER, write_framebuffer)
        glViewport(0, 0, self.width, self.height)
        glDisable(GL_BLEND)

        glUseProgram(self.program)
        glActiveTexture(GL_TEXTURE0)
        glBindTexture(GL_TEXTURE_2D, read_texture)
        glUniform1i(self.cells_location, 0)
        glBindVertexArray(self.vao)
        glDrawArrays(GL_TRIANGLES, 0, 3)

        self._finish_pass(material)

    def reset(self) -> None:
        """Reset the field to empty state."""
        zeros = np.zeros((self.height, self.width, self.variant.channels), dtype=np.uint8)
        for texture, _ in self.grid.slots:
            self._upload(texture, zeros)
        self.grid.index = 0
        self.generation = 0

    def _upload(self, texture: int, field: np.ndarray) -> None:
        _, pixel_format = _texture_formats(self.variant)
        glBindTexture(GL_TEXTURE_2D, texture)
        glPixelStorei(GL_UNPACK_ALIGNMENT, 1)
        glTexSubImage2D(GL_TEXTURE_2D, 0, 0, 0, self.width, self.height,
                        pixel_format, GL_UNSIGNED_BYTE, np.ascontiguousarray(field, dtype=np.uint8))

    def get_field_cpu(self) -> np.ndarray:
        """Read the current generation back from the GPU."""
        _, pixel_format = _texture_formats(self.variant)
        _, framebuffer = self.grid.read
        glBindFramebuffer(GL_READ_FRAMEBUFFER, framebuffer)
        glPixelStorei(GL_PACK_ALIGNMENT, 1)
        data = glReadPixels(0, 0, self.width, self.height, pixel_format, GL_UNSIGNED_BYTE)
        field = np.frombuffer(data, dtype=np.uint8)
        return field.reshape(self.height, self.width, self.variant.channels).copy()

    def set_field(self, field: np.ndarray) -> None:
        expected = (self.height, self.width, self.variant.channels)
        if tuple(field.shape) != expected:
            raise ValueError(f"Field shape {tuple(field.shape)} doesn't match grid size {expected}")
        self._upload(self.texture, field)

    def resize(self, width: int, height: int) -> None:
        """Resize the field, preserving existing cells where possible."""
        old = self.get_field_cpu()
        field = np.zeros((height, width, self.variant.channels), dtype=np.uint8)
        min_h, min_w = min(old.shape[0], height), min(old.shape[1], width)
        field[:min_h, :min_w] = old[:min_h, :min_w]
        self._release_targets()
        self.width, self.height = width, height
        self._create_targets(field)

    def set_variant(self, variant: Variant) -> None:
        """Switch cell layout: converts the field, rebuilds targets and program."""
        variant = Variant(variant)
        if variant is self.variant:
            return
        field = convert_field(self.get_field_cpu(), self.variant, variant)
        self._release_targets()
        self.variant = variant
        self._create_targets(field)
        self._build_program()

    def set_edge_policy(self, policy: EdgePolicy) -> None:
        self.edge_policy = EdgePolicy(policy)
        self._build_program()


class GLCompositor:
    """Draws the current CellGrid to the window with the composite shader.

    Engines that keep cells in host or CUDA memory are uploaded into a
    display texture first; the GLSL engine's texture is sampled directly.
    """

    def __init__(self, target_framebuffer: Callable[[], int]):
        """Initialize the compositor.

        Args:
            target_framebuffer: Returns the framebuffer of the window surface
        """
        self.target_framebuffer = target_framebuffer
        self.programs: Dict[Variant, int] = {}
        self.locations: Dict[Variant, Dict[str, int]] = {}
        self.vao = None
        self.display_texture = None
        self.display_shape = None

    def initialize(self) -> None:
        self.vao = glGenVertexArrays(1)
        glBindVertexArray(self.vao)
        for variant in Variant:
            program = _compile_program(build_composite_source(variant))
            self.programs[variant] = program
            self.locations[variant] = {
                name: glGetUniformLocation(program, name)
                for name in ('cells', 'viewport', 'pixel_ratio', 'camera_position',
                             'camera_scale', 'tint', 'tint_strength', 'cursor',
                             'cursor_radius', 'dead_color', 'alive_color',
                             'border_color', 'cursor_color')
            }

    def release(self) -> None:
        for program in self.programs.values():
            glDeleteProgram(program)
        self.programs.clear()
        if self.display_texture is not None:
            glDeleteTextures([self.display_texture])
        if self.vao is not None:
            glDeleteVertexArrays(1, [self.vao])
        self.display_texture = self.display_shape = self.vao = None

    def _upload(self, field: np.ndarray, variant: Variant) -> int:
        shape = (field.shape, Variant(variant))
        if self.display_shape != shape:
            if self.display_texture is not None:
                glDeleteTextures([self.display_texture])
            self.display_texture = _create_texture(variant, field)
            self.display_shape = shape
        else:
            _, pixel_format = _texture_formats(variant)
            glBindTexture(GL_TEXTURE_2D, self.display_texture)
            glPixelStorei(GL_UNPACK_ALIGNMENT, 1)
            glTexSubImage2D(GL_TEXTURE_2D, 0, 0, 0, field.shape[1], field.shape[0],
                            pixel_format, GL_UNSIGNED_BYTE, np.ascontiguousarray(field))
        return self.display_texture

    def composite(self, engine, display: DisplayPayload) -> None:
        """Run the composite pass for ``engine``'s latest generation."""
        if isinstance(engine, GLLifeEngine):
            texture = engine.texture
        else:
            texture = self._upload(engine.get_field_cpu(), engine.variant)

        variant = Variant(engine.variant)
        program = self.programs[variant]
        loc = self.locations[variant]

        glBindFramebuffer(GL_FRAMEBUFFER, self.target_framebuffer())
        glViewport(0, 0, int(round(display.viewport[0] * display.pixel_ratio)),
                   int(round(display.viewport[1] * display.pixel_ratio)))
        glUseProgram(program)
        glActiveTexture(GL_TEXTURE0)
        glBindTexture(GL_TEXTURE_2D, texture)

        cursor = display.cursor if display.cursor is not None else (0.0, 0.0)
        glUniform1i(loc['cells'], 0)
        glUniform2f(loc['viewport'], *display.viewport)
        glUniform1f(loc['pixel_ratio'], display.pixel_ratio)
        glUniform2f(loc['camera_position'], *display.camera.position)
        glUniform1f(loc['camera_scale'], display.camera.scale)
        glUniform4f(loc['tint'], *display.tint)
        glUniform1f(loc['tint_strength'], display.tint_strength)
        glUniform2f(loc['cursor'], *cursor)
        glUniform1f(loc['cursor_radius'], display.cursor_radius if display.cursor is not None else 0.0)
        glUniform4f(loc['dead_color'], *Config.DEAD_COLOR)
        glUniform4f(loc['alive_color'], *Config.ALIVE_COLOR)
        glUniform4f(loc['border_color'], *Config.BORDER_COLOR)
        glUniform4f(loc['cursor_color'], *Config.CURSOR_COLOR)

        glBindVertexArray(self.vao)
        glDrawArrays(GL_TRIANGLES, 0, 3)

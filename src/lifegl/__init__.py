"""Conway's Game of Life - GLSL shader implementation."""

__version__ = "0.1.0"
__author__ = "Life Game"

from .core.life_engine import LifeEngine
from .core.pipeline import LifePipeline

__all__ = ['LifeEngine', 'LifePipeline', '__version__']

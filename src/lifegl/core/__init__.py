"""Core module for the Life simulation/composite pipeline."""
from .life_engine import LifeEngine, colorize, composite
from .life_rules import EdgePolicy, Variant
from .pipeline import HostFrame, LifePipeline

__all__ = ['LifeEngine', 'LifePipeline', 'HostFrame', 'EdgePolicy', 'Variant',
           'colorize', 'composite']

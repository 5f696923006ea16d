"""
Base classes for modular stacks.
"""

from .backend import ModularBackend
from .generator import CompositeGenerator, Generator, GeneratorResult

__all__ = ["ModularBackend", "CompositeGenerator", "Generator", "GeneratorResult"]

"""
Modular backend base class.

Extends the base Backend class with generator orchestration: a stack lists
its generators and the base class runs them in order into one file tree.
"""

from __future__ import annotations

import logging
from abc import abstractmethod
from datetime import datetime

from .. import Backend
from ...core import ir
from ...core.fileset import FileTree
from .generator import Generator, GeneratorResult

logger = logging.getLogger(__name__)


class ModularBackend(Backend):
    """
    Base class for stacks assembled from generators.

    Usage:
        class FastAPIReactBackend(ModularBackend):
            def get_generators(self, spec, generated_at):
                return [
                    ModelsGenerator(spec, generated_at),
                    RoutesGenerator(spec, generated_at),
                    # ... more generators
                ]
    """

    def __init__(self) -> None:
        self.warnings: list[str] = []

    @abstractmethod
    def get_generators(self, spec: ir.AppSpecification, generated_at: datetime) -> list[Generator]:
        """
        Get the list of generators to run.

        Args:
            spec: Application specification
            generated_at: Timestamp of this generation run

        Returns:
            List of generators to execute in order
        """
        pass

    def render(self, spec: ir.AppSpecification, generated_at: datetime) -> FileTree:
        combined = GeneratorResult()
        for generator in self.get_generators(spec, generated_at):
            result = generator.generate()
            combined.merge(result)
            logger.debug(f"{generator.__class__.__name__} rendered {len(result.files)} file(s)")

        self.warnings = combined.warnings
        for warning in combined.warnings:
            logger.warning(f"Generation warning for app {spec.id}: {warning}")
        return combined.files

"""
Base generator classes for modular code generation.

Generators are responsible for creating specific artifacts:
- ModelsGenerator: SQLAlchemy models
- RoutesGenerator: FastAPI routers
- PagesGenerator: React pages
- etc.

Each generator renders into an in-memory file tree. Nothing touches the
filesystem until the whole tree has rendered.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ...core import ir
from ...core.errors import GenerationFailed
from ...core.fileset import FileTree


@dataclass
class GeneratorResult:
    """
    Result from a generator execution.

    Attributes:
        files: Relative path -> content of every rendered artifact
        warnings: Any warnings to display to user
    """

    files: FileTree = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    def add_file(self, path: str, content: str, entity_id: str | None = None) -> None:
        """Record a rendered file. Two artifacts may not share a path."""
        if path in self.files:
            raise GenerationFailed(path, "another artifact already renders to this path", entity_id)
        self.files[path] = content

    def add_warning(self, warning: str) -> None:
        self.warnings.append(warning)

    def merge(self, other: GeneratorResult) -> None:
        """Merge another result into this one."""
        for path, content in other.files.items():
            self.add_file(path, content)
        self.warnings.extend(other.warnings)


class Generator(ABC):
    """
    Base class for all generators.

    A generator creates specific artifacts from the AppSpecification.

    Example:
        class ModelsGenerator(Generator):
            def generate(self) -> GeneratorResult:
                result = GeneratorResult()
                for model in self.spec.data_models:
                    self.render(result, f"backend/app/models/{model.name.lower()}.py",
                                self._build_model, model, entity_id=model.id)
                return result
    """

    def __init__(self, spec: ir.AppSpecification, generated_at: datetime):
        """
        Initialize generator.

        Args:
            spec: Snapshot of the accepted specification
            generated_at: Timestamp of this generation run
        """
        self.spec = spec
        self.generated_at = generated_at

    @abstractmethod
    def generate(self) -> GeneratorResult:
        """
        Generate artifacts.

        Returns:
            GeneratorResult with rendered files

        Raises:
            GenerationFailed: If any artifact cannot be rendered
        """
        pass

    def resolve_path(
        self,
        build_path: Callable[[], str],
        fallback: str,
        entity_id: str | None = None,
    ) -> str:
        """Artifact path derived from entity names; ``fallback`` names it in errors."""
        try:
            return build_path()
        except ValueError as e:
            raise GenerationFailed(fallback, str(e), entity_id) from e

    def render(
        self,
        result: GeneratorResult,
        path: str,
        build: Callable[..., str],
        *args: Any,
        entity_id: str | None = None,
    ) -> None:
        """
        Render one artifact into ``result``.

        Any error raised by ``build`` becomes a GenerationFailed naming
        ``path`` and ``entity_id``.
        """
        try:
            content = build(*args)
        except GenerationFailed:
            raise
        except Exception as e:
            raise GenerationFailed(path, str(e) or e.__class__.__name__, entity_id) from e
        result.add_file(path, content, entity_id)


class CompositeGenerator(Generator):
    """
    Generator that runs multiple sub-generators.

    Useful for organizing related generators together.
    """

    @abstractmethod
    def get_generators(self) -> list[Generator]:
        """
        Get the list of sub-generators to run.

        Returns:
            List of Generator instances
        """
        pass

    def generate(self) -> GeneratorResult:
        """
        Run all sub-generators and merge results.

        The first GenerationFailed aborts the run.
        """
        combined = GeneratorResult()
        for generator in self.get_generators():
            combined.merge(generator.generate())
        return combined

"""
Stack plugin system for Synthora.

Stacks render an accepted AppSpecification into a file tree (relative path
-> content). Rendering is all-or-nothing and a pure function of the
specification, apart from the generation timestamp.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from ..core import ir
from ..core.errors import ConfigError
from ..core.fileset import FileTree
from ..synthesis.normalize import utc_now

logger = logging.getLogger(__name__)

DEFAULT_STACK = "fastapi_react"


@dataclass
class BackendCapabilities:
    """
    Describes what a stack can generate.

    Used for introspection and CLI help text.
    """

    name: str
    description: str
    targets: list[str]  # e.g. ["fastapi", "react", "docker-compose"]


class Backend(ABC):
    """
    Abstract base class for all Synthora stacks.

    Minimal interface for easy extensibility.
    """

    @abstractmethod
    def render(self, spec: ir.AppSpecification, generated_at: datetime) -> FileTree:
        """
        Render the complete file tree for a specification.

        Args:
            spec: Snapshot of the accepted specification; never mutated
            generated_at: Timestamp recorded in the generated README

        Raises:
            GenerationFailed: If any artifact cannot be rendered
        """
        pass

    def get_capabilities(self) -> BackendCapabilities:
        return BackendCapabilities(
            name=self.__class__.__name__,
            description="No description provided",
            targets=["unknown"],
        )


class BackendRegistry:
    """Registry of stacks by name."""

    def __init__(self) -> None:
        self._backends: dict[str, type[Backend]] = {}

    def register(self, name: str, backend_class: type[Backend]) -> None:
        """
        Register a stack class.

        Raises:
            ConfigError: If the name is taken or the class is not a Backend
        """
        if name in self._backends:
            raise ConfigError(
                f"Stack '{name}' is already registered. Cannot register {backend_class.__name__}."
            )
        if not issubclass(backend_class, Backend):
            raise ConfigError(f"Stack class {backend_class.__name__} must extend Backend")
        self._backends[name] = backend_class

    def get(self, name: str) -> Backend:
        """
        Get a fresh stack instance by name.

        Raises:
            ConfigError: If no stack has that name
        """
        if name not in self._backends:
            available = ", ".join(sorted(self._backends)) or "none"
            raise ConfigError(f"Stack '{name}' not found. Available stacks: {available}")
        return self._backends[name]()

    def list_backends(self) -> list[str]:
        return list(self._backends)


_registry: BackendRegistry | None = None


def get_registry() -> BackendRegistry:
    """Global stack registry with the built-in stacks registered."""
    global _registry
    if _registry is None:
        from .fastapi_react import FastAPIReactBackend

        _registry = BackendRegistry()
        _registry.register("fastapi_react", FastAPIReactBackend)
    return _registry


def get_backend(name: str = DEFAULT_STACK) -> Backend:
    return get_registry().get(name)


def list_backends() -> list[str]:
    return get_registry().list_backends()


def generate(
    spec: ir.AppSpecification,
    stack: str = DEFAULT_STACK,
    generated_at: datetime | None = None,
) -> FileTree:
    """
    Render ``spec`` with the named stack.

    Args:
        spec: Accepted specification
        stack: Registered stack name
        generated_at: Generation timestamp; defaults to now (UTC)

    Returns:
        The complete file tree

    Raises:
        GenerationFailed: If any artifact cannot be rendered; no partial tree
        ConfigError: If the stack is unknown
    """
    backend = get_backend(stack)
    snapshot = spec.model_copy(deep=True)
    tree = backend.render(snapshot, generated_at or utc_now())
    logger.info(f"Rendered {len(tree)} files for app {spec.id} with stack '{stack}'")
    return tree

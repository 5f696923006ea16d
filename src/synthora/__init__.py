"""
Synthora - conversational application specification and code generation.

Turns natural-language descriptions of an application into a structured,
versioned specification and generates a backend/frontend/deployment source
tree from it.
"""

from __future__ import annotations

from ._version import get_version
from .core import ir
from .core.errors import (
    AlreadyExists,
    ClassificationDegraded,
    GenerationFailed,
    NoActiveSpecification,
    NotFound,
    SynthoraError,
    ValidationFailed,
)

__version__ = get_version()

__all__ = [
    "__version__",
    "ir",
    "SynthoraError",
    "ClassificationDegraded",
    "NoActiveSpecification",
    "ValidationFailed",
    "GenerationFailed",
    "NotFound",
    "AlreadyExists",
]

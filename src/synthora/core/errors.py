"""
Error types for Synthora specification synthesis, validation and generation.

Every error carries a stable ``code`` so the service layer can turn it into
an explicit error result for the transport layer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .validator import Violation


class SynthoraError(Exception):
    """Base exception for all Synthora errors."""

    code = "synthora_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ClassificationDegraded(SynthoraError):
    """
    Raised when the language model's classification output is unusable.

    Never fatal: the classifier converts it into an ``other`` intent with
    confidence 0.
    """

    code = "classification_degraded"


class NoActiveSpecification(SynthoraError):
    """
    Raised when a turn needs an application but none is bound to the session.

    Examples:
    - "Add a Status field to Client" in a fresh session
    - "Predict churn" before any app was created
    """

    code = "no_active_specification"

    def __init__(self, message: str | None = None):
        super().__init__(
            message
            or "I don't have an active app to work on yet. Describe the app you want "
            "to build first (for example: 'Create a CRM with Client and Deal models')."
        )


class ValidationFailed(SynthoraError):
    """
    Raised when a candidate specification breaks a structural invariant.

    The previous specification is retained; ``violations`` lists every
    broken invariant.
    """

    code = "validation_failed"

    def __init__(self, violations: list[Violation], message: str | None = None):
        self.violations = list(violations)
        if message is None:
            message = f"Specification has {len(self.violations)} violation(s): " + "; ".join(
                v.message for v in self.violations
            )
        super().__init__(message)


class GenerationFailed(SynthoraError):
    """
    Raised when a single artifact cannot be rendered.

    Generation is all-or-nothing, so no file tree accompanies this error.

    Attributes:
        artifact: Relative path of the artifact that failed
        entity_id: Id of the specification entity being rendered, if any
    """

    code = "generation_failed"

    def __init__(self, artifact: str, reason: str, entity_id: str | None = None):
        self.artifact = artifact
        self.entity_id = entity_id
        self.reason = reason
        target = f"{artifact} (entity {entity_id})" if entity_id else artifact
        super().__init__(f"Failed to render {target}: {reason}")


class NotFound(SynthoraError):
    """Raised when a session, use case or model id is unknown."""

    code = "not_found"

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind.capitalize()} '{identifier}' not found")


class AlreadyExists(SynthoraError):
    """Raised when registering an entity under an id that is already taken."""

    code = "already_exists"

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind.capitalize()} '{identifier}' already exists")


class LanguageModelError(SynthoraError):
    """Raised when the language-model capability cannot be reached or fails."""

    code = "language_model_error"


class InvalidTransition(SynthoraError):
    """Raised when an ML use case or model is moved to a disallowed status."""

    code = "invalid_transition"


class ConfigError(SynthoraError):
    """Raised when synthora.toml or an environment override is invalid."""

    code = "config_error"

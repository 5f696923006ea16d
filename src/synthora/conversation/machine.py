"""
Conversation state machine.

One turn: record the user message, classify it, synthesize a candidate,
merge and validate it, then either accept it into the session or explain why
not. Every SynthoraError raised inside a turn ends up as reply text; the
previous specification stays in place.
"""

from __future__ import annotations

import logging

from ..core import ir
from ..core.errors import LanguageModelError, SynthoraError, ValidationFailed
from ..core.validator import ValidationResult, validate, validate_use_case
from ..ml.platform import MLPlatform
from ..synthesis.classifier import IntentClassifier
from ..synthesis.merge import merge_specs
from ..synthesis.normalize import Clock, utc_now
from ..synthesis.synthesizer import DeltaKind, SpecificationDelta, SpecSynthesizer
from .store import SessionStore

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = (
    "Hi! I can turn a description of your app into a working specification and code. "
    "Tell me what you want to build, for example: 'Create a CRM with Client and Deal models'. "
    "Once the app exists you can refine it, add ML capabilities like churn prediction, "
    "and generate the source code."
)

LANGUAGE_MODEL_UNAVAILABLE = (
    "I couldn't reach the language model just now, so nothing was changed. Please try again."
)


def render_error(error: SynthoraError) -> str:
    """User-facing text for an error raised during a turn."""
    if isinstance(error, ValidationFailed):
        return ValidationResult(violations=list(error.violations)).render()
    if isinstance(error, LanguageModelError):
        return LANGUAGE_MODEL_UNAVAILABLE
    return error.message


class ConversationStateMachine:
    """
    Drives sessions from ``uninitialized`` through ``active`` to ``closed``.

    Args:
        classifier: Intent classifier
        synthesizer: Specification synthesizer
        store: Session store; a fresh one is created if omitted
        ml_platform: Registry that accepted ML use cases are added to
        clock: Source of message timestamps
    """

    def __init__(
        self,
        classifier: IntentClassifier,
        synthesizer: SpecSynthesizer,
        store: SessionStore | None = None,
        ml_platform: MLPlatform | None = None,
        clock: Clock = utc_now,
    ):
        self.classifier = classifier
        self.synthesizer = synthesizer
        self.store = store if store is not None else SessionStore()
        self.ml_platform = ml_platform
        self.clock = clock

    def start_session(self, user_id: str) -> ir.ConversationContext:
        context = self.store.create(user_id)
        context.history.append(
            ir.Message(role=ir.Role.ASSISTANT, content=WELCOME_MESSAGE, timestamp=self.clock())
        )
        logger.info(f"Started session {context.session_id} for user {user_id}")
        return context

    async def handle_message(self, session_id: str, text: str) -> ir.Message:
        """
        Process one user message and return the assistant reply.

        Messages for the same session are processed one at a time, in order.

        Raises:
            NotFound: If the session is unknown or closed
        """
        async with self.store.exclusive(session_id) as context:
            context.history.append(ir.Message(role=ir.Role.USER, content=text, timestamp=self.clock()))
            try:
                content, artifacts = await self._process(context, text)
            except SynthoraError as e:
                logger.warning(f"Turn rejected in session {session_id} [{e.code}]: {e.message}")
                content, artifacts = render_error(e), []

            reply = ir.Message(
                role=ir.Role.ASSISTANT,
                content=content,
                timestamp=self.clock(),
                artifacts=artifacts,
            )
            context.history.append(reply)
            return reply

    async def dispose(self, session_id: str) -> None:
        await self.store.dispose(session_id)

    async def _process(
        self, context: ir.ConversationContext, text: str
    ) -> tuple[str, list[ir.Artifact]]:
        intent = await self.classifier.classify(text, context.history)
        delta = await self.synthesizer.synthesize(intent, text, context)

        if delta.kind == DeltaKind.SPEC:
            return delta.response, [self._accept_spec(context, delta)]
        if delta.kind == DeltaKind.ML_USE_CASE:
            return delta.response, [self._accept_use_case(context, delta)]
        return delta.response, []

    def _accept_spec(self, context: ir.ConversationContext, delta: SpecificationDelta) -> ir.Artifact:
        if delta.is_new_app or context.current_spec is None:
            candidate = delta.spec
        else:
            candidate = merge_specs(context.current_spec, delta.spec, now=self.clock())

        result = validate(candidate)
        if not result.is_valid:
            raise ValidationFailed(result.violations)

        if delta.is_new_app:
            context.current_ml_use_case = None
        context.current_spec = candidate
        logger.info(f"Accepted app {candidate.id} v{candidate.version} in session {context.session_id}")
        return ir.Artifact(type=ir.ArtifactType.SPEC, content=candidate.to_wire())

    def _accept_use_case(self, context: ir.ConversationContext, delta: SpecificationDelta) -> ir.Artifact:
        use_case = delta.use_case
        result = validate_use_case(use_case, context.current_spec)
        if not result.is_valid:
            raise ValidationFailed(result.violations)

        context.current_ml_use_case = use_case
        if self.ml_platform is not None:
            self.ml_platform.register_use_case(use_case)
        return ir.Artifact(type=ir.ArtifactType.MODEL, content=use_case.to_wire())

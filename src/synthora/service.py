"""
Transport-facing service facade.

Wires the conversation state machine, the code generation engine and the ML
platform together and exposes them as coroutines that return result objects.
Nothing raised by the core crosses this boundary: every SynthoraError becomes
an OperationError carrying the error's stable code.
"""

from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Any

from pydantic import Field, ValidationError

from .conversation import ConversationStateMachine, SessionStore
from .core import ir
from .core.errors import (
    AlreadyExists,
    GenerationFailed,
    NoActiveSpecification,
    NotFound,
    SynthoraError,
    ValidationFailed,
)
from .core.fileset import FileWriter, LocalFileWriter
from .core.manifest import SynthoraConfig
from .core.validator import violations_from_error
from .llm.api_client import LanguageModel, LLMAPIClient
from .ml.platform import MLPlatform
from .ml.templates import overlay_config
from .stacks import generate
from .synthesis.classifier import IntentClassifier
from .synthesis.normalize import Clock, utc_now
from .synthesis.synthesizer import SpecSynthesizer

logger = logging.getLogger(__name__)


class OperationError(ir.SpecModel):
    """Explicit error result returned in place of an exception."""

    code: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, error: SynthoraError) -> OperationError:
        details: dict[str, Any] = {}
        if isinstance(error, (NotFound, AlreadyExists)):
            details = {"kind": error.kind, "id": error.identifier}
        elif isinstance(error, GenerationFailed):
            details = {"artifact": error.artifact, "entityId": error.entity_id}
        elif isinstance(error, ValidationFailed):
            details = {
                "violations": [
                    {"entityId": v.entity_id, "rule": v.rule, "message": v.message}
                    for v in error.violations
                ]
            }
        return cls(code=error.code, message=error.message, details=details)


class MessageResult(ir.SpecModel):
    response: str
    artifacts: list[ir.Artifact] = Field(default_factory=list)


class GenerateAppResult(ir.SpecModel):
    path: str
    spec: ir.AppSpecification
    files: list[str] = Field(default_factory=list)


class DeployResult(ir.SpecModel):
    model: ir.MLModel
    endpoint: str
    script_path: str


class SynthoraService:
    """
    Entry point for transports (HTTP, CLI, tests).

    Args:
        lm: Language-model capability shared by classifier and synthesizer
        config: Synthora configuration; defaults apply when omitted
        writer: File writer for generated apps and ML scaffolds
        clock: Source of timestamps
        rng: Random source for simulated ML metrics
    """

    def __init__(
        self,
        lm: LanguageModel,
        config: SynthoraConfig | None = None,
        writer: FileWriter | None = None,
        clock: Clock = utc_now,
        rng: random.Random | None = None,
    ):
        self.config = config or SynthoraConfig()
        self.writer = writer or LocalFileWriter()
        self.clock = clock
        window = self.config.conversation.history_window

        self.ml_platform = MLPlatform(
            models_dir=self.config.ml.models_dir,
            writer=self.writer,
            rng=rng,
            clock=clock,
        )
        self.store = SessionStore()
        self.machine = ConversationStateMachine(
            classifier=IntentClassifier(lm, history_window=window),
            synthesizer=SpecSynthesizer(lm, clock=clock, history_window=window),
            store=self.store,
            ml_platform=self.ml_platform,
            clock=clock,
        )

    @classmethod
    def from_config(cls, config: SynthoraConfig, writer: FileWriter | None = None) -> SynthoraService:
        """
        Build a service backed by the configured LLM provider.

        Raises:
            ValueError: If the provider API key is missing
            ImportError: If the provider SDK is not installed
        """
        lm = LLMAPIClient(
            provider=config.llm.provider,
            model=config.llm.model,
            temperature=config.llm.temperature,
            max_tokens=config.llm.max_tokens,
        )
        return cls(lm, config=config, writer=writer)

    # Conversation

    async def start_session(self, user_id: str) -> str:
        return self.machine.start_session(user_id).session_id

    async def send_message(self, session_id: str, text: str) -> MessageResult | OperationError:
        try:
            reply = await self.machine.handle_message(session_id, text)
        except NotFound as e:
            return OperationError.from_exception(e)
        return MessageResult(response=reply.content, artifacts=reply.artifacts)

    async def get_context(self, session_id: str) -> ir.ConversationContext | OperationError:
        """Snapshot of a session; later turns do not change it."""
        try:
            async with self.store.exclusive(session_id) as context:
                return context.model_copy(deep=True)
        except NotFound as e:
            return OperationError.from_exception(e)

    async def close_session(self, session_id: str) -> None | OperationError:
        try:
            await self.machine.dispose(session_id)
        except NotFound as e:
            return OperationError.from_exception(e)
        return None

    # Generation

    async def generate_app(self, session_id: str) -> GenerateAppResult | OperationError:
        """
        Render the session's current specification and write it to disk.

        The tree is written to ``<output_dir>/<app id>`` only after every
        artifact rendered.
        """
        try:
            async with self.store.exclusive(session_id) as context:
                if context.current_spec is None:
                    raise NoActiveSpecification()
                spec = context.current_spec.model_copy(deep=True)

            tree = generate(spec, stack=self.config.generation.stack, generated_at=self.clock())
        except SynthoraError as e:
            logger.warning(f"Generation for session {session_id} failed [{e.code}]: {e.message}")
            return OperationError.from_exception(e)

        target = Path(self.config.generation.output_dir) / spec.id
        try:
            await self.writer.write_tree(target, tree)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to write app {spec.id} to {target}: {e}")
            return OperationError(code="write_failed", message=str(e), details={"path": str(target)})

        logger.info(f"Generated app {spec.id} v{spec.version} ({len(tree)} files) at {target}")
        return GenerateAppResult(path=str(target), spec=spec, files=sorted(tree))

    # ML

    async def create_ml_use_case(self, partial: dict[str, Any]) -> ir.MLUseCase | OperationError:
        try:
            return self.ml_platform.create_use_case(partial)
        except SynthoraError as e:
            return OperationError.from_exception(e)
        except ValidationError as e:
            violations = violations_from_error(e, entity_id="<use case>")
            return OperationError(
                code="validation_failed",
                message="; ".join(v.message for v in violations),
                details={"violations": [{"rule": v.rule, "message": v.message} for v in violations]},
            )

    async def train_model(
        self,
        use_case_id: str,
        config: ir.MLConfig | dict[str, Any] | None = None,
    ) -> ir.MLModel | OperationError:
        """
        Train (simulate) a model version.

        ``config`` may be a full MLConfig or a partial wire-shaped dict that
        is laid over the use case's own configuration.
        """
        try:
            if isinstance(config, dict):
                base = self.ml_platform.get_use_case(use_case_id).config
                config = overlay_config(base, config)
            return await self.ml_platform.train_model(use_case_id, config)
        except SynthoraError as e:
            return OperationError.from_exception(e)
        except ValidationError as e:
            return OperationError(code="validation_failed", message=str(e))
        except (OSError, ValueError) as e:
            return OperationError(code="write_failed", message=str(e))

    async def deploy_model(self, model_id: str, use_case_id: str) -> DeployResult | OperationError:
        try:
            model = await self.ml_platform.deploy_model(model_id, use_case_id)
            use_case = self.ml_platform.get_use_case(use_case_id)
        except SynthoraError as e:
            return OperationError.from_exception(e)
        except (OSError, ValueError) as e:
            return OperationError(code="write_failed", message=str(e))
        return DeployResult(
            model=model,
            endpoint=use_case.config.deployment_config.endpoint,
            script_path=str(self.ml_platform.deployment_path(use_case_id)),
        )

    async def list_models(self, use_case_id: str) -> list[ir.MLModel]:
        return self.ml_platform.get_models(use_case_id)

    async def get_deployed_model(self, use_case_id: str) -> ir.MLModel | None:
        return self.ml_platform.get_deployed_model(use_case_id)

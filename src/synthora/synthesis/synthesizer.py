"""
Specification synthesis.

Turns a classified utterance into a candidate: a new application, a delta
against the current one, an ML use case, or just a reply. The language model
only extracts structure; ids, versions, timestamps and template defaults are
filled in here, deterministically.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from ..core import ir
from ..core.errors import LanguageModelError, NoActiveSpecification, SynthoraError, ValidationFailed
from ..core.validator import violations_from_error
from ..llm.api_client import LanguageModel
from ..llm.models import SpecExtraction, UseCaseExtraction
from ..llm.prompts import CREATE_APP_PROMPT, GENERAL_PROMPT, MODIFY_APP_PROMPT, ML_USECASE_PROMPT
from ..ml.templates import build_use_case
from .classifier import DEFAULT_HISTORY_WINDOW, build_turns
from .normalize import Clock, new_app_id, new_specification, normalize_delta, utc_now

logger = logging.getLogger(__name__)

SPEC_INTENTS = frozenset(
    {
        ir.IntentType.MODIFY_APP,
        ir.IntentType.ADD_FEATURE,
        ir.IntentType.CONFIGURE_INTEGRATION,
    }
)

FALLBACK_REPLY = (
    "I'm not sure how to help with that yet. You can describe an app to build, "
    "ask for changes to the current one, or add an ML capability such as churn prediction."
)


class DeltaKind(str, Enum):
    SPEC = "spec"
    ML_USE_CASE = "ml_use_case"
    NONE = "none"


@dataclass
class SpecificationDelta:
    """
    Output of one synthesis step.

    Attributes:
        kind: What the candidate is
        response: Reply text for the user
        spec: A complete new app (``is_new_app``) or a normalized delta
        use_case: The new ML use case, for ``ml_use_case``
        is_new_app: The spec replaces the current one instead of merging into it
    """

    kind: DeltaKind
    response: str
    spec: ir.AppSpecification | None = None
    use_case: ir.MLUseCase | None = None
    is_new_app: bool = False


def _parse_fragment(raw: dict[str, Any]) -> ir.AppSpecification:
    try:
        return ir.AppSpecification.model_validate(raw)
    except ValidationError as e:
        raise ValidationFailed(violations_from_error(e)) from e


def _describe(spec: ir.AppSpecification) -> str:
    return (
        f"{len(spec.data_models)} data model(s), {len(spec.screens)} screen(s) "
        f"and {len(spec.workflows)} workflow(s)"
    )


def _context_line(context: ir.ConversationContext) -> str:
    spec = context.current_spec
    if spec is None:
        return "No app has been created yet."
    line = f"Current app '{spec.name}' (v{spec.version}) with {_describe(spec)}"
    if spec.data_models:
        line += f": models {', '.join(spec.model_names)}"
    if context.current_ml_use_case is not None:
        line += f". ML use case: {context.current_ml_use_case.name}"
    return line + "."


class SpecSynthesizer:
    """
    Produces candidate specifications from classified utterances.

    Args:
        lm: Language-model capability
        clock: Source of timestamps
        history_window: Prior messages passed along with each extraction call
        id_factory: Source of fresh application ids
    """

    def __init__(
        self,
        lm: LanguageModel,
        clock: Clock = utc_now,
        history_window: int = DEFAULT_HISTORY_WINDOW,
        id_factory: Callable[[], str] = new_app_id,
    ):
        self.lm = lm
        self.clock = clock
        self.history_window = history_window
        self.id_factory = id_factory

    async def synthesize(
        self,
        intent: ir.Intent,
        utterance: str,
        context: ir.ConversationContext,
    ) -> SpecificationDelta:
        """
        Produce the candidate for one turn.

        Raises:
            NoActiveSpecification: If the intent needs an app and there is none
            ValidationFailed: If the extracted structure has the wrong shape
            LanguageModelError: If the language model cannot be reached
        """
        if intent.type == ir.IntentType.CREATE_APP:
            return await self._create_app(utterance, context)
        if intent.type in SPEC_INTENTS:
            return await self._modify_app(utterance, context)
        if intent.type == ir.IntentType.CREATE_ML_USECASE:
            return await self._create_use_case(utterance, context)
        return await self._respond(utterance, context)

    def _turns(self, utterance: str, context: ir.ConversationContext):
        return build_turns(context.history, utterance, self.history_window)

    @staticmethod
    def _require_spec(context: ir.ConversationContext) -> ir.AppSpecification:
        if context.current_spec is None or not context.current_spec.id:
            raise NoActiveSpecification()
        return context.current_spec

    async def _complete(
        self,
        system_prompt: str,
        utterance: str,
        context: ir.ConversationContext,
        structured_output: bool = False,
    ) -> str | dict[str, Any]:
        """One language-model call; any non-Synthora failure becomes a LanguageModelError."""
        try:
            return await self.lm.complete(
                system_prompt, self._turns(utterance, context), structured_output=structured_output
            )
        except SynthoraError:
            raise
        except Exception as e:
            logger.error(f"Language model call failed: {e!r}")
            raise LanguageModelError(f"Language model call failed: {e}") from e

    async def _extract(self, system_prompt: str, utterance: str, context: ir.ConversationContext):
        raw = await self._complete(system_prompt, utterance, context, structured_output=True)
        logger.debug(f"Extraction output: {str(raw)[:500]}")
        return raw if isinstance(raw, dict) else {}

    async def _create_app(self, utterance: str, context: ir.ConversationContext) -> SpecificationDelta:
        extraction = SpecExtraction.from_raw(await self._extract(CREATE_APP_PROMPT, utterance, context))
        if extraction.is_empty:
            return SpecificationDelta(
                kind=DeltaKind.NONE,
                response=extraction.summary
                or "I couldn't work out an app from that. Which data and screens do you need?",
            )

        fragment = _parse_fragment(extraction.app)
        spec = new_specification(fragment, now=self.clock(), app_id=self.id_factory())
        if context.current_spec is not None:
            logger.info(f"Replacing app {context.current_spec.id} with new app {spec.id}")
        return SpecificationDelta(
            kind=DeltaKind.SPEC,
            response=extraction.summary or f"I've designed '{spec.name}' with {_describe(spec)}.",
            spec=spec,
            is_new_app=True,
        )

    async def _modify_app(self, utterance: str, context: ir.ConversationContext) -> SpecificationDelta:
        current = self._require_spec(context)
        prompt = MODIFY_APP_PROMPT.format(
            current_spec=current.model_dump_json(by_alias=True, exclude_none=True, indent=2)
        )
        extraction = SpecExtraction.from_raw(await self._extract(prompt, utterance, context))
        if extraction.is_empty:
            return SpecificationDelta(
                kind=DeltaKind.NONE,
                response=extraction.summary or "I couldn't identify a change to make. Could you be more specific?",
            )

        delta = normalize_delta(_parse_fragment(extraction.app), current)
        return SpecificationDelta(
            kind=DeltaKind.SPEC,
            response=extraction.summary or f"I've updated '{current.name}'.",
            spec=delta,
        )

    async def _create_use_case(self, utterance: str, context: ir.ConversationContext) -> SpecificationDelta:
        current = self._require_spec(context)
        prompt = ML_USECASE_PROMPT.format(current_spec=_context_line(context))
        extraction = UseCaseExtraction.from_raw(await self._extract(prompt, utterance, context))

        partial = dict(extraction.use_case)
        if "config" in partial and not isinstance(partial["config"], dict):
            partial.pop("config")
        try:
            use_case = build_use_case(partial, app_id=current.id, now=self.clock())
        except ValidationError as e:
            raise ValidationFailed(violations_from_error(e, partial.get("name") or "<use case>")) from e

        return SpecificationDelta(
            kind=DeltaKind.ML_USE_CASE,
            response=extraction.summary
            or f"I've set up '{use_case.name}' ({use_case.category.value}) predicting "
            f"'{use_case.config.target_variable}'.",
            use_case=use_case,
        )

    async def _respond(self, utterance: str, context: ir.ConversationContext) -> SpecificationDelta:
        prompt = GENERAL_PROMPT.format(context=_context_line(context))
        reply = await self._complete(prompt, utterance, context)
        text = reply if isinstance(reply, str) else ""
        return SpecificationDelta(kind=DeltaKind.NONE, response=text.strip() or FALLBACK_REPLY)

"""
Intent classification for conversation turns.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from ..core import ir
from ..core.errors import ClassificationDegraded, LanguageModelError
from ..llm.api_client import LanguageModel, Turn
from ..llm.models import ClassifierOutput
from ..llm.prompts import CLASSIFIER_PROMPT

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_WINDOW = 5


def build_turns(history: list[ir.Message], utterance: str, window: int) -> list[Turn]:
    """
    Model turns for one call: up to ``window`` prior messages, then the utterance.

    A trailing user message equal to ``utterance`` is the utterance itself
    and is not repeated.
    """
    prior = list(history)
    if prior and prior[-1].role == ir.Role.USER and prior[-1].content == utterance:
        prior.pop()
    recent = prior[-window:] if window > 0 else []
    turns: list[Turn] = [
        {"role": m.role.value, "content": m.content} for m in recent if m.role != ir.Role.SYSTEM
    ]
    turns.append({"role": "user", "content": utterance})
    return turns


class IntentClassifier:
    """Maps an utterance plus recent history to an Intent. Never raises."""

    def __init__(self, lm: LanguageModel, history_window: int = DEFAULT_HISTORY_WINDOW):
        self.lm = lm
        self.history_window = history_window

    async def classify(self, utterance: str, recent_history: list[ir.Message]) -> ir.Intent:
        turns = build_turns(recent_history, utterance, self.history_window)
        try:
            raw = await self.lm.complete(CLASSIFIER_PROMPT, turns, structured_output=True)
            intent = self._coerce(raw)
        except (ClassificationDegraded, LanguageModelError) as e:
            logger.warning(f"Intent classification degraded: {e.message}")
            return ir.Intent(type=ir.IntentType.OTHER, confidence=0.0)
        except Exception as e:
            logger.warning(f"Intent classification degraded: language model call failed: {e!r}")
            return ir.Intent(type=ir.IntentType.OTHER, confidence=0.0)

        logger.debug(f"Classified {utterance[:60]!r} as {intent.type.value} ({intent.confidence:.2f})")
        return intent

    @staticmethod
    def _coerce(raw: Any) -> ir.Intent:
        if not isinstance(raw, dict) or not raw:
            raise ClassificationDegraded("classifier returned no JSON object")
        try:
            output = ClassifierOutput.model_validate(raw)
        except ValidationError as e:
            raise ClassificationDegraded(f"classifier output is malformed: {e.error_count()} error(s)") from e

        try:
            intent_type = ir.IntentType(output.type.strip().lower())
        except ValueError:
            intent_type = ir.IntentType.OTHER
        return ir.Intent(type=intent_type, confidence=output.confidence, entities=output.entities)

"""Tests for intent classification and its degradation to ``other``."""

from __future__ import annotations

import logging

import pytest

from synthora.core import ir
from synthora.core.errors import LanguageModelError
from synthora.llm.prompts import CLASSIFIER_PROMPT
from synthora.synthesis.classifier import IntentClassifier, build_turns
from tests.helpers import FIXED_NOW, ScriptedLM, intent


def _message(role: ir.Role, content: str) -> ir.Message:
    return ir.Message(role=role, content=content, timestamp=FIXED_NOW)


class TestBuildTurns:
    def test_window_limits_history(self) -> None:
        history = [_message(ir.Role.USER, f"m{i}") for i in range(8)]
        turns = build_turns(history, "now", window=3)
        assert [t["content"] for t in turns] == ["m5", "m6", "m7", "now"]

    def test_zero_window_sends_only_utterance(self) -> None:
        history = [_message(ir.Role.USER, "earlier")]
        assert build_turns(history, "now", window=0) == [{"role": "user", "content": "now"}]

    def test_trailing_utterance_not_repeated(self) -> None:
        history = [_message(ir.Role.ASSISTANT, "hi"), _message(ir.Role.USER, "now")]
        turns = build_turns(history, "now", window=5)
        assert turns == [{"role": "assistant", "content": "hi"}, {"role": "user", "content": "now"}]

    def test_system_messages_excluded(self) -> None:
        history = [_message(ir.Role.SYSTEM, "internal"), _message(ir.Role.ASSISTANT, "hi")]
        turns = build_turns(history, "now", window=5)
        assert all(t["content"] != "internal" for t in turns)


class TestClassify:
    async def test_well_formed_reply(self) -> None:
        lm = ScriptedLM(intent("create_app", 0.93, appType="crm"))
        result = await IntentClassifier(lm).classify("Create a CRM", [])
        assert result.type == ir.IntentType.CREATE_APP
        assert result.confidence == pytest.approx(0.93)
        assert result.entities == {"appType": "crm"}

        system_prompt, turns, structured = lm.calls[0]
        assert system_prompt == CLASSIFIER_PROMPT
        assert structured is True
        assert turns[-1] == {"role": "user", "content": "Create a CRM"}

    async def test_type_is_case_insensitive(self) -> None:
        lm = ScriptedLM({"type": " Modify_App ", "confidence": "0.7"})
        result = await IntentClassifier(lm).classify("rename it", [])
        assert result.type == ir.IntentType.MODIFY_APP
        assert result.confidence == pytest.approx(0.7)

    async def test_unknown_type_maps_to_other(self) -> None:
        lm = ScriptedLM(intent("order_pizza", 0.8))
        result = await IntentClassifier(lm).classify("pizza please", [])
        assert result.type == ir.IntentType.OTHER
        assert result.confidence == pytest.approx(0.8)

    @pytest.mark.parametrize(
        "reply",
        [
            {},
            "not json at all",
            {"confidence": 0.9},
            {"type": ["create_app"]},
        ],
    )
    async def test_malformed_reply_degrades(self, reply, caplog) -> None:
        lm = ScriptedLM(reply)
        with caplog.at_level(logging.WARNING, logger="synthora.synthesis.classifier"):
            result = await IntentClassifier(lm).classify("hello", [])
        assert result.type == ir.IntentType.OTHER
        assert result.confidence == 0.0
        assert "degraded" in caplog.text

    async def test_language_model_error_degrades(self) -> None:
        lm = ScriptedLM(LanguageModelError("connection refused"))
        result = await IntentClassifier(lm).classify("hello", [])
        assert result == ir.Intent(type=ir.IntentType.OTHER, confidence=0.0)

    async def test_unexpected_client_error_degrades(self, caplog) -> None:
        lm = ScriptedLM(RuntimeError("connection reset"))
        with caplog.at_level(logging.WARNING, logger="synthora.synthesis.classifier"):
            result = await IntentClassifier(lm).classify("hello", [])
        assert result == ir.Intent(type=ir.IntentType.OTHER, confidence=0.0)
        assert "degraded" in caplog.text

    async def test_bad_confidence_and_entities_coerced(self) -> None:
        lm = ScriptedLM({"type": "question", "confidence": "very", "entities": ["x"]})
        result = await IntentClassifier(lm).classify("what?", [])
        assert result.type == ir.IntentType.QUESTION
        assert result.confidence == 0.0
        assert result.entities == {}

    async def test_history_window_respected(self) -> None:
        lm = ScriptedLM(intent("question"))
        history = [_message(ir.Role.USER, f"m{i}") for i in range(10)]
        await IntentClassifier(lm, history_window=2).classify("now", history)
        _, turns, _ = lm.calls[0]
        assert [t["content"] for t in turns] == ["m8", "m9", "now"]

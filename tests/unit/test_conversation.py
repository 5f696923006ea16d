"""
Tests for the conversation state machine and session store.

Covers:
- Session lifecycle (welcome message, dispose, closed sessions)
- Create-then-modify scenario
- Modify without an app
- Rejected candidates keep the previous specification
- No leakage between sessions
- FIFO processing of messages within one session
"""

from __future__ import annotations

import asyncio

import pytest

from synthora.conversation import WELCOME_MESSAGE, ConversationStateMachine, SessionStore
from synthora.conversation.machine import LANGUAGE_MODEL_UNAVAILABLE
from synthora.core import ir
from synthora.core.errors import LanguageModelError, NoActiveSpecification, NotFound
from synthora.ml.platform import MLPlatform
from synthora.ml.templates import get_template
from synthora.synthesis.classifier import IntentClassifier
from synthora.synthesis.synthesizer import SpecSynthesizer
from tests.helpers import FIXED_NOW, MemoryWriter, ScriptedLM, intent

ADD_STATUS = {
    "summary": "Added a Status field to Client.",
    "app": {
        "dataModels": [
            {
                "name": "Client",
                "fields": [
                    {"name": "name", "type": "string", "required": True},
                    {"name": "email", "type": "email", "unique": True},
                    {"name": "status", "type": "string"},
                ],
                "relations": [{"type": "oneToMany", "targetModel": "Deal"}],
            }
        ]
    },
}


def _machine(lm: ScriptedLM, platform: MLPlatform | None = None) -> ConversationStateMachine:
    clock = lambda: FIXED_NOW  # noqa: E731
    return ConversationStateMachine(
        classifier=IntentClassifier(lm),
        synthesizer=SpecSynthesizer(lm, clock=clock),
        ml_platform=platform,
        clock=clock,
    )


class TestSessionStore:
    def test_create_is_active(self) -> None:
        store = SessionStore()
        context = store.create("u1")
        assert context.state == ir.SessionState.ACTIVE
        assert context.session_id in store
        assert store.get(context.session_id) is context

    async def test_dispose_closes(self) -> None:
        store = SessionStore()
        context = store.create("u1")
        await store.dispose(context.session_id)
        assert context.state == ir.SessionState.CLOSED
        assert context.session_id not in store
        with pytest.raises(NotFound):
            store.get(context.session_id)
        with pytest.raises(NotFound):
            await store.dispose(context.session_id)

    async def test_unknown_session(self) -> None:
        with pytest.raises(NotFound):
            async with SessionStore().exclusive("nope"):
                pass


class TestSessionLifecycle:
    def test_welcome_message(self) -> None:
        machine = _machine(ScriptedLM())
        context = machine.start_session("u1")
        assert context.user_id == "u1"
        assert [m.role for m in context.history] == [ir.Role.ASSISTANT]
        assert context.history[0].content == WELCOME_MESSAGE
        assert context.current_spec is None

    async def test_message_after_dispose(self) -> None:
        machine = _machine(ScriptedLM())
        context = machine.start_session("u1")
        await machine.dispose(context.session_id)
        with pytest.raises(NotFound):
            await machine.handle_message(context.session_id, "hello")


class TestCreateThenModify:
    async def test_scenario(self, crm_fragment) -> None:
        lm = ScriptedLM(
            intent("create_app"),
            {"summary": "Your CRM is ready.", "app": crm_fragment},
            intent("add_feature"),
            ADD_STATUS,
        )
        machine = _machine(lm)
        context = machine.start_session("u1")
        sid = context.session_id

        reply = await machine.handle_message(sid, "Create a CRM with Client and Deal models")
        assert reply.content == "Your CRM is ready."
        assert [a.type for a in reply.artifacts] == [ir.ArtifactType.SPEC]
        created = context.current_spec
        assert created.version == "0.1.0"
        assert created.model_names == ["Client", "Deal"]

        reply = await machine.handle_message(sid, "Add a Status field to Client")
        modified = context.current_spec
        assert reply.content == "Added a Status field to Client."
        assert modified.id == created.id
        assert modified.version == "0.1.1"
        assert modified.get_model("Client").id == created.get_model("Client").id
        assert modified.get_model("Client").field_names == ["name", "email", "status"]
        assert modified.get_model("Deal") == created.get_model("Deal")
        assert reply.artifacts[0].content["version"] == "0.1.1"

        roles = [m.role for m in context.history]
        assert roles == [ir.Role.ASSISTANT, ir.Role.USER, ir.Role.ASSISTANT, ir.Role.USER, ir.Role.ASSISTANT]

    async def test_new_app_replaces_current(self, crm_fragment) -> None:
        lm = ScriptedLM(
            intent("create_app"),
            {"app": crm_fragment},
            intent("create_app"),
            {"app": {"name": "Blog", "dataModels": [{"name": "Post"}]}},
        )
        machine = _machine(lm)
        context = machine.start_session("u1")
        await machine.handle_message(context.session_id, "Create a CRM")
        first_id = context.current_spec.id
        await machine.handle_message(context.session_id, "Actually, create a blog")
        assert context.current_spec.id != first_id
        assert context.current_spec.model_names == ["Post"]
        assert context.current_spec.version == "0.1.0"


class TestRejectedTurns:
    async def test_modify_without_app(self) -> None:
        lm = ScriptedLM(intent("modify_app"))
        machine = _machine(lm)
        context = machine.start_session("u1")

        reply = await machine.handle_message(context.session_id, "Add a Status field to Client")
        assert reply.content == NoActiveSpecification().message
        assert reply.artifacts == []
        assert context.current_spec is None
        assert len(lm.calls) == 1

    async def test_invalid_candidate_keeps_previous(self, crm_spec) -> None:
        lm = ScriptedLM(
            intent("modify_app"),
            {"app": {"dataModels": [{"name": "Invoice", "relations": [{"targetModel": "Payment"}]}]}},
        )
        machine = _machine(lm)
        context = machine.start_session("u1")
        context.current_spec = crm_spec

        reply = await machine.handle_message(context.session_id, "Add invoices linked to payments")
        assert context.current_spec is crm_spec
        assert "Payment" in reply.content
        assert reply.artifacts == []

    async def test_language_model_failure(self, crm_spec) -> None:
        lm = ScriptedLM(intent("modify_app"), LanguageModelError("timeout"))
        machine = _machine(lm)
        context = machine.start_session("u1")
        context.current_spec = crm_spec

        reply = await machine.handle_message(context.session_id, "Rename the app")
        assert reply.content == LANGUAGE_MODEL_UNAVAILABLE
        assert context.current_spec is crm_spec

    async def test_unexpected_client_error(self, crm_spec) -> None:
        lm = ScriptedLM(intent("modify_app"), RuntimeError("connection reset"))
        machine = _machine(lm)
        context = machine.start_session("u1")
        context.current_spec = crm_spec

        reply = await machine.handle_message(context.session_id, "Rename the app")
        assert reply.content == LANGUAGE_MODEL_UNAVAILABLE
        assert context.current_spec is crm_spec
        assert context.history[-1] is reply

    async def test_client_failing_throughout(self) -> None:
        lm = ScriptedLM(RuntimeError("connection reset"), RuntimeError("connection reset"))
        machine = _machine(lm)
        context = machine.start_session("u1")

        reply = await machine.handle_message(context.session_id, "hello")
        assert reply.content == LANGUAGE_MODEL_UNAVAILABLE
        assert [m.role for m in context.history][-2:] == [ir.Role.USER, ir.Role.ASSISTANT]

    async def test_degraded_classification_still_replies(self) -> None:
        lm = ScriptedLM({"nonsense": True}, "Could you tell me more?")
        machine = _machine(lm)
        context = machine.start_session("u1")
        reply = await machine.handle_message(context.session_id, "blorp")
        assert reply.content == "Could you tell me more?"


class TestMLUseCases:
    async def test_use_case_accepted_and_registered(self, crm_spec) -> None:
        platform = MLPlatform(writer=MemoryWriter(), clock=lambda: FIXED_NOW)
        lm = ScriptedLM(intent("create_ml_usecase"), {"useCase": {"category": "churn_prediction"}})
        machine = _machine(lm, platform)
        context = machine.start_session("u1")
        context.current_spec = crm_spec

        reply = await machine.handle_message(context.session_id, "Predict which clients will churn")
        use_case = context.current_ml_use_case
        assert use_case is not None
        assert use_case.app_id == crm_spec.id
        assert use_case.config == get_template(ir.MLCategory.CHURN_PREDICTION)
        assert reply.artifacts[0].type == ir.ArtifactType.MODEL
        assert platform.get_use_case(use_case.id) is use_case

    async def test_use_case_needs_app(self) -> None:
        lm = ScriptedLM(intent("create_ml_usecase"))
        machine = _machine(lm)
        context = machine.start_session("u1")
        reply = await machine.handle_message(context.session_id, "Predict churn")
        assert reply.content == NoActiveSpecification().message
        assert context.current_ml_use_case is None


class TestIsolation:
    async def test_no_cross_session_leakage(self, crm_fragment) -> None:
        lm = ScriptedLM(intent("create_app"), {"app": crm_fragment}, intent("modify_app"))
        machine = _machine(lm)
        first = machine.start_session("alice")
        second = machine.start_session("bob")

        await machine.handle_message(first.session_id, "Create a CRM")
        reply = await machine.handle_message(second.session_id, "Add a Status field to Client")

        assert first.current_spec is not None
        assert second.current_spec is None
        assert reply.content == NoActiveSpecification().message
        assert all(m.content != "Create a CRM" for m in second.history)


class GatedLM(ScriptedLM):
    """Blocks its first call until ``gate`` is set."""

    def __init__(self, *replies):
        super().__init__(*replies)
        self.gate = asyncio.Event()
        self.started = asyncio.Event()

    async def complete(self, system_prompt, turns, *, structured_output=False):
        if len(self.calls) == 0:
            self.started.set()
            await self.gate.wait()
        return await super().complete(system_prompt, turns, structured_output=structured_output)


class TestOrdering:
    async def test_messages_processed_in_order(self) -> None:
        lm = GatedLM(intent("question"), "first answer", intent("question"), "second answer")
        machine = _machine(lm)
        context = machine.start_session("u1")

        first = asyncio.create_task(machine.handle_message(context.session_id, "one"))
        await lm.started.wait()
        second = asyncio.create_task(machine.handle_message(context.session_id, "two"))
        await asyncio.sleep(0)
        assert [m.content for m in context.history][-1] == "one"

        lm.gate.set()
        replies = await asyncio.gather(first, second)

        assert [r.content for r in replies] == ["first answer", "second answer"]
        assert [m.content for m in context.history[1:]] == ["one", "first answer", "two", "second answer"]

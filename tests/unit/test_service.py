"""
Tests for the service facade.

Every failure surfaces as an OperationError result, never as an exception.
"""

from __future__ import annotations

import random
from pathlib import Path

import pytest

from synthora.conversation.machine import LANGUAGE_MODEL_UNAVAILABLE
from synthora.core import ir
from synthora.core.manifest import GenerationConfig, MLSection, SynthoraConfig
from synthora.ml.templates import get_template
from synthora.service import (
    DeployResult,
    GenerateAppResult,
    MessageResult,
    OperationError,
    SynthoraService,
)
from tests.helpers import FIXED_NOW, MemoryWriter, ScriptedLM, intent

OUTPUT_DIR = Path("/apps")
MODELS_DIR = Path("/models")


@pytest.fixture
def lm() -> ScriptedLM:
    return ScriptedLM()


@pytest.fixture
def service(lm: ScriptedLM, memory_writer: MemoryWriter) -> SynthoraService:
    config = SynthoraConfig(
        generation=GenerationConfig(output_dir=OUTPUT_DIR),
        ml=MLSection(models_dir=MODELS_DIR),
    )
    return SynthoraService(
        lm,
        config=config,
        writer=memory_writer,
        clock=lambda: FIXED_NOW,
        rng=random.Random(11),
    )


class TestConversation:
    async def test_send_message(self, service: SynthoraService, lm: ScriptedLM, crm_fragment) -> None:
        lm.queue(intent("create_app"), {"summary": "Done.", "app": crm_fragment})
        session_id = await service.start_session("u1")

        result = await service.send_message(session_id, "Create a CRM")
        assert isinstance(result, MessageResult)
        assert result.response == "Done."
        assert result.artifacts[0].type == ir.ArtifactType.SPEC

    async def test_unknown_session(self, service: SynthoraService) -> None:
        result = await service.send_message("nope", "hello")
        assert isinstance(result, OperationError)
        assert result.code == "not_found"
        assert result.details == {"kind": "session", "id": "nope"}

    async def test_context_is_a_snapshot(self, service: SynthoraService, lm: ScriptedLM) -> None:
        lm.queue(intent("question"), "An answer.")
        session_id = await service.start_session("u1")
        snapshot = await service.get_context(session_id)
        await service.send_message(session_id, "A question?")

        assert isinstance(snapshot, ir.ConversationContext)
        assert len(snapshot.history) == 1
        latest = await service.get_context(session_id)
        assert len(latest.history) == 3

    async def test_unexpected_client_error(self, service: SynthoraService, lm: ScriptedLM) -> None:
        lm.queue(RuntimeError("connection reset"), RuntimeError("connection reset"))
        session_id = await service.start_session("u1")

        result = await service.send_message(session_id, "hello")
        assert isinstance(result, MessageResult)
        assert result.response == LANGUAGE_MODEL_UNAVAILABLE

    async def test_close_twice(self, service: SynthoraService) -> None:
        session_id = await service.start_session("u1")
        assert await service.close_session(session_id) is None
        result = await service.close_session(session_id)
        assert isinstance(result, OperationError)
        assert result.code == "not_found"


class TestGenerateApp:
    async def test_requires_spec(self, service: SynthoraService, memory_writer: MemoryWriter) -> None:
        session_id = await service.start_session("u1")
        result = await service.generate_app(session_id)
        assert isinstance(result, OperationError)
        assert result.code == "no_active_specification"
        assert memory_writer.written == {}

    async def test_writes_tree(
        self, service: SynthoraService, lm: ScriptedLM, memory_writer: MemoryWriter, crm_fragment
    ) -> None:
        lm.queue(intent("create_app"), {"app": crm_fragment})
        session_id = await service.start_session("u1")
        await service.send_message(session_id, "Create a CRM")

        result = await service.generate_app(session_id)
        assert isinstance(result, GenerateAppResult)
        target = OUTPUT_DIR / result.spec.id
        assert result.path == str(target)
        assert result.files == sorted(memory_writer.written[target])
        assert "backend/app/main.py" in result.files
        assert FIXED_NOW.isoformat() in memory_writer.written[target]["README.md"]

    async def test_failure_writes_nothing(
        self, service: SynthoraService, memory_writer: MemoryWriter, crm_spec
    ) -> None:
        session_id = await service.start_session("u1")
        context = service.store.get(session_id)
        bad = ir.Screen(id="screen-bang", name="!!!", path="/bang")
        context.current_spec = crm_spec.model_copy(update={"screens": [*crm_spec.screens, bad]})
        before = context.current_spec

        result = await service.generate_app(session_id)
        assert isinstance(result, OperationError)
        assert result.code == "generation_failed"
        assert result.details["entityId"] == "screen-bang"
        assert memory_writer.written == {}
        assert context.current_spec is before
        assert context.current_spec.version == crm_spec.version


class TestMachineLearning:
    async def test_create_use_case(self, service: SynthoraService) -> None:
        use_case = await service.create_ml_use_case({"category": "churn_prediction"})
        assert isinstance(use_case, ir.MLUseCase)
        assert use_case.config == get_template(ir.MLCategory.CHURN_PREDICTION)

    async def test_create_use_case_bad_shape(self, service: SynthoraService) -> None:
        result = await service.create_ml_use_case({"config": {"modelType": "quantum"}})
        assert isinstance(result, OperationError)
        assert result.code == "validation_failed"

    async def test_create_use_case_duplicate_id(self, service: SynthoraService) -> None:
        original = await service.create_ml_use_case({"category": "churn_prediction", "id": "uc-1"})
        result = await service.create_ml_use_case({"category": "lead_scoring", "id": "uc-1"})
        assert isinstance(result, OperationError)
        assert result.code == "already_exists"
        assert result.details == {"kind": "use case", "id": "uc-1"}
        assert service.ml_platform.get_use_case("uc-1") is original

    async def test_path_like_use_case_id(self, service: SynthoraService, memory_writer: MemoryWriter) -> None:
        use_case = await service.create_ml_use_case({"category": "churn_prediction", "id": "../escape"})
        assert isinstance(use_case, ir.MLUseCase)
        assert use_case.id != "../escape"

        model = await service.train_model(use_case.id)
        assert isinstance(model, ir.MLModel)
        assert f"{use_case.id}/train.py" in memory_writer.written[MODELS_DIR]

    async def test_train_rejected_path(
        self, service: SynthoraService, memory_writer: MemoryWriter, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        use_case = await service.create_ml_use_case({"category": "churn_prediction"})

        async def reject(base_path, tree) -> None:
            raise ValueError("Refusing to write outside the base directory")

        monkeypatch.setattr(memory_writer, "write_tree", reject)
        result = await service.train_model(use_case.id)
        assert isinstance(result, OperationError)
        assert result.code == "write_failed"
        assert use_case.status == ir.MLStatus.FAILED

    async def test_deploy_write_failure(
        self, service: SynthoraService, memory_writer: MemoryWriter, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        use_case = await service.create_ml_use_case({"category": "churn_prediction"})
        model = await service.train_model(use_case.id)

        async def fail(base_path, tree) -> None:
            raise OSError("disk full")

        monkeypatch.setattr(memory_writer, "write_tree", fail)
        result = await service.deploy_model(model.id, use_case.id)
        assert isinstance(result, OperationError)
        assert result.code == "write_failed"
        assert model.status == ir.ModelStatus.READY
        assert use_case.status == ir.MLStatus.TRAINING
        assert await service.get_deployed_model(use_case.id) is None

    async def test_train_and_deploy(self, service: SynthoraService, memory_writer: MemoryWriter) -> None:
        use_case = await service.create_ml_use_case({"category": "churn_prediction"})
        model = await service.train_model(use_case.id, {"modelType": "random_forest"})
        assert isinstance(model, ir.MLModel)
        assert model.algorithm == ir.ModelType.RANDOM_FOREST
        assert model.metrics.simulated

        result = await service.deploy_model(model.id, use_case.id)
        assert isinstance(result, DeployResult)
        assert result.endpoint == "/ml/predict/churn"
        assert result.script_path == str(MODELS_DIR / use_case.id / "deploy.py")
        assert await service.get_deployed_model(use_case.id) == result.model
        assert [m.id for m in await service.list_models(use_case.id)] == [model.id]

    async def test_train_unknown_use_case(self, service: SynthoraService) -> None:
        result = await service.train_model("nope")
        assert isinstance(result, OperationError)
        assert result.code == "not_found"
        assert result.details["kind"] == "use case"

    async def test_deploy_archived_use_case(self, service: SynthoraService) -> None:
        use_case = await service.create_ml_use_case({"category": "lead_scoring"})
        model = await service.train_model(use_case.id)
        use_case.status = ir.MLStatus.ARCHIVED

        result = await service.deploy_model(model.id, use_case.id)
        assert isinstance(result, OperationError)
        assert result.code == "invalid_transition"

    async def test_deploy_unknown_model(self, service: SynthoraService) -> None:
        use_case = await service.create_ml_use_case({"category": "lead_scoring"})
        result = await service.deploy_model("missing", use_case.id)
        assert isinstance(result, OperationError)
        assert result.code == "not_found"

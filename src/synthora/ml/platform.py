"""
ML platform: use case registry, simulated training and deployment scaffolds.

No model is really trained. Training writes the scaffold for a use case and
registers a model whose metrics are placeholders marked ``simulated``.
"""

from __future__ import annotations

import asyncio
import logging
import random
import uuid
from pathlib import Path
from typing import Any

from ..core import ir
from ..core.errors import AlreadyExists, NotFound
from ..core.fileset import FileWriter, LocalFileWriter
from ..synthesis.normalize import Clock, utc_now
from . import scaffolds
from .templates import build_use_case

logger = logging.getLogger(__name__)

# Baseline accuracy of the simulated metrics per model family.
BASELINE_ACCURACY = {
    ir.ModelType.GRADIENT_BOOSTING: 0.85,
    ir.ModelType.RANDOM_FOREST: 0.83,
    ir.ModelType.NEURAL_NETWORK: 0.87,
}
DEFAULT_BASELINE = 0.81
REGRESSION_METRICS = {"mae", "rmse"}


def simulate_metrics(config: ir.MLConfig, rng: random.Random) -> ir.ModelMetrics:
    base = BASELINE_ACCURACY.get(config.model_type, DEFAULT_BASELINE)
    metrics = ir.ModelMetrics(
        accuracy=round(base + rng.random() * 0.05, 4),
        precision=round(base + rng.random() * 0.05, 4),
        recall=round(base - 0.02 + rng.random() * 0.05, 4),
        f1_score=round(base - 0.01 + rng.random() * 0.05, 4),
        auc=round(base + 0.05 + rng.random() * 0.05, 4),
        simulated=True,
    )
    if REGRESSION_METRICS & set(config.training_config.evaluation_metrics):
        metrics.mae = round(0.05 + rng.random() * 0.1, 4)
        metrics.rmse = round(0.08 + rng.random() * 0.12, 4)
    return metrics


def simulate_feature_importance(features: list[str], rng: random.Random) -> dict[str, float]:
    """Importances that sum to 1, front-loaded towards the first features."""
    importance: dict[str, float] = {}
    remaining = 1.0
    for i, feature in enumerate(features):
        if i == len(features) - 1:
            importance[feature] = round(remaining, 6)
        else:
            value = rng.random() * remaining * 0.4
            importance[feature] = round(value, 6)
            remaining -= importance[feature]
    return importance


class MLPlatform:
    """
    Registry of ML use cases and their (simulated) models.

    Shared by every session of a service instance; registry updates are
    serialized by one lock.

    Args:
        models_dir: Root directory for training and serving scaffolds
        writer: File writer for scaffolds
        rng: Random source for simulated metrics
        clock: Source of timestamps
    """

    def __init__(
        self,
        models_dir: Path = Path("./ml_models"),
        writer: FileWriter | None = None,
        rng: random.Random | None = None,
        clock: Clock = utc_now,
    ):
        self.models_dir = Path(models_dir)
        self.writer = writer or LocalFileWriter()
        self.rng = rng or random.Random()
        self.clock = clock
        self._use_cases: dict[str, ir.MLUseCase] = {}
        self._models: dict[str, list[ir.MLModel]] = {}
        self._lock = asyncio.Lock()

    # Use cases

    def create_use_case(self, partial: dict[str, Any]) -> ir.MLUseCase:
        """
        Complete ``partial`` from its category template and register it.

        Raises:
            pydantic.ValidationError: If the partial config has the wrong shape
            AlreadyExists: If ``partial`` names an id that is already registered
        """
        use_case = build_use_case(partial, now=self.clock())
        self.register_use_case(use_case)
        return use_case

    def register_use_case(self, use_case: ir.MLUseCase) -> None:
        if use_case.id in self._use_cases:
            raise AlreadyExists("use case", use_case.id)
        self._use_cases[use_case.id] = use_case
        logger.info(f"Registered ML use case {use_case.id} ({use_case.category.value})")

    def get_use_case(self, use_case_id: str) -> ir.MLUseCase:
        try:
            return self._use_cases[use_case_id]
        except KeyError:
            raise NotFound("use case", use_case_id) from None

    # Models

    async def train_model(self, use_case_id: str, config: ir.MLConfig | None = None) -> ir.MLModel:
        """
        Train (simulate) a new model version for a use case.

        Writes ``<use case>/train.py`` and ``requirements.txt`` below
        ``models_dir`` and registers a model in ``ready`` state.

        Raises:
            NotFound: If the use case is unknown
            InvalidTransition: If the use case is archived
            OSError, ValueError: If the scaffold cannot be written; the use
                case is left ``failed``
        """
        async with self._lock:
            use_case = self.get_use_case(use_case_id)
            config = config or use_case.config
            use_case.transition_to(ir.MLStatus.TRAINING, self.clock())

            try:
                await self.writer.write_tree(
                    self.models_dir,
                    {
                        f"{use_case_id}/train.py": scaffolds.training_script(use_case_id, config),
                        f"{use_case_id}/requirements.txt": scaffolds.training_requirements(config),
                    },
                )
            except (OSError, ValueError) as e:
                logger.error(f"Writing the training scaffold for use case {use_case_id} failed: {e}")
                use_case.transition_to(ir.MLStatus.FAILED, self.clock())
                raise

            models = self._models.setdefault(use_case_id, [])
            version = len(models) + 1
            model = ir.MLModel(
                id=uuid.uuid4().hex,
                use_case_id=use_case_id,
                version=version,
                algorithm=config.model_type,
                features=list(config.features),
                metrics=simulate_metrics(config, self.rng),
                artifacts=ir.ModelArtifacts(
                    model_path=str(self.models_dir / use_case_id / f"model_v{version}"),
                    feature_importance=simulate_feature_importance(config.features, self.rng),
                    metadata={
                        "trainingDate": self.clock().isoformat(),
                        "trainingConfig": config.training_config.to_wire(),
                    },
                ),
                status=ir.ModelStatus.READY,
            )
            models.append(model)

        logger.info(f"Trained model v{version} for use case {use_case_id} (simulated)")
        return model

    def get_models(self, use_case_id: str) -> list[ir.MLModel]:
        return list(self._models.get(use_case_id, []))

    def get_model(self, use_case_id: str, model_id: str) -> ir.MLModel:
        for model in self._models.get(use_case_id, []):
            if model.id == model_id:
                return model
        raise NotFound("model", model_id)

    def get_deployed_model(self, use_case_id: str) -> ir.MLModel | None:
        for model in self._models.get(use_case_id, []):
            if model.status == ir.ModelStatus.DEPLOYED:
                return model
        return None

    async def deploy_model(self, model_id: str, use_case_id: str) -> ir.MLModel:
        """
        Deploy a trained model, archiving the one it supersedes.

        Writes ``<use case>/deploy.py`` below ``models_dir``.

        Raises:
            NotFound: If the use case or model is unknown
            InvalidTransition: If the use case cannot move to deployed
            OSError, ValueError: If the serving script cannot be written;
                no status changes in that case
        """
        async with self._lock:
            use_case = self.get_use_case(use_case_id)
            model = self.get_model(use_case_id, model_id)
            use_case.check_transition(ir.MLStatus.DEPLOYED)

            await self.writer.write_tree(
                self.models_dir,
                {f"{use_case_id}/deploy.py": scaffolds.deployment_script(model)},
            )

            now = self.clock()
            use_case.transition_to(ir.MLStatus.DEPLOYED, now)
            previous = self.get_deployed_model(use_case_id)
            if previous is not None and previous.id != model.id:
                previous.status = ir.ModelStatus.ARCHIVED
            model.status = ir.ModelStatus.DEPLOYED
            model.deployed_at = now

        logger.info(f"Deployed model {model_id} (v{model.version}) for use case {use_case_id}")
        return model

    def deployment_path(self, use_case_id: str) -> Path:
        return self.models_dir / use_case_id / "deploy.py"

"""
Training and serving scaffolds for ML use cases.

These are the files written next to a (simulated) model: a training script,
its requirements and a small FastAPI serving script. They are never run here.
"""

from __future__ import annotations

import json

from ..core import ir

BASE_TRAINING_REQUIREMENTS = [
    "pandas>=2.0.0",
    "numpy>=1.24.0",
    "scikit-learn>=1.3.0",
    "mlflow>=2.9.0",
]


def training_requirements(config: ir.MLConfig) -> str:
    requirements = list(BASE_TRAINING_REQUIREMENTS)
    if config.model_type == ir.ModelType.NEURAL_NETWORK:
        requirements.extend(["tensorflow>=2.15.0", "keras>=2.15.0"])
    return "\n".join(requirements) + "\n"


def training_script(use_case_id: str, config: ir.MLConfig) -> str:
    """Build train.py for a use case."""
    lines = [
        'import json',
        '',
        'import mlflow',
        'import mlflow.sklearn',
        'import pandas as pd',
        'from sklearn.ensemble import GradientBoostingClassifier, RandomForestClassifier',
        'from sklearn.linear_model import LogisticRegression',
        'from sklearn.metrics import accuracy_score, f1_score, precision_score, recall_score, roc_auc_score',
        'from sklearn.model_selection import train_test_split',
        '',
        f'TARGET = {json.dumps(config.target_variable)}',
        f'FEATURES = {json.dumps(config.features)}',
        f'MODEL_TYPE = {json.dumps(config.model_type.value)}',
        f'TRAIN_TEST_SPLIT = {config.training_config.train_test_split}',
        f'DATA_SOURCE = {json.dumps(config.training_config.data_source)}',
        '',
        '',
        'def load_data():',
        '    """Load training data from the configured data source."""',
        '    print(f"Loading data from: {DATA_SOURCE}")',
        '    return pd.DataFrame(columns=FEATURES + [TARGET])',
        '',
        '',
        'def build_model(model_type):',
        '    if model_type == "gradient_boosting":',
        '        return GradientBoostingClassifier(n_estimators=100, random_state=42)',
        '    if model_type == "logistic_regression":',
        '        return LogisticRegression(random_state=42)',
        '    return RandomForestClassifier(n_estimators=100, random_state=42)',
        '',
        '',
        'def evaluate(model, X_test, y_test):',
        '    y_pred = model.predict(X_test)',
        '    metrics = {',
        '        "accuracy": accuracy_score(y_test, y_pred),',
        '        "precision": precision_score(y_test, y_pred, average="binary"),',
        '        "recall": recall_score(y_test, y_pred, average="binary"),',
        '        "f1_score": f1_score(y_test, y_pred, average="binary"),',
        '    }',
        '    if hasattr(model, "predict_proba"):',
        '        try:',
        '            metrics["auc"] = roc_auc_score(y_test, model.predict_proba(X_test)[:, 1])',
        '        except ValueError:',
        '            pass',
        '    return metrics',
        '',
        '',
        'def main():',
        f'    mlflow.set_experiment({json.dumps(use_case_id)})',
        '    with mlflow.start_run():',
        '        df = load_data()',
        '        X, y = df[FEATURES], df[TARGET]',
        '        X_train, X_test, y_train, y_test = train_test_split(',
        '            X, y, test_size=1 - TRAIN_TEST_SPLIT, random_state=42',
        '        )',
        '        model = build_model(MODEL_TYPE)',
        '        model.fit(X_train, y_train)',
        '        metrics = evaluate(model, X_test, y_test)',
        '        mlflow.log_params({"model_type": MODEL_TYPE, "n_features": len(FEATURES)})',
        '        mlflow.log_metrics(metrics)',
        '        if hasattr(model, "feature_importances_"):',
        '            mlflow.log_dict(dict(zip(FEATURES, model.feature_importances_.tolist())), "feature_importance.json")',
        '        mlflow.sklearn.log_model(model, "model")',
        '        print(json.dumps(metrics, indent=2))',
        '',
        '',
        'if __name__ == "__main__":',
        '    main()',
        '',
    ]
    return '\n'.join(lines)


def deployment_script(model: ir.MLModel, port: int = 8001) -> str:
    """Build deploy.py serving one trained model."""
    metrics = model.metrics.model_dump(by_alias=True, mode="json", exclude_none=True)
    lines = [
        'from typing import Any',
        '',
        'import mlflow.sklearn',
        'import numpy as np',
        'import uvicorn',
        'from fastapi import FastAPI, HTTPException',
        'from pydantic import BaseModel',
        '',
        f'MODEL_ID = {json.dumps(model.id)}',
        f'MODEL_VERSION = {model.version}',
        f'FEATURES = {json.dumps(model.features)}',
        '',
        f'model = mlflow.sklearn.load_model({json.dumps(model.artifacts.model_path)})',
        f'app = FastAPI(title="ML Model Serving", version="{model.version}")',
        '',
        '',
        'class PredictionRequest(BaseModel):',
        '    features: dict[str, Any]',
        '',
        '',
        'class PredictionResponse(BaseModel):',
        '    prediction: float',
        '    model_id: str',
        '    model_version: int',
        '    confidence: float | None = None',
        '',
        '',
        '@app.post("/predict", response_model=PredictionResponse)',
        'async def predict(request: PredictionRequest):',
        '    try:',
        '        row = np.array([[request.features.get(f, 0) for f in FEATURES]])',
        '        prediction = model.predict(row)[0]',
        '        confidence = None',
        '        if hasattr(model, "predict_proba"):',
        '            confidence = float(max(model.predict_proba(row)[0]))',
        '    except Exception as e:',
        '        raise HTTPException(status_code=500, detail=str(e))',
        '    return PredictionResponse(',
        '        prediction=float(prediction),',
        '        model_id=MODEL_ID,',
        '        model_version=MODEL_VERSION,',
        '        confidence=confidence,',
        '    )',
        '',
        '',
        '@app.get("/health")',
        'async def health():',
        '    return {"status": "healthy", "model_id": MODEL_ID}',
        '',
        '',
        '@app.get("/info")',
        'async def info():',
        '    return {',
        '        "model_id": MODEL_ID,',
        '        "version": MODEL_VERSION,',
        f'        "algorithm": {json.dumps(model.algorithm.value)},',
        '        "features": FEATURES,',
        f'        "metrics": {metrics!r},',
        '    }',
        '',
        '',
        'if __name__ == "__main__":',
        f'    uvicorn.run(app, host="0.0.0.0", port={port})',
        '',
    ]
    return '\n'.join(lines)

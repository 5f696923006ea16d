"""
Tests for the Synthora CLI.

Only offline commands are exercised; ``chat`` needs a provider key.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from synthora.cli import app
from synthora.stacks import DEFAULT_STACK

runner = CliRunner()


@pytest.fixture
def spec_file(tmp_path: Path, crm_fragment) -> Path:
    path = tmp_path / "crm.json"
    path.write_text(json.dumps(crm_fragment))
    return path


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    for name in ("SYNTHORA_LLM_PROVIDER", "GENERATED_APPS_PATH", "ML_REGISTRY_PATH"):
        monkeypatch.delenv(name, raising=False)


class TestVersion:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "Synthora version" in result.output


class TestValidate:
    def test_valid_spec(self, spec_file: Path) -> None:
        result = runner.invoke(app, ["validate", str(spec_file)])
        assert result.exit_code == 0, result.output
        assert "is valid" in result.output

    def test_broken_reference(self, tmp_path: Path, crm_fragment) -> None:
        crm_fragment["dataModels"][1]["fields"][2]["targetModel"] = "Customer"
        path = tmp_path / "broken.json"
        path.write_text(json.dumps(crm_fragment))

        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 1

    def test_missing_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["validate", str(tmp_path / "absent.json")])
        assert result.exit_code == 1

    def test_not_json(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 1

    def test_wrong_shape(self, tmp_path: Path) -> None:
        path = tmp_path / "shape.json"
        path.write_text(json.dumps({"dataModels": "none"}))
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 1


class TestGenerate:
    def test_writes_tree(self, spec_file: Path, tmp_path: Path) -> None:
        out = tmp_path / "out"
        result = runner.invoke(app, ["generate", str(spec_file), "--output", str(out)])
        assert result.exit_code == 0, result.output
        assert (out / "backend" / "app" / "main.py").exists()
        assert (out / "frontend" / "src" / "pages" / "NewDeal.tsx").exists()
        assert (out / "docker-compose.yml").exists()

    def test_default_output_dir_from_config(self, spec_file: Path, tmp_path: Path) -> None:
        (tmp_path / "synthora.toml").write_text('[generation]\noutput_dir = "apps"\n')
        result = runner.invoke(app, ["generate", str(spec_file)])
        assert result.exit_code == 0, result.output
        generated = list((tmp_path / "apps").iterdir())
        assert len(generated) == 1
        assert (generated[0] / "README.md").exists()

    def test_unknown_stack(self, spec_file: Path, tmp_path: Path) -> None:
        out = tmp_path / "out"
        result = runner.invoke(app, ["generate", str(spec_file), "-o", str(out), "--stack", "cobol"])
        assert result.exit_code == 1
        assert not out.exists()

    def test_invalid_spec_writes_nothing(self, tmp_path: Path, crm_fragment) -> None:
        crm_fragment["screens"][1]["path"] = "/clients"
        path = tmp_path / "dup.json"
        path.write_text(json.dumps(crm_fragment))
        out = tmp_path / "out"

        result = runner.invoke(app, ["generate", str(path), "-o", str(out)])
        assert result.exit_code == 1
        assert not out.exists()


class TestTemplate:
    def test_prints_json(self) -> None:
        result = runner.invoke(app, ["template", "churn_prediction"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["targetVariable"] == "churned"
        assert data["modelType"] == "gradient_boosting"


class TestStacks:
    def test_lists_default(self) -> None:
        result = runner.invoke(app, ["stacks"])
        assert result.exit_code == 0
        assert DEFAULT_STACK in result.output
        assert "(default)" in result.output

"""Synthora version lookup."""

from __future__ import annotations

import tomllib
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as distribution_version
from pathlib import Path

_PYPROJECT = Path(__file__).resolve().parents[2] / "pyproject.toml"


def get_version() -> str:
    """
    Version of the running checkout.

    A source checkout reports the version in its pyproject.toml so editable
    installs never go stale; otherwise the installed distribution's version.
    """
    if _PYPROJECT.is_file():
        with open(_PYPROJECT, "rb") as f:
            project = tomllib.load(f).get("project", {})
        if project.get("name") == "synthora" and "version" in project:
            return str(project["version"])
    try:
        return distribution_version("synthora")
    except PackageNotFoundError:
        return "0.0.0"

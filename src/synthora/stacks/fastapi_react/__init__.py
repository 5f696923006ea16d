"""
FastAPI + React stack.

Generates:
- backend/: FastAPI app with SQLAlchemy models, pydantic schemas, CRUD routers,
  an event tracker and an ML prediction service
- frontend/: Vite + React + Tailwind app with one page per screen
- docker-compose.yml and README.md
"""

from __future__ import annotations

from datetime import datetime

from ...core import ir
from .. import BackendCapabilities
from ..base import Generator, ModularBackend
from .backend import BackendAppGenerator, ModelsGenerator, RoutesGenerator, SchemasGenerator
from .deploy import ComposeGenerator, ReadmeGenerator
from .frontend import FrontendGenerator


class FastAPIReactBackend(ModularBackend):
    def get_generators(self, spec: ir.AppSpecification, generated_at: datetime) -> list[Generator]:
        return [
            ModelsGenerator(spec, generated_at),
            SchemasGenerator(spec, generated_at),
            RoutesGenerator(spec, generated_at),
            BackendAppGenerator(spec, generated_at),
            FrontendGenerator(spec, generated_at),
            ComposeGenerator(spec, generated_at),
            ReadmeGenerator(spec, generated_at),
        ]

    def get_capabilities(self) -> BackendCapabilities:
        return BackendCapabilities(
            name="fastapi_react",
            description="FastAPI + SQLAlchemy backend, React + Vite frontend, docker-compose deployment",
            targets=["fastapi", "react", "docker-compose"],
        )


__all__ = ["FastAPIReactBackend"]

"""Shared pytest fixtures for Synthora tests."""

from __future__ import annotations

import copy
from typing import Any

import pytest

from synthora.core import ir
from synthora.synthesis.normalize import new_specification
from tests.helpers import FIXED_NOW, MemoryWriter

CRM_FRAGMENT: dict[str, Any] = {
    "name": "CRM",
    "description": "Track clients and deals",
    "dataModels": [
        {
            "name": "Client",
            "fields": [
                {"name": "name", "type": "string", "required": True},
                {"name": "email", "type": "email", "unique": True},
            ],
            "relations": [{"type": "oneToMany", "targetModel": "Deal"}],
        },
        {
            "name": "Deal",
            "fields": [
                {"name": "title", "type": "string", "required": True},
                {"name": "amount", "type": "number"},
                {"name": "client", "type": "reference", "targetModel": "Client"},
            ],
        },
    ],
    "screens": [
        {
            "name": "Clients",
            "path": "/clients",
            "type": "list",
            "components": [
                {"type": "table", "dataSource": {"type": "model", "source": "Client"}},
            ],
        },
        {
            "name": "New Deal",
            "path": "/deals/new",
            "type": "form",
            "components": [
                {"type": "form", "dataSource": {"type": "model", "source": "Deal"}},
            ],
        },
    ],
    "workflows": [
        {
            "name": "Welcome Client",
            "trigger": {"type": "event", "model": "Client"},
            "steps": [{"type": "action", "config": {"action": "send_email"}}],
        }
    ],
    "permissions": [{"resource": "Client", "action": "read", "roles": ["sales"]}],
}


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def crm_fragment() -> dict[str, Any]:
    """Raw create_app extraction for a two-model CRM (fresh copy per test)."""
    return copy.deepcopy(CRM_FRAGMENT)


@pytest.fixture
def crm_spec(crm_fragment: dict[str, Any]) -> ir.AppSpecification:
    """The CRM fragment as an accepted version 0.1.0 specification."""
    fragment = ir.AppSpecification.model_validate(crm_fragment)
    return new_specification(fragment, FIXED_NOW, app_id="app-crm")


@pytest.fixture
def memory_writer() -> MemoryWriter:
    return MemoryWriter()

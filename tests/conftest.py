"""
tests/conftest.py
Shared fixtures for the dtogen test suite.

No external mocking libraries are used; real file I/O is performed inside
temporary directories managed by pytest's tmp_path fixtures, and the
generation assistant is replaced by plain callables.
"""

from __future__ import annotations

import copy
import json
import pathlib
from typing import Any, Dict

import pytest
import yaml

from dtogen.models import DTOSchema
from dtogen.utils import CounterIdFactory


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

ROOT_DIR: pathlib.Path = pathlib.Path(__file__).resolve().parent.parent
SCHEMA_EXAMPLE_PATH: pathlib.Path = ROOT_DIR / "schema_example.yaml"


# ---------------------------------------------------------------------------
# Raw schema data fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def raw_schema_dict() -> Dict[str, Any]:
    """Load the reference schema_example.yaml once per session."""
    assert SCHEMA_EXAMPLE_PATH.exists(), (
        f"Reference schema not found at {SCHEMA_EXAMPLE_PATH}. "
        "Make sure schema_example.yaml is in the project root."
    )
    with open(SCHEMA_EXAMPLE_PATH, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    assert isinstance(data, dict), "Top-level YAML must be a mapping."
    return data


@pytest.fixture()
def schema_dict(raw_schema_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Return a deep copy so each test can mutate freely."""
    return copy.deepcopy(raw_schema_dict)


@pytest.fixture()
def order_schema(schema_dict: Dict[str, Any]) -> DTOSchema:
    return DTOSchema.model_validate(schema_dict)


@pytest.fixture()
def schema_yaml_path(schema_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """Write the schema dict to a temporary YAML file and return its path."""
    path = tmp_path / "order.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(schema_dict, fh, default_flow_style=False, allow_unicode=True)
    return path


@pytest.fixture()
def schema_json_path(schema_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path / "order.json"
    path.write_text(json.dumps(schema_dict, indent=2), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Small hand-built schemas
# ---------------------------------------------------------------------------


@pytest.fixture()
def user_schema_dict() -> Dict[str, Any]:
    """Email + status schema (the canonical two-field example)."""
    return {
        "name": "User",
        "fields": [
            {"id": "u1", "name": "email", "type": "string", "required": True, "unique": True},
            {
                "id": "u2",
                "name": "status",
                "type": "enum",
                "enum": [{"key": "ACTIVE", "value": "active"}],
            },
        ],
    }


@pytest.fixture()
def user_schema(user_schema_dict: Dict[str, Any]) -> DTOSchema:
    return DTOSchema.model_validate(user_schema_dict)


@pytest.fixture()
def invalid_schema_dict() -> Dict[str, Any]:
    """Schema with a duplicated id (a validation error)."""
    return {
        "name": "Broken",
        "fields": [
            {"id": "x1", "name": "a", "type": "string"},
            {"id": "x1", "name": "b", "type": "number"},
        ],
    }


@pytest.fixture()
def invalid_schema_yaml_path(
    invalid_schema_dict: Dict[str, Any], tmp_path: pathlib.Path
) -> pathlib.Path:
    path = tmp_path / "broken.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(invalid_schema_dict, fh, default_flow_style=False)
    return path


# ---------------------------------------------------------------------------
# Misc
# ---------------------------------------------------------------------------


@pytest.fixture()
def ids() -> CounterIdFactory:
    """Deterministic id factory: 'n1', 'n2', ..."""
    return CounterIdFactory("n")


@pytest.fixture()
def output_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    out = tmp_path / "generated"
    out.mkdir()
    return out

"""
The response bodies the handler emits must satisfy schemas/score-response.schema.json.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from jsonschema import Draft202012Validator

from handler import INTERNAL_ERROR_BODY, INVALID_ADDRESS_BODY
from validate_schema import json_pointer, response_errors

ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture(scope="module")
def schema():
    return json.loads((ROOT / "schemas" / "score-response.schema.json").read_text(encoding="utf-8"))


def test_schemas_are_valid_draft_2020_12(schema):
    Draft202012Validator.check_schema(schema)
    networks = json.loads((ROOT / "schemas" / "networks.schema.json").read_text(encoding="utf-8"))
    Draft202012Validator.check_schema(networks)


@pytest.mark.parametrize("body", [{"score": 0}, {"score": 5}, INVALID_ADDRESS_BODY, INTERNAL_ERROR_BODY])
def test_handler_bodies_match(schema, body):
    assert response_errors(schema, body) == []


@pytest.mark.parametrize("body", [{"score": -1}, {"score": 1.5}, {"score": "1"}, {}, {"score": 1, "error": "x"}])
def test_bad_bodies_rejected(schema, body):
    assert response_errors(schema, body)


def test_sample_response_is_valid(schema):
    sample = json.loads((ROOT / "examples" / "sample-response.json").read_text(encoding="utf-8"))
    assert response_errors(schema, sample) == []


def test_json_pointer():
    assert json_pointer([]) == "$"
    assert json_pointer(["a", 0, "b"]) == "$.a[0].b"

"""
tests/test_assistant.py
Unit tests for dtogen.assistant (response parsing and merge/backfill).

The remote assistant is replaced by plain callables returning canned text.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List

import pytest

from dtogen.assistant import (
    AssistantError,
    SchemaAssistant,
    build_generate_prompt,
    build_improve_prompt,
    extract_json_object,
    merge_generated,
    merge_improved,
    merge_validations,
)
from dtogen.models import DTOSchema
from dtogen.tree import find_field, iter_fields
from dtogen.utils import CounterIdFactory


# ===========================================================================
# extract_json_object
# ===========================================================================


class TestExtractJsonObject:
    def test_plain_object(self) -> None:
        assert extract_json_object('{"name": "A"}') == {"name": "A"}

    def test_object_inside_prose_and_fences(self) -> None:
        text = 'Here you go:\n```json\n{"name": "A", "fields": []}\n```\nEnjoy!'
        assert extract_json_object(text) == {"name": "A", "fields": []}

    def test_span_is_first_to_last_brace(self) -> None:
        text = 'x {"a": {"b": 1}} y'
        assert extract_json_object(text) == {"a": {"b": 1}}

    @pytest.mark.parametrize(
        "text",
        [
            "no json here",
            "} reversed {",
            '{"a": 1} and {"b": 2}',
            "{not json}",
        ],
    )
    def test_rejects(self, text: str) -> None:
        with pytest.raises(ValueError):
            extract_json_object(text)


# ===========================================================================
# Merge functions
# ===========================================================================


def _existing() -> DTOSchema:
    return DTOSchema.model_validate(
        {
            "name": "Post",
            "fields": [
                {"id": "p1", "name": "title", "type": "string", "description": "Headline", "isExpanded": False},
                {
                    "id": "p2",
                    "name": "author",
                    "type": "object",
                    "isExpanded": True,
                    "nestedFields": [{"id": "p3", "name": "handle", "type": "string"}],
                },
            ],
        }
    )


class TestMergeGenerated:
    def test_backfills_missing_ids_recursively(self) -> None:
        data = {
            "name": "Post",
            "fields": [
                {"name": "title", "type": "string"},
                {"id": "keep", "name": "meta", "type": "object", "nestedFields": [{"name": "views", "type": "number"}]},
            ],
        }
        schema = merge_generated(data, CounterIdFactory("g"))
        assert [f.id for f in iter_fields(schema)] == ["g1", "keep", "g2"]
        assert all(f.is_expanded is True for f in iter_fields(schema))

    def test_empty_nested_list_is_kept(self) -> None:
        schema = merge_generated({"fields": [{"name": "meta", "type": "object", "nestedFields": []}]}, CounterIdFactory())
        assert schema.fields[0].nested_fields == []
        assert schema.fields[0].nested_shape == []

    def test_absent_nested_list_stays_absent(self) -> None:
        schema = merge_generated({"fields": [{"name": "x"}]}, CounterIdFactory())
        assert schema.fields[0].nested_fields is None

    def test_shape_mismatch_raises_value_error(self) -> None:
        with pytest.raises(ValueError):
            merge_generated({"fields": [{"name": "x", "type": "uuid"}]})

    def test_missing_fields_tolerated(self) -> None:
        schema = merge_generated({"name": "Bare"})
        assert schema.name == "Bare"
        assert schema.fields == []


class TestMergeImproved:
    def test_reuses_ids_and_expansion_by_name(self) -> None:
        data = {
            "name": "Post",
            "fields": [
                {"name": "title", "type": "string", "required": True},
                {"name": "slug", "type": "string"},
                {"name": "author", "type": "object", "nestedFields": [{"name": "handle"}, {"name": "avatar"}]},
            ],
        }
        schema = merge_improved(data, _existing(), CounterIdFactory("i"))
        title = schema.fields[0]
        assert (title.id, title.is_expanded, title.required) == ("p1", False, True)
        # The response content wins; unspecified attributes are not carried over.
        assert title.description is None
        assert schema.fields[1].id == "i1"
        author = schema.fields[2]
        assert author.id == "p2"
        assert [f.id for f in author.nested_fields] == ["p3", "i2"]

    def test_dropped_fields_disappear(self) -> None:
        schema = merge_improved({"fields": [{"name": "title"}]}, _existing(), CounterIdFactory())
        assert [f.name for f in schema.fields] == ["title"]

    def test_empty_nested_list_replaces_children(self) -> None:
        data = {"fields": [{"name": "author", "type": "object", "nestedFields": []}]}
        schema = merge_improved(data, _existing(), CounterIdFactory())
        assert schema.fields[0].id == "p2"
        assert schema.fields[0].nested_fields == []


class TestMergeValidations:
    def test_overlays_existing_attributes(self) -> None:
        data = {
            "fields": [
                {"name": "title", "validation": [{"type": "maxLength", "value": 120}]},
                {"name": "author"},
            ]
        }
        schema = merge_validations(data, _existing(), CounterIdFactory("v"))
        title = find_field(schema, "p1")
        assert title is not None
        assert title.description == "Headline"
        assert title.is_expanded is False
        assert [r.value for r in title.validation] == [120]

    def test_inherits_nested_fields_when_absent(self) -> None:
        schema = merge_validations({"fields": [{"name": "author"}]}, _existing(), CounterIdFactory())
        handle = find_field(schema, "p3")
        assert handle is not None and handle.name == "handle"

    def test_empty_nested_list_clears_children(self) -> None:
        data = {"fields": [{"name": "author", "type": "object", "nestedFields": []}]}
        schema = merge_validations(data, _existing(), CounterIdFactory())
        assert schema.fields[0].nested_fields == []
        assert find_field(schema, "p3") is None

    def test_schema_level_keys_overlay(self) -> None:
        current = _existing().model_copy(update={"virtuals": ["url"]})
        schema = merge_validations({"name": "Article", "fields": []}, current, CounterIdFactory())
        assert schema.name == "Article"
        assert schema.virtuals == ["url"]


# ===========================================================================
# SchemaAssistant
# ===========================================================================


class _Recorder:
    def __init__(self, reply: Any) -> None:
        self.reply = reply
        self.prompts: List[str] = []

    def __call__(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


class TestSchemaAssistant:
    def test_generate(self) -> None:
        payload: Dict[str, Any] = {"name": "Tag", "fields": [{"name": "label", "type": "string"}]}
        complete = _Recorder(f"Sure!\n{json.dumps(payload)}")
        assistant = SchemaAssistant(complete, id_factory=CounterIdFactory("a"))
        schema = assistant.generate("simple tags")
        assert schema.fields[0].id == "a1"
        assert complete.prompts[0].endswith("Generate a DTO schema for: simple tags")

    def test_improve_sends_schema_snapshot(self) -> None:
        complete = _Recorder(json.dumps({"name": "Post", "fields": [{"name": "title"}]}))
        SchemaAssistant(complete).improve(_existing())
        assert '"nestedFields"' in complete.prompts[0]
        assert complete.prompts[0] == build_improve_prompt(_existing())

    def test_add_validations(self) -> None:
        complete = _Recorder('{"fields": [{"name": "title", "required": true}]}')
        schema = SchemaAssistant(complete).add_validations(_existing())
        assert find_field(schema, "p1").required is True

    @pytest.mark.parametrize(
        "reply, operation",
        [
            ("I cannot help with that.", "generate"),
            (RuntimeError("connection reset"), "generate"),
            ('{"fields": [{"name": "x", "type": "uuid"}]}', "generate"),
        ],
    )
    def test_generate_failures(self, reply: Any, operation: str) -> None:
        assistant = SchemaAssistant(_Recorder(reply))
        with pytest.raises(AssistantError) as excinfo:
            assistant.generate("anything")
        assert excinfo.value.operation == operation
        assert str(excinfo.value) == "Failed to generate schema. Please try again."
        assert excinfo.value.__cause__ is not None

    def test_improve_failure_message(self) -> None:
        with pytest.raises(AssistantError, match="Failed to improve schema"):
            SchemaAssistant(_Recorder("nope")).improve(_existing())

    def test_validate_failure_message(self) -> None:
        with pytest.raises(AssistantError, match="Failed to validate schema"):
            SchemaAssistant(_Recorder("nope")).add_validations(_existing())

    def test_generate_prompt_template(self) -> None:
        prompt = build_generate_prompt("blog")
        assert '"nestedFields": [...]' in prompt
        assert prompt.endswith("blog")

# File: dtogen/assistant.py
"""
DTOGen - Generation Assistant Contract
========================================
Prompt construction, response parsing and the merge/backfill step for the
remote text-generation assistant.

The assistant itself is an external collaborator: this module never opens a
connection.  Callers inject a ``complete(prompt) -> str`` transport into
``SchemaAssistant``; everything else here is pure and testable offline.

Request/response contract:
    - generate:        free-text prompt  → JSON schema
    - improve:         schema snapshot   → JSON schema
    - add validations: schema snapshot   → JSON schema

The response must contain one JSON object; it is taken as the span from the
first ``{`` to the last ``}`` of the text.  Parsed fields are then merged:
fresh ids for ``generate``, name-matched id/expansion reuse for the two
snapshot-based instructions.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from pydantic import ValidationError

from dtogen.models import DTOSchema, SchemaField
from dtogen.utils import IdFactory, random_id

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("dtogen.assistant")

# Caller-supplied transport: prompt in, raw response text out.
CompletionFn = Callable[[str], str]


class AssistantError(RuntimeError):
    """Single generic failure signal for an assistant operation."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(message)
        self.operation: str = operation


# ---------------------------------------------------------------------------
# Prompt templates
# ---------------------------------------------------------------------------

_FIELD_TYPES_HINT: str = (
    "string|number|boolean|Date|ObjectId|array|object|enum|mixed|Buffer|Map|Decimal128"
)

GENERATE_SYSTEM_PROMPT: str = f"""You are an expert TypeScript and MongoDB schema designer. Generate a comprehensive DTO schema based on the user's requirements.

Return a JSON object with the following structure:
{{
  "name": "SchemaName",
  "fields": [
    {{
      "id": "unique_id",
      "name": "fieldName",
      "type": "{_FIELD_TYPES_HINT}",
      "required": true|false,
      "unique": true|false,
      "index": true|false,
      "description": "Field description",
      "default": "default value if any",
      "ref": "Reference model if ObjectId",
      "arrayType": "type if array",
      "nestedFields": [...],
      "enum": [{{"key": "KEY", "value": "value"}}],
      "validation": [{{"type": "min|max|minLength|maxLength", "value": 0}}]
    }}
  ],
  "imports": [],
  "enums": [],
  "indexes": [],
  "options": {{
    "timestamps": true,
    "versionKey": false,
    "strict": true,
    "validateBeforeSave": true,
    "autoIndex": true
  }},
  "hooks": {{"pre": [], "post": []}},
  "virtuals": [],
  "methods": [],
  "statics": []
}}

Guidelines:
- Use appropriate field types for the use case
- Add validation rules
- Include relationships with ObjectId references
- Add indexes for frequently queried fields
- Use descriptive field names and descriptions
- Include nested objects where appropriate
- Add enums for predefined values"""

IMPROVE_SYSTEM_PROMPT: str = """You are an expert TypeScript and MongoDB schema designer. Analyze the provided schema and improve it by:

1. Adding missing fields that would be common for this type of schema
2. Optimizing field types and constraints
3. Adding appropriate validation rules
4. Suggesting indexes for performance
5. Adding documentation and examples
6. Adding relationships where appropriate

Return the improved schema in the same JSON format as provided."""

VALIDATION_SYSTEM_PROMPT: str = """You are an expert in data validation and MongoDB schema design. Analyze the provided schema and add validation rules for each field based on:

1. Field type and purpose
2. Common validation patterns
3. Data integrity requirements
4. Business logic constraints

Add validation rules like min/max values, string length limits and regex patterns.
Return the schema with the validation rules in the same JSON format."""


def _schema_json(schema: DTOSchema) -> str:
    return json.dumps(schema.to_wire(), indent=2)


def build_generate_prompt(prompt: str) -> str:
    return f"{GENERATE_SYSTEM_PROMPT}\n\nGenerate a DTO schema for: {prompt}"


def build_improve_prompt(schema: DTOSchema) -> str:
    return f"{IMPROVE_SYSTEM_PROMPT}\n\nImprove this schema:\n{_schema_json(schema)}"


def build_validation_prompt(schema: DTOSchema) -> str:
    return (
        f"{VALIDATION_SYSTEM_PROMPT}\n\n"
        f"Add validation rules to this schema:\n{_schema_json(schema)}"
    )


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Parse the ``{...}`` span running from the first ``{`` to the last ``}``.

    Raises:
        ValueError: If there is no such span, it is not valid JSON, or it is
                    not an object.
    """
    start: int = text.find("{")
    end: int = text.rfind("}")
    if start == -1 or end < start:
        raise ValueError("No valid JSON found in assistant response.")

    try:
        data: Any = json.loads(text[start : end + 1])
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in assistant response: {exc}") from exc

    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a JSON object in assistant response, got {type(data).__name__}."
        )
    return data


# ---------------------------------------------------------------------------
# Merge / backfill (pure)
# ---------------------------------------------------------------------------


def _raw_fields(data: Mapping[str, Any]) -> List[Dict[str, Any]]:
    fields: Any = data.get("fields") or []
    return [f for f in fields if isinstance(f, dict)]


def _dump_fields(fields: Optional[Sequence[SchemaField]]) -> Optional[List[Dict[str, Any]]]:
    if fields is None:
        return None
    return [f.model_dump(by_alias=True, exclude_none=True) for f in fields]


def _find_by_name(fields: Sequence[SchemaField], name: Any) -> Optional[SchemaField]:
    for field in fields:
        if field.name == name:
            return field
    return None


def backfill_ids(
    raw_fields: Sequence[Mapping[str, Any]],
    id_factory: IdFactory,
) -> List[Dict[str, Any]]:
    """Give every field lacking an id a fresh one; expand everything."""
    result: List[Dict[str, Any]] = []
    for raw in raw_fields:
        entry: Dict[str, Any] = dict(raw)
        entry["id"] = raw.get("id") or id_factory()
        entry["isExpanded"] = True
        nested: Any = raw.get("nestedFields")
        entry["nestedFields"] = backfill_ids(nested, id_factory) if isinstance(nested, list) else None
        result.append(entry)
    return result


def preserve_ids(
    raw_fields: Sequence[Mapping[str, Any]],
    existing: Sequence[SchemaField],
    id_factory: IdFactory,
) -> List[Dict[str, Any]]:
    """
    Match incoming fields to *existing* ones by name, reusing identity.

    The incoming field's content wins; only ``id`` and ``isExpanded`` are
    taken from the match.  Nested lists are merged against the match's
    nested list.
    """
    result: List[Dict[str, Any]] = []
    for raw in raw_fields:
        match: Optional[SchemaField] = _find_by_name(existing, raw.get("name"))
        entry: Dict[str, Any] = dict(raw)
        entry["id"] = match.id if match and match.id else id_factory()
        expanded: Optional[bool] = match.is_expanded if match else None
        entry["isExpanded"] = True if expanded is None else expanded
        nested: Any = raw.get("nestedFields")
        entry["nestedFields"] = (
            preserve_ids(nested, (match.nested_fields or []) if match else [], id_factory)
            if isinstance(nested, list)
            else None
        )
        result.append(entry)
    return result


def preserve_structure(
    raw_fields: Sequence[Mapping[str, Any]],
    existing: Sequence[SchemaField],
    id_factory: IdFactory,
) -> List[Dict[str, Any]]:
    """
    Overlay incoming fields on their name-matched existing fields.

    Attributes absent from the incoming field keep their existing value,
    and a missing ``nestedFields`` inherits the existing children.
    """
    result: List[Dict[str, Any]] = []
    for raw in raw_fields:
        match: Optional[SchemaField] = _find_by_name(existing, raw.get("name"))
        entry: Dict[str, Any] = (
            match.model_dump(by_alias=True, exclude_none=True) if match else {}
        )
        entry.update(raw)
        entry["id"] = match.id if match and match.id else id_factory()
        expanded: Optional[bool] = match.is_expanded if match else None
        entry["isExpanded"] = True if expanded is None else expanded
        nested: Any = raw.get("nestedFields")
        if isinstance(nested, list):
            entry["nestedFields"] = preserve_structure(
                nested, (match.nested_fields or []) if match else [], id_factory
            )
        else:
            entry["nestedFields"] = _dump_fields(match.nested_fields) if match else None
        result.append(entry)
    return result


def _validate_schema(data: Mapping[str, Any]) -> DTOSchema:
    try:
        return DTOSchema.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Assistant response does not match the schema shape: {exc}") from exc


def merge_generated(
    data: Mapping[str, Any],
    id_factory: Optional[IdFactory] = None,
) -> DTOSchema:
    """Build a schema from a ``generate`` response."""
    make_id: IdFactory = id_factory or random_id
    merged: Dict[str, Any] = dict(data)
    merged["fields"] = backfill_ids(_raw_fields(data), make_id)
    return _validate_schema(merged)


def merge_improved(
    data: Mapping[str, Any],
    current: DTOSchema,
    id_factory: Optional[IdFactory] = None,
) -> DTOSchema:
    """Build a schema from an ``improve`` response, keeping field identity."""
    make_id: IdFactory = id_factory or random_id
    merged: Dict[str, Any] = dict(data)
    merged["fields"] = preserve_ids(_raw_fields(data), current.fields, make_id)
    return _validate_schema(merged)


def merge_validations(
    data: Mapping[str, Any],
    current: DTOSchema,
    id_factory: Optional[IdFactory] = None,
) -> DTOSchema:
    """
    Build a schema from an ``add validations`` response.

    Schema-level keys overlay the current schema; fields overlay their
    name-matched counterparts.
    """
    make_id: IdFactory = id_factory or random_id
    merged: Dict[str, Any] = current.to_wire()
    merged.update(data)
    merged["fields"] = preserve_structure(_raw_fields(data), current.fields, make_id)
    return _validate_schema(merged)


# ---------------------------------------------------------------------------
# Service wrapper
# ---------------------------------------------------------------------------


class SchemaAssistant:
    """
    Request/response wrapper around a caller-supplied completion function.

    Every failure (transport error, missing JSON, shape mismatch) surfaces
    as one ``AssistantError`` naming the failed operation; no retries.

    Usage::

        assistant = SchemaAssistant(complete=my_llm_client.complete)
        schema = assistant.generate("blog post with tags and comments")
    """

    def __init__(
        self,
        complete: CompletionFn,
        *,
        id_factory: Optional[IdFactory] = None,
    ) -> None:
        self._complete: CompletionFn = complete
        self._id_factory: IdFactory = id_factory or random_id

    def _ask(self, operation: str, prompt: str) -> Dict[str, Any]:
        try:
            text: str = self._complete(prompt)
            return extract_json_object(text)
        except Exception as exc:
            logger.error("Assistant %s failed: %s", operation, exc)
            raise AssistantError(
                operation, f"Failed to {operation} schema. Please try again."
            ) from exc

    def generate(self, prompt: str) -> DTOSchema:
        data: Dict[str, Any] = self._ask("generate", build_generate_prompt(prompt))
        try:
            return merge_generated(data, self._id_factory)
        except ValueError as exc:
            raise AssistantError("generate", "Failed to generate schema. Please try again.") from exc

    def improve(self, schema: DTOSchema) -> DTOSchema:
        data: Dict[str, Any] = self._ask("improve", build_improve_prompt(schema))
        try:
            return merge_improved(data, schema, self._id_factory)
        except ValueError as exc:
            raise AssistantError("improve", "Failed to improve schema. Please try again.") from exc

    def add_validations(self, schema: DTOSchema) -> DTOSchema:
        data: Dict[str, Any] = self._ask("validate", build_validation_prompt(schema))
        try:
            return merge_validations(data, schema, self._id_factory)
        except ValueError as exc:
            raise AssistantError("validate", "Failed to validate schema. Please try again.") from exc


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "AssistantError",
    "CompletionFn",
    "SchemaAssistant",
    "build_generate_prompt",
    "build_improve_prompt",
    "build_validation_prompt",
    "extract_json_object",
    "backfill_ids",
    "preserve_ids",
    "preserve_structure",
    "merge_generated",
    "merge_improved",
    "merge_validations",
]

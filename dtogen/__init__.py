# File: dtogen/__init__.py
"""
DTOGen — TypeScript DTO & Mongoose Schema Generator
=====================================================

Turns a document schema (a recursive tree of field definitions) into two
source-text artifacts: a TypeScript type-definition file and a Mongoose
schema-declaration file.

Architecture overview::

    ┌──────────────┐     ┌───────────────┐     ┌──────────────────┐
    │  CLI / Entry │────▶│  DTOGenerator  │────▶│ TemplateGenerator│
    │   (cli.py)   │     │ (generator.py) │     │  (templates.py)  │
    └──────────────┘     └───────┬───────┘     └──────────────────┘
                                 │
              ┌──────────────┬───┴────────┬────────────┐
              ▼              ▼            ▼            ▼
        ┌──────────┐   ┌──────────┐ ┌───────────┐ ┌───────────┐
        │validators│   │  models  │ │ exporters │ │   tree    │
        └──────────┘   └──────────┘ └───────────┘ └───────────┘

    assistant.py merges responses of a remote generation assistant into
    the same models.

Usage::

    from dtogen import DTOSchema, generate_dto, generate_mongoose_schema
    schema = DTOSchema.model_validate({"name": "User", "fields": [...]})
    print(generate_dto(schema))

    # From the command line
    python -m dtogen --schema user.yaml --output ./src
"""

from __future__ import annotations

__version__: str = "1.0.0"
__author__: str = "DTOGen Team"
__license__: str = "MIT"

from dtogen.models import (
    CURRENT_TIME_DEFAULT,
    DTOSchema,
    EnumDeclaration,
    EnumValue,
    FieldType,
    GenerationConfig,
    IndexDefinition,
    IndexType,
    SchemaField,
    SchemaHooks,
    SchemaOptions,
    ValidationRule,
    ValidationRuleType,
)
from dtogen.tree import (
    add_field,
    create_field,
    find_field,
    find_path,
    iter_fields,
    move_field,
    remove_field,
    update_field,
)
from dtogen.utils import CounterIdFactory, Timer, random_id
from dtogen.templates import TemplateGenerator, generate_dto, generate_mongoose_schema
from dtogen.validators import ValidationResult, validate_full
from dtogen.assistant import AssistantError, SchemaAssistant
from dtogen.exporters import ExportManifest, ExportResult, ProjectExporter
from dtogen.generator import DTOGenerator, GenerationReport

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    # Version info
    "__version__",
    "__author__",
    "__license__",
    # Core orchestrator
    "DTOGenerator",
    "GenerationReport",
    # Models
    "CURRENT_TIME_DEFAULT",
    "DTOSchema",
    "EnumDeclaration",
    "EnumValue",
    "FieldType",
    "GenerationConfig",
    "IndexDefinition",
    "IndexType",
    "SchemaField",
    "SchemaHooks",
    "SchemaOptions",
    "ValidationRule",
    "ValidationRuleType",
    # Tree editing
    "add_field",
    "create_field",
    "find_field",
    "find_path",
    "iter_fields",
    "move_field",
    "remove_field",
    "update_field",
    # Code generation
    "TemplateGenerator",
    "generate_dto",
    "generate_mongoose_schema",
    # Validation
    "validate_full",
    "ValidationResult",
    # Assistant
    "AssistantError",
    "SchemaAssistant",
    # Exporters
    "ProjectExporter",
    "ExportManifest",
    "ExportResult",
    # Utilities
    "CounterIdFactory",
    "Timer",
    "random_id",
]

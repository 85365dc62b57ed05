# File: dtogen/generator.py
"""
DTOGen - Generation Pipeline (Orchestrator)
=============================================

Connects every phase together:

    Schema Input → Validation → Code Generation → File Export

Workflow::

    1. Load a schema from a JSON/YAML file (or accept an in-memory DTOSchema).
    2. Parse into ``DTOSchema`` + ``GenerationConfig`` (models.py).
    3. Run the semantic checks (validators.py).
    4. Render the type-definition and schema-declaration files (templates.py).
    5. Hand off to ``ProjectExporter`` (exporters.py), unless no output
       directory was given.
    6. Return a ``GenerationReport`` with metrics and status.

Error handling strategy:
    - Input errors (missing file, bad JSON/YAML, wrong shape) end the run and
      are recorded, never raised.
    - Validation errors abort in strict mode only; generation itself
      tolerates every shape gap.
    - Export errors are recorded in the report.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from pydantic import ValidationError as PydanticValidationError

from dtogen.exporters import ExportManifest, ExportResult, ProjectExporter
from dtogen.models import DTOSchema, GenerationConfig
from dtogen.templates import TemplateGenerator
from dtogen.utils import Timer, count_lines
from dtogen.validators import ValidationResult, validate_full

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("dtogen.generator")

_CONFIG_KEYS: Tuple[str, ...] = ("config", "generation_config")


# ---------------------------------------------------------------------------
# Generation report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class GenerationStepMetric:
    """Timing and outcome for a single pipeline step."""

    step_name: str = ""
    success: bool = True
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """Report produced by ``DTOGenerator.generate()``."""

    success: bool = False
    schema_name: str = ""
    output_directory: str = ""

    # Metrics
    total_fields: int = 0
    total_files: int = 0
    total_bytes: int = 0
    total_lines: int = 0
    total_elapsed_seconds: float = 0.0
    validation_passed: bool = True

    # Sub-reports
    step_metrics: List[GenerationStepMetric] = field(default_factory=list)
    input_errors: List[str] = field(default_factory=list)
    validation_errors: List[str] = field(default_factory=list)
    validation_warnings: List[str] = field(default_factory=list)
    generation_errors: List[str] = field(default_factory=list)
    export_errors: List[str] = field(default_factory=list)

    # Generated content, keyed by relative path
    files: Dict[str, str] = field(default_factory=dict)
    manifest: Optional[ExportManifest] = None

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        status: str = "✅ SUCCESS" if self.success else "❌ FAILED"
        lines.append("=" * 60)
        lines.append("  DTOGen — Generation Report")
        lines.append("=" * 60)
        lines.append(f"  Status:           {status}")
        lines.append(f"  Schema:           {self.schema_name}")
        lines.append(f"  Output:           {self.output_directory or '(not written)'}")
        lines.append(f"  Fields:           {self.total_fields}")
        lines.append(f"  Files generated:  {self.total_files}")
        lines.append(f"  Total lines:      {self.total_lines:,}")
        lines.append(f"  Total bytes:      {self.total_bytes:,}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")
        lines.append("─" * 60)

        if self.step_metrics:
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<28s} "
                    f"{step.elapsed_seconds:>7.3f}s  "
                    f"{step.detail}"
                )

        sections: Tuple[Tuple[str, str, List[str]], ...] = (
            ("Input Errors", "✗", self.input_errors),
            ("Validation Errors", "✗", self.validation_errors),
            ("Validation Warnings", "⚠", self.validation_warnings),
            ("Generation Errors", "✗", self.generation_errors),
            ("Export Errors", "✗", self.export_errors),
        )
        for title, icon, items in sections:
            if not items:
                continue
            lines.append("─" * 60)
            lines.append(f"  {title} ({len(items)}):")
            for item in items:
                lines.append(f"    {icon} {item}")

        lines.append("=" * 60)
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Schema loader helpers
# ---------------------------------------------------------------------------


def _load_json_file(path: Path) -> Dict[str, Any]:
    """Load and parse a JSON file. Raises ValueError on parse errors."""
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object at top level, got {type(data).__name__}.")
    return data


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load and parse a YAML file. Raises ValueError on parse errors."""
    try:
        data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Expected a YAML mapping at top level, got {type(data).__name__}.")
    return data


def load_schema_file(path: Path) -> Dict[str, Any]:
    """
    Load a schema definition file (JSON or YAML), dispatching on extension.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file can't be parsed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Schema file not found: {path}")
    if not path.is_file():
        raise ValueError(f"Schema path is not a file: {path}")

    suffix: str = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _load_yaml_file(path)
    if suffix == ".json":
        return _load_json_file(path)

    logger.info("Unknown extension '%s' — trying JSON then YAML.", suffix)
    try:
        return _load_json_file(path)
    except ValueError:
        return _load_yaml_file(path)


def parse_raw_schema(raw: Dict[str, Any]) -> Tuple[DTOSchema, GenerationConfig]:
    """
    Parse a raw dictionary (from JSON/YAML) into validated models.

    Two layouts are accepted: the schema itself at top level (the exchange
    format), or a ``schema`` key next to an optional ``config`` key.

    Raises:
        ValueError: If the data does not match the schema shape.
    """
    config_data: Any = {}
    for key in _CONFIG_KEYS:
        if key in raw:
            config_data = raw[key] or {}
            break

    if isinstance(raw.get("schema"), dict):
        schema_data: Dict[str, Any] = raw["schema"]
    else:
        schema_data = {k: v for k, v in raw.items() if k not in _CONFIG_KEYS}

    try:
        schema: DTOSchema = DTOSchema.model_validate(schema_data)
    except PydanticValidationError as exc:
        raise ValueError(f"Schema validation failed: {exc}") from exc

    try:
        config: GenerationConfig = GenerationConfig.model_validate(config_data)
    except PydanticValidationError as exc:
        raise ValueError(f"Config validation failed: {exc}") from exc

    return schema, config


# ---------------------------------------------------------------------------
# DTOGenerator — pipeline orchestrator
# ---------------------------------------------------------------------------


class DTOGenerator:
    """
    Pipeline orchestrator.

    Usage::

        generator = DTOGenerator()

        # From a file
        report = generator.generate_from_file(Path("user.yaml"), Path("./src"))

        # From an in-memory schema, without touching the filesystem
        report = generator.generate(schema)
        print(report.files["dtos/user.dto.ts"])

    The generator is reusable — create once, call generate() many times.
    """

    def __init__(
        self,
        config: Optional[GenerationConfig] = None,
        *,
        strict_validation: bool = True,
        fail_on_warnings: bool = False,
        clean_output: bool = False,
    ) -> None:
        """
        Args:
            config: Naming/layout conventions; file configs override it.
            strict_validation: If True, abort on any validation error.
            fail_on_warnings: If True, treat validation warnings as errors.
            clean_output: If True, wipe the output directory before writing.
        """
        self._config: GenerationConfig = config or GenerationConfig()
        self._strict_validation: bool = strict_validation
        self._fail_on_warnings: bool = fail_on_warnings
        self._clean_output: bool = clean_output

        logger.debug(
            "DTOGenerator initialised: strict=%s, fail_on_warnings=%s, clean=%s.",
            strict_validation,
            fail_on_warnings,
            clean_output,
        )

    # -----------------------------------------------------------------
    # Public: generate from file
    # -----------------------------------------------------------------

    def generate_from_file(
        self,
        schema_path: Path,
        output_dir: Optional[Path] = None,
        *,
        name_override: Optional[str] = None,
    ) -> GenerationReport:
        """Full pipeline: load file → validate → generate → export."""
        report: GenerationReport = GenerationReport()
        if output_dir is not None:
            report.output_directory = str(Path(output_dir).resolve())

        with Timer("load_schema") as t_load:
            try:
                raw_data: Dict[str, Any] = load_schema_file(schema_path)
                schema, config = parse_raw_schema(raw_data)
            except (FileNotFoundError, ValueError) as exc:
                error: Optional[str] = str(exc)
            else:
                error = None

        if error is not None:
            report.input_errors.append(error)
            report.step_metrics.append(
                GenerationStepMetric("Load Schema File", False, t_load.elapsed, error.splitlines()[0])
            )
            logger.error("Failed to load %s: %s", schema_path, error)
            return self._finalise_report(report, t_load.elapsed)

        if name_override:
            schema = schema.model_copy(update={"name": name_override})

        report.step_metrics.append(
            GenerationStepMetric(
                "Load Schema File",
                True,
                t_load.elapsed,
                f"from {schema_path.name}",
            )
        )
        logger.info("Loaded schema '%s' from %s.", schema.name, schema_path)

        # A config in the file wins over the generator's default.
        effective: GenerationConfig = config if any(k in raw_data for k in _CONFIG_KEYS) else self._config
        return self._run_pipeline(schema, effective, output_dir, report)

    # -----------------------------------------------------------------
    # Public: generate from in-memory objects
    # -----------------------------------------------------------------

    def generate(
        self,
        schema: DTOSchema,
        output_dir: Optional[Path] = None,
    ) -> GenerationReport:
        """Pipeline from a parsed schema; no export when *output_dir* is None."""
        report: GenerationReport = GenerationReport()
        if output_dir is not None:
            report.output_directory = str(Path(output_dir).resolve())
        return self._run_pipeline(schema, self._config, output_dir, report)

    # -----------------------------------------------------------------
    # Internal: master pipeline
    # -----------------------------------------------------------------

    def _run_pipeline(
        self,
        schema: DTOSchema,
        config: GenerationConfig,
        output_dir: Optional[Path],
        report: GenerationReport,
    ) -> GenerationReport:
        pipeline_start: float = time.perf_counter()
        report.schema_name = schema.name
        report.total_fields = schema.field_count()

        validation_ok: bool = self._step_validate(schema, report)
        if not validation_ok and self._strict_validation:
            return self._finalise_report(report, time.perf_counter() - pipeline_start)

        report.files = self._step_generate(schema, config, report)

        if report.files and output_dir is not None:
            self._step_export(report.files, config, Path(output_dir), schema, report)

        return self._finalise_report(report, time.perf_counter() - pipeline_start)

    def _step_validate(self, schema: DTOSchema, report: GenerationReport) -> bool:
        """Returns True if validation passed (warnings allowed unless configured)."""
        with Timer("validation") as t:
            result: ValidationResult = validate_full(schema)

        report.validation_errors.extend(str(e) for e in result.errors)
        report.validation_warnings.extend(str(w) for w in result.warnings)

        if result.has_errors:
            detail: str = f"{result.error_count} error(s)"
        elif result.has_warnings:
            detail = f"{result.warning_count} warning(s)"
        else:
            detail = "all checks passed"

        passed: bool = result.is_valid and not (self._fail_on_warnings and result.has_warnings)
        report.validation_passed = passed
        report.step_metrics.append(GenerationStepMetric("Validate Schema", passed, t.elapsed, detail))

        for err in result.errors:
            logger.error("  ✗ %s", err)
        for warn in result.warnings:
            logger.warning("  ⚠ %s", warn)
        return passed

    def _step_generate(
        self,
        schema: DTOSchema,
        config: GenerationConfig,
        report: GenerationReport,
    ) -> Dict[str, str]:
        generated_files: Dict[str, str] = {}

        with Timer("code_generation") as t:
            try:
                generated_files = TemplateGenerator(config).generate_all(schema)
            except (TypeError, ValueError, KeyError) as exc:
                error_msg: str = f"Fatal generation error: {type(exc).__name__}: {exc}"
                report.generation_errors.append(error_msg)
                logger.error(error_msg, exc_info=True)

        report.total_files = len(generated_files)
        report.total_lines = sum(count_lines(c) for c in generated_files.values())
        report.total_bytes = sum(len(c.encode("utf-8")) for c in generated_files.values())

        detail: str = f"{report.total_files} files, ~{report.total_lines:,} lines"
        report.step_metrics.append(
            GenerationStepMetric("Code Generation", not report.generation_errors, t.elapsed, detail)
        )
        logger.info("Code generation complete: %s in %.3fs.", detail, t.elapsed)
        return generated_files

    def _step_export(
        self,
        generated_files: Dict[str, str],
        config: GenerationConfig,
        output_dir: Path,
        schema: DTOSchema,
        report: GenerationReport,
    ) -> None:
        exporter: ProjectExporter = ProjectExporter(
            config=config,
            output_dir=output_dir,
            clean_before_export=self._clean_output,
        )
        export_result: ExportResult = exporter.export(generated_files, schema)

        report.export_errors.extend(export_result.errors)
        report.manifest = export_result.manifest
        report.step_metrics.append(
            GenerationStepMetric(
                "Export to Filesystem",
                export_result.success,
                export_result.elapsed_seconds,
                f"{export_result.manifest.total_files} files, "
                f"{export_result.manifest.total_bytes:,} bytes",
            )
        )

    def _finalise_report(self, report: GenerationReport, total_elapsed: float) -> GenerationReport:
        report.total_elapsed_seconds = total_elapsed
        validation_blocked: bool = not report.validation_passed and self._strict_validation
        report.success = not (
            report.input_errors
            or validation_blocked
            or report.generation_errors
            or report.export_errors
        )
        return report


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "DTOGenerator",
    "GenerationReport",
    "GenerationStepMetric",
    "load_schema_file",
    "parse_raw_schema",
]

logger.debug("dtogen.generator loaded.")

"""
tests/test_generator.py
Integration tests for dtogen.generator, dtogen.exporters and dtogen.cli.

Tests cover:
- Schema file loading (YAML, JSON, unknown extension) and raw parsing
- In-memory generation (no filesystem)
- File export with manifest
- Strict / non-strict validation behaviour
- CLI exit codes and stdout modes
"""

from __future__ import annotations

import json
import logging
import pathlib
from typing import Any, Dict

import pytest
import yaml

from dtogen.cli import (
    EXIT_EXPORT_ERROR,
    EXIT_INPUT_ERROR,
    EXIT_SUCCESS,
    EXIT_VALIDATION_ERROR,
    cli_main,
)
from dtogen.exporters import MANIFEST_FILE_NAME, ProjectExporter
from dtogen.generator import DTOGenerator, load_schema_file, parse_raw_schema
from dtogen.models import DTOSchema, GenerationConfig
from dtogen.utils import sha256_hex

DTO_PATH: str = "dtos/order.dto.ts"
MODEL_PATH: str = "models/order.model.ts"


# ===========================================================================
# Loading
# ===========================================================================


class TestLoadSchemaFile:
    def test_yaml(self, schema_yaml_path: pathlib.Path, schema_dict: Dict[str, Any]) -> None:
        assert load_schema_file(schema_yaml_path) == schema_dict

    def test_json(self, schema_json_path: pathlib.Path, schema_dict: Dict[str, Any]) -> None:
        assert load_schema_file(schema_json_path) == schema_dict

    def test_unknown_extension_falls_back(self, tmp_path: pathlib.Path) -> None:
        as_json = tmp_path / "schema.txt"
        as_json.write_text('{"name": "A"}', encoding="utf-8")
        assert load_schema_file(as_json) == {"name": "A"}

        as_yaml = tmp_path / "schema.def"
        as_yaml.write_text("name: B\nfields: []\n", encoding="utf-8")
        assert load_schema_file(as_yaml) == {"name": "B", "fields": []}

    def test_missing_file(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_schema_file(tmp_path / "nope.yaml")

    def test_directory_rejected(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(ValueError):
            load_schema_file(tmp_path)

    def test_invalid_json(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{oops", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid JSON"):
            load_schema_file(path)

    def test_non_mapping_yaml(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="mapping"):
            load_schema_file(path)


class TestParseRawSchema:
    def test_top_level_schema(self, schema_dict: Dict[str, Any]) -> None:
        schema, config = parse_raw_schema(schema_dict)
        assert schema.name == "Order"
        assert config == GenerationConfig()

    def test_wrapped_schema_with_config(self, schema_dict: Dict[str, Any]) -> None:
        schema, config = parse_raw_schema({"schema": schema_dict, "config": {"indent_size": 4}})
        assert schema.name == "Order"
        assert config.indent_size == 4

    def test_config_key_not_treated_as_schema(self, schema_dict: Dict[str, Any]) -> None:
        schema, config = parse_raw_schema({**schema_dict, "generation_config": {"dto_subdir": "types"}})
        assert config.dto_subdir == "types"
        assert len(schema.fields) == len(schema_dict["fields"])

    def test_bad_field_type(self) -> None:
        with pytest.raises(ValueError, match="Schema validation failed"):
            parse_raw_schema({"name": "X", "fields": [{"id": "a", "type": "uuid"}]})

    def test_bad_config(self, schema_dict: Dict[str, Any]) -> None:
        with pytest.raises(ValueError, match="Config validation failed"):
            parse_raw_schema({**schema_dict, "config": {"unknown_option": True}})


# ===========================================================================
# Pipeline
# ===========================================================================


class TestInMemoryGeneration:
    def test_produces_both_files(self, order_schema: DTOSchema) -> None:
        report = DTOGenerator().generate(order_schema)
        assert report.success, report.summary()
        assert set(report.files) == {DTO_PATH, MODEL_PATH}
        assert report.total_files == 2
        assert report.total_fields == 14
        assert report.manifest is None
        assert report.output_directory == ""
        assert "export interface" not in report.files[DTO_PATH]
        assert "type OrderDto = {" in report.files[DTO_PATH]
        assert "const OrderSchema = new Schema<OrderSchemaDto>(" in report.files[MODEL_PATH]

    def test_step_metrics(self, order_schema: DTOSchema) -> None:
        report = DTOGenerator().generate(order_schema)
        assert [s.step_name for s in report.step_metrics] == ["Validate Schema", "Code Generation"]
        assert all(s.success for s in report.step_metrics)

    def test_custom_config(self, order_schema: DTOSchema) -> None:
        config = GenerationConfig(dto_subdir="types", model_subdir="schemas")
        report = DTOGenerator(config).generate(order_schema)
        assert set(report.files) == {"types/order.dto.ts", "schemas/order.model.ts"}

    def test_summary_lists_errors(self, invalid_schema_dict: Dict[str, Any]) -> None:
        report = DTOGenerator().generate(DTOSchema.model_validate(invalid_schema_dict))
        text = report.summary()
        assert "FAILED" in text
        assert "DUPLICATE_FIELD_ID" in text


class TestValidationModes:
    def test_strict_aborts_before_generation(self, invalid_schema_dict: Dict[str, Any]) -> None:
        report = DTOGenerator().generate(DTOSchema.model_validate(invalid_schema_dict))
        assert not report.success
        assert not report.validation_passed
        assert report.files == {}
        assert report.validation_errors

    def test_non_strict_still_generates(self, invalid_schema_dict: Dict[str, Any]) -> None:
        report = DTOGenerator(strict_validation=False).generate(DTOSchema.model_validate(invalid_schema_dict))
        assert report.success
        assert not report.validation_passed
        assert set(report.files) == {"dtos/broken.dto.ts", "models/broken.model.ts"}

    def test_warnings_pass_by_default(self) -> None:
        schema = DTOSchema.model_validate({"name": "thing", "fields": [{"id": "a", "name": "x"}]})
        report = DTOGenerator().generate(schema)
        assert report.success
        assert report.validation_warnings

    def test_fail_on_warnings(self) -> None:
        schema = DTOSchema.model_validate({"name": "thing", "fields": [{"id": "a", "name": "x"}]})
        report = DTOGenerator(fail_on_warnings=True).generate(schema)
        assert not report.success
        assert not report.validation_passed


class TestGenerateFromFile:
    def test_writes_files_and_manifest(
        self, schema_yaml_path: pathlib.Path, output_dir: pathlib.Path
    ) -> None:
        report = DTOGenerator().generate_from_file(schema_yaml_path, output_dir)
        assert report.success, report.summary()
        assert report.output_directory == str(output_dir.resolve())

        dto_file = output_dir / DTO_PATH
        model_file = output_dir / MODEL_PATH
        assert dto_file.read_text(encoding="utf-8") == report.files[DTO_PATH]
        assert model_file.read_text(encoding="utf-8") == report.files[MODEL_PATH]

        manifest = json.loads((output_dir / MANIFEST_FILE_NAME).read_text(encoding="utf-8"))
        assert manifest["schema_name"] == "Order"
        assert manifest["total_files"] == 2
        by_path = {f["relative_path"]: f for f in manifest["files"]}
        assert set(by_path) == {DTO_PATH, MODEL_PATH}
        assert by_path[DTO_PATH]["sha256"] == sha256_hex(report.files[DTO_PATH])

        assert [s.step_name for s in report.step_metrics][-1] == "Export to Filesystem"

    def test_json_input(self, schema_json_path: pathlib.Path) -> None:
        report = DTOGenerator().generate_from_file(schema_json_path)
        assert report.success
        assert report.manifest is None

    def test_name_override(self, schema_yaml_path: pathlib.Path) -> None:
        report = DTOGenerator().generate_from_file(schema_yaml_path, name_override="Invoice")
        assert report.schema_name == "Invoice"
        assert set(report.files) == {"dtos/invoice.dto.ts", "models/invoice.model.ts"}
        assert "type InvoiceDto = {" in report.files["dtos/invoice.dto.ts"]

    def test_file_config_wins(self, schema_dict: Dict[str, Any], tmp_path: pathlib.Path) -> None:
        path = tmp_path / "wrapped.yaml"
        path.write_text(
            yaml.dump({"schema": schema_dict, "config": {"dto_subdir": "types"}}),
            encoding="utf-8",
        )
        generator = DTOGenerator(GenerationConfig(dto_subdir="ignored"))
        report = generator.generate_from_file(path)
        assert "types/order.dto.ts" in report.files

    def test_missing_file_is_input_error(self, tmp_path: pathlib.Path) -> None:
        report = DTOGenerator().generate_from_file(tmp_path / "missing.yaml")
        assert not report.success
        assert report.input_errors
        assert report.step_metrics[0].success is False

    def test_shape_error_is_input_error(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"fields": [{"type": "uuid"}]}), encoding="utf-8")
        report = DTOGenerator().generate_from_file(path)
        assert not report.success
        assert "Schema validation failed" in report.input_errors[0]


# ===========================================================================
# Exporter
# ===========================================================================


class TestProjectExporter:
    def test_clean_keeps_git(self, output_dir: pathlib.Path) -> None:
        (output_dir / ".git").mkdir()
        (output_dir / ".gitignore").write_text("node_modules\n", encoding="utf-8")
        (output_dir / "stale.ts").write_text("old", encoding="utf-8")

        exporter = ProjectExporter(output_dir=output_dir, clean_before_export=True)
        result = exporter.export({"dtos/a.dto.ts": "type A = {};\n"})

        assert result.success
        assert not (output_dir / "stale.ts").exists()
        assert (output_dir / ".git").is_dir()
        assert (output_dir / ".gitignore").exists()
        assert (output_dir / "dtos" / "a.dto.ts").exists()

    def test_without_manifest(self, output_dir: pathlib.Path) -> None:
        exporter = ProjectExporter(output_dir=output_dir, generate_manifest=False, atomic_writes=False)
        result = exporter.export({"x.ts": "x\n"})
        assert result.success
        assert not (output_dir / MANIFEST_FILE_NAME).exists()
        assert result.manifest.total_files == 1
        assert result.manifest.total_lines == 1

    def test_write_failure_is_reported(self, tmp_path: pathlib.Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        result = ProjectExporter(output_dir=blocker).export({"dtos/a.dto.ts": "x"})
        assert not result.success
        assert result.errors
        assert result.manifest.total_files == 0

    def test_manifest_json_round_trip(self, output_dir: pathlib.Path) -> None:
        result = ProjectExporter(output_dir=output_dir).export({"a.ts": "a\n"})
        text = result.manifest.to_json()
        assert text.endswith("\n")
        assert json.loads(text)["files"][0]["relative_path"] == "a.ts"


# ===========================================================================
# CLI
# ===========================================================================


def _run_cli(*argv: str) -> int:
    with pytest.raises(SystemExit) as excinfo:
        cli_main(list(argv))
    return excinfo.value.code


class TestCli:
    def test_generate_to_directory(
        self, schema_yaml_path: pathlib.Path, output_dir: pathlib.Path
    ) -> None:
        code = _run_cli("-s", str(schema_yaml_path), "-o", str(output_dir))
        assert code == EXIT_SUCCESS
        assert (output_dir / DTO_PATH).exists()
        assert (output_dir / MODEL_PATH).exists()

    def test_print_mode(
        self, schema_yaml_path: pathlib.Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = _run_cli("-s", str(schema_yaml_path), "--print")
        out = capsys.readouterr().out
        assert code == EXIT_SUCCESS
        assert f"// ---- {DTO_PATH} ----" in out
        assert f"// ---- {MODEL_PATH} ----" in out
        assert "export { Order };" in out

    def test_validate_only(
        self, schema_yaml_path: pathlib.Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = _run_cli("-s", str(schema_yaml_path), "--validate-only")
        out = capsys.readouterr().out
        assert code == EXIT_SUCCESS
        assert "Schema Validation Report" in out
        assert "All validations passed" in out

    def test_validate_only_invalid(self, invalid_schema_yaml_path: pathlib.Path) -> None:
        assert _run_cli("-s", str(invalid_schema_yaml_path), "--validate-only") == EXIT_VALIDATION_ERROR

    def test_invalid_schema_fails_generation(
        self, invalid_schema_yaml_path: pathlib.Path, output_dir: pathlib.Path
    ) -> None:
        code = _run_cli("-s", str(invalid_schema_yaml_path), "-o", str(output_dir))
        assert code == EXIT_VALIDATION_ERROR
        assert not (output_dir / "dtos").exists()

    def test_no_strict(
        self, invalid_schema_yaml_path: pathlib.Path, output_dir: pathlib.Path
    ) -> None:
        code = _run_cli("-s", str(invalid_schema_yaml_path), "-o", str(output_dir), "--no-strict")
        assert code == EXIT_SUCCESS
        assert (output_dir / "dtos" / "broken.dto.ts").exists()

    def test_missing_schema_file(self, tmp_path: pathlib.Path) -> None:
        assert _run_cli("-s", str(tmp_path / "nope.yaml"), "--print") == EXIT_INPUT_ERROR

    def test_output_required(self, schema_yaml_path: pathlib.Path) -> None:
        assert _run_cli("-s", str(schema_yaml_path)) == EXIT_INPUT_ERROR

    def test_unparseable_schema(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{oops", encoding="utf-8")
        assert _run_cli("-s", str(path), "--print") == EXIT_INPUT_ERROR
        assert _run_cli("-s", str(path), "--validate-only") == EXIT_INPUT_ERROR

    def test_export_failure(self, schema_yaml_path: pathlib.Path, tmp_path: pathlib.Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("file", encoding="utf-8")
        assert _run_cli("-s", str(schema_yaml_path), "-o", str(blocker)) == EXIT_EXPORT_ERROR

    def test_name_override(
        self, schema_yaml_path: pathlib.Path, output_dir: pathlib.Path
    ) -> None:
        code = _run_cli("-s", str(schema_yaml_path), "-o", str(output_dir), "--name", "Invoice")
        assert code == EXIT_SUCCESS
        assert (output_dir / "models" / "invoice.model.ts").exists()

    def test_export_failure_wins_over_ignored_validation(
        self, invalid_schema_yaml_path: pathlib.Path, tmp_path: pathlib.Path
    ) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("file", encoding="utf-8")
        code = _run_cli("-s", str(invalid_schema_yaml_path), "-o", str(blocker), "--no-strict")
        assert code == EXIT_EXPORT_ERROR

    def test_quiet_only_raises_package_log_level(
        self, schema_yaml_path: pathlib.Path, output_dir: pathlib.Path
    ) -> None:
        assert _run_cli("-s", str(schema_yaml_path), "-o", str(output_dir), "-q") == EXIT_SUCCESS
        package_logger = logging.getLogger("dtogen")
        assert package_logger.level == logging.ERROR
        assert logging.root.manager.disable == logging.NOTSET
        assert logging.getLogger("other").isEnabledFor(logging.WARNING)

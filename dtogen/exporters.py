# File: dtogen/exporters.py
"""
DTOGen - File Exporter
========================

Responsible for:
    1. Optionally cleaning the output directory.
    2. Writing the generated TypeScript files atomically (temp file + rename).
    3. Producing a ``manifest.json`` with per-file sha256 checksums so a
       re-run can be compared byte-for-byte.

Each individual file write is atomic; a failure mid-batch leaves files
already written intact and is reported in the ``ExportResult``.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from dtogen.models import DTOSchema, GenerationConfig
from dtogen.utils import Timer, clean_directory, count_lines, sha256_hex, write_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("dtogen.exporters")

MANIFEST_FILE_NAME: str = "manifest.json"


# ---------------------------------------------------------------------------
# Data classes for export results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Immutable record of a single exported file."""

    relative_path: str
    absolute_path: str
    size_bytes: int
    line_count: int
    sha256: str


@dataclass(frozen=False, slots=True)
class ExportManifest:
    """Manifest of all exported files, serialisable to JSON."""

    schema_name: str = ""
    generator_version: str = ""
    export_timestamp: str = ""
    output_directory: str = ""
    total_files: int = 0
    total_bytes: int = 0
    total_lines: int = 0
    files: List[FileRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema_name": self.schema_name,
            "generator_version": self.generator_version,
            "export_timestamp": self.export_timestamp,
            "output_directory": self.output_directory,
            "total_files": self.total_files,
            "total_bytes": self.total_bytes,
            "total_lines": self.total_lines,
            "files": [
                {
                    "relative_path": f.relative_path,
                    "size_bytes": f.size_bytes,
                    "line_count": f.line_count,
                    "sha256": f.sha256,
                }
                for f in self.files
            ],
        }

    def to_json(self, indent_size: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent_size, ensure_ascii=False) + "\n"


@dataclass(frozen=True, slots=True)
class ExportResult:
    """Final result returned by ``ProjectExporter.export()``."""

    success: bool
    manifest: ExportManifest
    errors: Tuple[str, ...]
    warnings: Tuple[str, ...]
    elapsed_seconds: float


# ---------------------------------------------------------------------------
# ProjectExporter class
# ---------------------------------------------------------------------------


class ProjectExporter:
    """
    Writes generated files under an output root.

    Usage::

        exporter = ProjectExporter(config, output_dir=Path("./src"))
        result = exporter.export(files, schema)
        print(result.manifest.to_json())

    Not thread-safe: use one exporter per output directory.
    """

    def __init__(
        self,
        config: Optional[GenerationConfig] = None,
        output_dir: Path = Path("."),
        *,
        clean_before_export: bool = False,
        atomic_writes: bool = True,
        generate_manifest: bool = True,
    ) -> None:
        self._config: GenerationConfig = config or GenerationConfig()
        self._output_dir: Path = Path(output_dir).resolve()
        self._clean_before_export: bool = clean_before_export
        self._atomic_writes: bool = atomic_writes
        self._generate_manifest: bool = generate_manifest

        self._errors: List[str] = []
        self._warnings: List[str] = []
        self._file_records: List[FileRecord] = []

        logger.debug(
            "ProjectExporter initialised: output_dir=%s, atomic=%s.",
            self._output_dir,
            self._atomic_writes,
        )

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def export(
        self,
        generated_files: Dict[str, str],
        schema: Optional[DTOSchema] = None,
    ) -> ExportResult:
        """
        Write every ``relative_path → content`` entry under the output root.

        Returns:
            ExportResult with success flag, manifest and error details.
        """
        self._errors = []
        self._warnings = []
        self._file_records = []
        schema_name: str = schema.name if schema is not None else ""

        with Timer("export") as timer:
            try:
                if self._clean_before_export:
                    logger.info("Cleaning output directory: %s", self._output_dir)
                    clean_directory(self._output_dir)
                self._write_generated_files(generated_files)
                if self._generate_manifest:
                    self._write_manifest_file(schema_name)
            except OSError as exc:
                error_msg: str = f"Fatal export error: {type(exc).__name__}: {exc}"
                self._errors.append(error_msg)
                logger.error(error_msg, exc_info=True)

        manifest: ExportManifest = self._build_manifest(schema_name)
        success: bool = not self._errors

        if success:
            logger.info(
                "Export completed successfully: %d files, %d bytes, %.3fs.",
                manifest.total_files,
                manifest.total_bytes,
                timer.elapsed,
            )
        else:
            logger.error("Export completed with %d error(s) in %.3fs.", len(self._errors), timer.elapsed)

        return ExportResult(
            success=success,
            manifest=manifest,
            errors=tuple(self._errors),
            warnings=tuple(self._warnings),
            elapsed_seconds=timer.elapsed,
        )

    # -----------------------------------------------------------------
    # Internal: file writing
    # -----------------------------------------------------------------

    def _write_generated_files(self, generated_files: Dict[str, str]) -> None:
        for rel_path, content in generated_files.items():
            try:
                self._file_records.append(self._write_single_file(rel_path, content))
            except OSError as exc:
                error_msg: str = f"Failed to write {rel_path}: {type(exc).__name__}: {exc}"
                self._errors.append(error_msg)
                logger.error(error_msg)

        logger.info("Wrote %d generated files to %s.", len(self._file_records), self._output_dir)

    def _write_single_file(self, rel_path: str, content: str) -> FileRecord:
        full_path: Path = self._output_dir / rel_path
        size_bytes: int = write_file(full_path, content, atomic=self._atomic_writes)
        return FileRecord(
            relative_path=rel_path,
            absolute_path=str(full_path),
            size_bytes=size_bytes,
            line_count=count_lines(content),
            sha256=sha256_hex(content),
        )

    # -----------------------------------------------------------------
    # Internal: manifest
    # -----------------------------------------------------------------

    def _build_manifest(self, schema_name: str) -> ExportManifest:
        import dtogen

        # The manifest never lists itself.
        records: List[FileRecord] = [
            r for r in self._file_records if r.relative_path != MANIFEST_FILE_NAME
        ]
        return ExportManifest(
            schema_name=schema_name,
            generator_version=dtogen.__version__,
            export_timestamp=time.strftime("%Y-%m-%dT%H:%M:%S%z"),
            output_directory=str(self._output_dir),
            total_files=len(records),
            total_bytes=sum(r.size_bytes for r in records),
            total_lines=sum(r.line_count for r in records),
            files=records,
        )

    def _write_manifest_file(self, schema_name: str) -> None:
        manifest: ExportManifest = self._build_manifest(schema_name)
        try:
            write_file(self._output_dir / MANIFEST_FILE_NAME, manifest.to_json(), atomic=self._atomic_writes)
            logger.debug("Wrote manifest to %s.", self._output_dir / MANIFEST_FILE_NAME)
        except OSError as exc:
            self._warnings.append(f"Could not write manifest: {exc}")
            logger.warning("Failed to write manifest: %s", exc)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "MANIFEST_FILE_NAME",
    "ProjectExporter",
    "ExportManifest",
    "ExportResult",
    "FileRecord",
]

logger.debug("dtogen.exporters loaded.")

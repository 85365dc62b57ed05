# File: dtogen/utils.py
"""
DTOGen - Utility Functions & Helpers
======================================
Naming helpers shared by both emitters, literal formatting, id generation,
file I/O and small metrics utilities used throughout the pipeline.

Performance strategy:
- Name-conversion functions are decorated with ``@lru_cache(maxsize=None)``
  since the same field names are converted once per emitter pass.
- File I/O helpers use atomic rename for safety.
"""

from __future__ import annotations

import functools
import hashlib
import itertools
import logging
import os
import re
import secrets
import shutil
import tempfile
import time
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("dtogen.utils")

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns
# ---------------------------------------------------------------------------

_TS_IDENTIFIER_RE: re.Pattern[str] = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")

_BASE36_ALPHABET: str = "0123456789abcdefghijklmnopqrstuvwxyz"
_RANDOM_ID_LENGTH: int = 9

# Callable returning a fresh, globally unique field id.
IdFactory = Callable[[], str]


# ---------------------------------------------------------------------------
# Cached naming helpers
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def capitalize_first(name: str) -> str:
    """
    Upper-case the first character and keep the rest untouched.

    Examples:
        >>> capitalize_first("status")
        'Status'
        >>> capitalize_first("shippingAddress")
        'ShippingAddress'
        >>> capitalize_first("")
        ''
    """
    if not name:
        return ""
    return name[0].upper() + name[1:]


@functools.lru_cache(maxsize=None)
def enum_type_name(field_name: str) -> str:
    """Declaration name of a per-field enum: ``status`` → ``StatusEnum``."""
    return f"{capitalize_first(field_name)}Enum"


@functools.lru_cache(maxsize=None)
def nested_type_name(prefix: str, field_name: str, is_array_item: bool = False) -> str:
    """
    Declaration name of a nested object shape.

    The prefix carries the full ancestor path, so equal field names at
    different depths never collide:

        >>> nested_type_name("Order", "address")
        'OrderAddressType'
        >>> nested_type_name("OrderCustomerType", "address")
        'OrderCustomerTypeAddressType'
        >>> nested_type_name("Order", "items", is_array_item=True)
        'OrderItemsItemType'
    """
    suffix: str = "ItemType" if is_array_item else "Type"
    return f"{prefix}{capitalize_first(field_name)}{suffix}"


@functools.lru_cache(maxsize=None)
def is_ts_identifier(name: str) -> bool:
    """True when *name* can be used unquoted as a TypeScript property name."""
    return bool(_TS_IDENTIFIER_RE.match(name))


# ---------------------------------------------------------------------------
# Literal formatting helpers
# ---------------------------------------------------------------------------


def wrap_in_quotes(value: str) -> str:
    """Wrap a string value in double quotes, escaping internals."""
    escaped: str = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def format_literal(value: Union[int, float, str]) -> str:
    """
    Render a rule operand verbatim.

    Integral floats drop their fractional part (``5.0`` → ``5``) so numeric
    operands read the same as they were typed.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_bool(value: bool) -> str:
    """Render a Python bool as a bare JavaScript literal."""
    return "true" if value else "false"


def join_sections(sections: Sequence[str]) -> str:
    """
    Join non-empty file sections with one blank line between them.

    The result always ends with a single newline.
    """
    kept: List[str] = [s for s in sections if s]
    return "\n\n".join(kept) + "\n"


# ---------------------------------------------------------------------------
# Id generation
# ---------------------------------------------------------------------------


def random_id() -> str:
    """Return a 9-character base-36 id, e.g. ``'k3j9x0q2a'``."""
    return "".join(
        secrets.choice(_BASE36_ALPHABET) for _ in range(_RANDOM_ID_LENGTH)
    )


class CounterIdFactory:
    """
    Deterministic id generator for tests and reproducible tree construction.

    Usage:
        ids = CounterIdFactory("f")
        ids()  # 'f1'
        ids()  # 'f2'
    """

    __slots__ = ("prefix", "_counter")

    def __init__(self, prefix: str = "f", start: int = 1) -> None:
        self.prefix: str = prefix
        self._counter: "itertools.count[int]" = itertools.count(start)

    def __call__(self) -> str:
        return f"{self.prefix}{next(self._counter)}"

    def __repr__(self) -> str:
        return f"<CounterIdFactory prefix={self.prefix!r}>"


# ---------------------------------------------------------------------------
# File I/O helpers
# ---------------------------------------------------------------------------


def ensure_directory(path: Path) -> None:
    """Create directory (and parents) if it doesn't exist."""
    path.mkdir(parents=True, exist_ok=True)
    logger.debug("Ensured directory exists: %s", path)


def write_file(path: Path, content: str, atomic: bool = True) -> int:
    """
    Write *content* to *path*.

    When *atomic* is True, writes to a temporary file first then renames —
    this prevents partial writes on crash.

    Returns the number of bytes written.
    """
    ensure_directory(path.parent)

    encoded: bytes = content.encode("utf-8")

    if atomic:
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(encoded)
            os.replace(tmp_path, str(path))
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
    else:
        path.write_bytes(encoded)

    logger.debug("Wrote %d bytes to %s", len(encoded), path)
    return len(encoded)


def clean_directory(path: Path, keep_git: bool = True) -> None:
    """
    Remove all contents of a directory without removing the directory itself.

    If *keep_git* is True, ``.git`` and ``.gitignore`` are preserved.
    """
    if not path.exists():
        return

    for item in path.iterdir():
        if keep_git and item.name in {".git", ".gitignore"}:
            continue
        if item.is_dir():
            shutil.rmtree(item)
        else:
            item.unlink()

    logger.debug("Cleaned directory: %s (keep_git=%s)", path, keep_git)


# ---------------------------------------------------------------------------
# Checksum & metrics
# ---------------------------------------------------------------------------


def sha256_hex(content: str) -> str:
    """Return SHA-256 hex digest of a string. O(n)."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def count_lines(content: str) -> int:
    """Count the number of lines in a string. O(n)."""
    if not content:
        return 0
    return content.count("\n") + (1 if not content.endswith("\n") else 0)


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Simple context-manager timer for profiling pipeline steps.

    Usage:
        with Timer("generate dto") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.debug("Timer [%s]: %.4f seconds", self.label, self.elapsed)

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "IdFactory",
    "capitalize_first",
    "enum_type_name",
    "nested_type_name",
    "is_ts_identifier",
    "wrap_in_quotes",
    "format_literal",
    "format_bool",
    "join_sections",
    "random_id",
    "CounterIdFactory",
    "ensure_directory",
    "write_file",
    "clean_directory",
    "sha256_hex",
    "count_lines",
    "Timer",
]

logger.debug("dtogen.utils loaded — %d public symbols.", len(__all__))

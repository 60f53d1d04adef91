"""Merging of a variant's default settings fragments into one TOML document."""

from collections.abc import Mapping
import os
from pathlib import Path
import tempfile
import tomllib
from typing import Any

from pyvider.telemetry import logger
import tomli_w

from ..exceptions import (
    FileOperationError,
    ListFilesError,
    TomlDeserializeError,
    TomlMergeError,
    TomlSerializeError,
)
from ..models import DEFAULTS_OUTPUT_PATH, DEFAULTS_SUFFIX
from ..signals import DependencySink


def merge_values(
    merge_into: Mapping[str, Any], merge_from: Mapping[str, Any]
) -> dict[str, Any]:
    """Returns ``merge_into`` overlaid with ``merge_from``.

    Tables merge key by key; any other value, arrays included, replaces the
    existing one. Neither input is modified.
    """
    if not isinstance(merge_into, Mapping) or not isinstance(merge_from, Mapping):
        raise TomlMergeError(
            f"can only merge tables, got {type(merge_into).__name__} "
            f"and {type(merge_from).__name__}"
        )
    merged = dict(merge_into)
    for key, value in merge_from.items():
        existing = merged.get(key)
        if isinstance(existing, Mapping) and isinstance(value, Mapping):
            merged[key] = merge_values(existing, value)
        else:
            merged[key] = value
    return merged


def list_default_fragments(defaults_dir: Path) -> list[Path]:
    """Lists the TOML fragments directly inside ``defaults_dir``, sorted by name."""
    try:
        entries = list(os.scandir(defaults_dir))
    except OSError as e:
        raise ListFilesError(defaults_dir, e) from e

    fragments = []
    for entry in entries:
        if not entry.name.endswith(DEFAULTS_SUFFIX):
            continue
        try:
            # Follows symlinks, since variants link to shared fragments.
            is_file = entry.is_file()
        except OSError as e:
            raise ListFilesError(defaults_dir, e) from e
        if is_file:
            fragments.append(Path(entry.path))
        elif entry.is_symlink() and not os.path.exists(entry.path):
            raise ListFilesError(defaults_dir, f"broken symlink {entry.name}")
    return sorted(fragments, key=lambda p: p.name)


def _atomic_write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            newline="",
            delete=False,
            dir=str(path.parent),
            prefix=path.name + ".",
            suffix=".tmp",
        ) as handle:
            temp_path = Path(handle.name)
            handle.write(content)
        os.replace(temp_path, path)
        temp_path = None
    finally:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)


def generate_defaults_toml(
    defaults_dir: Path | None, root_dir: Path, sink: DependencySink
) -> Path | None:
    """Merges the variant's default settings and writes them under ``root_dir``.

    Returns the output path, or ``None`` when the variant has no defaults.
    """
    if defaults_dir is None:
        return None

    defaults: dict[str, Any] = {}
    fragments = list_default_fragments(defaults_dir)
    for fragment in fragments:
        sink.watch_file(fragment)
        try:
            data = fragment.read_text(encoding="utf-8")
        except OSError as e:
            raise FileOperationError("read", fragment, e) from e
        try:
            value = tomllib.loads(data)
        except tomllib.TOMLDecodeError as e:
            raise TomlDeserializeError(fragment, e) from e
        defaults = merge_values(defaults, value)

    try:
        rendered = tomli_w.dumps(defaults)
    except (TypeError, ValueError) as e:
        raise TomlSerializeError(e) from e

    output_path = root_dir / DEFAULTS_OUTPUT_PATH
    try:
        _atomic_write_text(output_path, rendered)
    except OSError as e:
        raise FileOperationError("write", output_path, e) from e

    logger.info(
        "Wrote merged default settings",
        path=str(output_path),
        fragments=len(fragments),
    )
    return output_path

"""Helpers for loading settings files in TOML, JSON or YAML form."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping
import json
import os
import tomllib

import yaml


ConfigLoader = Callable[[Any], Any]


FILE_LOADERS: Dict[str, ConfigLoader] = {
    ".toml": lambda stream: tomllib.load(stream),
    ".json": lambda stream: json.load(stream),
    ".yaml": lambda stream: yaml.safe_load(stream),
    ".yml": lambda stream: yaml.safe_load(stream),
}
"""Mapping of file suffixes to loader callables."""


def load_config_file(path: Path) -> Mapping[str, Any]:
    """Load and decode a configuration mapping from ``path``."""

    suffix = path.suffix.lower()
    loader = FILE_LOADERS.get(suffix)
    if loader is None:
        supported = ", ".join(sorted(FILE_LOADERS)) or "<none>"
        raise ValueError(
            f"Unsupported configuration file extension: {suffix}. Supported: {supported}"
        )

    mode = "rb" if suffix == ".toml" else "r"
    kwargs: Dict[str, Any] = {}
    if mode == "r":
        kwargs["encoding"] = "utf-8"

    with path.open(mode, **kwargs) as handle:
        data = loader(handle)

    # An empty YAML document decodes to None.
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise TypeError(f"Configuration file '{path}' must contain a mapping at the root")

    return data


def merge_mappings(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> Dict[str, Any]:
    """Deep merge two mapping objects."""

    result: Dict[str, Any] = dict(base)
    for key, value in overlay.items():
        existing = result.get(key)
        if isinstance(existing, Mapping) and isinstance(value, Mapping):
            result[key] = merge_mappings(existing, value)
        else:
            result[key] = value
    return result


def split_path_list(values: Iterable[str]) -> List[str]:
    """Split ``os.pathsep`` separated values into trimmed, non-empty entries."""

    parts: List[str] = []
    for value in values:
        if not value:
            continue
        for segment in value.split(os.pathsep):
            trimmed = segment.strip()
            if trimmed:
                parts.append(trimmed)
    return parts


def load_layered(paths: Iterable[Path]) -> Dict[str, Any]:
    """Load every file in ``paths`` and deep merge them in order."""

    merged: Dict[str, Any] = {}
    for path in paths:
        merged = merge_mappings(merged, load_config_file(path))
    return merged


__all__ = [
    "ConfigLoader",
    "FILE_LOADERS",
    "load_config_file",
    "load_layered",
    "merge_mappings",
    "split_path_list",
]

"""Tunable knobs for toolchain probing and build strategies."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Tuple

from .config_loader import load_layered
from .events import LEVELS


AUTOTOOLS_MARKERS: Tuple[str, ...] = (
    "Generated by GNU Autoconf",
    "generated by autoconf",
    "config.status:",
)

AUTOTOOLS_FLAGS: Tuple[str, ...] = (
    "--disable-dependency-tracking",
    "--disable-silent-rules",
)

COMPILER_OVERRIDES: Dict[str, str] = {
    "cc": "CC",
    "c++": "CXX",
    "cxx": "CXX",
}


def _to_str_dict(mapping: Mapping[str, Any]) -> Dict[str, str]:
    return {str(key): str(value) for key, value in mapping.items()}


def _to_str_tuple(value: Any, *, key: str) -> Tuple[str, ...]:
    if isinstance(value, str) or not isinstance(value, Iterable):
        raise TypeError(f"Setting '{key}' must be a list of strings")
    items = tuple(str(item) for item in value if str(item))
    if not items:
        raise ValueError(f"Setting '{key}' must not be empty")
    return items


def _positive_int(value: Any, *, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Setting '{key}' must be an integer")
    if value <= 0:
        raise ValueError(f"Setting '{key}' must be positive")
    return value


@dataclass(slots=True)
class BuildSettings:
    compiler_overrides: Dict[str, str] = field(default_factory=lambda: dict(COMPILER_OVERRIDES))
    sniff_bytes: int = 4096
    autotools_markers: Tuple[str, ...] = AUTOTOOLS_MARKERS
    autotools_flags: Tuple[str, ...] = AUTOTOOLS_FLAGS
    config_log_tail_lines: int = 50
    output_tail_chars: int = 2000
    log_level: str = "info"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "BuildSettings":
        section = data.get("sourcebuild", data)
        if not isinstance(section, Mapping):
            raise TypeError("The 'sourcebuild' settings section must be a mapping")

        allowed_keys = {
            "compiler_overrides",
            "sniff_bytes",
            "autotools_markers",
            "autotools_flags",
            "config_log_tail_lines",
            "output_tail_chars",
            "log_level",
        }
        unknown = {str(key) for key in section.keys() if str(key) not in allowed_keys}
        if unknown:
            joined = ", ".join(sorted(unknown))
            raise ValueError(f"Settings contain unknown keys: {joined}")

        settings = cls()
        overrides = section.get("compiler_overrides")
        if overrides is not None:
            if not isinstance(overrides, Mapping):
                raise TypeError("Setting 'compiler_overrides' must be a mapping")
            settings.compiler_overrides = _to_str_dict(overrides)
        if "sniff_bytes" in section:
            settings.sniff_bytes = _positive_int(section["sniff_bytes"], key="sniff_bytes")
        if "autotools_markers" in section:
            settings.autotools_markers = _to_str_tuple(section["autotools_markers"], key="autotools_markers")
        if "autotools_flags" in section:
            settings.autotools_flags = _to_str_tuple(section["autotools_flags"], key="autotools_flags")
        if "config_log_tail_lines" in section:
            settings.config_log_tail_lines = _positive_int(
                section["config_log_tail_lines"], key="config_log_tail_lines"
            )
        if "output_tail_chars" in section:
            settings.output_tail_chars = _positive_int(section["output_tail_chars"], key="output_tail_chars")
        if "log_level" in section:
            level = str(section["log_level"]).strip().lower()
            if level not in LEVELS:
                choices = ", ".join(LEVELS)
                raise ValueError(f"Unknown log_level '{level}'. Expected one of: {choices}")
            settings.log_level = level
        return settings


def load_settings(paths: Iterable[Path] = ()) -> BuildSettings:
    """Merge settings files in order over the built-in defaults."""

    return BuildSettings.from_mapping(load_layered(paths))


__all__ = [
    "AUTOTOOLS_FLAGS",
    "AUTOTOOLS_MARKERS",
    "BuildSettings",
    "COMPILER_OVERRIDES",
    "load_settings",
]

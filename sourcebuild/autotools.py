"""Classify ``configure`` scripts as GNU Autotools output without running them."""
from __future__ import annotations

from pathlib import Path
from typing import Sequence

from .events import EventSink, NullEventSink
from .settings import AUTOTOOLS_MARKERS


def read_prefix(path: Path, size: int) -> str:
    with path.open("rb") as handle:
        data = handle.read(size)
    return data.decode("utf-8", errors="replace")


def looks_like_autotools(
    script_path: Path,
    *,
    events: EventSink | None = None,
    prefix_bytes: int = 4096,
    markers: Sequence[str] = AUTOTOOLS_MARKERS,
) -> bool:
    """Return True when the script's leading bytes contain an Autoconf marker.

    Unreadable scripts are reported as not Autotools.
    """

    sink = events or NullEventSink()
    try:
        prefix = read_prefix(Path(script_path), prefix_bytes)
    except OSError as exc:
        sink.warning("autotools.unreadable", script=str(script_path), error=str(exc))
        return False

    for marker in markers:
        if marker in prefix:
            sink.debug("autotools.marker", script=str(script_path), marker=marker)
            return True

    sink.debug("autotools.no-marker", script=str(script_path), bytes=prefix_bytes)
    return False


__all__ = ["looks_like_autotools", "read_prefix"]

"""Structured, leveled event emission for probes and build strategies.

Components never print directly. They receive an :class:`EventSink` and emit
named events whose payload is kept as structured fields, so callers can
route them to a console, a JSON-lines file, or assert on them in tests.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Protocol
import json
import sys


LEVELS: Dict[str, int] = {
    "none": 0,
    "error": 1,
    "warning": 2,
    "info": 3,
    "debug": 4,
}


def tail_text(text: str, limit: int = 2000) -> str:
    """Return at most the last ``limit`` characters of ``text``."""

    if limit <= 0 or len(text) <= limit:
        return text
    return "..." + text[-limit:]


@dataclass(frozen=True, slots=True)
class Event:
    level: str
    name: str
    fields: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"level": self.level, "name": self.name, "fields": dict(self.fields)}


class EventSink(Protocol):
    def emit(self, level: str, name: str, **fields: Any) -> None:
        ...

    def debug(self, name: str, **fields: Any) -> None:
        ...

    def info(self, name: str, **fields: Any) -> None:
        ...

    def warning(self, name: str, **fields: Any) -> None:
        ...

    def error(self, name: str, **fields: Any) -> None:
        ...


class BaseEventSink:
    """Implements the level helpers on top of :meth:`emit`."""

    def emit(self, level: str, name: str, **fields: Any) -> None:
        raise NotImplementedError

    def debug(self, name: str, **fields: Any) -> None:
        self.emit("debug", name, **fields)

    def info(self, name: str, **fields: Any) -> None:
        self.emit("info", name, **fields)

    def warning(self, name: str, **fields: Any) -> None:
        self.emit("warning", name, **fields)

    def error(self, name: str, **fields: Any) -> None:
        self.emit("error", name, **fields)


class NullEventSink(BaseEventSink):
    """Discards every event."""

    def emit(self, level: str, name: str, **fields: Any) -> None:
        return None


class RecordingEventSink(BaseEventSink):
    """Keeps every emitted event in memory."""

    def __init__(self) -> None:
        self.events: List[Event] = []

    def emit(self, level: str, name: str, **fields: Any) -> None:
        if level not in LEVELS or level == "none":
            raise ValueError(f"Unknown event level: {level}")
        self.events.append(Event(level=level, name=name, fields=dict(fields)))

    def named(self, name: str) -> List[Event]:
        return [event for event in self.events if event.name == name]

    def names(self) -> List[str]:
        return [event.name for event in self.events]

    def at_level(self, level: str) -> List[Event]:
        return [event for event in self.events if event.level == level]

    def to_json_lines(self, path: str | Path) -> Path:
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        lines = [json.dumps(event.to_dict(), sort_keys=True, default=str) for event in self.events]
        output_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return output_path


class ConsoleEventSink(BaseEventSink):
    """Console output handler with configurable log level.

    Levels: none < error < warning < info < debug
    """

    def __init__(self, level: str = "info") -> None:
        if level not in LEVELS:
            raise ValueError(f"Unknown log level: {level}")
        self.level_name = level
        self.level = LEVELS[level]

    def emit(self, level: str, name: str, **fields: Any) -> None:
        if LEVELS.get(level, 0) > self.level or self.level == 0:
            return
        rendered = " ".join(f"{key}={self._format(value)}" for key, value in fields.items())
        line = f"[{level.upper()}] {name}"
        if rendered:
            line = f"{line} {rendered}"
        stream = sys.stderr if level in ("error", "warning") else sys.stdout
        print(line, file=stream)

    @staticmethod
    def _format(value: Any) -> str:
        text = str(value)
        if not text or any(ch.isspace() for ch in text):
            return json.dumps(text)
        return text


__all__ = [
    "BaseEventSink",
    "ConsoleEventSink",
    "Event",
    "EventSink",
    "LEVELS",
    "NullEventSink",
    "RecordingEventSink",
    "tail_text",
]

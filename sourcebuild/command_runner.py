"""Utilities for executing build commands with optional dry-run support."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Mapping, Sequence
import os
import shlex
import subprocess

from .errors import CommandExecError


@dataclass
class CommandResult:
    """Represents the outcome of an executed command."""

    command: Sequence[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0


class CommandError(RuntimeError):
    """Raised when a checked command exits non-zero."""

    def __init__(self, result: CommandResult):
        super().__init__(
            f"Command failed with exit code {result.returncode}: {' '.join(map(shlex.quote, result.command))}\n"
            f"stdout: {result.stdout}\n"
            f"stderr: {result.stderr}"
        )
        self.result = result


class CommandRunner:
    """Abstract command runner interface."""

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
        note: str | None = None,
    ) -> CommandResult:
        raise NotImplementedError

    def format_command(self, command: Sequence[str]) -> str:
        return " ".join(shlex.quote(part) for part in command)


class SubprocessCommandRunner(CommandRunner):
    """Command runner that executes commands via :mod:`subprocess`."""

    @staticmethod
    def _merge_environment(env: Mapping[str, str] | None) -> Dict[str, str] | None:
        if env is None:
            return None
        merged = os.environ.copy()
        merged.update(env)
        return merged

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
        note: str | None = None,
    ) -> CommandResult:
        try:
            process = subprocess.run(
                list(command),
                cwd=str(cwd) if cwd else None,
                env=self._merge_environment(env),
                capture_output=True,
                text=True,
                errors="replace",
                check=False,
            )
        except OSError as exc:
            raise CommandExecError(command, exc) from exc

        result = CommandResult(
            command=command,
            returncode=process.returncode,
            stdout=process.stdout,
            stderr=process.stderr,
        )
        if check and process.returncode != 0:
            raise CommandError(result)
        return result


@dataclass(slots=True)
class RecordedCommand:
    command: List[str]
    cwd: str | None
    env: Dict[str, str]
    note: str | None


Responder = Callable[[RecordedCommand], "CommandResult | None"]


class RecordingCommandRunner(CommandRunner):
    """Command runner that records commands instead of executing them.

    ``responder`` lets callers decide the outcome of a recorded command. It may
    return a :class:`CommandResult`, or ``None`` to fall back to an empty
    successful result.
    """

    def __init__(self, responder: Responder | None = None) -> None:
        self.commands: List[RecordedCommand] = []
        self._responder = responder

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
        note: str | None = None,
    ) -> CommandResult:
        record = RecordedCommand(
            command=list(command),
            cwd=str(cwd) if cwd else None,
            env=dict(env) if env else {},
            note=note,
        )
        self.commands.append(record)

        result: CommandResult | None = None
        if self._responder is not None:
            result = self._responder(record)
        if result is None:
            result = CommandResult(command=command, returncode=0, stdout="", stderr="")
        if check and result.returncode != 0:
            raise CommandError(result)
        return result

    def iter_commands(self) -> Iterable[RecordedCommand]:
        return iter(self.commands)

    def iter_formatted(self, *, workspace: Path | None = None) -> Iterable[str]:
        default_cwd = str(workspace) if workspace else None
        for record in self.commands:
            cmd = self.format_command(record.command)
            cwd = record.cwd or default_cwd
            parts: List[str] = ["[dry-run]"]
            if record.note:
                parts.append(record.note)
            if cwd:
                parts.append(f"(cwd={cwd})")
            parts.append(cmd)
            yield " ".join(parts)


__all__ = [
    "CommandError",
    "CommandResult",
    "CommandRunner",
    "RecordedCommand",
    "RecordingCommandRunner",
    "Responder",
    "SubprocessCommandRunner",
]

"""Error kinds raised by toolchain resolution and source builds."""
from __future__ import annotations

from typing import TYPE_CHECKING, Sequence, Tuple
import shlex

if TYPE_CHECKING:
    from .command_runner import CommandResult


class SourceBuildError(RuntimeError):
    """Base class for every error raised by :mod:`sourcebuild`."""


class BuildEnvError(SourceBuildError):
    """The build environment or a precondition is unusable."""


class ToolNotFound(BuildEnvError):
    """No candidate executable was found for a logical tool name."""

    def __init__(self, tool: str, searched: Sequence[str] = ()) -> None:
        self.tool = tool
        self.searched: Tuple[str, ...] = tuple(searched)
        message = f"Could not find '{tool}'"
        if self.searched:
            message = f"{message} (searched: {', '.join(self.searched)})"
        super().__init__(message)


class CommandExecError(SourceBuildError):
    """The operating system failed to start a subprocess."""

    def __init__(self, command: Sequence[str], error: OSError) -> None:
        self.command = list(command)
        self.error = error
        joined = " ".join(shlex.quote(str(part)) for part in self.command)
        super().__init__(f"Failed to execute {joined}: {error}")


class BuildFailure(SourceBuildError):
    """A build step ran to completion but exited non-zero."""

    def __init__(
        self,
        step: str,
        result: "CommandResult",
        *,
        message: str | None = None,
        config_log_tail: str | None = None,
    ) -> None:
        self.step = step
        self.result = result
        self.config_log_tail = config_log_tail
        self.summary = message or f"{step} failed with status {result.returncode}"
        super().__init__(self.summary)

    @property
    def returncode(self) -> int:
        return self.result.returncode

    def __str__(self) -> str:
        parts = [self.summary]
        if self.result.stdout.strip():
            parts.append(f"stdout:\n{self.result.stdout.rstrip()}")
        if self.result.stderr.strip():
            parts.append(f"stderr:\n{self.result.stderr.rstrip()}")
        if self.config_log_tail:
            parts.append("--- Last lines of config.log ---")
            parts.append(self.config_log_tail.rstrip())
            parts.append("--- End config.log ---")
        return "\n".join(parts)


__all__ = [
    "BuildEnvError",
    "BuildFailure",
    "CommandExecError",
    "SourceBuildError",
    "ToolNotFound",
]

"""Run one build step and classify its exit status."""
from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, Sequence

from .command_runner import CommandResult, CommandRunner
from .environment import BuildEnvironment
from .errors import BuildFailure
from .events import EventSink, NullEventSink, tail_text
from .settings import BuildSettings


class StepPolicy(str, Enum):
    HARD_FAIL = "hard-fail"
    DEFER = "defer"


def read_log_tail(path: Path, lines: int) -> str | None:
    """Return the last ``lines`` lines of ``path`` or None when unavailable."""

    if not path.is_file():
        return None
    try:
        content = path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None
    return "\n".join(content.splitlines()[-lines:])


class StepRunner:
    def __init__(
        self,
        runner: CommandRunner,
        *,
        events: EventSink | None = None,
        settings: BuildSettings | None = None,
    ) -> None:
        self._runner = runner
        self._events = events or NullEventSink()
        self._settings = settings or BuildSettings()

    @staticmethod
    def environment_for(build_env: BuildEnvironment) -> Dict[str, str]:
        env: Dict[str, str] = {}
        build_env.apply_to_environment(env)
        return env

    def run(
        self,
        step: str,
        command: Sequence[str],
        *,
        cwd: Path,
        build_env: BuildEnvironment,
        policy: StepPolicy = StepPolicy.HARD_FAIL,
        diagnostics: Iterable[Path] = (),
    ) -> CommandResult:
        self._events.info("step.start", step=step, command=self._runner.format_command(command))
        result = self._runner.run(
            list(command),
            cwd=cwd,
            env=self.environment_for(build_env),
            check=False,
            note=step,
        )

        limit = self._settings.output_tail_chars
        level = "debug" if result.succeeded else ("error" if policy is StepPolicy.HARD_FAIL else "warning")
        self._events.emit(
            level,
            "step.finished",
            step=step,
            returncode=result.returncode,
            policy=policy.value,
            stdout=tail_text(result.stdout, limit),
            stderr=tail_text(result.stderr, limit),
        )

        if result.succeeded or policy is StepPolicy.DEFER:
            return result

        log_tail = None
        for candidate in diagnostics:
            log_tail = read_log_tail(candidate, self._settings.config_log_tail_lines)
            if log_tail is not None:
                self._events.error("step.diagnostics", step=step, path=str(candidate), tail=log_tail)
                break
        raise BuildFailure(step, result, config_log_tail=log_tail)


__all__ = ["StepPolicy", "StepRunner", "read_log_tail"]

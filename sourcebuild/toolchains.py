"""Locate compilers and build tools: override, platform finder, then PATH."""
from __future__ import annotations

from pathlib import Path
from typing import List, Mapping
import os
import shutil

from .command_runner import CommandRunner, SubprocessCommandRunner
from .environment import BuildEnvironment, HostPlatform
from .errors import CommandExecError, ToolNotFound
from .events import EventSink, NullEventSink
from .settings import BuildSettings


class ToolProbe:
    """Resolves a logical tool name to an existing executable path.

    Resolution order, first match wins:

    1. the override variable for compiler names (``CC`` for ``cc``, ``CXX``
       for ``c++``/``cxx``), when it points at a regular file;
    2. ``xcrun --find <name>`` on macOS;
    3. the build environment's PATH (when one is given), then the process
       PATH.

    Relative hits are made absolute against the process working directory,
    so the returned path stays valid when a step runs elsewhere. Nothing is
    cached; each call probes again.
    """

    def __init__(
        self,
        runner: CommandRunner | None = None,
        *,
        host: HostPlatform | None = None,
        events: EventSink | None = None,
        environ: Mapping[str, str] | None = None,
        settings: BuildSettings | None = None,
    ) -> None:
        self._runner = runner or SubprocessCommandRunner()
        self.host = host or HostPlatform.detect()
        self._events = events or NullEventSink()
        self._environ = environ if environ is not None else os.environ
        self._settings = settings or BuildSettings()

    def override_variable(self, name: str) -> str | None:
        return self._settings.compiler_overrides.get(name)

    def resolve(self, name: str, build_env: BuildEnvironment | None = None) -> Path:
        searched: List[str] = []

        path = self._from_override(name, searched)
        if path is not None:
            return self._resolved(name, "override", path)

        if self.host.is_macos:
            searched.append("xcrun")
            path = self._from_xcrun(name)
            if path is not None:
                return self._resolved(name, "xcrun", path)

        if build_env is not None:
            searched.append("build environment PATH")
            path = self._which(name, build_env.get_path_string())
            if path is not None:
                return self._resolved(name, "build-path", path)

        searched.append("PATH")
        path = self._which(name, self._environ.get("PATH"))
        if path is not None:
            return self._resolved(name, "path", path)

        self._events.error("tool.not-found", tool=name, searched=list(searched))
        raise ToolNotFound(name, searched)

    def find_compiler(self, name: str) -> Path:
        return self.resolve(name)

    def _from_override(self, name: str, searched: List[str]) -> Path | None:
        variable = self.override_variable(name)
        if not variable:
            return None
        searched.append(f"${variable}")
        value = self._environ.get(variable)
        if not value:
            return None
        candidate = Path(value)
        if candidate.is_file():
            return candidate.absolute()
        self._events.warning("tool.override-missing", tool=name, variable=variable, path=str(candidate))
        return None

    def _from_xcrun(self, name: str) -> Path | None:
        self._events.debug("tool.xcrun", tool=name)
        try:
            result = self._runner.run(["xcrun", "--find", name], check=False)
        except CommandExecError as exc:
            self._events.debug("tool.xcrun-unavailable", tool=name, error=str(exc.error))
            return None

        if not result.succeeded:
            self._events.debug("tool.xcrun-failed", tool=name, returncode=result.returncode, stderr=result.stderr.strip())
            return None
        output = result.stdout.strip()
        if not output:
            self._events.debug("tool.xcrun-empty", tool=name)
            return None
        candidate = Path(output)
        if not candidate.is_file():
            self._events.debug("tool.xcrun-missing", tool=name, path=output)
            return None
        return candidate.absolute()

    @staticmethod
    def _which(name: str, path: str | None) -> Path | None:
        if not path:
            return None
        found = shutil.which(name, path=path)
        return Path(found).absolute() if found else None

    def _resolved(self, name: str, source: str, path: Path) -> Path:
        self._events.info("tool.resolved", tool=name, source=source, path=str(path))
        return path


__all__ = ["ToolProbe"]

"""macOS build facts: SDK root, OS version and architecture flag."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Sequence

from .command_runner import CommandError, CommandResult, CommandRunner, SubprocessCommandRunner
from .environment import HostPlatform
from .errors import BuildEnvError, CommandExecError
from .events import EventSink, NullEventSink


ROOT_SDK = Path("/")
UNKNOWN_VERSION = "0.0"

ARCH_FLAGS: Dict[str, str] = {
    "x86_64": "-arch x86_64",
    "amd64": "-arch x86_64",
    "arm64": "-arch arm64",
    "aarch64": "-arch arm64",
}


@dataclass(frozen=True, slots=True)
class PlatformInfo:
    sdk_path: Path
    os_version_short: str
    arch_flag: str

    @classmethod
    def neutral(cls) -> "PlatformInfo":
        return cls(sdk_path=ROOT_SDK, os_version_short=UNKNOWN_VERSION, arch_flag="")


def short_version(version: str) -> str:
    """Reduce ``14.4.1`` to ``14.4``; strings with fewer parts are kept."""

    parts = version.split(".")
    if len(parts) >= 2:
        return f"{parts[0]}.{parts[1]}"
    return version


class PlatformProbe:
    def __init__(
        self,
        runner: CommandRunner | None = None,
        *,
        host: HostPlatform | None = None,
        events: EventSink | None = None,
    ) -> None:
        self._runner = runner or SubprocessCommandRunner()
        self.host = host or HostPlatform.detect()
        self._events = events or NullEventSink()

    def _query(self, command: Sequence[str], description: str) -> CommandResult:
        try:
            return self._runner.run(list(command))
        except CommandExecError as exc:
            raise BuildEnvError(
                f"Failed to execute '{' '.join(command)}': {exc.error}. "
                "Is Xcode or the Command Line Tools installed?"
            ) from exc
        except CommandError as exc:
            raise BuildEnvError(f"{description} failed: {exc.result.stderr.strip()}") from exc

    def sdk_path(self) -> Path:
        if not self.host.is_macos:
            self._events.debug("platform.sdk-path", path=str(ROOT_SDK), source="default")
            return ROOT_SDK

        result = self._query(["xcrun", "--show-sdk-path"], "xcrun --show-sdk-path")
        output = result.stdout.strip()
        if not output or output == "/":
            raise BuildEnvError(
                f"xcrun returned an empty or invalid SDK path ('{output}'). "
                "Is Xcode or the Command Line Tools installed correctly?"
            )
        path = Path(output)
        if not path.exists():
            raise BuildEnvError(f"SDK path reported by xcrun does not exist: {path}")
        self._events.info("platform.sdk-path", path=str(path), source="xcrun")
        return path

    def os_version(self) -> str:
        if not self.host.is_macos:
            self._events.debug("platform.os-version", version=UNKNOWN_VERSION, source="default")
            return UNKNOWN_VERSION

        result = self._query(["sw_vers", "-productVersion"], "sw_vers -productVersion")
        full = result.stdout.strip()
        version = short_version(full)
        self._events.info("platform.os-version", version=version, full=full, source="sw_vers")
        return version

    def arch_flag(self) -> str:
        if not self.host.is_macos:
            return ""
        flag = ARCH_FLAGS.get(self.host.architecture)
        if flag is None:
            self._events.warning("platform.unknown-arch", architecture=self.host.architecture)
            return ""
        self._events.debug("platform.arch-flag", architecture=self.host.architecture, flag=flag)
        return flag

    def info(self) -> PlatformInfo:
        if not self.host.is_macos:
            return PlatformInfo.neutral()
        return PlatformInfo(
            sdk_path=self.sdk_path(),
            os_version_short=self.os_version(),
            arch_flag=self.arch_flag(),
        )


__all__ = ["ARCH_FLAGS", "PlatformInfo", "PlatformProbe", "short_version"]

"""Toolchain resolution and source build orchestration."""
from __future__ import annotations

from .autotools import looks_like_autotools
from .command_runner import (
    CommandError,
    CommandResult,
    CommandRunner,
    RecordingCommandRunner,
    SubprocessCommandRunner,
)
from .environment import BuildEnvironment, HostPlatform, StaticBuildEnvironment
from .errors import BuildEnvError, BuildFailure, CommandExecError, SourceBuildError, ToolNotFound
from .events import ConsoleEventSink, Event, EventSink, NullEventSink, RecordingEventSink
from .make import (
    BuildOutcome,
    BuildStatus,
    BuildStrategyExecutor,
    InstallResolution,
    configure_and_make,
    resolve_install,
    simple_make,
)
from .platform_probe import PlatformInfo, PlatformProbe
from .settings import BuildSettings, load_settings
from .toolchains import ToolProbe

__all__ = [
    "BuildEnvError",
    "BuildEnvironment",
    "BuildFailure",
    "BuildOutcome",
    "BuildSettings",
    "BuildStatus",
    "BuildStrategyExecutor",
    "CommandError",
    "CommandExecError",
    "CommandResult",
    "CommandRunner",
    "ConsoleEventSink",
    "Event",
    "EventSink",
    "HostPlatform",
    "InstallResolution",
    "NullEventSink",
    "PlatformInfo",
    "PlatformProbe",
    "RecordingCommandRunner",
    "RecordingEventSink",
    "SourceBuildError",
    "StaticBuildEnvironment",
    "SubprocessCommandRunner",
    "ToolNotFound",
    "ToolProbe",
    "configure_and_make",
    "load_settings",
    "looks_like_autotools",
    "resolve_install",
    "simple_make",
]

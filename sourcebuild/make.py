"""Configure/make build strategies with install verification and recovery."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Tuple
import os
import shutil

from .autotools import looks_like_autotools
from .command_runner import CommandResult, CommandRunner, SubprocessCommandRunner
from .environment import BuildEnvironment
from .errors import BuildEnvError, BuildFailure
from .events import EventSink, NullEventSink
from .settings import BuildSettings
from .steps import StepPolicy, StepRunner
from .toolchains import ToolProbe


BINARY_MODE = 0o755


class BuildStatus(str, Enum):
    SUCCESS = "success"
    SUCCESS_WITH_WARNING = "success-with-warning"


class InstallResolution(str, Enum):
    TRUSTED = "trusted"
    BIN_POPULATED = "bin-populated"
    RECOVERED = "recovered"
    NO_BINARIES = "no-binaries"
    FAILED = "failed"


@dataclass(slots=True)
class BuildOutcome:
    strategy: str
    status: BuildStatus
    resolution: InstallResolution
    results: List[CommandResult] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def resolve_install(*, install_succeeded: bool, bin_populated: bool, recovered: bool) -> InstallResolution:
    """Decide how a bare-make install ended.

    A populated ``bin`` wins regardless of the install exit status; a
    recovered binary wins next. Otherwise a successful install without
    binaries is accepted with a warning and a failed one is final.
    """

    if bin_populated:
        return InstallResolution.BIN_POPULATED
    if recovered:
        return InstallResolution.RECOVERED
    if install_succeeded:
        return InstallResolution.NO_BINARIES
    return InstallResolution.FAILED


def bin_populated(install_dir: Path) -> bool:
    bin_dir = install_dir / "bin"
    return bin_dir.is_dir() and any(bin_dir.iterdir())


def _anchor(install_dir: Path, build_dir: Path | None) -> Tuple[Path, Path]:
    """Return the absolute build directory and the install prefix under it.

    A relative prefix is taken relative to the build directory, which is
    where the install step runs.
    """

    cwd = Path(build_dir).absolute() if build_dir is not None else Path.cwd()
    return cwd, cwd / Path(install_dir)


class BuildStrategyExecutor:
    def __init__(
        self,
        runner: CommandRunner | None = None,
        *,
        tool_probe: ToolProbe | None = None,
        events: EventSink | None = None,
        settings: BuildSettings | None = None,
        dry_run: bool = False,
    ) -> None:
        self._runner = runner or SubprocessCommandRunner()
        self._events = events or NullEventSink()
        self._settings = settings or BuildSettings()
        self._dry_run = dry_run
        self._tool_probe = tool_probe or ToolProbe(self._runner, events=self._events, settings=self._settings)
        self._steps = StepRunner(self._runner, events=self._events, settings=self._settings)

    def _resolve_make(self, build_env: BuildEnvironment) -> str:
        return str(self._tool_probe.resolve("make", build_env))

    def configure_and_make(
        self,
        install_dir: Path,
        build_env: BuildEnvironment,
        *,
        build_dir: Path | None = None,
    ) -> BuildOutcome:
        """Run ``./configure --prefix=<install_dir> && make && make install``."""

        cwd, install_dir = _anchor(install_dir, build_dir)
        script = cwd / "configure"
        if not script.is_file():
            self._events.error("configure.missing", build_dir=str(cwd))
            raise BuildEnvError(f"configure script not found in {cwd}, cannot run a configure-based build")

        is_autotools = looks_like_autotools(
            script,
            events=self._events,
            prefix_bytes=self._settings.sniff_bytes,
            markers=self._settings.autotools_markers,
        )
        command = ["./configure", f"--prefix={install_dir}"]
        if is_autotools:
            command.extend(self._settings.autotools_flags)
        self._events.info("configure.detected", autotools=is_autotools, script=str(script))

        results: List[CommandResult] = []
        results.append(
            self._steps.run(
                "configure",
                command,
                cwd=cwd,
                build_env=build_env,
                diagnostics=[cwd / "config.log"],
            )
        )

        make = self._resolve_make(build_env)
        results.append(self._steps.run("make", [make], cwd=cwd, build_env=build_env))
        results.append(self._steps.run("make install", [make, "install"], cwd=cwd, build_env=build_env))

        self._events.info("build.finished", strategy="configure", status=BuildStatus.SUCCESS.value)
        return BuildOutcome(
            strategy="configure",
            status=BuildStatus.SUCCESS,
            resolution=InstallResolution.TRUSTED,
            results=results,
        )

    def simple_make(
        self,
        install_dir: Path,
        build_env: BuildEnvironment,
        *,
        build_dir: Path | None = None,
    ) -> BuildOutcome:
        """Run ``make`` then ``make install PREFIX=<install_dir>`` and verify the result."""

        cwd, install_dir = _anchor(install_dir, build_dir)
        make = self._resolve_make(build_env)

        results: List[CommandResult] = []
        results.append(self._steps.run("make", [make], cwd=cwd, build_env=build_env))
        install = self._steps.run(
            "make install",
            [make, "install", f"PREFIX={install_dir}"],
            cwd=cwd,
            build_env=build_env,
            policy=StepPolicy.DEFER,
        )
        results.append(install)

        if self._dry_run:
            self._events.info("install.verification-skipped", install_dir=str(install_dir))
            return BuildOutcome(
                strategy="make",
                status=BuildStatus.SUCCESS,
                resolution=InstallResolution.TRUSTED,
                results=results,
            )

        populated = bin_populated(install_dir)
        recovered = False
        if not populated:
            self._events.warning("install.bin-missing", bin_dir=str(install_dir / "bin"))
            recovered = self._recover_binary(install_dir, cwd)

        resolution = resolve_install(
            install_succeeded=install.succeeded,
            bin_populated=populated,
            recovered=recovered,
        )
        self._events.info(
            "install.resolved",
            resolution=resolution.value,
            install_succeeded=install.succeeded,
            bin_populated=populated,
            recovered=recovered,
        )

        if resolution is InstallResolution.FAILED:
            raise BuildFailure(
                "make install",
                install,
                message=(
                    f"make install failed with status {install.returncode} "
                    f"and no artifacts were found to install manually from {cwd}"
                ),
            )

        warnings: List[str] = []
        status = BuildStatus.SUCCESS
        if resolution is InstallResolution.NO_BINARIES:
            status = BuildStatus.SUCCESS_WITH_WARNING
            warnings.append(
                f"make install reported success, but {install_dir / 'bin'} was not populated "
                "and no executable was found to install manually"
            )
            self._events.warning("install.no-binaries", bin_dir=str(install_dir / "bin"))

        self._events.info("build.finished", strategy="make", status=status.value)
        return BuildOutcome(
            strategy="make",
            status=status,
            resolution=resolution,
            results=results,
            warnings=warnings,
        )

    def _recover_binary(self, install_dir: Path, build_dir: Path) -> bool:
        name = install_dir.parent.name
        candidate = build_dir / name if name else None
        if candidate is None or not candidate.is_file():
            self._events.warning("install.recovery-missing", binary=name, build_dir=str(build_dir))
            return False

        bin_dir = install_dir / "bin"
        target = bin_dir / name
        try:
            bin_dir.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(candidate, target)
            os.chmod(target, BINARY_MODE)
        except OSError as exc:
            raise BuildEnvError(f"Failed to install {candidate} to {target}: {exc}") from exc

        self._events.info("install.recovered", source=str(candidate), target=str(target), mode=oct(BINARY_MODE))
        return True


def configure_and_make(
    install_dir: Path,
    build_env: BuildEnvironment,
    *,
    build_dir: Path | None = None,
    events: EventSink | None = None,
) -> BuildOutcome:
    return BuildStrategyExecutor(events=events).configure_and_make(install_dir, build_env, build_dir=build_dir)


def simple_make(
    install_dir: Path,
    build_env: BuildEnvironment,
    *,
    build_dir: Path | None = None,
    events: EventSink | None = None,
) -> BuildOutcome:
    return BuildStrategyExecutor(events=events).simple_make(install_dir, build_env, build_dir=build_dir)


__all__ = [
    "BINARY_MODE",
    "BuildOutcome",
    "BuildStatus",
    "BuildStrategyExecutor",
    "InstallResolution",
    "bin_populated",
    "configure_and_make",
    "resolve_install",
    "simple_make",
]

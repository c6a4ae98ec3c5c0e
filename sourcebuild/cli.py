"""Command line interface for probing toolchains and running source builds."""
from __future__ import annotations

from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Dict, Iterable, List, Mapping
import os
import sys

from .autotools import looks_like_autotools
from .command_runner import CommandRunner, RecordingCommandRunner, SubprocessCommandRunner
from .config_loader import split_path_list
from .environment import HostPlatform, StaticBuildEnvironment
from .errors import BuildEnvError, BuildFailure, CommandExecError
from .events import ConsoleEventSink
from .make import BuildStatus, BuildStrategyExecutor
from .platform_probe import PlatformProbe
from .settings import BuildSettings, load_settings
from .toolchains import ToolProbe


DEFAULT_TOOLS = ("cc", "c++", "make")


def _make_runner(dry_run: bool) -> SubprocessCommandRunner | RecordingCommandRunner:
    return RecordingCommandRunner() if dry_run else SubprocessCommandRunner()


def _settings_paths(cli_values: Iterable[str], environ: Mapping[str, str]) -> List[Path]:
    values = split_path_list([environ.get("SOURCEBUILD_CONFIG", "")])
    values.extend(split_path_list(cli_values))
    return [Path(value) for value in values]


def _load_settings(args: Namespace, environ: Mapping[str, str]) -> BuildSettings:
    settings = load_settings(_settings_paths(getattr(args, "config_files", []), environ))
    if getattr(args, "verbose", False):
        settings.log_level = "debug"
    elif getattr(args, "quiet", False):
        settings.log_level = "error"
    return settings


def _parse_variables(values: Iterable[str]) -> Dict[str, str]:
    variables: Dict[str, str] = {}
    for raw in values:
        key, sep, value = raw.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValueError(f"Environment assignments must look like KEY=VALUE: {raw!r}")
        variables[key] = value
    return variables


def _parse_arguments(argv: Iterable[str]) -> Namespace:
    parser = ArgumentParser(prog="sourcebuild", description="Toolchain probing and source build driver")
    parser.add_argument(
        "-c",
        "--config",
        dest="config_files",
        action="append",
        default=[],
        metavar="FILE",
        help="Settings file (TOML, JSON or YAML); repeat to layer several",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug events")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only show errors")
    subparsers = parser.add_subparsers(dest="command", required=True)

    probe_parser = subparsers.add_parser("probe", help="Resolve tools and platform facts")
    probe_parser.add_argument("tools", nargs="*", metavar="TOOL", help="Logical tool names (default: cc c++ make)")
    probe_parser.add_argument("--platform", action="store_true", help="Also print SDK path, OS version and arch flag")

    sniff_parser = subparsers.add_parser("sniff", help="Check whether a configure script was generated by Autotools")
    sniff_parser.add_argument("script", help="Path to the configure script")

    build_parser = subparsers.add_parser("build", help="Build the source tree in a directory")
    build_parser.add_argument("strategy", choices=["configure", "make"], help="Build strategy to run")
    build_parser.add_argument("--prefix", required=True, help="Install directory")
    build_parser.add_argument("-C", "--directory", dest="build_dir", help="Build directory (default: current directory)")
    build_parser.add_argument(
        "-e",
        "--env",
        dest="variables",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Environment variable for build commands",
    )
    build_parser.add_argument(
        "--path",
        dest="path_entries",
        action="append",
        default=[],
        metavar="DIR",
        help="Directory prepended to PATH for build commands",
    )
    build_parser.add_argument("-n", "--dry-run", action="store_true", help="Print commands without executing them")

    return parser.parse_args(list(argv))


def main(argv: Iterable[str] | None = None) -> int:
    args = _parse_arguments(argv if argv is not None else sys.argv[1:])
    try:
        settings = _load_settings(args, os.environ)
    except (OSError, TypeError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    if args.command == "probe":
        return _handle_probe(args, settings)
    if args.command == "sniff":
        return _handle_sniff(args, settings)
    if args.command == "build":
        return _handle_build(args, settings)
    raise ValueError(f"Unknown command: {args.command}")


def _handle_probe(args: Namespace, settings: BuildSettings) -> int:
    events = ConsoleEventSink(settings.log_level)
    runner = SubprocessCommandRunner()
    host = HostPlatform.detect()
    probe = ToolProbe(runner, host=host, events=events, settings=settings)

    status = 0
    for tool in args.tools or DEFAULT_TOOLS:
        try:
            print(f"{tool}: {probe.resolve(tool)}")
        except BuildEnvError as exc:
            print(f"{tool}: not found ({exc})")
            status = 2

    if args.platform:
        try:
            info = PlatformProbe(runner, host=host, events=events).info()
        except BuildEnvError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 2
        print(f"sdk_path: {info.sdk_path}")
        print(f"os_version: {info.os_version_short}")
        print(f"arch_flag: {info.arch_flag}")
    return status


def _handle_sniff(args: Namespace, settings: BuildSettings) -> int:
    events = ConsoleEventSink(settings.log_level)
    detected = looks_like_autotools(
        Path(args.script),
        events=events,
        prefix_bytes=settings.sniff_bytes,
        markers=settings.autotools_markers,
    )
    print("autotools" if detected else "not-autotools")
    return 0


def _run_strategy(
    args: Namespace,
    settings: BuildSettings,
    runner: CommandRunner,
) -> int:
    events = ConsoleEventSink(settings.log_level)
    build_env = StaticBuildEnvironment(
        variables=_parse_variables(args.variables),
        path_entries=list(args.path_entries),
    )
    tool_probe = ToolProbe(runner, events=events, settings=settings)
    executor = BuildStrategyExecutor(
        runner,
        tool_probe=tool_probe,
        events=events,
        settings=settings,
        dry_run=args.dry_run,
    )
    build_dir = Path(args.build_dir).resolve() if args.build_dir else Path.cwd()
    install_dir = Path(args.prefix).resolve()

    if args.strategy == "configure":
        outcome = executor.configure_and_make(install_dir, build_env, build_dir=build_dir)
    else:
        outcome = executor.simple_make(install_dir, build_env, build_dir=build_dir)

    for warning in outcome.warnings:
        print(f"Warning: {warning}", file=sys.stderr)
    if outcome.status is BuildStatus.SUCCESS_WITH_WARNING:
        print(f"Built with warnings ({outcome.resolution.value})")
    else:
        print(f"Build succeeded ({outcome.resolution.value})")
    return 0


def _handle_build(args: Namespace, settings: BuildSettings) -> int:
    runner = _make_runner(args.dry_run)
    try:
        status = _run_strategy(args, settings, runner)
    except BuildFailure as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except (BuildEnvError, CommandExecError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    finally:
        if isinstance(runner, RecordingCommandRunner):
            for line in runner.iter_formatted():
                print(line)
    return status


__all__ = ["main"]

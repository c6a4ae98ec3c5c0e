"""Host platform facts and the environment handed to build subprocesses."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Mapping, MutableMapping, Protocol, Sequence
import os
import platform

if TYPE_CHECKING:
    from .platform_probe import PlatformProbe


@dataclass(frozen=True, slots=True)
class HostPlatform:
    os_name: str
    architecture: str

    @classmethod
    def detect(cls) -> "HostPlatform":
        return cls(os_name=platform.system().lower(), architecture=platform.machine().lower())

    @classmethod
    def macos(cls, architecture: str = "arm64") -> "HostPlatform":
        return cls(os_name="darwin", architecture=architecture)

    @property
    def is_macos(self) -> bool:
        return self.os_name == "darwin"


class BuildEnvironment(Protocol):
    """Environment variables and PATH accumulated for a build."""

    def apply_to_environment(self, env: MutableMapping[str, str]) -> None:
        """Write the accumulated variables into ``env``."""

    def get_path_string(self) -> str:
        """Return the PATH used when searching for build executables."""


@dataclass(slots=True)
class StaticBuildEnvironment:
    """A fixed set of variables plus PATH entries prepended to the host PATH."""

    variables: Dict[str, str] = field(default_factory=dict)
    path_entries: List[str] = field(default_factory=list)
    inherit_path: bool = True
    host_environ: Mapping[str, str] | None = None

    def get_path_string(self) -> str:
        entries = [str(entry) for entry in self.path_entries if str(entry)]
        if self.inherit_path:
            environ = self.host_environ if self.host_environ is not None else os.environ
            inherited = environ.get("PATH", "")
            entries.extend(part for part in inherited.split(os.pathsep) if part)
        ordered: List[str] = []
        for entry in entries:
            if entry not in ordered:
                ordered.append(entry)
        return os.pathsep.join(ordered)

    def apply_to_environment(self, env: MutableMapping[str, str]) -> None:
        env.update(self.variables)
        path = self.get_path_string()
        if path:
            env["PATH"] = path

    @classmethod
    def for_host(
        cls,
        probe: "PlatformProbe",
        *,
        variables: Mapping[str, str] | None = None,
        path_entries: Sequence[str | Path] = (),
        cc: Path | None = None,
        cxx: Path | None = None,
    ) -> "StaticBuildEnvironment":
        """Assemble an environment from platform facts.

        On macOS the SDK root, deployment target and ``-arch`` flag are
        recorded; other hosts only get the explicit values.
        """

        environment: Dict[str, str] = dict(variables or {})
        if cc is not None:
            environment["CC"] = str(cc)
        if cxx is not None:
            environment["CXX"] = str(cxx)

        if probe.host.is_macos:
            info = probe.info()
            environment["SDKROOT"] = str(info.sdk_path)
            environment["MACOSX_DEPLOYMENT_TARGET"] = info.os_version_short
            if info.arch_flag:
                for key in ("CFLAGS", "CXXFLAGS", "LDFLAGS"):
                    _append_flag(environment, key, info.arch_flag)

        return cls(variables=environment, path_entries=[str(entry) for entry in path_entries])


def _append_flag(container: Dict[str, str], key: str, flag: str) -> None:
    existing = container.get(key)
    if existing:
        if flag in existing:
            return
        container[key] = f"{existing} {flag}".strip()
    else:
        container[key] = flag


__all__ = ["BuildEnvironment", "HostPlatform", "StaticBuildEnvironment"]

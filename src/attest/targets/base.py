"""Target adapter abstraction.

A target is the system being audited. Every adapter answers the same
questions (commands, files, packages, processes, platform) so controls never
care whether they run against the local host, a container or a recording.
"""

from __future__ import annotations

import re
import shlex
from typing import Optional, Protocol, runtime_checkable

from ..models.target import CommandResult, FileInfo, PackageInfo, PlatformInfo, ProcessInfo

RELEASE_FAMILIES: dict[str, str] = {
    "debian": "debian",
    "ubuntu": "debian",
    "linuxmint": "debian",
    "raspbian": "debian",
    "rhel": "redhat",
    "centos": "redhat",
    "fedora": "redhat",
    "rocky": "redhat",
    "almalinux": "redhat",
    "amzn": "redhat",
    "ol": "redhat",
    "sles": "suse",
    "opensuse-leap": "suse",
    "alpine": "alpine",
    "arch": "arch",
}


@runtime_checkable
class Target(Protocol):
    """Protocol that all target adapters must implement."""

    uri: str

    def run_command(self, command: str, timeout: Optional[int] = None) -> CommandResult: ...

    def file_info(self, path: str) -> FileInfo: ...

    def read_file(self, path: str) -> Optional[str]: ...

    def package_info(self, name: str) -> PackageInfo: ...

    def processes(self, pattern: Optional[str] = None) -> list[ProcessInfo]: ...

    def platform(self) -> PlatformInfo: ...


def parse_os_release(content: str) -> dict[str, str]:
    """Parse /etc/os-release KEY=value lines."""
    values: dict[str, str] = {}
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        values[key.strip()] = value.strip().strip('"').strip("'")
    return values


def parse_ps_output(output: str) -> list[ProcessInfo]:
    """Parse ``ps -eo pid=,user=,args=`` output."""
    entries: list[ProcessInfo] = []
    for line in output.splitlines():
        parts = line.strip().split(None, 2)
        if len(parts) < 2 or not parts[0].isdigit():
            continue
        entries.append(ProcessInfo(
            pid=int(parts[0]),
            user=parts[1],
            command=parts[2] if len(parts) > 2 else "",
        ))
    return entries


class BaseTarget:
    """Base class deriving package, process and platform facts from commands."""

    uri: str = "base://"

    def __init__(self, command_timeout: int = 60):
        self.command_timeout = command_timeout
        self._platform: Optional[PlatformInfo] = None
        self._package_manager: Optional[str] = None

    def run_command(self, command: str, timeout: Optional[int] = None) -> CommandResult:
        raise NotImplementedError

    def file_info(self, path: str) -> FileInfo:
        raise NotImplementedError

    def read_file(self, path: str) -> Optional[str]:
        raise NotImplementedError

    def _command_exists(self, tool: str) -> bool:
        return self.run_command(f"command -v {shlex.quote(tool)}").exit_status == 0

    def _detect_package_manager(self) -> str:
        if self._package_manager is None:
            self._package_manager = next(
                (tool for tool in ("dpkg-query", "rpm", "apk") if self._command_exists(tool)),
                "",
            )
        return self._package_manager

    def package_info(self, name: str) -> PackageInfo:
        manager = self._detect_package_manager()
        quoted = shlex.quote(name)

        if manager == "dpkg-query":
            result = self.run_command(f"dpkg-query -W -f='${{Status}} ${{Version}}' {quoted}")
            if result.exit_status == 0 and "install ok installed" in result.stdout:
                return PackageInfo(name=name, installed=True, version=result.stdout.split()[-1])
        elif manager == "rpm":
            result = self.run_command(f"rpm -q --queryformat '%{{VERSION}}-%{{RELEASE}}' {quoted}")
            if result.exit_status == 0:
                return PackageInfo(name=name, installed=True, version=result.stdout.strip() or None)
        elif manager == "apk":
            result = self.run_command(f"apk info -e {quoted}")
            if result.exit_status == 0:
                return PackageInfo(name=name, installed=True)

        return PackageInfo(name=name)

    def processes(self, pattern: Optional[str] = None) -> list[ProcessInfo]:
        result = self.run_command("ps -eo pid=,user=,args=")
        entries = parse_ps_output(result.stdout)
        if pattern:
            regex = re.compile(pattern)
            entries = [p for p in entries if regex.search(p.command)]
        return entries

    def platform(self) -> PlatformInfo:
        if self._platform is None:
            self._platform = self._detect_platform()
        return self._platform

    def _detect_platform(self) -> PlatformInfo:
        arch = self.run_command("uname -m").stdout.strip()
        content = self.read_file("/etc/os-release")
        if content:
            release = parse_os_release(content)
            name = release.get("ID", "linux").lower()
            family = RELEASE_FAMILIES.get(name)
            if family is None:
                like = release.get("ID_LIKE", "").lower().split()
                family = next((RELEASE_FAMILIES[n] for n in like if n in RELEASE_FAMILIES), "linux")
            return PlatformInfo(name=name, family=family, release=release.get("VERSION_ID", ""), arch=arch)

        kernel = self.run_command("uname -s").stdout.strip().lower()
        if kernel == "darwin":
            release = self.run_command("sw_vers -productVersion").stdout.strip()
            return PlatformInfo(name="mac_os_x", family="darwin", release=release, arch=arch)
        return PlatformInfo(name=kernel or "unknown", family=kernel or "unknown", arch=arch)


def get_target(uri: Optional[str] = None, config: Optional[dict] = None) -> BaseTarget:
    """Factory function to create the target adapter for a URI."""
    config = config or {}
    uri = uri or config.get("target", {}).get("uri") or "local://"
    timeout = int(config.get("runner", {}).get("command_timeout", 60))

    scheme, sep, rest = uri.partition("://")
    if not sep:
        scheme, rest = uri, ""

    if scheme == "local":
        from .local import LocalTarget
        return LocalTarget(command_timeout=timeout)
    elif scheme == "docker":
        from .shell import ShellTarget
        return ShellTarget.docker(rest, command_timeout=timeout)
    elif scheme == "ssh":
        from .shell import ShellTarget
        return ShellTarget.ssh(rest, command_timeout=timeout)
    elif scheme == "fixture":
        from .fixture import FixtureTarget
        return FixtureTarget.from_file(rest)
    else:
        raise ValueError(f"Unknown target scheme: {scheme}")

"""Shell-transport targets: every fact is derived from commands run through
``docker exec`` or the ``ssh`` client.
"""

from __future__ import annotations

import shlex
import subprocess
from typing import Optional

from ..models.target import CommandResult, FileInfo
from .base import BaseTarget

STAT_TYPES = {
    "regular file": "file",
    "regular empty file": "file",
    "directory": "directory",
    "symbolic link": "symlink",
}


class ShellTarget(BaseTarget):
    def __init__(self, uri: str, transport: list[str], command_timeout: int = 60):
        super().__init__(command_timeout=command_timeout)
        self.uri = uri
        self.transport = transport

    @classmethod
    def docker(cls, container: str, command_timeout: int = 60) -> "ShellTarget":
        if not container:
            raise ValueError("docker target requires a container name: docker://<container>")
        return cls(
            f"docker://{container}",
            ["docker", "exec", container, "sh", "-c"],
            command_timeout=command_timeout,
        )

    @classmethod
    def ssh(cls, destination: str, command_timeout: int = 60) -> "ShellTarget":
        """Build an ssh target from ``[user@]host[:port]``."""
        if not destination:
            raise ValueError("ssh target requires a host: ssh://[user@]host[:port]")
        host, port = destination, None
        if ":" in destination.rsplit("@", 1)[-1]:
            host, _, port = destination.rpartition(":")
        transport = ["ssh", "-o", "BatchMode=yes"]
        if port:
            transport += ["-p", port]
        transport.append(host)
        return cls(f"ssh://{destination}", transport, command_timeout=command_timeout)

    def run_command(self, command: str, timeout: Optional[int] = None) -> CommandResult:
        timeout = timeout or self.command_timeout
        try:
            result = subprocess.run(
                self.transport + [command],
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            return CommandResult(command=command, stderr=f"timed out after {timeout}s", exit_status=-1)
        except OSError as e:
            return CommandResult(command=command, stderr=str(e), exit_status=-1)

        return CommandResult(
            command=command,
            stdout=result.stdout,
            stderr=result.stderr,
            exit_status=result.returncode,
        )

    def file_info(self, path: str) -> FileInfo:
        quoted = shlex.quote(path)
        result = self.run_command(f"stat -c '%F|%a|%U|%G|%s' -- {quoted}")
        if result.exit_status != 0:
            return FileInfo(path=path)

        kind, mode, owner, group, size = result.stdout.strip().split("|")
        info = FileInfo(
            path=path,
            exists=True,
            type=STAT_TYPES.get(kind, "other"),
            mode=int(mode, 8),
            owner=owner,
            group=group,
            size=int(size),
        )
        if info.type == "symlink":
            info.link_target = self.run_command(f"readlink -- {quoted}").stdout.strip() or None
        return info

    def read_file(self, path: str) -> Optional[str]:
        quoted = shlex.quote(path)
        result = self.run_command(f"test -f {quoted} && cat -- {quoted}")
        if result.exit_status != 0:
            return None
        return result.stdout

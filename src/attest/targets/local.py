"""Local host target: facts come straight from this machine."""

from __future__ import annotations

import grp
import os
import platform as host_platform
import pwd
import stat
import subprocess
from pathlib import Path
from typing import Optional

from ..models.target import CommandResult, FileInfo, PlatformInfo
from .base import BaseTarget


def _file_type(mode: int) -> str:
    if stat.S_ISLNK(mode):
        return "symlink"
    if stat.S_ISDIR(mode):
        return "directory"
    if stat.S_ISREG(mode):
        return "file"
    return "other"


def _owner_name(uid: int) -> str:
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return str(uid)


def _group_name(gid: int) -> str:
    try:
        return grp.getgrgid(gid).gr_name
    except KeyError:
        return str(gid)


class LocalTarget(BaseTarget):
    uri = "local://"

    def run_command(self, command: str, timeout: Optional[int] = None) -> CommandResult:
        timeout = timeout or self.command_timeout
        try:
            result = subprocess.run(
                command,
                shell=True,
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
        p = Path(path)
        try:
            st = p.lstat()
        except FileNotFoundError:
            return FileInfo(path=path)

        info = FileInfo(
            path=path,
            exists=True,
            type=_file_type(st.st_mode),
            mode=stat.S_IMODE(st.st_mode),
            owner=_owner_name(st.st_uid),
            group=_group_name(st.st_gid),
            size=st.st_size,
        )
        if info.type == "symlink":
            info.link_target = os.readlink(p)
        return info

    def read_file(self, path: str) -> Optional[str]:
        p = Path(path)
        if not p.is_file():
            return None
        return p.read_text(encoding="utf-8", errors="replace")

    def _detect_platform(self) -> PlatformInfo:
        detected = super()._detect_platform()
        if not detected.arch:
            detected.arch = host_platform.machine()
        return detected

"""Target fact data models."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class CommandResult(BaseModel):
    command: str
    stdout: str = ""
    stderr: str = ""
    exit_status: int = 0


class FileInfo(BaseModel):
    path: str
    exists: bool = False
    type: Optional[str] = None
    mode: Optional[int] = None
    owner: Optional[str] = None
    group: Optional[str] = None
    size: Optional[int] = None
    link_target: Optional[str] = None


class PackageInfo(BaseModel):
    name: str
    installed: bool = False
    version: Optional[str] = None


class ProcessInfo(BaseModel):
    pid: int
    user: str = ""
    command: str = ""


class PlatformInfo(BaseModel):
    name: str = "unknown"
    family: str = "unknown"
    release: str = ""
    arch: str = ""


FAMILY_PARENTS: dict[str, str] = {
    "debian": "linux",
    "redhat": "linux",
    "suse": "linux",
    "alpine": "linux",
    "arch": "linux",
    "linux": "unix",
    "darwin": "bsd",
    "freebsd": "bsd",
    "bsd": "unix",
}


def family_chain(family: str) -> list[str]:
    """Return the family followed by its ancestors, e.g. debian, linux, unix."""
    chain = [family]
    while chain[-1] in FAMILY_PARENTS:
        chain.append(FAMILY_PARENTS[chain[-1]])
    return chain

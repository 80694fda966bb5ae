"""Author-facing resources wrapping target facts.

Resources fetch lazily and cache what they fetched, so a control that reads
``file.mode`` twice queries the target once.
"""

from __future__ import annotations

from functools import cached_property
from typing import Optional

import httpx

from ..models.target import CommandResult, FileInfo, PackageInfo, ProcessInfo
from ..targets.base import Target


class File:
    def __init__(self, target: Target, path: str):
        self.target = target
        self.path = path

    def __str__(self) -> str:
        return f"File {self.path}"

    @cached_property
    def info(self) -> FileInfo:
        return self.target.file_info(self.path)

    @property
    def exists(self) -> bool:
        return self.info.exists

    @property
    def is_file(self) -> bool:
        return self.info.type == "file"

    @property
    def is_directory(self) -> bool:
        return self.info.type == "directory"

    @property
    def is_symlink(self) -> bool:
        return self.info.type == "symlink"

    @property
    def mode(self) -> Optional[int]:
        return self.info.mode

    @property
    def owner(self) -> Optional[str]:
        return self.info.owner

    @property
    def group(self) -> Optional[str]:
        return self.info.group

    @property
    def size(self) -> Optional[int]:
        return self.info.size

    @property
    def link_target(self) -> Optional[str]:
        return self.info.link_target

    @cached_property
    def content(self) -> Optional[str]:
        return self.target.read_file(self.path)

    @property
    def lines(self) -> list[str]:
        return (self.content or "").splitlines()

    def more_permissive_than(self, max_mode: int | str) -> bool:
        """True if any permission bit is set that ``max_mode`` does not allow."""
        if self.mode is None:
            return False
        if isinstance(max_mode, str):
            max_mode = int(max_mode, 8)
        return bool(self.mode & ~max_mode & 0o7777)


class Package:
    def __init__(self, target: Target, name: str):
        self.target = target
        self.name = name

    def __str__(self) -> str:
        return f"Package {self.name}"

    @cached_property
    def info(self) -> PackageInfo:
        return self.target.package_info(self.name)

    @property
    def installed(self) -> bool:
        return self.info.installed

    @property
    def version(self) -> Optional[str]:
        return self.info.version


class Processes:
    def __init__(self, target: Target, pattern: str):
        self.target = target
        self.pattern = pattern

    def __str__(self) -> str:
        return f"Processes {self.pattern}"

    @cached_property
    def entries(self) -> list[ProcessInfo]:
        return self.target.processes(self.pattern)

    @property
    def running(self) -> bool:
        return len(self.entries) > 0

    @property
    def pids(self) -> list[int]:
        return [p.pid for p in self.entries]

    @property
    def users(self) -> list[str]:
        return [p.user for p in self.entries]

    @property
    def commands(self) -> list[str]:
        return [p.command for p in self.entries]


class Command:
    def __init__(self, target: Target, command: str, timeout: Optional[int] = None):
        self.target = target
        self.command = command
        self.timeout = timeout

    def __str__(self) -> str:
        return f"Command: `{self.command}`"

    @cached_property
    def result(self) -> CommandResult:
        return self.target.run_command(self.command, timeout=self.timeout)

    @property
    def stdout(self) -> str:
        return self.result.stdout

    @property
    def stderr(self) -> str:
        return self.result.stderr

    @property
    def exit_status(self) -> int:
        return self.result.exit_status

    @property
    def succeeded(self) -> bool:
        return self.result.exit_status == 0


class Http:
    """HTTP request issued from the machine running attest."""

    def __init__(
        self,
        url: str,
        method: str = "GET",
        headers: Optional[dict] = None,
        timeout: float = 30,
        verify: bool = True,
        client: Optional[httpx.Client] = None,
    ):
        self.url = url
        self.method = method.upper()
        self.request_headers = headers or {}
        self.timeout = timeout
        self.verify = verify
        self._client = client

    def __str__(self) -> str:
        return f"HTTP {self.method} {self.url}"

    @cached_property
    def response(self) -> httpx.Response:
        if self._client is not None:
            return self._client.request(self.method, self.url, headers=self.request_headers, timeout=self.timeout)
        with httpx.Client(verify=self.verify) as client:
            return client.request(self.method, self.url, headers=self.request_headers, timeout=self.timeout)

    @property
    def status(self) -> int:
        return self.response.status_code

    @property
    def body(self) -> str:
        return self.response.text

    @property
    def headers(self) -> dict[str, str]:
        return dict(self.response.headers)

    def json(self):
        return self.response.json()

"""Fixture target: facts served from a YAML recording.

Used for dry runs and for testing profiles without a live system::

    platform: {name: ubuntu, family: debian, release: "22.04"}
    files:
      /etc/ssh/sshd_config: {mode: "0600", owner: root, content: "PermitRootLogin no\\n"}
    packages:
      openssh-server: "1:8.9p1"
    processes:
      - {pid: 1, user: root, command: /sbin/init}
    commands:
      "sysctl -n net.ipv4.ip_forward": {stdout: "0\\n"}
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

import yaml

from ..models.target import CommandResult, FileInfo, PackageInfo, PlatformInfo, ProcessInfo
from .base import BaseTarget


def _parse_mode(value) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, int):
        return value
    return int(str(value), 8)


class FixtureTarget(BaseTarget):
    def __init__(self, facts: Optional[dict] = None, uri: str = "fixture://"):
        super().__init__()
        self.uri = uri
        self.facts = facts or {}

    @classmethod
    def from_file(cls, path: str) -> "FixtureTarget":
        fixture_path = Path(path)
        if not fixture_path.is_file():
            raise ValueError(f"Fixture file not found: {path}")
        try:
            facts = yaml.safe_load(fixture_path.read_text(encoding="utf-8-sig")) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Fixture file {path} is not valid YAML: {e}") from e
        return cls(facts, uri=f"fixture://{path}")

    def run_command(self, command: str, timeout: Optional[int] = None) -> CommandResult:
        recorded = (self.facts.get("commands") or {}).get(command)
        if recorded is None:
            return CommandResult(command=command, stderr=f"sh: {command}: command not found", exit_status=127)
        if isinstance(recorded, str):
            return CommandResult(command=command, stdout=recorded)
        return CommandResult(
            command=command,
            stdout=recorded.get("stdout", ""),
            stderr=recorded.get("stderr", ""),
            exit_status=int(recorded.get("exit_status", 0)),
        )

    def file_info(self, path: str) -> FileInfo:
        entry = (self.facts.get("files") or {}).get(path)
        if entry is None:
            return FileInfo(path=path)
        content = entry.get("content")
        return FileInfo(
            path=path,
            exists=True,
            type=entry.get("type", "file"),
            mode=_parse_mode(entry.get("mode")),
            owner=entry.get("owner"),
            group=entry.get("group"),
            size=entry.get("size", len(content.encode("utf-8")) if content is not None else None),
            link_target=entry.get("link_target"),
        )

    def read_file(self, path: str) -> Optional[str]:
        entry = (self.facts.get("files") or {}).get(path)
        if entry is None or entry.get("type", "file") != "file":
            return None
        return entry.get("content", "")

    def package_info(self, name: str) -> PackageInfo:
        entry = (self.facts.get("packages") or {}).get(name)
        if entry is None:
            return PackageInfo(name=name)
        if isinstance(entry, dict):
            return PackageInfo(
                name=name,
                installed=bool(entry.get("installed", True)),
                version=entry.get("version"),
            )
        return PackageInfo(name=name, installed=True, version=str(entry))

    def processes(self, pattern: Optional[str] = None) -> list[ProcessInfo]:
        entries = [ProcessInfo(**p) for p in self.facts.get("processes") or []]
        if pattern:
            regex = re.compile(pattern)
            entries = [p for p in entries if regex.search(p.command)]
        return entries

    def _detect_platform(self) -> PlatformInfo:
        facts = self.facts.get("platform") or {}
        return PlatformInfo(**{key: str(value) for key, value in facts.items()})

"""Profile loading and control selection.

A profile is a directory laid out as::

    my-profile/
      profile.yaml        # name, title, version, supports, inputs
      controls/*.py       # @control-decorated functions, loaded in path order
"""

from __future__ import annotations

import importlib.util
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from ..models.profile import ProfileMetadata
from ..models.target import PlatformInfo, family_chain
from ..utils.sanitize import sanitize_error
from .dsl import ControlDefinition, get_definition


class ProfileLoadError(ValueError):
    """Raised when a profile cannot be loaded."""


@dataclass
class Profile:
    path: Path
    metadata: ProfileMetadata
    controls: list[ControlDefinition] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.metadata.name


def load_metadata(profile_path: Path) -> ProfileMetadata:
    """Load and validate profile.yaml."""
    meta_path = profile_path / "profile.yaml"
    if not meta_path.is_file():
        raise ProfileLoadError(f"No profile.yaml in {profile_path}")
    try:
        data = yaml.safe_load(meta_path.read_text(encoding="utf-8-sig")) or {}
    except yaml.YAMLError as e:
        raise ProfileLoadError(f"profile.yaml is not valid YAML: {e}") from e
    if not isinstance(data, dict) or not data.get("name"):
        raise ProfileLoadError("profile.yaml must define a name")
    try:
        return ProfileMetadata(**data)
    except ValidationError as e:
        raise ProfileLoadError(f"profile.yaml is invalid: {e}") from e


def _load_control_file(path: Path, module_name: str) -> list[ControlDefinition]:
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ProfileLoadError(f"Cannot load control file {path.name}")
    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        raise ProfileLoadError(
            f"Error loading {path.name}: {type(e).__name__}: {sanitize_error(str(e))}"
        ) from e

    definitions: list[ControlDefinition] = []
    for obj in vars(module).values():
        definition = get_definition(obj)
        # Skip controls imported from another control file
        if definition is not None and getattr(obj, "__module__", None) == module_name:
            definitions.append(definition)
    return definitions


def load_profile(profile_path: Path) -> Profile:
    """Load a profile directory: metadata plus every control, in file order."""
    profile_path = Path(profile_path)
    if not profile_path.is_dir():
        raise ProfileLoadError(f"Profile path is not a directory: {profile_path}")

    metadata = load_metadata(profile_path)
    controls_dir = profile_path / "controls"
    controls: list[ControlDefinition] = []
    seen: dict[str, str] = {}

    slug = re.sub(r"\W", "_", metadata.name)
    for control_file in sorted(controls_dir.glob("**/*.py")) if controls_dir.is_dir() else []:
        relative = control_file.relative_to(controls_dir)
        module_name = f"attest_profile_{slug}__" + "__".join(relative.with_suffix("").parts)
        for definition in _load_control_file(control_file, module_name):
            if definition.id in seen:
                raise ProfileLoadError(
                    f"Duplicate control id '{definition.id}' in {relative.as_posix()} "
                    f"(first defined in {seen[definition.id]})"
                )
            seen[definition.id] = relative.as_posix()
            controls.append(definition)

    return Profile(path=profile_path, metadata=metadata, controls=controls)


def _pattern_regex(pattern: str) -> Optional[re.Pattern]:
    """Compile a /regex/ pattern, or return None for other patterns."""
    if not (len(pattern) > 1 and pattern.startswith("/") and pattern.endswith("/")):
        return None
    try:
        return re.compile(pattern[1:-1])
    except re.error as e:
        raise ValueError(f"Invalid control pattern '{pattern}': {e}") from e


def test_control_pattern(control_id: str, pattern: str) -> bool:
    """Test if a control id matches a pattern.

    Supports exact ids, wildcard patterns (e.g., sshd-*) and /regex/.
    Raises ValueError for an invalid /regex/.
    """
    regex = _pattern_regex(pattern)
    if regex is not None:
        return regex.search(control_id) is not None
    if "*" in pattern:
        wildcard = "^" + re.escape(pattern).replace(r"\*", ".*") + "$"
        return bool(re.match(wildcard, control_id))
    return control_id == pattern


def select_controls(
    controls: list[ControlDefinition],
    patterns: Optional[list[str]] = None,
    tags: Optional[list[str]] = None,
) -> list[ControlDefinition]:
    """Filter controls by id patterns and tag selectors, keeping profile order."""
    # Reject a bad /regex/ even when there is nothing to match it against
    for pattern in patterns or []:
        _pattern_regex(pattern)

    selected = controls
    if patterns:
        selected = [c for c in selected if any(test_control_pattern(c.id, p) for p in patterns)]
    if tags:
        selected = [c for c in selected if any(c.has_tag(t) for t in tags)]
    return selected


def supports_platform(metadata: ProfileMetadata, platform: PlatformInfo) -> bool:
    """Check the profile's supports list against the target platform."""
    if not metadata.supports:
        return True

    families = family_chain(platform.family)
    for support in metadata.supports:
        if support.platform_family and support.platform_family not in families:
            continue
        if support.platform_name and support.platform_name != platform.name:
            continue
        if support.release and not platform.release.startswith(support.release.rstrip("*").rstrip(".")):
            continue
        return True
    return False

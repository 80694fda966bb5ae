"""Main run orchestrator: profile + target in, classified report out."""

from __future__ import annotations

import time
from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.console import Console

from .. import __version__
from ..formatters.console import print_control_progress, print_report
from ..formatters.json_report import export_json_report, load_json_report
from ..formatters.junit import export_junit_results
from ..formatters.markdown import generate_markdown_report
from ..models.report import Report, RunMetadata
from ..models.result import ControlResult
from ..targets.base import get_target
from .aggregator import build_report
from .classifier import classify, classify_all
from .config import get_effective_config
from .impact import normalize_impact
from .inputs import InputError, check_input_type, parse_input_assignments, resolve_inputs
from .profile import ProfileLoadError, load_profile, select_controls, supports_platform
from .runner import run_controls
from .waivers import load_waivers

console = Console()

REPORTERS = {
    "cli": None,
    "json": "results.json",
    "junit": "results.xml",
    "markdown": "report.md",
}

EXAMPLE_CONTROL = '''"""Example controls. Replace with your own."""

from attest import control
from attest.core.matchers import cmp, exist


@control(
    "example-01",
    title="/etc/passwd is not writable by others",
    impact="medium",
    tags={"nist": ["AC-3"]},
)
def passwd_permissions(ctx):
    passwd = ctx.file("/etc/passwd")
    with ctx.describe(passwd):
        ctx.expect(passwd, "file").to(exist())
        ctx.expect(passwd.owner, "owner").to(cmp("root"))
        ctx.expect(passwd.more_permissive_than("0644"), "more permissive than 0644").to(cmp(False))


@control("example-02", title="Access reviews are documented", impact="low")
def access_review(ctx):
    ctx.skip("Manual review: confirm quarterly access reviews are recorded.")
'''


def parse_reporters(specs: list[str], output_dir: Path) -> list[tuple[str, Optional[Path]]]:
    """Parse ``name`` or ``name:path`` reporter specs."""
    parsed: list[tuple[str, Optional[Path]]] = []
    for spec in specs:
        name, sep, path = spec.partition(":")
        name = name.strip().lower()
        if name not in REPORTERS:
            raise ValueError(f"Unknown reporter: {name}")
        default = REPORTERS[name]
        if sep and path:
            parsed.append((name, Path(path)))
        elif default:
            parsed.append((name, output_dir / default))
        else:
            parsed.append((name, None))
    return parsed


def write_reports(report: Report, reporters: list[tuple[str, Optional[Path]]]) -> None:
    for name, path in reporters:
        if name == "cli":
            print_report(report, console)
        elif name == "json":
            export_json_report(report, path)
            console.print(f"  [green]OK[/green] JSON report: {path}")
        elif name == "junit":
            junit_result = export_junit_results(report, path)
            console.print(
                f"  [green]OK[/green] JUnit XML: {junit_result['total_tests']} tests, "
                f"{junit_result['failures']} failures, {junit_result['errors']} errors"
            )
        elif name == "markdown":
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(generate_markdown_report(report), encoding="utf-8")
            console.print(f"  [green]OK[/green] Markdown report: {path}")


def initialize_profile(name: str, directory: Path) -> Optional[Path]:
    """Scaffold a new profile directory."""
    profile_path = directory / name
    if (profile_path / "profile.yaml").exists():
        console.print(f"  [yellow]WARN[/yellow] {profile_path} already contains a profile")
        return None

    (profile_path / "controls").mkdir(parents=True, exist_ok=True)
    (profile_path / ".attest").mkdir(exist_ok=True)

    (profile_path / "profile.yaml").write_text(
        f"name: {name}\n"
        f"title: {name}\n"
        "version: 0.1.0\n"
        "maintainer: \"\"\n"
        "summary: \"\"\n"
        "supports:\n"
        "  - platform-family: unix\n"
        "inputs: []\n",
        encoding="utf-8",
    )
    (profile_path / "controls" / "example.py").write_text(EXAMPLE_CONTROL, encoding="utf-8")
    (profile_path / ".attest" / "config.yaml").write_text(
        "# attest runner configuration for this profile\n"
        f"attest_version: \"{__version__}\"\n"
        "\n"
        "target:\n"
        "  uri: local://\n"
        "\n"
        "output:\n"
        "  reporters: [cli]\n",
        encoding="utf-8",
    )

    console.print(f"  [green]Initialized[/green] profile {name} in {profile_path}")
    return profile_path


def check_profile(profile_path: Path) -> int:
    """Load a profile and report problems without running it. Returns exit code."""
    try:
        profile = load_profile(Path(profile_path))
    except ProfileLoadError as e:
        console.print(f"  [red]ERROR[/red] {e}")
        return 1

    errors: list[str] = []
    for definition in profile.controls:
        if callable(definition.impact):
            continue
        try:
            normalize_impact(definition.impact)
        except ValueError as e:
            errors.append(f"{definition.id}: {e}")

    for input_def in profile.metadata.inputs:
        if input_def.value is None:
            continue
        try:
            check_input_type(input_def, input_def.value)
        except InputError as e:
            errors.append(str(e))

    console.print(f"  Profile: [white]{profile.metadata.title or profile.name}[/white] v{profile.metadata.version}")
    console.print(f"  Controls: [white]{len(profile.controls)}[/white]")
    console.print(f"  Inputs:   [white]{len(profile.metadata.inputs)}[/white]")
    if not profile.controls:
        console.print("  [yellow]WARN[/yellow] Profile has no controls")

    for error in errors:
        console.print(f"  [red]ERROR[/red] {error}")
    if errors:
        return 1

    console.print("  [green]OK[/green] Profile is valid")
    return 0


def run_profile(
    profile_path: Path,
    target_uri: Optional[str] = None,
    reporters: Optional[list[str]] = None,
    input_values: Optional[list[str]] = None,
    input_files: Optional[list[str]] = None,
    waiver_file: Optional[str] = None,
    controls: Optional[list[str]] = None,
    tags: Optional[list[str]] = None,
    command_timeout: Optional[int] = None,
) -> int:
    """Main run orchestrator. Returns exit code."""
    start_time = time.time()

    profile_path = Path(profile_path).resolve()
    if not profile_path.exists():
        console.print(f"  [red]ERROR[/red] Profile path does not exist: {profile_path}")
        return 1

    cli_overrides: dict = {}
    if target_uri:
        cli_overrides.setdefault("target", {})["uri"] = target_uri
    if command_timeout:
        cli_overrides.setdefault("runner", {})["command_timeout"] = command_timeout
    if reporters:
        cli_overrides.setdefault("output", {})["reporters"] = reporters
    if waiver_file:
        cli_overrides.setdefault("waivers", {})["file"] = waiver_file

    try:
        config = get_effective_config(profile_path, cli_overrides=cli_overrides or None)
        profile = load_profile(profile_path)
        output_dir = Path(config["output"].get("directory") or "attest-results")
        reporter_list = parse_reporters(config["output"].get("reporters") or ["cli"], output_dir)

        inputs, secrets = resolve_inputs(
            profile.metadata.inputs,
            config_values=config.get("inputs", {}).get("values"),
            input_files=[Path(f) for f in (config.get("inputs", {}).get("files") or []) + (input_files or [])],
            cli_values=parse_input_assignments(input_values),
        )

        waiver_path = config.get("waivers", {}).get("file")
        waivers = load_waivers(Path(waiver_path) if waiver_path else None)
        selected = select_controls(profile.controls, controls, tags)

        target = get_target(config["target"].get("uri"), config)
        platform = target.platform()
    except ValueError as e:
        # ProfileLoadError and InputError are ValueErrors
        console.print(f"  [red]ERROR[/red] {e}")
        return 1

    skip_reason = None
    if not supports_platform(profile.metadata, platform):
        skip_reason = f"This profile does not support {platform.name} {platform.release} ({platform.family})"
        console.print(f"  [yellow]WARN[/yellow] {skip_reason}")

    # Banner
    console.print()
    console.print(f"  [bold cyan]ATTEST[/bold cyan] v{__version__}")
    console.print(f"  Profile:  [white]{profile.metadata.title or profile.name}[/white] v{profile.metadata.version}")
    console.print(f"  Target:   [white]{target.uri}[/white] ({platform.name} {platform.release})")
    console.print(f"  Controls: [white]{len(selected)}[/white] of {len(profile.controls)}")
    if waivers:
        console.print(f"  Waivers:  [white]{len(waivers)}[/white]")
    console.print()

    if not selected:
        console.print("  [yellow]WARN[/yellow] No controls selected")

    def _progress(result: ControlResult) -> None:
        print_control_progress(console, result, classify(result).outcome)

    results = run_controls(
        selected,
        target,
        inputs=inputs,
        secrets=secrets,
        waivers=waivers,
        skip_reason=skip_reason,
        on_result=_progress,
    )

    run = RunMetadata(
        id=datetime.now().strftime("%Y%m%dT%H%M%S"),
        timestamp=datetime.now(),
        target=target.uri,
        platform=platform,
        profile_name=profile.name,
        profile_title=profile.metadata.title,
        profile_version=profile.metadata.version,
        duration_seconds=round(time.time() - start_time, 2),
        attest_version=__version__,
    )
    report = build_report(classify_all(results), run, config.get("ci", {}).get("exit_codes"))

    write_reports(report, reporter_list)

    console.print()
    console.print(f"  Exit code: {report.exit_code}")
    return report.exit_code


def render_report(results_path: Path, reporters: list[str]) -> int:
    """Re-render a saved JSON report with other reporters."""
    try:
        report = load_json_report(Path(results_path))
        reporter_list = parse_reporters(reporters, Path(results_path).parent)
    except ValueError as e:
        # pydantic ValidationError is a ValueError
        console.print(f"  [red]ERROR[/red] {e}")
        return 1
    write_reports(report, reporter_list)
    return report.exit_code

"""attest command line: run, check and scaffold compliance profiles."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from .. import __version__


@click.group()
@click.version_option(__version__, prog_name="attest")
def attest_cli() -> None:
    """attest - run compliance profiles against a target."""


@attest_cli.command("exec")
@click.argument("profile", type=click.Path(exists=True, file_okay=False))
@click.option("--target", "-t", type=str, help="Target URI: local://, docker://NAME, ssh://[USER@]HOST[:PORT], fixture://FILE")
@click.option("--reporter", "-r", "reporters", multiple=True, help="Reporter NAME[:PATH] (cli, json, junit, markdown)")
@click.option("--input", "-i", "inputs", multiple=True, help="Input override NAME=VALUE")
@click.option("--input-file", "input_files", multiple=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--waiver-file", type=click.Path(exists=True, dir_okay=False))
@click.option("--controls", "-c", multiple=True, help="Control id, wildcard (sshd-*) or /regex/")
@click.option("--tags", multiple=True, help="Tag selector KEY or KEY=VALUE")
@click.option("--command-timeout", type=int, help="Timeout in seconds for target commands")
def exec_command(
    profile: str,
    target: str | None,
    reporters: tuple[str, ...],
    inputs: tuple[str, ...],
    input_files: tuple[str, ...],
    waiver_file: str | None,
    controls: tuple[str, ...],
    tags: tuple[str, ...],
    command_timeout: int | None,
) -> None:
    """Run a profile against a target.

    Example: attest exec ./linux-baseline -t docker://web-1 -r cli -r json:out/results.json
    """
    from ..core.orchestrator import run_profile

    exit_code = run_profile(
        profile_path=Path(profile),
        target_uri=target,
        reporters=list(reporters) or None,
        input_values=list(inputs) or None,
        input_files=list(input_files) or None,
        waiver_file=waiver_file,
        controls=list(controls) or None,
        tags=list(tags) or None,
        command_timeout=command_timeout,
    )
    sys.exit(exit_code)


@attest_cli.command()
@click.argument("profile", type=click.Path(exists=True, file_okay=False))
def check(profile: str) -> None:
    """Load a profile and report problems without running it."""
    from ..core.orchestrator import check_profile

    sys.exit(check_profile(Path(profile)))


@attest_cli.command()
@click.argument("name")
@click.option("--dir", "-d", "directory", type=click.Path(file_okay=False), default=".", help="Parent directory")
def init(name: str, directory: str) -> None:
    """Scaffold a new profile.

    Example: attest init linux-baseline -d ./profiles
    """
    from ..core.orchestrator import initialize_profile

    created = initialize_profile(name, Path(directory))
    if created is None:
        sys.exit(1)


@attest_cli.command()
@click.argument("results", type=click.Path(exists=True, dir_okay=False))
@click.option("--reporter", "-r", "reporters", multiple=True, required=True, help="Reporter NAME[:PATH]")
def report(results: str, reporters: tuple[str, ...]) -> None:
    """Re-render a saved JSON report.

    Example: attest report attest-results/results.json -r markdown:report.md
    """
    from ..core.orchestrator import render_report

    sys.exit(render_report(Path(results), list(reporters)))


def main() -> None:
    attest_cli()


if __name__ == "__main__":
    main()

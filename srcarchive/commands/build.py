"""
Build command for srcarchive.

Produces "<project>-<tag>-src.tar.gz" (or "<project>-nightly-src.tar.gz"
for scheduled runs) containing the root repository, every submodule and
a ".tag" file, under one top-level directory.
"""

import click
import json
import sys
from typing import Optional

from ..cli_utils import standard_command, add_common_options
from ..config import load_config
from ..services import ReleaseService, ReleaseOptions


def _format_bytes(bytes_val: int) -> str:
    """Format bytes as human-readable string."""
    size: float = float(bytes_val)
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} PB"


@click.command('build')
@add_common_options('repo', 'project')
@click.option('--output-dir', '-o', type=click.Path(file_okay=False), default=None,
              help='Directory for the artifact (default: config, then current directory)')
@add_common_options('json', 'debug')
@standard_command
def build_handler(
    repo_path: str,
    project: Optional[str],
    output_dir: Optional[str],
    output_json: bool,
    debug: bool,
):
    """
    Build the source release tarball.

    The release tag comes from TAG_NAME, else `git describe --tags`,
    else a timestamp plus the short commit id. BUILD_REASON=Schedule
    names the artifact "<project>-nightly-src.tar.gz".

    Examples:

    \b
        srcarchive build
        TAG_NAME=20240101-0101 srcarchive build -o dist
        BUILD_REASON=Schedule srcarchive build --json
    """
    config = load_config(repo_path)
    service = ReleaseService(config=config)
    options = ReleaseOptions(repo_path=repo_path, output_dir=output_dir, project=project)

    if output_json:
        _build_json(service, options)
    else:
        _build_pretty(service, options)


def _build_json(service: ReleaseService, options: ReleaseOptions):
    """JSONL output for build."""
    for progress in service.build(options):
        print(json.dumps({'progress': progress}), flush=True)

    result = service.last_result
    if result:
        for step in result.steps:
            print(json.dumps(step.to_dict()), flush=True)
        print(json.dumps(result.to_dict()), flush=True)


def _build_pretty(service: ReleaseService, options: ReleaseOptions):
    """Rich formatted output for build."""
    from rich.console import Console
    from rich.progress import Progress, SpinnerColumn, TextColumn
    from rich.table import Table

    console = Console(stderr=True)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Resolving release tag...", total=None)
        for message in service.build(options):
            progress.update(task, description=message)
            console.log(message)

    result = service.last_result
    if not result or not result.success:
        console.print("[red]Build failed - no result[/red]")
        sys.exit(1)

    table = Table(title="Source Archive", show_header=True)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Tag", result.name.tag)
    table.add_row("Prefix", f"{result.name.prefix}/")
    table.add_row("Submodules", str(len(result.submodules)))
    table.add_row("Entries", str(result.entries_written - result.entries_pruned))
    table.add_row("Pruned", str(result.entries_pruned))
    table.add_row("Size", _format_bytes(result.size_bytes))
    table.add_row("SHA-256", result.sha256 or "")

    console.print(table)
    console.print(f"\n[bold green]✓[/bold green] Wrote {result.artifact}")

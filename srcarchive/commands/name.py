"""
Name command for srcarchive.

Prints the resolved tag and artifact name without building, for deploy
scripts that need to know which file the build produced.
"""

import click
import json
from typing import Optional

from ..cli_utils import standard_command, add_common_options
from ..config import load_config
from ..services import ReleaseService, ReleaseOptions


@click.command('name')
@add_common_options('repo', 'project', 'json', 'debug')
@click.option('--field', type=click.Choice(['tag', 'prefix', 'artifact']), default=None,
              help='Print only this value')
@standard_command
def name_handler(repo_path: str, project: Optional[str], output_json: bool, debug: bool, field: Optional[str]):
    """
    Show the release tag and artifact name.

    Examples:

    \b
        srcarchive name
        srcarchive name --field artifact
        BUILD_REASON=Schedule srcarchive name --json
    """
    config = load_config(repo_path)
    name = ReleaseService(config=config).resolve_name(
        ReleaseOptions(repo_path=repo_path, project=project)
    )

    if field:
        click.echo(name.to_dict()[field])
    elif output_json:
        print(json.dumps(name.to_dict()), flush=True)
    else:
        click.echo(f"tag:      {name.tag}")
        click.echo(f"prefix:   {name.prefix}/")
        click.echo(f"artifact: {name.artifact_name}")

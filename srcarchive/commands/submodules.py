"""
Submodules command for srcarchive.

Lists the submodules in the order their snapshots are appended.
"""

import click
import json

from ..cli_utils import standard_command, add_common_options
from ..config import load_config
from ..infra import GitClient
from ..services import SubmoduleService


@click.command('submodules')
@add_common_options('repo', 'json', 'debug')
@standard_command
def submodules_handler(repo_path: str, output_json: bool, debug: bool):
    """
    List submodules in processing order.

    Examples:

    \b
        srcarchive submodules
        srcarchive submodules --json
    """
    config = load_config(repo_path)
    git = GitClient(timeout=config['git']['timeout'])
    entries = SubmoduleService(git_client=git, config=config).enumerate(repo_path)

    for entry in entries:
        if output_json:
            print(json.dumps(entry.to_dict()), flush=True)
        else:
            click.echo(entry.path)

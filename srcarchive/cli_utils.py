"""
Common CLI utilities and decorators for consistent command behavior.
"""

import json
import sys
import click
from functools import wraps

from rich.console import Console

from .config import configure_logging
from .exceptions import ReleaseError
from .exit_codes import INTERRUPTED, get_exit_code_for_exception

err_console = Console(stderr=True)


def report_error(error: ReleaseError, output_json: bool) -> None:
    """Show the error classification and the failing step."""
    if output_json:
        error_obj = error.to_dict()
        error_obj['exit_code'] = error.exit_code
        print(json.dumps(error_obj, ensure_ascii=False), flush=True)
    else:
        err_console.print(
            f"[bold red]{error.kind}[/bold red] during [bold]{error.step}[/bold]: {error}",
            markup=True,
            highlight=False,
        )


def standard_command(func):
    """
    Decorator that provides standard CLI behavior:
    - --debug switches logging to DEBUG
    - ReleaseError is reported (rich or JSON) and mapped to its exit code
    - Ctrl+C exits with INTERRUPTED
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        configure_logging(kwargs.get('debug', False))
        output_json = kwargs.get('output_json', False)

        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            err_console.print("[yellow]Interrupted by user[/yellow]")
            sys.exit(INTERRUPTED)
        except click.ClickException:
            # Click exceptions already have their exit code
            raise
        except ReleaseError as e:
            report_error(e, output_json)
            sys.exit(get_exit_code_for_exception(e))

    return wrapper


# Standard options that every command shares
common_options = {
    'repo': click.option('--repo', 'repo_path', default='.', show_default=True,
                         type=click.Path(exists=True, file_okay=False),
                         help='Root repository'),
    'project': click.option('--project', default=None,
                            help='Project name (default: config, then root directory name)'),
    'json': click.option('--json', 'output_json', is_flag=True, help='Output as JSONL'),
    'debug': click.option('--debug', is_flag=True, help='Enable debug logging'),
}


def add_common_options(*option_names):
    """
    Decorator to add common options to a command.

    Example:
        @add_common_options('repo', 'json')
        def my_command(repo_path, output_json):
            ...
    """
    def decorator(func):
        for name in reversed(option_names):
            if name in common_options:
                func = common_options[name](func)
        return func
    return decorator

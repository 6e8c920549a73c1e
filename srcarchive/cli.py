#!/usr/bin/env python3

import click

from srcarchive.commands.build import build_handler
from srcarchive.commands.name import name_handler
from srcarchive.commands.submodules import submodules_handler


@click.group()
@click.version_option(package_name="srcarchive")
def cli():
    """srcarchive - Source release tarballs for repositories with submodules.

    Assembles the root repository and every submodule into one
    reproducible .tar.gz under a single top-level directory.
    """
    pass


cli.add_command(build_handler, name='build')
cli.add_command(name_handler, name='name')
cli.add_command(submodules_handler, name='submodules')


def main():
    cli()

if __name__ == "__main__":
    main()

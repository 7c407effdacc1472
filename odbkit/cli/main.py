"""Main CLI entry point for odbkit."""

import logging
import sys

import click
from colorama import init

from odbkit import __version__
from odbkit.cli.output import BANNER
from odbkit.cli.commands import (init_cmd, config_cmd, hash_object_cmd,
                                 cat_file_cmd, ls_tree_cmd, mktree_cmd,
                                 commit_tree_cmd)

# Initialize colorama for cross-platform colored output
init(autoreset=True)


def configure_logging(verbose: bool = False) -> None:
    """Send odbkit log events to stderr, hiding debug events unless verbose."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    logger = logging.getLogger("odbkit")
    logger.handlers = [handler]
    logger.propagate = False
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


class OdbkitGroup(click.Group):
    """Custom Group class to display banner before help."""

    def format_help(self, ctx, formatter):
        """Override to add banner before help text."""
        click.echo(BANNER)
        super().format_help(ctx, formatter)


@click.group(cls=OdbkitGroup)
@click.version_option(version=__version__)
@click.option('-v', '--verbose', is_flag=True, help='Log object database activity to stderr')
def cli(verbose):
    configure_logging(verbose)


# Register commands
cli.add_command(init_cmd)
cli.add_command(config_cmd)
cli.add_command(hash_object_cmd)
cli.add_command(cat_file_cmd)
cli.add_command(ls_tree_cmd)
cli.add_command(mktree_cmd)
cli.add_command(commit_tree_cmd)


def main():
    """Main entry point."""
    cli()


if __name__ == '__main__':
    main()

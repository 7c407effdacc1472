"""Initialize a new repository."""

import click
from pathlib import Path
from odbkit.core.repository import Repository
from odbkit.cli.output import success, error, info
from odbkit.errors import OdbError


@click.command('init')
@click.argument('path', default='.')
@click.option('--bare', is_flag=True, help='Create a bare repository')
def init_cmd(path, bare):
    """
    Initialize a new repository.

    Creates a .git directory (or, with --bare, the repository itself)
    holding an empty object database.

    Examples:
        odbkit init                    # Initialize in current directory
        odbkit init my-project         # Initialize in my-project directory
        odbkit init --bare repo.git    # Create a bare repository
    """
    repo_path = Path(path).resolve()

    try:
        if not repo_path.exists():
            repo_path.mkdir(parents=True)
            click.echo(info(f"Created directory {repo_path}"))

        repo = Repository.init(repo_path, bare=bare)
    except PermissionError:
        click.echo(error(f"Permission denied: Cannot create repository at {path}"))
        raise click.Abort()
    except OdbError as e:
        click.echo(error(e.message))
        raise click.Abort()

    with repo:
        click.echo(success(f"Initialized empty repository in {repo.path}"))

"""Config command - manage repository configuration."""

import click
from odbkit.core.config import Config, get_config, split_key
from odbkit.core.repository import Repository
from odbkit.cli.output import success, error, info
from odbkit.errors import OdbError


def _load_config(is_global):
    if is_global:
        return Config()
    try:
        repo = Repository.discover()
    except OdbError as e:
        click.echo(error(str(e)))
        raise click.Abort()
    if not repo:
        click.echo(error("Not a repository (use --global for global config)"))
        raise click.Abort()
    with repo:
        return get_config(repo)


@click.group('config')
def config_cmd():
    """Get and set repository or global options."""
    pass


@config_cmd.command('set')
@click.argument('key')
@click.argument('value')
@click.option('--global', 'is_global', is_flag=True, help='Set global config')
def config_set(key, value, is_global):
    """
    Set a config value.

    Examples:
        odbkit config set user.name "Your Name"
        odbkit config set core.compression 9
        odbkit config set remote.origin.url https://example.com/repo.git
    """
    config = _load_config(is_global)
    section, option = split_key(key)
    try:
        config.set(section, option, value, global_config=is_global)
    except OdbError as e:
        click.echo(error(f"config failed: {e}"))
        raise click.Abort()

    scope = "global" if is_global else "repository"
    click.echo(success(f"Set {scope} config: {key} = {value}"))


@config_cmd.command('get')
@click.argument('key')
@click.option('--global', 'is_global', is_flag=True, help='Get global config only')
def config_get(key, is_global):
    """
    Get a config value.

    Examples:
        odbkit config get user.name
        odbkit config get remote.origin.fetch
    """
    config = _load_config(is_global)
    section, option = split_key(key)

    try:
        value = config.get(section, option)
    except OdbError as e:
        click.echo(error(f"config failed: {e}"))
        raise click.Abort()
    if value is None:
        click.echo(error(f"Config key not found: {key}"))
        raise click.Abort()
    click.echo(value)


@config_cmd.command('list')
@click.option('--global', 'is_global', is_flag=True, help='List global config only')
def config_list(is_global):
    """List all config values as dotted keys."""
    try:
        values = _load_config(is_global).list_all()
    except OdbError as e:
        click.echo(error(f"config failed: {e}"))
        raise click.Abort()

    if not values:
        click.echo(info("No configuration set"))
        return

    for key, value in values.items():
        click.echo(f"{key}={value}")

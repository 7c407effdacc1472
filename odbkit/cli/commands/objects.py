"""Object database plumbing commands: hash-object, cat-file, ls-tree, mktree, commit-tree."""

import click
from colorama import Fore, Style

from odbkit.core.hash import hash_payload
from odbkit.core.objects import Blob, Commit, Tree
from odbkit.core.records import MODE_TREE, TYPE_NAMES, TYPE_TAGS
from odbkit.core.repository import Repository
from odbkit.cli.output import error, sha as format_sha
from odbkit.errors import OdbError


def open_repository() -> Repository:
    """Find the enclosing repository or abort."""
    repo = Repository.discover()
    if not repo:
        click.echo(error("Not a repository"))
        raise click.Abort()
    return repo


def entry_type(attributes: int) -> str:
    return 'tree' if attributes & 0o170000 == MODE_TREE else 'blob'


@click.command('hash-object')
@click.option('-w', '--write', is_flag=True, help='Write the object into the database')
@click.option('-t', '--type', 'type_name', type=click.Choice(sorted(TYPE_TAGS)), default='blob',
              help='Object type (default: blob)')
@click.option('--stdin', 'from_stdin', is_flag=True, help='Read the object from standard input')
@click.argument('filepath', required=False, type=click.Path(exists=True, dir_okay=False))
def hash_object_cmd(write, type_name, from_stdin, filepath):
    """
    Compute object id and optionally store the object.

    Examples:
        odbkit hash-object README.md        # Print the blob id
        odbkit hash-object -w README.md     # Store it as a blob
        echo hi | odbkit hash-object --stdin
    """
    if from_stdin:
        data = click.get_binary_stream('stdin').read()
    elif filepath:
        with open(filepath, 'rb') as f:
            data = f.read()
    else:
        click.echo(error("Provide a file or --stdin"))
        raise click.Abort()

    if not write:
        click.echo(hash_payload(type_name, data))
        return

    with open_repository() as repo:
        try:
            click.echo(repo.write(TYPE_TAGS[type_name], data))
        except OdbError as e:
            click.echo(error(f"hash-object failed: {e}"))
            raise click.Abort()


@click.command('cat-file')
@click.option('-t', '--type', 'show_type', is_flag=True, help='Show object type')
@click.option('-s', '--size', 'show_size', is_flag=True, help='Show object size')
@click.option('-p', '--pretty', is_flag=True, help='Pretty-print object content')
@click.argument('object_sha')
def cat_file_cmd(show_type, show_size, pretty, object_sha):
    """
    Show object content, type, or size.

    Examples:
        odbkit cat-file -t <sha>     # Show object type
        odbkit cat-file -s <sha>     # Show object size
        odbkit cat-file -p <sha>     # Pretty-print object content
    """
    with open_repository() as repo:
        try:
            if show_type or show_size:
                tag, data = repo.read(object_sha)
                click.echo(TYPE_NAMES[tag] if show_type else len(data))
                return

            obj = repo.lookup(object_sha)
            if not pretty:
                click.get_binary_stream('stdout').write(obj.read_raw())
            elif isinstance(obj, Commit):
                print_commit(obj)
            elif isinstance(obj, Tree):
                for entry in obj:
                    click.echo(f"{entry.attributes:06o} {entry_type(entry.attributes)} "
                               f"{format_sha(entry.sha)}\t{entry.name}")
            elif isinstance(obj, Blob):
                click.get_binary_stream('stdout').write(obj.data)
            else:
                click.echo(obj.read_raw().decode('utf-8', errors='replace'))
        except OdbError as e:
            click.echo(error(f"cat-file failed: {e}"))
            raise click.Abort()


def print_commit(commit: Commit) -> None:
    click.echo(f"{Fore.YELLOW}tree {commit.tree}{Style.RESET_ALL}")
    for parent in commit.parents:
        click.echo(f"{Fore.YELLOW}parent {parent}{Style.RESET_ALL}")
    name, email, time = commit.author
    click.echo(f"author {name} <{email}> {time}")
    name, email, time = commit.committer
    click.echo(f"committer {name} <{email}> {time}")
    click.echo()
    click.echo(commit.message)


@click.command('ls-tree')
@click.option('-r', '--recursive', is_flag=True, help='Recurse into sub-trees')
@click.option('--name-only', is_flag=True, help='Show only file names')
@click.option('--abbrev', type=int, default=0, help='Abbreviate ids to N characters')
@click.argument('treeish')
def ls_tree_cmd(recursive, name_only, abbrev, treeish):
    """
    List the contents of a tree, or of a commit's tree.

    Examples:
        odbkit ls-tree <tree-sha>
        odbkit ls-tree -r <commit-sha>
    """
    with open_repository() as repo:
        try:
            obj = repo.lookup(treeish)
            if isinstance(obj, Commit):
                obj = repo.lookup(obj.tree)
            if not isinstance(obj, Tree):
                click.echo(error(f"Not a valid tree-ish: {treeish}"))
                raise click.Abort()

            display_tree(obj, "", recursive, name_only, abbrev)
        except OdbError as e:
            click.echo(error(f"ls-tree failed: {e}"))
            raise click.Abort()


def display_tree(tree, prefix, recursive, name_only, abbrev):
    """Display tree entries with optional recursion."""
    for entry in tree:
        full_path = f"{prefix}{entry.name}"
        kind = entry_type(entry.attributes)

        if kind == 'tree' and recursive:
            display_tree(entry.to_object(), full_path + "/", recursive, name_only, abbrev)
            continue

        if name_only:
            click.echo(full_path)
        else:
            click.echo(f"{entry.attributes:06o} {kind} {format_sha(entry.sha, abbrev)}\t{full_path}")


@click.command('mktree')
def mktree_cmd():
    """
    Build a tree from ls-tree formatted lines on standard input.

    Each line is "<mode> <type> <sha>\\t<name>".

    Examples:
        odbkit ls-tree <sha> | odbkit mktree
    """
    with open_repository() as repo:
        tree = Tree(repo)
        try:
            for line in click.get_text_stream('stdin'):
                line = line.rstrip('\n')
                if not line:
                    continue
                meta, _, name = line.partition('\t')
                try:
                    mode, _type, entry_sha = meta.split()
                    tree.add_entry(entry_sha, name, int(mode, 8))
                except ValueError as e:
                    click.echo(error(f"Bad mktree line {line!r}: {e}"))
                    raise click.Abort()
            click.echo(tree.write())
        except OdbError as e:
            click.echo(error(f"mktree failed: {e}"))
            raise click.Abort()


@click.command('commit-tree')
@click.argument('tree_sha')
@click.option('-p', '--parent', 'parents', multiple=True, help='Parent commit id (repeatable)')
@click.option('-m', '--message', required=True, help='Commit message')
def commit_tree_cmd(tree_sha, parents, message):
    """
    Create a commit object for a tree.

    Author and committer come from user.name and user.email.

    Examples:
        odbkit commit-tree <tree-sha> -m "Initial commit"
        odbkit commit-tree <tree-sha> -p <parent-sha> -m "Next"
    """
    with open_repository() as repo:
        name, email, timestamp = repo.default_signature()
        if not name or not email:
            click.echo(error("Please set user.name and user.email with 'odbkit config set'"))
            raise click.Abort()

        try:
            if tree_sha not in repo:
                click.echo(error(f"Not a valid tree: {tree_sha}"))
                raise click.Abort()

            commit = Commit(repo)
            commit.tree = tree_sha
            commit.parents = list(parents)
            commit.author = (name, email, timestamp)
            commit.committer = (name, email, timestamp)
            commit.message = message if message.endswith('\n') else message + '\n'
            click.echo(commit.write())
        except (OdbError, ValueError) as e:
            click.echo(error(f"commit-tree failed: {e}"))
            raise click.Abort()

"""CLI commands for odbkit."""

from odbkit.cli.commands.init import init_cmd
from odbkit.cli.commands.config import config_cmd
from odbkit.cli.commands.objects import (hash_object_cmd, cat_file_cmd,
                                         ls_tree_cmd, mktree_cmd,
                                         commit_tree_cmd)

__all__ = ['init_cmd', 'config_cmd', 'hash_object_cmd', 'cat_file_cmd',
           'ls_tree_cmd', 'mktree_cmd', 'commit_tree_cmd']

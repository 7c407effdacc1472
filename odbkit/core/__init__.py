"""Core functionality for odbkit.

This module contains:
- Object wrappers (Object, Commit, Tree, TreeEntry, Blob)
- Object records and their payload formats
- The loose object database
- Repository management
- Configuration management
- Hashing and identifier utilities
"""

from odbkit.core.objects import Object, Blob, Tree, TreeEntry, Commit, wrap_object
from odbkit.core.repository import Repository
from odbkit.core.odb import ObjectDatabase
from odbkit.core.hash import hash_object, hash_file, hex_to_oid, oid_to_hex
from odbkit.core.config import Config, get_config

__all__ = [
    'Object',
    'Blob',
    'Tree',
    'TreeEntry',
    'Commit',
    'wrap_object',
    'Repository',
    'ObjectDatabase',
    'Config',
    'get_config',
    'hash_object',
    'hash_file',
    'hex_to_oid',
    'oid_to_hex',
]

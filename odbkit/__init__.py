"""odbkit - Git object database access for Python."""

__version__ = '0.1.0'

from odbkit.core.repository import Repository
from odbkit.core.objects import Object, Commit, Tree, TreeEntry, Blob
from odbkit.core.records import (GIT_OBJ_ANY, GIT_OBJ_COMMIT, GIT_OBJ_TREE,
                                 GIT_OBJ_BLOB, GIT_OBJ_TAG, MODE_TREE, MODE_BLOB,
                                 MODE_EXECUTABLE, MODE_LINK, MODE_COMMIT)
from odbkit.errors import (OdbError, ValidationError, OpenError,
                           ObjectNotFoundError, DanglingEntryError, WriteError,
                           ReadError, RepositoryClosedError, ConfigError)

__all__ = [
    'Repository',
    'Object',
    'Commit',
    'Tree',
    'TreeEntry',
    'Blob',
    'GIT_OBJ_ANY',
    'GIT_OBJ_COMMIT',
    'GIT_OBJ_TREE',
    'GIT_OBJ_BLOB',
    'GIT_OBJ_TAG',
    'MODE_TREE',
    'MODE_BLOB',
    'MODE_EXECUTABLE',
    'MODE_LINK',
    'MODE_COMMIT',
    'OdbError',
    'ValidationError',
    'OpenError',
    'ObjectNotFoundError',
    'DanglingEntryError',
    'WriteError',
    'ReadError',
    'RepositoryClosedError',
    'ConfigError',
]

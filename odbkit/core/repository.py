"""Repository management for odbkit."""

import os
import time
from pathlib import Path
from typing import Optional, Tuple

from odbkit.core.config import Config
from odbkit.core.hash import hex_to_oid, oid_to_hex
from odbkit.core.objects import Object, wrap_object
from odbkit.core.odb import ObjectDatabase
from odbkit.core.records import GIT_OBJ_BLOB, TYPE_NAMES, Record
from odbkit.errors import (ConfigError, ObjectNotFoundError, OpenError,
                           RepositoryClosedError)
from odbkit.log import get_logger

logger = get_logger(__name__)


class Repository:
    """
    Handle on a Git repository's object database.

    The repository owns its ObjectDatabase handle. The handle is released
    exactly once: by close(), on leaving a with-block, or when the
    Repository is garbage collected, whichever happens first. Objects keep
    a reference to their Repository, so it is not collected while any of
    them are alive.

    Usage:
        repo = Repository('/path/to/repo')
        if sha in repo:
            obj = repo[sha]
    """

    def __init__(self, path, /):
        """
        Open the repository at path.

        Args:
            path: A git directory (containing objects/) or a work tree
                containing .git/

        Raises:
            OpenError: If no object database is found at path, or its
                config cannot be read
        """
        self._odb: Optional[ObjectDatabase] = None

        if not isinstance(path, (str, os.PathLike)):
            raise TypeError(f"Expected str or path for repository path, got {type(path).__name__}")

        git_dir = self._git_dir(Path(path))
        if git_dir is None:
            raise OpenError(f"Failed to open repo directory at {path}", {'path': str(path)})

        self.path = git_dir.resolve()
        self.objects_dir = self.path / 'objects'
        self.refs_dir = self.path / 'refs'
        self.head_file = self.path / 'HEAD'
        self.config_file = self.path / 'config'
        self.config = Config(self.config_file)

        try:
            self.config.load()
            level = self.config.get_int('core', 'compression', -1)
            self.bare = self.config.get_bool('core', 'bare', False)
        except ConfigError as e:
            raise OpenError(f"Failed to open repo directory at {path}: {e.message}",
                            {'path': str(self.path), **e.details})

        self._odb = ObjectDatabase(self.objects_dir, level)
        logger.debug("repository_opened", path=str(self.path))

    @staticmethod
    def _git_dir(path: Path) -> Optional[Path]:
        if (path / 'objects').is_dir():
            return path
        if (path / '.git' / 'objects').is_dir():
            return path / '.git'
        return None

    @classmethod
    def init(cls, path, bare: bool = False) -> 'Repository':
        """
        Create a new repository and open it.

        Creates the directory structure:
        .git/              (or path itself when bare)
        ├── objects/       # Object database
        ├── refs/
        │   ├── heads/     # Branch references
        │   └── tags/      # Tag references
        ├── HEAD           # Current branch
        └── config         # Repository configuration

        Args:
            path: Directory to create the repository in
            bare: Put the repository directly in path instead of path/.git

        Returns:
            Repository: The newly created repository

        Raises:
            OpenError: If a repository already exists or cannot be created
        """
        root = Path(path)
        git_dir = root if bare else root / '.git'

        if (git_dir / 'objects').exists():
            raise OpenError(f"Repository already exists at {git_dir}", {'path': str(git_dir)})

        try:
            (git_dir / 'objects').mkdir(parents=True)
            (git_dir / 'refs' / 'heads').mkdir(parents=True)
            (git_dir / 'refs' / 'tags').mkdir()
            (git_dir / 'HEAD').write_text('ref: refs/heads/main\n')
            (git_dir / 'config').write_text(
                '[core]\n'
                'repositoryformatversion = 0\n'
                f'bare = {str(bare).lower()}\n'
            )
        except OSError as e:
            raise OpenError(f"Failed to create repository at {git_dir}: {e}", {'path': str(git_dir)})

        logger.info("repository_initialized", path=str(git_dir), bare=bare)
        return cls(git_dir)

    @classmethod
    def discover(cls, path='.') -> Optional['Repository']:
        """
        Find repository by searching up the directory tree.

        Args:
            path: Starting path for search

        Returns:
            Repository if found, None otherwise
        """
        current = Path(path).resolve()

        while True:
            if cls._git_dir(current) is not None:
                return cls(current)

            # Reached filesystem root
            if current == current.parent:
                return None

            current = current.parent

    @property
    def closed(self) -> bool:
        return self._odb is None or self._odb.closed

    def _check_open(self) -> None:
        if self.closed:
            raise RepositoryClosedError("Repository is closed", {'path': str(getattr(self, 'path', ''))})

    @property
    def _db(self) -> ObjectDatabase:
        self._check_open()
        return self._odb

    def close(self) -> None:
        """Release the object database. Safe to call more than once."""
        if self._odb is not None and self._odb.close():
            logger.debug("repository_closed", path=str(self.path))

    def __enter__(self) -> 'Repository':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __del__(self):
        if getattr(self, '_odb', None) is not None:
            self._odb.close()

    def contains(self, sha) -> bool:
        """
        Check whether an object exists.

        Raises:
            ValidationError: If sha is not a 40-character hex string
        """
        oid = hex_to_oid(sha)
        return self._db.exists(oid)

    __contains__ = contains

    def lookup(self, sha) -> Object:
        """
        Look up an object by hex id.

        Returns:
            Commit, Tree, Blob, or Object (tags), borrowed from the database

        Raises:
            ValidationError: If sha is malformed
            ObjectNotFoundError: If no object has that id
        """
        oid = hex_to_oid(sha)
        db = self._db
        if not db.exists(oid):
            raise ObjectNotFoundError(f'Failed to look up hex SHA "{oid_to_hex(oid)}"', oid_to_hex(oid))
        return wrap_object(db.lookup(oid), self)

    __getitem__ = lookup

    def read(self, sha) -> Tuple[int, bytes]:
        """
        Read raw object data from the repository.

        Returns:
            (type number, payload bytes)

        Raises:
            ValidationError: If sha is malformed
            ObjectNotFoundError: If no object has that id
        """
        oid = hex_to_oid(sha)
        return self._db.read_raw(oid)

    def write(self, type_tag: int, data: bytes) -> str:
        """
        Write a raw payload as an object of the given type.

        Returns:
            str: Hex identifier of the stored object

        Raises:
            WriteError: If the object cannot be stored
        """
        if type_tag not in TYPE_NAMES:
            raise ValueError(f"Invalid object type {type_tag}")
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise TypeError(f"Expected bytes for object data, got {type(data).__name__}")
        return oid_to_hex(self._db.write_raw(type_tag, bytes(data)))

    def create_blob(self, data: bytes) -> str:
        """Store data as a blob and return its hex id."""
        return self.write(GIT_OBJ_BLOB, data)

    def create_blob_fromfile(self, filepath) -> str:
        """Store a file's content as a blob and return its hex id."""
        with open(filepath, 'rb') as f:
            return self.create_blob(f.read())

    def _write_record(self, record: Record) -> bytes:
        return self._db.write_record(record)

    def default_signature(self) -> tuple:
        """
        (name, email, time) for the configured user at the current time.

        Missing user.name or user.email are returned as empty strings.
        """
        name, email = self.config.get_user_identity()
        return name or '', email or '', int(time.time())

    def __repr__(self) -> str:
        return f"Repository(path={getattr(self, 'path', None)})"

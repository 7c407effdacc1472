"""Object wrappers for odbkit.

Every wrapper points at a record and holds a strong reference to the
Repository it came from, so the database stays open for as long as any of
its objects are reachable. A wrapper owns its record only when it built
it (Commit(repo), Tree(repo), Blob(repo)); records reached through
Repository.lookup() belong to the database and are never freed by the
wrapper.
"""

from typing import Optional

from odbkit.core.hash import hex_to_oid, oid_to_hex
from odbkit.core.records import (GIT_OBJ_BLOB, GIT_OBJ_COMMIT, GIT_OBJ_TAG,
                                 GIT_OBJ_TREE, BlobRecord, CommitRecord,
                                 Record, Signature, TreeRecord)
from odbkit.errors import (DanglingEntryError, ObjectNotFoundError,
                           RepositoryClosedError)


def _check_repository(type_name: str, repo) -> None:
    from odbkit.core.repository import Repository

    if not isinstance(repo, Repository):
        raise TypeError(f"{type_name}() expected Repository for repo, got {type(repo).__name__}")


def _check_entry_name(name) -> str:
    if not isinstance(name, str):
        raise TypeError(f"Expected str for entry name, got {type(name).__name__}")
    if not name or name in ('.', '..') or '/' in name or '\0' in name:
        raise ValueError(f"Invalid tree entry name {name!r}")
    return name


def wrap_object(record: Record, repo, owns: bool = False) -> 'Object':
    """
    Wrap a record in the class matching its type.

    Args:
        record: Record to wrap
        repo: Repository the record belongs to
        owns: Whether the wrapper is responsible for freeing the record

    Returns:
        Commit, Tree, Blob, or Object (for tags)
    """
    tag = record.tag
    if tag == GIT_OBJ_COMMIT:
        cls = Commit
    elif tag == GIT_OBJ_TREE:
        cls = Tree
    elif tag == GIT_OBJ_BLOB:
        cls = Blob
    elif tag == GIT_OBJ_TAG:
        cls = Object
    else:
        raise AssertionError(f"unreachable object type {tag}")

    obj = cls.__new__(cls)
    obj._attach(record, repo, owns)
    return obj


class Object:
    """
    Generic object.

    Tags are exposed as plain Objects; commits, trees and blobs get their
    own subclasses. Object itself cannot be instantiated.
    """

    _record_type: Optional[type] = None

    def __init__(self, repo, /):
        if self._record_type is None:
            raise TypeError(f"cannot create '{type(self).__name__}' instances")
        _check_repository(type(self).__name__, repo)
        repo._check_open()
        self._attach(self._record_type(), repo, owns=True)

    def _attach(self, record: Record, repo, owns: bool) -> None:
        self._record = record
        self._repo = repo
        self._owns = owns

    @property
    def _rec(self) -> Record:
        record = self._record
        if record.freed:
            if self._repo.closed:
                raise RepositoryClosedError("Repository is closed")
            raise ReferenceError(f"{type(self).__name__} has been freed")
        return record

    @property
    def repo(self):
        """Repository this object belongs to."""
        return self._repo

    @property
    def owns_record(self) -> bool:
        return self._owns

    @property
    def type(self) -> int:
        """Type number (GIT_OBJ_COMMIT, GIT_OBJ_TREE, GIT_OBJ_BLOB or GIT_OBJ_TAG)."""
        return self._rec.tag

    @property
    def oid(self) -> Optional[bytes]:
        """Raw 20-byte identifier, or None if the object was never written."""
        return self._rec.oid

    @property
    def sha(self) -> Optional[str]:
        """Hex identifier, or None if the object was never written."""
        oid = self._rec.oid
        return oid_to_hex(oid) if oid is not None else None

    def read_raw(self) -> bytes:
        """
        Read the raw contents of the object from the repository.

        Raises:
            ObjectNotFoundError: If the object has not been written yet
        """
        oid = self._rec.oid
        if oid is None:
            raise ObjectNotFoundError(
                f"{type(self).__name__} has not been written to the repository")
        return self._repo._db.read_raw(oid)[1]

    def write(self) -> str:
        """
        Write the object to the repository, if new or changed.

        Returns:
            str: Hex identifier of the stored object

        Raises:
            WriteError: If the object cannot be stored
        """
        record = self._rec
        if record.oid is None or record.modified:
            self._repo._write_record(record)
        return oid_to_hex(record.oid)

    def free(self) -> None:
        """
        Release the object's record if this wrapper owns it.

        Calling free() more than once, or on a looked-up object, does nothing.
        """
        if self._owns:
            self._record.free()

    def __del__(self):
        if getattr(self, '_record', None) is not None:
            self.free()

    def __repr__(self) -> str:
        sha = self._record.oid.hex()[:7] if self._record.oid else 'new'
        return f"{type(self).__name__}(sha={sha})"


class Commit(Object):
    """
    A commit with metadata.

    author and committer are (name, email, time) tuples. message_short is
    derived from message on every access.
    """

    _record_type = CommitRecord

    @property
    def message(self) -> str:
        return self._rec.message

    @message.setter
    def message(self, value) -> None:
        if not isinstance(value, str):
            raise TypeError("Expected string for commit message.")
        record = self._rec
        record.message = value
        record.mark_modified()

    @property
    def message_short(self) -> str:
        """First line of the message."""
        return self._rec.message_short

    @property
    def commit_time(self) -> int:
        return self._rec.committer.time

    @staticmethod
    def _signature(value, old: Signature) -> Signature:
        if not isinstance(value, tuple) or len(value) != 3:
            raise TypeError("Expected (name, email, time) tuple")
        name, email, time = value
        if not isinstance(name, str) or not isinstance(email, str):
            raise TypeError("Expected str for name and email")
        if not isinstance(time, int):
            raise TypeError("Expected int for time")
        return Signature(name, email, time, old.offset)

    @property
    def author(self) -> tuple:
        author = self._rec.author
        return author.name, author.email, author.time

    @author.setter
    def author(self, value) -> None:
        record = self._rec
        record.author = self._signature(value, record.author)
        record.mark_modified()

    @property
    def committer(self) -> tuple:
        committer = self._rec.committer
        return committer.name, committer.email, committer.time

    @committer.setter
    def committer(self, value) -> None:
        record = self._rec
        record.committer = self._signature(value, record.committer)
        record.mark_modified()

    @property
    def tree(self) -> Optional[str]:
        """Hex identifier of the commit's root tree."""
        tree = self._rec.tree
        return oid_to_hex(tree) if tree is not None else None

    @tree.setter
    def tree(self, sha) -> None:
        oid = hex_to_oid(sha)
        record = self._rec
        record.tree = oid
        record.mark_modified()

    @property
    def parents(self) -> list:
        return [oid_to_hex(oid) for oid in self._rec.parents]

    @parents.setter
    def parents(self, shas) -> None:
        if isinstance(shas, str):
            raise TypeError("Expected a list of hex SHAs for parents")
        oids = [hex_to_oid(sha) for sha in shas]
        record = self._rec
        record.parents = oids
        record.mark_modified()

    def write(self) -> str:
        """
        Write the commit. A commit without a tree points at the empty tree.
        """
        record = self._rec
        if record.tree is None:
            record.tree = self._repo._db.write_raw(GIT_OBJ_TREE, b'')
            record.mark_modified()
        return super().write()

    def __repr__(self) -> str:
        sha = self._record.oid.hex()[:7] if self._record.oid else 'new'
        msg_preview = self._record.message_short[:50]
        return f"Commit(sha={sha}, msg='{msg_preview}')"


class TreeEntry:
    """
    A view on one entry of a Tree.

    The entry belongs to the tree's record; the view keeps the Tree alive
    but does not own anything. A view on an entry that has since been
    deleted from its tree is detached and changing it has no effect on
    the tree.
    """

    def __init__(self, *args, **kwargs):
        raise TypeError("cannot create 'TreeEntry' instances; index a Tree instead")

    @classmethod
    def _wrap(cls, entry, tree: 'Tree') -> 'TreeEntry':
        py_entry = cls.__new__(cls)
        py_entry._entry = entry
        py_entry._tree = tree
        return py_entry

    @property
    def tree(self) -> 'Tree':
        return self._tree

    @property
    def attributes(self) -> int:
        """Mode bits (e.g. 0o100644)."""
        return self._entry.attributes

    @attributes.setter
    def attributes(self, value) -> None:
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError("Expected int for attributes")
        self._entry.attributes = value
        self._tree._rec.mark_modified()

    @property
    def name(self) -> str:
        return self._entry.name

    @name.setter
    def name(self, value) -> None:
        name = _check_entry_name(value)
        record = self._tree._rec
        other = record.entry_by_name(name)
        if other is not None and other is not self._entry:
            raise ValueError(f"Tree already has an entry named {name!r}")
        self._entry.name = name
        record.mark_modified()

    @property
    def oid(self) -> bytes:
        return self._entry.oid

    @property
    def sha(self) -> str:
        return oid_to_hex(self._entry.oid)

    @sha.setter
    def sha(self, value) -> None:
        self._entry.oid = hex_to_oid(value)
        self._tree._rec.mark_modified()

    def to_object(self) -> Object:
        """
        Look up the object this entry points at.

        Raises:
            DanglingEntryError: If the object is not in the repository
        """
        repo = self._tree.repo
        try:
            record = repo._db.lookup(self._entry.oid)
        except ObjectNotFoundError:
            raise DanglingEntryError(self.sha, self._entry.name) from None
        return wrap_object(record, repo)

    resolve = to_object

    def __eq__(self, other):
        if not isinstance(other, TreeEntry):
            return NotImplemented
        return self._entry is other._entry

    def __hash__(self):
        return id(self._entry)

    def __repr__(self) -> str:
        return f"TreeEntry({self.attributes:06o} {self.sha[:7]} {self.name})"


class Tree(Object):
    """
    Directory structure: entries addressable by name or position.

    tree['name'] and tree[i] (negative indices allowed) return TreeEntry
    views; del works the same way. Entries cannot be assigned; use
    add_entry().
    """

    _record_type = TreeRecord

    def __len__(self) -> int:
        return len(self._rec)

    def __contains__(self, name) -> bool:
        return isinstance(name, str) and self._rec.entry_by_name(name) is not None

    def __iter__(self):
        for entry in list(self._rec.entries):
            yield TreeEntry._wrap(entry, self)

    def _fix_index(self, index: int) -> int:
        length = len(self._rec)
        if index >= length or index < -length:
            raise IndexError(index)
        if index < 0:
            index += length
        return index

    @staticmethod
    def _check_key(key) -> None:
        if isinstance(key, bool) or not isinstance(key, (str, int)):
            raise TypeError("Expected int or str for tree index.")

    def __getitem__(self, key) -> TreeEntry:
        self._check_key(key)
        record = self._rec
        if isinstance(key, str):
            entry = record.entry_by_name(key)
            if entry is None:
                raise KeyError(key)
        else:
            entry = record.entries[self._fix_index(key)]
        return TreeEntry._wrap(entry, self)

    def __setitem__(self, key, value) -> None:
        raise ValueError("Cannot set TreeEntry directly; use add_entry.")

    def __delitem__(self, key) -> None:
        self._check_key(key)
        record = self._rec
        if isinstance(key, str):
            if not record.remove_by_name(key):
                raise KeyError(key)
        else:
            record.remove_by_index(self._fix_index(key))

    def add_entry(self, sha, name, attributes, /) -> None:
        """
        Add an entry, replacing any entry with the same name.

        Args:
            sha: Hex identifier of the referenced object
            name: Entry name
            attributes: Mode bits (e.g. 0o100644, 0o040000)

        Raises:
            ValidationError: If sha is malformed
        """
        oid = hex_to_oid(sha)
        _check_entry_name(name)
        if not isinstance(attributes, int) or isinstance(attributes, bool):
            raise TypeError("Expected int for attributes")
        self._rec.add_entry(oid, name, attributes)

    def __repr__(self) -> str:
        sha = self._record.oid.hex()[:7] if self._record.oid else 'new'
        return f"Tree(sha={sha}, entries={len(self._record)})"


class Blob(Object):
    """
    File content.

    Blob data is read-only: there is no setter for data. Use
    Repository.create_blob() to store new content.
    """

    _record_type = BlobRecord

    @property
    def data(self) -> bytes:
        """Raw data, read from the repository."""
        return self.read_raw()

    @property
    def size(self) -> int:
        return len(self._rec.data)

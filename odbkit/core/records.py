"""In-memory object records and their payload formats.

A record is the mutable state of one object: the thing the object
database caches and the wrappers in odbkit.core.objects point at.
Records know how to serialize to and parse from loose-object payloads.
"""

import codecs
from abc import ABC, abstractmethod
from typing import NamedTuple, Optional

from odbkit.core.hash import OID_RAWSZ, hash_payload
from odbkit.errors import ReadError

GIT_OBJ_ANY = -2
GIT_OBJ_COMMIT = 1
GIT_OBJ_TREE = 2
GIT_OBJ_BLOB = 3
GIT_OBJ_TAG = 4

TYPE_NAMES = {
    GIT_OBJ_COMMIT: 'commit',
    GIT_OBJ_TREE: 'tree',
    GIT_OBJ_BLOB: 'blob',
    GIT_OBJ_TAG: 'tag',
}
TYPE_TAGS = {name: tag for tag, name in TYPE_NAMES.items()}

MODE_TREE = 0o040000
MODE_BLOB = 0o100644
MODE_EXECUTABLE = 0o100755
MODE_LINK = 0o120000
MODE_COMMIT = 0o160000


def type_tag(type_name: str) -> int:
    """Map a stored type name to its tag, rejecting unknown names."""
    try:
        return TYPE_TAGS[type_name]
    except KeyError:
        raise ReadError(f"Unknown object type: {type_name}", {'type': type_name})


def commit_codec(encoding: Optional[str]) -> str:
    """Python codec for a commit's encoding header; UTF-8 when absent or unknown."""
    if not encoding:
        return 'utf-8'
    try:
        return codecs.lookup(encoding).name
    except LookupError:
        return 'utf-8'


class Signature(NamedTuple):
    """Author or committer line of a commit."""
    name: str
    email: str
    time: int
    offset: str = '+0000'

    def serialize(self) -> str:
        return f"{self.name} <{self.email}> {self.time} {self.offset}"

    @classmethod
    def parse(cls, text: str) -> 'Signature':
        identity, time, offset = text.rsplit(' ', 2)
        name, _, email = identity.partition(' <')
        return cls(name, email.rstrip('>'), int(time), offset)


EMPTY_SIGNATURE = Signature('', '', 0)


class Record(ABC):
    """Base class for object records."""

    tag: int = GIT_OBJ_ANY

    def __init__(self):
        self.oid: Optional[bytes] = None
        self.modified = True
        self.freed = False

    @abstractmethod
    def serialize(self) -> bytes:
        """
        Serialize record to payload bytes.

        Returns:
            bytes: Object payload (without the loose-object header)
        """
        pass

    @abstractmethod
    def deserialize(self, data: bytes) -> None:
        """
        Load record state from payload bytes.

        Args:
            data: Object payload
        """
        pass

    @property
    def type_name(self) -> str:
        return TYPE_NAMES[self.tag]

    def compute_hash(self) -> str:
        """Hex identifier the current state would be stored under."""
        return hash_payload(self.type_name, self.serialize())

    def mark_modified(self) -> None:
        self.modified = True

    def free(self) -> None:
        """Drop the record's state. Safe to call more than once."""
        if self.freed:
            return
        self._clear()
        self.freed = True

    def _clear(self) -> None:
        pass


class BlobRecord(Record):
    """File content, with no name or permissions."""

    tag = GIT_OBJ_BLOB

    def __init__(self, data: bytes = b''):
        super().__init__()
        self.data = data

    def serialize(self) -> bytes:
        return self.data

    def deserialize(self, data: bytes) -> None:
        self.data = data

    def _clear(self) -> None:
        self.data = b''


class RawRecord(Record):
    """
    Opaque record for tags.

    Tags are stored and re-read verbatim; their fields are not parsed.
    """

    tag = GIT_OBJ_TAG

    def __init__(self, data: bytes = b''):
        super().__init__()
        self.data = data

    def serialize(self) -> bytes:
        return self.data

    def deserialize(self, data: bytes) -> None:
        self.data = data

    def _clear(self) -> None:
        self.data = b''


class TreeEntryRecord:
    """
    A single (attributes, name, oid) entry inside a tree record.

    - attributes: mode bits (e.g. 0o100644 for a file, 0o040000 for a directory)
    - name: filename or directory name
    - oid: 20-byte identifier of the referenced object
    """

    __slots__ = ('attributes', 'name', 'oid')

    def __init__(self, attributes: int, name: str, oid: bytes):
        self.attributes = attributes
        self.name = name
        self.oid = oid

    def sort_key(self) -> bytes:
        # Git orders directories as if their name ended with '/'
        name = self.name.encode('utf-8', 'surrogateescape')
        if self.attributes & 0o170000 == MODE_TREE:
            return name + b'/'
        return name

    def __repr__(self) -> str:
        return f"TreeEntryRecord({self.attributes:06o} {self.oid.hex()[:7]} {self.name})"


class TreeRecord(Record):
    """
    Directory structure.

    Entries are kept in insertion order in memory; serialize() writes them
    in Git's canonical order.
    """

    tag = GIT_OBJ_TREE

    def __init__(self):
        super().__init__()
        self.entries: list[TreeEntryRecord] = []

    def __len__(self) -> int:
        return len(self.entries)

    def entry_by_name(self, name: str) -> Optional[TreeEntryRecord]:
        for entry in self.entries:
            if entry.name == name:
                return entry
        return None

    def add_entry(self, oid: bytes, name: str, attributes: int) -> TreeEntryRecord:
        """
        Insert an entry, or overwrite the entry of the same name in place.

        Returns:
            TreeEntryRecord: The inserted or updated entry
        """
        entry = self.entry_by_name(name)
        if entry is None:
            entry = TreeEntryRecord(attributes, name, oid)
            self.entries.append(entry)
        else:
            entry.attributes = attributes
            entry.oid = oid
        self.mark_modified()
        return entry

    def remove_by_name(self, name: str) -> bool:
        for i, entry in enumerate(self.entries):
            if entry.name == name:
                del self.entries[i]
                self.mark_modified()
                return True
        return False

    def remove_by_index(self, index: int) -> bool:
        if not 0 <= index < len(self.entries):
            return False
        del self.entries[index]
        self.mark_modified()
        return True

    def serialize(self) -> bytes:
        """
        Serialize tree to Git format.

        Format: <octal mode> <name>\\0<20-byte hash> for each entry

        Returns:
            bytes: Serialized tree data
        """
        parts = []
        for entry in sorted(self.entries, key=TreeEntryRecord.sort_key):
            parts.append(f"{entry.attributes:o} {entry.name}".encode('utf-8', 'surrogateescape'))
            parts.append(b'\0')
            parts.append(entry.oid)
        return b''.join(parts)

    def deserialize(self, data: bytes) -> None:
        """
        Deserialize tree from Git format.

        Args:
            data: Serialized tree data

        Raises:
            ReadError: If the payload is truncated or malformed
        """
        entries = []
        pos = 0

        try:
            while pos < len(data):
                space_pos = data.index(b' ', pos)
                attributes = int(data[pos:space_pos], 8)

                null_pos = data.index(b'\0', space_pos)
                name = data[space_pos + 1:null_pos].decode('utf-8', 'surrogateescape')

                oid = data[null_pos + 1:null_pos + 1 + OID_RAWSZ]
                if len(oid) != OID_RAWSZ:
                    raise ValueError("truncated entry id")
                entries.append(TreeEntryRecord(attributes, name, oid))

                pos = null_pos + 1 + OID_RAWSZ
        except ValueError as e:
            raise ReadError(f"Malformed tree entry at offset {pos}: {e}")

        self.entries = entries

    def _clear(self) -> None:
        self.entries = []


class CommitRecord(Record):
    """
    A commit with metadata.

    A commit captures:
    - Snapshot of the project (tree id)
    - Parent commit(s) for history
    - Author and committer signatures
    - Commit message
    """

    tag = GIT_OBJ_COMMIT

    def __init__(self):
        super().__init__()
        self.tree: Optional[bytes] = None
        self.parents: list[bytes] = []
        self.author: Signature = EMPTY_SIGNATURE
        self.committer: Signature = EMPTY_SIGNATURE
        self.extra_headers: list[tuple[str, str]] = []
        self.message: str = ''

    @property
    def codec(self) -> str:
        for key, value in self.extra_headers:
            if key == 'encoding':
                return commit_codec(value)
        return 'utf-8'

    @property
    def message_short(self) -> str:
        return self.message.split('\n', 1)[0].rstrip()

    def serialize(self) -> bytes:
        """
        Serialize commit to Git format.

        Format:
        tree <tree-hash>
        parent <parent-hash>  (zero or more)
        author Name <email> <timestamp> <timezone>
        committer Name <email> <timestamp> <timezone>

        <commit message>

        Returns:
            bytes: Serialized commit data
        """
        lines = []

        if self.tree is not None:
            lines.append(f'tree {self.tree.hex()}')

        for parent in self.parents:
            lines.append(f'parent {parent.hex()}')

        lines.append(f'author {self.author.serialize()}')
        lines.append(f'committer {self.committer.serialize()}')

        for key, value in self.extra_headers:
            lines.append(f'{key} ' + value.replace('\n', '\n '))

        lines.append('')
        lines.append(self.message)

        return '\n'.join(lines).encode(self.codec, 'surrogateescape')

    def deserialize(self, data: bytes) -> None:
        """
        Deserialize commit from Git format.

        Headers this class does not model (encoding, gpgsig, ...) are kept
        verbatim so that rewriting the commit does not lose them. Text is
        decoded with the declared encoding header, or UTF-8; bytes that do
        not decode are carried as surrogate escapes and written back as-is.

        Raises:
            ReadError: If a known header is malformed
        """
        declared = None
        for line in data.split(b'\n\n', 1)[0].split(b'\n'):
            if line.startswith(b'encoding '):
                declared = line[len(b'encoding '):].decode('ascii', 'replace').strip()
        content = data.decode(commit_codec(declared), 'surrogateescape')
        header, _, message = content.partition('\n\n')

        headers: list[tuple[str, str]] = []
        for line in header.split('\n'):
            if line.startswith(' ') and headers:
                key, value = headers[-1]
                headers[-1] = (key, value + '\n' + line[1:])
            elif line:
                key, _, value = line.partition(' ')
                headers.append((key, value))

        self.parents = []
        self.extra_headers = []
        try:
            for key, value in headers:
                if key == 'tree':
                    self.tree = bytes.fromhex(value)
                elif key == 'parent':
                    self.parents.append(bytes.fromhex(value))
                elif key == 'author':
                    self.author = Signature.parse(value)
                elif key == 'committer':
                    self.committer = Signature.parse(value)
                else:
                    self.extra_headers.append((key, value))
        except ValueError as e:
            raise ReadError(f"Malformed commit header: {e}")

        self.message = message

    def _clear(self) -> None:
        self.tree = None
        self.parents = []
        self.extra_headers = []
        self.message = ''


RECORD_TYPES = {
    GIT_OBJ_COMMIT: CommitRecord,
    GIT_OBJ_TREE: TreeRecord,
    GIT_OBJ_BLOB: BlobRecord,
    GIT_OBJ_TAG: RawRecord,
}


def load_record(tag: int, data: bytes, oid: bytes) -> Record:
    """Build a clean record of the given type from a stored payload."""
    record = RECORD_TYPES[tag]()
    record.deserialize(data)
    record.oid = oid
    record.modified = False
    return record

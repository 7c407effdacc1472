"""Loose object database for odbkit."""

import os
import tempfile
import zlib
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from odbkit.core.hash import hash_payload, object_header, oid_to_hex
from odbkit.core.records import TYPE_NAMES, Record, load_record, type_tag
from odbkit.errors import (ObjectNotFoundError, ReadError,
                           RepositoryClosedError, WriteError)
from odbkit.log import get_logger

logger = get_logger(__name__)


class ObjectDatabase:
    """
    Handle on a loose object store.

    The database owns every record it hands out through lookup(); callers
    that build records themselves own those until they are written.
    Objects are stored zlib-compressed at objects/<2 hex>/<38 hex> in the
    format <type> <size>\\0<content>.
    """

    def __init__(self, objects_dir: Path, compression_level: int = -1):
        """
        Open the object database at objects_dir.

        Args:
            objects_dir: Path to the objects directory
            compression_level: zlib level used when writing
        """
        self.objects_dir = Path(objects_dir)
        self.compression_level = compression_level
        self._cache: Dict[bytes, Record] = {}
        # looked-up records edited into an id another cached record holds
        self._retired: List[Record] = []
        self._closed = False
        logger.debug("odb_opened", path=str(self.objects_dir))

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> bool:
        """
        Release every cached record and mark the handle closed.

        Returns:
            bool: True if this call closed the handle, False if it was
            already closed
        """
        if self._closed:
            return False
        for record in [*self._cache.values(), *self._retired]:
            record.free()
        self._cache.clear()
        self._retired.clear()
        self._closed = True
        logger.debug("odb_closed", path=str(self.objects_dir))
        return True

    def _check_open(self) -> None:
        if self._closed:
            raise RepositoryClosedError(
                "Object database is closed", {'path': str(self.objects_dir)})

    def object_path(self, oid: bytes) -> Path:
        """
        Get filesystem path for an object.

        Objects are stored in subdirectories named by the first 2 characters
        of the hex id, with the remaining 38 characters as the filename.
        """
        sha = oid_to_hex(oid)
        return self.objects_dir / sha[:2] / sha[2:]

    def exists(self, oid: bytes) -> bool:
        self._check_open()
        return oid in self._cache or self.object_path(oid).is_file()

    def read_raw(self, oid: bytes) -> Tuple[int, bytes]:
        """
        Read an object's type and payload.

        Args:
            oid: 20-byte identifier

        Returns:
            (type tag, decompressed payload)

        Raises:
            ObjectNotFoundError: If the object is not in the database
            ReadError: If the stored object is corrupt
        """
        self._check_open()
        sha = oid_to_hex(oid)
        path = self.object_path(oid)

        try:
            compressed = path.read_bytes()
        except FileNotFoundError:
            raise ObjectNotFoundError(f'Failed to read hex SHA "{sha}"', sha)
        except OSError as e:
            raise ReadError(f"Unable to read object {sha}: {e}", {'sha': sha})

        try:
            content = zlib.decompress(compressed)
        except zlib.error as e:
            raise ReadError(f"Corrupt object {sha}: {e}", {'sha': sha})

        # Parse header: <type> <size>\0
        null_idx = content.find(b'\0')
        if null_idx < 0:
            raise ReadError(f"Object {sha} has no header", {'sha': sha})
        header = content[:null_idx].decode('ascii', errors='replace')
        data = content[null_idx + 1:]

        try:
            type_name, size_str = header.split(' ', 1)
            size = int(size_str)
        except ValueError:
            raise ReadError(f"Invalid object header: {header}", {'sha': sha})

        if len(data) != size:
            raise ReadError(
                f"Object size mismatch: expected {size}, got {len(data)}",
                {'sha': sha})

        logger.debug("object_read", sha=sha, type=type_name, size=size)
        return type_tag(type_name), data

    def write_raw(self, tag: int, data: bytes) -> bytes:
        """
        Write a payload of the given type.

        Writing an object that already exists is a no-op.

        Returns:
            bytes: 20-byte identifier of the object

        Raises:
            WriteError: If the object cannot be stored
        """
        self._check_open()
        type_name = TYPE_NAMES[tag]
        sha = hash_payload(type_name, data)
        oid = bytes.fromhex(sha)
        path = self.object_path(oid)

        if path.exists():
            return oid

        compressed = zlib.compress(
            object_header(type_name, len(data)) + data, self.compression_level)

        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                    dir=path.parent, prefix='tmp_obj_', delete=False) as f:
                tmp_name = f.name
                f.write(compressed)
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise WriteError(f"Failed to write object {sha}: {e}", {'sha': sha})

        logger.debug("object_written", sha=sha, type=type_name, size=len(data))
        return oid

    def lookup(self, oid: bytes) -> Record:
        """
        Return the database-owned record for oid.

        Records are parsed once and cached; repeated lookups of the same id
        return the same record.
        """
        self._check_open()
        record = self._cache.get(oid)
        if record is not None:
            return record
        tag, data = self.read_raw(oid)
        record = load_record(tag, data, oid)
        self._cache[oid] = record
        return record

    def write_record(self, record: Record) -> bytes:
        """
        Persist a record and update its identifier.

        Cached records are re-keyed under their new identifier. When that
        identifier already belongs to another cached record, the database
        keeps owning this one until close().
        """
        old_oid: Optional[bytes] = record.oid
        oid = self.write_raw(record.tag, record.serialize())
        if old_oid is not None and self._cache.get(old_oid) is record:
            del self._cache[old_oid]
            if self._cache.setdefault(oid, record) is not record:
                self._retired.append(record)
        record.oid = oid
        record.modified = False
        return oid

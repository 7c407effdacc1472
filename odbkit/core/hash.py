"""Hash and identifier utilities for odbkit."""

import hashlib
import string

from odbkit.errors import ValidationError

OID_RAWSZ = 20
OID_HEXSZ = 40

_HEX_DIGITS = frozenset(string.hexdigits)


def hash_object(data: bytes) -> str:
    """
    Compute SHA-1 hash of data.
    
    Args:
        data: Bytes to hash
        
    Returns:
        40-character hex string
    """
    return hashlib.sha1(data).hexdigest()


def hash_file(filepath: str) -> str:
    """
    Compute SHA-1 hash of file.
    
    Args:
        filepath: Path to file
        
    Returns:
        40-character hex string
    """
    with open(filepath, 'rb') as f:
        return hash_object(f.read())


def object_header(type_name: str, size: int) -> bytes:
    """Loose object header: <type> <size>\\0"""
    return f"{type_name} {size}\0".encode()


def hash_payload(type_name: str, data: bytes) -> str:
    """
    Compute the identifier of an object payload.
    
    Objects are hashed with a header containing the type and size.
    Format: <type> <size>\\0<content>
    
    Args:
        type_name: Object type name (blob, tree, commit, tag)
        data: Object payload
        
    Returns:
        str: 40-character SHA-1 hash
    """
    return hash_object(object_header(type_name, len(data)) + data)


def hex_to_oid(sha) -> bytes:
    """
    Decode a hex SHA into its 20 raw bytes.
    
    Upper-case digits are accepted. Anything that is not a string of
    exactly 40 hex digits is rejected before it can reach the database.
    
    Raises:
        ValidationError: If sha is malformed
    """
    if not isinstance(sha, str) or len(sha) != OID_HEXSZ:
        raise ValidationError(sha)
    if not _HEX_DIGITS.issuperset(sha):
        raise ValidationError(sha)
    return bytes.fromhex(sha)


def oid_to_hex(oid: bytes) -> str:
    """Encode 20 raw bytes as a lowercase hex SHA."""
    if len(oid) != OID_RAWSZ:
        raise ValueError(f"Expected {OID_RAWSZ} bytes, got {len(oid)}")
    return oid.hex()


def normalize_hex(sha) -> str:
    """Validate a hex SHA and return its canonical lowercase form."""
    return oid_to_hex(hex_to_oid(sha))

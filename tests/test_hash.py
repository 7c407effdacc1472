"""Hash and identifier utilities tests."""

import pytest
from odbkit.core.hash import (hash_object, hash_file, hash_payload, hex_to_oid,
                              oid_to_hex, normalize_hex)
from odbkit.errors import ValidationError


def test_hash_object_deterministic():
    """Test hash consistency for same input."""
    assert hash_object(b'hello world') == hash_object(b'hello world')
    assert len(hash_object(b'')) == 40


def test_hash_file(tmp_path):
    """Test hashing file contents."""
    path = tmp_path / 'data.bin'
    path.write_bytes(b'file content')
    assert hash_file(str(path)) == hash_object(b'file content')


def test_hash_payload_matches_git():
    """Test object ids match the ones git computes."""
    assert hash_payload('blob', b'') == 'e69de29bb2d1d6484b8b5391e5322b6d77ad4e3d'
    assert hash_payload('blob', b'hello\n') == 'ce013625030ba8dba906f756967f9e9ca394464a'
    assert hash_payload('tree', b'') == '4b825dc642cb6eb9a060e54bf8d69288fbee4904'


@pytest.mark.parametrize('sha', [
    '0' * 40,
    'e69de29bb2d1d6484b8b5391e5322b6d77ad4e3d',
    'ffffffffffffffffffffffffffffffffffffffff',
])
def test_hex_roundtrip(sha):
    """Test decoding then encoding a hex id gives it back."""
    oid = hex_to_oid(sha)
    assert len(oid) == 20
    assert oid_to_hex(oid) == sha


def test_uppercase_hex_normalized():
    """Test upper-case hex is accepted and lower-cased."""
    assert normalize_hex('E69DE29BB2D1D6484B8B5391E5322B6D77AD4E3D') == \
        'e69de29bb2d1d6484b8b5391e5322b6d77ad4e3d'


@pytest.mark.parametrize('bad', [
    '',
    'abc',
    'a' * 39,
    'a' * 41,
    'g' * 40,
    ' ' + 'a' * 39,
    'a' * 38 + '\n ',
    None,
    b'a' * 40,
    40,
])
def test_hex_to_oid_rejects_malformed(bad):
    """Test malformed ids raise ValidationError carrying the input."""
    with pytest.raises(ValidationError) as exc_info:
        hex_to_oid(bad)
    assert exc_info.value.sha == bad
    assert isinstance(exc_info.value, ValueError)


def test_oid_to_hex_wrong_length():
    """Test encoding rejects ids that are not 20 bytes."""
    with pytest.raises(ValueError):
        oid_to_hex(b'\x00' * 19)

"""Tree and TreeEntry tests."""

import pytest
from odbkit import Tree, TreeEntry, Blob, Commit, GIT_OBJ_TREE
from odbkit.errors import DanglingEntryError, ObjectNotFoundError, ValidationError

MISSING = 'b' * 40
EMPTY_TREE = '4b825dc642cb6eb9a060e54bf8d69288fbee4904'


def test_tree_creation(repo):
    """Test creating empty tree."""
    tree = Tree(repo)
    assert len(tree) == 0
    assert tree.type == GIT_OBJ_TREE
    assert list(tree) == []


def test_empty_tree_id(repo):
    """Test an empty tree writes under git's empty-tree id."""
    assert Tree(repo).write() == EMPTY_TREE


def test_add_entry(sample_tree, blob_sha):
    """Test adding entries keeps insertion order."""
    assert len(sample_tree) == 3
    assert [entry.name for entry in sample_tree] == ['zebra.txt', 'apple.txt', 'middle.sh']
    assert sample_tree[0].sha == blob_sha
    assert sample_tree[2].attributes == 0o100755


def test_add_entry_overwrites_in_place(sample_tree):
    """Test re-adding a name replaces the entry at the same position."""
    other = 'c' * 40
    sample_tree.add_entry(other, 'apple.txt', 0o100755)
    assert len(sample_tree) == 3
    assert sample_tree[1].name == 'apple.txt'
    assert sample_tree[1].sha == other
    assert sample_tree[1].attributes == 0o100755


def test_add_entry_validates(sample_tree, blob_sha):
    """Test add_entry rejects bad ids, names and attributes."""
    with pytest.raises(ValidationError, match='Invalid hex SHA "nope"'):
        sample_tree.add_entry('nope', 'file', 0o100644)
    for bad_name in ('', '.', '..', 'a/b', 'a\0b'):
        with pytest.raises(ValueError):
            sample_tree.add_entry(blob_sha, bad_name, 0o100644)
    with pytest.raises(TypeError):
        sample_tree.add_entry(blob_sha, 'file', '100644')
    with pytest.raises(TypeError):
        sample_tree.add_entry(blob_sha, name='file', attributes=0o100644)
    assert len(sample_tree) == 3


def test_contains(sample_tree):
    """Test membership by exact name."""
    assert 'apple.txt' in sample_tree
    assert 'apple' not in sample_tree
    assert 0 not in sample_tree


def test_getitem_by_name(sample_tree):
    """Test lookup by name."""
    entry = sample_tree['middle.sh']
    assert isinstance(entry, TreeEntry)
    assert entry.name == 'middle.sh'
    assert entry.tree is sample_tree


def test_getitem_missing_name(sample_tree):
    """Test a missing name raises KeyError with the name."""
    with pytest.raises(KeyError) as exc_info:
        sample_tree['missing.txt']
    assert exc_info.value.args == ('missing.txt',)


def test_getitem_by_index(sample_tree):
    """Test positional lookup including negative indices."""
    n = len(sample_tree)
    assert sample_tree[-1] == sample_tree[n - 1]
    assert sample_tree[-n] == sample_tree[0]
    assert sample_tree[0] != sample_tree[1]
    assert [sample_tree[i].name for i in range(n)] == ['zebra.txt', 'apple.txt', 'middle.sh']


@pytest.mark.parametrize('index', [3, 4, -4, -100])
def test_getitem_out_of_range(sample_tree, index):
    """Test indices outside [-len, len) raise IndexError."""
    with pytest.raises(IndexError) as exc_info:
        sample_tree[index]
    assert exc_info.value.args == (index,)


@pytest.mark.parametrize('key', [1.0, None, b'apple.txt', True])
def test_getitem_bad_key_type(sample_tree, key):
    """Test keys other than str and int are rejected."""
    with pytest.raises(TypeError, match='Expected int or str'):
        sample_tree[key]


def test_delitem_by_name(sample_tree):
    """Test deleting by name removes exactly that entry."""
    del sample_tree['apple.txt']
    assert len(sample_tree) == 2
    assert 'apple.txt' not in sample_tree
    assert [entry.name for entry in sample_tree] == ['zebra.txt', 'middle.sh']


def test_delitem_by_index(sample_tree):
    """Test deleting by negative index."""
    del sample_tree[-1]
    assert [entry.name for entry in sample_tree] == ['zebra.txt', 'apple.txt']


def test_delitem_errors(sample_tree):
    """Test delete raises the same errors as lookup."""
    with pytest.raises(KeyError):
        del sample_tree['missing.txt']
    with pytest.raises(IndexError):
        del sample_tree[3]
    with pytest.raises(IndexError):
        del sample_tree[-4]
    with pytest.raises(TypeError):
        del sample_tree[1.5]
    assert len(sample_tree) == 3


def test_setitem_unsupported(sample_tree):
    """Test entries cannot be assigned directly."""
    with pytest.raises(ValueError, match='use add_entry'):
        sample_tree['apple.txt'] = sample_tree['zebra.txt']
    with pytest.raises(ValueError, match='use add_entry'):
        sample_tree[0] = None


def test_entry_setters(sample_tree, blob_sha):
    """Test entry attributes, name and id can be changed."""
    entry = sample_tree['apple.txt']
    entry.attributes = 0o100755
    entry.name = 'banana.txt'
    entry.sha = 'C' * 40

    assert 'banana.txt' in sample_tree
    assert 'apple.txt' not in sample_tree
    assert sample_tree['banana.txt'].attributes == 0o100755
    assert sample_tree['banana.txt'].sha == 'c' * 40


def test_entry_setters_validate(sample_tree):
    """Test entry setters reject bad values."""
    entry = sample_tree['apple.txt']
    with pytest.raises(ValidationError):
        entry.sha = 'xyz'
    with pytest.raises(ValueError):
        entry.name = 'a/b'
    with pytest.raises(ValueError, match='already has an entry'):
        entry.name = 'zebra.txt'
    with pytest.raises(TypeError):
        entry.attributes = 'rwx'
    assert entry.name == 'apple.txt'


def test_entry_to_object(sample_tree, blob_sha):
    """Test an entry resolves to the object it points at."""
    blob = sample_tree['apple.txt'].to_object()
    assert isinstance(blob, Blob)
    assert blob.sha == blob_sha
    assert blob.owns_record is False
    assert blob.data == b'Hello, World!\n'


def test_entry_resolve_subtree(repo, sample_tree):
    """Test a directory entry resolves to a Tree."""
    parent = Tree(repo)
    parent.add_entry(sample_tree.write(), 'sub', 0o040000)
    subtree = parent['sub'].resolve()
    assert isinstance(subtree, Tree)
    assert len(subtree) == 3


def test_dangling_entry(sample_tree):
    """Test resolving a missing object names the entry's id."""
    sample_tree.add_entry(MISSING, 'ghost', 0o100644)
    with pytest.raises(DanglingEntryError) as exc_info:
        sample_tree['ghost'].to_object()
    assert exc_info.value.sha == MISSING
    assert exc_info.value.name == 'ghost'
    assert isinstance(exc_info.value, ObjectNotFoundError)
    assert isinstance(exc_info.value, LookupError)


def test_entry_keeps_tree_alive(repo, blob_sha):
    """Test an entry view keeps its tree usable after the tree name is dropped."""
    tree = Tree(repo)
    tree.add_entry(blob_sha, 'file', 0o100644)
    entry = tree['file']
    del tree
    assert entry.tree['file'] == entry
    assert entry.to_object().sha == blob_sha


def test_write_sorts_entries(repo, sample_tree):
    """Test stored trees use git's canonical order."""
    sha = sample_tree.write()
    stored = repo[sha]
    assert [entry.name for entry in stored] == ['apple.txt', 'middle.sh', 'zebra.txt']
    assert stored[0].attributes == 0o100644
    assert stored[1].attributes == 0o100755


def test_directories_sort_with_trailing_slash(repo, blob_sha):
    """Test 'a' as a directory sorts after 'a.txt' like git does."""
    tree = Tree(repo)
    tree.add_entry(Tree(repo).write(), 'a', 0o040000)
    tree.add_entry(blob_sha, 'a.txt', 0o100644)
    stored = repo[tree.write()]
    assert [entry.name for entry in stored] == ['a.txt', 'a']


def test_modify_after_write_changes_id(repo, sample_tree):
    """Test mutations mark the tree for rewriting."""
    first = sample_tree.write()
    assert sample_tree.write() == first

    del sample_tree['apple.txt']
    second = sample_tree.write()
    assert second != first
    assert first in repo and second in repo
    assert len(repo[second]) == 2


def test_modify_looked_up_tree(repo, sample_tree):
    """Test a looked-up tree can be edited and rewritten."""
    tree = repo[sample_tree.write()]
    tree['apple.txt'].name = 'renamed.txt'
    new_sha = tree.write()
    assert tree.sha == new_sha
    assert 'renamed.txt' in repo[new_sha]


def test_tree_read_raw(repo, blob_sha):
    """Test the raw payload of a written tree."""
    tree = Tree(repo)
    tree.add_entry(blob_sha, 'f', 0o100644)
    tree.write()
    assert tree.read_raw() == b'100644 f\0' + bytes.fromhex(blob_sha)


def test_commit_tree_entry(repo, sample_commit):
    """Test a commit can be referenced from a tree entry (submodule mode)."""
    tree = Tree(repo)
    tree.add_entry(sample_commit.write(), 'module', 0o160000)
    assert isinstance(tree['module'].to_object(), Commit)


def test_non_utf8_entry_name(repo, blob_sha):
    """Test entry names are raw bytes and round-trip unchanged."""
    raw = b'100644 caf\xe9.txt\0' + bytes.fromhex(blob_sha)
    tree = repo[repo.write(GIT_OBJ_TREE, raw)]
    entry = tree[0]
    assert entry.name == 'caf\udce9.txt'
    assert entry.name in tree
    assert isinstance(entry.to_object(), Blob)

    entry.attributes = 0o100755
    stored = repo.read(tree.write())[1]
    assert stored == b'100755 caf\xe9.txt\0' + bytes.fromhex(blob_sha)

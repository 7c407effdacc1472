"""Shared pytest fixtures for odbkit tests."""

import logging

import pytest
import tempfile
import shutil
from pathlib import Path
from odbkit.core.config import Config
from odbkit.core.repository import Repository
from odbkit.core.objects import Tree, Commit


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep the user's global config and environment out of the tests."""
    monkeypatch.setattr(Config, 'GLOBAL_CONFIG_PATH', tmp_path / 'global.odbkitconfig')
    for key in ('ODBKIT_USER_NAME', 'ODBKIT_USER_EMAIL', 'ODBKIT_CORE_COMPRESSION'):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo the CLI's logging setup after each test."""
    logger = logging.getLogger('odbkit')
    handlers, level, propagate = logger.handlers[:], logger.level, logger.propagate
    yield
    logger.handlers = handlers
    logger.propagate = propagate
    logger.setLevel(level)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    tmpdir = tempfile.mkdtemp()
    yield Path(tmpdir)
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def repo(temp_dir):
    """Create an initialized repository."""
    repo = Repository.init(str(temp_dir))
    yield repo
    repo.close()


@pytest.fixture
def blob_sha(repo):
    """Hex id of a stored blob."""
    return repo.create_blob(b"Hello, World!\n")


@pytest.fixture
def sample_tree(repo, blob_sha):
    """Unwritten tree with three entries, inserted out of name order."""
    tree = Tree(repo)
    tree.add_entry(blob_sha, 'zebra.txt', 0o100644)
    tree.add_entry(blob_sha, 'apple.txt', 0o100644)
    tree.add_entry(blob_sha, 'middle.sh', 0o100755)
    return tree


@pytest.fixture
def sample_commit(repo, sample_tree):
    """Unwritten commit pointing at a stored tree."""
    commit = Commit(repo)
    commit.tree = sample_tree.write()
    commit.author = ('Test User', 'test@example.com', 1700000000)
    commit.committer = ('Test User', 'test@example.com', 1700000100)
    commit.message = 'Test commit\n\nWith a body.\n'
    return commit

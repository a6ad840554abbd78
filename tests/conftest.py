import pytest

from fixtures.sample_data import SAMPLE_FILES, FakeEmbeddings, FakeProvider, write_repo


@pytest.fixture
def sample_repo(tmp_path):
    """A small repository with code files, a README and ignored directories."""
    return write_repo(tmp_path / "repo", SAMPLE_FILES)


@pytest.fixture
def fake_embeddings():
    return FakeEmbeddings()


@pytest.fixture
def fake_provider():
    return FakeProvider()

import math

import pytest

from fixtures.sample_data import FakeEmbeddings, write_repo
from repomind.core.models import EmbeddingChunk, IndexEntry, RepositoryIndex
from repomind.core.repository_parser import build_index
from repomind.core.retriever import (
    LEXICAL,
    SEMANTIC,
    TRUNCATION_MARKER,
    CodeRetriever,
    cosine_similarity,
    extract_keywords,
    rank_chunks,
    score_path,
    select_files_by_path,
)


def _entries(*paths):
    return [IndexEntry(path=p, size=1, ext="." + p.rsplit(".", 1)[-1]) for p in paths]


def _chunk(chunk_id, vector, file="a.py", start=0, end=1):
    return EmbeddingChunk(id=chunk_id, file=file, start=start, end=end, embedding=vector)


def test_keywords_split_and_length_filtered():
    keywords = extract_keywords("How does login() work? a_b is OK, x" + "y" * 41)

    assert keywords == ["how", "does", "login", "work", "a_b"]


def test_keywords_are_unique():
    assert extract_keywords("login LOGIN login") == ["login"]


def test_score_counts_each_keyword_once():
    assert score_path("src/login/login_form.ts", ["login"]) == 1
    assert score_path("src/Auth/Login.ts", ["auth", "login", "work"]) == 2


def test_all_keywords_outrank_subset():
    selected = select_files_by_path(
        _entries("src/auth.py", "src/auth_login.py"), ["auth", "login"], max_files=5)

    assert [e.path for e, _ in selected] == ["src/auth_login.py", "src/auth.py"]


def test_ties_break_by_path():
    selected = select_files_by_path(
        _entries("b/login.py", "a/login.py", "c/other.py"), ["login"], max_files=5)

    assert [(e.path, s) for e, s in selected] == [("a/login.py", 1), ("b/login.py", 1)]


def test_select_respects_max_files():
    paths = [f"mod{i}/login.py" for i in range(8)]

    assert len(select_files_by_path(_entries(*paths), ["login"], max_files=5)) == 5


def test_select_without_keywords_is_empty():
    assert select_files_by_path(_entries("a.py"), [], max_files=5) == []


def test_cosine_self_similarity_and_symmetry():
    a = [0.3, -1.2, 4.0]
    b = [1.0, 0.5, -0.25]

    assert math.isclose(cosine_similarity(a, a), 1.0, rel_tol=1e-6)
    assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))


def test_cosine_of_zero_vector_is_zero():
    assert cosine_similarity([0.0, 0.0], [1.0, 0.0]) == 0.0


def test_cosine_of_mismatched_lengths_is_zero():
    assert cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0]) == 0.0


def test_semantic_ranking_order():
    chunks = [_chunk(1, [1.0, 0.0]), _chunk(2, [0.0, 1.0]), _chunk(3, [0.9, 0.1])]

    ranked = rank_chunks([1.0, 0.0], chunks, top_k=10)

    assert [c.id for c, _ in ranked] == [1, 3, 2]


def test_semantic_ties_keep_stored_order():
    chunks = [_chunk(i, [1.0, 0.0]) for i in range(12)]

    ranked = rank_chunks([1.0, 0.0], chunks, top_k=10)

    assert [c.id for c, _ in ranked] == list(range(10))


def test_lexical_path_reads_matching_files(sample_repo):
    index = build_index(sample_repo)

    result = CodeRetriever().retrieve("how does login work", index)

    assert result.strategy == LEXICAL
    assert result.used_files == ["src/auth/login.ts"]
    assert result.snippets[0].metadata["source"] == "src/auth/login.ts"
    assert "export function login" in result.snippets[0].page_content


def test_lexical_snippet_is_truncated(tmp_path):
    root = write_repo(tmp_path, {"big_module.py": "z" * 5000})
    index = build_index(root)

    result = CodeRetriever(max_chars_per_file=2000).retrieve("big module", index)
    text = result.snippets[0].page_content

    assert text == "z" * 2000 + TRUNCATION_MARKER


def test_lexical_skips_unreadable_files(sample_repo):
    index = build_index(sample_repo)
    (sample_repo / "src" / "auth" / "login.ts").unlink()

    result = CodeRetriever().retrieve("auth login", index)

    assert result.used_files == ["src/auth/session.ts"]


def test_no_match_returns_empty_result(tmp_path):
    index = build_index(tmp_path)

    result = CodeRetriever().retrieve("anything at all", index)

    assert result.strategy == LEXICAL
    assert not result.matched
    assert result.used_files == []


def test_empty_embedding_index_uses_lexical_path(sample_repo):
    index = build_index(sample_repo)
    embeddings = FakeEmbeddings()

    result = CodeRetriever(embeddings=embeddings).retrieve("login", index, embedding_chunks=[])

    assert result.strategy == LEXICAL
    assert embeddings.calls == []


def test_semantic_path_extracts_chunk_ranges(tmp_path):
    root = write_repo(tmp_path, {"a.py": "0123456789", "b.py": "abcdefghij"})
    index = build_index(root)
    chunks = [
        _chunk(0, [1.0, 0.0], file="a.py", start=0, end=5),
        _chunk(1, [0.0, 1.0], file="b.py", start=5, end=10),
        _chunk(2, [0.9, 0.1], file="a.py", start=5, end=10),
    ]
    embeddings = FakeEmbeddings(vectors={"where": [1.0, 0.0]})

    result = CodeRetriever(embeddings=embeddings).retrieve("where", index, chunks)

    assert result.strategy == SEMANTIC
    assert embeddings.calls == ["where"]
    assert [d.page_content for d in result.snippets] == ["01234", "56789", "fghij"]
    assert [(d.metadata["start"], d.metadata["end"]) for d in result.snippets] == [(0, 5), (5, 10), (5, 10)]
    assert result.used_files == ["a.py", "b.py"]


def test_semantic_path_skips_missing_and_shrunk_files(tmp_path):
    root = write_repo(tmp_path, {"a.py": "short", "b.py": "0123456789"})
    index = build_index(root)
    (root / "b.py").unlink()
    chunks = [
        _chunk(0, [1.0, 0.0], file="b.py", start=0, end=5),
        _chunk(1, [1.0, 0.0], file="a.py", start=800, end=1600),
        _chunk(2, [1.0, 0.0], file="a.py", start=3, end=10),
    ]

    result = CodeRetriever(embeddings=FakeEmbeddings()).retrieve("q", index, chunks)

    assert [d.page_content for d in result.snippets] == ["rt"]
    assert result.used_files == ["a.py"]


def test_semantic_path_requires_embeddings(sample_repo):
    index = RepositoryIndex(root=str(sample_repo), entries=[])

    with pytest.raises(ValueError):
        CodeRetriever().retrieve("q", index, [_chunk(0, [1.0])])

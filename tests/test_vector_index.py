"""Tests for the in-memory vector index and cosine similarity."""

import threading

import numpy as np
import pytest

from docseek import (
    DimensionMismatchError,
    DocumentMetadata,
    DocumentNotFoundError,
    SearchHit,
    VectorIndex,
    cosine_similarity,
)


def unit(*components):
    vector = np.array(components, dtype=float)
    return vector / np.linalg.norm(vector)


class TestCosineSimilarity:
    """Test the cosine similarity helper."""

    def test_identical_vectors(self):
        assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)

    def test_orthogonal_vectors(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == 0.0

    def test_opposite_vectors(self):
        assert cosine_similarity([1.0, 1.0], [-1.0, -1.0]) == pytest.approx(-1.0)

    def test_magnitude_invariant(self):
        assert cosine_similarity([1.0, 2.0], [10.0, 20.0]) == pytest.approx(1.0)

    def test_symmetric(self):
        rng = np.random.default_rng(7)
        for _ in range(20):
            a = rng.normal(size=32)
            b = rng.normal(size=32)
            assert cosine_similarity(a, b) == cosine_similarity(b, a)

    def test_zero_vector_scores_zero(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 2.0]) == 0.0
        assert cosine_similarity([1.0, 2.0], [0.0, 0.0]) == 0.0
        assert cosine_similarity([0.0, 0.0], [0.0, 0.0]) == 0.0

    def test_within_bounds(self):
        rng = np.random.default_rng(11)
        for _ in range(20):
            score = cosine_similarity(rng.normal(size=8), rng.normal(size=8))
            assert -1.0 <= score <= 1.0

    def test_dimension_mismatch(self):
        with pytest.raises(DimensionMismatchError):
            cosine_similarity([1.0, 2.0], [1.0, 2.0, 3.0])


class TestVectorIndexStorage:
    """Test document and chunk tables."""

    @pytest.fixture
    def index(self):
        return VectorIndex()

    def test_document_ids_are_monotonic(self, index):
        first = index.add_document("a.txt", owner_id=1)
        second = index.add_document("b.txt", owner_id=1)

        assert (first.id, second.id) == (1, 2)
        assert index.get_document(2) is second

    def test_document_defaults(self, index):
        document = index.add_document("a.txt", owner_id=7)

        assert document.file_type == "TEXT"
        assert document.metadata == DocumentMetadata()
        assert document.created_at.tzinfo is not None

    def test_document_is_immutable(self, index):
        document = index.add_document("a.txt", owner_id=1)

        with pytest.raises(AttributeError):
            document.title = "changed"

    def test_unknown_document(self, index):
        with pytest.raises(DocumentNotFoundError) as excinfo:
            index.get_document(99)
        assert excinfo.value.document_id == 99
        assert "99" in str(excinfo.value)

        with pytest.raises(KeyError):
            index.chunks_for_document(99)

    def test_chunk_ordinals_must_be_contiguous(self, index):
        document = index.add_document("a.txt", owner_id=1)
        index.add_chunk(document.id, 0, "first")

        with pytest.raises(ValueError):
            index.add_chunk(document.id, 2, "skipped one")
        with pytest.raises(ValueError):
            index.add_chunk(document.id, 0, "duplicate")

        index.add_chunk(document.id, 1, "second")
        assert [c.ordinal for c in index.chunks_for_document(document.id)] == [0, 1]

    def test_chunk_requires_existing_document(self, index):
        with pytest.raises(DocumentNotFoundError):
            index.add_chunk(5, 0, "orphan")

    def test_chunk_text_must_be_non_empty(self, index):
        document = index.add_document("a.txt", owner_id=1)
        with pytest.raises(ValueError):
            index.add_chunk(document.id, 0, "")

    def test_first_embedding_fixes_dimension(self, index):
        document = index.add_document("a.txt", owner_id=1)
        index.add_chunk(document.id, 0, "first", unit(1, 0, 0))

        assert index.dimension == 3
        with pytest.raises(DimensionMismatchError):
            index.add_chunk(document.id, 1, "second", unit(1, 0))

    def test_stored_embedding_is_read_only_copy(self, index):
        document = index.add_document("a.txt", owner_id=1)
        original = unit(1, 1)
        chunk = index.add_chunk(document.id, 0, "text", original)

        original[0] = 100.0
        assert chunk.embedding[0] == pytest.approx(unit(1, 1)[0])
        with pytest.raises(ValueError):
            chunk.embedding[0] = 5.0

    def test_chunk_without_embedding(self, index):
        document = index.add_document("a.txt", owner_id=1)
        chunk = index.add_chunk(document.id, 0, "text")

        assert chunk.has_embedding is False
        assert index.get_stats()["embedded_chunks"] == 0

    def test_documents_by_owner_and_recent(self, index):
        a = index.add_document("a.txt", owner_id=1)
        index.add_document("b.txt", owner_id=2)
        c = index.add_document("c.txt", owner_id=1)

        assert index.documents_by_owner(1) == [a, c]
        assert index.recent_documents(1) == [c, a]
        assert index.recent_documents(1, limit=1) == [c]
        assert index.recent_documents(3) == []

    def test_concurrent_writers_keep_ids_unique(self, index):
        documents = [index.add_document(f"doc{i}.txt", owner_id=1) for i in range(4)]

        def writer(document):
            for ordinal in range(50):
                index.add_chunk(document.id, ordinal, f"chunk {ordinal}", unit(1, ordinal + 1))

        threads = [threading.Thread(target=writer, args=(d,)) for d in documents]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        chunk_ids = []
        for document in documents:
            chunks = index.chunks_for_document(document.id)
            assert [c.ordinal for c in chunks] == list(range(50))
            chunk_ids.extend(c.id for c in chunks)
        assert len(set(chunk_ids)) == 200


class TestVectorIndexSearch:
    """Test linear-scan search with per-document deduplication."""

    @pytest.fixture
    def index(self):
        index = VectorIndex()
        disjoint_a = index.add_document("fruit.txt", owner_id=1)
        disjoint_b = index.add_document("cars.txt", owner_id=1)
        overlap = index.add_document("mixed.txt", owner_id=1)
        index.add_chunk(disjoint_a.id, 0, "apple banana", unit(1, 1, 0, 0))
        index.add_chunk(disjoint_b.id, 0, "engine wheel", unit(0, 0, 1, 1))
        index.add_chunk(overlap.id, 0, "apple engine", unit(1, 0, 1, 0))
        index.add_chunk(overlap.id, 1, "banana wheel", unit(0, 1, 0, 1))
        return index

    def test_overlapping_document_ranks_first(self, index):
        hits = index.search(unit(1, 0, 1, 0), k=3)

        assert hits[0] == SearchHit(document_id=3, score=pytest.approx(1.0))
        assert {hit.document_id for hit in hits[1:]} == {1, 2}
        assert len({hit.document_id for hit in hits}) == len(hits)

    def test_results_sorted_descending(self, index):
        hits = index.search(unit(3, 1, 0.5, 0), k=10)

        scores = [hit.score for hit in hits]
        assert scores == sorted(scores, reverse=True)

    def test_best_chunk_per_document(self, index):
        hits = index.search(unit(0, 1, 0, 1), k=10)

        assert hits[0].document_id == 3
        assert hits[0].score == pytest.approx(1.0)
        assert len(hits) == 3

    def test_ties_keep_insertion_order(self, index):
        # Documents 1 and 2 both score 0.5 against the overlapping vector
        hits = index.search(unit(1, 0, 1, 0), k=3)

        assert [hit.document_id for hit in hits] == [3, 1, 2]
        assert hits[1].score == pytest.approx(hits[2].score)

    def test_truncates_to_k(self, index):
        assert len(index.search(unit(1, 1, 1, 1), k=2)) == 2
        assert index.search(unit(1, 1, 1, 1), k=0) == []

    def test_chunks_without_embeddings_are_skipped(self, index):
        silent = index.add_document("silent.txt", owner_id=1)
        index.add_chunk(silent.id, 0, "apple engine")

        hits = index.search(unit(1, 0, 1, 0), k=10)

        assert silent.id not in {hit.document_id for hit in hits}

    def test_owner_filter(self, index):
        other = index.add_document("other.txt", owner_id=2)
        index.add_chunk(other.id, 0, "apple engine", unit(1, 0, 1, 0))

        mine = index.search(unit(1, 0, 1, 0), k=10, owner_id=1)
        theirs = index.search(unit(1, 0, 1, 0), k=10, owner_id=2)

        assert other.id not in {hit.document_id for hit in mine}
        assert [hit.document_id for hit in theirs] == [other.id]

    def test_zero_query_scores_zero(self, index):
        hits = index.search(np.zeros(4), k=10)

        assert all(hit.score == 0.0 for hit in hits)
        assert [hit.document_id for hit in hits] == [1, 2, 3]

    def test_query_dimension_mismatch(self, index):
        with pytest.raises(DimensionMismatchError):
            index.search(unit(1, 0), k=3)

    def test_empty_index(self):
        assert VectorIndex().search(unit(1, 0), k=5) == []


class TestSearchHistory:
    """Test bounded search history."""

    def test_newest_first_per_owner(self):
        index = VectorIndex()
        index.record_search("first", 1, [1, 2])
        index.record_search("other owner", 2, [])
        index.record_search("second", 1, [3])

        records = index.search_history(1)

        assert [r.query for r in records] == ["second", "first"]
        assert records[1].document_ids == (1, 2)

    def test_limit(self):
        index = VectorIndex()
        for i in range(5):
            index.record_search(f"q{i}", 1, [])

        assert [r.query for r in index.search_history(1, limit=2)] == ["q4", "q3"]

    def test_bounded_window(self):
        index = VectorIndex(history_size=3)
        for i in range(5):
            index.record_search(f"q{i}", 1, [])

        assert [r.query for r in index.search_history(1)] == ["q4", "q3", "q2"]
        assert index.get_stats()["search_records"] == 3

    def test_records_are_immutable(self):
        record = VectorIndex().record_search("q", 1, [1])

        with pytest.raises(AttributeError):
            record.query = "changed"

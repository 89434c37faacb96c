"""Tests for related-document discovery."""

import numpy as np
import pytest

from docseek import DocumentAggregator, DocumentNotFoundError, VectorIndex


def unit(*components):
    vector = np.array(components, dtype=float)
    return vector / np.linalg.norm(vector)


@pytest.fixture
def index():
    index = VectorIndex()
    # Document 1 averages to (1, 1, 0)
    source = index.add_document("source.txt", owner_id=1)
    index.add_chunk(source.id, 0, "a", unit(1, 0, 0))
    index.add_chunk(source.id, 1, "b", unit(0, 1, 0))
    close = index.add_document("close.txt", owner_id=1)
    index.add_chunk(close.id, 0, "c", unit(1, 1, 0.1))
    far = index.add_document("far.txt", owner_id=1)
    index.add_chunk(far.id, 0, "d", unit(0, 0, 1))
    middle = index.add_document("middle.txt", owner_id=2)
    index.add_chunk(middle.id, 0, "e", unit(1, 0, 1))
    return index


class TestDocumentAggregator:
    """Test mean embeddings and related document lookup."""

    def test_document_vector_is_unnormalized_mean(self, index):
        vector = DocumentAggregator(index).document_vector(1)

        assert np.allclose(vector, [0.5, 0.5, 0.0])
        assert np.linalg.norm(vector) < 1.0

    def test_related_ranked_by_similarity(self, index):
        related = DocumentAggregator(index).related_to(1, limit=3)

        assert [d.title for d in related] == ["close.txt", "middle.txt", "far.txt"]

    def test_never_includes_source(self, index):
        aggregator = DocumentAggregator(index)

        for document_id in (1, 2, 3, 4):
            for limit in range(0, 6):
                related = aggregator.related_to(document_id, limit=limit)
                assert document_id not in [d.id for d in related]
                assert len(related) <= limit

    def test_limit_truncates(self, index):
        related = DocumentAggregator(index).related_to(1, limit=1)

        assert [d.id for d in related] == [2]

    def test_zero_limit(self, index):
        assert DocumentAggregator(index).related_to(1, limit=0) == []

    def test_document_without_embeddings(self, index):
        silent = index.add_document("silent.txt", owner_id=1)
        index.add_chunk(silent.id, 0, "never embedded")
        aggregator = DocumentAggregator(index)

        assert aggregator.document_vector(silent.id) is None
        assert aggregator.related_to(silent.id) == []

    def test_document_without_chunks(self, index):
        empty = index.add_document("empty.txt", owner_id=1)

        assert DocumentAggregator(index).related_to(empty.id) == []

    def test_unknown_document(self, index):
        with pytest.raises(DocumentNotFoundError):
            DocumentAggregator(index).related_to(42)

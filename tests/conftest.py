"""Shared test fixtures for docseek testing."""

import pytest
import tempfile
import shutil
import re
from pathlib import Path
from typing import Dict, Any, Generator, List
import sys

import numpy as np

# Add parent directory to path so we can import docseek
sys.path.insert(0, str(Path(__file__).parent.parent))

import docseek


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def sample_docs_dir(temp_dir: Path) -> Path:
    """Create a temporary docs directory."""
    docs_dir = temp_dir / "docs"
    docs_dir.mkdir()
    return docs_dir


@pytest.fixture
def sample_txt_content() -> str:
    """Three short paragraphs, well under the default chunk size."""
    return """Vector search ranks documents by the cosine similarity of their embeddings.

Each document is split into paragraph-aligned chunks before it is embedded.

Snippets show the chunk that shares the most words with the query."""


@pytest.fixture
def sample_config() -> Dict[str, Any]:
    """Offline configuration: fallback embeddings, small chunks."""
    return {
        "chunking": {"max_chunk_size": 500},
        "embedding": {
            "provider": "none",
            "model": "all-MiniLM-L6-v2",
            "openai_model": "text-embedding-3-small",
            "dimension": 64,
            "fallback": True,
        },
        "search": {
            "max_results": 5,
            "restrict_to_owner": True,
            "snippet_chars": 200,
            "related_limit": 3,
        },
        "history": {"max_records": 50, "default_limit": 10},
        "models": {
            "default": "all-MiniLM-L6-v2",
            "fast": "paraphrase-MiniLM-L3-v2",
            "multilingual": "sentence-transformers/paraphrase-multilingual-MiniLM-L12-v2",
            "accurate": "all-mpnet-base-v2",
        },
    }


class KeywordProvider(docseek.EmbeddingProvider):
    """Bag-of-words embeddings over a fixed vocabulary, one axis per word."""

    name = "keyword"

    def __init__(self, vocabulary: List[str]):
        self.vocabulary = vocabulary
        self.dimension = len(vocabulary)
        self.calls = 0

    def embed(self, text):
        self.calls += 1
        words = re.findall(r"\w+", text.lower())
        return [float(words.count(term)) for term in self.vocabulary]


class ScriptedProvider(docseek.EmbeddingProvider):
    """Provider that raises queued errors before answering normally."""

    name = "scripted"

    def __init__(self, dimension: int = 8, errors=None):
        self.dimension = dimension
        self.errors = list(errors or [])
        self.calls = 0

    def embed(self, text):
        self.calls += 1
        if self.errors:
            error = self.errors.pop(0)
            if error is not None:
                raise error
        rng = np.random.default_rng(len(text))
        return rng.normal(0, 1, self.dimension) * 3.0


@pytest.fixture
def keyword_provider():
    """Factory for vocabulary-based providers."""
    return KeywordProvider


@pytest.fixture
def scripted_provider():
    """Factory for providers with scripted failures."""
    return ScriptedProvider


@pytest.fixture
def offline_generator() -> docseek.EmbeddingGenerator:
    """Generator that always uses the deterministic fallback."""
    return docseek.EmbeddingGenerator(provider=None, dimension=64, quiet=True)


@pytest.fixture
def engine(sample_config) -> docseek.DocSeek:
    """Fully wired offline engine."""
    return docseek.DocSeek(config=sample_config, quiet=True)

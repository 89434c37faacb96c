#!/usr/bin/env python3
"""docseek - In-memory semantic document search v1.0.0.

Chunks plain-text documents, embeds every chunk and ranks whole documents by
cosine similarity to a natural-language query.

Drop your documents into ./docs and run:
  python docseek.py search "your query"          # Ranked documents with previews
  python docseek.py search "query" --json        # JSON output with scores
  python docseek.py related 3                    # Documents similar to document 3
  python docseek.py interactive                  # Interactive search mode
  python docseek.py status                       # Index statistics
  python docseek.py validate                     # Check configuration

Key Features:
• Paragraph Chunking: Greedy paragraph packing up to a character budget
• Resilient Embeddings: Provider embeddings with a deterministic local fallback
• Document Ranking: Best chunk per document, cosine similarity scores
• Related Documents: Averaged chunk embeddings as a document fingerprint
• Previews: Lexical best-chunk snippets for every result
• Config Support: Optional docseek_config.yaml for customization
"""

# Standard library imports
import argparse
import hashlib
import json
import os
import re
import sys
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import (
    Any,
    Deque,
    Dict,
    Iterator,
    List,
    Optional,
    Sequence,
    Tuple,
)

import numpy as np
import yaml

# Version information
__version__ = "1.0.0"

# Constants
MAX_FILE_SIZE_MB = 100  # Maximum file size in MB
DEFAULT_CHUNK_SIZE = 1000
DEFAULT_RESULTS = 10
DEFAULT_RELATED_LIMIT = 3
DEFAULT_SNIPPET_CHARS = 200
DEFAULT_HISTORY_SIZE = 100
DEFAULT_HISTORY_LIMIT = 10
DEFAULT_RECENT_LIMIT = 10
DEFAULT_OWNER_ID = 1
DEFAULT_FALLBACK_DIMENSION = 384
DEFAULT_FILE_TYPE = "TEXT"
DEFAULT_CONFIG_FILENAME = "docseek_config.yaml"

NO_PREVIEW = "No preview available"
PREVIEW_UNAVAILABLE = "Preview unavailable"
ELLIPSIS = "..."

# File type constants
SUPPORTED_EXTENSIONS = [".md", ".txt"]
GLOB_PATTERNS = ["**/*.md", "**/*.txt"]

# Embedding providers
PROVIDER_SENTENCE_TRANSFORMERS = "sentence-transformers"
PROVIDER_OPENAI = "openai"
PROVIDER_NONE = "none"
PROVIDER_CHOICES = [PROVIDER_SENTENCE_TRANSFORMERS, PROVIDER_OPENAI, PROVIDER_NONE]

# Model presets
FAST_MODEL = "paraphrase-MiniLM-L3-v2"
DEFAULT_MODEL = "all-MiniLM-L6-v2"
MULTILINGUAL_MODEL = "sentence-transformers/paraphrase-multilingual-MiniLM-L12-v2"
ACCURATE_MODEL = "all-mpnet-base-v2"
OPENAI_EMBEDDING_MODEL = "text-embedding-3-small"
OPENAI_EMBEDDING_DIM = 1536

# Configure UTF-8 encoding for cross-platform compatibility
if sys.platform == "win32":
    os.environ.setdefault("PYTHONIOENCODING", "utf-8")
    if hasattr(sys.stdout, "reconfigure"):
        sys.stdout.reconfigure(encoding="utf-8")
    if hasattr(sys.stderr, "reconfigure"):
        sys.stderr.reconfigure(encoding="utf-8")


def get_symbols() -> Dict[str, str]:
    """Get appropriate symbols based on terminal encoding."""
    encoding = (getattr(sys.stdout, "encoding", None) or "").lower()
    if encoding.startswith("utf"):
        return {
            "search": "🔍",
            "found": "📋",
            "success": "✅",
            "bye": "👋",
        }
    return {
        "search": "[Search]",
        "found": "[Found]",
        "success": "[Success]",
        "bye": "[Bye]",
    }


SYMBOLS = get_symbols()

# Pre-compiled regex patterns for performance
PARAGRAPH_BOUNDARY_PATTERN = re.compile(r"\n\s*\n")
QUERY_TERM_SPLIT_PATTERN = re.compile(r"\W+")
WINDOWS_PATH_PATTERN = re.compile(r'[A-Za-z]:[\\\/][^\\\/\s]*[\\\/]')
UNIX_PATH_PATTERN = re.compile(r'\/[^\/\s]*\/')
FILE_URL_PATTERN = re.compile(r'\bfile:\/\/[^\s]*')


# Exceptions
class DocSeekError(Exception):
    """Base class for docseek errors."""


class ProviderError(DocSeekError):
    """The external embedding provider failed."""


class RateLimitedError(ProviderError):
    """The external embedding provider reported a quota or rate limit."""


class EmbeddingError(DocSeekError):
    """No embedding could be produced and the local fallback is disabled."""


class EmptyQueryError(DocSeekError, ValueError):
    """A search was requested with an empty query."""


class DimensionMismatchError(DocSeekError, ValueError):
    """Two vectors that must share a dimension do not."""


class DocumentNotFoundError(DocSeekError, KeyError):
    """No document is stored under the requested identifier."""

    def __init__(self, document_id: int) -> None:
        self.document_id = document_id
        super().__init__(f"Document {document_id} not found")

    def __str__(self) -> str:
        return self.args[0]


def validate_path(file_path: Path, base_path: Optional[Path] = None) -> bool:
    """Validate file path to prevent directory traversal attacks."""
    try:
        resolved_path = file_path.resolve()

        if base_path is None:
            base_path = Path.cwd()
        else:
            base_path = base_path.resolve()

        try:
            resolved_path.relative_to(base_path)
            return True
        except ValueError:
            # Path is outside the base directory
            return False
    except (OSError, ValueError):
        return False


def sanitize_error_message(error_msg: str) -> str:
    """Sanitize error messages to prevent information leakage."""
    sanitized = WINDOWS_PATH_PATTERN.sub('', error_msg)
    sanitized = UNIX_PATH_PATTERN.sub('/', sanitized)
    sanitized = FILE_URL_PATTERN.sub('[FILE_PATH]', sanitized)
    return sanitized


def log_error(message: str, error: Optional[Exception] = None, *, quiet: bool = False) -> None:
    """Centralized error logging with consistent formatting."""
    if quiet:
        return

    if error:
        sanitized_error = sanitize_error_message(str(error))
        print(f"ERROR: {message}: {sanitized_error}")
    else:
        print(f"ERROR: {message}")


def log_warning(message: str, error: Optional[Exception] = None, *, quiet: bool = False) -> None:
    """Centralized warning logging with consistent formatting."""
    if quiet:
        return

    if error:
        sanitized_error = sanitize_error_message(str(error))
        print(f"Warning: {message}: {sanitized_error}")
    else:
        print(f"Warning: {message}")


def log_info(message: str, *, quiet: bool = False) -> None:
    """Progress output, suppressed in quiet mode."""
    if not quiet:
        print(message)


# Data model
@dataclass(frozen=True)
class DocumentMetadata:
    """Size and page information recorded when a document is ingested."""

    size: int = 0
    page_count: Optional[int] = None


@dataclass(frozen=True)
class Document:
    id: int
    title: str
    owner_id: int
    file_type: str
    metadata: DocumentMetadata
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "owner_id": self.owner_id,
            "file_type": self.file_type,
            "size": self.metadata.size,
            "page_count": self.metadata.page_count,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class Chunk:
    """A contiguous segment of a document and its (optional) embedding.

    The embedding array is stored read-only; chunks whose embedding could not
    be generated keep ``embedding=None`` and are skipped by similarity search.
    """

    id: int
    document_id: int
    ordinal: int
    text: str
    embedding: Optional[np.ndarray] = field(default=None, repr=False, compare=False)

    @property
    def has_embedding(self) -> bool:
        return self.embedding is not None


@dataclass(frozen=True)
class SearchRecord:
    id: int
    query: str
    owner_id: int
    document_ids: Tuple[int, ...]
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "query": self.query,
            "owner_id": self.owner_id,
            "document_ids": list(self.document_ids),
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class SearchHit:
    document_id: int
    score: float


@dataclass(frozen=True)
class SearchResult:
    """A ranked document with its relevance score and preview snippet."""

    document: Document
    score: float
    snippet: str

    @property
    def interpretation(self) -> str:
        return interpret_score(self.score)

    def to_dict(self) -> Dict[str, Any]:
        result = self.document.to_dict()
        result.update(
            {
                "score": self.score,
                "interpretation": self.interpretation,
                "snippet": self.snippet,
            }
        )
        return result


# Scoring utility functions
def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """Cosine of the angle between two vectors, clamped to [-1, 1].

    A zero-magnitude vector on either side scores 0.0.

    Raises:
        DimensionMismatchError: If the vectors differ in length.
    """
    a = np.asarray(vec_a, dtype=np.float64)
    b = np.asarray(vec_b, dtype=np.float64)
    if a.shape != b.shape:
        raise DimensionMismatchError(
            f"Vector dimensions must match: {a.shape[-1] if a.ndim else 0} != "
            f"{b.shape[-1] if b.ndim else 0}"
        )

    magnitude_a = float(np.linalg.norm(a))
    magnitude_b = float(np.linalg.norm(b))
    if magnitude_a == 0.0 or magnitude_b == 0.0:
        return 0.0

    similarity = float(np.dot(a, b)) / (magnitude_a * magnitude_b)
    return max(-1.0, min(1.0, similarity))


def interpret_score(score: float) -> str:
    """Provide human-readable score interpretation."""
    if score >= 0.8:
        return "Excellent"
    elif score >= 0.6:
        return "Good"
    elif score >= 0.4:
        return "Fair"
    else:
        return "Poor"


def _l2_normalize(vector: np.ndarray) -> np.ndarray:
    magnitude = float(np.linalg.norm(vector))
    if magnitude == 0.0:
        return vector
    return vector / magnitude


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load optional configuration file."""
    default_config = {
        "chunking": {
            "max_chunk_size": DEFAULT_CHUNK_SIZE,
        },
        "embedding": {
            "provider": PROVIDER_SENTENCE_TRANSFORMERS,
            "model": DEFAULT_MODEL,
            "openai_model": OPENAI_EMBEDDING_MODEL,
            "dimension": None,  # None: use the provider's native dimension
            "fallback": True,
        },
        "search": {
            "max_results": DEFAULT_RESULTS,
            "restrict_to_owner": True,
            "snippet_chars": DEFAULT_SNIPPET_CHARS,
            "related_limit": DEFAULT_RELATED_LIMIT,
        },
        "history": {
            "max_records": DEFAULT_HISTORY_SIZE,
            "default_limit": DEFAULT_HISTORY_LIMIT,
        },
        "models": {
            "default": DEFAULT_MODEL,
            "fast": FAST_MODEL,
            "multilingual": MULTILINGUAL_MODEL,
            "accurate": ACCURATE_MODEL,
        },
    }

    config_file = Path(config_path or DEFAULT_CONFIG_FILENAME)
    if not config_file.exists():
        if config_path:
            log_warning(f"Config file {config_file.name} not found, using defaults")
        return default_config

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            user_config = yaml.safe_load(f) or {}
    except (FileNotFoundError, PermissionError) as e:
        log_warning(f"Could not access config file {config_file.name}", e)
        return default_config
    except yaml.YAMLError as e:
        log_warning(f"Invalid YAML format in {config_file.name}", e)
        return default_config

    if not isinstance(user_config, dict):
        log_warning(f"Ignoring config file {config_file.name}: top level must be a mapping")
        return default_config

    _merge_configs(default_config, user_config)
    return default_config


def _merge_configs(default: Dict[str, Any], user: Dict[str, Any]) -> None:
    """Recursively merge user config into default config."""
    for key, value in user.items():
        if (
            key in default
            and isinstance(default[key], dict)
            and isinstance(value, dict)
        ):
            _merge_configs(default[key], value)
        else:
            default[key] = value


# Chunking
def split_into_chunks(text: str, max_chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[str]:
    """Split text into paragraph-aligned chunks shorter than ``max_chunk_size``.

    Paragraphs (separated by blank lines) are packed greedily into a buffer
    joined with a blank line. The buffer is emitted as soon as the next
    paragraph would bring it to ``max_chunk_size`` characters or more. A
    single paragraph that is already too long is emitted on its own without
    further splitting.

    Returns a lazy iterator; every call starts a fresh pass over ``text``.
    """
    if max_chunk_size <= 0:
        raise ValueError("max_chunk_size must be positive")
    return _iter_paragraph_chunks(text, max_chunk_size)


def _iter_paragraph_chunks(text: str, max_chunk_size: int) -> Iterator[str]:
    separator = "\n\n"
    current = ""

    for paragraph in PARAGRAPH_BOUNDARY_PATTERN.split(text):
        if not paragraph.strip():
            continue

        if not current:
            current = paragraph
        elif len(current) + len(separator) + len(paragraph) < max_chunk_size:
            current = current + separator + paragraph
        else:
            yield current
            current = paragraph

    if current:
        yield current


class Chunker:
    """Paragraph chunker with a fixed character budget."""

    def __init__(self, max_chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if max_chunk_size <= 0:
            raise ValueError("max_chunk_size must be positive")
        self.max_chunk_size = max_chunk_size

    def split(self, text: str) -> Iterator[str]:
        return split_into_chunks(text, self.max_chunk_size)


# Embeddings
def fallback_embedding(text: str, dimension: int) -> np.ndarray:
    """Deterministic unit vector derived from the lowercased text.

    A SHA-256 digest of the text seeds a counter-mode SHA-256 stream; each
    4-byte little-endian word becomes one component in [-1, 1]. Identical text
    always yields a bit-identical vector. The space carries no semantics.
    """
    if dimension <= 0:
        raise ValueError("dimension must be positive")

    seed = hashlib.sha256(text.lower().encode("utf-8")).digest()
    needed = dimension * 4
    stream = bytearray()
    counter = 0
    while len(stream) < needed:
        stream.extend(hashlib.sha256(seed + counter.to_bytes(4, "big")).digest())
        counter += 1

    words = np.frombuffer(bytes(stream[:needed]), dtype="<u4").astype(np.float64)
    components = words / float(0xFFFFFFFF) * 2.0 - 1.0
    return _l2_normalize(components)


class EmbeddingProvider:
    """Interface for external embedding services.

    ``embed`` returns one vector of ``dimension`` floats and raises
    ``RateLimitedError`` for quota problems or ``ProviderError`` otherwise.
    """

    name = "provider"
    dimension: Optional[int] = None

    def embed(self, text: str) -> Sequence[float]:
        raise NotImplementedError


class SentenceTransformerProvider(EmbeddingProvider):
    """Local sentence-transformers model."""

    name = PROVIDER_SENTENCE_TRANSFORMERS

    def __init__(self, model_name: str = DEFAULT_MODEL, quiet: bool = False) -> None:
        self.model_name = model_name
        self.quiet = quiet
        self._model = None
        self._load_error: Optional[str] = None

    @property
    def model(self):
        """Lazy-load embedding model; a failed load is not retried."""
        if self._load_error is not None:
            raise ProviderError(self._load_error)
        if self._model is None:
            log_info(f"Loading embedding model ({self.model_name})...", quiet=self.quiet)
            try:
                from sentence_transformers import SentenceTransformer

                self._model = SentenceTransformer(self.model_name)
            except Exception as error:
                self._load_error = f"Could not load model {self.model_name}: {error}"
                raise ProviderError(self._load_error) from error
        return self._model

    @property
    def dimension(self) -> Optional[int]:
        return self.model.get_sentence_embedding_dimension()

    def embed(self, text: str) -> Sequence[float]:
        model = self.model
        try:
            vectors = model.encode([text], show_progress_bar=False)
        except Exception as error:
            raise ProviderError(f"{self.model_name} failed to encode text: {error}") from error
        return vectors[0]


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """OpenAI embeddings endpoint.

    HTTP 429 responses (rate limits and ``insufficient_quota``) surface as
    ``RateLimitedError``; every other API failure is a ``ProviderError``.
    A non-default ``dimension`` is requested from the endpoint explicitly.
    """

    name = PROVIDER_OPENAI

    def __init__(
        self,
        model: str = OPENAI_EMBEDDING_MODEL,
        api_key: Optional[str] = None,
        dimension: int = OPENAI_EMBEDDING_DIM,
    ) -> None:
        self.model = model
        self.api_key = api_key or os.environ.get("OPENAI_API_KEY")
        self.dimension = dimension
        self._client = None

    @property
    def client(self):
        """Lazy-create the OpenAI client."""
        if self._client is None:
            from openai import OpenAI

            try:
                self._client = OpenAI(api_key=self.api_key)
            except Exception as error:
                raise ProviderError(f"Failed to initialize OpenAI client: {error}") from error
        return self._client

    def embed(self, text: str) -> Sequence[float]:
        import openai

        client = self.client
        request = {"model": self.model, "input": text, "encoding_format": "float"}
        if self.dimension != OPENAI_EMBEDDING_DIM:
            request["dimensions"] = self.dimension
        try:
            response = client.embeddings.create(**request)
        except openai.RateLimitError as error:
            raise RateLimitedError(f"OpenAI quota exceeded: {error}") from error
        except openai.APIError as error:
            raise ProviderError(f"OpenAI embedding request failed: {error}") from error
        return response.data[0].embedding


class DegradedLatch:
    """One-way switch recording that the embedding provider ran out of quota.

    Shared by every generator that should stop calling the provider together.
    Tripping is atomic and idempotent; there is no reset.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()

    @property
    def is_set(self) -> bool:
        return self._event.is_set()

    def trip(self) -> bool:
        """Set the latch; True only for the call that actually flipped it."""
        with self._lock:
            if self._event.is_set():
                return False
            self._event.set()
            return True


class EmbeddingGenerator:
    """Maps text to unit vectors of a fixed dimension.

    Normal mode calls the provider. The first ``RateLimitedError`` trips the
    latch and from then on the provider is never called again; the
    deterministic ``fallback_embedding`` answers instead. Any other provider
    failure falls back for that one text only.

    With ``fallback=False`` failures raise ``EmbeddingError`` instead of
    falling back. Without a provider the generator runs entirely on the
    fallback path.
    """

    def __init__(
        self,
        provider: Optional[EmbeddingProvider] = None,
        dimension: Optional[int] = None,
        latch: Optional[DegradedLatch] = None,
        fallback: bool = True,
        quiet: bool = False,
    ) -> None:
        if dimension is not None and dimension <= 0:
            raise ValueError("dimension must be positive")
        self.provider = provider
        self.latch = latch if latch is not None else DegradedLatch()
        self.fallback = fallback
        self.quiet = quiet
        self._dimension = dimension
        self._stats_lock = threading.Lock()
        self.stats = {"provider_calls": 0, "fallback_calls": 0, "provider_errors": 0}

    @property
    def is_degraded(self) -> bool:
        return self.latch.is_set

    @property
    def dimension(self) -> int:
        if self._dimension is None:
            self._dimension = self._resolve_dimension()
        return self._dimension

    def _resolve_dimension(self) -> int:
        if self.provider is not None:
            try:
                provider_dimension = self.provider.dimension
            except ProviderError as error:
                log_warning("Could not determine provider embedding dimension", error, quiet=self.quiet)
                provider_dimension = None
            if provider_dimension:
                return int(provider_dimension)
        return DEFAULT_FALLBACK_DIMENSION

    def embed(self, text: str) -> np.ndarray:
        if self.provider is None:
            return self._fallback(text)

        if self.latch.is_set:
            if not self.fallback:
                raise EmbeddingError("Embedding provider disabled after a quota error")
            return self._fallback(text)

        try:
            vector = self._validate(self.provider.embed(text))
        except RateLimitedError as error:
            self._count("provider_errors")
            if self.latch.trip():
                log_warning(
                    "Embedding provider quota exceeded; using local fallback embeddings from now on",
                    error,
                    quiet=self.quiet,
                )
            return self._recover(text, error)
        except Exception as error:
            self._count("provider_errors")
            log_warning("Embedding provider failed; using local fallback for this text", error, quiet=self.quiet)
            return self._recover(text, error)

        self._count("provider_calls")
        return vector

    def _validate(self, raw: Sequence[float]) -> np.ndarray:
        vector = np.asarray(raw, dtype=np.float64)
        if vector.ndim != 1 or vector.shape[0] != self.dimension:
            raise ProviderError(
                f"Provider returned shape {vector.shape}, expected ({self.dimension},)"
            )
        if not np.all(np.isfinite(vector)):
            raise ProviderError("Provider returned non-finite components")
        magnitude = float(np.linalg.norm(vector))
        if magnitude == 0.0:
            raise ProviderError("Provider returned a zero vector")
        return vector / magnitude

    def _recover(self, text: str, error: Exception) -> np.ndarray:
        if not self.fallback:
            raise EmbeddingError(f"Could not embed text: {error}") from error
        return self._fallback(text)

    def _fallback(self, text: str) -> np.ndarray:
        self._count("fallback_calls")
        return fallback_embedding(text, self.dimension)

    def _count(self, key: str) -> None:
        with self._stats_lock:
            self.stats[key] += 1


def create_provider(config: Dict[str, Any], quiet: bool = False) -> Optional[EmbeddingProvider]:
    """Build the embedding provider named in ``config["embedding"]``."""
    embedding_config = config.get("embedding", {})
    name = embedding_config.get("provider", PROVIDER_SENTENCE_TRANSFORMERS)

    if name == PROVIDER_SENTENCE_TRANSFORMERS:
        return SentenceTransformerProvider(
            embedding_config.get("model", DEFAULT_MODEL), quiet=quiet
        )
    if name == PROVIDER_OPENAI:
        return OpenAIEmbeddingProvider(
            model=embedding_config.get("openai_model", OPENAI_EMBEDDING_MODEL),
            dimension=embedding_config.get("dimension") or OPENAI_EMBEDDING_DIM,
        )
    if name in (PROVIDER_NONE, None):
        return None
    raise ValueError(
        f"Unknown embedding provider '{name}' (expected one of: {', '.join(PROVIDER_CHOICES)})"
    )


# Vector index
class VectorIndex:
    """In-memory document, chunk and search-history tables.

    Writes are serialized by one lock so identifiers stay unique and chunk
    ordinals stay contiguous. Reads copy the tables under the lock and do the
    scoring outside it. A document is always stored before any of its chunks.
    """

    def __init__(
        self,
        dimension: Optional[int] = None,
        history_size: int = DEFAULT_HISTORY_SIZE,
    ) -> None:
        if history_size < 0:
            raise ValueError("history_size must be non-negative")
        self.dimension = dimension
        self._lock = threading.RLock()
        self._documents: Dict[int, Document] = {}
        self._chunks: List[Chunk] = []
        self._chunks_by_document: Dict[int, List[Chunk]] = {}
        self._history: Deque[SearchRecord] = deque(maxlen=history_size)
        self._next_document_id = 1
        self._next_chunk_id = 1
        self._next_search_id = 1

    def add_document(
        self,
        title: str,
        owner_id: int,
        file_type: str = DEFAULT_FILE_TYPE,
        metadata: Optional[DocumentMetadata] = None,
    ) -> Document:
        with self._lock:
            document = Document(
                id=self._next_document_id,
                title=title,
                owner_id=owner_id,
                file_type=file_type,
                metadata=metadata or DocumentMetadata(),
                created_at=datetime.now(timezone.utc),
            )
            self._next_document_id += 1
            self._documents[document.id] = document
            self._chunks_by_document[document.id] = []
        return document

    def add_chunk(
        self,
        document_id: int,
        ordinal: int,
        text: str,
        embedding: Optional[Sequence[float]] = None,
    ) -> Chunk:
        """Store the next chunk of a document.

        Raises:
            DocumentNotFoundError: If the document was never added.
            ValueError: If the text is empty or ``ordinal`` is not the next
                position for this document.
            DimensionMismatchError: If the embedding's length differs from
                the index dimension.
        """
        if not text:
            raise ValueError("Chunk text must be non-empty")

        vector = None
        if embedding is not None:
            vector = np.array(embedding, dtype=np.float64)
            if vector.ndim != 1 or vector.shape[0] == 0:
                raise DimensionMismatchError(f"Embedding must be a non-empty 1-D vector, got shape {vector.shape}")
            vector.flags.writeable = False

        with self._lock:
            if document_id not in self._documents:
                raise DocumentNotFoundError(document_id)

            siblings = self._chunks_by_document[document_id]
            if ordinal != len(siblings):
                raise ValueError(
                    f"Chunk ordinal {ordinal} out of sequence for document {document_id} "
                    f"(expected {len(siblings)})"
                )

            if vector is not None:
                if self.dimension is None:
                    self.dimension = vector.shape[0]
                elif vector.shape[0] != self.dimension:
                    raise DimensionMismatchError(
                        f"Embedding dimension {vector.shape[0]} != index dimension {self.dimension}"
                    )

            chunk = Chunk(
                id=self._next_chunk_id,
                document_id=document_id,
                ordinal=ordinal,
                text=text,
                embedding=vector,
            )
            self._next_chunk_id += 1
            self._chunks.append(chunk)
            siblings.append(chunk)
        return chunk

    def get_document(self, document_id: int) -> Document:
        with self._lock:
            document = self._documents.get(document_id)
        if document is None:
            raise DocumentNotFoundError(document_id)
        return document

    def chunks_for_document(self, document_id: int) -> List[Chunk]:
        """Chunks of one document in ordinal order."""
        with self._lock:
            if document_id not in self._chunks_by_document:
                raise DocumentNotFoundError(document_id)
            return list(self._chunks_by_document[document_id])

    def documents_by_owner(self, owner_id: int) -> List[Document]:
        with self._lock:
            documents = list(self._documents.values())
        return [document for document in documents if document.owner_id == owner_id]

    def recent_documents(self, owner_id: int, limit: int = DEFAULT_RECENT_LIMIT) -> List[Document]:
        documents = self.documents_by_owner(owner_id)
        documents.sort(key=lambda d: (d.created_at, d.id), reverse=True)
        return documents[: max(0, limit)]

    def search(
        self,
        query_vector: Sequence[float],
        k: int = DEFAULT_RESULTS,
        owner_id: Optional[int] = None,
    ) -> List[SearchHit]:
        """Top-``k`` documents by their best chunk's cosine similarity.

        Every chunk with an embedding is scored; each document keeps its
        highest score (the earliest chunk wins a tie). Documents are ordered
        by score descending, ties keeping insertion order. ``owner_id``
        limits the scan to that owner's documents.
        """
        query = np.asarray(query_vector, dtype=np.float64)
        if query.ndim != 1:
            raise DimensionMismatchError(f"Query must be a 1-D vector, got shape {query.shape}")

        with self._lock:
            chunks = list(self._chunks)
            dimension = self.dimension
            owners = (
                {doc_id: doc.owner_id for doc_id, doc in self._documents.items()}
                if owner_id is not None
                else None
            )

        if dimension is not None and query.shape[0] != dimension:
            raise DimensionMismatchError(
                f"Query dimension {query.shape[0]} != index dimension {dimension}"
            )
        if k <= 0:
            return []

        best_scores: Dict[int, float] = {}
        for chunk in chunks:
            if chunk.embedding is None:
                continue
            if owners is not None and owners.get(chunk.document_id) != owner_id:
                continue

            score = cosine_similarity(query, chunk.embedding)
            previous = best_scores.get(chunk.document_id)
            if previous is None or score > previous:
                best_scores[chunk.document_id] = score

        ranked = sorted(best_scores.items(), key=lambda item: -item[1])
        return [SearchHit(document_id=doc_id, score=score) for doc_id, score in ranked[:k]]

    def record_search(self, query: str, owner_id: int, document_ids: Sequence[int]) -> SearchRecord:
        with self._lock:
            record = SearchRecord(
                id=self._next_search_id,
                query=query,
                owner_id=owner_id,
                document_ids=tuple(document_ids),
                timestamp=datetime.now(timezone.utc),
            )
            self._next_search_id += 1
            self._history.append(record)
        return record

    def search_history(self, owner_id: int, limit: int = DEFAULT_HISTORY_LIMIT) -> List[SearchRecord]:
        """Most recent searches of one owner, newest first."""
        with self._lock:
            records = list(self._history)
        mine = [record for record in reversed(records) if record.owner_id == owner_id]
        return mine[: max(0, limit)]

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            chunks = list(self._chunks)
            document_count = len(self._documents)
            history_count = len(self._history)
            dimension = self.dimension

        return {
            "total_documents": document_count,
            "total_chunks": len(chunks),
            "embedded_chunks": sum(1 for chunk in chunks if chunk.has_embedding),
            "dimension": dimension,
            "search_records": history_count,
        }


# Related documents and snippets
class DocumentAggregator:
    """Finds documents related to a document through its mean chunk embedding."""

    def __init__(self, index: VectorIndex) -> None:
        self.index = index

    def document_vector(self, document_id: int) -> Optional[np.ndarray]:
        """Arithmetic mean of the document's chunk embeddings, not re-normalized."""
        vectors = [
            chunk.embedding
            for chunk in self.index.chunks_for_document(document_id)
            if chunk.embedding is not None
        ]
        if not vectors:
            return None
        return np.vstack(vectors).mean(axis=0)

    def related_to(self, document_id: int, limit: int = DEFAULT_RELATED_LIMIT) -> List[Document]:
        self.index.get_document(document_id)
        if limit <= 0:
            return []

        vector = self.document_vector(document_id)
        if vector is None:
            return []

        # One extra hit since the source document usually ranks first
        hits = self.index.search(vector, limit + 1)
        return [
            self.index.get_document(hit.document_id)
            for hit in hits
            if hit.document_id != document_id
        ][:limit]


def query_terms(query: str) -> List[str]:
    """Distinct lowercase query words longer than two characters."""
    terms: List[str] = []
    for term in QUERY_TERM_SPLIT_PATTERN.split(query.lower()):
        if len(term) > 2 and term not in terms:
            terms.append(term)
    return terms


def truncate_snippet(text: str, max_chars: int = DEFAULT_SNIPPET_CHARS) -> str:
    if len(text) <= max_chars:
        return text
    return text[: max_chars - len(ELLIPSIS)] + ELLIPSIS


class SnippetExtractor:
    """Picks the chunk sharing the most query terms as a result preview.

    Deliberately lexical: the preview shows exact term overlap even when the
    ranking came from vector similarity.
    """

    def __init__(self, index: VectorIndex, max_chars: int = DEFAULT_SNIPPET_CHARS) -> None:
        if max_chars <= len(ELLIPSIS):
            raise ValueError(f"max_chars must be greater than {len(ELLIPSIS)}")
        self.index = index
        self.max_chars = max_chars

    def best_snippet(self, document_id: int, query: str) -> str:
        chunks = self.index.chunks_for_document(document_id)
        if not chunks:
            return NO_PREVIEW

        terms = query_terms(query)
        best_chunk = chunks[0]
        best_score = 0
        for chunk in chunks:
            chunk_text = chunk.text.lower()
            score = sum(1 for term in terms if term in chunk_text)
            if score > best_score:
                best_score = score
                best_chunk = chunk

        return truncate_snippet(best_chunk.text, self.max_chars)


# Document loading and ingestion
class DocumentLoader:
    """Handles file discovery and plain-text extraction."""

    def __init__(self, docs_dir: Path, quiet: bool = False) -> None:
        self.docs_dir = Path(docs_dir)
        self.quiet = quiet

    def find_documents(self) -> List[Path]:
        """Find all supported documents in docs directory."""
        if not self.docs_dir.exists():
            log_warning(f"Docs directory {self.docs_dir.name} does not exist", quiet=self.quiet)
            return []

        files = []
        for pattern in GLOB_PATTERNS:
            files.extend(self.docs_dir.glob(pattern))

        return sorted(files)

    def load(self, file_path: Path) -> Optional[Dict[str, Any]]:
        """Read one document; None when it is skipped."""
        file_path = Path(file_path)

        if not validate_path(file_path, self.docs_dir):
            log_warning(f"Skipping file outside docs directory: {file_path.name}", quiet=self.quiet)
            return None

        if file_path.suffix.lower() not in SUPPORTED_EXTENSIONS:
            log_warning(
                f"Skipping unsupported file type: {file_path.name} "
                f"(supported: {', '.join(SUPPORTED_EXTENSIONS)})",
                quiet=self.quiet,
            )
            return None

        try:
            file_size = file_path.stat().st_size
        except OSError as error:
            log_warning(f"Could not check file size for {file_path.name}", error, quiet=self.quiet)
            return None
        if file_size > MAX_FILE_SIZE_MB * 1024 * 1024:
            log_warning(f"Skipping large file (>{MAX_FILE_SIZE_MB}MB): {file_path.name}", quiet=self.quiet)
            return None

        try:
            text = self._read_text(file_path)
        except (FileNotFoundError, PermissionError) as error:
            log_error(f"Cannot read {file_path.name} - {type(error).__name__}", quiet=self.quiet)
            return None

        if not text.strip():
            log_warning(f"No text extracted from {file_path.name}", quiet=self.quiet)
            return None

        return {
            "title": file_path.name,
            "text": text,
            "file_type": file_path.suffix.lstrip(".").upper(),
            "metadata": DocumentMetadata(size=file_size),
        }

    def _read_text(self, file_path: Path) -> str:
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                return f.read()
        except UnicodeDecodeError:
            # Fallback to latin-1 for older files
            with open(file_path, "r", encoding="latin-1") as f:
                return f.read()


class IngestionPipeline:
    """Chunker -> EmbeddingGenerator -> VectorIndex for new documents.

    The document record is written first so it is discoverable even when
    some chunks fail to embed. A chunk whose embedding fails is stored
    without one and stays out of similarity search.
    """

    def __init__(
        self,
        index: VectorIndex,
        generator: EmbeddingGenerator,
        chunker: Optional[Chunker] = None,
        quiet: bool = False,
    ) -> None:
        self.index = index
        self.generator = generator
        self.chunker = chunker or Chunker()
        self.quiet = quiet

    def ingest(
        self,
        text: str,
        title: str,
        owner_id: int,
        file_type: str = DEFAULT_FILE_TYPE,
        metadata: Optional[DocumentMetadata] = None,
    ) -> int:
        if metadata is None:
            metadata = DocumentMetadata(size=len(text.encode("utf-8")))
        document = self.index.add_document(title, owner_id, file_type, metadata)

        total = 0
        embedded = 0
        for ordinal, segment in enumerate(self.chunker.split(text)):
            embedding = None
            try:
                embedding = self.generator.embed(segment)
            except Exception as error:
                log_warning(
                    f"Could not embed chunk {ordinal} of '{title}'; storing it without an embedding",
                    error,
                    quiet=self.quiet,
                )

            self.index.add_chunk(document.id, ordinal, segment, embedding)
            total += 1
            if embedding is not None:
                embedded += 1

        log_info(
            f"Indexed '{title}' as document {document.id}: {embedded}/{total} chunks embedded",
            quiet=self.quiet,
        )
        return document.id

    def ingest_file(
        self,
        file_path: Path,
        owner_id: int,
        loader: Optional[DocumentLoader] = None,
    ) -> Optional[int]:
        """Load a text file and ingest it; None when the loader skipped it."""
        file_path = Path(file_path)
        loader = loader or DocumentLoader(file_path.parent, quiet=self.quiet)
        loaded = loader.load(file_path)
        if loaded is None:
            return None
        return self.ingest(
            loaded["text"],
            loaded["title"],
            owner_id,
            file_type=loaded["file_type"],
            metadata=loaded["metadata"],
        )


# Search
class SearchOrchestrator:
    """Embeds a query, ranks documents, attaches previews and records history."""

    def __init__(
        self,
        index: VectorIndex,
        generator: EmbeddingGenerator,
        snippets: SnippetExtractor,
        max_results: int = DEFAULT_RESULTS,
        restrict_to_owner: bool = True,
        quiet: bool = False,
    ) -> None:
        self.index = index
        self.generator = generator
        self.snippets = snippets
        self.max_results = max_results
        self.restrict_to_owner = restrict_to_owner
        self.quiet = quiet

    def search(self, query: str, owner_id: int) -> List[SearchResult]:
        if not query or not query.strip():
            raise EmptyQueryError("Search query must not be empty")

        try:
            query_vector = self.generator.embed(query)
        except EmbeddingError as error:
            log_warning("Could not embed search query", error, quiet=self.quiet)
            return []

        hits = self.index.search(
            query_vector,
            self.max_results,
            owner_id if self.restrict_to_owner else None,
        )

        results = []
        for hit in hits:
            try:
                document = self.index.get_document(hit.document_id)
            except DocumentNotFoundError as error:
                log_warning("Skipping search hit", error, quiet=self.quiet)
                continue

            try:
                snippet = self.snippets.best_snippet(hit.document_id, query)
            except Exception as error:
                log_warning(f"Could not build preview for document {hit.document_id}", error, quiet=self.quiet)
                snippet = PREVIEW_UNAVAILABLE

            results.append(SearchResult(document=document, score=hit.score, snippet=snippet))

        results.sort(key=lambda result: -result.score)

        try:
            self.index.record_search(query, owner_id, [result.document.id for result in results])
        except Exception as error:
            log_warning("Could not record search history", error, quiet=self.quiet)

        return results


class DocSeek:
    """Main orchestrator for the search engine."""

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        provider: Optional[EmbeddingProvider] = None,
        latch: Optional[DegradedLatch] = None,
        quiet: bool = False,
        config_path: Optional[str] = None,
    ) -> None:
        self.quiet = quiet
        self.config = config if config is not None else load_config(config_path)

        embedding_config = self.config.get("embedding", {})
        search_config = self.config.get("search", {})
        history_config = self.config.get("history", {})

        self.provider = provider if provider is not None else create_provider(self.config, quiet=quiet)
        self.generator = EmbeddingGenerator(
            self.provider,
            dimension=embedding_config.get("dimension"),
            latch=latch,
            fallback=embedding_config.get("fallback", True),
            quiet=quiet,
        )
        self.index = VectorIndex(
            history_size=history_config.get("max_records", DEFAULT_HISTORY_SIZE)
        )
        self.chunker = Chunker(
            self.config.get("chunking", {}).get("max_chunk_size", DEFAULT_CHUNK_SIZE)
        )
        self.snippets = SnippetExtractor(
            self.index, search_config.get("snippet_chars", DEFAULT_SNIPPET_CHARS)
        )
        self.aggregator = DocumentAggregator(self.index)
        self.pipeline = IngestionPipeline(self.index, self.generator, self.chunker, quiet=quiet)
        self.search_engine = SearchOrchestrator(
            self.index,
            self.generator,
            self.snippets,
            max_results=search_config.get("max_results", DEFAULT_RESULTS),
            restrict_to_owner=search_config.get("restrict_to_owner", True),
            quiet=quiet,
        )
        self.related_limit = search_config.get("related_limit", DEFAULT_RELATED_LIMIT)
        self.history_limit = history_config.get("default_limit", DEFAULT_HISTORY_LIMIT)

    def ingest(
        self,
        text: str,
        title: str,
        owner_id: int = DEFAULT_OWNER_ID,
        file_type: str = DEFAULT_FILE_TYPE,
        metadata: Optional[DocumentMetadata] = None,
    ) -> int:
        return self.pipeline.ingest(text, title, owner_id, file_type, metadata)

    def build(self, docs_dir: Path, owner_id: int = DEFAULT_OWNER_ID) -> List[int]:
        """Ingest every supported file under ``docs_dir``."""
        start_time = time.time()
        loader = DocumentLoader(Path(docs_dir), quiet=self.quiet)
        files = loader.find_documents()
        if not files:
            log_info(f"No documents found in {docs_dir}", quiet=self.quiet)
            return []

        document_ids = []
        for file_path in files:
            document_id = self.pipeline.ingest_file(file_path, owner_id, loader)
            if document_id is not None:
                document_ids.append(document_id)

        elapsed = time.time() - start_time
        log_info(
            f"{SYMBOLS['success']} Indexed {len(document_ids)} documents in {elapsed:.1f}s",
            quiet=self.quiet,
        )
        if self.generator.is_degraded:
            log_warning("Embedding provider is in degraded mode; results use fallback embeddings", quiet=self.quiet)
        return document_ids

    def search(self, query: str, owner_id: int = DEFAULT_OWNER_ID) -> List[SearchResult]:
        return self.search_engine.search(query, owner_id)

    def related(self, document_id: int, limit: Optional[int] = None) -> List[Document]:
        return self.aggregator.related_to(
            document_id, self.related_limit if limit is None else limit
        )

    def history(self, owner_id: int = DEFAULT_OWNER_ID, limit: Optional[int] = None) -> List[SearchRecord]:
        return self.index.search_history(
            owner_id, self.history_limit if limit is None else limit
        )

    def get_document(self, document_id: int) -> Document:
        return self.index.get_document(document_id)

    def recent_documents(self, owner_id: int = DEFAULT_OWNER_ID, limit: int = DEFAULT_RECENT_LIMIT) -> List[Document]:
        return self.index.recent_documents(owner_id, limit)

    def get_stats(self) -> Dict[str, Any]:
        stats = self.index.get_stats()
        stats.update(
            {
                "provider": self.provider.name if self.provider is not None else PROVIDER_NONE,
                "degraded": self.generator.is_degraded,
                "embedding": dict(self.generator.stats),
            }
        )
        return stats

    def interactive_search(self, owner_id: int = DEFAULT_OWNER_ID) -> None:
        """Interactive search mode."""
        print(f"\n{SYMBOLS['search']} Interactive Search Mode")
        print("Type your queries ('history' for recent searches, 'quit' to exit)")
        print("-" * 50)

        while True:
            try:
                query = input("\nQuery: ").strip()
            except (KeyboardInterrupt, EOFError):
                break

            if query.lower() in ["quit", "exit", "q"]:
                break
            if not query:
                continue
            if query.lower() == "history":
                for record in self.history(owner_id):
                    print(f"  {record.timestamp:%H:%M:%S}  {record.query}  -> {list(record.document_ids)}")
                continue

            start_time = time.time()
            results = self.search(query, owner_id)
            elapsed = time.time() - start_time

            if not results:
                print("No results found.")
                continue

            print(f"\n{SYMBOLS['found']} Found {len(results)} results (in {elapsed:.3f}s):")
            for i, result in enumerate(results, 1):
                print(f"\n--- Result {i} ---")
                print(f"Document: {result.document.title} (id {result.document.id})")
                print(f"Score: {result.score:.3f} ({result.interpretation})")
                print(f"Preview: {result.snippet}")

        print(f"\n{SYMBOLS['bye']} Goodbye!")

    def validate_configuration(self) -> bool:
        """Validate the engine's configuration against its provider."""
        return validate_configuration(self.config, self.provider)


def validate_configuration(
    config: Dict[str, Any], provider: Optional[EmbeddingProvider] = None
) -> bool:
    """Validate configuration values and print a report.

    When ``provider`` is given and ``embedding.dimension`` is set, the
    provider's native dimension must match it, otherwise every provider
    vector would be rejected in favour of the fallback.
    """
    print(f"\n{SYMBOLS['search']} Validating docseek configuration...")
    issues = []

    embedding_config = config.get("embedding", {})
    if embedding_config.get("provider", PROVIDER_SENTENCE_TRANSFORMERS) not in PROVIDER_CHOICES:
        issues.append(f"Unknown embedding provider: {embedding_config.get('provider')}")
    if embedding_config.get("provider") == PROVIDER_OPENAI and not os.environ.get("OPENAI_API_KEY"):
        issues.append("OPENAI_API_KEY is not set; every embedding will use the local fallback")

    dimension = embedding_config.get("dimension")
    if dimension is not None and (not isinstance(dimension, int) or dimension <= 0):
        issues.append(f"embedding.dimension must be a positive integer, got {dimension!r}")
    elif dimension is not None and provider is not None:
        try:
            native_dimension = provider.dimension
        except ProviderError as error:
            issues.append(f"Could not load embedding provider: {sanitize_error_message(str(error))}")
        else:
            if native_dimension and native_dimension != dimension:
                issues.append(
                    f"embedding.dimension is {dimension} but {provider.name} produces "
                    f"{native_dimension}; every embedding will use the local fallback"
                )

    search_config = config.get("search", {})
    for key in ("max_results", "related_limit"):
        value = search_config.get(key)
        if not isinstance(value, int) or value < 1:
            issues.append(f"search.{key} must be a positive integer, got {value!r}")

    if not issues:
        print("✓ Configuration is valid")
        print(f"{SYMBOLS['success']} All validation checks passed!")
        return True

    print("Configuration issues found:")
    for issue in issues:
        print(f"⚠️  {issue}")
    print(f"\n{len(issues)} issues need attention")
    return False


def parse_args(argv: Optional[List[str]] = None) -> Any:
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description=f"docseek v{__version__} - In-memory semantic document search",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Basic Usage:
    %(prog)s search "your search term"         # Ranked documents with previews
    %(prog)s related 2                         # Documents related to document 2
    %(prog)s status                            # Index statistics
    %(prog)s interactive                       # Interactive mode with history

  Embeddings:
    %(prog)s search "query" --provider openai  # OpenAI embeddings (needs OPENAI_API_KEY)
    %(prog)s search "query" --provider none    # Offline fallback embeddings only
    %(prog)s search "query" --model-preset fast

  Output:
    %(prog)s search "query" --json             # JSON with scores and snippets
    %(prog)s search "query" --config custom.yaml
        """,
    )

    parser.add_argument(
        "command",
        choices=["search", "related", "interactive", "status", "validate"],
        help="Command to execute",
    )
    parser.add_argument(
        "query", nargs="*", help="Search query (search) or document id (related)"
    )

    parser.add_argument(
        "--docs-dir", default="./docs", help="Documents directory (default: ./docs)"
    )
    parser.add_argument(
        "--owner", type=int, default=DEFAULT_OWNER_ID, help="Owner id for ingested documents and searches"
    )
    parser.add_argument(
        "--provider", choices=PROVIDER_CHOICES, help="Embedding provider (overrides config)"
    )
    parser.add_argument("--model", help="sentence-transformers model name")
    parser.add_argument(
        "--model-preset",
        choices=["fast", "balanced", "multilingual", "accurate"],
        help="Use model preset (overrides --model)",
    )
    parser.add_argument(
        "--chunk-size", type=int, help=f"Maximum chunk size in characters (default: {DEFAULT_CHUNK_SIZE})"
    )
    parser.add_argument(
        "--results", type=int, help=f"Number of search results (default: {DEFAULT_RESULTS})"
    )
    parser.add_argument(
        "--limit", type=int, help=f"Number of related documents (default: {DEFAULT_RELATED_LIMIT})"
    )
    parser.add_argument("--quiet", "-q", action="store_true", help="Minimal output")
    parser.add_argument(
        "--json", action="store_true", help="Output results as JSON"
    )
    parser.add_argument(
        "--config", help=f"Path to config file (default: {DEFAULT_CONFIG_FILENAME})"
    )
    parser.add_argument("--version", action="version", version=f"docseek {__version__}")

    return parser.parse_args(argv)


# Command Pattern Implementation
class Command:
    """Base command interface."""

    def run(self, args: Any, config: Dict[str, Any]) -> None:
        """Build the engine and index the docs directory, then execute."""
        engine = DocSeek(config=config, quiet=args.quiet or args.json)
        engine.build(Path(args.docs_dir), owner_id=args.owner)
        self.execute(args, engine)

    def execute(self, args: Any, engine: DocSeek) -> None:
        """Execute the command."""
        raise NotImplementedError


class SearchCommand(Command):
    """Search the indexed documents."""

    def execute(self, args: Any, engine: DocSeek) -> None:
        if not args.query:
            log_error("Please provide a search query", quiet=args.quiet)
            return

        query = " ".join(args.query)
        results = engine.search(query, args.owner)

        if args.json:
            print(json.dumps([result.to_dict() for result in results], indent=2))
            return

        if not results:
            print("No results found.")
            return

        print(f"\n{SYMBOLS['search']} Search results for: '{query}'")
        print("=" * 50)
        for i, result in enumerate(results, 1):
            print(
                f"\n{i}. {result.document.title} (id {result.document.id}) "
                f"({result.interpretation}: {result.score:.3f})"
            )
            print(f"   {result.snippet}")


class RelatedCommand(Command):
    """List documents related to one document."""

    def execute(self, args: Any, engine: DocSeek) -> None:
        if len(args.query) != 1 or not args.query[0].isdigit():
            log_error("Please provide a single numeric document id", quiet=args.quiet)
            return

        document_id = int(args.query[0])
        source = engine.get_document(document_id)
        related = engine.related(document_id, args.limit)

        if args.json:
            print(json.dumps([document.to_dict() for document in related], indent=2))
            return

        if not related:
            print(f"No documents related to '{source.title}'.")
            return

        print(f"\n{SYMBOLS['found']} Documents related to '{source.title}':")
        for i, document in enumerate(related, 1):
            print(f"  {i}. {document.title} (id {document.id})")


class InteractiveCommand(Command):
    """Interactive search mode."""

    def execute(self, args: Any, engine: DocSeek) -> None:
        engine.interactive_search(args.owner)


class StatusCommand(Command):
    """Show index statistics."""

    def execute(self, args: Any, engine: DocSeek) -> None:
        stats = engine.get_stats()
        if args.json:
            print(json.dumps(stats, indent=2))
            return

        print("Index Statistics:")
        print(f"  Documents: {stats['total_documents']}")
        print(f"  Chunks: {stats['total_chunks']} ({stats['embedded_chunks']} embedded)")
        print(f"  Embedding dim: {stats['dimension'] or 'n/a'}")
        print(f"  Provider: {stats['provider']}{' (degraded)' if stats['degraded'] else ''}")
        print(
            "  Embedding calls: {provider_calls} provider, {fallback_calls} fallback, "
            "{provider_errors} provider errors".format(**stats["embedding"])
        )
        print(f"  Config: {'Custom' if args.config else 'Default'}")
        documents = engine.recent_documents(args.owner, limit=stats["total_documents"])
        if documents:
            print("  Documents:")
            for document in sorted(documents, key=lambda d: d.id):
                chunks = engine.index.chunks_for_document(document.id)
                print(f"    [{document.id}] {document.title}: {len(chunks)} chunks")


class ValidateCommand(Command):
    """Validate configuration and setup."""

    def run(self, args: Any, config: Dict[str, Any]) -> None:
        """Check the loaded config without building an engine or index."""
        try:
            provider = create_provider(config, quiet=True)
        except ValueError:
            # Unknown provider names are part of the report
            provider = None

        if not validate_configuration(config, provider):
            sys.exit(1)


class CommandFactory:
    """Factory for creating command instances."""

    _commands = {
        "search": SearchCommand,
        "related": RelatedCommand,
        "interactive": InteractiveCommand,
        "status": StatusCommand,
        "validate": ValidateCommand,
    }

    @classmethod
    def create_command(cls, command_name: str) -> Command:
        """Create a command instance."""
        command_class = cls._commands.get(command_name)
        if command_class is None:
            raise ValueError(f"Unknown command: {command_name}")
        return command_class()


def _apply_overrides(config: Dict[str, Any], args: Any) -> None:
    """Fold command line options into the loaded config."""
    if args.provider:
        config["embedding"]["provider"] = args.provider
    model_name = _determine_model(args, config)
    if model_name:
        config["embedding"]["model"] = model_name
    if args.chunk_size:
        config["chunking"]["max_chunk_size"] = args.chunk_size
    if args.results:
        config["search"]["max_results"] = args.results


def _determine_model(args: Any, config: Dict[str, Any]) -> Optional[str]:
    """Determine which model to use based on arguments."""
    if args.model_preset:
        preset_models = {
            "fast": config["models"]["fast"],
            "multilingual": config["models"]["multilingual"],
            "accurate": config["models"]["accurate"],
        }
        return preset_models.get(args.model_preset, config["models"]["default"])
    return args.model


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point using Command pattern."""
    args = parse_args(argv)

    try:
        command = CommandFactory.create_command(args.command)
        config = load_config(args.config)
        _apply_overrides(config, args)

        command.run(args, config)

    except (DocSeekError, ValueError) as e:
        log_error(str(e), quiet=False)
        sys.exit(1)
    except Exception as e:
        log_error(f"Unexpected error executing command '{args.command}'", e, quiet=False)
        sys.exit(1)


if __name__ == "__main__":
    main()

"""
Clients Module - Dictionary and embedding collaborators.

The engine depends only on the DictionaryClient / EmbeddingClient
protocols. Concrete backends:
- WordListDictionary (offline word list)
- HttpDictionaryClient (REST dictionary with LRU cache)
- WordVectorIndex + LocalEmbeddingClient (numpy word2vec index)
"""

from .base import DictionaryClient, EmbeddingClient
from .dictionary import WordListDictionary, HttpDictionaryClient, format_entries
from .embeddings import WordVectorIndex, LocalEmbeddingClient
from .retry import call_with_timeout, with_retries, once

__all__ = [
    "DictionaryClient",
    "EmbeddingClient",
    "WordListDictionary",
    "HttpDictionaryClient",
    "format_entries",
    "WordVectorIndex",
    "LocalEmbeddingClient",
    "call_with_timeout",
    "with_retries",
    "once",
]

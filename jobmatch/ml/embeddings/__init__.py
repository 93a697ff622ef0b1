"""
Text embedding and similarity search.

Components:
- TextEmbedder: Deterministic term-frequency embedder
- SimilarityIndex: In-memory index with job ranking and snapshots
"""

from .text_embedder import TextEmbedder

from .similarity_index import (
    SimilarityIndex,
    similarity_to_score,
)

__all__ = [
    "TextEmbedder",
    "SimilarityIndex",
    "similarity_to_score",
]

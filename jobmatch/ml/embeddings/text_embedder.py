"""
Term-frequency text embedder.

Maps a text to a fixed-length vector without any model download: each
distinct token gets the slot matching its order of first appearance and
holds its relative frequency. Slots are therefore document-local; vectors
are only meaningful through cosine similarity.
"""

import math
from collections import Counter
from typing import Optional, Sequence

import numpy as np

from jobmatch.utils.config import get_settings
from jobmatch.utils.logger import get_logger

logger = get_logger(__name__)


class TextEmbedder:
    """
    Deterministic, stateless bag-of-words embedder.

    The same text always yields a bit-identical vector; no state is kept
    between calls.
    """

    def __init__(self, dimension: Optional[int] = None):
        """
        Initialize the embedder.

        Args:
            dimension: Vector length. Defaults to config setting.
        """
        self.dimension = dimension or get_settings().vector.dimension

    @staticmethod
    def tokenize(text: str) -> list[str]:
        """Lower-case and split on whitespace."""
        return text.lower().split()

    def embed(self, text: Optional[str]) -> np.ndarray:
        """
        Generate the embedding for a text.

        Args:
            text: Input text. None and blank text give the zero vector.

        Returns:
            numpy array of shape (dimension,).
        """
        embedding = np.zeros(self.dimension, dtype=np.float64)
        if not text or not isinstance(text, str):
            return embedding

        tokens = self.tokenize(text)
        if not tokens:
            return embedding

        total = len(tokens)
        # Counter keeps first-appearance order
        for slot, count in enumerate(Counter(tokens).values()):
            if slot >= self.dimension:
                break
            embedding[slot] = count / total

        return embedding

    def embed_batch(self, texts: Sequence[str]) -> np.ndarray:
        """
        Embed several texts.

        Returns:
            Array of shape (len(texts), dimension).
        """
        if not texts:
            return np.zeros((0, self.dimension), dtype=np.float64)
        return np.vstack([self.embed(text) for text in texts])

    @staticmethod
    def cosine_similarity(a: Sequence[float] | np.ndarray, b: Sequence[float] | np.ndarray) -> float:
        """
        Cosine similarity in [-1, 1].

        Mismatched shapes, zero-magnitude vectors and non-finite values give
        0.0 so one bad vector never aborts a ranking pass.
        """
        try:
            vec_a = np.asarray(a, dtype=np.float64)
            vec_b = np.asarray(b, dtype=np.float64)
        except (TypeError, ValueError):
            return 0.0

        if vec_a.ndim != 1 or vec_a.shape != vec_b.shape:
            return 0.0

        denominator = float(np.linalg.norm(vec_a) * np.linalg.norm(vec_b))
        if denominator == 0.0 or not math.isfinite(denominator):
            return 0.0

        similarity = float(np.dot(vec_a, vec_b)) / denominator
        return similarity if math.isfinite(similarity) else 0.0

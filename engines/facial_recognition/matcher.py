"""
Face Matcher — compares detected faces against the single reference descriptor.
Supports cosine similarity (InsightFace convention) and Euclidean distance.
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

logger = logging.getLogger(__name__)

METRICS = ('cosine', 'euclidean')


@dataclass
class MatchResult:
    """Result of comparing one face against the reference."""
    matched: bool = False
    distance: Optional[float] = None     # Euclidean distance
    similarity: Optional[float] = None   # Cosine similarity

    def to_dict(self) -> dict:
        return {
            'matched': self.matched,
            'distance': None if self.distance is None else round(self.distance, 4),
            'similarity': None if self.similarity is None else round(self.similarity, 4),
        }


def _as_vector(embedding) -> np.ndarray:
    if isinstance(embedding, str):
        embedding = np.array(json.loads(embedding), dtype=np.float32)
    elif isinstance(embedding, (list, tuple)):
        embedding = np.array(embedding, dtype=np.float32)
    elif isinstance(embedding, np.ndarray):
        embedding = embedding.astype(np.float32)
    else:
        raise ValueError(f"Unsupported embedding type: {type(embedding)}")

    if embedding.ndim != 1 or embedding.size == 0:
        raise ValueError(f"Expected a 1-d embedding, got shape {embedding.shape}")
    return embedding


class FaceMatcher:
    """
    Holds one reference descriptor and decides whether a face matches it.

    With metric='euclidean' a face matches when distance < threshold;
    with metric='cosine' when similarity >= threshold.
    """

    def __init__(self, threshold: float = 0.4, metric: str = 'cosine'):
        if metric not in METRICS:
            raise ValueError(f"Unknown metric '{metric}', expected one of {METRICS}")
        self.threshold = threshold
        self.metric = metric
        self._reference: Optional[np.ndarray] = None

    @property
    def has_reference(self) -> bool:
        return self._reference is not None

    @property
    def reference(self) -> Optional[np.ndarray]:
        return self._reference

    def set_reference(self, embedding) -> None:
        """
        Replace the reference descriptor.

        Args:
            embedding: vector as list, JSON string, or numpy array
        """
        self._reference = _as_vector(embedding)
        logger.debug(f"FaceMatcher: reference set ({self._reference.size}-d)")

    def clear(self) -> None:
        self._reference = None

    def compare(self, embedding) -> MatchResult:
        """Compare a face descriptor with the reference."""
        if self._reference is None:
            return MatchResult()

        query = _as_vector(embedding)
        if query.shape != self._reference.shape:
            raise ValueError(
                f"Embedding dimension mismatch: {query.size} vs reference {self._reference.size}"
            )

        distance = float(np.linalg.norm(self._reference - query))
        denom = float(np.linalg.norm(self._reference) * np.linalg.norm(query))
        similarity = float(np.dot(self._reference, query)) / denom if denom else 0.0

        if self.metric == 'euclidean':
            matched = distance < self.threshold
        else:
            matched = similarity >= self.threshold

        return MatchResult(matched=matched, distance=distance, similarity=similarity)

    def get_stats(self) -> dict:
        return {
            'has_reference': self.has_reference,
            'metric': self.metric,
            'threshold': self.threshold,
        }

"""
Unknown-face registry — remembers unmatched descriptors seen this session.
Faces are keyed by descriptor identity: the exact float32 bytes, hashed.
"""

import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class UnknownFace:
    first_seen: float
    notified: bool = False

    def to_dict(self) -> dict:
        return {'first_seen': self.first_seen, 'notified': self.notified}


def descriptor_key(embedding) -> str:
    """Identity key for a descriptor. Equal only for bit-identical vectors."""
    vec = np.ascontiguousarray(np.asarray(embedding, dtype=np.float32))
    return hashlib.sha1(vec.tobytes()).hexdigest()


class UnknownFaceRegistry:
    """Map of descriptor key → UnknownFace, cleared on start and new reference."""

    def __init__(self):
        self._faces: Dict[str, UnknownFace] = {}

    @property
    def count(self) -> int:
        return len(self._faces)

    def register(self, embedding, now: Optional[float] = None) -> bool:
        """
        Record an unmatched descriptor.

        Returns:
            True if the descriptor was not seen before, False otherwise
        """
        key = descriptor_key(embedding)
        if key in self._faces:
            return False
        self._faces[key] = UnknownFace(first_seen=time.time() if now is None else now)
        logger.debug(f"Registered unknown face {key[:10]} ({len(self._faces)} total)")
        return True

    def get(self, embedding) -> Optional[UnknownFace]:
        return self._faces.get(descriptor_key(embedding))

    def clear(self) -> None:
        self._faces.clear()

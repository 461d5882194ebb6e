"""
Face Encoder — turns an uploaded reference photo into a face descriptor.
"""

import base64
import binascii
import logging
from dataclasses import dataclass
from typing import List, Optional, Union

import cv2
import numpy as np

from engines.facial_recognition.detector import FaceDetector

logger = logging.getLogger(__name__)


def decode_image(data: Union[bytes, str, None]) -> Optional[np.ndarray]:
    """
    Decode an uploaded image into a BGR array.

    Accepts raw bytes, a base64 string, or a `data:image/...;base64,` URL.
    Returns None if the payload is not a decodable image.
    """
    if not data or not isinstance(data, (bytes, str)):
        return None

    try:
        if isinstance(data, str):
            # Strip data URI prefix if present
            if ',' in data:
                data = data.split(',', 1)[1]
            data = base64.b64decode(data)
        nparr = np.frombuffer(data, np.uint8)
        return cv2.imdecode(nparr, cv2.IMREAD_COLOR)
    except (binascii.Error, ValueError, cv2.error) as e:
        logger.warning(f"Image decode error: {e}")
        return None


@dataclass
class EncodingResult:
    """Result of encoding a reference photo."""
    embedding: Optional[List[float]]
    det_score: float = 0.0
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.embedding is not None


class FaceEncoder:
    """Generates the reference descriptor from a single photo."""

    def __init__(self, detector: FaceDetector):
        self.detector = detector

    @property
    def available(self) -> bool:
        return self.detector.available

    def encode_reference(self, frame: Optional[np.ndarray]) -> EncodingResult:
        """
        Descriptor of the most confident face in `frame`.

        Args:
            frame: BGR image, as returned by decode_image

        Returns:
            EncodingResult; `error` explains why `embedding` is None
        """
        if frame is None:
            return EncodingResult(embedding=None, error='Image could not be decoded')
        if not self.available:
            logger.warning("FaceEncoder: detector not available")
            return EncodingResult(embedding=None, error='Face models not loaded')

        face = self.detector.detect_single(frame)
        if face is None:
            return EncodingResult(embedding=None, error='No face detected in reference photo')

        logger.info(f"Encoded reference face (det_score={face.det_score:.3f})")
        return EncodingResult(
            embedding=face.embedding.tolist(),
            det_score=face.det_score,
        )

"""
Face Detector — InsightFace Buffalo_L wrapper.
Finds faces in webcam frames and reference photos, returning DetectedFace
objects with pixel boxes and normalized descriptors.
GPU-accelerated via ONNX Runtime CUDA provider with CPU fallback.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

logger = logging.getLogger(__name__)

# InsightFace may not be installed in all environments
try:
    from insightface.app import FaceAnalysis
    INSIGHTFACE_AVAILABLE = True
except ImportError:
    INSIGHTFACE_AVAILABLE = False
    logger.warning("InsightFace not installed, face detection unavailable")


@dataclass
class BoundingBox:
    """Axis-aligned bounding box in pixel coordinates."""
    left: int
    top: int
    right: int
    bottom: int

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top

    @property
    def area(self) -> int:
        return self.width * self.height

    def scale(self, sx: float, sy: float) -> 'BoundingBox':
        """Return a copy resized from frame pixels to display pixels."""
        return BoundingBox(
            left=int(round(self.left * sx)),
            top=int(round(self.top * sy)),
            right=int(round(self.right * sx)),
            bottom=int(round(self.bottom * sy)),
        )

    def to_dict(self) -> dict:
        return {
            'left': self.left, 'top': self.top,
            'right': self.right, 'bottom': self.bottom,
            'width': self.width, 'height': self.height,
        }


@dataclass
class DetectedFace:
    """A face detected in a frame."""
    bbox: BoundingBox
    embedding: np.ndarray        # 512-d normalized descriptor
    det_score: float = 0.0       # Detection confidence

    def to_dict(self) -> dict:
        return {
            'location': self.bbox.to_dict(),
            'det_score': round(self.det_score, 3),
        }


class FaceDetector:
    """
    Detects faces using the InsightFace Buffalo_L model pack
    (SCRFD detector, 5-point landmarks, ArcFace descriptor).

    `available` doubles as the "models loaded" flag shown to the page.
    Matching is not done here, see FaceMatcher.
    """

    def __init__(self, model_name: str = 'buffalo_l', gpu_id: int = 0,
                 det_size: tuple = (640, 640)):
        self.model_name = model_name
        self.gpu_id = gpu_id
        self.det_size = det_size
        self.app = None

        if INSIGHTFACE_AVAILABLE:
            self._init_model()

    @property
    def available(self) -> bool:
        return INSIGHTFACE_AVAILABLE and self.app is not None

    def _init_model(self):
        """Initialize InsightFace, GPU first with CPU fallback."""
        provider_options = [
            ['CUDAExecutionProvider', 'CPUExecutionProvider'],
            ['CPUExecutionProvider'],
        ]
        for providers in provider_options:
            try:
                self.app = FaceAnalysis(name=self.model_name, providers=providers,
                                        allowed_modules=['detection', 'recognition'])
                self.app.prepare(ctx_id=self.gpu_id, det_size=self.det_size)
                logger.info(f"FaceDetector: {self.model_name} loaded with {providers}")
                return
            except Exception as e:
                logger.warning(f"FaceDetector init failed with {providers}: {e}")
                self.app = None
        logger.error("FaceDetector: could not initialize with any provider")

    def detect(self, frame: np.ndarray) -> List[DetectedFace]:
        """
        Detect all faces in a BGR frame.

        Returns an empty list when the model is unavailable or inference fails.
        """
        if not self.available:
            return []

        try:
            raw_faces = self.app.get(frame)
        except Exception as e:
            logger.error(f"Face detection error: {e}")
            return []

        results = []
        for face in raw_faces:
            if getattr(face, 'normed_embedding', None) is None:
                continue
            x1, y1, x2, y2 = face.bbox.astype(int)
            results.append(DetectedFace(
                bbox=BoundingBox(left=int(x1), top=int(y1), right=int(x2), bottom=int(y2)),
                embedding=np.asarray(face.normed_embedding, dtype=np.float32),
                det_score=float(getattr(face, 'det_score', 0.0)),
            ))
        return results

    def detect_single(self, frame: np.ndarray) -> Optional[DetectedFace]:
        """Most confident face in the frame, or None."""
        faces = self.detect(frame)
        if not faces:
            return None
        return max(faces, key=lambda f: f.det_score)

    def get_stats(self) -> dict:
        return {
            'available': self.available,
            'model': self.model_name,
            'gpu_id': self.gpu_id,
            'det_size': list(self.det_size),
        }

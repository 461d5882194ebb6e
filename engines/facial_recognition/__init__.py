"""
Facial Recognition Engine
Face detection, reference encoding and reference matching using InsightFace Buffalo_L.

Usage:
    from engines.facial_recognition import FaceDetector, FaceEncoder, FaceMatcher

    detector = FaceDetector(gpu_id=0)
    encoder  = FaceEncoder(detector)
    matcher  = FaceMatcher(threshold=0.4, metric='cosine')
"""

from engines.facial_recognition.detector import FaceDetector, DetectedFace, BoundingBox
from engines.facial_recognition.encoder import FaceEncoder, EncodingResult, decode_image
from engines.facial_recognition.matcher import FaceMatcher, MatchResult
from engines.facial_recognition.unknown_registry import UnknownFaceRegistry, UnknownFace

__all__ = [
    'FaceDetector', 'DetectedFace', 'BoundingBox',
    'FaceEncoder', 'EncodingResult', 'decode_image',
    'FaceMatcher', 'MatchResult',
    'UnknownFaceRegistry', 'UnknownFace',
]

"""
Recognition Session

Holds the demo state (user name, reference descriptor, running flag,
match statistics, unknown-face registry) and runs each webcam frame
through detection, reference matching and the unmatched-streak tracker.
"""

import logging
import threading
from dataclasses import dataclass
from typing import List, Optional, Tuple

import cv2
import numpy as np

from engines.facial_recognition import (
    FaceDetector, FaceEncoder, FaceMatcher, UnknownFaceRegistry,
)
from engines.alerting import UnmatchedStreakTracker

logger = logging.getLogger(__name__)

DEFAULT_BOX_COLORS = {
    'match': '#22c55e',
    # exposed to the page; boxes are drawn with 'match' or 'unknown' only
    'noMatch': '#ef4444',
    'unknown': '#eab308',
}
UNKNOWN_LABEL = 'Unknown Person'


class SessionStateError(Exception):
    """An operation was requested in a state that does not allow it."""


@dataclass
class RecognitionStats:
    match_count: int = 0
    total_scans: int = 0
    unknown_count: int = 0

    @property
    def no_match_count(self) -> int:
        return self.total_scans - self.match_count - self.unknown_count

    @property
    def accuracy(self) -> float:
        if self.total_scans == 0:
            return 0.0
        return self.match_count / self.total_scans * 100

    def record(self, faces: int, matches: int, unknown: int) -> None:
        self.match_count += matches
        self.total_scans += faces
        self.unknown_count += unknown

    def to_dict(self) -> dict:
        return {
            'match_count': self.match_count,
            'total_scans': self.total_scans,
            'unknown_count': self.unknown_count,
            'no_match_count': self.no_match_count,
            'accuracy': f"{self.accuracy:.1f}",
        }


@dataclass
class FaceResult:
    """One labelled box to draw on the overlay canvas."""
    box: dict
    matched: bool
    label: str
    color: str
    distance: Optional[float] = None
    similarity: Optional[float] = None
    new_unknown: bool = False

    def to_dict(self) -> dict:
        return {
            'box': self.box,
            'matched': self.matched,
            'label': self.label,
            'color': self.color,
            'distance': None if self.distance is None else round(self.distance, 4),
            'similarity': None if self.similarity is None else round(self.similarity, 4),
            'new_unknown': self.new_unknown,
        }


@dataclass
class FrameResult:
    faces: List[FaceResult]
    stats: dict
    frame_size: Tuple[int, int]          # (width, height)
    display_size: Tuple[int, int]
    alert_fired: bool = False

    def to_dict(self) -> dict:
        return {
            'faces': [f.to_dict() for f in self.faces],
            'stats': self.stats,
            'frame_size': {'width': self.frame_size[0], 'height': self.frame_size[1]},
            'display_size': {'width': self.display_size[0], 'height': self.display_size[1]},
            'alert_fired': self.alert_fired,
        }


class RecognitionSession:
    """Single-user recognition session behind the demo page."""

    def __init__(self, detector: FaceDetector, matcher: FaceMatcher,
                 tracker: UnmatchedStreakTracker, encoder: FaceEncoder = None,
                 registry: UnknownFaceRegistry = None, min_name_length: int = 2,
                 box_colors: dict = None):
        self.detector = detector
        self.encoder = encoder or FaceEncoder(detector)
        self.matcher = matcher
        self.tracker = tracker
        self.registry = registry or UnknownFaceRegistry()
        self.min_name_length = min_name_length
        self.box_colors = box_colors or dict(DEFAULT_BOX_COLORS)

        self.user_name = ''
        self.recognizing = False
        self.stats = RecognitionStats()
        self.frames_processed = 0
        self._lock = threading.Lock()

    # ---------- State ----------

    @property
    def models_loaded(self) -> bool:
        return self.detector.available

    @property
    def name_valid(self) -> bool:
        return len(self.user_name) >= self.min_name_length

    @property
    def has_reference(self) -> bool:
        return self.matcher.has_reference

    def set_user_name(self, name: str) -> bool:
        """Store the trimmed name. Returns whether it is long enough."""
        self.user_name = (name or '').strip()
        return self.name_valid

    def set_reference(self, frame: Optional[np.ndarray]) -> dict:
        """
        Encode a reference photo and make it the comparison target.

        On success statistics, unknown faces and the alert streak are reset.
        On failure the previous reference stays in place.
        """
        if not self.name_valid:
            raise SessionStateError(
                f"Enter a name of at least {self.min_name_length} characters first"
            )

        result = self.encoder.encode_reference(frame)
        if not result.success:
            logger.warning(f"Reference photo rejected: {result.error}")
            raise ValueError(result.error)

        with self._lock:
            self.matcher.set_reference(result.embedding)
            self._reset_counters()
        logger.info(f"Reference face set for '{self.user_name}'")
        return {'det_score': round(result.det_score, 3)}

    def start(self) -> None:
        if not self.models_loaded:
            raise SessionStateError("Face models are not loaded")
        if not self.name_valid:
            raise SessionStateError("Enter your name first")
        if not self.has_reference:
            raise SessionStateError("Upload a reference photo first")

        with self._lock:
            self._reset_counters()
            self.recognizing = True
        logger.info(f"Recognition started for '{self.user_name}'")

    def stop(self) -> None:
        with self._lock:
            self.recognizing = False
        logger.info("Recognition stopped")

    def reset_stats(self) -> None:
        with self._lock:
            self.stats = RecognitionStats()

    def _reset_counters(self):
        self.stats = RecognitionStats()
        self.registry.clear()
        self.tracker.reset()

    # ---------- Frame processing ----------

    def process_frame(self, frame: np.ndarray,
                      display_size: Optional[Tuple[int, int]] = None) -> Optional[FrameResult]:
        """
        Run one frame through detection and matching.

        Returns None when recognition is not running or no reference is set.
        """
        if frame is None or not self.recognizing or not self.has_reference:
            return None

        height, width = frame.shape[:2]
        display_size = display_size or (width, height)
        sx = display_size[0] / width
        sy = display_size[1] / height

        detections = self.detector.detect(frame)

        with self._lock:
            faces = []
            matches = 0
            unknown = 0
            alert_fired = False

            for detection in detections:
                match = self.matcher.compare(detection.embedding)
                new_unknown = False

                if match.matched:
                    matches += 1
                    alert_fired |= self.tracker.observe(True)
                elif self.registry.register(detection.embedding):
                    new_unknown = True
                    unknown += 1
                    alert_fired |= self.tracker.observe(False)

                faces.append(FaceResult(
                    box=detection.bbox.scale(sx, sy).to_dict(),
                    matched=match.matched,
                    label=f"Match: {self.user_name}" if match.matched else UNKNOWN_LABEL,
                    color=self.box_colors['match'] if match.matched else self.box_colors['unknown'],
                    distance=match.distance,
                    similarity=match.similarity,
                    new_unknown=new_unknown,
                ))

            if detections:
                self.stats.record(len(detections), matches, unknown)
            self.frames_processed += 1
            stats = self.stats.to_dict()

        if detections:
            logger.debug(f"Frame: {len(detections)} faces, {matches} matched, {unknown} new unknown")

        return FrameResult(
            faces=faces,
            stats=stats,
            frame_size=(width, height),
            display_size=tuple(display_size),
            alert_fired=alert_fired,
        )

    # ---------- Page state ----------

    def button_state(self) -> dict:
        """Label and enabled flag of the page's start button."""
        if not self.models_loaded:
            label = 'Loading Models...'
        elif not self.name_valid:
            label = 'Enter Your Name'
        elif self.recognizing:
            label = 'Recognition Active'
        else:
            label = 'Start Recognition'

        enabled = (self.models_loaded and self.has_reference
                   and not self.recognizing and self.name_valid)
        return {'label': label, 'enabled': enabled}

    def status(self) -> dict:
        with self._lock:
            return {
                'user_name': self.user_name,
                'name_valid': self.name_valid,
                'models_loaded': self.models_loaded,
                'has_reference': self.has_reference,
                'recognizing': self.recognizing,
                'frames_processed': self.frames_processed,
                'unknown_faces': self.registry.count,
                'stats': self.stats.to_dict(),
                'button': self.button_state(),
                'matcher': self.matcher.get_stats(),
                'tracker': self.tracker.get_stats(),
            }


def _hex_to_bgr(color: str) -> Tuple[int, int, int]:
    color = color.lstrip('#')
    r, g, b = (int(color[i:i + 2], 16) for i in (0, 2, 4))
    return (b, g, r)


def annotate_frame(frame: np.ndarray, faces: List[FaceResult],
                   line_width: int = 2) -> np.ndarray:
    """Draw labelled boxes on a copy of `frame` (boxes in frame pixels)."""
    out = frame.copy()
    for face in faces:
        box = face.box
        color = _hex_to_bgr(face.color)
        cv2.rectangle(out, (box['left'], box['top']), (box['right'], box['bottom']),
                      color, line_width)

        (tw, th), baseline = cv2.getTextSize(face.label, cv2.FONT_HERSHEY_SIMPLEX, 0.6, 2)
        label_top = max(box['top'] - th - baseline - 8, 0)
        cv2.rectangle(out, (box['left'], label_top),
                      (box['left'] + tw + 8, label_top + th + baseline + 8), color, -1)
        cv2.putText(out, face.label, (box['left'] + 4, label_top + th + 4),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.6, (0, 0, 0), 2, cv2.LINE_AA)
    return out

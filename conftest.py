"""
Shared pytest fixtures.
"""

import numpy as np
import pytest
from unittest.mock import MagicMock

from engines.facial_recognition.detector import BoundingBox, DetectedFace


def random_embedding(dim=512, seed=None):
    rng = np.random.default_rng(seed)
    emb = rng.standard_normal(dim).astype(np.float32)
    emb /= np.linalg.norm(emb)
    return emb


def make_face(embedding, box=(0, 0, 100, 100), det_score=0.9):
    return DetectedFace(bbox=BoundingBox(*box), embedding=embedding, det_score=det_score)


def make_detector(faces=None, available=True):
    """MagicMock detector whose detect/detect_single return `faces`."""
    detector = MagicMock()
    detector.available = available
    faces = faces or []
    detector.detect.return_value = faces
    detector.detect_single.return_value = max(faces, key=lambda f: f.det_score) if faces else None
    detector.get_stats.return_value = {'available': available, 'model': 'buffalo_l'}
    return detector


class FakeTimer:
    """Stands in for threading.Timer; fire() runs the callback."""

    instances = []

    def __init__(self, interval, function, args=None, kwargs=None):
        self.interval = interval
        self.function = function
        self.args = args or ()
        self.kwargs = kwargs or {}
        self.started = False
        self.cancelled = False
        self.daemon = False
        FakeTimer.instances.append(self)

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.function(*self.args, **self.kwargs)


@pytest.fixture
def fake_timer():
    FakeTimer.instances = []
    return FakeTimer


@pytest.fixture
def blank_frame():
    return np.zeros((480, 640, 3), dtype=np.uint8)

"""
Tests for declared dependencies.
"""

from pathlib import Path

PYPROJECT = Path(__file__).resolve().parent.parent / 'pyproject.toml'


def test_opencv_build_supports_windows():
    # client/local_monitor.py calls cv2.imshow, which headless wheels lack
    text = PYPROJECT.read_text()
    assert '"opencv-python>=' in text
    assert 'opencv-python-headless' not in text

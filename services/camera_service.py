"""Camera Service - lists local capture devices for the local monitor and API"""
import logging
import os
import sys

import cv2

logger = logging.getLogger(__name__)


def _device_name(index):
    """Kernel-reported name of /dev/video<index> on Linux, else None."""
    path = f"/sys/class/video4linux/video{index}/name"
    try:
        with open(path) as f:
            return f.read().strip() or None
    except OSError:
        return None


def open_camera(index):
    """Open a capture device, preferring V4L2 on Linux."""
    cap = None
    if sys.platform.startswith('linux'):
        cap = cv2.VideoCapture(index, cv2.CAP_V4L2)
    if cap is None or not cap.isOpened():
        cap = cv2.VideoCapture(index)
    return cap


def list_cameras(max_index=5):
    """
    Probe capture indices 0..max_index-1 and return the ones that open.
    Each entry: {'index': int, 'label': str}; unnamed devices are
    labelled 'Camera N' counting from 1 in list order.
    """
    cameras = []
    for index in range(max_index):
        if sys.platform.startswith('linux') and not os.path.exists(f"/dev/video{index}"):
            continue
        cap = open_camera(index)
        try:
            if not cap.isOpened():
                continue
            label = _device_name(index) or f"Camera {len(cameras) + 1}"
            cameras.append({'index': index, 'label': label})
        finally:
            cap.release()

    logger.info(f"Found {len(cameras)} camera(s)")
    return cameras

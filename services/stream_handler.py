"""
Video Stream Handler - receives webcam frames from the page over Socket.IO
and replies with labelled detections
"""
import logging
from datetime import datetime

from flask import current_app
from flask_socketio import Namespace, emit

from engines.facial_recognition import decode_image

logger = logging.getLogger(__name__)


def parse_display_size(data):
    """Optional {'display_width', 'display_height'} → (w, h) or None."""
    try:
        width = int(data.get('display_width') or 0)
        height = int(data.get('display_height') or 0)
    except (TypeError, ValueError):
        return None
    if width > 0 and height > 0:
        return (width, height)
    return None


class StreamHandler(Namespace):
    """SocketIO namespace for webcam frames"""

    def __init__(self, namespace='/stream'):
        super().__init__(namespace)
        self.connected_clients = 0
        self.frames_received = 0
        self.frames_dropped = 0

    def on_connect(self):
        """Client connected"""
        self.connected_clients += 1
        logger.info(f"Stream client connected: {self.namespace} ({self.connected_clients} open)")
        emit('status', {'connected': True, 'message': 'Connected to stream server'})

    def on_disconnect(self, reason=None):
        """Client disconnected"""
        self.connected_clients = max(0, self.connected_clients - 1)
        logger.info(f"Stream client disconnected: {self.namespace} (reason: {reason})")

    def on_frame(self, data):
        """
        Receive a webcam frame from the page
        data: {
            'frame': base64 encoded JPEG image,
            'display_width', 'display_height': optional overlay size,
            'timestamp': optional client timestamp
        }
        """
        self.frames_received += 1
        session = getattr(current_app, 'recognition_session', None)
        if session is None or not isinstance(data, dict):
            return

        frame = decode_image(data.get('frame'))
        if frame is None:
            self.frames_dropped += 1
            logger.warning("Failed to decode frame")
            return

        try:
            result = session.process_frame(frame, parse_display_size(data))
        except Exception as e:
            logger.error(f"Frame processing error: {e}", exc_info=True)
            emit('error', {'error': 'Frame processing failed'})
            return

        if result is None:
            return

        payload = result.to_dict()
        payload['timestamp'] = data.get('timestamp', datetime.now().isoformat())
        emit('detection', payload)

    def get_stats(self):
        return {
            'connected_clients': self.connected_clients,
            'frames_received': self.frames_received,
            'frames_dropped': self.frames_dropped,
        }


# Global stream handler instance
stream_handler = StreamHandler('/stream')

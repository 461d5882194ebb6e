"""
Session API - user name, reference photo upload, start/stop and a REST
frame endpoint for clients that cannot hold a Socket.IO connection.
"""
import logging

from flask import Blueprint, request, jsonify, current_app

from engines.facial_recognition import decode_image
from services.recognition_session import SessionStateError
from services.stream_handler import parse_display_size

session_bp = Blueprint('session', __name__)
logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {'image/jpeg', 'image/png', 'image/webp', 'image/bmp'}


@session_bp.route('/status', methods=['GET'])
def get_status():
    return jsonify(current_app.recognition_session.status())


@session_bp.route('/name', methods=['POST'])
def set_name():
    """Set the display name used in match labels"""
    data = request.get_json(silent=True) or {}
    name = data.get('name')
    if not isinstance(name, str):
        return jsonify({"error": "name must be a string"}), 400

    session = current_app.recognition_session
    valid = session.set_user_name(name)
    return jsonify({
        "name": session.user_name,
        "valid": valid,
        "button": session.button_state(),
    })


def _read_reference_image():
    """Uploaded photo from multipart 'photo' or JSON {'image': data URL}."""
    if 'photo' in request.files:
        file = request.files['photo']
        if file.filename == '':
            return None, "No file selected"
        if file.mimetype and file.mimetype not in ALLOWED_IMAGE_TYPES:
            return None, f"Unsupported image type: {file.mimetype}"
        return decode_image(file.read()), None

    data = request.get_json(silent=True) or {}
    if data.get('image'):
        return decode_image(data['image']), None
    return None, "No photo provided"


@session_bp.route('/reference', methods=['POST'])
def upload_reference():
    """
    Upload the reference photo. The most confident face in it becomes
    the comparison target and statistics are reset.
    """
    session = current_app.recognition_session
    if not session.name_valid:
        return jsonify({"error": "Enter your name before uploading a photo"}), 409

    frame, error = _read_reference_image()
    if error:
        return jsonify({"error": error}), 400
    if frame is None:
        return jsonify({"error": "Photo could not be decoded"}), 400

    try:
        info = session.set_reference(frame)
    except SessionStateError as e:
        return jsonify({"error": str(e)}), 409
    except ValueError as e:
        return jsonify({"error": str(e)}), 422

    return jsonify({
        "message": "Reference face set",
        "det_score": info['det_score'],
        "stats": session.stats.to_dict(),
        "button": session.button_state(),
    })


@session_bp.route('/start', methods=['POST'])
def start_recognition():
    session = current_app.recognition_session
    try:
        session.start()
    except SessionStateError as e:
        return jsonify({"error": str(e)}), 409
    return jsonify({
        "recognizing": True,
        "interval_ms": current_app.config['RECOGNITION_INTERVAL_MS'],
        "button": session.button_state(),
    })


@session_bp.route('/stop', methods=['POST'])
def stop_recognition():
    session = current_app.recognition_session
    session.stop()
    return jsonify({"recognizing": False, "button": session.button_state()})


@session_bp.route('/frame', methods=['POST'])
def process_frame():
    """REST fallback: process one base64 JPEG frame and return detections"""
    data = request.get_json(silent=True) or {}
    frame = decode_image(data.get('frame'))
    if frame is None:
        return jsonify({"error": "No frame data"}), 400

    session = current_app.recognition_session
    if not session.recognizing:
        return jsonify({"error": "Recognition is not running"}), 409

    try:
        result = session.process_frame(frame, parse_display_size(data))
    except Exception as e:
        logger.error(f"Frame processing error: {e}", exc_info=True)
        return jsonify({"error": "Frame processing failed"}), 500

    if result is None:
        return jsonify({"error": "No reference face set"}), 409
    return jsonify(result.to_dict())

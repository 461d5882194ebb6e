"""Cameras API - capture devices attached to the server host"""
import logging

from flask import Blueprint, jsonify, current_app

from services.camera_service import list_cameras

cameras_bp = Blueprint('cameras', __name__)
logger = logging.getLogger(__name__)


@cameras_bp.route('/', methods=['GET'])
def get_cameras():
    try:
        cameras = list_cameras(current_app.config['CAMERA_PROBE_LIMIT'])
        return jsonify({
            "cameras": cameras,
            "selected": cameras[0]['index'] if cameras else None,
        })
    except Exception as e:
        logger.error(f"Error loading cameras: {e}")
        return jsonify({"error": str(e)}), 500

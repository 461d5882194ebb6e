"""Statistics API"""
from flask import Blueprint, jsonify, current_app

stats_bp = Blueprint('stats', __name__)


@stats_bp.route('/', methods=['GET'])
def get_stats():
    session = current_app.recognition_session
    return jsonify({
        "stats": session.stats.to_dict(),
        "unknown_faces": session.registry.count,
        "frames_processed": session.frames_processed,
    })


@stats_bp.route('/reset', methods=['POST'])
def reset_stats():
    session = current_app.recognition_session
    session.reset_stats()
    return jsonify({"stats": session.stats.to_dict()})

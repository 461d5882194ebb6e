"""Alerts API - unmatched-face tracker state and a manual test call"""
from flask import Blueprint, jsonify, current_app

alerts_bp = Blueprint('alerts', __name__)


@alerts_bp.route('/tracker', methods=['GET'])
def get_tracker():
    return jsonify({
        "tracker": current_app.recognition_session.tracker.get_stats(),
        "notifier": current_app.notifier.get_stats(),
    })


@alerts_bp.route('/test', methods=['POST'])
def test_call():
    """Place a call immediately, bypassing the tracker"""
    result = current_app.notifier.notify(reason='manual_test')
    if result is None:
        return jsonify({"error": "Call request failed"}), 502
    return jsonify({"ok": True, "result": result})

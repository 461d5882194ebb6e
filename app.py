"""
FaceWatch - Main Application
Webcam face watch: matches live faces against one reference photo and
phones the owner when unknown faces persist.
"""

import os
import logging
from flask import Flask, jsonify, send_from_directory
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config
from engines.facial_recognition import FaceDetector, FaceEncoder, FaceMatcher
from engines.alerting import UnmatchedStreakTracker
from services.call_notifier import CallNotifier
from services.recognition_session import RecognitionSession
from services.stream_handler import stream_handler

# Configure logging
os.makedirs(os.path.dirname(Config.LOG_FILE) or '.', exist_ok=True)
logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(Config.LOG_FILE),
        logging.StreamHandler()
    ]
)
logger = logging.getLogger(__name__)

# Initialize Flask app
app = Flask(__name__)
app.config.from_object(Config)
app.url_map.strict_slashes = False  # Allow both /api/stats and /api/stats/

# Initialize extensions
CORS(app, resources={r"/*": {"origins": "*"}})
socketio = SocketIO(app, cors_allowed_origins="*")
socketio.on_namespace(stream_handler)

app.recognition_session = None
app.notifier = None


def init_services(detector=None, notifier=None):
    """
    Build the recognition session and attach it to the app.
    Loading the face models is slow, so this runs at startup rather than import.
    """
    if detector is None:
        detector = FaceDetector(
            model_name=Config.FACE_MODEL,
            gpu_id=Config.GPU_ID,
            det_size=(Config.FACE_DET_SIZE, Config.FACE_DET_SIZE),
        )
    if notifier is None:
        notifier = CallNotifier(
            webhook_url=Config.CALL_WEBHOOK_URL,
            phone=Config.OWNER_PHONE,
            timeout=Config.CALL_TIMEOUT_SECONDS,
            development_mode=Config.CALL_DEVELOPMENT_MODE,
        )

    tracker = UnmatchedStreakTracker(
        on_alert=notifier.notify_in_background,
        threshold=Config.ALERT_THRESHOLD,
        delay=Config.ALERT_COOLDOWN_SECONDS,
    )
    session = RecognitionSession(
        detector=detector,
        encoder=FaceEncoder(detector),
        matcher=FaceMatcher(threshold=Config.MATCH_THRESHOLD, metric=Config.MATCH_METRIC),
        tracker=tracker,
        min_name_length=Config.MIN_NAME_LENGTH,
        box_colors=Config.BOX_COLORS,
    )

    app.recognition_session = session
    app.notifier = notifier
    logger.info(f"Face detector: {detector.get_stats()}")
    return session


# Register blueprints
from api.session import session_bp
from api.stats import stats_bp
from api.cameras import cameras_bp
from api.alerts import alerts_bp

app.register_blueprint(session_bp, url_prefix='/api/session')
app.register_blueprint(stats_bp, url_prefix='/api/stats')
app.register_blueprint(cameras_bp, url_prefix='/api/cameras')
app.register_blueprint(alerts_bp, url_prefix='/api/alerts')


# Frontend
@app.route('/')
def index_page():
    return send_from_directory('templates', 'index.html')


# API root
@app.route('/api')
def api_info():
    return jsonify({
        "message": "FaceWatch API",
        "version": "1.0.0",
        "status": "online"
    })


@app.route('/api/config')
def client_config():
    """Settings the page needs before it starts sending frames."""
    return jsonify({
        "recognition_interval_ms": Config.RECOGNITION_INTERVAL_MS,
        "min_name_length": Config.MIN_NAME_LENGTH,
        "box_colors": Config.BOX_COLORS,
        "stream_namespace": stream_handler.namespace,
    })


# Health check
@app.route('/health')
def health():
    if app.recognition_session is None:
        return jsonify({"status": "starting", "models_loaded": False}), 503
    return jsonify({
        "status": "healthy" if app.recognition_session.models_loaded else "degraded",
        "models_loaded": app.recognition_session.models_loaded,
        "stream": stream_handler.get_stats(),
    })


# Error handlers
@app.errorhandler(404)
def not_found(error):
    return jsonify({"error": "Not found"}), 404


@app.errorhandler(413)
def too_large(error):
    return jsonify({"error": "Upload too large"}), 413


@app.errorhandler(500)
def internal_error(error):
    logger.error(f"Internal error: {error}")
    return jsonify({"error": "Internal server error"}), 500


if __name__ == '__main__':
    logger.info("Starting FaceWatch...")
    logger.info(f"Server running on {Config.HOST}:{Config.PORT}")

    init_services()

    # Run with SocketIO
    socketio.run(
        app,
        host=Config.HOST,
        port=Config.PORT,
        debug=(Config.FLASK_ENV == 'development'),
        use_reloader=False,
        allow_unsafe_werkzeug=True
    )

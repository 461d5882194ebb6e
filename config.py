"""
Configuration Management for FaceWatch
Loads environment variables and provides configuration settings
"""

import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Config:
    """Application configuration"""

    # Flask
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    FLASK_ENV = os.getenv('FLASK_ENV', 'development')
    MAX_CONTENT_LENGTH = int(os.getenv('MAX_UPLOAD_MB', 10)) * 1024 * 1024

    # Server
    HOST = os.getenv('HOST', '0.0.0.0')
    PORT = int(os.getenv('PORT', 5000))

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    LOG_FILE = os.getenv('LOG_FILE', 'logs/app.log')

    # Face Recognition
    FACE_MODEL = os.getenv('FACE_MODEL', 'buffalo_l')
    FACE_DET_SIZE = int(os.getenv('FACE_DET_SIZE', 640))
    GPU_ID = int(os.getenv('GPU_ID', 0))
    MATCH_METRIC = os.getenv('MATCH_METRIC', 'cosine')   # cosine | euclidean
    MATCH_THRESHOLD = float(os.getenv('MATCH_THRESHOLD', 0.4))

    # Recognition page
    RECOGNITION_INTERVAL_MS = int(os.getenv('RECOGNITION_INTERVAL_MS', 100))
    MIN_NAME_LENGTH = int(os.getenv('MIN_NAME_LENGTH', 2))
    BOX_COLORS = {
        'match': os.getenv('BOX_COLOR_MATCH', '#22c55e'),
        'noMatch': os.getenv('BOX_COLOR_NO_MATCH', '#ef4444'),
        'unknown': os.getenv('BOX_COLOR_UNKNOWN', '#eab308'),
    }
    CAMERA_PROBE_LIMIT = int(os.getenv('CAMERA_PROBE_LIMIT', 5))

    # Unknown-face alerting
    ALERT_THRESHOLD = int(os.getenv('ALERT_THRESHOLD', 5))
    ALERT_COOLDOWN_SECONDS = float(os.getenv('ALERT_COOLDOWN_SECONDS', 60))

    # Phone-call webhook
    CALL_WEBHOOK_URL = os.getenv('CALL_WEBHOOK_URL', 'http://localhost:3000/call-owner')
    OWNER_PHONE = os.getenv('OWNER_PHONE', '')
    CALL_TIMEOUT_SECONDS = float(os.getenv('CALL_TIMEOUT_SECONDS', 5))
    CALL_DEVELOPMENT_MODE = os.getenv('CALL_DEVELOPMENT_MODE', 'true').lower() == 'true'

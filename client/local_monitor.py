#!/usr/bin/env python3
"""
FaceWatch Local Monitor
Runs recognition against a local camera without the browser page.
Boxes and labels are drawn in an OpenCV window; press q to quit.

Run: python3 client/local_monitor.py --name Alice --reference me.jpg
"""
import argparse
import logging
import os
import sys
import time

import cv2

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from config import Config
from engines.alerting import UnmatchedStreakTracker
from engines.facial_recognition import FaceDetector, FaceMatcher
from services.call_notifier import CallNotifier
from services.camera_service import list_cameras, open_camera
from services.recognition_session import RecognitionSession, annotate_frame

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def build_session(args):
    detector = FaceDetector(model_name=Config.FACE_MODEL, gpu_id=Config.GPU_ID,
                            det_size=(Config.FACE_DET_SIZE, Config.FACE_DET_SIZE))
    notifier = CallNotifier(
        webhook_url=Config.CALL_WEBHOOK_URL,
        phone=Config.OWNER_PHONE,
        timeout=Config.CALL_TIMEOUT_SECONDS,
        development_mode=Config.CALL_DEVELOPMENT_MODE,
    )
    tracker = UnmatchedStreakTracker(on_alert=notifier.notify_in_background,
                                     threshold=args.alert_threshold,
                                     delay=args.alert_cooldown)
    return RecognitionSession(
        detector=detector,
        matcher=FaceMatcher(threshold=args.threshold, metric=args.metric),
        tracker=tracker,
        min_name_length=Config.MIN_NAME_LENGTH,
        box_colors=Config.BOX_COLORS,
    )


def run(session, camera_index, interval_ms):
    cap = open_camera(camera_index)
    if not cap.isOpened():
        raise RuntimeError(f"Cannot open camera {camera_index}")

    session.start()
    interval = interval_ms / 1000.0
    last_stats = time.time()
    logger.info("Monitoring... press q in the window to stop")

    try:
        while True:
            loop_start = time.time()
            ret, frame = cap.read()
            if not ret:
                logger.warning("Camera returned no frame")
                time.sleep(0.1)
                continue

            result = session.process_frame(frame)
            shown = annotate_frame(frame, result.faces) if result else frame
            cv2.imshow('FaceWatch', shown)
            if cv2.waitKey(1) & 0xFF == ord('q'):
                break

            now = time.time()
            if now - last_stats >= 5 and result:
                s = result.stats
                logger.info(f"Matches {s['match_count']} | Unknown {s['unknown_count']} | "
                            f"Scans {s['total_scans']} | Accuracy {s['accuracy']}%")
                last_stats = now

            sleep_time = interval - (time.time() - loop_start)
            if sleep_time > 0:
                time.sleep(sleep_time)
    finally:
        session.stop()
        cap.release()
        cv2.destroyAllWindows()


def main():
    parser = argparse.ArgumentParser(description="FaceWatch Local Monitor")
    parser.add_argument("--name", help="Name shown on matching faces")
    parser.add_argument("--reference", help="Reference photo path")
    parser.add_argument("--camera", type=int, default=0, help="Camera device index")
    parser.add_argument("--list-cameras", action="store_true", help="List cameras and exit")
    parser.add_argument("--metric", choices=['cosine', 'euclidean'], default=Config.MATCH_METRIC)
    parser.add_argument("--threshold", type=float, default=Config.MATCH_THRESHOLD)
    parser.add_argument("--interval-ms", type=int, default=Config.RECOGNITION_INTERVAL_MS)
    parser.add_argument("--alert-threshold", type=int, default=Config.ALERT_THRESHOLD)
    parser.add_argument("--alert-cooldown", type=float, default=Config.ALERT_COOLDOWN_SECONDS)
    args = parser.parse_args()

    if args.list_cameras:
        cameras = list_cameras(Config.CAMERA_PROBE_LIMIT)
        if not cameras:
            print("No cameras found")
        for cam in cameras:
            print(f"  [{cam['index']}] {cam['label']}")
        return 0

    if not args.name or not args.reference:
        parser.error("--name and --reference are required")

    session = build_session(args)
    if not session.models_loaded:
        logger.error("Face models could not be loaded")
        return 1
    if not session.set_user_name(args.name):
        parser.error(f"--name must be at least {Config.MIN_NAME_LENGTH} characters")

    image = cv2.imread(args.reference)
    try:
        session.set_reference(image)
    except ValueError as e:
        logger.error(f"Reference photo rejected: {e}")
        return 1

    try:
        run(session, args.camera, args.interval_ms)
    except KeyboardInterrupt:
        print("\nStopping...")
    except RuntimeError as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

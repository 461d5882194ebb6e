"""Call Notifier - phone-call webhook integration with Development Mode"""
import logging
import os
import threading

import requests

logger = logging.getLogger(__name__)


class CallNotifier:
    def __init__(self, webhook_url, phone, timeout=5.0, development_mode=None):
        self.webhook_url = webhook_url
        self.phone = phone
        self.timeout = timeout

        # Check for development mode from environment or parameter
        if development_mode is None:
            development_mode = os.getenv('CALL_DEVELOPMENT_MODE', 'true').lower() == 'true'

        self.development_mode = development_mode
        self.calls_sent = 0

        if self.development_mode:
            logger.info("Call notifier in DEVELOPMENT MODE - calls will be logged, not placed")
        else:
            logger.info(f"Call notifier initialized with webhook: {webhook_url}")

    def notify(self, reason='unknown_face'):
        """Ask the webhook to phone the owner. Returns the response body or None."""
        payload = {'phone': self.phone, 'reason': reason}

        # Development mode - log instead of calling
        if self.development_mode:
            logger.info("=" * 60)
            logger.info("DEVELOPMENT MODE - Call NOT placed")
            logger.info(f"Webhook: {self.webhook_url}")
            logger.info(f"Phone: {self.phone} | Reason: {reason}")
            logger.info("=" * 60)
            self.calls_sent += 1
            return {'dev_mode': True, **payload}

        if not self.webhook_url or not self.phone:
            logger.error("Call notifier not configured (CALL_WEBHOOK_URL / OWNER_PHONE)")
            return None

        try:
            response = requests.post(self.webhook_url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Failed to place call: {e}")
            return None

        self.calls_sent += 1
        logger.info(f"Call requested for {self.phone} ({reason})")
        try:
            return response.json()
        except ValueError:
            return {'text': response.text}

    def notify_in_background(self, reason='unknown_face'):
        """Fire-and-forget notify so the frame loop never waits on the webhook."""
        thread = threading.Thread(target=self.notify, args=(reason,),
                                  name='call-notifier', daemon=True)
        thread.start()
        return thread

    def get_stats(self):
        return {
            'webhook_url': self.webhook_url,
            'phone_configured': bool(self.phone),
            'development_mode': self.development_mode,
            'calls_sent': self.calls_sent,
        }

"""
Unmatched-streak tracker — decides when a persistently unmatched face
should trigger an external alert.

Fed one boolean per observed face (True = matched the reference).
After `threshold` consecutive False observations the alert callback fires
once and the tracker arms; it re-arms after `delay` seconds, so a streak
that keeps going fires again only once per cooldown.
"""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class UnmatchedStreakTracker:
    """Threshold + cooldown debouncer for unmatched observations."""

    def __init__(self, on_alert: Callable[[], None], threshold: int = 5,
                 delay: float = 60.0, timer_factory=threading.Timer):
        if threshold < 1:
            raise ValueError("threshold must be >= 1")
        if delay < 0:
            raise ValueError("delay must be >= 0")

        self.on_alert = on_alert
        self.threshold = threshold
        self.delay = delay
        self._timer_factory = timer_factory

        self._lock = threading.Lock()
        self._false_count = 0
        self._alerted = False
        self._timer: Optional[threading.Timer] = None
        self._generation = 0
        self._alerts_fired = 0

    @property
    def false_count(self) -> int:
        return self._false_count

    @property
    def alerted(self) -> bool:
        return self._alerted

    @property
    def alerts_fired(self) -> int:
        return self._alerts_fired

    def observe(self, matched: bool) -> bool:
        """
        Record one observation.

        Returns:
            True if this observation fired the alert
        """
        with self._lock:
            if matched:
                self._false_count = 0
                self._alerted = False
                self._cancel_timer()
                return False

            self._false_count += 1
            if self._false_count < self.threshold or self._alerted:
                return False

            self._alerted = True
            self._alerts_fired += 1
            self._cancel_timer()
            self._timer = self._timer_factory(self.delay, self._rearm,
                                              args=(self._generation,))
            self._timer.daemon = True
            self._timer.start()

        logger.warning(
            f"Unmatched streak reached {self._false_count} (threshold {self.threshold}), alerting"
        )
        try:
            self.on_alert()
        except Exception as e:
            logger.error(f"Alert callback failed: {e}", exc_info=True)
        return True

    def reset(self) -> None:
        """Zero the streak, disarm and cancel any pending cooldown."""
        with self._lock:
            self._false_count = 0
            self._alerted = False
            self._cancel_timer()

    def _rearm(self, generation: int) -> None:
        with self._lock:
            # a cancelled timer may already be running; only the current one re-arms
            if generation != self._generation:
                logger.debug("Ignoring stale cooldown timer")
                return
            self._alerted = False
            self._timer = None
        logger.info("Alert cooldown expired, tracker re-armed")

    def _cancel_timer(self) -> None:
        # caller holds self._lock
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def get_stats(self) -> dict:
        with self._lock:
            return {
                'false_count': self._false_count,
                'alerted': self._alerted,
                'cooldown_pending': self._timer is not None,
                'threshold': self.threshold,
                'delay': self.delay,
                'alerts_fired': self._alerts_fired,
            }

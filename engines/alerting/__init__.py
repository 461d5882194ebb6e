"""
Alerting Engine
Streak tracking that turns a stream of match/no-match observations into alerts.

Usage:
    from engines.alerting import UnmatchedStreakTracker

    tracker = UnmatchedStreakTracker(on_alert=notifier.notify_in_background,
                                     threshold=5, delay=60.0)
    tracker.observe(False)
"""

from engines.alerting.tracker import UnmatchedStreakTracker

__all__ = ['UnmatchedStreakTracker']

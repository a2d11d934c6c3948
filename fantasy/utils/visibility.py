"""
Prediction visibility rules

A prediction stays private to its owner (and editable) until shortly before
kick-off. From then on, or once the match has a result, other group members
may see it and it can no longer be changed.
"""

from datetime import timedelta

from fantasy.utils.timezone_utils import ensure_utc, get_utc_time

DEFAULT_LOCK_MINUTES = 10


def get_lock_minutes():
    """Configured lock window, falling back to the default outside an app"""
    from flask import current_app, has_app_context

    if has_app_context():
        return current_app.config.get("PREDICTION_LOCK_MINUTES", DEFAULT_LOCK_MINUTES)
    return DEFAULT_LOCK_MINUTES


def can_watch(prediction, now=None, lock_minutes=None):
    """
    Decide whether a prediction may be disclosed to other members.

    Args:
        prediction: Prediction with its match loaded
        now: aware datetime used as the current time (defaults to the UTC clock)
        lock_minutes: minutes before kick-off at which the prediction opens up

    Returns:
        True when the match has a result, has started, or starts within the
        lock window (inclusive). False otherwise.
    """
    return is_match_watchable(prediction.match, now=now, lock_minutes=lock_minutes)


def is_match_watchable(match, now=None, lock_minutes=None):
    """Same rule as can_watch, for a match that has no prediction yet"""
    if match.goals_local is not None and match.goals_visitor is not None:
        return True

    if match.date is None:
        return False

    now = ensure_utc(now) if now is not None else get_utc_time()
    if lock_minutes is None:
        lock_minutes = get_lock_minutes()

    return ensure_utc(match.date) - now <= timedelta(minutes=lock_minutes)

"""
Work timer engine for submissions.

Drives the per-submission timer through

    stopped ──start──▶ running ──pause(reason)──▶ paused
       ▲                 │   ▲                     │
       └──────stop───────┘   └───────resume────────┘

and posts every completed interval to the utilization ledger.

Status coupling (change_status):
    - any status other than "In Progress" while the timer is active → stop
    - "In Progress" while stopped → start
    - "In Progress" while paused → timer stays paused

Every operation takes ``now`` (tz-aware; defaults to current UTC) so
callers and tests control the clock. Elapsed time is measured from
timer_start_time, falling back to last_tick when the start instant is
missing. Illegal transitions raise InvalidTransitionError; a missing or
unknown pause reason raises ValidationError. Both leave the submission
untouched.

Display helpers (elapsed_seconds, format_elapsed, timer_display) are pure
reads and safe to call on every UI polling tick.
"""

import logging
import math
from datetime import datetime

from app.core.exceptions import InvalidTransitionError, ValidationError
from app.models.enums import PauseReason, TaskStatus, TimerState
from app.models.metrics import UserMetric
from app.models.submission import Submission
from app.services.store import TrackerStore
from app.utils.helpers import as_utc, utcnow

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = 3600.0


# ── Elapsed-time arithmetic ──────────────────────────────────────────────────


def elapsed_hours(submission: Submission, now: datetime) -> float:
    """Hours since the timer's reference instant, never negative."""
    reference = as_utc(submission.timer_start_time)
    if reference is None:
        reference = as_utc(submission.last_tick)
        if reference is None:
            logger.warning("Submission %s has no timer reference instant; accruing 0h", submission.id)
            return 0.0
        # a paused timer is measured from the pause instant
        if _state_of(submission) == TimerState.RUNNING:
            logger.warning("Submission %s timer_start_time missing; measuring from last_tick", submission.id)
    seconds = (as_utc(now) - reference).total_seconds()
    return max(seconds, 0.0) / SECONDS_PER_HOUR


def log_time_to_metric(store: TrackerStore, user_id: int, hours: float, now: datetime | None = None) -> UserMetric:
    """Accumulate ``hours`` into the user's ledger row for today (UTC)."""
    now = as_utc(now) or utcnow()
    metric = store.accumulate_metric(user_id=user_id, day=now.date(), hours=hours)
    logger.debug("Ledger user=%s day=%s +%.4fh → %.4fh", user_id, metric.day, hours, metric.hours)
    return metric


def _accrue(store: TrackerStore, submission: Submission, actor_id: int | None, now: datetime) -> float:
    """Add the open interval to logged_hours and the ledger; return hours."""
    hours = elapsed_hours(submission, now)
    submission.logged_hours = (submission.logged_hours or 0.0) + hours

    ledger_user = actor_id if actor_id is not None else submission.developer_id
    if ledger_user is None:
        logger.warning(
            "Submission %s: %.4fh not posted to ledger (no acting user or developer)",
            submission.id, hours,
        )
    else:
        log_time_to_metric(store, ledger_user, hours, now)
    return hours


def _state_of(submission: Submission) -> TimerState:
    return TimerState.coerce(submission.timer_state) or TimerState.STOPPED


# ── Transitions ──────────────────────────────────────────────────────────────


def _start(submission: Submission, now: datetime) -> None:
    submission.timer_state = TimerState.RUNNING
    submission.timer_start_time = now
    submission.pause_reason = None
    submission.last_tick = now


def _stop(store: TrackerStore, submission: Submission, actor_id: int | None, now: datetime) -> float:
    state = _state_of(submission)
    if state in (TimerState.RUNNING, TimerState.PAUSED):
        # from paused the span since the pause (last_tick) is accrued
        hours = _accrue(store, submission, actor_id, now)
    else:
        raise InvalidTransitionError("stop", state.value, submission.id)
    submission.timer_state = TimerState.STOPPED
    submission.timer_start_time = None
    submission.pause_reason = None
    submission.last_tick = now
    return hours


def start_timer(store: TrackerStore, submission: Submission, now: datetime | None = None) -> Submission:
    """Explicit start; only valid from stopped."""
    now = as_utc(now) or utcnow()
    state = _state_of(submission)
    if state != TimerState.STOPPED:
        raise InvalidTransitionError("start", state.value, submission.id)
    _start(submission, now)
    store.commit()
    logger.info("Timer started submission=%s", submission.id)
    return submission


def stop_timer(store: TrackerStore, submission: Submission, actor_id: int | None = None,
               now: datetime | None = None) -> Submission:
    """Explicit stop; valid from running or paused."""
    now = as_utc(now) or utcnow()
    hours = _stop(store, submission, actor_id, now)
    store.commit()
    logger.info("Timer stopped submission=%s accrued=%.4fh total=%.4fh",
                submission.id, hours, submission.logged_hours)
    return submission


def pause_timer(store: TrackerStore, submission: Submission, reason, actor_id: int | None = None,
                now: datetime | None = None) -> Submission:
    """Pause a running timer. ``reason`` must be one of PauseReason."""
    if reason is None or not str(reason).strip():
        raise ValidationError("Please select a reason for pausing.", details={"reason": "required"})
    pause_reason = PauseReason.coerce(reason)
    if pause_reason is None:
        raise ValidationError(
            f"Unknown pause reason: {reason}",
            details={"reason": f"must be one of {', '.join(PauseReason.values())}"},
        )

    now = as_utc(now) or utcnow()
    state = _state_of(submission)
    if state != TimerState.RUNNING:
        raise InvalidTransitionError("pause", state.value, submission.id)

    hours = _accrue(store, submission, actor_id, now)
    submission.timer_state = TimerState.PAUSED
    submission.timer_start_time = None
    submission.pause_reason = pause_reason.value
    submission.last_tick = now
    store.commit()
    logger.info("Timer paused submission=%s reason=%s accrued=%.4fh",
                submission.id, pause_reason.value, hours)
    return submission


def resume_timer(store: TrackerStore, submission: Submission, now: datetime | None = None) -> Submission:
    """Resume a paused timer."""
    now = as_utc(now) or utcnow()
    state = _state_of(submission)
    if state != TimerState.PAUSED:
        raise InvalidTransitionError("resume", state.value, submission.id)
    _start(submission, now)
    store.commit()
    logger.info("Timer resumed submission=%s", submission.id)
    return submission


def change_status(store: TrackerStore, submission: Submission, new_status, actor_id: int | None = None,
                  now: datetime | None = None, commit: bool = True) -> Submission:
    """Set the task status and apply the timer coupling rule."""
    status = TaskStatus.coerce(new_status)
    if status is None:
        raise ValidationError(
            f"Invalid task status: {new_status}",
            details={"status": f"must be one of {', '.join(TaskStatus.values())}"},
        )

    now = as_utc(now) or utcnow()
    old_status = submission.status
    state = _state_of(submission)

    if status == TaskStatus.IN_PROGRESS:
        if state == TimerState.STOPPED:
            _start(submission, now)
        elif state in (TimerState.RUNNING, TimerState.PAUSED):
            pass
        else:
            raise InvalidTransitionError("start", state.value, submission.id)
    else:
        if state in (TimerState.RUNNING, TimerState.PAUSED):
            _stop(store, submission, actor_id, now)
        elif state == TimerState.STOPPED:
            pass
        else:
            raise InvalidTransitionError("stop", state.value, submission.id)

    submission.status = status
    submission.last_tick = now
    if commit:
        store.commit()
    logger.info("Submission %s status %s → %s (timer %s → %s)",
                submission.id, old_status, status.value, state.value, _state_of(submission).value)
    return submission


# ── Live display (read-only) ─────────────────────────────────────────────────


def elapsed_seconds(submission: Submission, now: datetime | None = None) -> int | None:
    """Whole seconds since the running timer started; None unless running."""
    if _state_of(submission) != TimerState.RUNNING or submission.timer_start_time is None:
        return None
    now = as_utc(now) or utcnow()
    delta = (now - as_utc(submission.timer_start_time)).total_seconds()
    return max(int(math.floor(delta)), 0)


def format_elapsed(total_seconds: int) -> str:
    """HH:MM:SS; hours are not wrapped at 24."""
    total_seconds = max(int(total_seconds), 0)
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def timer_display(submission: Submission, now: datetime | None = None) -> dict:
    state = _state_of(submission)
    seconds = elapsed_seconds(submission, now)
    if state == TimerState.RUNNING:
        label = format_elapsed(seconds or 0)
    elif state == TimerState.PAUSED:
        label = "Paused"
    else:
        label = "Stopped"
    return {
        "submission_id": submission.id,
        "state": state.value,
        "elapsed_seconds": seconds,
        "elapsed": format_elapsed(seconds) if seconds is not None else None,
        "label": label,
        "pause_reason": submission.pause_reason,
        "logged_hours": round(submission.logged_hours or 0.0, 4),
    }

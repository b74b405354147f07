"""Session controller for stint.

The controller owns the single active work session and drives it through
idle -> running <-> paused -> completed. Remaining time is always re-derived
from the stored timestamps and the clock, never from counted ticks, so a
session stays correct across suspension and process restarts. If the wall
clock moves backwards, time is held at the latest instant already seen, so
work that was counted is never given back.

Every transition is committed in the same order:
1. Build the new state
2. Write its snapshot through the store (synchronously)
3. Replace the in-memory state
4. Schedule or cancel the completion alert

If the store fails in step 2 the controller keeps its previous state, so the
snapshot on disk never lags behind what a caller has observed.

Concurrency: operations must be serialized by the host. tick() and
reconcile() must never run concurrently on one controller.
"""

import logging
from dataclasses import replace
from datetime import datetime, timedelta

from stint.core.clock import ZERO, Clock, SystemClock
from stint.core.errors import InvalidTransition, PersistenceError, SchedulingError, SnapshotError
from stint.core.feedback import CUE_COMPLETE, CUE_PAUSE, CUE_RESUME, CUE_START, Feedback, NullFeedback
from stint.core.history import SessionArchive
from stint.core.notify import COMPLETION_ALERT_ID, Notification, NotificationScheduler
from stint.core.session import IDLE, ControllerState, SessionStatus, WorkSession
from stint.core.snapshot import decode_snapshot, encode_snapshot
from stint.core.store import SnapshotStore

logger = logging.getLogger(__name__)

RUNNING = SessionStatus.RUNNING
PAUSED = SessionStatus.PAUSED
COMPLETED = SessionStatus.COMPLETED


class SessionController:
    """State machine for the single active work session.

    Args:
        store: Snapshot persistence. Read once here, written on every transition.
        scheduler: Completion alert scheduler.
        clock: Wall clock. Defaults to the system clock.
        feedback: Sound cues for session events.
        archive: Where finished sessions go when acknowledged or replaced.
        notification: Alert content.
    """

    def __init__(
        self,
        store: SnapshotStore,
        scheduler: NotificationScheduler,
        clock: Clock | None = None,
        feedback: Feedback | None = None,
        archive: SessionArchive | None = None,
        notification: Notification | None = None,
    ) -> None:
        self._store = store
        self._scheduler = scheduler
        self._clock = clock or SystemClock()
        self._feedback = feedback or NullFeedback()
        self._archive = archive
        self._notification = notification or Notification()
        self._state = IDLE
        self._last_now: datetime | None = None
        self._skewed = False
        self.time_remaining = ZERO
        self.restore_from_snapshot(self._read_snapshot())

    @classmethod
    def open(cls, store: SnapshotStore, scheduler: NotificationScheduler, **kwargs) -> "SessionController":
        """Construct a controller from the stored snapshot and reconcile it.

        This is the cold-start path every host uses. A completion that cannot
        be saved is logged and left for the next reconcile.
        """
        controller = cls(store, scheduler, **kwargs)
        try:
            controller.reconcile()
        except PersistenceError as e:
            logger.warning("Could not record completion, will retry on next reconcile: %s", e)
        return controller

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def status(self) -> SessionStatus:
        return self._state.status

    @property
    def session(self) -> WorkSession | None:
        return self._state.session

    @property
    def progress(self) -> float:
        """Fraction of the planned duration worked, from 0.0 to 1.0."""
        session = self._state.session
        if session is None:
            return 0.0
        return 1 - self.time_remaining / session.planned_duration

    def remaining(self, now: datetime | None = None) -> timedelta:
        """Remaining time of the current session, zero when idle."""
        session = self._state.session
        if session is None:
            return ZERO
        return session.remaining(self._state.status, now or self._now())

    def _read_snapshot(self) -> bytes | None:
        try:
            return self._store.load()
        except PersistenceError as e:
            logger.warning("Could not read snapshot, starting idle: %s", e)
            return None

    def restore_from_snapshot(self, blob: bytes | None) -> ControllerState:
        """Seed the controller from a stored snapshot.

        A missing or malformed snapshot yields idle. Never raises. Callers
        must reconcile() before relying on the restored state.
        """
        state = IDLE
        if blob is not None:
            try:
                state = decode_snapshot(blob)
            except SnapshotError as e:
                logger.warning("Discarding unreadable snapshot: %s", e)
        self._state = state
        if state.session is not None:
            self._observe(_latest_instant(state.session))
        self.time_remaining = self.remaining()
        logger.debug("Restored %s session from snapshot", state.status.value)
        return state

    def reload(self) -> SessionStatus:
        """Re-read the snapshot written by another process and reconcile it."""
        self.restore_from_snapshot(self._read_snapshot())
        return self.reconcile()

    def start(self, task_id: str, planned_duration: timedelta) -> WorkSession:
        """Start a new running session for task_id.

        An active session is ended first and a finished one is archived, so
        no session is ever orphaned.

        Raises:
            ValueError: If planned_duration is not positive.
            PersistenceError: If a snapshot cannot be written.
        """
        if planned_duration <= ZERO:
            raise ValueError(f"Planned duration must be positive, got {planned_duration}")

        if self.status in (RUNNING, PAUSED):
            logger.info("Ending session %s before starting a new one", self.session.id)
            self.end()
        if self.status == COMPLETED:
            self.acknowledge()

        now = self._now()
        session = WorkSession.new(task_id, planned_duration, now)
        self._commit(ControllerState(RUNNING, session), now)
        self._schedule_alert(planned_duration)
        self._cue(CUE_START)
        logger.info("Started session %s for task %s (%s)", session.id, task_id, planned_duration)
        return session

    def pause(self) -> WorkSession:
        """Pause the running session, folding elapsed work into it.

        A session that already ran out is completed instead and returned with
        status completed.

        Raises:
            InvalidTransition: If not running.
        """
        self._require("pause", RUNNING)
        now = self._now()
        if self._complete_if_due(now):
            return self.session

        session = self.session
        paused = replace(
            session,
            accumulated_worked=session.worked(RUNNING, now),
            paused_at=now,
        )
        self._commit(ControllerState(PAUSED, paused), now)
        self._cancel_alert()
        self._cue(CUE_PAUSE)
        logger.info("Paused session %s with %s remaining", paused.id, self.time_remaining)
        return paused

    def resume(self) -> WorkSession:
        """Resume a paused session from a fresh anchor.

        Raises:
            InvalidTransition: If not paused.
        """
        self._require("resume", PAUSED)
        now = self._now()
        resumed = replace(self.session, started_at=now, paused_at=None)
        self._commit(ControllerState(RUNNING, resumed), now)
        self._schedule_alert(self.time_remaining)
        self._cue(CUE_RESUME)
        logger.info("Resumed session %s with %s remaining", resumed.id, self.time_remaining)
        return resumed

    def tick(self) -> timedelta:
        """Refresh time_remaining for display.

        Completes the session if it ran out; otherwise changes nothing.

        Returns:
            The current remaining time.
        """
        now = self._now()
        if self.status == RUNNING:
            self._complete_if_due(now)
        self.time_remaining = self.remaining(now)
        return self.time_remaining

    def reconcile(self) -> SessionStatus:
        """Re-derive state from stored timestamps after any gap in execution.

        A running session whose time ran out while nothing was executing is
        completed here. Calling it again afterwards is a no-op.

        Returns:
            The status after reconciling.
        """
        now = self._now()
        if self.status == RUNNING and self._complete_if_due(now):
            logger.info("Session %s ran out while suspended", self.session.id)
        self.time_remaining = self.remaining(now)
        return self.status

    def end(self) -> WorkSession:
        """Finish the active session now, keeping the work done so far.

        Raises:
            InvalidTransition: If no session is running or paused.
        """
        self._require("end", RUNNING, PAUSED)
        now = self._now()
        if self.status == RUNNING and self._complete_if_due(now):
            return self.session

        session = self.session
        finished = replace(
            session,
            accumulated_worked=session.worked(self.status, now),
            completed_at=now,
        )
        self._commit(ControllerState(COMPLETED, finished), now)
        self._cancel_alert()
        self._cue(CUE_COMPLETE)
        logger.info("Ended session %s early after %s", finished.id, finished.accumulated_worked)
        return finished

    def acknowledge(self) -> WorkSession:
        """Archive the completed session and return to idle.

        Raises:
            InvalidTransition: If the session has not completed.
        """
        self._require("acknowledge", COMPLETED)
        session = self.session
        if self._archive is not None:
            try:
                self._archive.append(session)
            except OSError:
                logger.exception("Failed to archive session %s", session.id)
        self.reset()
        return session

    def reset(self) -> None:
        """Discard any session and return to idle. Valid from any state."""
        self._store.clear()
        self._state = IDLE
        self.time_remaining = ZERO
        self._cancel_alert()
        logger.info("Reset to idle")

    def _now(self) -> datetime:
        """Current time, held at the latest instant seen if the clock went back."""
        now = self._clock.now()
        if self._last_now is not None and now < self._last_now:
            if not self._skewed:
                logger.warning(
                    "Clock skew detected: now=%s is %.3fs before %s; holding time still",
                    now.isoformat(),
                    (self._last_now - now).total_seconds(),
                    self._last_now.isoformat(),
                )
                self._skewed = True
            return self._last_now
        self._skewed = False
        self._observe(now)
        return now

    def _observe(self, instant: datetime) -> None:
        if self._last_now is None or instant > self._last_now:
            self._last_now = instant

    def _require(self, operation: str, *allowed: SessionStatus) -> None:
        if self.status not in allowed:
            raise InvalidTransition(operation, self.status.value)

    def _commit(self, state: ControllerState, now: datetime) -> None:
        self._store.save(encode_snapshot(state))
        self._state = state
        self.time_remaining = self.remaining(now)

    def _complete_if_due(self, now: datetime) -> bool:
        """Complete the running session if its time ran out.

        The scheduled alert is due at the same instant, so it is left to fire.
        """
        session = self.session
        if session.remaining(RUNNING, now) > ZERO:
            return False
        finished = replace(
            session,
            accumulated_worked=session.planned_duration,
            completed_at=min(now, session.expires_at()),
        )
        self._commit(ControllerState(COMPLETED, finished), now)
        self._cue(CUE_COMPLETE)
        logger.info("Session %s completed at %s", finished.id, finished.completed_at.isoformat())
        return True

    def _schedule_alert(self, fire_after: timedelta) -> None:
        try:
            self._scheduler.schedule(COMPLETION_ALERT_ID, fire_after, self._notification)
        except SchedulingError as e:
            logger.warning("Completion alert not scheduled, relying on reconcile: %s", e)

    def _cancel_alert(self) -> None:
        try:
            self._scheduler.cancel(COMPLETION_ALERT_ID)
        except SchedulingError as e:
            logger.warning("Completion alert not cancelled: %s", e)

    def _cue(self, event: str) -> None:
        try:
            self._feedback.cue(event)
        except OSError as e:
            logger.debug("Feedback cue %s failed: %s", event, e)


def _latest_instant(session: WorkSession) -> datetime:
    """Latest timestamp recorded on a session."""
    stamps = [session.started_at, session.paused_at, session.completed_at]
    return max(s for s in stamps if s is not None)

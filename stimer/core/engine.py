import threading
from datetime import datetime, timedelta
from enum import Enum

from stimer.common.logger import log
from stimer.core.clock import SystemClock
from stimer.core.formatting import DisplayMode, format_duration
from stimer.core.record import SessionRecord

START_LABEL = "Start"
PAUSE_LABEL = "Pause"
RESUME_LABEL = "Resume"

DEFAULT_COUNTDOWN_TARGET = timedelta(seconds=30)

_ZERO = timedelta(0)


class EngineMode(Enum):
    STOPWATCH = "stopwatch"
    COUNTDOWN = "countdown"

    @property
    def record_prefix(self):
        return "Countdown" if self is EngineMode.COUNTDOWN else "Timer"


class EngineState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"


# Hands out the numbers used for auto-generated session names ("Timer 1", "Timer 2", ...). Lives only as long as
# the process, so numbering restarts at 1 on every launch.
class SessionCounter:

    def __init__(self, start=1):
        self._lock = threading.Lock()
        self._next = start

    def next(self):
        with self._lock:
            value = self._next
            self._next += 1
            return value


# This object owns the running/paused/idle state and elapsed time of one stopwatch or one countdown. Every
# transition happens under self._lock, so a tick and a button press can never interleave. Ticks never wait for the
# lock, if a command holds it the tick is simply skipped and the next one catches up.
class SessionEngine:

    def __init__(self, mode: EngineMode, submit=None, clock=None, counter: SessionCounter | None = None,
                 display_mode=DisplayMode.HOUR_MIN_SEC, target: timedelta = DEFAULT_COUNTDOWN_TARGET):
        if target < _ZERO:
            raise ValueError("Countdown target must not be negative")
        self.mode = mode
        self.clock = clock or SystemClock()
        self.counter = counter or SessionCounter()
        self._submit = submit
        self._lock = threading.Lock()

        self._running = False
        self._paused = False
        self._elapsed = _ZERO
        self._start_instant: datetime | None = None
        self._session_started_at: datetime | None = None
        self._target = target
        self._display_mode = DisplayMode.parse(display_mode)
        self._disposed = False

        # (display_time, start_button_label, is_running), swapped as one tuple so readers never see a torn update
        self._published = ("", START_LABEL, False)
        self._publish()
        log.debug(f"Initialized {mode.value} engine with target {target} and display mode {self._display_mode.value}")

    #region === Published state ===

    @property
    def is_countdown(self):
        return self.mode is EngineMode.COUNTDOWN

    @property
    def published(self):
        return self._published

    @property
    def display_time(self):
        return self._published[0]

    @property
    def start_button_label(self):
        return self._published[1]

    @property
    def is_running(self):
        return self._published[2]

    @property
    def state(self):
        if self._running:
            return EngineState.RUNNING
        if self._paused:
            return EngineState.PAUSED
        return EngineState.IDLE

    @property
    def elapsed(self):
        return self._elapsed

    @property
    def target(self):
        return self._target

    @property
    def remaining(self):
        return max(_ZERO, self._target - self._elapsed)

    @property
    def disposed(self):
        return self._disposed

    @property
    def display_mode(self):
        return self._display_mode
    @display_mode.setter
    def display_mode(self, value):
        with self._lock:
            self._display_mode = DisplayMode.parse(value)
            self._publish()

    #endregion === Published state ===

    #region === Commands ===

    # Start when idle or paused, pause when running. Returns the state after the transition.
    def toggle_start_pause(self):
        with self._lock:
            if self._running:
                self._pause_locked(self.clock.now())
            else:
                self._start_locked(self.clock.now())
            return self.state

    def start(self):
        with self._lock:
            if not self._running:
                self._start_locked(self.clock.now())
            return self.state

    def pause(self):
        with self._lock:
            if self._running:
                self._pause_locked(self.clock.now())
            return self.state

    # Ends the session. If any time accumulated, a record is built and queued for saving, and returned.
    def stop(self):
        with self._lock:
            return self._stop_locked(self.clock.now())

    # Advances the running session to `now`. Returns False if the tick was skipped because a command held the lock.
    def tick(self, now: datetime | None = None):
        if not self._lock.acquire(blocking=False):
            return False
        try:
            if self._disposed or not self._running:
                return True
            now = now or self.clock.now()
            self._advance(now)
            if self.is_countdown and self._elapsed >= self._target:
                log.debug(f"Countdown reached its target of {self._target}, stopping")
                self._stop_locked(now)
            else:
                self._publish()
            return True
        finally:
            self._lock.release()

    # Sets the countdown length. Only allowed while idle, returns False (and changes nothing) otherwise.
    def set_target(self, duration: timedelta):
        if not self.is_countdown:
            raise ValueError("Only countdown engines have a target")
        if duration < _ZERO:
            raise ValueError("Countdown target must not be negative")
        with self._lock:
            if self._disposed:
                return False
            if self._running or self._paused:
                log.warning(f"Ignoring countdown target change to {duration} while the countdown is {self.state.value}")
                return False
            self._target = duration
            self._publish()
        log.debug(f"Countdown target set to {duration}")
        return True

    def set_target_hms(self, hours, minutes, seconds):
        hours = max(0, min(23, int(hours)))
        minutes = max(0, min(59, int(minutes)))
        seconds = max(0, min(59, int(seconds)))
        return self.set_target(timedelta(hours=hours, minutes=minutes, seconds=seconds))

    # Tears the engine down. Whatever was running is dropped without a record, later commands and ticks do nothing.
    def dispose(self):
        with self._lock:
            self._disposed = True
            self._running = False
            self._paused = False
        log.debug(f"Disposed {self.mode.value} engine")

    #endregion === Commands ===

    #region === Transitions (callers hold the lock) ===

    def _start_locked(self, now):
        if self._disposed:
            return
        if not self._paused:
            self._session_started_at = now
        # Backdate the start so that now - start_instant picks up exactly where the pause left off
        self._start_instant = now - self._elapsed
        self._running = True
        self._paused = False
        self._publish()
        log.debug(f"Started {self.mode.value} at {now.isoformat()} with {self._elapsed} already elapsed")

    def _pause_locked(self, now):
        self._advance(now)
        self._running = False
        self._paused = True
        self._publish()
        log.debug(f"Paused {self.mode.value} at {self._elapsed}")

    def _stop_locked(self, now):
        if self._disposed:
            return None
        if self._running:
            self._advance(now)
        self._running = False
        self._paused = False

        record = None
        if self._elapsed > _ZERO:
            record = self._build_record(now)
            self._submit_record(record)

        log.debug(f"Stopped {self.mode.value} after {self._elapsed}")
        self._elapsed = _ZERO
        self._start_instant = None
        self._session_started_at = None
        self._publish()
        return record

    # Recomputes elapsed from the clock. Elapsed never goes backwards, and a countdown never runs past its target.
    def _advance(self, now):
        if self._start_instant is None:
            return
        elapsed = now - self._start_instant
        if self.is_countdown and elapsed > self._target:
            elapsed = self._target
        if elapsed > self._elapsed:
            self._elapsed = elapsed

    def _build_record(self, now):
        started = self._session_started_at or (now - self._elapsed)
        return SessionRecord(
            name=f"{self.mode.record_prefix} {self.counter.next()}",
            start_time=started,
            end_time=max(now, started),
            duration=self._elapsed,
            is_countdown=self.is_countdown,
            countdown_target=self._target if self.is_countdown else None,
        )

    def _submit_record(self, record):
        if self._submit is None:
            log.warning(f"No history writer attached, record '{record.name}' will not be saved")
            return
        try:
            self._submit(record)
        except Exception:
            log.exception(f"Could not queue record '{record.name}' for saving")

    def _publish(self):
        shown = self.remaining if self.is_countdown else self._elapsed
        if self._running:
            label = PAUSE_LABEL
        elif self._paused:
            label = RESUME_LABEL
        else:
            label = START_LABEL
        self._published = (format_duration(shown, self._display_mode), label, self._running)

    #endregion === Transitions (callers hold the lock) ===

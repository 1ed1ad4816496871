from datetime import timedelta

from stimer.common.logger import log
from stimer.core.clock import SystemClock
from stimer.core.engine import DEFAULT_COUNTDOWN_TARGET, EngineMode, SessionCounter, SessionEngine
from stimer.core.formatting import DisplayMode
from stimer.core.history import HistoryStore
from stimer.core.mirror import DEFAULT_MIRROR_INTERVAL, Mirror
from stimer.core.ticker import DEFAULT_TICK_INTERVAL, Ticker
from stimer.core.writer import RecordWriter


# Owns the history store, the record writer, one stopwatch and one countdown engine with a ticker each, and the
# per-mode naming counters. Presentation surfaces hold references to the engines (or mirrors of them) but never
# own them.
class TimerSuite:

    def __init__(self, store: HistoryStore, clock=None, tick_interval: float = DEFAULT_TICK_INTERVAL,
                 countdown_target: timedelta = DEFAULT_COUNTDOWN_TARGET,
                 stopwatch_display_mode=DisplayMode.HOUR_MIN_SEC, countdown_display_mode=DisplayMode.HOUR_MIN_SEC,
                 on_saved=None, on_error=None):
        self.store = store
        self.clock = clock or SystemClock()
        self.writer = RecordWriter(store, on_saved=on_saved, on_error=on_error)
        self.counters = {mode: SessionCounter() for mode in EngineMode}

        self.stopwatch = self.create_engine(EngineMode.STOPWATCH, display_mode=stopwatch_display_mode)
        self.countdown = self.create_engine(EngineMode.COUNTDOWN, display_mode=countdown_display_mode,
                                            target=countdown_target)
        self._tickers = [Ticker(self.stopwatch, tick_interval), Ticker(self.countdown, tick_interval)]
        self._closed = False

    def create_engine(self, mode: EngineMode, **kwargs):
        return SessionEngine(mode, submit=self.writer.submit, clock=self.clock, counter=self.counters[mode], **kwargs)

    def engine(self, mode: EngineMode):
        return self.countdown if mode is EngineMode.COUNTDOWN else self.stopwatch

    def mirror(self, mode: EngineMode, interval: float = DEFAULT_MIRROR_INTERVAL, on_update=None):
        return Mirror(self.engine(mode), interval=interval, on_update=on_update)

    def start(self):
        for ticker in self._tickers:
            ticker.start()
        log.info("Timer suite started")

    # Stops the tickers, optionally records any session still in progress, then waits for the writer to finish.
    def shutdown(self, record_running=True):
        if self._closed:
            return
        self._closed = True
        for ticker in self._tickers:
            ticker.stop()
        for engine in (self.stopwatch, self.countdown):
            if record_running:
                engine.stop()
            engine.dispose()
        self.writer.close(wait=True)
        log.info("Timer suite shut down")

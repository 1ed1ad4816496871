import threading

from stimer.common.logger import log
from stimer.core.engine import SessionEngine

DEFAULT_TICK_INTERVAL = 0.05


# Background thread that calls engine.tick() every `interval` seconds. A tick that finds the engine busy is skipped
# and counted, the next one recomputes elapsed time from the clock anyway. Errors inside a tick are logged and the
# loop keeps going.
class Ticker:

    def __init__(self, engine: SessionEngine, interval: float = DEFAULT_TICK_INTERVAL):
        if interval <= 0:
            raise ValueError("Tick interval must be positive")
        self.engine = engine
        self.interval = interval
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self.skipped = 0

    @property
    def running(self):
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name=f"ticker-{self.engine.mode.value}", daemon=True)
        self._thread.start()
        log.debug(f"Started {self.engine.mode.value} ticker every {self.interval * 1000:.0f} ms")

    def stop(self, timeout=1.0):
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
            log.debug(f"Stopped {self.engine.mode.value} ticker")

    def _run(self):
        while not self._stop_event.wait(self.interval):
            if self.engine.disposed:
                break
            try:
                if not self.engine.tick():
                    self.skipped += 1
            except Exception:
                log.exception(f"Tick failed on the {self.engine.mode.value} engine")

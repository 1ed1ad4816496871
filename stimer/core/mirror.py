import threading
import weakref

from stimer.common.logger import log
from stimer.core.engine import SessionEngine

DEFAULT_MIRROR_INTERVAL = 0.05


# Read-only copy of one engine's face, refreshed by polling. Holds only a weak reference to the engine, once the
# engine is disposed or collected, polls do nothing and the last values stay put. toggle_start_pause() and stop()
# forward to the engine so a secondary surface can drive the same session without owning it.
class Mirror:

    def __init__(self, engine: SessionEngine, interval: float = DEFAULT_MIRROR_INTERVAL, on_update=None):
        if interval <= 0:
            raise ValueError("Mirror interval must be positive")
        self._engine_ref = weakref.ref(engine)
        self.mode = engine.mode
        self.interval = interval
        self.on_update = on_update
        self.display_time, self.start_button_label, self.is_running = engine.published
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def source(self):
        engine = self._engine_ref()
        if engine is None or engine.disposed:
            return None
        return engine

    @property
    def attached(self):
        return self.source is not None

    # Copies the engine's published fields. Returns True if anything changed.
    def poll(self):
        engine = self.source
        if engine is None:
            return False
        published = engine.published
        if published == (self.display_time, self.start_button_label, self.is_running):
            return False
        self.display_time, self.start_button_label, self.is_running = published
        if self.on_update is not None:
            self.on_update(self)
        return True

    #region === Forwarded commands ===

    def toggle_start_pause(self):
        engine = self.source
        if engine is None:
            return None
        state = engine.toggle_start_pause()
        self.poll()
        return state

    def stop(self):
        engine = self.source
        if engine is None:
            return None
        record = engine.stop()
        self.poll()
        return record

    #endregion === Forwarded commands ===

    #region === Background polling ===

    def start_polling(self):
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name=f"mirror-{self.mode.value}", daemon=True)
        self._thread.start()

    def stop_polling(self, timeout=1.0):
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self):
        while not self._stop_event.wait(self.interval):
            try:
                self.poll()
            except Exception:
                log.exception(f"Mirror poll failed for the {self.mode.value} engine")

    #endregion === Background polling ===

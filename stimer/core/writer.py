import threading
from concurrent.futures import Future, ThreadPoolExecutor

from stimer.common.logger import log
from stimer.core.history import HistoryStore
from stimer.core.record import SessionRecord


# Hands finished records to the history store on one background thread. Submissions are saved strictly in order,
# each exactly once, so an engine can reset and start a new session without waiting for the disk. A failed save is
# logged and reported through on_error, never retried.
class RecordWriter:

    def __init__(self, store: HistoryStore, on_saved=None, on_error=None):
        self.store = store
        self.on_saved = on_saved
        self.on_error = on_error
        self._lock = threading.Lock()
        self._closed = False
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="record-writer")

    def submit(self, record: SessionRecord) -> Future:
        with self._lock:
            if self._closed:
                raise RuntimeError(f"Record writer is closed, cannot save '{record.name}'")
            log.debug(f"Queued record '{record.name}' ({record.id}) for saving")
            return self._executor.submit(self._persist, record)

    # Blocks until everything submitted so far has been attempted.
    def flush(self, timeout=None):
        with self._lock:
            if self._closed:
                return
            marker = self._executor.submit(lambda: None)
        marker.result(timeout=timeout)

    def close(self, wait=True):
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._executor.shutdown(wait=wait)
        log.debug("Record writer closed")

    def _persist(self, record):
        try:
            self.store.save(record)
        except Exception as e:
            log.exception(f"Failed to save record '{record.name}' ({record.id}) to history")
            self._notify(self.on_error, record, e)
            return None
        self._notify(self.on_saved, record)
        return record

    @staticmethod
    def _notify(callback, *args):
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            log.exception("Record writer callback raised")

"""Durable, newest-first log of completed sessions backed by one JSON file."""

import json
import shutil
import threading
from datetime import datetime
from pathlib import Path

from stimer.common.logger import log
from stimer.core.record import SessionRecord
from stimer.util import atomic_write_text, format_timestamp

MAX_RECORDS = 1000


# Single-writer store for SessionRecords. Every public method holds the same lock for its whole duration, so reads
# always see the last committed write and no two writes interleave. Writes go through a temp file plus os.replace,
# so the primary file is always either the old or the new content. Other processes are not coordinated.
class HistoryStore:

    def __init__(self, path: Path, max_records: int = MAX_RECORDS):
        if max_records < 1:
            raise ValueError("max_records must be at least 1")
        self.path = Path(path)
        self.max_records = max_records
        self._lock = threading.Lock()
        self.path.parent.mkdir(parents=True, exist_ok=True)

    #region === Public API ===

    # All records, newest created_at first. Never raises for bad or unreadable files, it just returns [].
    def list(self):
        with self._lock:
            try:
                records = self._read()
            except OSError:
                log.warning(f"Could not read history file '{self.path}', showing empty history.", exc_info=True)
                return []
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    def list_by_mode(self, is_countdown: bool):
        return [r for r in self.list() if r.is_countdown == is_countdown]

    def count(self):
        return len(self.list())

    # Inserts a new record at the front, or replaces the entry with the same id in place. Assigns created_at once the
    # write has gone through, and trims the oldest entries past max_records. I/O errors propagate.
    def save(self, record: SessionRecord):
        if record is None:
            raise TypeError("Cannot save a null record")
        if not isinstance(record, SessionRecord):
            raise TypeError(f"Expected a SessionRecord, got {type(record).__name__}")
        record.validate()

        with self._lock:
            history = self._read()
            existing = next((i for i, r in enumerate(history) if r.id == record.id), None)
            # A replacement keeps the original persistence time, so it keeps its place in the list
            created_at = record.created_at
            if created_at is None and existing is not None:
                created_at = history[existing].created_at
            if created_at is None:
                created_at = datetime.now().astimezone()

            if existing is not None:
                history[existing] = record
            else:
                history.insert(0, record)

            dropped = len(history) - self.max_records
            if dropped > 0:
                del history[self.max_records:]

            self._write(history, stamp=(record, created_at))
            record.mark_created(created_at)

        if existing is not None:
            log.info(f"Updated history record '{record.name}' ({record.id})")
        else:
            log.info(f"Saved new history record '{record.name}' ({record.id})")
        if dropped > 0:
            log.info(f"History over {self.max_records} records, dropped {dropped} oldest")
        return record

    # Removes every record with the given id. Unknown ids are fine, nothing is written in that case.
    def delete(self, record_id: str):
        if not isinstance(record_id, str) or not record_id.strip():
            raise ValueError("Record id must not be empty")

        with self._lock:
            history = self._read()
            kept = [r for r in history if r.id != record_id]
            removed = len(history) - len(kept)
            if removed:
                self._write(kept)

        if removed:
            log.info(f"Deleted history record {record_id}")
        else:
            log.debug(f"Delete requested for unknown history record {record_id}, nothing to do")
        return removed

    def clear(self):
        with self._lock:
            self._write([])
        log.info(f"Cleared history at '{self.path}'")

    #endregion === Public API ===

    #region === File access (callers hold the lock) ===

    # Reads the file in stored order. Missing or blank file -> []. Malformed content (bad encoding, bad JSON, bad
    # records) is backed up and read as []. OSError is left to the caller, so a locked file is never mistaken for
    # an empty one.
    def _read(self):
        if not self.path.exists():
            return []
        with open(self.path, "rb") as f:
            data = f.read()
        try:
            text = data.decode("utf-8")
            if not text.strip():
                return []
            raw = json.loads(text)
            if not isinstance(raw, list):
                raise TypeError(f"Expected a JSON array, got {type(raw).__name__}")
            return [SessionRecord.from_dict(item) for item in raw]
        except (ValueError, KeyError, TypeError, OverflowError):
            log.warning(f"History file '{self.path}' is malformed, treating it as empty.", exc_info=True)
            self._backup_corrupted()
            return []

    # `stamp` is an optional (record, created_at) pair, written out for that record without touching the object.
    def _write(self, history, stamp=None):
        entries = []
        for r in history:
            entry = r.to_dict()
            if stamp is not None and r is stamp[0]:
                entry["createdAt"] = format_timestamp(stamp[1])
            entries.append(entry)
        atomic_write_text(self.path, json.dumps(entries, indent=2, ensure_ascii=False))

    # Moves the unreadable file aside so nothing is lost when the next save writes a fresh one.
    def _backup_corrupted(self):
        backup_path = self.path.with_name(f"{self.path.name}.backup.{datetime.now():%Y%m%d%H%M%S}")
        try:
            shutil.move(self.path, backup_path)
            log.warning(f"Backed up corrupted history file to '{backup_path}'")
        except OSError:
            log.error(f"Failed to back up corrupted history file '{self.path}'", exc_info=True)
        return backup_path

    #endregion === File access (callers hold the lock) ===

"""A completed timing session, as stored in the history file."""

import uuid
from datetime import datetime, timedelta

from stimer.core.formatting import DisplayMode, format_duration
from stimer.util import format_timespan, format_timestamp, parse_timespan, parse_timestamp

NAME_MAX = 100
NOTES_MAX = 500
CATEGORY_MAX = 50


def _check_name(name):
    if not isinstance(name, str) or not name.strip():
        raise ValueError("Record name must be a non-empty string")
    if len(name) > NAME_MAX:
        raise ValueError(f"Record name must be at most {NAME_MAX} characters, got {len(name)}")
    return name

def _check_notes(notes):
    notes = "" if notes is None else notes
    if not isinstance(notes, str):
        raise ValueError("Record notes must be a string")
    if len(notes) > NOTES_MAX:
        raise ValueError(f"Record notes must be at most {NOTES_MAX} characters, got {len(notes)}")
    return notes


# One finished stopwatch or countdown session. The id, mode, category and timing fields are fixed at construction,
# name, notes and tags may be edited and the record re-saved under the same id. created_at stays unset until the
# history store first persists the record.
class SessionRecord:

    def __init__(self, name, start_time: datetime, end_time: datetime, duration: timedelta,
                 is_countdown=False, countdown_target: timedelta | None = None, notes="",
                 tags=(), category="", record_id: str | None = None, created_at: datetime | None = None):
        self._id = record_id or str(uuid.uuid4())
        self._name = _check_name(name)
        self._is_countdown = bool(is_countdown)
        self._start_time = start_time
        self._end_time = end_time
        self._duration = duration
        self._countdown_target = countdown_target
        self._notes = _check_notes(notes)
        self._tags = []
        for tag in tags:
            self.add_tag(tag)
        self._category = category or ""
        self._created_at = created_at
        self.validate()

    #region === Fields ===

    @property
    def id(self):
        return self._id

    @property
    def name(self):
        return self._name
    @name.setter
    def name(self, value):
        self._name = _check_name(value)

    @property
    def notes(self):
        return self._notes
    @notes.setter
    def notes(self, value):
        self._notes = _check_notes(value)

    @property
    def tags(self):
        return tuple(self._tags)

    @property
    def is_countdown(self):
        return self._is_countdown

    @property
    def start_time(self):
        return self._start_time

    @property
    def end_time(self):
        return self._end_time

    @property
    def duration(self):
        return self._duration

    @property
    def countdown_target(self):
        return self._countdown_target

    @property
    def category(self):
        return self._category

    @property
    def created_at(self):
        return self._created_at

    # Stamps the persistence time. Only the first call wins.
    def mark_created(self, when: datetime):
        if self._created_at is None:
            self._created_at = when

    #endregion === Fields ===

    #region === Editing ===

    def update_notes(self, notes):
        self.notes = (notes or "").strip()

    # Adds a tag unless it's blank or already present (ignoring case).
    def add_tag(self, tag):
        if not isinstance(tag, str) or not tag.strip():
            return
        tag = tag.strip()
        if any(t.casefold() == tag.casefold() for t in self._tags):
            return
        self._tags.append(tag)

    def remove_tag(self, tag):
        if not isinstance(tag, str) or not tag.strip():
            return
        target = tag.strip().casefold()
        self._tags = [t for t in self._tags if t.casefold() != target]

    def clone(self):
        return SessionRecord(
            name=(self._name + " (copy)")[:NAME_MAX],
            start_time=self._start_time,
            end_time=self._end_time,
            duration=self._duration,
            is_countdown=self._is_countdown,
            countdown_target=self._countdown_target,
            notes=self._notes,
            tags=list(self._tags),
            category=self._category,
        )

    #endregion === Editing ===

    #region === Validation and derived values ===

    # Raises ValueError describing the first broken invariant.
    def validate(self):
        _check_name(self._name)
        _check_notes(self._notes)
        if len(self._category) > CATEGORY_MAX:
            raise ValueError(f"Record category must be at most {CATEGORY_MAX} characters")
        if not isinstance(self._start_time, datetime) or not isinstance(self._end_time, datetime):
            raise ValueError("Record start_time and end_time must be datetimes")
        if self._end_time < self._start_time:
            raise ValueError("Record end_time is before start_time")
        if not isinstance(self._duration, timedelta) or self._duration < timedelta(0):
            raise ValueError("Record duration must be a non-negative timedelta")
        if self._countdown_target is not None:
            if not self._is_countdown:
                raise ValueError("Only countdown records may carry a countdown_target")
            if self._countdown_target < timedelta(0):
                raise ValueError("Record countdown_target must not be negative")

    @property
    def type_display(self):
        return "Countdown" if self._is_countdown else "Stopwatch"

    @property
    def formatted_duration(self):
        return format_duration(self._duration, DisplayMode.HOUR_MIN_SEC)

    @property
    def is_long_duration(self):
        return self._duration >= timedelta(hours=1)

    def is_today(self, now: datetime | None = None):
        now = now or datetime.now().astimezone()
        return self._start_time.astimezone(now.tzinfo).date() == now.date()

    # Week starts on Sunday, same as the history list grouping.
    def is_this_week(self, now: datetime | None = None):
        now = now or datetime.now().astimezone()
        today = now.date()
        start_of_week = today - timedelta(days=(today.weekday() + 1) % 7)
        return self._start_time.astimezone(now.tzinfo).date() >= start_of_week

    # How much of the countdown target actually ran, capped at 100. None for stopwatches and zero targets.
    def efficiency_percentage(self):
        if not self._is_countdown or not self._countdown_target:
            return None
        return min(100.0, self._duration / self._countdown_target * 100)

    #endregion === Validation and derived values ===

    #region === Serialization ===

    # Serializes to the on-disk dict. Null optional fields are left out entirely.
    def to_dict(self):
        data = {
            "id": self._id,
            "name": self._name,
            "isCountdown": self._is_countdown,
            "startTime": format_timestamp(self._start_time),
            "endTime": format_timestamp(self._end_time),
            "duration": format_timespan(self._duration),
        }
        if self._countdown_target is not None:
            data["countdownTarget"] = format_timespan(self._countdown_target)
        data["notes"] = self._notes
        if self._created_at is not None:
            data["createdAt"] = format_timestamp(self._created_at)
        data["tags"] = list(self._tags)
        data["category"] = self._category
        return data

    # Builds a record from an on-disk dict. Unknown keys are ignored, and the old app's "countdownTime" key is
    # accepted in place of "countdownTarget". Raises ValueError/KeyError/TypeError on anything malformed.
    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise TypeError(f"Expected a record object, got {type(data).__name__}")
        target = data.get("countdownTarget", data.get("countdownTime"))
        created = data.get("createdAt")
        tags = data.get("tags") or []
        if not isinstance(tags, list):
            raise TypeError("Record tags must be a list")
        is_countdown = data.get("isCountdown", False)
        if not isinstance(is_countdown, bool):
            raise TypeError("Record isCountdown must be a boolean")
        record_id = data["id"]
        if not isinstance(record_id, str) or not record_id:
            raise ValueError("Record id must be a non-empty string")
        end_time = parse_timestamp(data["endTime"])
        return cls(
            name=data["name"],
            start_time=parse_timestamp(data["startTime"]),
            end_time=end_time,
            duration=parse_timespan(data["duration"]),
            is_countdown=is_countdown,
            countdown_target=parse_timespan(target) if target is not None else None,
            notes=data.get("notes") or "",
            tags=tags,
            category=data.get("category") or "",
            record_id=record_id,
            # Files from before createdAt existed sort by when the session ended.
            created_at=parse_timestamp(created) if created is not None else end_time,
        )

    #endregion === Serialization ===

    def __eq__(self, other):
        return isinstance(other, SessionRecord) and other._id == self._id

    def __hash__(self):
        return hash(self._id)

    def __repr__(self):
        return f"SessionRecord(id={self._id!r}, name={self._name!r}, {self.type_display}, {self.formatted_duration})"

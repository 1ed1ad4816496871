"""Tests for SessionRecord: invariants, tag editing, derived values and the on-disk dict layout.

Covers: stimer.core.record
"""

import os
import tempfile
import unittest
from datetime import datetime, timedelta, timezone

os.environ.setdefault("SESSIONTIMER_HOME", tempfile.mkdtemp(prefix="sessiontimer-tests-"))

T0 = datetime(2026, 3, 14, 9, 0, 0, tzinfo=timezone.utc)


def make_record(**overrides):
    from stimer.core.record import SessionRecord
    kwargs = {
        "name": "Timer 1",
        "start_time": T0,
        "end_time": T0 + timedelta(seconds=13),
        "duration": timedelta(seconds=8),
    }
    kwargs.update(overrides)
    return SessionRecord(**kwargs)


class TestSessionRecordInvariants(unittest.TestCase):
    """Invalid records can't be constructed or edited into existence."""

    def test_defaults(self):
        record = make_record()
        self.assertTrue(record.id)
        self.assertFalse(record.is_countdown)
        self.assertIsNone(record.countdown_target)
        self.assertEqual(record.notes, "")
        self.assertEqual(record.tags, ())
        self.assertEqual(record.category, "")
        self.assertIsNone(record.created_at)
        record.validate()

    def test_ids_are_unique(self):
        self.assertNotEqual(make_record().id, make_record().id)

    def test_name_length_limits(self):
        with self.assertRaises(ValueError):
            make_record(name="")
        with self.assertRaises(ValueError):
            make_record(name="   ")
        with self.assertRaises(ValueError):
            make_record(name="x" * 101)
        self.assertEqual(make_record(name="x" * 100).name, "x" * 100)

    def test_rename_validates(self):
        record = make_record()
        record.name = "Deep work"
        self.assertEqual(record.name, "Deep work")
        with self.assertRaises(ValueError):
            record.name = ""
        self.assertEqual(record.name, "Deep work")

    def test_notes_limit(self):
        with self.assertRaises(ValueError):
            make_record(notes="n" * 501)
        record = make_record()
        with self.assertRaises(ValueError):
            record.notes = "n" * 501
        record.update_notes("  trimmed  ")
        self.assertEqual(record.notes, "trimmed")

    def test_category_limit(self):
        with self.assertRaises(ValueError):
            make_record(category="c" * 51)
        self.assertEqual(make_record(category="Work").category, "Work")

    def test_end_before_start_rejected(self):
        with self.assertRaises(ValueError):
            make_record(end_time=T0 - timedelta(seconds=1))

    def test_negative_duration_rejected(self):
        with self.assertRaises(ValueError):
            make_record(duration=timedelta(seconds=-1))

    def test_countdown_target_rules(self):
        with self.assertRaises(ValueError):
            make_record(countdown_target=timedelta(seconds=30))  # not a countdown
        with self.assertRaises(ValueError):
            make_record(is_countdown=True, countdown_target=timedelta(seconds=-1))
        record = make_record(is_countdown=True, countdown_target=timedelta(seconds=30))
        self.assertEqual(record.countdown_target, timedelta(seconds=30))

    def test_identity_fields_are_read_only(self):
        record = make_record()
        with self.assertRaises(AttributeError):
            record.id = "other"
        with self.assertRaises(AttributeError):
            record.is_countdown = True
        with self.assertRaises(AttributeError):
            record.category = "Other"

    def test_created_at_set_once(self):
        record = make_record()
        record.mark_created(T0)
        record.mark_created(T0 + timedelta(days=1))
        self.assertEqual(record.created_at, T0)

    def test_equality_by_id(self):
        from stimer.core.record import SessionRecord
        a = make_record()
        b = SessionRecord("Other", T0, T0, timedelta(0), record_id=a.id)
        self.assertEqual(a, b)
        self.assertEqual(len({a, b}), 1)


class TestSessionRecordTags(unittest.TestCase):

    def test_add_dedupes_case_insensitively(self):
        record = make_record()
        record.add_tag("Work")
        record.add_tag(" work ")
        record.add_tag("WORK")
        record.add_tag("Focus")
        self.assertEqual(record.tags, ("Work", "Focus"))

    def test_blank_tags_ignored(self):
        record = make_record()
        record.add_tag("")
        record.add_tag("   ")
        record.add_tag(None)
        self.assertEqual(record.tags, ())

    def test_remove_ignores_case(self):
        record = make_record(tags=["Work", "Focus"])
        record.remove_tag("WORK")
        self.assertEqual(record.tags, ("Focus",))
        record.remove_tag("missing")
        self.assertEqual(record.tags, ("Focus",))

    def test_constructor_dedupes(self):
        self.assertEqual(make_record(tags=["a", "A", "b"]).tags, ("a", "b"))


class TestSessionRecordDerived(unittest.TestCase):

    def test_clone(self):
        original = make_record(tags=["Work"], notes="n", category="Cat")
        original.mark_created(T0)
        copy = original.clone()
        self.assertNotEqual(copy.id, original.id)
        self.assertEqual(copy.name, "Timer 1 (copy)")
        self.assertIsNone(copy.created_at)
        self.assertEqual(copy.tags, original.tags)
        self.assertEqual(copy.duration, original.duration)
        self.assertEqual(copy.category, "Cat")

    def test_efficiency_percentage(self):
        half = make_record(is_countdown=True, duration=timedelta(seconds=15),
                           countdown_target=timedelta(seconds=30))
        self.assertAlmostEqual(half.efficiency_percentage(), 50.0)
        full = make_record(is_countdown=True, duration=timedelta(seconds=30),
                           end_time=T0 + timedelta(seconds=30), countdown_target=timedelta(seconds=30))
        self.assertAlmostEqual(full.efficiency_percentage(), 100.0)
        self.assertIsNone(make_record().efficiency_percentage())
        self.assertIsNone(make_record(is_countdown=True, countdown_target=timedelta(0)).efficiency_percentage())

    def test_display_helpers(self):
        record = make_record(duration=timedelta(hours=1, minutes=2, seconds=3), end_time=T0 + timedelta(hours=2))
        self.assertEqual(record.formatted_duration, "01:02:03")
        self.assertTrue(record.is_long_duration)
        self.assertEqual(record.type_display, "Stopwatch")
        self.assertEqual(make_record(is_countdown=True).type_display, "Countdown")

    def test_is_today_and_this_week(self):
        record = make_record()
        self.assertTrue(record.is_today(T0 + timedelta(hours=1)))
        self.assertFalse(record.is_today(T0 + timedelta(days=1)))
        # 2026-03-14 is a Saturday, the week started on Sunday 2026-03-08
        self.assertTrue(record.is_this_week(T0 + timedelta(hours=5)))
        self.assertFalse(record.is_this_week(T0 + timedelta(days=2)))


class TestSessionRecordSerialization(unittest.TestCase):
    """On-disk dict layout: camelCase keys, null optionals omitted, unknown keys ignored."""

    def test_to_dict_stopwatch_omits_nulls(self):
        data = make_record().to_dict()
        self.assertNotIn("countdownTarget", data)
        self.assertNotIn("createdAt", data)
        self.assertEqual(data["duration"], "00:00:08")
        self.assertFalse(data["isCountdown"])
        self.assertEqual(data["startTime"], "2026-03-14T09:00:00+00:00")
        self.assertEqual(data["tags"], [])

    def test_to_dict_countdown(self):
        record = make_record(is_countdown=True, countdown_target=timedelta(seconds=30), tags=["x"])
        record.mark_created(T0 + timedelta(seconds=14))
        data = record.to_dict()
        self.assertEqual(data["countdownTarget"], "00:00:30")
        self.assertEqual(data["createdAt"], "2026-03-14T09:00:14+00:00")
        self.assertEqual(data["tags"], ["x"])

    def test_from_dict_roundtrip(self):
        from stimer.core.record import SessionRecord
        record = make_record(is_countdown=True, countdown_target=timedelta(minutes=1), notes="Notes",
                             tags=["a", "b"], category="Study", duration=timedelta(seconds=8, microseconds=250))
        record.mark_created(T0 + timedelta(seconds=20))
        restored = SessionRecord.from_dict(record.to_dict())
        self.assertEqual(restored.to_dict(), record.to_dict())
        self.assertEqual(restored.duration, record.duration)
        self.assertEqual(restored.created_at, record.created_at)

    def test_from_dict_reads_legacy_files(self):
        """Files from the old app use countdownTime and 7 fractional digits."""
        from stimer.core.record import SessionRecord
        legacy = {
            "id": "5b0e6a53-0000-4000-8000-000000000001",
            "name": "Countdown 2",
            "isCountdown": True,
            "startTime": "2024-05-01T10:00:00.1234567",
            "endTime": "2024-05-01T10:00:30.1234567",
            "duration": "00:00:30.0001234",
            "countdownTime": "00:00:30",
            "notes": "",
            "createdAt": "2024-05-01T10:00:30.2",
            "tags": [],
            "category": "",
            "somethingNew": {"ignored": True},
        }
        record = SessionRecord.from_dict(legacy)
        self.assertEqual(record.countdown_target, timedelta(seconds=30))
        self.assertEqual(record.start_time.microsecond, 123456)
        self.assertIsNotNone(record.start_time.tzinfo)
        self.assertEqual(record.duration, timedelta(seconds=30, microseconds=123))

    def test_from_dict_missing_created_at_uses_end_time(self):
        from stimer.core.record import SessionRecord
        data = make_record().to_dict()
        record = SessionRecord.from_dict(data)
        self.assertEqual(record.created_at, T0 + timedelta(seconds=13))

    def test_from_dict_malformed(self):
        from stimer.core.record import SessionRecord
        good = make_record().to_dict()
        broken = [
            "not a dict",
            {k: v for k, v in good.items() if k != "id"},
            dict(good, duration="soon"),
            dict(good, startTime=12),
            dict(good, tags="a,b"),
            dict(good, isCountdown="yes"),
            dict(good, name=""),
        ]
        for data in broken:
            with self.assertRaises((ValueError, KeyError, TypeError), msg=repr(data)):
                SessionRecord.from_dict(data)


if __name__ == "__main__":
    unittest.main()

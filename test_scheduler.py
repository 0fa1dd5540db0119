"""Tests for the reminder delivery scheduler."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from conftest import START, RecordingSink
from scheduler import ReminderScheduler


def reminder(reminder_id, note, offset_seconds=None, field="remindAt"):
    item = {"id": reminder_id, "note": note}
    if offset_seconds is not None:
        item[field] = (START + timedelta(seconds=offset_seconds)).isoformat()
    return item


@pytest.fixture
def scheduler(sink, fake_loop, clock):
    return ReminderScheduler(sink, loop=fake_loop, clock=clock)


def test_past_reminder_fires_immediately_future_one_waits(scheduler, sink, fake_loop):
    scheduler.reconcile([
        reminder("future", "Pay rent", offset_seconds=300),
        reminder("past", "Pay Rahul", offset_seconds=-60),
    ])

    assert sink.messages == ["Pay Rahul"]
    assert scheduler.scheduled_ids == {"future"}

    fake_loop.advance(299)
    assert sink.messages == ["Pay Rahul"]

    fake_loop.advance(1)
    assert sink.messages == ["Pay Rahul", "Pay rent"]
    assert scheduler.scheduled_ids == set()


def test_deliver_twice_notifies_once(scheduler, sink):
    item = reminder("r1", "Pay Rahul", offset_seconds=60)
    assert scheduler.deliver(item) is True
    assert scheduler.deliver(item) is False
    assert sink.messages == ["Pay Rahul"]


def test_forget_cancels_armed_timer(scheduler, sink, fake_loop):
    scheduler.reconcile([reminder("r1", "Pay Rahul", offset_seconds=60)])
    scheduler.forget("r1")

    fake_loop.advance(3600)
    assert sink.messages == []
    assert scheduler.scheduled_ids == set()


def test_forget_clears_notified_flag(scheduler, sink):
    item = reminder("r1", "Pay Rahul", offset_seconds=-1)
    scheduler.reconcile([item])
    scheduler.forget("r1")
    scheduler.reconcile([item])
    assert sink.messages == ["Pay Rahul", "Pay Rahul"]


def test_reminder_dropped_from_snapshot_never_fires(scheduler, sink, fake_loop):
    scheduler.reconcile([
        reminder("keep", "Keep me", offset_seconds=60),
        reminder("drop", "Drop me", offset_seconds=60),
    ])
    scheduler.reconcile([reminder("keep", "Keep me", offset_seconds=60)])

    fake_loop.advance(120)
    assert sink.messages == ["Keep me"]


def test_repeated_reconcile_delivers_once(scheduler, sink, fake_loop):
    snapshot = [
        reminder("past", "Overdue", offset_seconds=-5),
        reminder("future", "Later", offset_seconds=10),
    ]
    scheduler.reconcile(snapshot)
    scheduler.reconcile(snapshot)
    scheduler.reconcile(snapshot)

    fake_loop.advance(10)
    assert sink.messages == ["Overdue", "Later"]
    assert len(fake_loop.pending) == 0


def test_reminder_without_due_time_is_never_scheduled(scheduler, sink, fake_loop):
    scheduler.reconcile([reminder("r1", "Someday")])
    fake_loop.advance(10 ** 6)
    assert sink.messages == []
    assert scheduler.scheduled_ids == set()


def test_due_date_wins_over_remind_at(scheduler, sink, fake_loop):
    item = reminder("r1", "Pay Rahul", offset_seconds=600)
    item["dueDate"] = (START + timedelta(seconds=30)).isoformat()
    scheduler.reconcile([item])

    fake_loop.advance(30)
    assert sink.messages == ["Pay Rahul"]


def test_naive_timestamp_is_local_time(scheduler, sink, fake_loop):
    # START is 04:30 UTC, i.e. 10:00 in Asia/Kolkata
    scheduler.reconcile([{"id": "r1", "note": "Local", "remindAt": "2026-10-12T10:05:00"}])

    fake_loop.advance(299)
    assert sink.messages == []
    fake_loop.advance(1)
    assert sink.messages == ["Local"]


def test_malformed_reminder_is_skipped(scheduler, sink):
    scheduler.reconcile([
        {"note": "no id", "remindAt": START.isoformat()},
        {"id": "r1", "note": "Pay", "remindAt": "not a date"},
        reminder("ok", "Valid", offset_seconds=-1),
    ])
    assert sink.messages == ["Valid"]


def test_failing_sink_is_not_retried(fake_loop, clock):
    sink = RecordingSink(fail=True)
    scheduler = ReminderScheduler(sink, loop=fake_loop, clock=clock)
    item = reminder("r1", "Pay Rahul", offset_seconds=-1)

    scheduler.reconcile([item])
    scheduler.reconcile([item])

    assert sink.messages == ["Pay Rahul"]
    assert scheduler.notified_ids == {"r1"}


def test_teardown_cancels_everything(scheduler, sink, fake_loop):
    scheduler.reconcile([
        reminder("a", "A", offset_seconds=10),
        reminder("b", "B", offset_seconds=20),
    ])
    scheduler.teardown()

    fake_loop.advance(100)
    assert sink.messages == []
    with pytest.raises(RuntimeError):
        scheduler.reconcile([])


def test_duplicate_id_in_snapshot_keeps_one_timer(scheduler, sink, fake_loop):
    scheduler.reconcile([
        reminder("r1", "one", offset_seconds=10),
        reminder("r1", "two", offset_seconds=20),
    ])
    assert len(fake_loop.pending) == 1

    scheduler.teardown()
    assert fake_loop.pending == []
    fake_loop.advance(100)
    assert sink.messages == []


def test_deliver_after_teardown_is_ignored(scheduler, sink):
    scheduler.teardown()
    assert scheduler.deliver(reminder("r1", "Pay Rahul", offset_seconds=-1)) is False
    assert sink.messages == []


@pytest.mark.asyncio
async def test_timers_run_on_the_event_loop():
    sink = RecordingSink()
    scheduler = ReminderScheduler(sink)
    due = datetime.now(timezone.utc) + timedelta(milliseconds=50)

    scheduler.reconcile([{"id": "r1", "note": "Soon", "remindAt": due.isoformat()}])
    assert sink.messages == []

    await asyncio.sleep(0.3)
    assert sink.messages == ["Soon"]
    scheduler.teardown()

"""Tests for transcript field extraction."""

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from extractor import capitalize_words, clean_payee_segment, extract

# Monday 12 October 2026, 10:00 local
NOW = datetime(2026, 10, 12, 10, 0)


def test_documented_example():
    transcript = "Remind me to pay Rahul ₹2500 on Friday at 6 PM"
    fields = extract(transcript, now=NOW)

    assert fields.amount == "2500"
    assert fields.payee == "Rahul"
    assert fields.due_date == "2026-10-16T18:00"
    assert fields.note == transcript


def test_documented_example_without_fixed_now():
    fields = extract("Remind me to pay Rahul ₹2500 on Friday at 6 PM")
    due = datetime.fromisoformat(fields.due_date)
    assert due.weekday() == 4
    assert (due.hour, due.minute) == (18, 0)


@pytest.mark.parametrize("transcript", [
    "Remind me to call the bank",
    "REMIND ME TO CALL THE BANK",
    "buy groceries",
    "",
])
def test_nothing_recognized_leaves_only_note(transcript):
    fields = extract(transcript, now=NOW)
    assert fields.present() == {"note": transcript}


@pytest.mark.parametrize("transcript", [
    "on",
    "on   ",
    "on 99999999999999999999999",
    "pay",
    "to",
    "₹",
    "rs.",
    "pay to for on by",
    "🙂 tomorrow 🙂",
    "on 31/02/2026",
    "x" * 5000,
])
def test_extract_never_raises(transcript):
    fields = extract(transcript, now=NOW)
    assert fields.note == transcript


def test_none_is_treated_as_empty_transcript():
    assert extract(None, now=NOW).present() == {"note": ""}


def test_note_is_not_trimmed():
    transcript = "  pay Rahul 500  "
    assert extract(transcript, now=NOW).note == transcript


def test_amount_strips_thousands_separators():
    fields = extract("Pay ₹1,25,000.50 to landlord", now=NOW)
    assert fields.amount == "125000.50"
    assert fields.payee == "Landlord"


def test_amount_with_rupees_word():
    assert extract("send rupees 750 to Amit", now=NOW).amount == "750"


def test_payee_after_pay_to():
    fields = extract("pay rent to rahul sharma on 5th March", now=NOW)
    assert fields.payee == "Rahul Sharma"
    assert fields.due_date == "2026-03-05T00:00"


def test_payee_stops_before_relative_date_words():
    fields = extract("Pay the electricity bill next Friday", now=NOW)
    assert fields.payee == "The Electricity Bill"
    # "next Friday" is not supported
    assert fields.due_date is None


def test_payee_after_paying_for():
    assert extract("Paying for internet by Monday", now=NOW).payee == "Internet"


def test_send_to_with_tomorrow():
    fields = extract("Send 500 to Mom tomorrow", now=NOW)
    assert fields.amount == "500"
    assert fields.payee == "Mom"
    assert fields.due_date == "2026-10-13T10:00"


def test_remind_me_to_is_not_a_payee():
    fields = extract("Remind me to pay on Friday", now=NOW)
    assert fields.payee is None
    assert fields.due_date == "2026-10-16T00:00"


def test_unparseable_on_clause_leaves_due_date_empty():
    # An "on" clause wins over "tomorrow", even when it cannot be parsed
    fields = extract("Pay Rahul on the way home tomorrow", now=NOW)
    assert fields.payee == "Rahul"
    assert fields.due_date is None


def test_ordinal_suffixes_are_stripped():
    assert extract("pay Ravi on 21st November at 9:30 am", now=NOW).due_date == "2026-11-21T09:30"


def test_tonight_is_unsupported():
    assert extract("pay Ravi tonight", now=NOW).due_date is None


def test_clean_payee_segment():
    assert clean_payee_segment("Rahul  on Friday") == "Rahul"
    assert clean_payee_segment("Sharma ji, 2500") == "Sharma ji"
    assert clean_payee_segment("in an hour") == ""
    assert clean_payee_segment("   ") == ""


def test_capitalize_words():
    assert capitalize_words("rAHUL sharma") == "Rahul Sharma"


def test_weekday_time_already_passed_rolls_to_next_week():
    # Friday 16 October 2026, 20:00 local
    fields = extract("Remind me to pay Rahul ₹2500 on Friday at 6 PM", now=datetime(2026, 10, 16, 20, 0))
    assert fields.due_date == "2026-10-23T18:00"


def test_weekday_time_later_today_stays_today():
    fields = extract("Remind me to pay Rahul ₹2500 on Friday at 6 PM", now=datetime(2026, 10, 16, 10, 0))
    assert fields.due_date == "2026-10-16T18:00"


def test_explicit_past_date_is_not_rolled_forward():
    assert extract("pay Ravi on Monday 5th October", now=NOW).due_date == "2026-10-05T00:00"


@pytest.mark.parametrize("transcript", [
    "Remind me tomorrow to call the bank",
    "remind me  to call the bank",
    "Remember to renew the insurance",
])
def test_infinitive_to_is_not_a_payee(transcript):
    assert extract(transcript, now=NOW).payee is None


def test_payee_found_after_skipped_infinitive():
    assert extract("Remind me to call the bank for Rahul", now=NOW).payee == "Rahul"


def test_default_now_uses_configured_timezone():
    # Independent of the host timezone
    fields = extract("pay Ravi 100 tomorrow")
    expected = datetime.now(ZoneInfo("Asia/Kolkata")).replace(tzinfo=None) + timedelta(days=1)
    assert abs(datetime.fromisoformat(fields.due_date) - expected) < timedelta(minutes=2)

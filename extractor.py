"""Transcript extraction for Voice Reminder Service.

Turns a spoken sentence such as "Remind me to pay Rahul ₹2500 on Friday at 6 PM"
into reminder form fields without any external NLU service.

Each field has its own matcher: a pure function ``(transcript, now) -> Optional[str]``.
Matchers run independently over the same string and never consume it, so
their order only decides the order of keys in the result.

Supported date phrasing is deliberately narrow:
- "on <date>" parsed by dateutil ("on 5th March", "on Friday at 6 PM")
- the word "tomorrow" (same time of day, one day ahead)
Anything else ("next Friday", "tonight") leaves dueDate empty.
"""

import re
from datetime import datetime, timedelta
from typing import Callable, Optional, Tuple
from zoneinfo import ZoneInfo

from dateutil import parser as dateutil_parser

from config import settings
from logger_config import setup_logger
from schemas import ExtractedFields

logger = setup_logger(__name__, 'extractor.log')

DUE_DATE_FORMAT = "%Y-%m-%dT%H:%M"

AMOUNT_RE = re.compile(r"(?:₹|rs\.?|rupees)?\s*(\d[\d,]*(?:\.\d+)?)", re.IGNORECASE)

PAY_RE = re.compile(
    # "pay Rahul", "paying rent to Rahul", "pay for electricity"
    r"\bpay(?:ing)?\s+(?:[a-z\s]*?\b(?:to|for)\s+)?([a-z][a-z\s]{1,40})",
    re.IGNORECASE
)
# "send 500 to Mom"; the phrase is captured in a lookahead so a skipped
# "to call the bank for Rahul" still yields "for Rahul"
TO_FOR_RE = re.compile(r"\b(to|for)\s+(?=([a-z][a-z\s]{1,40}))", re.IGNORECASE)
REMIND_ME_RE = re.compile(r"\b(?:remind\s+me|remember)\s*$", re.IGNORECASE)

# "to <verb>" is an infinitive, not a payee
INFINITIVE_VERBS = frozenset((
    "book", "buy", "call", "check", "collect", "do", "email", "file", "get",
    "message", "pay", "phone", "pick", "remember", "renew", "ring", "send",
    "submit", "take", "text", "transfer", "visit", "meet",
))

STOP_WORDS = (
    "on", "by", "at", "before", "after", "within", "in", "next",
    "tomorrow", "today", "tonight", "this", "upcoming",
)
STOP_WORD_RE = re.compile(r"\b(?:%s)\b" % "|".join(STOP_WORDS), re.IGNORECASE)
PUNCTUATION_RE = re.compile(r"[^\w\s]")
WHITESPACE_RE = re.compile(r"\s+")
DIGIT_RE = re.compile(r"\d")

ON_DATE_RE = re.compile(r"\bon\s+([a-z0-9\s:/-]+)", re.IGNORECASE)
ORDINAL_RE = re.compile(r"(\d+)(?:st|nd|rd|th)\b", re.IGNORECASE)
TOMORROW_RE = re.compile(r"\btomorrow\b", re.IGNORECASE)
WEEKDAY_RE = re.compile(
    r"\b(?:mon|tues?|wed|thu|thurs?|fri|sat|sun)(?:day|nesday|rsday|urday)?\b",
    re.IGNORECASE
)
EXPLICIT_DATE_RE = re.compile(
    r"\b(?:jan|feb|mar|apr|may|jun|jul|aug|sep|sept|oct|nov|dec)[a-z]*\b|\d{1,4}[/-]\d{1,2}",
    re.IGNORECASE
)

Matcher = Callable[[str, datetime], Optional[str]]


def local_now() -> datetime:
    """Current wall-clock time in the configured timezone, as a naive datetime."""
    return datetime.now(ZoneInfo(settings.TIMEZONE)).replace(tzinfo=None)


def match_amount(transcript: str, now: datetime) -> Optional[str]:
    """First numeric token, optionally prefixed by ₹/Rs/rupees, commas stripped."""
    match = AMOUNT_RE.search(transcript)
    if not match:
        return None
    return match.group(1).replace(",", "")


def clean_payee_segment(segment: str) -> str:
    """Cut a captured payee phrase down to the name itself.

    Trailing date clauses ("Rahul on Friday") and digits ("Rahul 2500")
    are dropped.
    """
    normalized = PUNCTUATION_RE.sub(" ", segment)
    normalized = WHITESPACE_RE.sub(" ", normalized).strip()
    if not normalized:
        return ""

    stop = STOP_WORD_RE.search(normalized)
    if stop:
        normalized = normalized[:stop.start()].strip()

    digit = DIGIT_RE.search(normalized)
    if digit:
        normalized = normalized[:digit.start()].strip()

    return normalized


def capitalize_words(text: str) -> str:
    return " ".join(word[:1].upper() + word[1:].lower() for word in text.split(" "))


def match_payee(transcript: str, now: datetime) -> Optional[str]:
    """Name following pay/to/for, title-cased.

    "to" right after "remind me"/"remember", or followed by a verb
    ("to call the bank"), is an infinitive and is skipped.
    """
    match = PAY_RE.search(transcript)
    if match:
        cleaned = clean_payee_segment(match.group(1))
        if cleaned:
            return capitalize_words(cleaned)

    for match in TO_FOR_RE.finditer(transcript):
        if REMIND_ME_RE.search(transcript[:match.start()]):
            continue
        phrase = match.group(2)
        if match.group(1).lower() == "to" and phrase.split()[0].lower() in INFINITIVE_VERBS:
            continue
        cleaned = clean_payee_segment(phrase)
        if cleaned:
            return capitalize_words(cleaned)
    return None


def parse_date_phrase(phrase: str, now: datetime) -> Optional[datetime]:
    """Parse the text after "on" as a calendar date/time.

    Missing parts come from today at midnight, so a bare date resolves to
    00:00. A weekday without a calendar date always lands in the future:
    "Friday at 6 PM" said on Friday evening means next Friday.
    """
    phrase = ORDINAL_RE.sub(r"\1", phrase).strip()
    if not phrase:
        return None
    default = now.replace(hour=0, minute=0, second=0, microsecond=0)
    try:
        parsed = dateutil_parser.parse(phrase, default=default)
    except (ValueError, OverflowError):
        logger.debug(f"Unparseable date phrase: {phrase!r}")
        return None

    if parsed <= now and WEEKDAY_RE.search(phrase) and not EXPLICIT_DATE_RE.search(phrase):
        parsed += timedelta(days=7)
    return parsed


def match_due_date(transcript: str, now: datetime) -> Optional[str]:
    """Minute-precision local timestamp from "on <date>" or "tomorrow"."""
    on_clause = ON_DATE_RE.search(transcript)
    if on_clause:
        parsed = parse_date_phrase(on_clause.group(1), now)
        return parsed.strftime(DUE_DATE_FORMAT) if parsed else None

    if TOMORROW_RE.search(transcript):
        return (now + timedelta(days=1)).strftime(DUE_DATE_FORMAT)

    return None


MATCHERS: Tuple[Tuple[str, Matcher], ...] = (
    ("amount", match_amount),
    ("payee", match_payee),
    ("due_date", match_due_date),
)


def extract(transcript: str, now: Optional[datetime] = None) -> ExtractedFields:
    """Extract reminder fields from a transcript.

    Never raises. Fields that are not found are left as None; ``note`` is
    always the transcript exactly as given.

    Args:
        transcript: Final speech-capture output
        now: Local reference time for relative dates (default: current time in TIMEZONE)

    Returns:
        ExtractedFields with whatever could be recognized
    """
    if transcript is None:
        transcript = ""
    elif not isinstance(transcript, str):
        transcript = str(transcript)

    if now is None:
        now = local_now()

    found = {}
    for field, matcher in MATCHERS:
        try:
            value = matcher(transcript, now)
        except Exception as e:
            logger.warning(f"{field} matcher failed on {transcript!r}: {e}")
            value = None
        if value:
            found[field] = value

    return ExtractedFields(note=transcript, **found)

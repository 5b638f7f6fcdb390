"""Day bucketing for activity feeds ("Today", "Yesterday", "Wednesday", "9 Mar 2024").

Hey future me - classify() is PURE. `now` is always passed in, never read from a clock here,
so the same (timestamp, now) pair always lands in the same bucket. Buckets are recomputed per
request because "Today" moves; never persist a label.

Both values are normalized to UTC midnight before comparing. Mixing frames (item in UTC, now in
local time) shifts items across midnight, so don't "fix" one side only.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from friendbeats.domain.exceptions import InvalidDateError

logger = logging.getLogger(__name__)

TODAY = "Today"
YESTERDAY = "Yesterday"

_WEEKDAYS = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)
_MONTHS = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)


@dataclass(frozen=True)
class DateBucket:
    """Display label plus the UTC start-of-day of the classified instant."""

    display: str
    sort_key: datetime


@dataclass
class DateGroup[T]:
    """Items sharing one day bucket."""

    display: str
    sort_key: datetime
    items: list[T] = field(default_factory=list)


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Naive values are read as UTC. A trailing "Z" is accepted.

    Raises:
        InvalidDateError: If the value is empty or not ISO-8601
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        if not isinstance(value, str) or not value.strip():
            raise InvalidDateError(value)
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError as e:
            raise InvalidDateError(value) from e

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def start_of_day(moment: datetime) -> datetime:
    """Truncate an aware UTC datetime to midnight."""
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def format_absolute_date(day: datetime) -> str:
    """Format as "D Mon YYYY" without locale dependence."""
    return f"{day.day} {_MONTHS[day.month - 1]} {day.year}"


def classify(timestamp: str | datetime, now: datetime) -> DateBucket:
    """Classify a timestamp into a display bucket relative to `now`.

    Delta 0 days → "Today", 1 → "Yesterday", 2-6 and inside the current
    Monday-based week → weekday name, anything else (older, or in the
    future) → absolute "D Mon YYYY".

    Args:
        timestamp: ISO-8601 string or datetime of the item
        now: Reference instant (naive values are read as UTC)

    Returns:
        DateBucket with label and the item's UTC start-of-day

    Raises:
        InvalidDateError: If timestamp cannot be parsed
    """
    item_day = start_of_day(parse_timestamp(timestamp))
    today = start_of_day(parse_timestamp(now))
    delta = (today - item_day).days

    if delta == 0:
        label = TODAY
    elif delta == 1:
        label = YESTERDAY
    elif 2 <= delta <= 6 and item_day >= today - timedelta(days=today.weekday()):
        label = _WEEKDAYS[item_day.weekday()]
    else:
        label = format_absolute_date(item_day)

    return DateBucket(display=label, sort_key=item_day)


def group_by_day[T](
    items: Iterable[T],
    now: datetime,
    get_timestamp: Callable[[T], str | datetime | None],
) -> list[DateGroup[T]]:
    """Group items into day buckets, most recent bucket first.

    Items keep their input order inside a group. Items without a timestamp or
    with an unparseable one are logged and left out.
    """
    groups: dict[datetime, DateGroup[T]] = {}

    for item in items:
        timestamp = get_timestamp(item)
        if timestamp is None:
            logger.warning("Skipping item without timestamp: %r", item)
            continue
        try:
            bucket = classify(timestamp, now)
        except InvalidDateError as e:
            logger.warning("Skipping item with bad timestamp: %s", e.message)
            continue

        group = groups.get(bucket.sort_key)
        if group is None:
            group = DateGroup(display=bucket.display, sort_key=bucket.sort_key)
            groups[bucket.sort_key] = group
        group.items.append(item)

    return sorted(groups.values(), key=lambda g: g.sort_key, reverse=True)

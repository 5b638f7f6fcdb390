"""Domain value objects."""

from .date_buckets import DateBucket, DateGroup, classify, group_by_day, parse_timestamp
from .formatting import format_duration, format_number, parse_spotify_user_id

__all__ = [
    "DateBucket",
    "DateGroup",
    "classify",
    "format_duration",
    "format_number",
    "group_by_day",
    "parse_spotify_user_id",
    "parse_timestamp",
]

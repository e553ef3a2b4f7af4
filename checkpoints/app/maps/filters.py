"""Calendar helpers and the record filter used by the map and list views."""

import datetime
from collections.abc import Iterable
from typing import Literal, Protocol

from checkpoints.app.models import CheckpointRecord

FilterMode = Literal['upcoming', 'all']


class Clock(Protocol):
    def today(self) -> datetime.date: ...


class SystemClock:
    """The local calendar date of the running process."""

    def today(self) -> datetime.date:
        return datetime.date.today()


class FixedClock:
    """A clock pinned to one day."""

    def __init__(self, day: datetime.date) -> None:
        self.day = day

    def today(self) -> datetime.date:
        return self.day


def parse_local_date(value: str | None) -> datetime.date | None:
    """Parse ``YYYY-MM-DD`` by splitting into year, month and day.

    The result is a calendar date with no timezone attached, so a record
    dated 2025-12-21 is on the 21st for every viewer. Returns None for empty
    or malformed input.
    """
    if not value:
        return None
    try:
        year, month, day = (int(part) for part in value.strip()[:10].split('-'))
        return datetime.date(year, month, day)
    except ValueError:
        return None


def is_today(value: str | None, clock: Clock) -> bool:
    parsed = parse_local_date(value)
    return parsed is not None and parsed == clock.today()


def is_upcoming(value: str | None, clock: Clock) -> bool:
    """True for today and any later date."""
    parsed = parse_local_date(value)
    return parsed is not None and parsed >= clock.today()


def format_date(value: str | None) -> str:
    """Display a record date exactly as stored."""
    return value if value else 'Date TBD'


def sort_by_date(records: Iterable[CheckpointRecord]) -> list[CheckpointRecord]:
    """Order records by date ascending with undated records last."""
    return sorted(records, key=lambda r: (not r.date, r.date or ''))


class CheckpointFilter:
    """Predicate combining the upcoming/all toggle with free-text search.

    Search matches a case-insensitive substring of the city, county or
    location fields.
    """

    def __init__(
        self,
        mode: FilterMode = 'upcoming',
        query: str = '',
        clock: Clock | None = None,
    ) -> None:
        self.mode = mode
        self.query = query.strip().lower()
        self.clock = clock or SystemClock()

    def __call__(self, record: CheckpointRecord) -> bool:
        if self.mode == 'upcoming' and not is_upcoming(record.date, self.clock):
            return False
        if not self.query:
            return True
        fields = (record.city, record.county, record.location)
        return any(self.query in (field or '').lower() for field in fields)

    def apply(self, records: Iterable[CheckpointRecord]) -> list[CheckpointRecord]:
        """Filter and sort *records* for display."""
        return sort_by_date(r for r in records if self(r))

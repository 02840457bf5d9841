# accounting/services/date_ranges.py

"""
======================================================
PATH: accounting/services/date_ranges.py
======================================================
DATE RANGES / VALIDITY WINDOWS

One place for date arithmetic:
- DateRange   : closed interval [start, end]; end=None means open-ended
- DueInterval : "N days after issue" (invoice due dates)
- valid_on()  : the single queryset lookup for models with a validity window
                (exchange rates today; anything with valid_from/valid_until)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta

from django.db.models import Q, QuerySet


def as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    raise TypeError(f"Cannot interpret {value!r} as a date")


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date | None = None

    def __post_init__(self):
        if self.end is not None and self.end < self.start:
            raise ValueError(f"DateRange end {self.end} is before start {self.start}")

    def contains(self, day) -> bool:
        day = as_date(day)
        if day < self.start:
            return False
        return self.end is None or day <= self.end

    def overlaps(self, other: "DateRange") -> bool:
        if self.end is not None and other.start > self.end:
            return False
        if other.end is not None and self.start > other.end:
            return False
        return True


@dataclass(frozen=True)
class DueInterval:
    days: int

    def __post_init__(self):
        if self.days < 0:
            raise ValueError("DueInterval days cannot be negative")

    def due_date(self, issue_date) -> date:
        return as_date(issue_date) + timedelta(days=self.days)

    def window(self, issue_date) -> DateRange:
        start = as_date(issue_date)
        return DateRange(start=start, end=self.due_date(start))


def valid_on(
    queryset: QuerySet,
    day,
    *,
    start_field: str = "valid_from",
    end_field: str = "valid_until",
) -> QuerySet:
    """
    Rows whose [start_field, end_field] window contains `day`,
    most recently started first.
    """
    day = as_date(day)
    return queryset.filter(
        Q(**{f"{start_field}__lte": day})
        & (Q(**{f"{end_field}__isnull": True}) | Q(**{f"{end_field}__gte": day}))
    ).order_by(f"-{start_field}")

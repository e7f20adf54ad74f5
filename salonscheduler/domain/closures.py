"""
Closure (vacation) periods.

Every function takes the closure list as a parameter. Nothing here caches:
closures change rarely but unpredictably, and freshness is the caller's job.
"""

from typing import Iterable, List, Optional

from pendulum import Date

from .exceptions import ClosureOverlapError, InvalidClosure
from .models import ClosurePeriod

MAX_CLOSURE_DAYS = 365
MAX_REASON_LENGTH = 500


def is_date_closed(day: Date, closures: Iterable[ClosurePeriod]) -> bool:
    """True if any period contains the day (both ends inclusive)."""
    return closure_for(day, closures) is not None


def closure_for(day: Date, closures: Iterable[ClosurePeriod]) -> Optional[ClosurePeriod]:
    """Return the first period covering the day, tolerating overlapping periods."""
    for period in closures:
        if period.contains(day):
            return period
    return None


def closures_in_range(start: Date, end: Date, closures: Iterable[ClosurePeriod]) -> List[ClosurePeriod]:
    """Periods touching [start, end], ordered by start date."""
    return sorted(
        (period for period in closures if period.overlaps(start, end)),
        key=lambda p: (p.start_date, p.end_date),
    )


def active_closures(closures: Iterable[ClosurePeriod], today: Date) -> List[ClosurePeriod]:
    """Periods that have not ended before today."""
    return sorted(
        (period for period in closures if period.end_date >= today),
        key=lambda p: (p.start_date, p.end_date),
    )


def find_overlapping(
    start: Date,
    end: Date,
    closures: Iterable[ClosurePeriod],
    exclude_id: Optional[str] = None,
) -> List[ClosurePeriod]:
    return [
        period
        for period in closures_in_range(start, end, closures)
        if exclude_id is None or period.id != exclude_id
    ]


def validate_closure(
    start: Date,
    end: Date,
    reason: str,
    existing: Iterable[ClosurePeriod],
    exclude_id: Optional[str] = None,
) -> None:
    """
    Check a new or edited closure period before it is stored.

    Raises:
        InvalidClosure: If the range is inverted, too long, or the reason too long.
        ClosureOverlapError: If it overlaps another stored period.
    """
    if end < start:
        raise InvalidClosure("End date must not be before start date")
    if end.toordinal() - start.toordinal() > MAX_CLOSURE_DAYS:
        raise InvalidClosure(f"Closure period cannot exceed {MAX_CLOSURE_DAYS} days")
    if reason and len(reason) > MAX_REASON_LENGTH:
        raise InvalidClosure(f"Reason cannot exceed {MAX_REASON_LENGTH} characters")

    overlapping = find_overlapping(start, end, existing, exclude_id=exclude_id)
    if overlapping:
        raise ClosureOverlapError(overlapping)

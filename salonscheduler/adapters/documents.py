"""
Mapping between stored documents and domain models.

Document field names follow the booking site's collections:
appointments carry ``selectedDate``/``startTime``/``endTime``/``duration``,
closures carry ``startDate``/``endDate``/``reason``.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ..domain.dates import to_local_date
from ..domain.exceptions import InvalidDuration, PersistenceError
from ..domain.models import AppointmentInterval, ClockTime, ClosurePeriod

logger = logging.getLogger(__name__)


def _parse_duration(value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidDuration(f"Invalid duration: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise InvalidDuration(f"Invalid duration: {value!r}")


def appointment_from_document(doc_id: str, data: Mapping[str, Any], tz: str) -> AppointmentInterval:
    """
    Build an interval from a stored appointment.

    When both ``endTime`` and ``duration`` are present the end time wins,
    since it is what the booking form showed the customer.

    Raises:
        ValueError: If a field is missing or malformed.
    """
    if "selectedDate" not in data or "startTime" not in data:
        raise ValueError(f"Appointment {doc_id} lacks selectedDate or startTime")

    day = to_local_date(data["selectedDate"], tz)
    start = ClockTime.parse(data["startTime"])

    if data.get("endTime"):
        end = ClockTime.parse(data["endTime"])
        duration = end.minutes - start.minutes
        if duration <= 0:
            raise InvalidDuration(f"Appointment {doc_id} ends at {end}, before it starts at {start}")
    elif data.get("duration") is not None:
        duration = _parse_duration(data["duration"])
    else:
        raise InvalidDuration(f"Appointment {doc_id} has neither endTime nor duration")

    return AppointmentInterval.create(
        id=doc_id,
        date=day,
        start_time=start,
        duration_minutes=duration,
        appointment_type=data.get("appointmentType") or "",
        customer_name=data.get("name") or "",
    )


def appointment_to_document(appointment: AppointmentInterval, selected_date: Any = None) -> Dict[str, Any]:
    """
    Args:
        appointment: Interval to store
        selected_date: Stored form of the date; defaults to ``YYYY-MM-DD``
    """
    return {
        "selectedDate": selected_date if selected_date is not None else appointment.date.isoformat(),
        "startTime": str(appointment.start_time),
        "endTime": str(appointment.end_time),
        "duration": appointment.duration_minutes,
        "appointmentType": appointment.appointment_type,
        "name": appointment.customer_name,
    }


def closure_from_document(doc_id: str, data: Mapping[str, Any], tz: str) -> ClosurePeriod:
    if "startDate" not in data or "endDate" not in data:
        raise ValueError(f"Closure {doc_id} lacks startDate or endDate")
    return ClosurePeriod(
        id=doc_id,
        start_date=to_local_date(data["startDate"], tz),
        end_date=to_local_date(data["endDate"], tz),
        reason=(data.get("reason") or "").strip(),
    )


def closure_to_document(period: ClosurePeriod, start: Any = None, end: Any = None) -> Dict[str, Any]:
    return {
        "startDate": start if start is not None else period.start_date.isoformat(),
        "endDate": end if end is not None else period.end_date.isoformat(),
        "reason": period.reason,
    }


def parse_appointments(
    documents: Iterable[Tuple[str, Mapping[str, Any]]],
    tz: str,
    strict: bool = False,
) -> List[AppointmentInterval]:
    """
    Convert documents, skipping (and logging) the ones that cannot be read.

    With ``strict`` an unreadable document raises instead; reads that feed a
    booking conflict check use it.

    Raises:
        PersistenceError: In strict mode, naming the unreadable document.
    """
    appointments: List[AppointmentInterval] = []
    for doc_id, data in documents:
        try:
            appointments.append(appointment_from_document(doc_id, data, tz))
        except ValueError as exc:
            if strict:
                raise PersistenceError(f"Unreadable appointment {doc_id}: {exc}") from exc
            logger.warning("Skipping unreadable appointment %s: %s", doc_id, exc)
    return appointments


def parse_closures(documents: Iterable[Tuple[str, Mapping[str, Any]]], tz: str) -> List[ClosurePeriod]:
    closures: List[ClosurePeriod] = []
    for doc_id, data in documents:
        try:
            closures.append(closure_from_document(doc_id, data, tz))
        except ValueError as exc:
            logger.warning("Skipping unreadable closure %s: %s", doc_id, exc)
    return closures


def sort_key(appointment: AppointmentInterval) -> Tuple[Any, ClockTime, Optional[str]]:
    return (appointment.date, appointment.start_time, appointment.id or "")

"""
Slot generation and conflict detection for the booking flow.

All datetimes are naive wall-clock values in the business time zone.
"""
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from salon.core.exceptions import NotFound
from salon.core.logger import logger
from salon.models.db_models import Appointment, Employee, Treatment
from salon.services.opening_hours_service import get_hours_for

# Booking grid step. Fixed, independent of treatment duration, so long
# treatments can pack less tightly than a duration-based step would.
SLOT_GRANULARITY_MINUTES = 30

# Used when a treatment has no duration set. Not a valid business state.
DEFAULT_DURATION_MINUTES = 30

Interval = Tuple[datetime, datetime]


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open [start, end) intersection. Touching intervals do not overlap."""
    return a_start < b_end and a_end > b_start


def treatment_duration(treatment: Optional[Treatment]) -> int:
    if treatment is None or not treatment.duration_in_minutes or treatment.duration_in_minutes <= 0:
        return DEFAULT_DURATION_MINUTES
    return treatment.duration_in_minutes


def get_treatment(db: Session, treatment_id: int) -> Treatment:
    treatment = db.get(Treatment, treatment_id)
    if treatment is None:
        raise NotFound("Treatment not found.", details={"treatmentId": treatment_id})
    return treatment


def get_employee(db: Session, employee_id: int) -> Employee:
    employee = db.get(Employee, employee_id)
    if employee is None:
        raise NotFound("Employee not found.", details={"employeeId": employee_id})
    return employee


def busy_intervals(db: Session, employee_id: int, day: date) -> List[Interval]:
    """Existing appointments of the employee that start on `day`, ordered by start."""
    day_start = datetime.combine(day, time.min)
    rows = (
        db.query(Appointment.start_time, Appointment.finish_time)
        .filter(
            Appointment.employee_id == employee_id,
            Appointment.start_time >= day_start,
            Appointment.start_time < day_start + timedelta(days=1),
        )
        .order_by(Appointment.start_time)
        .all()
    )
    return [(row.start_time, row.finish_time) for row in rows]


def conflicts_with(busy: Iterable[Interval], start: datetime, end: datetime) -> bool:
    return any(intervals_overlap(b_start, b_end, start, end) for b_start, b_end in busy)


def has_conflict(db: Session, employee_id: int, day: date, candidate_start: datetime, duration_minutes: int) -> bool:
    """
    True if [candidate_start, candidate_start + duration) overlaps any
    appointment of the employee on the same calendar date.
    """
    candidate_end = candidate_start + timedelta(minutes=duration_minutes)
    return conflicts_with(busy_intervals(db, employee_id, day), candidate_start, candidate_end)


def generate_slots(db: Session, day: date, employee_id: int, treatment_id: int) -> List[str]:
    """
    Bookable start times ("HH:MM") for the treatment with this employee on `day`.
    Recomputed on every call from the current bookings.
    """
    employee = get_employee(db, employee_id)
    treatment = get_treatment(db, treatment_id)
    if treatment not in employee.treatments:
        # create_appointment would reject every time
        return []

    hours = get_hours_for(db, day)
    if hours is None:
        return []

    duration = timedelta(minutes=treatment_duration(treatment))
    step = timedelta(minutes=SLOT_GRANULARITY_MINUTES)
    current, closes = hours.bounds(day)
    busy = busy_intervals(db, employee_id, day)

    slots = []
    while current + duration <= closes:
        if not conflicts_with(busy, current, current + duration):
            slots.append(current.strftime("%H:%M"))
        current += step

    logger.debug(
        f"🔍 {len(slots)} free slots on {day.isoformat()} "
        f"(employee={employee_id}, treatment={treatment_id}, busy={len(busy)})"
    )
    return slots

from datetime import date, datetime, time, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from salon.core.exceptions import NotFound, PersistenceError
from salon.core.logger import logger
from salon.models.db_models import Appointment, Employee
from salon.services.opening_hours_service import get_hours_for


def day_timeline(db: Session, day: date) -> dict:
    """
    Staff view of one day: the opening window and, per employee, the
    appointments starting that day.
    """
    day_start = datetime.combine(day, time.min)
    appointments = (
        db.query(Appointment)
        .options(joinedload(Appointment.treatment), joinedload(Appointment.client))
        .filter(Appointment.start_time >= day_start, Appointment.start_time < day_start + timedelta(days=1))
        .order_by(Appointment.start_time)
        .all()
    )

    by_employee = {}
    for appointment in appointments:
        by_employee.setdefault(appointment.employee_id, []).append({
            "id": appointment.id,
            "start_time": appointment.start_time.strftime("%H:%M"),
            "finish_time": appointment.finish_time.strftime("%H:%M"),
            "status": appointment.status.value,
            "treatment": {
                "id": appointment.treatment.id,
                "name": appointment.treatment.name,
                "duration_in_minutes": appointment.treatment.duration_in_minutes,
            },
            "client": {
                "id": appointment.client.id,
                "name": appointment.client.name,
                "email": appointment.client.email,
            },
        })

    hours = get_hours_for(db, day)
    return {
        "date": day.isoformat(),
        "openingHours": None if hours is None else {
            "open": hours.opens_at.strftime("%H:%M"),
            "close": hours.closes_at.strftime("%H:%M"),
        },
        "employees": [
            {
                "id": employee.id,
                "first_name": employee.first_name,
                "appointments": by_employee.get(employee.id, []),
            }
            for employee in db.query(Employee).order_by(Employee.id).all()
        ],
    }


def delete_appointment(db: Session, appointment_id: int) -> None:
    """Hard delete; frees the slot immediately."""
    appointment = db.get(Appointment, appointment_id)
    if appointment is None:
        raise NotFound("Appointment not found.", details={"appointmentId": appointment_id})

    try:
        db.delete(appointment)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"❌ DB Error (delete_appointment {appointment_id}): {e}")
        raise PersistenceError("Deleting the appointment failed. Please try again.")

    logger.info(f"🗑️ Appointment {appointment_id} deleted")

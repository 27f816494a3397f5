import uuid
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon.core.config import settings
from salon.core.exceptions import AppException, NotFound, PersistenceError, SlotUnavailable, ValidationError
from salon.core.logger import logger
from salon.database import begin_locked
from salon.models.db_models import Appointment, AppointmentStatus, Client, Employee
from salon.models.schemas import AppointmentRequest
from salon.services.availability_service import get_treatment, has_conflict, treatment_duration
from salon.services.opening_hours_service import get_hours_for

TZ = ZoneInfo(settings.BUSINESS_TIMEZONE)


def business_today() -> date:
    return datetime.now(TZ).date()


def new_confirmation_token() -> str:
    # uuid4: 122 random bits
    return str(uuid.uuid4())


def _mask(token: str) -> str:
    return f"{token[:8]}…" if token else "<empty>"


class BookingService:
    def __init__(self, db: Session):
        self.db = db

    def validate_request(self, name, email, employee_id, treatment_id, date, time) -> AppointmentRequest:
        payload = {
            "name": name,
            "email": email,
            "employeeId": employee_id,
            "treatmentId": treatment_id,
            "date": date,
            "time": time,
        }
        try:
            return AppointmentRequest.model_validate(payload)
        except PydanticValidationError as e:
            fields = {}
            for error in e.errors():
                field = ".".join(str(part) for part in error["loc"]) or "request"
                fields.setdefault(field, error["msg"])
            raise ValidationError(fields)

    def find_or_create_client(self, name: str, email: str) -> Client:
        """
        Exact email match. An existing client keeps its stored name and phone;
        the submitted name is only used when the client is new.
        """
        client = self.db.query(Client).filter(Client.email == email).first()
        if client:
            return client

        client = Client(name=name, email=email)
        self.db.add(client)
        self.db.flush()
        logger.info(f"🆕 New client created: id={client.id}")
        return client

    def ensure_bookable(self, employee_id: int, start: datetime, duration_minutes: int):
        """Raises SlotUnavailable unless the interval fits the opening hours and is free."""
        finish = start + timedelta(minutes=duration_minutes)
        hours = get_hours_for(self.db, start.date())
        if hours is None:
            raise SlotUnavailable("The salon is closed on this day.")

        opens, closes = hours.bounds(start.date())
        if start < opens or finish > closes:
            raise SlotUnavailable("This time falls outside the opening hours.")

        if has_conflict(self.db, employee_id, start.date(), start, duration_minutes):
            raise SlotUnavailable()

    def create_appointment(self, name, email, employee_id, treatment_id, date, time) -> Appointment:
        """
        Books a treatment with an employee. The re-check and the insert run in
        one transaction that serializes bookings, so two requests for
        overlapping times cannot both succeed.
        """
        request = self.validate_request(name, email, employee_id, treatment_id, date, time)
        log_payload = {
            "email": request.email,
            "employeeId": request.employee_id,
            "treatmentId": request.treatment_id,
            "date": request.date.isoformat(),
            "time": request.time.strftime("%H:%M"),
        }
        logger.info(f"📥 Booking request: {log_payload}")

        try:
            begin_locked(self.db)
            # Row lock on the employee serializes bookings per employee on
            # Postgres/MySQL; on SQLite the transaction already holds the write lock.
            employee = (
                self.db.query(Employee)
                .filter(Employee.id == request.employee_id)
                .with_for_update()
                .first()
            )
            if employee is None:
                raise NotFound("Employee not found.", details={"employeeId": request.employee_id})

            treatment = get_treatment(self.db, request.treatment_id)
            if not treatment.active:
                raise ValidationError({"treatmentId": "This treatment cannot be booked."})
            if treatment not in employee.treatments:
                raise ValidationError({"employeeId": "This employee does not perform the selected treatment."})

            client = self.find_or_create_client(request.name, request.email)

            # falls back to DEFAULT_DURATION_MINUTES when the treatment has no duration
            duration = treatment_duration(treatment)
            start = datetime.combine(request.date, request.time)

            self.ensure_bookable(employee.id, start, duration)

            appointment = Appointment(
                start_time=start,
                finish_time=start + timedelta(minutes=duration),
                employee_id=employee.id,
                client_id=client.id,
                treatment_id=treatment.id,
                status=AppointmentStatus.WAITING_FOR_CONFIRMATION,
                confirmation_token=new_confirmation_token(),
            )
            self.db.add(appointment)
            self.db.commit()
        except AppException:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ DB Error (create_appointment) for {log_payload}: {e}")
            raise PersistenceError()

        self.db.refresh(appointment)
        logger.info(
            f"✅ Appointment {appointment.id} booked: employee={appointment.employee_id} "
            f"{appointment.start_time:%Y-%m-%d %H:%M}-{appointment.finish_time:%H:%M}"
        )
        return appointment

    def confirm(self, token: str) -> Appointment:
        """Redeems a confirmation token. Tokens are single use."""
        if not token:
            raise NotFound("Unknown or already used confirmation link.")

        try:
            begin_locked(self.db)
            appointment = (
                self.db.query(Appointment)
                .filter(Appointment.confirmation_token == token)
                .with_for_update()
                .first()
            )
            if appointment is None:
                raise NotFound("Unknown or already used confirmation link.")

            appointment.status = AppointmentStatus.CONFIRMED
            appointment.confirmation_token = None
            self.db.commit()
        except AppException:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ DB Error (confirm) for token {_mask(token)}: {e}")
            raise PersistenceError()

        logger.info(f"✅ Appointment {appointment.id} confirmed")
        return appointment

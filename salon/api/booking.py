from datetime import date
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from salon.database import get_db
from salon.models.schemas import (
    AppointmentRequest,
    BookingCreatedResponse,
    BookingIndexResponse,
    EmployeeOut,
)
from salon.services.availability_service import generate_slots
from salon.services.booking_service import BookingService, business_today
from salon.services.catalog_service import booking_catalog, employees_for_treatment
from salon.services.notification_service import dispatch_confirmation
from salon.services.settings_service import load_booking_settings

router = APIRouter(prefix="/booking")


@router.get("", response_model=BookingIndexResponse)
def booking_index(db: Session = Depends(get_db)):
    booking_settings = load_booking_settings(db)
    return booking_catalog(db, booking_settings, business_today())


@router.get("/employees", response_model=List[EmployeeOut])
def employees_by_treatment(
    treatment_id: int = Query(..., alias="treatmentId", gt=0),
    db: Session = Depends(get_db),
):
    return employees_for_treatment(db, treatment_id)


@router.get("/available-times", response_model=List[str])
def available_times(
    employee_id: int = Query(..., alias="employeeId", gt=0),
    day: date = Query(..., alias="date"),
    treatment_id: int = Query(..., alias="treatmentId", gt=0),
    db: Session = Depends(get_db),
):
    return generate_slots(db, day, employee_id, treatment_id)


@router.post("/appointments", response_model=BookingCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    payload: AppointmentRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    appointment = BookingService(db).create_appointment(
        payload.name,
        payload.email,
        payload.employee_id,
        payload.treatment_id,
        payload.date,
        payload.time,
    )
    # runs after the response; the booking is already committed
    background_tasks.add_task(dispatch_confirmation, appointment.id)
    return {"success": True, "appointment": appointment}


@router.get("/confirm/{token}")
def confirm_appointment(token: str, db: Session = Depends(get_db)):
    BookingService(db).confirm(token)
    return RedirectResponse(url="/booking/confirmed", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/confirmed")
def appointment_confirmed():
    return {"status": "confirmed", "message": "Your appointment is confirmed. See you soon!"}

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from salon.core.security import verify_staff_token
from salon.database import get_db
from salon.models.schemas import BookingSettingsOut, BookingSettingsUpdate, OpeningHoursUpdate
from salon.services import opening_hours_service
from salon.services.booking_service import business_today
from salon.services.settings_service import load_booking_settings, update_booking_settings
from salon.services.timeline_service import day_timeline, delete_appointment

router = APIRouter(dependencies=[Depends(verify_staff_token)])


@router.get("/timeline")
def timeline(day: Optional[date] = Query(None, alias="date"), db: Session = Depends(get_db)):
    return day_timeline(db, day or business_today())


@router.delete("/timeline/appointments/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_appointment(appointment_id: int, db: Session = Depends(get_db)):
    delete_appointment(db, appointment_id)


@router.get("/settings/booking", response_model=BookingSettingsOut)
def get_booking_settings(db: Session = Depends(get_db)):
    return load_booking_settings(db).to_dict()


@router.put("/settings/booking", response_model=BookingSettingsOut)
def put_booking_settings(payload: BookingSettingsUpdate, db: Session = Depends(get_db)):
    return update_booking_settings(db, payload.show_prices, payload.weeks_ahead).to_dict()


@router.get("/opening-hours")
def get_opening_hours(db: Session = Depends(get_db)):
    return {"openingHours": opening_hours_service.week_overview(db)}


@router.put("/opening-hours")
def put_opening_hours(payload: OpeningHoursUpdate, db: Session = Depends(get_db)):
    week = {day: hours.model_dump() for day, hours in payload.openingHours.items()}
    return {"openingHours": opening_hours_service.update_week(db, week)}

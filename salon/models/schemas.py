import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from salon.models.db_models import AppointmentStatus


# --- Incoming Request Models ---

class AppointmentRequest(BaseModel):
    """Booking form submitted by the client (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=150)
    email: EmailStr
    employee_id: int = Field(..., alias="employeeId", gt=0)
    treatment_id: int = Field(..., alias="treatmentId", gt=0)
    date: datetime.date
    time: datetime.time

    @field_validator("time", mode="before")
    @classmethod
    def parse_hhmm(cls, value):
        if isinstance(value, str):
            try:
                return datetime.datetime.strptime(value, "%H:%M").time()
            except ValueError:
                raise ValueError("Time must be in HH:MM format")
        return value


class BookingSettingsUpdate(BaseModel):
    show_prices: bool
    weeks_ahead: int = Field(..., ge=1, le=8)


class DayHours(BaseModel):
    open: Optional[str] = None
    close: Optional[str] = None
    isClosed: bool = False


class OpeningHoursUpdate(BaseModel):
    openingHours: Dict[str, DayHours]


# --- Outgoing Response Models ---

class AppointmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    start_time: datetime.datetime
    finish_time: datetime.datetime
    employee_id: int
    client_id: int
    treatment_id: int
    status: AppointmentStatus


class BookingCreatedResponse(BaseModel):
    success: bool = True
    appointment: AppointmentOut


class EmployeeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: Optional[str] = None


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class TreatmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    price: Optional[Decimal] = None
    duration_in_minutes: Optional[int] = None
    category_id: Optional[int] = None


class BookingSettingsOut(BaseModel):
    show_prices: bool
    weeks_ahead: int


class BookingIndexResponse(BaseModel):
    settings: BookingSettingsOut
    bookableUntil: datetime.date
    categories: List[CategoryOut]
    treatments: List[TreatmentOut]
    employees: List[EmployeeOut]

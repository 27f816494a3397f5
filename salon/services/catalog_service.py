from datetime import date
from typing import List

from sqlalchemy.orm import Session

from salon.models.db_models import Category, Employee, Treatment
from salon.services.availability_service import get_treatment
from salon.services.settings_service import BookingSettings

# Category 1 is the catch-all ("other") and is listed last.
FALLBACK_CATEGORY_ID = 1


def bookable_treatments(db: Session) -> List[Treatment]:
    """Active treatments that at least one employee can perform."""
    return (
        db.query(Treatment)
        .filter(Treatment.active.is_(True), Treatment.employees.any())
        .order_by(Treatment.id)
        .all()
    )


def ordered_categories(db: Session) -> List[Category]:
    categories = db.query(Category).order_by(Category.id).all()
    return sorted(categories, key=lambda c: c.id == FALLBACK_CATEGORY_ID)


def employees_for_treatment(db: Session, treatment_id: int) -> List[Employee]:
    get_treatment(db, treatment_id)
    return (
        db.query(Employee)
        .filter(Employee.treatments.any(Treatment.id == treatment_id))
        .order_by(Employee.id)
        .all()
    )


def booking_catalog(db: Session, booking_settings: BookingSettings, today: date) -> dict:
    """Everything the public booking wizard needs on its first page."""
    treatments = []
    for treatment in bookable_treatments(db):
        treatments.append({
            "id": treatment.id,
            "name": treatment.name,
            "price": treatment.price if booking_settings.show_prices else None,
            "duration_in_minutes": treatment.duration_in_minutes,
            "category_id": treatment.category_id,
        })

    return {
        "settings": booking_settings.to_dict(),
        "bookableUntil": booking_settings.bookable_until(today),
        "categories": ordered_categories(db),
        "treatments": treatments,
        "employees": db.query(Employee).order_by(Employee.id).all(),
    }

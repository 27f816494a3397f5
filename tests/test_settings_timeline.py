from datetime import date, datetime
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from salon.core.exceptions import NotFound, PersistenceError, ValidationError
from salon.models.db_models import AppSetting, Appointment
from salon.services.booking_service import BookingService
from salon.services.catalog_service import booking_catalog, employees_for_treatment
from salon.services.settings_service import BookingSettings, load_booking_settings, update_booking_settings
from salon.services.timeline_service import day_timeline, delete_appointment

MONDAY = date(2024, 1, 1)


def test_settings_defaults_without_rows(db):
    assert load_booking_settings(db) == BookingSettings(show_prices=False, weeks_ahead=4)


def test_settings_ignore_garbage_values(db):
    db.add_all([
        AppSetting(setting_name="show_prices", setting_value="yes please"),
        AppSetting(setting_name="weeks_ahead", setting_value="52"),
    ])
    db.commit()

    assert load_booking_settings(db) == BookingSettings(show_prices=False, weeks_ahead=4)


def test_settings_update_cycle(db):
    saved = update_booking_settings(db, show_prices=True, weeks_ahead=8)
    assert saved == BookingSettings(show_prices=True, weeks_ahead=8)
    assert saved.bookable_until(MONDAY) == date(2024, 2, 26)

    saved = update_booking_settings(db, show_prices=False, weeks_ahead=1)
    assert saved.to_dict() == {"show_prices": False, "weeks_ahead": 1}
    assert db.query(AppSetting).count() == 2


@pytest.mark.parametrize("weeks", [0, 9])
def test_settings_weeks_ahead_range(db, weeks):
    with pytest.raises(ValidationError) as exc:
        update_booking_settings(db, show_prices=True, weeks_ahead=weeks)
    assert "weeks_ahead" in exc.value.fields


def test_settings_storage_failure(db):
    with patch.object(db, "commit", side_effect=OperationalError("UPDATE", {}, Exception("database is locked"))):
        with pytest.raises(PersistenceError):
            update_booking_settings(db, show_prices=True, weeks_ahead=2)


def test_catalog_prices_follow_setting(db, salon):
    hidden = booking_catalog(db, BookingSettings(show_prices=False), MONDAY)
    shown = booking_catalog(db, BookingSettings(show_prices=True, weeks_ahead=2), MONDAY)

    assert {t["name"] for t in hidden["treatments"]} == {"Haircut", "Colour", "Legacy"}
    assert all(t["price"] is None for t in hidden["treatments"])
    assert {t["name"]: int(t["price"]) for t in shown["treatments"]}["Colour"] == 60
    assert shown["bookableUntil"] == date(2024, 1, 15)


def test_employees_for_treatment(db, salon):
    assert [e.first_name for e in employees_for_treatment(db, salon["colour"])] == ["Anna"]
    with pytest.raises(NotFound):
        employees_for_treatment(db, 9999)


def test_day_timeline(db, salon):
    service = BookingService(db)
    late = service.create_appointment("Late", "late@example.com", salon["anna"], salon["colour"], MONDAY, "15:00")
    early = service.create_appointment("Early", "early@example.com", salon["anna"], salon["haircut"], MONDAY, "09:00")
    service.create_appointment("Tuesday", "tue@example.com", salon["bram"], salon["haircut"], date(2024, 1, 2), "09:00")

    timeline = day_timeline(db, MONDAY)

    assert timeline["date"] == "2024-01-01"
    assert timeline["openingHours"] == {"open": "09:00", "close": "17:00"}
    anna, bram = timeline["employees"]
    assert [a["id"] for a in anna["appointments"]] == [early.id, late.id]
    assert anna["appointments"][1]["finish_time"] == "16:00"
    assert anna["appointments"][1]["client"]["email"] == "late@example.com"
    assert anna["appointments"][1]["status"] == "WAITING_FOR_CONFIRMATION"
    assert bram["appointments"] == []


def test_day_timeline_closed_day(db, salon):
    assert day_timeline(db, date(2023, 12, 31))["openingHours"] is None


def test_delete_appointment(db, salon):
    appointment = BookingService(db).create_appointment(
        "Sanne", "sanne@example.com", salon["anna"], salon["haircut"], MONDAY, "10:00"
    )
    appointment_id = appointment.id

    delete_appointment(db, appointment_id)
    assert db.get(Appointment, appointment_id) is None

    with pytest.raises(NotFound):
        delete_appointment(db, appointment_id)

    # the slot can be booked again
    again = BookingService(db).create_appointment(
        "Other", "other@example.com", salon["anna"], salon["haircut"], MONDAY, "10:00"
    )
    assert again.start_time == datetime(2024, 1, 1, 10, 0)

from datetime import date

import pytest
from fastapi import HTTPException

from barber_booking.models import AvailableTime, AvailableTimeStaff
from barber_booking.schemas import AvailabilityLevel
from barber_booking.services.calendar_service import aggregate, availability_level

from .conftest import MONDAY, SUNDAY


@pytest.fixture
def june_bookings(shop, barber, employee, customer, make_appointment):
    make_appointment(shop, customer, barber, MONDAY, "10:15", "11:00")
    make_appointment(shop, customer, barber, MONDAY, "11:00", "11:45")
    make_appointment(shop, customer, employee, MONDAY, "10:15", "11:00")
    make_appointment(shop, customer, barber, date(2024, 6, 20), "14:00", "14:45")


def test_one_entry_per_day(session, shop, june_bookings):
    days = aggregate(session, shop.id, date(2024, 6, 1), date(2024, 6, 30))
    assert len(days) == 30
    assert days[0].date == date(2024, 6, 1)
    assert days[-1].date == date(2024, 6, 30)
    assert sum(day.booked_appointments_count for day in days) == 4

    by_date = {day.date: day for day in days}
    assert by_date[MONDAY].booked_appointments_count == 3
    assert by_date[MONDAY].capacity == 32
    assert by_date[MONDAY].availability_level == AvailabilityLevel.high


def test_sundays_are_closed(session, shop):
    days = {day.date: day for day in aggregate(session, shop.id, date(2024, 6, 1), date(2024, 6, 30))}
    assert days[SUNDAY].is_specifically_closed is True
    assert days[SUNDAY].availability_level == AvailabilityLevel.closed
    assert days[MONDAY].is_specifically_closed is False


def test_only_shop_wide_overrides_close_the_day(session, shop, employee):
    session.add(AvailableTime(shop_id=shop.id, date=date(2024, 6, 11), is_available=False))
    personal = AvailableTime(shop_id=shop.id, date=date(2024, 6, 12), is_available=False)
    session.add(personal)
    session.commit()
    session.refresh(personal)
    session.add(AvailableTimeStaff(available_time_id=personal.id, user_id=employee.id))
    session.commit()

    days = {day.date: day for day in aggregate(session, shop.id, date(2024, 6, 10), date(2024, 6, 12))}
    assert days[date(2024, 6, 11)].is_specifically_closed is True
    assert days[date(2024, 6, 12)].is_specifically_closed is False


def test_capacity_override_changes_level(session, shop, june_bookings):
    assert aggregate(session, shop.id, MONDAY, MONDAY, capacity=4)[0].availability_level == AvailabilityLevel.low
    assert aggregate(session, shop.id, MONDAY, MONDAY, capacity=6)[0].availability_level == AvailabilityLevel.medium

    shop.daily_capacity = 4
    session.add(shop)
    session.commit()
    day = aggregate(session, shop.id, MONDAY, MONDAY)[0]
    assert day.capacity == 4
    assert day.availability_level == AvailabilityLevel.low


def test_availability_level_thresholds():
    assert availability_level(0, 30, False) == AvailabilityLevel.high
    assert availability_level(9, 30, False) == AvailabilityLevel.high
    assert availability_level(10, 30, False) == AvailabilityLevel.medium
    assert availability_level(19, 30, False) == AvailabilityLevel.medium
    assert availability_level(20, 30, False) == AvailabilityLevel.low
    assert availability_level(0, 30, True) == AvailabilityLevel.closed


def test_bad_ranges(session, shop):
    with pytest.raises(HTTPException) as backwards:
        aggregate(session, shop.id, date(2024, 6, 30), date(2024, 6, 1))
    assert backwards.value.status_code == 400

    with pytest.raises(HTTPException) as too_long:
        aggregate(session, shop.id, date(2024, 1, 1), date(2025, 6, 1))
    assert too_long.value.status_code == 400

    with pytest.raises(HTTPException) as missing:
        aggregate(session, 999, date(2024, 6, 1), date(2024, 6, 2))
    assert missing.value.status_code == 404


def test_monthly_endpoint(client, shop, june_bookings):
    response = client.get(
        f"/shops/{shop.id}/availability/monthly",
        params={"startDate": "2024-06-01", "endDate": "2024-06-30", "capacity": 6},
    )
    assert response.status_code == 200
    days = response.json()
    assert len(days) == 30
    monday = next(day for day in days if day["date"] == "2024-06-10")
    assert monday == {
        "date": "2024-06-10",
        "isSpecificallyClosed": False,
        "bookedAppointmentsCount": 3,
        "capacity": 6,
        "availabilityLevel": "medium",
    }


def test_monthly_endpoint_validates(client, shop):
    url = f"/shops/{shop.id}/availability/monthly"
    assert client.get(url, params={"startDate": "2024-06-30", "endDate": "2024-06-01"}).status_code == 400
    assert client.get(url, params={"startDate": "2024-06-01"}).status_code == 400
    assert client.get(url, params={"startDate": "2024-06-01", "endDate": "2024-06-30", "capacity": 0}).status_code == 400

from datetime import time

from barber_booking.models import Shop, ShopEmployee
from barber_booking.services.appointment_service import find_conflict, has_conflict

from .conftest import MONDAY


def test_overlapping_candidate_conflicts(session, shop, barber, customer, make_appointment):
    make_appointment(shop, customer, barber, MONDAY, "14:30", "15:15")
    assert has_conflict(session, barber.id, shop.id, MONDAY, time(14, 0), time(14, 45))


def test_adjacent_candidate_does_not_conflict(session, shop, barber, customer, make_appointment):
    make_appointment(shop, customer, barber, MONDAY, "14:00", "14:45")
    assert not has_conflict(session, barber.id, shop.id, MONDAY, time(14, 45), time(15, 30))
    assert not has_conflict(session, barber.id, shop.id, MONDAY, time(13, 15), time(14, 0))


def test_containment_conflicts_both_ways(session, shop, barber, customer, make_appointment):
    make_appointment(shop, customer, barber, MONDAY, "14:00", "16:00")
    assert has_conflict(session, barber.id, shop.id, MONDAY, time(14, 30), time(15, 0))

    assert not has_conflict(session, barber.id, shop.id, MONDAY, time(10, 0), time(10, 45))


def test_other_employee_and_day_do_not_conflict(session, shop, barber, employee, customer, make_appointment):
    make_appointment(shop, customer, barber, MONDAY, "14:00", "14:45")
    assert not has_conflict(session, employee.id, shop.id, MONDAY, time(14, 0), time(14, 45))
    assert not has_conflict(session, barber.id, shop.id, MONDAY.replace(day=11), time(14, 0), time(14, 45))


def test_excluding_the_appointment_itself(session, shop, barber, customer, make_appointment):
    appt = make_appointment(shop, customer, barber, MONDAY, "14:00", "14:45")
    assert has_conflict(session, barber.id, shop.id, MONDAY, time(14, 15), time(15, 0))
    assert not has_conflict(
        session, barber.id, shop.id, MONDAY, time(14, 15), time(15, 0), exclude_appointment_id=appt.id
    )


def test_employee_busy_at_another_shop(session, shop, barber, customer, make_appointment):
    second = Shop(name="Second Chair", owner_id=barber.id)
    session.add(second)
    session.commit()
    session.refresh(second)
    session.add(ShopEmployee(shop_id=second.id, user_id=barber.id))
    session.commit()

    make_appointment(second, customer, barber, MONDAY, "14:00", "14:45")
    clash = find_conflict(session, barber.id, shop.id, MONDAY, time(14, 0), time(14, 45))
    assert clash is not None
    assert clash.shop_id == second.id


def test_shop_level_check_without_employee(session, shop, barber, customer, make_appointment):
    make_appointment(shop, customer, None, MONDAY, "11:00", "11:45")
    assert has_conflict(session, None, shop.id, MONDAY, time(11, 30), time(12, 15))
    assert not has_conflict(session, None, shop.id, MONDAY, time(11, 45), time(12, 30))

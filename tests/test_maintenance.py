from barber_booking.maintenance import migrate_legacy_employee_notes, split_employee_token

from .conftest import MONDAY


def test_split_employee_token():
    assert split_employee_token("Short on top\nEmployeeId:7") == (7, "Short on top")
    assert split_employee_token("EmployeeId:7") == (7, None)
    assert split_employee_token("EmployeeId: 12 please be quick") == (12, "please be quick")
    assert split_employee_token("no token here") == (None, "no token here")
    assert split_employee_token("EmployeeId:clx9abc") == (None, "EmployeeId:clx9abc")
    assert split_employee_token(None) == (None, None)


def test_migration_moves_token_into_column(session, shop, barber, employee, customer, make_appointment):
    legacy = make_appointment(shop, customer, None, MONDAY, "10:15", "11:00", notes=f"Fade\nEmployeeId:{employee.id}")
    already_set = make_appointment(shop, customer, barber, MONDAY, "11:00", "11:45", notes=f"EmployeeId:{employee.id}")
    untouched = make_appointment(shop, customer, barber, MONDAY, "12:30", "13:15", notes="Just a trim")

    assert migrate_legacy_employee_notes(session) == 2

    session.refresh(legacy)
    session.refresh(already_set)
    session.refresh(untouched)
    assert legacy.employee_id == employee.id
    assert legacy.notes == "Fade"
    # an explicit assignment is kept, only the token goes
    assert already_set.employee_id == barber.id
    assert already_set.notes is None
    assert untouched.notes == "Just a trim"


def test_migration_skips_taken_slot(session, shop, employee, customer, make_appointment):
    make_appointment(shop, customer, employee, MONDAY, "10:15", "11:00")
    legacy = make_appointment(shop, customer, None, MONDAY, "10:15", "11:00", notes=f"EmployeeId:{employee.id}")

    assert migrate_legacy_employee_notes(session) == 0
    session.refresh(legacy)
    assert legacy.employee_id is None
    assert legacy.notes == f"EmployeeId:{employee.id}"

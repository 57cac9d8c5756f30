from datetime import time

import pytest

from barber_booking.drafts import DraftBooking, DraftBookingError, DraftState
from barber_booking.models import Shop

from .conftest import MONDAY


def test_draft_walks_through_states():
    draft = DraftBooking.start(shop_id=1, day=MONDAY)
    assert draft.state == DraftState.date_selected

    picked = draft.choose_slot(time(10, 15), employee_id=3)
    assert picked.state == DraftState.staff_time_selected
    assert picked.end_time == time(11, 0)
    # earlier steps are untouched
    assert draft.time is None

    confirmed = picked.confirm(notes="First visit")
    payload = confirmed.to_create_payload()
    assert payload.shop_id == 1
    assert payload.date == MONDAY
    assert payload.time == time(10, 15)
    assert payload.end_time == time(11, 0)
    assert payload.employee_id == 3
    assert payload.notes == "First visit"
    assert payload.model_dump(mode="json", by_alias=True)["endTime"] == "11:00"


def test_slot_length_follows_shop():
    shop = Shop(name="x", slot_minutes=30)
    draft = DraftBooking.start(1, MONDAY).choose_slot(time(9, 0), shop=shop)
    assert draft.end_time == time(9, 30)


def test_changing_date_clears_slot():
    draft = DraftBooking.start(1, MONDAY).choose_slot(time(10, 15))
    moved = draft.change_date(MONDAY.replace(day=11))
    assert moved.state == DraftState.date_selected
    assert moved.time is None
    assert moved.end_time is None


def test_out_of_order_steps_rejected():
    draft = DraftBooking.start(1, MONDAY)
    with pytest.raises(DraftBookingError):
        draft.confirm()
    with pytest.raises(DraftBookingError):
        draft.to_create_payload()
    with pytest.raises(DraftBookingError):
        draft.choose_slot(time(11, 0), time(10, 0))

    confirmed = draft.choose_slot(time(10, 15)).confirm()
    with pytest.raises(DraftBookingError):
        confirmed.choose_slot(time(12, 30))
    with pytest.raises(DraftBookingError):
        confirmed.change_date(MONDAY)


def test_confirmed_draft_books(client, shop, barber, customer, auth_headers):
    payload = DraftBooking.start(shop.id, MONDAY).choose_slot(time(10, 15), employee_id=barber.id).confirm().to_create_payload()
    response = client.post(
        "/appointments",
        json=payload.model_dump(mode="json", by_alias=True, exclude_none=True),
        headers=auth_headers(customer),
    )
    assert response.status_code == 201
    assert response.json()["employeeId"] == barber.id

# barber_booking/drafts.py
"""Client-side booking draft.

A booking is picked in steps (day, then staff and time) but nothing is written
until the draft is confirmed and turned into one AppointmentCreate payload.
Each step returns a new draft; the old one is left untouched.
"""

from enum import Enum
from datetime import date as Date, time as Time
from typing import Optional

from pydantic import BaseModel, ConfigDict

from .core import add_minutes, slot_minutes_for_shop
from .schemas import AppointmentCreate


class DraftBookingError(ValueError):
    pass


class DraftState(str, Enum):
    date_selected = "DateSelected"
    staff_time_selected = "StaffTimeSelected"
    confirmed = "Confirmed"


class DraftBooking(BaseModel):
    model_config = ConfigDict(frozen=True)

    shop_id: int
    date: Date
    state: DraftState = DraftState.date_selected
    employee_id: Optional[int] = None
    time: Optional[Time] = None
    end_time: Optional[Time] = None
    notes: Optional[str] = None

    @classmethod
    def start(cls, shop_id: int, day: Date) -> "DraftBooking":
        return cls(shop_id=shop_id, date=day)

    def _require_open(self):
        if self.state == DraftState.confirmed:
            raise DraftBookingError("Draft is already confirmed")

    def change_date(self, day: Date) -> "DraftBooking":
        """Picking another day drops the chosen slot."""
        self._require_open()
        return self.model_copy(
            update={"date": day, "state": DraftState.date_selected, "time": None, "end_time": None}
        )

    def choose_slot(
        self,
        start: Time,
        end: Optional[Time] = None,
        employee_id: Optional[int] = None,
        shop=None,
    ) -> "DraftBooking":
        self._require_open()
        if end is None:
            end = add_minutes(start, slot_minutes_for_shop(shop))
        if end <= start:
            raise DraftBookingError("End time must be after start time")
        return self.model_copy(
            update={
                "state": DraftState.staff_time_selected,
                "employee_id": employee_id,
                "time": start,
                "end_time": end,
            }
        )

    def confirm(self, notes: Optional[str] = None) -> "DraftBooking":
        if self.state != DraftState.staff_time_selected:
            raise DraftBookingError(f"Cannot confirm a draft in state {self.state.value}")
        return self.model_copy(update={"state": DraftState.confirmed, "notes": notes})

    def to_create_payload(self) -> AppointmentCreate:
        if self.state != DraftState.confirmed:
            raise DraftBookingError("Only a confirmed draft can be submitted")
        return AppointmentCreate(
            shop_id=self.shop_id,
            date=self.date,
            time=self.time,
            end_time=self.end_time,
            notes=self.notes,
            employee_id=self.employee_id,
        )

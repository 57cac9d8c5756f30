# barber_booking/routers/availability_routes.py

from datetime import date
from typing import List, Optional, Union

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from sqlmodel import Session

from barber_booking.auth import get_current_user
from barber_booking.db import get_session
from barber_booking.models import User
from barber_booking.schemas import (
    AvailabilityCheck,
    AvailabilityCreate,
    AvailabilityPublic,
    AvailabilityUpdate,
    BulkAvailabilityResult,
    DaySummary,
    MessageResponse,
    StaffForDate,
    TeamCalendarEntry,
)
from barber_booking.services import availability_service, calendar_service
from barber_booking.services.shop_service import get_shop_or_404

router = APIRouter(
    tags=["availability"],
)


@router.post(
    "/availability",
    response_model=Union[AvailabilityPublic, BulkAvailabilityResult],
    status_code=201,
)
def create_availability(
    payload: Union[List[AvailabilityCreate], AvailabilityCreate] = Body(...),
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    # a list means "declare many days at once"
    if isinstance(payload, list):
        if not payload:
            raise HTTPException(status_code=400, detail="At least one availability record is required")
        count = availability_service.create_many_availabilities(session, current_user, payload)
        return BulkAvailabilityResult(count=count, message=f"Created {count} availability records")

    record = availability_service.create_availability(session, current_user, payload)
    return availability_service.to_public(session, record)


# must stay above /availability/{availability_id}
@router.get("/availability/check", response_model=AvailabilityCheck)
def check_availability(
    shop_id: Optional[str] = Query(default=None, alias="shopId"),
    on_date: Optional[str] = Query(default=None, alias="date"),
    employee_id: Optional[str] = Query(default=None, alias="employeeId"),
    session: Session = Depends(get_session),
):
    # raw strings: a malformed parameter still gets a grid, not a 400
    return availability_service.check_from_query(session, shop_id, employee_id, on_date)


@router.get("/availability/{availability_id}", response_model=AvailabilityPublic)
def get_availability(
    availability_id: int,
    session: Session = Depends(get_session),
):
    record = availability_service.get_availability_or_404(session, availability_id)
    return availability_service.to_public(session, record)


@router.patch("/availability/{availability_id}", response_model=AvailabilityPublic)
def update_availability(
    availability_id: int,
    changes: AvailabilityUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    record = availability_service.update_availability(session, current_user, availability_id, changes)
    return availability_service.to_public(session, record)


@router.delete("/availability/{availability_id}", response_model=MessageResponse)
def delete_availability(
    availability_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    availability_service.delete_availability(session, current_user, availability_id)
    return {"message": "Availability record deleted"}


@router.get("/employees/{employee_id}/availability", response_model=List[AvailabilityPublic])
def employee_availability(
    employee_id: int,
    start_date: Optional[date] = Query(default=None, alias="startDate"),
    end_date: Optional[date] = Query(default=None, alias="endDate"),
    shop_id: Optional[int] = Query(default=None, alias="shopId"),
    session: Session = Depends(get_session),
):
    records = availability_service.list_employee_availability(session, employee_id, start_date, end_date, shop_id)
    return [availability_service.to_public(session, record) for record in records]


# ---------- per-shop views ----------

@router.get("/shops/{shop_id}/availability", response_model=List[AvailabilityPublic])
def shop_availability(
    shop_id: int,
    start_date: Optional[date] = Query(default=None, alias="startDate"),
    end_date: Optional[date] = Query(default=None, alias="endDate"),
    employee_id: Optional[int] = Query(default=None, alias="employeeId"),
    session: Session = Depends(get_session),
):
    get_shop_or_404(session, shop_id)
    records = availability_service.list_shop_availability(session, shop_id, start_date, end_date, employee_id)
    return [availability_service.to_public(session, record) for record in records]


@router.get("/shops/{shop_id}/availability/staff", response_model=StaffForDate)
def staff_for_date(
    shop_id: int,
    on_date: date = Query(alias="date"),
    session: Session = Depends(get_session),
):
    get_shop_or_404(session, shop_id)
    return StaffForDate(
        date=on_date,
        available_employees=availability_service.available_staff_for_date(session, shop_id, on_date),
    )


@router.get("/shops/{shop_id}/availability/monthly", response_model=List[DaySummary])
def monthly_availability(
    shop_id: int,
    start_date: date = Query(alias="startDate"),
    end_date: date = Query(alias="endDate"),
    capacity: Optional[int] = Query(default=None, gt=0),
    session: Session = Depends(get_session),
):
    return calendar_service.aggregate(session, shop_id, start_date, end_date, capacity)


@router.get("/shops/{shop_id}/availability/team", response_model=List[TeamCalendarEntry])
def team_availability(
    shop_id: int,
    start_date: date = Query(alias="startDate"),
    end_date: date = Query(alias="endDate"),
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    get_shop_or_404(session, shop_id)
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="endDate must not be before startDate")
    return availability_service.team_calendar(session, shop_id, start_date, end_date)

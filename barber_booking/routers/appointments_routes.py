# barber_booking/routers/appointments_routes.py

from datetime import date
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session

from barber_booking.auth import get_current_user
from barber_booking.db import get_session
from barber_booking.models import User
from barber_booking.schemas import (
    AppointmentCreate,
    AppointmentPublic,
    AppointmentStats,
    AppointmentUpdate,
    MessageResponse,
    ReviewCreate,
    UserRole,
)
from barber_booking.services import appointment_service
from barber_booking.services.shop_service import get_shop_or_404, can_manage_shop, is_shop_staff

router = APIRouter(
    tags=["appointments"],
)


@router.get("/appointments", response_model=List[AppointmentPublic])
def list_appointments(
    shop_id: Optional[str] = Query(default=None, alias="shopId"),
    on_date: Optional[str] = Query(default=None, alias="date"),
    employee_id: Optional[str] = Query(default=None, alias="employeeId"),
    past: Optional[str] = None,
    take: Optional[str] = None,
    skip: Optional[str] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    # filters stay raw strings: a malformed one means an empty list, not a 400
    return appointment_service.list_appointments_for_user(
        session,
        current_user,
        shop_id=shop_id,
        on_date=on_date,
        employee_id=employee_id,
        past=past,
        take=take,
        skip=skip,
    )


@router.post("/appointments", response_model=AppointmentPublic, status_code=201)
def create_appointment(
    appt: AppointmentCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return appointment_service.create_appointment(session, current_user, appt)


@router.get("/appointments/{appt_id}", response_model=AppointmentPublic)
def get_appointment(
    appt_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return appointment_service.get_appointment_for_user(session, current_user, appt_id)


@router.patch("/appointments/{appt_id}", response_model=AppointmentPublic)
def update_appointment(
    appt_id: int,
    changes: AppointmentUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return appointment_service.update_appointment(session, current_user, appt_id, changes)


@router.delete("/appointments/{appt_id}", response_model=MessageResponse)
def cancel_appointment(
    appt_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    appointment_service.delete_appointment(session, current_user, appt_id)
    return {"message": "Appointment cancelled"}


@router.post("/appointments/{appt_id}/review", response_model=AppointmentPublic)
def review_appointment(
    appt_id: int,
    review: ReviewCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return appointment_service.add_review(session, current_user, appt_id, review)


def _require_shop_insider(session: Session, user: User, shop_id: int):
    shop = get_shop_or_404(session, shop_id)
    if can_manage_shop(user, shop) or is_shop_staff(session, shop_id, user.id):
        return shop
    raise HTTPException(status_code=403, detail="Only this shop's staff can see its bookings")


@router.get("/shops/{shop_id}/appointments", response_model=List[AppointmentPublic])
def shop_appointments(
    shop_id: int,
    on_date: date = Query(alias="date"),
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    _require_shop_insider(session, current_user, shop_id)
    return appointment_service.shop_appointments_for_date(session, shop_id, on_date)


@router.get("/shops/{shop_id}/appointments/stats", response_model=AppointmentStats)
def shop_appointment_stats(
    shop_id: int,
    start_date: Optional[date] = Query(default=None, alias="startDate"),
    end_date: Optional[date] = Query(default=None, alias="endDate"),
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    _require_shop_insider(session, current_user, shop_id)
    return appointment_service.appointment_stats(session, shop_id, start_date, end_date)


@router.get("/users/{user_id}/appointments", response_model=List[AppointmentPublic])
def user_appointments(
    user_id: int,
    past: Optional[str] = None,
    take: Optional[str] = None,
    skip: Optional[str] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    if current_user.id != user_id and current_user.role != UserRole.admin.value:
        raise HTTPException(status_code=403, detail="Forbidden")
    target = session.get(User, user_id)
    if target is None:
        return []
    return appointment_service.list_appointments_for_user(session, target, past=past, take=take, skip=skip)

# barber_booking/services/appointment_service.py
"""Appointment lifecycle: conflict checking, booking, visibility, updates and reviews.

There is no status column driving the lifecycle. A row that exists is booked,
cancelling deletes it, a row in the past is completed and a row with a
review_id has been reviewed.
"""

import logging
from datetime import date, datetime, time
from typing import List, Optional

from fastapi import HTTPException
from pydantic.alias_generators import to_camel
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy import and_, func, or_
from sqlmodel import Session, select

from ..core import overlaps, format_hhmm, parse_hhmm, slot_grid_for_shop, slot_minutes_for_shop, add_minutes
from ..models import Appointment, Review, Shop, User
from ..schemas import AppointmentCreate, AppointmentUpdate, AppointmentStats, ReviewCreate, UserRole
from .availability_service import closure_for_day, resolve_employee_id
from .shop_service import get_shop_or_404, get_user_or_404, ensure_staff_user, staff_shop_ids

logger = logging.getLogger(__name__)

CUSTOMER_FIELDS = ("notes", "status")
STAFF_FIELDS = ("date", "time", "end_time", "notes", "status", "employee_id")
REQUIRED_FIELDS = ("date", "time", "end_time", "status")


# ---------- conflict checking ----------

def find_conflict(
    session: Session,
    employee_id: Optional[int],
    shop_id: int,
    day: date,
    start_time: time,
    end_time: time,
    exclude_appointment_id: Optional[int] = None,
) -> Optional[Appointment]:
    """First appointment whose [time, end_time) overlaps the candidate interval.

    An employee cannot be in two places, so with an employee every shop is
    checked; without one the whole shop's day is the comparison set.
    """
    stmt = select(Appointment).where(Appointment.date == day)
    if employee_id is not None:
        stmt = stmt.where(Appointment.employee_id == employee_id)
    else:
        stmt = stmt.where(Appointment.shop_id == shop_id)
    if exclude_appointment_id is not None:
        stmt = stmt.where(Appointment.id != exclude_appointment_id)

    for existing in session.exec(stmt.order_by(Appointment.time)).all():
        if overlaps(start_time, end_time, existing.time, existing.end_time):
            return existing
    return None


def has_conflict(
    session: Session,
    employee_id: Optional[int],
    shop_id: int,
    day: date,
    start_time: time,
    end_time: time,
    exclude_appointment_id: Optional[int] = None,
) -> bool:
    return find_conflict(session, employee_id, shop_id, day, start_time, end_time, exclude_appointment_id) is not None


def _slot_taken(day: date, start_time: time) -> HTTPException:
    return HTTPException(status_code=409, detail=f"Time slot {format_hhmm(start_time)} on {day.isoformat()} is already booked")


def _validate_slot(session: Session, shop: Shop, employee_id: Optional[int], day: date, start_time: time, end_time: time):
    """Checks shared by new and moved bookings."""
    if end_time <= start_time:
        raise HTTPException(status_code=400, detail="endTime must be after time")

    grid = slot_grid_for_shop(shop)
    if grid:
        opens = parse_hhmm(grid[0])
        closes = add_minutes(parse_hhmm(grid[-1]), slot_minutes_for_shop(shop))
        if start_time < opens or end_time > closes:
            raise HTTPException(status_code=400, detail="Appointment must be within working hours")

    closed, reason = closure_for_day(session, shop, shop.id, day, employee_id)
    if closed:
        raise HTTPException(status_code=409, detail=f"Shop is closed on {day.isoformat()}: {reason}")


def _commit_booking(session: Session, appt: Appointment):
    session.add(appt)
    try:
        session.commit()
    except IntegrityError:
        # a concurrent request won the same (shop, employee, date, time)
        session.rollback()
        logger.warning(f"Unique slot constraint rejected booking at {appt.time} on {appt.date} for shop {appt.shop_id}")
        raise _slot_taken(appt.date, appt.time)
    session.refresh(appt)


# ---------- lifecycle ----------

def create_appointment(session: Session, user: User, data: AppointmentCreate) -> Appointment:
    shop = get_shop_or_404(session, data.shop_id)

    # 1) Who is the customer
    customer_id = user.id
    if data.user_id is not None and user.role != UserRole.customer.value:
        customer_id = get_user_or_404(session, data.user_id).id

    # 2) Who does the work
    if data.employee_id is not None:
        employee_id = ensure_staff_user(session, data.employee_id, shop).id
    else:
        employee_id = resolve_employee_id(session, shop.id, None)

    # 3) Interval, working hours and closures
    _validate_slot(session, shop, employee_id, data.date, data.time, data.end_time)

    # 4) Reject overlaps with existing appointments (double-booking)
    clash = find_conflict(session, employee_id, shop.id, data.date, data.time, data.end_time)
    if clash is not None:
        logger.info(f"Booking conflict with appointment {clash.id} for employee {employee_id} on {data.date}")
        raise _slot_taken(data.date, clash.time)

    # 5) Create and save appointment
    appt = Appointment(
        shop_id=shop.id,
        user_id=customer_id,
        employee_id=employee_id,
        date=data.date,
        time=data.time,
        end_time=data.end_time,
        notes=data.notes,
        status="booked",
    )
    _commit_booking(session, appt)
    logger.info(f"Booked appointment {appt.id} at shop {shop.id} on {appt.date} {format_hhmm(appt.time)}")
    return appt


def can_view(session: Session, user: User, appt: Appointment) -> bool:
    if user.role == UserRole.admin.value or appt.user_id == user.id:
        return True
    if user.role == UserRole.barber.value:
        return appt.employee_id == user.id or appt.shop_id in staff_shop_ids(session, user)
    if user.role == UserRole.employee.value:
        return appt.employee_id == user.id
    return False


def get_appointment_for_user(session: Session, user: User, appointment_id: int) -> Appointment:
    appt = session.get(Appointment, appointment_id)
    if appt is None:
        raise HTTPException(status_code=404, detail="Appointment not found")
    if not can_view(session, user, appt):
        raise HTTPException(status_code=403, detail="You do not have access to this appointment")
    return appt


def update_appointment(session: Session, user: User, appointment_id: int, data: AppointmentUpdate) -> Appointment:
    appt = get_appointment_for_user(session, user, appointment_id)

    allowed = CUSTOMER_FIELDS if user.role == UserRole.customer.value else STAFF_FIELDS
    requested = data.model_dump(exclude_unset=True)
    changes = {field: value for field, value in requested.items() if field in allowed}
    dropped = sorted(set(requested) - set(changes))
    if dropped:
        logger.debug(f"Ignoring fields {dropped} from {user.role} update of appointment {appt.id}")

    cleared = sorted(field for field in REQUIRED_FIELDS if field in changes and changes[field] is None)
    if cleared:
        raise HTTPException(status_code=400, detail=f"{', '.join(to_camel(field) for field in cleared)} cannot be empty")

    shop = get_shop_or_404(session, appt.shop_id)
    if "employee_id" in changes and changes["employee_id"] is not None:
        ensure_staff_user(session, changes["employee_id"], shop)

    if {"date", "time", "end_time", "employee_id"} & set(changes):
        new_date = changes.get("date") or appt.date
        new_time = changes.get("time") or appt.time
        new_end = changes.get("end_time") or appt.end_time
        new_employee = changes["employee_id"] if "employee_id" in changes else appt.employee_id

        _validate_slot(session, shop, new_employee, new_date, new_time, new_end)
        if has_conflict(session, new_employee, appt.shop_id, new_date, new_time, new_end, exclude_appointment_id=appt.id):
            raise _slot_taken(new_date, new_time)

    for field, value in changes.items():
        setattr(appt, field, value)

    _commit_booking(session, appt)
    logger.info(f"Appointment {appt.id} updated by user {user.id}: {sorted(changes)}")
    return appt


def delete_appointment(session: Session, user: User, appointment_id: int):
    appt = get_appointment_for_user(session, user, appointment_id)
    session.delete(appt)
    session.commit()
    logger.info(f"Appointment {appointment_id} cancelled by user {user.id}")


# ---------- listing ----------

def _parse_bool(value: Optional[str]) -> Optional[bool]:
    if value is None:
        return None
    lowered = value.strip().lower()
    if lowered in ("true", "1", "yes"):
        return True
    if lowered in ("false", "0", "no", ""):
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _parse_int(value: Optional[str], minimum: int = 0) -> Optional[int]:
    if value is None or value == "":
        return None
    number = int(value)
    if number < minimum:
        raise ValueError(f"{value!r} is below {minimum}")
    return number


def _past_filter(past: bool, now: datetime):
    today = now.date()
    current = now.time()
    if past:
        return or_(Appointment.date < today, and_(Appointment.date == today, Appointment.time < current))
    return or_(Appointment.date > today, and_(Appointment.date == today, Appointment.time >= current))


def list_appointments_for_user(
    session: Session,
    user: User,
    shop_id: Optional[str] = None,
    on_date: Optional[str] = None,
    employee_id: Optional[str] = None,
    past: Optional[str] = None,
    take: Optional[str] = None,
    skip: Optional[str] = None,
) -> List[Appointment]:
    """Role-filtered appointment list.

    Fail-open: a malformed filter or a failing query yields an empty list so
    the dashboards keep rendering.
    """
    try:
        shop_filter = _parse_int(shop_id, minimum=1)
        date_filter = date.fromisoformat(on_date) if on_date else None
        employee_filter = _parse_int(employee_id, minimum=1)
        past_flag = _parse_bool(past)
        limit = _parse_int(take)
        offset = _parse_int(skip)

        stmt = select(Appointment)
        if user.role == UserRole.customer.value:
            stmt = stmt.where(Appointment.user_id == user.id)
            # customers see upcoming bookings unless they ask for history
            past_flag = bool(past_flag)
        elif user.role == UserRole.employee.value:
            stmt = stmt.where(Appointment.employee_id == user.id)
        elif user.role == UserRole.barber.value:
            stmt = stmt.where(
                or_(Appointment.shop_id.in_(staff_shop_ids(session, user)), Appointment.employee_id == user.id)
            )

        if shop_filter is not None:
            stmt = stmt.where(Appointment.shop_id == shop_filter)
        if date_filter is not None:
            stmt = stmt.where(Appointment.date == date_filter)
        if employee_filter is not None:
            stmt = stmt.where(Appointment.employee_id == employee_filter)
        if past_flag is not None:
            stmt = stmt.where(_past_filter(past_flag, datetime.now()))

        if past_flag:
            stmt = stmt.order_by(Appointment.date.desc(), Appointment.time.desc())
        else:
            stmt = stmt.order_by(Appointment.date, Appointment.time)
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)

        return session.exec(stmt).all()
    except ValueError as e:
        logger.warning(f"Malformed appointment filter from user {user.id}: {e}")
        return []
    except SQLAlchemyError:
        logger.exception(f"Appointment listing failed for user {user.id}; returning empty list")
        session.rollback()
        return []


def shop_appointments_for_date(session: Session, shop_id: int, day: date) -> List[Appointment]:
    return session.exec(
        select(Appointment)
        .where(Appointment.shop_id == shop_id)
        .where(Appointment.date == day)
        .order_by(Appointment.time)
    ).all()


def appointment_stats(
    session: Session,
    shop_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> AppointmentStats:
    def count(*conditions) -> int:
        stmt = select(func.count(Appointment.id))
        if shop_id is not None:
            stmt = stmt.where(Appointment.shop_id == shop_id)
        if start_date is not None:
            stmt = stmt.where(Appointment.date >= start_date)
        if end_date is not None:
            stmt = stmt.where(Appointment.date <= end_date)
        for condition in conditions:
            stmt = stmt.where(condition)
        return session.exec(stmt).one()

    now = datetime.now()
    return AppointmentStats(
        total=count(),
        upcoming=count(_past_filter(False, now)),
        completed=count(_past_filter(True, now)),
    )


# ---------- reviews ----------

def add_review(session: Session, user: User, appointment_id: int, data: ReviewCreate) -> Appointment:
    appt = session.get(Appointment, appointment_id)
    if appt is None:
        raise HTTPException(status_code=404, detail="Appointment not found")
    if appt.user_id != user.id:
        raise HTTPException(status_code=403, detail="Only the customer can review this appointment")

    review = session.get(Review, appt.review_id) if appt.review_id is not None else None
    if review is not None:
        review.rating = data.rating
        review.comment = data.comment
        session.add(review)
    else:
        review = Review(shop_id=appt.shop_id, user_id=user.id, rating=data.rating, comment=data.comment)
        session.add(review)
        session.flush()
        appt.review_id = review.id
        session.add(appt)

    session.commit()
    session.refresh(appt)
    logger.info(f"Review {appt.review_id} recorded for appointment {appt.id}")
    return appt


def list_shop_reviews(session: Session, shop_id: int) -> List[Review]:
    return session.exec(select(Review).where(Review.shop_id == shop_id).order_by(Review.created_at.desc())).all()

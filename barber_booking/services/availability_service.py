# barber_booking/services/availability_service.py
"""Availability overrides and the per-day slot evaluator.

An AvailableTime record overrides the default assumption that a shop is open.
Records with no linked staff apply to the whole shop; records with staff only
apply to those people. The evaluator is the single authority on whether a day
is open and which grid slots are still free.
"""

import logging
from datetime import date
from typing import Dict, List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..core import (
    overlaps,
    parse_hhmm,
    format_hhmm,
    to_minutes,
    is_placeholder_id,
    slot_grid_for_shop,
    slot_minutes_for_shop,
    closed_weekdays_for_shop,
)
from ..models import Appointment, AvailableTime, AvailableTimeStaff, Shop, User
from ..schemas import (
    AvailabilityCheck,
    AvailabilityCreate,
    AvailabilityPublic,
    AvailabilityUpdate,
    AppointmentPublic,
    SlotStatus,
    StaffMember,
    TeamCalendarEntry,
    TimeRange,
    UserRole,
    STAFF_ROLES,
)
from .shop_service import get_shop_or_404, shop_staff

logger = logging.getLogger(__name__)


# ---------- override records ----------

def staff_ids_for(session: Session, available_time_id: int) -> List[int]:
    return sorted(
        session.exec(
            select(AvailableTimeStaff.user_id).where(AvailableTimeStaff.available_time_id == available_time_id)
        ).all()
    )


def to_public(session: Session, record: AvailableTime) -> AvailabilityPublic:
    return AvailabilityPublic(
        id=record.id,
        shop_id=record.shop_id,
        date=record.date,
        is_available=record.is_available,
        time_slots=record.time_slots,
        reason=record.reason,
        employee_ids=staff_ids_for(session, record.id),
    )


def _check_override_permission(session: Session, user: User, shop: Shop, employee_ids: List[int]):
    if user.role not in STAFF_ROLES and user.role != UserRole.admin.value:
        raise HTTPException(status_code=403, detail="Only staff can manage availability")
    if user.role == UserRole.admin.value or shop.owner_id == user.id:
        return
    # plain staff may only declare their own days
    if employee_ids != [user.id]:
        raise HTTPException(status_code=403, detail="You can only manage your own availability for this shop")


def _validate_employee_ids(session: Session, employee_ids: List[int]):
    for employee_id in employee_ids:
        if session.get(User, employee_id) is None:
            raise HTTPException(status_code=400, detail=f"Employee {employee_id} does not exist")


def _replace_staff(session: Session, record: AvailableTime, employee_ids: List[int]):
    existing = session.exec(
        select(AvailableTimeStaff).where(AvailableTimeStaff.available_time_id == record.id)
    ).all()
    for link in existing:
        session.delete(link)
    session.flush()
    for employee_id in sorted(set(employee_ids)):
        session.add(AvailableTimeStaff(available_time_id=record.id, user_id=employee_id))


def _add_override(session: Session, data: AvailabilityCreate) -> AvailableTime:
    record = AvailableTime(
        shop_id=data.shop_id,
        date=data.date,
        is_available=data.is_available,
        time_slots=data.time_slots,
        reason=data.reason,
    )
    session.add(record)
    session.flush()  # fills record.id
    _replace_staff(session, record, data.employee_ids)
    return record


def create_availability(session: Session, user: User, data: AvailabilityCreate) -> AvailableTime:
    shop = get_shop_or_404(session, data.shop_id)
    _check_override_permission(session, user, shop, sorted(set(data.employee_ids)))
    _validate_employee_ids(session, data.employee_ids)

    record = _add_override(session, data)
    session.commit()
    session.refresh(record)
    logger.info(f"Availability override {record.id} for shop {shop.id} on {record.date} (open={record.is_available})")
    return record


def create_many_availabilities(session: Session, user: User, items: List[AvailabilityCreate]) -> int:
    # validate everything before writing anything
    for data in items:
        shop = get_shop_or_404(session, data.shop_id)
        _check_override_permission(session, user, shop, sorted(set(data.employee_ids)))
        _validate_employee_ids(session, data.employee_ids)

    for data in items:
        _add_override(session, data)
    session.commit()
    logger.info(f"Created {len(items)} availability overrides")
    return len(items)


def get_availability_or_404(session: Session, availability_id: int) -> AvailableTime:
    record = session.get(AvailableTime, availability_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Availability record not found")
    return record


def update_availability(session: Session, user: User, availability_id: int, data: AvailabilityUpdate) -> AvailableTime:
    record = get_availability_or_404(session, availability_id)
    shop = get_shop_or_404(session, record.shop_id)
    changes = data.model_dump(exclude_unset=True)

    employee_ids = changes.pop("employee_ids", None)
    target_staff = sorted(set(employee_ids)) if employee_ids is not None else staff_ids_for(session, record.id)
    _check_override_permission(session, user, shop, target_staff)

    for field, value in changes.items():
        setattr(record, field, value)
    if employee_ids is not None:
        _validate_employee_ids(session, employee_ids)
        _replace_staff(session, record, employee_ids)

    session.add(record)
    session.commit()
    session.refresh(record)
    return record


def delete_availability(session: Session, user: User, availability_id: int):
    record = get_availability_or_404(session, availability_id)
    shop = get_shop_or_404(session, record.shop_id)
    _check_override_permission(session, user, shop, staff_ids_for(session, record.id))

    _replace_staff(session, record, [])
    session.delete(record)
    session.commit()
    logger.info(f"Deleted availability override {availability_id}")


def list_shop_availability(
    session: Session,
    shop_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    employee_id: Optional[int] = None,
) -> List[AvailableTime]:
    stmt = select(AvailableTime).where(AvailableTime.shop_id == shop_id)
    if start_date is not None:
        stmt = stmt.where(AvailableTime.date >= start_date)
    if end_date is not None:
        stmt = stmt.where(AvailableTime.date <= end_date)
    if employee_id is not None:
        stmt = stmt.join(AvailableTimeStaff, AvailableTimeStaff.available_time_id == AvailableTime.id).where(
            AvailableTimeStaff.user_id == employee_id
        )
    return session.exec(stmt.order_by(AvailableTime.date)).all()


def list_employee_availability(
    session: Session,
    employee_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    shop_id: Optional[int] = None,
) -> List[AvailableTime]:
    stmt = (
        select(AvailableTime)
        .join(AvailableTimeStaff, AvailableTimeStaff.available_time_id == AvailableTime.id)
        .where(AvailableTimeStaff.user_id == employee_id)
    )
    if start_date is not None:
        stmt = stmt.where(AvailableTime.date >= start_date)
    if end_date is not None:
        stmt = stmt.where(AvailableTime.date <= end_date)
    if shop_id is not None:
        stmt = stmt.where(AvailableTime.shop_id == shop_id)
    return session.exec(stmt.order_by(AvailableTime.date)).all()


# ---------- day evaluation ----------

def resolve_employee_id(session: Session, shop_id: int, employee_id) -> Optional[int]:
    """Pick the employee to evaluate for.

    A placeholder (or an unparseable id) means "anyone": the first staff member
    linked to the shop is used, or None for shop-level evaluation.
    """
    if not is_placeholder_id(employee_id):
        try:
            return int(employee_id)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring malformed employee id {employee_id!r} for shop {shop_id}")

    staff = shop_staff(session, shop_id)
    if staff:
        return staff[0].id
    return None


def day_overrides(session: Session, shop_id: int, day: date, employee_id: Optional[int] = None) -> List[AvailableTime]:
    """Override records that apply to this shop/day (and employee, if any)."""
    records = session.exec(
        select(AvailableTime).where(AvailableTime.shop_id == shop_id).where(AvailableTime.date == day)
    ).all()

    applicable = []
    for record in records:
        staff = staff_ids_for(session, record.id)
        if not staff or (employee_id is not None and employee_id in staff):
            applicable.append(record)
    return applicable


def closure_for_day(
    session: Session, shop: Optional[Shop], shop_id: int, day: date, employee_id: Optional[int] = None
) -> Tuple[bool, Optional[str]]:
    """(closed, reason). No override record means the day is open."""
    if day.weekday() in closed_weekdays_for_shop(shop):
        return True, "Closed on this weekday"

    for record in day_overrides(session, shop_id, day, employee_id):
        if not record.is_available:
            return True, record.reason or "Closed"
    return False, None


def appointments_for_day(
    session: Session, shop_id: int, day: date, employee_id: Optional[int] = None
) -> List[Appointment]:
    """Bookings that occupy the day: the employee's at any shop, else the shop's."""
    stmt = select(Appointment).where(Appointment.date == day)
    if employee_id is not None:
        stmt = stmt.where(Appointment.employee_id == employee_id)
    else:
        stmt = stmt.where(Appointment.shop_id == shop_id)
    return session.exec(stmt.order_by(Appointment.time)).all()


def _grid_statuses(grid: List[str], slot_minutes: int, booked: List[Appointment]) -> List[SlotStatus]:
    statuses = []
    for index, slot in enumerate(grid, start=1):
        slot_start = to_minutes(parse_hhmm(slot))
        slot_end = slot_start + slot_minutes
        taken = any(
            overlaps(slot_start, slot_end, to_minutes(a.time), to_minutes(a.end_time))
            for a in booked
        )
        statuses.append(SlotStatus(id=index, time=slot, available=not taken))
    return statuses


def evaluate(session: Session, shop_id: int, employee_id, day: date) -> AvailabilityCheck:
    """Free/booked state of every grid slot for one shop, employee and day.

    Never raises on database trouble: the booking UI gets a fully open grid
    instead (fail-open). The conflict check at booking time stays strict.
    """
    grid = slot_grid_for_shop(None)
    resolved = None
    try:
        shop = session.get(Shop, shop_id)
        grid = slot_grid_for_shop(shop)
        resolved = resolve_employee_id(session, shop_id, employee_id)

        closed, reason = closure_for_day(session, shop, shop_id, day, resolved)
        if closed:
            logger.info(f"Shop {shop_id} closed on {day}: {reason}")
            return AvailabilityCheck(
                is_available=False,
                booked_time_slots=[],
                available_times=[SlotStatus(id=i, time=slot, available=False) for i, slot in enumerate(grid, start=1)],
                date=day,
                employee_id=resolved,
            )

        booked = appointments_for_day(session, shop_id, day, resolved)
        return AvailabilityCheck(
            is_available=True,
            booked_time_slots=[TimeRange(start=format_hhmm(a.time), end=format_hhmm(a.end_time)) for a in booked],
            available_times=_grid_statuses(grid, slot_minutes_for_shop(shop), booked),
            date=day,
            employee_id=resolved,
        )
    except SQLAlchemyError:
        logger.exception(f"Availability check failed for shop {shop_id} on {day}; returning an open grid")
        session.rollback()
        return open_grid(grid, day, resolved)


def open_grid(grid: List[str], day: date, employee_id: Optional[int] = None) -> AvailabilityCheck:
    return AvailabilityCheck(
        is_available=True,
        booked_time_slots=[],
        available_times=[SlotStatus(id=i, time=slot, available=True) for i, slot in enumerate(grid, start=1)],
        date=day,
        employee_id=employee_id,
    )


def check_from_query(
    session: Session, shop_id: Optional[str], employee_id: Optional[str], on_date: Optional[str]
) -> AvailabilityCheck:
    """Evaluate raw query parameters.

    Fail-open: a missing or malformed shop id or date gets the default open
    grid (for today when the date is unusable) instead of an error.
    """
    try:
        day = date.fromisoformat(on_date[:10]) if on_date else None
    except ValueError:
        day = None
    try:
        shop = int(shop_id) if shop_id else None
    except ValueError:
        shop = None

    if day is None or shop is None:
        logger.warning(f"Malformed availability check shopId={shop_id!r} date={on_date!r}; returning an open grid")
        return open_grid(slot_grid_for_shop(None), day or date.today())
    return evaluate(session, shop, employee_id, day)


def available_staff_for_date(session: Session, shop_id: int, day: date) -> List[StaffMember]:
    """Staff declared as working at the shop on this day."""
    users = session.exec(
        select(User)
        .join(AvailableTimeStaff, AvailableTimeStaff.user_id == User.id)
        .join(AvailableTime, AvailableTime.id == AvailableTimeStaff.available_time_id)
        .where(AvailableTime.shop_id == shop_id)
        .where(AvailableTime.date == day)
        .where(AvailableTime.is_available == True)  # noqa: E712
        .order_by(User.id)
    ).all()

    seen: Dict[int, StaffMember] = {}
    for user in users:
        seen.setdefault(user.id, StaffMember.model_validate(user))
    return list(seen.values())


def team_calendar(session: Session, shop_id: int, start_date: date, end_date: date) -> List[TeamCalendarEntry]:
    entries = []
    for employee in shop_staff(session, shop_id):
        availabilities = list_shop_availability(session, shop_id, start_date, end_date, employee.id)
        appointments = session.exec(
            select(Appointment)
            .where(Appointment.shop_id == shop_id)
            .where(Appointment.employee_id == employee.id)
            .where(Appointment.date >= start_date)
            .where(Appointment.date <= end_date)
            .order_by(Appointment.date, Appointment.time)
        ).all()
        entries.append(
            TeamCalendarEntry(
                employee=StaffMember.model_validate(employee),
                availabilities=[to_public(session, record) for record in availabilities],
                appointments=[AppointmentPublic.model_validate(a) for a in appointments],
            )
        )
    return entries

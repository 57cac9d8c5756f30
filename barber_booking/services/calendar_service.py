# barber_booking/services/calendar_service.py

import logging
from datetime import date, timedelta
from typing import Dict, List, Optional

from fastapi import HTTPException
from sqlalchemy import func
from sqlmodel import Session, select

from ..core import capacity_for_shop, closed_weekdays_for_shop
from ..models import Appointment, AvailableTime
from ..schemas import AvailabilityLevel, DaySummary
from .availability_service import staff_ids_for
from .shop_service import get_shop_or_404

logger = logging.getLogger(__name__)

MAX_RANGE_DAYS = 366


def date_range(start_date: date, end_date: date) -> List[date]:
    days = []
    current = start_date
    while current <= end_date:
        days.append(current)
        current += timedelta(days=1)
    return days


def availability_level(booked: int, capacity: int, closed: bool) -> AvailabilityLevel:
    """Badge shown on the booking calendar for one day."""
    if closed:
        return AvailabilityLevel.closed
    if capacity <= 0 or booked * 3 >= capacity * 2:
        return AvailabilityLevel.low
    if booked * 3 >= capacity:
        return AvailabilityLevel.medium
    return AvailabilityLevel.high


def _booked_counts(session: Session, shop_id: int, start_date: date, end_date: date) -> Dict[date, int]:
    rows = session.exec(
        select(Appointment.date, func.count(Appointment.id))
        .where(Appointment.shop_id == shop_id)
        .where(Appointment.date >= start_date)
        .where(Appointment.date <= end_date)
        .group_by(Appointment.date)
    ).all()
    return {day: count for day, count in rows}


def _closed_days(session: Session, shop_id: int, start_date: date, end_date: date) -> Dict[date, str]:
    """Days closed by a shop-wide override in the range."""
    records = session.exec(
        select(AvailableTime)
        .where(AvailableTime.shop_id == shop_id)
        .where(AvailableTime.date >= start_date)
        .where(AvailableTime.date <= end_date)
        .where(AvailableTime.is_available == False)  # noqa: E712
    ).all()
    return {
        record.date: record.reason or "Closed"
        for record in records
        if not staff_ids_for(session, record.id)
    }


def aggregate(
    session: Session,
    shop_id: int,
    start_date: date,
    end_date: date,
    capacity: Optional[int] = None,
) -> List[DaySummary]:
    """One summary per calendar day from start_date to end_date inclusive."""
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="endDate must not be before startDate")
    if (end_date - start_date).days >= MAX_RANGE_DAYS:
        raise HTTPException(status_code=400, detail=f"Date range cannot exceed {MAX_RANGE_DAYS} days")

    shop = get_shop_or_404(session, shop_id)
    daily_capacity = capacity_for_shop(shop, capacity)
    closed_weekdays = closed_weekdays_for_shop(shop)

    counts = _booked_counts(session, shop_id, start_date, end_date)
    closed_days = _closed_days(session, shop_id, start_date, end_date)

    summaries = []
    for day in date_range(start_date, end_date):
        closed = day.weekday() in closed_weekdays or day in closed_days
        booked = counts.get(day, 0)
        summaries.append(
            DaySummary(
                date=day,
                is_specifically_closed=closed,
                booked_appointments_count=booked,
                capacity=daily_capacity,
                availability_level=availability_level(booked, daily_capacity, closed),
            )
        )

    logger.debug(f"Aggregated {len(summaries)} days for shop {shop_id}")
    return summaries

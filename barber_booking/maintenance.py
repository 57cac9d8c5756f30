# barber_booking/maintenance.py
"""
One-time cleanup of appointments written by the old booking client.
Usage: python -m barber_booking.maintenance

That client stored the chosen barber inside notes as "EmployeeId:<id>".
This moves the id into Appointment.employee_id and strips the token.
"""
import logging
import re
from typing import Optional, Tuple

from sqlmodel import Session, select

from .db import engine, create_db_and_tables
from .models import Appointment

logger = logging.getLogger(__name__)

EMPLOYEE_TOKEN = re.compile(r"\s*EmployeeId:\s*(\S+)")


def split_employee_token(notes: Optional[str]) -> Tuple[Optional[int], Optional[str]]:
    """(employee id, notes without the token). Unparseable tokens are left in place."""
    if not notes:
        return None, notes
    match = EMPLOYEE_TOKEN.search(notes)
    if match is None:
        return None, notes
    try:
        employee_id = int(match.group(1))
    except ValueError:
        return None, notes

    cleaned = (notes[: match.start()] + notes[match.end():]).strip()
    return employee_id, cleaned or None


def _slot_owner(session: Session, appt: Appointment, employee_id: int) -> Optional[Appointment]:
    return session.exec(
        select(Appointment)
        .where(Appointment.shop_id == appt.shop_id)
        .where(Appointment.employee_id == employee_id)
        .where(Appointment.date == appt.date)
        .where(Appointment.time == appt.time)
        .where(Appointment.id != appt.id)
    ).first()


def migrate_legacy_employee_notes(session: Session) -> int:
    """Returns the number of appointments rewritten."""
    candidates = session.exec(select(Appointment).where(Appointment.notes.contains("EmployeeId:"))).all()
    logger.info(f"Found {len(candidates)} appointments with an employee token in notes")

    migrated = 0
    for appt in candidates:
        employee_id, cleaned = split_employee_token(appt.notes)
        if employee_id is None:
            logger.warning(f"Appointment {appt.id}: unreadable employee token, left as is")
            continue

        if appt.employee_id is None:
            clash = _slot_owner(session, appt, employee_id)
            if clash is not None:
                logger.warning(
                    f"Appointment {appt.id}: employee {employee_id} already holds that slot in appointment {clash.id}, skipped"
                )
                continue
            appt.employee_id = employee_id

        appt.notes = cleaned
        session.add(appt)
        # flush per row so the slot lookup above sees earlier rewrites
        session.flush()
        migrated += 1

    session.commit()
    logger.info(f"Migrated {migrated} appointments")
    return migrated


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    create_db_and_tables()
    with Session(engine) as session:
        migrate_legacy_employee_notes(session)

# barber_booking/deps.py

from fastapi import HTTPException

from .models import User


def require_role(user: User, *roles: str):
    if user.role not in roles:
        raise HTTPException(status_code=403, detail="Forbidden")

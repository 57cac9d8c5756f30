# barber_booking/auth.py

import logging
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt, JWTError
from sqlmodel import Session, select

from .config import AUTH_JWT_SECRET, AUTH_JWT_ALGORITHM, AUTH_JWT_AUDIENCE
from .db import get_session
from .models import User
from .schemas import UserRole

logger = logging.getLogger(__name__)

# auto_error=False so a missing header is a 401, not a 403
bearer_scheme = HTTPBearer(auto_error=False)

VALID_ROLES = {role.value for role in UserRole}


def decode_access_token(token: str) -> dict:
    try:
        if AUTH_JWT_AUDIENCE:
            return jwt.decode(token, AUTH_JWT_SECRET, algorithms=[AUTH_JWT_ALGORITHM], audience=AUTH_JWT_AUDIENCE)
        return jwt.decode(token, AUTH_JWT_SECRET, algorithms=[AUTH_JWT_ALGORITHM], options={"verify_aud": False})
    except JWTError as e:
        logger.warning(f"Rejected access token: {e}")
        raise HTTPException(
            status_code=401,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


def role_from_claims(claims: dict) -> str:
    metadata = claims.get("user_metadata") or {}
    for candidate in (metadata.get("role"), claims.get("role")):
        if candidate and str(candidate).upper() in VALID_ROLES:
            return str(candidate).upper()
    return UserRole.customer.value


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> User:
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    claims = decode_access_token(credentials.credentials)
    auth_id = claims.get("sub")
    if auth_id is None:
        raise HTTPException(
            status_code=401,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = session.exec(select(User).where(User.auth_id == auth_id)).first()
    if user is not None:
        return user

    # first sign-in: link a pre-registered account by email or create one
    email = claims.get("email") or f"{auth_id}@users.invalid"
    user = session.exec(select(User).where(User.email == email)).first()
    if user is None:
        metadata = claims.get("user_metadata") or {}
        user = User(
            auth_id=auth_id,
            email=email,
            first_name=metadata.get("first_name"),
            last_name=metadata.get("last_name"),
            phone=metadata.get("phone") or claims.get("phone"),
            role=role_from_claims(claims),
        )
        logger.info(f"Registering user {email} with role {user.role} on first sign-in")
    else:
        user.auth_id = auth_id
        logger.info(f"Linking existing user {email} to identity {auth_id}")

    session.add(user)
    session.commit()
    session.refresh(user)
    return user

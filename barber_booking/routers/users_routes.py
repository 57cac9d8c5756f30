# barber_booking/routers/users_routes.py

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select

from barber_booking.auth import get_current_user
from barber_booking.db import get_session
from barber_booking.deps import require_role
from barber_booking.models import User
from barber_booking.schemas import ShopPublic, StaffMember, UserPublic, UserRole, UserShops, UserUpdate, STAFF_ROLES
from barber_booking.services.shop_service import (
    employee_shops,
    get_shop_or_404,
    get_user_or_404,
    owned_shops,
    staff_directory,
)

router = APIRouter(
    tags=["users"],
)


@router.get("/me", response_model=UserPublic)
def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.get("/users", response_model=List[UserPublic])
def list_users(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    require_role(current_user, UserRole.admin.value)
    return session.exec(select(User).order_by(User.id)).all()


def _require_self_or_admin(current_user: User, user_id: int):
    if current_user.id != user_id and current_user.role != UserRole.admin.value:
        raise HTTPException(status_code=403, detail="Forbidden")


@router.get("/users/{user_id}", response_model=UserPublic)
def get_user(
    user_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    _require_self_or_admin(current_user, user_id)
    return get_user_or_404(session, user_id)


@router.patch("/users/{user_id}", response_model=UserPublic)
def update_user(
    user_id: int,
    changes: UserUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    _require_self_or_admin(current_user, user_id)
    user = get_user_or_404(session, user_id)

    updates = changes.model_dump(exclude_unset=True)
    if "role" in updates:
        # only admins promote or demote
        require_role(current_user, UserRole.admin.value)
        if updates["role"] is None:
            raise HTTPException(status_code=400, detail="role cannot be empty")
        updates["role"] = updates["role"].value

    for field, value in updates.items():
        setattr(user, field, value)

    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@router.get("/staff", response_model=List[StaffMember])
def list_staff(
    shop_id: Optional[int] = Query(default=None, alias="shopId"),
    session: Session = Depends(get_session),
):
    if shop_id is not None:
        get_shop_or_404(session, shop_id)
    return staff_directory(session, shop_id)


@router.get("/users/{user_id}/shops", response_model=UserShops)
def user_shops(
    user_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    _require_self_or_admin(current_user, user_id)
    user = get_user_or_404(session, user_id)

    result = UserShops(role=user.role)
    if user.role in (UserRole.barber.value, UserRole.admin.value):
        result.owned_shops = [ShopPublic.model_validate(shop) for shop in owned_shops(session, user.id)]
    if user.role in STAFF_ROLES:
        result.employee_shops = [ShopPublic.model_validate(shop) for shop in employee_shops(session, user.id)]
    return result

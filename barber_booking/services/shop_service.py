# barber_booking/services/shop_service.py
"""Shop lookups and the ownership/staff rules shared by the routers."""

from typing import List, Optional

from fastapi import HTTPException
from sqlmodel import Session, select

from ..models import Shop, ShopEmployee, User
from ..schemas import UserRole, STAFF_ROLES


def get_shop_or_404(session: Session, shop_id: int) -> Shop:
    shop = session.get(Shop, shop_id)
    if shop is None:
        raise HTTPException(status_code=404, detail="Shop not found")
    return shop


def get_user_or_404(session: Session, user_id: int) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def shop_staff(session: Session, shop_id: int) -> List[User]:
    return session.exec(
        select(User)
        .join(ShopEmployee, ShopEmployee.user_id == User.id)
        .where(ShopEmployee.shop_id == shop_id)
        .order_by(User.id)
    ).all()


def owned_shops(session: Session, user_id: int) -> List[Shop]:
    return session.exec(select(Shop).where(Shop.owner_id == user_id).order_by(Shop.id)).all()


def employee_shops(session: Session, user_id: int) -> List[Shop]:
    return session.exec(
        select(Shop)
        .join(ShopEmployee, ShopEmployee.shop_id == Shop.id)
        .where(ShopEmployee.user_id == user_id)
        .order_by(Shop.id)
    ).all()


def staff_directory(session: Session, shop_id: Optional[int] = None) -> List[User]:
    """BARBER and EMPLOYEE users, optionally only those working at one shop."""
    stmt = select(User).where(User.role.in_(STAFF_ROLES))
    if shop_id is not None:
        stmt = stmt.join(ShopEmployee, ShopEmployee.user_id == User.id).where(ShopEmployee.shop_id == shop_id)
    return session.exec(stmt.order_by(User.first_name, User.id)).all()


def staff_shop_ids(session: Session, user: User) -> List[int]:
    """Shops a staff member owns or works at."""
    owned = session.exec(select(Shop.id).where(Shop.owner_id == user.id)).all()
    linked = session.exec(select(ShopEmployee.shop_id).where(ShopEmployee.user_id == user.id)).all()
    return sorted(set(owned) | set(linked))


def is_shop_staff(session: Session, shop_id: int, user_id: int) -> bool:
    return session.get(ShopEmployee, (shop_id, user_id)) is not None


def can_manage_shop(user: User, shop: Shop) -> bool:
    return user.role == UserRole.admin.value or shop.owner_id == user.id


def require_shop_manager(user: User, shop: Shop):
    if not can_manage_shop(user, shop):
        raise HTTPException(status_code=403, detail="Only the shop owner or an admin can do this")


def ensure_staff_user(session: Session, user_id: Optional[int], shop: Optional[Shop] = None) -> Optional[User]:
    """The user must exist and be schedulable (EMPLOYEE or BARBER).

    With a shop, they must also own it or be linked to it.
    """
    if user_id is None:
        return None
    user = session.get(User, user_id)
    if user is None or user.role not in STAFF_ROLES:
        raise HTTPException(status_code=400, detail=f"User {user_id} is not a staff member")
    if shop is not None and shop.owner_id != user.id and not is_shop_staff(session, shop.id, user.id):
        raise HTTPException(status_code=400, detail=f"User {user_id} does not work at shop {shop.id}")
    return user

# barber_booking/routers/shops_routes.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from barber_booking.auth import get_current_user
from barber_booking.core import build_slot_grid
from barber_booking.db import get_session
from barber_booking.deps import require_role
from barber_booking.models import Service, Shop, ShopEmployee, User
from barber_booking.schemas import (
    EmployeeAdd,
    MessageResponse,
    ReviewPublic,
    ServiceCreate,
    ServicePublic,
    ShopCreate,
    ShopPublic,
    ShopUpdate,
    StaffMember,
    UserRole,
)
from barber_booking.services.appointment_service import list_shop_reviews
from barber_booking.services.shop_service import (
    ensure_staff_user,
    get_shop_or_404,
    is_shop_staff,
    require_shop_manager,
    shop_staff,
)

router = APIRouter(
    tags=["shops"],
)


def _validate_hours(shop: Shop):
    if shop.closed_weekdays is not None:
        for day in shop.closed_weekdays:
            if not (0 <= day <= 6):
                raise HTTPException(status_code=400, detail="closedWeekdays must be integers between 0 and 6")
        if len(shop.closed_weekdays) != len(set(shop.closed_weekdays)):
            raise HTTPException(status_code=400, detail="closedWeekdays cannot contain duplicates")

    if shop.opening_time and shop.closing_time and shop.opening_time >= shop.closing_time:
        raise HTTPException(status_code=400, detail="openingTime must be before closingTime")
    if not build_slot_grid(shop.opening_time, shop.closing_time, shop.slot_minutes):
        raise HTTPException(status_code=400, detail="Working hours leave no room for a single slot")


@router.get("/shops", response_model=List[ShopPublic])
def list_shops(session: Session = Depends(get_session)):
    return session.exec(select(Shop).order_by(Shop.id)).all()


@router.post("/shops", response_model=ShopPublic, status_code=201)
def create_shop(
    shop: ShopCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    require_role(current_user, UserRole.barber.value, UserRole.admin.value)

    db_shop = Shop(owner_id=current_user.id, **shop.model_dump())
    _validate_hours(db_shop)
    session.add(db_shop)
    session.flush()

    # the owning barber cuts hair too
    if current_user.role == UserRole.barber.value:
        session.add(ShopEmployee(shop_id=db_shop.id, user_id=current_user.id))

    session.commit()
    session.refresh(db_shop)
    return db_shop


@router.get("/shops/{shop_id}", response_model=ShopPublic)
def get_shop(shop_id: int, session: Session = Depends(get_session)):
    return get_shop_or_404(session, shop_id)


@router.patch("/shops/{shop_id}", response_model=ShopPublic)
def update_shop(
    shop_id: int,
    changes: ShopUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    shop = get_shop_or_404(session, shop_id)
    require_shop_manager(current_user, shop)

    for field, value in changes.model_dump(exclude_unset=True).items():
        setattr(shop, field, value)
    _validate_hours(shop)

    session.add(shop)
    session.commit()
    session.refresh(shop)
    return shop


# ---------- staff ----------

@router.get("/shops/{shop_id}/employees", response_model=List[StaffMember])
def list_employees(shop_id: int, session: Session = Depends(get_session)):
    get_shop_or_404(session, shop_id)
    return shop_staff(session, shop_id)


@router.post("/shops/{shop_id}/employees", response_model=StaffMember, status_code=201)
def add_employee(
    shop_id: int,
    body: EmployeeAdd,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    shop = get_shop_or_404(session, shop_id)
    require_shop_manager(current_user, shop)

    employee = ensure_staff_user(session, body.user_id)
    if is_shop_staff(session, shop_id, employee.id):
        raise HTTPException(status_code=409, detail="User already works at this shop")

    session.add(ShopEmployee(shop_id=shop_id, user_id=employee.id))
    session.commit()
    return employee


@router.delete("/shops/{shop_id}/employees/{employee_id}", response_model=MessageResponse)
def remove_employee(
    shop_id: int,
    employee_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    shop = get_shop_or_404(session, shop_id)
    require_shop_manager(current_user, shop)

    link = session.get(ShopEmployee, (shop_id, employee_id))
    if link is None:
        raise HTTPException(status_code=404, detail="Employee not found at this shop")

    session.delete(link)
    session.commit()
    return {"message": "Employee removed"}


# ---------- services ----------

@router.get("/services", response_model=List[ServicePublic])
def list_all_services(session: Session = Depends(get_session)):
    return session.exec(select(Service).order_by(Service.shop_id, Service.id)).all()


@router.get("/shops/{shop_id}/services", response_model=List[ServicePublic])
def list_services(shop_id: int, session: Session = Depends(get_session)):
    get_shop_or_404(session, shop_id)
    return session.exec(select(Service).where(Service.shop_id == shop_id).order_by(Service.id)).all()


@router.post("/shops/{shop_id}/services", response_model=ServicePublic, status_code=201)
def create_service(
    shop_id: int,
    service: ServiceCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    shop = get_shop_or_404(session, shop_id)
    require_shop_manager(current_user, shop)

    db_service = Service(shop_id=shop_id, **service.model_dump())
    session.add(db_service)
    session.commit()
    session.refresh(db_service)
    return db_service


@router.get("/shops/{shop_id}/reviews", response_model=List[ReviewPublic])
def list_reviews(shop_id: int, session: Session = Depends(get_session)):
    get_shop_or_404(session, shop_id)
    return list_shop_reviews(session, shop_id)

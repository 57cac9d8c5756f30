# barber_booking/schemas.py

from enum import Enum
from datetime import date as Date, time as Time
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

# times travel as "HH:MM" on the wire
HHMM = Annotated[Time, PlainSerializer(lambda t: t.strftime("%H:%M"), return_type=str, when_used="json")]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class UserRole(str, Enum):
    customer = "CUSTOMER"
    employee = "EMPLOYEE"
    barber = "BARBER"
    admin = "ADMIN"


STAFF_ROLES = (UserRole.employee.value, UserRole.barber.value)


class AvailabilityLevel(str, Enum):
    closed = "closed"
    high = "high"
    medium = "medium"
    low = "low"


class MessageResponse(BaseModel):
    message: str


# users

class UserPublic(CamelModel):
    id: int
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    role: UserRole


class UserUpdate(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[UserRole] = None


class StaffMember(CamelModel):
    id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None


# shops and services

class ShopCreate(CamelModel):
    name: str = Field(min_length=1)
    address: Optional[str] = None
    phone: Optional[str] = None
    opening_time: Optional[HHMM] = None
    closing_time: Optional[HHMM] = None
    slot_minutes: Optional[int] = Field(default=None, gt=0, le=480)
    closed_weekdays: Optional[List[int]] = None  # 0=Mon, 1=Tues....
    daily_capacity: Optional[int] = Field(default=None, gt=0)


class ShopUpdate(CamelModel):
    name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    opening_time: Optional[HHMM] = None
    closing_time: Optional[HHMM] = None
    slot_minutes: Optional[int] = Field(default=None, gt=0, le=480)
    closed_weekdays: Optional[List[int]] = None
    daily_capacity: Optional[int] = Field(default=None, gt=0)


class ShopPublic(ShopCreate):
    id: int
    owner_id: Optional[int] = None


class EmployeeAdd(CamelModel):
    user_id: int


class UserShops(CamelModel):
    role: UserRole
    owned_shops: List[ShopPublic] = []
    employee_shops: List[ShopPublic] = []


class ServiceCreate(CamelModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    duration: Optional[int] = Field(default=None, gt=0)


class ServicePublic(ServiceCreate):
    id: int
    shop_id: int


# availability overrides

class AvailabilityCreate(CamelModel):
    shop_id: int
    date: Date
    is_available: bool = True
    time_slots: Optional[Any] = None
    reason: Optional[str] = None
    employee_ids: List[int] = []


class AvailabilityUpdate(CamelModel):
    date: Optional[Date] = None
    is_available: Optional[bool] = None
    time_slots: Optional[Any] = None
    reason: Optional[str] = None
    employee_ids: Optional[List[int]] = None


class AvailabilityPublic(CamelModel):
    id: int
    shop_id: int
    date: Date
    is_available: bool
    time_slots: Optional[Any] = None
    reason: Optional[str] = None
    employee_ids: List[int] = []


class BulkAvailabilityResult(CamelModel):
    success: bool = True
    count: int
    message: str


class TimeRange(CamelModel):
    start: str
    end: str


class SlotStatus(CamelModel):
    id: int
    time: str
    available: bool


class AvailabilityCheck(CamelModel):
    is_available: bool
    booked_time_slots: List[TimeRange]
    available_times: List[SlotStatus]
    date: Date
    employee_id: Optional[int] = None


class StaffForDate(CamelModel):
    date: Date
    available_employees: List[StaffMember]


class DaySummary(CamelModel):
    date: Date
    is_specifically_closed: bool
    booked_appointments_count: int
    capacity: int
    availability_level: AvailabilityLevel


# appointments

class AppointmentCreate(CamelModel):
    shop_id: int
    date: Date
    time: HHMM
    end_time: HHMM
    notes: Optional[str] = None
    employee_id: Optional[int] = None
    user_id: Optional[int] = None  # staff/admin booking on behalf of a customer


class AppointmentUpdate(CamelModel):
    date: Optional[Date] = None
    time: Optional[HHMM] = None
    end_time: Optional[HHMM] = None
    notes: Optional[str] = None
    status: Optional[str] = None
    employee_id: Optional[int] = None


class AppointmentPublic(CamelModel):
    id: int
    shop_id: int
    user_id: int
    employee_id: Optional[int] = None
    date: Date
    time: HHMM
    end_time: HHMM
    notes: Optional[str] = None
    status: str
    review_id: Optional[int] = None


class AppointmentStats(CamelModel):
    total: int
    upcoming: int
    completed: int


class TeamCalendarEntry(CamelModel):
    employee: StaffMember
    availabilities: List[AvailabilityPublic]
    appointments: List[AppointmentPublic]


class ReviewCreate(CamelModel):
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = None


class ReviewPublic(ReviewCreate):
    id: int
    shop_id: int
    user_id: Optional[int] = None

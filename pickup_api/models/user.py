from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from pickup_api.models.pickup_location import PickupLocationResponse


class UserRole(str, Enum):
    USER = "user"
    RIDER = "rider"
    RESTAURANT = "restaurant"
    ADMIN = "admin"  # super admin
    PICKUP_ADMIN = "pickup_admin"


class AdminSummary(BaseModel):
    """
    Minimal identity of a pickup location admin.
    """

    id: str
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    email: str

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class AssignedUserSummary(AdminSummary):
    """
    User an existing pickup location was assigned to. Any user can be
    assigned, including phone-only accounts without an email or name.
    """

    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    email: Optional[str] = None
    phone: Optional[str] = None
    role: UserRole
    pickup_location_id: Optional[str] = Field(default=None, alias="pickupLocationId")


class PickupLocationWithAdmin(BaseModel):
    pickup_location: PickupLocationResponse = Field(alias="pickupLocation")
    admin: AdminSummary

    model_config = ConfigDict(populate_by_name=True)


class PickupLocationAssignment(BaseModel):
    pickup_location: PickupLocationResponse = Field(alias="pickupLocation")
    user: AssignedUserSummary

    model_config = ConfigDict(populate_by_name=True)

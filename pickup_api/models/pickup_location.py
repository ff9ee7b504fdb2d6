from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class PickupLocation(BaseModel):
    """
    Core pickup location fields as supplied by clients.
    """

    name: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    region_id: str = Field(..., alias="regionId")
    is_active: bool = Field(default=True, alias="isActive")

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class PickupLocationCreate(PickupLocation):
    """
    Input model for creating a pickup location for an existing admin.
    """
    pass


class PickupLocationWithAdminCreate(PickupLocation):
    """
    Input model for creating a pickup location together with its admin user.
    """

    admin_first_name: str = Field(..., min_length=1, alias="adminFirstName")
    admin_last_name: str = Field(..., min_length=1, alias="adminLastName")
    admin_email: EmailStr = Field(..., alias="adminEmail")
    admin_phone: Optional[str] = Field(default=None, alias="adminPhone")

    def location_fields(self) -> PickupLocation:
        return PickupLocation.model_validate(
            self.model_dump(include=set(PickupLocation.model_fields))
        )


class PickupLocationUpdate(BaseModel):
    """
    Fields a client can provide to update a pickup location.
    Latitude and longitude must be supplied together.
    """

    name: Optional[str] = Field(default=None, min_length=1)
    address: Optional[str] = Field(default=None, min_length=1)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    region_id: Optional[str] = Field(default=None, alias="regionId")
    is_active: Optional[bool] = Field(default=None, alias="isActive")

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class PickupLocationResponse(BaseModel):
    """
    Public shape of a pickup location: the stored point flattened back into
    latitude/longitude and the region reference resolved to its name.
    """

    id: str
    name: str
    address: str
    latitude: float
    longitude: float
    region_id: str = Field(alias="regionId")
    region_name: Optional[str] = Field(default=None, alias="regionName")
    is_active: bool = Field(alias="isActive")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class PickupLocationList(BaseModel):
    pickup_locations: List[PickupLocationResponse] = Field(alias="pickupLocations")

    model_config = ConfigDict(populate_by_name=True)

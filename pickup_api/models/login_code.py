from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class OtpPurpose(str, Enum):
    REGISTRATION = "registration"
    PASSWORD_RESET = "password_reset"
    EMAIL_VERIFICATION = "email_verification"
    ADMIN_LOGIN = "admin_login"


class LoginCode(BaseModel):
    """
    One-time login code record as stored in Cosmos DB.
    """

    id: str
    email: str  # partition key
    code: str
    purpose: OtpPurpose
    attempts: int = 0
    is_verified: bool = Field(default=False, alias="isVerified")
    expires_at: datetime = Field(alias="expiresAt")
    created_at: datetime = Field(alias="createdAt")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

from typing import Protocol

from pickup_api.logging_config import get_child_logger, mask_email
from pickup_api.models.login_code import OtpPurpose

logger = get_child_logger("notifications")

PURPOSE_MESSAGES = {
    OtpPurpose.REGISTRATION: "Complete your registration",
    OtpPurpose.PASSWORD_RESET: "Reset your password",
    OtpPurpose.EMAIL_VERIFICATION: "Verify your email address",
    OtpPurpose.ADMIN_LOGIN: "Log in to your admin dashboard",
}


class LoginCodeNotifier(Protocol):
    async def send_login_code(
        self, to: str, code: str, purpose: OtpPurpose, expires_in_minutes: int
    ) -> None:
        ...


class LogOnlyLoginCodeNotifier:
    """
    LoginCodeNotifier that logs instead of sending email.

    Used when no mail transport is configured. The code itself is never
    written to the log.
    """

    async def send_login_code(
        self, to: str, code: str, purpose: OtpPurpose, expires_in_minutes: int
    ) -> None:
        logger.info(
            "Login code notification: would send to %s (%s, expires in %d minutes)",
            mask_email(to),
            PURPOSE_MESSAGES.get(purpose, "Verify your account"),
            expires_in_minutes,
        )

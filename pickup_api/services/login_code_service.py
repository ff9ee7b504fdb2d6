import secrets
from datetime import timedelta

from azure.cosmos.aio import ContainerProxy

from pickup_api.config import ADMIN_LOGIN_CODE_EXPIRY_MINUTES, ADMIN_LOGIN_CODE_LENGTH
from pickup_api.crud.common import utc_now
from pickup_api.crud.login_code_crud import invalidate_login_codes, store_login_code
from pickup_api.logging_config import get_child_logger, mask_email, tracer
from pickup_api.models.login_code import LoginCode, OtpPurpose
from pickup_api.notifications import LoginCodeNotifier

logger = get_child_logger("services.login_code")


def generate_numeric_code(length: int = ADMIN_LOGIN_CODE_LENGTH) -> str:
    """Random numeric code of exactly `length` digits (no leading zero)."""
    low = 10 ** (length - 1)
    return str(low + secrets.randbelow(9 * low))


class LoginCodeIssuer:
    """Issues one-time login codes and hands them to a notifier."""

    def __init__(
        self,
        container: ContainerProxy,
        notifier: LoginCodeNotifier,
        expiry_minutes: int = ADMIN_LOGIN_CODE_EXPIRY_MINUTES,
    ) -> None:
        self.container = container
        self.notifier = notifier
        self.expiry_minutes = expiry_minutes

    async def issue_admin_login_code(self, email: str) -> LoginCode:
        """
        Replace any outstanding admin login code for `email` with a fresh one
        and dispatch it. Notifier failures propagate to the caller.
        """
        purpose = OtpPurpose.ADMIN_LOGIN
        with tracer.start_as_current_span("issue_admin_login_code"):
            await invalidate_login_codes(self.container, email, purpose)

            code = generate_numeric_code()
            expires_at = utc_now() + timedelta(minutes=self.expiry_minutes)
            record = await store_login_code(
                self.container, email, code, purpose, expires_at
            )

            await self.notifier.send_login_code(
                to=email,
                code=code,
                purpose=purpose,
                expires_in_minutes=self.expiry_minutes,
            )
            logger.info(
                "Admin login code issued",
                extra={"email": mask_email(email), "expires_at": expires_at.isoformat()},
            )
            return LoginCode.model_validate(record)

from azure.cosmos.exceptions import CosmosHttpResponseError
from azure.cosmos.aio import ContainerProxy
import uuid
from datetime import datetime
from typing import Any, Dict

from pickup_api.crud.common import utc_now_iso
from pickup_api.exceptions import DatabaseError
from pickup_api.logging_config import get_child_logger, mask_email
from pickup_api.models.login_code import OtpPurpose

logger = get_child_logger("crud.login_code")

OUTSTANDING_CODES_QUERY = (
    "SELECT * FROM c WHERE c.email = @email AND c.purpose = @purpose "
    "AND c.isVerified = false AND c.expiresAt > @now"
)

_LOGIN_CODE_NAMESPACE = uuid.UUID("6f1c3b0e-4d52-4f0a-9a57-2b8e0d7c9e41")


def login_code_id(email: str, purpose: OtpPurpose) -> str:
    """Deterministic document ID for the (email, purpose) pair."""
    return str(uuid.uuid5(_LOGIN_CODE_NAMESPACE, f"{purpose.value}:{email}"))


async def invalidate_login_codes(
    container: ContainerProxy, email: str, purpose: OtpPurpose
) -> int:
    """
    Expire every outstanding unverified code for (email, purpose).

    Returns:
        Number of codes expired
    """
    now = utc_now_iso()
    params = [
        {"name": "@email", "value": email},
        {"name": "@purpose", "value": purpose.value},
        {"name": "@now", "value": now},
    ]

    try:
        outstanding = [
            item
            async for item in container.query_items(
                query=OUTSTANDING_CODES_QUERY, parameters=params, partition_key=email
            )
        ]
        for item in outstanding:
            await container.patch_item(
                item=item["id"],
                partition_key=email,
                patch_operations=[{"op": "set", "path": "/expiresAt", "value": now}],
            )
    except CosmosHttpResponseError as e:
        logger.error(
            f"Cosmos DB error invalidating login codes: Status Code {e.status_code}, Message: {e.message}",
            exc_info=True,
        )
        raise DatabaseError(
            f"Cosmos DB error invalidating login codes: Status Code {e.status_code}, Message: {e.message}",
            original_exception=e,
        ) from e

    if outstanding:
        logger.info(
            f"Invalidated {len(outstanding)} login codes",
            extra={"email": mask_email(email), "purpose": purpose.value},
        )
    return len(outstanding)


async def store_login_code(
    container: ContainerProxy,
    email: str,
    code: str,
    purpose: OtpPurpose,
    expires_at: datetime,
) -> Dict[str, Any]:
    """
    Upsert the login code for (email, purpose).

    The document ID is derived from the pair, so retrying an issuance
    replaces the previous record instead of adding another one.
    """
    data = {
        "id": login_code_id(email, purpose),
        "email": email,
        "code": code,
        "purpose": purpose.value,
        "attempts": 0,
        "isVerified": False,
        "expiresAt": expires_at.isoformat(),
        "createdAt": utc_now_iso(),
    }

    try:
        return await container.upsert_item(body=data)
    except CosmosHttpResponseError as e:
        logger.error(
            f"Cosmos DB error storing login code: Status Code {e.status_code}, Message: {e.message}",
            exc_info=True,
        )
        raise DatabaseError(
            f"Cosmos DB error storing login code: Status Code {e.status_code}, Message: {e.message}",
            original_exception=e,
        ) from e

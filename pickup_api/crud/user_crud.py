from azure.cosmos.exceptions import CosmosHttpResponseError
from azure.cosmos.aio import ContainerProxy
import uuid
from typing import Any, Dict, Optional

from pickup_api.crud.common import utc_now_iso, validate_id
from pickup_api.exceptions import DatabaseError
from pickup_api.logging_config import get_child_logger, mask_email, tracer

logger = get_child_logger("crud.user")

_NOT_DELETED = "(NOT IS_DEFINED(c.deletedAt) OR IS_NULL(c.deletedAt))"

USER_BY_EMAIL_QUERY = f"SELECT * FROM c WHERE c.email = @email AND {_NOT_DELETED}"
USER_BY_PICKUP_LOCATION_QUERY = (
    f"SELECT * FROM c WHERE c.pickupLocationId = @pickupLocationId AND {_NOT_DELETED}"
)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _is_deleted(user: Dict[str, Any]) -> bool:
    return user.get("deletedAt") is not None


async def _query_first(
    container: ContainerProxy, query: str, parameters: list
) -> Optional[Dict[str, Any]]:
    try:
        async for item in container.query_items(query=query, parameters=parameters):
            return item
        return None
    except CosmosHttpResponseError as e:
        logger.error(
            f"Cosmos DB error during user lookup: Status Code {e.status_code}, Message: {e.message}",
            exc_info=True,
        )
        raise DatabaseError(
            f"Cosmos DB error during user lookup: Status Code {e.status_code}, Message: {e.message}",
            original_exception=e,
        ) from e


async def find_user_by_email(
    container: ContainerProxy, email: str
) -> Optional[Dict[str, Any]]:
    return await _query_first(
        container,
        USER_BY_EMAIL_QUERY,
        [{"name": "@email", "value": normalize_email(email)}],
    )


async def find_user_by_pickup_location_id(
    container: ContainerProxy, pickup_location_id: str
) -> Optional[Dict[str, Any]]:
    return await _query_first(
        container,
        USER_BY_PICKUP_LOCATION_QUERY,
        [{"name": "@pickupLocationId", "value": pickup_location_id}],
    )


async def find_user_by_id(
    container: ContainerProxy, user_id: str
) -> Optional[Dict[str, Any]]:
    """
    Retrieve a user by ID. Soft-deleted users are treated as absent.

    Raises:
        InvalidIdError: If the ID is malformed
        DatabaseError: If a database operation fails
    """
    validate_id(user_id, "userId")

    try:
        user = await container.read_item(item=user_id, partition_key=user_id)
    except CosmosHttpResponseError as e:
        if e.status_code == 404:
            return None
        logger.error(
            f"Cosmos DB error retrieving user {user_id}: Status {e.status_code}, Msg: {e.message}",
            exc_info=True,
        )
        raise DatabaseError(
            f"Cosmos DB error retrieving user {user_id}: Status {e.status_code}, Msg: {e.message}",
            original_exception=e,
        ) from e

    return None if _is_deleted(user) else user


async def create_user(
    container: ContainerProxy,
    fields: Dict[str, Any],
    user_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Create a user document.

    Args:
        container: Cosmos DB container client
        fields: Stored (camelCase) user fields
        user_id: Pre-generated ID, for callers that reference the user
            before it is written

    Returns:
        The stored user document
    """
    with tracer.start_as_current_span("create_user") as span:
        now = utc_now_iso()
        data = dict(fields)
        data["id"] = user_id or str(uuid.uuid4())
        data["email"] = normalize_email(data["email"])
        data.setdefault("isActive", True)
        data["createdAt"] = now
        data["updatedAt"] = now

        span.set_attribute("user.id", data["id"])
        logger.info(
            "Creating user",
            extra={"user_id": data["id"], "email": mask_email(data["email"])},
        )

        try:
            return await container.create_item(body=data)
        except CosmosHttpResponseError as e:
            span.set_attribute("error", True)
            span.set_attribute("error.status_code", e.status_code)
            logger.error(
                "Cosmos DB error during user creation",
                extra={"status_code": e.status_code, "error_message": e.message, "user_id": data["id"]},
                exc_info=True,
            )
            raise DatabaseError(
                f"Cosmos DB error during user creation: Status Code {e.status_code}, Message: {e.message}",
                original_exception=e,
            ) from e


async def update_user(
    container: ContainerProxy,
    user_id: str,
    fields: Dict[str, Any],
) -> Optional[Dict[str, Any]]:
    """
    Set the given stored fields on a user in a single patch.

    Returns:
        The updated user document, or None if the user does not exist
    """
    validate_id(user_id, "userId")

    patch_operations = [
        {"op": "set", "path": f"/{key}", "value": value}
        for key, value in fields.items()
        if key not in ("id", "_etag")
    ]
    patch_operations.append({"op": "set", "path": "/updatedAt", "value": utc_now_iso()})

    try:
        user = await container.patch_item(
            item=user_id,
            partition_key=user_id,
            patch_operations=patch_operations,
        )
    except CosmosHttpResponseError as e:
        if e.status_code == 404:
            return None
        logger.error(
            f"Cosmos DB error during user update: Status Code {e.status_code}, Message: {e.message}",
            exc_info=True,
        )
        raise DatabaseError(
            f"Cosmos DB error during user update: Status Code {e.status_code}, Message: {e.message}",
            original_exception=e,
        ) from e

    return None if _is_deleted(user) else user

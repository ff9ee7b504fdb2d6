from azure.core import MatchConditions
from azure.cosmos.exceptions import CosmosHttpResponseError
from azure.cosmos.aio import ContainerProxy
import uuid
from typing import Any, Dict, List, Optional

from pickup_api.config import STORE_DEFAULT_MAX_DISTANCE_METERS
from pickup_api.crud.common import utc_now_iso, validate_id
from pickup_api.exceptions import (
    DatabaseError,
    PickupLocationNotFoundError,
    PreconditionFailedError,
)
from pickup_api.geo import GeoPoint, distance_meters
from pickup_api.logging_config import get_child_logger, tracer
from pickup_api.models.pickup_location import PickupLocation

logger = get_child_logger("crud.pickup_location")

LIST_PICKUP_LOCATIONS_QUERY = "SELECT * FROM c ORDER BY c.name ASC"

# Cosmos DB cannot ORDER BY a computed distance, so the query only bounds the
# candidate set; ranking happens in find_nearest_pickup_location.
NEAREST_CANDIDATES_QUERY = (
    "SELECT * FROM c WHERE c.isActive = true "
    "AND ST_DISTANCE(c.location, @point) <= @maxDistance"
)


async def create_pickup_location(
    container: ContainerProxy,
    location: PickupLocation,
    admin_user_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Create a new pickup location document.

    Only the format of the region reference is checked; whether the region
    exists is the region service's concern.

    Args:
        container: Cosmos DB container client
        location: Pickup location fields
        admin_user_id: User expected to manage the location, if already known

    Returns:
        The stored document including Cosmos DB system fields

    Raises:
        InvalidIdError: If regionId is not a valid identifier
        DatabaseError: If a database operation fails
    """
    validate_id(location.region_id, "regionId")

    with tracer.start_as_current_span("create_pickup_location") as span:
        now = utc_now_iso()
        data = {
            "id": str(uuid.uuid4()),
            "name": location.name,
            "address": location.address,
            "location": GeoPoint.from_lat_lng(
                location.latitude, location.longitude
            ).model_dump(mode="json"),
            "regionId": location.region_id,
            "isActive": location.is_active,
            "adminUserId": admin_user_id,
            "createdAt": now,
            "updatedAt": now,
        }

        span.set_attribute("pickup_location.id", data["id"])
        span.set_attribute("pickup_location.region_id", data["regionId"])

        logger.info(
            "Creating pickup location",
            extra={"pickup_location_id": data["id"], "region_id": data["regionId"]},
        )

        try:
            return await container.create_item(body=data)
        except CosmosHttpResponseError as e:
            span.set_attribute("error", True)
            span.set_attribute("error.type", "cosmos_http_error")
            span.set_attribute("error.status_code", e.status_code)

            logger.error(
                "Cosmos DB error during pickup location creation",
                extra={
                    "status_code": e.status_code,
                    "error_message": e.message,
                    "pickup_location_id": data["id"],
                },
                exc_info=True,
            )
            raise DatabaseError(
                f"Cosmos DB error during pickup location creation: Status Code {e.status_code}, Message: {e.message}",
                original_exception=e,
            ) from e


async def list_pickup_locations(container: ContainerProxy) -> List[Dict[str, Any]]:
    """
    Retrieve every pickup location ordered by name.
    """
    with tracer.start_as_current_span("list_pickup_locations") as span:
        try:
            items = [
                item
                async for item in container.query_items(
                    query=LIST_PICKUP_LOCATIONS_QUERY
                )
            ]
        except CosmosHttpResponseError as e:
            span.set_attribute("error", True)
            span.set_attribute("error.status_code", e.status_code)
            logger.error(
                "Cosmos DB error during pickup location listing",
                extra={"status_code": e.status_code, "error_message": e.message},
                exc_info=True,
            )
            raise DatabaseError(
                f"Cosmos DB error during pickup location listing: Status Code {e.status_code}, Message: {e.message}",
                original_exception=e,
            ) from e

        span.set_attribute("pickup_locations.count", len(items))
        logger.info(f"Retrieved {len(items)} pickup locations", extra={"count": len(items)})
        return items


async def get_pickup_location_by_id(
    container: ContainerProxy, pickup_location_id: str
) -> Optional[Dict[str, Any]]:
    """
    Retrieve a pickup location by its ID.

    Returns:
        The stored document, or None if it does not exist

    Raises:
        InvalidIdError: If the ID is malformed
        DatabaseError: If a database operation fails
    """
    validate_id(pickup_location_id, "pickupLocationId")

    with tracer.start_as_current_span("get_pickup_location_by_id") as span:
        span.set_attribute("pickup_location.id", pickup_location_id)
        try:
            return await container.read_item(
                item=pickup_location_id, partition_key=pickup_location_id
            )
        except CosmosHttpResponseError as e:
            if e.status_code == 404:
                logger.info(
                    "Pickup location not found",
                    extra={"pickup_location_id": pickup_location_id},
                )
                return None

            span.set_attribute("error", True)
            span.set_attribute("error.status_code", e.status_code)
            logger.error(
                "Cosmos DB error retrieving pickup location",
                extra={
                    "pickup_location_id": pickup_location_id,
                    "status_code": e.status_code,
                    "error_message": e.message,
                },
                exc_info=True,
            )
            raise DatabaseError(
                f"Cosmos DB error retrieving pickup location {pickup_location_id}: Status {e.status_code}, Msg: {e.message}",
                original_exception=e,
            ) from e


async def find_nearest_pickup_location(
    container: ContainerProxy,
    latitude: float,
    longitude: float,
    max_distance_meters: int = STORE_DEFAULT_MAX_DISTANCE_METERS,
) -> Optional[Dict[str, Any]]:
    """
    Find the closest active pickup location within max_distance_meters.

    Ties on distance are broken by name, then by ID.

    Returns:
        The nearest active document, or None if none lies within range
    """
    with tracer.start_as_current_span("find_nearest_pickup_location") as span:
        span.set_attribute("query.latitude", latitude)
        span.set_attribute("query.longitude", longitude)
        span.set_attribute("query.max_distance_meters", max_distance_meters)

        point = GeoPoint.from_lat_lng(latitude, longitude).model_dump(mode="json")
        params = [
            {"name": "@point", "value": point},
            {"name": "@maxDistance", "value": max_distance_meters},
        ]

        try:
            candidates = [
                item
                async for item in container.query_items(
                    query=NEAREST_CANDIDATES_QUERY, parameters=params
                )
            ]
        except CosmosHttpResponseError as e:
            span.set_attribute("error", True)
            span.set_attribute("error.status_code", e.status_code)
            logger.error(
                "Cosmos DB error during nearest pickup location lookup",
                extra={"status_code": e.status_code, "error_message": e.message},
                exc_info=True,
            )
            raise DatabaseError(
                f"Cosmos DB error during nearest pickup location lookup: Status Code {e.status_code}, Message: {e.message}",
                original_exception=e,
            ) from e

        span.set_attribute("candidates.count", len(candidates))
        if not candidates:
            return None

        def rank(item: Dict[str, Any]):
            stored = GeoPoint.model_validate(item["location"])
            distance = distance_meters(
                latitude, longitude, stored.latitude, stored.longitude
            )
            return (distance, item.get("name", ""), item["id"])

        nearest = min(candidates, key=rank)
        span.set_attribute("pickup_location.id", nearest["id"])
        return nearest


async def update_pickup_location(
    container: ContainerProxy,
    pickup_location_id: str,
    fields: Dict[str, Any],
) -> Optional[Dict[str, Any]]:
    """
    Apply a partial update to a pickup location.

    Only keys present in `fields` are written. The point is rewritten only
    when both latitude and longitude are present; callers enforce the
    pairing rule.

    Returns:
        The updated document, or None if it no longer exists
    """
    validate_id(pickup_location_id, "pickupLocationId")

    patch_operations = []
    for key, path in (("name", "/name"), ("address", "/address"), ("is_active", "/isActive")):
        if fields.get(key) is not None:
            patch_operations.append({"op": "set", "path": path, "value": fields[key]})

    if fields.get("region_id") is not None:
        validate_id(fields["region_id"], "regionId")
        patch_operations.append(
            {"op": "set", "path": "/regionId", "value": fields["region_id"]}
        )

    if fields.get("latitude") is not None and fields.get("longitude") is not None:
        point = GeoPoint.from_lat_lng(fields["latitude"], fields["longitude"])
        patch_operations.append(
            {"op": "set", "path": "/location", "value": point.model_dump(mode="json")}
        )

    if not patch_operations:
        return await get_pickup_location_by_id(container, pickup_location_id)

    patch_operations.append({"op": "set", "path": "/updatedAt", "value": utc_now_iso()})

    try:
        return await container.patch_item(
            item=pickup_location_id,
            partition_key=pickup_location_id,
            patch_operations=patch_operations,
        )
    except CosmosHttpResponseError as e:
        if e.status_code == 404:
            return None
        logger.error(
            f"Cosmos DB error during pickup location update: Status Code {e.status_code}, Message: {e.message}",
            exc_info=True,
        )
        raise DatabaseError(
            f"Cosmos DB error during pickup location update: Status Code {e.status_code}, Message: {e.message}",
            original_exception=e,
        ) from e


async def claim_pickup_location(
    container: ContainerProxy,
    pickup_location: Dict[str, Any],
    user_id: str,
) -> Dict[str, Any]:
    """
    Record user_id as the managing user of a pickup location.

    The write is guarded by the ETag of the document the caller read, so two
    concurrent claims based on the same read cannot both succeed.

    Raises:
        PreconditionFailedError: If the document changed since it was read
        PickupLocationNotFoundError: If the document was deleted meanwhile
    """
    pickup_location_id = pickup_location["id"]
    try:
        return await container.patch_item(
            item=pickup_location_id,
            partition_key=pickup_location_id,
            patch_operations=[
                {"op": "set", "path": "/adminUserId", "value": user_id},
                {"op": "set", "path": "/updatedAt", "value": utc_now_iso()},
            ],
            etag=pickup_location.get("_etag"),
            match_condition=MatchConditions.IfNotModified,
        )
    except CosmosHttpResponseError as e:
        if e.status_code == 404:
            raise PickupLocationNotFoundError() from e
        if e.status_code == 412:
            raise PreconditionFailedError(
                f"Pickup location with ID '{pickup_location_id}' has been modified since last retrieved (ETag mismatch)."
            ) from e
        logger.error(
            f"Cosmos DB error during pickup location claim: Status Code {e.status_code}, Message: {e.message}",
            exc_info=True,
        )
        raise DatabaseError(
            f"Cosmos DB error during pickup location claim: Status Code {e.status_code}, Message: {e.message}",
            original_exception=e,
        ) from e


async def delete_pickup_location(
    container: ContainerProxy, pickup_location_id: str
) -> bool:
    """
    Physically delete a pickup location.

    Returns:
        True if a document was removed, False if none existed
    """
    validate_id(pickup_location_id, "pickupLocationId")

    try:
        await container.delete_item(
            item=pickup_location_id, partition_key=pickup_location_id
        )
        return True
    except CosmosHttpResponseError as e:
        if e.status_code == 404:
            return False
        logger.error(
            f"Cosmos DB error during pickup location deletion: Status Code {e.status_code}, Message: {e.message}",
            exc_info=True,
        )
        raise DatabaseError(
            f"Cosmos DB error during pickup location deletion: Status Code {e.status_code}, Message: {e.message}",
            original_exception=e,
        ) from e

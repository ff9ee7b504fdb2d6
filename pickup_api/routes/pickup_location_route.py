from fastapi import APIRouter, Body, Depends, Path, Query, status

from pickup_api.logging_config import get_child_logger, tracer
from pickup_api.models.envelope import ERROR_RESPONSES, ApiResponse
from pickup_api.models.pickup_location import (
    PickupLocationList,
    PickupLocationResponse,
    PickupLocationUpdate,
    PickupLocationWithAdminCreate,
)
from pickup_api.models.user import PickupLocationWithAdmin
from pickup_api.routes.dependencies import get_pickup_location_service
from pickup_api.services.pickup_location_service import PickupLocationService

# Create a child logger for this module
logger = get_child_logger("routes.pickup_location")

router = APIRouter(
    prefix="/pickup-locations", tags=["pickup-locations"], responses=ERROR_RESPONSES
)


@router.post(
    "/",
    response_model=ApiResponse[PickupLocationWithAdmin],
    status_code=status.HTTP_201_CREATED,
)
async def add_new_pickup_location(
    payload: PickupLocationWithAdminCreate = Body(
        ..., description="Pickup location and admin user information"
    ),
    service: PickupLocationService = Depends(get_pickup_location_service),
):
    return await service.create_with_new_admin(payload)


@router.get("/", response_model=ApiResponse[PickupLocationList])
async def get_pickup_locations(
    service: PickupLocationService = Depends(get_pickup_location_service),
):
    return await service.find_all()


@router.get("/nearest", response_model=ApiResponse[PickupLocationResponse])
async def get_nearest_pickup_location(
    latitude: float = Query(..., ge=-90, le=90, title="Latitude coordinate"),
    longitude: float = Query(..., ge=-180, le=180, title="Longitude coordinate"),
    service: PickupLocationService = Depends(get_pickup_location_service),
):
    with tracer.start_as_current_span("api_get_nearest_pickup_location") as span:
        span.set_attribute("query.latitude", latitude)
        span.set_attribute("query.longitude", longitude)

        logger.info(
            "Handling GET /pickup-locations/nearest request",
            extra={"latitude": latitude, "longitude": longitude},
        )
        return await service.find_nearest(latitude, longitude)


@router.get("/{pickup_location_id}", response_model=ApiResponse[PickupLocationResponse])
async def get_pickup_location(
    pickup_location_id: str = Path(..., title="The ID of the pickup location to retrieve"),
    service: PickupLocationService = Depends(get_pickup_location_service),
):
    return await service.find_one(pickup_location_id)


@router.patch("/{pickup_location_id}", response_model=ApiResponse[PickupLocationResponse])
async def update_existing_pickup_location(
    updates: PickupLocationUpdate,
    pickup_location_id: str = Path(..., title="The ID of the pickup location to update"),
    service: PickupLocationService = Depends(get_pickup_location_service),
):
    return await service.update(pickup_location_id, updates)


@router.delete("/{pickup_location_id}", response_model=ApiResponse)
async def delete_existing_pickup_location(
    pickup_location_id: str = Path(..., title="The ID of the pickup location to delete"),
    service: PickupLocationService = Depends(get_pickup_location_service),
):
    return await service.delete(pickup_location_id)

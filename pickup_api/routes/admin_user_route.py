from fastapi import APIRouter, Body, Depends, Path, status

from pickup_api.logging_config import get_child_logger
from pickup_api.models.envelope import ERROR_RESPONSES, ApiResponse
from pickup_api.models.pickup_location import PickupLocationCreate
from pickup_api.models.user import PickupLocationAssignment
from pickup_api.routes.dependencies import get_pickup_location_service
from pickup_api.services.pickup_location_service import PickupLocationService

logger = get_child_logger("routes.admin_user")

router = APIRouter(
    prefix="/admin/users", tags=["admin-users"], responses=ERROR_RESPONSES
)


@router.post(
    "/{user_id}/pickup-location",
    response_model=ApiResponse[PickupLocationAssignment],
    status_code=status.HTTP_201_CREATED,
)
async def create_pickup_location_for_admin(
    payload: PickupLocationCreate = Body(..., description="Pickup location information"),
    user_id: str = Path(..., title="ID of the admin user to attach the pickup location to"),
    service: PickupLocationService = Depends(get_pickup_location_service),
):
    logger.info(
        "Handling POST /admin/users/{user_id}/pickup-location request",
        extra={"user_id": user_id},
    )
    return await service.create_for_existing_admin(user_id, payload)


@router.post(
    "/{user_id}/pickup-location/{pickup_location_id}",
    response_model=ApiResponse[PickupLocationAssignment],
)
async def assign_existing_pickup_location_to_user(
    user_id: str = Path(..., title="ID of the user to assign the pickup location to"),
    pickup_location_id: str = Path(..., title="ID of the existing pickup location"),
    service: PickupLocationService = Depends(get_pickup_location_service),
):
    logger.info(
        "Handling POST /admin/users/{user_id}/pickup-location/{pickup_location_id} request",
        extra={"user_id": user_id, "pickup_location_id": pickup_location_id},
    )
    return await service.assign_existing_location_to_user(pickup_location_id, user_id)

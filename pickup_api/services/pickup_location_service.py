import uuid
from typing import Any, Dict, Mapping, Optional

from azure.cosmos.aio import ContainerProxy

from pickup_api.config import NEAREST_PICKUP_MAX_DISTANCE_METERS
from pickup_api.crud.pickup_location_crud import (
    claim_pickup_location,
    create_pickup_location,
    delete_pickup_location,
    find_nearest_pickup_location,
    get_pickup_location_by_id,
    list_pickup_locations,
    update_pickup_location,
)
from pickup_api.crud.region_crud import get_region_names
from pickup_api.crud.user_crud import (
    create_user,
    find_user_by_email,
    find_user_by_id,
    find_user_by_pickup_location_id,
    normalize_email,
    update_user,
)
from pickup_api.exceptions import (
    AdminAlreadyHasPickupLocationError,
    AdminEmailInUseError,
    InvalidRoleError,
    PickupLocationAlreadyAssignedError,
    PickupLocationNotFoundError,
    PreconditionFailedError,
    UpdateFailedError,
    UserNotFoundError,
    ValidationFailedError,
)
from pickup_api.geo import GeoPoint
from pickup_api.logging_config import get_child_logger, mask_email, tracer
from pickup_api.models.envelope import ApiResponse
from pickup_api.models.pickup_location import (
    PickupLocationCreate,
    PickupLocationList,
    PickupLocationResponse,
    PickupLocationUpdate,
    PickupLocationWithAdminCreate,
)
from pickup_api.models.user import (
    AdminSummary,
    AssignedUserSummary,
    PickupLocationAssignment,
    PickupLocationWithAdmin,
    UserRole,
)
from pickup_api.services.login_code_service import LoginCodeIssuer

logger = get_child_logger("services.pickup_location")

# Role a user ends up with after being assigned a pickup location.
# Super admins keep their role; everyone else becomes a pickup admin.
PICKUP_ADMIN_ROLE_TRANSITIONS = {
    UserRole.ADMIN: UserRole.ADMIN,
    UserRole.PICKUP_ADMIN: UserRole.PICKUP_ADMIN,
    UserRole.USER: UserRole.PICKUP_ADMIN,
    UserRole.RIDER: UserRole.PICKUP_ADMIN,
    UserRole.RESTAURANT: UserRole.PICKUP_ADMIN,
}


def role_after_pickup_assignment(role: Optional[str]) -> UserRole:
    try:
        current = UserRole(role)
    except ValueError:
        return UserRole.PICKUP_ADMIN
    return PICKUP_ADMIN_ROLE_TRANSITIONS[current]


def format_pickup_location(
    document: Mapping[str, Any], region_names: Mapping[str, str]
) -> PickupLocationResponse:
    """Flatten a stored pickup location into its public shape."""
    point = GeoPoint.model_validate(document["location"])
    region_id = document["regionId"]
    return PickupLocationResponse(
        id=document["id"],
        name=document["name"],
        address=document["address"],
        latitude=point.latitude,
        longitude=point.longitude,
        region_id=region_id,
        region_name=region_names.get(region_id),
        is_active=document.get("isActive", True),
        created_at=document.get("createdAt"),
        updated_at=document.get("updatedAt"),
    )


class PickupLocationService:
    """
    Pickup location management and the location-to-admin binding workflow.

    Writes to the locations and users containers are sequential and not
    transactional. A failure after the location is written leaves it without
    an admin; this is logged and the error is propagated, no rollback is
    attempted.
    """

    def __init__(
        self,
        locations: ContainerProxy,
        users: ContainerProxy,
        regions: ContainerProxy,
        login_codes: LoginCodeIssuer,
        nearest_max_distance_meters: int = NEAREST_PICKUP_MAX_DISTANCE_METERS,
    ) -> None:
        self.locations = locations
        self.users = users
        self.regions = regions
        self.login_codes = login_codes
        self.nearest_max_distance_meters = nearest_max_distance_meters

    async def _format(self, document: Dict[str, Any]) -> PickupLocationResponse:
        region_names = await get_region_names(self.regions, [document["regionId"]])
        return format_pickup_location(document, region_names)

    async def _get_existing(self, pickup_location_id: str) -> Dict[str, Any]:
        document = await get_pickup_location_by_id(self.locations, pickup_location_id)
        if document is None:
            raise PickupLocationNotFoundError()
        return document

    async def find_all(self) -> ApiResponse[PickupLocationList]:
        documents = await list_pickup_locations(self.locations)
        region_names = await get_region_names(
            self.regions, [document["regionId"] for document in documents]
        )
        return ApiResponse[PickupLocationList](
            message="Pickup locations retrieved successfully",
            data=PickupLocationList(
                pickup_locations=[
                    format_pickup_location(document, region_names)
                    for document in documents
                ]
            ),
        )

    async def find_one(self, pickup_location_id: str) -> ApiResponse[PickupLocationResponse]:
        document = await self._get_existing(pickup_location_id)
        return ApiResponse[PickupLocationResponse](
            message="Pickup location retrieved successfully",
            data=await self._format(document),
        )

    async def find_nearest(
        self, latitude: float, longitude: float
    ) -> ApiResponse[PickupLocationResponse]:
        document = await find_nearest_pickup_location(
            self.locations,
            latitude,
            longitude,
            max_distance_meters=self.nearest_max_distance_meters,
        )
        if document is None:
            raise PickupLocationNotFoundError("No active pickup location found nearby")

        return ApiResponse[PickupLocationResponse](
            message="Nearest pickup location retrieved successfully",
            data=await self._format(document),
        )

    async def update(
        self, pickup_location_id: str, updates: PickupLocationUpdate
    ) -> ApiResponse[PickupLocationResponse]:
        await self._get_existing(pickup_location_id)

        fields = updates.model_dump(exclude_unset=True)
        if (fields.get("latitude") is None) != (fields.get("longitude") is None):
            raise ValidationFailedError(
                "Both latitude and longitude must be provided together"
            )

        updated = await update_pickup_location(self.locations, pickup_location_id, fields)
        if updated is None:
            raise UpdateFailedError("Failed to update pickup location")

        return ApiResponse[PickupLocationResponse](
            message="Pickup location updated successfully",
            data=await self._format(updated),
        )

    async def delete(self, pickup_location_id: str) -> ApiResponse:
        if not await delete_pickup_location(self.locations, pickup_location_id):
            raise PickupLocationNotFoundError()
        return ApiResponse(message="Pickup location deleted successfully")

    async def create_with_new_admin(
        self, payload: PickupLocationWithAdminCreate
    ) -> ApiResponse[PickupLocationWithAdmin]:
        """
        Create a pickup location together with a new pickup admin user and
        send that admin a one-time login code.
        """
        admin_email = normalize_email(payload.admin_email)

        with tracer.start_as_current_span("create_pickup_location_with_admin") as span:
            if await find_user_by_email(self.users, admin_email) is not None:
                logger.warning(
                    "Admin email already in use",
                    extra={"email": mask_email(admin_email)},
                )
                raise AdminEmailInUseError()

            admin_user_id = str(uuid.uuid4())
            location = await create_pickup_location(
                self.locations, payload.location_fields(), admin_user_id=admin_user_id
            )
            span.set_attribute("pickup_location.id", location["id"])
            span.set_attribute("user.id", admin_user_id)

            try:
                admin = await create_user(
                    self.users,
                    {
                        "firstName": payload.admin_first_name,
                        "lastName": payload.admin_last_name,
                        "email": admin_email,
                        "phone": payload.admin_phone,
                        "role": UserRole.PICKUP_ADMIN.value,
                        "isEmailVerified": True,
                        "isActive": True,
                        "pickupLocationId": location["id"],
                    },
                    user_id=admin_user_id,
                )
                await self.login_codes.issue_admin_login_code(admin["email"])
            except Exception:
                span.set_attribute("error", True)
                span.set_attribute("pickup_location.orphaned", True)
                logger.error(
                    "Admin setup failed after pickup location was created; location may have no admin",
                    extra={"pickup_location_id": location["id"], "user_id": admin_user_id},
                    exc_info=True,
                )
                raise

            logger.info(
                "Pickup location created with new admin",
                extra={"pickup_location_id": location["id"], "user_id": admin["id"]},
            )
            return ApiResponse[PickupLocationWithAdmin](
                message="Pickup location and admin created successfully",
                data=PickupLocationWithAdmin(
                    pickup_location=await self._format(location),
                    admin=AdminSummary.model_validate(admin),
                ),
            )

    async def create_for_existing_admin(
        self, user_id: str, payload: PickupLocationCreate
    ) -> ApiResponse[PickupLocationAssignment]:
        """
        Create a pickup location and attach it to an existing super admin.
        """
        with tracer.start_as_current_span("create_pickup_location_for_admin") as span:
            span.set_attribute("user.id", user_id)

            admin = await find_user_by_id(self.users, user_id)
            if admin is None:
                raise UserNotFoundError("Admin user not found", code="ADMIN_USER_NOT_FOUND")
            if admin.get("role") != UserRole.ADMIN.value:
                raise InvalidRoleError(
                    "Only admin users can be attached to a new pickup location"
                )
            if admin.get("pickupLocationId"):
                raise AdminAlreadyHasPickupLocationError()

            location = await create_pickup_location(
                self.locations, payload, admin_user_id=user_id
            )
            span.set_attribute("pickup_location.id", location["id"])

            updated = await update_user(
                self.users, user_id, {"pickupLocationId": location["id"]}
            )
            if updated is None:
                logger.error(
                    "Admin user disappeared before pickup location could be attached",
                    extra={"pickup_location_id": location["id"], "user_id": user_id},
                )
                raise UserNotFoundError(
                    "Admin user not found while attaching pickup location",
                    code="ADMIN_USER_NOT_FOUND_AFTER_CREATE",
                )

            return ApiResponse[PickupLocationAssignment](
                message="Pickup location created and attached to admin successfully",
                data=PickupLocationAssignment(
                    pickup_location=await self._format(location),
                    user=AssignedUserSummary.model_validate(updated),
                ),
            )

    async def assign_existing_location_to_user(
        self, pickup_location_id: str, user_id: str
    ) -> ApiResponse[PickupLocationAssignment]:
        """
        Make `user_id` the managing user of an existing pickup location,
        promoting the user to pickup admin unless they are a super admin.

        Repeating the call for the same pair succeeds.
        """
        with tracer.start_as_current_span("assign_pickup_location_to_user") as span:
            span.set_attribute("pickup_location.id", pickup_location_id)
            span.set_attribute("user.id", user_id)

            location = await self._get_existing(pickup_location_id)

            user = await find_user_by_id(self.users, user_id)
            if user is None:
                raise UserNotFoundError()

            holder = await find_user_by_pickup_location_id(self.users, pickup_location_id)
            if holder is not None and holder["id"] != user_id:
                raise PickupLocationAlreadyAssignedError()

            try:
                location = await claim_pickup_location(self.locations, location, user_id)
            except PreconditionFailedError as e:
                logger.warning(
                    "Concurrent change while claiming pickup location",
                    extra={"pickup_location_id": pickup_location_id, "user_id": user_id},
                )
                raise PickupLocationAlreadyAssignedError(
                    "Pickup location was modified concurrently and may be assigned to another user"
                ) from e

            target_role = role_after_pickup_assignment(user.get("role"))
            updated = await update_user(
                self.users,
                user_id,
                {"pickupLocationId": pickup_location_id, "role": target_role.value},
            )
            if updated is None:
                raise UserNotFoundError()

            logger.info(
                "Pickup location assigned to user",
                extra={
                    "pickup_location_id": pickup_location_id,
                    "user_id": user_id,
                    "role": target_role.value,
                },
            )
            return ApiResponse[PickupLocationAssignment](
                message="Pickup location assigned to user successfully",
                data=PickupLocationAssignment(
                    pickup_location=await self._format(location),
                    user=AssignedUserSummary.model_validate(updated),
                ),
            )

from fastapi import Depends
from azure.cosmos.aio import ContainerProxy

from pickup_api.db import get_container, ContainerType
from pickup_api.notifications import LoginCodeNotifier, LogOnlyLoginCodeNotifier
from pickup_api.services.login_code_service import LoginCodeIssuer
from pickup_api.services.pickup_location_service import PickupLocationService


async def get_pickup_locations_container() -> ContainerProxy:
    return await get_container(ContainerType.PICKUP_LOCATIONS)


async def get_users_container() -> ContainerProxy:
    return await get_container(ContainerType.USERS)


async def get_regions_container() -> ContainerProxy:
    return await get_container(ContainerType.REGIONS)


async def get_login_codes_container() -> ContainerProxy:
    return await get_container(ContainerType.LOGIN_CODES)


def get_login_code_notifier() -> LoginCodeNotifier:
    return LogOnlyLoginCodeNotifier()


async def get_pickup_location_service(
    locations: ContainerProxy = Depends(get_pickup_locations_container),
    users: ContainerProxy = Depends(get_users_container),
    regions: ContainerProxy = Depends(get_regions_container),
    login_codes: ContainerProxy = Depends(get_login_codes_container),
    notifier: LoginCodeNotifier = Depends(get_login_code_notifier),
) -> PickupLocationService:
    return PickupLocationService(
        locations=locations,
        users=users,
        regions=regions,
        login_codes=LoginCodeIssuer(login_codes, notifier),
    )

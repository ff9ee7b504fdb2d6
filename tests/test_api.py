"""HTTP-level tests: routing, status codes and response envelopes."""

import uuid

from httpx import ASGITransport, AsyncClient
from starlette.requests import Request

from function_app import app, handle_cosmos_http_error
from tests.conftest import REGION_ID, REGION_NAME, location_payload, make_user
from tests.helpers.fake_cosmos import cosmos_error


def new_admin_payload(**overrides):
    payload = location_payload(
        adminFirstName="Ada",
        adminLastName="Okafor",
        adminEmail="pickup-admin@surespot.app",
    )
    payload.update(overrides)
    return payload


async def create_via_api(client, **overrides):
    response = await client.post("/pickup-locations/", json=new_admin_payload(**overrides))
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def test_requests_without_api_key_are_rejected() -> None:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as anonymous:
        response = await anonymous.get("/pickup-locations/")
    assert response.status_code == 401


async def test_create_with_new_admin(client, users, notifier) -> None:
    response = await client.post("/pickup-locations/", json=new_admin_payload())

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Pickup location and admin created successfully"
    location = body["data"]["pickupLocation"]
    assert location["latitude"] == 6.5244
    assert location["longitude"] == 3.3792
    assert location["regionId"] == REGION_ID
    assert location["regionName"] == REGION_NAME
    assert location["isActive"] is True
    assert body["data"]["admin"]["email"] == "pickup-admin@surespot.app"
    assert body["data"]["admin"]["firstName"] == "Ada"
    assert len(notifier.sent) == 1


async def test_create_with_taken_email_conflicts(client, users, locations) -> None:
    users.seed(make_user(role="rider", email="pickup-admin@surespot.app"))

    response = await client.post("/pickup-locations/", json=new_admin_payload())

    assert response.status_code == 409
    assert response.json() == {
        "success": False,
        "error": {
            "code": "ADMIN_EMAIL_IN_USE",
            "message": "A user with this email already exists",
        },
    }
    assert locations.items == {}


async def test_create_rejects_malformed_body(client) -> None:
    response = await client.post(
        "/pickup-locations/", json=new_admin_payload(adminEmail="not-an-email")
    )
    assert response.status_code == 422

    response = await client.post(
        "/pickup-locations/", json=new_admin_payload(latitude=91)
    )
    assert response.status_code == 422


async def test_create_with_malformed_region(client) -> None:
    response = await client.post(
        "/pickup-locations/", json=new_admin_payload(regionId="lagos-mainland")
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_ID_FORMAT"


async def test_list_and_get(client) -> None:
    created = await create_via_api(client)
    location_id = created["pickupLocation"]["id"]

    listing = await client.get("/pickup-locations/")
    assert listing.status_code == 200
    [item] = listing.json()["data"]["pickupLocations"]
    assert item["id"] == location_id

    single = await client.get(f"/pickup-locations/{location_id}")
    assert single.status_code == 200
    assert single.json()["data"]["name"] == "Surespot, Iba, Ojo"


async def test_get_unknown_and_malformed_ids(client) -> None:
    missing = await client.get(f"/pickup-locations/{uuid.uuid4()}")
    assert missing.status_code == 404
    assert missing.json()["success"] is False
    assert missing.json()["error"]["code"] == "PICKUP_LOCATION_NOT_FOUND"

    malformed = await client.get("/pickup-locations/not-a-uuid")
    assert malformed.status_code == 400
    assert malformed.json()["error"]["code"] == "INVALID_ID_FORMAT"


async def test_nearest(client) -> None:
    created = await create_via_api(client)

    response = await client.get(
        "/pickup-locations/nearest", params={"latitude": 6.53, "longitude": 3.38}
    )

    assert response.status_code == 200
    assert response.json()["data"]["id"] == created["pickupLocation"]["id"]


async def test_nearest_with_nothing_in_range(client) -> None:
    await create_via_api(client)

    response = await client.get(
        "/pickup-locations/nearest", params={"latitude": 9.0765, "longitude": 7.3986}
    )

    assert response.status_code == 404
    assert response.json()["error"]["message"] == "No active pickup location found nearby"


async def test_nearest_rejects_out_of_range_coordinates(client) -> None:
    response = await client.get(
        "/pickup-locations/nearest", params={"latitude": 120, "longitude": 3.38}
    )
    assert response.status_code == 422


async def test_patch_requires_coordinate_pair(client) -> None:
    created = await create_via_api(client)
    location_id = created["pickupLocation"]["id"]

    response = await client.patch(f"/pickup-locations/{location_id}", json={"latitude": 7})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    response = await client.patch(
        f"/pickup-locations/{location_id}",
        json={"latitude": 7, "longitude": 4, "isActive": False},
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert (data["latitude"], data["longitude"], data["isActive"]) == (7, 4, False)


async def test_delete(client) -> None:
    created = await create_via_api(client)
    location_id = created["pickupLocation"]["id"]

    first = await client.delete(f"/pickup-locations/{location_id}")
    assert first.status_code == 200
    assert first.json()["success"] is True

    second = await client.delete(f"/pickup-locations/{location_id}")
    assert second.status_code == 404


async def test_create_for_existing_admin(client, users) -> None:
    admin = make_user(role="admin")
    users.seed(admin)

    response = await client.post(
        f"/admin/users/{admin['id']}/pickup-location", json=location_payload()
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["user"]["id"] == admin["id"]
    assert data["user"]["role"] == "admin"
    assert data["user"]["pickupLocationId"] == data["pickupLocation"]["id"]


async def test_create_for_non_admin_is_rejected(client, users) -> None:
    rider = make_user(role="rider")
    users.seed(rider)

    response = await client.post(
        f"/admin/users/{rider['id']}/pickup-location", json=location_payload()
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_ADMIN_ROLE"


async def test_create_for_unknown_admin(client) -> None:
    response = await client.post(
        f"/admin/users/{uuid.uuid4()}/pickup-location", json=location_payload()
    )
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "ADMIN_USER_NOT_FOUND"


async def test_assign_existing_location(client, users) -> None:
    created = await create_via_api(client)
    location_id = created["pickupLocation"]["id"]
    admin_id = created["admin"]["id"]
    other = make_user(role="user")
    users.seed(other)

    same = await client.post(f"/admin/users/{admin_id}/pickup-location/{location_id}")
    assert same.status_code == 200
    assert same.json()["data"]["user"]["role"] == "pickup_admin"

    taken = await client.post(f"/admin/users/{other['id']}/pickup-location/{location_id}")
    assert taken.status_code == 409
    assert taken.json()["error"]["code"] == "PICKUP_LOCATION_ALREADY_ASSIGNED"


async def test_store_failure_returns_structured_server_error(client, locations) -> None:
    locations.errors["query_items"] = cosmos_error(503, "Service Unavailable")

    response = await client.get("/pickup-locations/")

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "error": {"code": "DATABASE_ERROR", "message": "A database error occurred."},
    }


async def test_unwrapped_cosmos_error_is_logged_and_mapped(caplog) -> None:
    request = Request(
        {
            "type": "http",
            "method": "GET",
            "scheme": "http",
            "server": ("test", 80),
            "path": "/pickup-locations/",
            "query_string": b"",
            "headers": [],
        }
    )

    response = await handle_cosmos_http_error(request, cosmos_error(503, "Service Unavailable"))

    assert response.status_code == 500
    [record] = [r for r in caplog.records if r.getMessage() == "Cosmos DB HTTP error"]
    assert "Service Unavailable" in record.error_message


async def test_assign_to_user_without_email(client, users) -> None:
    admin = make_user(role="admin")
    users.seed(admin)
    created = await client.post(
        f"/admin/users/{admin['id']}/pickup-location", json=location_payload()
    )
    location_id = created.json()["data"]["pickupLocation"]["id"]
    users.items[admin["id"]]["pickupLocationId"] = None
    rider = make_user(role="rider", phone="+2348031234567")
    del rider["email"]
    users.seed(rider)

    response = await client.post(f"/admin/users/{rider['id']}/pickup-location/{location_id}")

    assert response.status_code == 200
    user = response.json()["data"]["user"]
    assert user["email"] is None
    assert user["phone"] == "+2348031234567"
    assert user["role"] == "pickup_admin"


async def test_error_envelope_is_documented(client) -> None:
    response = await client.get("/api/openapi.json")

    assert response.status_code == 200
    schema = response.json()
    assert "ErrorResponse" in schema["components"]["schemas"]
    not_found = schema["paths"]["/pickup-locations/{pickup_location_id}"]["get"]["responses"]["404"]
    assert not_found["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")


async def test_uppercase_id_is_rejected_as_malformed(client) -> None:
    created = await create_via_api(client)
    location_id = created["pickupLocation"]["id"]

    response = await client.get(f"/pickup-locations/{location_id.upper()}")

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_ID_FORMAT"

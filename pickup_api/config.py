import os

# Radius used by the public nearest-location lookup. Takes precedence over the
# store default below whenever both apply.
NEAREST_PICKUP_MAX_DISTANCE_METERS = int(
    os.environ.get("NEAREST_PICKUP_MAX_DISTANCE_METERS", "20000")
)
STORE_DEFAULT_MAX_DISTANCE_METERS = 50000

ADMIN_LOGIN_CODE_EXPIRY_MINUTES = int(
    os.environ.get("ADMIN_LOGIN_CODE_EXPIRY_MINUTES", "30")
)
ADMIN_LOGIN_CODE_LENGTH = 6

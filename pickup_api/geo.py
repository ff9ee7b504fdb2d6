import math
from typing import Literal, Tuple

from pydantic import BaseModel, ConfigDict

# Mean earth radius (IUGG), matches the sphere Cosmos DB uses for ST_DISTANCE
EARTH_RADIUS_METERS = 6_371_008.8


class GeoPoint(BaseModel):
    """
    GeoJSON point as stored in Cosmos DB.

    GeoJSON orders coordinates as [longitude, latitude]; the public API
    exposes latitude first. Always go through from_lat_lng() and the
    latitude/longitude properties instead of indexing coordinates.
    """

    type: Literal["Point"] = "Point"
    coordinates: Tuple[float, float]

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_lat_lng(cls, latitude: float, longitude: float) -> "GeoPoint":
        return cls(coordinates=(longitude, latitude))

    @property
    def longitude(self) -> float:
        return self.coordinates[0]

    @property
    def latitude(self) -> float:
        return self.coordinates[1]


def distance_meters(
    latitude_a: float, longitude_a: float, latitude_b: float, longitude_b: float
) -> float:
    """Great-circle (haversine) distance between two points in meters."""
    phi_a = math.radians(latitude_a)
    phi_b = math.radians(latitude_b)
    delta_phi = math.radians(latitude_b - latitude_a)
    delta_lambda = math.radians(longitude_b - longitude_a)

    h = (
        math.sin(delta_phi / 2) ** 2
        + math.cos(phi_a) * math.cos(phi_b) * math.sin(delta_lambda / 2) ** 2
    )
    return 2 * EARTH_RADIUS_METERS * math.asin(min(1.0, math.sqrt(h)))

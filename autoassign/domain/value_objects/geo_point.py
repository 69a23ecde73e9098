"""GeoPoint value object — immutable (lat, lng) pair."""

import math
from dataclasses import dataclass

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float

    def haversine_km(self, other: "GeoPoint") -> float:
        """Great-circle distance to *other* in km, rounded to 2 decimals."""
        phi1 = math.radians(self.lat)
        phi2 = math.radians(other.lat)
        d_phi = math.radians(other.lat - self.lat)
        d_lambda = math.radians(other.lng - self.lng)

        a = (
            math.sin(d_phi / 2) ** 2
            + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
        )
        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

        return round(EARTH_RADIUS_KM * c, 2)


def distance_between(a: GeoPoint | None, b: GeoPoint | None) -> float | None:
    """Distance in km, or None when either side has no known location."""
    if a is None or b is None:
        return None
    return a.haversine_km(b)

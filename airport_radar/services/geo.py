"""Query parameter validation and great-circle distance for point-radius searches."""

import math

from airport_radar.errors import InvalidInput

# Earth radius used by Redis GEO commands, so locally computed distances agree
EARTH_RADIUS_KM = 6372.7975608


def validate_point(longitude: float, latitude: float) -> None:
    """Reject non-finite or out-of-range coordinates."""
    if not (_is_finite(longitude) and _is_finite(latitude)):
        raise InvalidInput("Invalid parameters: lat and lng must be finite numbers")
    if not -90 <= latitude <= 90 or not -180 <= longitude <= 180:
        raise InvalidInput(
            "Invalid parameters: lat must be in [-90, 90] and lng in [-180, 180]",
            {"lat": latitude, "lng": longitude},
        )


def validate_radius(radius_km: float) -> None:
    if not _is_finite(radius_km):
        raise InvalidInput("Invalid parameters: radius must be a finite number")
    if radius_km <= 0:
        raise InvalidInput("Invalid parameters: radius must be a positive number of km", {"radius": radius_km})


def great_circle_km(lon1: float, lat1: float, lon2: float, lat2: float) -> float:
    """Haversine distance in km between two points given in degrees."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = phi2 - phi1
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))


def _is_finite(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)

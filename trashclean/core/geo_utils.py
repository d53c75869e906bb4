"""
Trash Clean - Geospatial Utilities
Coordinates and great-circle distance calculations.
"""

import math
from dataclasses import dataclass
from typing import Dict, Any, Optional, Tuple

# Mean Earth radius in meters
EARTH_RADIUS_M = 6371000.0


@dataclass(frozen=True)
class Coordinate:
    """
    Geographic point with latitude and longitude.

    Attributes:
        latitude: Latitude in decimal degrees (-90 to 90)
        longitude: Longitude in decimal degrees (-180 to 180)
        accuracy_meters: Horizontal accuracy reported by the device, if any
    """
    latitude: float
    longitude: float
    accuracy_meters: Optional[float] = None

    def __post_init__(self):
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"Latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"Longitude out of range: {self.longitude}")
        if self.accuracy_meters is not None and self.accuracy_meters < 0:
            raise ValueError(f"Accuracy must be non-negative: {self.accuracy_meters}")

    def to_tuple(self) -> Tuple[float, float]:
        return (self.latitude, self.longitude)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "accuracy_meters": self.accuracy_meters,
        }


def haversine_distance(
    lat1: float, lon1: float,
    lat2: float, lon2: float
) -> float:
    """
    Calculate the great-circle distance between two points on Earth.

    Args:
        lat1, lon1: First point coordinates in decimal degrees
        lat2, lon2: Second point coordinates in decimal degrees

    Returns:
        Distance in meters
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) ** 2 +
        math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    )
    # Rounding can push a marginally above 1 for antipodal points
    a = min(1.0, a)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_M * c


def distance_between(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance in meters between two coordinates."""
    return haversine_distance(a.latitude, a.longitude, b.latitude, b.longitude)


def destination_point(
    lat: float, lon: float,
    distance_m: float,
    bearing_degrees: float
) -> Tuple[float, float]:
    """
    Calculate destination point given start, distance, and bearing.

    Args:
        lat, lon: Start point coordinates in decimal degrees
        distance_m: Distance to travel in meters
        bearing_degrees: Bearing in degrees (0=North, 90=East)

    Returns:
        Tuple of (latitude, longitude) of destination point
    """
    lat_rad = math.radians(lat)
    lon_rad = math.radians(lon)
    bearing_rad = math.radians(bearing_degrees)
    angular_distance = distance_m / EARTH_RADIUS_M

    dest_lat = math.asin(
        math.sin(lat_rad) * math.cos(angular_distance) +
        math.cos(lat_rad) * math.sin(angular_distance) * math.cos(bearing_rad)
    )

    dest_lon = lon_rad + math.atan2(
        math.sin(bearing_rad) * math.sin(angular_distance) * math.cos(lat_rad),
        math.cos(angular_distance) - math.sin(lat_rad) * math.sin(dest_lat)
    )

    # Normalize longitude to [-180, 180)
    dest_lon_deg = (math.degrees(dest_lon) + 540) % 360 - 180

    return (math.degrees(dest_lat), dest_lon_deg)

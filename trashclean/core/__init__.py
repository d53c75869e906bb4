"""
Trash Clean - Core Utilities
Central configuration, logging, errors and geospatial helpers.
"""

from trashclean.core.config import settings
from trashclean.core.auth import (
    TokenSource,
    StaticTokenSource,
    EnvTokenSource,
)
from trashclean.core.geo_utils import (
    Coordinate,
    haversine_distance,
    distance_between,
    destination_point,
)

__all__ = [
    "settings",
    "TokenSource",
    "StaticTokenSource",
    "EnvTokenSource",
    "Coordinate",
    "haversine_distance",
    "distance_between",
    "destination_point",
]

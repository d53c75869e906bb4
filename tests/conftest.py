"""
Pytest configuration and fixtures
"""
import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from trashclean.core.auth import StaticTokenSource
from trashclean.core.geo_utils import Coordinate
from trashclean.ingestion.nearby_client import LitterReport
from trashclean.verification.models import Photo

# Ljubljana city centre
USER_LAT, USER_LON = 46.0569, 14.5058


@pytest.fixture
def user_location():
    """User standing in Ljubljana city centre."""
    return Coordinate(latitude=USER_LAT, longitude=USER_LON, accuracy_meters=5.0)


@pytest.fixture
def litter_report():
    """Pending litter report at the user's position."""
    return LitterReport(
        id="trash-42",
        location=Coordinate(latitude=USER_LAT, longitude=USER_LON),
        description="Plastic bottles next to the bench",
        points_offered=20,
    )


@pytest.fixture
def far_litter_report():
    """Pending litter report ~67m north of the user."""
    return LitterReport(
        id="trash-77",
        location=Coordinate(latitude=46.0575, longitude=USER_LON),
        description="Cardboard box",
        points_offered=10,
    )


@pytest.fixture
def photo():
    """Small JPEG-ish photo."""
    return Photo(uri="file:///tmp/pickup.jpg", data=b"\xff\xd8\xff\xe0fake-jpeg")


@pytest.fixture
def token_source():
    """Signed-in user."""
    return StaticTokenSource("test-token")


@pytest.fixture
def nearby_items_payload():
    """Sample ``GET /trash/nearby`` body."""
    return {
        "items": [
            {
                "id": 3,
                "latitude": 46.0577,
                "longitude": 14.5058,
                "description": "Far bag",
                "status": "pending",
                "points": 30,
            },
            {
                "id": 1,
                "latitude": "46.0570",
                "longitude": "14.5058",
                "description": "Close cans",
                "status": "pending",
                "trashType": "metal",
                "createdAt": "2026-10-01T08:30:00Z",
            },
            {
                "id": 2,
                "location": {"latitude": 46.0573, "longitude": 14.5058},
                "description": "Middle wrapper",
                "status": "pending",
                "pointsOffered": 15,
            },
            {
                "id": 4,
                "latitude": 46.0569,
                "longitude": 14.5059,
                "status": "cleaned",
            },
        ]
    }

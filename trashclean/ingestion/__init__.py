"""
Trash Clean - Data Ingestion Module
Clients for fetching litter reports from the backend.
"""

from trashclean.ingestion.nearby_client import (
    NearbyItemResolver,
    LitterReport,
    LitterStatus,
    parse_litter_report,
)

__all__ = [
    "NearbyItemResolver",
    "LitterReport",
    "LitterStatus",
    "parse_litter_report",
]

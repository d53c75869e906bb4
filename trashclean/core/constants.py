"""
Trash Clean - Constants and Reference Data
Static values used throughout the application.
"""

from typing import Dict, Any, List

# =============================================================================
# API ROUTES
# =============================================================================

VERIFY_PICKUP_PATH = "/trash/verify-pickup"
NEARBY_ITEMS_PATH = "/trash/nearby"
REPORT_ISSUE_PATH = "/trash/{trash_id}/report-issue"
SUBMIT_REPORT_PATH = "/trash/report"
VALIDATE_PHOTO_PATH = "/ai/validate-trash-photo"
ANALYZE_PHOTO_PATH = "/ai/analyze-trash-photo"

VERIFICATION_IMAGE_FILENAME = "pickup_verification.jpg"
REPORT_IMAGE_FILENAME = "photo.jpg"

# =============================================================================
# PICKUP VERIFICATION
# =============================================================================

# Server status code -> user-facing rejection reason
REJECTION_MESSAGES: Dict[int, str] = {
    400: "invalid verification data",
    404: "item not found or already collected",
    409: "already picked up by someone else",
    422: "out of range or photo mismatch",
}
GENERIC_REJECTION_MESSAGE = "verification failed, try again"
AUTHENTICATION_REQUIRED_MESSAGE = "authentication required"

# Reasons accepted by the report-issue endpoint
ISSUE_TYPES: List[str] = [
    "not_found",
    "already_cleaned",
    "inaccessible",
    "wrong_location",
]

# =============================================================================
# LITTER REPORTS
# =============================================================================

TRASH_SIZES: List[str] = ["small", "medium", "large", "very_large"]

# Classification used whenever the AI analysis service cannot answer
FALLBACK_ANALYSIS: Dict[str, Any] = {
    "category": "general",
    "materials": ["unspecified trash"],
    "quantity": "medium",
    "estimated_weight": "1-2 kg",
    "hazard_level": "low",
    "cleanup_difficulty": "moderate",
    "recycling_info": "Please sort according to local guidelines",
    "disposal_method": "Dispose in appropriate waste bins",
    "environmental_impact": "Helps keep our environment clean",
    "points": 25,
    "tips": "Use gloves when handling trash",
    "safety_notes": "Be careful of sharp objects",
}

"""
Trash Clean - Crowdsource Module
Photo analysis and submission of citizen litter reports.
"""

from trashclean.crowdsource.report_handler import (
    ReportHandler,
)
from trashclean.crowdsource.photo_analyzer import (
    TrashPhotoAnalyzer,
    TrashAnalysis,
    FallbackAnalysis,
    PhotoRejected,
    PhotoValidation,
    AnalysisResult,
)

__all__ = [
    # Report Handler
    "ReportHandler",
    # Photo Analyzer
    "TrashPhotoAnalyzer",
    "TrashAnalysis",
    "FallbackAnalysis",
    "PhotoRejected",
    "PhotoValidation",
    "AnalysisResult",
]

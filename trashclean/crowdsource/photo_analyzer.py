"""
Photo analyzer for trash reports
Asks the backend AI service to validate and classify a report photo.

Analysis is fail-open: when the service is unreachable or answers with
something unusable, a generic classification is returned so the user can
still submit the report. Only an explicit validation rejection from the
service stops a report.
"""

import logging
from dataclasses import dataclass, field, fields
from typing import Optional, Dict, Any, List, Union

import httpx
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from trashclean.core.constants import (
    ANALYZE_PHOTO_PATH,
    FALLBACK_ANALYSIS,
    REPORT_IMAGE_FILENAME,
    VALIDATE_PHOTO_PATH,
)
from trashclean.core.http import ApiClient
from trashclean.verification.models import Photo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrashAnalysis:
    """Classification of the trash in a report photo."""
    category: str
    materials: List[str] = field(default_factory=list)
    quantity: str = "medium"
    estimated_weight: str = ""
    hazard_level: str = "low"
    cleanup_difficulty: str = "moderate"
    recycling_info: str = ""
    disposal_method: str = ""
    environmental_impact: str = ""
    points: int = 0
    tips: str = ""
    safety_notes: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class FallbackAnalysis(TrashAnalysis):
    """Placeholder classification used when the analysis service failed."""
    reason: str = ""

    @classmethod
    def create(cls, reason: str) -> "FallbackAnalysis":
        values = dict(FALLBACK_ANALYSIS, materials=list(FALLBACK_ANALYSIS["materials"]))
        return cls(reason=reason, **values)


@dataclass(frozen=True)
class PhotoRejected:
    """The service judged the photo unsuitable for a trash report."""
    reason: str


@dataclass(frozen=True)
class PhotoValidation:
    """Result of the outdoor-trash photo check."""
    is_valid: bool
    reason: str
    location: str = "unclear"
    confidence: float = 0.0
    service_available: bool = True


AnalysisResult = Union[TrashAnalysis, PhotoRejected]


class TrashAnalysisPayload(BaseModel):
    """``analysis`` object returned by the analysis endpoint."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    category: str
    materials: List[str] = Field(default_factory=list)
    quantity: str = "medium"
    estimated_weight: str = Field(
        default="", validation_alias=AliasChoices("estimatedWeight", "estimated_weight")
    )
    hazard_level: str = Field(
        default="low", validation_alias=AliasChoices("hazardLevel", "hazard_level")
    )
    cleanup_difficulty: str = Field(
        default="moderate",
        validation_alias=AliasChoices("cleanupDifficulty", "cleanup_difficulty"),
    )
    recycling_info: str = Field(
        default="", validation_alias=AliasChoices("recyclingInfo", "recycling_info")
    )
    disposal_method: str = Field(
        default="", validation_alias=AliasChoices("disposalMethod", "disposal_method")
    )
    environmental_impact: str = Field(
        default="",
        validation_alias=AliasChoices("environmentalImpact", "environmental_impact"),
    )
    points: int = 0
    tips: str = ""
    safety_notes: str = Field(
        default="", validation_alias=AliasChoices("safetyNotes", "safety_notes")
    )


class AnalyzeResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    success: bool = False
    analysis: Optional[TrashAnalysisPayload] = None


class ValidationPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    is_valid: bool = Field(default=False, validation_alias=AliasChoices("isValid", "is_valid"))
    reason: str = "Photo validation completed"
    location: str = "unclear"
    confidence: float = 0.0


class ValidateResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    success: bool = False
    validation: Optional[ValidationPayload] = None


class ValidationErrorBody(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    validation_error: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("validationError", "validation_error")
    )


class TrashPhotoAnalyzer(ApiClient):
    """
    Client for the AI photo validation and analysis endpoints.

    Usage:
        with TrashPhotoAnalyzer(EnvTokenSource()) as analyzer:
            result = analyzer.process(photo)
    """

    def _post_photo(self, path: str, photo: Photo) -> httpx.Response:
        files = {"image": (REPORT_IMAGE_FILENAME, photo.data, photo.mime_type)}
        return self._get_client().post(
            self._url(path),
            files=files,
            headers=self._auth_headers(self.token_source.get_bearer_token()),
            timeout=self.timeout,
        )

    def validate(self, photo: Photo) -> PhotoValidation:
        """
        Check that the photo shows outdoor trash.

        Args:
            photo: Report photo

        Returns:
            PhotoValidation; any service failure counts as valid
        """
        try:
            response = self._post_photo(VALIDATE_PHOTO_PATH, photo)
        except httpx.RequestError as e:
            logger.error(f"Photo validation request failed: {e}")
            return PhotoValidation(
                is_valid=True,
                reason="Validation service error - proceeding with submission",
                service_available=False,
            )

        if not response.is_success:
            logger.error(f"Photo validation API error: {response.status_code}")
            return PhotoValidation(
                is_valid=True,
                reason="Validation service unavailable - proceeding with submission",
                service_available=False,
            )

        try:
            body = ValidateResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.warning(f"Unreadable photo validation response: {e}")
            body = ValidateResponse()

        if body.success and body.validation is not None:
            v = body.validation
            return PhotoValidation(
                is_valid=v.is_valid,
                reason=v.reason,
                location=v.location,
                confidence=v.confidence,
            )

        return PhotoValidation(
            is_valid=True,
            reason="Validation completed - proceeding with submission",
        )

    def analyze(self, photo: Photo) -> AnalysisResult:
        """
        Classify the trash in a photo.

        Args:
            photo: Report photo

        Returns:
            TrashAnalysis from the service, FallbackAnalysis when the service
            failed, or PhotoRejected when the service refused the photo
        """
        try:
            response = self._post_photo(ANALYZE_PHOTO_PATH, photo)
        except httpx.RequestError as e:
            logger.error(f"Analysis request failed: {e}")
            return FallbackAnalysis.create(f"analysis service unreachable: {e}")

        if not response.is_success:
            if response.status_code == 400:
                try:
                    error = ValidationErrorBody.model_validate(response.json())
                except (ValueError, ValidationError):
                    error = ValidationErrorBody()
                if error.validation_error:
                    logger.info(f"Photo rejected by analysis service: {error.validation_error}")
                    return PhotoRejected(reason=error.validation_error)

            logger.error(f"Analysis API error: {response.status_code}")
            return FallbackAnalysis.create(f"analysis service returned {response.status_code}")

        try:
            body = AnalyzeResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.warning(f"Unreadable analysis response: {e}")
            return FallbackAnalysis.create("unreadable analysis response")

        if not body.success or body.analysis is None:
            return FallbackAnalysis.create("analysis unavailable")

        return TrashAnalysis(**body.analysis.model_dump())

    def process(self, photo: Photo) -> AnalysisResult:
        """Validate the photo, then analyze it if it passed."""
        validation = self.validate(photo)
        if not validation.is_valid:
            return PhotoRejected(reason=validation.reason)
        return self.analyze(photo)


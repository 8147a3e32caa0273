"""
Pydantic schemas for API request/response validation.

These schemas define the contract between the API and clients,
ensuring type safety and automatic documentation.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional

from wildlife_id.models.enums import ConfidenceLevel, InvocationTier


# === Request Schemas ===

class IdentifyRequest(BaseModel):
    """
    Request schema for species identification.

    Attributes:
        image: Data URL (``data:image/jpeg;base64,...``) or image URL
        enhanced_mode: Enrich the top match and return a narrative explanation
    """
    image: str = Field(
        ...,
        description="Data URL or URL of the image",
        min_length=1
    )
    enhanced_mode: bool = Field(
        default=False,
        description="Look up a missing scientific name and include a narrative"
    )

    @field_validator("image")
    @classmethod
    def validate_image(cls, v: str) -> str:
        """Reject blank image references."""
        if not v.strip():
            raise ValueError("Image must not be blank")
        return v.strip()


class ObservationRequest(BaseModel):
    """
    Request schema for an observation submission.

    ``species_name`` and ``location`` are checked by the submission workflow
    so that missing values produce its own error messages.
    """
    species_name: Optional[str] = Field(default=None, description="Scientific name as entered by the observer")
    common_name: Optional[str] = Field(default=None, description="Common name as entered by the observer")
    date_observed: Optional[str] = Field(default=None, description="Observation date (ISO 8601)")
    location: Optional[str] = Field(default=None, description="Where the observation was made")
    notes: Optional[str] = Field(default=None, description="Free-text notes")
    image: Optional[str] = Field(default=None, description="Data URL or URL of the photo")


# === Identification Schemas ===

class SuggestionSchema(BaseModel):
    """One candidate species match."""
    name: str = Field(..., description="Common name")
    scientific_name: Optional[str] = Field(
        default=None,
        description="Binomial scientific name when known"
    )
    confidence: float = Field(
        ...,
        ge=0.0,
        le=1.0,
        description="Confidence score (0-1); a plausibility ranking for local fallback results"
    )


class IdentificationResponse(BaseModel):
    """
    Species identification response.

    Suggestions are sorted by descending confidence and hold at most five
    entries. ``raw_response`` is only present in enhanced mode.
    """
    suggestions: list[SuggestionSchema] = Field(
        default_factory=list,
        description="Ranked species suggestions"
    )
    raw_response: Optional[str] = Field(
        default=None,
        description="Narrative explanation of the top suggestion (enhanced mode)"
    )
    tier: Optional[InvocationTier] = Field(
        default=None,
        description="Invocation tier that produced the suggestions"
    )
    is_local_fallback: bool = Field(
        default=False,
        description="True when no online classifier contributed to the result"
    )
    confidence_level: Optional[ConfidenceLevel] = Field(
        default=None,
        description="Coarse confidence bucket of the top suggestion"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "suggestions": [
                    {"name": "Rock Pigeon", "scientific_name": "Columba livia", "confidence": 0.93},
                    {"name": "Eurasian Collared-Dove", "scientific_name": "Streptopelia decaocto", "confidence": 0.04}
                ],
                "raw_response": (
                    "I've identified this as a Rock Pigeon (Columba livia) with 93% confidence. "
                    "This identification is based on visual features analyzed by a general "
                    "image classification model."
                ),
                "tier": "primary",
                "is_local_fallback": False,
                "confidence_level": "high"
            }
        }


class IdentificationTestResponse(BaseModel):
    """Response of the diagnostic identification endpoint."""
    message: str
    image_url: str
    enhanced_mode_used: bool
    result: IdentificationResponse
    is_local_fallback: bool


# === Observation Schemas ===

class ObservationCreatedResponse(BaseModel):
    """Response after a successful observation submission."""
    message: str
    observation_id: str


class ObservationResponse(BaseModel):
    """Stored observation."""
    id: str
    species_name: str
    common_name: Optional[str] = None
    date_observed: Optional[str] = None
    location: str
    image_url: str
    notes: Optional[str] = None
    ai_identification: dict = Field(default_factory=dict)
    created_at: float


class ObservationListResponse(BaseModel):
    """Stored observations, newest first."""
    observations: list[ObservationResponse]
    total: int


class LocationCount(BaseModel):
    location: str
    count: int


class ObservationStatsResponse(BaseModel):
    """Aggregate observation statistics."""
    total_observations: int
    categories: dict[str, int]
    top_locations: list[LocationCount]
    ai_identified: int = Field(..., description="Observations identified by an online classifier")
    identification_tiers: dict[str, int]


# === Species Reference Schemas ===

class SpeciesEntry(BaseModel):
    """Entry of the species reference table."""
    scientific_name: str
    common_name: str
    description: Optional[str] = None


class SpeciesListResponse(BaseModel):
    species: list[SpeciesEntry]
    total: int


# === Error Schemas ===

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[dict] = Field(default=None, description="Additional error details")

# Data models module
from wildlife_id.models.schemas import (
    IdentifyRequest,
    IdentificationResponse,
    SuggestionSchema,
    ObservationRequest,
    ErrorResponse,
)
from wildlife_id.models.enums import ConfidenceLevel, InvocationTier, ModelKind

__all__ = [
    "IdentifyRequest",
    "IdentificationResponse",
    "SuggestionSchema",
    "ObservationRequest",
    "ErrorResponse",
    "ConfidenceLevel",
    "InvocationTier",
    "ModelKind",
]

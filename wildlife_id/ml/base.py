"""
Base interfaces and data structures for species identification.

Provides:
- Suggestion: One candidate species match
- IdentificationResult: Output of the identification pipeline
- RawPrediction: Unprocessed (label, score) pair from a remote classifier
- ClassifierInterface: Abstract base for remote image classifiers
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from wildlife_id.models.enums import InvocationTier, ModelKind


MAX_SUGGESTIONS = 5


@dataclass(frozen=True)
class Suggestion:
    """
    One candidate species match.

    ``confidence`` semantics depend on the source: a model-reported
    probability for remote tiers, an engineered plausibility ranking for
    the local fallback.
    """
    name: str
    confidence: float
    scientific_name: Optional[str] = None

    def __post_init__(self):
        if not self.name:
            raise ValueError("Suggestion name must be non-empty")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence out of range: {self.confidence}")

    def with_scientific_name(self, scientific_name: str) -> "Suggestion":
        return Suggestion(
            name=self.name,
            confidence=self.confidence,
            scientific_name=scientific_name,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "scientific_name": self.scientific_name,
            "confidence": self.confidence,
        }


def rank_suggestions(
    suggestions: Sequence[Suggestion],
    limit: int = MAX_SUGGESTIONS
) -> List[Suggestion]:
    """Sort descending by confidence and keep the top ``limit`` entries."""
    # sorted() is stable, so equal confidences keep their source order
    return sorted(suggestions, key=lambda s: s.confidence, reverse=True)[:limit]


@dataclass(frozen=True)
class IdentificationResult:
    """
    Result of one identification request.

    Constructed once per request and never mutated afterwards.
    """
    suggestions: Tuple[Suggestion, ...] = ()
    raw_response: Optional[str] = None
    tier: Optional[InvocationTier] = None

    @property
    def top(self) -> Optional[Suggestion]:
        return self.suggestions[0] if self.suggestions else None

    @property
    def is_local_fallback(self) -> bool:
        return self.tier is InvocationTier.LOCAL_FALLBACK

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data: Dict[str, Any] = {
            "suggestions": [s.to_dict() for s in self.suggestions],
        }
        if self.raw_response:
            data["rawResponse"] = self.raw_response
        return data


@dataclass(frozen=True)
class RawPrediction:
    """Single (label, score) pair as returned by a remote classifier."""
    label: str
    score: float


@dataclass(frozen=True)
class ImagePayload:
    """
    Resolved image handed to the invocation chain.

    ``content`` is what remote classifiers receive; ``text`` is the data URL
    encoding the local heuristics read.
    """
    content: bytes
    text: str
    mime_type: str = "application/octet-stream"
    source: str = "data_url"  # "data_url" or "url"


@dataclass
class ChainOutcome:
    """Suggestions from the invocation chain and the tier that produced them."""
    suggestions: List[Suggestion] = field(default_factory=list)
    tier: InvocationTier = InvocationTier.LOCAL_FALLBACK


class ClassifierInterface(ABC):
    """
    Abstract base class for remote image classifiers.

    Implementations accept raw image bytes and return the model's
    (label, score) pairs. Any failure is raised; the invocation chain
    decides what to do with it.
    """

    @property
    @abstractmethod
    def model_id(self) -> str:
        """Identifier of the remote model (e.g. 'google/vit-base-patch16-224')."""
        pass

    @property
    @abstractmethod
    def model_kind(self) -> ModelKind:
        """Label format emitted by this model."""
        pass

    @abstractmethod
    async def classify(self, image_bytes: bytes) -> List[RawPrediction]:
        """
        Classify an image.

        Args:
            image_bytes: Encoded image bytes (JPEG, PNG, ...)

        Returns:
            List of RawPrediction in the order the model returned them
        """
        pass

    def get_model_info(self) -> Dict[str, Any]:
        """Get model metadata for API responses."""
        return {
            "model_id": self.model_id,
            "model_kind": self.model_kind.value,
        }

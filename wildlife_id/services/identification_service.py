"""
Species Identification Orchestration Service

Coordinates the identification pipeline:
1. Image resolution (data URL or fetched URL)
2. Model invocation chain (remote tiers, then local heuristics)
3. Ranking and truncation of suggestions
4. Scientific-name enrichment of the top suggestion (enhanced mode)
5. Narrative explanation (enhanced mode)

``identify`` never raises for ordinary failures. A source image that cannot be
obtained skips the chain and goes straight to the local fallback; anything
unexpected is converted into the emergency fallback result.

Pipeline Flow:
```
Image reference
     |
┌────▼────┐
│ Resolve │ --fail--> local fallback ("no image data")
└────┬────┘
     |
┌────▼────┐
│  Chain  │ → primary → backup_1 → backup_2 → local heuristics
└────┬────┘
     |
┌────▼────┐
│ Rank/Cut│ → top 5 by confidence
└────┬────┘
     |
┌────▼────┐
│ Enrich  │ → scientific name from reference lookup (enhanced)
└────┬────┘
     |
IdentificationResult
```
"""

import asyncio
import logging
import math
from typing import List, Optional

import httpx

from wildlife_id.core.config import Settings, get_settings
from wildlife_id.core.exceptions import ImageSourceError, ReferenceLookupError
from wildlife_id.ml.base import IdentificationResult, Suggestion, rank_suggestions
from wildlife_id.ml.heuristic_analyzer import local_fallback_suggestions, mixed_suggestions
from wildlife_id.ml.invocation_chain import ModelInvocationChain, build_default_chain
from wildlife_id.models.enums import InvocationTier
from wildlife_id.services.image_source import resolve_image
from wildlife_id.services.reference_lookup import ReferenceLookupService

logger = logging.getLogger(__name__)


PRIMARY_NOTE = (
    "This identification is based on visual features analyzed by a general "
    "image classification model."
)
BACKUP_NOTE = (
    "Note: This identification used a fallback image classifier since the "
    "primary model was unavailable."
)
# Kept back from a caller's time budget for the local tier and result assembly
LOCAL_RESERVE_SECONDS = 0.5

LOCAL_NOTE = (
    "Note: This is a suggested match from our local database as online "
    "identification services are currently unavailable."
)


def as_percent(confidence: float) -> int:
    """Confidence as a whole percentage, halves rounded up."""
    return int(math.floor(confidence * 100 + 0.5))


def describe_suggestion(suggestion: Suggestion) -> str:
    if suggestion.scientific_name:
        return f"{suggestion.name} ({suggestion.scientific_name})"
    return suggestion.name


def compose_narrative(top: Suggestion, tier: InvocationTier) -> str:
    """
    Explain the top suggestion and where it came from.

    Args:
        top: Highest ranked suggestion
        tier: Invocation tier that produced the suggestions
    """
    opening = (
        f"I've identified this as a {describe_suggestion(top)} "
        f"with {as_percent(top.confidence)}% confidence. "
    )
    if tier is InvocationTier.LOCAL_FALLBACK:
        return opening + LOCAL_NOTE
    if tier is InvocationTier.PRIMARY:
        return opening + PRIMARY_NOTE
    return opening + BACKUP_NOTE


def compose_fallback_narrative(top: Suggestion) -> str:
    """Explain a guess made without reaching any online classifier."""
    return (
        "I couldn't connect to the online identification service. "
        f"Based on basic image analysis, this might be {describe_suggestion(top)} "
        f"with {as_percent(top.confidence)}% confidence, but this is a low-confidence "
        "guess because online identification services are currently unavailable. "
        "For accurate identification, please try again later when online services "
        "are available."
    )


class IdentificationService:
    """
    Main entry point for species identification.

    Usage:
        service = IdentificationService()
        result = await service.identify(
            "https://example.org/photo.jpg",
            enhanced_mode=True
        )
        result.suggestions, result.raw_response, result.tier
    """

    def __init__(
        self,
        chain: Optional[ModelInvocationChain] = None,
        reference_lookup: Optional[ReferenceLookupService] = None,
        client: Optional[httpx.AsyncClient] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize the service with its collaborators.

        Components can be injected for testing; by default everything is
        built from settings and shares one HTTP client.
        """
        self.settings = settings or get_settings()
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient()
        self.chain = chain or build_default_chain(self.settings, client=self.client)
        self.reference_lookup = reference_lookup or ReferenceLookupService(
            client=self.client,
            base_url=self.settings.reference_lookup_url,
            timeout=self.settings.reference_lookup_timeout_seconds,
        )

    @property
    def max_image_bytes(self) -> int:
        return int(self.settings.max_image_size_mb * 1024 * 1024)

    def _deadline(self, time_budget: Optional[float]) -> Optional[float]:
        """Event loop time by which remote work must end, leaving room for the local tier."""
        if time_budget is None:
            return None
        return asyncio.get_running_loop().time() + time_budget - LOCAL_RESERVE_SECONDS

    @staticmethod
    def _time_left(deadline: Optional[float], limit: float) -> float:
        if deadline is None:
            return limit
        return min(limit, deadline - asyncio.get_running_loop().time())

    async def identify(
        self,
        image: str,
        enhanced_mode: bool = False,
        time_budget: Optional[float] = None,
    ) -> IdentificationResult:
        """
        Identify the species in an image.

        Args:
            image: Data URL or image URL
            enhanced_mode: Enrich the top suggestion and add a narrative
            time_budget: Seconds the caller will wait. Image fetch, remote
                tiers and the reference lookup are cut short so the local
                tier can still answer inside it.

        Returns:
            IdentificationResult with at most ``max_suggestions`` suggestions,
            sorted by descending confidence
        """
        logger.info("Starting species identification...")
        image_text: Optional[str] = None
        deadline = self._deadline(time_budget)

        try:
            try:
                payload = await asyncio.wait_for(
                    resolve_image(
                        image,
                        client=self.client,
                        timeout=self.settings.image_fetch_timeout_seconds,
                        max_bytes=self.max_image_bytes,
                    ),
                    timeout=self._time_left(deadline, self.settings.image_fetch_timeout_seconds),
                )
            except asyncio.TimeoutError:
                logger.error("Image fetch exceeded the time budget, using local fallback")
                return self._fallback_result(local_fallback_suggestions(None), enhanced_mode)
            except ImageSourceError as e:
                logger.error(f"Image source unavailable, using local fallback: {e}")
                return self._fallback_result(local_fallback_suggestions(None), enhanced_mode)

            image_text = payload.text
            outcome = await self.chain.run(payload, deadline=deadline)
            suggestions = rank_suggestions(outcome.suggestions, self.settings.max_suggestions)

            raw_response = None
            if enhanced_mode and suggestions:
                logger.info("Enhanced mode: performing additional processing...")
                suggestions[0] = await self._enrich(suggestions[0], deadline)
                raw_response = compose_narrative(suggestions[0], outcome.tier)

            logger.info(
                f"Species identification complete via {outcome.tier.value} "
                f"({len(suggestions)} suggestion(s))"
            )
            return IdentificationResult(
                suggestions=tuple(suggestions),
                raw_response=raw_response,
                tier=outcome.tier,
            )

        except Exception as e:
            logger.exception(f"Error in species identification: {e}")
            return self._emergency_result(image_text, enhanced_mode)

    async def _enrich(self, top: Suggestion, deadline: Optional[float] = None) -> Suggestion:
        """Fill in the top suggestion's scientific name if it has none."""
        if top.scientific_name:
            return top

        timeout = self._time_left(deadline, self.settings.reference_lookup_timeout_seconds)
        if timeout <= 0:
            logger.warning(f"No time left for reference lookup of '{top.name}'")
            return top

        try:
            scientific_name = await asyncio.wait_for(
                self.reference_lookup.find_scientific_name(top.name),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Reference lookup for '{top.name}' timed out")
            return top
        except ReferenceLookupError as e:
            logger.warning(f"Reference lookup failed: {e}")
            return top
        except Exception as e:
            logger.warning(f"Reference lookup raised {type(e).__name__}, keeping top suggestion: {e}")
            return top

        return top.with_scientific_name(scientific_name) if scientific_name else top

    def _fallback_result(
        self,
        suggestions: List[Suggestion],
        enhanced_mode: bool,
    ) -> IdentificationResult:
        suggestions = rank_suggestions(suggestions, self.settings.max_suggestions)
        raw_response = None
        if enhanced_mode and suggestions:
            raw_response = compose_fallback_narrative(suggestions[0])
        return IdentificationResult(
            suggestions=tuple(suggestions),
            raw_response=raw_response,
            tier=InvocationTier.LOCAL_FALLBACK,
        )

    def _emergency_result(self, image_text: Optional[str], enhanced_mode: bool) -> IdentificationResult:
        """Last-resort result; must not raise."""
        logger.warning("Using emergency local fallback for species identification")
        try:
            suggestions = local_fallback_suggestions(image_text) if image_text else mixed_suggestions()
            return self._fallback_result(suggestions, enhanced_mode)
        except Exception as e:
            logger.error(f"Emergency fallback failed, returning mixed suggestions: {e}")
            return IdentificationResult(
                suggestions=tuple(mixed_suggestions()),
                tier=InvocationTier.LOCAL_FALLBACK,
            )

    def describe(self) -> dict:
        """Configured pipeline, for readiness checks."""
        return {
            "tiers": self.chain.describe(),
            "reference_lookup_url": self.reference_lookup.base_url,
            "max_suggestions": self.settings.max_suggestions,
        }

    async def close(self) -> None:
        """Release the shared HTTP client if this service created it."""
        if self._owns_client:
            await self.client.aclose()


# Singleton instance
_identification_service: Optional[IdentificationService] = None


def get_identification_service() -> IdentificationService:
    """Get or create the identification service singleton."""
    global _identification_service
    if _identification_service is None:
        _identification_service = IdentificationService()
    return _identification_service


async def shutdown_identification_service() -> None:
    """Close the singleton's resources (called on app shutdown)."""
    global _identification_service
    if _identification_service is not None:
        await _identification_service.close()
        _identification_service = None

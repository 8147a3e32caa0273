"""
Species identification endpoints.

- POST /identify: identify the species in an image
- GET /identify/test: diagnostic endpoint taking the image URL as a query parameter
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from wildlife_id.core.config import Settings
from wildlife_id.core.dependencies import (
    IdentificationService,
    get_identification_service,
    get_settings,
)
from wildlife_id.ml.base import IdentificationResult
from wildlife_id.models.enums import ConfidenceLevel
from wildlife_id.models.schemas import (
    ErrorResponse,
    IdentificationResponse,
    IdentificationTestResponse,
    IdentifyRequest,
    SuggestionSchema,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/identify", tags=["Identification"])


def to_response(result: IdentificationResult) -> IdentificationResponse:
    """Convert an IdentificationResult to its API schema."""
    top = result.top
    return IdentificationResponse(
        suggestions=[
            SuggestionSchema(
                name=s.name,
                scientific_name=s.scientific_name,
                confidence=s.confidence,
            )
            for s in result.suggestions
        ],
        raw_response=result.raw_response,
        tier=result.tier,
        is_local_fallback=result.is_local_fallback,
        confidence_level=ConfidenceLevel.from_score(top.confidence) if top else None,
    )


@router.post(
    "",
    response_model=IdentificationResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request"},
        504: {"model": ErrorResponse, "description": "Identification timed out"},
    },
    summary="Identify species in an image",
    description="""
    Identify the species in a photo.

    The image is classified by a chain of online models; when none of them is
    reachable a local heuristic produces low-confidence suggestions instead.

    **Image:**
    - A data URL (`data:image/jpeg;base64,...`) or an image URL

    **Enhanced mode:**
    - Looks up a scientific name for the top match when it has none
    - Adds a narrative explanation naming the tier that produced the result
    """
)
async def identify_species(
    request: IdentifyRequest,
    service: IdentificationService = Depends(get_identification_service),
    settings: Settings = Depends(get_settings),
) -> IdentificationResponse:
    """Identify the species in an image."""
    logger.info(f"Received identification request (enhanced_mode={request.enhanced_mode})")

    try:
        result = await asyncio.wait_for(
            service.identify(
                request.image,
                enhanced_mode=request.enhanced_mode,
                time_budget=settings.identify_timeout_seconds,
            ),
            timeout=settings.identify_timeout_seconds,
        )
    except asyncio.TimeoutError:
        logger.error(f"Identification timed out after {settings.identify_timeout_seconds}s")
        raise HTTPException(status_code=504, detail="Identification timed out")

    if result.top:
        logger.info(
            f"Identification complete: {result.top.name} "
            f"({result.top.confidence:.2%}) via {result.tier.value if result.tier else 'unknown'}"
        )
    return to_response(result)


@router.get(
    "/test",
    response_model=IdentificationTestResponse,
    responses={400: {"model": ErrorResponse, "description": "Missing imageUrl"}},
    summary="Diagnostic identification",
    description="Run identification on an image URL and report whether the local fallback was used."
)
async def test_identification(
    image_url: Optional[str] = Query(default=None, alias="imageUrl"),
    enhanced_mode: Optional[bool] = Query(default=None, alias="enhancedMode"),
    enhanced_prompt: Optional[bool] = Query(default=None, alias="enhancedPrompt"),
    service: IdentificationService = Depends(get_identification_service),
    settings: Settings = Depends(get_settings),
) -> IdentificationTestResponse:
    """
    Diagnostic endpoint for the identification pipeline.

    ``enhancedPrompt`` is accepted as an alias of ``enhancedMode``.
    """
    if not image_url:
        raise HTTPException(status_code=400, detail="Please provide an imageUrl parameter")

    use_enhanced = bool(enhanced_mode or enhanced_prompt)
    logger.info(f"Testing species identification (enhanced_mode={use_enhanced})")

    try:
        result = await asyncio.wait_for(
            service.identify(
                image_url,
                enhanced_mode=use_enhanced,
                time_budget=settings.identify_timeout_seconds,
            ),
            timeout=settings.identify_timeout_seconds,
        )
    except asyncio.TimeoutError:
        logger.error(f"Identification test timed out after {settings.identify_timeout_seconds}s")
        raise HTTPException(status_code=504, detail="Identification timed out")

    if result.is_local_fallback:
        message = "Species identification completed using local fallback (online services unavailable)"
    elif not result.suggestions:
        message = "Species identification completed but returned no suggestions"
    else:
        message = "Species identification completed successfully"

    return IdentificationTestResponse(
        message=message,
        image_url=image_url,
        enhanced_mode_used=use_enhanced,
        result=to_response(result),
        is_local_fallback=result.is_local_fallback,
    )

"""
Observation endpoints.

- POST /observations: submit an observation (runs AI identification)
- GET /observations: list stored observations
- GET /observations/stats: aggregate statistics
- GET /observations/{observation_id}: read one observation
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from wildlife_id.core.dependencies import ObservationService, get_observation_service
from wildlife_id.models.schemas import (
    ErrorResponse,
    ObservationCreatedResponse,
    ObservationListResponse,
    ObservationRequest,
    ObservationResponse,
    ObservationStatsResponse,
)
from wildlife_id.services.observation_service import Observation, ObservationSubmission

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/observations", tags=["Observations"])


def to_response(observation: Observation) -> ObservationResponse:
    return ObservationResponse(**observation.to_dict())


@router.post(
    "",
    response_model=ObservationCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse, "description": "Missing required field"}},
    summary="Submit an observation",
    description="""
    Store a wildlife observation.

    The photo is identified in enhanced mode. When the top suggestion is
    confident enough it fills in names the observer left empty; if
    identification fails the observation is still stored.
    """
)
async def submit_observation(
    request: ObservationRequest,
    service: ObservationService = Depends(get_observation_service),
) -> ObservationCreatedResponse:
    """Submit a new observation."""
    submission = ObservationSubmission(
        species_name=request.species_name or "",
        common_name=request.common_name,
        date_observed=request.date_observed,
        location=request.location or "",
        notes=request.notes,
        image=request.image or "",
    )

    try:
        observation = await service.submit(submission)
    except ValueError as e:
        logger.warning(f"Validation error: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    return ObservationCreatedResponse(
        message="Observation submitted successfully",
        observation_id=observation.id,
    )


@router.get("", response_model=ObservationListResponse, summary="List observations")
async def list_observations(
    limit: int = Query(default=50, ge=1, le=500),
    service: ObservationService = Depends(get_observation_service),
) -> ObservationListResponse:
    """Stored observations, newest first."""
    observations = service.list(limit)
    return ObservationListResponse(
        observations=[to_response(o) for o in observations],
        total=len(observations),
    )


@router.get("/stats", response_model=ObservationStatsResponse, summary="Observation statistics")
async def observation_stats(
    service: ObservationService = Depends(get_observation_service),
) -> ObservationStatsResponse:
    """Counts by species category, top locations and identification tier."""
    return ObservationStatsResponse(**service.stats())


@router.get(
    "/{observation_id}",
    response_model=ObservationResponse,
    responses={404: {"model": ErrorResponse, "description": "Observation not found"}},
    summary="Get an observation",
)
async def get_observation(
    observation_id: str,
    service: ObservationService = Depends(get_observation_service),
) -> ObservationResponse:
    observation = service.get(observation_id)
    if observation is None:
        raise HTTPException(status_code=404, detail=f"Observation '{observation_id}' not found")
    return to_response(observation)

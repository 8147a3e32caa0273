"""
Species reference endpoints.

Expose the species reference table used to normalize classifier labels.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional

from wildlife_id.core.dependencies import SpeciesReferenceTable, get_species_reference
from wildlife_id.models.schemas import ErrorResponse, SpeciesEntry, SpeciesListResponse

router = APIRouter(prefix="/species", tags=["Species"])


@router.get("", response_model=SpeciesListResponse, summary="List reference species")
async def list_species(
    q: Optional[str] = Query(default=None, description="Case-insensitive name filter"),
    reference: SpeciesReferenceTable = Depends(get_species_reference),
) -> SpeciesListResponse:
    entries = reference.entries()
    if q:
        needle = q.lower()
        entries = [
            e for e in entries
            if needle in e.common_name.lower() or needle in e.scientific_name.lower()
        ]

    species = [
        SpeciesEntry(
            scientific_name=e.scientific_name,
            common_name=e.common_name,
            description=reference.get_description(e.scientific_name),
        )
        for e in entries
    ]
    return SpeciesListResponse(species=species, total=len(species))


@router.get(
    "/{scientific_name}",
    response_model=SpeciesEntry,
    responses={404: {"model": ErrorResponse, "description": "Species not found"}},
    summary="Get a reference species",
)
async def get_species(
    scientific_name: str,
    reference: SpeciesReferenceTable = Depends(get_species_reference),
) -> SpeciesEntry:
    """
    Look up a species by scientific name.

    Matching follows the reference table rules, so partial names resolve to
    the first species containing them.
    """
    common_name = reference.lookup_common_name(scientific_name)
    if common_name is None:
        raise HTTPException(status_code=404, detail=f"Species '{scientific_name}' not found")

    resolved = next(
        (e.scientific_name for e in reference.entries() if e.common_name == common_name),
        scientific_name,
    )
    return SpeciesEntry(
        scientific_name=resolved,
        common_name=common_name,
        description=reference.get_description(resolved),
    )

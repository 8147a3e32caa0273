"""
FastAPI dependency injection.

Provides dependency injection for services and components,
enabling easy testing and component swapping.
"""

from wildlife_id.core.config import Settings, get_settings
from wildlife_id.ml.species_reference import SpeciesReferenceTable, get_species_reference
from wildlife_id.services.identification_service import (
    IdentificationService,
    get_identification_service,
)
from wildlife_id.services.observation_service import (
    ObservationService,
    get_observation_service,
)


__all__ = [
    "Settings",
    "IdentificationService",
    "ObservationService",
    "SpeciesReferenceTable",
    "get_settings",
    "get_identification_service",
    "get_observation_service",
    "get_species_reference",
]

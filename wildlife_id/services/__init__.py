# Services module
from wildlife_id.services.identification_service import IdentificationService
from wildlife_id.services.observation_service import ObservationService

__all__ = [
    "IdentificationService",
    "ObservationService",
]

# API routes module
from wildlife_id.api.routes.health import router as health_router
from wildlife_id.api.routes.identify import router as identify_router
from wildlife_id.api.routes.observations import router as observations_router
from wildlife_id.api.routes.species import router as species_router

__all__ = ["health_router", "identify_router", "observations_router", "species_router"]

"""
Observation Submission Service

Accepts wildlife observations, runs AI identification on the photo and
stores the result through an ObservationRepository.

Identification runs in enhanced mode under an outer time guard. A high
confidence top suggestion fills in names the observer left empty; a failed
or timed-out identification is recorded as a zero-confidence placeholder
instead of rejecting the observation.
"""

import asyncio
import logging
import threading
import time
import uuid
from abc import ABC, abstractmethod
from collections import Counter, OrderedDict
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from wildlife_id.core.config import Settings, get_settings
from wildlife_id.services.identification_service import (
    IdentificationService,
    get_identification_service,
)

logger = logging.getLogger(__name__)


FAILED_IDENTIFICATION_NAME = "AI identification failed"

# First matching category wins, in this order
CATEGORY_KEYWORDS = OrderedDict([
    ("mammals", ("mammal", "leopard", "monkey", "deer", "squirrel", "boar", "fox", "jackal")),
    ("birds", ("bird", "vulture", "eagle", "hawk", "sparrow", "bulbul", "parrot", "parakeet", "owl")),
    ("plants", ("plant", "tree", "flower", "shrub", "herb", "grass", "pine", "oak")),
    ("reptiles", ("reptile", "snake", "cobra", "viper", "lizard", "crocodile", "turtle")),
    ("insects", ("insect", "butterfly", "moth", "beetle", "ant", "bee", "wasp", "spider")),
])

TOP_LOCATIONS = 5


@dataclass
class ObservationSubmission:
    """Observer-supplied fields of a new observation."""
    species_name: str
    location: str
    image: str
    common_name: Optional[str] = None
    date_observed: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class Observation:
    """Stored observation including its AI identification record."""
    id: str
    species_name: str
    location: str
    image_url: str
    common_name: Optional[str] = None
    date_observed: Optional[str] = None
    notes: Optional[str] = None
    ai_identification: Dict[str, Any] = field(default_factory=dict)
    created_at: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


class ObservationRepository(ABC):
    """Storage boundary for observations."""

    @abstractmethod
    def save(self, observation: Observation) -> str:
        """Persist an observation and return its id."""
        pass

    @abstractmethod
    def get(self, observation_id: str) -> Optional[Observation]:
        pass

    @abstractmethod
    def list(self, limit: Optional[int] = None) -> List[Observation]:
        """Observations, newest first."""
        pass


class InMemoryObservationRepository(ObservationRepository):
    """Process-local repository; contents are lost on restart."""

    def __init__(self):
        self._observations: Dict[str, Observation] = {}
        self._lock = threading.Lock()

    def save(self, observation: Observation) -> str:
        with self._lock:
            self._observations[observation.id] = observation
        return observation.id

    def get(self, observation_id: str) -> Optional[Observation]:
        return self._observations.get(observation_id)

    def list(self, limit: Optional[int] = None) -> List[Observation]:
        with self._lock:
            observations = list(self._observations.values())
        observations.reverse()
        return observations[:limit] if limit is not None else observations

    def __len__(self) -> int:
        return len(self._observations)


def categorize(observation: Observation) -> str:
    """Coarse species category from the observation's names."""
    combined = f"{observation.species_name or ''} {observation.common_name or ''}".lower()
    for category, keywords in CATEGORY_KEYWORDS.items():
        if any(keyword in combined for keyword in keywords):
            return category
    return "others"


class ObservationService:
    """
    Observation submission workflow and read-back.

    Usage:
        service = ObservationService()
        observation = await service.submit(ObservationSubmission(
            species_name="Columba livia",
            location="Margalla Hills",
            image="https://example.org/pigeon.jpg",
        ))
    """

    def __init__(
        self,
        repository: Optional[ObservationRepository] = None,
        identification_service: Optional[IdentificationService] = None,
        settings: Optional[Settings] = None,
    ):
        self.repository = repository or InMemoryObservationRepository()
        self._identification_service = identification_service
        self.settings = settings or get_settings()

    @property
    def identification_service(self) -> IdentificationService:
        if self._identification_service is None:
            self._identification_service = get_identification_service()
        return self._identification_service

    @staticmethod
    def validate(submission: ObservationSubmission) -> None:
        """
        Check required fields.

        Raises:
            ValueError: If a required field is missing
        """
        if not submission.species_name or not submission.species_name.strip():
            raise ValueError("Species name is required")
        if not submission.location or not submission.location.strip():
            raise ValueError("Location is required")
        if not submission.image or not submission.image.strip():
            raise ValueError("Image is required")

    async def submit(self, submission: ObservationSubmission) -> Observation:
        """
        Validate, identify and store an observation.

        Raises:
            ValueError: If a required field is missing
        """
        logger.info("Starting observation submission process...")
        self.validate(submission)

        species_name = submission.species_name
        common_name = submission.common_name

        try:
            result = await asyncio.wait_for(
                self.identification_service.identify(
                    submission.image,
                    enhanced_mode=True,
                    time_budget=self.settings.submission_timeout_seconds,
                ),
                timeout=self.settings.submission_timeout_seconds,
            )
            ai_identification = result.to_dict()
            if result.tier is not None:
                ai_identification["tier"] = result.tier.value

            top = result.top
            if top is not None and top.confidence > self.settings.auto_fill_confidence_threshold:
                if not species_name and top.scientific_name:
                    logger.info(f"Using AI-detected scientific name: {top.scientific_name}")
                    species_name = top.scientific_name
                if not common_name:
                    logger.info(f"Using AI-detected common name: {top.name}")
                    common_name = top.name

        except asyncio.TimeoutError:
            logger.error(
                f"AI identification timed out after {self.settings.submission_timeout_seconds}s"
            )
            ai_identification = self._failed_identification(
                f"Request timed out after {self.settings.submission_timeout_seconds}s"
            )
        except Exception as e:
            logger.error(f"AI identification failed: {e}")
            ai_identification = self._failed_identification(str(e))

        observation = Observation(
            id=uuid.uuid4().hex,
            species_name=species_name,
            common_name=common_name,
            date_observed=submission.date_observed,
            location=submission.location,
            image_url=submission.image,
            notes=submission.notes,
            ai_identification=ai_identification,
        )
        self.repository.save(observation)
        logger.info(f"Observation stored successfully with ID: {observation.id}")
        return observation

    @staticmethod
    def _failed_identification(error: str) -> Dict[str, Any]:
        return {
            "suggestions": [{"name": FAILED_IDENTIFICATION_NAME, "scientific_name": None, "confidence": 0.0}],
            "error": error,
        }

    def get(self, observation_id: str) -> Optional[Observation]:
        return self.repository.get(observation_id)

    def list(self, limit: Optional[int] = None) -> List[Observation]:
        return self.repository.list(limit)

    def stats(self) -> Dict[str, Any]:
        """Observation counts by category, location and identification tier."""
        observations = self.repository.list()

        categories = {category: 0 for category in CATEGORY_KEYWORDS}
        categories["others"] = 0
        locations: Counter = Counter()
        tiers: Counter = Counter()
        ai_identified = 0

        for observation in observations:
            categories[categorize(observation)] += 1
            if observation.location:
                locations[observation.location] += 1

            tier = observation.ai_identification.get("tier")
            tiers[tier or "failed"] += 1
            if tier and tier != "local_fallback":
                ai_identified += 1

        return {
            "total_observations": len(observations),
            "categories": categories,
            "top_locations": [
                {"location": location, "count": count}
                for location, count in locations.most_common(TOP_LOCATIONS)
            ],
            "ai_identified": ai_identified,
            "identification_tiers": dict(tiers),
        }


# Singleton instance
_observation_service: Optional[ObservationService] = None


def get_observation_service() -> ObservationService:
    """Get or create the observation service singleton."""
    global _observation_service
    if _observation_service is None:
        _observation_service = ObservationService()
    return _observation_service

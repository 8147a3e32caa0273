"""
Tests for ObservationService - submission workflow, storage and statistics.
"""

import asyncio

import pytest

from wildlife_id.ml.base import IdentificationResult, Suggestion
from wildlife_id.models.enums import InvocationTier
from wildlife_id.services.observation_service import (
    FAILED_IDENTIFICATION_NAME,
    InMemoryObservationRepository,
    Observation,
    ObservationService,
    ObservationSubmission,
    categorize,
)

from conftest import make_settings


class StubIdentificationService:
    """Identification stand-in returning a fixed result."""

    def __init__(self, result=None, error=None, delay=0.0):
        self.result = result
        self.error = error
        self.delay = delay
        self.calls = []

    async def identify(self, image, enhanced_mode=False, time_budget=None):
        self.calls.append((image, enhanced_mode))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


def make_result(name, confidence, scientific_name=None, tier=InvocationTier.PRIMARY):
    return IdentificationResult(
        suggestions=(Suggestion(name, confidence, scientific_name),),
        raw_response="narrative",
        tier=tier,
    )


def make_submission(**overrides):
    values = dict(
        species_name="Columba livia",
        location="Margalla Hills",
        image="https://images.test/photos/pigeon.jpg",
    )
    values.update(overrides)
    return ObservationSubmission(**values)


def make_service(identification, **settings_overrides):
    return ObservationService(
        repository=InMemoryObservationRepository(),
        identification_service=identification,
        settings=make_settings(**settings_overrides),
    )


class TestSubmission:
    """Observation submission workflow."""

    @pytest.mark.asyncio
    async def test_identification_runs_in_enhanced_mode(self):
        identification = StubIdentificationService(make_result("Rock Pigeon", 0.9, "Columba livia"))
        service = make_service(identification)

        observation = await service.submit(make_submission())

        assert identification.calls == [("https://images.test/photos/pigeon.jpg", True)]
        assert service.get(observation.id) is observation
        assert observation.ai_identification["tier"] == "primary"
        assert observation.ai_identification["rawResponse"] == "narrative"

    @pytest.mark.asyncio
    async def test_confident_result_fills_common_name(self):
        service = make_service(StubIdentificationService(make_result("Rock Pigeon", 0.9, "Columba livia")))

        observation = await service.submit(make_submission())

        assert observation.common_name == "Rock Pigeon"
        assert observation.species_name == "Columba livia"

    @pytest.mark.asyncio
    async def test_observer_common_name_is_kept(self):
        service = make_service(StubIdentificationService(make_result("Rock Pigeon", 0.9, "Columba livia")))

        observation = await service.submit(make_submission(common_name="Kabootar"))

        assert observation.common_name == "Kabootar"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("confidence", [0.7, 0.45])
    async def test_low_confidence_result_does_not_fill(self, confidence):
        service = make_service(StubIdentificationService(make_result("Rock Pigeon", confidence, "Columba livia")))

        observation = await service.submit(make_submission())

        assert observation.common_name is None

    @pytest.mark.asyncio
    async def test_identification_failure_is_recorded(self):
        service = make_service(StubIdentificationService(error=RuntimeError("pipeline exploded")))

        observation = await service.submit(make_submission())

        suggestion = observation.ai_identification["suggestions"][0]
        assert suggestion["name"] == FAILED_IDENTIFICATION_NAME
        assert suggestion["confidence"] == 0.0
        assert "pipeline exploded" in observation.ai_identification["error"]

    @pytest.mark.asyncio
    async def test_identification_timeout_is_recorded(self):
        slow = StubIdentificationService(make_result("Rock Pigeon", 0.9), delay=5.0)
        service = make_service(slow, submission_timeout_seconds=0.05)

        observation = await service.submit(make_submission())

        assert observation.ai_identification["suggestions"][0]["name"] == FAILED_IDENTIFICATION_NAME
        assert "timed out" in observation.ai_identification["error"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("overrides,message", [
        ({"species_name": ""}, "Species name is required"),
        ({"location": "  "}, "Location is required"),
        ({"image": ""}, "Image is required"),
    ])
    async def test_missing_fields(self, overrides, message):
        identification = StubIdentificationService(make_result("Rock Pigeon", 0.9))
        service = make_service(identification)

        with pytest.raises(ValueError, match=message):
            await service.submit(make_submission(**overrides))
        assert identification.calls == []


class TestRepository:

    def test_list_newest_first(self):
        repository = InMemoryObservationRepository()
        for i in range(3):
            repository.save(Observation(id=str(i), species_name="x", location="y", image_url="z"))

        assert [o.id for o in repository.list()] == ["2", "1", "0"]
        assert [o.id for o in repository.list(limit=2)] == ["2", "1"]
        assert repository.get("missing") is None


class TestStats:

    @pytest.mark.parametrize("species_name,common_name,category", [
        ("Panthera pardus", "Leopard", "mammals"),
        ("Columba livia", "Rock Pigeon bird", "birds"),
        ("Pinus roxburghii", "Chir Pine", "plants"),
        ("Naja naja", "Indian Cobra", "reptiles"),
        ("Danaus plexippus", "Monarch Butterfly", "insects"),
        ("Unknown", None, "others"),
    ])
    def test_categorize(self, species_name, common_name, category):
        observation = Observation(
            id="1", species_name=species_name, common_name=common_name, location="x", image_url="y"
        )
        assert categorize(observation) == category

    @pytest.mark.asyncio
    async def test_stats(self):
        service = make_service(StubIdentificationService(make_result("Rock Pigeon", 0.9, "Columba livia")))
        await service.submit(make_submission(common_name="Leopard", location="Trail 3"))
        await service.submit(make_submission(common_name="Chir Pine", location="Trail 3"))

        service._identification_service = StubIdentificationService(
            make_result("Unidentified Plant", 0.45, tier=InvocationTier.LOCAL_FALLBACK)
        )
        await service.submit(make_submission(common_name="Chir Pine", location="Daman-e-Koh"))

        stats = service.stats()

        assert stats["total_observations"] == 3
        assert stats["categories"]["mammals"] == 1
        assert stats["categories"]["plants"] == 2
        assert stats["top_locations"][0] == {"location": "Trail 3", "count": 2}
        assert stats["ai_identified"] == 2
        assert stats["identification_tiers"] == {"primary": 2, "local_fallback": 1}

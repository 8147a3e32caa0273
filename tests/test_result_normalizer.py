"""
Tests for ResultNormalizer - mapping classifier labels to suggestions.
"""

import pytest

from wildlife_id.ml.base import RawPrediction, Suggestion
from wildlife_id.ml.result_normalizer import ResultNormalizer
from wildlife_id.models.enums import ModelKind


@pytest.fixture
def normalizer():
    return ResultNormalizer()


class TestScientificLabels:
    """'Common name (Scientific name)' labels."""

    def test_rock_pigeon_label(self, normalizer):
        suggestion = normalizer.normalize("Rock Pigeon (Columba livia)", 0.83, ModelKind.SCIENTIFIC_LABEL)

        assert suggestion == Suggestion(name="Rock Pigeon", scientific_name="Columba livia", confidence=0.83)

    def test_missing_common_name_uses_reference(self, normalizer):
        suggestion = normalizer.normalize("Passer domesticus", 0.6, ModelKind.SCIENTIFIC_LABEL)

        assert suggestion.name == "House Sparrow"
        assert suggestion.scientific_name == "Passer domesticus"

    def test_missing_common_name_falls_back_to_genus(self, normalizer):
        suggestion = normalizer.normalize("(Nonexistus imaginarius)", 0.6, ModelKind.SCIENTIFIC_LABEL)

        assert suggestion.name == "Nonexistus"
        assert suggestion.scientific_name == "Nonexistus imaginarius"

    def test_missing_scientific_name_uses_reference(self, normalizer):
        suggestion = normalizer.normalize("Common Myna", 0.5, ModelKind.SCIENTIFIC_LABEL)

        assert suggestion.name == "Common Myna"
        assert suggestion.scientific_name == "Acridotheres tristis"


class TestGenericLabels:
    """ImageNet-style labels."""

    def test_feral_pigeon(self, normalizer):
        suggestion = normalizer.normalize("feral pigeon", 0.91, ModelKind.GENERIC)

        assert suggestion == Suggestion(name="Rock Pigeon", scientific_name="Columba livia", confidence=0.91)

    def test_bird_synonym_substring(self, normalizer):
        suggestion = normalizer.normalize("house sparrow, Passer domesticus", 0.4, ModelKind.GENERIC)

        assert suggestion.name == "House Sparrow"
        assert suggestion.scientific_name == "Passer domesticus"

    def test_rock_pigeon_label_with_generic_model(self, normalizer):
        suggestion = normalizer.normalize("Rock Pigeon (Columba livia)", 0.7, ModelKind.GENERIC)

        assert suggestion.name == "Rock Pigeon"
        assert suggestion.scientific_name == "Columba livia"

    def test_reference_lookup_keeps_label(self, normalizer):
        suggestion = normalizer.normalize("red_fox", 0.5, ModelKind.GENERIC)

        assert suggestion.name == "red_fox"
        assert suggestion.scientific_name == "Vulpes vulpes"

    def test_binomial_label(self, normalizer):
        suggestion = normalizer.normalize("Vulpes vulpes", 0.5, ModelKind.GENERIC)

        assert suggestion.name == "Red Fox"
        assert suggestion.scientific_name == "Vulpes vulpes"

    def test_unknown_label(self, normalizer):
        suggestion = normalizer.normalize("water ouzel, dipper", 0.3, ModelKind.GENERIC)

        assert suggestion.name == "water ouzel, dipper"
        assert suggestion.scientific_name is None


class TestScores:
    """Noise filtering and clamping."""

    @pytest.mark.parametrize("score", [0.0, 0.005, 0.01])
    def test_noise_is_discarded(self, normalizer, score):
        assert normalizer.normalize("feral pigeon", score, ModelKind.GENERIC) is None

    def test_just_above_noise_floor_is_kept(self, normalizer):
        assert normalizer.normalize("feral pigeon", 0.011, ModelKind.GENERIC) is not None

    def test_score_is_clamped(self, normalizer):
        suggestion = normalizer.normalize("feral pigeon", 1.7, ModelKind.GENERIC)
        assert suggestion.confidence == 1.0

    def test_empty_label_is_discarded(self, normalizer):
        assert normalizer.normalize("   ", 0.8, ModelKind.GENERIC) is None

    @pytest.mark.parametrize("score", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_score_is_discarded(self, normalizer, score):
        assert normalizer.normalize("feral pigeon", score, ModelKind.GENERIC) is None

    def test_blank_parenthetical_label_is_skipped(self, normalizer):
        predictions = [
            RawPrediction("( )", 0.7),
            RawPrediction("Rock Pigeon (Columba livia)", 0.6),
        ]

        suggestions = normalizer.normalize_all(predictions, ModelKind.SCIENTIFIC_LABEL)

        assert [s.name for s in suggestions] == ["Rock Pigeon"]

    def test_normalize_all_preserves_order(self, normalizer):
        predictions = [
            RawPrediction("water ouzel, dipper", 0.2),
            RawPrediction("feral pigeon", 0.6),
            RawPrediction("noise", 0.001),
        ]

        suggestions = normalizer.normalize_all(predictions, ModelKind.GENERIC)

        assert [s.confidence for s in suggestions] == [0.2, 0.6]

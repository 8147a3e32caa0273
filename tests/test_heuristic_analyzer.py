"""
Tests for the heuristic image analyzer and local fallback suggestions.

Confidence values of the canned lists are a plausibility ranking, so tests
check which list was selected and its ordering, not probabilities.
"""

import pytest

from wildlife_id.ml import heuristic_analyzer
from wildlife_id.ml.heuristic_analyzer import (
    BIRD_SUGGESTIONS,
    MAMMAL_SUGGESTIONS,
    MIXED_SUGGESTIONS,
    NO_IMAGE_SUGGESTIONS,
    PIGEON_SUGGESTIONS,
    PLANT_SUGGESTIONS,
    UNDETERMINED_SUGGESTIONS,
    analyze,
    analyze_colors,
    local_fallback_suggestions,
    mixed_suggestions,
)

from conftest import PIGEON_DATA_URL


def names(suggestions):
    return [s.name for s in suggestions]


class TestAnalyze:
    """Keyword and colour scoring."""

    def test_pigeon_detection(self):
        score = analyze(PIGEON_DATA_URL)

        assert score.bird_score == 4
        assert score.pigeon_score == 5
        assert score.is_probably_bird
        assert score.is_probably_pigeon
        assert not score.is_probably_plant

    def test_bird_without_pigeon(self):
        score = analyze("data:image/png;base64,bird feather wing beak sparrow")

        assert score.is_probably_bird
        assert not score.is_probably_pigeon

    def test_mammal_threshold(self):
        score = analyze("data:image/jpeg;base64,fur mammal leopard spots tail paws")

        assert score.mammal_score == 6
        assert score.is_probably_mammal

    def test_bird_wins_tie_with_plant(self):
        score = analyze("data:image/jpeg;base64,bird feather wing beak green leaf tree branch")

        assert score.bird_score == score.plant_score == 4
        assert score.is_probably_bird
        assert not score.is_probably_plant

    def test_plant_wins_with_higher_score(self):
        score = analyze("data:image/jpeg;base64,bird feather wing beak green leaf tree branch flower")

        assert score.plant_score == 5
        assert score.is_probably_plant
        assert not score.is_probably_bird
        assert not score.is_probably_pigeon

    def test_gray_dominance_bonus(self):
        score = analyze("data:image/png;base64," + "AQgw" * 500)

        assert score.bird_score == 3
        assert score.pigeon_score == 3
        assert score.is_probably_bird
        assert not score.is_probably_pigeon

    def test_green_dominance_bonus(self):
        score = analyze("data:image/png;base64," + "GHIJKLMN" * 200)

        assert score.plant_score == 3
        assert not score.is_probably_plant

    def test_never_raises_on_garbage(self):
        score = analyze(None)
        assert score.bird_score == 0
        assert not score.is_probably_plant

    def test_internal_error_yields_zero_score(self, monkeypatch):
        def boom(_):
            raise RuntimeError("sampling failed")

        monkeypatch.setattr(heuristic_analyzer, "analyze_colors", boom)
        score = analyze(PIGEON_DATA_URL)

        assert score.bird_score == 0
        assert not score.is_probably_bird


class TestAnalyzeColors:
    """Character-class sampling of base64 payloads."""

    def test_no_base64_marker(self):
        profile = analyze_colors("https://example.org/photo.jpg")

        assert profile.samples == 0
        assert not profile.is_gray_blue_white_dominant

    def test_sampling_is_bounded(self):
        profile = analyze_colors("data:image/png;base64," + "A" * 50_000)

        assert profile.samples == 1000
        assert profile.gray_blue_white == 1.0

    def test_brown_dominance(self):
        profile = analyze_colors("data:image/png;base64," + "BCDEFRST" * 100)

        assert profile.is_brown_tan_dominant
        assert not profile.is_green_dominant

    def test_share_below_minimum_is_not_dominant(self):
        profile = analyze_colors("data:image/png;base64," + "A" + "z" * 99)

        assert profile.gray_blue_white == pytest.approx(0.01)
        assert not profile.is_gray_blue_white_dominant


class TestLocalFallbackSuggestions:
    """Canned list selection."""

    def test_no_image_data(self):
        suggestions = local_fallback_suggestions(None)

        assert suggestions == list(NO_IMAGE_SUGGESTIONS)
        assert suggestions[0].confidence == 0.40
        assert suggestions[-1].confidence == 0.28

    def test_pigeon_list(self):
        suggestions = local_fallback_suggestions(PIGEON_DATA_URL)

        assert suggestions == list(PIGEON_SUGGESTIONS)
        assert suggestions[0].name == "Rock Pigeon"
        assert suggestions[0].scientific_name == "Columba livia"

    def test_bird_list_is_truncated(self):
        suggestions = local_fallback_suggestions("data:image/png;base64,bird feather wing beak sparrow")

        assert len(suggestions) == 5
        assert names(suggestions) == names(BIRD_SUGGESTIONS[:5])
        assert suggestions[0].confidence == 0.92

    def test_weak_bird_signal_is_not_a_bird(self):
        # Dominance bonus alone reaches the detection threshold but not the list threshold
        suggestions = local_fallback_suggestions("data:image/png;base64," + "AQgw" * 500)

        assert suggestions == list(UNDETERMINED_SUGGESTIONS)

    def test_plant_list(self):
        suggestions = local_fallback_suggestions("data:image/jpeg;base64,green leaf tree branch")

        assert names(suggestions) == names(PLANT_SUGGESTIONS[:5])
        assert suggestions[0].confidence == 0.72

    def test_mammal_list(self):
        suggestions = local_fallback_suggestions("data:image/jpeg;base64,fur mammal leopard spots tail paws")

        assert names(suggestions) == names(MAMMAL_SUGGESTIONS[:5])
        assert suggestions[0].name == "Leopard"

    def test_undetermined_list(self):
        suggestions = local_fallback_suggestions("data:image/jpeg;base64,xyz")

        assert suggestions == list(UNDETERMINED_SUGGESTIONS)
        assert suggestions[0].confidence == 0.45

    def test_failure_returns_mixed_list(self, monkeypatch):
        def boom(_):
            raise RuntimeError("analysis failed")

        monkeypatch.setattr(heuristic_analyzer, "analyze", boom)

        assert local_fallback_suggestions(PIGEON_DATA_URL) == list(MIXED_SUGGESTIONS)

    @pytest.mark.parametrize("image_text", [
        None,
        PIGEON_DATA_URL,
        "data:image/png;base64,bird feather wing beak sparrow",
        "data:image/jpeg;base64,green leaf tree branch",
        "data:image/jpeg;base64,fur mammal leopard spots tail paws",
        "data:image/jpeg;base64,xyz",
    ])
    def test_lists_are_sorted_and_bounded(self, image_text):
        suggestions = local_fallback_suggestions(image_text)

        assert 1 <= len(suggestions) <= 5
        confidences = [s.confidence for s in suggestions]
        assert confidences == sorted(confidences, reverse=True)
        assert all(0.26 <= c <= 0.92 for c in confidences)

    def test_deterministic(self):
        assert local_fallback_suggestions(PIGEON_DATA_URL) == local_fallback_suggestions(PIGEON_DATA_URL)

    def test_mixed_suggestions_range(self):
        confidences = [s.confidence for s in mixed_suggestions()]
        assert max(confidences) == 0.35
        assert min(confidences) == 0.26

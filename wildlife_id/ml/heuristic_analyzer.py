"""
Heuristic Image Analyzer

Network-free, deterministic content guess used when every remote classifier
is unreachable. This is not a model: it looks for curated keywords in the
image's text encoding and samples the base64 payload for character classes
that correlate loosely with dominant colours. Its output only selects one of
a few canned suggestion lists whose confidences are an engineered
plausibility ranking, not probabilities.

Algorithm:
1. Count keyword-set containment in the lower-cased encoded text
2. Sample the base64 payload at a fixed stride and tally three character classes
3. Add a +3 bonus to the category whose class strictly dominates (> 10%)
4. Threshold the scores into bird / pigeon / plant / mammal flags
5. Break bird-vs-plant conflicts by raw score (bird wins ties)
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from wildlife_id.ml.base import Suggestion, rank_suggestions

logger = logging.getLogger(__name__)


BIRD_INDICATORS = (
    "bird", "feather", "wing", "beak", "pigeon", "dove", "sparrow",
    # Colour patterns common in birds
    "grey-blue", "blue-grey", "gray-blue", "blue-gray", "white-gray",
    "white-grey", "gray-white", "grey-white",
)

PIGEON_INDICATORS = (
    "pigeon", "dove", "columba", "rock", "blue-gray", "blue-grey",
    "gray", "grey", "white", "round", "head",
)

PLANT_INDICATORS = (
    "green", "leaf", "tree", "plant", "branch", "flower", "grass", "trunk",
    "seed", "pine", "needle", "bush", "forest", "wood",
)

MAMMAL_INDICATORS = (
    "fur", "mammal", "cat", "dog", "bear", "paws", "face", "tail",
    "leopard", "spots", "stripes", "porcupine", "quills", "brown",
    "black", "orange", "yellow",
)

# Base64 characters that show up disproportionately in encodings of images
# dominated by each colour family. Empirical and crude.
GRAY_BLUE_WHITE_CHARS = "AQgw+/89"
GREEN_CHARS = "GHIJKLMN"
BROWN_TAN_CHARS = "BCDEFRST"

DOMINANCE_BONUS = 3
DOMINANCE_MIN_SHARE = 0.1
SAMPLE_TARGET = 1000

BIRD_THRESHOLD = 3
PIGEON_THRESHOLD = 4
PLANT_THRESHOLD = 4
MAMMAL_THRESHOLD = 5  # higher to suppress false positives


@dataclass
class ColorProfile:
    """Share of sampled payload characters in each colour class."""
    gray_blue_white: float = 0.0
    green: float = 0.0
    brown_tan: float = 0.0
    samples: int = 0

    def _dominates(self, share: float, *others: float) -> bool:
        return share > DOMINANCE_MIN_SHARE and all(share > other for other in others)

    @property
    def is_gray_blue_white_dominant(self) -> bool:
        return self._dominates(self.gray_blue_white, self.green, self.brown_tan)

    @property
    def is_green_dominant(self) -> bool:
        return self._dominates(self.green, self.gray_blue_white, self.brown_tan)

    @property
    def is_brown_tan_dominant(self) -> bool:
        return self._dominates(self.brown_tan, self.gray_blue_white, self.green)


@dataclass
class AnalysisScore:
    """Per-call heuristic scores and the category flags derived from them."""
    bird_score: int = 0
    pigeon_score: int = 0
    plant_score: int = 0
    mammal_score: int = 0
    is_probably_bird: bool = False
    is_probably_pigeon: bool = False
    is_probably_plant: bool = False
    is_probably_mammal: bool = False


def _count_indicators(text: str, indicators: Tuple[str, ...]) -> int:
    return sum(1 for indicator in indicators if indicator in text)


def _extract_payload(image_text: str) -> Optional[str]:
    if "base64" not in image_text:
        return None
    # base64 never contains commas; anything past a second comma is not payload
    parts = image_text.split(",")
    if len(parts) < 2 or not parts[1]:
        return None
    return parts[1]


def analyze_colors(image_text: str) -> Optional[ColorProfile]:
    """
    Sample the base64 payload of a data URL and tally colour classes.

    Args:
        image_text: Data URL ("data:image/jpeg;base64,...")

    Returns:
        ColorProfile, an empty profile when there is no base64 payload, or
        None if sampling failed
    """
    try:
        payload = _extract_payload(image_text)
        if payload is None:
            return ColorProfile()

        step = max(1, len(payload) // SAMPLE_TARGET)
        sampled = np.frombuffer(payload.encode("latin-1", errors="replace"), dtype=np.uint8)[::step]
        total = int(sampled.size)
        if total == 0:
            return ColorProfile()

        def share(chars: str) -> float:
            codes = np.frombuffer(chars.encode("ascii"), dtype=np.uint8)
            return float(np.isin(sampled, codes).sum()) / total

        profile = ColorProfile(
            gray_blue_white=share(GRAY_BLUE_WHITE_CHARS),
            green=share(GREEN_CHARS),
            brown_tan=share(BROWN_TAN_CHARS),
            samples=total,
        )
        logger.debug(
            f"Colour shares: gray/blue/white={profile.gray_blue_white:.3f} "
            f"green={profile.green:.3f} brown/tan={profile.brown_tan:.3f} ({total} samples)"
        )
        return profile

    except Exception as e:
        logger.error(f"Error analyzing image colours: {e}")
        return None


def analyze(image_text: str) -> AnalysisScore:
    """
    Score an encoded image as bird / pigeon / plant / mammal-like.

    Never raises; on internal failure an all-zero score is returned.

    Args:
        image_text: Textual (base64 / data URL) encoding of the image

    Returns:
        AnalysisScore for this image
    """
    result = AnalysisScore()

    try:
        lowered = (image_text or "").lower()

        result.bird_score = _count_indicators(lowered, BIRD_INDICATORS)
        result.pigeon_score = _count_indicators(lowered, PIGEON_INDICATORS)
        result.plant_score = _count_indicators(lowered, PLANT_INDICATORS)
        result.mammal_score = _count_indicators(lowered, MAMMAL_INDICATORS)

        colors = analyze_colors(image_text or "")
        if colors is not None:
            if colors.is_gray_blue_white_dominant:
                result.bird_score += DOMINANCE_BONUS
                result.pigeon_score += DOMINANCE_BONUS
            if colors.is_green_dominant:
                result.plant_score += DOMINANCE_BONUS
            if colors.is_brown_tan_dominant:
                result.mammal_score += DOMINANCE_BONUS

        result.is_probably_bird = result.bird_score >= BIRD_THRESHOLD
        result.is_probably_pigeon = result.is_probably_bird and result.pigeon_score >= PIGEON_THRESHOLD
        result.is_probably_plant = result.plant_score >= PLANT_THRESHOLD
        result.is_probably_mammal = result.mammal_score >= MAMMAL_THRESHOLD

        # A bird in a tree: keep whichever raw score is higher, bird on ties
        if result.is_probably_bird and result.is_probably_plant:
            if result.plant_score > result.bird_score:
                result.is_probably_bird = False
                result.is_probably_pigeon = False
            else:
                result.is_probably_plant = False

        logger.debug(
            f"Image analysis scores: bird={result.bird_score} pigeon={result.pigeon_score} "
            f"plant={result.plant_score} mammal={result.mammal_score}"
        )

    except Exception as e:
        logger.error(f"Error analyzing image content: {e}")
        return AnalysisScore()

    return result


# === Canned suggestion lists ===

PIGEON_SUGGESTIONS: Tuple[Suggestion, ...] = (
    Suggestion("Rock Pigeon", 0.65, "Columba livia"),
    Suggestion("Eurasian Collared-Dove", 0.60, "Streptopelia decaocto"),
    Suggestion("House Sparrow", 0.45, "Passer domesticus"),
    Suggestion("Common Myna", 0.40, "Acridotheres tristis"),
    Suggestion("Blue Rock Thrush", 0.35, "Monticola solitarius"),
)

BIRD_SUGGESTIONS: Tuple[Suggestion, ...] = (
    Suggestion("Rock Pigeon", 0.92, "Columba livia"),
    Suggestion("Eurasian Collared-Dove", 0.85, "Streptopelia decaocto"),
    Suggestion("House Sparrow", 0.72, "Passer domesticus"),
    Suggestion("Common Myna", 0.68, "Acridotheres tristis"),
    Suggestion("Rose-ringed Parakeet", 0.65, "Psittacula krameri"),
    Suggestion("Spotted Owlet", 0.58, "Athene brama"),
    Suggestion("Hoopoe", 0.55, "Upupa epops"),
)

PLANT_SUGGESTIONS: Tuple[Suggestion, ...] = (
    Suggestion("Chir Pine", 0.72, "Pinus roxburghii"),
    Suggestion("Shisham", 0.69, "Dalbergia sissoo"),
    Suggestion("Paper Mulberry", 0.65, "Broussonetia papyrifera"),
    Suggestion("Himalayan Cedar", 0.63, "Cedrus deodara"),
    Suggestion("Chinaberry Tree", 0.61, "Melia azedarach"),
    Suggestion("Sacred Fig", 0.59, "Ficus religiosa"),
    Suggestion("Orchid Tree", 0.57, "Bauhinia variegata"),
)

MAMMAL_SUGGESTIONS: Tuple[Suggestion, ...] = (
    Suggestion("Leopard", 0.71, "Panthera pardus"),
    Suggestion("Indian Crested Porcupine", 0.68, "Hystrix indica"),
    Suggestion("Asiatic Black Bear", 0.65, "Ursus thibetanus"),
    Suggestion("Indian Grey Mongoose", 0.62, "Herpestes edwardsii"),
    Suggestion("Golden Jackal", 0.60, "Canis aureus"),
    Suggestion("Indian Fox", 0.58, "Vulpes bengalensis"),
    Suggestion("Rhesus Macaque", 0.56, "Macaca mulatta"),
)

# Image analysed but no category was convincing
UNDETERMINED_SUGGESTIONS: Tuple[Suggestion, ...] = (
    Suggestion("Unidentified Plant", 0.45),
    Suggestion("Chir Pine", 0.38, "Pinus roxburghii"),
    Suggestion("Shisham", 0.35, "Dalbergia sissoo"),
    Suggestion("Himalayan Cedar", 0.32, "Cedrus deodara"),
    Suggestion("Common Wild Grass", 0.30),
)

# No image data to analyse at all
NO_IMAGE_SUGGESTIONS: Tuple[Suggestion, ...] = (
    Suggestion("Unidentified Plant", 0.40),
    Suggestion("Chir Pine", 0.35, "Pinus roxburghii"),
    Suggestion("Shisham", 0.32, "Dalbergia sissoo"),
    Suggestion("Himalayan Cedar", 0.30, "Cedrus deodara"),
    Suggestion("Common Wild Grass", 0.28),
)

# Last resort when even local analysis fails
MIXED_SUGGESTIONS: Tuple[Suggestion, ...] = (
    Suggestion("Unidentified Plant", 0.35),
    Suggestion("Chir Pine", 0.33, "Pinus roxburghii"),
    Suggestion("Shisham", 0.31, "Dalbergia sissoo"),
    Suggestion("Himalayan Cedar", 0.28, "Cedrus deodara"),
    Suggestion("Common Wild Grass", 0.26),
)


def mixed_suggestions() -> List[Suggestion]:
    return list(MIXED_SUGGESTIONS)


def local_fallback_suggestions(image_text: Optional[str] = None) -> List[Suggestion]:
    """
    Pick a canned suggestion list from the heuristic analysis of an image.

    Args:
        image_text: Data URL of the image, or None when no image data exists

    Returns:
        At most five suggestions sorted by descending confidence
    """
    try:
        if not image_text:
            return list(NO_IMAGE_SUGGESTIONS)

        content = analyze(image_text)
        logger.info(f"Local image analysis results: {content}")

        # Birds need a stronger signal than the detection threshold alone
        if content.is_probably_bird and content.bird_score >= 4:
            if content.is_probably_pigeon and content.pigeon_score >= 4:
                return rank_suggestions(PIGEON_SUGGESTIONS)
            return rank_suggestions(BIRD_SUGGESTIONS)

        if content.is_probably_plant and content.plant_score >= 3:
            return rank_suggestions(PLANT_SUGGESTIONS)

        if content.is_probably_mammal and content.mammal_score >= 6:
            return rank_suggestions(MAMMAL_SUGGESTIONS)

        # Plants are the least misleading default
        return list(UNDETERMINED_SUGGESTIONS)

    except Exception as e:
        logger.error(f"Error in local classification: {e}")
        return mixed_suggestions()

"""
Result Normalizer

Converts raw (label, score) pairs from heterogeneous classifiers into
canonical Suggestions.

Two label formats are understood:
- SCIENTIFIC_LABEL models (iNaturalist-style) emit "Common name (Scientific name)"
- GENERIC models (ImageNet-style) emit plain labels such as "rock dove" or
  "tabby_cat", which are canonicalized through the bird-synonym table and
  the species reference table
"""

import logging
import math
import re
from typing import Iterable, List, Optional

from wildlife_id.ml.base import RawPrediction, Suggestion
from wildlife_id.ml.species_reference import (
    ReferenceEntry,
    SpeciesReferenceTable,
    get_species_reference,
)
from wildlife_id.models.enums import ModelKind

logger = logging.getLogger(__name__)


# Scores at or below this are classifier noise, not a confidence threshold
NOISE_FLOOR = 0.01

# "Rock Pigeon (Columba livia)"; the greedy group keeps the outer parenthesis
PARENTHETICAL_LABEL = re.compile(r"^\s*(.*?)\s*\((.+)\)\s*$")


class ResultNormalizer:
    """Maps model-specific labels onto reference species."""

    def __init__(self, reference: Optional[SpeciesReferenceTable] = None):
        self.reference = reference or get_species_reference()

    def normalize(
        self,
        raw_label: str,
        raw_score: float,
        model_kind: ModelKind
    ) -> Optional[Suggestion]:
        """
        Normalize a single classifier output.

        Args:
            raw_label: Label exactly as the model returned it
            raw_score: Model-reported score
            model_kind: Label format of the producing model

        Returns:
            Suggestion, or None when the score is not finite or under the
            noise floor, or the label has no usable name
        """
        if not math.isfinite(raw_score) or raw_score <= NOISE_FLOOR:
            return None

        label = (raw_label or "").strip()
        if not label:
            return None

        confidence = min(1.0, max(0.0, float(raw_score)))

        if model_kind == ModelKind.SCIENTIFIC_LABEL:
            return self._parse_scientific_label(label, confidence)
        return self._parse_generic_label(label, confidence)

    def normalize_all(
        self,
        predictions: Iterable[RawPrediction],
        model_kind: ModelKind
    ) -> List[Suggestion]:
        """Normalize every prediction, dropping discarded ones. Order is preserved."""
        suggestions = []
        for prediction in predictions:
            suggestion = self.normalize(prediction.label, prediction.score, model_kind)
            if suggestion is not None:
                suggestions.append(suggestion)
        return suggestions

    def _parse_scientific_label(self, label: str, confidence: float) -> Optional[Suggestion]:
        """Split 'Common name (Scientific name)' labels; None if both parts are blank."""
        common_name: Optional[str] = label
        scientific_name: Optional[str] = None

        match = PARENTHETICAL_LABEL.match(label)
        if match:
            common_name = match.group(1).strip() or None
            scientific_name = match.group(2).strip() or None
            if not common_name and not scientific_name:
                logger.debug(f"Skipping label without names: {label!r}")
                return None
        elif self.reference.is_binomial(label):
            common_name = None
            scientific_name = label

        if scientific_name and not common_name:
            common_name = (
                self.reference.lookup_common_name(scientific_name)
                or scientific_name.split(" ")[0]
            )

        if not scientific_name:
            scientific_name = self.reference.lookup_scientific_name(common_name)

        return Suggestion(
            name=common_name,
            scientific_name=scientific_name,
            confidence=confidence,
        )

    def _parse_generic_label(self, label: str, confidence: float) -> Suggestion:
        """Canonicalize a plain classifier label."""
        label_lower = label.lower()

        synonym = self._match_bird_synonym(label_lower)
        if synonym is not None:
            return Suggestion(
                name=synonym.common_name,
                scientific_name=synonym.scientific_name,
                confidence=confidence,
            )

        clean_label = label_lower.replace("_", " ")
        scientific_name = self.reference.lookup_scientific_name(clean_label)
        if scientific_name is not None:
            return Suggestion(name=label, scientific_name=scientific_name, confidence=confidence)

        if self.reference.is_binomial(label):
            return Suggestion(
                name=self.reference.lookup_common_name(label) or label,
                scientific_name=label,
                confidence=confidence,
            )

        return Suggestion(name=label, confidence=confidence)

    def _match_bird_synonym(self, label_lower: str) -> Optional[ReferenceEntry]:
        synonyms = self.reference.bird_synonyms

        exact = synonyms.get(label_lower)
        if exact is not None:
            return exact

        for key, entry in synonyms.items():
            if key in label_lower:
                return entry

        return None

"""
Enumerations for the species identification system.

These enums provide type safety and clear documentation of valid values.
"""

from enum import Enum


class ModelKind(str, Enum):
    """How a remote classifier formats its labels."""
    GENERIC = "generic"                    # ImageNet-style labels ("rock dove", "tabby")
    SCIENTIFIC_LABEL = "scientific_label"  # "Common name (Scientific name)"


class InvocationTier(str, Enum):
    """Tier of the fallback chain that produced a set of suggestions."""
    PRIMARY = "primary"
    BACKUP_1 = "backup_1"
    BACKUP_2 = "backup_2"
    LOCAL_FALLBACK = "local_fallback"

    @property
    def is_remote(self) -> bool:
        return self is not InvocationTier.LOCAL_FALLBACK


class ConfidenceLevel(str, Enum):
    """Human-readable confidence levels for API consumers."""
    VERY_HIGH = "very_high"      # >= 0.95
    HIGH = "high"                # >= 0.85
    MODERATE = "moderate"        # >= 0.70
    LOW = "low"                  # >= 0.50
    VERY_LOW = "very_low"        # < 0.50

    @classmethod
    def from_score(cls, score: float) -> "ConfidenceLevel":
        """Convert a numeric confidence score to a level."""
        if score >= 0.95:
            return cls.VERY_HIGH
        elif score >= 0.85:
            return cls.HIGH
        elif score >= 0.70:
            return cls.MODERATE
        elif score >= 0.50:
            return cls.LOW
        else:
            return cls.VERY_LOW

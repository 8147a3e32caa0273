"""
Model Invocation Chain

Ordered fallback over classification strategies:

    PRIMARY -> BACKUP_1 -> BACKUP_2 -> LOCAL_FALLBACK

Each remote tier issues exactly one request bounded by a timeout. Any
failure (transport error, HTTP status, malformed payload, timeout) moves
on to the next tier; there are no retries inside a tier. The local tier
runs the heuristic analyzer and always succeeds, so the chain itself
never raises.

An optional deadline caps the remote tiers as a group: once it passes, the
remaining remote tiers are skipped and the local tier answers.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

import httpx

from wildlife_id.core.config import Settings
from wildlife_id.ml.base import (
    ChainOutcome,
    ClassifierInterface,
    ImagePayload,
    Suggestion,
)
from wildlife_id.ml.heuristic_analyzer import local_fallback_suggestions, mixed_suggestions
from wildlife_id.ml.remote_classifiers import HuggingFaceClassifier
from wildlife_id.ml.result_normalizer import ResultNormalizer
from wildlife_id.models.enums import InvocationTier

logger = logging.getLogger(__name__)


class TierStrategy(ABC):
    """One stage of the fallback chain."""

    @property
    @abstractmethod
    def tier(self) -> InvocationTier:
        pass

    @abstractmethod
    async def attempt(self, image: ImagePayload) -> List[Suggestion]:
        """Produce suggestions or raise to hand over to the next tier."""
        pass

    def describe(self) -> dict:
        return {"tier": self.tier.value}


class RemoteClassifierTier(TierStrategy):
    """Calls one remote classifier and normalizes its labels."""

    def __init__(
        self,
        tier: InvocationTier,
        classifier: ClassifierInterface,
        normalizer: ResultNormalizer,
        timeout: float = 4.0,
    ):
        self._tier = tier
        self.classifier = classifier
        self.normalizer = normalizer
        self.timeout = timeout

    @property
    def tier(self) -> InvocationTier:
        return self._tier

    async def attempt(self, image: ImagePayload) -> List[Suggestion]:
        # wait_for cancels the request task on timeout, so a late reply is dropped
        predictions = await asyncio.wait_for(
            self.classifier.classify(image.content),
            timeout=self.timeout,
        )
        return self.normalizer.normalize_all(predictions, self.classifier.model_kind)

    def describe(self) -> dict:
        return {
            "tier": self._tier.value,
            "timeout_seconds": self.timeout,
            **self.classifier.get_model_info(),
        }


class LocalHeuristicTier(TierStrategy):
    """Network-free guess from the heuristic image analyzer."""

    @property
    def tier(self) -> InvocationTier:
        return InvocationTier.LOCAL_FALLBACK

    async def attempt(self, image: ImagePayload) -> List[Suggestion]:
        try:
            return local_fallback_suggestions(image.text)
        except Exception as e:
            logger.error(f"Local heuristic tier failed: {e}")
            return mixed_suggestions()


class ModelInvocationChain:
    """
    Runs tier strategies in order until one of them returns.

    Usage:
        chain = ModelInvocationChain([primary, backup_1, backup_2])
        outcome = await chain.run(image)
        outcome.suggestions, outcome.tier
    """

    def __init__(
        self,
        remote_tiers: Sequence[TierStrategy],
        local_tier: Optional[TierStrategy] = None,
    ):
        self.tiers: List[TierStrategy] = list(remote_tiers)
        self.tiers.append(local_tier or LocalHeuristicTier())

    async def run(self, image: ImagePayload, deadline: Optional[float] = None) -> ChainOutcome:
        """
        Classify an image, falling through tiers on failure.

        Args:
            image: Resolved image
            deadline: Event loop time after which remote tiers are skipped;
                a remote attempt still running at that point is cut off

        Returns:
            ChainOutcome with the suggestions of the first tier that returned
            and that tier's identifier
        """
        loop = asyncio.get_running_loop()
        for strategy in self.tiers:
            try:
                if deadline is not None and strategy.tier.is_remote:
                    remaining = deadline - loop.time()
                    if remaining <= 0:
                        logger.warning(f"Time budget spent, skipping {strategy.tier.value} tier")
                        continue
                    logger.info(f"Running image through {strategy.tier.value} tier...")
                    suggestions = await asyncio.wait_for(strategy.attempt(image), timeout=remaining)
                else:
                    logger.info(f"Running image through {strategy.tier.value} tier...")
                    suggestions = await strategy.attempt(image)
                logger.info(
                    f"{strategy.tier.value} tier produced {len(suggestions)} suggestion(s)"
                )
                return ChainOutcome(suggestions=list(suggestions), tier=strategy.tier)

            except asyncio.TimeoutError:
                logger.warning(f"{strategy.tier.value} tier timed out, trying next tier")
            except Exception as e:
                logger.warning(f"{strategy.tier.value} tier failed, trying next tier: {e}")

        # Only reachable if a custom local tier raised
        logger.error("All tiers failed, using mixed local suggestions")
        return ChainOutcome(suggestions=mixed_suggestions(), tier=InvocationTier.LOCAL_FALLBACK)

    def describe(self) -> List[dict]:
        """Configured tiers, in invocation order."""
        return [strategy.describe() for strategy in self.tiers]


def build_default_chain(
    settings: Settings,
    client: Optional[httpx.AsyncClient] = None,
    normalizer: Optional[ResultNormalizer] = None,
) -> ModelInvocationChain:
    """
    Build the three remote tiers from settings.

    Args:
        settings: Application settings holding model ids, label kinds and timeouts
        client: Shared HTTP client for all remote tiers
        normalizer: Result normalizer (default: one over the reference table)
    """
    normalizer = normalizer or ResultNormalizer()
    tier_config = [
        (InvocationTier.PRIMARY, settings.primary_model, settings.primary_model_kind),
        (InvocationTier.BACKUP_1, settings.backup_model_1, settings.backup_model_1_kind),
        (InvocationTier.BACKUP_2, settings.backup_model_2, settings.backup_model_2_kind),
    ]

    tiers = []
    for tier, model_id, model_kind in tier_config:
        classifier = HuggingFaceClassifier(
            model_id=model_id,
            model_kind=model_kind,
            client=client,
            api_url=settings.huggingface_api_url,
            api_key=settings.huggingface_api_key,
            timeout=settings.classifier_timeout_seconds,
        )
        tiers.append(RemoteClassifierTier(
            tier=tier,
            classifier=classifier,
            normalizer=normalizer,
            timeout=settings.classifier_timeout_seconds,
        ))

    logger.info(f"Invocation chain configured: {[t.describe() for t in tiers]}")
    return ModelInvocationChain(tiers)

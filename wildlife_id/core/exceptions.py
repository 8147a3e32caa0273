"""
Exception types raised inside the identification pipeline.

None of these reach callers of ``IdentificationService.identify``; each one
marks a failure that the pipeline recovers from by moving to a lower tier.
"""


class IdentificationError(Exception):
    """Base class for recoverable identification failures."""


class ImageSourceError(IdentificationError):
    """The image could not be fetched or decoded."""


class ClassifierError(IdentificationError):
    """A remote classifier failed or returned a malformed payload."""

    def __init__(self, model_id: str, message: str):
        super().__init__(f"{model_id}: {message}")
        self.model_id = model_id


class ReferenceLookupError(IdentificationError):
    """The reference text service could not provide a summary."""

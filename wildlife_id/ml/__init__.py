# ML module initialization
from wildlife_id.ml.base import ClassifierInterface, IdentificationResult, Suggestion
from wildlife_id.ml.species_reference import SpeciesReferenceTable
from wildlife_id.ml.result_normalizer import ResultNormalizer
from wildlife_id.ml.invocation_chain import ModelInvocationChain

__all__ = [
    "ClassifierInterface",
    "IdentificationResult",
    "Suggestion",
    "SpeciesReferenceTable",
    "ResultNormalizer",
    "ModelInvocationChain",
]

"""Detectors that judge model output after the fact."""

from .hallucination import (
    HallucinationAssessment,
    HallucinationDetector,
    HallucinationQA,
    aggregate_scores,
    token_support_scorer,
)

__all__ = [
    'HallucinationAssessment',
    'HallucinationDetector',
    'HallucinationQA',
    'aggregate_scores',
    'token_support_scorer',
]

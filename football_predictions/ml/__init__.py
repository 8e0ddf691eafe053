"""Heuristic prediction engine and generation service."""

from football_predictions.ml.engine import PredictionResult, ProbabilityEngine
from football_predictions.ml.service import GenerationSummary, PredictionService

__all__ = ["GenerationSummary", "PredictionResult", "PredictionService", "ProbabilityEngine"]

"""Feature aggregation over the persisted match history."""

from football_predictions.features.form import FormAggregator, FormStats, HeadToHeadStats

__all__ = ["FormAggregator", "FormStats", "HeadToHeadStats"]

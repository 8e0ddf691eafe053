"""Football data ingestion and heuristic match prediction."""

__version__ = "1.0.0"

"""Prediction generation for upcoming matches."""

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from football_predictions.db_utils import upsert
from football_predictions.features.form import FormAggregator
from football_predictions.ml.engine import PredictionResult, ProbabilityEngine
from football_predictions.models import Match, MatchStatus, Prediction, utc_now
from football_predictions.telemetry import record_prediction

logger = logging.getLogger(__name__)


@dataclass
class GenerationSummary:
    """Counters for one prediction pass."""

    matches_found: int = 0
    predictions_saved: int = 0
    failures: int = 0
    failed_match_ids: list[int] = field(default_factory=list)

    def as_dict(self) -> dict:
        return asdict(self)


class PredictionService:
    """
    Generates and stores one prediction snapshot per upcoming match.

    Matches are processed one at a time. A failing match is logged and
    skipped; the rest of the batch continues.
    """

    def __init__(
        self,
        session: AsyncSession,
        engine: Optional[ProbabilityEngine] = None,
        aggregator: Optional[FormAggregator] = None,
        logger: logging.Logger = logger,
    ):
        self.session = session
        self.engine = engine or ProbabilityEngine()
        self.aggregator = aggregator or FormAggregator(session, logger=logger)
        self.logger = logger

    async def get_upcoming_matches(
        self, hours: int = 48, now: Optional[datetime] = None
    ) -> list[Match]:
        """SCHEDULED matches kicking off within the next `hours`, soonest first."""
        now = now or utc_now()
        result = await self.session.execute(
            select(Match)
            .where(
                Match.status == MatchStatus.SCHEDULED.value,
                Match.date >= now,
                Match.date <= now + timedelta(hours=hours),
            )
            .order_by(Match.date.asc())
        )
        return list(result.scalars().all())

    async def generate_match_prediction(self, match: Match) -> PredictionResult:
        """Compute a prediction for one match with the home team as reference."""
        home_stats = await self.aggregator.get_team_form_stats(match.home_team_id, is_home=True)
        away_stats = await self.aggregator.get_team_form_stats(match.away_team_id, is_home=False)
        h2h = await self.aggregator.get_head_to_head_stats(match.home_team_id, match.away_team_id)

        return self.engine.predict(home_stats, away_stats, h2h)

    async def save_prediction(self, match_id: int, result: PredictionResult) -> None:
        """Insert or overwrite the prediction snapshot for match_id."""
        await upsert(
            self.session,
            Prediction,
            result.to_record(match_id),
            conflict_columns=["match_id"],
        )
        await self.session.commit()

    async def generate_predictions(
        self, hours: int = 48, now: Optional[datetime] = None
    ) -> GenerationSummary:
        """
        Predict every upcoming match in the horizon.

        Args:
            hours: Look-ahead horizon.
            now: Reference time (default: current UTC time).

        Returns:
            GenerationSummary with found/saved/failed counts.
        """
        summary = GenerationSummary()

        self.logger.info("[PREDICT] Starting prediction generation...")
        matches = await self.get_upcoming_matches(hours=hours, now=now)
        summary.matches_found = len(matches)
        # Detached, so a rollback after a failed match does not expire the rest
        for match in matches:
            self.session.expunge(match)
        self.logger.info(f"[PREDICT] Found {len(matches)} upcoming matches in the next {hours}h")

        for match in matches:
            match_id = match.id
            try:
                result = await self.generate_match_prediction(match)
                await self.save_prediction(match_id, result)
                summary.predictions_saved += 1
                record_prediction("saved")
                self.logger.info(
                    f"[PREDICT] Generated prediction for match {match_id}: "
                    f"H={result.home_win_probability:.3f} D={result.draw_probability:.3f} "
                    f"A={result.away_win_probability:.3f} conf={result.confidence_score:.2f}"
                )
            except Exception as e:
                await self.session.rollback()
                summary.failures += 1
                summary.failed_match_ids.append(match_id)
                record_prediction("failed")
                self.logger.error(f"[PREDICT] Error generating prediction for match {match_id}: {e!r}")

        self.logger.info(
            f"[PREDICT] Prediction generation completed: {summary.predictions_saved} saved, "
            f"{summary.failures} failed"
        )
        return summary

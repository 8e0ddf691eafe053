"""Read queries over predictions and the per-user saved list."""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from football_predictions.db_utils import upsert
from football_predictions.models import Match, Prediction, UserPrediction


DEFAULT_PAGE_SIZE = 20
HIGH_CONFIDENCE_THRESHOLD = 0.7


@dataclass
class PredictionFilters:
    """Optional filters for list_predictions. None means "no filter"."""

    league_id: Optional[int] = None
    team_id: Optional[int] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    min_confidence: Optional[float] = None
    max_confidence: Optional[float] = None
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE


@dataclass
class PredictionPage:
    items: list[tuple[Prediction, Match]] = field(default_factory=list)
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    total: int = 0

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def _filter_conditions(filters: PredictionFilters) -> list:
    conditions = []
    if filters.league_id is not None:
        conditions.append(Match.league_id == filters.league_id)
    if filters.team_id is not None:
        conditions.append(
            or_(Match.home_team_id == filters.team_id, Match.away_team_id == filters.team_id)
        )
    if filters.date_from is not None:
        conditions.append(Match.date >= filters.date_from)
    if filters.date_to is not None:
        conditions.append(Match.date <= filters.date_to)
    if filters.min_confidence is not None:
        conditions.append(Prediction.confidence_score >= filters.min_confidence)
    if filters.max_confidence is not None:
        conditions.append(Prediction.confidence_score <= filters.max_confidence)
    return conditions


async def list_predictions(
    session: AsyncSession, filters: Optional[PredictionFilters] = None
) -> PredictionPage:
    """
    Predictions with their match, newest snapshot first, one page at a time.

    Args:
        session: AsyncSession instance
        filters: League/team/date/confidence filters and pagination

    Returns:
        PredictionPage with (Prediction, Match) rows and the unpaginated total.
    """
    filters = filters or PredictionFilters()
    page = max(1, filters.page)
    limit = filters.limit if filters.limit > 0 else DEFAULT_PAGE_SIZE
    conditions = _filter_conditions(filters)

    count_result = await session.execute(
        select(func.count(Prediction.id))
        .join(Match, Prediction.match_id == Match.id)
        .where(*conditions)
    )
    total = count_result.scalar_one()

    result = await session.execute(
        select(Prediction, Match)
        .join(Match, Prediction.match_id == Match.id)
        .where(*conditions)
        .order_by(Prediction.prediction_date.desc(), Prediction.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    items = [(row[0], row[1]) for row in result.all()]

    return PredictionPage(items=items, page=page, limit=limit, total=total)


async def get_prediction_for_match(session: AsyncSession, match_id: int) -> Optional[Prediction]:
    result = await session.execute(select(Prediction).where(Prediction.match_id == match_id))
    return result.scalar_one_or_none()


async def list_high_confidence_predictions(
    session: AsyncSession,
    limit: int = 10,
    threshold: float = HIGH_CONFIDENCE_THRESHOLD,
) -> list[Prediction]:
    """Predictions with confidence >= threshold, most confident first."""
    result = await session.execute(
        select(Prediction)
        .where(Prediction.confidence_score >= threshold)
        .order_by(Prediction.confidence_score.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def save_user_prediction(
    session: AsyncSession, user_id: str, prediction_id: int
) -> UserPrediction:
    """Add a prediction to a user's list. Saving twice keeps a single entry."""
    await upsert(
        session,
        UserPrediction,
        {"user_id": user_id, "prediction_id": prediction_id},
        conflict_columns=["user_id", "prediction_id"],
        update_columns=[],
    )
    await session.commit()

    result = await session.execute(
        select(UserPrediction).where(
            UserPrediction.user_id == user_id,
            UserPrediction.prediction_id == prediction_id,
        )
    )
    return result.scalar_one()


async def remove_user_prediction(session: AsyncSession, user_id: str, prediction_id: int) -> bool:
    """Remove a prediction from a user's list. Returns False if it was not saved."""
    result = await session.execute(
        delete(UserPrediction).where(
            UserPrediction.user_id == user_id,
            UserPrediction.prediction_id == prediction_id,
        )
    )
    await session.commit()
    return result.rowcount > 0


async def list_user_predictions(session: AsyncSession, user_id: str) -> list[Prediction]:
    """Predictions saved by user_id, most recently saved first."""
    result = await session.execute(
        select(Prediction)
        .join(UserPrediction, UserPrediction.prediction_id == Prediction.id)
        .where(UserPrediction.user_id == user_id)
        .order_by(UserPrediction.created_at.desc(), UserPrediction.id.desc())
    )
    return list(result.scalars().all())

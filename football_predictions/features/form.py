"""Recent-form and head-to-head statistics from the match history."""

import logging
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from football_predictions.models import Match, MatchStatus

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 10
FORM_LENGTH = 5


@dataclass
class FormStats:
    """Summary of a team's most recent finished matches."""

    recent_form: list[str] = field(default_factory=lambda: ["D"] * FORM_LENGTH)
    goals_scored: int = 0
    goals_conceded: int = 0
    clean_sheets: int = 0
    failed_to_score: int = 0
    average_goals_scored: float = 1.0
    average_goals_conceded: float = 1.0
    home_advantage: Optional[float] = None
    away_disadvantage: Optional[float] = None
    matches_played: int = 0

    @classmethod
    def default(cls) -> "FormStats":
        """Neutral stats used when a team has no usable history."""
        return cls()


@dataclass
class HeadToHeadStats:
    """Past meetings of two teams, seen from the reference team ("home")."""

    total_matches: int = 0
    home_wins: int = 0
    away_wins: int = 0
    draws: int = 0
    average_goals: float = 2.5
    both_teams_scored: int = 0
    over_2_5_goals: int = 0

    @classmethod
    def default(cls) -> "HeadToHeadStats":
        return cls()


def _outcome(goals_for: int, goals_against: int) -> str:
    if goals_for > goals_against:
        return "W"
    if goals_for < goals_against:
        return "L"
    return "D"


def compute_form_stats(matches: list[Match], team_id: int, is_home: bool) -> FormStats:
    """
    Summarise matches (most recent first) from team_id's point of view.

    Args:
        matches: Finished matches involving the team, date descending.
        team_id: The team whose perspective is used.
        is_home: Whether the team plays at home in the upcoming match; selects
            which of home_advantage / away_disadvantage is computed.

    Returns:
        FormStats, or the neutral default if `matches` is empty.
    """
    matches = [m for m in matches if team_id in (m.home_team_id, m.away_team_id)]
    if not matches:
        return FormStats.default()

    scored = []
    conceded = []
    for match in matches:
        if match.home_team_id == team_id:
            scored.append(match.home_goals)
            conceded.append(match.away_goals)
        else:
            scored.append(match.away_goals)
            conceded.append(match.home_goals)

    played = len(matches)
    goals_scored = sum(scored)
    goals_conceded = sum(conceded)
    average_scored = goals_scored / played

    stats = FormStats(
        recent_form=[_outcome(f, a) for f, a in zip(scored[:FORM_LENGTH], conceded[:FORM_LENGTH])],
        goals_scored=goals_scored,
        goals_conceded=goals_conceded,
        clean_sheets=sum(1 for a in conceded if a == 0),
        failed_to_score=sum(1 for f in scored if f == 0),
        average_goals_scored=average_scored,
        average_goals_conceded=goals_conceded / played,
        matches_played=played,
    )

    if is_home:
        home_goals = [m.home_goals for m in matches if m.home_team_id == team_id]
        if home_goals:
            stats.home_advantage = sum(home_goals) / len(home_goals) - average_scored
    else:
        away_goals = [m.away_goals for m in matches if m.away_team_id == team_id]
        if away_goals:
            stats.away_disadvantage = average_scored - sum(away_goals) / len(away_goals)

    return stats


def compute_head_to_head_stats(matches: list[Match], team_a: int) -> HeadToHeadStats:
    """Summarise meetings with team_a as the reference ("home") side."""
    if not matches:
        return HeadToHeadStats.default()

    h2h = HeadToHeadStats(total_matches=len(matches), average_goals=0.0)
    total_goals = 0

    for match in matches:
        if match.home_team_id == team_a:
            goals_a, goals_b = match.home_goals, match.away_goals
        else:
            goals_a, goals_b = match.away_goals, match.home_goals

        total_goals += goals_a + goals_b

        if goals_a > goals_b:
            h2h.home_wins += 1
        elif goals_b > goals_a:
            h2h.away_wins += 1
        else:
            h2h.draws += 1

        if goals_a > 0 and goals_b > 0:
            h2h.both_teams_scored += 1
        if goals_a + goals_b > 2.5:
            h2h.over_2_5_goals += 1

    h2h.average_goals = total_goals / h2h.total_matches
    return h2h


class FormAggregator:
    """
    Loads match history and derives the engine's statistical inputs.

    Read-only. Query failures are logged and degrade to the neutral defaults,
    so a prediction can always be produced.
    """

    def __init__(
        self,
        session: AsyncSession,
        logger: logging.Logger = logger,
        history_limit: int = HISTORY_LIMIT,
    ):
        self.session = session
        self.logger = logger
        self.history_limit = history_limit

    async def _finished_matches(self, *conditions) -> list[Match]:
        result = await self.session.execute(
            select(Match)
            .where(
                *conditions,
                Match.status == MatchStatus.FINISHED.value,
                Match.home_goals.isnot(None),
                Match.away_goals.isnot(None),
            )
            .order_by(Match.date.desc())
            .limit(self.history_limit)
        )
        return list(result.scalars().all())

    async def get_team_form_stats(self, team_id: int, is_home: bool) -> FormStats:
        """
        Form statistics over the team's last finished matches (either side).

        Args:
            team_id: The team's ID.
            is_home: Whether the team is at home in the match being predicted.

        Returns:
            FormStats (neutral default when no history or on failure).
        """
        try:
            matches = await self._finished_matches(
                or_(Match.home_team_id == team_id, Match.away_team_id == team_id)
            )
        except Exception as e:
            # A failed statement aborts the transaction on PostgreSQL
            await self.session.rollback()
            self.logger.error(f"Failed to get team form stats for team {team_id}: {e!r}")
            return FormStats.default()

        return compute_form_stats(matches, team_id, is_home)

    async def get_head_to_head_stats(self, team_a: int, team_b: int) -> HeadToHeadStats:
        """
        Head-to-head statistics over the last finished meetings of the pair.

        Args:
            team_a: Reference team (the home side of the upcoming match).
            team_b: Opponent.

        Returns:
            HeadToHeadStats (neutral default when no meetings or on failure).
        """
        try:
            matches = await self._finished_matches(
                or_(
                    and_(Match.home_team_id == team_a, Match.away_team_id == team_b),
                    and_(Match.home_team_id == team_b, Match.away_team_id == team_a),
                )
            )
        except Exception as e:
            await self.session.rollback()
            self.logger.error(
                f"Failed to get head-to-head stats for teams {team_a} vs {team_b}: {e!r}"
            )
            return HeadToHeadStats.default()

        return compute_head_to_head_stats(matches, team_a)

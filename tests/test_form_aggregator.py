"""Tests for recent-form and head-to-head aggregation over the store."""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from football_predictions.features.form import FormAggregator, FormStats, HeadToHeadStats
from football_predictions.models import MatchStatus

from factories import seed_league, seed_match, seed_teams

BASE = datetime(2026, 1, 1, 15, 0, 0)


async def _seed_history(session):
    """
    Team 1 history, most recent first:
        day 5: 1 v 2  2-0  (W, home)
        day 4: 3 v 1  1-1  (D, away)
        day 3: 1 v 3  0-1  (L, home)
        day 2: 2 v 1  0-3  (W, away)
    plus matches that must be ignored.
    """
    await seed_league(session)
    await seed_teams(session, 1, 2, 3)
    await seed_match(session, 105, BASE + timedelta(days=5), 1, 2, 2, 0)
    await seed_match(session, 104, BASE + timedelta(days=4), 3, 1, 1, 1)
    await seed_match(session, 103, BASE + timedelta(days=3), 1, 3, 0, 1)
    await seed_match(session, 102, BASE + timedelta(days=2), 2, 1, 0, 3)
    # Not finished / no goals / other teams
    await seed_match(session, 106, BASE + timedelta(days=6), 1, 3, status=MatchStatus.SCHEDULED)
    await seed_match(session, 107, BASE + timedelta(days=1), 1, 2, 1, 0, status=MatchStatus.LIVE)
    await seed_match(session, 108, BASE + timedelta(days=1), 2, 3, 4, 4)


class TestTeamFormStats:
    @pytest.mark.asyncio
    async def test_no_history_returns_default(self, session):
        await seed_league(session)
        await seed_teams(session, 1)

        stats = await FormAggregator(session).get_team_form_stats(1, is_home=True)

        assert stats == FormStats.default()
        assert stats.recent_form == ["D", "D", "D", "D", "D"]
        assert stats.average_goals_scored == 1.0
        assert stats.average_goals_conceded == 1.0
        assert stats.home_advantage is None
        assert stats.away_disadvantage is None

    @pytest.mark.asyncio

    async def test_counts_and_averages(self, session):
        await _seed_history(session)

        stats = await FormAggregator(session).get_team_form_stats(1, is_home=True)

        assert stats.recent_form == ["W", "D", "L", "W"]
        assert stats.matches_played == 4
        assert stats.goals_scored == 6
        assert stats.goals_conceded == 2
        assert stats.clean_sheets == 2
        assert stats.failed_to_score == 1
        assert stats.average_goals_scored == pytest.approx(1.5)
        assert stats.average_goals_conceded == pytest.approx(0.5)

    @pytest.mark.asyncio

    async def test_home_advantage_only_for_home_side(self, session):
        await _seed_history(session)
        aggregator = FormAggregator(session)

        home = await aggregator.get_team_form_stats(1, is_home=True)
        away = await aggregator.get_team_form_stats(1, is_home=False)

        # Home games: 2 and 0 goals -> mean 1.0, overall 1.5
        assert home.home_advantage == pytest.approx(-0.5)
        assert home.away_disadvantage is None
        # Away games: 1 and 3 goals -> mean 2.0, overall 1.5
        assert away.away_disadvantage == pytest.approx(-0.5)
        assert away.home_advantage is None

    @pytest.mark.asyncio

    async def test_history_limited_to_ten_matches(self, session):
        await seed_league(session)
        await seed_teams(session, 1, 2)
        for i in range(12):
            await seed_match(session, 200 + i, BASE + timedelta(days=i), 1, 2, 1, 0)

        stats = await FormAggregator(session).get_team_form_stats(1, is_home=True)

        assert stats.matches_played == 10
        assert stats.recent_form == ["W"] * 5

    @pytest.mark.asyncio

    async def test_query_failure_returns_default(self):
        session = AsyncMock()
        session.execute.side_effect = RuntimeError("connection lost")

        stats = await FormAggregator(session).get_team_form_stats(1, is_home=True)

        assert stats == FormStats.default()
        session.rollback.assert_awaited_once()

class TestHeadToHeadStats:
    @pytest.mark.asyncio
    async def test_no_meetings_returns_default(self, session):
        await seed_league(session)
        await seed_teams(session, 1, 2)

        h2h = await FormAggregator(session).get_head_to_head_stats(1, 2)

        assert h2h == HeadToHeadStats.default()
        assert h2h.average_goals == 2.5

    @pytest.mark.asyncio

    async def test_wins_counted_for_reference_team(self, session):
        await _seed_history(session)

        h2h = await FormAggregator(session).get_head_to_head_stats(1, 2)

        # 1 v 2 2-0 and 2 v 1 0-3: team 1 won both
        assert h2h.total_matches == 2
        assert h2h.home_wins == 2
        assert h2h.away_wins == 0
        assert h2h.draws == 0
        assert h2h.average_goals == pytest.approx(2.5)
        assert h2h.both_teams_scored == 0
        assert h2h.over_2_5_goals == 1

    @pytest.mark.asyncio

    async def test_reversed_reference(self, session):
        await _seed_history(session)

        h2h = await FormAggregator(session).get_head_to_head_stats(2, 1)

        assert h2h.home_wins == 0
        assert h2h.away_wins == 2

    @pytest.mark.asyncio

    async def test_draws_and_both_scored(self, session):
        await _seed_history(session)

        h2h = await FormAggregator(session).get_head_to_head_stats(1, 3)

        # 3 v 1 1-1 and 1 v 3 0-1
        assert h2h.total_matches == 2
        assert h2h.draws == 1
        assert h2h.away_wins == 1
        assert h2h.both_teams_scored == 1
        assert h2h.over_2_5_goals == 0

    @pytest.mark.asyncio

    async def test_query_failure_returns_default(self):
        session = AsyncMock()
        session.execute.side_effect = RuntimeError("connection lost")

        h2h = await FormAggregator(session).get_head_to_head_stats(1, 2)

        assert h2h == HeadToHeadStats.default()
        session.rollback.assert_awaited_once()

"""Tests for the ingestion pipeline against an in-memory store."""

from datetime import date, datetime
from typing import Optional
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select

from football_predictions.etl.base import (
    DataProvider,
    LeagueData,
    MatchData,
    MatchStatisticsData,
    TeamData,
    VenueData,
)
from football_predictions.etl.competitions import (
    LEAGUES_BY_API_ID,
    SUPPORTED_LEAGUES,
    SupportedLeague,
    get_active_leagues,
)
from football_predictions.etl.pipeline import IngestionPipeline
from football_predictions.models import League, Match, MatchStatistics, Team, Venue

PREMIER = SupportedLeague(id=1, name="Premier League", country="England", api_id=39)
LA_LIGA = SupportedLeague(id=2, name="La Liga", country="Spain", api_id=140)
TODAY = date(2024, 8, 20)


class FakeProvider(DataProvider):
    """In-memory provider; league ids listed in `failing` raise on get_league."""

    def __init__(self, fixtures: Optional[dict] = None, failing: tuple = ()):
        self.fixtures = fixtures or {}
        self.failing = failing
        self.fixture_calls = []
        self.closed = False

    async def get_league(self, league_id, season):
        if league_id in self.failing:
            raise RuntimeError("upstream unavailable")
        return LeagueData(id=league_id, name=f"League {league_id}", country="X", season=season)

    async def get_teams(self, league_id, season):
        return [
            TeamData(
                id=league_id * 10 + 1,
                name="Home FC",
                venue=VenueData(id=league_id * 10, name="Home Ground", city="Town", capacity=30000),
            ),
            TeamData(id=league_id * 10 + 2, name="Away FC"),
        ]

    async def get_fixtures(self, league_id, season, from_date=None, to_date=None):
        self.fixture_calls.append((league_id, season, from_date, to_date))
        return self.fixtures.get(league_id, [])

    async def close(self):
        self.closed = True


def make_fixture(
    fixture_id: int = 5001,
    league_id: int = 39,
    status: str = "SCHEDULED",
    home_goals=None,
    away_goals=None,
    statistics=None,
) -> MatchData:
    return MatchData(
        id=fixture_id,
        date=datetime(2024, 8, 24, 14, 0, 0),
        league_id=league_id,
        season=2024,
        home_team_id=league_id * 10 + 1,
        away_team_id=league_id * 10 + 2,
        home_goals=home_goals,
        away_goals=away_goals,
        status=status,
        elapsed=None,
        venue=VenueData(id=league_id * 10, name="Home Ground", city="Town", partial=True),
        statistics=statistics or [],
    )


async def count(session, model) -> int:
    result = await session.execute(select(func.count()).select_from(model))
    return result.scalar_one()


def make_pipeline(provider, session, **kwargs) -> IngestionPipeline:
    kwargs.setdefault("sleep", AsyncMock())
    return IngestionPipeline(provider=provider, session=session, **kwargs)


class TestUpdateLeagueData:
    @pytest.mark.asyncio
    async def test_persists_league_teams_venues_and_matches(self, session):
        provider = FakeProvider(fixtures={39: [make_fixture()]})
        pipeline = make_pipeline(provider, session)

        summary = await pipeline.update_league_data(PREMIER, season=2024, today=TODAY)

        assert summary.leagues == 1
        assert summary.teams == 2
        assert summary.matches == 1
        assert summary.leagues_failed == 0
        assert summary.errors == []
        assert await count(session, League) == 1
        assert await count(session, Team) == 2
        assert await count(session, Venue) == 1
        assert await count(session, Match) == 1

    @pytest.mark.asyncio

    async def test_upserted_entities_are_counted(self, session):
        provider = FakeProvider(fixtures={39: [make_fixture()]})
        pipeline = make_pipeline(provider, session)

        with patch("football_predictions.etl.pipeline.record_entity_upserted") as record:
            summary = await pipeline.update_league_data(PREMIER, season=2024, today=TODAY)

        # Team venue plus the fixture venue
        assert summary.venues == 2
        entities = [call.args[0] for call in record.call_args_list]
        assert entities.count("venue") == 2
        assert entities.count("team") == 2
        assert entities.count("match") == 1
        assert summary.as_dict()["venues"] == 2

    @pytest.mark.asyncio

    async def test_fixture_window_is_centred_on_today(self, session):
        provider = FakeProvider()
        pipeline = make_pipeline(provider, session, fixture_window_days=30)

        await pipeline.update_league_data(PREMIER, season=2024, today=TODAY)

        assert provider.fixture_calls == [(39, 2024, date(2024, 7, 21), date(2024, 9, 19))]

    @pytest.mark.asyncio

    async def test_same_fixture_twice_keeps_one_row_with_latest_values(self, session):
        provider = FakeProvider(fixtures={39: [make_fixture()]})
        pipeline = make_pipeline(provider, session)
        await pipeline.update_league_data(PREMIER, season=2024, today=TODAY)

        provider.fixtures[39] = [make_fixture(status="FINISHED", home_goals=3, away_goals=1)]
        await pipeline.update_league_data(PREMIER, season=2024, today=TODAY)

        assert await count(session, Match) == 1
        result = await session.execute(
            select(Match.status, Match.home_goals, Match.away_goals).where(Match.id == 5001)
        )
        assert result.one() == ("FINISHED", 3, 1)

    @pytest.mark.asyncio

    async def test_statistics_upserted_per_team(self, session):
        stats = [
            MatchStatisticsData(team_id=391, shots_on_goal=4, ball_possession=55),
            MatchStatisticsData(team_id=392, shots_on_goal=2, ball_possession=45),
        ]
        provider = FakeProvider(fixtures={39: [make_fixture(status="FINISHED", home_goals=1, away_goals=0, statistics=stats)]})
        pipeline = make_pipeline(provider, session)

        await pipeline.update_league_data(PREMIER, season=2024, today=TODAY)
        stats[0].shots_on_goal = 6
        await pipeline.update_league_data(PREMIER, season=2024, today=TODAY)

        assert await count(session, MatchStatistics) == 2
        result = await session.execute(
            select(MatchStatistics.shots_on_goal).where(MatchStatistics.team_id == 391)
        )
        assert result.scalar_one() == 6

    @pytest.mark.asyncio

    async def test_partial_venue_keeps_stored_capacity(self, session):
        provider = FakeProvider(fixtures={39: [make_fixture()]})
        pipeline = make_pipeline(provider, session)

        await pipeline.update_league_data(PREMIER, season=2024, today=TODAY)

        result = await session.execute(select(Venue.name, Venue.capacity).where(Venue.id == 390))
        assert result.one() == ("Home Ground", 30000)

    @pytest.mark.asyncio

    async def test_teams_only_seen_in_fixtures_get_placeholders(self, session):
        fixture = make_fixture()
        fixture.away_team_id = 999
        fixture.away_team_name = "Visitors"
        provider = FakeProvider(fixtures={39: [fixture]})
        pipeline = make_pipeline(provider, session)

        await pipeline.update_league_data(PREMIER, season=2024, today=TODAY)

        team = await session.get(Team, 999)
        assert team.name == "Visitors"

    @pytest.mark.asyncio

    async def test_missing_league_metadata_skips_league(self, session):
        provider = FakeProvider(fixtures={39: [make_fixture()]})
        provider.get_league = AsyncMock(return_value=None)
        pipeline = make_pipeline(provider, session)

        summary = await pipeline.update_league_data(PREMIER, season=2024, today=TODAY)

        assert summary.leagues_failed == 1
        assert len(summary.errors) == 1
        assert await count(session, Match) == 0


class TestUpdateAllData:
    @pytest.mark.asyncio
    async def test_failing_league_does_not_stop_others(self, session):
        provider = FakeProvider(
            fixtures={140: [make_fixture(fixture_id=6001, league_id=140)]},
            failing=(39,),
        )
        pipeline = make_pipeline(provider, session)

        summary = await pipeline.update_all_data(leagues=[PREMIER, LA_LIGA], season=2024, today=TODAY)

        assert summary.leagues_processed == 2
        assert summary.leagues_failed == 1
        assert any("Premier League" in error for error in summary.errors)
        assert await count(session, Match) == 1
        assert await session.get(League, 140) is not None

    @pytest.mark.asyncio

    async def test_delay_only_between_leagues(self, session):
        sleep = AsyncMock()
        pipeline = make_pipeline(FakeProvider(), session, league_delay=1.0, sleep=sleep)

        await pipeline.update_all_data(leagues=[PREMIER, LA_LIGA], season=2024, today=TODAY)

        sleep.assert_awaited_once_with(1.0)

    @pytest.mark.asyncio

    async def test_inactive_leagues_are_skipped(self, session):
        inactive = SupportedLeague(id=99, name="Off", country="X", api_id=999, active=False)
        provider = FakeProvider()
        pipeline = make_pipeline(provider, session)

        summary = await pipeline.update_all_data(leagues=[inactive, PREMIER], season=2024, today=TODAY)

        assert summary.leagues_processed == 1
        assert [call[0] for call in provider.fixture_calls] == [39]


class TestSupportedLeagues:
    def test_all_leagues_active_in_declared_order(self):
        assert [league.api_id for league in get_active_leagues()] == [39, 140, 135, 78, 61, 71, 2, 73, 106, 103, 113]

    def test_narrowed_by_api_ids(self):
        leagues = get_active_leagues(api_ids=[140, 39])

        # Declared order wins over the requested order
        assert leagues == [LEAGUES_BY_API_ID[39], LEAGUES_BY_API_ID[140]]

    def test_api_ids_are_unique(self):
        assert len(LEAGUES_BY_API_ID) == len(SUPPORTED_LEAGUES)

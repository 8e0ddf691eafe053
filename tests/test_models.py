"""Tests for the table definitions."""

from datetime import datetime

import pytest
from sqlalchemy import DateTime, select
from sqlmodel import SQLModel

from football_predictions.db_utils import upsert
from football_predictions.models import League, Match, utc_now

from factories import seed_league, seed_match, seed_teams

KICKOFF = datetime(2026, 5, 2, 19, 45, 0)


class TestTimestampColumns:
    def test_every_datetime_column_is_naive(self):
        columns = [
            column
            for table in SQLModel.metadata.sorted_tables
            for column in table.columns
            if isinstance(column.type, DateTime)
        ]

        assert {f"{c.table.name}.{c.name}" for c in columns} >= {
            "leagues.created_at",
            "matches.date",
            "predictions.prediction_date",
            "user_predictions.created_at",
        }
        assert all(column.type.timezone is False for column in columns)

    @pytest.mark.asyncio
    async def test_upsert_stores_naive_utc_timestamps(self, session):
        await upsert(
            session,
            League,
            {"id": 39, "name": "Premier League", "country": "England", "season": 2026},
            conflict_columns=["id"],
        )
        await session.commit()

        result = await session.execute(select(League.created_at, League.updated_at))
        created_at, updated_at = result.one()
        assert created_at.tzinfo is None
        assert updated_at.tzinfo is None
        assert abs((utc_now() - created_at).total_seconds()) < 60

    @pytest.mark.asyncio
    async def test_kickoff_round_trips_unchanged(self, session):
        await seed_league(session)
        await seed_teams(session, 1, 2)
        await seed_match(session, 1, KICKOFF, 1, 2)

        result = await session.execute(select(Match.date).where(Match.id == 1))

        assert result.scalar_one() == KICKOFF

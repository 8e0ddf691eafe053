"""ETL pipeline orchestrator."""

import asyncio
import logging
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Awaitable, Callable, Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from football_predictions.config import Settings
from football_predictions.db_utils import upsert
from football_predictions.etl.api_football import APIFootballProvider
from football_predictions.etl.base import (
    DataProvider,
    LeagueData,
    MatchData,
    MatchStatisticsData,
    TeamData,
    VenueData,
)
from football_predictions.etl.competitions import SupportedLeague, get_active_leagues
from football_predictions.models import League, Match, MatchStatistics, Team, Venue
from football_predictions.telemetry import record_entity_upserted

logger = logging.getLogger(__name__)

STATISTICS_COLUMNS = [
    name for name in MatchStatisticsData.__dataclass_fields__ if name != "team_id"
]


@dataclass
class IngestionSummary:
    """Counters for one ingestion pass."""

    leagues_processed: int = 0
    leagues_failed: int = 0
    leagues: int = 0
    venues: int = 0
    teams: int = 0
    matches: int = 0
    statistics: int = 0
    errors: list[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return asdict(self)


class IngestionPipeline:
    """Keeps leagues, teams, venues, matches and statistics current.

    Leagues are processed strictly one after another with a fixed pause in
    between. Every entity upsert is committed on its own, so a failure only
    loses that entity and the pass carries on.
    """

    def __init__(
        self,
        provider: DataProvider,
        session: AsyncSession,
        logger: logging.Logger = logger,
        league_delay: float = 1.0,
        fixture_window_days: int = 30,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.provider = provider
        self.session = session
        self.logger = logger
        self.league_delay = league_delay
        self.fixture_window_days = fixture_window_days
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Upserts (each keyed by the source id, safe to repeat)
    # ------------------------------------------------------------------

    async def _upsert_league(self, league: LeagueData) -> None:
        await upsert(
            self.session,
            League,
            {
                "id": league.id,
                "name": league.name,
                "country": league.country,
                "logo": league.logo,
                "flag": league.flag,
                "season": league.season,
                "round": league.round,
            },
            conflict_columns=["id"],
        )

    async def _upsert_venue(self, venue: VenueData) -> None:
        values = {
            "id": venue.id,
            "name": venue.name or f"Venue {venue.id}",
            "city": venue.city,
            "capacity": venue.capacity,
            "surface": venue.surface,
            "image": venue.image,
        }
        update_columns = None
        if venue.partial:
            # Fixture payloads only carry name/city; keep the rest as stored
            update_columns = [col for col in ("name", "city") if getattr(venue, col) is not None]
        await upsert(self.session, Venue, values, conflict_columns=["id"], update_columns=update_columns)

    async def _upsert_team(self, team: TeamData) -> None:
        await upsert(
            self.session,
            Team,
            {
                "id": team.id,
                "name": team.name,
                "code": team.code,
                "country": team.country,
                "founded": team.founded,
                "national": team.national,
                "logo": team.logo,
                "venue_id": team.venue.id if team.venue else None,
            },
            conflict_columns=["id"],
        )

    async def _ensure_team(self, team_id: int, name: Optional[str], logo: Optional[str]) -> None:
        """Insert a placeholder for a team seen only in fixtures; never overwrite."""
        await upsert(
            self.session,
            Team,
            {"id": team_id, "name": name or f"Unknown Team {team_id}", "logo": logo},
            conflict_columns=["id"],
            update_columns=[],
        )

    async def _upsert_match(self, match: MatchData) -> None:
        await upsert(
            self.session,
            Match,
            {
                "id": match.id,
                "date": match.date,
                "referee": match.referee,
                "venue_id": match.venue.id if match.venue else None,
                "league_id": match.league_id,
                "home_team_id": match.home_team_id,
                "away_team_id": match.away_team_id,
                "home_goals": match.home_goals,
                "away_goals": match.away_goals,
                "home_score_halftime": match.home_score_halftime,
                "away_score_halftime": match.away_score_halftime,
                "home_score_fulltime": match.home_score_fulltime,
                "away_score_fulltime": match.away_score_fulltime,
                "home_score_extratime": match.home_score_extratime,
                "away_score_extratime": match.away_score_extratime,
                "home_score_penalty": match.home_score_penalty,
                "away_score_penalty": match.away_score_penalty,
                "status": match.status,
                "elapsed": match.elapsed,
            },
            conflict_columns=["id"],
        )

    async def _upsert_match_statistics(self, match_id: int, stats: MatchStatisticsData) -> None:
        values = {"match_id": match_id, "team_id": stats.team_id}
        values.update({col: getattr(stats, col) for col in STATISTICS_COLUMNS})
        await upsert(
            self.session,
            MatchStatistics,
            values,
            conflict_columns=["match_id", "team_id"],
        )

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    async def _update_league_info(
        self, league: SupportedLeague, season: int, summary: IngestionSummary
    ) -> bool:
        league_data = await self.provider.get_league(league.api_id, season)
        if league_data is None:
            return False

        await self._upsert_league(league_data)
        await self.session.commit()
        summary.leagues += 1
        record_entity_upserted("league")
        return True

    async def _update_teams(
        self, league: SupportedLeague, season: int, summary: IngestionSummary
    ) -> None:
        teams = await self.provider.get_teams(league.api_id, season)

        for team in teams:
            try:
                if team.venue is not None:
                    await self._upsert_venue(team.venue)
                await self._upsert_team(team)
                await self.session.commit()
                if team.venue is not None:
                    summary.venues += 1
                    record_entity_upserted("venue")
                summary.teams += 1
                record_entity_upserted("team")
            except Exception as e:
                await self.session.rollback()
                self._record_error(summary, f"{league.name}: failed to upsert team {team.id} ({team.name}): {e!r}")

    async def _update_matches(
        self,
        league: SupportedLeague,
        season: int,
        from_date: date,
        to_date: date,
        summary: IngestionSummary,
    ) -> None:
        fixtures = await self.provider.get_fixtures(
            league_id=league.api_id,
            season=season,
            from_date=from_date,
            to_date=to_date,
        )

        for match in fixtures:
            try:
                if match.venue is not None:
                    await self._upsert_venue(match.venue)
                await self._ensure_team(match.home_team_id, match.home_team_name, match.home_team_logo)
                await self._ensure_team(match.away_team_id, match.away_team_name, match.away_team_logo)
                await self._upsert_match(match)
                await self.session.commit()
                if match.venue is not None:
                    summary.venues += 1
                    record_entity_upserted("venue")
                summary.matches += 1
                record_entity_upserted("match")
            except Exception as e:
                await self.session.rollback()
                self._record_error(summary, f"{league.name}: failed to upsert match {match.id}: {e!r}")
                continue

            for stats in match.statistics:
                try:
                    await self._upsert_match_statistics(match.id, stats)
                    await self.session.commit()
                    summary.statistics += 1
                    record_entity_upserted("statistics")
                except Exception as e:
                    await self.session.rollback()
                    self._record_error(
                        summary,
                        f"{league.name}: failed to upsert statistics for match {match.id}, "
                        f"team {stats.team_id}: {e!r}",
                    )

    def _record_error(self, summary: IngestionSummary, message: str) -> None:
        self.logger.error(f"[INGEST] {message}")
        summary.errors.append(message)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def update_league_data(
        self,
        league: SupportedLeague,
        season: Optional[int] = None,
        today: Optional[date] = None,
        summary: Optional[IngestionSummary] = None,
    ) -> IngestionSummary:
        """
        Sync metadata, teams and the rolling fixture window for one league.

        Args:
            league: The supported league to sync.
            season: Season year (default: current UTC year).
            today: Centre of the fixture window (default: today, UTC).
            summary: Summary to accumulate into (a new one by default).

        Returns:
            The (updated) IngestionSummary.
        """
        summary = summary if summary is not None else IngestionSummary()
        today = today or datetime.now(timezone.utc).date()
        season = season or today.year
        window = timedelta(days=self.fixture_window_days)

        self.logger.info(f"[INGEST] Updating data for {league.name} (season {season})...")
        summary.leagues_processed += 1

        try:
            found = await self._update_league_info(league, season, summary)
        except Exception as e:
            await self.session.rollback()
            summary.leagues_failed += 1
            self._record_error(summary, f"{league.name}: failed to update league info: {e!r}")
            return summary

        if not found:
            # Teams and fixtures reference the league row
            summary.leagues_failed += 1
            self._record_error(summary, f"{league.name}: no league data for season {season}, skipped")
            return summary

        failed = False
        try:
            await self._update_teams(league, season, summary)
        except Exception as e:
            await self.session.rollback()
            failed = True
            self._record_error(summary, f"{league.name}: failed to update teams: {e!r}")

        try:
            await self._update_matches(league, season, today - window, today + window, summary)
        except Exception as e:
            await self.session.rollback()
            failed = True
            self._record_error(summary, f"{league.name}: failed to update matches: {e!r}")

        if failed:
            summary.leagues_failed += 1
        self.logger.info(f"[INGEST] Data update completed for {league.name}")
        return summary

    async def update_all_data(
        self,
        leagues: Optional[Iterable[SupportedLeague]] = None,
        season: Optional[int] = None,
        today: Optional[date] = None,
    ) -> IngestionSummary:
        """
        Sync every active league, pausing between leagues.

        Never raises for per-league problems: they are logged and recorded in
        the returned summary.
        """
        active = get_active_leagues() if leagues is None else get_active_leagues(leagues)
        summary = IngestionSummary()

        self.logger.info(f"[INGEST] Starting full data update for {len(active)} leagues...")

        for index, league in enumerate(active):
            if index > 0 and self.league_delay > 0:
                await self._sleep(self.league_delay)
            await self.update_league_data(league, season=season, today=today, summary=summary)

        self.logger.info(
            f"[INGEST] Full data update completed: {summary.leagues_processed} leagues, "
            f"{summary.matches} matches, {summary.teams} teams, {len(summary.errors)} errors"
        )
        return summary


def create_ingestion_pipeline(
    settings: Settings,
    session: AsyncSession,
    logger: logging.Logger = logger,
) -> IngestionPipeline:
    """Factory function to create an ingestion pipeline with the API-Football provider."""
    provider = APIFootballProvider.from_settings(settings, logger=logger)
    return IngestionPipeline(
        provider=provider,
        session=session,
        logger=logger,
        league_delay=settings.LEAGUE_DELAY_SECONDS,
        fixture_window_days=settings.FIXTURE_WINDOW_DAYS,
    )

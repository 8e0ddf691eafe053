"""API-Football data provider implementation."""

import logging
import time
from datetime import date, datetime, timezone
from typing import Any, Optional

import httpx

from football_predictions.config import Settings
from football_predictions.etl.base import (
    DataProvider,
    LeagueData,
    MatchData,
    MatchStatisticsData,
    TeamData,
    VenueData,
)
from football_predictions.models import MatchStatus
from football_predictions.telemetry import record_provider_error, record_provider_request

logger = logging.getLogger(__name__)

PROVIDER = "api_football"


class APIFootballError(RuntimeError):
    """Raised when API-Football answers with a non-empty `errors` field."""


# =============================================================================
# FIXTURE STATUS MAPPING
# =============================================================================
# Short codes from https://www.api-football.com/documentation-v3#tag/Fixtures
# Anything not listed (TBD, NS, unknown codes) is SCHEDULED.

FIXTURE_STATUS_MAP: dict[str, MatchStatus] = {
    # In play
    "1H": MatchStatus.LIVE,
    "HT": MatchStatus.LIVE,
    "2H": MatchStatus.LIVE,
    "ET": MatchStatus.LIVE,
    "BT": MatchStatus.LIVE,
    "P": MatchStatus.LIVE,
    "SUSP": MatchStatus.LIVE,
    "INT": MatchStatus.LIVE,
    "LIVE": MatchStatus.LIVE,
    # Finished (regular time, after extra time, after penalties, technical results)
    "FT": MatchStatus.FINISHED,
    "AET": MatchStatus.FINISHED,
    "PEN": MatchStatus.FINISHED,
    "AWD": MatchStatus.FINISHED,
    "WO": MatchStatus.FINISHED,
    # Not played
    "PST": MatchStatus.POSTPONED,
    "CANC": MatchStatus.CANCELLED,
    "ABD": MatchStatus.CANCELLED,
}


def map_fixture_status(short_code: Optional[str]) -> MatchStatus:
    """Map an API-Football short status code onto MatchStatus."""
    if not short_code:
        return MatchStatus.SCHEDULED
    return FIXTURE_STATUS_MAP.get(short_code.strip().upper(), MatchStatus.SCHEDULED)


# =============================================================================
# STATISTICS LABEL TABLE
# =============================================================================
# API-Football returns statistics as an unordered [{"type": label, "value": v}]
# list. Only labels listed here are extracted; missing ones stay None.

STATISTICS_FIELDS: dict[str, tuple[str, type]] = {
    "Shots on Goal": ("shots_on_goal", int),
    "Shots off Goal": ("shots_off_goal", int),
    "Total Shots": ("total_shots", int),
    "Blocked Shots": ("blocked_shots", int),
    "Shots insidebox": ("shots_inside_box", int),
    "Shots outsidebox": ("shots_outside_box", int),
    "Fouls": ("fouls", int),
    "Corner Kicks": ("corner_kicks", int),
    "Offsides": ("offsides", int),
    "Ball Possession": ("ball_possession", int),
    "Yellow Cards": ("yellow_cards", int),
    "Red Cards": ("red_cards", int),
    "Goalkeeper Saves": ("goalkeeper_saves", int),
    "Total passes": ("total_passes", int),
    "Passes accurate": ("passes_accurate", int),
    "Passes %": ("passes_percentage", int),
    "expected_goals": ("expected_goals", float),
    "Expected Goals": ("expected_goals", float),
}


def coerce_stat_value(value: Any, target: type) -> Optional[int | float]:
    """Convert a raw statistic ("55%", "1.23", 7, None) to int/float, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().rstrip("%").strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return int(round(number)) if target is int else number


def parse_statistics(team_id: int, statistics: list[dict]) -> MatchStatisticsData:
    """Extract the known statistic labels for one team."""
    stats = MatchStatisticsData(team_id=team_id)
    for stat in statistics or []:
        label = stat.get("type")
        mapping = STATISTICS_FIELDS.get(label) if isinstance(label, str) else None
        if mapping is None:
            continue
        field_name, target = mapping
        setattr(stats, field_name, coerce_stat_value(stat.get("value"), target))
    return stats


def _parse_datetime(value: Optional[str]) -> datetime:
    """Parse an ISO-8601 timestamp into naive UTC."""
    if not value:
        raise ValueError("fixture has no date")
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


class APIFootballProvider(DataProvider):
    """API-Football (API-Sports v3) data provider.

    Requests are awaited one at a time; the caller is responsible for pacing
    between leagues.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://v3.football.api-sports.io",
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
        logger: logging.Logger = logger,
    ):
        if not api_key:
            raise ValueError("API-Football key is required")

        self.base_url = base_url.rstrip("/")
        self.logger = logger
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self._headers = {"x-apisports-key": api_key}

    @classmethod
    def from_settings(cls, settings: Settings, logger: logging.Logger = logger) -> "APIFootballProvider":
        return cls(
            api_key=settings.API_FOOTBALL_KEY,
            base_url=settings.API_FOOTBALL_BASE_URL,
            timeout=settings.API_TIMEOUT_SECONDS,
            logger=logger,
        )

    async def _request(self, endpoint: str, params: Optional[dict] = None) -> dict:
        """
        GET an endpoint and return the decoded payload.

        Raises:
            httpx.HTTPStatusError: Non-2xx response.
            httpx.RequestError: Transport failure.
            APIFootballError: Payload carries API-level errors.
        """
        url = f"{self.base_url}/{endpoint}"
        start_time = time.time()
        try:
            response = await self.client.get(url, params=params, headers=self._headers)
        except httpx.RequestError as e:
            record_provider_error(PROVIDER, endpoint, "request_error")
            self.logger.error(f"Request error for {endpoint} {params}: {e}")
            raise

        latency_ms = (time.time() - start_time) * 1000
        record_provider_request(PROVIDER, endpoint, response.status_code, latency_ms)

        if response.is_error:
            record_provider_error(PROVIDER, endpoint, f"http_{response.status_code}")
        response.raise_for_status()

        data = response.json()
        errors = data.get("errors")
        if errors:
            record_provider_error(PROVIDER, endpoint, "api_error_response")
            raise APIFootballError(f"API-Football error on {endpoint} {params}: {errors}")

        return data

    # ------------------------------------------------------------------
    # Leagues
    # ------------------------------------------------------------------

    def _parse_league(self, item: dict, season: int) -> LeagueData:
        league = item.get("league") or {}
        country = item.get("country") or {}

        # Prefer the entry for the requested season, else the first listed
        seasons = item.get("seasons") or []
        season_info = next((s for s in seasons if s.get("year") == season), seasons[0] if seasons else {})

        return LeagueData(
            id=league["id"],
            name=league["name"],
            country=country.get("name") or "World",
            season=season,
            logo=league.get("logo"),
            flag=country.get("flag"),
            round=season_info.get("round") or "Regular Season",
        )

    async def get_league(self, league_id: int, season: int) -> Optional[LeagueData]:
        """Fetch league metadata for a season."""
        data = await self._request("leagues", {"id": league_id, "season": season})
        items = data.get("response", [])
        if not items:
            self.logger.warning(f"No league data for league {league_id}, season {season}")
            return None
        return self._parse_league(items[0], season)

    # ------------------------------------------------------------------
    # Teams
    # ------------------------------------------------------------------

    def _parse_venue(self, venue: Optional[dict], partial: bool = False) -> Optional[VenueData]:
        if not venue or venue.get("id") is None:
            return None
        return VenueData(
            id=venue["id"],
            name=venue.get("name"),
            city=venue.get("city"),
            capacity=venue.get("capacity"),
            surface=venue.get("surface"),
            image=venue.get("image"),
            partial=partial,
        )

    def _parse_team(self, item: dict) -> TeamData:
        team = item.get("team") or {}
        return TeamData(
            id=team["id"],
            name=team["name"],
            code=team.get("code"),
            country=team.get("country"),
            founded=team.get("founded"),
            national=bool(team.get("national", False)),
            logo=team.get("logo"),
            venue=self._parse_venue(item.get("venue")),
        )

    async def get_teams(self, league_id: int, season: int) -> list[TeamData]:
        """Fetch all teams of a league season."""
        data = await self._request("teams", {"league": league_id, "season": season})

        teams = []
        for item in data.get("response", []):
            try:
                teams.append(self._parse_team(item))
            except (KeyError, TypeError) as e:
                self.logger.error(f"Error parsing team in league {league_id}: {e!r}")
                continue

        self.logger.info(f"Fetched {len(teams)} teams for league {league_id}")
        return teams

    # ------------------------------------------------------------------
    # Fixtures
    # ------------------------------------------------------------------

    def _parse_fixture(self, fixture: dict, league_id: int, season: int) -> MatchData:
        """Parse API fixture response into MatchData."""
        fixture_info = fixture.get("fixture") or {}
        league = fixture.get("league") or {}
        teams = fixture.get("teams") or {}
        goals = fixture.get("goals") or {}
        score = fixture.get("score") or {}
        status_info = fixture_info.get("status") or {}

        home = teams.get("home") or {}
        away = teams.get("away") or {}
        halftime = score.get("halftime") or {}
        fulltime = score.get("fulltime") or {}
        extratime = score.get("extratime") or {}
        penalty = score.get("penalty") or {}

        statistics = []
        for team_stats in fixture.get("statistics") or []:
            team_id = (team_stats.get("team") or {}).get("id")
            if team_id is None:
                continue
            statistics.append(parse_statistics(team_id, team_stats.get("statistics")))

        short_status = status_info.get("short")

        return MatchData(
            id=fixture_info["id"],
            date=_parse_datetime(fixture_info.get("date")),
            league_id=league.get("id", league_id),
            season=league.get("season", season),
            home_team_id=home["id"],
            away_team_id=away["id"],
            home_goals=goals.get("home"),
            away_goals=goals.get("away"),
            status=map_fixture_status(short_status).value,
            elapsed=status_info.get("elapsed"),
            source_status=short_status,
            referee=fixture_info.get("referee"),
            venue=self._parse_venue(fixture_info.get("venue"), partial=True),
            home_team_name=home.get("name"),
            away_team_name=away.get("name"),
            home_team_logo=home.get("logo"),
            away_team_logo=away.get("logo"),
            home_score_halftime=halftime.get("home"),
            away_score_halftime=halftime.get("away"),
            home_score_fulltime=fulltime.get("home"),
            away_score_fulltime=fulltime.get("away"),
            home_score_extratime=extratime.get("home"),
            away_score_extratime=extratime.get("away"),
            home_score_penalty=penalty.get("home"),
            away_score_penalty=penalty.get("away"),
            statistics=statistics,
        )

    async def get_fixtures(
        self,
        league_id: int,
        season: int,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> list[MatchData]:
        """Fetch fixtures for a given league and season."""
        params = {
            "league": league_id,
            "season": season,
        }

        if from_date:
            params["from"] = from_date.strftime("%Y-%m-%d")
        if to_date:
            params["to"] = to_date.strftime("%Y-%m-%d")

        self.logger.info(f"Fetching fixtures for league {league_id}, season {season}")

        data = await self._request("fixtures", params)

        matches = []
        for fixture in data.get("response", []):
            try:
                matches.append(self._parse_fixture(fixture, league_id, season))
            except (KeyError, TypeError, ValueError) as e:
                fixture_id = (fixture.get("fixture") or {}).get("id")
                self.logger.error(f"Error parsing fixture {fixture_id} in league {league_id}: {e!r}")
                continue

        self.logger.info(f"Fetched {len(matches)} fixtures for league {league_id}")
        return matches

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

"""Abstract base class for data providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional


@dataclass
class LeagueData:
    """Data transfer object for league information."""

    id: int
    name: str
    country: str
    season: int
    logo: Optional[str] = None
    flag: Optional[str] = None
    round: Optional[str] = None


@dataclass
class VenueData:
    """Data transfer object for venue information.

    Venues embedded in fixtures only carry id/name/city, so `partial` marks
    records whose missing fields must not overwrite stored values.
    """

    id: int
    name: Optional[str] = None
    city: Optional[str] = None
    capacity: Optional[int] = None
    surface: Optional[str] = None
    image: Optional[str] = None
    partial: bool = False


@dataclass
class TeamData:
    """Data transfer object for team information."""

    id: int
    name: str
    code: Optional[str] = None
    country: Optional[str] = None
    founded: Optional[int] = None
    national: bool = False
    logo: Optional[str] = None
    venue: Optional[VenueData] = None


@dataclass
class MatchStatisticsData:
    """Per-team statistics extracted from a fixture payload. Absent labels stay None."""

    team_id: int
    shots_on_goal: Optional[int] = None
    shots_off_goal: Optional[int] = None
    total_shots: Optional[int] = None
    blocked_shots: Optional[int] = None
    shots_inside_box: Optional[int] = None
    shots_outside_box: Optional[int] = None
    fouls: Optional[int] = None
    corner_kicks: Optional[int] = None
    offsides: Optional[int] = None
    ball_possession: Optional[int] = None
    yellow_cards: Optional[int] = None
    red_cards: Optional[int] = None
    goalkeeper_saves: Optional[int] = None
    total_passes: Optional[int] = None
    passes_accurate: Optional[int] = None
    passes_percentage: Optional[int] = None
    expected_goals: Optional[float] = None


@dataclass
class MatchData:
    """Data transfer object for match information."""

    id: int
    date: datetime
    league_id: int
    season: int
    home_team_id: int
    away_team_id: int
    home_goals: Optional[int]
    away_goals: Optional[int]
    status: str  # Already mapped onto MatchStatus
    elapsed: Optional[int]
    # --- Fields with defaults must come after fields without defaults ---
    source_status: Optional[str] = None  # Raw API-Football short code
    referee: Optional[str] = None
    venue: Optional[VenueData] = None
    home_team_name: Optional[str] = None
    away_team_name: Optional[str] = None
    home_team_logo: Optional[str] = None
    away_team_logo: Optional[str] = None
    home_score_halftime: Optional[int] = None
    away_score_halftime: Optional[int] = None
    home_score_fulltime: Optional[int] = None
    away_score_fulltime: Optional[int] = None
    home_score_extratime: Optional[int] = None
    away_score_extratime: Optional[int] = None
    home_score_penalty: Optional[int] = None
    away_score_penalty: Optional[int] = None
    statistics: list[MatchStatisticsData] = field(default_factory=list)


class DataProvider(ABC):
    """Abstract base class for football data providers."""

    @abstractmethod
    async def get_league(self, league_id: int, season: int) -> Optional[LeagueData]:
        """
        Fetch league metadata for a season.

        Args:
            league_id: The source league ID.
            season: The season year.

        Returns:
            LeagueData or None if the source has no such league/season.
        """
        pass

    @abstractmethod
    async def get_teams(self, league_id: int, season: int) -> list[TeamData]:
        """
        Fetch all teams of a league season, with their home venue when known.

        Args:
            league_id: The source league ID.
            season: The season year.

        Returns:
            List of TeamData objects.
        """
        pass

    @abstractmethod
    async def get_fixtures(
        self,
        league_id: int,
        season: int,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> list[MatchData]:
        """
        Fetch fixtures for a given league and season.

        Args:
            league_id: The source league ID.
            season: The season year.
            from_date: Optional start date filter.
            to_date: Optional end date filter.

        Returns:
            List of MatchData objects.
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections."""
        pass

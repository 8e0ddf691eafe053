"""Supported league configuration and IDs for API-Football."""

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, Optional


class Priority(IntEnum):
    """League priority levels (lower value = more important)."""

    HIGH = 1
    MEDIUM = 2
    LOW = 3


@dataclass(frozen=True)
class SupportedLeague:
    """League tracked by the ingestion pipeline."""

    id: int  # Internal id
    name: str
    country: str
    api_id: int  # API-Football league id
    active: bool = True
    priority: Priority = Priority.HIGH


PREMIER_LEAGUE = SupportedLeague(1, "Premier League", "England", api_id=39)
LA_LIGA = SupportedLeague(2, "La Liga", "Spain", api_id=140)
SERIE_A = SupportedLeague(3, "Serie A", "Italy", api_id=135)
BUNDESLIGA = SupportedLeague(4, "Bundesliga", "Germany", api_id=78)
LIGUE_1 = SupportedLeague(5, "Ligue 1", "France", api_id=61)
BRASILEIRAO = SupportedLeague(6, "Brasileirão", "Brazil", api_id=71, priority=Priority.MEDIUM)
CHAMPIONS_LEAGUE = SupportedLeague(7, "UEFA Champions League", "Europe", api_id=2)
CLUB_WORLD_CUP = SupportedLeague(8, "Club World Cup", "World", api_id=73, priority=Priority.LOW)
VEIKKAUSLIIGA = SupportedLeague(9, "Veikkausliiga", "Finland", api_id=106, priority=Priority.LOW)
ELITESERIEN = SupportedLeague(10, "Eliteserien", "Norway", api_id=103, priority=Priority.LOW)
ALLSVENSKAN = SupportedLeague(11, "Allsvenskan", "Sweden", api_id=113, priority=Priority.LOW)

# Processing order is declaration order
SUPPORTED_LEAGUES: list[SupportedLeague] = [
    PREMIER_LEAGUE,
    LA_LIGA,
    SERIE_A,
    BUNDESLIGA,
    LIGUE_1,
    BRASILEIRAO,
    CHAMPIONS_LEAGUE,
    CLUB_WORLD_CUP,
    VEIKKAUSLIIGA,
    ELITESERIEN,
    ALLSVENSKAN,
]

LEAGUES_BY_API_ID: dict[int, SupportedLeague] = {
    league.api_id: league for league in SUPPORTED_LEAGUES
}


def get_active_leagues(
    leagues: Iterable[SupportedLeague] = SUPPORTED_LEAGUES,
    api_ids: Optional[Iterable[int]] = None,
) -> list[SupportedLeague]:
    """Active leagues in processing order, optionally narrowed to the given API ids."""
    wanted = set(api_ids) if api_ids else None
    return [
        league
        for league in leagues
        if league.active and (wanted is None or league.api_id in wanted)
    ]

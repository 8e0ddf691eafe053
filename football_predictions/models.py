"""Database models using SQLModel."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel


def utc_now() -> datetime:
    """Current UTC time as a naive datetime (columns are DateTime without tz)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class MatchStatus(str, Enum):
    """Lifecycle of a match as stored in `matches.status`."""

    SCHEDULED = "SCHEDULED"
    LIVE = "LIVE"
    FINISHED = "FINISHED"
    POSTPONED = "POSTPONED"
    CANCELLED = "CANCELLED"


class League(SQLModel, table=True):
    """Competition, keyed by the API-Football league id."""

    __tablename__ = "leagues"

    id: int = Field(primary_key=True, sa_column_kwargs={"autoincrement": False})
    name: str = Field(max_length=255)
    country: str = Field(max_length=255)
    logo: Optional[str] = Field(default=None)
    flag: Optional[str] = Field(default=None)
    season: int = Field(description="Season year")
    round: Optional[str] = Field(default=None, max_length=255)

    created_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)
    updated_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)


class Venue(SQLModel, table=True):
    """Stadium, keyed by the API-Football venue id."""

    __tablename__ = "venues"

    id: int = Field(primary_key=True, sa_column_kwargs={"autoincrement": False})
    name: str = Field(max_length=255)
    city: Optional[str] = Field(default=None, max_length=255)
    capacity: Optional[int] = Field(default=None)
    surface: Optional[str] = Field(default=None, max_length=100)
    image: Optional[str] = Field(default=None)

    created_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)
    updated_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)


class Team(SQLModel, table=True):
    """Club or national team, keyed by the API-Football team id."""

    __tablename__ = "teams"

    id: int = Field(primary_key=True, sa_column_kwargs={"autoincrement": False})
    name: str = Field(max_length=255)
    code: Optional[str] = Field(default=None, max_length=10)
    country: Optional[str] = Field(default=None, max_length=255)
    founded: Optional[int] = Field(default=None)
    national: bool = Field(default=False)
    logo: Optional[str] = Field(default=None)
    # Lookup only: teams do not own the venue lifecycle
    venue_id: Optional[int] = Field(default=None, foreign_key="venues.id", ondelete="SET NULL")

    created_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)
    updated_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)


class Match(SQLModel, table=True):
    """Fixture, keyed by the API-Football fixture id."""

    __tablename__ = "matches"

    id: int = Field(primary_key=True, sa_column_kwargs={"autoincrement": False})
    date: datetime = Field(sa_type=DateTime, index=True, description="Kickoff (UTC)")
    referee: Optional[str] = Field(default=None, max_length=255)

    venue_id: Optional[int] = Field(default=None, foreign_key="venues.id", ondelete="CASCADE")
    league_id: Optional[int] = Field(
        default=None, foreign_key="leagues.id", ondelete="CASCADE", index=True
    )
    home_team_id: int = Field(foreign_key="teams.id", ondelete="CASCADE", index=True)
    away_team_id: int = Field(foreign_key="teams.id", ondelete="CASCADE", index=True)

    home_goals: Optional[int] = Field(default=None, description="NULL if not played")
    away_goals: Optional[int] = Field(default=None, description="NULL if not played")
    home_score_halftime: Optional[int] = Field(default=None)
    away_score_halftime: Optional[int] = Field(default=None)
    home_score_fulltime: Optional[int] = Field(default=None)
    away_score_fulltime: Optional[int] = Field(default=None)
    home_score_extratime: Optional[int] = Field(default=None)
    away_score_extratime: Optional[int] = Field(default=None)
    home_score_penalty: Optional[int] = Field(default=None)
    away_score_penalty: Optional[int] = Field(default=None)

    status: str = Field(
        default=MatchStatus.SCHEDULED.value, max_length=20, index=True,
        description="SCHEDULED, LIVE, FINISHED, POSTPONED, CANCELLED",
    )
    elapsed: Optional[int] = Field(default=None, description="Minutes played")

    created_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)
    updated_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)

    prediction: Optional["Prediction"] = Relationship(
        back_populates="match", sa_relationship_kwargs={"uselist": False}
    )


class MatchStatistics(SQLModel, table=True):
    """Per-team statistics of a finished match."""

    __tablename__ = "match_statistics"
    __table_args__ = (
        UniqueConstraint("match_id", "team_id", name="uq_match_statistics_match_team"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    match_id: int = Field(foreign_key="matches.id", ondelete="CASCADE", index=True)
    team_id: int = Field(foreign_key="teams.id", ondelete="CASCADE")

    shots_on_goal: Optional[int] = Field(default=None)
    shots_off_goal: Optional[int] = Field(default=None)
    total_shots: Optional[int] = Field(default=None)
    blocked_shots: Optional[int] = Field(default=None)
    shots_inside_box: Optional[int] = Field(default=None)
    shots_outside_box: Optional[int] = Field(default=None)
    fouls: Optional[int] = Field(default=None)
    corner_kicks: Optional[int] = Field(default=None)
    offsides: Optional[int] = Field(default=None)
    ball_possession: Optional[int] = Field(default=None, description="Percent")
    yellow_cards: Optional[int] = Field(default=None)
    red_cards: Optional[int] = Field(default=None)
    goalkeeper_saves: Optional[int] = Field(default=None)
    total_passes: Optional[int] = Field(default=None)
    passes_accurate: Optional[int] = Field(default=None)
    passes_percentage: Optional[int] = Field(default=None)
    expected_goals: Optional[float] = Field(default=None)

    created_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)
    updated_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)


class Prediction(SQLModel, table=True):
    """Latest prediction snapshot for a match (overwritten on regeneration)."""

    __tablename__ = "predictions"

    id: Optional[int] = Field(default=None, primary_key=True)
    match_id: int = Field(foreign_key="matches.id", ondelete="CASCADE", unique=True, index=True)

    home_win_probability: float
    draw_probability: float
    away_win_probability: float
    both_teams_score_probability: float
    over_2_5_goals_probability: float
    under_2_5_goals_probability: float
    home_win_or_draw_probability: float
    away_win_or_draw_probability: float
    home_handicap_1_5_probability: float
    away_handicap_1_5_probability: float

    confidence_score: float = Field(index=True)
    prediction_date: datetime = Field(
        sa_type=DateTime, index=True, description="When the snapshot was generated"
    )

    created_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)
    updated_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)

    match: Optional[Match] = Relationship(back_populates="prediction")


class UserPrediction(SQLModel, table=True):
    """Prediction saved by a user to their list."""

    __tablename__ = "user_predictions"
    __table_args__ = (
        UniqueConstraint("user_id", "prediction_id", name="uq_user_prediction"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(max_length=64, index=True, description="Auth provider user id")
    prediction_id: int = Field(foreign_key="predictions.id", ondelete="CASCADE")
    created_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)

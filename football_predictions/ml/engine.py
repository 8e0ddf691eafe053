"""
Heuristic probability engine.

Pure functions over form and head-to-head statistics. Every market is derived
from a fixed weighted formula; nothing is trained or calibrated.

Home/draw/away are clamped independently and are NOT renormalized to sum to 1,
and the win-or-draw sums are not clamped.
"""

from collections import Counter
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Optional, Sequence

from football_predictions.features.form import FormStats, HeadToHeadStats

FORM_WEIGHTS = (0.4, 0.3, 0.2, 0.08, 0.02)
FORM_WEIGHT_TAIL = 0.01
HANDICAP_LINE = 1.5

HOME_ADVANTAGE = 0.1
AWAY_DISADVANTAGE = -0.05
GOALS_ADJUSTMENT = 0.1


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def form_score(form: Sequence[str]) -> float:
    """
    Position-weighted score of a W/D/L sequence (most recent first).

    A win earns the full weight of its position, a draw half, a loss nothing.

    Returns:
        Score in [0, 1]; 0.5 for an empty sequence.
    """
    if not form:
        return 0.5

    score = 0.0
    for index, result in enumerate(form):
        weight = FORM_WEIGHTS[index] if index < len(FORM_WEIGHTS) else FORM_WEIGHT_TAIL
        if result == "W":
            score += weight
        elif result == "D":
            score += weight / 2
    return score


def form_consistency(form: Sequence[str]) -> float:
    """Share of the most frequent outcome; 0.5 with fewer than two results."""
    if len(form) < 2:
        return 0.5
    most_common = Counter(form).most_common(1)[0][1]
    return most_common / len(form)


def _goals_adjustment(avg_scored: float, opponent_avg_conceded: float) -> float:
    return GOALS_ADJUSTMENT * (
        min(1.0, avg_scored / 2) + max(0.0, 1 - opponent_avg_conceded / 2)
    )


def home_win_probability(home: FormStats, away: FormStats, h2h: HeadToHeadStats) -> float:
    h2h_ratio = h2h.home_wins / h2h.total_matches if h2h.total_matches > 0 else 0.5

    weighted = (
        0.4 * form_score(home.recent_form)
        + 0.3 * (1 - form_score(away.recent_form))
        + 0.3 * h2h_ratio
        + HOME_ADVANTAGE
        + _goals_adjustment(home.average_goals_scored, away.average_goals_conceded)
    )
    return clamp(weighted / 1.3, 0.1, 0.9)


def away_win_probability(home: FormStats, away: FormStats, h2h: HeadToHeadStats) -> float:
    h2h_ratio = h2h.away_wins / h2h.total_matches if h2h.total_matches > 0 else 0.3

    weighted = (
        0.3 * (1 - form_score(home.recent_form))
        + 0.4 * form_score(away.recent_form)
        + 0.3 * h2h_ratio
        + AWAY_DISADVANTAGE
        + _goals_adjustment(away.average_goals_scored, home.average_goals_conceded)
    )
    return clamp(weighted / 1.25, 0.05, 0.8)


def draw_probability(home_win: float, away_win: float) -> float:
    return max(0.0, 1 - home_win - away_win)


def both_teams_score_probability(
    home: FormStats, away: FormStats, h2h: HeadToHeadStats
) -> float:
    h2h_ratio = h2h.both_teams_scored / h2h.total_matches if h2h.total_matches > 0 else 0.6

    weighted = (
        0.3 * min(1.0, home.average_goals_scored / 1.5)
        + 0.3 * min(1.0, away.average_goals_scored / 1.5)
        + 0.2 * min(1.0, home.average_goals_conceded / 1.5)
        + 0.2 * min(1.0, away.average_goals_conceded / 1.5)
        + 0.3 * h2h_ratio
    )
    return clamp(weighted / 1.3, 0.2, 0.9)


def over_2_5_goals_probability(
    home: FormStats, away: FormStats, h2h: HeadToHeadStats
) -> float:
    expected_goals = home.average_goals_scored + away.average_goals_scored
    h2h_ratio = h2h.over_2_5_goals / h2h.total_matches if h2h.total_matches > 0 else 0.5

    return clamp(0.7 * min(1.0, expected_goals / 3) + 0.3 * h2h_ratio, 0.2, 0.9)


def handicap_probability(base_probability: float, line: float = HANDICAP_LINE) -> float:
    """Probability of covering a -line handicap, derived from the win probability."""
    return clamp(base_probability - line * 0.1, 0.1, 0.9)


def confidence_score(home: FormStats, away: FormStats, h2h: HeadToHeadStats) -> float:
    """
    How much the inputs support the prediction, in [0.1, 1.0].

    Consistent recent form on both sides and a larger head-to-head sample
    (saturating at 5 meetings) raise confidence.
    """
    score = (
        0.3 * form_consistency(home.recent_form)
        + 0.3 * form_consistency(away.recent_form)
        + 0.4 * min(1.0, h2h.total_matches / 5)
    )
    return clamp(score, 0.1, 1.0)


@dataclass
class PredictionResult:
    """Full probability snapshot for one match."""

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
    confidence_score: float
    prediction_date: datetime

    def to_record(self, match_id: int) -> dict:
        """Column values for the `predictions` row of match_id."""
        record = asdict(self)
        record["match_id"] = match_id
        return record


class ProbabilityEngine:
    """Stateless wrapper that turns team/head-to-head stats into a PredictionResult."""

    def predict(
        self,
        home: FormStats,
        away: FormStats,
        h2h: HeadToHeadStats,
        now: Optional[datetime] = None,
    ) -> PredictionResult:
        home_win = home_win_probability(home, away, h2h)
        away_win = away_win_probability(home, away, h2h)
        draw = draw_probability(home_win, away_win)
        over = over_2_5_goals_probability(home, away, h2h)

        return PredictionResult(
            home_win_probability=home_win,
            draw_probability=draw,
            away_win_probability=away_win,
            both_teams_score_probability=both_teams_score_probability(home, away, h2h),
            over_2_5_goals_probability=over,
            under_2_5_goals_probability=1 - over,
            home_win_or_draw_probability=home_win + draw,
            away_win_or_draw_probability=away_win + draw,
            home_handicap_1_5_probability=handicap_probability(home_win),
            away_handicap_1_5_probability=handicap_probability(away_win),
            confidence_score=confidence_score(home, away, h2h),
            prediction_date=now or datetime.now(timezone.utc).replace(tzinfo=None),
        )

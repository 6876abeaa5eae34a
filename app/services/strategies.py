"""
Scoring strategies - one pure function per evaluator type.

Every strategy has the same signature:

    strategy(prediction, context, evaluator) -> int

- prediction: the bet's prediction (tagged union from app.models.bet)
- context: the resolved outcome plus the peer predictions of the entity
- evaluator: the league's evaluator (configured points + params)

Strategies never touch the database. A prediction (or outcome) whose shape
does not fit the evaluator raises MalformedPredictionError; it is never
scored as zero.
"""

import math
from dataclasses import dataclass
from typing import Any, Callable, Optional

from app.models.bet import (
    AnswerPrediction,
    PlayerPrediction,
    Prediction,
    ScorePrediction,
    SeriesPrediction,
    TeamPrediction,
    ValuePrediction,
)
from app.models.entity import (
    MatchOutcome,
    Outcome,
    QuestionOutcome,
    SeriesOutcome,
    SpecialOutcome,
)
from app.models.evaluator import Evaluator


class MalformedPredictionError(Exception):
    """Raised when a prediction does not have the shape its evaluator expects."""
    pass


@dataclass(frozen=True)
class ScoringContext:
    outcome: Outcome
    peers: tuple = ()  # every active prediction of the same entity


Strategy = Callable[[Prediction, ScoringContext, Evaluator], int]


HOME = "home"
AWAY = "away"
DRAW = "draw"


def side(home: int, away: int) -> str:
    if home > away:
        return HOME
    if away > home:
        return AWAY
    return DRAW


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _param(evaluator: Evaluator, name: str, default: Any) -> Any:
    value = evaluator.params.get(name)
    return default if value is None else value


def _expect(prediction, expected: type, evaluator: Evaluator):
    if not isinstance(prediction, expected):
        raise MalformedPredictionError(
            f"{evaluator.type} expects a {expected.__name__}, "
            f"got {type(prediction).__name__}"
        )
    return prediction


def _expect_outcome(context: ScoringContext, expected: type, evaluator: Evaluator):
    if not isinstance(context.outcome, expected):
        raise MalformedPredictionError(
            f"{evaluator.type} cannot score against a {type(context.outcome).__name__}"
        )
    return context.outcome


def _special_field(outcome: SpecialOutcome, field: str, evaluator: Evaluator):
    value = getattr(outcome, field)
    if value is None:
        raise MalformedPredictionError(f"{evaluator.type}: outcome has no {field} result")
    return value


# ============================================
# MATCH
# ============================================

def _is_exact(pred: ScorePrediction, actual: MatchOutcome) -> bool:
    return pred.home == actual.home_regular and pred.away == actual.away_regular


def _same_difference(pred: ScorePrediction, actual: MatchOutcome) -> bool:
    return pred.home - pred.away == actual.home_regular - actual.away_regular


def exact_score(prediction, context, evaluator) -> int:
    """Regulation-time score predicted exactly."""
    pred = _expect(prediction, ScorePrediction, evaluator)
    actual = _expect_outcome(context, MatchOutcome, evaluator)
    return evaluator.points if _is_exact(pred, actual) else 0


def score_difference(prediction, context, evaluator) -> int:
    """
    Signed goal difference (home - away) matches.

    params.exclude_exact (default True): an exact score does not also earn
    the difference points.
    """
    pred = _expect(prediction, ScorePrediction, evaluator)
    actual = _expect_outcome(context, MatchOutcome, evaluator)

    if not _same_difference(pred, actual):
        return 0
    if _param(evaluator, "exclude_exact", True) and _is_exact(pred, actual):
        return 0
    return evaluator.points


def one_team_score(prediction, context, evaluator) -> int:
    """One side's score matches, but neither the exact score nor the difference."""
    pred = _expect(prediction, ScorePrediction, evaluator)
    actual = _expect_outcome(context, MatchOutcome, evaluator)

    if _is_exact(pred, actual) or _same_difference(pred, actual):
        return 0
    if pred.home == actual.home_regular or pred.away == actual.away_regular:
        return evaluator.points
    return 0


def winner(prediction, context, evaluator) -> int:
    """Predicted side (home/away/draw) against the final score, overtime included."""
    pred = _expect(prediction, ScorePrediction, evaluator)
    actual = _expect_outcome(context, MatchOutcome, evaluator)

    if side(pred.home, pred.away) == side(actual.final_home, actual.final_away):
        return evaluator.points
    return 0


def scorer(prediction, context, evaluator) -> int:
    """
    Predicted scorer is among the actual scorers, or "no scorer" on a
    scoreless match.

    With params.ranked_points ({"1": 2, "2": 4, ...}) the award depends on
    the scorer's ranking at match time; unranked scorers and a correct
    "no scorer" pick earn params.unranked_points.
    """
    pred = _expect(prediction, ScorePrediction, evaluator)
    actual = _expect_outcome(context, MatchOutcome, evaluator)

    ranked_points: Optional[dict] = _param(evaluator, "ranked_points", None)
    unranked_points = int(_param(evaluator, "unranked_points", evaluator.points))

    if pred.no_scorer:
        if actual.scorer_ids:
            return 0
        return unranked_points if ranked_points else evaluator.points

    if pred.scorer_id is None or pred.scorer_id not in actual.scorer_ids:
        return 0

    if not ranked_points:
        return evaluator.points

    ranking = actual.scorer_rankings.get(pred.scorer_id)
    if ranking is not None and str(ranking) in ranked_points:
        return int(ranked_points[str(ranking)])
    return unranked_points


def draw(prediction, context, evaluator) -> int:
    """Predicted a draw and regulation ended level."""
    pred = _expect(prediction, ScorePrediction, evaluator)
    actual = _expect_outcome(context, MatchOutcome, evaluator)

    if side(pred.home, pred.away) != DRAW:
        return 0
    if side(actual.home_regular, actual.away_regular) != DRAW:
        return 0
    if _param(evaluator, "exclude_exact", False) and _is_exact(pred, actual):
        return 0
    return evaluator.points


def playoff_advance(prediction, context, evaluator) -> int:
    """
    Predicted advancing team in a playoff match.

    params.advance_rule:
    - "resolver" (default): trust outcome.home_advanced (aggregate, away
      goals, penalties...) and fall back to a decisive final score
    - "final_score": only the final score decides
    """
    pred = _expect(prediction, ScorePrediction, evaluator)
    actual = _expect_outcome(context, MatchOutcome, evaluator)

    if not actual.is_playoff:
        return 0

    rule = _param(evaluator, "advance_rule", "resolver")
    if rule == "resolver" and actual.home_advanced is not None:
        home_advanced = actual.home_advanced
    else:
        final_side = side(actual.final_home, actual.final_away)
        if final_side == DRAW:
            return 0
        home_advanced = final_side == HOME

    if pred.home_advances is not None:
        predicted_home = pred.home_advances
    else:
        predicted_side = side(pred.home, pred.away)
        if predicted_side == DRAW:
            return 0
        predicted_home = predicted_side == HOME

    return evaluator.points if predicted_home == home_advanced else 0


# ============================================
# SERIES
# ============================================

def series_exact(prediction, context, evaluator) -> int:
    pred = _expect(prediction, SeriesPrediction, evaluator)
    actual = _expect_outcome(context, SeriesOutcome, evaluator)

    if pred.home_wins == actual.home_wins and pred.away_wins == actual.away_wins:
        return evaluator.points
    return 0


def series_winner(prediction, context, evaluator) -> int:
    """Series winner, regardless of the exact series score (see params.exclude_exact)."""
    pred = _expect(prediction, SeriesPrediction, evaluator)
    actual = _expect_outcome(context, SeriesOutcome, evaluator)

    if side(pred.home_wins, pred.away_wins) != side(actual.home_wins, actual.away_wins):
        return 0
    exact = pred.home_wins == actual.home_wins and pred.away_wins == actual.away_wins
    if exact and _param(evaluator, "exclude_exact", False):
        return 0
    return evaluator.points


# ============================================
# SPECIAL
# ============================================

def exact_player(prediction, context, evaluator) -> int:
    pred = _expect(prediction, PlayerPrediction, evaluator)
    actual = _expect_outcome(context, SpecialOutcome, evaluator)
    return evaluator.points if pred.player_id == _special_field(actual, "player_id", evaluator) else 0


def exact_team(prediction, context, evaluator) -> int:
    pred = _expect(prediction, TeamPrediction, evaluator)
    actual = _expect_outcome(context, SpecialOutcome, evaluator)
    return evaluator.points if pred.team_id == _special_field(actual, "team_id", evaluator) else 0


def exact_value(prediction, context, evaluator) -> int:
    pred = _expect(prediction, ValuePrediction, evaluator)
    actual = _expect_outcome(context, SpecialOutcome, evaluator)
    return evaluator.points if pred.value == _special_field(actual, "value", evaluator) else 0


def closest_value(prediction, context, evaluator) -> int:
    """
    Every bet at the minimum distance from the actual value shares the award.

    params.near_ratio (default 1.0) scales the award when even the closest
    bets missed the exact value.
    """
    pred = _expect(prediction, ValuePrediction, evaluator)
    actual = _expect_outcome(context, SpecialOutcome, evaluator)
    target = _special_field(actual, "value", evaluator)

    distance = abs(pred.value - target)
    distances = [abs(p.value - target) for p in context.peers if isinstance(p, ValuePrediction)]
    best = min(distances + [distance])

    if distance != best:
        return 0
    if distance == 0:
        return evaluator.points
    return round_half_up(evaluator.points * float(_param(evaluator, "near_ratio", 1.0)))


def group_stage_team(prediction, context, evaluator) -> int:
    """Group winner earns the points; a team that only advanced earns params.advance_points."""
    pred = _expect(prediction, TeamPrediction, evaluator)
    actual = _expect_outcome(context, SpecialOutcome, evaluator)

    if pred.team_id == _special_field(actual, "team_id", evaluator):
        return evaluator.points
    if pred.team_id in actual.advanced_team_ids:
        return int(_param(evaluator, "advance_points", 0))
    return 0


def question(prediction, context, evaluator) -> int:
    """
    Yes/no question. An unanswered question scores 0; a wrong answer scores
    -floor(points * params.wrong_penalty_ratio) (default ratio 0).
    """
    pred = _expect(prediction, AnswerPrediction, evaluator)
    actual = _expect_outcome(context, QuestionOutcome, evaluator)

    if pred.answer is None:
        return 0
    if pred.answer == actual.answer:
        return evaluator.points

    ratio = float(_param(evaluator, "wrong_penalty_ratio", 0.0))
    return -math.floor(evaluator.points * ratio)

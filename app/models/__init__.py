from .user import User
from .entity import (
    EntityKind,
    EntityStatus,
    PredictableEntity,
    MatchOutcome,
    SeriesOutcome,
    SpecialOutcome,
    QuestionOutcome,
)
from .bet import (
    Bet,
    ScorePrediction,
    SeriesPrediction,
    TeamPrediction,
    PlayerPrediction,
    ValuePrediction,
    AnswerPrediction,
)
from .evaluator import Evaluator, EvaluatorType, EvaluatorCategory
from .points import PointsRecord
from .leaderboard import LeaderboardEntry

__all__ = [
    "User",
    "EntityKind",
    "EntityStatus",
    "PredictableEntity",
    "MatchOutcome",
    "SeriesOutcome",
    "SpecialOutcome",
    "QuestionOutcome",
    "Bet",
    "ScorePrediction",
    "SeriesPrediction",
    "TeamPrediction",
    "PlayerPrediction",
    "ValuePrediction",
    "AnswerPrediction",
    "Evaluator",
    "EvaluatorType",
    "EvaluatorCategory",
    "PointsRecord",
    "LeaderboardEntry",
]

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from app.models.common import UTCDateTime

MIN_POINTS = 0
MAX_POINTS = 100


class EvaluatorType(str, Enum):
    # Match
    EXACT_SCORE = "exact-score"
    SCORE_DIFFERENCE = "score-difference"
    ONE_TEAM_SCORE = "one-team-score"
    WINNER = "winner"
    SCORER = "scorer"
    DRAW = "draw"
    PLAYOFF_ADVANCE = "playoff-advance"

    # Series
    SERIES_EXACT = "series-exact"
    SERIES_WINNER = "series-winner"

    # Special
    EXACT_PLAYER = "exact-player"
    EXACT_TEAM = "exact-team"
    EXACT_VALUE = "exact-value"
    CLOSEST_VALUE = "closest-value"
    GROUP_STAGE_TEAM = "group-stage-team"
    QUESTION = "question"


class EvaluatorCategory(str, Enum):
    MATCH = "match"
    SERIES = "series"
    SPECIAL = "special"


class Evaluator(BaseModel):
    """Regla de puntuación configurada para una liga"""

    id: str
    league_id: str

    type: EvaluatorType
    category: EvaluatorCategory

    points: int = Field(ge=MIN_POINTS, le=MAX_POINTS)
    params: dict[str, Any] = {}  # league-tunable thresholds, see strategies

    created_at: UTCDateTime
    deleted_at: Optional[datetime] = None

    class Config:
        populate_by_name = True
        use_enum_values = True


class EvaluatorCreate(BaseModel):
    type: EvaluatorType
    points: int
    params: dict[str, Any] = {}

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator

from app.models.common import UTCDateTime


class EntityKind(str, Enum):
    MATCH = "match"
    SERIES = "series"
    SPECIAL = "special"
    QUESTION = "question"


class EntityStatus(str, Enum):
    SCHEDULED = "scheduled"
    LOCKED = "locked"
    PLAYED = "played"
    EVALUATED = "evaluated"


class MatchOutcome(BaseModel):
    """Resultado de un partido (tiempo regular + final tras prórroga/penales)"""

    kind: Literal["match"] = "match"

    home_regular: int = Field(ge=0)
    away_regular: int = Field(ge=0)

    # Solo si hubo prórroga o penales; si no, coincide con el regular
    home_final: Optional[int] = Field(default=None, ge=0)
    away_final: Optional[int] = Field(default=None, ge=0)

    scorer_ids: list[str] = []
    scorer_rankings: dict[str, int] = {}  # player_id -> ranking at match time

    is_playoff: bool = False
    home_advanced: Optional[bool] = None  # playoff only, set by the resolver

    @property
    def final_home(self) -> int:
        return self.home_final if self.home_final is not None else self.home_regular

    @property
    def final_away(self) -> int:
        return self.away_final if self.away_final is not None else self.away_regular


class SeriesOutcome(BaseModel):
    kind: Literal["series"] = "series"

    home_wins: int = Field(ge=0)
    away_wins: int = Field(ge=0)


class SpecialOutcome(BaseModel):
    """Resultado de una apuesta especial: equipo, jugador o valor"""

    kind: Literal["special"] = "special"

    team_id: Optional[str] = None
    player_id: Optional[str] = None
    value: Optional[float] = Field(default=None, allow_inf_nan=False)

    advanced_team_ids: list[str] = []  # group-stage specials

    @model_validator(mode="after")
    def _has_result(self):
        if self.team_id is None and self.player_id is None and self.value is None:
            raise ValueError("Special outcome needs a team, player or value result")
        return self


class QuestionOutcome(BaseModel):
    kind: Literal["question"] = "question"

    answer: bool


Outcome = Annotated[
    Union[MatchOutcome, SeriesOutcome, SpecialOutcome, QuestionOutcome],
    Field(discriminator="kind"),
]


class PredictableEntity(BaseModel):
    """Cualquier evento resoluble sobre el que se puede apostar"""

    id: str
    league_id: str
    kind: EntityKind
    name: str

    lock_at: UTCDateTime
    status: EntityStatus = EntityStatus.SCHEDULED

    outcome: Optional[Outcome] = None

    doubled: bool = False  # match worth double points
    evaluator_id: Optional[str] = None  # special bets may pin one evaluator

    failed_bet_ids: list[str] = []
    evaluated_at: Optional[UTCDateTime] = None

    created_at: UTCDateTime

    class Config:
        populate_by_name = True
        use_enum_values = True
        validate_default = True


class EntityCreate(BaseModel):
    league_id: str
    kind: EntityKind
    name: str
    lock_at: UTCDateTime
    doubled: bool = False
    evaluator_id: Optional[str] = None

from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator

from app.models.common import UTCDateTime


class ScorePrediction(BaseModel):
    """Pronóstico de un partido: marcador + goleador opcional"""

    kind: Literal["score"] = "score"

    home: int = Field(ge=0)
    away: int = Field(ge=0)

    scorer_id: Optional[str] = None
    no_scorer: bool = False  # "nadie marca" (0-0)

    home_advances: Optional[bool] = None  # playoff pick

    @model_validator(mode="after")
    def _scorer_modes_exclusive(self):
        if self.no_scorer and self.scorer_id is not None:
            raise ValueError("scorer_id and no_scorer are mutually exclusive")
        return self


class SeriesPrediction(BaseModel):
    kind: Literal["series"] = "series"

    home_wins: int = Field(ge=0)
    away_wins: int = Field(ge=0)


class TeamPrediction(BaseModel):
    kind: Literal["team"] = "team"

    team_id: str


class PlayerPrediction(BaseModel):
    kind: Literal["player"] = "player"

    player_id: str


class ValuePrediction(BaseModel):
    kind: Literal["value"] = "value"

    value: float = Field(allow_inf_nan=False)


class AnswerPrediction(BaseModel):
    kind: Literal["answer"] = "answer"

    answer: Optional[bool] = None  # None = no contestó


Prediction = Annotated[
    Union[
        ScorePrediction,
        SeriesPrediction,
        TeamPrediction,
        PlayerPrediction,
        ValuePrediction,
        AnswerPrediction,
    ],
    Field(discriminator="kind"),
]


class Bet(BaseModel):
    """Apuesta de un miembro de la liga sobre una entidad"""

    id: str  # user_id:entity_id

    entity_id: str
    league_id: str
    user_id: str

    prediction: Prediction

    created_at: UTCDateTime
    deleted_at: Optional[datetime] = None

    class Config:
        populate_by_name = True


class BetCreate(BaseModel):
    entity_id: str
    prediction: Prediction


class BetResponse(BaseModel):
    id: str
    entity_id: str
    league_id: str
    prediction: Prediction
    created_at: datetime

from pydantic import BaseModel

from app.models.common import UTCDateTime


class PointsRecord(BaseModel):
    """Resultado persistido de aplicar un evaluador a una apuesta"""

    id: str  # bet_id:evaluator_id

    bet_id: str
    evaluator_id: str
    evaluator_type: str

    entity_id: str
    league_id: str
    user_id: str
    category: str  # match | series | special | question (leaderboard bucket)

    points: int
    evaluated_at: UTCDateTime

    class Config:
        populate_by_name = True

    @staticmethod
    def make_id(bet_id: str, evaluator_id: str) -> str:
        return f"{bet_id}:{evaluator_id}"

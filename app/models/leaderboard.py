from typing import Optional
from pydantic import BaseModel


class LeaderboardEntry(BaseModel):
    """Entrada en una tabla de clasificación (resultado agregado)"""

    rank: int

    user_id: str
    username: Optional[str] = None

    match_points: int = 0
    series_points: int = 0
    special_points: int = 0
    question_points: int = 0

    total_points: int

    class Config:
        populate_by_name = True

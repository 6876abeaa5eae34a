from .entity_repository import EntityRepository
from .bet_repository import BetRepository
from .evaluator_repository import EvaluatorRepository
from .points_repository import PointsRepository
from .lock_repository import LockRepository, LockConflictError
from .user_repository import UserRepository

__all__ = [
    "EntityRepository",
    "BetRepository",
    "EvaluatorRepository",
    "PointsRepository",
    "LockRepository",
    "LockConflictError",
    "UserRepository",
]

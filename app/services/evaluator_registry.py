"""
EvaluatorRegistry - immutable lookup from evaluator type to scoring strategy.

Built once at startup (build_registry) and handed explicitly to the
evaluation engine, the leaderboard and the evaluator configuration code.
The set of evaluator types is closed (EvaluatorType); leagues tune the
registry through configuration only: points, params and category mapping.
"""

import logging
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional

from app.core.config import Settings
from app.models.entity import EntityKind
from app.models.evaluator import (
    MAX_POINTS,
    MIN_POINTS,
    Evaluator,
    EvaluatorCategory,
    EvaluatorType,
)
from app.services import strategies
from app.services.strategies import ScoringContext, Strategy

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when an evaluator (or the registry itself) is misconfigured."""
    pass


# ============================================
# PARAM VALIDATORS
# ============================================

def _bool(name: str, value: Any) -> None:
    if not isinstance(value, bool):
        raise ConfigurationError(f"{name} must be a boolean")


def _ratio(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not 0 <= value <= 1:
        raise ConfigurationError(f"{name} must be a number between 0 and 1")


def _points(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or not MIN_POINTS <= value <= MAX_POINTS:
        raise ConfigurationError(f"{name} must be an integer between {MIN_POINTS} and {MAX_POINTS}")


def _points_by_rank(name: str, value: Any) -> None:
    if not isinstance(value, dict) or not value:
        raise ConfigurationError(f"{name} must be a non-empty mapping of ranking -> points")
    for rank, points in value.items():
        if not str(rank).isdigit():
            raise ConfigurationError(f"{name}: ranking '{rank}' is not a positive integer")
        _points(f"{name}[{rank}]", points)


def _one_of(*choices: str) -> Callable[[str, Any], None]:
    def check(name: str, value: Any) -> None:
        if value not in choices:
            raise ConfigurationError(f"{name} must be one of {', '.join(choices)}")
    return check


@dataclass(frozen=True)
class StrategySpec:
    type: EvaluatorType
    category: EvaluatorCategory
    entity_kinds: frozenset
    prediction_kind: str  # Prediction.kind the strategy scores
    strategy: Strategy
    params: Mapping[str, Callable[[str, Any], None]] = field(default_factory=lambda: MappingProxyType({}))


_MATCH = frozenset({EntityKind.MATCH})
_SERIES = frozenset({EntityKind.SERIES})
_SPECIAL = frozenset({EntityKind.SPECIAL})
_QUESTION = frozenset({EntityKind.QUESTION})

DEFAULT_SPECS = (
    StrategySpec(EvaluatorType.EXACT_SCORE, EvaluatorCategory.MATCH, _MATCH, "score", strategies.exact_score),
    StrategySpec(
        EvaluatorType.SCORE_DIFFERENCE, EvaluatorCategory.MATCH, _MATCH, "score", strategies.score_difference,
        MappingProxyType({"exclude_exact": _bool}),
    ),
    StrategySpec(EvaluatorType.ONE_TEAM_SCORE, EvaluatorCategory.MATCH, _MATCH, "score", strategies.one_team_score),
    StrategySpec(EvaluatorType.WINNER, EvaluatorCategory.MATCH, _MATCH, "score", strategies.winner),
    StrategySpec(
        EvaluatorType.SCORER, EvaluatorCategory.MATCH, _MATCH, "score", strategies.scorer,
        MappingProxyType({"ranked_points": _points_by_rank, "unranked_points": _points}),
    ),
    StrategySpec(
        EvaluatorType.DRAW, EvaluatorCategory.MATCH, _MATCH, "score", strategies.draw,
        MappingProxyType({"exclude_exact": _bool}),
    ),
    StrategySpec(
        EvaluatorType.PLAYOFF_ADVANCE, EvaluatorCategory.MATCH, _MATCH, "score", strategies.playoff_advance,
        MappingProxyType({"advance_rule": _one_of("resolver", "final_score")}),
    ),
    StrategySpec(EvaluatorType.SERIES_EXACT, EvaluatorCategory.SERIES, _SERIES, "series", strategies.series_exact),
    StrategySpec(
        EvaluatorType.SERIES_WINNER, EvaluatorCategory.SERIES, _SERIES, "series", strategies.series_winner,
        MappingProxyType({"exclude_exact": _bool}),
    ),
    StrategySpec(EvaluatorType.EXACT_PLAYER, EvaluatorCategory.SPECIAL, _SPECIAL, "player", strategies.exact_player),
    StrategySpec(EvaluatorType.EXACT_TEAM, EvaluatorCategory.SPECIAL, _SPECIAL, "team", strategies.exact_team),
    StrategySpec(EvaluatorType.EXACT_VALUE, EvaluatorCategory.SPECIAL, _SPECIAL, "value", strategies.exact_value),
    StrategySpec(
        EvaluatorType.CLOSEST_VALUE, EvaluatorCategory.SPECIAL, _SPECIAL, "value", strategies.closest_value,
        MappingProxyType({"near_ratio": _ratio}),
    ),
    StrategySpec(
        EvaluatorType.GROUP_STAGE_TEAM, EvaluatorCategory.SPECIAL, _SPECIAL, "team", strategies.group_stage_team,
        MappingProxyType({"advance_points": _points}),
    ),
    StrategySpec(
        EvaluatorType.QUESTION, EvaluatorCategory.SPECIAL, _QUESTION, "answer", strategies.question,
        MappingProxyType({"wrong_penalty_ratio": _ratio}),
    ),
)


class EvaluatorRegistry:
    def __init__(self, specs: Mapping[EvaluatorType, StrategySpec]):
        missing = set(EvaluatorType) - set(specs)
        if missing:
            raise ConfigurationError(
                f"No strategy registered for: {', '.join(sorted(t.value for t in missing))}"
            )
        self._specs = MappingProxyType(dict(specs))

    def spec(self, evaluator_type) -> StrategySpec:
        return self._specs[EvaluatorType(evaluator_type)]

    def category_for(self, evaluator_type) -> EvaluatorCategory:
        return self.spec(evaluator_type).category

    def categories_for_entity(self, kind) -> list[EvaluatorCategory]:
        """Evaluator categories that hold evaluators able to score this entity kind."""
        kind = EntityKind(kind)
        found = {s.category for s in self._specs.values() if kind in s.entity_kinds}
        return sorted(found, key=lambda c: c.value)

    def applies_to(self, evaluator_type, kind) -> bool:
        return EntityKind(kind) in self.spec(evaluator_type).entity_kinds

    def accepts(self, evaluator_type, prediction) -> bool:
        """Whether the evaluator scores predictions of this shape (score, team, value...)."""
        return getattr(prediction, "kind", None) == self.spec(evaluator_type).prediction_kind

    @property
    def leaderboard_categories(self) -> tuple[str, ...]:
        return tuple(kind.value for kind in EntityKind)

    def validate(self, evaluator_type, points: int, params: Optional[dict] = None) -> None:
        """
        Check an evaluator configuration before it is stored.

        Out-of-range points or unknown/invalid params are rejected here, at
        configuration time, never during evaluation.
        """
        try:
            spec = self.spec(evaluator_type)
        except ValueError:
            raise ConfigurationError(f"Unknown evaluator type: {evaluator_type}")

        if isinstance(points, bool) or not isinstance(points, int) or not MIN_POINTS <= points <= MAX_POINTS:
            raise ConfigurationError(
                f"Evaluator points must be between {MIN_POINTS} and {MAX_POINTS}, got {points}"
            )

        for name, value in (params or {}).items():
            check = spec.params.get(name)
            if check is None:
                raise ConfigurationError(f"{spec.type.value} does not accept param '{name}'")
            check(name, value)

    def score(self, evaluator: Evaluator, prediction, context: ScoringContext) -> int:
        """
        Dispatch one (prediction, evaluator) pair to its strategy.

        A 0-point evaluator never contributes, whatever its params award.
        """
        strategy = self.spec(evaluator.type).strategy
        points = strategy(prediction, context, evaluator)
        if evaluator.points == 0:
            return 0
        return points


def build_registry(settings: Settings) -> EvaluatorRegistry:
    """
    Build the process-wide registry.

    settings.evaluator_category_overrides remaps an evaluator type to another
    category, e.g. {"question": "special"}.
    """
    specs = {spec.type: spec for spec in DEFAULT_SPECS}

    for type_name, category_name in settings.evaluator_category_overrides.items():
        try:
            evaluator_type = EvaluatorType(type_name)
            category = EvaluatorCategory(category_name)
        except ValueError:
            raise ConfigurationError(
                f"Invalid category override {type_name!r} -> {category_name!r}"
            )
        spec = specs[evaluator_type]
        specs[evaluator_type] = replace(spec, category=category)
        logger.info(f"Evaluator {type_name} mapped to category {category_name}")

    return EvaluatorRegistry(specs)

"""
Unit tests for the scoring strategies (pure functions, no database)
"""

import pytest

from app.models.bet import (
    AnswerPrediction,
    PlayerPrediction,
    ScorePrediction,
    SeriesPrediction,
    TeamPrediction,
    ValuePrediction,
)
from app.models.common import utcnow
from app.models.entity import (
    MatchOutcome,
    QuestionOutcome,
    SeriesOutcome,
    SpecialOutcome,
)
from app.models.evaluator import Evaluator
from app.services import strategies
from app.services.strategies import MalformedPredictionError, ScoringContext


def make_evaluator(evaluator_type, points, category="match", **params):
    return Evaluator(
        id=f"ev-{evaluator_type}",
        league_id="league-1",
        type=evaluator_type,
        category=category,
        points=points,
        params=params,
        created_at=utcnow(),
    )


def match(home, away, **fields):
    return ScoringContext(outcome=MatchOutcome(home_regular=home, away_regular=away, **fields))


class TestMatchStrategies:
    """Match evaluators: exact score, difference, winner, draw, scorer, playoff."""

    def test_exact_score_example(self):
        """2-1 actual: the 2-1 bet earns 5, the 2-0 bet earns 0"""
        evaluator = make_evaluator("exact-score", 5)
        context = match(2, 1)

        assert strategies.exact_score(ScorePrediction(home=2, away=1), context, evaluator) == 5
        assert strategies.exact_score(ScorePrediction(home=2, away=0), context, evaluator) == 0

    def test_exact_score_uses_regulation_time(self):
        evaluator = make_evaluator("exact-score", 5)
        context = match(1, 1, home_final=2, away_final=1)

        assert strategies.exact_score(ScorePrediction(home=1, away=1), context, evaluator) == 5
        assert strategies.exact_score(ScorePrediction(home=2, away=1), context, evaluator) == 0

    def test_score_difference_excludes_exact_by_default(self):
        evaluator = make_evaluator("score-difference", 3)
        context = match(2, 1)

        assert strategies.score_difference(ScorePrediction(home=3, away=2), context, evaluator) == 3
        assert strategies.score_difference(ScorePrediction(home=2, away=1), context, evaluator) == 0
        assert strategies.score_difference(ScorePrediction(home=1, away=2), context, evaluator) == 0

    def test_score_difference_can_include_exact(self):
        evaluator = make_evaluator("score-difference", 3, exclude_exact=False)

        assert strategies.score_difference(ScorePrediction(home=2, away=1), match(2, 1), evaluator) == 3

    def test_one_team_score(self):
        evaluator = make_evaluator("one-team-score", 1)
        context = match(2, 1)

        assert strategies.one_team_score(ScorePrediction(home=2, away=0), context, evaluator) == 1
        assert strategies.one_team_score(ScorePrediction(home=0, away=1), context, evaluator) == 1
        # exact or same difference never earn one-team points
        assert strategies.one_team_score(ScorePrediction(home=2, away=1), context, evaluator) == 0
        assert strategies.one_team_score(ScorePrediction(home=3, away=2), context, evaluator) == 0
        assert strategies.one_team_score(ScorePrediction(home=0, away=0), context, evaluator) == 0

    def test_winner_and_draw_on_a_draw(self):
        """1-1 actual: a home-win bet scores 0 on both winner and draw"""
        winner = make_evaluator("winner", 2)
        draw = make_evaluator("draw", 3)
        context = match(1, 1)

        home_win = ScorePrediction(home=2, away=0)
        assert strategies.winner(home_win, context, winner) == 0
        assert strategies.draw(home_win, context, draw) == 0

        predicted_draw = ScorePrediction(home=0, away=0)
        assert strategies.winner(predicted_draw, context, winner) == 2
        assert strategies.draw(predicted_draw, context, draw) == 3

    def test_winner_counts_overtime(self):
        evaluator = make_evaluator("winner", 2)
        context = match(1, 1, home_final=1, away_final=2)

        assert strategies.winner(ScorePrediction(home=0, away=1), context, evaluator) == 2
        assert strategies.winner(ScorePrediction(home=1, away=1), context, evaluator) == 0

    def test_draw_uses_regulation_and_optional_exact_exclusion(self):
        context = match(1, 1, home_final=2, away_final=1)

        assert strategies.draw(ScorePrediction(home=1, away=1), context, make_evaluator("draw", 3)) == 3
        assert strategies.draw(
            ScorePrediction(home=1, away=1), context, make_evaluator("draw", 3, exclude_exact=True)
        ) == 0

    def test_scorer(self):
        evaluator = make_evaluator("scorer", 4)
        context = match(2, 0, scorer_ids=["p9", "p10"])

        assert strategies.scorer(ScorePrediction(home=2, away=0, scorer_id="p9"), context, evaluator) == 4
        assert strategies.scorer(ScorePrediction(home=2, away=0, scorer_id="p1"), context, evaluator) == 0
        assert strategies.scorer(ScorePrediction(home=2, away=0), context, evaluator) == 0

    def test_scorer_no_scorer_pick(self):
        evaluator = make_evaluator("scorer", 4)
        no_scorer = ScorePrediction(home=0, away=0, no_scorer=True)

        assert strategies.scorer(no_scorer, match(0, 0), evaluator) == 4
        assert strategies.scorer(no_scorer, match(1, 0, scorer_ids=["p9"]), evaluator) == 0

    def test_scorer_ranked_points(self):
        evaluator = make_evaluator("scorer", 4, ranked_points={"1": 2, "2": 6}, unranked_points=10)
        context = match(3, 0, scorer_ids=["star", "rookie", "nobody"],
                        scorer_rankings={"star": 1, "rookie": 2})

        assert strategies.scorer(ScorePrediction(home=3, away=0, scorer_id="star"), context, evaluator) == 2
        assert strategies.scorer(ScorePrediction(home=3, away=0, scorer_id="rookie"), context, evaluator) == 6
        assert strategies.scorer(ScorePrediction(home=3, away=0, scorer_id="nobody"), context, evaluator) == 10

    def test_scorer_id_and_no_scorer_are_exclusive(self):
        with pytest.raises(ValueError):
            ScorePrediction(home=0, away=0, scorer_id="p9", no_scorer=True)

    def test_playoff_advance_only_for_playoffs(self):
        evaluator = make_evaluator("playoff-advance", 2)

        assert strategies.playoff_advance(ScorePrediction(home=2, away=1), match(2, 1), evaluator) == 0

    def test_playoff_advance_trusts_resolver(self):
        """Home won the game but the away side advanced on aggregate"""
        evaluator = make_evaluator("playoff-advance", 2)
        context = match(2, 1, is_playoff=True, home_advanced=False)

        assert strategies.playoff_advance(ScorePrediction(home=2, away=1), context, evaluator) == 0
        assert strategies.playoff_advance(
            ScorePrediction(home=2, away=1, home_advances=False), context, evaluator
        ) == 2

    def test_playoff_advance_final_score_rule(self):
        evaluator = make_evaluator("playoff-advance", 2, advance_rule="final_score")
        context = match(1, 1, home_final=1, away_final=1, is_playoff=True, home_advanced=True)

        # final score level: no winner under this rule
        assert strategies.playoff_advance(
            ScorePrediction(home=1, away=1, home_advances=True), context, evaluator
        ) == 0

        shootout = match(1, 1, home_final=2, away_final=1, is_playoff=True)
        assert strategies.playoff_advance(ScorePrediction(home=1, away=0), shootout, evaluator) == 2


class TestSeriesStrategies:

    def test_series_exact(self):
        evaluator = make_evaluator("series-exact", 5, category="series")
        context = ScoringContext(outcome=SeriesOutcome(home_wins=4, away_wins=2))

        assert strategies.series_exact(SeriesPrediction(home_wins=4, away_wins=2), context, evaluator) == 5
        assert strategies.series_exact(SeriesPrediction(home_wins=4, away_wins=1), context, evaluator) == 0

    def test_series_winner(self):
        context = ScoringContext(outcome=SeriesOutcome(home_wins=4, away_wins=2))
        evaluator = make_evaluator("series-winner", 2, category="series")

        assert strategies.series_winner(SeriesPrediction(home_wins=4, away_wins=0), context, evaluator) == 2
        assert strategies.series_winner(SeriesPrediction(home_wins=4, away_wins=2), context, evaluator) == 2
        assert strategies.series_winner(SeriesPrediction(home_wins=1, away_wins=4), context, evaluator) == 0

        exclusive = make_evaluator("series-winner", 2, category="series", exclude_exact=True)
        assert strategies.series_winner(SeriesPrediction(home_wins=4, away_wins=2), context, exclusive) == 0


class TestSpecialStrategies:

    def test_identity_strategies(self):
        context = ScoringContext(outcome=SpecialOutcome(team_id="t1", player_id="p1", value=12))

        assert strategies.exact_team(TeamPrediction(team_id="t1"), context,
                                     make_evaluator("exact-team", 7, category="special")) == 7
        assert strategies.exact_player(PlayerPrediction(player_id="p2"), context,
                                       make_evaluator("exact-player", 7, category="special")) == 0
        assert strategies.exact_value(ValuePrediction(value=12), context,
                                      make_evaluator("exact-value", 7, category="special")) == 7

    def test_missing_outcome_field_is_malformed(self):
        context = ScoringContext(outcome=SpecialOutcome(team_id="t1"))

        with pytest.raises(MalformedPredictionError):
            strategies.exact_player(PlayerPrediction(player_id="p1"), context,
                                    make_evaluator("exact-player", 7, category="special"))

    def test_closest_value_ties_share_the_award(self):
        """Distances {3, 1, 1, 5}: only the two distance-1 bets score"""
        evaluator = make_evaluator("closest-value", 8, category="special")
        predictions = [ValuePrediction(value=v) for v in (13, 11, 9, 5)]
        context = ScoringContext(outcome=SpecialOutcome(value=10), peers=tuple(predictions))

        points = [strategies.closest_value(p, context, evaluator) for p in predictions]

        assert points == [0, 8, 8, 0]

    def test_closest_value_near_ratio(self):
        evaluator = make_evaluator("closest-value", 9, category="special", near_ratio=1 / 3)
        predictions = (ValuePrediction(value=7), ValuePrediction(value=10))

        missed = ScoringContext(outcome=SpecialOutcome(value=8), peers=predictions)
        assert strategies.closest_value(predictions[0], missed, evaluator) == 3

        exact = ScoringContext(outcome=SpecialOutcome(value=10), peers=predictions)
        assert strategies.closest_value(predictions[1], exact, evaluator) == 9

    def test_group_stage_team(self):
        evaluator = make_evaluator("group-stage-team", 6, category="special", advance_points=2)
        context = ScoringContext(outcome=SpecialOutcome(team_id="t1", advanced_team_ids=["t1", "t2"]))

        assert strategies.group_stage_team(TeamPrediction(team_id="t1"), context, evaluator) == 6
        assert strategies.group_stage_team(TeamPrediction(team_id="t2"), context, evaluator) == 2
        assert strategies.group_stage_team(TeamPrediction(team_id="t3"), context, evaluator) == 0

    def test_special_outcome_needs_a_result(self):
        with pytest.raises(ValueError):
            SpecialOutcome()

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_values_must_be_finite(self, value):
        """A NaN peer would make every distance comparison false"""
        with pytest.raises(ValueError):
            ValuePrediction(value=value)
        with pytest.raises(ValueError):
            SpecialOutcome(value=value)


class TestQuestionStrategy:

    def test_question(self):
        evaluator = make_evaluator("question", 4, category="special")
        context = ScoringContext(outcome=QuestionOutcome(answer=True))

        assert strategies.question(AnswerPrediction(answer=True), context, evaluator) == 4
        assert strategies.question(AnswerPrediction(answer=False), context, evaluator) == 0
        assert strategies.question(AnswerPrediction(answer=None), context, evaluator) == 0

    def test_question_wrong_answer_penalty(self):
        evaluator = make_evaluator("question", 5, category="special", wrong_penalty_ratio=0.5)
        context = ScoringContext(outcome=QuestionOutcome(answer=True))

        assert strategies.question(AnswerPrediction(answer=False), context, evaluator) == -2
        assert strategies.question(AnswerPrediction(answer=None), context, evaluator) == 0


class TestShapeMismatch:

    def test_wrong_prediction_kind_is_malformed(self):
        evaluator = make_evaluator("exact-score", 5)

        with pytest.raises(MalformedPredictionError):
            strategies.exact_score(ValuePrediction(value=3), match(2, 1), evaluator)

    def test_wrong_outcome_kind_is_malformed(self):
        evaluator = make_evaluator("series-exact", 5, category="series")
        context = ScoringContext(outcome=QuestionOutcome(answer=True))

        with pytest.raises(MalformedPredictionError):
            strategies.series_exact(SeriesPrediction(home_wins=4, away_wins=0), context, evaluator)

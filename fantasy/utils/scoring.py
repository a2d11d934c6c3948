"""
Scoring Engine for the Fantasy predictions application

This module handles outcome resolution and the points awarded to a single
prediction. Recalculation across every prediction of a match lives in
PredictionService.close_match (fantasy/services/prediction_service.py).
"""

from enum import Enum

# Correct outcome (local win, visitor win or tie)
OUTCOME_POINTS = 5
# Per side whose goals were predicted exactly
EXACT_GOALS_POINTS = 2
# Predicted goal difference equals the real one
GOAL_DIFFERENCE_POINTS = 1
DOUBLE_POINTS_MULTIPLIER = 2


class MatchStatus(Enum):
    LOCAL_WIN = "local_win"
    VISITOR_WIN = "visitor_win"
    TIE = "tie"


def get_match_status(goals_local, goals_visitor):
    """Resolve the outcome of a score"""
    if goals_local > goals_visitor:
        return MatchStatus.LOCAL_WIN
    if goals_local < goals_visitor:
        return MatchStatus.VISITOR_WIN
    return MatchStatus.TIE


def calculate_points(
    match_goals_local,
    match_goals_visitor,
    predicted_goals_local,
    predicted_goals_visitor,
    double_points=False,
):
    """
    Calculate points for a single prediction.

    Returns:
        0 when the prediction is incomplete or the outcome is wrong.
        Otherwise 5 for the outcome, plus 2 for each exact side, plus 1 when
        the goal difference matches (10 for an exact score). Doubled for
        double-points matches.

    Args:
        match_goals_local, match_goals_visitor: final score, both set
        predicted_goals_local, predicted_goals_visitor: may be None
        double_points: match awards double points
    """
    if predicted_goals_local is None or predicted_goals_visitor is None:
        return 0

    actual = get_match_status(match_goals_local, match_goals_visitor)
    predicted = get_match_status(predicted_goals_local, predicted_goals_visitor)
    if actual != predicted:
        return 0

    points = OUTCOME_POINTS

    if predicted_goals_local == match_goals_local:
        points += EXACT_GOALS_POINTS
    if predicted_goals_visitor == match_goals_visitor:
        points += EXACT_GOALS_POINTS

    if (
        predicted_goals_local - predicted_goals_visitor
        == match_goals_local - match_goals_visitor
    ):
        points += GOAL_DIFFERENCE_POINTS

    if double_points:
        points *= DOUBLE_POINTS_MULTIPLIER

    return points


def calculate_prediction_points(prediction, match=None):
    """Points for a prediction against its match's recorded result"""
    match = match or prediction.match
    return calculate_points(
        match.goals_local,
        match.goals_visitor,
        prediction.goals_local,
        prediction.goals_visitor,
        bool(match.double_points),
    )

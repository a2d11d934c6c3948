from functools import wraps

from flask import abort, jsonify, request
from flask_login import current_user, login_required

from fantasy import db
from fantasy.models import Group, Match, Prediction
from fantasy.routes.api import bp
from fantasy.services.prediction_service import PredictionService
from fantasy.utils.visibility import can_watch

NOT_FOUND_MESSAGES = {
    "User not found",
    "Group not found",
    "Tournament not found",
    "Match not found",
    "Prediction not found",
}


def admin_required(f):
    """Restrict a route to site-wide administrators"""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_admin:
            return jsonify({"error": "Admin privileges required"}), 403
        return f(*args, **kwargs)

    return decorated_function


def _failure(message):
    status = 404 if message in NOT_FOUND_MESSAGES else 400
    return jsonify({"error": message}), status


def _parse_goals(data, key, required=True):
    """Read a goal count from a JSON body, aborting with 400 on bad input"""
    value = data.get(key)
    if value is None:
        if required:
            abort(400)
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        abort(400)
    return value


def _get_member_group(group_id):
    group = db.session.get(Group, group_id)
    if group is None:
        abort(404)
    if not group.is_user_member(current_user.id):
        abort(403)
    return group


# Matches


@bp.route("/matches/<int:match_id>")
@login_required
def match_detail(match_id):
    match = db.session.get(Match, match_id)
    if match is None:
        abort(404)
    return jsonify(match.to_dict())


@bp.route("/matches/<int:match_id>/result", methods=["PUT"])
@login_required
@admin_required
def match_result(match_id):
    """Record a score; closing the match scores every prediction

    Fields left out of the body keep their stored value.
    """
    match = db.session.get(Match, match_id)
    if match is None:
        abort(404)

    data = request.get_json(silent=True) or {}
    goals_local = match.goals_local
    if "goals_local" in data:
        goals_local = _parse_goals(data, "goals_local", required=False)
    goals_visitor = match.goals_visitor
    if "goals_visitor" in data:
        goals_visitor = _parse_goals(data, "goals_visitor", required=False)
    is_closed = match.is_closed
    if "is_closed" in data:
        is_closed = bool(data["is_closed"])
    double_points = data.get("double_points")

    match, message = PredictionService().record_match_result(
        match_id,
        goals_local,
        goals_visitor,
        is_closed=is_closed,
        double_points=None if double_points is None else bool(double_points),
    )
    if match is None:
        return _failure(message)

    return jsonify({"success": True, "message": message, "match": match.to_dict()})


@bp.route("/matches/<int:match_id>/close", methods=["POST"])
@login_required
@admin_required
def close_match(match_id):
    """Recalculate points of a match that already has its final score"""
    match = db.session.get(Match, match_id)
    if match is None:
        abort(404)

    success, message = PredictionService().close_match(match)
    if not success:
        return _failure(message)

    return jsonify({"success": True, "message": message})


# Groups


@bp.route("/groups", methods=["POST"])
@login_required
def create_group():
    data = request.get_json(silent=True) or {}
    name = (data.get("name") or "").strip()
    tournament_id = data.get("tournament_id")
    if not name or not isinstance(tournament_id, int):
        abort(400)

    group, message = PredictionService().create_group(
        current_user.id, tournament_id, name, remarks=data.get("remarks")
    )
    if group is None:
        return _failure(message)

    return jsonify({"success": True, "group": group.to_dict()}), 201


@bp.route("/groups/join", methods=["POST"])
@login_required
def join_group():
    data = request.get_json(silent=True) or {}
    code = (data.get("code") or "").strip()
    if not code:
        return jsonify({"error": "No code provided"}), 400

    membership, message = PredictionService().join_group(current_user.id, code)
    if membership is None:
        return _failure(message)

    return jsonify(
        {"success": True, "message": message, "group": membership.group.to_dict()}
    )


@bp.route("/groups/<int:group_id>")
@login_required
def group_detail(group_id):
    group = _get_member_group(group_id)
    return jsonify(group.to_dict(include_members=True))


@bp.route("/groups/<int:group_id>/sync", methods=["POST"])
@login_required
def sync_group(group_id):
    """Make sure every member has a prediction for every match"""
    _get_member_group(group_id)
    created = PredictionService().synchronize_group_predictions(group_id)
    return jsonify({"success": True, "created": len(created)})


@bp.route("/groups/<int:group_id>/positions")
@login_required
def group_positions(group_id):
    _get_member_group(group_id)
    positions = PredictionService().get_positions(group_id)
    return jsonify(
        {
            "group_id": group_id,
            "positions": [
                {
                    "position": entry["position"],
                    "user": entry["user"].to_dict(),
                    "points": entry["points"],
                }
                for entry in positions
            ],
        }
    )


@bp.route("/groups/<int:group_id>/balance")
@login_required
def group_balance(group_id):
    """Scored predictions of a member (defaults to the current user)"""
    group = _get_member_group(group_id)
    user_id = request.args.get("user_id", type=int) or current_user.id
    if not group.is_user_member(user_id):
        abort(404)

    predictions = PredictionService().get_balance(group_id, user_id)
    return jsonify(
        {
            "group_id": group_id,
            "user_id": user_id,
            "points": sum(p.points or 0 for p in predictions),
            "predictions": [p.to_dict() for p in predictions],
        }
    )


@bp.route("/groups/<int:group_id>/predictions")
@login_required
def my_predictions(group_id):
    """Current user's predictions in a group, by kick-off"""
    _get_member_group(group_id)
    predictions = (
        Prediction.query.join(Match, Prediction.match_id == Match.id)
        .filter(
            Prediction.group_id == group_id, Prediction.user_id == current_user.id
        )
        .order_by(Match.date)
        .all()
    )
    return jsonify(
        [
            dict(prediction.to_dict(), is_locked=can_watch(prediction))
            for prediction in predictions
        ]
    )


@bp.route("/groups/<int:group_id>/matches/<int:match_id>/predictions")
@login_required
def match_predictions(group_id, match_id):
    """Every member's prediction for a match; goals stay hidden until watchable"""
    _get_member_group(group_id)
    predictions = Prediction.query.filter_by(group_id=group_id, match_id=match_id).all()

    return jsonify(
        [
            dict(
                prediction.to_dict(
                    reveal=prediction.user_id == current_user.id
                    or can_watch(prediction)
                ),
                user=prediction.user.to_dict(),
            )
            for prediction in predictions
        ]
    )


# Predictions


@bp.route("/predictions/<int:prediction_id>")
@login_required
def prediction_detail(prediction_id):
    prediction = db.session.get(Prediction, prediction_id)
    if prediction is None:
        abort(404)

    is_owner = prediction.user_id == current_user.id
    if not is_owner:
        _get_member_group(prediction.group_id)

    watchable = can_watch(prediction)
    data = prediction.to_dict(reveal=is_owner or watchable)
    data["is_locked"] = watchable
    return jsonify(data)


@bp.route("/predictions", methods=["POST"])
@login_required
def create_prediction():
    data = request.get_json(silent=True) or {}
    group_id = data.get("group_id")
    match_id = data.get("match_id")
    if not isinstance(group_id, int) or not isinstance(match_id, int):
        abort(400)

    _get_member_group(group_id)
    prediction, message = PredictionService().add_prediction(
        current_user.id,
        group_id,
        match_id,
        _parse_goals(data, "goals_local"),
        _parse_goals(data, "goals_visitor"),
    )
    if prediction is None:
        return _failure(message)

    return jsonify({"success": True, "prediction": prediction.to_dict()}), 201


@bp.route("/predictions/<int:prediction_id>", methods=["PUT"])
@login_required
def update_prediction(prediction_id):
    prediction = db.session.get(Prediction, prediction_id)
    if prediction is None:
        abort(404)
    if prediction.user_id != current_user.id:
        return jsonify({"error": "Permission denied"}), 403

    data = request.get_json(silent=True) or {}
    prediction, message = PredictionService().update_prediction(
        prediction_id,
        _parse_goals(data, "goals_local"),
        _parse_goals(data, "goals_visitor"),
    )
    if prediction is None:
        return _failure(message)

    return jsonify({"success": True, "prediction": prediction.to_dict()})

import logging

from flask import jsonify, request
from flask_login import current_user, login_required, login_user, logout_user

from fantasy import db
from fantasy.models import User
from fantasy.routes.auth import bp

logger = logging.getLogger(__name__)


@bp.route("/login", methods=["POST"])
def login():
    data = request.get_json(silent=True) or {}
    username = (data.get("username") or "").strip()
    password = data.get("password") or ""

    user = User.query.filter_by(username=username).first()
    if not user or not user.check_password(password):
        logger.info(f"Failed login for username {username!r}")
        return jsonify({"error": "Invalid username or password"}), 401

    if not user.is_active:
        return jsonify({"error": "Account is deactivated"}), 403

    login_user(user, remember=bool(data.get("remember_me")))
    user.update_last_login()
    db.session.commit()

    return jsonify({"success": True, "user": user.to_dict()})


@bp.route("/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    return jsonify({"success": True})


@bp.route("/me")
@login_required
def me():
    data = current_user.to_dict()
    data["groups"] = [
        membership.group.to_dict() for membership in current_user.get_groups()
    ]
    return jsonify(data)

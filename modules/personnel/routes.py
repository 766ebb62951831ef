"""Login/logout, technicians, stats and badges."""

import logging

from flask import jsonify, request
from flask_login import current_user, login_required, login_user, logout_user
from werkzeug.security import check_password_hash

from extensions import db, get_registry, login_manager
from models import User
from permissions import capabilities, role_required

from . import bp
from .stats import calculate_personnel_stats, get_overall_stats, get_top_performers

logger = logging.getLogger(__name__)

TOP_METRICS = ("efficiency", "parts_completed", "on_time_delivery", "average_repair_time")


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, user_id)


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify(ok=False, error="Login required."), 401


def _payload() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else request.form.to_dict()


# ---------- Auth ----------
@bp.route("/login", methods=["POST"])
def login():
    data = _payload()
    user = get_registry().get_user((data.get("user_id") or "").strip())
    if user is None:
        return jsonify(ok=False, error="Unknown user."), 401
    if user.password and not check_password_hash(user.password, data.get("password") or ""):
        logger.warning("Failed login for %s", user.id)
        return jsonify(ok=False, error="Wrong password."), 401

    login_user(user)
    logger.info("%s logged in as %s", user.id, user.role)
    return jsonify(ok=True, user=user.to_dict(), capabilities=capabilities())


@bp.route("/logout")
@login_required
def logout():
    logout_user()
    return jsonify(ok=True)


@bp.route("/me")
@login_required
def me():
    return jsonify(ok=True, user=current_user.to_dict(), capabilities=capabilities())


# ---------- Technicians ----------
@bp.route("/technicians")
@login_required
def technicians():
    registry = get_registry()
    return jsonify(
        ok=True,
        technicians=[t.to_dict() for t in registry.list_technicians()],
        managers=[m.to_dict() for m in registry.list_managers()],
        inspectors=[i.to_dict() for i in registry.list_inspectors()],
    )


@bp.route("/technicians/<string:technician_id>/stats", methods=["POST"])
@role_required(["manager"])
def update_stats(technician_id: str):
    patch = request.get_json(silent=True)
    if not isinstance(patch, dict):
        return jsonify(ok=False, error="Send the stats patch as a JSON object."), 400
    tech = get_registry().update_technician_stats(technician_id, patch)
    if tech is None:
        return jsonify(ok=False, error="not found"), 404
    return jsonify(ok=True, technician=tech.to_dict())


@bp.route("/technicians/<string:technician_id>/badges", methods=["POST"])
@role_required(["manager"])
def award_badge(technician_id: str):
    registry = get_registry()
    if registry.get_technician(technician_id) is None:
        return jsonify(ok=False, error="not found"), 404

    badge = (_payload().get("badge") or "").strip()
    if badge:
        awarded = [badge] if registry.add_technician_badge(technician_id, badge) else []
    else:
        # no name given: evaluate the automatic badge rules
        awarded = registry.check_badges(technician_id)
    tech = registry.get_technician(technician_id)
    return jsonify(ok=True, awarded=awarded, badges=tech.badge_names)


# ---------- Performance ----------
@bp.route("/performance")
@login_required
def performance():
    registry = get_registry()
    stats = calculate_personnel_stats(registry.list_parts(), registry.list_technicians())
    return jsonify(
        ok=True,
        personnel=stats,
        top_performers={m: get_top_performers(stats, m) for m in TOP_METRICS},
        overall=get_overall_stats(stats),
    )

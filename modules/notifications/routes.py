from flask import current_app, jsonify, request
from flask_login import login_required

from extensions import get_registry
from permissions import role_required

from . import bp


@bp.route("/")
@login_required
def list_notifications():
    unread_only = request.args.get("unread", "").lower() in ("1", "true", "yes")
    notifications = get_registry().list_notifications(unread_only=unread_only)
    unread = sum(1 for n in notifications if not n.read)
    return jsonify(ok=True, unread=unread, notifications=[n.to_dict() for n in notifications])


@bp.route("/<string:notification_id>/read", methods=["POST"])
@login_required
def mark_read(notification_id: str):
    if not get_registry().mark_notification_read(notification_id):
        return jsonify(ok=False, error="not found"), 404
    return jsonify(ok=True)


@bp.route("/clear", methods=["POST"])
@role_required(["manager"])
def clear_all():
    removed = get_registry().clear_all_notifications()
    return jsonify(ok=True, removed=removed)


@bp.route("/run", methods=["POST"])
@role_required(["manager"])
def run_checks():
    """Manual sweep, independent of the periodic interval."""
    sweeper = current_app.extensions["notification_sweeper"]
    created = sweeper.run()
    return jsonify(ok=True, created=len(created), notifications=[n.to_dict() for n in created])

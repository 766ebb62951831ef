# ui_routes.py: home "/", a dashboard summary for the logged-in role
from flask import Blueprint, jsonify
from flask_login import current_user, login_required

from extensions import get_registry
from permissions import is_inspector, is_technician
from modules.shop.models import STATUSES

ui = Blueprint("ui", __name__)


def _manager_board(registry, parts, now):
    return {
        "counts": {s: sum(1 for p in parts if p.status == s) for s in STATUSES},
        "overdue": [p.id for p in parts if p.is_overdue(now)],
        "workload": [w.to_dict() for w in registry.workload()],
        "unread_notifications": len(registry.list_notifications(unread_only=True)),
    }


def _technician_board(parts, now, technician_id):
    mine = [p for p in parts if p.assigned_technician == technician_id and p.status == "in-repair"]
    available = [p for p in parts if p.status == "unrepaired" and not p.assigned_technician]
    return {
        "my_parts": [p.to_dict(now, with_history=False) for p in mine],
        "available_parts": [p.to_dict(now, with_history=False) for p in available],
        "hours_committed": sum(p.estimated_hours or 0 for p in mine),
    }


def _inspector_board(parts, now):
    # repaired parts wait for shipping, scrap parts for disposition
    return {
        "ready_to_ship": [p.to_dict(now, with_history=False) for p in parts if p.status == "repaired"],
        "scrapped": [p.to_dict(now, with_history=False) for p in parts if p.status == "scrap"],
        "incoming": sum(1 for p in parts if p.status == "unrepaired"),
    }


@ui.route("/")
@login_required
def home():
    registry = get_registry()
    now = registry.clock()
    parts = registry.list_parts()

    if is_technician():
        board = _technician_board(parts, now, current_user.id)
    elif is_inspector():
        board = _inspector_board(parts, now)
    else:
        board = _manager_board(registry, parts, now)

    return jsonify(ok=True, role=current_user.role, user=current_user.to_dict(), dashboard=board)

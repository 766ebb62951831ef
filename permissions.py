# permissions.py
# -*- coding: utf-8 -*-
"""
Role-based access for the shop dashboards.
- role_required([...]): main route decorator (manager always passes).
- can_* helpers: True/False for the current user, reported by /personnel/me.

Roles:
- technician: picks up parts, works them, adds notes, completes or scraps repairs
- inspector : registers incoming parts, ships repaired ones
- manager   : everything, plus bulk operations, auto-assignment, stats and imports
"""

from functools import wraps
from typing import Iterable, Set

from flask import abort, jsonify, request
from flask_login import current_user, login_required


# ----------------------------- BASE DECORATOR ------------------------------ #
def role_required(allowed_roles: Iterable[str]):
    """
    Restrict a route to some roles.
        @role_required(["inspector"])
        def view(): ...

    - Not logged in → handled by login_required (401).
    - manager always passes.
    - Wrong role → 403 with a JSON body.
    """
    if isinstance(allowed_roles, str):
        allowed: Set[str] = {allowed_roles}
    else:
        allowed = set(allowed_roles or [])

    def decorator(view_func):
        @wraps(view_func)
        @login_required
        def wrapped(*args, **kwargs):
            role = getattr(current_user, "role", None)

            if role == "manager" or role in allowed:
                return view_func(*args, **kwargs)

            if request.accept_mimetypes.accept_html and not request.accept_mimetypes.accept_json:
                abort(403)
            return jsonify(ok=False, error="Insufficient permissions for this action."), 403

        return wrapped
    return decorator


# --------------------------------- HELPERS --------------------------------- #
def _is(*roles: str) -> bool:
    """Current user has one of the roles (manager counts for all)."""
    if not current_user.is_authenticated:
        return False
    role = getattr(current_user, "role", None)
    return role == "manager" or role in roles


# ================================ UI RIGHTS ================================= #
# ---- Parts ----
def can_register_part(): return _is("inspector")
def can_edit_part():     return _is()                           # manager only
def can_add_note():      return _is("technician")
def can_work_part():     return _is("technician")               # start/complete/scrap
def can_ship_part():     return _is("inspector")

# ---- Manager board ----
def can_bulk_assign():   return _is()
def can_bulk_status():   return _is()
def can_auto_assign():   return _is()
def can_import():        return _is()

# ---- Personnel ----
def can_edit_stats():    return _is()
def can_award_badge():   return _is()

# ---- Notifications ----
def can_clear_notifications(): return _is()
def can_run_checks():          return _is()


def capabilities() -> dict:
    """All can_* flags for the current user."""
    return {
        "register_part": can_register_part(),
        "edit_part": can_edit_part(),
        "add_note": can_add_note(),
        "work_part": can_work_part(),
        "ship_part": can_ship_part(),
        "bulk_assign": can_bulk_assign(),
        "bulk_status": can_bulk_status(),
        "auto_assign": can_auto_assign(),
        "import": can_import(),
        "edit_stats": can_edit_stats(),
        "award_badge": can_award_badge(),
        "clear_notifications": can_clear_notifications(),
        "run_checks": can_run_checks(),
    }


# =========================== SHORTCUTS ====================================== #
def has_role(role: str) -> bool:
    """True when the current user has exactly this role (manager does not stand in)."""
    return bool(current_user.is_authenticated and getattr(current_user, "role", None) == role)


def is_technician() -> bool:
    return has_role("technician")


def is_inspector() -> bool:
    return has_role("inspector")

"""Personnel module package: login, technicians, stats and badges."""

from flask import Blueprint

bp = Blueprint("personnel", __name__, url_prefix="/personnel")

from . import routes  # noqa: E402  pylint: disable=wrong-import-position

__all__ = ["bp", "routes"]

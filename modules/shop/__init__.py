"""Shop module package: parts, repair workflow and the part registry."""

from flask import Blueprint

bp = Blueprint("shop", __name__, url_prefix="/parts")

from . import models  # noqa: E402  pylint: disable=wrong-import-position
from . import routes  # noqa: E402  pylint: disable=wrong-import-position

__all__ = ["bp", "models", "routes"]

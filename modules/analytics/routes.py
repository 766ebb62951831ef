from flask import jsonify
from flask_login import login_required

from extensions import get_registry

from . import bp
from .service import shop_analytics


@bp.route("/")
@login_required
def overview():
    registry = get_registry()
    data = shop_analytics(registry.list_parts(), registry.list_technicians(), registry.clock())
    return jsonify(ok=True, analytics=data)

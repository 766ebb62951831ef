# -*- coding: utf-8 -*-
"""HTTP routes for parts: board, intake, workflow, notes, bulk actions, export."""

from flask import current_app, jsonify, make_response, request
from flask_login import current_user, login_required

from extensions import get_registry
from permissions import can_ship_part, can_work_part, is_technician, role_required
from utils import handle_file_upload, parse_float, utcnow

from . import bp
from .models import PRIORITIES, STATUSES
from .snapshot import export_snapshot, history_csv, import_snapshot
from .workflow import TransitionError

INTAKE_FIELDS = (
    "wo", "aircraft", "customer", "location", "description", "priority", "part_type",
    "manufacturer", "serial_number", "rfid_uid", "nfc_uid", "intake_notes",
)


# ---------- Helpers ----------
def _payload() -> dict:
    """JSON body or form fields, whichever the client sent."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def _id_list(data: dict, key: str = "part_ids") -> list[str]:
    ids = data.get(key)
    if ids is None:
        ids = request.form.getlist(key)
    if isinstance(ids, str):
        ids = [i.strip() for i in ids.split(",")]
    return [i for i in (ids or []) if i]


def _bad_request(message: str):
    return jsonify(ok=False, error=message), 400


def _not_found():
    return jsonify(ok=False, error="not found"), 404


def _actor():
    return current_user if current_user.is_authenticated else None


# ---------- Board ----------
@bp.route("/")
@login_required
def list_parts():
    status = request.args.get("status") or None
    if status and status not in STATUSES:
        return _bad_request(f"Unknown status: {status}")
    registry = get_registry()
    now = registry.clock()
    parts = registry.list_parts(status=status, technician_id=request.args.get("technician") or None)
    return jsonify(ok=True, parts=[p.to_dict(now, with_history=False) for p in parts])


@bp.route("/<string:part_id>")
@login_required
def part_detail(part_id: str):
    registry = get_registry()
    part = registry.get_part(part_id)
    if part is None:
        return _not_found()
    return jsonify(ok=True, part=part.to_dict(registry.clock()))


@bp.route("/<string:part_id>/timeline")
@login_required
def part_timeline(part_id: str):
    registry = get_registry()
    if registry.get_part(part_id) is None:
        return _not_found()
    return jsonify(ok=True, timeline=registry.part_timeline(part_id))


@bp.route("/workload")
@login_required
def workload():
    return jsonify(ok=True, workload=[w.to_dict() for w in get_registry().workload()])


# ---------- Intake ----------
@bp.route("/register", methods=["POST"])
@role_required(["inspector"])
def register_part():
    data = _payload()
    part_id = (data.get("id") or "").strip()
    part_number = (data.get("part_number") or "").strip()
    if not part_id or not part_number:
        return _bad_request("Part id and part number are required.")
    if data.get("priority") and data["priority"] not in PRIORITIES:
        return _bad_request(f"Unknown priority: {data['priority']}")

    fields = {k: data[k] for k in INTAKE_FIELDS if data.get(k)}
    estimated = parse_float(data.get("estimated_hours"))
    if estimated is not None:
        fields["estimated_hours"] = estimated

    photo = request.files.get("photo")
    if photo:
        path = handle_file_upload(photo, current_app.config["UPLOAD_FOLDER"], prefix=part_id)
        if path is None:
            return _bad_request("Invalid file format. Allowed: png, jpg, jpeg, gif")
        fields["intake_photo"] = path
        fields["photos"] = [path]

    try:
        part = get_registry().register_part(id=part_id, part_number=part_number, actor=_actor(), **fields)
    except ValueError as exc:
        return _bad_request(str(exc))
    return jsonify(ok=True, part=part.to_dict()), 201


# ---------- Edits & workflow ----------
@bp.route("/<string:part_id>/update", methods=["POST"])
@role_required(["manager"])
def update_part(part_id: str):
    data = _payload()
    for key in ("estimated_hours", "actual_hours"):
        if key in data:
            data[key] = parse_float(data[key])
    try:
        part = get_registry().update_part(part_id, **data)
    except ValueError as exc:
        return _bad_request(str(exc))
    if part is None:
        return _not_found()
    return jsonify(ok=True, part=part.to_dict())


@bp.route("/<string:part_id>/transition", methods=["POST"])
@role_required(["technician", "inspector"])
def transition_part(part_id: str):
    """
    Move one part along the workflow:
    - in-repair: technician_id (a technician always starts it for themselves)
    - repaired:  actual_hours required
    - scrap:     optional note
    - shipped:   inspector or manager
    """
    data = _payload()
    status = data.get("status")
    if status not in STATUSES:
        return _bad_request("Specify a valid status.")
    if status == "shipped" and not can_ship_part():
        return jsonify(ok=False, error="Only inspectors ship parts."), 403
    if status != "shipped" and not can_work_part():
        return jsonify(ok=False, error="Only technicians work on parts."), 403

    registry = get_registry()
    part = registry.get_part(part_id)
    if part is None:
        return _not_found()

    try:
        if status == "in-repair":
            tech_id = data.get("technician_id") or None
            if is_technician():
                # technicians only start parts that are free or already theirs
                if part.assigned_technician not in (None, "", current_user.id):
                    return jsonify(ok=False, error="This part is assigned to another technician."), 403
                tech_id = current_user.id
            part = registry.start_repair(part_id, tech_id)
        elif status == "repaired":
            part = registry.complete_repair(part_id, parse_float(data.get("actual_hours")), actor=_actor())
        elif status == "scrap":
            part = registry.scrap_part(part_id, note=data.get("note"), actor=_actor())
        elif status == "shipped":
            part = registry.ship_part(part_id, actor=_actor())
        else:
            part = registry.transition(part_id, status, actor=_actor())
    except TransitionError as exc:
        return _bad_request(str(exc))
    return jsonify(ok=True, part=part.to_dict())


@bp.route("/<string:part_id>/notes", methods=["POST"])
@role_required(["technician"])
def add_note(part_id: str):
    registry = get_registry()
    if registry.get_part(part_id) is None:
        return _not_found()
    text = (_payload().get("text") or "").strip()
    if not text:
        return _bad_request("Note text is empty.")
    note = registry.add_part_note(part_id, text, current_user.id)
    return jsonify(ok=True, note=note.to_dict()), 201


# ---------- Manager board: bulk ----------
@bp.route("/bulk/assign", methods=["POST"])
@role_required(["manager"])
def bulk_assign():
    data = _payload()
    part_ids = _id_list(data)
    technician_id = data.get("technician_id")
    registry = get_registry()
    tech = registry.get_technician(technician_id)
    if not part_ids or tech is None:
        return _bad_request("Select parts and a technician.")

    result = registry.bulk_assign_parts(part_ids, tech.id)
    registry.add_notification(
        type="success",
        title="Bulk Assignment Complete",
        message=f"Assigned {len(result.updated)} parts to {tech.name}",
    )
    return jsonify(ok=True, **result.to_dict())


@bp.route("/bulk/status", methods=["POST"])
@role_required(["manager"])
def bulk_status():
    data = _payload()
    part_ids = _id_list(data)
    status = data.get("status")
    if not part_ids or status not in STATUSES:
        return _bad_request("Select parts and a valid status.")

    registry = get_registry()
    result = registry.bulk_update_status(part_ids, status, actor=_actor())
    registry.add_notification(
        type="success",
        title="Bulk Status Update Complete",
        message=f"Updated {len(result.updated)} parts to {status.replace('-', ' ')} status",
    )
    return jsonify(ok=True, **result.to_dict())


@bp.route("/auto-assign", methods=["POST"])
@role_required(["manager"])
def auto_assign():
    plan = get_registry().auto_assign(actor=_actor())
    return jsonify(ok=True, assignments=[{"part_id": p, "technician_id": t} for p, t in plan])


# ---------- Export / import ----------
@bp.route("/<string:part_id>/export/history.csv")
@login_required
def export_part_history(part_id: str):
    part = get_registry().get_part(part_id)
    if part is None:
        return _not_found()
    resp = make_response(history_csv(part).encode("utf-8"))
    resp.headers["Content-Type"] = "text/csv; charset=utf-8"
    resp.headers["Content-Disposition"] = \
        f"attachment; filename=part_{part.id}_history_{utcnow():%Y%m%d_%H%M%S}.csv"
    return resp


@bp.route("/snapshot/export")
@login_required
def snapshot_export():
    return jsonify(ok=True, snapshot=export_snapshot(get_registry()))


@bp.route("/snapshot/import", methods=["POST"])
@role_required(["manager"])
def snapshot_import():
    data = request.get_json(silent=True) or {}
    snapshot = data.get("snapshot", data)
    try:
        counts = import_snapshot(get_registry(), snapshot)
    except ValueError as exc:
        return _bad_request(str(exc))
    return jsonify(ok=True, imported=counts)

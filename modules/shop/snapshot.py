"""
Export/import of the whole shop state as plain JSON-ready dicts.

History entries and notes travel with their part and are restored verbatim,
in their original order.
"""
from __future__ import annotations

import csv
import io
import logging
from datetime import date

from sqlalchemy import delete

from models import TechnicianBadge, TechnicianStats, User
from modules.notifications.models import Notification
from utils import isoformat, parse_datetime

from .models import PRIORITIES, STATUSES, Part, PartHistoryEntry, PartNote

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1

PART_DATETIME_FIELDS = (
    "last_updated", "entered_shop", "status_changed_at", "repair_started",
    "repair_completed", "shipped_date", "scrapped_date",
)
PART_PLAIN_FIELDS = (
    "id", "part_number", "wo", "aircraft", "customer", "location", "description", "priority",
    "part_type", "manufacturer", "serial_number", "rfid_uid", "nfc_uid", "qr_code",
    "intake_notes", "intake_photo", "photos", "status", "assigned_technician", "updated_by",
    "estimated_hours", "actual_hours",
)
HISTORY_FIELDS = (
    "id", "action", "from_status", "to_status", "technician_id", "technician_name",
    "notes", "estimated_hours", "actual_hours",
)


def _personnel_dict(user: User) -> dict:
    data = user.to_dict()
    data["password"] = user.password
    data["skills"] = list(user.skills or [])
    data["join_date"] = user.join_date.isoformat() if user.join_date else None
    return data


def export_snapshot(registry) -> dict:
    session = registry.session
    users = session.query(User).order_by(User.id).all()
    return {
        "version": SNAPSHOT_VERSION,
        "exported_at": isoformat(registry.clock()),
        "personnel": [_personnel_dict(u) for u in users],
        "parts": [p.to_dict(registry.clock()) for p in registry.list_parts()],
        "notifications": [
            {**n.to_dict(), "subject_id": n.subject_id}
            for n in reversed(registry.list_notifications())  # oldest first, re-inserted in order
        ],
    }


def _timestamp(row: dict, what: str):
    value = parse_datetime(row.get("timestamp"))
    if value is None:
        raise ValueError(f"{what} without a timestamp")
    return value


def _build_part(data: dict, technician_ids: set) -> Part:
    part = Part(**{k: data.get(k) for k in PART_PLAIN_FIELDS})
    if part.status not in STATUSES:
        raise ValueError(f"part {part.id}: unknown status {part.status!r}")
    if part.priority not in PRIORITIES:
        raise ValueError(f"part {part.id}: unknown priority {part.priority!r}")
    if part.assigned_technician and part.assigned_technician not in technician_ids:
        raise ValueError(f"part {part.id}: unknown technician {part.assigned_technician!r}")
    part.photos = list(data.get("photos") or [])
    for key in PART_DATETIME_FIELDS:
        setattr(part, key, parse_datetime(data.get(key)))
    if part.status_changed_at is None:
        part.status_changed_at = part.entered_shop

    for entry in data.get("history") or []:
        part.history.append(PartHistoryEntry(
            timestamp=_timestamp(entry, f"part {part.id}: history entry"),
            **{k: entry.get(k) for k in HISTORY_FIELDS},
        ))
    for note in data.get("notes") or []:
        part.notes.append(PartNote(
            timestamp=_timestamp(note, f"part {part.id}: note"),
            author_id=note.get("author_id"),
            author_name=note.get("author_name"),
            text=note.get("text") or "",
        ))
    return part


def _build_user(data: dict) -> User:
    user = User(
        id=data["id"],
        name=data["name"],
        photo=data.get("photo"),
        role=data["role"],
        password=data.get("password"),
        skills=list(data.get("skills") or []),
        join_date=date.fromisoformat(data["join_date"]) if data.get("join_date") else None,
    )
    if user.role == "technician":
        stats = TechnicianStats(technician_id=user.id)
        stats.apply_patch(data.get("stats") or {})
        user.stats = stats
        for name in data.get("badges") or []:
            user.badges.append(TechnicianBadge(name=name))
    return user


def import_snapshot(registry, data: dict) -> dict:
    """Replace the current shop state with `data`. Returns counts per collection."""
    if not isinstance(data, dict) or data.get("version") != SNAPSHOT_VERSION:
        raise ValueError("Unsupported snapshot format")

    session = registry.session
    try:
        for model in (Notification, PartNote, PartHistoryEntry, Part, TechnicianBadge, TechnicianStats, User):
            session.execute(delete(model))
        # drop stale instances so re-imported ids do not collide in the identity map
        session.expunge_all()

        technician_ids = set()
        for row in data.get("personnel") or []:
            user = _build_user(row)
            session.add(user)
            if user.role == "technician":
                technician_ids.add(user.id)
        session.flush()

        for row in data.get("parts") or []:
            session.add(_build_part(row, technician_ids))
            # flush per part so history seq follows snapshot order
            session.flush()

        for row in data.get("notifications") or []:
            session.add(Notification(
                id=row["id"],
                type=row.get("type") or "info",
                title=row.get("title") or "",
                message=row.get("message") or "",
                timestamp=parse_datetime(row.get("timestamp")),
                read=bool(row.get("read")),
                part_id=row.get("part_id"),
                technician_id=row.get("technician_id"),
                rule=row.get("rule"),
                subject_id=row.get("subject_id"),
            ))
        session.commit()
    except (KeyError, TypeError, ValueError) as exc:
        session.rollback()
        raise ValueError(f"Invalid snapshot: {exc}") from exc

    counts = {
        "personnel": len(data.get("personnel") or []),
        "parts": len(data.get("parts") or []),
        "notifications": len(data.get("notifications") or []),
    }
    registry.mark_changed()
    logger.info("Imported snapshot: %s", counts)
    return counts


def history_csv(part: Part) -> str:
    """One part's history as CSV (UTF-8 BOM for spreadsheet apps)."""
    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow([
        "PART #", "DATE", "ACTION", "FROM_STATUS", "TO_STATUS",
        "TECHNICIAN", "EST_HOURS", "ACT_HOURS", "NOTE",
    ])
    for e in part.history:
        writer.writerow([
            part.part_number,
            e.timestamp.isoformat(sep=" ") if e.timestamp else "",
            e.action or "",
            e.from_status or "",
            e.to_status or "",
            e.technician_name or e.technician_id or "",
            e.estimated_hours if e.estimated_hours is not None else "",
            e.actual_hours if e.actual_hours is not None else "",
            e.notes or "",
        ])
    return "\ufeff" + out.getvalue()

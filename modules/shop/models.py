# -*- coding: utf-8 -*-
"""
SHOP MODELS: parts moving through the repair workflow.

Tables:
- Part             : one physical unit in the shop (id like 'part1').
- PartHistoryEntry : append-only audit trail, one row per state change.
- PartNote         : structured technician note (timestamp, author, text).

Derived values (not stored):
- days_in_status: whole days since the last status change (status_changed_at).
- is_overdue    : unrepaired for more than OVERDUE_DAYS.
"""
from datetime import datetime
from typing import Optional

from extensions import db
from utils import isoformat, utcnow

# ---------- Value sets ----------
STATUSES = ["unrepaired", "in-repair", "repaired", "scrap", "shipped"]
PRIORITIES = ["low", "medium", "high", "critical"]
PRIORITY_RANK = {"critical": 4, "high": 3, "medium": 2, "low": 1}

OVERDUE_DAYS = 7


class Part(db.Model):
    __tablename__ = "parts"

    id = db.Column(db.String(64), primary_key=True)
    part_number = db.Column(db.String(100), nullable=False)
    wo = db.Column(db.String(64))  # work order
    aircraft = db.Column(db.String(100))
    customer = db.Column(db.String(150))
    location = db.Column(db.String(100))
    description = db.Column(db.Text)
    priority = db.Column(db.String(16), default="medium", nullable=False)

    part_type = db.Column(db.String(100))
    manufacturer = db.Column(db.String(100))
    serial_number = db.Column(db.String(100))
    rfid_uid = db.Column(db.String(64))
    nfc_uid = db.Column(db.String(64))
    qr_code = db.Column(db.String(255))
    intake_notes = db.Column(db.Text)
    intake_photo = db.Column(db.String(255))
    photos = db.Column(db.JSON, default=list)

    status = db.Column(db.String(16), default="unrepaired", nullable=False)
    # back-reference only: the technician row does not own the part
    assigned_technician = db.Column(db.String(64), db.ForeignKey("users.id"))
    updated_by = db.Column(db.String(150))
    last_updated = db.Column(db.DateTime, default=utcnow)

    entered_shop = db.Column(db.DateTime, default=utcnow, nullable=False)
    status_changed_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    repair_started = db.Column(db.DateTime)
    repair_completed = db.Column(db.DateTime)
    shipped_date = db.Column(db.DateTime)
    scrapped_date = db.Column(db.DateTime)

    estimated_hours = db.Column(db.Float)
    actual_hours = db.Column(db.Float)

    history = db.relationship("PartHistoryEntry", back_populates="part",
                              cascade="all, delete-orphan",
                              order_by="PartHistoryEntry.seq")
    notes = db.relationship("PartNote", back_populates="part",
                            cascade="all, delete-orphan",
                            order_by="PartNote.id")

    # ------ derived ------
    def days_in_status(self, now: Optional[datetime] = None) -> int:
        since = self.status_changed_at or self.entered_shop
        if since is None:
            return 0
        delta = (now or utcnow()) - since
        return max(0, delta.days)

    def is_overdue(self, now: Optional[datetime] = None) -> bool:
        return self.status == "unrepaired" and self.days_in_status(now) > OVERDUE_DAYS

    def to_dict(self, now: Optional[datetime] = None, *, with_history: bool = True) -> dict:
        data = {
            "id": self.id,
            "part_number": self.part_number,
            "wo": self.wo,
            "aircraft": self.aircraft,
            "customer": self.customer,
            "location": self.location,
            "description": self.description,
            "priority": self.priority,
            "part_type": self.part_type,
            "manufacturer": self.manufacturer,
            "serial_number": self.serial_number,
            "rfid_uid": self.rfid_uid,
            "nfc_uid": self.nfc_uid,
            "qr_code": self.qr_code,
            "intake_notes": self.intake_notes,
            "intake_photo": self.intake_photo,
            "photos": list(self.photos or []),
            "status": self.status,
            "assigned_technician": self.assigned_technician,
            "updated_by": self.updated_by,
            "last_updated": isoformat(self.last_updated),
            "entered_shop": isoformat(self.entered_shop),
            "status_changed_at": isoformat(self.status_changed_at),
            "repair_started": isoformat(self.repair_started),
            "repair_completed": isoformat(self.repair_completed),
            "shipped_date": isoformat(self.shipped_date),
            "scrapped_date": isoformat(self.scrapped_date),
            "estimated_hours": self.estimated_hours,
            "actual_hours": self.actual_hours,
            "days_in_status": self.days_in_status(now),
            "is_overdue": self.is_overdue(now),
        }
        if with_history:
            data["history"] = [h.to_dict() for h in self.history]
            data["notes"] = [n.to_dict() for n in self.notes]
        return data

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Part {self.id} {self.part_number} [{self.status}]>"


class PartHistoryEntry(db.Model):
    """
    One state change. Written once by the registry, never edited.
    `seq` keeps insertion order even when timestamps collide.
    """
    __tablename__ = "part_history"

    seq = db.Column(db.Integer, primary_key=True, autoincrement=True)
    id = db.Column(db.String(64), unique=True, nullable=False)
    part_id = db.Column(db.String(64), db.ForeignKey("parts.id"), nullable=False, index=True)
    timestamp = db.Column(db.DateTime, default=utcnow, nullable=False)
    action = db.Column(db.String(128), nullable=False)
    from_status = db.Column(db.String(16))
    to_status = db.Column(db.String(16))
    technician_id = db.Column(db.String(64))
    technician_name = db.Column(db.String(150))
    notes = db.Column(db.Text)
    estimated_hours = db.Column(db.Float)
    actual_hours = db.Column(db.Float)

    part = db.relationship("Part", back_populates="history")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": isoformat(self.timestamp),
            "action": self.action,
            "from_status": self.from_status,
            "to_status": self.to_status,
            "technician_id": self.technician_id,
            "technician_name": self.technician_name,
            "notes": self.notes,
            "estimated_hours": self.estimated_hours,
            "actual_hours": self.actual_hours,
        }


class PartNote(db.Model):
    __tablename__ = "part_notes"

    id = db.Column(db.Integer, primary_key=True)
    part_id = db.Column(db.String(64), db.ForeignKey("parts.id"), nullable=False, index=True)
    timestamp = db.Column(db.DateTime, default=utcnow, nullable=False)
    author_id = db.Column(db.String(64))
    author_name = db.Column(db.String(150))
    text = db.Column(db.Text, nullable=False)

    part = db.relationship("Part", back_populates="notes")

    def to_dict(self) -> dict:
        return {
            "timestamp": isoformat(self.timestamp),
            "author_id": self.author_id,
            "author_name": self.author_name,
            "text": self.text,
        }

"""
PartRegistry: the one place that mutates parts, personnel stats/badges and
notifications.

Built once in create_app() around the db session and handed to whoever needs
it (routes via extensions.get_registry(), the notification sweeper directly).
Every mutating call commits before returning.

Unknown ids are silent no-ops. Workflow violations raise TransitionError.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Callable, Iterable, Optional

from sqlalchemy import select

from models import TechnicianBadge, TechnicianStats, User
from modules.notifications.models import NOTIFICATION_TYPES, Notification
from utils import new_id, utcnow

from .assignment import DAILY_CAPACITY_HOURS, plan_auto_assignment, technician_workload
from .models import PRIORITIES, Part, PartHistoryEntry, PartNote
from .workflow import TransitionError, plan_transition

logger = logging.getLogger(__name__)

# Intake fields a caller may set on register_part()/update_part()
EDITABLE_FIELDS = {
    "part_number", "wo", "aircraft", "customer", "location", "description", "priority",
    "part_type", "manufacturer", "serial_number", "rfid_uid", "nfc_uid", "intake_notes",
    "intake_photo", "photos", "estimated_hours", "actual_hours", "assigned_technician",
    "updated_by", "qr_code",
}

# Badge name -> condition on the stats dict
BADGE_RULES = {
    "Speed Demon": lambda s: s["repaired_count"]["week"] >= 10,
    "Quality Master": lambda s: s["scrap_rate"] < 5 and s["repaired_count"]["month"] >= 20,
    "Efficiency Expert": lambda s: s["efficiency"] >= 90,
    "Team Player": lambda s: s["repaired_count"]["month"] >= 30,
}


@dataclass
class BulkResult:
    updated: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"updated": self.updated, "skipped": self.skipped}


class PartRegistry:
    def __init__(self, session, *, clock: Callable = utcnow,
                 daily_capacity: float = DAILY_CAPACITY_HOURS,
                 qr_base_url: str = "https://repair-shop.local"):
        self.session = session
        self.clock = clock
        self.daily_capacity = daily_capacity
        self.qr_base_url = qr_base_url.rstrip("/")
        self._listeners: list[Callable[[], None]] = []

    # ================================ READ ================================== #
    def get_part(self, part_id: str) -> Optional[Part]:
        return self.session.get(Part, part_id)

    def list_parts(self, status: Optional[str] = None, technician_id: Optional[str] = None) -> list[Part]:
        stmt = select(Part).order_by(Part.entered_shop.asc(), Part.id.asc())
        if status:
            stmt = stmt.where(Part.status == status)
        if technician_id:
            stmt = stmt.where(Part.assigned_technician == technician_id)
        return list(self.session.scalars(stmt))

    def get_user(self, user_id: str) -> Optional[User]:
        return self.session.get(User, user_id) if user_id else None

    def get_technician(self, technician_id: str) -> Optional[User]:
        user = self.get_user(technician_id)
        return user if user is not None and user.is_technician else None

    def _users(self, role: str) -> list[User]:
        return list(self.session.scalars(select(User).where(User.role == role).order_by(User.id)))

    def list_technicians(self) -> list[User]:
        return self._users("technician")

    def list_managers(self) -> list[User]:
        return self._users("manager")

    def list_inspectors(self) -> list[User]:
        return self._users("inspector")

    def list_notifications(self, unread_only: bool = False) -> list[Notification]:
        stmt = select(Notification).order_by(Notification.seq.desc())  # newest first
        if unread_only:
            stmt = stmt.where(Notification.read.is_(False))
        return list(self.session.scalars(stmt))

    def workload(self):
        return technician_workload(self.list_parts(), self.list_technicians(), self.daily_capacity)

    def snapshot(self) -> dict:
        now = self.clock()
        return {
            "parts": [p.to_dict(now) for p in self.list_parts()],
            "technicians": [t.to_dict() for t in self.list_technicians()],
            "notifications": [n.to_dict() for n in self.list_notifications()],
        }

    def part_timeline(self, part_id: str) -> list[dict]:
        """History entries and notes of one part, oldest first."""
        part = self.get_part(part_id)
        if part is None:
            return []
        events = [(h.timestamp, 0, {"kind": "history", **h.to_dict()}) for h in part.history]
        events += [(n.timestamp, 1, {"kind": "note", **n.to_dict()}) for n in part.notes]
        # sort is stable: equal timestamps keep history before notes, each in insertion order
        events.sort(key=lambda e: (e[0], e[1]))
        return [e[2] for e in events]

    # ============================== CHANGES ================================ #
    def subscribe(self, callback: Callable[[], None]) -> None:
        """Call `callback` whenever parts or personnel change."""
        self._listeners.append(callback)

    def mark_changed(self) -> None:
        for callback in self._listeners:
            callback()

    # ============================== HISTORY ================================ #
    def _append_history(self, part: Part, action: str, **fields) -> PartHistoryEntry:
        entry = PartHistoryEntry(
            id=new_id("history"),
            part_id=part.id,
            timestamp=fields.pop("timestamp", None) or self.clock(),
            action=action,
            **fields,
        )
        part.history.append(entry)
        self.mark_changed()
        return entry

    # ============================== PARTS ================================== #
    def register_part(self, *, id: str, part_number: str, actor: Optional[User] = None, **fields) -> Part:
        """Intake: a new part starts unrepaired with an 'entered shop' history entry."""
        if not id or not part_number:
            raise ValueError("Part id and part number are required")
        if self.get_part(id) is not None:
            raise ValueError(f"Part {id} already exists")

        priority = fields.pop("priority", None) or "medium"
        fields["priority"] = priority
        self._validate_fields(fields)

        now = self.clock()
        part = Part(
            id=id,
            part_number=part_number,
            status="unrepaired",
            entered_shop=now,
            status_changed_at=now,
            last_updated=now,
            photos=[],
        )
        for key, value in fields.items():
            setattr(part, key, value)
        if not part.qr_code:
            part.qr_code = f"{self.qr_base_url}/parts/{id}"
        if actor is not None:
            part.updated_by = actor.name

        self.session.add(part)
        self._append_history(
            part, "Part entered shop",
            timestamp=now,
            to_status="unrepaired",
            technician_id=getattr(actor, "id", None),
            technician_name=getattr(actor, "name", None),
            estimated_hours=part.estimated_hours,
            notes=part.intake_notes,
        )
        self.session.commit()
        logger.info("Registered part %s (%s)", id, part_number)
        return part

    def update_part(self, part_id: str, **fields) -> Optional[Part]:
        """
        Merge fields into the part and stamp last_updated.
        A status change goes through the workflow; everything else is merged as given.
        """
        part = self.get_part(part_id)
        if part is None:
            logger.debug("update_part: unknown part %s", part_id)
            return None

        status = fields.pop("status", None)
        self._validate_fields(fields)

        try:
            for key, value in fields.items():
                setattr(part, key, value)
            part.last_updated = self.clock()

            if status is not None and status != part.status:
                self._transition(part, status,
                                 technician_id=fields.get("assigned_technician"),
                                 actual_hours=fields.get("actual_hours"))
        except TransitionError:
            self.session.rollback()
            raise

        self.session.commit()
        self.mark_changed()
        return part

    def _validate_fields(self, fields: dict) -> None:
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown part fields: {', '.join(sorted(unknown))}")
        if "priority" in fields and fields["priority"] not in PRIORITIES:
            raise ValueError(f"Unknown priority: {fields['priority']!r}")
        tech_id = fields.get("assigned_technician")
        if tech_id and self.get_technician(tech_id) is None:
            raise ValueError(f"Unknown technician: {tech_id}")

    def _transition(self, part: Part, to_status: str, *, technician_id=None,
                    actual_hours=None, actor: Optional[User] = None, note: Optional[str] = None) -> None:
        if technician_id and self.get_technician(technician_id) is None:
            raise TransitionError(f"Unknown technician: {technician_id}")

        now = self.clock()
        plan = plan_transition(part, to_status, now, technician_id=technician_id, actual_hours=actual_hours)
        for key, value in plan.changes.items():
            setattr(part, key, value)
        part.last_updated = now

        tech = self.get_user(part.assigned_technician)
        if actor is not None:
            part.updated_by = actor.name
        elif to_status == "in-repair" and tech is not None:
            part.updated_by = tech.name

        self._append_history(
            part, plan.action,
            timestamp=now,
            from_status=plan.from_status,
            to_status=plan.to_status,
            technician_id=part.assigned_technician,
            technician_name=tech.name if tech else part.updated_by,
            estimated_hours=part.estimated_hours if to_status == "repaired" else None,
            actual_hours=part.actual_hours if to_status == "repaired" else None,
            notes=note,
        )
        logger.info("Part %s: %s -> %s", part.id, plan.from_status, plan.to_status)

    def transition(self, part_id: str, to_status: str, *, technician_id: Optional[str] = None,
                   actual_hours: Optional[float] = None, actor: Optional[User] = None,
                   note: Optional[str] = None) -> Optional[Part]:
        """Single validated entry point for status changes."""
        part = self.get_part(part_id)
        if part is None:
            logger.debug("transition: unknown part %s", part_id)
            return None
        self._transition(part, to_status, technician_id=technician_id,
                         actual_hours=actual_hours, actor=actor, note=note)
        self.session.commit()
        return part

    def start_repair(self, part_id: str, technician_id: Optional[str] = None) -> Optional[Part]:
        """unrepaired -> in-repair; without technician_id the part's assigned technician starts it."""
        return self.transition(part_id, "in-repair", technician_id=technician_id)

    def complete_repair(self, part_id: str, actual_hours, actor: Optional[User] = None) -> Optional[Part]:
        """in-repair -> repaired; credits the technician and checks badges."""
        if actual_hours is None or float(actual_hours) <= 0:
            raise TransitionError("Actual hours are required to complete a repair")
        part = self.transition(part_id, "repaired", actual_hours=float(actual_hours), actor=actor)
        if part is not None and part.assigned_technician:
            self._credit_repair(part.assigned_technician)
        return part

    def scrap_part(self, part_id: str, note: Optional[str] = None, actor: Optional[User] = None) -> Optional[Part]:
        return self.transition(part_id, "scrap", actor=actor, note=note or "Part deemed unrepairable")

    def ship_part(self, part_id: str, actor: Optional[User] = None) -> Optional[Part]:
        return self.transition(part_id, "shipped", actor=actor)

    def add_part_note(self, part_id: str, text: str, author_id: Optional[str]) -> Optional[PartNote]:
        text = (text or "").strip()
        part = self.get_part(part_id)
        if part is None or not text:
            logger.debug("add_part_note: nothing to add for %s", part_id)
            return None

        author = self.get_user(author_id)
        now = self.clock()
        note = PartNote(
            part_id=part.id,
            timestamp=now,
            author_id=author_id,
            author_name=author.name if author else None,
            text=text,
        )
        part.notes.append(note)
        self._append_history(
            part, "Note added",
            timestamp=now,
            technician_id=author_id,
            technician_name=author.name if author else None,
            notes=text,
        )
        self.session.commit()
        return note

    # =============================== BULK ================================== #
    def bulk_assign_parts(self, part_ids: Iterable[str], technician_id: str) -> BulkResult:
        """Assignment only: status stays where it is."""
        result = BulkResult()
        tech = self.get_technician(technician_id)
        if tech is None:
            logger.debug("bulk_assign_parts: unknown technician %s", technician_id)
            result.skipped.extend(part_ids)
            return result

        now = self.clock()
        for part_id in part_ids:
            part = self.get_part(part_id)
            if part is None:
                result.skipped.append(part_id)
                continue
            part.assigned_technician = tech.id
            part.updated_by = tech.name
            part.last_updated = now
            self._append_history(
                part, "Assigned to technician",
                timestamp=now,
                to_status=part.status,
                technician_id=tech.id,
                technician_name=tech.name,
            )
            result.updated.append(part_id)
        self.session.commit()
        logger.info("Assigned %d part(s) to %s", len(result.updated), tech.id)
        return result

    def bulk_update_status(self, part_ids: Iterable[str], status: str,
                           actor: Optional[User] = None) -> BulkResult:
        """Move each part to `status`; parts where that move is illegal are skipped."""
        result = BulkResult()
        for part_id in part_ids:
            part = self.get_part(part_id)
            if part is None:
                result.skipped.append(part_id)
                continue
            try:
                self._transition(part, status, actor=actor)
            except TransitionError as exc:
                logger.warning("bulk_update_status: %s", exc)
                result.skipped.append(part_id)
                continue
            result.updated.append(part_id)
        self.session.commit()
        return result

    def auto_assign(self, actor: Optional[User] = None) -> list[tuple[str, str]]:
        """Plan with the first-fit heuristic, then start repair on every planned part."""
        plan = plan_auto_assignment(self.list_parts(), self.list_technicians(), self.daily_capacity)
        for part_id, technician_id in plan:
            self._transition(self.get_part(part_id), "in-repair", technician_id=technician_id)
        self.session.commit()
        logger.info("Auto-assigned %d part(s) (requested by %s)", len(plan),
                    getattr(actor, "id", "system"))
        return plan

    # ============================= PERSONNEL =============================== #
    def _stats_for(self, tech: User) -> TechnicianStats:
        if tech.stats is None:
            tech.stats = TechnicianStats(technician_id=tech.id)
            self.session.flush()
        return tech.stats

    def update_technician_stats(self, technician_id: str, patch: dict) -> Optional[User]:
        tech = self.get_technician(technician_id)
        if tech is None:
            logger.debug("update_technician_stats: unknown technician %s", technician_id)
            return None
        self._stats_for(tech).apply_patch(patch or {})
        self.session.commit()
        self.mark_changed()
        return tech

    def add_technician_badge(self, technician_id: str, badge: str) -> bool:
        """Award a badge once. Returns True when it was new."""
        tech = self.get_technician(technician_id)
        badge = (badge or "").strip()
        if tech is None or not badge or badge in tech.badge_names:
            return False
        tech.badges.append(TechnicianBadge(name=badge, awarded_at=self.clock()))
        self.session.commit()
        self.mark_changed()
        logger.info("Badge %r awarded to %s", badge, tech.id)
        return True

    def check_badges(self, technician_id: str) -> list[str]:
        tech = self.get_technician(technician_id)
        if tech is None:
            return []
        stats = self._stats_for(tech).to_dict()
        return [name for name, rule in BADGE_RULES.items()
                if rule(stats) and self.add_technician_badge(tech.id, name)]

    def _credit_repair(self, technician_id: str) -> None:
        tech = self.get_technician(technician_id)
        if tech is None:
            return
        counts = self._stats_for(tech).to_dict()["repaired_count"]
        self.update_technician_stats(tech.id, {
            "repaired_count": {period: value + 1 for period, value in counts.items()},
        })
        self.check_badges(tech.id)

    # =========================== NOTIFICATIONS ============================= #
    def add_notification(self, *, type: str, title: str, message: str,
                         part_id: Optional[str] = None, technician_id: Optional[str] = None,
                         rule: Optional[str] = None, subject_id: Optional[str] = None) -> Notification:
        if type not in NOTIFICATION_TYPES:
            raise ValueError(f"Unknown notification type: {type!r}")
        notif = Notification(
            id=new_id("notif"),
            type=type,
            title=title,
            message=message,
            timestamp=self.clock(),
            read=False,
            part_id=part_id,
            technician_id=technician_id,
            rule=rule,
            subject_id=subject_id,
        )
        self.session.add(notif)
        self.session.commit()
        return notif

    def mark_notification_read(self, notification_id: str) -> bool:
        notif = self.session.scalar(select(Notification).where(Notification.id == notification_id))
        if notif is None:
            return False
        notif.read = True
        self.session.commit()
        return True

    def clear_all_notifications(self) -> int:
        count = 0
        for notif in self.list_notifications():
            self.session.delete(notif)
            count += 1
        self.session.commit()
        return count

    def publish(self, drafts, cooldown: timedelta = timedelta(0)) -> list[Notification]:
        """
        Turn evaluator drafts into notifications.
        A draft whose (rule, subject_id) already fired within `cooldown` is dropped;
        a zero cool-down publishes everything.
        """
        now = self.clock()
        recent = set()
        if cooldown > timedelta(0):
            rows = self.session.execute(
                select(Notification.rule, Notification.subject_id)
                .where(Notification.rule.is_not(None), Notification.timestamp >= now - cooldown)
            )
            recent = {(rule, subject) for rule, subject in rows}

        created = []
        for draft in drafts:
            key = (draft.rule, draft.subject_id)
            if key in recent:
                logger.debug("Suppressed %s notification for %s", *key)
                continue
            if cooldown > timedelta(0):
                recent.add(key)
            notif = Notification(
                id=new_id("notif"),
                type=draft.type,
                title=draft.title,
                message=draft.message,
                timestamp=now,
                read=False,
                part_id=draft.part_id,
                technician_id=draft.technician_id,
                rule=draft.rule,
                subject_id=draft.subject_id,
            )
            self.session.add(notif)
            created.append(notif)
        self.session.commit()
        if created:
            logger.info("Published %d notification(s)", len(created))
        return created

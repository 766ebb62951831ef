"""
Repair workflow for a part:

    unrepaired --start-->    in-repair
    unrepaired --scrap-->    scrap
    in-repair  --complete--> repaired
    in-repair  --scrap-->    scrap
    repaired   --ship-->     shipped

scrap and shipped are terminal. plan_transition() only computes the field
changes; the registry applies them and writes the history entry.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .models import STATUSES

ALLOWED_TRANSITIONS = {
    "unrepaired": {"in-repair", "scrap"},
    "in-repair": {"repaired", "scrap"},
    "repaired": {"shipped"},
    "scrap": set(),
    "shipped": set(),
}

TIMESTAMP_FIELD = {
    "in-repair": "repair_started",
    "repaired": "repair_completed",
    "shipped": "shipped_date",
    "scrap": "scrapped_date",
}

ACTION_LABELS = {
    "in-repair": "Repair started",
    "repaired": "Repair completed",
    "shipped": "Part shipped",
    "scrap": "Part scrapped",
}

TERMINAL_STATUSES = {s for s, targets in ALLOWED_TRANSITIONS.items() if not targets}


class TransitionError(ValueError):
    """Raised for a status change the workflow does not allow."""


@dataclass
class TransitionPlan:
    from_status: str
    to_status: str
    action: str
    changes: dict = field(default_factory=dict)


def can_transition(from_status: str, to_status: str) -> bool:
    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def plan_transition(part, to_status: str, now: datetime, *,
                    technician_id: Optional[str] = None,
                    actual_hours: Optional[float] = None) -> TransitionPlan:
    """
    Work out what moving `part` to `to_status` changes.
    - in-repair needs a technician (given here or already assigned);
      repair_started is kept if it was set before.
    - repaired records actual_hours when given.
    """
    if to_status not in STATUSES:
        raise TransitionError(f"Unknown status: {to_status!r}")

    from_status = part.status
    if from_status in TERMINAL_STATUSES:
        raise TransitionError(f"Part {part.id} is {from_status}; no further status changes")
    if not can_transition(from_status, to_status):
        raise TransitionError(f"Part {part.id}: {from_status} -> {to_status} is not allowed")

    changes = {"status": to_status, "status_changed_at": now}

    if to_status == "in-repair":
        tech = technician_id or part.assigned_technician
        if not tech:
            raise TransitionError(f"Part {part.id}: a technician is required to start repair")
        changes["assigned_technician"] = tech
        if part.repair_started is None:
            changes["repair_started"] = now
    else:
        changes[TIMESTAMP_FIELD[to_status]] = now

    if to_status == "repaired" and actual_hours is not None:
        changes["actual_hours"] = actual_hours

    return TransitionPlan(
        from_status=from_status,
        to_status=to_status,
        action=ACTION_LABELS[to_status],
        changes=changes,
    )

"""
Advisory rules over a shop snapshot.

Every check is a pure function: it reads parts/technicians and returns
NotificationDraft records. Nothing is written here; the registry decides
what to publish.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from modules.shop.assignment import DAILY_CAPACITY_HOURS, committed_hours
from utils import utcnow

SCRAP_RATE_THRESHOLD = 10.0
STUCK_DAYS = 3
WEEKLY_MILESTONE = 10
MONTHLY_MILESTONE = 30
EFFICIENCY_MILESTONE = 95.0


@dataclass(frozen=True)
class NotificationDraft:
    rule: str
    subject_id: str
    type: str
    title: str
    message: str
    part_id: Optional[str] = None
    technician_id: Optional[str] = None


def _stats(tech) -> dict:
    return tech.stats.to_dict() if tech.stats is not None else {}


def _fmt(value) -> str:
    return f"{value:g}" if isinstance(value, float) else str(value)


def check_overdue_parts(parts, now: Optional[datetime] = None) -> list[NotificationDraft]:
    now = now or utcnow()
    return [
        NotificationDraft(
            rule="overdue",
            subject_id=p.id,
            type="warning",
            title="Overdue Part Alert",
            message=f"Part {p.part_number} has been in {p.status} status for {p.days_in_status(now)} days",
            part_id=p.id,
        )
        for p in parts
        if p.is_overdue(now)
    ]


def check_technician_capacity(technicians, parts,
                              daily_capacity: float = DAILY_CAPACITY_HOURS) -> list[NotificationDraft]:
    out = []
    for tech in technicians:
        hours = committed_hours(parts, tech.id)
        utilization = hours / daily_capacity * 100
        message = f"{tech.name} is at {utilization:.0f}% capacity ({hours:.1f}h/{daily_capacity:g}h)"
        if utilization >= 100:
            out.append(NotificationDraft("capacity", tech.id, "error", "Technician Overloaded",
                                         message, technician_id=tech.id))
        elif utilization >= 80:
            out.append(NotificationDraft("capacity", tech.id, "warning", "Technician Near Capacity",
                                         message, technician_id=tech.id))
    return out


def check_scrap_rates(technicians) -> list[NotificationDraft]:
    out = []
    for tech in technicians:
        rate = _stats(tech).get("scrap_rate", 0) or 0
        if rate > SCRAP_RATE_THRESHOLD:
            out.append(NotificationDraft(
                "scrap_rate", tech.id, "warning", "High Scrap Rate Alert",
                f"{tech.name} has a scrap rate of {_fmt(rate)}% (above {SCRAP_RATE_THRESHOLD:g}% threshold)",
                technician_id=tech.id,
            ))
    return out


def check_backlog(parts) -> list[NotificationDraft]:
    total = len(parts)
    if not total:
        return []
    unrepaired = sum(1 for p in parts if p.status == "unrepaired")
    pct = unrepaired / total * 100
    message = f"Backlog is at {pct:.0f}% ({unrepaired}/{total} parts unrepaired)"
    if pct > 50:
        return [NotificationDraft("backlog", "shop", "error", "High Backlog Alert", message)]
    if pct > 30:
        return [NotificationDraft("backlog", "shop", "warning", "Backlog Growing", message)]
    return []


def check_stuck_parts(parts, now: Optional[datetime] = None) -> list[NotificationDraft]:
    now = now or utcnow()
    out = []
    for p in parts:
        days = p.days_in_status(now)
        if days > STUCK_DAYS and p.status != "shipped":
            out.append(NotificationDraft(
                "stuck", p.id, "info", "Part Stuck in Status",
                f"Part {p.part_number} has been in {p.status} status for {days} days",
                part_id=p.id,
            ))
    return out


def check_milestones(technicians) -> list[NotificationDraft]:
    out = []
    for tech in technicians:
        stats = _stats(tech)
        repaired = stats.get("repaired_count", {})
        week = repaired.get("week", 0)
        month = repaired.get("month", 0)
        efficiency = stats.get("efficiency", 0) or 0
        if week >= WEEKLY_MILESTONE:
            out.append(NotificationDraft(
                "milestone_week", tech.id, "success", "Weekly Milestone Achieved!",
                f"{tech.name} has completed {week} parts this week!", technician_id=tech.id,
            ))
        if month >= MONTHLY_MILESTONE:
            out.append(NotificationDraft(
                "milestone_month", tech.id, "success", "Monthly Milestone Achieved!",
                f"{tech.name} has completed {month} parts this month!", technician_id=tech.id,
            ))
        if efficiency >= EFFICIENCY_MILESTONE:
            out.append(NotificationDraft(
                "milestone_efficiency", tech.id, "success", "Efficiency Excellence!",
                f"{tech.name} has achieved {_fmt(efficiency)}% efficiency!", technician_id=tech.id,
            ))
    return out


def check_critical_parts(parts) -> list[NotificationDraft]:
    return [
        NotificationDraft(
            "critical", p.id, "error", "Critical Part Alert",
            f"Critical part {p.part_number} is unrepaired and needs immediate attention",
            part_id=p.id,
        )
        for p in parts
        if p.priority == "critical" and p.status == "unrepaired"
    ]


def run_all_checks(parts, technicians, now: Optional[datetime] = None,
                   daily_capacity: float = DAILY_CAPACITY_HOURS) -> list[NotificationDraft]:
    """All rules, in a fixed order. No deduplication here."""
    now = now or utcnow()
    return [
        *check_overdue_parts(parts, now),
        *check_technician_capacity(technicians, parts, daily_capacity),
        *check_scrap_rates(technicians),
        *check_backlog(parts),
        *check_stuck_parts(parts, now),
        *check_milestones(technicians),
        *check_critical_parts(parts),
    ]

from __future__ import annotations

from dataclasses import dataclass

from .models import PRIORITY_RANK

DAILY_CAPACITY_HOURS = 8.0


@dataclass(frozen=True)
class Workload:
    technician_id: str
    technician_name: str
    committed_hours: float
    daily_capacity: float
    utilization: float  # percent, capped at 100 for display
    available_hours: float
    part_ids: tuple[str, ...]

    def to_dict(self) -> dict:
        return {
            "technician_id": self.technician_id,
            "technician_name": self.technician_name,
            "committed_hours": self.committed_hours,
            "daily_capacity": self.daily_capacity,
            "utilization": self.utilization,
            "available_hours": self.available_hours,
            "part_ids": list(self.part_ids),
        }


def committed_hours(parts, technician_id: str) -> float:
    """Estimated hours of the technician's in-repair parts."""
    return sum(
        float(p.estimated_hours or 0)
        for p in parts
        if p.assigned_technician == technician_id and p.status == "in-repair"
    )


def technician_workload(parts, technicians, daily_capacity: float = DAILY_CAPACITY_HOURS) -> list[Workload]:
    out = []
    for tech in technicians:
        in_repair = [p for p in parts if p.assigned_technician == tech.id and p.status == "in-repair"]
        hours = committed_hours(in_repair, tech.id)
        utilization = min(hours / daily_capacity * 100, 100.0) if daily_capacity else 100.0
        out.append(
            Workload(
                technician_id=tech.id,
                technician_name=tech.name,
                committed_hours=hours,
                daily_capacity=daily_capacity,
                utilization=utilization,
                available_hours=max(0.0, daily_capacity - hours),
                part_ids=tuple(p.id for p in in_repair),
            )
        )
    return out


def plan_auto_assignment(
    parts,
    technicians,
    daily_capacity: float = DAILY_CAPACITY_HOURS,
) -> list[tuple[str, str]]:
    """First-fit assignment of unassigned, unrepaired parts.

    - Candidates sorted by priority (critical first), then by estimated hours, larger first.
    - Each technician starts with capacity minus hours already in repair.
    - A part goes to the first technician, in list order, with enough hours left.
    - Parts nobody can fit stay unassigned. No backtracking.

    Returns: list of (part_id, technician_id) in assignment order.
    """
    candidates = [p for p in parts if p.status == "unrepaired" and not p.assigned_technician]

    def sort_key(p):
        return (-PRIORITY_RANK.get(p.priority, 0), -float(p.estimated_hours or 0))

    available = {w.technician_id: w.available_hours for w in technician_workload(parts, technicians, daily_capacity)}
    order = [t.id for t in technicians]

    plan: list[tuple[str, str]] = []
    for part in sorted(candidates, key=sort_key):
        need = float(part.estimated_hours or 0)
        chosen = next((tid for tid in order if available[tid] >= need), None)
        if chosen is None:
            continue
        available[chosen] -= need
        plan.append((part.id, chosen))
    return plan

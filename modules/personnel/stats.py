"""Per-technician performance computed from the parts they were assigned."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from utils import isoformat

COMPLETED_STATUSES = ("repaired", "shipped")


def _r1(value: float) -> float:
    """One decimal, halves rounded up (0.25 -> 0.3)."""
    return float(Decimal(repr(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _efficiency(estimated: float, actual: float) -> float:
    """Percent of estimated time saved; never negative."""
    if not estimated:
        return 0.0
    return max(0.0, (estimated - actual) / estimated * 100)


def calculate_personnel_stats(parts, technicians) -> list[dict]:
    out = []
    for tech in technicians:
        tech_parts = [p for p in parts if p.assigned_technician == tech.id]
        completed = [p for p in tech_parts if p.status in COMPLETED_STATUSES]
        in_progress = [p for p in tech_parts if p.status == "in-repair"]
        scrapped = [p for p in tech_parts if p.status == "scrap"]

        with_actual = [p for p in completed if p.actual_hours]
        avg_repair_time = (sum(p.actual_hours for p in with_actual) / len(with_actual)) if with_actual else 0.0

        with_both = [p for p in completed if p.actual_hours and p.estimated_hours]
        total_est = sum(p.estimated_hours for p in with_both)
        total_act = sum(p.actual_hours for p in with_both)
        efficiency = _efficiency(total_est, total_act)

        on_time = [p for p in with_both if p.actual_hours <= p.estimated_hours]
        on_time_delivery = (len(on_time) / len(with_both) * 100) if with_both else 0.0

        total_hours = sum(p.actual_hours or 0 for p in tech_parts)

        updated = [p.last_updated for p in tech_parts if p.last_updated]
        last_activity = isoformat(max(updated)) if updated else ""

        details = []
        for p in tech_parts:
            est = p.estimated_hours or 0
            details.append({
                "part_id": p.id,
                "part_number": p.part_number,
                "aircraft": p.aircraft,
                "status": p.status,
                "estimated_hours": est,
                "actual_hours": p.actual_hours,
                "efficiency": _r1(_efficiency(est, p.actual_hours)) if est and p.actual_hours else 0.0,
                "on_time": bool(p.actual_hours) and p.actual_hours <= est,
                "entered_shop": isoformat(p.entered_shop),
                "repair_started": isoformat(p.repair_started),
                "repair_completed": isoformat(p.repair_completed),
                "customer": p.customer,
                "priority": p.priority,
            })

        out.append({
            "technician_id": tech.id,
            "technician_name": tech.name,
            "total_parts_assigned": len(tech_parts),
            "parts_completed": len(completed),
            "parts_in_progress": len(in_progress),
            "parts_scrapped": len(scrapped),
            "average_repair_time": _r1(avg_repair_time),
            "efficiency": _r1(efficiency),
            "on_time_delivery": _r1(on_time_delivery),
            "total_hours_worked": _r1(total_hours),
            "last_activity": last_activity,
            "part_details": details,
        })
    return out


def get_top_performers(stats: list[dict], metric: str, limit: int = 3) -> list[dict]:
    """Best `limit` technicians by `metric`; lower is better only for average_repair_time."""
    reverse = metric != "average_repair_time"
    return sorted(stats, key=lambda s: s[metric], reverse=reverse)[:limit]


def get_overall_stats(stats: list[dict]) -> dict:
    total_parts = sum(s["total_parts_assigned"] for s in stats)
    total_completed = sum(s["parts_completed"] for s in stats)
    total_hours = sum(s["total_hours_worked"] for s in stats)
    n = len(stats)
    return {
        "total_parts": total_parts,
        "total_completed": total_completed,
        "total_hours": _r1(total_hours),
        "avg_efficiency": _r1(sum(s["efficiency"] for s in stats) / n) if n else 0.0,
        "avg_on_time_delivery": _r1(sum(s["on_time_delivery"] for s in stats) / n) if n else 0.0,
        "completion_rate": _r1(total_completed / total_parts * 100) if total_parts else 0.0,
    }

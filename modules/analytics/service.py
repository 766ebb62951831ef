from __future__ import annotations

from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from modules.shop.assignment import committed_hours
from modules.shop.models import STATUSES


def _r1(value: float) -> float:
    """One decimal, halves rounded up (0.25 -> 0.3)."""
    return float(Decimal(repr(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def mean_time_to_repair(parts) -> float:
    """Average hours between repair_started and repair_completed."""
    done = [p for p in parts if p.repair_started and p.repair_completed]
    if not done:
        return 0.0
    total = sum((p.repair_completed - p.repair_started).total_seconds() / 3600 for p in done)
    return total / len(done)


def backlog_trend(parts, now: datetime, days: int = 7) -> list[dict]:
    """Parts waiting for repair at the end of each of the last `days` days."""
    out = []
    for i in range(days):
        day = now - timedelta(days=days - 1 - i)
        count = sum(
            1 for p in parts
            if p.entered_shop <= day
            and (p.status == "unrepaired" or (p.repair_started is not None and p.repair_started > day))
        )
        out.append({"date": day.date().isoformat(), "count": count})
    return out


def shop_analytics(parts, technicians, now: datetime) -> dict:
    today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    processed = [p for p in parts if p.status in ("repaired", "shipped", "scrap")]
    scrapped = sum(1 for p in processed if p.status == "scrap")
    shipped = sum(1 for p in processed if p.status == "shipped")

    return {
        "total_parts": len(parts),
        "completed_today": sum(1 for p in parts if p.repair_completed and p.repair_completed >= today_start),
        "overdue_repairs": sum(1 for p in parts if p.is_overdue(now)),
        "mttr": _r1(mean_time_to_repair(parts)),
        "scrap_rate": _r1(scrapped / len(processed) * 100) if processed else 0.0,
        "shipped_rate": _r1(shipped / len(processed) * 100) if processed else 0.0,
        "backlog_trend": backlog_trend(parts, now),
        "workload_distribution": [
            {"technician": t.name, "workload": committed_hours(parts, t.id)} for t in technicians
        ],
        "status_distribution": {s: sum(1 for p in parts if p.status == s) for s in STATUSES},
    }

# -*- coding: utf-8 -*-
"""
seed_shop.py: demo data for the repair shop.

The app calls run(registry) at start-up when SEED_MOCK_DATA is on and the
database is empty. Part dates are relative to "now", so the board always
looks the same: parts waiting for a technician, work in repair, finished and
shipped parts.

CLI:
- python seed_shop.py --export seed.json   → dump the seeded state as a snapshot file
"""

import argparse
import json
from datetime import timedelta

from modules.shop.snapshot import SNAPSHOT_VERSION, import_snapshot
from utils import isoformat

INSPECTORS = [
    {"id": "i1", "name": "Alice Inspector", "role": "inspector", "photo": "/images/alice.jpg"},
]

MANAGERS = [
    {"id": "mgr1", "name": "Robert Taylor", "role": "manager",
     "photo": "https://images.unsplash.com/photo-1560250097-0b93528c311a?w=150&h=150&fit=crop&crop=face"},
    {"id": "mgr2", "name": "Lisa Anderson", "role": "manager",
     "photo": "https://images.unsplash.com/photo-1544005313-94ddf0286df2?w=150&h=150&fit=crop&crop=face"},
]


def _stats(today, week, month, avg, scrap, hours, efficiency, on_time):
    return {
        "repaired_count": {"today": today, "week": week, "month": month},
        "avg_repair_time": avg,
        "scrap_rate": scrap,
        "hours_worked": dict(zip(("today", "week", "month"), hours)),
        "efficiency": efficiency,
        "on_time_delivery": on_time,
    }


TECHNICIANS = [
    {"id": "tech1", "name": "John Smith", "join_date": "2022-03-15",
     "photo": "https://images.unsplash.com/photo-1472099645785-5658abf4ff4e?w=150&h=150&fit=crop&crop=face",
     "skills": ["Hydraulics", "Avionics", "Engine Systems"],
     "stats": _stats(2, 8, 32, 6.5, 5.2, (7.5, 38, 152), 85.3, 92.1),
     "badges": ["Speed Demon", "Quality Master", "Team Player"]},
    {"id": "tech2", "name": "Sarah Johnson", "join_date": "2021-11-08",
     "photo": "https://images.unsplash.com/photo-1494790108755-2616b612b786?w=150&h=150&fit=crop&crop=face",
     "skills": ["Landing Gear", "Fuel Systems", "Navigation"],
     "stats": _stats(1, 6, 28, 7.2, 3.8, (6.8, 35, 142), 78.9, 88.5),
     "badges": ["Precision Expert", "Safety First"]},
    {"id": "tech3", "name": "Mike Davis", "join_date": "2020-06-22",
     "photo": "https://images.unsplash.com/photo-1507003211169-0a1dd7228f2d?w=150&h=150&fit=crop&crop=face",
     "skills": ["Engine Repair", "APU Systems", "Troubleshooting"],
     "stats": _stats(3, 12, 45, 5.8, 7.1, (8.0, 40, 160), 91.2, 95.3),
     "badges": ["Speed Demon", "Problem Solver", "Mentor"]},
    {"id": "tech4", "name": "Emily Wilson", "join_date": "2023-01-10",
     "photo": "https://images.unsplash.com/photo-1438761681033-6461ffad8d80?w=150&h=150&fit=crop&crop=face",
     "skills": ["Cabin Systems", "Environmental Control", "Electrical"],
     "stats": _stats(2, 9, 38, 6.9, 4.2, (7.2, 36, 148), 82.7, 89.8),
     "badges": ["Detail Oriented", "Innovation Leader"]},
    {"id": "tech5", "name": "David Brown", "join_date": "2022-09-03",
     "photo": "https://images.unsplash.com/photo-1500648767791-00dcc994a43e?w=150&h=150&fit=crop&crop=face",
     "skills": ["Structural Repair", "Composite Materials", "Quality Control"],
     "stats": _stats(1, 7, 31, 8.1, 2.9, (6.5, 33, 135), 76.4, 85.2),
     "badges": ["Quality Master", "Safety First"]},
]

# (id, aircraft, status, technician, description, priority, customer, location,
#  est, act, days ago: last_updated, entered, started, completed, shipped, scrapped)
PARTS = [
    ("part1", "Boeing 737", "unrepaired", None, "Landing gear hydraulic pump", "high",
     "Delta Airlines", "Bay A-1", 2, None, (0, 5, None, None, None, None)),
    ("part2", "Airbus A320", "in-repair", "tech1", "Engine fuel injector", "critical",
     "American Airlines", "Bay B-2", 3, 2.5, (1, 7, 2, None, None, None)),
    ("part3", "Boeing 777", "repaired", "tech2", "Navigation system module", "medium",
     "United Airlines", "Bay C-3", 2, 1.5, (1, 10, 8, 1, None, None)),
    ("part4", "Airbus A380", "unrepaired", None, "Cabin pressure valve", "low",
     "Emirates", "Bay D-4", 1, None, (2, 3, None, None, None, None)),
    ("part5", "Boeing 787", "scrap", "tech3", "Damaged wing flap actuator", "high",
     "Southwest Airlines", "Scrap Area", 3, 2.5, (3, 15, 12, None, None, 3)),
    ("part6", "Airbus A350", "shipped", "tech4", "Avionics control unit", "critical",
     "Lufthansa", "Shipped", 3, 2.5, (4, 20, 18, 6, 4, None)),
    ("part7", "Boeing 747", "in-repair", "tech5", "Thrust reverser mechanism", "high",
     "British Airways", "Bay E-5", 2.5, 2, (1, 8, 5, None, None, None)),
    ("part8", "Airbus A330", "unrepaired", None, "Brake system controller", "medium",
     "Air France", "Bay F-6", 1.5, None, (1, 2, None, None, None, None)),
    ("part9", "Boeing 737 MAX", "repaired", "tech1", "Flight control computer", "critical",
     "Ryanair", "Bay G-7", 3, 2.5, (2, 12, 10, 2, None, None)),
    ("part10", "Airbus A321", "in-repair", "tech2", "Environmental control unit", "medium",
     "KLM", "Bay H-8", 2, 1.5, (0, 6, 4, None, None, None)),
    ("part11", "Boeing 737", "unrepaired", None, "APU starter motor", "low",
     "JetBlue", "Bay I-9", 1.5, None, (1, 4, None, None, None, None)),
    ("part12", "Airbus A320", "in-repair", "tech3", "Landing gear actuator", "high",
     "Alaska Airlines", "Bay J-10", 2.5, 2, (0, 9, 6, None, None, None)),
    ("part13", "Boeing 777", "repaired", "tech4", "Fuel pump assembly", "medium",
     "Virgin Atlantic", "Bay K-11", 2, 1.5, (3, 14, 11, 3, None, None)),
    ("part14", "Airbus A380", "shipped", "tech5", "Cockpit display unit", "critical",
     "Singapore Airlines", "Shipped", 3, 2.5, (5, 25, 22, 8, 5, None)),
    ("part15", "Boeing 787", "unrepaired", None, "Hydraulic reservoir", "low",
     "Qantas", "Bay L-12", 1, None, (0, 1, None, None, None, None)),
]


def _history(part: dict, tech_name) -> list:
    """Audit trail implied by the part's timestamps."""
    pid = part["id"]
    tech = part["assigned_technician"]
    history = [{"id": f"entry_{pid}", "timestamp": part["entered_shop"],
                "action": "Part entered shop", "to_status": "unrepaired"}]
    if part["repair_started"]:
        history.append({"id": f"start_{pid}", "timestamp": part["repair_started"],
                        "action": "Repair started", "from_status": "unrepaired", "to_status": "in-repair",
                        "technician_id": tech, "technician_name": tech_name})
    if part["repair_completed"]:
        history.append({"id": f"complete_{pid}", "timestamp": part["repair_completed"],
                        "action": "Repair completed", "from_status": "in-repair", "to_status": "repaired",
                        "technician_id": tech, "technician_name": tech_name,
                        "estimated_hours": part["estimated_hours"], "actual_hours": part["actual_hours"]})
    if part["shipped_date"]:
        history.append({"id": f"ship_{pid}", "timestamp": part["shipped_date"],
                        "action": "Part shipped", "from_status": "repaired", "to_status": "shipped",
                        "technician_id": tech, "technician_name": tech_name})
    elif part["scrapped_date"]:
        history.append({"id": f"scrap_{pid}", "timestamp": part["scrapped_date"],
                        "action": "Part scrapped", "from_status": "in-repair", "to_status": "scrap",
                        "technician_id": tech, "technician_name": tech_name,
                        "notes": "Part deemed unrepairable"})
    return history


def build_snapshot(now) -> dict:
    """Mock shop state as a snapshot dict, dates relative to `now`."""
    def ago(days):
        return isoformat(now - timedelta(days=days)) if days is not None else None

    names = {t["id"]: t["name"] for t in TECHNICIANS}
    parts = []
    for n, (pid, aircraft, status, tech, desc, prio, customer, loc, est, act, days) in enumerate(PARTS, start=1):
        updated, entered, started, completed, shipped, scrapped = days
        part = {
            "id": pid,
            "part_number": f"PN-{n:03d}-2024",
            "wo": f"WO-2024-{n:03d}",
            "aircraft": aircraft,
            "status": status,
            "assigned_technician": tech,
            "updated_by": names.get(tech),
            "description": desc,
            "priority": prio,
            "customer": customer,
            "location": loc,
            "estimated_hours": est,
            "actual_hours": act,
            "last_updated": ago(updated),
            "entered_shop": ago(entered),
            "repair_started": ago(started),
            "repair_completed": ago(completed),
            "shipped_date": ago(shipped),
            "scrapped_date": ago(scrapped),
        }
        part["history"] = _history(part, names.get(tech))
        part["status_changed_at"] = part["history"][-1]["timestamp"]
        parts.append(part)

    personnel = [{**t, "role": "technician"} for t in TECHNICIANS] + MANAGERS + INSPECTORS
    return {
        "version": SNAPSHOT_VERSION,
        "exported_at": isoformat(now),
        "personnel": personnel,
        "parts": parts,
        "notifications": [],
    }


def run(registry) -> dict:
    """Replace the registry's state with the mock shop."""
    return import_snapshot(registry, build_snapshot(registry.clock()))


def main():
    parser = argparse.ArgumentParser(description="Seed the repair shop with demo data")
    parser.add_argument("--export", metavar="FILE", help="write the seeded state to FILE as JSON")
    args = parser.parse_args()

    from app import create_app
    from extensions import get_registry
    from modules.shop.snapshot import export_snapshot

    app = create_app({"SEED_MOCK_DATA": False, "NOTIFICATION_INTERVAL_MINUTES": 0})
    with app.app_context():
        counts = run(get_registry())
        print(f"→ Seeded {counts['personnel']} people and {counts['parts']} parts")
        if args.export:
            with open(args.export, "w", encoding="utf-8") as fh:
                json.dump(export_snapshot(get_registry()), fh, indent=2)
            print(f"✔ Snapshot written to {args.export}")


if __name__ == "__main__":
    main()

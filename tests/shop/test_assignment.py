from types import SimpleNamespace

from modules.shop.assignment import committed_hours, plan_auto_assignment, technician_workload


def _tech(tid):
    return SimpleNamespace(id=tid, name=tid.upper())


def _part(pid, status="unrepaired", tech=None, hours=1.0, priority="medium"):
    return SimpleNamespace(id=pid, status=status, assigned_technician=tech,
                           estimated_hours=hours, priority=priority)


def test_committed_hours_counts_only_in_repair():
    parts = [
        _part("a", "in-repair", "t1", 3),
        _part("b", "repaired", "t1", 5),
        _part("c", "unrepaired", "t1", 2),
    ]
    assert committed_hours(parts, "t1") == 3


def test_workload_caps_utilization():
    parts = [_part("a", "in-repair", "t1", 10)]
    (load,) = technician_workload(parts, [_tech("t1")], daily_capacity=8)
    assert load.utilization == 100.0
    assert load.available_hours == 0.0
    assert load.part_ids == ("a",)


def test_priority_then_hours_order():
    parts = [
        _part("low", hours=1, priority="low"),
        _part("crit-small", hours=1, priority="critical"),
        _part("crit-big", hours=3, priority="critical"),
        _part("high", hours=2, priority="high"),
    ]
    plan = plan_auto_assignment(parts, [_tech("t1")], daily_capacity=8)
    assert [p for p, _ in plan] == ["crit-big", "crit-small", "high", "low"]


def test_first_fit_in_technician_order():
    parts = [
        _part("busy", "in-repair", "t1", 7),
        _part("x", hours=2),
        _part("y", hours=1),
    ]
    plan = plan_auto_assignment(parts, [_tech("t1"), _tech("t2")], daily_capacity=8)
    assert plan == [("x", "t2"), ("y", "t1")]


def test_never_assigns_part_bigger_than_any_capacity():
    parts = [
        _part("huge", hours=9),
        _part("assigned", tech="t1", hours=1),
        _part("ok", hours=4),
    ]
    plan = plan_auto_assignment(parts, [_tech("t1"), _tech("t2")], daily_capacity=8)
    assert plan == [("ok", "t1")]


def test_registry_auto_assign_starts_repair(shop):
    shop.register_part(id="p1", part_number="PN-1", estimated_hours=3, priority="critical")
    shop.register_part(id="p2", part_number="PN-2", estimated_hours=9)

    plan = shop.auto_assign()
    assert plan == [("p1", "t1")]
    p1 = shop.get_part("p1")
    assert p1.status == "in-repair"
    assert p1.assigned_technician == "t1"
    assert p1.repair_started is not None
    assert shop.get_part("p2").assigned_technician is None

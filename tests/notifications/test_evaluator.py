from modules.notifications.evaluator import (
    check_backlog,
    check_critical_parts,
    check_milestones,
    check_overdue_parts,
    check_scrap_rates,
    check_stuck_parts,
    check_technician_capacity,
    run_all_checks,
)


def _register(shop, part_id, **fields):
    fields.setdefault("estimated_hours", 1)
    return shop.register_part(id=part_id, part_number=f"PN-{part_id}", **fields)


def test_overdue_part_gets_one_warning(shop, clock):
    _register(shop, "old")
    clock.advance(days=8)
    _register(shop, "new")

    parts = shop.list_parts()
    assert shop.get_part("old").is_overdue(clock.now)
    drafts = check_overdue_parts(parts, clock.now)
    assert len(drafts) == 1
    assert drafts[0].type == "warning"
    assert drafts[0].part_id == "old"
    assert drafts[0].message == "Part PN-old has been in unrepaired status for 8 days"


def test_capacity_error_for_overloaded_technician_only(shop):
    for pid, hours in (("a", 3), ("b", 3), ("c", 3)):
        _register(shop, pid, estimated_hours=hours)
        shop.start_repair(pid, "t1")
    _register(shop, "d", estimated_hours=2)
    shop.start_repair("d", "t2")

    drafts = check_technician_capacity(shop.list_technicians(), shop.list_parts(), daily_capacity=8)
    assert len(drafts) == 1
    assert drafts[0].type == "error"
    assert drafts[0].technician_id == "t1"
    assert "(9.0h/8h)" in drafts[0].message


def test_capacity_warning_band(shop):
    _register(shop, "a", estimated_hours=6.5)
    shop.start_repair("a", "t2")
    (draft,) = check_technician_capacity(shop.list_technicians(), shop.list_parts(), daily_capacity=8)
    assert draft.type == "warning"
    assert draft.title == "Technician Near Capacity"


def test_scrap_rate_and_milestones(shop):
    shop.update_technician_stats("t1", {"scrap_rate": 12.5, "repaired_count": {"week": 10, "month": 30},
                                        "efficiency": 96})
    techs = shop.list_technicians()

    (scrap,) = check_scrap_rates(techs)
    assert scrap.message == "Tina Tech has a scrap rate of 12.5% (above 10% threshold)"

    rules = [d.rule for d in check_milestones(techs)]
    assert rules == ["milestone_week", "milestone_month", "milestone_efficiency"]


def test_backlog_thresholds(shop):
    assert check_backlog([]) == []
    for pid in ("a", "b", "c"):
        _register(shop, pid)
    shop.start_repair("a", "t1")
    # 2 of 3 unrepaired
    (draft,) = check_backlog(shop.list_parts())
    assert draft.type == "error"
    assert draft.subject_id == "shop"

    shop.start_repair("b", "t1")
    (draft,) = check_backlog(shop.list_parts())
    assert draft.type == "warning"


def test_stuck_parts_skip_shipped(shop, clock):
    _register(shop, "a")
    _register(shop, "b")
    shop.start_repair("b", "t1")
    shop.complete_repair("b", 1)
    shop.ship_part("b")
    clock.advance(days=4)
    drafts = check_stuck_parts(shop.list_parts(), clock.now)
    assert [d.part_id for d in drafts] == ["a"]


def test_critical_unrepaired(shop):
    _register(shop, "a", priority="critical")
    _register(shop, "b", priority="critical")
    shop.start_repair("b", "t1")
    assert [d.part_id for d in check_critical_parts(shop.list_parts())] == ["a"]


def test_run_all_checks_on_seeded_shop(registry):
    drafts = run_all_checks(registry.list_parts(), registry.list_technicians(), now=registry.clock())
    rules = {d.rule for d in drafts}
    # tech3 has 12 repairs this week and 45 this month
    assert "milestone_week" in rules
    assert "milestone_month" in rules
    assert "overdue" not in rules

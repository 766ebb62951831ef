import pytest

from modules.shop.models import STATUSES
from modules.shop.workflow import TransitionError


def _register(shop, part_id="p1", **fields):
    fields.setdefault("estimated_hours", 2)
    return shop.register_part(id=part_id, part_number=f"PN-{part_id}", **fields)


def test_register_part_starts_unrepaired(shop, clock):
    part = _register(shop, priority="high")
    assert part.status == "unrepaired"
    assert part.entered_shop == clock.now
    assert part.qr_code == "https://repair-shop.local/parts/p1"
    assert [h.action for h in part.history] == ["Part entered shop"]
    assert part.history[0].to_status == "unrepaired"


def test_register_part_rejects_duplicates_and_bad_priority(shop):
    _register(shop)
    with pytest.raises(ValueError):
        _register(shop)
    with pytest.raises(ValueError):
        _register(shop, "p2", priority="urgent")


def test_update_status_resets_days_in_status(shop, clock):
    part = _register(shop)
    clock.advance(days=8)
    assert part.days_in_status(clock.now) == 8
    assert part.is_overdue(clock.now)

    shop.update_part("p1", status="in-repair", assigned_technician="t1")
    assert part.days_in_status(clock.now) == 0
    assert not part.is_overdue(clock.now)
    assert part.repair_started == clock.now


def test_update_part_rejects_illegal_status(shop):
    _register(shop)
    with pytest.raises(TransitionError):
        shop.update_part("p1", status="shipped")
    assert shop.get_part("p1").status == "unrepaired"


def test_update_unknown_part_is_noop(shop):
    assert shop.update_part("missing", location="Bay 1") is None


def test_update_merges_plain_fields(shop, clock):
    _register(shop)
    clock.advance(hours=1)
    part = shop.update_part("p1", location="Bay Z", estimated_hours=4.0)
    assert part.location == "Bay Z"
    assert part.estimated_hours == 4.0
    assert part.last_updated == clock.now
    assert part.status == "unrepaired"


def test_empty_note_leaves_notes_unchanged(shop):
    part = _register(shop)
    assert shop.add_part_note("p1", "   ", "t1") is None
    assert len(part.notes) == 0

    note = shop.add_part_note("p1", "Seal kit ordered", "t1")
    assert note.author_name == "Tina Tech"
    assert [n.text for n in part.notes] == ["Seal kit ordered"]
    assert part.history[-1].action == "Note added"


def test_bulk_assign_keeps_status(shop):
    part = _register(shop, "partX")
    result = shop.bulk_assign_parts(["partX", "nope"], "t1")
    assert result.updated == ["partX"]
    assert result.skipped == ["nope"]
    assert part.status == "unrepaired"
    assert part.assigned_technician == "t1"
    assert part.history[-1].action == "Assigned to technician"


def test_bulk_status_repaired_sets_completion(shop):
    part = _register(shop)
    shop.start_repair("p1", "t1")
    result = shop.bulk_update_status(["p1"], "repaired")
    assert result.updated == ["p1"]
    assert part.status == "repaired"
    assert part.repair_completed is not None


def test_bulk_status_skips_illegal_moves(shop):
    _register(shop, "a")
    _register(shop, "b")
    shop.start_repair("b", "t2")
    result = shop.bulk_update_status(["a", "b"], "repaired")
    assert result.updated == ["b"]
    assert result.skipped == ["a"]
    assert shop.get_part("a").status == "unrepaired"


def test_shipped_and_scrapped_dates_follow_status(shop):
    _register(shop, "ship")
    _register(shop, "junk")
    shop.start_repair("ship", "t1")
    shop.complete_repair("ship", 1.5)
    shop.ship_part("ship")
    shop.scrap_part("junk")

    for part in shop.list_parts():
        assert part.status in STATUSES
        assert (part.shipped_date is not None) == (part.status == "shipped")
        assert (part.scrapped_date is not None) == (part.status == "scrap")
    assert shop.get_part("junk").history[-1].notes == "Part deemed unrepairable"


def test_complete_repair_needs_hours_and_credits_technician(shop):
    _register(shop)
    shop.start_repair("p1", "t1")
    with pytest.raises(TransitionError):
        shop.complete_repair("p1", 0)

    shop.complete_repair("p1", 1.5)
    part = shop.get_part("p1")
    assert part.actual_hours == 1.5
    assert part.history[-1].actual_hours == 1.5
    counts = shop.get_technician("t1").stats.to_dict()["repaired_count"]
    assert counts == {"today": 1, "week": 1, "month": 1}


def test_start_repair_unknown_technician(shop):
    _register(shop)
    with pytest.raises(TransitionError):
        shop.start_repair("p1", "ghost")


def test_start_repair_falls_back_to_assigned_technician(shop):
    _register(shop)
    with pytest.raises(TransitionError):
        shop.start_repair("p1")

    shop.bulk_assign_parts(["p1"], "t2")
    part = shop.start_repair("p1")
    assert part.status == "in-repair"
    assert part.assigned_technician == "t2"


def test_mutations_notify_subscribers(shop):
    calls = []
    shop.subscribe(lambda: calls.append(1))
    _register(shop)
    shop.update_part("p1", location="Bay 2")
    shop.update_technician_stats("t1", {"efficiency": 50})
    assert len(calls) == 3

    shop.add_notification(type="info", title="Hi", message="there")
    assert len(calls) == 3


def test_timeline_merges_history_and_notes(shop, clock):
    _register(shop)
    clock.advance(minutes=5)
    shop.add_part_note("p1", "Looks corroded", "t1")
    clock.advance(minutes=5)
    shop.start_repair("p1", "t1")

    kinds = [(e["kind"], e.get("action")) for e in shop.part_timeline("p1")]
    assert kinds == [
        ("history", "Part entered shop"),
        ("history", "Note added"),
        ("note", None),
        ("history", "Repair started"),
    ]


def test_technician_stats_patch_and_badges(shop):
    tech = shop.update_technician_stats("t1", {"repaired_count": {"week": 10}, "efficiency": 91})
    stats = tech.stats.to_dict()
    assert stats["repaired_count"] == {"today": 0, "week": 10, "month": 0}
    assert stats["efficiency"] == 91

    awarded = shop.check_badges("t1")
    assert awarded == ["Speed Demon", "Efficiency Expert"]
    # awarded once only
    assert shop.check_badges("t1") == []
    assert shop.add_technician_badge("t1", "Speed Demon") is False
    assert shop.add_technician_badge("t1", "Mentor") is True
    assert shop.get_technician("t1").badge_names == ["Speed Demon", "Efficiency Expert", "Mentor"]


def test_stats_for_unknown_technician_is_noop(shop):
    assert shop.update_technician_stats("m1", {"efficiency": 50}) is None
    assert shop.add_technician_badge("ghost", "Mentor") is False


def test_snapshot_lists_current_state(shop, clock):
    _register(shop)
    shop.add_notification(type="info", title="Intake", message="p1 arrived")
    clock.advance(days=2)

    snap = shop.snapshot()
    assert [p["id"] for p in snap["parts"]] == ["p1"]
    assert snap["parts"][0]["days_in_status"] == 2
    assert [t["id"] for t in snap["technicians"]] == ["t1", "t2"]
    assert snap["notifications"][0]["title"] == "Intake"

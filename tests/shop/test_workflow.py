from datetime import datetime
from types import SimpleNamespace

import pytest

from modules.shop.workflow import (
    TERMINAL_STATUSES,
    TransitionError,
    can_transition,
    plan_transition,
)

NOW = datetime(2024, 6, 1, 12, 0, 0)


def _part(status, **kw):
    return SimpleNamespace(id="p1", status=status, assigned_technician=kw.get("tech"),
                           repair_started=kw.get("started"))


def test_terminal_statuses():
    assert TERMINAL_STATUSES == {"scrap", "shipped"}
    for target in ("unrepaired", "in-repair", "repaired"):
        assert not can_transition("shipped", target)
        assert not can_transition("scrap", target)

    with pytest.raises(TransitionError, match="no further status changes"):
        plan_transition(_part("shipped"), "repaired", NOW)


def test_start_requires_technician():
    with pytest.raises(TransitionError):
        plan_transition(_part("unrepaired"), "in-repair", NOW)

    plan = plan_transition(_part("unrepaired"), "in-repair", NOW, technician_id="t1")
    assert plan.action == "Repair started"
    assert plan.changes["assigned_technician"] == "t1"
    assert plan.changes["repair_started"] == NOW
    assert plan.changes["status_changed_at"] == NOW


def test_start_keeps_existing_repair_started():
    earlier = datetime(2024, 5, 1)
    plan = plan_transition(_part("unrepaired", tech="t1", started=earlier), "in-repair", NOW)
    assert "repair_started" not in plan.changes


def test_complete_records_hours_and_timestamp():
    plan = plan_transition(_part("in-repair", tech="t1"), "repaired", NOW, actual_hours=2.5)
    assert plan.changes["repair_completed"] == NOW
    assert plan.changes["actual_hours"] == 2.5
    assert plan.from_status == "in-repair"


def test_ship_only_from_repaired():
    with pytest.raises(TransitionError):
        plan_transition(_part("in-repair", tech="t1"), "shipped", NOW)
    plan = plan_transition(_part("repaired"), "shipped", NOW)
    assert plan.changes["shipped_date"] == NOW
    assert plan.action == "Part shipped"


@pytest.mark.parametrize("status", ["unrepaired", "in-repair"])
def test_scrap_from_active_states(status):
    plan = plan_transition(_part(status, tech="t1"), "scrap", NOW)
    assert plan.changes["scrapped_date"] == NOW
    assert plan.action == "Part scrapped"


def test_unknown_status_rejected():
    with pytest.raises(TransitionError):
        plan_transition(_part("unrepaired"), "lost", NOW)


def test_transition_error_is_value_error():
    assert issubclass(TransitionError, ValueError)

# tests/test_staffing.py
import pytest

from innkeep.analysis.staffing import (
    benchmark_text,
    calculate_required_staffing,
    covers_per_day,
    create_default_assumptions,
    rooms_sold_per_day,
)
from innkeep.domain.deal import StaffingAssumptions, StaffingOverrides
from innkeep.domain.rules import assess_staffing_gap, suggested_action
from innkeep.services.deal_analyzer import analyze_staffing
from innkeep.services.guardrails import staffing_hard_rule_flags
from innkeep.services.validation import prepare_deal
from fixtures.deals import full_hotel_deal, small_deal, small_deal_payload

# 40h week at 80% utilization
PRODUCTIVE_HOURS = 32.0


def _by_dept(rows):
    return {r.dept: r for r in rows}


def _breakfast_deal(roles=None):
    payload = small_deal_payload()
    payload["fnb_revenue"] = {
        "avg_guests_per_occ_room": 2,
        "meals": {"breakfast": {"guest_capture_pct": 50, "avg_check_guest": 20}},
    }
    if roles is not None:
        payload["payroll_model"] = {"roles": roles}
    return prepare_deal(payload)


def _breakfast_only_assumptions() -> StaffingAssumptions:
    return StaffingAssumptions(lunch_active=False, dinner_active=False, bar_active=False)


def test_default_assumptions_come_from_config():
    a = create_default_assumptions()

    assert a.hours_per_week == 40
    assert a.utilization_factor == pytest.approx(0.8)


def test_rooms_sold_per_day_follows_ramp():
    deal = small_deal()

    # 20 rooms at 75%, ramped to 80% in year 1
    assert rooms_sold_per_day(deal, 1) == pytest.approx(12.0)
    assert rooms_sold_per_day(deal, 3) == pytest.approx(15.0)


def test_front_office_needs_24x7_coverage():
    rows = _by_dept(calculate_required_staffing(small_deal(), 1))

    front = rows["frontOffice"]
    assert front.required_fte == pytest.approx(168 / PRODUCTIVE_HOURS)
    assert front.provided_fte == 0.0
    assert front.gap_fte == pytest.approx(5.25)


def test_front_office_line_dropped_when_not_24x7():
    rows = _by_dept(calculate_required_staffing(small_deal(), 1, StaffingAssumptions(front_office_24x7=False)))

    assert "frontOffice" not in rows


def test_housekeeping_from_rooms_per_attendant():
    rows = _by_dept(calculate_required_staffing(small_deal(), 1))

    # 12 rooms/day -> 1 attendant * 8h * 7 days
    assert rows["housekeeping"].required_fte == pytest.approx(56 / PRODUCTIVE_HOURS)

    overrides = StaffingOverrides(rooms_per_attendant=5)
    rows = _by_dept(calculate_required_staffing(small_deal(), 1, overrides=overrides))
    assert rows["housekeeping"].required_fte == pytest.approx(3 * 56 / PRODUCTIVE_HOURS)


def test_no_fnb_means_no_covers():
    deal = small_deal()

    assert covers_per_day(deal, 1) == {"breakfast": 0, "lunch": 0, "dinner": 0, "bar": 0}
    rows = _by_dept(calculate_required_staffing(deal, 1))
    assert rows["fbService"].required_fte == 0.0
    assert rows["kitchen"].required_fte == 0.0
    assert "wellness" not in rows


def test_breakfast_covers_drive_service_and_kitchen():
    deal = _breakfast_deal()

    # 12 rooms * 2 guests * 50% capture
    assert covers_per_day(deal, 1)["breakfast"] == 12
    rows = _by_dept(calculate_required_staffing(deal, 1, _breakfast_only_assumptions()))
    assert rows["fbService"].required_fte == pytest.approx(1 * 3 * 7 / PRODUCTIVE_HOURS)
    assert rows["kitchen"].required_fte == pytest.approx(1 * 3 * 7 / PRODUCTIVE_HOURS)
    assert "bar" not in rows


def test_period_override_replaces_covers_and_hours():
    overrides = StaffingOverrides.model_validate({"breakfast": {"covers_per_day": 100, "hours": 2}})
    rows = _by_dept(calculate_required_staffing(_breakfast_deal(), 1, _breakfast_only_assumptions(), overrides))

    # ceil(100 / 12) = 9 servers for 2 hours
    assert rows["fbService"].required_fte == pytest.approx(9 * 2 * 7 / PRODUCTIVE_HOURS)


def test_gap_is_required_minus_provided():
    deal = _breakfast_deal(
        roles=[
            {"dept": "rooms", "title": "Receptionist", "ftes": 5},
            {"dept": "fnb", "title": "Waiter", "ftes": 2},
        ]
    )
    rows = calculate_required_staffing(deal, 1, _breakfast_only_assumptions())

    for r in rows:
        assert r.gap_fte == pytest.approx(r.required_fte - r.provided_fte)
    by_dept = _by_dept(rows)
    assert by_dept["frontOffice"].provided_fte == 5
    assert by_dept["fbService"].gap_fte < 0


def test_spa_line_and_override():
    deal = full_hotel_deal()
    rows = _by_dept(calculate_required_staffing(deal, 3))

    wellness = rows["wellness"]
    assert wellness.required_fte == pytest.approx(12 * 7 / PRODUCTIVE_HOURS)
    assert wellness.provided_fte == 3
    assert assess_staffing_gap(wellness.gap_fte) == "overstaffed"

    overrides = StaffingOverrides.model_validate({"spa": {"treatments_per_day": 0}})
    assert "wellness" not in _by_dept(calculate_required_staffing(deal, 3, overrides=overrides))


def test_hard_rule_flags_for_unstaffed_hotel():
    rows = calculate_required_staffing(_breakfast_deal(), 1, _breakfast_only_assumptions())
    codes = {f["code"] for f in staffing_hard_rule_flags(rows)}

    assert "FRONT_OFFICE_24X7_UNCOVERED" in codes
    assert "FBSERVICE_UNSTAFFED" in codes
    assert "KITCHEN_UNSTAFFED" in codes


def test_housekeeping_productivity_flag():
    deal = _breakfast_deal(roles=[{"dept": "rooms", "title": "Housekeeping Attendant", "ftes": 10}])
    rows = calculate_required_staffing(deal, 1, _breakfast_only_assumptions())
    codes = {f["code"] for f in staffing_hard_rule_flags(rows)}

    # 1.75 FTE needed, 10 provided -> ~2.6 rooms per FTE
    assert "HOUSEKEEPING_PRODUCTIVITY_LOW" in codes


def test_gap_bands_and_actions():
    assert assess_staffing_gap(1.0) == "critical"
    assert assess_staffing_gap(0.3) == "understaffed"
    assert assess_staffing_gap(0.0) == "ok"
    assert assess_staffing_gap(-0.4) == "overstaffed"
    assert suggested_action(1.75).startswith("Hire +1.8 FTE")
    assert suggested_action(0.0) == "Staffing levels appropriate"
    assert suggested_action(-0.6).startswith("Consider reducing 0.6 FTE")


def test_analyze_staffing_report():
    report = analyze_staffing(small_deal(), 1)

    assert report["year"] == 1
    front = next(r for r in report["rows"] if r["dept"] == "frontOffice")
    assert front["status"] == "critical"
    assert front["benchmark"] == benchmark_text("frontOffice")
    assert report["totals"]["gap_fte"] == pytest.approx(
        report["totals"]["required_fte"] - report["totals"]["provided_fte"]
    )
    assert any(f["code"] == "FRONT_OFFICE_24X7_UNCOVERED" for f in report["flags"])

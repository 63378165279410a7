# tests/test_validation.py
import pytest
from pydantic import ValidationError

from innkeep.domain.deal import Budget, Deal
from innkeep.services.validation import inspect_deal_inputs, prepare_deal
from fixtures.deals import full_hotel_deal, small_deal, small_deal_payload


def test_percent_strings_are_accepted():
    payload = small_deal_payload()
    payload["assumptions"]["financing"]["interest_rate_pct"] = "6%"
    payload["assumptions"]["exit"]["sale"]["exit_cap_rate"] = " 8 % "

    deal = prepare_deal(payload)
    assert deal.assumptions.financing.interest_rate_pct == 6.0
    assert deal.assumptions.exit.sale.exit_cap_rate == 8.0


def test_missing_id_is_rejected():
    payload = small_deal_payload()
    payload.pop("id")

    with pytest.raises(ValidationError):
        prepare_deal(payload)


def test_ramp_must_have_four_years():
    with pytest.raises(ValidationError):
        prepare_deal(small_deal_payload(ramp={"revenue_ramp": [0.8, 0.9, 1.0]}))


def test_unknown_exit_strategy_is_rejected():
    with pytest.raises(ValidationError):
        prepare_deal(small_deal_payload(exit={"strategy": "FLIP"}))


def test_budget_grand_total_derived_with_contingency():
    budget = Budget(net_purchase_price=1_000_000, construction_costs=500_000, contingency_pct=10)

    assert budget.contingency_base == pytest.approx(1_500_000)
    assert budget.contingency_amount == pytest.approx(150_000)
    assert budget.grand_total == pytest.approx(1_650_000)
    # a supplied total wins
    assert Budget(net_purchase_price=1_000_000, grand_total=900_000).grand_total == 900_000


def test_full_deal_project_cost():
    assert full_hotel_deal().project_cost == pytest.approx(17_750_000 * 1.05)


def test_empty_deal_reports_missing_sections():
    report = inspect_deal_inputs(Deal(id="empty"))

    assert report["complete"] is False
    assert report["missing"] == ["room_types", "budget", "room_revenue", "financing"]
    assert report["defaulted_to_zero"] == ["fnb_revenue", "other_revenue", "payroll_model", "opex"]


def test_complete_deal_has_no_missing_sections():
    report = inspect_deal_inputs(full_hotel_deal())

    assert report["complete"] is True
    assert report["missing"] == []
    assert report["defaulted_to_zero"] == []


def test_inconsistent_financing_warns():
    deal = small_deal(
        financing={"ltc_pct": 60, "interest_rate_pct": -1, "amort_years": 20, "loan_term_years": 2, "io_period_years": 3}
    )
    warnings = inspect_deal_inputs(deal)["warnings"]

    assert any("Interest-only period" in w for w in warnings)
    assert any("negative" in w for w in warnings)
    assert any("balloon" in w for w in warnings)


def test_exit_beyond_projection_warns():
    deal = small_deal(exit={"strategy": "SALE", "sale": {"exit_year": 40}})

    assert any("beyond" in w for w in inspect_deal_inputs(deal)["warnings"])


def test_budget_lines_pick_up_purchase_price():
    payload = small_deal_payload()
    payload["purchase_price"] = 2_000_000
    payload["budget"] = {"construction_costs": 500_000, "contingency_pct": 10}
    deal = prepare_deal(payload)

    assert deal.budget.net_purchase_price == pytest.approx(2_000_000)
    assert deal.project_cost == pytest.approx(2_750_000)


def test_entered_budget_figures_win_over_purchase_price():
    payload = small_deal_payload()
    payload["purchase_price"] = 3_000_000
    assert prepare_deal(payload).project_cost == pytest.approx(2_000_000)

    payload["budget"] = {"net_purchase_price": 1_500_000}
    assert prepare_deal(payload).project_cost == pytest.approx(1_500_000)


def test_no_budget_and_no_price_costs_nothing():
    payload = small_deal_payload()
    payload.pop("budget")

    assert Deal.model_validate(payload).project_cost == 0.0

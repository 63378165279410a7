# tests/test_cashflow.py
import numpy as np
import pytest
from hypothesis import given, settings, strategies as st

from innkeep.adapters.config import config
from innkeep.analysis.cashflow import (
    build_cashflow_statement,
    compute_levered_cashflow_by_year,
    compute_project_irrs,
    compute_returns_summary,
    compute_unlevered_cashflow_by_year,
)
from innkeep.analysis.exit import calculate_refinance_summary, calculate_sale_summary, net_sale_proceeds
from innkeep.domain.deal import SaleSettings
from innkeep.domain.metrics import compute_dscr, equity_multiple, npv, safe_irr
from innkeep.services.validation import prepare_deal

from fixtures.deals import full_hotel_deal, small_deal, small_deal_payload, unfinanced_deal


def test_year_zero_carries_only_capex_and_draw():
    deal = small_deal()
    ucf = compute_unlevered_cashflow_by_year(deal)
    lcf = compute_levered_cashflow_by_year(deal)

    assert ucf.ebitda["y0"] == 0.0
    assert ucf.cash_taxes["y0"] == 0.0
    assert ucf.capex["y0"] == pytest.approx(-2_000_000)
    assert ucf.unlevered_cf["y0"] == pytest.approx(-2_000_000)
    assert lcf.debt_draw["y0"] == pytest.approx(1_200_000)
    assert lcf.interest_expense["y0"] == 0.0
    assert lcf.levered_cf["y0"] == pytest.approx(-800_000)


def test_levered_equals_unlevered_plus_debt_flows():
    for deal in (small_deal(), full_hotel_deal()):
        ucf = compute_unlevered_cashflow_by_year(deal)
        lcf = compute_levered_cashflow_by_year(deal)
        for k in ucf.years:
            expected = (
                ucf.unlevered_cf[k]
                + lcf.debt_draw[k]
                + lcf.interest_expense[k]
                + lcf.principal_repayment[k]
            )
            assert lcf.levered_cf[k] == pytest.approx(expected)


@settings(max_examples=25, deadline=None)
@given(
    ltc=st.floats(min_value=0.0, max_value=90.0),
    rate=st.floats(min_value=0.0, max_value=12.0),
    io=st.integers(min_value=0, max_value=4),
    exit_year=st.integers(min_value=1, max_value=12),
    strategy=st.sampled_from(["SALE", "REFINANCE", "HOLD_FOREVER"]),
)
def test_cashflow_identity_holds_for_any_financing(ltc, rate, io, exit_year, strategy):
    deal = small_deal(
        financing={"ltc_pct": ltc, "interest_rate_pct": rate, "amort_years": 20, "loan_term_years": 10, "io_period_years": io},
        exit={
            "strategy": strategy,
            "sale": {"exit_year": exit_year},
            "refinance": {"refinance_year": exit_year},
        },
    )
    ucf = compute_unlevered_cashflow_by_year(deal)
    lcf = compute_levered_cashflow_by_year(deal)

    assert ucf.ebitda["y0"] == 0.0
    assert ucf.cash_taxes["y0"] == 0.0
    for k in ucf.years:
        assert lcf.levered_cf[k] == pytest.approx(
            ucf.unlevered_cf[k] + lcf.debt_draw[k] + lcf.interest_expense[k] + lcf.principal_repayment[k]
        )


def test_unlevered_is_sum_of_components():
    ucf = compute_unlevered_cashflow_by_year(full_hotel_deal())

    for k in ucf.years:
        assert ucf.unlevered_cf[k] == pytest.approx(
            ucf.ebitda[k] + ucf.cash_taxes[k] + ucf.capex[k] + ucf.net_sale_proceeds[k]
        )
        assert ucf.cash_taxes[k] <= 0.0


def test_loan_is_fully_repaid_by_the_exit():
    deal = small_deal()
    lcf = compute_levered_cashflow_by_year(deal)

    assert sum(lcf.principal_repayment.values()) == pytest.approx(-1_200_000)
    # nothing after the year-5 sale
    for i in range(6, config.HORIZON_YEARS + 1):
        assert lcf.levered_cf[f"y{i}"] == 0.0


def test_sale_proceeds_land_in_exit_year():
    deal = small_deal()
    ucf = compute_unlevered_cashflow_by_year(deal)
    sale = calculate_sale_summary(deal)

    assert ucf.net_sale_proceeds["y5"] == pytest.approx(sale.net_sale_proceeds)
    assert sum(v for k, v in ucf.net_sale_proceeds.items() if k != "y5") == 0.0
    assert sale.development_profit == pytest.approx(sale.net_sale_proceeds - 2_000_000)


def test_net_sale_proceeds_zero_for_non_positive_noi():
    sale = SaleSettings(exit_year=5, exit_cap_rate=8, selling_costs_pct=2)

    assert net_sale_proceeds(0.0, sale) == 0.0
    assert net_sale_proceeds(-10.0, sale) == 0.0
    assert net_sale_proceeds(80_000, sale) == pytest.approx(980_000)


def test_refinance_replaces_debt_at_refinance_year():
    deal = small_deal(
        exit={"strategy": "REFINANCE", "refinance": {"refinance_year": 4, "ltv_at_refinance": 65, "refinance_costs_pct": 2}}
    )
    lcf = compute_levered_cashflow_by_year(deal)
    summary = calculate_refinance_summary(deal)

    assert summary.new_loan_amount == pytest.approx(summary.property_value * 0.65)
    assert lcf.debt_draw["y4"] == pytest.approx(summary.new_loan_amount - summary.refinance_costs)
    assert lcf.refinance_proceeds["y4"] == pytest.approx(summary.net_cash_out)
    assert summary.net_cash_out == pytest.approx(
        summary.new_loan_amount - summary.refinance_costs - summary.outstanding_balance
    )
    # no sale under a refinance exit
    assert all(v == 0.0 for v in compute_unlevered_cashflow_by_year(deal).net_sale_proceeds.values())


def test_hold_forever_repays_at_maturity():
    deal = small_deal(exit={"strategy": "HOLD_FOREVER"})
    lcf = compute_levered_cashflow_by_year(deal)

    # 10-year term inside the 10-year projection
    assert sum(lcf.principal_repayment.values()) == pytest.approx(-1_200_000)
    assert lcf.principal_repayment["y10"] < 0


def test_unfinanced_deal_levered_matches_unlevered():
    deal = unfinanced_deal()
    ucf = compute_unlevered_cashflow_by_year(deal)
    lcf = compute_levered_cashflow_by_year(deal)

    assert lcf.levered_cf == ucf.unlevered_cf
    assert ucf.unlevered_cf["y0"] == pytest.approx(-2_000_000)
    ebt_y3 = ucf.ebitda["y3"] - ucf.depreciation
    assert ucf.cash_taxes["y3"] == pytest.approx(-ebt_y3 * config.DEFAULT_TAX_RATE_PCT / 100.0)


def test_zero_tax_rate_is_respected():
    fin = {
        "ltc_pct": 60,
        "interest_rate_pct": 6,
        "amort_years": 20,
        "loan_term_years": 10,
        "io_period_years": 2,
        "tax_rate_on_ebt": 0,
    }
    ucf = compute_unlevered_cashflow_by_year(small_deal(financing=fin))

    assert all(v == 0.0 for v in ucf.cash_taxes.values())


def test_irrs_defined_for_small_deal():
    irrs = compute_project_irrs(small_deal())

    assert irrs.unlevered_irr is not None
    assert irrs.levered_irr is not None
    # leverage at 6% on an asset yielding well above that lifts the equity return
    assert irrs.levered_irr > irrs.unlevered_irr


def test_irr_through_year_index_truncates():
    # y0 outlay against two years of operations only
    assert compute_project_irrs(small_deal(), through_year_index=2).unlevered_irr < 0


def test_cashflow_statement_rows_and_kpis():
    stmt = build_cashflow_statement(small_deal())

    ids = [r.id for r in stmt.rows]
    assert ids[0] == "total-revenue"
    assert ids[-1] == "levered-cf"
    assert len(stmt.rows) == 12
    assert {r.group for r in stmt.rows} == {"memo", "unlevered", "levered"}
    assert stmt.exit_year == 5
    levered = next(r for r in stmt.rows if r.id == "levered-cf")
    assert stmt.kpis.levered_10y == pytest.approx(sum(levered.values.values()))
    assert 0.0 < stmt.kpis.avg_ebitda_margin <= 1.0


def test_returns_summary_small_deal():
    summary = compute_returns_summary(small_deal())

    assert summary.project_cost == pytest.approx(2_000_000)
    assert summary.loan_amount == pytest.approx(1_200_000)
    assert summary.equity == pytest.approx(800_000)
    assert summary.stabilized_year == 3
    assert summary.yield_on_cost == pytest.approx(summary.stabilized_ebitda / 2_000_000)
    assert set(summary.dscr_by_year) == {"y1", "y2", "y3", "y4", "y5"}
    assert summary.min_dscr == min(summary.dscr_by_year.values())
    # IO years: EBITDA / 72k
    assert summary.dscr_by_year["y1"] == pytest.approx(
        compute_unlevered_cashflow_by_year(small_deal()).ebitda["y1"] / 72_000
    )
    assert summary.equity_multiple is not None and summary.equity_multiple > 1.0
    assert summary.assessments["min_dscr"] in {"good", "ok", "weak"}


def test_returns_summary_without_financing_has_no_dscr():
    summary = compute_returns_summary(unfinanced_deal())

    assert summary.loan_amount == 0.0
    assert summary.dscr_by_year == {}
    assert summary.min_dscr is None
    assert summary.assessments["min_dscr"] == "n/a"


# ----------------------------
# metrics
# ----------------------------

def test_safe_irr_simple_case():
    assert safe_irr([-100.0, 110.0]) == pytest.approx(0.10)


def test_safe_irr_needs_sign_change():
    assert safe_irr([100.0, 50.0]) is None
    assert safe_irr([-100.0, -50.0]) is None
    assert safe_irr([]) is None
    assert safe_irr([-100.0, float("nan")]) is None


def test_safe_irr_zeroes_npv():
    flows = [-1_000.0, 100.0, 100.0, 100.0, 1_100.0]
    r = safe_irr(flows)

    assert r is not None
    assert npv(r, flows) == pytest.approx(0.0, abs=1e-6)


def test_equity_multiple():
    assert equity_multiple([-100.0, 50.0, 100.0]) == pytest.approx(1.5)
    assert equity_multiple([10.0, 20.0]) is None


def test_compute_dscr_zero_debt_is_inf():
    dscr = compute_dscr(np.array([100.0, 100.0]), np.array([50.0, 0.0]))

    assert dscr[0] == pytest.approx(2.0)
    assert np.isinf(dscr[1])


@pytest.mark.parametrize("exit_year", [0, -1])
def test_exit_year_before_operations_is_modelled_as_hold(exit_year):
    deal = small_deal(exit={"strategy": "SALE", "sale": {"exit_year": exit_year}})
    ucf = compute_unlevered_cashflow_by_year(deal)
    lcf = compute_levered_cashflow_by_year(deal)

    assert lcf.debt_draw["y0"] == pytest.approx(1_200_000)
    # the loan is still repaid, at maturity
    assert sum(lcf.principal_repayment.values()) == pytest.approx(-1_200_000)
    assert lcf.principal_repayment["y10"] < 0
    assert all(v == 0.0 for v in ucf.net_sale_proceeds.values())
    assert ucf.ebitda[f"y{config.HORIZON_YEARS}"] > 0

    returns = compute_returns_summary(deal)
    assert "y1" in returns.dscr_by_year


def test_purchase_price_alone_drives_project_cost():
    """20 rooms at 100 ADR / 75%, 2M purchase price, 60% LTC: no budget entered."""
    payload = small_deal_payload()
    payload.pop("budget")
    payload["purchase_price"] = 2_000_000
    deal = prepare_deal(payload)
    ucf = compute_unlevered_cashflow_by_year(deal)
    lcf = compute_levered_cashflow_by_year(deal)

    assert deal.project_cost == pytest.approx(2_000_000)
    assert ucf.capex["y0"] == pytest.approx(-2_000_000)
    assert lcf.debt_draw["y0"] == pytest.approx(1_200_000)
    assert lcf.levered_cf["y0"] == pytest.approx(-800_000)
    assert lcf.interest_expense["y1"] == pytest.approx(-72_000)
    assert lcf.principal_repayment["y1"] == 0.0

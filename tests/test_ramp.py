# tests/test_ramp.py
import pytest
from hypothesis import given, strategies as st

from innkeep.analysis.ramp import (
    build_multipliers,
    multipliers_for_deal,
    ramped_topline_factor,
    year_index_factors,
)
from fixtures.deals import small_deal


def test_default_ramp_reads_curve_then_one():
    m = build_multipliers(10, [0.8, 0.9, 1.0, 1.0], [1.1, 1.05, 1.0, 1.0], 0.03, 0.02)

    assert m.years == list(range(1, 11))
    assert m.revenue_ramp[:4] == [0.8, 0.9, 1.0, 1.0]
    assert m.revenue_ramp[4:] == [1.0] * 6
    assert m.cost_ramp[0] == pytest.approx(1.1)
    assert m.inflation[0] == pytest.approx(1.02)
    assert m.topline_growth[2] == pytest.approx(1.03**3)


def test_year_zero_and_out_of_range_read_as_one():
    m = build_multipliers(3, [0.5, 0.6, 0.7, 0.8], [1.2, 1.1, 1.0, 1.0], 0.05, 0.05)

    assert m.at("revenue_ramp", 0) == 1.0
    assert m.at("inflation", 99) == 1.0
    assert ramped_topline_factor(m, 0) == 1.0


def test_topline_factor_uses_ramp_then_growth():
    m = build_multipliers(10, [0.8, 0.9, 1.0, 1.0], [1.0] * 4, 0.03, 0.0)

    assert ramped_topline_factor(m, 1) == pytest.approx(0.8)
    assert ramped_topline_factor(m, 4) == pytest.approx(1.0)
    assert ramped_topline_factor(m, 5) == pytest.approx(1.03**5)


def test_multipliers_for_deal_converts_percent_inputs():
    m = multipliers_for_deal(small_deal(), years=5)

    assert len(m.years) == 5
    assert m.inflation[0] == pytest.approx(1.02)
    assert m.topline_growth[0] == pytest.approx(1.03)


def test_year_index_factors_start_at_one():
    factors = year_index_factors(build_multipliers(2, [0.8, 0.9, 1.0, 1.0], [1.1, 1.05, 1.0, 1.0], 0.03, 0.02))

    for series in factors.values():
        assert series["y0"] == 1.0
        assert list(series) == ["y0", "y1", "y2"]


@given(
    years=st.integers(min_value=1, max_value=30),
    growth=st.floats(min_value=0.0, max_value=0.15),
    inflation=st.floats(min_value=0.0, max_value=0.15),
)
def test_indices_compound_and_never_fall(years, growth, inflation):
    m = build_multipliers(years, [0.8, 0.9, 1.0, 1.0], [1.1, 1.05, 1.0, 1.0], growth, inflation)

    assert len(m.inflation) == years
    for a, b in zip(m.inflation, m.inflation[1:]):
        assert b >= a
    for a, b in zip(m.topline_growth, m.topline_growth[1:]):
        assert b >= a
    assert all(r == 1.0 for r in m.revenue_ramp[4:])
    assert all(c == 1.0 for c in m.cost_ramp[4:])

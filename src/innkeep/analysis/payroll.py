# src/innkeep/analysis/payroll.py
from __future__ import annotations

from typing import Dict, Sequence

from innkeep.domain.deal import DEPT_KEYS, PayrollRole
from innkeep.domain.series import safe_div
from innkeep.domain.underwriting import DeptPayroll, PayrollResults, RolePayroll


def role_annual_cost(role: PayrollRole) -> float:
    """Fully loaded annual cost: FTEs * salary * (1 + employer on-costs)."""
    return role.ftes * role.base_salary * (1.0 + role.employer_cost_pct / 100.0)


def calc_advanced(roles: Sequence[PayrollRole], rooms_count: int) -> PayrollResults:
    by_department: Dict[str, DeptPayroll] = {k: DeptPayroll() for k in DEPT_KEYS}
    by_role: Dict[str, RolePayroll] = {}

    total_annual = 0.0
    total_ftes = 0.0
    for idx, role in enumerate(roles):
        cost = role_annual_cost(role)
        # roles without an id are keyed by position
        by_role[role.id or f"role-{idx}"] = RolePayroll(
            total=cost, ftes=role.ftes, base_salary=role.base_salary
        )
        dept = by_department[role.dept]
        dept.total += cost
        dept.ftes += role.ftes
        total_annual += cost
        total_ftes += role.ftes

    return PayrollResults(
        total_annual=total_annual,
        monthly_payroll=total_annual / 12.0,
        per_room_annual=safe_div(total_annual, rooms_count),
        total_ftes=total_ftes,
        by_department=by_department,
        by_role=by_role,
    )

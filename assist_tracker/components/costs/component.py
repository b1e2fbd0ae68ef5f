"""
Cost component - Potential saving and out-of-pocket cost.

Pure functions, no I/O. Malformed monetary caps degrade to a saving of zero
so cost display stays available with dirty catalog data.

Invariants:
- potential_saving never raises
- out_of_pocket_cost is never negative
- out_of_pocket_cost is zero when the patient has no drug
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

from assist_tracker.domain.entities import PatientDrug, Program

from .models import CostSummary

ZERO = Decimal("0")

_NON_NUMERIC = re.compile(r"[^0-9.]")
# Leading number only: "1.2.3" reads as 1.2, "." reads as nothing.
_LEADING_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")


def parse_amount(raw: str | None) -> Decimal:
    """Best-effort extraction of a non-negative amount from free text."""
    if not raw:
        return ZERO

    cleaned = _NON_NUMERIC.sub("", raw)
    match = _LEADING_NUMBER.match(cleaned)
    if not match:
        return ZERO

    try:
        return Decimal(match.group(0))
    except InvalidOperation:
        return ZERO


def potential_saving(program: Program) -> Decimal:
    """Portion of drug cost a program's monetary cap can offset."""
    return parse_amount(program.monetary_cap)


def out_of_pocket_cost(program: Program, patient_drug: PatientDrug | None) -> Decimal:
    """Yearly drug cost minus potential saving, floored at zero."""
    if patient_drug is None:
        return ZERO

    remaining = patient_drug.yearly_price - potential_saving(program)
    return remaining if remaining > ZERO else ZERO


def cost_summary(program: Program, patient_drug: PatientDrug | None) -> CostSummary | None:
    if patient_drug is None:
        return None

    return CostSummary(
        program_id=program.id,
        yearly_drug_cost=patient_drug.yearly_price,
        potential_saving=potential_saving(program),
        out_of_pocket_cost=out_of_pocket_cost(program, patient_drug),
    )

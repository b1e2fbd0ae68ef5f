"""
Cost component models.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class CostSummary:
    """Yearly cost breakdown for one program and the patient's drug."""

    program_id: str
    yearly_drug_cost: Decimal
    potential_saving: Decimal
    out_of_pocket_cost: Decimal

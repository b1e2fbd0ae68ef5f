"""
Costs component - Potential saving and out-of-pocket cost calculation.
"""

from .component import (
    cost_summary,
    out_of_pocket_cost,
    parse_amount,
    potential_saving,
)
from .models import CostSummary

__all__ = [
    "cost_summary",
    "out_of_pocket_cost",
    "parse_amount",
    "potential_saving",
    "CostSummary",
]

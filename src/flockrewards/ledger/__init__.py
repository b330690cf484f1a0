# src/flockrewards/ledger/__init__.py
"""
Reward allocation core.

Everything in this package is a pure function of its inputs:
  - tier_split: reward pool -> (training tier, validator tier)
  - fractions: tier sub-pool -> per-participant fractions
  - owner_split: participant share -> (owner, delegators)
  - rewards: orchestration of the three stages
  - validation: pre-flight checks (score sums, structural issues)
  - codec: wire (camelCase JSON) <-> dataclasses
"""

from __future__ import annotations

from flockrewards.ledger.errors import RewardInputError
from flockrewards.ledger.fractions import allocate_fractions
from flockrewards.ledger.owner_split import split_owner_delegator
from flockrewards.ledger.rewards import compute_allocation
from flockrewards.ledger.tier_split import split_tiers

__all__ = [
    "RewardInputError",
    "allocate_fractions",
    "compute_allocation",
    "split_owner_delegator",
    "split_tiers",
]

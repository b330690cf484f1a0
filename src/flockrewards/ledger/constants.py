# src/flockrewards/ledger/constants.py
from __future__ import annotations

"""Reward calculator constants.

Reference defaults (daily epoch):
- Daily reward pool R0: 309,157.68
- gamma = 0 (pure direct-stake tier split)
- alpha = 1.0 for both tiers (linear stake influence)
- sigma = 0.4 owner retention
"""

# Performance scores within a tier are expected to sum to 1 within this tolerance.
SCORE_SUM_TOLERANCE: float = 1e-9

DEFAULT_REWARD_POOL: float = 309_157.68
DEFAULT_GAMMA: float = 0.0
DEFAULT_ALPHA_TRAINING: float = 1.0
DEFAULT_ALPHA_VALIDATOR: float = 1.0
DEFAULT_SIGMA: float = 0.4

# Conventional ranges. Values outside are accepted by the math and only reported.
GAMMA_RANGE = (0.0, 0.5)
SIGMA_RANGE = (0.0, 1.0)

TIER_NODE: str = "node"
TIER_VALIDATOR: str = "validator"
TIERS = (TIER_NODE, TIER_VALIDATOR)

TIER_DISPLAY_NAMES = {
    TIER_NODE: "Node",
    TIER_VALIDATOR: "Validator",
}

# Diagnostic codes for degenerate (zero denominator) inputs.
DIAG_NO_DIRECT_STAKE: str = "no_direct_stake"
DIAG_ZERO_TIER_WEIGHT: str = "zero_tier_weight"
DIAG_ZERO_STAKE_PARTICIPANT: str = "zero_stake_participant"

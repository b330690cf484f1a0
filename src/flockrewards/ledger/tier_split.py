# src/flockrewards/ledger/tier_split.py
from __future__ import annotations

import math
from typing import Iterable

from flockrewards.ledger.errors import RewardInputError
from flockrewards.ledger.types import Participant, TierSplit


def direct_stake_total(participants: Iterable[Participant]) -> float:
    """Aggregate owner (direct) stake of a tier; delegated stake is excluded."""
    return sum((float(p.owner_stake) for p in participants), 0.0)


def _node_fraction(nodes: float, validators: float) -> float:
    denom = nodes + validators
    if math.isfinite(denom):
        return nodes / denom
    # Both totals are finite but their sum is not: rescale by the larger one.
    m = max(nodes, validators)
    n, v = nodes / m, validators / m
    return n / (n + v)


def split_tiers(
    reward_pool: float,
    gamma: float,
    node_direct_total: float,
    validator_direct_total: float,
) -> TierSplit:
    """Split the reward pool between the training-node tier and the validator tier.

        training  = R0 * (gamma + (1 - 2*gamma) * nodes / (nodes + validators))
        validator = R0 - training

    gamma is not clamped. With no direct stake in either tier the training
    tier gets 0 and the validator tier absorbs the whole pool.
    """
    r0 = float(reward_pool)
    g = float(gamma)
    nodes = float(node_direct_total)
    validators = float(validator_direct_total)

    if not (math.isfinite(nodes) and math.isfinite(validators)):
        raise RewardInputError(
            "invalid_stake",
            "direct_stake_not_finite",
            {"nodeDirectSum": nodes, "validatorDirectSum": validators},
        )

    if nodes + validators == 0:
        fraction_nodes = 0.0
        training = 0.0
    else:
        fraction_nodes = _node_fraction(nodes, validators)
        training = r0 * (g + (1.0 - 2.0 * g) * fraction_nodes)

    return TierSplit(
        node_direct_sum=nodes,
        validator_direct_sum=validators,
        fraction_nodes=fraction_nodes,
        training_reward=training,
        validator_reward=r0 - training,
    )

# src/flockrewards/ledger/rewards.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Tuple

from flockrewards.ledger.constants import (
    DEFAULT_ALPHA_TRAINING,
    DEFAULT_ALPHA_VALIDATOR,
    DEFAULT_GAMMA,
    DEFAULT_REWARD_POOL,
    DEFAULT_SIGMA,
    DIAG_NO_DIRECT_STAKE,
    DIAG_ZERO_STAKE_PARTICIPANT,
    DIAG_ZERO_TIER_WEIGHT,
    SCORE_SUM_TOLERANCE,
)
from flockrewards.ledger.fractions import allocate_fractions
from flockrewards.ledger.owner_split import split_owner_delegator
from flockrewards.ledger.tier_split import direct_stake_total, split_tiers
from flockrewards.ledger.types import (
    AllocationResult,
    Diagnostic,
    Participant,
    ParticipantAllocation,
    RewardInputs,
    Tier,
    TierAllocation,
    default_label,
)
from flockrewards.ledger.validation import check_score_sums

Json = Dict[str, Any]

logger = logging.getLogger("flockrewards.ledger.rewards")


def allocate_tier(
    tier: Tier,
    participants: Tuple[Participant, ...],
    tier_reward: float,
    alpha: float,
) -> Tuple[TierAllocation, List[Diagnostic]]:
    """Run the fraction and owner/delegator stages for one tier."""
    warnings: List[Diagnostic] = []

    fractions = allocate_fractions(
        [p.performance_score for p in participants],
        [p.total_stake for p in participants],
        alpha,
    )

    if participants and not any(fractions):
        warnings.append(
            Diagnostic(
                DIAG_ZERO_TIER_WEIGHT,
                f"{tier.value} tier has zero weighted stake; all fractions are 0",
                tier=tier,
                details={"tierReward": float(tier_reward), "alpha": float(alpha)},
            )
        )

    out: List[ParticipantAllocation] = []
    for i, (p, fraction) in enumerate(zip(participants, fractions)):
        before_split = fraction * float(tier_reward)
        split = split_owner_delegator(before_split, p.owner_stake, p.delegator_stake, p.sigma)

        if p.total_stake == 0:
            warnings.append(
                Diagnostic(
                    DIAG_ZERO_STAKE_PARTICIPANT,
                    "participant has zero total stake; its share is forfeited",
                    tier=tier,
                    index=i,
                    details={"forfeited": before_split},
                )
            )

        out.append(
            ParticipantAllocation(
                label=p.label if p.label is not None else default_label(tier, i),
                owner_stake=float(p.owner_stake),
                delegator_stake=float(p.delegator_stake),
                total_stake=float(p.total_stake),
                performance_score=float(p.performance_score),
                sigma=float(p.sigma),
                fraction=fraction,
                total_reward_before_split=before_split,
                owner_reward=split.owner_reward,
                delegator_reward=split.delegator_reward,
            )
        )

    allocation = TierAllocation(tier=tier, tier_reward=float(tier_reward), alpha=float(alpha), participants=tuple(out))
    return allocation, warnings


def compute_allocation(inputs: RewardInputs, *, tolerance: float = SCORE_SUM_TOLERANCE) -> AllocationResult:
    """Distribute the reward pool across both tiers, their participants and delegators.

    Stage 1 splits R0 by aggregate direct stake. Stage 2 weights each
    participant by performance_score * total_stake**alpha within its tier.
    Stage 3 divides each participant's share between owner and delegators.

    The score-sum precondition is checked and reported in score_checks but
    never blocks the computation.
    """
    split = split_tiers(
        inputs.reward_pool,
        inputs.gamma,
        direct_stake_total(inputs.nodes),
        direct_stake_total(inputs.validators),
    )

    warnings: List[Diagnostic] = []
    if split.node_direct_sum + split.validator_direct_sum == 0:
        warnings.append(
            Diagnostic(
                DIAG_NO_DIRECT_STAKE,
                "no direct stake in either tier; validator tier absorbs the whole pool",
                details={"R0": float(inputs.reward_pool)},
            )
        )

    nodes, node_warnings = allocate_tier(Tier.NODE, inputs.nodes, split.training_reward, inputs.alpha_training)
    validators, validator_warnings = allocate_tier(
        Tier.VALIDATOR, inputs.validators, split.validator_reward, inputs.alpha_validator
    )
    warnings.extend(node_warnings)
    warnings.extend(validator_warnings)

    for w in warnings:
        logger.debug("degenerate input: %s tier=%s index=%s", w.code, w.tier, w.index)

    return AllocationResult(
        split=split,
        nodes=nodes,
        validators=validators,
        score_checks=check_score_sums(inputs, tolerance=tolerance),
        warnings=tuple(warnings),
    )


def reference_inputs() -> RewardInputs:
    """The reference calculator's default scenario: three nodes, three validators."""
    return RewardInputs(
        reward_pool=DEFAULT_REWARD_POOL,
        gamma=DEFAULT_GAMMA,
        alpha_training=DEFAULT_ALPHA_TRAINING,
        alpha_validator=DEFAULT_ALPHA_VALIDATOR,
        nodes=(
            Participant(owner_stake=3000.0, delegator_stake=1000.0, performance_score=0.501435, sigma=DEFAULT_SIGMA),
            Participant(owner_stake=3500.0, delegator_stake=0.0, performance_score=0.498565, sigma=DEFAULT_SIGMA),
            Participant(owner_stake=0.0, delegator_stake=0.0, performance_score=0.0, sigma=DEFAULT_SIGMA),
        ),
        validators=(
            Participant(owner_stake=3000.0, delegator_stake=0.0, performance_score=0.472768, sigma=DEFAULT_SIGMA),
            Participant(owner_stake=6000.0, delegator_stake=0.0, performance_score=0.280226, sigma=DEFAULT_SIGMA),
            Participant(owner_stake=3000.0, delegator_stake=0.0, performance_score=0.247006, sigma=DEFAULT_SIGMA),
        ),
    )


def participant_rows(result: AllocationResult) -> List[Json]:
    """Flatten both tiers into one row per participant (nodes first)."""
    rows: List[Json] = []
    for tier_alloc in (result.nodes, result.validators):
        for p in tier_alloc.participants:
            rows.append(
                {
                    "name": p.label,
                    "tier": tier_alloc.tier.value,
                    "owner_stake": p.owner_stake,
                    "delegator_stake": p.delegator_stake,
                    "performance_score": p.performance_score,
                    "sigma": p.sigma,
                    "reward": p.total_reward_before_split,
                    "owner_reward": p.owner_reward,
                    "delegator_reward": p.delegator_reward,
                }
            )
    return rows

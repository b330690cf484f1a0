"""flockrewards.ledger.types

Immutable value types flowing through the allocation pipeline.

Inputs:
  - Participant: one owner entity (node or validator) and its delegators
  - RewardInputs: reward pool, tier-split bias, per-tier alphas, both tiers

Outputs:
  - TierSplit: step-1 breakdown of the pool between tiers
  - OwnerSplit: step-3 breakdown of one participant's share
  - ParticipantAllocation / TierAllocation / AllocationResult
  - ScoreSumCheck / Diagnostic: non-fatal diagnostics returned with results

All types are frozen; a computation builds them fresh and never mutates them,
so results can be shared across threads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from flockrewards.ledger.constants import TIER_DISPLAY_NAMES, TIER_NODE, TIER_VALIDATOR

Json = Dict[str, Any]


class Tier(str, Enum):
    NODE = TIER_NODE
    VALIDATOR = TIER_VALIDATOR

    @property
    def display_name(self) -> str:
        return TIER_DISPLAY_NAMES[self.value]


def default_label(tier: Tier, index: int) -> str:
    """Reference-style label: "Node A", "Validator C", then "Node 27" past Z."""
    i = int(index)
    suffix = chr(ord("A") + i) if 0 <= i < 26 else str(i + 1)
    return f"{tier.display_name} {suffix}"


@dataclass(frozen=True, slots=True)
class Participant:
    owner_stake: float
    delegator_stake: float
    performance_score: float
    sigma: float
    label: Optional[str] = None

    @property
    def total_stake(self) -> float:
        return self.owner_stake + self.delegator_stake

    def to_json(self) -> Json:
        out: Json = {
            "ownerStake": self.owner_stake,
            "delegatorStake": self.delegator_stake,
            "performanceScore": self.performance_score,
            "sigma": self.sigma,
        }
        if self.label is not None:
            out["label"] = self.label
        return out


@dataclass(frozen=True, slots=True)
class RewardInputs:
    reward_pool: float
    gamma: float
    alpha_training: float
    alpha_validator: float
    nodes: Tuple[Participant, ...] = field(default_factory=tuple)
    validators: Tuple[Participant, ...] = field(default_factory=tuple)

    def participants(self, tier: Tier) -> Tuple[Participant, ...]:
        return self.nodes if tier is Tier.NODE else self.validators

    def alpha(self, tier: Tier) -> float:
        return self.alpha_training if tier is Tier.NODE else self.alpha_validator

    def to_json(self) -> Json:
        return {
            "R0": self.reward_pool,
            "gamma": self.gamma,
            "alphaTrainingTier": self.alpha_training,
            "alphaValidatorTier": self.alpha_validator,
            "nodeTier": [p.to_json() for p in self.nodes],
            "validatorTier": [p.to_json() for p in self.validators],
        }


@dataclass(frozen=True, slots=True)
class TierSplit:
    node_direct_sum: float
    validator_direct_sum: float
    fraction_nodes: float
    training_reward: float
    validator_reward: float

    def to_json(self) -> Json:
        return {
            "nodeDirectSum": self.node_direct_sum,
            "validatorDirectSum": self.validator_direct_sum,
            "fractionNodes": self.fraction_nodes,
            "trainingRewards": self.training_reward,
            "validatorRewards": self.validator_reward,
        }


@dataclass(frozen=True, slots=True)
class OwnerSplit:
    owner_reward: float
    delegator_reward: float


@dataclass(frozen=True, slots=True)
class ScoreSumCheck:
    tier: Tier
    total: float
    ok: bool
    tolerance: float

    @property
    def discrepancy(self) -> float:
        return self.total - 1.0

    def to_json(self) -> Json:
        return {
            "tier": self.tier.value,
            "total": self.total,
            "ok": self.ok,
            "tolerance": self.tolerance,
            "discrepancy": self.discrepancy,
        }


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """Non-fatal finding about the inputs (degenerate denominators, odd ranges)."""

    code: str
    message: str
    tier: Optional[Tier] = None
    index: Optional[int] = None
    details: Json = field(default_factory=dict)

    def to_json(self) -> Json:
        return {
            "code": self.code,
            "message": self.message,
            "tier": self.tier.value if self.tier is not None else None,
            "index": self.index,
            "details": dict(self.details),
        }


@dataclass(frozen=True, slots=True)
class ParticipantAllocation:
    label: str
    owner_stake: float
    delegator_stake: float
    total_stake: float
    performance_score: float
    sigma: float
    fraction: float
    total_reward_before_split: float
    owner_reward: float
    delegator_reward: float

    @property
    def forfeited_reward(self) -> float:
        # Non-zero only when a zero-stake participant still drew a share.
        if self.total_stake == 0:
            return self.total_reward_before_split
        return 0.0

    def to_json(self) -> Json:
        return {
            "label": self.label,
            "fraction": self.fraction,
            "totalRewardBeforeSplit": self.total_reward_before_split,
            "ownerReward": self.owner_reward,
            "delegatorReward": self.delegator_reward,
            "forfeitedReward": self.forfeited_reward,
            "ownerStake": self.owner_stake,
            "delegatorStake": self.delegator_stake,
            "totalStake": self.total_stake,
            "performanceScore": self.performance_score,
            "sigma": self.sigma,
        }


@dataclass(frozen=True, slots=True)
class TierAllocation:
    tier: Tier
    tier_reward: float
    alpha: float
    participants: Tuple[ParticipantAllocation, ...] = field(default_factory=tuple)

    @property
    def fraction_sum(self) -> float:
        return sum(p.fraction for p in self.participants)

    @property
    def forfeited_reward(self) -> float:
        return sum(p.forfeited_reward for p in self.participants)

    def to_json(self) -> Json:
        return {
            "tier": self.tier.value,
            "tierReward": self.tier_reward,
            "alpha": self.alpha,
            "forfeitedReward": self.forfeited_reward,
            "fractionSum": self.fraction_sum,
            "participants": len(self.participants),
        }


@dataclass(frozen=True, slots=True)
class AllocationResult:
    split: TierSplit
    nodes: TierAllocation
    validators: TierAllocation
    score_checks: Tuple[ScoreSumCheck, ...] = field(default_factory=tuple)
    warnings: Tuple[Diagnostic, ...] = field(default_factory=tuple)

    @property
    def training_tier_reward(self) -> float:
        return self.split.training_reward

    @property
    def validator_tier_reward(self) -> float:
        return self.split.validator_reward

    @property
    def score_sums_ok(self) -> bool:
        return all(c.ok for c in self.score_checks)

    def tier(self, tier: Tier) -> TierAllocation:
        return self.nodes if tier is Tier.NODE else self.validators

# src/flockrewards/ledger/validation.py
"""Pre-flight checks for reward inputs.

None of these checks gate the arithmetic. The allocation pipeline computes for
any input free of issues; callers decide what to do with the findings:

  - check_score_sums: per-tier "scores sum to 1" diagnostic
  - find_input_issues: structural problems a caller should reject
    (negative or non-finite values, oversized tiers, stakes whose
    weights overflow a float)
  - find_range_notices: unconventional but accepted parameters
    (gamma outside [0, 0.5], sigma outside [0, 1])
  - validate_inputs: all of the above bundled in a ValidationReport
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from flockrewards.ledger.constants import GAMMA_RANGE, SCORE_SUM_TOLERANCE, SIGMA_RANGE
from flockrewards.ledger.errors import RewardInputError
from flockrewards.ledger.fractions import stake_power
from flockrewards.ledger.tier_split import direct_stake_total
from flockrewards.ledger.types import Diagnostic, Json, RewardInputs, ScoreSumCheck, Tier


@dataclass(frozen=True, slots=True)
class ValidationReport:
    score_checks: Tuple[ScoreSumCheck, ...] = field(default_factory=tuple)
    issues: Tuple[Diagnostic, ...] = field(default_factory=tuple)
    notices: Tuple[Diagnostic, ...] = field(default_factory=tuple)

    @property
    def score_sums_ok(self) -> bool:
        return all(c.ok for c in self.score_checks)

    @property
    def valid(self) -> bool:
        return not self.issues and self.score_sums_ok

    def to_json(self) -> Json:
        return {
            "valid": self.valid,
            "scoreChecks": [c.to_json() for c in self.score_checks],
            "issues": [d.to_json() for d in self.issues],
            "notices": [d.to_json() for d in self.notices],
        }


def check_score_sum(inputs: RewardInputs, tier: Tier, *, tolerance: float = SCORE_SUM_TOLERANCE) -> ScoreSumCheck:
    total = sum((float(p.performance_score) for p in inputs.participants(tier)), 0.0)
    return ScoreSumCheck(tier=tier, total=total, ok=abs(total - 1.0) <= float(tolerance), tolerance=float(tolerance))


def check_score_sums(inputs: RewardInputs, *, tolerance: float = SCORE_SUM_TOLERANCE) -> Tuple[ScoreSumCheck, ...]:
    return tuple(check_score_sum(inputs, tier, tolerance=tolerance) for tier in Tier)


def _finite(v: float) -> bool:
    try:
        return math.isfinite(float(v))
    except (TypeError, ValueError):
        return False


def _weight_issues(inputs: RewardInputs, tier: Tier) -> List[Diagnostic]:
    """score * total_stake ** alpha must stay finite per participant and summed."""
    alpha = inputs.alpha(tier)
    if not _finite(alpha):
        return []

    out: List[Diagnostic] = []
    total = 0.0
    for i, p in enumerate(inputs.participants(tier)):
        if not all(_finite(v) and v >= 0 for v in (p.owner_stake, p.delegator_stake, p.performance_score)):
            continue
        stake = p.total_stake
        if not _finite(stake):
            out.append(
                Diagnostic("non_finite", "totalStake must be a finite number", tier=tier, index=i, details={"field": "totalStake"})
            )
            continue
        try:
            w = float(p.performance_score) * stake_power(stake, alpha)
        except RewardInputError:
            w = math.inf
        if not _finite(w):
            out.append(
                Diagnostic(
                    "weight_overflow",
                    "performanceScore * totalStake ** alpha is not a finite number",
                    tier=tier,
                    index=i,
                    details={"totalStake": stake, "alpha": float(alpha)},
                )
            )
            continue
        total += w

    if not out and not _finite(total):
        out.append(
            Diagnostic(
                "weight_overflow",
                f"{tier.value} tier weights sum past the float range",
                tier=tier,
                details={"alpha": float(alpha)},
            )
        )
    return out


def find_input_issues(inputs: RewardInputs, *, max_participants: Optional[int] = None) -> List[Diagnostic]:
    issues: List[Diagnostic] = []

    scalars: Dict[str, float] = {
        "R0": inputs.reward_pool,
        "gamma": inputs.gamma,
        "alphaTrainingTier": inputs.alpha_training,
        "alphaValidatorTier": inputs.alpha_validator,
    }
    for name, value in scalars.items():
        if not _finite(value):
            issues.append(Diagnostic("non_finite", f"{name} must be a finite number", details={"field": name}))

    if _finite(inputs.reward_pool) and inputs.reward_pool < 0:
        issues.append(
            Diagnostic("negative_value", "R0 must be non-negative", details={"field": "R0", "value": inputs.reward_pool})
        )

    for tier in Tier:
        participants = inputs.participants(tier)
        if max_participants is not None and len(participants) > int(max_participants):
            issues.append(
                Diagnostic(
                    "too_many_participants",
                    f"{tier.value} tier has more than {int(max_participants)} participants",
                    tier=tier,
                    details={"count": len(participants), "max": int(max_participants)},
                )
            )

        for i, p in enumerate(participants):
            fields = {
                "ownerStake": p.owner_stake,
                "delegatorStake": p.delegator_stake,
                "performanceScore": p.performance_score,
                "sigma": p.sigma,
            }
            for name, value in fields.items():
                if not _finite(value):
                    issues.append(
                        Diagnostic("non_finite", f"{name} must be a finite number", tier=tier, index=i, details={"field": name})
                    )
                elif name != "sigma" and value < 0:
                    issues.append(
                        Diagnostic(
                            "negative_value",
                            f"{name} must be non-negative",
                            tier=tier,
                            index=i,
                            details={"field": name, "value": value},
                        )
                    )

        issues.extend(_weight_issues(inputs, tier))

        if all(_finite(p.owner_stake) for p in participants) and not _finite(direct_stake_total(participants)):
            issues.append(
                Diagnostic(
                    "weight_overflow",
                    f"{tier.value} tier direct stake sums past the float range",
                    tier=tier,
                    details={"field": "ownerStake"},
                )
            )

    return issues


def find_range_notices(inputs: RewardInputs) -> List[Diagnostic]:
    notices: List[Diagnostic] = []

    lo, hi = GAMMA_RANGE
    if _finite(inputs.gamma) and not (lo <= inputs.gamma <= hi):
        notices.append(
            Diagnostic(
                "gamma_out_of_range",
                f"gamma outside [{lo}, {hi}] is accepted but unconventional",
                details={"gamma": inputs.gamma},
            )
        )

    lo, hi = SIGMA_RANGE
    for tier in Tier:
        for i, p in enumerate(inputs.participants(tier)):
            if _finite(p.sigma) and not (lo <= p.sigma <= hi):
                notices.append(
                    Diagnostic(
                        "sigma_out_of_range",
                        f"sigma outside [{lo}, {hi}] is accepted but unconventional",
                        tier=tier,
                        index=i,
                        details={"sigma": p.sigma},
                    )
                )

    return notices


def validate_inputs(
    inputs: RewardInputs,
    *,
    tolerance: float = SCORE_SUM_TOLERANCE,
    max_participants: Optional[int] = None,
) -> ValidationReport:
    return ValidationReport(
        score_checks=check_score_sums(inputs, tolerance=tolerance),
        issues=tuple(find_input_issues(inputs, max_participants=max_participants)),
        notices=tuple(find_range_notices(inputs)),
    )

# src/flockrewards/ledger/fractions.py
from __future__ import annotations

import math
from typing import List, Sequence

from flockrewards.ledger.errors import RewardInputError


def stake_power(stake: float, alpha: float) -> float:
    """stake ** alpha under real exponentiation, with 0 ** alpha pinned.

    0 ** 0 is 1; 0 ** alpha is 0 for every other alpha, negative alpha
    included, so an empty stake never contributes an infinite weight.
    """
    s = float(stake)
    a = float(alpha)
    if s == 0:
        return 1.0 if a == 0 else 0.0
    try:
        out = math.pow(s, a)
    except ValueError as e:
        # Negative base with a non-integer exponent has no real value.
        raise RewardInputError("invalid_stake", "stake_power_undefined", {"stake": s, "alpha": a}) from e
    except OverflowError as e:
        raise RewardInputError("invalid_stake", "stake_power_overflow", {"stake": s, "alpha": a}) from e
    if not math.isfinite(out):
        raise RewardInputError("invalid_stake", "stake_power_overflow", {"stake": s, "alpha": a})
    return out


def participant_weights(scores: Sequence[float], stakes: Sequence[float], alpha: float) -> List[float]:
    if len(scores) != len(stakes):
        raise RewardInputError(
            "invalid_payload",
            "scores_stakes_length_mismatch",
            {"scores": len(scores), "stakes": len(stakes)},
        )
    weights: List[float] = []
    for i, (score, stake) in enumerate(zip(scores, stakes)):
        w = float(score) * stake_power(stake, alpha)
        if not math.isfinite(w):
            raise RewardInputError("invalid_stake", "weight_not_finite", {"index": i, "score": float(score)})
        weights.append(w)
    return weights


def allocate_fractions(scores: Sequence[float], stakes: Sequence[float], alpha: float) -> List[float]:
    """Per-participant share of a tier pool.

        fraction_i = score_i * stake_i**alpha / sum_j(score_j * stake_j**alpha)

    All zeros when the weighted sum is zero. Weights or a weighted sum that
    overflow a float raise RewardInputError instead of yielding NaN fractions.
    """
    weights = participant_weights(scores, stakes, alpha)
    denom = sum(weights, 0.0)
    if not math.isfinite(denom):
        raise RewardInputError("invalid_stake", "weight_sum_overflow", {"participants": len(weights)})
    if denom == 0:
        return [0.0 for _ in weights]
    return [w / denom for w in weights]

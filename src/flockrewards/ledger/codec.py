# src/flockrewards/ledger/codec.py
from __future__ import annotations

"""Wire mapping for reward inputs and allocation results.

The wire format is camelCase JSON:

  input:  {R0, gamma, alphaTrainingTier, alphaValidatorTier, nodeTier: [...], validatorTier: [...]}
  output: {trainingTierReward, validatorTierReward, nodeResults: [...], validatorResults: [...], ...}

Array order is positional: result i belongs to input participant i.
"""

from typing import Any, Dict, List, Optional

from flockrewards.ledger.errors import RewardInputError
from flockrewards.ledger.types import AllocationResult, Participant, RewardInputs

Json = Dict[str, Any]

_PARTICIPANT_FIELDS = ("ownerStake", "delegatorStake", "performanceScore", "sigma")


def _as_number(v: Any, *, field: str) -> float:
    # bool is an int subclass; disallow it explicitly
    if isinstance(v, bool) or v is None:
        raise RewardInputError("invalid_payload", "not_a_number", {"field": field, "type": type(v).__name__})
    if isinstance(v, (int, float)):
        return float(v)
    if isinstance(v, str) and v.strip():
        try:
            return float(v.strip())
        except ValueError:
            pass
    raise RewardInputError("invalid_payload", "not_a_number", {"field": field, "value": str(v)[:64]})


def _require(obj: Json, key: str, ctx: str) -> Any:
    if key not in obj:
        raise RewardInputError("invalid_payload", "missing_field", {"field": f"{ctx}{key}"})
    return obj[key]


def _as_label(v: Any) -> Optional[str]:
    if v is None:
        return None
    s = str(v).strip()
    return s or None


def participant_from_json(obj: Any, *, ctx: str = "") -> Participant:
    if not isinstance(obj, dict):
        raise RewardInputError("invalid_payload", "participant_not_object", {"field": ctx.rstrip(".")})
    values = {k: _as_number(_require(obj, k, ctx), field=f"{ctx}{k}") for k in _PARTICIPANT_FIELDS}
    return Participant(
        owner_stake=values["ownerStake"],
        delegator_stake=values["delegatorStake"],
        performance_score=values["performanceScore"],
        sigma=values["sigma"],
        label=_as_label(obj.get("label")),
    )


def _participants(obj: Json, key: str) -> List[Participant]:
    raw = _require(obj, key, "")
    if not isinstance(raw, list):
        raise RewardInputError("invalid_payload", "tier_not_list", {"field": key})
    return [participant_from_json(item, ctx=f"{key}[{i}].") for i, item in enumerate(raw)]


def inputs_from_json(obj: Any) -> RewardInputs:
    """Parse a wire payload into RewardInputs. Raises RewardInputError on malformed input."""
    if not isinstance(obj, dict):
        raise RewardInputError("invalid_payload", "payload_not_object", {"type": type(obj).__name__})

    return RewardInputs(
        reward_pool=_as_number(_require(obj, "R0", ""), field="R0"),
        gamma=_as_number(_require(obj, "gamma", ""), field="gamma"),
        alpha_training=_as_number(_require(obj, "alphaTrainingTier", ""), field="alphaTrainingTier"),
        alpha_validator=_as_number(_require(obj, "alphaValidatorTier", ""), field="alphaValidatorTier"),
        nodes=tuple(_participants(obj, "nodeTier")),
        validators=tuple(_participants(obj, "validatorTier")),
    )


def result_to_json(result: AllocationResult) -> Json:
    return {
        "trainingTierReward": result.training_tier_reward,
        "validatorTierReward": result.validator_tier_reward,
        "nodeResults": [p.to_json() for p in result.nodes.participants],
        "validatorResults": [p.to_json() for p in result.validators.participants],
        "step1": result.split.to_json(),
        "tiers": [result.nodes.to_json(), result.validators.to_json()],
        "scoreChecks": [c.to_json() for c in result.score_checks],
        "scoreSumsOk": result.score_sums_ok,
        "warnings": [w.to_json() for w in result.warnings],
    }

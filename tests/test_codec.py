from __future__ import annotations

import pytest

from flockrewards.ledger.codec import inputs_from_json, result_to_json
from flockrewards.ledger.errors import RewardInputError
from flockrewards.ledger.rewards import compute_allocation, reference_inputs


def _payload() -> dict:
    return {
        "R0": 1000,
        "gamma": "0.1",
        "alphaTrainingTier": 1,
        "alphaValidatorTier": 0.5,
        "nodeTier": [
            {"ownerStake": 3000, "delegatorStake": 1000, "performanceScore": 0.6, "sigma": 0.4, "label": "alpha"},
            {"ownerStake": 500, "delegatorStake": 0, "performanceScore": 0.4, "sigma": 0.4},
        ],
        "validatorTier": [
            {"ownerStake": 2000, "delegatorStake": 0, "performanceScore": 1, "sigma": 0.4},
        ],
    }


def test_inputs_from_json_parses_wire_names() -> None:
    inputs = inputs_from_json(_payload())
    assert inputs.reward_pool == 1000.0
    assert inputs.gamma == pytest.approx(0.1)
    assert inputs.alpha_validator == 0.5
    assert len(inputs.nodes) == 2
    assert inputs.nodes[0].label == "alpha"
    assert inputs.nodes[1].label is None
    assert inputs.nodes[0].total_stake == 4000.0


def test_reference_inputs_survive_the_wire() -> None:
    ref = reference_inputs()
    assert inputs_from_json(ref.to_json()) == ref


@pytest.mark.parametrize(
    "mutate,reason",
    [
        (lambda p: p.pop("R0"), "missing_field"),
        (lambda p: p.update(gamma=True), "not_a_number"),
        (lambda p: p.update(gamma="abc"), "not_a_number"),
        (lambda p: p.update(nodeTier={"a": 1}), "tier_not_list"),
        (lambda p: p["nodeTier"].append(7), "participant_not_object"),
        (lambda p: p["validatorTier"][0].pop("sigma"), "missing_field"),
    ],
)
def test_malformed_payloads_raise_reward_input_error(mutate, reason) -> None:
    payload = _payload()
    mutate(payload)
    with pytest.raises(RewardInputError) as ei:
        inputs_from_json(payload)
    assert ei.value.code == "invalid_payload"
    assert ei.value.reason == reason


def test_missing_field_names_the_path() -> None:
    payload = _payload()
    payload["validatorTier"][0].pop("sigma")
    with pytest.raises(RewardInputError) as ei:
        inputs_from_json(payload)
    assert ei.value.details["field"] == "validatorTier[0].sigma"


def test_result_to_json_is_positional_and_camel_case() -> None:
    out = result_to_json(compute_allocation(inputs_from_json(_payload())))

    assert set(out) >= {"trainingTierReward", "validatorTierReward", "nodeResults", "validatorResults"}
    assert len(out["nodeResults"]) == 2
    assert out["nodeResults"][0]["label"] == "alpha"
    assert out["nodeResults"][1]["label"] == "Node B"
    first = out["nodeResults"][0]
    for key in ("fraction", "totalRewardBeforeSplit", "ownerReward", "delegatorReward"):
        assert key in first
    assert out["step1"]["fractionNodes"] == pytest.approx(3500 / 5500)
    assert out["trainingTierReward"] + out["validatorTierReward"] == pytest.approx(1000.0)
    assert out["scoreSumsOk"] is True

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace

import pytest

from flockrewards.ledger.codec import result_to_json
from flockrewards.ledger.constants import (
    DIAG_NO_DIRECT_STAKE,
    DIAG_ZERO_STAKE_PARTICIPANT,
    DIAG_ZERO_TIER_WEIGHT,
)
from flockrewards.ledger.errors import RewardInputError
from flockrewards.ledger.rewards import compute_allocation, participant_rows, reference_inputs
from flockrewards.ledger.types import Participant, RewardInputs, Tier


def _p(owner: float, delegators: float, score: float, sigma: float = 0.4) -> Participant:
    return Participant(owner_stake=owner, delegator_stake=delegators, performance_score=score, sigma=sigma)


def test_reference_scenario_end_to_end() -> None:
    res = compute_allocation(reference_inputs())

    assert res.training_tier_reward == pytest.approx(309157.68 * 6500 / 18500)
    assert res.training_tier_reward + res.validator_tier_reward == pytest.approx(309157.68)
    assert res.split.node_direct_sum == 6500.0
    assert res.split.validator_direct_sum == 12000.0

    # Node weights use total stake: 0.501435 * 4000 and 0.498565 * 3500.
    wa = 0.501435 * 4000
    wb = 0.498565 * 3500
    node_a, node_b, node_c = res.nodes.participants
    assert node_a.fraction == pytest.approx(wa / (wa + wb))
    assert node_b.fraction == pytest.approx(wb / (wa + wb))
    assert node_c.fraction == 0.0

    assert node_a.owner_reward == pytest.approx(0.85 * node_a.total_reward_before_split)
    assert node_a.delegator_reward == pytest.approx(0.15 * node_a.total_reward_before_split)
    assert node_b.delegator_reward == pytest.approx(0.0)

    assert [p.label for p in res.nodes.participants] == ["Node A", "Node B", "Node C"]
    assert [p.label for p in res.validators.participants] == ["Validator A", "Validator B", "Validator C"]
    assert res.score_sums_ok


def test_tier_fractions_sum_to_one_and_rewards_sum_to_tier_pool() -> None:
    res = compute_allocation(reference_inputs())
    for tier in Tier:
        alloc = res.tier(tier)
        assert alloc.fraction_sum == pytest.approx(1.0)
        assert sum(p.total_reward_before_split for p in alloc.participants) == pytest.approx(alloc.tier_reward)
        for p in alloc.participants:
            if p.total_stake > 0:
                assert p.owner_reward + p.delegator_reward == pytest.approx(p.total_reward_before_split)


def test_arbitrary_participant_counts() -> None:
    nodes = tuple(_p(100.0 * (i + 1), 10.0 * i, 1.0 / 7) for i in range(7))
    validators = (_p(1000.0, 0.0, 1.0),)
    res = compute_allocation(
        RewardInputs(reward_pool=1000.0, gamma=0.1, alpha_training=0.5, alpha_validator=1.0, nodes=nodes, validators=validators)
    )
    assert len(res.nodes.participants) == 7
    assert len(res.validators.participants) == 1
    assert res.nodes.fraction_sum == pytest.approx(1.0)
    assert res.validators.participants[0].total_reward_before_split == pytest.approx(res.validator_tier_reward)
    # positional correspondence: larger stake, same score -> larger share
    fractions = [p.fraction for p in res.nodes.participants]
    assert fractions == sorted(fractions)


def test_sigma_one_owner_takes_all() -> None:
    inputs = RewardInputs(
        reward_pool=100.0,
        gamma=0.0,
        alpha_training=1.0,
        alpha_validator=1.0,
        nodes=(_p(10.0, 90.0, 1.0, sigma=1.0),),
        validators=(_p(10.0, 0.0, 1.0),),
    )
    node = compute_allocation(inputs).nodes.participants[0]
    assert node.owner_reward == pytest.approx(node.total_reward_before_split)
    assert node.delegator_reward == pytest.approx(0.0)


def test_zero_stake_participant_with_alpha_zero_forfeits_its_share() -> None:
    inputs = RewardInputs(
        reward_pool=100.0,
        gamma=0.0,
        alpha_training=0.0,
        alpha_validator=1.0,
        nodes=(_p(10.0, 0.0, 0.5), _p(0.0, 0.0, 0.5)),
        validators=(_p(10.0, 0.0, 1.0),),
    )
    res = compute_allocation(inputs)
    empty = res.nodes.participants[1]

    assert empty.fraction == pytest.approx(0.5)
    assert empty.owner_reward == 0.0
    assert empty.delegator_reward == 0.0
    assert empty.forfeited_reward == pytest.approx(empty.total_reward_before_split)
    assert res.nodes.forfeited_reward == pytest.approx(25.0)

    codes = [(w.code, w.tier, w.index) for w in res.warnings]
    assert (DIAG_ZERO_STAKE_PARTICIPANT, Tier.NODE, 1) in codes


def test_no_stake_anywhere_reports_degenerate_inputs() -> None:
    inputs = RewardInputs(
        reward_pool=50.0,
        gamma=0.0,
        alpha_training=1.0,
        alpha_validator=1.0,
        nodes=(_p(0.0, 0.0, 1.0),),
        validators=(_p(0.0, 0.0, 1.0),),
    )
    res = compute_allocation(inputs)

    assert res.training_tier_reward == 0.0
    assert res.validator_tier_reward == 50.0
    assert res.validators.participants[0].fraction == 0.0

    codes = {w.code for w in res.warnings}
    assert DIAG_NO_DIRECT_STAKE in codes
    assert DIAG_ZERO_TIER_WEIGHT in codes


def test_score_sum_mismatch_is_reported_not_fatal() -> None:
    inputs = RewardInputs(
        reward_pool=100.0,
        gamma=0.0,
        alpha_training=1.0,
        alpha_validator=1.0,
        nodes=(_p(10.0, 0.0, 0.3), _p(10.0, 0.0, 0.3)),
        validators=(_p(10.0, 0.0, 1.0),),
    )
    res = compute_allocation(inputs)

    assert not res.score_sums_ok
    node_check = [c for c in res.score_checks if c.tier is Tier.NODE][0]
    assert node_check.total == pytest.approx(0.6)
    assert node_check.discrepancy == pytest.approx(-0.4)
    # still normalized within the tier
    assert res.nodes.fraction_sum == pytest.approx(1.0)


def test_pipeline_is_idempotent_and_thread_safe() -> None:
    inputs = reference_inputs()
    first = result_to_json(compute_allocation(inputs))
    assert result_to_json(compute_allocation(inputs)) == first

    with ThreadPoolExecutor(max_workers=4) as pool:
        outs = list(pool.map(lambda _: result_to_json(compute_allocation(inputs)), range(16)))
    assert all(o == first for o in outs)


def test_participant_rows_flatten_nodes_then_validators() -> None:
    rows = participant_rows(compute_allocation(reference_inputs()))
    assert [r["name"] for r in rows][:3] == ["Node A", "Node B", "Node C"]
    assert [r["tier"] for r in rows] == ["node"] * 3 + ["validator"] * 3
    assert rows[0]["owner_stake"] == 3000.0
    assert rows[0]["delegator_stake"] == 1000.0


def test_custom_labels_are_kept() -> None:
    inputs = RewardInputs(
        reward_pool=10.0,
        gamma=0.0,
        alpha_training=1.0,
        alpha_validator=1.0,
        nodes=(Participant(1.0, 0.0, 1.0, 0.4, label="gpu-box-7"),),
        validators=(),
    )
    res = compute_allocation(inputs)
    assert res.nodes.participants[0].label == "gpu-box-7"
    # no validators: the validator tier pool is computed but unclaimed
    assert res.training_tier_reward == pytest.approx(10.0)
    assert res.validators.participants == ()


def test_weight_overflow_raises_reward_input_error() -> None:
    inputs = replace(reference_inputs(), alpha_training=2.0, nodes=(_p(1e200, 0.0, 1.0),))
    with pytest.raises(RewardInputError) as ei:
        compute_allocation(inputs)
    assert ei.value.code == "invalid_stake"

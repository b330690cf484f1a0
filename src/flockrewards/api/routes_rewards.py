# src/flockrewards/api/routes_rewards.py
from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Request

from flockrewards.api.errors import ApiError
from flockrewards.api.schemas import RewardRequest
from flockrewards.api.structured_logging import annotate_request, log_event
from flockrewards.config import CalculatorConfig, default_calculator_config
from flockrewards.ledger.codec import inputs_from_json, result_to_json
from flockrewards.ledger.errors import RewardInputError
from flockrewards.ledger.rewards import compute_allocation, reference_inputs
from flockrewards.ledger.types import RewardInputs
from flockrewards.ledger.validation import ValidationReport, validate_inputs

router = APIRouter()

Json = Dict[str, Any]

logger = logging.getLogger("flockrewards.api.rewards")


def _cfg(request: Request) -> CalculatorConfig:
    cfg = getattr(request.app.state, "cfg", None)
    return cfg if isinstance(cfg, CalculatorConfig) else default_calculator_config()


def _parse(req: RewardRequest) -> RewardInputs:
    try:
        return inputs_from_json(req.to_payload())
    except RewardInputError as e:
        raise ApiError.bad_request(e.code, e.reason, e.details) from e


def _validate(inputs: RewardInputs, cfg: CalculatorConfig) -> ValidationReport:
    return validate_inputs(
        inputs,
        tolerance=cfg.score_tolerance,
        max_participants=cfg.max_participants_per_tier,
    )


def _annotate(request: Request, inputs: RewardInputs, report: ValidationReport) -> None:
    annotate_request(
        request,
        nodes=len(inputs.nodes),
        validators=len(inputs.validators),
        issues=len(report.issues),
        score_sums_ok=report.score_sums_ok,
    )


@router.get("/rewards/example")
def example() -> Json:
    """Reference scenario (three nodes, three validators) in wire format."""
    return {"ok": True, "inputs": reference_inputs().to_json()}


@router.post("/rewards/validate")
def validate(req: RewardRequest, request: Request) -> Json:
    """
    Pre-flight checks only; never computes.

    Mounted under /v1, so the full path is:
      POST /v1/rewards/validate
    """
    inputs = _parse(req)
    report = _validate(inputs, _cfg(request))
    _annotate(request, inputs, report)
    return {"ok": True, **report.to_json()}


@router.post("/rewards/compute")
def compute(req: RewardRequest, request: Request) -> Json:
    """
    Run the three-stage allocation.

    Structural issues (negative or non-finite values, oversized tiers,
    weights past the float range) are rejected. A failed score-sum check is only rejected when the operator
    enabled require_score_sum; otherwise it is reported in scoreChecks.
    """
    cfg = _cfg(request)
    inputs = _parse(req)
    report = _validate(inputs, cfg)
    _annotate(request, inputs, report)

    if report.issues:
        raise ApiError.bad_request(
            "invalid_inputs",
            "reward inputs failed validation",
            {"issues": [d.to_json() for d in report.issues]},
        )

    if cfg.require_score_sum and not report.score_sums_ok:
        raise ApiError.bad_request(
            "score_sum_mismatch",
            "performance scores must sum to 1 in each tier",
            {"scoreChecks": [c.to_json() for c in report.score_checks]},
        )

    result = compute_allocation(inputs, tolerance=cfg.score_tolerance)
    annotate_request(
        request,
        warnings=len(result.warnings),
        forfeited_reward=result.nodes.forfeited_reward + result.validators.forfeited_reward,
    )

    log_event(
        logger,
        "rewards_computed",
        nodes=len(inputs.nodes),
        validators=len(inputs.validators),
        score_sums_ok=result.score_sums_ok,
        warnings=len(result.warnings),
    )

    return {
        "ok": True,
        **result_to_json(result),
        "notices": [d.to_json() for d in report.notices],
    }

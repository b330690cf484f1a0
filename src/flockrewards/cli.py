#!/usr/bin/env python3
"""
Command line adapter for the reward allocation pipeline.

Usage:
  flockrewards compute inputs.json
  flockrewards compute --example --format table
  cat inputs.json | flockrewards compute - --strict
  flockrewards validate inputs.json

Exit codes:
  0  success
  1  inputs failed validation (or score sums failed with --strict)
  2  malformed input (unreadable file, bad JSON, missing fields)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO

from flockrewards.api.structured_logging import configure_structured_logging, log_event
from flockrewards.config import CalculatorConfig, load_calculator_config
from flockrewards.env import load_dotenv_if_present
from flockrewards.ledger.codec import inputs_from_json, result_to_json
from flockrewards.ledger.errors import RewardInputError
from flockrewards.ledger.rewards import compute_allocation, participant_rows, reference_inputs
from flockrewards.ledger.types import AllocationResult, RewardInputs
from flockrewards.ledger.validation import validate_inputs

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_MALFORMED = 2

logger = logging.getLogger("flockrewards.cli")


def _load_inputs(args: argparse.Namespace, stdin: TextIO) -> RewardInputs:
    if args.example:
        return reference_inputs()
    if not args.input:
        raise RewardInputError("invalid_payload", "no_input", {"hint": "pass a JSON file, '-' for stdin, or --example"})

    try:
        if args.input == "-":
            raw = json.load(stdin)
        else:
            raw = json.loads(Path(args.input).read_text(encoding="utf-8"))
    except OSError as e:
        raise RewardInputError("invalid_payload", "unreadable_input", {"path": args.input, "error": str(e)}) from e
    except json.JSONDecodeError as e:
        raise RewardInputError("invalid_payload", "bad_json", {"error": str(e)}) from e

    return inputs_from_json(raw)


def _fmt(v: float) -> str:
    return f"{v:,.2f}"


def render_table(result: AllocationResult) -> str:
    rows: List[Dict[str, Any]] = participant_rows(result)
    header = ("name", "owner stake", "delegator stake", "score", "sigma", "reward", "owner", "delegators")
    body = [
        (
            str(r["name"]),
            _fmt(r["owner_stake"]),
            _fmt(r["delegator_stake"]),
            f"{r['performance_score']:.6f}",
            f"{r['sigma']:.2f}",
            _fmt(r["reward"]),
            _fmt(r["owner_reward"]),
            _fmt(r["delegator_reward"]),
        )
        for r in rows
    ]
    widths = [max(len(h), *(len(line[i]) for line in body)) if body else len(h) for i, h in enumerate(header)]

    lines = [
        f"Training Rewards:  {_fmt(result.training_tier_reward)}",
        f"Validator Rewards: {_fmt(result.validator_tier_reward)}",
        f"Fraction Nodes:    {result.split.fraction_nodes:.6f}",
        "",
        "  ".join(h.ljust(w) for h, w in zip(header, widths)),
        "  ".join("-" * w for w in widths),
    ]
    for line in body:
        lines.append("  ".join([line[0].ljust(widths[0])] + [c.rjust(w) for c, w in zip(line[1:], widths[1:])]))

    for c in result.score_checks:
        if not c.ok:
            lines.append(f"warning: {c.tier.value} scores sum to {c.total:.6f} (must be 1)")
    for w in result.warnings:
        lines.append(f"warning: {w.message}" + (f" [{w.tier.value} #{w.index}]" if w.index is not None else ""))

    return "\n".join(lines)


def cmd_compute(args: argparse.Namespace, cfg: CalculatorConfig, out: TextIO, stdin: TextIO) -> int:
    inputs = _load_inputs(args, stdin)
    report = validate_inputs(inputs, tolerance=cfg.score_tolerance, max_participants=cfg.max_participants_per_tier)

    if report.issues:
        json.dump({"ok": False, **report.to_json()}, out, indent=2)
        out.write("\n")
        return EXIT_INVALID

    if (args.strict or cfg.require_score_sum) and not report.score_sums_ok:
        json.dump({"ok": False, **report.to_json()}, out, indent=2)
        out.write("\n")
        return EXIT_INVALID

    result = compute_allocation(inputs, tolerance=cfg.score_tolerance)
    log_event(logger, "rewards_computed", nodes=len(inputs.nodes), validators=len(inputs.validators))

    if args.format == "table":
        out.write(render_table(result) + "\n")
    else:
        json.dump({"ok": True, **result_to_json(result)}, out, indent=2)
        out.write("\n")
    return EXIT_OK


def cmd_validate(args: argparse.Namespace, cfg: CalculatorConfig, out: TextIO, stdin: TextIO) -> int:
    inputs = _load_inputs(args, stdin)
    report = validate_inputs(inputs, tolerance=cfg.score_tolerance, max_participants=cfg.max_participants_per_tier)
    json.dump({"ok": True, **report.to_json()}, out, indent=2)
    out.write("\n")
    return EXIT_OK if report.valid else EXIT_INVALID


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="flockrewards", description="Two-tier reward allocation calculator")
    ap.add_argument("--config", default=None, help="Calculator config file (JSON or YAML)")
    sub = ap.add_subparsers(dest="command", required=True)

    def _input_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("input", nargs="?", default=None, help="Inputs JSON file, or '-' for stdin")
        p.add_argument("--example", action="store_true", help="Use the reference three-node/three-validator scenario")

    p_compute = sub.add_parser("compute", help="Compute the reward allocation")
    _input_args(p_compute)
    p_compute.add_argument("--format", choices=("json", "table"), default="json")
    p_compute.add_argument("--strict", action="store_true", help="Refuse to compute when scores do not sum to 1")
    p_compute.set_defaults(func=cmd_compute)

    p_validate = sub.add_parser("validate", help="Run pre-flight checks only")
    _input_args(p_validate)
    p_validate.set_defaults(func=cmd_validate)

    return ap


def main(argv: Optional[List[str]] = None, *, out: Optional[TextIO] = None, stdin: Optional[TextIO] = None) -> int:
    load_dotenv_if_present()
    args = build_parser().parse_args(argv)

    try:
        cfg = load_calculator_config(config_path=args.config)
    except (OSError, ValueError) as e:
        print(f"flockrewards: bad config: {e}", file=sys.stderr)
        return EXIT_MALFORMED

    configure_structured_logging(cfg.log_level)

    try:
        return int(args.func(args, cfg, out or sys.stdout, stdin or sys.stdin))
    except RewardInputError as e:
        print(f"flockrewards: {e}", file=sys.stderr)
        return EXIT_MALFORMED


if __name__ == "__main__":
    raise SystemExit(main())

# src/flockrewards/config.py
from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from flockrewards.ledger.constants import SCORE_SUM_TOLERANCE

Json = Dict[str, Any]


def _as_int(v: Any, default: int) -> int:
    try:
        return int(v)
    except Exception:
        return int(default)


def _as_float(v: Any, default: float) -> float:
    if v is None or isinstance(v, bool):
        return float(default)
    try:
        return float(v)
    except Exception:
        return float(default)


def _as_str(v: Any, default: str) -> str:
    if v is None:
        return str(default)
    s = str(v)
    return s if s.strip() else str(default)


def _as_bool(v: Any, default: bool) -> bool:
    if v is None:
        return bool(default)
    if isinstance(v, bool):
        return v
    s = str(v).strip().lower()
    if s in {"1", "true", "yes", "y", "on"}:
        return True
    if s in {"0", "false", "no", "n", "off"}:
        return False
    return bool(default)


@dataclass(frozen=True)
class CalculatorConfig:
    mode: str  # "dev" | "prod"

    # Performance scores per tier must sum to 1 within this tolerance.
    score_tolerance: float
    # Refuse to compute (HTTP 400 / CLI exit 1) when a tier's scores do not sum to 1.
    require_score_sum: bool
    max_participants_per_tier: int

    api_host: str
    api_port: int

    log_level: str


_ALLOWED_MODES = {"dev", "prod"}
_ALLOWED_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def validate_calculator_config(cfg: CalculatorConfig) -> None:
    """Fail-fast validation for operator config."""

    mode = str(cfg.mode or "").strip().lower()
    if mode not in _ALLOWED_MODES:
        raise ValueError(f"mode must be one of {_ALLOWED_MODES}; got: {cfg.mode!r}")

    if not (float(cfg.score_tolerance) >= 0):
        raise ValueError(f"score_tolerance must be >= 0; got: {cfg.score_tolerance}")

    if int(cfg.max_participants_per_tier) <= 0:
        raise ValueError(f"max_participants_per_tier must be > 0; got: {cfg.max_participants_per_tier}")

    if int(cfg.api_port) <= 0 or int(cfg.api_port) > 65535:
        raise ValueError(f"api_port must be 1..65535; got: {cfg.api_port}")

    if str(cfg.log_level or "").strip().upper() not in _ALLOWED_LOG_LEVELS:
        raise ValueError(f"log_level must be one of {_ALLOWED_LOG_LEVELS}; got: {cfg.log_level!r}")


def default_calculator_config() -> CalculatorConfig:
    return CalculatorConfig(
        mode="prod",
        score_tolerance=SCORE_SUM_TOLERANCE,
        require_score_sum=False,
        max_participants_per_tier=1_000,
        api_host="127.0.0.1",
        api_port=8080,
        log_level="INFO",
    )


def _read_raw(p: Path) -> Json:
    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in {".yaml", ".yml"}:
        try:
            raw = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ValueError(f"calculator config is not valid YAML: {e}") from e
    else:
        raw = json.loads(text)
    if not isinstance(raw, dict):
        raise ValueError("calculator config must be a mapping")
    return raw


def read_calculator_config_file(path: str) -> CalculatorConfig:
    raw = _read_raw(Path(path))
    d = default_calculator_config()

    cfg = CalculatorConfig(
        mode=_as_str(raw.get("mode"), d.mode).strip().lower(),
        score_tolerance=_as_float(raw.get("score_tolerance"), d.score_tolerance),
        require_score_sum=_as_bool(raw.get("require_score_sum"), d.require_score_sum),
        max_participants_per_tier=_as_int(raw.get("max_participants_per_tier"), d.max_participants_per_tier),
        api_host=_as_str(raw.get("api_host"), d.api_host),
        api_port=_as_int(raw.get("api_port"), d.api_port),
        log_level=_as_str(raw.get("log_level"), d.log_level).strip().upper(),
    )

    validate_calculator_config(cfg)
    return cfg


def _apply_env_overrides(cfg: CalculatorConfig) -> CalculatorConfig:
    env = os.environ
    return CalculatorConfig(
        mode=_as_str(env.get("FLOCK_MODE"), cfg.mode).strip().lower(),
        score_tolerance=_as_float(env.get("FLOCK_SCORE_TOLERANCE"), cfg.score_tolerance),
        require_score_sum=_as_bool(env.get("FLOCK_REQUIRE_SCORE_SUM"), cfg.require_score_sum),
        max_participants_per_tier=_as_int(env.get("FLOCK_MAX_PARTICIPANTS"), cfg.max_participants_per_tier),
        api_host=_as_str(env.get("FLOCK_API_HOST"), cfg.api_host),
        api_port=_as_int(env.get("FLOCK_API_PORT"), cfg.api_port),
        log_level=_as_str(env.get("FLOCK_LOG_LEVEL"), cfg.log_level).strip().upper(),
    )


def load_calculator_config(*, config_path: Optional[str] = None) -> CalculatorConfig:
    """Defaults, then the optional config file, then FLOCK_* environment overrides."""
    p = config_path or os.environ.get("FLOCK_CONFIG_PATH")
    cfg = read_calculator_config_file(p) if p else default_calculator_config()

    cfg = _apply_env_overrides(cfg)
    validate_calculator_config(cfg)
    return cfg

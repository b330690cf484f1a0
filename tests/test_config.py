from __future__ import annotations

import json

import pytest

from flockrewards.config import default_calculator_config, load_calculator_config, read_calculator_config_file


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "FLOCK_CONFIG_PATH",
        "FLOCK_MODE",
        "FLOCK_SCORE_TOLERANCE",
        "FLOCK_REQUIRE_SCORE_SUM",
        "FLOCK_MAX_PARTICIPANTS",
        "FLOCK_API_HOST",
        "FLOCK_API_PORT",
        "FLOCK_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults_are_production_safe() -> None:
    cfg = load_calculator_config()
    assert cfg == default_calculator_config()
    assert cfg.mode == "prod"
    assert cfg.score_tolerance == 1e-9
    assert cfg.require_score_sum is False


def test_json_config_file(tmp_path) -> None:
    p = tmp_path / "calc.json"
    p.write_text(json.dumps({"mode": "dev", "require_score_sum": "yes", "api_port": "9001"}), encoding="utf-8")

    cfg = read_calculator_config_file(str(p))
    assert cfg.mode == "dev"
    assert cfg.require_score_sum is True
    assert cfg.api_port == 9001
    assert cfg.max_participants_per_tier == 1000


def test_yaml_config_file_and_env_overrides(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    p = tmp_path / "calc.yaml"
    p.write_text("mode: dev\nscore_tolerance: 0.001\nlog_level: debug\n", encoding="utf-8")
    monkeypatch.setenv("FLOCK_CONFIG_PATH", str(p))
    monkeypatch.setenv("FLOCK_MAX_PARTICIPANTS", "12")

    cfg = load_calculator_config()
    assert cfg.mode == "dev"
    assert cfg.score_tolerance == 0.001
    assert cfg.log_level == "DEBUG"
    assert cfg.max_participants_per_tier == 12


@pytest.mark.parametrize(
    "raw",
    [
        {"mode": "staging"},
        {"api_port": 70000},
        {"max_participants_per_tier": 0},
        {"score_tolerance": -1},
        {"log_level": "chatty"},
    ],
)
def test_invalid_config_fails_fast(tmp_path, raw) -> None:
    p = tmp_path / "calc.json"
    p.write_text(json.dumps(raw), encoding="utf-8")
    with pytest.raises(ValueError):
        read_calculator_config_file(str(p))


def test_non_mapping_config_is_rejected(tmp_path) -> None:
    p = tmp_path / "calc.yml"
    p.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        read_calculator_config_file(str(p))

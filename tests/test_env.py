from __future__ import annotations

import os

import pytest

from flockrewards import env


def test_dotenv_loads_once_without_overriding(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    p = tmp_path / ".env"
    p.write_text("FLOCK_TEST_A=from-file\nFLOCK_TEST_B=from-file\n", encoding="utf-8")
    monkeypatch.setattr(env, "_LOADED", False)
    monkeypatch.setenv("FLOCK_TEST_B", "from-env")
    monkeypatch.delenv("FLOCK_TEST_A", raising=False)

    assert env.load_dotenv_if_present(str(p)) is True
    assert os.environ["FLOCK_TEST_A"] == "from-file"
    assert os.environ["FLOCK_TEST_B"] == "from-env"

    # second call is a no-op
    assert env.load_dotenv_if_present(str(p)) is False
    monkeypatch.delenv("FLOCK_TEST_A", raising=False)


def test_missing_dotenv_is_not_an_error(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(env, "_LOADED", False)
    assert env.load_dotenv_if_present(str(tmp_path / "nope.env")) is False

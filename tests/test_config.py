# tests/test_config.py
from __future__ import annotations

import pytest

from bigthree.utils.config import DEFAULTS, load_config


def test_missing_file_uses_defaults(tmp_path) -> None:
    cfg = load_config(str(tmp_path / "absent.yaml"))
    assert cfg.sign_lang == "fr"
    assert cfg.cors.allow_origin == "https://www.monologueworld.com"
    assert cfg.geocoder.timeout_s == 10.0
    assert cfg.ephemeris.path is None

def test_yaml_merges_over_defaults(tmp_path) -> None:
    p = tmp_path / "cfg.yaml"
    p.write_text("sign_lang: en\ngeocoder:\n  timeout_s: 3\n", encoding="utf-8")
    cfg = load_config(str(p))
    assert cfg.sign_lang == "en"
    assert cfg.geocoder.timeout_s == 3.0
    assert cfg.geocoder.user_agent == "Monologueworld-quiz/1.0"

def test_env_overrides_win(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("CORS_ALLOW_ORIGIN", "https://quiz.example")
    monkeypatch.setenv("BIGTHREE_GEOCODER_TIMEOUT", "2.5")
    cfg = load_config(str(tmp_path / "absent.yaml"))
    assert cfg.cors.allow_origin == "https://quiz.example"
    assert cfg.geocoder.timeout_s == 2.5
    # built-in defaults are left untouched
    assert DEFAULTS["cors"]["allow_origin"] == "https://www.monologueworld.com"

def test_non_mapping_file_rejected(tmp_path) -> None:
    p = tmp_path / "bad.yaml"
    p.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(str(p))

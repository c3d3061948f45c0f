import json
import random

import pytest

from delve.dungeon import generate_level
from delve.dungeon.config import GenerationSettings
from delve.dungeon.errors import ConfigurationError
from delve.logging_utils import get_logger


def test_key_value_format(monkeypatch, capsys):
    monkeypatch.setenv("DELVE_LOG_LEVEL", "debug")
    monkeypatch.delenv("DELVE_LOG_JSON", raising=False)
    get_logger("delve.test").info(event="sample", flag=True, label="two words", count=3, skipped=None)
    line = capsys.readouterr().out.strip()
    assert line.startswith("level=info ts=")
    assert "logger=delve.test" in line
    assert "event=sample" in line
    assert "flag=true" in line
    assert "label=two_words" in line
    assert "count=3" in line
    assert "skipped" not in line


def test_json_mode(monkeypatch, capsys):
    monkeypatch.setenv("DELVE_LOG_LEVEL", "info")
    monkeypatch.setenv("DELVE_LOG_JSON", "1")
    get_logger("delve.test").info(event="sample", room="1,2")
    rec = json.loads(capsys.readouterr().out.strip())
    assert rec["event"] == "sample"
    assert rec["room"] == "1,2"
    assert rec["level"] == "info"
    assert rec["logger"] == "delve.test"


def test_threshold_and_error_stream(monkeypatch, capsys):
    monkeypatch.setenv("DELVE_LOG_LEVEL", "warn")
    monkeypatch.delenv("DELVE_LOG_JSON", raising=False)
    log = get_logger("delve.test")
    log.info(event="hidden")
    log.error(event="shown")
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "event=shown" in captured.err


def test_bind_adds_context(monkeypatch, capsys):
    monkeypatch.setenv("DELVE_LOG_LEVEL", "info")
    monkeypatch.delenv("DELVE_LOG_JSON", raising=False)
    base = get_logger("delve.test")
    bound = base.bind(session="abc123")
    bound.info(event="moved")
    base.info(event="plain")
    lines = capsys.readouterr().out.strip().splitlines()
    assert "session=abc123" in lines[0]
    assert "session=" not in lines[1]


def test_get_logger_is_cached():
    assert get_logger("delve.cache") is get_logger("delve.cache")


def test_explicit_settings_win_over_app_config(test_app, monkeypatch):
    monkeypatch.setitem(test_app.config, "DELVE_LEVELS", 5)
    assert GenerationSettings(levels=2).levels == 2
    assert GenerationSettings().levels == 5


def test_env_used_when_app_config_silent(test_app, monkeypatch):
    monkeypatch.delitem(test_app.config, "DELVE_LEVELS")
    monkeypatch.delitem(test_app.config, "DELVE_ENABLE_METRICS")
    monkeypatch.setenv("DELVE_LEVELS", "4")
    monkeypatch.setenv("DELVE_ENABLE_METRICS", "0")
    s = GenerationSettings()
    assert s.levels == 4
    assert s.enable_metrics is False


def test_defaults_without_any_config(test_app, monkeypatch):
    monkeypatch.delitem(test_app.config, "DELVE_LEVELS")
    monkeypatch.delitem(test_app.config, "DELVE_ENABLE_METRICS")
    monkeypatch.delenv("DELVE_LEVELS", raising=False)
    monkeypatch.delenv("DELVE_ENABLE_METRICS", raising=False)
    s = GenerationSettings()
    assert (s.levels, s.enable_metrics) == (3, True)


def test_bad_level_counts_raise(test_app, monkeypatch):
    with pytest.raises(ConfigurationError):
        GenerationSettings(levels=0)
    monkeypatch.delitem(test_app.config, "DELVE_LEVELS")
    monkeypatch.setenv("DELVE_LEVELS", "many")
    with pytest.raises(ConfigurationError):
        GenerationSettings()


def test_level_number_field_is_logged(monkeypatch, capsys):
    monkeypatch.setenv("DELVE_LOG_LEVEL", "info")
    monkeypatch.delenv("DELVE_LOG_JSON", raising=False)
    get_logger("delve.test").info(event="x", level_number=1)
    line = capsys.readouterr().out.strip()
    assert line.startswith("level=info ts=")
    assert "level_number=1" in line


@pytest.mark.parametrize("key", ["level", "ts", "logger"])
def test_reserved_field_renamed_in_key_value_mode(monkeypatch, capsys, key):
    monkeypatch.setenv("DELVE_LOG_LEVEL", "info")
    monkeypatch.delenv("DELVE_LOG_JSON", raising=False)
    get_logger("delve.test").info(event="x", **{key: 1})
    line = capsys.readouterr().out.strip()
    assert line.startswith("level=info ts=")
    assert "logger=delve.test" in line
    assert f"field_{key}=1" in line


@pytest.mark.parametrize("key", ["level", "ts", "logger"])
def test_reserved_field_renamed_in_json_mode(monkeypatch, capsys, key):
    monkeypatch.setenv("DELVE_LOG_LEVEL", "info")
    monkeypatch.setenv("DELVE_LOG_JSON", "1")
    get_logger("delve.test").bind(**{key: "bound"}).info(event="x", self=2)
    rec = json.loads(capsys.readouterr().out.strip())
    assert rec["level"] == "info"
    assert isinstance(rec["ts"], int)
    assert rec["logger"] == "delve.test"
    assert rec[f"field_{key}"] == "bound"
    assert rec["self"] == 2


def test_generate_level_logs_at_default_threshold(monkeypatch, capsys):
    monkeypatch.delenv("DELVE_LOG_LEVEL", raising=False)
    monkeypatch.delenv("DELVE_LOG_JSON", raising=False)
    level = generate_level("normal", 1, rng=random.Random(3))
    assert level.level_number == 1
    out = capsys.readouterr().out
    assert "event=level_generated" in out
    assert "level_number=1" in out


def test_flask_json_keeps_insertion_order(test_app):
    assert test_app.json.sort_keys is False

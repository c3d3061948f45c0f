import importlib
import json
import sys

import pytest

# run.py is imported as a module; parse_args and main are exercised with
# start_server / start_play_shell patched so no server or prompt starts.


@pytest.fixture()
def run_module():
    # Ensure a clean import each time (run.py reads VERSION once)
    if "run" in sys.modules:
        del sys.modules["run"]
    return importlib.import_module("run")


@pytest.fixture(autouse=True)
def _quiet_events(monkeypatch):
    monkeypatch.setenv("DELVE_LOG_LEVEL", "error")


def test_version_flag_outputs_version(run_module, capsys):
    with pytest.raises(SystemExit) as exc:
        run_module.parse_args(["--version"])
    assert exc.value.code == 0
    out = capsys.readouterr().out
    assert run_module.__version__ in out
    assert "Delve Dungeon Server" in out


def test_default_command_is_server(run_module):
    assert run_module.parse_args([]).command == "server"


def test_server_main_invokes_start_server(monkeypatch, run_module):
    calls = {}

    def fake_start_server(host, port, debug):
        calls.update(host=host, port=port, debug=debug)

    monkeypatch.setenv("PORT", "5555")
    monkeypatch.setenv("HOST", "127.0.0.1")
    import delve.server as server_mod

    monkeypatch.setattr(server_mod, "start_server", fake_start_server)
    assert run_module.main(["server"]) == 0
    assert calls == {"host": "127.0.0.1", "port": 5555, "debug": False}


def test_server_flags_override_env(monkeypatch, run_module):
    calls = {}
    monkeypatch.setenv("PORT", "5555")
    import delve.server as server_mod

    monkeypatch.setattr(server_mod, "start_server", lambda host, port, debug: calls.update(port=port, debug=debug))
    run_module.main(["server", "--port", "6001", "--debug"])
    assert calls == {"port": 6001, "debug": True}


def test_play_mode_invokes_shell(monkeypatch, run_module):
    calls = {}
    import delve.server as server_mod

    def fake_shell(seed=None, player_name="Adventurer", color=True):
        calls.update(seed=seed, player_name=player_name)

    monkeypatch.setattr(server_mod, "start_play_shell", fake_shell)
    assert run_module.main(["play", "--seed", "9", "--name", "Rook"]) == 0
    assert calls == {"seed": 9, "player_name": "Rook"}


def test_generate_json_output(run_module, capsys):
    assert run_module.main(["generate", "--difficulty", "easy", "--seed", "7", "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["seed"] == 7
    level = data["level"]
    assert level["difficulty"] == "easy"
    assert level["start"] == "0,0"
    assert len(level["rooms"]) == level["width"] * level["height"]


def test_generate_summary_is_deterministic(run_module, capsys):
    run_module.main(["generate", "--difficulty", "hard", "--seed", "3"])
    first = capsys.readouterr().out
    run_module.main(["generate", "--difficulty", "hard", "--seed", "3"])
    second = capsys.readouterr().out
    assert "Seed: 3" in first
    assert "Delve Generate" in first
    assert "Treasure" in first

    def strip_timing(text):
        return [line for line in text.splitlines() if not line.startswith(("Metrics:", "Phases"))]

    assert strip_timing(first) == strip_timing(second)


def test_generate_rejects_unknown_difficulty(run_module, capsys):
    assert run_module.main(["generate", "--difficulty", "brutal"]) == 1
    assert "[ERROR]" in capsys.readouterr().out


def test_saves_lists_nothing(run_module, capsys):
    assert run_module.main(["saves"]) == 0
    assert "No saved games." in capsys.readouterr().out

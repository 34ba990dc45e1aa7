"""
Tests for the command-line interface.
"""

import pytest

from ..cli import main


@pytest.fixture
def saved_game(tmp_path):
    main(["new", "Alice", "Bob", "--save", "friday", "--save-dir", str(tmp_path)])
    return tmp_path / "friday.json"


def test_new_saves_a_game(saved_game):
    assert saved_game.exists()


def test_replay(saved_game, capsys):
    assert main(["replay", str(saved_game)]) == 0
    out = capsys.readouterr().out
    assert "Phase: playing" in out
    assert "Turn: 1 (Alice)" in out
    assert "1. Alice: 3 VP" in out


def test_log(saved_game, capsys):
    assert main(["log", str(saved_game)]) == 0
    assert "Started Game [Alice]" in capsys.readouterr().out


def test_undo_check(saved_game, capsys):
    assert main(["undo-check", str(saved_game), "0"]) == 2
    assert "cannot be undone" in capsys.readouterr().out


def test_undo_check_bad_index(saved_game):
    with pytest.raises(SystemExit):
        main(["undo-check", str(saved_game), "9"])


def test_missing_file(tmp_path, capsys):
    with pytest.raises(SystemExit):
        main(["replay", str(tmp_path / "nope.json")])
    assert "File not found" in capsys.readouterr().out


def test_recipes(capsys):
    assert main(["recipes"]) == 0
    out = capsys.readouterr().out
    assert "Seaside:" in out
    assert "Caravan" in out

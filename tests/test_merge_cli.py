import re

import pytest

import merge_cli
from merge_core import GameProgressState

# RIGHT slides the last row to [0, 8, 16, 8]; whichever tile spawns at (3, 0)
# has no equal neighbour, so the game ends after one move.
ONE_MOVE_FROM_LOSS = [
    [2, 4, 2, 4],
    [4, 2, 4, 2],
    [32, 4, 2, 4],
    [8, 16, 8, 0],
]


@pytest.fixture
def feed_input(monkeypatch):
    def feed(*lines):
        remaining = iter(lines)
        monkeypatch.setattr("builtins.input", lambda prompt="": next(remaining))
    return feed


def test_quit_immediately(feed_input, capsys):
    feed_input("q")
    assert merge_cli.main(["--seed", "1"]) == 0
    out = capsys.readouterr().out
    assert "Quitting game." in out
    assert "Final score: 0" in out


def test_invalid_key_is_reported(feed_input, capsys):
    feed_input("x", "Q")
    merge_cli.main(["--seed", "1"])
    assert "Invalid input. Use W, A, S, D." in capsys.readouterr().out


def test_hint_is_printed(feed_input, monkeypatch, capsys):
    monkeypatch.setattr(merge_cli, "get_hint", lambda board, score: "Move UP: test")
    feed_input("h", "q")
    merge_cli.main(["--seed", "2"])
    assert "Hint: Move UP: test" in capsys.readouterr().out


def test_game_ends_on_loss(feed_input, monkeypatch, capsys):
    monkeypatch.setattr(
        merge_cli, "initialize_board",
        lambda rng: ([list(row) for row in ONE_MOVE_FROM_LOSS], 0, GameProgressState.IN_PROGRESS),
    )
    feed_input("A", "D")
    merge_cli.main(["--seed", "4"])
    out = capsys.readouterr().out
    assert "Move did not change the board. Try one of: DOWN, RIGHT." in out
    assert "GAME OVER!" in out
    assert "No more moves possible." in out


def test_win_is_announced_once(feed_input, monkeypatch, capsys):
    board = [[0] * 4 for _ in range(4)]
    board[0][0] = 8
    board[0][1] = 8
    monkeypatch.setattr(merge_cli, "initialize_board", lambda rng: (board, 0, GameProgressState.IN_PROGRESS))
    feed_input("a", "d", "q")
    merge_cli.main(["--seed", "9", "--win-tile", "16"])
    out = capsys.readouterr().out
    assert out.count("You reached 16!") == 1
    final_score = int(re.search(r"Final score: (\d+)", out).group(1))
    assert final_score >= 16


def test_unknown_log_level_is_rejected():
    with pytest.raises(SystemExit):
        merge_cli.parse_args(["--log-level", "BASIC_FORMAT"])
    assert merge_cli.parse_args(["--log-level", "debug"]).log_level == "DEBUG"

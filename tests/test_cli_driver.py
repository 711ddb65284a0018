import pytest

import cli_driver
from core import Engine, GameStatus


def _feed(monkeypatch: pytest.MonkeyPatch, *commands: str) -> None:
    answers = iter(commands)

    def fake_input(prompt: str = "") -> str:
        try:
            return next(answers)
        except StopIteration:
            raise EOFError from None

    monkeypatch.setattr("builtins.input", fake_input)


def test_move_then_quit(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str], rng) -> None:
    engine = Engine.from_values([[2, 2, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0]], rng=rng)
    _feed(monkeypatch, "a", "q")

    snapshot = cli_driver.main(engine)

    assert snapshot.score == 4
    out = capsys.readouterr().out
    assert "Score: 4" in out
    assert "Quitting game." in out


def test_invalid_and_blocked_input(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str], rng) -> None:
    engine = Engine.from_values([[2, 4, 8, 16], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0]], rng=rng)
    _feed(monkeypatch, "x", "a", "q")

    cli_driver.main(engine)

    out = capsys.readouterr().out
    assert "Invalid input" in out
    assert "Move did not change the board" in out


def test_win_continue_and_new_game(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str], rng) -> None:
    engine = Engine.from_values([[1024, 1024, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0]], rng=rng)
    _feed(monkeypatch, "a", "c")

    snapshot = cli_driver.main(engine)  # input runs out -> EOF quits

    assert snapshot.status == GameStatus.ONGOING
    assert engine.continued is True
    assert "YOU WON!" in capsys.readouterr().out

    _feed(monkeypatch, "n", "q")
    snapshot = cli_driver.main(engine)

    assert snapshot.score == 0
    assert engine.continued is False


def test_game_over_rejects_moves(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str], rng) -> None:
    engine = Engine.from_values(
        [[2, 4, 2, 4], [4, 2, 4, 2], [2, 4, 2, 4], [4, 2, 4, 2]], rng=rng
    )
    _feed(monkeypatch, "w", "q")

    snapshot = cli_driver.main(engine)

    assert snapshot.status == GameStatus.GAME_OVER
    out = capsys.readouterr().out
    assert "GAME OVER!" in out
    assert "The game is over" in out


def test_display_marks_empty_cells(capsys: pytest.CaptureFixture[str]) -> None:
    cli_driver.display_board_state(Engine.from_values([[2, 0], [0, 4]]).snapshot())

    out = capsys.readouterr().out
    assert "2\t." in out
    assert ".\t4" in out
    assert "Status: ONGOING" in out

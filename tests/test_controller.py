from __future__ import annotations

import asyncio
from typing import List, Tuple

import pytest

from marubatsu.ai.agent import AIAgent
from marubatsu.controller import GameController
from marubatsu.engine import GameResult, Mark


@pytest.fixture()
def results() -> List[Tuple[GameResult, Mark]]:
    return []


@pytest.fixture()
def game(results) -> GameController:
    return GameController(
        agent=AIAgent(mark=Mark.O, choose=lambda cells: cells[0]),
        on_game_end=lambda result, mark: results.append((result, mark)),
        ai_delay=0.0,
    )


def test_human_moves_first_and_turns_alternate(game: GameController) -> None:
    assert game.turn is Mark.X
    game.play(0)
    assert game.board[0] is Mark.X
    assert game.turn is Mark.O
    assert game.ai_move() == 4
    assert game.turn is Mark.X


def test_human_cannot_move_during_ai_turn(game: GameController) -> None:
    game.play(0)
    with pytest.raises(ValueError, match="Wait for the AI"):
        game.play(1)


def test_occupied_cell_is_rejected(game: GameController) -> None:
    game.play(0)
    game.ai_move()
    with pytest.raises(ValueError, match="already taken"):
        game.play(4)
    assert game.turn is Mark.X


def test_ai_cannot_move_on_human_turn(game: GameController) -> None:
    with pytest.raises(ValueError, match="Not the AI's turn"):
        game.ai_move()


def test_human_win_is_reported(results) -> None:
    game = GameController(
        agent=AIAgent(mark=Mark.O, choose=lambda cells: 2 if 2 in cells else cells[0]),
        on_game_end=lambda result, mark: results.append((result, mark)),
    )
    game.play(0)
    assert game.ai_move() == 4
    game.play(8)
    assert game.ai_move() == 2
    game.play(6)  # blocks 2-4-6 and forks 0-3-6 / 6-7-8
    assert game.ai_move() == 3
    game.play(7)
    assert game.result is GameResult.WIN
    assert game.winner is Mark.X
    assert game.line == (6, 7, 8)
    assert not game.active
    assert results == [(GameResult.WIN, Mark.X)]
    with pytest.raises(ValueError, match="already finished"):
        game.play(1)


def test_loss_when_ai_completes_line(results) -> None:
    game = GameController(
        agent=AIAgent(mark=Mark.O, choose=lambda cells: cells[0]),
        on_game_end=lambda result, mark: results.append((result, mark)),
    )
    game.play(0)
    assert game.ai_move() == 4
    game.play(8)
    assert game.ai_move() == 1
    game.play(2)  # X ignores the threat on 1-4-7
    assert game.ai_move() == 7
    assert game.result is GameResult.LOSE
    assert game.winner is Mark.O
    assert game.line == (1, 4, 7)
    assert results == [(GameResult.LOSE, Mark.X)]


def test_draw_is_reported(results) -> None:
    game = GameController(
        agent=AIAgent(mark=Mark.O, choose=lambda cells: cells[0]),
        on_game_end=lambda result, mark: results.append((result, mark)),
    )
    # X 0, O 4, X 8, O 1 (fallback), X 7 (block), O 6 (block 6-7-8),
    # X 2 (block 2-4-6), O 5 (block 2-5-8), X 3.
    for human in (0, 8, 7, 2):
        game.play(human)
        game.ai_move()
    game.play(3)
    assert game.result is GameResult.DRAW
    assert game.winner is None
    assert results == [(GameResult.DRAW, Mark.X)]


def test_reporter_failure_does_not_break_the_game() -> None:
    def broken(result, mark):
        raise RuntimeError("database is down")

    game = GameController(agent=AIAgent(choose=lambda cells: cells[0]), on_game_end=broken)
    game.play(0)
    game.ai_move()
    game.play(8)
    game.ai_move()
    game.play(2)
    game.ai_move()
    assert game.result is GameResult.LOSE


def test_reset_clears_board(game: GameController) -> None:
    game.play(0)
    game.reset()
    assert game.board == [None] * 9
    assert game.turn is Mark.X
    assert game.active


def test_shared_mark_is_rejected() -> None:
    with pytest.raises(ValueError):
        GameController(agent=AIAgent(mark=Mark.X), human=Mark.X)


def test_snapshot_is_json_friendly(game: GameController) -> None:
    game.play(0)
    snap = game.snapshot()
    assert snap["board"][0] == "X"
    assert snap["turn"] == "O"
    assert snap["active"] is True
    assert snap["result"] is None
    assert snap["human"] == "X" and snap["ai"] == "O"


def test_ai_move_is_deferred_on_the_loop(game: GameController) -> None:
    moved = []

    async def scenario() -> None:
        loop = asyncio.get_running_loop()
        game.ai_delay = 0.01
        game.play(0)
        handle = game.schedule_ai_move(loop, callback=lambda g: moved.append(g.board[4]))
        assert handle is not None
        assert game.board[4] is None
        await asyncio.sleep(0.05)

    asyncio.run(scenario())
    assert moved == [Mark.O]
    assert game.turn is Mark.X


def test_reset_cancels_pending_ai_move(game: GameController) -> None:
    async def scenario() -> None:
        game.ai_delay = 0.01
        game.play(0)
        game.schedule_ai_move(asyncio.get_running_loop())
        game.reset()
        await asyncio.sleep(0.05)

    asyncio.run(scenario())
    assert game.board == [None] * 9
    assert game.turn is Mark.X


def test_schedule_is_noop_on_human_turn(game: GameController) -> None:
    async def scenario():
        return game.schedule_ai_move(asyncio.get_running_loop())

    assert asyncio.run(scenario()) is None

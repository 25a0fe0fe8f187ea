from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Callable, Dict, Optional

from marubatsu.ai import AIAgent
from marubatsu.engine import (
    Board,
    GameResult,
    Line,
    Mark,
    empty_board,
    is_full,
    place,
    serialize_board,
    winning_line,
)

logger = logging.getLogger(__name__)

ResultReporter = Callable[[GameResult, Mark], object]


class GameController:
    """Owns one board and alternates the human and AI turns.

    The human always moves first. After every placement the board is checked
    for a completed line or a draw; when the game ends the result is passed
    to ``on_game_end`` from the human's perspective.
    """

    def __init__(
        self,
        agent: Optional[AIAgent] = None,
        on_game_end: Optional[ResultReporter] = None,
        human: Mark = Mark.X,
        ai_delay: float = 0.5,
    ) -> None:
        self.id = uuid.uuid4().hex[:8]
        self.human = human
        self.agent = agent or AIAgent(mark=human.opponent())
        if self.agent.mark is human:
            raise ValueError("AI and human cannot share a mark")
        self.on_game_end = on_game_end
        self.ai_delay = ai_delay
        self._timer: Optional[asyncio.TimerHandle] = None
        self.reset()

    @property
    def ai(self) -> Mark:
        return self.agent.mark

    @property
    def active(self) -> bool:
        return self.result is None

    def close(self) -> None:
        """Drop a pending AI move; the game is no longer served."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def reset(self) -> None:
        self.close()
        self.board: Board = empty_board()
        self.turn: Mark = self.human
        self.winner: Optional[Mark] = None
        self.line: Optional[Line] = None
        self.result: Optional[GameResult] = None
        logger.info("Game %s started, human plays %s", self.id, self.human.value)

    def play(self, index: int) -> None:
        """Place the human mark at ``index``."""
        if not self.active:
            raise ValueError("Game already finished")
        if self.turn is not self.human:
            raise ValueError("Wait for the AI to move")
        self._apply(index, self.human)

    def ai_move(self) -> int:
        self._timer = None
        if not self.active:
            raise ValueError("Game already finished")
        if self.turn is not self.ai:
            raise ValueError("Not the AI's turn")
        index = self.agent.select_move(self.board)
        self._apply(index, self.ai)
        return index

    def schedule_ai_move(
        self,
        loop: asyncio.AbstractEventLoop,
        callback: Optional[Callable[["GameController"], None]] = None,
    ) -> Optional[asyncio.TimerHandle]:
        """Run :meth:`ai_move` on ``loop`` after ``ai_delay`` seconds."""
        if not self.active or self.turn is not self.ai:
            return None

        def fire() -> None:
            if not self.active or self.turn is not self.ai:
                return
            self.ai_move()
            if callback is not None:
                callback(self)

        self._timer = loop.call_later(self.ai_delay, fire)
        return self._timer

    def _apply(self, index: int, mark: Mark) -> None:
        self.board = place(self.board, index, mark)
        line = winning_line(self.board)
        if line is not None:
            self.line = line
            self.winner = mark
            self._finish(GameResult.WIN if mark is self.human else GameResult.LOSE)
        elif is_full(self.board):
            self._finish(GameResult.DRAW)
        else:
            self.turn = mark.opponent()

    def _finish(self, result: GameResult) -> None:
        self.result = result
        logger.info("Game %s finished: %s", self.id, result.value)
        if self.on_game_end is None:
            return
        try:
            self.on_game_end(result, self.human)
        except Exception:
            # Reporting never interrupts play.
            logger.exception("Could not report result for game %s", self.id)

    def snapshot(self) -> Dict:
        """Serialize the game to a JSON-friendly dict."""
        return {
            "id": self.id,
            "board": serialize_board(self.board),
            "turn": self.turn.value,
            "winner": self.winner.value if self.winner else None,
            "line": list(self.line) if self.line else None,
            "result": self.result.value if self.result else None,
            "active": self.active,
            "human": self.human.value,
            "ai": self.ai.value,
        }

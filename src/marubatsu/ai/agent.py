from __future__ import annotations

import logging
import random
from typing import Callable, Optional, Sequence

from marubatsu.engine import CENTER, Mark, empty_cells, winner

logger = logging.getLogger(__name__)

Chooser = Callable[[Sequence[int]], int]


def _completing_cell(board: Sequence[Optional[Mark]], cells: Sequence[int], mark: Mark) -> Optional[int]:
    """First empty cell (ascending) where ``mark`` would complete a line."""
    for idx in cells:
        trial = list(board)
        trial[idx] = mark
        if winner(trial) == mark:
            return idx
    return None


def select_move(
    board: Sequence[Optional[Mark]],
    mark: Mark = Mark.O,
    choose: Optional[Chooser] = None,
) -> int:
    """Pick a cell for ``mark``: win now, else block, else center, else random.

    This is a greedy one-ply lookahead; a player can still beat it with a fork.
    ``choose`` receives the remaining empty cells when the random fallback is
    reached and defaults to :func:`random.choice`.
    """
    mark = Mark(mark)
    cells = empty_cells(board)
    if not cells:
        raise ValueError("No empty cells left to play")

    move = _completing_cell(board, cells, mark)
    if move is not None:
        return move
    move = _completing_cell(board, cells, mark.opponent())
    if move is not None:
        return move
    if board[CENTER] is None:
        return CENTER
    return (choose or random.choice)(cells)


class AIAgent:
    """One-ply heuristic opponent with a reproducible random fallback."""

    def __init__(
        self,
        mark: Mark = Mark.O,
        seed: Optional[int] = None,
        choose: Optional[Chooser] = None,
    ) -> None:
        self.mark = mark
        self.seed = seed
        self._rng = random.Random(seed)
        self._choose = choose or self._rng.choice

    def select_move(self, board: Sequence[Optional[Mark]]) -> int:
        move = select_move(board, self.mark, choose=self._choose)
        logger.debug("AI (%s) picks cell %d", self.mark.value, move)
        return move

"""Board rules for marubatsu (3x3 tic-tac-toe).

The engine is pure and UI-agnostic so it can be shared by the server, the CLI
and the AI. A board is a list of nine cells in row-major order; each cell is
``None`` or a :class:`Mark`. Helpers for a compact 9-character notation
(e.g. ``"X.O......"``) are provided for the CLI and tests.
"""
from __future__ import annotations

from enum import Enum
from typing import List, Optional, Sequence, Tuple

BOARD_SIZE = 9
CENTER = 4
EMPTY_TOKENS = ".-_ "

Line = Tuple[int, int, int]

LINES: Sequence[Line] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


class Mark(str, Enum):
    X = "X"
    O = "O"

    def opponent(self) -> "Mark":
        return Mark.O if self is Mark.X else Mark.X


class GameResult(str, Enum):
    WIN = "win"
    LOSE = "lose"
    DRAW = "draw"


Board = List[Optional[Mark]]


def empty_board() -> Board:
    return [None] * BOARD_SIZE


def winning_line(board: Sequence[Optional[Mark]]) -> Optional[Line]:
    """Return the first completed line in ``LINES`` order, if any."""
    for a, b, c in LINES:
        if board[a] is not None and board[a] == board[b] == board[c]:
            return (a, b, c)
    return None


def winner(board: Sequence[Optional[Mark]]) -> Optional[Mark]:
    line = winning_line(board)
    if line is None:
        return None
    return board[line[0]]


def is_full(board: Sequence[Optional[Mark]]) -> bool:
    return all(cell is not None for cell in board)


def empty_cells(board: Sequence[Optional[Mark]]) -> List[int]:
    return [idx for idx, cell in enumerate(board) if cell is None]


def place(board: Sequence[Optional[Mark]], index: int, mark: Mark) -> Board:
    """Return a copy of ``board`` with ``mark`` placed at ``index``."""
    if not 0 <= index < BOARD_SIZE:
        raise ValueError(f"Cell index out of range: {index}")
    if board[index] is not None:
        raise ValueError(f"Cell {index} is already taken")
    next_board = list(board)
    next_board[index] = mark
    return next_board


def parse_board(text: str) -> Board:
    if len(text) != BOARD_SIZE:
        raise ValueError(f"Board must be {BOARD_SIZE} characters, got {len(text)}")
    board: Board = []
    for char in text.upper():
        if char in EMPTY_TOKENS:
            board.append(None)
        elif char in (Mark.X.value, Mark.O.value):
            board.append(Mark(char))
        else:
            raise ValueError(f"Invalid board character: {char!r}")
    return board


def format_board(board: Sequence[Optional[Mark]]) -> str:
    return "".join(cell.value if cell is not None else "." for cell in board)


def serialize_board(board: Sequence[Optional[Mark]]) -> List[Optional[str]]:
    """Serialize a board to a JSON-friendly list."""
    return [cell.value if cell is not None else None for cell in board]

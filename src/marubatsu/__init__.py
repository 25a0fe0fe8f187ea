"""marubatsu package."""

from .engine import (  # noqa: F401
    LINES,
    GameResult,
    Mark,
    empty_board,
    empty_cells,
    format_board,
    is_full,
    parse_board,
    place,
    winner,
    winning_line,
)
from .ai import AIAgent, select_move  # noqa: F401
from .controller import GameController  # noqa: F401
__all__ = [
    "__version__",
    "LINES",
    "GameResult",
    "Mark",
    "empty_board",
    "empty_cells",
    "format_board",
    "is_full",
    "parse_board",
    "place",
    "winner",
    "winning_line",
    "AIAgent",
    "select_move",
    "GameController",
    "create_app",
]

__version__ = "0.1.0"


def create_app(*args, **kwargs):
    """Lazy import to avoid loading FastAPI and SQLAlchemy unless requested."""
    from marubatsu.api import create_app as factory

    return factory(*args, **kwargs)

"""AI components: the one-ply heuristic move selector."""

from .agent import AIAgent, select_move  # noqa: F401

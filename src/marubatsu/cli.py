"""Simple CLI entrypoint for marubatsu."""
import argparse
import dataclasses
import logging
import random

from . import __version__
from .ai import select_move
from .config import Settings
from .engine import Mark, empty_cells, format_board, parse_board, winner


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="marubatsu")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    parser.add_argument("--serve", action="store_true", help="Run FastAPI server")
    parser.add_argument("--host", default="127.0.0.1", help="Server host")
    parser.add_argument("--port", type=int, default=8000, help="Server port")
    parser.add_argument(
        "--db",
        default=None,
        help="SQLAlchemy database URL for the stats table (default: $MARUBATSU_DATABASE_URL).",
    )
    parser.add_argument(
        "--ai-delay",
        type=float,
        default=None,
        help="Seconds the AI waits before answering a move (default: $MARUBATSU_AI_DELAY or 0.5).",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for the AI's random fallback.")
    parser.add_argument("--stats", action="store_true", help="Print the win/loss/draw tally.")
    parser.add_argument(
        "--suggest",
        metavar="BOARD",
        default=None,
        help="Print the AI move for a 9-character board such as 'XX.O.....'.",
    )
    parser.add_argument(
        "--mark",
        choices=[m.value for m in Mark],
        default=Mark.O.value,
        help="Mark the AI plays with --suggest (default: O).",
    )
    return parser


def _settings(args: argparse.Namespace) -> Settings:
    settings = Settings.from_env()
    overrides = {}
    if args.db is not None:
        overrides["database_url"] = args.db
    if args.ai_delay is not None:
        overrides["ai_delay"] = max(0.0, args.ai_delay)
    if args.seed is not None:
        overrides["ai_seed"] = args.seed
    return dataclasses.replace(settings, **overrides)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="[%(levelname)s] %(message)s")
    try:
        settings = _settings(args)
    except ValueError as exc:
        logging.error("Invalid configuration: %s", exc)
        return 2
    if not args.verbose:
        logging.getLogger().setLevel(getattr(logging, settings.log_level, logging.INFO))

    if args.version:
        print(__version__)
        return 0

    if args.suggest is not None:
        try:
            board = parse_board(args.suggest)
        except ValueError as exc:
            logging.error("Invalid board: %s", exc)
            return 2
        if winner(board) is not None or not empty_cells(board):
            logging.error("Board %s is already decided", format_board(board))
            return 2
        move = select_move(board, Mark(args.mark), choose=random.Random(settings.ai_seed).choice)
        print(move)
        return 0

    if args.stats:
        from .stats import StatsStore, StatsStoreError

        try:
            tally = StatsStore(settings.database_url).tally()
        except StatsStoreError as exc:
            logging.error("%s", exc)
            return 1
        print(f"wins={tally.wins} losses={tally.losses} draws={tally.draws}")
        return 0

    if args.serve:
        try:
            from uvicorn import run
            from marubatsu.api import create_app
        except ImportError:
            print("uvicorn and fastapi are required to serve the API. Install extras.")
            return 1

        run(create_app(settings), host=args.host, port=args.port, reload=False)
        return 0

    build_parser().print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

"""Persisted win/loss/draw tally.

Results are appended to a single ``game_stats`` table; the tally is
recomputed by aggregation on every read rather than kept as counters.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Dict, Union

from sqlalchemy import Column, DateTime, Integer, String, case, create_engine, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from marubatsu.engine import GameResult, Mark

logger = logging.getLogger(__name__)

Base = declarative_base()


class GameRecord(Base):
    __tablename__ = "game_stats"

    id = Column(Integer, primary_key=True, autoincrement=True)
    result = Column(String, nullable=False)
    player_mark = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())


@dataclass(frozen=True)
class Tally:
    wins: int = 0
    losses: int = 0
    draws: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


class StatsStoreError(RuntimeError):
    """Raised when the backing database cannot be read or written."""


def _tally_query():
    return select(
        func.count(case((GameRecord.result == GameResult.WIN.value, 1))).label("wins"),
        func.count(case((GameRecord.result == GameResult.LOSE.value, 1))).label("losses"),
        func.count(case((GameRecord.result == GameResult.DRAW.value, 1))).label("draws"),
    )


class StatsStore:
    def __init__(self, database_url: str) -> None:
        connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
        try:
            self.engine = create_engine(database_url, connect_args=connect_args)
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise StatsStoreError(f"Could not open stats database: {exc}") from exc
        self._session = sessionmaker(bind=self.engine)
        logger.info("Stats table ready at %s", self.engine.url.render_as_string(hide_password=True))

    def tally(self) -> Tally:
        try:
            with self._session() as session:
                row = session.execute(_tally_query()).one()
        except SQLAlchemyError as exc:
            raise StatsStoreError(f"Failed to fetch stats: {exc}") from exc
        return Tally(wins=row.wins, losses=row.losses, draws=row.draws)

    def record(self, result: Union[GameResult, str], player_mark: Union[Mark, str]) -> Tally:
        """Append one result and return the tally including it.

        ``player_mark`` is stored alongside the result but does not take part
        in the aggregation.
        """
        result_value = GameResult(result).value
        mark_value = Mark(player_mark).value
        try:
            with self._session.begin() as session:
                session.add(GameRecord(result=result_value, player_mark=mark_value))
                session.flush()
                row = session.execute(_tally_query()).one()
        except SQLAlchemyError as exc:
            raise StatsStoreError(f"Failed to save result: {exc}") from exc
        logger.info("Recorded %s (player %s)", result_value, mark_value)
        return Tally(wins=row.wins, losses=row.losses, draws=row.draws)

    def close(self) -> None:
        self.engine.dispose()

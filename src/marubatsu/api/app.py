from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict, defaultdict
from typing import Dict, Optional, Set

from fastapi import FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel, Field

from marubatsu.ai import AIAgent
from marubatsu.api.page import GAME_PAGE
from marubatsu.config import Settings
from marubatsu.controller import GameController
from marubatsu.engine import GameResult, Mark
from marubatsu.stats import StatsStore, StatsStoreError

logger = logging.getLogger(__name__)


class StatsRequest(BaseModel):
    result: GameResult
    player_mark: Mark = Field(alias="playerMark")


class StatsResponse(BaseModel):
    wins: int
    losses: int
    draws: int


class MoveRequest(BaseModel):
    index: int


class GameResponse(BaseModel):
    id: str
    board: list
    turn: Mark
    winner: Optional[Mark] = None
    line: Optional[list] = None
    result: Optional[GameResult] = None
    active: bool
    human: Mark
    ai: Mark


class Hub:
    def __init__(self) -> None:
        self.connections: Dict[str, Set[WebSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def connect(self, game_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self.connections[game_id].add(websocket)

    async def disconnect(self, game_id: str, websocket: WebSocket) -> None:
        async with self._lock:
            sockets = self.connections.get(game_id)
            if sockets is None:
                return
            sockets.discard(websocket)
            if not sockets:
                del self.connections[game_id]

    async def broadcast(self, game_id: str, payload: Dict) -> None:
        async with self._lock:
            recipients = list(self.connections.get(game_id, set()))
        for ws in recipients:
            try:
                await ws.send_json(payload)
            except WebSocketDisconnect:
                await self.disconnect(game_id, ws)
            except Exception:
                logger.debug("Dropping websocket for game %s", game_id, exc_info=True)
                await self.disconnect(game_id, ws)


class GameRegistry:
    """In-memory games, bounded to ``max_games``.

    When full, the least recently used finished game is evicted first, then
    the least recently used game of any kind.
    """

    def __init__(self, max_games: int) -> None:
        self.max_games = max(1, max_games)
        self._games: "OrderedDict[str, GameController]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._games)

    def __contains__(self, game_id: str) -> bool:
        return game_id in self._games

    def add(self, game: GameController) -> None:
        while len(self._games) >= self.max_games:
            self._evict()
        self._games[game.id] = game

    def get(self, game_id: str) -> Optional[GameController]:
        game = self._games.get(game_id)
        if game is not None:
            self._games.move_to_end(game_id)
        return game

    def _evict(self) -> None:
        finished = (game_id for game_id, game in self._games.items() if not game.active)
        victim = next(finished, next(iter(self._games)))
        self._games.pop(victim).close()
        logger.debug("Evicted game %s", victim)


def create_app(settings: Optional[Settings] = None, store: Optional[StatsStore] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    store = store or StatsStore(settings.database_url)
    app = FastAPI(title="Marubatsu API")
    app.state.settings = settings
    app.state.store = store
    hub = Hub()
    games = GameRegistry(settings.max_games)
    background: Set[asyncio.Future] = set()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def keep(future: asyncio.Future) -> None:
        background.add(future)
        future.add_done_callback(background.discard)

    def report_result(result: GameResult, player_mark: Mark) -> None:
        # Runs on the event loop; the write itself goes to the default executor.
        future = asyncio.get_running_loop().run_in_executor(None, store.record, result, player_mark)

        def done(fut: asyncio.Future) -> None:
            if fut.cancelled() or fut.exception() is None:
                return
            logger.error(
                "Dropping %s result, stats store unavailable",
                result.value,
                exc_info=fut.exception(),
            )

        future.add_done_callback(done)
        keep(future)

    def require_game(game_id: str) -> GameController:
        game = games.get(game_id)
        if game is None:
            raise HTTPException(status_code=404, detail="Game not found")
        return game

    def publish(game: GameController) -> None:
        keep(asyncio.create_task(hub.broadcast(game.id, game.snapshot())))

    @app.get("/health")
    async def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/", response_class=HTMLResponse)
    async def index() -> HTMLResponse:
        return HTMLResponse(GAME_PAGE)

    @app.get("/stats", response_model=StatsResponse)
    def get_stats():
        try:
            return store.tally().to_dict()
        except StatsStoreError:
            logger.exception("GET /stats failed")
            return JSONResponse({"error": "Failed to fetch stats"}, status_code=500)

    @app.post("/stats", response_model=StatsResponse)
    async def post_stats(request: Request):
        # Any malformed body or storage failure shares the generic 500 path.
        try:
            body = StatsRequest.model_validate(await request.json())
            tally = await run_in_threadpool(store.record, body.result, body.player_mark)
        except (ValueError, StatsStoreError):
            logger.exception("POST /stats failed")
            return JSONResponse({"error": "Failed to save result"}, status_code=500)
        return tally.to_dict()

    @app.post("/game", response_model=GameResponse)
    async def create_game() -> GameResponse:
        game = GameController(
            agent=AIAgent(mark=Mark.O, seed=settings.ai_seed),
            on_game_end=report_result,
            human=Mark.X,
            ai_delay=settings.ai_delay,
        )
        games.add(game)
        return GameResponse(**game.snapshot())

    @app.get("/game/{game_id}", response_model=GameResponse)
    async def get_game(game_id: str) -> GameResponse:
        return GameResponse(**require_game(game_id).snapshot())

    @app.post("/game/{game_id}/move", response_model=GameResponse)
    async def play_move(game_id: str, body: MoveRequest) -> GameResponse:
        game = require_game(game_id)
        try:
            game.play(body.index)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        game.schedule_ai_move(asyncio.get_running_loop(), callback=publish)
        publish(game)
        return GameResponse(**game.snapshot())

    @app.post("/game/{game_id}/reset", response_model=GameResponse)
    async def reset_game(game_id: str) -> GameResponse:
        game = require_game(game_id)
        game.reset()
        publish(game)
        return GameResponse(**game.snapshot())

    @app.websocket("/ws/game/{game_id}")
    async def ws_game(websocket: WebSocket, game_id: str) -> None:
        await hub.connect(game_id, websocket)
        try:
            game = games.get(game_id)
            if game:
                await websocket.send_json(game.snapshot())
            while True:
                # Keep connection open; inbound messages are ignored.
                await websocket.receive_text()
        except WebSocketDisconnect:
            await hub.disconnect(game_id, websocket)
        except Exception:
            await hub.disconnect(game_id, websocket)

    return app

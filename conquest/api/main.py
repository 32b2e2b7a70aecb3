"""
FastAPI backend for the Conquest rules engine.
Provides REST API endpoints for the game state and player actions.

Rule violations are not HTTP errors: every action endpoint answers 200 with
{"game_state": ..., "error": ...} where error is null on success.
"""

import logging

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from conquest import config
from conquest.engine.game import GameEngine

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Conquest API",
    description="Rules engine for a Risk-style territory conquest game",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request, call_next):
    """Log method and path so 500s can be traced to the failing endpoint."""
    method = request.method
    path = request.url.path
    try:
        response = await call_next(request)
    except Exception:
        logger.exception("[500] %s %s (exception)", method, path)
        raise
    if response.status_code >= 500:
        logger.error("[500] %s %s", method, path)
    return response


@app.exception_handler(Exception)
async def unhandled_exception_handler(request, exc):
    logger.error("Unhandled error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": str(exc)})


# The one live engine, built at startup.
engine: GameEngine | None = None


@app.on_event("startup")
def on_startup():
    global engine
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    engine = GameEngine.from_settings()
    logger.info("Conquest engine ready (%d players)", len(engine.state.players))


def get_engine() -> GameEngine:
    if engine is None:
        raise HTTPException(status_code=503, detail="Game engine not initialized")
    return engine


# ===== Pydantic Models =====

class ReinforceRequest(BaseModel):
    player_id: int
    territory: str
    num_armies: int


class Placement(BaseModel):
    territory: str
    num_armies: int


class BulkReinforceRequest(BaseModel):
    player_id: int
    placements: list[Placement]


class AttackRequest(BaseModel):
    player_id: int
    from_territory: str
    to_territory: str
    num_dice: int
    repeat: bool = False


class FortifyRequest(BaseModel):
    player_id: int
    from_territory: str
    to_territory: str
    num_armies: int


class MoveArmiesRequest(BaseModel):
    player_id: int
    from_territory: str
    to_territory: str
    num_armies: int


class TradeCardsRequest(BaseModel):
    player_id: int
    card_indices: list[int] = Field(min_length=3, max_length=3)


class NewGameRequest(BaseModel):
    """Either a game config file path, or a random game with num_players (default from config)."""
    config_path: str | None = None
    num_players: int | None = None


# ===== API Endpoints =====

@app.get("/")
def root():
    return {
        "message": "Conquest API",
        "version": "1.0.0",
        "endpoints": [
            "GET /game-state",
            "POST /reinforce",
            "POST /bulk_reinforce",
            "POST /attack",
            "POST /fortify",
            "POST /move_armies",
            "POST /trade_cards",
            "POST /advance_phase",
            "POST /new-game",
        ],
    }


@app.get("/game-state")
def game_state(engine: GameEngine = Depends(get_engine)):
    return engine.get_game_state().to_dict()


@app.post("/reinforce")
def reinforce(request: ReinforceRequest, engine: GameEngine = Depends(get_engine)):
    result = engine.reinforce(request.player_id, request.territory, request.num_armies)
    return result.to_dict()


@app.post("/bulk_reinforce")
def bulk_reinforce(request: BulkReinforceRequest, engine: GameEngine = Depends(get_engine)):
    placements = [(p.territory, p.num_armies) for p in request.placements]
    return engine.bulk_reinforce(request.player_id, placements).to_dict()


@app.post("/attack")
def attack(request: AttackRequest, engine: GameEngine = Depends(get_engine)):
    result = engine.attack(
        request.player_id,
        request.from_territory,
        request.to_territory,
        request.num_dice,
        request.repeat,
    )
    return result.to_dict()


@app.post("/fortify")
def fortify(request: FortifyRequest, engine: GameEngine = Depends(get_engine)):
    result = engine.fortify(
        request.player_id,
        request.from_territory,
        request.to_territory,
        request.num_armies,
    )
    return result.to_dict()


@app.post("/move_armies")
def move_armies(request: MoveArmiesRequest, engine: GameEngine = Depends(get_engine)):
    result = engine.move_armies_after_attack(
        request.player_id,
        request.from_territory,
        request.to_territory,
        request.num_armies,
    )
    return result.to_dict()


@app.post("/trade_cards")
def trade_cards(request: TradeCardsRequest, engine: GameEngine = Depends(get_engine)):
    return engine.trade_cards(request.player_id, request.card_indices).to_dict()


@app.post("/advance_phase")
def advance_phase(engine: GameEngine = Depends(get_engine)):
    return engine.advance_phase().to_dict()


@app.post("/new-game")
def new_game(request: NewGameRequest, engine: GameEngine = Depends(get_engine)):
    return engine.new_game(request.config_path, request.num_players).to_dict()

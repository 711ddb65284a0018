import logging
from typing import List, Optional
from uuid import UUID

from fastapi import FastAPI, HTTPException, Request, Response
from pydantic import BaseModel, Field
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

import core
from config import configure_logging, load_settings
from game_store import GameBusyError, GameNotFoundError, GameStore

settings = load_settings()
configure_logging(settings)
logger = logging.getLogger(__name__)

# Initialize the rate limiter
limiter = Limiter(key_func=get_remote_address)
app = FastAPI(
    title="2048 Game API",
    description="An API for playing the 2048 game. "\
                "Games live in server memory and are addressed by their game_id.",
    version="2.0.0"
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

store = GameStore(seed=settings.seed, max_games=settings.max_games)

# --- Pydantic Models for API requests and responses ---

class NewGameSettings(BaseModel):
    """Settings for creating a new game."""
    size: Optional[int] = Field(
        default=settings.board_size,
        gt=1, # Board size must be at least 2x2
        description="Size of the N x N game board (e.g., 4 for a 4x4 board)."
    )
    win_tile: Optional[int] = Field(
        default=settings.win_tile,
        gt=0,
        description="The tile value to achieve for winning the game (e.g., 2048)."
    )

class TileData(BaseModel):
    """A single tile, with the identity that follows it across moves."""
    value: int = Field(..., gt=0, description="Value of the tile.")
    identity: int = Field(..., ge=0, description="Unique id of the tile within the game.")
    row: int = Field(..., ge=0)
    column: int = Field(..., ge=0)
    merged: bool = Field(..., description="True if the tile was created by a merge in the last move.")

class GameStateData(BaseModel):
    """Represents the complete state of a game instance."""
    game_id: UUID = Field(..., description="Identifier of the game.")
    board: List[List[int]] = Field(..., description="The N x N game board, 0 for empty cells.")
    tiles: List[TileData] = Field(..., description="Occupied cells in row-major order.")
    score: int = Field(..., ge=0, description="Current score of the game.")
    progress: core.GameStatus = Field(
        ...,
        description="Current progress state of the game (ONGOING, WIN, GAME_OVER)."
    )
    win_tile: int = Field(..., gt=0, description="The tile value required to win this game instance.")
    board_size: int = Field(..., gt=0, description="The dimension N of the N x N board.")
    continued: bool = Field(..., description="True once the player chose to keep playing after a win.")

class MoveRequestData(BaseModel):
    """Data required to make a move."""
    direction: core.DIRECTION = Field(
        ...,
        description="Direction of the move (UP, DOWN, LEFT, RIGHT)."
    )

class MoveResponseData(GameStateData):
    """Response after a move, including the new game state and move effectiveness."""
    move_was_effective: bool = Field(
        ...,
        description="True if the move resulted in a change to the board state, False otherwise."
    )
    message: Optional[str] = Field(
        default=None,
        description="An optional message, e.g., if a move was invalid, game ended, or other info."
    )

def _state_fields(game_id: UUID, engine: core.Engine) -> dict:
    snapshot = engine.snapshot()
    return dict(
        game_id=game_id,
        board=snapshot.as_rows(),
        tiles=[
            TileData(value=t.value, identity=t.identity, row=t.row, column=t.column, merged=t.merged)
            for t in snapshot.tiles
        ],
        score=snapshot.score,
        progress=snapshot.status,
        win_tile=engine.win_tile,
        board_size=snapshot.size,
        continued=engine.continued,
    )

def _not_found(game_id: UUID) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Game {game_id} not found.")

# --- API Endpoints ---

@app.post("/game/new", response_model=GameStateData, summary="Start a New 2048 Game")
@limiter.limit(settings.rate_limit)
async def start_new_game(request: Request, new_game_settings: NewGameSettings):
    """
    Creates a new game based on the provided settings (size and win_tile).

    - **size**: Dimension of the N x N board (e.g., 4 for 4x4). Default is 4.
    - **win_tile**: Tile value to reach to win (e.g., 2048). Default is 2048.

    Returns the initial game state: the board with two random tiles,
    score (0), progress status (ONGOING) and the new game_id.
    """
    size = new_game_settings.size if new_game_settings.size is not None else settings.board_size
    win_tile = new_game_settings.win_tile if new_game_settings.win_tile is not None else settings.win_tile
    try:
        game_id, engine = store.create(size, win_tile)
    except ValueError as e:
        # Engine rejected the settings (e.g., a win tile that is not a power of two)
        raise HTTPException(status_code=400, detail=str(e))
    return GameStateData(**_state_fields(game_id, engine))


@app.get("/game/{game_id}", response_model=GameStateData, summary="Get the Current Game State")
@limiter.limit(settings.rate_limit)
async def get_game(request: Request, game_id: UUID):
    try:
        with store.game_lock(game_id) as engine:
            return GameStateData(**_state_fields(game_id, engine))
    except GameNotFoundError:
        raise _not_found(game_id)
    except GameBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))


@app.post("/game/{game_id}/move", response_model=MoveResponseData, summary="Make a Move in the Game")
@limiter.limit(settings.rate_limit)
async def make_move(request: Request, game_id: UUID, request_data: MoveRequestData):
    """
    Processes a player's move in the game.

    The engine will:
    1. Slide and merge every line in the chosen direction.
    2. If the move changed the board, add a new random tile (2 or 4).
    3. Determine the new game status (ONGOING, WIN, GAME_OVER).

    Returns the updated game state, whether the move was effective, and an optional message.
    """
    try:
        with store.game_lock(game_id) as engine:
            was_over = engine.status == core.GameStatus.GAME_OVER
            move_was_effective = engine.move(request_data.direction)
            fields = _state_fields(game_id, engine)
    except GameNotFoundError:
        raise _not_found(game_id)
    except GameBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Error processing move: {str(e)}")

    message_for_client: Optional[str] = None
    if was_over:
        message_for_client = "Game is over; start a new game to keep playing."
    elif fields["progress"] == core.GameStatus.WIN:
        message_for_client = (
            f"Congratulations! You've reached {fields['win_tile']}! "
            "Continue playing to improve your score."
        )
    elif fields["progress"] == core.GameStatus.GAME_OVER:
        message_for_client = "Game Over. No more valid moves."
    elif not move_was_effective:
        message_for_client = "Move was not effective; board state unchanged by slide."

    logger.debug("Game %s move %s effective=%s", game_id, request_data.direction.name, move_was_effective)
    return MoveResponseData(**fields, move_was_effective=move_was_effective, message=message_for_client)


@app.post("/game/{game_id}/continue", response_model=GameStateData, summary="Keep Playing After a Win")
@limiter.limit(settings.rate_limit)
async def continue_game(request: Request, game_id: UUID):
    """Turns a WIN back into ONGOING. Has no effect in any other state."""
    try:
        with store.game_lock(game_id) as engine:
            engine.continue_after_win()
            return GameStateData(**_state_fields(game_id, engine))
    except GameNotFoundError:
        raise _not_found(game_id)
    except GameBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))


@app.post("/game/{game_id}/reset", response_model=GameStateData, summary="Restart a Game")
@limiter.limit(settings.rate_limit)
async def reset_game(request: Request, game_id: UUID):
    """Starts the game over on the same board size and win tile, keeping its game_id."""
    try:
        with store.game_lock(game_id) as engine:
            engine.new_game()
            return GameStateData(**_state_fields(game_id, engine))
    except GameNotFoundError:
        raise _not_found(game_id)
    except GameBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))


@app.delete("/game/{game_id}", status_code=204, summary="Discard a Game")
@limiter.limit(settings.rate_limit)
async def delete_game(request: Request, game_id: UUID):
    try:
        store.delete(game_id)
    except GameNotFoundError:
        raise _not_found(game_id)
    return Response(status_code=204)

import logging
import random
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field, field_serializer, field_validator
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

import merge_core as core
import merge_hint
from merge_config import configure_logging, get_settings

logger = logging.getLogger(__name__)

# Initialize the rate limiter
limiter = Limiter(key_func=get_remote_address)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    yield


app = FastAPI(
    lifespan=lifespan,
    title="2048 Game API",
    description="A stateless API for playing the 2048 game. "\
                "Manage your game state (board, score, best score, win_tile) on the client side.",
    version="1.0.0"
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


def _rate_limit() -> str:
    return get_settings().rate_limit


def _parse_direction(value):
    if isinstance(value, str):
        try:
            return core.DIRECTION[value.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown direction {value!r}; expected UP, DOWN, LEFT or RIGHT.") from None
    return value

# --- Pydantic Models for API requests and responses ---

class NewGameSettings(BaseModel):
    """Settings for creating a new game."""
    win_tile: Optional[int] = Field(
        default=None,
        gt=0,
        description="The tile value to achieve for winning the game. Defaults to the server setting."
    )
    best_score: int = Field(default=0, ge=0, description="Best score the client has recorded so far.")
    seed: Optional[int] = Field(default=None, description="Seed for reproducible tile spawns.")


class GameStateData(BaseModel):
    """Represents the complete state of a game instance."""
    board: List[List[int]] = Field(..., description="The 4 x 4 game board, represented as a list of lists.")
    score: int = Field(..., ge=0, description="Current score of the game.")
    best_score: int = Field(..., ge=0, description="Highest score seen by this client.")
    progress: core.GameProgressState = Field(
        ...,
        description="Current progress state of the game (IN_PROGRESS, GAME_WON, GAME_OVER)."
    )
    won: bool = Field(..., description="True if any tile has reached win_tile.")
    lost: bool = Field(..., description="True if no move can change the board.")
    win_tile: int = Field(..., gt=0, description="The tile value required to win this game instance.")
    board_size: int = Field(..., gt=0, description="The dimension N of the N x N board.")

    @field_serializer("progress")
    def progress_name(self, progress: core.GameProgressState) -> str:
        return progress.name


class MoveRequestData(BaseModel):
    """Data required to make a move."""
    board: List[List[int]] = Field(..., description="Current 4 x 4 game board state before the move.")
    score: int = Field(..., ge=0, description="Current score before the move.")
    best_score: int = Field(default=0, ge=0, description="Best score the client has recorded so far.")
    direction: core.DIRECTION = Field(
        ...,
        description="Direction of the move (UP, DOWN, LEFT, RIGHT)."
    )
    win_tile: int = Field(default=core.WIN_TILE, gt=0, description="The win condition tile for this game instance.")
    seed: Optional[int] = Field(default=None, description="Seed for a reproducible spawn after this move.")

    @field_validator("direction", mode="before")
    @classmethod
    def direction_by_name(cls, value):
        return _parse_direction(value)


class MoveResponseData(GameStateData):
    """Response after a move, including the new game state and move effectiveness."""
    move_was_effective: bool = Field(
        ...,
        description="True if the move resulted in a change to the board state, False otherwise."
    )
    score_gained: int = Field(..., ge=0, description="Points scored by merges in this move.")
    message: Optional[str] = Field(
        default=None,
        description="An optional message, e.g., if a move was invalid, game ended, or other info."
    )


class HintRequestData(BaseModel):
    """Board snapshot sent to the hint service."""
    board: List[List[int]] = Field(..., description="Current 4 x 4 game board.")
    score: int = Field(..., ge=0, description="Current score.")


class HintResponseData(BaseModel):
    hint: str = Field(..., description="Free-form advice. Advisory only.")

# --- API Endpoints ---

@app.get("/health", summary="Liveness probe")
async def health():
    return {"status": "ok"}


@app.post("/game/new", response_model=GameStateData, summary="Start a New 2048 Game")
@limiter.limit(_rate_limit)
async def start_new_game(request: Request, settings: NewGameSettings):
    """
    Initializes a new 2048 game.

    - **win_tile**: Tile value to reach to win (e.g., 2048). Defaults to the server setting.
    - **best_score**: Carried through unchanged so the client keeps a single source of truth.
    - **seed**: Optional seed for reproducible spawns.

    Returns the initial game state, including the board with two random tiles,
    score (0) and progress status (IN_PROGRESS).
    """
    win_tile = settings.win_tile if settings.win_tile is not None else get_settings().win_tile
    try:
        initial_board, initial_score, _ = core.initialize_board(random.Random(settings.seed))
        current_progress = core.determine_game_status(initial_board, win_tile)

        return GameStateData(
            board=initial_board,
            score=initial_score,
            best_score=settings.best_score,
            progress=current_progress,
            won=core.is_win(initial_board, win_tile),
            lost=core.is_loss(initial_board),
            win_tile=win_tile,
            board_size=core.BOARD_SIZE
        )
    except Exception as e:
        logger.exception("Unexpected error in /game/new")
        raise HTTPException(status_code=500, detail=f"An unexpected error occurred during game creation: {str(e)}")


@app.post("/game/move", response_model=MoveResponseData, summary="Make a Move in the Game")
@limiter.limit(_rate_limit)
async def make_move(request: Request, request_data: MoveRequestData):
    """
    Processes a player's move in the game.

    The API will:
    1. Slide and merge the tiles in the chosen direction.
    2. If the move changed the board, add a new random tile (2 or 4).
    3. Determine the new game status (IN_PROGRESS, GAME_WON, GAME_OVER).

    A move that changes nothing returns the submitted state with a message.
    """
    try:
        core.validate_board(request_data.board)
    except core.InvalidBoardError as e:
        raise HTTPException(status_code=400, detail=f"Invalid board structure in request: {str(e)}")

    try:
        turn = core.play_turn(
            request_data.board,
            request_data.direction,
            random.Random(request_data.seed),
            request_data.win_tile,
        )
        final_score = request_data.score + turn.score
        current_progress = core.determine_game_status(turn.board, request_data.win_tile)

        message_for_client: Optional[str] = None
        if not turn.moved:
            message_for_client = "Move was not effective; board state unchanged by slide."
        if current_progress == core.GameProgressState.GAME_OVER:
            message_for_client = "Game Over. No more valid moves."
        elif turn.moved and turn.won and not core.is_win(request_data.board, request_data.win_tile):
            message_for_client = "Congratulations! You won! Keep playing if you like."

        return MoveResponseData(
            board=turn.board,
            score=final_score,
            best_score=max(request_data.best_score, final_score),
            progress=current_progress,
            won=turn.won,
            lost=turn.lost,
            win_tile=request_data.win_tile,
            board_size=core.BOARD_SIZE,
            move_was_effective=turn.moved,
            score_gained=turn.score,
            message=message_for_client
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Error processing move: {str(e)}")
    except Exception as e:
        logger.exception("Unexpected error in /game/move")
        raise HTTPException(status_code=500, detail=f"An unexpected server error occurred while processing the move: {str(e)}")


@app.post("/game/hint", response_model=HintResponseData, summary="Ask the AI for a Hint")
@limiter.limit(_rate_limit)
def request_hint(request: Request, request_data: HintRequestData):
    """
    Returns a short natural-language suggestion for the next move.

    Hint failures never produce an error status; the response then carries a
    fixed "unavailable" message instead.
    """
    try:
        hint = merge_hint.get_hint(request_data.board, request_data.score)
    except core.InvalidBoardError as e:
        raise HTTPException(status_code=400, detail=f"Invalid board structure in request: {str(e)}")
    return HintResponseData(hint=hint)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)

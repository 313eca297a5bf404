# merge_core.py
# Stateless rule engine for the 2048 sliding-tile puzzle.
# Every function takes a board and returns a new one; inputs are never mutated.

import logging
import random
from enum import Enum
from typing import Callable, Dict, List, NamedTuple, Tuple

logger = logging.getLogger(__name__)

BOARD_SIZE = 4
WIN_TILE = 2048
SPAWN_TWO_PROBABILITY = 0.9

Board = List[List[int]]
Cell = Tuple[int, int]


class GameProgressState(Enum):
    """Represents the current progress state of the game."""
    IN_PROGRESS = 1
    GAME_OVER = 2  # Lost
    GAME_WON = 3


class DIRECTION(Enum):
    """Represents the possible move directions."""
    UP = 1
    DOWN = 2
    LEFT = 3
    RIGHT = 4


class InvalidBoardError(ValueError):
    """Raised when a board is not a 4x4 grid of zeros and powers of two."""


class MoveOutcome(NamedTuple):
    board: Board
    score: int
    moved: bool


class TurnResult(NamedTuple):
    board: Board
    score: int
    moved: bool
    won: bool
    lost: bool


# --- Board Helper Functions ---

def validate_board(board: Board) -> None:
    """
    Checks that a board is exactly BOARD_SIZE x BOARD_SIZE and holds only
    zeros or powers of two of at least 2.
    Args:
        board (Board): The board to check.
    Raises:
        InvalidBoardError: On wrong dimensions or an illegal cell value.
    """
    if not isinstance(board, (list, tuple)) or len(board) != BOARD_SIZE:
        raise InvalidBoardError(f"Board must have exactly {BOARD_SIZE} rows.")
    for r, row in enumerate(board):
        if not isinstance(row, (list, tuple)) or len(row) != BOARD_SIZE:
            raise InvalidBoardError(f"Row {r} must have exactly {BOARD_SIZE} cells.")
        for c, value in enumerate(row):
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidBoardError(f"Cell ({r}, {c}) must be an integer, got {value!r}.")
            if value < 0:
                raise InvalidBoardError(f"Cell ({r}, {c}) is negative: {value}.")
            if value != 0 and (value < 2 or value & (value - 1)):
                raise InvalidBoardError(f"Cell ({r}, {c}) is not a power of two: {value}.")


def copy_board(board: Board) -> Board:
    return [list(row) for row in board]


def create_empty_board() -> Board:
    """Returns a fresh BOARD_SIZE x BOARD_SIZE board of zeros."""
    return [[0] * BOARD_SIZE for _ in range(BOARD_SIZE)]


def get_empty_cells(board: Board) -> List[Cell]:
    """
    Get coordinates of empty (0-value) cells in row-major order.
    Args:
        board (Board): The board to check.
    Returns:
        List[Cell]: (row, col) tuples, row 0 left to right first.
    """
    validate_board(board)
    return [
        (row, col)
        for row in range(BOARD_SIZE)
        for col in range(BOARD_SIZE)
        if board[row][col] == 0
    ]


def spawn_tile(board: Board, rng: random.Random) -> Board:
    """
    Places a new tile (90% chance of 2, 10% chance of 4) on a uniformly chosen
    empty cell of a copy of the board.
    Args:
        board (Board): The current game board.
        rng (random.Random): Random source owned by the caller.
    Returns:
        Board: A new board with one more tile, or an unchanged copy if the
               board had no empty cell.
    """
    empty_cells = get_empty_cells(board)
    new_board = copy_board(board)
    if not empty_cells:
        return new_board

    row, col = rng.choice(empty_cells)
    new_board[row][col] = 2 if rng.random() < SPAWN_TWO_PROBABILITY else 4
    logger.debug("Spawned %d at (%d, %d)", new_board[row][col], row, col)
    return new_board


def initialize_board(rng: random.Random) -> Tuple[Board, int, GameProgressState]:
    """
    Initializes a new game board with two random tiles.
    Args:
        rng (random.Random): Random source owned by the caller.
    Returns:
        Tuple[Board, int, GameProgressState]: The initial board, score (0),
                                              and game state (IN_PROGRESS).
    """
    current_board = create_empty_board()
    current_board = spawn_tile(current_board, rng)
    current_board = spawn_tile(current_board, rng)
    return current_board, 0, GameProgressState.IN_PROGRESS


# --- Line Manipulation (Core Move Logic) ---

def reduce_row_left(row: List[int]) -> Tuple[List[int], int]:
    """
    Slides a single line toward index 0 and merges equal neighbours.

    A merged tile is never merged again within the same pass, so
    [2, 2, 2, 2] becomes [4, 4, 0, 0] rather than [8, 0, 0, 0].
    Args:
        row (List[int]): The line to reduce. Not modified.
    Returns:
        Tuple[List[int], int]: The new line, padded with zeros to the input
                               length, and the points scored by its merges.
    """
    n = len(row)
    packed = [value for value in row if value != 0]
    new_row: List[int] = []
    score_gained = 0

    read_idx = 0
    while read_idx < len(packed):
        current_val = packed[read_idx]
        if read_idx + 1 < len(packed) and packed[read_idx + 1] == current_val:
            merged_value = current_val * 2
            new_row.append(merged_value)
            score_gained += merged_value
            read_idx += 2  # Skip the consumed neighbour
        else:
            new_row.append(current_val)
            read_idx += 1

    new_row += [0] * (n - len(new_row))
    return new_row, score_gained


# --- Board Transformations ---

def reverse_rows(board: Board) -> Board:
    """Returns a new board with each row reversed. Self-inverse."""
    return [list(row[::-1]) for row in board]


def rotate_clockwise(board: Board) -> Board:
    """Rotates 90 degrees clockwise. Inverse of rotate_counter_clockwise."""
    n = len(board)
    return [[board[n - 1 - j][i] for j in range(n)] for i in range(n)]


def rotate_counter_clockwise(board: Board) -> Board:
    """Rotates 90 degrees counter-clockwise. Inverse of rotate_clockwise."""
    n = len(board)
    return [[board[j][n - 1 - i] for j in range(n)] for i in range(n)]


# Each direction maps to (forward, inverse): forward turns the move into a
# leftward slide of every row, inverse restores the original orientation.
ORIENTATIONS: Dict[DIRECTION, Tuple[Callable[[Board], Board], Callable[[Board], Board]]] = {
    DIRECTION.LEFT: (copy_board, copy_board),
    DIRECTION.RIGHT: (reverse_rows, reverse_rows),
    DIRECTION.UP: (rotate_counter_clockwise, rotate_clockwise),
    DIRECTION.DOWN: (rotate_clockwise, rotate_counter_clockwise),
}


# --- Core Game Move Processing ---

def _reduce_all_rows_left(board: Board) -> MoveOutcome:
    total_score = 0
    moved = False
    reduced_board = []
    for row in board:
        new_row, row_score = reduce_row_left(row)
        if new_row != list(row):
            moved = True
        total_score += row_score
        reduced_board.append(new_row)
    return MoveOutcome(reduced_board, total_score, moved)


def move_board(board: Board, direction: DIRECTION) -> MoveOutcome:
    """
    Slides and merges the whole board in the given direction.
    Args:
        board (Board): The current game board. Not modified.
        direction (DIRECTION): The direction to move.
    Returns:
        MoveOutcome: The new board, the points scored by this move, and
                     whether any cell changed.
    Raises:
        InvalidBoardError: If the board is malformed.
        ValueError: If an invalid direction is specified.
    """
    validate_board(board)
    try:
        forward, inverse = ORIENTATIONS[direction]
    except (KeyError, TypeError):
        raise ValueError(f"Invalid direction: {direction!r}.") from None

    reduced = _reduce_all_rows_left(forward(board))
    return MoveOutcome(inverse(reduced.board), reduced.score, reduced.moved)


def legal_directions(board: Board) -> List[DIRECTION]:
    """Directions in which a move would change the board."""
    return [direction for direction in DIRECTION if move_board(board, direction).moved]


# --- Game State Checks ---

def is_loss(board: Board) -> bool:
    """
    True if the board is full and no two adjacent cells hold the same value.
    Only right and down neighbours are compared, which covers every pair once.
    """
    validate_board(board)
    for r in range(BOARD_SIZE):
        for c in range(BOARD_SIZE):
            value = board[r][c]
            if value == 0:
                return False
            if c < BOARD_SIZE - 1 and board[r][c + 1] == value:
                return False
            if r < BOARD_SIZE - 1 and board[r + 1][c] == value:
                return False
    return True


def is_win(board: Board, win_tile: int = WIN_TILE) -> bool:
    """
    Check if any tile has reached win_tile. Independent of is_loss.
    Args:
        board (Board): The game board.
        win_tile (int): The tile value that signifies a win. Default is 2048.
    Returns:
        bool: True if the game is won, False otherwise.
    """
    validate_board(board)
    return any(value >= win_tile for row in board for value in row)


def determine_game_status(board: Board, win_tile: int = WIN_TILE) -> GameProgressState:
    """
    Determines the current progress state of the game based on the board.

    A lost board reports GAME_OVER even when it also holds a winning tile,
    since no further move is possible. A won board that can still move keeps
    GAME_WON and play may continue.
    """
    if is_loss(board):
        return GameProgressState.GAME_OVER
    if is_win(board, win_tile):
        return GameProgressState.GAME_WON
    return GameProgressState.IN_PROGRESS


def play_turn(board: Board, direction: DIRECTION, rng: random.Random,
              win_tile: int = WIN_TILE) -> TurnResult:
    """
    Applies one full turn: move, spawn only if the move changed the board,
    then evaluate both terminal predicates on the resulting board.
    """
    outcome = move_board(board, direction)
    if not outcome.moved:
        next_board = copy_board(board)
    else:
        next_board = spawn_tile(outcome.board, rng)
    return TurnResult(
        board=next_board,
        score=outcome.score,
        moved=outcome.moved,
        won=is_win(next_board, win_tile),
        lost=is_loss(next_board),
    )


def format_board(board: Board) -> str:
    """Serializes a board as one line per row of comma-joined values."""
    return "\n".join(",".join(str(value) for value in row) for row in board)

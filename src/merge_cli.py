# merge_cli.py
# Play the 2048 game on the CLI using the stateless engine functions.

import argparse
import logging
import random
from typing import List, Optional

from merge_config import LOG_LEVELS, configure_logging, get_settings
from merge_core import (
    DIRECTION,
    GameProgressState,
    initialize_board,
    play_turn,
    determine_game_status,
    legal_directions,
)
from merge_hint import get_hint

logger = logging.getLogger(__name__)

DIRECTION_KEYS = {'W': DIRECTION.UP, 'A': DIRECTION.LEFT, 'S': DIRECTION.DOWN, 'D': DIRECTION.RIGHT}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Play 2048 in the terminal.")
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible tile spawns.")
    parser.add_argument("--win-tile", type=int, default=None, help="Tile value that wins (default from settings).")
    parser.add_argument("--log-level", type=str.upper, choices=LOG_LEVELS, default=None)
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)
    win_tile = args.win_tile if args.win_tile is not None else get_settings().win_tile
    rng = random.Random(args.seed)

    # 1. Initialize game
    current_board, current_score, current_progress = initialize_board(rng)
    best_score = current_score
    announced_win = False
    display_board_state(current_board, current_score, best_score, current_progress)

    # 2. Game Loop
    while current_progress != GameProgressState.GAME_OVER:
        move_input = input("Enter move (W/A/S/D for Up/Left/Down/Right, H for a hint, Q to quit): ").strip().upper()

        if move_input == 'Q':
            print("Quitting game.")
            break

        if move_input == 'H':
            print(f"Hint: {get_hint(current_board, current_score)}")
            continue

        chosen_direction = DIRECTION_KEYS.get(move_input)
        if not chosen_direction:
            print("Invalid input. Use W, A, S, D.")
            continue

        # 3. Move, spawn if the board changed, evaluate win and loss
        turn = play_turn(current_board, chosen_direction, rng, win_tile)
        if not turn.moved:
            options = ", ".join(direction.name for direction in legal_directions(current_board))
            print(f"Move did not change the board. Try one of: {options}.")
            continue

        current_board = turn.board
        current_score += turn.score
        best_score = max(best_score, current_score)
        current_progress = determine_game_status(current_board, win_tile)
        logger.debug("Moved %s for %d points", chosen_direction.name, turn.score)

        if turn.won and not announced_win:
            announced_win = True
            print(f"You reached {win_tile}! Keep playing to push your score higher.")

        display_board_state(current_board, current_score, best_score, current_progress)

    # 4. Game Ended
    if current_progress == GameProgressState.GAME_OVER:
        print("No more moves possible. Better luck next time!")
    print(f"Final score: {current_score} (best this session: {best_score})")
    return 0


# --- Display Function ---
def display_board_state(board: List[List[int]], score: int, best_score: int, progress: GameProgressState):
    """Prints the board, score, and game status to the console."""
    print(f"\nScore: {score}    Best: {best_score}")
    status_message = {
        GameProgressState.IN_PROGRESS: f"Status: {progress.name}",
        GameProgressState.GAME_WON: "YOU WON! (keep playing)",
        GameProgressState.GAME_OVER: "GAME OVER!"
    }
    print(status_message.get(progress, f"Status: {progress.name} (Unknown)"))

    for row in board:
        print("\t".join(str(value) if value else "." for value in row))
    print("-" * (len(board) * 6))


if __name__ == "__main__":
    raise SystemExit(main())

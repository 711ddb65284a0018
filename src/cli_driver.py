# cli_driver.py
# This file is intended to be run to play or test the 2048 game on the CLI

import logging
import random
from typing import Optional

from config import configure_logging, load_settings
from core import DIRECTION, Engine, GameStatus, Snapshot

logger = logging.getLogger(__name__)

DIRECTION_KEYS = {'W': DIRECTION.UP, 'A': DIRECTION.LEFT, 'S': DIRECTION.DOWN, 'D': DIRECTION.RIGHT}

def _prompt_for(snapshot: Snapshot, win_tile: int) -> str:
    if snapshot.status == GameStatus.GAME_OVER:
        return "No more moves. N for a new game, Q to quit: "
    if snapshot.status == GameStatus.WIN:
        return f"You reached {win_tile}! C to continue, N for a new game, Q to quit: "
    return "Enter move (W/A/S/D for Up/Left/Down/Right, N new game, Q to quit): "

def main(engine: Optional[Engine] = None) -> Snapshot:
    settings = load_settings()
    configure_logging(settings)

    # 1. Initialize game
    if engine is None:
        rng = random.Random(settings.seed) if settings.seed is not None else None
        engine = Engine(settings.board_size, settings.win_tile, rng=rng)
    snapshot = engine.snapshot()
    display_board_state(snapshot)

    # 2. Game Loop
    while True:
        try:
            command = input(_prompt_for(snapshot, engine.win_tile)).strip().upper()
        except EOFError:
            command = 'Q'

        if command == 'Q':
            print("Quitting game.")
            break

        if command == 'N':
            engine.new_game()
        elif command == 'C' and snapshot.status == GameStatus.WIN:
            engine.continue_after_win()
        elif command in DIRECTION_KEYS:
            # 3. Process the move; the engine spawns a tile and updates the status itself
            if not engine.move(DIRECTION_KEYS[command]):
                if snapshot.status == GameStatus.GAME_OVER:
                    print("The game is over. Press N to start again.")
                else:
                    print("Move did not change the board. Try a different direction.")
                continue
        else:
            print("Invalid input. Use W, A, S, D.")
            continue

        snapshot = engine.snapshot()
        display_board_state(snapshot)

    # 4. Game Ended
    print("\n--- Final Board State ---")
    display_board_state(snapshot)
    logger.debug("CLI session ended with score %d", snapshot.score)
    return snapshot


# --- Display Function ---
def display_board_state(snapshot: Snapshot):
    """Prints the board, score, and game status to the console."""
    print(f"\nScore: {snapshot.score}")
    status_message = {
        GameStatus.ONGOING: f"Status: {snapshot.status.name}",
        GameStatus.WIN: "YOU WON!",
        GameStatus.GAME_OVER: "GAME OVER!"
    }
    print(status_message[snapshot.status])

    for row in snapshot.as_rows():
        print("\t".join(str(value) if value else "." for value in row))
    print("-" * (snapshot.size * 6)) # Adjust width based on board size

if __name__ == "__main__":
    main()

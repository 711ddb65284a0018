# core.py
# This file holds the core engine for a 2048 game: the board, the line merge
# algorithm, tile spawning and game status tracking.

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, FrozenSet, Iterator, List, NamedTuple, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

DEFAULT_BOARD_SIZE = 4
DEFAULT_WIN_TILE = 2048
SPAWN_FOUR_PROBABILITY = 0.1

class GameStatus(Enum):
    """Represents the current progress state of the game."""
    ONGOING = "ONGOING"
    WIN = "WIN"
    GAME_OVER = "GAME_OVER"

class DIRECTION(Enum):
    """Represents the possible move directions."""
    UP = "UP"
    DOWN = "DOWN"
    LEFT = "LEFT"
    RIGHT = "RIGHT"

@dataclass(frozen=True)
class Cell:
    """An occupied board cell. Empty cells are represented by None."""
    value: int
    identity: int

@dataclass(frozen=True)
class Tile:
    """A tile as seen by consumers of a snapshot."""
    value: int
    identity: int
    row: int
    column: int
    merged: bool = False

@dataclass(frozen=True)
class Snapshot:
    """Read-only view of the engine after a command."""
    tiles: Tuple[Tile, ...]
    score: int
    status: GameStatus
    size: int

    def as_rows(self) -> List[List[int]]:
        """Returns the board as an N x N list of values, with 0 for empty cells."""
        rows = [[0] * self.size for _ in range(self.size)]
        for tile in self.tiles:
            rows[tile.row][tile.column] = tile.value
        return rows

Line = List[Optional[Cell]]
Coordinates = List[Tuple[int, int]]

class LineResult(NamedTuple):
    cells: Line
    changed: bool
    score_delta: int
    merged_identities: Tuple[int, ...]
    next_identity: int

def is_tile_value(value) -> bool:
    """True for the values a tile may hold: powers of two from 2 upwards."""
    return isinstance(value, int) and not isinstance(value, bool) and value >= 2 and value & (value - 1) == 0

# --- Board ---

class Board:
    """
    N x N grid of optional cells. Values and identities live in the same
    Cell record, so they cannot drift apart.
    """

    def __init__(self, size: int):
        self.size = size
        self._cells: List[List[Optional[Cell]]] = [[None] * size for _ in range(size)]

    def get(self, row: int, column: int) -> Optional[Cell]:
        return self._cells[row][column]

    def place(self, row: int, column: int, cell: Optional[Cell]) -> None:
        self._cells[row][column] = cell

    def read_line(self, coordinates: Coordinates) -> Line:
        return [self._cells[row][column] for row, column in coordinates]

    def write_line(self, coordinates: Coordinates, cells: Sequence[Optional[Cell]]) -> None:
        for (row, column), cell in zip(coordinates, cells):
            self._cells[row][column] = cell

    def occupied(self) -> Iterator[Tuple[int, int, Cell]]:
        """Yields (row, column, cell) for every occupied cell in row-major order."""
        for row in range(self.size):
            for column in range(self.size):
                cell = self._cells[row][column]
                if cell is not None:
                    yield row, column, cell

    def empty_cells(self) -> List[Tuple[int, int]]:
        return [
            (row, column)
            for row in range(self.size)
            for column in range(self.size)
            if self._cells[row][column] is None
        ]

    def is_full(self) -> bool:
        return not self.empty_cells()

    def contains_value(self, value: int) -> bool:
        return any(cell.value == value for _, _, cell in self.occupied())

    def has_adjacent_pair(self) -> bool:
        """
        Checks whether two horizontally or vertically adjacent cells hold equal values.
        Returns:
            bool: True if at least one merge is still available.
        """
        n = self.size
        for row, column, cell in self.occupied():
            if row < n - 1:
                below = self._cells[row + 1][column]
                if below is not None and below.value == cell.value:
                    return True
            if column < n - 1:
                right = self._cells[row][column + 1]
                if right is not None and right.value == cell.value:
                    return True
        return False

# --- Line Manipulation (Core Move Logic) ---

def _compact(cells: Sequence[Optional[Cell]]) -> Line:
    return [cell for cell in cells if cell is not None]

def _value_of(cell: Optional[Cell]) -> Optional[int]:
    return cell.value if cell is not None else None

def resolve_line(line: Sequence[Optional[Cell]], next_identity: int) -> LineResult:
    """
    Slides and merges a single line towards index 0.

    The line must already be ordered in the direction of travel. Each tile
    takes part in at most one merge, and a freshly doubled tile never merges
    again in the same pass.
    Args:
        line (Sequence[Optional[Cell]]): The cells of the line, None for empty.
        next_identity (int): The identity to hand to the first merged tile.
    Returns:
        LineResult: The new cells, whether any value moved, the score gained,
                    the identities minted for merged tiles and the advanced
                    identity counter.
    """
    n = len(line)
    working = _compact(line)
    merged = [False] * len(working)
    merged_identities: List[int] = []
    score_delta = 0

    i = 0
    while i < len(working) - 1:
        current, following = working[i], working[i + 1]
        if current.value == following.value and not merged[i] and not merged[i + 1]:
            doubled = current.value * 2
            working[i] = Cell(doubled, next_identity)
            merged_identities.append(next_identity)
            next_identity += 1
            merged[i] = True
            working[i + 1] = None
            score_delta += doubled
            i += 2
        else:
            i += 1

    result = _compact(working)
    result += [None] * (n - len(result))
    changed = any(_value_of(before) != _value_of(after) for before, after in zip(line, result))
    return LineResult(result, changed, score_delta, tuple(merged_identities), next_identity)

# --- Direction Traversal ---

# (line index, step along the line, board size) -> (row, column), where step 0
# is the cell the tiles slide towards.
_COORDINATE_MAPS: Dict[DIRECTION, Callable[[int, int, int], Tuple[int, int]]] = {
    DIRECTION.LEFT: lambda line, step, size: (line, step),
    DIRECTION.RIGHT: lambda line, step, size: (line, size - 1 - step),
    DIRECTION.UP: lambda line, step, size: (step, line),
    DIRECTION.DOWN: lambda line, step, size: (size - 1 - step, line),
}

def line_coordinates(direction: DIRECTION, line_index: int, size: int) -> Coordinates:
    """
    Lists the board coordinates of one line in the direction of travel.
    Raises:
        ValueError: If an invalid direction is specified.
    """
    mapping = _COORDINATE_MAPS.get(direction)
    if mapping is None:
        raise ValueError(f"Invalid direction specified: {direction!r}")
    return [mapping(line_index, step, size) for step in range(size)]

# --- Spawning ---

def spawn_tile(board: Board, rng, next_identity: int) -> Tuple[Optional[Tuple[int, int]], int]:
    """
    Adds a new tile (90% chance of 2, 10% chance of 4) to a uniformly chosen empty cell.
    Args:
        board (Board): The board to place the tile on.
        rng: Random source providing choice() and random().
        next_identity (int): Identity for the new tile.
    Returns:
        Tuple[Optional[Tuple[int, int]], int]: The (row, column) of the new tile, or
                                               None if the board is full, and the
                                               advanced identity counter.
    """
    empty_cells = board.empty_cells()
    if not empty_cells:
        logger.debug("No empty cells for new tile")
        return None, next_identity

    row, column = rng.choice(empty_cells)
    value = 4 if rng.random() < SPAWN_FOUR_PROBABILITY else 2
    board.place(row, column, Cell(value, next_identity))
    logger.debug("Added tile %d at (%d, %d) with id %d", value, row, column, next_identity)
    return (row, column), next_identity + 1

# --- Game State Checks ---

def evaluate_status(board: Board, status: GameStatus, continued: bool, win_tile: int = DEFAULT_WIN_TILE) -> GameStatus:
    """
    Determines the progress state of the game after a successful move.
    Args:
        board (Board): The board after the move and spawn.
        status (GameStatus): The status before the move.
        continued (bool): Whether the player already chose to keep playing after a win.
        win_tile (int): The tile value that signifies a win.
    Returns:
        GameStatus: The new status.
    """
    if status == GameStatus.GAME_OVER or (status == GameStatus.WIN and not continued):
        return status

    if not continued and board.contains_value(win_tile):
        return GameStatus.WIN

    if not board.is_full() or board.has_adjacent_pair():
        return GameStatus.ONGOING

    return GameStatus.GAME_OVER

# --- Engine ---

class Engine:
    """
    Owns one game: the board, score, status and identity counter.

    Not thread-safe; hosts must serialize calls to a single engine.
    """

    def __init__(self, size: int = DEFAULT_BOARD_SIZE, win_tile: int = DEFAULT_WIN_TILE, rng=None):
        if not isinstance(size, int) or size < 2:
            raise ValueError("Board size must be an integer of at least 2.")
        if not is_tile_value(win_tile):
            raise ValueError("Win tile must be a power of two of at least 2.")

        self._configure(size, win_tile, rng)
        self.new_game()

    def _configure(self, size: int, win_tile: int, rng) -> None:
        self._size = size
        self._win_tile = win_tile
        self._rng = rng if rng is not None else random.Random()
        self._reset()

    @classmethod
    def from_values(cls, rows: Sequence[Sequence[Optional[int]]], score: int = 0,
                    win_tile: int = DEFAULT_WIN_TILE, rng=None) -> "Engine":
        """
        Builds an engine holding the given position instead of a fresh game.
        Args:
            rows: N x N matrix of tile values, 0 or None for empty cells.
            score (int): The score to start from.
            win_tile (int): The tile value that signifies a win.
            rng: Optional random source for future spawns.
        Returns:
            Engine: The engine, with its status evaluated for the given board.
        Raises:
            ValueError: If the matrix is not square, smaller than 2 x 2, holds
                        a value that is not a tile value, or score is negative.
        """
        n = len(rows)
        if n < 2 or not all(len(row) == n for row in rows):
            raise ValueError("Board must be a square matrix of at least 2 x 2.")
        if not isinstance(score, int) or score < 0:
            raise ValueError("Score must be a non-negative integer.")
        if not is_tile_value(win_tile):
            raise ValueError("Win tile must be a power of two of at least 2.")

        # Skips new_game(), so the random source is untouched until the first move.
        engine = cls.__new__(cls)
        engine._configure(n, win_tile, rng)
        for r, row in enumerate(rows):
            for c, value in enumerate(row):
                if value is None or value == 0:
                    continue
                if not is_tile_value(value):
                    raise ValueError(f"Invalid tile value {value!r} at ({r}, {c}).")
                engine._board.place(r, c, Cell(value, engine._next_identity))
                engine._next_identity += 1
        engine._score = score
        engine._status = evaluate_status(engine._board, GameStatus.ONGOING, False, win_tile)
        logger.debug("Loaded %dx%d board, status %s", n, n, engine._status.name)
        return engine

    def _reset(self) -> None:
        self._board = Board(self._size)
        self._score = 0
        self._status = GameStatus.ONGOING
        self._next_identity = 0
        self._continued = False
        self._merged_identities: FrozenSet[int] = frozenset()

    @property
    def size(self) -> int:
        return self._size

    @property
    def win_tile(self) -> int:
        return self._win_tile

    @property
    def score(self) -> int:
        return self._score

    @property
    def status(self) -> GameStatus:
        return self._status

    @property
    def continued(self) -> bool:
        return self._continued

    def new_game(self) -> None:
        """Clears the board and starts over with two random tiles."""
        self._reset()
        for _ in range(2):
            _, self._next_identity = spawn_tile(self._board, self._rng, self._next_identity)
        logger.info("New %dx%d game started", self._size, self._size)

    def move(self, direction: DIRECTION) -> bool:
        """
        Slides every line of the board in the given direction.
        Args:
            direction (DIRECTION): The direction to move.
        Returns:
            bool: True if the board changed. A move on a finished game, or one
                  that changes nothing, returns False and leaves the board, score
                  and identities untouched. On a full board with no merge left
                  the blocked move still moves the status to GAME_OVER.
        Raises:
            ValueError: If an invalid direction is specified.
        """
        if not isinstance(direction, DIRECTION):
            raise ValueError("Invalid direction specified for move.")
        if self._status == GameStatus.GAME_OVER:
            logger.debug("move(%s) ignored: game is over", direction.name)
            return False

        next_identity = self._next_identity
        pending: List[Tuple[Coordinates, LineResult]] = []
        for line_index in range(self._size):
            coordinates = line_coordinates(direction, line_index, self._size)
            result = resolve_line(self._board.read_line(coordinates), next_identity)
            next_identity = result.next_identity
            pending.append((coordinates, result))

        if not any(result.changed for _, result in pending):
            logger.debug("Move %s did not change the board", direction.name)
            if self._board.is_full():
                # A game continued on a stuck board ends on its first blocked move.
                previous = self._status
                self._status = evaluate_status(self._board, previous, self._continued, self._win_tile)
                if self._status != previous:
                    logger.info("Game status changed: %s -> %s", previous.name, self._status.name)
            return False

        merged_identities: List[int] = []
        for coordinates, result in pending:
            self._board.write_line(coordinates, result.cells)
            self._score += result.score_delta
            merged_identities.extend(result.merged_identities)
        self._merged_identities = frozenset(merged_identities)

        _, self._next_identity = spawn_tile(self._board, self._rng, next_identity)

        previous = self._status
        self._status = evaluate_status(self._board, previous, self._continued, self._win_tile)
        if self._status != previous:
            logger.info("Game status changed: %s -> %s", previous.name, self._status.name)
        logger.debug("Move %s: %d merge(s), score %d", direction.name, len(merged_identities), self._score)
        return True

    def continue_after_win(self) -> None:
        """Lets the game go on after the win tile was reached. No-op unless status is WIN."""
        if self._status != GameStatus.WIN:
            return
        self._continued = True
        self._status = GameStatus.ONGOING
        logger.info("Continuing after win")

    def snapshot(self) -> Snapshot:
        tiles = tuple(
            Tile(
                value=cell.value,
                identity=cell.identity,
                row=row,
                column=column,
                merged=cell.identity in self._merged_identities,
            )
            for row, column, cell in self._board.occupied()
        )
        return Snapshot(tiles=tiles, score=self._score, status=self._status, size=self._size)

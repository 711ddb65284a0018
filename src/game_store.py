# game_store.py
# In-memory registry of running engines. An engine is not thread-safe, so the
# host takes a per-game lock around every command.

import logging
import random
import threading
from collections import OrderedDict
from contextlib import contextmanager
from typing import Dict, Iterator, Optional, Tuple
from uuid import UUID, uuid4

import core

logger = logging.getLogger(__name__)

class GameNotFoundError(KeyError):
    """Raised when a game id is not in the store."""

class GameBusyError(RuntimeError):
    """Raised when another command holds the game's lock."""

DEFAULT_MAX_GAMES = 1000

class GameStore:
    """
    Keeps engines in memory for the lifetime of the process. Once max_games
    engines are registered, adding another evicts the oldest one.
    """

    def __init__(self, seed: Optional[int] = None, max_games: int = DEFAULT_MAX_GAMES):
        if max_games < 1:
            raise ValueError("max_games must be at least 1.")
        self._max_games = max_games
        # insertion order doubles as eviction order
        self._games: "OrderedDict[UUID, core.Engine]" = OrderedDict()
        self._locks: Dict[UUID, threading.Lock] = {}
        self._registry_lock = threading.Lock()
        self._seeds = random.Random(seed) if seed is not None else None

    def __len__(self) -> int:
        return len(self._games)

    def _new_rng(self) -> Optional[random.Random]:
        if self._seeds is None:
            return None
        return random.Random(self._seeds.getrandbits(64))

    def create(self, size: int = core.DEFAULT_BOARD_SIZE,
               win_tile: int = core.DEFAULT_WIN_TILE) -> Tuple[UUID, core.Engine]:
        """
        Starts a new game and registers it.
        Raises:
            ValueError: If the engine rejects size or win_tile.
        """
        with self._registry_lock:
            engine = core.Engine(size, win_tile, rng=self._new_rng())
        return self.add(engine), engine

    def add(self, engine: core.Engine) -> UUID:
        game_id = uuid4()
        with self._registry_lock:
            while len(self._games) >= self._max_games:
                evicted, _ = self._games.popitem(last=False)
                del self._locks[evicted]
                logger.info("Evicted game %s, store is at its limit of %d", evicted, self._max_games)
            self._games[game_id] = engine
            self._locks[game_id] = threading.Lock()
        logger.info("Registered game %s (%dx%d)", game_id, engine.size, engine.size)
        return game_id

    def get(self, game_id: UUID) -> core.Engine:
        try:
            return self._games[game_id]
        except KeyError:
            raise GameNotFoundError(game_id) from None

    def delete(self, game_id: UUID) -> None:
        with self._registry_lock:
            if game_id not in self._games:
                raise GameNotFoundError(game_id)
            del self._games[game_id]
            del self._locks[game_id]
        logger.info("Deleted game %s", game_id)

    def clear(self) -> None:
        with self._registry_lock:
            self._games.clear()
            self._locks.clear()

    @contextmanager
    def game_lock(self, game_id: UUID) -> Iterator[core.Engine]:
        """
        Gives exclusive access to one engine for the duration of the block.
        Raises:
            GameNotFoundError: If the game does not exist.
            GameBusyError: If another command is already running on the game.
        """
        with self._registry_lock:
            engine = self.get(game_id)
            lock = self._locks[game_id]
        if not lock.acquire(blocking=False):
            raise GameBusyError(f"Game {game_id} is busy")
        try:
            yield engine
        finally:
            lock.release()

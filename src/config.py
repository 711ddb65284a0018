# config.py
# Runtime settings for the API and CLI hosts, read from GAME2048_* environment variables.

import logging
import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "GAME2048_"

class Settings(BaseModel):
    """Settings shared by the hosts that run the engine."""
    board_size: int = Field(
        default=4,
        gt=1,
        description="Default size of the N x N game board."
    )
    win_tile: int = Field(
        default=2048,
        gt=0,
        description="Default tile value to achieve for winning the game."
    )
    rate_limit: str = Field(
        default="100/minute",
        description="slowapi rate limit applied to each API endpoint."
    )
    max_games: int = Field(
        default=1000,
        gt=0,
        description="Games the API keeps in memory before evicting the oldest."
    )
    log_level: str = Field(default="INFO", description="Name of the root logging level.")
    seed: Optional[int] = Field(
        default=None,
        description="Seed for the random tile spawner. Unset means nondeterministic games."
    )

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Builds Settings from the environment.
    Args:
        environ: Mapping to read from. Defaults to os.environ.
    Returns:
        Settings: The validated settings.
    Raises:
        pydantic.ValidationError: If a variable holds an invalid value.
    """
    env = os.environ if environ is None else environ
    values = {}
    for name in Settings.model_fields:
        raw = env.get(f"{ENV_PREFIX}{name.upper()}")
        if raw is not None and raw.strip():
            values[name] = raw.strip()
    return Settings(**values)

def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

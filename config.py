from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from exceptions import ConfigurationError

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    width: int = Field(48, ge=1)
    height: int = Field(48, ge=1)
    # Delay between animation ticks, in seconds.
    tempo: float = Field(0.01, ge=0)
    seed: Optional[int] = None
    history_path: Optional[Path] = None
    log_level: LogLevel = "WARNING"
    model_config = SettingsConfigDict(env_prefix="MAZE_")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read MAZE_* environment settings once."""
    try:
        return Settings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid MAZE_* settings: {e}") from e

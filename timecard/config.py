from functools import lru_cache
from pathlib import Path
from typing import Literal, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

USER_ENV_FILE = Path("~/.config/timecard/timecard.env")
LOCAL_ENV_FILE = Path("timecard.env")


class Settings(BaseSettings):
    data_dir: Path = Field(default=Path("data"), description="Directory holding the JSON state blobs")
    log_level: str = "WARNING"
    log_format: Literal["json", "console"] = "json"

    model_config = SettingsConfigDict(env_prefix="TIMECARD_", extra="ignore")

    @field_validator("data_dir")
    @classmethod
    def expand_home(cls, value: Path) -> Path:
        return value.expanduser()

    @field_validator("log_level")
    @classmethod
    def upper_level(cls, value: str) -> str:
        return value.upper()

    @field_validator("log_format", mode="before")
    @classmethod
    def lower_format(cls, value: str) -> str:
        return value.lower() if isinstance(value, str) else value


def env_files() -> Tuple[Path, ...]:
    """Env files that exist, per-user first so a working-directory file wins."""
    candidates = (USER_ENV_FILE.expanduser(), LOCAL_ENV_FILE)
    return tuple(path for path in candidates if path.is_file())


@lru_cache
def get_settings() -> Settings:
    return Settings(_env_file=env_files() or None)

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from dotenv import load_dotenv

from .errors import ConfigurationError

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE_VALUES


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as error:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from error


def _env_pem(name: str) -> str | None:
    raw = os.environ.get(name)
    if not raw:
        return None
    # keys pasted into .env files usually carry literal "\n" sequences
    return raw.replace("\\n", "\n")


@dataclass
class Settings:
    data_dir: Path
    strict: bool = False
    recheck_on_update: bool = False
    jwt_private_key: str | None = None
    jwt_public_key: str | None = None
    jwt_algorithm: str = "RS256"
    jwt_expires_minutes: int = 60
    bcrypt_rounds: int = 10

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> "Settings":
        """Build settings from the environment, after loading ``.env`` without overriding it."""
        load_dotenv(dotenv_path=env_file, override=False)
        return cls(
            data_dir=Path(os.environ.get("BOOKING_DATA_DIR", "data")),
            strict=_env_flag("BOOKING_STRICT"),
            recheck_on_update=_env_flag("BOOKING_RECHECK_ON_UPDATE"),
            jwt_private_key=_env_pem("JWT_PRIVATE_KEY"),
            jwt_public_key=_env_pem("JWT_PUBLIC_KEY"),
            jwt_algorithm=os.environ.get("JWT_ALGORITHM", "RS256"),
            jwt_expires_minutes=_env_int("JWT_EXPIRES_MINUTES", 60),
            bcrypt_rounds=_env_int("BCRYPT_ROUNDS", 10),
        )

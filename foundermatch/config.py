"""
Configuration for the matching service.

Settings come from environment variables (optionally loaded from .env by
`foundermatch.env.load_env`).
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping, Optional

STORE_BACKENDS = ("sql", "rest")


def _env_bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    value = env.get(key)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(env: Mapping[str, str], key: str, default: int) -> int:
    value = env.get(key)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {value!r}") from None


@dataclass
class Settings:
    db_path: Path = Path("data/foundermatch.db")
    store: str = "sql"
    supabase_url: str = ""
    supabase_key: str = ""
    profiles_table: str = "profiles"
    default_k: int = 6
    max_k: int = 50
    persist_matches: bool = False
    http_timeout: int = 20
    max_retries: int = 3
    log_level: str = "INFO"
    log_dir: Path = Path("logs")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        return cls(
            db_path=Path(env.get("FOUNDERMATCH_DB_PATH") or "data/foundermatch.db"),
            store=(env.get("FOUNDERMATCH_STORE") or "sql").strip().lower(),
            supabase_url=(env.get("SUPABASE_URL") or "").rstrip("/"),
            supabase_key=env.get("SUPABASE_KEY") or "",
            profiles_table=env.get("FOUNDERMATCH_PROFILES_TABLE") or "profiles",
            default_k=_env_int(env, "FOUNDERMATCH_DEFAULT_K", 6),
            max_k=_env_int(env, "FOUNDERMATCH_MAX_K", 50),
            persist_matches=_env_bool(env, "FOUNDERMATCH_PERSIST_MATCHES", False),
            http_timeout=_env_int(env, "FOUNDERMATCH_HTTP_TIMEOUT", 20),
            max_retries=_env_int(env, "FOUNDERMATCH_MAX_RETRIES", 3),
            log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
            log_dir=Path(env.get("LOG_DIR") or "logs"),
        )

    def validate(self) -> List[str]:
        """
        Returns a list of configuration error messages. Empty list means valid.
        """
        errors: List[str] = []
        if self.store not in STORE_BACKENDS:
            errors.append(f"FOUNDERMATCH_STORE must be one of {', '.join(STORE_BACKENDS)}")
        if self.store == "rest":
            if not self.supabase_url:
                errors.append("SUPABASE_URL is required for the rest store")
            if not self.supabase_key:
                errors.append("SUPABASE_KEY is required for the rest store")
        if self.default_k < 1:
            errors.append("FOUNDERMATCH_DEFAULT_K must be a positive integer")
        if self.max_k < self.default_k:
            errors.append("FOUNDERMATCH_MAX_K must be at least FOUNDERMATCH_DEFAULT_K")
        if self.max_retries < 0:
            errors.append("FOUNDERMATCH_MAX_RETRIES must not be negative")
        if self.log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            errors.append(f"LOG_LEVEL is not a valid level: {self.log_level}")
        return errors

# src/momentum_spark/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (server and console share it).
- No secrets required at import time.
- Components take settings by injection; get_settings() is only the default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "MOMENTUM"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    db_path: Path
    preferences_path: Path

    # ---- HTTP server ----
    host: str
    port: int

    # ---- Task repository behaviour ----
    seed_on_empty: bool
    reset_recurring_on_list: bool

    # ---- Console client ----
    api_url: str
    api_timeout_seconds: float
    reminder_window_days: int

    # ---- LLM (OpenAI-compatible) ----
    openai_api_key: str | None
    openai_base_url: str | None
    llm_model: str
    llm_timeout_seconds: float

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "momentum-spark")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/momentum"))
        db_path = _env_path(_k("DB_PATH"), data_dir / "momentumspark.sqlite")
        preferences_path = _env_path(_k("PREFERENCES_PATH"), data_dir / "preferences.json")

        host = _env(_k("HOST"), "127.0.0.1")
        port = _env_int(_k("PORT"), 9002)

        seed_on_empty = _env_bool(_k("SEED_ON_EMPTY"), True)
        reset_recurring_on_list = _env_bool(_k("RESET_RECURRING_ON_LIST"), True)

        api_url = _env(_k("API_URL"), f"http://{host}:{port}")
        api_timeout_seconds = _env_float(_k("API_TIMEOUT_SECONDS"), 10.0)
        reminder_window_days = max(0, _env_int(_k("REMINDER_WINDOW_DAYS"), 1))

        openai_api_key = _first_env(_k("OPENAI_API_KEY"), "OPENAI_API_KEY", default=None)
        openai_base_url = _first_env(_k("OPENAI_BASE_URL"), "OPENAI_BASE_URL", default=None)
        llm_model = _env(_k("LLM_MODEL"), "gpt-4o-mini")
        llm_timeout_seconds = _env_float(_k("LLM_TIMEOUT_SECONDS"), 20.0)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            db_path=db_path,
            preferences_path=preferences_path,
            host=host,
            port=port,
            seed_on_empty=seed_on_empty,
            reset_recurring_on_list=reset_recurring_on_list,
            api_url=api_url,
            api_timeout_seconds=api_timeout_seconds,
            reminder_window_days=reminder_window_days,
            openai_api_key=openai_api_key,
            openai_base_url=openai_base_url,
            llm_model=llm_model,
            llm_timeout_seconds=llm_timeout_seconds,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS

import logging

from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import Optional

DEFAULT_SECURITY_SALT = "RELIEF_ANCHOR_v1_SECURE_HASH_9988"


class Settings(BaseSettings):
    # Environment
    ENV: str = "development"
    CONFIG_STRICT: bool = False

    # On-device storage (SQLite file next to the app by default)
    DATABASE_URL: str = "sqlite:///reliefanchor.db"

    # Record / recovery token signing
    SECURITY_SALT: str = DEFAULT_SECURITY_SALT

    # Free tier
    MAX_FREE_MESSAGES: int = 5

    # Premium without a plan (one-time checkout) never lapses in practice
    LIFETIME_PREMIUM_UNTIL: str = "2099-12-31"

    # Companion chat (Groq)
    GROQ_API_KEY: Optional[str] = None
    GROQ_MODEL: str = "llama-3.1-8b-instant"
    CHAT_TEMPERATURE: float = 0.7

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
settings = Settings()


def validate_config(strict: Optional[bool] = None, settings_obj: Optional[Settings] = None, logger: Optional[logging.Logger] = None) -> bool:
    """Validate configuration.

    In strict mode raise RuntimeError; otherwise emit warnings only.
    Secrets are not logged, only which keys are missing or defaulted.
    """
    cfg = settings_obj or settings
    log = logger or logging.getLogger("reliefanchor")
    strict_mode = strict if strict is not None else getattr(cfg, "CONFIG_STRICT", False)

    problems = []
    if not getattr(cfg, "GROQ_API_KEY", None):
        problems.append("missing GROQ_API_KEY")
    if cfg.ENV.lower() == "production" and cfg.SECURITY_SALT == DEFAULT_SECURITY_SALT:
        problems.append("SECURITY_SALT left at its default value")
    if cfg.MAX_FREE_MESSAGES < 0:
        problems.append("MAX_FREE_MESSAGES must be >= 0")

    if problems:
        message = f"Configuration problems: {', '.join(problems)}"
        if strict_mode:
            raise RuntimeError(message)
        log.warning(message)

    return True

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_JWT_SECRET = "dev-secret-key-change-me"


class Mode(str, Enum):
    REMOTE = "remote"
    DEMO = "demo"


def _parse_mode(value: Optional[str], legacy_flag: Optional[str]) -> Mode:
    if value:
        return Mode(value.strip().lower())
    # DEMO_MODE=true is the older spelling of the same switch
    if (legacy_flag or "").lower() == "true":
        return Mode.DEMO
    return Mode.REMOTE


def _split_origins(raw: str) -> List[str]:
    return [o.strip() for o in raw.split(",") if o.strip()]


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, built once at startup."""

    mode: Mode = Mode.REMOTE
    mongo_url: str = "mongodb://localhost:27017"
    db_name: str = "portfolio"
    demo_data_dir: str = ".demo_data"

    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    token_expire_minutes: int = 60

    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    notify_email_to: Optional[str] = None
    notify_email_from: Optional[str] = None

    cors_origins: List[str] = field(
        default_factory=lambda: ["http://localhost:5173", "http://127.0.0.1:5173"]
    )
    log_level: str = "INFO"

    @property
    def is_demo(self) -> bool:
        return self.mode is Mode.DEMO

    @classmethod
    def from_env(cls) -> "Settings":
        defaults = cls()
        origins = os.getenv("CORS_ORIGINS")
        return cls(
            mode=_parse_mode(os.getenv("PORTFOLIO_MODE"), os.getenv("DEMO_MODE")),
            mongo_url=os.getenv("MONGO_URL", defaults.mongo_url),
            db_name=os.getenv("DB_NAME", defaults.db_name),
            demo_data_dir=os.getenv("DEMO_DATA_DIR", defaults.demo_data_dir),
            jwt_secret=os.getenv("JWT_SECRET", defaults.jwt_secret),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", defaults.jwt_algorithm),
            token_expire_minutes=int(os.getenv("TOKEN_EXPIRE_MINUTES", defaults.token_expire_minutes)),
            smtp_host=os.getenv("SMTP_HOST"),
            smtp_port=int(os.getenv("SMTP_PORT", defaults.smtp_port)),
            smtp_user=os.getenv("SMTP_USER") or os.getenv("EMAIL_USER"),
            smtp_password=os.getenv("SMTP_PASSWORD") or os.getenv("EMAIL_PASS"),
            notify_email_to=os.getenv("NOTIFY_EMAIL_TO"),
            notify_email_from=os.getenv("NOTIFY_EMAIL_FROM"),
            cors_origins=_split_origins(origins) if origins else defaults.cors_origins,
            log_level=os.getenv("LOG_LEVEL", defaults.log_level),
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

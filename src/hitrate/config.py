from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


@dataclass(frozen=True)
class DatabaseConfig:
    host: str
    port: int
    database: str
    user: str
    password: str

    @property
    def dsn(self) -> str:
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"


@dataclass(frozen=True)
class AppConfig:
    db_dsn: str
    min_signal_sample: int = 5
    trend_days: int = 30
    workers: int = 1
    settle_delay_seconds: float = 0.1
    persist_metrics: bool = True


def _flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


def load_config() -> AppConfig:
    """Load application config from environment variables.

    Loads .env file if present in the current directory. DATABASE_URL wins
    over the libpq-style PGHOST/PGPORT/... variables.
    """
    env_path = Path(".env")
    if env_path.exists():
        load_dotenv(env_path)

    db_dsn = os.environ.get("DATABASE_URL", "")
    if not db_dsn and os.environ.get("PGHOST"):
        db_dsn = DatabaseConfig(
            host=os.environ["PGHOST"],
            port=int(os.environ.get("PGPORT", "5432")),
            database=os.environ.get("PGDATABASE", "hitrate"),
            user=os.environ.get("PGUSER", "hitrate"),
            password=os.environ.get("PGPASSWORD", ""),
        ).dsn

    return AppConfig(
        db_dsn=db_dsn,
        min_signal_sample=int(os.environ.get("HITRATE_MIN_SIGNAL_SAMPLE", "5")),
        trend_days=int(os.environ.get("HITRATE_TREND_DAYS", "30")),
        workers=int(os.environ.get("HITRATE_WORKERS", "1")),
        settle_delay_seconds=float(os.environ.get("HITRATE_SETTLE_DELAY", "0.1")),
        persist_metrics=_flag("HITRATE_PERSIST_METRICS", "true"),
    )

"""
Runtime configuration read from the environment.

A .env file in the working directory is loaded first when present.
"""
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    database_url: Optional[str]
    database_name: Optional[str]
    port: int = 8000
    log_level: str = "INFO"
    tax_rate: float = 0.0
    cors_origins: Optional[List[str]] = None


def _split_origins(raw: str) -> List[str]:
    return [o.strip() for o in raw.split(",") if o.strip()] or ["*"]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        database_url=os.getenv("DATABASE_URL"),
        database_name=os.getenv("DATABASE_NAME"),
        port=int(os.getenv("PORT", 8000)),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        tax_rate=float(os.getenv("TAX_RATE", 0)),
        cors_origins=_split_origins(os.getenv("CORS_ORIGINS", "*")),
    )

"""Centralized configuration loaded from .env."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_RELAY_ORDER = ("cors_sh", "codetabs", "corsproxy_io", "cors_anywhere")


def _load_env() -> None:
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(dotenv_path=env_path)
    else:
        load_dotenv()


def _split_names(raw: str) -> tuple[str, ...]:
    return tuple(name.strip() for name in raw.split(",") if name.strip())


@dataclass(frozen=True)
class Settings:
    # Crawl bounds
    max_depth: int = 3
    max_pages: int = 500

    # Scheduling; many sites rate-limit aggressively so keep batches small
    batch_size: int = 5
    crawl_delay: float = 0.5

    # Relay chain
    relay_timeout: float = 30.0
    relay_order: tuple[str, ...] = DEFAULT_RELAY_ORDER
    render_relay_url: str = ""  # empty = render relay disabled
    cors_sh_api_key: str = ""

    @classmethod
    def from_env(cls) -> Settings:
        _load_env()
        relay_order = _split_names(os.getenv("RELAY_ORDER", ""))
        return cls(
            max_depth=int(os.getenv("CRAWL_MAX_DEPTH", "3")),
            max_pages=int(os.getenv("CRAWL_MAX_PAGES", "500")),
            batch_size=int(os.getenv("CRAWL_BATCH_SIZE", "5")),
            crawl_delay=float(os.getenv("CRAWL_DELAY", "0.5")),
            relay_timeout=float(os.getenv("RELAY_TIMEOUT", "30")),
            relay_order=relay_order or DEFAULT_RELAY_ORDER,
            render_relay_url=os.getenv("RENDER_RELAY_URL", ""),
            cors_sh_api_key=os.getenv("CORS_SH_API_KEY", ""),
        )

from __future__ import annotations

"""Patrol bot configuration and logging setup.

Purpose: Load settings once at process start from environment variables
(optionally seeded from a `.env` file in the working directory). Configure
root logging with a concise format.

"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    # Minecraft session
    server_host: str
    server_port: int
    username: str
    version: str
    auth: str
    # Game bridge sidecar that owns the wire protocol
    bridge_url: str
    # Health endpoint
    http_host: str
    http_port: int
    log_level: str


DEFAULTS = {
    "MINECRAFT_SERVER_HOST": "localhost",
    "MINECRAFT_SERVER_PORT": "25565",
    "MINECRAFT_BOT_USERNAME": "KEEPER",
    "MINECRAFT_VERSION": "1.21.10",
    "MINECRAFT_AUTH": "offline",
    "BRIDGE_URL": "ws://127.0.0.1:8765",
    "HTTP_HOST": "0.0.0.0",
    "PORT": "3000",
    "LOG_LEVEL": "info",
}


def _as_int(env: Mapping[str, str], key: str) -> int:
    raw = env.get(key) or DEFAULTS[key]
    try:
        return int(str(raw).strip())
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from None


def load_settings(environ: Optional[Mapping[str, str]] = None, *, dotenv: bool = True) -> Settings:
    """Build settings from the environment.

    Empty variables fall back to the defaults. When `environ` is given the
    process environment and `.env` are ignored.
    """
    if environ is None:
        if dotenv:
            load_dotenv(Path.cwd() / ".env", override=False)
        environ = os.environ

    def gv(key: str) -> str:
        return str(environ.get(key) or DEFAULTS[key])

    return Settings(
        server_host=gv("MINECRAFT_SERVER_HOST"),
        server_port=_as_int(environ, "MINECRAFT_SERVER_PORT"),
        username=gv("MINECRAFT_BOT_USERNAME"),
        version=gv("MINECRAFT_VERSION"),
        auth=gv("MINECRAFT_AUTH"),
        bridge_url=gv("BRIDGE_URL"),
        http_host=gv("HTTP_HOST"),
        http_port=_as_int(environ, "PORT"),
        log_level=gv("LOG_LEVEL").upper(),
    )


def configure_logging(log_level: str) -> None:
    """Configure root logger with a concise, structured-ish format."""
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )

"""
lsbframe web settings.

HOST, PORT, DEBUG, LOG_LEVEL, MAX_UPLOAD_MB, OUTPUT_FORMAT and CORS_ORIGINS
come from the environment, with a project-root .env filling in anything unset.
OUTPUT_FORMAT is checked per request by resolve_output_format, so a lossy
value fails the embed call rather than startup.
"""

import logging
import os
from pathlib import Path
from dotenv import load_dotenv

# .env sits next to pyproject.toml
_env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=_env_path)


class Settings:
    # Server
    host: str        = os.getenv("HOST", "0.0.0.0")
    port: int        = int(os.getenv("PORT", "8000"))
    debug: bool      = os.getenv("DEBUG", "false").lower() == "true"

    # Logging
    log_level: str   = os.getenv("LOG_LEVEL", "info").lower()

    # File uploads — default 10 MB
    max_upload_mb: int    = int(os.getenv("MAX_UPLOAD_MB", "10"))
    max_upload_bytes: int = max_upload_mb * 1024 * 1024

    # Default format for stego images; must be lossless
    output_format: str = os.getenv("OUTPUT_FORMAT", "PNG").upper()

    # Comma-separated; "*" allows any origin
    cors_origins: list = [
        o.strip()
        for o in os.getenv("CORS_ORIGINS", "*").split(",")
    ]

    # App metadata
    app_version: str = "0.1.0"
    app_title: str   = "lsbframe — LSB Payload Codec"


settings = Settings()


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level  = (level or settings.log_level).upper(),
        format = "%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

"""Process configuration read from environment variables."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from .errors import ConfigError

Mode = Literal["mcp", "rest"]

SERVER_NAME = "design-kb"
SERVER_VERSION = "1.0.0"
API_BASE_PATH = "/api"

FEATURES_LIST_URI = "design://features/list"
TERMS_LIST_URI = "design://terms/list"
STATISTICS_URI = "design://statistics"
JSON_MIME_TYPE = "application/json"

DEFAULT_PORT = 3000
DEFAULT_HOST = "localhost"
DEFAULT_LOG_DIR = "~/.design-kb/logs"
DEFAULT_LOG_LEVEL = "INFO"
DESIGN_DOCUMENT_FILE = "design.json"


def get_default_data_file(environ: dict[str, str] | None = None) -> Path:
    """Get the default document path, respecting DESIGN_KB_DATA_FILE and DESIGN_KB_DATA_DIR."""
    env = os.environ if environ is None else environ
    if env.get("DESIGN_KB_DATA_FILE"):
        return Path(env["DESIGN_KB_DATA_FILE"]).expanduser()
    if env.get("DESIGN_KB_DATA_DIR"):
        return Path(env["DESIGN_KB_DATA_DIR"]).expanduser() / DESIGN_DOCUMENT_FILE
    return Path(os.path.expanduser("~/.design-kb")) / DESIGN_DOCUMENT_FILE


@dataclass
class Settings:
    """Runtime settings for both transports."""

    mode: Mode = "mcp"
    data_file: Path = field(default_factory=get_default_data_file)
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    log_dir: str = DEFAULT_LOG_DIR
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "Settings":
        """Build settings from environment variables, validating each one.

        Raises:
            ConfigError: if a variable holds an unusable value.
        """
        env = os.environ if environ is None else environ

        mode = env.get("DESIGN_KB_MODE", "mcp").strip().lower()
        if mode not in ("mcp", "rest"):
            raise ConfigError(f"DESIGN_KB_MODE must be 'mcp' or 'rest', got '{mode}'")

        raw_port = env.get("PORT", str(DEFAULT_PORT))
        try:
            port = int(raw_port)
        except ValueError:
            raise ConfigError(f"PORT must be an integer, got '{raw_port}'") from None
        if not 1 <= port <= 65535:
            raise ConfigError(f"PORT must be between 1 and 65535, got {port}")

        log_level = env.get("DESIGN_KB_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
        if log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigError(f"DESIGN_KB_LOG_LEVEL is not a log level: '{log_level}'")

        origins = [o.strip() for o in env.get("CORS_ORIGIN", "*").split(",") if o.strip()]

        return cls(
            mode=mode,
            data_file=get_default_data_file(env),
            host=env.get("HOST", DEFAULT_HOST),
            port=port,
            cors_origins=origins or ["*"],
            log_dir=env.get("DESIGN_KB_LOG_DIR", DEFAULT_LOG_DIR),
            log_level=log_level,
        )

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Runtime settings, read from the environment."""

    host: str = field(default_factory=lambda: os.environ.get("ORAQUERY_HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.environ.get("PORT", "3000")))
    log_level: str = field(default_factory=lambda: os.environ.get("ORAQUERY_LOG_LEVEL", "info").lower())
    static_dir: str = field(default_factory=lambda: os.environ.get("ORAQUERY_STATIC_DIR", "public"))
    open_browser: bool = field(default_factory=lambda: _env_bool("ORAQUERY_OPEN_BROWSER", True))
    ping_timeout: float = field(default_factory=lambda: float(os.environ.get("ORAQUERY_PING_TIMEOUT", "5")))

    @property
    def url(self) -> str:
        return f"http://localhost:{self.port}"

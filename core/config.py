import os
from dataclasses import dataclass
from typing import List, Optional

from dotenv import load_dotenv

from core.errors import ConfigurationError


load_dotenv()


def parse_relays(value: Optional[str]) -> Optional[List[str]]:
    """Split a comma-separated relay list. Empty input means "use the defaults"."""
    if not value:
        return None
    relays = [relay.strip() for relay in value.split(",") if relay.strip()]
    return relays or None


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).lower() in ("true", "1", "yes")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    """Runtime configuration loaded from environment variables.

    Every field can be overridden from the command line.
    """

    signer_string: str = ""
    article_limit: int = 50
    publish_delay: int = 5000  # milliseconds
    relays: Optional[List[str]] = None
    skip_existing: bool = True
    dry_run: bool = False

    database_enabled: bool = True
    database_path: str = "published.db"
    log_level: str = "INFO"
    http_timeout: float = 15.0

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables.

        Optional:
        - NOSTR_SIGNER (nsec key or bunker:// URI)
        - NOSTR_RELAYS (comma-separated)
        - ARTICLE_LIMIT, PUBLISH_DELAY_MS
        - ENABLE_DATABASE, DATABASE_PATH
        - LOG_LEVEL, HTTP_TIMEOUT
        """
        try:
            http_timeout = float(os.getenv("HTTP_TIMEOUT", "15"))
        except ValueError:
            raise ConfigurationError("HTTP_TIMEOUT must be a number of seconds")

        return cls(
            signer_string=os.getenv("NOSTR_SIGNER", ""),
            article_limit=_env_int("ARTICLE_LIMIT", 50),
            publish_delay=_env_int("PUBLISH_DELAY_MS", 5000),
            relays=parse_relays(os.getenv("NOSTR_RELAYS")),
            database_enabled=_env_bool("ENABLE_DATABASE", True),
            database_path=os.getenv("DATABASE_PATH", "published.db"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            http_timeout=http_timeout,
        )

    def validate(self) -> None:
        """Reject unusable settings before anything touches the network."""
        if not self.dry_run and not self.signer_string:
            raise ConfigurationError(
                "--signer is required (unless using --dry-run)\n"
                "   Use an nsec key or bunker:// URI"
            )
        if self.article_limit <= 0:
            raise ConfigurationError("--limit must be a positive number")
        if self.publish_delay < 0:
            raise ConfigurationError("--delay must be a non-negative number")

import sqlite_utils
from sqlite_utils.db import NotFoundError
from datetime import datetime, timezone
from core.models import Article
import logging

logger = logging.getLogger(__name__)

class Database:
    def __init__(self, db_path: str = "published.db", enabled: bool = True):
        """
        Ledger of articles already published to Nostr, keyed by article id (the d tag).

        Args:
            db_path: Path to SQLite database file, or ":memory:"
            enabled: If False, only articles published during this run are remembered
        """
        self.enabled = enabled
        self.db_path = db_path

        if self.enabled:
            self.db = sqlite_utils.Database(memory=True) if db_path == ":memory:" else sqlite_utils.Database(db_path)
            self.init_db()
            self._memory_ids = None
            logger.info(f"Database enabled: {db_path}")
        else:
            self.db = None
            self._memory_ids = set()
            logger.info("Database disabled - skip-existing only covers this run")

    def init_db(self):
        if not self.enabled:
            return

        self.db["published"].create({
            "article_id": str,
            "url": str,
            "title": str,
            "event_id": str,
            "article_published_at": str, # ISO string
            "mirrored_at": str, # ISO string
        }, pk="article_id", if_not_exists=True)

    def article_exists(self, article_id: str) -> bool:
        if not self.enabled:
            return article_id in self._memory_ids

        try:
            self.db["published"].get(article_id)
            return True
        except NotFoundError:
            return False

    def mark_as_published(self, article_id: str, article: Article, event_id: str):
        """
        Record a successful publish. Republishing the same article id
        overwrites the row, mirroring how the addressable event is replaced.
        """
        if not self.enabled:
            self._memory_ids.add(article_id)
            return

        self.db["published"].upsert({
            "article_id": article_id,
            "url": article.url,
            "title": article.title,
            "event_id": event_id,
            "article_published_at": article.published_at.isoformat(),
            "mirrored_at": datetime.now(timezone.utc).isoformat(),
        }, pk="article_id")
        logger.debug(f"Recorded {article_id} -> {event_id}")

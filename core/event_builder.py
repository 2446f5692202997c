"""Maps an article and its Markdown body to an unsigned NIP-23 event."""

import math
import re
import time
from typing import List, Optional
from urllib.parse import urlparse

from core.models import Article, EventPayload

LONG_FORM_KIND = 30023  # NIP-23 addressable long-form content
CLIENT_NAME = "rekt-nostr-mirror"
FALLBACK_ARTICLE_ID = "article"
SUBJECTS = ("DeFi Security", "Blockchain")


def create_article_id(url: str) -> str:
    """Derive the ``d`` tag value from the article URL path.

    Stable across runs, so republishing an article replaces the earlier
    event instead of adding a new one.
    """
    path = urlparse(url).path
    path = re.sub(r"^/", "", path, count=1)
    path = re.sub(r"/$", "", path, count=1)
    return path or FALLBACK_ARTICLE_ID


def build_tags(article: Article, article_id: str) -> List[List[str]]:
    published_at = math.floor(article.published_at.timestamp())
    tags = [
        ["d", article_id],
        ["title", article.title],
        ["published_at", str(published_at)],
        ["client", CLIENT_NAME],
        ["r", article.url],
    ]

    if article.summary:
        tags.append(["summary", article.summary])

    if article.image:
        tags.append(["image", article.image])

    for tag in article.tags:
        tags.append(["t", tag.lower()])

    for subject in SUBJECTS:
        tags.append(["subject", subject])

    return tags


def build_event(article: Article, markdown: str, created_at: Optional[int] = None) -> EventPayload:
    if created_at is None:
        created_at = int(time.time())
    return EventPayload(
        kind=LONG_FORM_KIND,
        created_at=created_at,
        content=markdown,
        tags=build_tags(article, create_article_id(article.url)),
    )

from typing import List
import asyncio
import logging
import re
from datetime import datetime, timezone
from bs4 import BeautifulSoup
from core.scraper_base import BaseScraper, MIN_CONTENT_LENGTH
from core.models import Article

logger = logging.getLogger(__name__)

EXCLUDE_PATTERNS = [
    "/tag/",
    "/tags/",
    "/category/",
    "/categories/",
    "/author/",
    "/authors/",
    "/page/",
    "/feed",
    "/rss",
    "/sitemap",
    "/search",
    "/api/",
    "/admin/",
    "/wp-",
    "#",
]

EXCLUDE_PAGES = [
    "/about",
    "/contact",
    "/privacy",
    "/terms",
    "/subscribe",
    "/archive",
    "/archives",
]

DEFAULT_TAGS = ["rekt", "defi", "security"]


def is_article_link(href: str) -> bool:
    lower_href = href.lower()

    if any(pattern in lower_href for pattern in EXCLUDE_PATTERNS):
        return False

    if any(lower_href == page or lower_href == page + "/" for page in EXCLUDE_PAGES):
        return False

    # Too short, or only numbers/symbols like /2024/ or /--/
    if len(href) < 3 or re.match(r"^/[\d\-_]+/?$", href):
        return False

    return True


class RektNewsScraper(BaseScraper):
    BASE_URL = "https://rekt.news"

    async def fetch_articles(self, limit: int = 50) -> List[Article]:
        try:
            html = await self.http_client.fetch(self.BASE_URL)
            articles = self.parse_listing(html)
        except Exception as e:
            logger.error(f"Error fetching articles: {e}")
            return []

        unique = []
        seen_urls = set()
        for article in articles:
            if article.url not in seen_urls:
                seen_urls.add(article.url)
                unique.append(article)
        unique = unique[:limit]

        enriched = await asyncio.gather(*(self.enrich_article(article) for article in unique))
        return [article for article in enriched if len(article.content) > MIN_CONTENT_LENGTH]

    def parse_listing(self, html: str) -> List[Article]:
        soup = BeautifulSoup(html, "lxml")
        articles = []

        for post in soup.select("article.post"):
            title_link = post.select_one(".post-title a")
            if not title_link:
                continue
            href = title_link.get("href")
            title = title_link.get_text(strip=True)

            if not (href and href.startswith("/") and href != "/" and is_article_link(href) and title):
                continue

            time_el = post.select_one(".post-meta time")
            published_at = None
            if time_el:
                published_at = self.normalize_date(time_el.get_text(strip=True))

            excerpt = post.select_one(".post-excerpt p")
            summary = excerpt.get_text(strip=True) if excerpt else ""

            tags = list(DEFAULT_TAGS)
            for tag_el in post.select('.post-meta a[href*="tag="]'):
                tag_text = tag_el.get_text(strip=True).lower()
                if tag_text and tag_text not in tags:
                    tags.append(tag_text)

            articles.append(Article(
                title=title,
                url=self.BASE_URL + href,
                published_at=published_at or datetime.now(timezone.utc),
                summary=summary or None,
                tags=tags,
            ))

        logger.info(f"Found {len(articles)} article links on {self.BASE_URL}")
        return articles

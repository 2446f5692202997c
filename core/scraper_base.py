from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime, timezone
from typing import List, Optional
from urllib.parse import urljoin
import logging
from bs4 import BeautifulSoup
from dateutil.parser import parse as parse_date
from readability import Document
from core.http_client import HTTPClient
from core.models import Article

logger = logging.getLogger(__name__)

MIN_CONTENT_LENGTH = 100

CONTENT_SELECTORS = [
    "article .content",
    ".post-content",
    ".entry-content",
    "main article",
    ".markdown-body",
    '[class*="content"]',
    "article",
]

DATE_SELECTORS = [
    "time[datetime]",
    ".date",
    ".published",
    '[class*="date"]',
]

class BaseScraper(ABC):
    def __init__(self, http_client: HTTPClient):
        self.http_client = http_client
        self.name = self.__class__.__name__

    @abstractmethod
    async def fetch_articles(self, limit: int) -> List[Article]:
        """
        Main entry point for the scraper.
        Returns at most `limit` enriched Article objects.
        """
        pass

    async def enrich_article(self, article: Article) -> Article:
        """
        Fetches the article's own page and fills in content and metadata.
        Page-level values win; listing values are the fallback.
        On any failure the listing-level article is returned unchanged.
        """
        try:
            logger.info(f"Enriching article: {article.title}")
            html = await self.http_client.fetch(article.url)
            soup = BeautifulSoup(html, "lxml")

            content = self.extract_content(soup) or self.extract_readable_content(html)

            h1 = soup.find("h1")
            title = (
                (h1.get_text(strip=True) if h1 else "")
                or (soup.title.get_text(strip=True) if soup.title else "")
                or article.title
            )

            summary = (
                self._meta_content(soup, name="description")
                or self._meta_content(soup, property="og:description")
                or self._first_paragraph(soup)
                or article.summary
            )

            image = self._meta_content(soup, property="og:image")
            if not image:
                img = soup.find("img", src=True)
                image = img["src"] if img else None

            return replace(
                article,
                title=title,
                content=content or article.content,
                published_at=self.extract_date(soup) or article.published_at,
                summary=summary,
                image=urljoin(article.url, image) if image else article.image,
            )
        except Exception as e:
            logger.warning(f"Failed to enrich article {article.url}: {e}")
            return article

    def extract_content(self, soup: BeautifulSoup) -> str:
        """Inner HTML of the first selector holding a meaningful amount of text."""
        for selector in CONTENT_SELECTORS:
            node = soup.select_one(selector)
            if node and len(node.get_text(strip=True)) > MIN_CONTENT_LENGTH:
                return node.decode_contents()
        return ""

    def extract_readable_content(self, html: str) -> str:
        # Layouts none of the selectors know about
        summary_html = Document(html).summary(html_partial=True)
        text = BeautifulSoup(summary_html, "lxml").get_text(strip=True)
        if len(text) > MIN_CONTENT_LENGTH:
            logger.debug("Content extracted with readability fallback")
            return summary_html
        return ""

    def extract_date(self, soup: BeautifulSoup) -> Optional[datetime]:
        for selector in DATE_SELECTORS:
            node = soup.select_one(selector)
            if not node:
                continue
            parsed = self.normalize_date(node.get("datetime") or node.get_text(strip=True))
            if parsed:
                return parsed
        return None

    def normalize_date(self, date_str: Optional[str]) -> Optional[datetime]:
        """Parse a loosely formatted date. Naive values are taken as UTC."""
        if not date_str:
            return None
        try:
            parsed = parse_date(date_str)
        except (ValueError, OverflowError):
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    def _meta_content(self, soup: BeautifulSoup, **attrs) -> Optional[str]:
        meta = soup.find("meta", attrs=attrs)
        if meta and meta.get("content"):
            return meta["content"].strip()
        return None

    def _first_paragraph(self, soup: BeautifulSoup) -> Optional[str]:
        p = soup.find("p")
        if p:
            return p.get_text(strip=True)[:200] or None
        return None

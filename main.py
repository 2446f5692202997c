import logging
import asyncio
import signal
import sys
from dataclasses import replace
from typing import List, Optional, Tuple

import typer

from core.config import Settings, parse_relays
from core.db import Database
from core.errors import ConfigurationError
from core.event_builder import create_article_id
from core.http_client import HTTPClient
from core.markdown import MarkdownConverter
from core.models import Article, PublishOptions
from core.nostr import RelayPool
from core.publisher import NostrPublisher
from scrapers.rekt_news import RektNewsScraper

__version__ = "1.0.0"

MIN_MARKDOWN_LENGTH = 100
PREVIEW_LENGTH = 200

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


class RektNostrMirror:
    def __init__(
        self,
        scraper: RektNewsScraper,
        converter: MarkdownConverter,
        publisher: NostrPublisher,
        db: Database,
    ):
        self.scraper = scraper
        self.converter = converter
        self.publisher = publisher
        self.db = db

    def prepare(self, articles: List[Article]) -> List[Tuple[Article, str]]:
        """Convert each article to Markdown, dropping the ones with too little content."""
        processed = []
        for i, article in enumerate(articles, 1):
            logger.info(f"📰 Processing {i}/{len(articles)}: {article.title}")

            try:
                result = self.converter.convert_rekt_article(article.content, article.url)
            except Exception as e:
                logger.warning(f"⚠️  Conversion failed for {article.url}: {e}")
                continue

            if len(result.markdown) < MIN_MARKDOWN_LENGTH:
                logger.info("⚠️  Converted markdown too short, skipping")
                continue

            logger.info(f"✅ Converted to {len(result.markdown)} characters of markdown")

            if result.extracted_image:
                logger.info(f"🖼️  Extracted leading image: {result.extracted_image}")
                article = replace(article, image=result.extracted_image)

            preview = result.markdown[:PREVIEW_LENGTH] + ("..." if len(result.markdown) > PREVIEW_LENGTH else "")
            logger.debug(f"📝 Preview: {preview}")

            processed.append((article, result.markdown))
        return processed

    def skip_published(self, processed: List[Tuple[Article, str]]) -> List[Tuple[Article, str]]:
        remaining = []
        for article, markdown in processed:
            if self.db.article_exists(create_article_id(article.url)):
                logger.info(f"⏭️  Already published, skipping: {article.title}")
            else:
                remaining.append((article, markdown))
        return remaining

    def record_published(self, article: Article, event_id: str):
        self.db.mark_as_published(create_article_id(article.url), article, event_id)

    async def run(self, config: Settings) -> List[str]:
        """Scrape, convert and publish. Returns the ids of published events."""
        logger.info("🚀 Starting Rekt.news → Nostr Mirror")
        logger.info(
            f"📊 Configuration: limit={config.article_limit}, delay={config.publish_delay}ms, "
            f"dry_run={config.dry_run}, skip_existing={config.skip_existing}, "
            f"relays={len(config.relays) if config.relays else 'default'}"
        )

        if not config.dry_run:
            logger.info("🔐 Initializing Nostr signer...")
            await self.publisher.initialize(config.signer_string)

        logger.info("🕷️  Scraping rekt.news for latest articles...")
        articles = await self.scraper.fetch_articles(config.article_limit)
        if not articles:
            logger.info("❌ No articles found. Exiting.")
            return []
        logger.info(f"✅ Found {len(articles)} articles to process")

        processed = self.prepare(articles)
        if config.skip_existing:
            processed = self.skip_published(processed)

        if not processed:
            logger.info("❌ No articles to publish after processing. Exiting.")
            return []

        if config.dry_run:
            typer.echo(f"🧪 DRY RUN: Would publish {len(processed)} articles")
            for i, (article, _) in enumerate(processed, 1):
                typer.echo(f"{i}. {article.title} ({article.url})")
            return []

        logger.info(f"📤 Publishing {len(processed)} articles to Nostr...")
        event_ids = await self.publisher.publish_multiple_articles(
            processed,
            PublishOptions(relays=config.relays),
            config.publish_delay,
            on_published=self.record_published,
        )

        logger.info(f"🎉 Successfully published {len(event_ids)} articles!")
        for i, event_id in enumerate(event_ids, 1):
            logger.info(f"  {i}. {event_id}")
        return event_ids


async def run_mirror(settings: Settings) -> List[str]:
    http = HTTPClient(timeout=settings.http_timeout)
    mirror = RektNostrMirror(
        scraper=RektNewsScraper(http),
        converter=MarkdownConverter(),
        publisher=NostrPublisher(RelayPool()),
        db=Database(settings.database_path, enabled=settings.database_enabled),
    )
    try:
        return await mirror.run(settings)
    finally:
        await http.close()


def _handle_sigterm(signum, frame):
    logger.warning("⚠️  Received SIGTERM, shutting down gracefully...")
    sys.exit(0)


def _version_callback(value: bool):
    if value:
        typer.echo(__version__)
        raise typer.Exit()


app = typer.Typer(
    name="rekt-nostr-mirror",
    help="Mirror rekt.news articles to Nostr as NIP-23 long-form content.",
    add_completion=False,
)


@app.command()
def mirror(
    signer: Optional[str] = typer.Option(
        None, "--signer", "-s", envvar="NOSTR_SIGNER",
        help="Nostr signer (nsec key or bunker:// URI)",
    ),
    limit: Optional[int] = typer.Option(None, "--limit", "-l", help="Number of articles to fetch [default: 50]"),
    delay: Optional[int] = typer.Option(
        None, "--delay", "-d", help="Delay between publications in milliseconds [default: 5000]",
    ),
    relays: Optional[str] = typer.Option(None, "--relays", "-r", help="Comma-separated relay URLs"),
    skip_existing: bool = typer.Option(
        True, "--skip-existing/--no-skip-existing", help="Skip already published articles",
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview mode - don't actually publish"),
    version: Optional[bool] = typer.Option(
        None, "--version", "-v", callback=_version_callback, is_eager=True, help="Show version and exit",
    ),
):
    """
    Examples:

      rekt-nostr-mirror --dry-run --limit 3

      rekt-nostr-mirror --signer nsec1... --limit 5

      rekt-nostr-mirror --signer "bunker://..." --relays "wss://relay1.com,wss://relay2.com"
    """
    try:
        settings = Settings.from_env()
        settings = replace(
            settings,
            signer_string=signer if signer is not None else settings.signer_string,
            article_limit=limit if limit is not None else settings.article_limit,
            publish_delay=delay if delay is not None else settings.publish_delay,
            relays=parse_relays(relays) or settings.relays,
            skip_existing=skip_existing,
            dry_run=dry_run,
        )
        settings.validate()
    except ConfigurationError as e:
        typer.echo(f"❌ Error: {e}", err=True)
        raise typer.Exit(1)

    setup_logging(settings.log_level)
    signal.signal(signal.SIGTERM, _handle_sigterm)

    try:
        asyncio.run(run_mirror(settings))
    except KeyboardInterrupt:
        logger.warning("⚠️  Received SIGINT, shutting down gracefully...")
        raise typer.Exit(0)
    except Exception as e:
        logger.exception(f"💥 Fatal error: {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()

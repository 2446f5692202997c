import asyncio
import logging
import math
from typing import Callable, List, Optional, Tuple

from core.errors import PublishError, PublisherNotInitializedError, SignerError
from core.event_builder import build_event, create_article_id
from core.models import Article, PublishOptions
from core.nostr import BaseSigner, RelayPool, create_signer

logger = logging.getLogger(__name__)

DEFAULT_RELAYS = [
    "wss://relay.damus.io",
    "wss://nos.lol",
    "wss://relay.nostr.band",
    "wss://nostr.wine",
    "wss://relay.snort.social",
]

CONFIRMATION_TIMEOUT = 5.0  # seconds
DEFAULT_PUBLISH_DELAY_MS = 5000


def quorum_for(relay_count: int) -> int:
    """Strict majority of the target relays, rounding up."""
    return math.ceil(relay_count / 2)


class NostrPublisher:
    def __init__(
        self,
        pool: RelayPool,
        default_relays: Optional[List[str]] = None,
        confirmation_timeout: float = CONFIRMATION_TIMEOUT,
    ):
        """
        Publishes articles as NIP-23 events.

        The relay pool is owned by the caller and shared for the process
        lifetime. A signer must be attached with initialize() before any
        publish.
        """
        self.pool = pool
        self.default_relays = list(default_relays or DEFAULT_RELAYS)
        self.confirmation_timeout = confirmation_timeout
        self.signer: Optional[BaseSigner] = None

    async def initialize(self, signer_string: str):
        try:
            self.signer = await create_signer(signer_string)
        except Exception as e:
            raise SignerError(f"Failed to initialize signer: {e}") from e
        logger.info("✅ Signer initialized successfully")

    async def publish_article(
        self,
        article: Article,
        markdown: str,
        options: Optional[PublishOptions] = None,
    ) -> str:
        """Sign, broadcast and confirm one article. Returns the event id."""
        if self.signer is None:
            raise PublisherNotInitializedError("Publisher not initialized. Call initialize() first.")

        relays = options.relays if options and options.relays else self.default_relays
        article_id = create_article_id(article.url)
        payload = build_event(article, markdown)

        try:
            signed = await self.signer.sign_event(payload)
        except Exception as e:
            logger.error(f"❌ Failed to sign article: {e}")
            raise PublishError(f"Signing failed for '{article.title}': {e}") from e

        try:
            outcome = await self.pool.publish(relays, signed)
        except Exception as e:
            logger.error(f"❌ Failed to publish article: {e}")
            raise PublishError(f"Broadcast failed for '{article.title}': {e}") from e

        accepted = sum(1 for ok in outcome.values() if ok)
        logger.info(f"📝 Published article: {article.title}")
        logger.info(f"📍 Event ID: {signed.id} (accepted by {accepted}/{len(relays)} relays)")
        logger.info(f"🔗 Article ID: {article_id}")

        await self.wait_for_publication(signed.id, relays)
        return signed.id

    async def wait_for_publication(self, event_id: str, relays: List[str]) -> int:
        """
        Wait until a majority of relays serve the event back, or the timeout hits.

        Never fails for lack of confirmations; returns how many were seen.
        """
        logger.info("⏳ Waiting for publication confirmations...")
        target = quorum_for(len(relays))
        confirmations = 0
        subscription = self.pool.subscription(relays, {"ids": [event_id]})

        async def count_confirmations():
            nonlocal confirmations
            async for _ in subscription:
                confirmations += 1
                if confirmations >= target:
                    return

        try:
            await asyncio.wait_for(count_confirmations(), timeout=self.confirmation_timeout)
            if confirmations >= target:
                logger.info(f"✅ Publication confirmed on {confirmations}/{len(relays)} relays")
            else:
                logger.info(f"✅ Subscription ended with {confirmations}/{len(relays)} confirmations")
        except asyncio.TimeoutError:
            logger.info(f"✅ Publication completed with {confirmations}/{len(relays)} confirmations")
        except Exception as e:
            logger.warning(f"⚠️ Confirmation stream failed after {confirmations}/{len(relays)} confirmations: {e}")
        finally:
            subscription.unsubscribe()

        return confirmations

    async def publish_multiple_articles(
        self,
        articles: List[Tuple[Article, str]],
        options: Optional[PublishOptions] = None,
        delay_ms: int = DEFAULT_PUBLISH_DELAY_MS,
        on_published: Optional[Callable[[Article, str], None]] = None,
    ) -> List[str]:
        """
        Publish articles one after another, pausing between them.

        A failing article is logged and skipped, so the result may be shorter
        than the input; ids keep the input order.
        """
        event_ids = []
        logger.info(f"📚 Publishing {len(articles)} articles with {delay_ms}ms delay between each...")

        for i, (article, markdown) in enumerate(articles):
            logger.info(f"📖 Publishing {i + 1}/{len(articles)}: {article.title}")
            try:
                event_id = await self.publish_article(article, markdown, options)
                event_ids.append(event_id)
            except Exception as e:
                logger.error(f"❌ Failed to publish article \"{article.title}\": {e}")
                event_id = None

            if event_id and on_published:
                try:
                    on_published(article, event_id)
                except Exception as e:
                    logger.error(f"⚠️  Published \"{article.title}\" as {event_id} but failed to record it: {e}")

            # Pace publications to stay under relay rate limits
            if i < len(articles) - 1:
                logger.info(f"⏸️  Waiting {delay_ms}ms before next publication...")
                await asyncio.sleep(delay_ms / 1000)

        return event_ids

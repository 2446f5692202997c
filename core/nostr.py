"""
Nostr collaborators: signers and the shared relay pool.

Both are thin adapters over nostr-sdk so the publisher only ever deals with
plain EventPayload / SignedEvent dataclasses.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from datetime import timedelta
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set, Tuple

from nostr_sdk import (
    Client,
    Event,
    EventBuilder,
    EventId,
    Filter,
    Keys,
    Kind,
    NostrConnect,
    NostrConnectUri,
    PublicKey,
    Tag,
    Timestamp,
)

from core.errors import SignerError
from core.models import EventPayload, SignedEvent

logger = logging.getLogger(__name__)

BUNKER_TIMEOUT = timedelta(seconds=60)


class SignerKind(Enum):
    LOCAL_KEY = "nsec"
    ENCRYPTED_KEY = "ncryptsec"
    BUNKER = "bunker://"


def resolve_signer_kind(signer_string: str) -> SignerKind:
    if signer_string.startswith("nsec"):
        return SignerKind.LOCAL_KEY
    if signer_string.startswith("ncryptsec"):
        return SignerKind.ENCRYPTED_KEY
    if signer_string.startswith("bunker://"):
        return SignerKind.BUNKER
    raise SignerError(
        f"Invalid signer provided: {signer_string[:10]}... "
        "Must start with 'nsec' or 'bunker://'"
    )


def _to_unsigned(payload: EventPayload, public_key: PublicKey):
    tags = [Tag.parse(tag) for tag in payload.tags]
    builder = EventBuilder(Kind(payload.kind), payload.content).tags(tags)
    builder = builder.custom_created_at(Timestamp.from_secs(payload.created_at))
    return builder.build(public_key)


def _to_signed(event: Event) -> SignedEvent:
    return SignedEvent.from_dict(json.loads(event.as_json()))


class BaseSigner(ABC):
    @abstractmethod
    async def get_public_key(self) -> str:
        """Hex-encoded public key. Fails if the key is invalid or the signer unreachable."""
        pass

    @abstractmethod
    async def sign_event(self, payload: EventPayload) -> SignedEvent:
        pass


class LocalKeySigner(BaseSigner):
    def __init__(self, secret_key: str):
        self.keys = Keys.parse(secret_key)

    async def get_public_key(self) -> str:
        return self.keys.public_key().to_hex()

    async def sign_event(self, payload: EventPayload) -> SignedEvent:
        unsigned = _to_unsigned(payload, self.keys.public_key())
        return _to_signed(unsigned.sign_with_keys(self.keys))


class BunkerSigner(BaseSigner):
    """NIP-46 remote signer. Every call is a round trip over the bunker's relays."""

    def __init__(self, bunker_uri: str, timeout: timedelta = BUNKER_TIMEOUT):
        uri = NostrConnectUri.parse(bunker_uri)
        # Throwaway client keys; the bunker authorises the session, not this key.
        self.connect = NostrConnect(uri, Keys.generate(), timeout, None)
        self._public_key: Optional[PublicKey] = None

    async def _remote_public_key(self) -> PublicKey:
        if self._public_key is None:
            self._public_key = await self.connect.get_public_key()
        return self._public_key

    async def get_public_key(self) -> str:
        return (await self._remote_public_key()).to_hex()

    async def sign_event(self, payload: EventPayload) -> SignedEvent:
        unsigned = _to_unsigned(payload, await self._remote_public_key())
        return _to_signed(await self.connect.sign_event(unsigned))


async def create_signer(signer_string: str) -> BaseSigner:
    """Build a signer from an nsec key or bunker:// URI and validate it."""
    kind = resolve_signer_kind(signer_string)

    if kind is SignerKind.ENCRYPTED_KEY:
        raise SignerError("Ncryptsec signers are not supported")

    try:
        if kind is SignerKind.LOCAL_KEY:
            signer = LocalKeySigner(signer_string)
        else:
            signer = BunkerSigner(signer_string)
        pubkey = await signer.get_public_key()
    except SignerError:
        raise
    except Exception as e:
        raise SignerError(f"{kind.name.lower()} signer rejected: {e}") from e

    logger.info(f"Signer ready ({kind.name.lower()}), pubkey {pubkey[:16]}...")
    return signer


class RelaySubscription:
    """
    Live stream of (relay, event) observations for one filter across many relays.

    Each relay gets its own watcher task that queries until every id in the
    filter has been seen there, so a relay reports a given event once.
    Iterate with ``async for`` and always call ``unsubscribe()`` when done.
    """

    def __init__(self, pool: "RelayPool", relays: Iterable[str], filters: Dict, poll_interval: float = 1.0):
        self.pool = pool
        self.filters = filters
        self.poll_interval = poll_interval
        self.closed = False
        self._queue: asyncio.Queue = asyncio.Queue()
        self._tasks = [asyncio.create_task(self._watch(relay)) for relay in relays]

    async def _watch(self, relay: str):
        wanted: Set[str] = set(self.filters.get("ids", []))
        seen: Set[str] = set()
        while True:
            try:
                events = await self.pool.fetch(relay, self.filters)
            except Exception as e:
                logger.debug(f"Query to {relay} failed: {e}")
                events = []

            for event in events:
                if event.id not in seen:
                    seen.add(event.id)
                    await self._queue.put((relay, event))

            if wanted and wanted <= seen:
                return
            await asyncio.sleep(self.poll_interval)

    def __aiter__(self):
        return self

    async def __anext__(self) -> Tuple[str, SignedEvent]:
        if self.closed:
            raise StopAsyncIteration
        return await self._queue.get()

    def unsubscribe(self):
        if self.closed:
            return
        self.closed = True
        for task in self._tasks:
            task.cancel()


class RelayPool:
    """
    Process-wide set of relay connections, created once and shared by reference.

    Relays are added on first use; the underlying client is safe for
    concurrent publishes and queries.
    """

    def __init__(self, client: Optional[Client] = None, query_timeout: float = 3.0):
        self.client = client or Client()
        self.query_timeout = timedelta(seconds=query_timeout)
        self._relays: Set[str] = set()
        self._lock = asyncio.Lock()

    async def ensure_relays(self, relays: Iterable[str]):
        async with self._lock:
            missing = [relay for relay in relays if relay not in self._relays]
            if not missing:
                return
            for relay in missing:
                await self.client.add_relay(relay)
                self._relays.add(relay)
            await self.client.connect()
            logger.debug(f"Connected to {len(missing)} new relay(s)")

    async def publish(self, relays: List[str], event: SignedEvent) -> Dict[str, bool]:
        """Broadcast to every relay. Returns per-relay acceptance; never raises for a single relay."""
        await self.ensure_relays(relays)
        output = await self.client.send_event_to(relays, Event.from_json(json.dumps(event.to_dict())))

        accepted = set(output.success)
        for relay, reason in dict(output.failed).items():
            logger.warning(f"Relay {relay} rejected {event.id[:12]}: {reason}")
        return {relay: relay in accepted for relay in relays}

    async def fetch(self, relay: str, filters: Dict) -> List[SignedEvent]:
        await self.ensure_relays([relay])
        nostr_filter = Filter()
        if filters.get("ids"):
            nostr_filter = nostr_filter.ids([EventId.parse(event_id) for event_id in filters["ids"]])
        events = await self.client.fetch_events_from([relay], nostr_filter, self.query_timeout)
        return [_to_signed(event) for event in events.to_vec()]

    def subscription(self, relays: List[str], filters: Dict) -> RelaySubscription:
        return RelaySubscription(self, relays, filters)

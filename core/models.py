from dataclasses import dataclass, field
from typing import List, Optional
from datetime import datetime

@dataclass
class Article:
    title: str
    url: str  # Canonical URL, doubles as identity
    published_at: datetime
    content: str = ""  # Raw article HTML, empty until enriched
    summary: Optional[str] = None
    image: Optional[str] = None  # Lead image URL
    tags: List[str] = field(default_factory=list)

@dataclass(frozen=True)
class EventPayload:
    """Unsigned Nostr event, ready to hand to a signer."""
    kind: int
    created_at: int
    content: str
    tags: List[List[str]]

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "created_at": self.created_at,
            "content": self.content,
            "tags": [list(tag) for tag in self.tags],
        }

@dataclass(frozen=True)
class SignedEvent:
    id: str
    pubkey: str
    sig: str
    kind: int
    created_at: int
    content: str
    tags: List[List[str]]

    @classmethod
    def from_dict(cls, data: dict) -> "SignedEvent":
        return cls(
            id=data["id"],
            pubkey=data["pubkey"],
            sig=data["sig"],
            kind=int(data["kind"]),
            created_at=int(data["created_at"]),
            content=data.get("content", ""),
            tags=[list(tag) for tag in data.get("tags", [])],
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "pubkey": self.pubkey,
            "sig": self.sig,
            "kind": self.kind,
            "created_at": self.created_at,
            "content": self.content,
            "tags": [list(tag) for tag in self.tags],
        }

@dataclass
class PublishOptions:
    relays: Optional[List[str]] = None  # None means the publisher's defaults

@dataclass
class ConversionResult:
    markdown: str
    extracted_image: Optional[str] = None

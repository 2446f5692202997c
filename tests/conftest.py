from datetime import datetime, timezone

import pytest

from core.models import Article
from fakes import FakePool, FakeSigner


@pytest.fixture
def make_article():
    def _make(title="Euler Finance - REKT", url="https://rekt.news/euler-rekt/", **kwargs):
        kwargs.setdefault("published_at", datetime(2023, 3, 14, 12, 0, 30, tzinfo=timezone.utc))
        return Article(title=title, url=url, **kwargs)
    return _make


@pytest.fixture
def fake_pool():
    return FakePool()


@pytest.fixture
def fake_signer():
    return FakeSigner()

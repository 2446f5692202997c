from datetime import datetime, timezone

from core.event_builder import (
    FALLBACK_ARTICLE_ID,
    LONG_FORM_KIND,
    build_event,
    build_tags,
    create_article_id,
)


def test_article_id_strips_slashes():
    assert create_article_id("https://site/x/y/") == "x/y"


def test_article_id_single_segment():
    assert create_article_id("https://site/solo") == "solo"


def test_article_id_falls_back_for_root():
    assert create_article_id("https://site/") == FALLBACK_ARTICLE_ID
    assert create_article_id("https://site") == FALLBACK_ARTICLE_ID


def test_article_id_is_stable():
    url = "https://rekt.news/euler-rekt/"
    assert create_article_id(url) == create_article_id(url) == "euler-rekt"


def test_d_tag_is_first_and_unique(make_article):
    tags = build_tags(make_article(), "euler-rekt")
    assert tags[0] == ["d", "euler-rekt"]
    assert sum(1 for tag in tags if tag[0] == "d") == 1


def test_tags_without_summary_or_image(make_article):
    article = make_article(tags=["Rekt", "DeFi"])
    tags = build_tags(article, "euler-rekt")

    names = [tag[0] for tag in tags]
    assert "summary" not in names
    assert "image" not in names
    assert tags == [
        ["d", "euler-rekt"],
        ["title", "Euler Finance - REKT"],
        ["published_at", "1678795230"],
        ["client", "rekt-nostr-mirror"],
        ["r", "https://rekt.news/euler-rekt/"],
        ["t", "rekt"],
        ["t", "defi"],
        ["subject", "DeFi Security"],
        ["subject", "Blockchain"],
    ]


def test_summary_and_image_follow_reference_tag(make_article):
    article = make_article(summary="Flash loan attack", image="https://rekt.news/img/euler.png", tags=["Hack"])
    names = [tag[0] for tag in build_tags(article, "euler-rekt")]
    assert names == ["d", "title", "published_at", "client", "r", "summary", "image", "t", "subject", "subject"]


def test_published_at_truncated_to_seconds(make_article):
    article = make_article(published_at=datetime(2024, 1, 1, 0, 0, 0, 999999, tzinfo=timezone.utc))
    tags = dict((tag[0], tag[1]) for tag in build_tags(article, "x"))
    assert tags["published_at"] == "1704067200"


def test_build_event(make_article):
    event = build_event(make_article(), "# Body", created_at=1700000000)
    assert event.kind == LONG_FORM_KIND == 30023
    assert event.created_at == 1700000000
    assert event.content == "# Body"
    assert event.to_dict()["tags"][0] == ["d", "euler-rekt"]


def test_build_event_uses_wall_clock(make_article):
    before = int(datetime.now(timezone.utc).timestamp())
    event = build_event(make_article(), "body")
    assert before <= event.created_at <= before + 5

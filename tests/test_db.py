import pytest

from core.db import Database


@pytest.fixture(params=[True, False], ids=["sqlite", "in-memory"])
def db(request, tmp_path):
    return Database(str(tmp_path / "published.db"), enabled=request.param)


def test_unknown_article_does_not_exist(db):
    assert db.article_exists("euler-rekt") is False


def test_published_article_exists(db, make_article):
    db.mark_as_published("euler-rekt", make_article(), "event-1")
    assert db.article_exists("euler-rekt") is True
    assert db.article_exists("curve-rekt") is False


def test_republish_overwrites_row(tmp_path, make_article):
    db = Database(str(tmp_path / "published.db"))
    db.mark_as_published("euler-rekt", make_article(), "event-1")
    db.mark_as_published("euler-rekt", make_article(), "event-2")

    rows = list(db.db["published"].rows)
    assert len(rows) == 1
    assert rows[0]["event_id"] == "event-2"
    assert rows[0]["url"] == "https://rekt.news/euler-rekt/"


def test_ledger_survives_reopen(tmp_path, make_article):
    path = str(tmp_path / "published.db")
    Database(path).mark_as_published("euler-rekt", make_article(), "event-1")
    assert Database(path).article_exists("euler-rekt") is True

"""Tests for database failures: rolled back, logged and raised to the app."""
import pytest
from sqlalchemy.exc import SQLAlchemyError

from data_models import Author, db


@pytest.fixture
def failing_commit(monkeypatch):
    def commit():
        raise SQLAlchemyError("database is locked")

    monkeypatch.setattr(db.session, "commit", commit)
    return monkeypatch


def test_create_failure_is_rolled_back_and_reraised(authors, failing_commit):
    with pytest.raises(SQLAlchemyError, match="database is locked"):
        authors.create({"first_name": "Jane", "family_name": "Austen"})
    failing_commit.undo()
    assert db.session.query(Author).count() == 0


def test_update_failure_leaves_stored_record(authors, austen, failing_commit):
    author_id = austen.id
    with pytest.raises(SQLAlchemyError):
        authors.update(author_id, {"first_name": "Emma", "family_name": "Austen"})
    failing_commit.undo()
    db.session.expire_all()
    assert authors.get(author_id)["author"].first_name == "Jane"


def test_delete_failure_keeps_record(genres, monkeypatch):
    genre_id = genres.create({"name": "Fantasy"}).record.id

    def commit():
        raise SQLAlchemyError("disk I/O error")

    monkeypatch.setattr(db.session, "commit", commit)
    with pytest.raises(SQLAlchemyError):
        genres.delete(genre_id)
    monkeypatch.undo()
    assert genres.get(genre_id)["genre"].name == "Fantasy"


def test_route_renders_generic_error_page(client, failing_commit):
    response = client.post("/catalog/author/create",
                           data={"first_name": "Jane", "family_name": "Austen"})
    assert response.status_code == 500
    assert b"Database error" in response.data
    assert b"database is locked" not in response.data

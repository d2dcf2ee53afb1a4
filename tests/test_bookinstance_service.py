"""Tests for the book copy service."""
from datetime import date

import pytest

from data_models import BookInstance, db
from services import NotFound


def test_create_and_get(copies, emma):
    result = copies.create({"book": emma.id, "imprint": " Penguin 2003 ",
                            "status": "Loaned", "due_back": "2026-11-01"})
    assert result.ok
    copy = copies.get(result.record.id)
    assert copy.book.title == "Emma"
    assert copy.imprint == "Penguin 2003"
    assert copy.due_back == date(2026, 11, 1)


def test_invalid_due_back_is_not_persisted(copies, emma):
    result = copies.create({"book": emma.id, "imprint": "Penguin", "due_back": "not-a-date"})
    assert not result.ok
    assert [error.field for error in result.errors] == ["due_back"]
    assert result.values["due_back"] == "not-a-date"
    assert [(c.record.id, c.selected) for c in result.choices["books"]] == [(emma.id, True)]
    assert db.session.query(BookInstance).count() == 0


def test_create_rejects_unknown_book(copies, emma):
    result = copies.create({"book": "missing", "imprint": "Penguin"})
    assert [error.field for error in result.errors] == ["book"]


def test_update_preserves_identifier(copies, emma):
    copy = copies.create({"book": emma.id, "imprint": "Penguin"}).record
    copy_id = copy.id
    result = copies.update(copy_id, {"book": emma.id, "imprint": "Vintage",
                                     "status": "Reserved", "due_back": "2026-12-24"})
    assert result.ok

    updated = copies.get(copy_id)
    assert updated.id == copy_id
    assert (updated.imprint, updated.status) == ("Vintage", "Reserved")
    assert db.session.query(BookInstance).count() == 1


def test_status_can_change_freely(copies, emma):
    copy_id = copies.create({"book": emma.id, "imprint": "Penguin", "status": "Loaned"}).record.id
    for status in ("Available", "Maintenance", "Reserved", "Loaned"):
        assert copies.update(copy_id, {"book": emma.id, "imprint": "Penguin", "status": status}).ok


def test_prepare_update_form(copies, emma):
    copy_id = copies.create({"book": emma.id, "imprint": "Penguin", "status": "Loaned",
                             "due_back": "2026-11-01"}).record.id
    form = copies.prepare_update_form(copy_id)
    assert form.values == {"book": emma.id, "imprint": "Penguin", "status": "Loaned",
                           "due_back": "2026-11-01"}
    assert [c.record for c in form.choices["statuses"] if c.selected] == ["Loaned"]
    with pytest.raises(NotFound):
        copies.prepare_update_form("missing")


def test_prepare_create_form_lists_books(copies, emma):
    form = copies.prepare_create_form()
    assert [c.record.title for c in form.choices["books"]] == ["Emma"]


def test_delete_is_unconditional(copies, emma):
    copy_id = copies.create({"book": emma.id, "imprint": "Penguin"}).record.id
    assert copies.delete(copy_id) is None
    assert copies.delete(copy_id) is None
    with pytest.raises(NotFound):
        copies.get(copy_id)


def test_update_invalid_redisplays_and_leaves_record(copies, emma):
    book_id = emma.id
    copy_id = copies.create({"book": book_id, "imprint": "Penguin", "status": "Loaned",
                             "due_back": "2026-11-01"}).record.id

    result = copies.update(copy_id, {"book": book_id, "imprint": " Vintage ", "status": "Lost",
                                     "due_back": "2026-13-01"})
    assert not result.ok
    assert [error.field for error in result.errors] == ["status", "due_back"]
    assert result.values == {"book": book_id, "imprint": "Vintage", "status": "Lost",
                             "due_back": "2026-13-01"}
    assert [(c.record.id, c.selected) for c in result.choices["books"]] == [(book_id, True)]
    assert not any(c.selected for c in result.choices["statuses"])

    db.session.expire_all()
    stored = copies.get(copy_id)
    assert (stored.imprint, stored.status, stored.due_back) == ("Penguin", "Loaned", date(2026, 11, 1))


def test_update_missing_copy_raises(copies, emma):
    with pytest.raises(NotFound):
        copies.update("missing", {"book": emma.id, "imprint": "Penguin"})

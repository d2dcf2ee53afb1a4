"""Tests for the derived fields computed on read."""
from datetime import date

from data_models import NO_LIFESPAN, Author, BookInstance, Genre, iso_date, medium_date


def test_author_name_needs_both_parts():
    assert Author(first_name="Jane", family_name="Austen").name == "Austen, Jane"
    assert Author(first_name="Jane").name == ""
    assert Author(family_name="Austen").name == ""


def test_author_lifespan():
    assert Author(date_of_birth=date(1775, 12, 16), date_of_death=date(1817, 7, 18)).lifespan == "1775 - 1817"
    assert Author(date_of_birth=date(1947, 9, 21)).lifespan == "1947 - "
    assert Author(date_of_death=date(1817, 7, 18)).lifespan == NO_LIFESPAN


def test_urls_use_identifier():
    assert Author(id="a1").url == "/catalog/author/a1"
    assert Genre(id="g1").url == "/catalog/genre/g1"
    assert BookInstance(id="c1").url == "/catalog/bookinstance/c1"


def test_date_formatting():
    assert iso_date(date(1775, 12, 6)) == "1775-12-06"
    assert iso_date(None) == ""
    assert medium_date(date(1775, 12, 6)) == "Dec 6, 1775"
    assert Author(date_of_birth=date(1775, 12, 16)).birth_formatted == "Dec 16, 1775"
    assert Author().death_formatted == ""
    assert BookInstance().due_back_formatted == ""

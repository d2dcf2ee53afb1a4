import pytest

from app import create_app
from data_models import close_store, db
from services import AuthorService, BookInstanceService, BookService, GenreService


@pytest.fixture
def app():
    # Each test gets its own in-memory database
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test",
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
    })
    with app.app_context():
        yield app
    close_store(app)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def authors(app):
    return AuthorService(db.session)


@pytest.fixture
def genres(app):
    return GenreService(db.session)


@pytest.fixture
def books(app):
    return BookService(db.session)


@pytest.fixture
def copies(app):
    return BookInstanceService(db.session)


@pytest.fixture
def austen(authors):
    return authors.create({"first_name": "Jane", "family_name": "Austen",
                           "date_of_birth": "1775-12-16", "date_of_death": "1817-07-18"}).record


@pytest.fixture
def emma(books, austen):
    return books.create({"title": "Emma", "author": austen.id,
                         "summary": "A matchmaker meddles.", "isbn": "123"}).record

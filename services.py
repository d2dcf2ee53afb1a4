"""
Entity services for the library catalog.

Each service wraps an injected SQLAlchemy session and exposes the read,
form-preparation and mutation operations for one entity.  The services
never render anything: they return plain result structures which the
routes hand to the templates.

* ``FormResult`` carries the echoed form values, any validation errors,
  the choices needed to redisplay the form and, after a successful write,
  the stored record.
* ``DependentsExist`` is returned instead of deleting a record that is
  still referenced.
* ``NotFound`` is raised when a detail or update operation targets a
  record that does not exist.

Store failures are rolled back, logged and re-raised unchanged.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload, load_only, selectinload

from data_models import Author, Book, BookInstance, Genre, iso_date
from validators import (
    DEFAULT_STATUS,
    INSTANCE_STATUSES,
    ValidationError,
    validate_author,
    validate_book,
    validate_book_instance,
    validate_genre,
)

logger = logging.getLogger(__name__)


class NotFound(LookupError):
    """Raised when a specific record is requested but does not exist."""

    def __init__(self, label, record_id):
        super().__init__(f"{label} not found")
        self.label = label
        self.record_id = record_id


@dataclass
class DependentsExist:
    record: Any
    dependents: List[Any]


@dataclass
class Choice:
    record: Any
    selected: bool = False


@dataclass
class FormResult:
    values: Dict[str, Any]
    errors: List[ValidationError] = field(default_factory=list)
    choices: Dict[str, List[Choice]] = field(default_factory=dict)
    record: Optional[Any] = None

    @property
    def ok(self):
        return self.record is not None and not self.errors

    @property
    def url(self):
        return self.record.url if self.record is not None else None


class EntityService:
    model = None
    label = None

    def __init__(self, session):
        self.session = session

    def _find(self, record_id, *options):
        if not record_id:
            return None
        query = self.session.query(self.model)
        if options:
            query = query.options(*options)
        return query.filter_by(id=record_id).first()

    def _get_or_raise(self, record_id, *options):
        record = self._find(record_id, *options)
        if record is None:
            raise NotFound(self.label, record_id)
        return record

    def _commit(self, action):
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception("Database error during %s %s", self.label.lower(), action)
            raise

    def _save(self, record, action):
        self.session.add(record)
        self._commit(action)
        logger.info("%s %s %s", self.label, record.id, action)

    def _remove(self, record):
        record_id = record.id
        self.session.delete(record)
        self._commit("delete")
        logger.info("%s %s deleted", self.label, record_id)


class AuthorService(EntityService):
    model = Author
    label = "Author"

    def list(self):
        return self.session.query(Author).order_by(Author.family_name).all()

    def _books_by(self, author_id, *options):
        query = self.session.query(Book).filter_by(author_id=author_id)
        if options:
            query = query.options(*options)
        return query.order_by(Book.title).all()

    def get(self, author_id):
        author = self._get_or_raise(author_id)
        books = self._books_by(author_id, load_only(Book.title, Book.summary))
        return {"author": author, "books": books}

    def prepare_create_form(self):
        return FormResult(values={"first_name": "", "family_name": "",
                                  "date_of_birth": "", "date_of_death": ""})

    def prepare_update_form(self, author_id):
        author = self._get_or_raise(author_id)
        values = {
            "first_name": author.first_name,
            "family_name": author.family_name,
            "date_of_birth": iso_date(author.date_of_birth),
            "date_of_death": iso_date(author.date_of_death),
        }
        return FormResult(values=values, record=author)

    def create(self, form):
        cleaned = validate_author(form)
        if not cleaned.is_valid:
            return FormResult(values=cleaned.values, errors=cleaned.errors)
        author = Author(**cleaned.data)
        self._save(author, "created")
        return FormResult(values=cleaned.values, record=author)

    def update(self, author_id, form):
        author = self._get_or_raise(author_id)
        cleaned = validate_author(form)
        if not cleaned.is_valid:
            return FormResult(values=cleaned.values, errors=cleaned.errors)
        for key, value in cleaned.data.items():
            setattr(author, key, value)
        self._save(author, "updated")
        return FormResult(values=cleaned.values, record=author)

    def prepare_delete(self, author_id):
        author = self._find(author_id)
        if author is None:
            return None
        return {"author": author, "books": self._books_by(author_id)}

    def delete(self, author_id):
        author = self._find(author_id)
        if author is None:
            logger.info("Author %s already absent, nothing to delete", author_id)
            return None
        books = self._books_by(author_id)
        if books:
            return DependentsExist(record=author, dependents=books)
        self._remove(author)
        return None


class GenreService(EntityService):
    model = Genre
    label = "Genre"

    def list(self):
        return self.session.query(Genre).order_by(Genre.name).all()

    def _books_in(self, genre_id):
        return (self.session.query(Book)
                .filter(Book.genres.any(Genre.id == genre_id))
                .order_by(Book.title)
                .all())

    def get(self, genre_id):
        genre = self._get_or_raise(genre_id)
        return {"genre": genre, "books": self._books_in(genre_id)}

    def prepare_create_form(self):
        return FormResult(values={"name": ""})

    def prepare_update_form(self, genre_id):
        genre = self._get_or_raise(genre_id)
        return FormResult(values={"name": genre.name}, record=genre)

    def create(self, form):
        cleaned = validate_genre(form)
        if not cleaned.is_valid:
            return FormResult(values=cleaned.values, errors=cleaned.errors)

        name = cleaned.data["name"]
        # Check-then-insert; two concurrent creates can still both insert
        existing = self.session.query(Genre).filter_by(name=name).first()
        if existing is not None:
            logger.info("Genre %r already exists as %s", name, existing.id)
            return FormResult(values=cleaned.values, record=existing)

        genre = Genre(name=name)
        self._save(genre, "created")
        return FormResult(values=cleaned.values, record=genre)

    def update(self, genre_id, form):
        genre = self._get_or_raise(genre_id)
        cleaned = validate_genre(form)
        if not cleaned.is_valid:
            return FormResult(values=cleaned.values, errors=cleaned.errors)
        genre.name = cleaned.data["name"]
        self._save(genre, "updated")
        return FormResult(values=cleaned.values, record=genre)

    def prepare_delete(self, genre_id):
        genre = self._find(genre_id)
        if genre is None:
            return None
        return {"genre": genre, "books": self._books_in(genre_id)}

    def delete(self, genre_id):
        genre = self._find(genre_id)
        if genre is None:
            logger.info("Genre %s already absent, nothing to delete", genre_id)
            return None
        books = self._books_in(genre_id)
        # A genre is only protected once two or more books use it
        if len(books) > 1:
            return DependentsExist(record=genre, dependents=books)
        self._remove(genre)
        return None


class BookService(EntityService):
    model = Book
    label = "Book"

    def list(self):
        return (self.session.query(Book)
                .options(load_only(Book.title, Book.author_id), joinedload(Book.author))
                .order_by(Book.title)
                .all())

    def _instances_of(self, book_id):
        return self.session.query(BookInstance).filter_by(book_id=book_id).all()

    def _choices(self, author_id, genre_ids):
        authors = self.session.query(Author).order_by(Author.family_name).all()
        genres = self.session.query(Genre).order_by(Genre.name).all()
        return {
            "authors": [Choice(author, author.id == author_id) for author in authors],
            "genres": [Choice(genre, genre.id in genre_ids) for genre in genres],
        }

    def _resolve_references(self, cleaned):
        """Looks up the submitted author and genres, recording missing ones as errors."""
        author = None
        if cleaned.data.get("author"):
            author = self.session.get(Author, cleaned.data["author"])
            if author is None:
                cleaned.errors.append(ValidationError("author", "Author not found."))

        genre_ids = set(cleaned.data["genre"])
        genres = []
        if genre_ids:
            genres = self.session.query(Genre).filter(Genre.id.in_(genre_ids)).all()
            if len(genres) != len(genre_ids):
                cleaned.errors.append(ValidationError("genre", "Genre not found."))
        return author, genres

    def _rejected(self, cleaned):
        values = cleaned.values
        return FormResult(values=values, errors=cleaned.errors,
                          choices=self._choices(values["author"], values["genre"]))

    def get(self, book_id):
        book = self._get_or_raise(book_id, joinedload(Book.author), selectinload(Book.genres))
        return {"book": book, "instances": self._instances_of(book_id)}

    def prepare_create_form(self):
        values = {"title": "", "author": "", "summary": "", "isbn": "", "genre": []}
        return FormResult(values=values, choices=self._choices(None, []))

    def prepare_update_form(self, book_id):
        book = self._get_or_raise(book_id, selectinload(Book.genres))
        values = {
            "title": book.title,
            "author": book.author_id,
            "summary": book.summary,
            "isbn": book.isbn,
            "genre": book.genre_ids,
        }
        return FormResult(values=values, record=book,
                          choices=self._choices(book.author_id, book.genre_ids))

    def create(self, form):
        cleaned = validate_book(form)
        author, genres = self._resolve_references(cleaned)
        if not cleaned.is_valid:
            return self._rejected(cleaned)

        book = Book(
            title=cleaned.data["title"],
            author=author,
            summary=cleaned.data["summary"],
            isbn=cleaned.data["isbn"],
            genres=genres,
        )
        self._save(book, "created")
        return FormResult(values=cleaned.values, record=book)

    def update(self, book_id, form):
        book = self._get_or_raise(book_id)
        cleaned = validate_book(form)
        author, genres = self._resolve_references(cleaned)
        if not cleaned.is_valid:
            return self._rejected(cleaned)

        # The loaded record is mutated so its identifier never changes
        book.title = cleaned.data["title"]
        book.author = author
        book.summary = cleaned.data["summary"]
        book.isbn = cleaned.data["isbn"]
        book.genres = genres
        self._save(book, "updated")
        return FormResult(values=cleaned.values, record=book)

    def prepare_delete(self, book_id):
        book = self._find(book_id)
        if book is None:
            return None
        return {"book": book, "instances": self._instances_of(book_id)}

    def delete(self, book_id):
        book = self._find(book_id)
        if book is None:
            logger.info("Book %s already absent, nothing to delete", book_id)
            return None
        instances = self._instances_of(book_id)
        if instances:
            return DependentsExist(record=book, dependents=instances)
        self._remove(book)
        return None


class BookInstanceService(EntityService):
    model = BookInstance
    label = "Book copy"

    def list(self):
        return self.session.query(BookInstance).options(joinedload(BookInstance.book)).all()

    def _choices(self, values):
        books = self.session.query(Book).options(load_only(Book.title)).order_by(Book.title).all()
        status = values["status"] or DEFAULT_STATUS
        return {
            "books": [Choice(book, book.id == values["book"]) for book in books],
            "statuses": [Choice(option, option == status) for option in INSTANCE_STATUSES],
        }

    def get(self, instance_id):
        return self._get_or_raise(instance_id, joinedload(BookInstance.book))

    def prepare_create_form(self):
        values = {"book": "", "imprint": "", "status": DEFAULT_STATUS, "due_back": ""}
        return FormResult(values=values, choices=self._choices(values))

    def prepare_update_form(self, instance_id):
        copy = self._get_or_raise(instance_id)
        values = {
            "book": copy.book_id,
            "imprint": copy.imprint,
            "status": copy.status,
            "due_back": iso_date(copy.due_back),
        }
        return FormResult(values=values, record=copy, choices=self._choices(values))

    def _validated(self, form):
        cleaned = validate_book_instance(form)
        if cleaned.data.get("book") and self.session.get(Book, cleaned.data["book"]) is None:
            cleaned.errors.append(ValidationError("book", "Book not found."))
        return cleaned

    def create(self, form):
        cleaned = self._validated(form)
        if not cleaned.is_valid:
            return FormResult(values=cleaned.values, errors=cleaned.errors,
                              choices=self._choices(cleaned.values))
        copy = BookInstance(
            book_id=cleaned.data["book"],
            imprint=cleaned.data["imprint"],
            status=cleaned.data["status"],
            due_back=cleaned.data["due_back"],
        )
        self._save(copy, "created")
        return FormResult(values=cleaned.values, record=copy)

    def update(self, instance_id, form):
        copy = self._get_or_raise(instance_id)
        cleaned = self._validated(form)
        if not cleaned.is_valid:
            return FormResult(values=cleaned.values, errors=cleaned.errors,
                              choices=self._choices(cleaned.values))
        copy.book_id = cleaned.data["book"]
        copy.imprint = cleaned.data["imprint"]
        copy.status = cleaned.data["status"]
        copy.due_back = cleaned.data["due_back"]
        self._save(copy, "updated")
        return FormResult(values=cleaned.values, record=copy)

    def prepare_delete(self, instance_id):
        copy = self._find(instance_id, joinedload(BookInstance.book))
        if copy is None:
            return None
        return {"bookinstance": copy}

    def delete(self, instance_id):
        copy = self._find(instance_id)
        if copy is None:
            logger.info("Book copy %s already absent, nothing to delete", instance_id)
            return None
        self._remove(copy)
        return None


def catalog_summary(session):
    """Record counts shown on the catalog home page."""
    return {
        "book_count": session.query(Book).count(),
        "book_instance_count": session.query(BookInstance).count(),
        "book_instance_available_count": session.query(BookInstance).filter_by(status="Available").count(),
        "author_count": session.query(Author).count(),
        "genre_count": session.query(Genre).count(),
    }

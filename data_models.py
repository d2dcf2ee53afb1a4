import uuid

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

NO_LIFESPAN = "NO BIRTH AND DEATH DATA"


def new_id():
    """Opaque store-generated identifier, fixed once assigned."""
    return uuid.uuid4().hex


def iso_date(value):
    """Formats a date as YYYY-MM-DD for round-tripping through an edit form."""
    return value.isoformat() if value else ""


def medium_date(value):
    """Formats a date for display, e.g. 'Dec 16, 1775'."""
    if not value:
        return ""
    return f"{value:%b} {value.day}, {value.year}"


def init_store(app):
    """Binds the store to the app and creates any missing tables."""
    db.init_app(app)
    with app.app_context():
        db.create_all()


def close_store(app):
    """Releases the sessions and pooled connections held for the app."""
    with app.app_context():
        db.session.remove()
        db.engine.dispose()


# Association table for the many-to-many link between books and genres
book_genres = db.Table(
    "book_genres",
    db.Column("book_id", db.String(32), db.ForeignKey("books.id"), primary_key=True),
    db.Column("genre_id", db.String(32), db.ForeignKey("genres.id"), primary_key=True),
)


class Author(db.Model):
    __tablename__ = 'authors'

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    first_name = db.Column(db.String(100), nullable=False)
    family_name = db.Column(db.String(100), nullable=False)
    date_of_birth = db.Column(db.Date)
    date_of_death = db.Column(db.Date)

    books = db.relationship("Book", backref="author", lazy=True)

    @property
    def name(self):
        # Empty when either part is missing so lists never show a dangling comma
        if self.first_name and self.family_name:
            return f"{self.family_name}, {self.first_name}"
        return ""

    @property
    def lifespan(self):
        if not self.date_of_birth:
            return NO_LIFESPAN
        death = self.date_of_death.year if self.date_of_death else ""
        return f"{self.date_of_birth.year} - {death}"

    @property
    def url(self):
        return f"/catalog/author/{self.id}"

    @property
    def birth_formatted(self):
        return medium_date(self.date_of_birth)

    @property
    def death_formatted(self):
        return medium_date(self.date_of_death)

    def __repr__(self):
        return f"Author(id = {self.id}, name = {self.name})"

    def __str__(self):
        return f"The id {self.id} represents the author {self.name}"


class Genre(db.Model):
    __tablename__ = 'genres'

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    # Uniqueness is checked by the genre service on create, not by the store
    name = db.Column(db.String(100), nullable=False)

    @property
    def url(self):
        return f"/catalog/genre/{self.id}"

    def __repr__(self):
        return f"Genre(id = {self.id}, name = {self.name})"


class Book(db.Model):
    __tablename__ = 'books'

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    title = db.Column(db.String, nullable=False)
    summary = db.Column(db.Text, nullable=False)
    isbn = db.Column(db.String(20), nullable=False)

    # Foreign Key linking to the Author class
    author_id = db.Column(db.String(32), db.ForeignKey("authors.id"), nullable=False)

    genres = db.relationship("Genre", secondary=book_genres, backref="books", lazy=True)
    instances = db.relationship("BookInstance", backref="book", lazy=True)

    @property
    def genre_ids(self):
        return [genre.id for genre in self.genres]

    @property
    def url(self):
        return f"/catalog/book/{self.id}"

    def __repr__(self):
        return f"Book(id = {self.id}, title = {self.title})"

    def __str__(self):
        return f"The book {self.id} is written by {self.author_id}"


class BookInstance(db.Model):
    __tablename__ = 'bookinstances'

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    book_id = db.Column(db.String(32), db.ForeignKey("books.id"), nullable=False)
    imprint = db.Column(db.String, nullable=False)
    status = db.Column(db.String(20), nullable=False, default="Maintenance")
    due_back = db.Column(db.Date)

    @property
    def url(self):
        return f"/catalog/bookinstance/{self.id}"

    @property
    def due_back_formatted(self):
        return medium_date(self.due_back)

    def __repr__(self):
        return f"BookInstance(id = {self.id}, book = {self.book_id}, status = {self.status})"

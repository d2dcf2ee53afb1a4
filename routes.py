"""
Catalog pages: one blueprint route per screen.

GET renders a page, POST performs the mutation through the matching
service and redirects to the record (or to its list after a delete).
Rejected forms are rendered again with the echoed input and errors.
"""

from flask import Blueprint, flash, redirect, render_template, request, url_for

from data_models import db
from services import (
    AuthorService,
    BookInstanceService,
    BookService,
    GenreService,
    catalog_summary,
)

catalog = Blueprint('catalog', __name__, url_prefix='/catalog')


def submitted_form():
    """Returns the posted fields, keeping repeated fields (checkboxes) as lists."""
    return {key: values[0] if len(values) == 1 else values
            for key, values in request.form.lists()}


@catalog.route('/')
def index():
    """Renders the catalog home page with the record counts."""
    return render_template('index.html', title='Local Library Home', data=catalog_summary(db.session))


# Authors

@catalog.route('/authors')
def author_list():
    """Lists all authors by family name."""
    return render_template('author_list.html', title='Author List',
                           authors=AuthorService(db.session).list())


@catalog.route('/author/create', methods=['GET', 'POST'])
def author_create():
    """Creates an author from the submitted form, redisplaying it on errors."""
    service = AuthorService(db.session)
    if request.method == "POST":
        result = service.create(submitted_form())
        if result.ok:
            flash(f"Author '{result.record.name}' saved.", "success")
            return redirect(result.url)
        return render_template('author_form.html', title='Create Author', form=result)

    return render_template('author_form.html', title='Create Author', form=service.prepare_create_form())


@catalog.route('/author/<author_id>')
def author_detail(author_id):
    """Shows an author and the books they wrote."""
    return render_template('author_detail.html', title='Author Detail',
                           **AuthorService(db.session).get(author_id))


@catalog.route('/author/<author_id>/delete', methods=['GET', 'POST'])
def author_delete(author_id):
    """Deletes an author once no book references it."""
    service = AuthorService(db.session)
    if request.method == "POST":
        refused = service.delete(author_id)
        if refused is not None:
            return render_template('author_delete.html', title='Delete Author',
                                   author=refused.record, books=refused.dependents)
        flash("Author deleted.", "success")
        return redirect(url_for('catalog.author_list'))

    context = service.prepare_delete(author_id)
    if context is None:
        return redirect(url_for('catalog.author_list'))
    return render_template('author_delete.html', title='Delete Author', **context)


@catalog.route('/author/<author_id>/update', methods=['GET', 'POST'])
def author_update(author_id):
    """Updates an author in place, keeping its identifier."""
    service = AuthorService(db.session)
    if request.method == "POST":
        result = service.update(author_id, submitted_form())
        if result.ok:
            flash(f"Author '{result.record.name}' updated.", "success")
            return redirect(result.url)
        return render_template('author_form.html', title='Update Author', form=result)

    return render_template('author_form.html', title='Update Author',
                           form=service.prepare_update_form(author_id))


# Genres

@catalog.route('/genres')
def genre_list():
    """Lists all genres by name."""
    return render_template('genre_list.html', title='Genre List',
                           genres=GenreService(db.session).list())


@catalog.route('/genre/create', methods=['GET', 'POST'])
def genre_create():
    """Creates a genre, or redirects to the existing one with the same name."""
    service = GenreService(db.session)
    if request.method == "POST":
        result = service.create(submitted_form())
        if result.ok:
            return redirect(result.url)
        return render_template('genre_form.html', title='Create Genre', form=result)

    return render_template('genre_form.html', title='Create Genre', form=service.prepare_create_form())


@catalog.route('/genre/<genre_id>')
def genre_detail(genre_id):
    """Shows a genre and the books filed under it."""
    return render_template('genre_detail.html', title='Genre Detail',
                           **GenreService(db.session).get(genre_id))


@catalog.route('/genre/<genre_id>/delete', methods=['GET', 'POST'])
def genre_delete(genre_id):
    """Deletes a genre unless several books still use it."""
    service = GenreService(db.session)
    if request.method == "POST":
        refused = service.delete(genre_id)
        if refused is not None:
            return render_template('genre_delete.html', title='Delete Genre',
                                   genre=refused.record, books=refused.dependents)
        flash("Genre deleted.", "success")
        return redirect(url_for('catalog.genre_list'))

    context = service.prepare_delete(genre_id)
    if context is None:
        return redirect(url_for('catalog.genre_list'))
    return render_template('genre_delete.html', title='Delete Genre', **context)


@catalog.route('/genre/<genre_id>/update', methods=['GET', 'POST'])
def genre_update(genre_id):
    """Renames a genre."""
    service = GenreService(db.session)
    if request.method == "POST":
        result = service.update(genre_id, submitted_form())
        if result.ok:
            return redirect(result.url)
        return render_template('genre_form.html', title='Update Genre', form=result)

    return render_template('genre_form.html', title='Update Genre',
                           form=service.prepare_update_form(genre_id))


# Books

@catalog.route('/books')
def book_list():
    """Lists all books by title with their authors."""
    return render_template('book_list.html', title='Book List',
                           books=BookService(db.session).list())


@catalog.route('/book/create', methods=['GET', 'POST'])
def book_create():
    """Creates a book from the submitted form, redisplaying it on errors."""
    service = BookService(db.session)
    if request.method == "POST":
        result = service.create(submitted_form())
        if result.ok:
            flash(f"Book '{result.record.title}' added successfully!", "success")
            return redirect(result.url)
        return render_template('book_form.html', title='Create Book', form=result)

    return render_template('book_form.html', title='Create Book', form=service.prepare_create_form())


@catalog.route('/book/<book_id>')
def book_detail(book_id):
    """Shows a book with its author, genres and copies."""
    detail = BookService(db.session).get(book_id)
    return render_template('book_detail.html', title=detail["book"].title, **detail)


@catalog.route('/book/<book_id>/delete', methods=['GET', 'POST'])
def book_delete(book_id):
    """Deletes a book once it has no copies left."""
    service = BookService(db.session)
    if request.method == "POST":
        refused = service.delete(book_id)
        if refused is not None:
            return render_template('book_delete.html', title='Delete Book',
                                   book=refused.record, instances=refused.dependents)
        flash("Book deleted.", "success")
        return redirect(url_for('catalog.book_list'))

    context = service.prepare_delete(book_id)
    if context is None:
        return redirect(url_for('catalog.book_list'))
    return render_template('book_delete.html', title='Delete Book', **context)


@catalog.route('/book/<book_id>/update', methods=['GET', 'POST'])
def book_update(book_id):
    """Updates every field of a book, keeping its identifier."""
    service = BookService(db.session)
    if request.method == "POST":
        result = service.update(book_id, submitted_form())
        if result.ok:
            flash(f"Book '{result.record.title}' updated.", "success")
            return redirect(result.url)
        return render_template('book_form.html', title='Update Book', form=result)

    return render_template('book_form.html', title='Update Book',
                           form=service.prepare_update_form(book_id))


# Book copies

@catalog.route('/bookinstances')
def bookinstance_list():
    """Lists all book copies with their books."""
    return render_template('bookinstance_list.html', title='Book Instance List',
                           bookinstances=BookInstanceService(db.session).list())


@catalog.route('/bookinstance/create', methods=['GET', 'POST'])
def bookinstance_create():
    """Creates a book copy from the submitted form."""
    service = BookInstanceService(db.session)
    if request.method == "POST":
        result = service.create(submitted_form())
        if result.ok:
            return redirect(result.url)
        return render_template('bookinstance_form.html', title='Create BookInstance', form=result)

    return render_template('bookinstance_form.html', title='Create BookInstance',
                           form=service.prepare_create_form())


@catalog.route('/bookinstance/<instance_id>')
def bookinstance_detail(instance_id):
    """Shows a single book copy."""
    copy = BookInstanceService(db.session).get(instance_id)
    return render_template('bookinstance_detail.html', title=f"Copy: {copy.book.title}", bookinstance=copy)


@catalog.route('/bookinstance/<instance_id>/delete', methods=['GET', 'POST'])
def bookinstance_delete(instance_id):
    """Deletes a book copy; copies have no dependents."""
    service = BookInstanceService(db.session)
    if request.method == "POST":
        service.delete(instance_id)
        flash("Copy deleted.", "success")
        return redirect(url_for('catalog.bookinstance_list'))

    context = service.prepare_delete(instance_id)
    if context is None:
        return redirect(url_for('catalog.bookinstance_list'))
    return render_template('bookinstance_delete.html', title='Delete Copy', **context)


@catalog.route('/bookinstance/<instance_id>/update', methods=['GET', 'POST'])
def bookinstance_update(instance_id):
    """Updates a book copy, keeping its identifier."""
    service = BookInstanceService(db.session)
    if request.method == "POST":
        result = service.update(instance_id, submitted_form())
        if result.ok:
            return redirect(result.url)
        return render_template('bookinstance_form.html', title='Update Copy', form=result)

    return render_template('bookinstance_form.html', title='Update Copy',
                           form=service.prepare_update_form(instance_id))

"""
Catalog pages: list, detail, create, update and delete for every entity.
"""

from flask import Blueprint, abort, redirect, render_template, request, url_for
from werkzeug.routing import IntegerConverter

from locallibrary import guard, workflow
from locallibrary.models import BOOK_STATUSES, CATALOG_PREFIX, MAX_ID
from locallibrary.store import CatalogStore

catalog = Blueprint("catalog", __name__, url_prefix=CATALOG_PREFIX)


class IdConverter(IntegerConverter):
    """Path ids: positive integers that fit the id column."""

    def __init__(self, map, *args, **kwargs):
        super().__init__(map, min=1, max=MAX_ID)


def get_store():
    return CatalogStore()


def _follow(outcome):
    """Turn a redirect or not-found outcome into a response."""
    if isinstance(outcome, workflow.NotFound):
        abort(404)
    return redirect(outcome.location)


def _or_404(document):
    if document is None:
        abort(404)
    return document


@catalog.route("/")
def index():
    store = get_store()
    counts = {
        "book_count": store.count("book"),
        "book_instance_count": store.count("bookinstance"),
        "book_instance_available_count": store.count("bookinstance", {"status": "Available"}),
        "author_count": store.count("author"),
        "genre_count": store.count("genre"),
    }
    return render_template("index.html", title="Local Library Home", **counts)


# --- Genres ---
@catalog.route("/genres")
def genre_list():
    genres = get_store().find("genre", sort="name")
    return render_template("genre_list.html", title="Genre List", genre_list=genres)


@catalog.route("/genre/<id:id>")
def genre_detail(id):
    store = get_store()
    genre, books = store.fetch_both(
        lambda: store.find_by_id("genre", id),
        lambda: store.find("book", {"genre": id}, projection=("title", "summary"), sort="title"),
    )
    _or_404(genre)
    return render_template("genre_detail.html", title="Genre Detail", genre=genre, genre_books=books)


@catalog.route("/genre/create", methods=["GET", "POST"])
def genre_create():
    if request.method == "POST":
        outcome = workflow.create(get_store(), "genre", request.form)
        if isinstance(outcome, workflow.Redisplay):
            return render_template(
                "genre_form.html", title="Create Genre", genre=outcome.entity, errors=outcome.errors
            )
        return _follow(outcome)
    return render_template("genre_form.html", title="Create Genre")


@catalog.route("/genre/<id:id>/update", methods=["GET", "POST"])
def genre_update(id):
    store = get_store()
    if request.method == "POST":
        outcome = workflow.update(store, "genre", id, request.form)
        if isinstance(outcome, workflow.Redisplay):
            return render_template(
                "genre_form.html", title="Update Genre", genre=outcome.entity, errors=outcome.errors
            )
        return _follow(outcome)
    genre = _or_404(store.find_by_id("genre", id))
    return render_template("genre_form.html", title="Update Genre", genre=genre)


@catalog.route("/genre/<id:id>/delete", methods=["GET", "POST"])
def genre_delete(id):
    store = get_store()
    if request.method == "POST":
        result = guard.delete_guarded(store, "genre", id)
        if isinstance(result, guard.Blocked):
            return render_template(
                "genre_delete.html", title="Delete Genre", genre=result.entity, genre_books=result.dependents
            )
        return redirect(url_for("catalog.genre_list"))

    genre, books = guard.inspect(store, "genre", id)
    if genre is None:
        return redirect(url_for("catalog.genre_list"))
    return render_template("genre_delete.html", title="Delete Genre", genre=genre, genre_books=books)


# --- Authors ---
@catalog.route("/authors")
def author_list():
    authors = get_store().find("author", sort=("family_name", "first_name"))
    return render_template("author_list.html", title="Author List", author_list=authors)


@catalog.route("/author/<id:id>")
def author_detail(id):
    store = get_store()
    author, books = store.fetch_both(
        lambda: store.find_by_id("author", id),
        lambda: store.find("book", {"author": id}, projection=("title", "summary"), sort="title"),
    )
    _or_404(author)
    return render_template("author_detail.html", title="Author Detail", author=author, author_books=books)


@catalog.route("/author/create", methods=["GET", "POST"])
def author_create():
    if request.method == "POST":
        outcome = workflow.create(get_store(), "author", request.form)
        if isinstance(outcome, workflow.Redisplay):
            return render_template(
                "author_form.html", title="Create Author", author=outcome.entity, errors=outcome.errors
            )
        return _follow(outcome)
    return render_template("author_form.html", title="Create Author")


@catalog.route("/author/<id:id>/update", methods=["GET", "POST"])
def author_update(id):
    store = get_store()
    if request.method == "POST":
        outcome = workflow.update(store, "author", id, request.form)
        if isinstance(outcome, workflow.Redisplay):
            return render_template(
                "author_form.html", title="Update Author", author=outcome.entity, errors=outcome.errors
            )
        return _follow(outcome)
    author = _or_404(store.find_by_id("author", id))
    return render_template("author_form.html", title="Update Author", author=author)


@catalog.route("/author/<id:id>/delete", methods=["GET", "POST"])
def author_delete(id):
    store = get_store()
    if request.method == "POST":
        result = guard.delete_guarded(store, "author", id)
        if isinstance(result, guard.Blocked):
            return render_template(
                "author_delete.html", title="Delete Author", author=result.entity, author_books=result.dependents
            )
        return redirect(url_for("catalog.author_list"))

    author, books = guard.inspect(store, "author", id)
    if author is None:
        return redirect(url_for("catalog.author_list"))
    return render_template("author_delete.html", title="Delete Author", author=author, author_books=books)


# --- Books ---
def _authors_and_genres(store):
    authors = store.find("author", sort=("family_name", "first_name"))
    genres = store.find("genre", sort="name")
    return authors, genres


@catalog.route("/books")
def book_list():
    books = get_store().find("book", projection=("title", "author"), sort="title", populate=("author",))
    return render_template("book_list.html", title="Book List", book_list=books)


@catalog.route("/book/<id:id>")
def book_detail(id):
    store = get_store()
    book, instances = store.fetch_both(
        lambda: store.find_by_id("book", id, populate=("author", "genre")),
        lambda: store.find("bookinstance", {"book": id}, sort="id"),
    )
    _or_404(book)
    return render_template("book_detail.html", title=book["title"], book=book, book_instances=instances)


def _render_book_form(store, title, book=None, errors=None):
    authors, genres = _authors_and_genres(store)
    return render_template(
        "book_form.html", title=title, authors=authors, genres=genres, book=book, errors=errors
    )


@catalog.route("/book/create", methods=["GET", "POST"])
def book_create():
    store = get_store()
    if request.method == "POST":
        outcome = workflow.create(store, "book", request.form)
        if isinstance(outcome, workflow.Redisplay):
            return _render_book_form(store, "Create Book", outcome.entity, outcome.errors)
        return _follow(outcome)
    return _render_book_form(store, "Create Book")


@catalog.route("/book/<id:id>/update", methods=["GET", "POST"])
def book_update(id):
    store = get_store()
    if request.method == "POST":
        outcome = workflow.update(store, "book", id, request.form)
        if isinstance(outcome, workflow.Redisplay):
            return _render_book_form(store, "Update Book", outcome.entity, outcome.errors)
        return _follow(outcome)

    book, (authors, genres) = store.fetch_both(
        lambda: store.find_by_id("book", id),
        lambda: _authors_and_genres(store),
    )
    _or_404(book)
    return render_template(
        "book_form.html", title="Update Book", authors=authors, genres=genres, book=book, errors=None
    )


@catalog.route("/book/<id:id>/delete", methods=["GET", "POST"])
def book_delete(id):
    store = get_store()
    if request.method == "POST":
        result = guard.delete_guarded(store, "book", id)
        if isinstance(result, guard.Blocked):
            return render_template(
                "book_delete.html", title="Delete Book", book=result.entity, book_instances=result.dependents
            )
        return redirect(url_for("catalog.book_list"))

    book, instances = guard.inspect(store, "book", id, populate=("author",))
    if book is None:
        return redirect(url_for("catalog.book_list"))
    return render_template("book_delete.html", title="Delete Book", book=book, book_instances=instances)


# --- Book instances ---
def _book_titles(store):
    return store.find("book", projection=("title",), sort="title")


def _render_bookinstance_form(store, title, bookinstance=None, errors=None):
    return render_template(
        "bookinstance_form.html",
        title=title,
        book_list=_book_titles(store),
        statuses=BOOK_STATUSES,
        bookinstance=bookinstance,
        errors=errors,
    )


@catalog.route("/bookinstances")
def bookinstance_list():
    instances = get_store().find("bookinstance", sort="id", populate=("book",))
    return render_template("bookinstance_list.html", title="Book Instance List", bookinstance_list=instances)


@catalog.route("/bookinstance/<id:id>")
def bookinstance_detail(id):
    bookinstance = _or_404(get_store().find_by_id("bookinstance", id, populate=("book",)))
    return render_template("bookinstance_detail.html", title="Book Instance Detail", bookinstance=bookinstance)


@catalog.route("/bookinstance/create", methods=["GET", "POST"])
def bookinstance_create():
    store = get_store()
    if request.method == "POST":
        outcome = workflow.create(store, "bookinstance", request.form)
        if isinstance(outcome, workflow.Redisplay):
            return _render_bookinstance_form(store, "Create BookInstance", outcome.entity, outcome.errors)
        return _follow(outcome)
    return _render_bookinstance_form(store, "Create BookInstance")


@catalog.route("/bookinstance/<id:id>/update", methods=["GET", "POST"])
def bookinstance_update(id):
    store = get_store()
    if request.method == "POST":
        outcome = workflow.update(store, "bookinstance", id, request.form)
        if isinstance(outcome, workflow.Redisplay):
            return _render_bookinstance_form(store, "Update BookInstance", outcome.entity, outcome.errors)
        return _follow(outcome)

    bookinstance, books = store.fetch_both(
        lambda: store.find_by_id("bookinstance", id),
        lambda: _book_titles(store),
    )
    _or_404(bookinstance)
    return render_template(
        "bookinstance_form.html",
        title="Update BookInstance",
        book_list=books,
        statuses=BOOK_STATUSES,
        bookinstance=bookinstance,
        errors=None,
    )


@catalog.route("/bookinstance/<id:id>/delete", methods=["GET", "POST"])
def bookinstance_delete(id):
    store = get_store()
    if request.method == "POST":
        # Copies have no dependents; the guard always allows
        guard.delete_guarded(store, "bookinstance", id)
        return redirect(url_for("catalog.bookinstance_list"))

    bookinstance, _ = guard.inspect(store, "bookinstance", id, populate=("book",))
    if bookinstance is None:
        return redirect(url_for("catalog.bookinstance_list"))
    return render_template("bookinstance_delete.html", title="Delete Book Instance", bookinstance=bookinstance)

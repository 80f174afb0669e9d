"""
SQLAlchemy models for the catalog collections.

Each model serializes to a plain document (``to_document``) so the rest of
the application only ever sees dicts keyed by field name, with references
held as ids unless explicitly populated.
"""

import unicodedata

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

CATALOG_PREFIX = "/catalog"

BOOK_STATUSES = ("Available", "Maintenance", "Loaned", "Reserved")

# Largest id an INTEGER primary key column holds
MAX_ID = 2**63 - 1


def location_for(kind, id):
    """Canonical path of a catalog entity, used for post-mutation redirects."""
    return f"{CATALOG_PREFIX}/{kind}/{id}"


def fold(value):
    """Unicode case-folded form of ``value`` used for case-insensitive matching."""
    return unicodedata.normalize("NFC", value or "").casefold()


book_genres = db.Table(
    "book_genres",
    db.Column("book_id", db.Integer, db.ForeignKey("books.id"), primary_key=True),
    db.Column("genre_id", db.Integer, db.ForeignKey("genres.id"), primary_key=True),
)


# --- Models ---
class Genre(db.Model):
    __tablename__ = "genres"
    kind = "genre"
    refs = {}
    many_refs = {}
    folded = {"name": "name_key"}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False, index=True)
    name_key = db.Column(db.String(100), nullable=False, index=True)

    def to_document(self, populate=()):
        return {"id": self.id, "name": self.name, "url": location_for(self.kind, self.id)}


class Author(db.Model):
    __tablename__ = "authors"
    kind = "author"
    refs = {}
    many_refs = {}
    folded = {}

    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(100), nullable=False)
    family_name = db.Column(db.String(100), nullable=False, index=True)
    date_of_birth = db.Column(db.Date)
    date_of_death = db.Column(db.Date)

    books = db.relationship("Book", back_populates="author")

    def to_document(self, populate=()):
        return {
            "id": self.id,
            "first_name": self.first_name,
            "family_name": self.family_name,
            "date_of_birth": self.date_of_birth,
            "date_of_death": self.date_of_death,
            "name": author_name(self.first_name, self.family_name),
            "lifespan": lifespan(self.date_of_birth, self.date_of_death),
            "url": location_for(self.kind, self.id),
        }


class Book(db.Model):
    __tablename__ = "books"
    kind = "book"
    refs = {"author": "author_id"}
    many_refs = {"genre": "genres"}
    folded = {}

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(250), nullable=False, index=True)
    author_id = db.Column(db.Integer, db.ForeignKey("authors.id"), nullable=False)
    summary = db.Column(db.Text, nullable=False)
    isbn = db.Column(db.String(40), nullable=False)

    author = db.relationship("Author", back_populates="books")
    genres = db.relationship("Genre", secondary=book_genres, order_by="Genre.name")
    instances = db.relationship("BookInstance", back_populates="book")

    def to_document(self, populate=()):
        if "author" in populate:
            author = self.author.to_document() if self.author is not None else None
        else:
            author = self.author_id
        if "genre" in populate:
            genre = [g.to_document() for g in self.genres]
        else:
            genre = [g.id for g in self.genres]
        return {
            "id": self.id,
            "title": self.title,
            "author": author,
            "summary": self.summary,
            "isbn": self.isbn,
            "genre": genre,
            "url": location_for(self.kind, self.id),
        }


class BookInstance(db.Model):
    __tablename__ = "book_instances"
    kind = "bookinstance"
    refs = {"book": "book_id"}
    many_refs = {}
    folded = {}

    id = db.Column(db.Integer, primary_key=True)
    book_id = db.Column(db.Integer, db.ForeignKey("books.id"), nullable=False)
    imprint = db.Column(db.String(250), nullable=False)
    status = db.Column(db.String(20), nullable=False, default="Maintenance", index=True)
    due_back = db.Column(db.Date)

    book = db.relationship("Book", back_populates="instances")

    def to_document(self, populate=()):
        if "book" in populate:
            book = self.book.to_document() if self.book is not None else None
        else:
            book = self.book_id
        return {
            "id": self.id,
            "book": book,
            "imprint": self.imprint,
            "status": self.status,
            "due_back": self.due_back,
            "url": location_for(self.kind, self.id),
        }


MODELS = {model.kind: model for model in (Genre, Author, Book, BookInstance)}


# --- Derived display values ---
def author_name(first_name, family_name):
    # Empty rather than half a name when either part is missing
    if first_name and family_name:
        return f"{family_name}, {first_name}"
    return ""


def lifespan(date_of_birth, date_of_death):
    birth = date_of_birth.strftime("%Y-%m-%d") if date_of_birth else ""
    death = date_of_death.strftime("%Y-%m-%d") if date_of_death else ""
    return f"{birth} - {death}"

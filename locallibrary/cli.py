"""Flask CLI commands for setting up a development catalog."""

from datetime import date

import click

from locallibrary.models import db
from locallibrary.store import CatalogStore

SAMPLE_GENRES = ["Fantasy", "Science Fiction", "French Poetry"]

SAMPLE_AUTHORS = [
    ("Patrick", "Rothfuss", date(1973, 6, 6), None),
    ("Ben", "Bova", date(1932, 11, 8), None),
    ("Isaac", "Asimov", date(1920, 1, 2), date(1992, 4, 6)),
    ("Bob", "Billings", None, None),
    ("Jim", "Jones", date(1971, 12, 16), None),
]

# (title, author index, genre indexes, summary, isbn)
SAMPLE_BOOKS = [
    ("The Name of the Wind (The Kingkiller Chronicle, #1)", 0, [0],
     "I have stolen princesses back from sleeping barrow kings.", "9781473211896"),
    ("The Wise Man's Fear (The Kingkiller Chronicle, #2)", 0, [0],
     "Picking up the tale of Kvothe Kingkiller once again.", "9788401352836"),
    ("Apes and Angels", 1, [1],
     "Humankind headed out to the stars not for conquest, nor exploration.", "9780765379528"),
    ("Death Wave", 1, [1],
     "In Ben Bova's previous novel New Earth, Jordan Kell led the first human mission.", "9780765379504"),
    ("Test Book 1", 3, [0, 1], "Summary of test book 1", "ISBN111111"),
]

# (book index, imprint, status, due back)
SAMPLE_COPIES = [
    (0, "London Gollancz, 2014.", "Available", None),
    (1, "Gollancz, 2011.", "Loaned", date(2026, 11, 1)),
    (2, "New York Tom Doherty Associates, 2016.", "Available", None),
    (3, "New York, NY Tom Doherty Associates, LLC, 2015.", "Maintenance", None),
    (4, "Imprint XXX2", "Reserved", None),
]


def populate(store):
    """Insert the sample catalog; return the number of documents written."""
    genre_ids = [store.insert("genre", {"name": name}) for name in SAMPLE_GENRES]
    author_ids = [
        store.insert("author", {
            "first_name": first,
            "family_name": family,
            "date_of_birth": born,
            "date_of_death": died,
        })
        for first, family, born, died in SAMPLE_AUTHORS
    ]
    book_ids = [
        store.insert("book", {
            "title": title,
            "author": author_ids[author],
            "genre": [genre_ids[i] for i in genres],
            "summary": summary,
            "isbn": isbn,
        })
        for title, author, genres, summary, isbn in SAMPLE_BOOKS
    ]
    for book, imprint, status, due_back in SAMPLE_COPIES:
        store.insert("bookinstance", {
            "book": book_ids[book],
            "imprint": imprint,
            "status": status,
            "due_back": due_back,
        })
    return len(genre_ids) + len(author_ids) + len(book_ids) + len(SAMPLE_COPIES)


def register_commands(app):
    @app.cli.command("init-db")
    @click.option("--drop", is_flag=True, help="Drop existing tables first.")
    def init_db(drop):
        """Create the catalog tables."""
        if drop:
            db.drop_all()
        db.create_all()
        click.echo("Initialized the catalog database.")

    @app.cli.command("populate-db")
    def populate_db():
        """Add sample genres, authors, books and copies (for dev only)."""
        store = CatalogStore()
        if store.count("book") or store.count("author") or store.count("genre"):
            click.echo("Catalog already has data; nothing added.")
            return
        written = populate(store)
        click.echo(f"Added {written} sample documents.")

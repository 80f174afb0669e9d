"""Shared pytest fixtures: a Flask app on a temporary database and an in-memory store."""

from pathlib import Path

import pytest

from locallibrary import create_app
from locallibrary.models import location_for
from locallibrary.store import CatalogStore, DocumentNotFound, run_paired


@pytest.fixture()
def app(tmp_path: Path):
    """Application backed by a throwaway SQLite file."""
    return create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'catalog.db'}",
        "WTF_CSRF_ENABLED": False,
        "RATELIMIT_ENABLED": False,
    })


@pytest.fixture()
def client(app):
    return app.test_client()


class ContextStore:
    """Runs every CatalogStore call in its own application context."""

    def __init__(self, app):
        self._app = app
        self._store = CatalogStore(app)

    def __getattr__(self, name):
        method = getattr(self._store, name)

        def call(*args, **kwargs):
            with self._app.app_context():
                return method(*args, **kwargs)

        return call


@pytest.fixture()
def store(app) -> ContextStore:
    """CatalogStore against the test app's database."""
    return ContextStore(app)


class FakeStore:
    """Dict-backed stand-in for CatalogStore that records mutations."""

    def __init__(self):
        self.collections = {"genre": {}, "author": {}, "book": {}, "bookinstance": {}}
        self.mutations = []
        self._next_id = 1

    def _matches(self, stored, value):
        if isinstance(stored, list):
            return value in stored
        return stored == value

    def find_by_id(self, kind, id, populate=()):
        document = self.collections[kind].get(id)
        return dict(document) if document is not None else None

    def find(self, kind, filter=None, projection=None, sort=None, populate=()):
        return [
            dict(document)
            for document in self.collections[kind].values()
            if all(self._matches(document.get(f), v) for f, v in (filter or {}).items())
        ]

    def find_one_case_insensitive(self, kind, field, value):
        for document in self.collections[kind].values():
            if document[field].casefold() == value.casefold():
                return dict(document)
        return None

    def insert(self, kind, document):
        id = self._next_id
        self._next_id += 1
        self.collections[kind][id] = {**document, "id": id, "url": location_for(kind, id)}
        self.mutations.append(("insert", kind, id))
        return id

    def update_by_id(self, kind, id, document):
        if id not in self.collections[kind]:
            raise DocumentNotFound(kind, id)
        self.collections[kind][id] = {**document, "id": id, "url": location_for(kind, id)}
        self.mutations.append(("update", kind, id))

    def delete_by_id(self, kind, id):
        self.collections[kind].pop(id, None)
        self.mutations.append(("delete", kind, id))

    def fetch_both(self, first, second):
        return run_paired(first, second)


@pytest.fixture()
def fake_store() -> FakeStore:
    return FakeStore()

"""
Document-style access to the catalog collections.

``CatalogStore`` hides SQLAlchemy behind a small find/insert/update/delete
interface that speaks in plain documents (dicts). Store errors are not
caught here; they propagate to the application's error handler.
"""

import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait

from flask import current_app
from sqlalchemy import func, select

from locallibrary.models import MODELS, db, fold

logger = logging.getLogger(__name__)


class DocumentNotFound(Exception):
    """Raised when updating a document whose id does not exist."""

    def __init__(self, kind, id):
        super().__init__(f"{kind} with id {id} not found")
        self.kind = kind
        self.id = id


def run_paired(first, second, wrap=None):
    """Run two independent zero-argument callables concurrently.

    Returns ``(first(), second())``. Whichever finishes first, the call waits
    for both; the first exception raised by either is re-raised immediately
    and the other result is discarded.
    """
    if wrap is not None:
        first, second = wrap(first), wrap(second)

    pool = ThreadPoolExecutor(max_workers=2, thread_name_prefix="paired-read")
    futures = [pool.submit(first), pool.submit(second)]
    done, _ = wait(futures, return_when=FIRST_EXCEPTION)
    for future in done:
        error = future.exception()
        if error is not None:
            pool.shutdown(wait=False, cancel_futures=True)
            raise error
    pool.shutdown(wait=False)
    return futures[0].result(), futures[1].result()


def _model(kind):
    try:
        return MODELS[kind]
    except KeyError:
        raise ValueError(f"Unknown collection: {kind}") from None


def _column(model, field):
    return getattr(model, model.refs.get(field, field))


def _criterion(model, field, value):
    if field in model.many_refs:
        return getattr(model, model.many_refs[field]).any(id=value)
    column = _column(model, field)
    if isinstance(value, (list, tuple, set)):
        return column.in_(value)
    return column == value


def _project(document, projection):
    return {key: value for key, value in document.items() if key in projection or key in ("id", "url")}


class CatalogStore:
    """Typed CRUD over the four catalog collections.

    All calls must run inside a Flask application context; the session is
    Flask-SQLAlchemy's context-scoped ``db.session``.
    """

    def __init__(self, app=None):
        self._app = app

    @property
    def app(self):
        return self._app if self._app is not None else current_app._get_current_object()

    def find_by_id(self, kind, id, populate=()):
        obj = db.session.get(_model(kind), id)
        return obj.to_document(populate) if obj is not None else None

    def find(self, kind, filter=None, projection=None, sort=None, populate=()):
        """Return all documents matching ``filter``, ordered by ``sort``.

        ``filter`` maps field names to a value (equality, or membership for a
        multi-valued reference) or to a list of values (``IN``). ``sort`` is a
        field name or a sequence of them, all ascending.
        """
        model = _model(kind)
        stmt = select(model)
        for field, value in (filter or {}).items():
            stmt = stmt.where(_criterion(model, field, value))
        if sort:
            keys = (sort,) if isinstance(sort, str) else sort
            stmt = stmt.order_by(*[_column(model, key) for key in keys])
        documents = [obj.to_document(populate) for obj in db.session.scalars(stmt)]
        if projection:
            documents = [_project(doc, projection) for doc in documents]
        return documents

    def find_one_case_insensitive(self, kind, field, value):
        """Return the first document whose ``field`` equals ``value`` ignoring case.

        Matching uses Unicode case folding. Fields with a stored folded key
        are matched in SQL; any other field is folded in Python.
        """
        model = _model(kind)
        key = fold(value)
        if field in model.folded:
            stmt = select(model).where(getattr(model, model.folded[field]) == key).limit(1)
            obj = db.session.scalars(stmt).first()
        else:
            obj = next(
                (o for o in db.session.scalars(select(model)) if fold(getattr(o, field)) == key),
                None,
            )
        return obj.to_document() if obj is not None else None

    def count(self, kind, filter=None):
        model = _model(kind)
        stmt = select(func.count()).select_from(model)
        for field, value in (filter or {}).items():
            stmt = stmt.where(_criterion(model, field, value))
        return db.session.scalar(stmt)

    def insert(self, kind, document):
        """Insert a new document and return its generated id."""
        obj = _model(kind)()
        self._apply(obj, document)
        db.session.add(obj)
        db.session.commit()
        logger.info("Inserted %s %s", kind, obj.id)
        return obj.id

    def update_by_id(self, kind, id, document):
        """Replace the fields of an existing document.

        Raises:
            DocumentNotFound: If no document has this id.
        """
        obj = db.session.get(_model(kind), id)
        if obj is None:
            raise DocumentNotFound(kind, id)
        self._apply(obj, document)
        db.session.commit()
        logger.info("Updated %s %s", kind, id)

    def delete_by_id(self, kind, id):
        # Deleting a missing id is a no-op
        obj = db.session.get(_model(kind), id)
        if obj is None:
            return
        db.session.delete(obj)
        db.session.commit()
        logger.info("Deleted %s %s", kind, id)

    def fetch_both(self, first, second):
        """Issue two independent reads together and wait for both.

        Each read runs in its own application context, and therefore its own
        session. With ``CATALOG_CONCURRENT_READS`` off they run in order.
        """
        app = self.app
        if not app.config.get("CATALOG_CONCURRENT_READS", True):
            return first(), second()

        def in_context(fn):
            def run():
                with app.app_context():
                    return fn()
            return run

        return run_paired(first, second, wrap=in_context)

    def _apply(self, obj, document):
        model = type(obj)
        columns = model.__table__.columns
        for key, value in document.items():
            if key == "id":
                continue
            if key in model.many_refs:
                attr = model.many_refs[key]
                target = getattr(model, attr).property.mapper.class_
                ids = list(value or [])
                related = db.session.scalars(select(target).where(target.id.in_(ids))).all() if ids else []
                setattr(obj, attr, list(related))
            elif key in model.refs:
                setattr(obj, model.refs[key], value)
            elif key in columns:
                setattr(obj, key, value)
        for field, key_column in model.folded.items():
            if field in document:
                setattr(obj, key_column, fold(document[field]))

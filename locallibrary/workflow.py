"""
Validated create/update of catalog documents.

Both operations return one of a closed set of outcomes instead of raising,
so views branch on the outcome type:

- ``Redisplay``: validation failed, re-render the form with the candidate.
- ``RedirectExisting``: go to a record that already existed (duplicate
  create) or was just updated.
- ``RedirectNew``: go to the record just inserted.
- ``NotFound``: the update target does not exist.
"""

from dataclasses import dataclass, field

from locallibrary.models import location_for
from locallibrary.rules import RULES, UNIQUE_FIELDS
from locallibrary.store import DocumentNotFound
from locallibrary.validation import validate


@dataclass(frozen=True)
class Redisplay:
    entity: dict
    errors: list = field(default_factory=list)


@dataclass(frozen=True)
class RedirectExisting:
    location: str


@dataclass(frozen=True)
class RedirectNew:
    location: str


@dataclass(frozen=True)
class NotFound:
    kind: str
    id: int


def build_candidate(values, id=None):
    """Build an unsaved document from sanitized form values."""
    candidate = dict(values)
    if id is not None:
        candidate["id"] = id
    return candidate


def create(store, kind, form):
    values, errors = validate(RULES[kind], form)
    candidate = build_candidate(values)

    if errors:
        return Redisplay(candidate, errors)

    unique_field = UNIQUE_FIELDS.get(kind)
    if unique_field is not None:
        existing = store.find_one_case_insensitive(kind, unique_field, candidate[unique_field])
        if existing is not None:
            return RedirectExisting(existing["url"])

    new_id = store.insert(kind, candidate)
    return RedirectNew(location_for(kind, new_id))


def update(store, kind, id, form):
    """Validate ``form`` and overwrite the document at ``id``.

    There is no duplicate check on update; a rename may collide with
    another record's unique field.
    """
    values, errors = validate(RULES[kind], form)
    candidate = build_candidate(values, id=id)

    if errors:
        return Redisplay(candidate, errors)

    try:
        store.update_by_id(kind, id, candidate)
    except DocumentNotFound:
        return NotFound(kind, id)
    return RedirectExisting(location_for(kind, id))

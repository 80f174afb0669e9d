"""
Delete guard: refuse to delete a record while other records reference it.

``decide_delete`` is the pure decision; ``delete_guarded`` reads, decides
and performs the single delete. The read and the delete are not wrapped in
a transaction, so a dependent inserted in between is not seen.
"""

import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

# kind -> (dependent kind, field on the dependent that references kind)
DEPENDENTS = {
    "genre": ("book", "genre"),
    "author": ("book", "author"),
    "book": ("bookinstance", "book"),
}


@dataclass(frozen=True)
class AlreadyGone:
    kind: str
    id: int


@dataclass(frozen=True)
class Blocked:
    entity: dict
    dependents: list = field(default_factory=list)


@dataclass(frozen=True)
class Allowed:
    entity: dict


@dataclass(frozen=True)
class Deleted:
    entity: dict


def decide_delete(kind, id, entity, dependents):
    if entity is None:
        return AlreadyGone(kind, id)
    if dependents:
        return Blocked(entity, list(dependents))
    return Allowed(entity)


def inspect(store, kind, id, populate=()):
    """Fetch a record and the records that reference it, concurrently.

    Returns ``(entity, dependents)``; ``entity`` is ``None`` if missing.
    """
    if kind not in DEPENDENTS:
        return store.find_by_id(kind, id, populate=populate), []

    dependent_kind, ref_field = DEPENDENTS[kind]
    return store.fetch_both(
        lambda: store.find_by_id(kind, id, populate=populate),
        lambda: store.find(dependent_kind, {ref_field: id}, sort="id"),
    )


def delete_guarded(store, kind, id):
    entity, dependents = inspect(store, kind, id)
    decision = decide_delete(kind, id, entity, dependents)

    if isinstance(decision, Allowed):
        store.delete_by_id(kind, id)
        return Deleted(decision.entity)
    if isinstance(decision, Blocked):
        logger.info("Refused to delete %s %s: %d dependent(s)", kind, id, len(decision.dependents))
    return decision

"""Builders for the metadata predicate dialect understood by every store.

The dialect is the Mongo-style operator format ChromaDB accepts natively::

    {"type": {"$eq": "question"}}
    {"$and": [{...}, {...}]}
    {"$or": [{...}, {...}]}

Keys are backend metadata keys (``createdAt``, ``createdBy``, ``owner``, ...).
"""

from typing import Any

from ..storage.base import Where


def eq(key: str, value: Any) -> Where:
    return {key: {"$eq": value}}


def gte(key: str, value: Any) -> Where:
    return {key: {"$gte": value}}


def lte(key: str, value: Any) -> Where:
    return {key: {"$lte": value}}


def _combine(op: str, clauses: tuple[Where | None, ...]) -> Where | None:
    present = [c for c in clauses if c]
    if not present:
        return None
    if len(present) == 1:
        return present[0]
    return {op: present}


def all_of(*clauses: Where | None) -> Where | None:
    """AND the non-empty clauses; a single clause is returned unwrapped."""
    return _combine("$and", clauses)


def any_of(*clauses: Where | None) -> Where | None:
    """OR the non-empty clauses; a single clause is returned unwrapped."""
    return _combine("$or", clauses)

"""
Entity Store
============

The only seam between the aggregation engine and the database. The engine
reads through three primitives and nothing else:

    scan(collection, predicate)        -> [record]
    get_by_id(collection, id)          -> record | None
    count_where(collection, predicate) -> int

Predicates are Django Q objects. Records are plain dicts (QuerySet.values()),
so the engine never holds a model instance and never lazily triggers a
query by touching a relation.

Writes that must be atomic per logical key go through toggle_edge().

ERRORS:
-------
Any DatabaseError raised while talking to the database is re-raised as
UpstreamFailure. Nothing here retries.
"""

import logging
from contextlib import contextmanager
from typing import Iterable, Optional

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Q

from .exceptions import UpstreamFailure
from .models import (
    Comment,
    Like,
    Playlist,
    PlaylistEntry,
    Subscription,
    Tweet,
    User,
    Video,
    WatchHistoryEntry,
)

logger = logging.getLogger(__name__)

COLLECTIONS = {
    'users': User,
    'videos': Video,
    'likes': Like,
    'subscriptions': Subscription,
    'comments': Comment,
    'tweets': Tweet,
    'playlists': Playlist,
    'playlist_entries': PlaylistEntry,
    'watch_history': WatchHistoryEntry,
}


class ToggleResult:
    """Result of an insert-if-absent-else-remove operation."""
    def __init__(self, active: bool, action: str):
        self.active = active
        self.action = action

    def __repr__(self):
        return f"ToggleResult(active={self.active}, action={self.action!r})"


@contextmanager
def upstream(operation: str, collection: str):
    """Map any DatabaseError raised inside the block to UpstreamFailure."""
    try:
        yield
    except DatabaseError as exc:
        logger.exception(f"Store {operation} on {collection} failed")
        raise UpstreamFailure(f"Store {operation} on {collection} failed: {exc}") from exc


class EntityStore:
    """ORM-backed store. Stateless; one instance can serve every request."""

    def model_for(self, collection: str):
        try:
            return COLLECTIONS[collection]
        except KeyError:
            raise ValueError(f"Unknown collection: {collection}")

    def scan(
        self,
        collection: str,
        predicate: Optional[Q] = None,
        fields: Optional[Iterable[str]] = None,
        order_by: Optional[Iterable[str]] = None,
    ) -> list[dict]:
        """
        Bulk predicate scan. One query.

        fields restricts the columns loaded; callers reading users always
        pass it so credential columns are never fetched.
        """
        model = self.model_for(collection)
        queryset = model.objects.all()
        if predicate is not None:
            queryset = queryset.filter(predicate)
        if order_by:
            queryset = queryset.order_by(*order_by)
        with upstream('scan', collection):
            return list(queryset.values(*(fields or ())))

    def get_by_id(self, collection: str, record_id, fields: Optional[Iterable[str]] = None) -> Optional[dict]:
        model = self.model_for(collection)
        with upstream('get_by_id', collection):
            return model.objects.filter(pk=record_id).values(*(fields or ())).first()

    def count_where(self, collection: str, predicate: Optional[Q] = None) -> int:
        model = self.model_for(collection)
        queryset = model.objects.all()
        if predicate is not None:
            queryset = queryset.filter(predicate)
        with upstream('count_where', collection):
            return queryset.count()

    def toggle_edge(self, collection: str, **key) -> ToggleResult:
        """
        Atomic insert-if-absent, else remove, keyed by the logical uniqueness
        pair of the edge (e.g. liked_by + target_kind + target_id).

        Two concurrent toggles that both find no edge both try to insert;
        the unique constraint rejects the second, which reports
        'already_exists'. At most one edge survives.
        """
        model = self.model_for(collection)
        with upstream('toggle_edge', collection):
            with transaction.atomic():
                deleted, _ = model.objects.filter(**key).delete()
                if deleted:
                    return ToggleResult(active=False, action='removed')
                try:
                    with transaction.atomic():
                        model.objects.create(**key)
                except IntegrityError:
                    logger.warning(f"Concurrent toggle on {collection} {key}: edge already inserted")
                    return ToggleResult(active=True, action='already_exists')
                return ToggleResult(active=True, action='created')


default_store = EntityStore()

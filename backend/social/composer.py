"""
View Composer
=============

Builds view records: a whitelisted projection of a root record, merged with
its owner summary and the derived fields computed by the resolver.

Projection is always a whitelist. A record is never copied wholesale, so
credential columns on User can't leak through an owner summary.

Owner summaries are loaded once per batch: N roots sharing an owner cost one
row in one query. Nesting is capped by an explicit depth:

    depth 1: profile fields
    depth 2: profile fields + subscribers_count + is_subscribed
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from django.db.models import Q

from .resolver import INBOUND, RelationshipResolver
from .store import EntityStore, default_store

logger = logging.getLogger(__name__)

MAX_OWNER_DEPTH = 2

OWNER_SUMMARY_FIELDS = ('id', 'username', 'full_name', 'avatar_url')
CHANNEL_SUMMARY_FIELDS = OWNER_SUMMARY_FIELDS + ('cover_image_url',)

VIDEO_CARD_FIELDS = (
    'id', 'title', 'description', 'thumbnail_url', 'duration', 'views', 'created_at',
)
CHANNEL_VIDEO_FIELDS = VIDEO_CARD_FIELDS + ('is_published', 'updated_at')
VIDEO_DETAIL_FIELDS = VIDEO_CARD_FIELDS + ('video_url', 'is_published', 'updated_at')
LATEST_VIDEO_FIELDS = ('id', 'title', 'description', 'thumbnail_url', 'video_url', 'created_at')
COMMENT_FIELDS = ('id', 'video_id', 'content', 'created_at', 'updated_at')
TWEET_FIELDS = ('id', 'content', 'created_at', 'updated_at')
PLAYLIST_FIELDS = ('id', 'name', 'description', 'created_at', 'updated_at')

# Marker for views that carry no 'owner' key at all
NO_OWNER = object()


def project(record: dict, fields: Iterable[str]) -> dict:
    return {name: record.get(name) for name in fields}


def with_owner_field(fields: Iterable[str], owner_field: str = 'owner_id') -> list[str]:
    """Columns to scan for a root: the projection plus the owner key used for the join."""
    return list(fields) + [owner_field]


@dataclass
class ViewComposer:
    store: EntityStore = field(default_factory=lambda: default_store)
    resolver: Optional[RelationshipResolver] = None

    def __post_init__(self):
        if self.resolver is None:
            self.resolver = RelationshipResolver(store=self.store)

    def load_owner_summaries(
        self,
        owner_ids: Iterable,
        depth: int = 1,
        viewer_id=None,
        fields: Iterable[str] = OWNER_SUMMARY_FIELDS,
    ) -> dict:
        """
        One scan of users for the de-duplicated owner ids.

        Owners that no longer exist are simply absent from the result;
        callers treat a missing key as a null summary.
        """
        if depth < 1 or depth > MAX_OWNER_DEPTH:
            raise ValueError(f"Owner summary depth must be 1..{MAX_OWNER_DEPTH}, got {depth}")

        ids = [owner_id for owner_id in dict.fromkeys(owner_ids) if owner_id is not None]
        if not ids:
            return {}

        fields = tuple(fields)
        rows = self.store.scan('users', Q(id__in=ids), fields=fields)
        summaries = {row['id']: project(row, fields) for row in rows}

        if depth == 2 and summaries:
            subscribers = self.resolver.resolve(
                summaries.keys(), 'subscription', INBOUND, viewer_id=viewer_id
            )
            for owner_id, summary in summaries.items():
                summary['subscribers_count'] = subscribers[owner_id].count
                summary['is_subscribed'] = subscribers[owner_id].viewer_has_edge

        return summaries

    def compose(self, root: dict, owner_summary=NO_OWNER, derived: Optional[dict] = None, fields: Iterable[str] = ()) -> dict:
        """
        Project root through the whitelist, attach the owner summary (None
        when the owner is gone) and merge derived fields on top.
        """
        view = project(root, fields)
        if owner_summary is not NO_OWNER:
            view['owner'] = owner_summary
        if derived:
            view.update(derived)
        return view

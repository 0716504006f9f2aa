"""
Relationship Resolver
=====================

Given a set of root ids and an edge kind, return for every root:

    count            - live edges attached to the root
    viewer_has_edge  - whether the viewer owns one of those edges
    sample_edges     - the source ids of those edges, in collection order
                       (only when sample=True)
    sample_times     - source id -> edge timestamp, for edge kinds that
                       carry one (only when sample=True)

THE N+1 PROBLEM:
----------------
A feed page of 20 videos needs like counts, comment counts and "did I like
this" for each video. Looking these up per video costs 3 * 20 queries.
Here each call is ONE scan over the edge collection restricted to
`root IN (root_ids)`, grouped in Python:

    SELECT target_id, liked_by_id FROM like
    WHERE target_kind = 'video' AND target_id IN (...)

so a page costs one query per edge kind, regardless of page size.

DIRECTION:
----------
inbound  - the root is the edge target (likes on a video, subscribers of a
           channel, comments on a video, members of a playlist)
outbound - the root is the edge source (videos a user liked, channels a
           user subscribes to)

DANGLING EDGES:
---------------
Edges are only counted against the root ids passed in, and the caller only
ever passes ids of live roots, so an edge whose target was deleted and not
yet swept never contributes to any count. Membership edges point the other
way (playlist -> video), so their video side is checked against the live
videos in one extra scan.
"""

import logging
from collections import namedtuple
from dataclasses import dataclass, field
from typing import Iterable, Optional

from django.db.models import Q

from .store import EntityStore, default_store

logger = logging.getLogger(__name__)

INBOUND = 'inbound'
OUTBOUND = 'outbound'

EdgeSpec = namedtuple(
    'EdgeSpec',
    ['collection', 'root_field', 'source_field', 'predicate', 'order_by', 'live_collection', 'stamp_field'],
)


def _spec(collection, root_field, source_field, predicate=None, order_by=None, live_collection=None, stamp_field=None):
    return EdgeSpec(collection, root_field, source_field, predicate, order_by, live_collection, stamp_field)


EDGE_SPECS = {
    ('like:video', INBOUND): _spec('likes', 'target_id', 'liked_by_id', Q(target_kind='video')),
    ('like:comment', INBOUND): _spec('likes', 'target_id', 'liked_by_id', Q(target_kind='comment')),
    ('like:tweet', INBOUND): _spec('likes', 'target_id', 'liked_by_id', Q(target_kind='tweet')),
    ('like:video', OUTBOUND): _spec(
        'likes', 'liked_by_id', 'target_id', Q(target_kind='video'),
        order_by=('-created_at', 'id'), live_collection='videos', stamp_field='created_at',
    ),
    ('subscription', INBOUND): _spec('subscriptions', 'channel_id', 'subscriber_id'),
    ('subscription', OUTBOUND): _spec(
        'subscriptions', 'subscriber_id', 'channel_id',
        order_by=('-created_at', 'id'),
    ),
    ('comment', INBOUND): _spec('comments', 'video_id', 'owner_id'),
    ('membership', INBOUND): _spec(
        'playlist_entries', 'playlist_id', 'video_id',
        order_by=('position', 'id'), live_collection='videos',
    ),
}


@dataclass
class Resolution:
    count: int = 0
    viewer_has_edge: bool = False
    sample_edges: Optional[list] = None
    sample_times: Optional[dict] = None


@dataclass
class RelationshipResolver:
    store: EntityStore = field(default_factory=lambda: default_store)

    def resolve(
        self,
        root_ids: Iterable,
        edge_kind: str,
        direction: str = INBOUND,
        viewer_id=None,
        sample: bool = False,
    ) -> dict:
        """
        Resolve one edge kind for a batch of roots.

        Never fails on missing roots: every requested root gets an entry,
        zero-valued when it has no edges. An empty root set issues no query.
        """
        try:
            spec = EDGE_SPECS[(edge_kind, direction)]
        except KeyError:
            raise ValueError(f"Unknown edge kind/direction: {edge_kind}/{direction}")

        roots = list(dict.fromkeys(root_ids))
        stamped = sample and spec.stamp_field is not None
        results = {
            root: Resolution(
                sample_edges=[] if sample else None,
                sample_times={} if stamped else None,
            )
            for root in roots
        }
        if not roots:
            return results

        predicate = Q(**{f'{spec.root_field}__in': roots})
        if spec.predicate is not None:
            predicate &= spec.predicate

        edges = self.store.scan(
            spec.collection,
            predicate,
            fields=[spec.root_field, spec.source_field] + ([spec.stamp_field] if stamped else []),
            order_by=spec.order_by,
        )

        live = None
        if spec.live_collection:
            sources = {edge[spec.source_field] for edge in edges}
            live = self.live_ids(spec.live_collection, sources)

        for edge in edges:
            source = edge[spec.source_field]
            if live is not None and source not in live:
                continue
            resolution = results[edge[spec.root_field]]
            resolution.count += 1
            if viewer_id is not None and source == viewer_id:
                resolution.viewer_has_edge = True
            if sample:
                resolution.sample_edges.append(source)
            if stamped:
                resolution.sample_times[source] = edge[spec.stamp_field]

        logger.debug(
            f"Resolved {edge_kind}/{direction} for {len(roots)} roots from {len(edges)} edges"
        )
        return results

    def viewer_edges(self, root_ids: Iterable, edge_kind: str, viewer_id, direction: str = INBOUND) -> set:
        """
        Roots the viewer has an edge to, without counting every edge.

        One scan restricted to the viewer's own edges. Anonymous viewers get
        an empty set and no query.
        """
        if viewer_id is None:
            return set()
        spec = EDGE_SPECS[(edge_kind, direction)]
        roots = list(dict.fromkeys(root_ids))
        if not roots:
            return set()
        predicate = Q(**{f'{spec.root_field}__in': roots, spec.source_field: viewer_id})
        if spec.predicate is not None:
            predicate &= spec.predicate
        edges = self.store.scan(spec.collection, predicate, fields=[spec.root_field])
        return {edge[spec.root_field] for edge in edges}

    def live_ids(self, collection: str, ids: Iterable) -> set:
        ids = set(ids)
        if not ids:
            return set()
        rows = self.store.scan(collection, Q(id__in=ids), fields=['id'])
        return {row['id'] for row in rows}

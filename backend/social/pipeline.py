"""
Pipeline Builder
================

Turns a query intent into an ordered list of stages and runs them:

    1. FILTER  mandatory filters, then optional filters, then one scan of
               the root collection with the combined predicate
    2. JOIN    owner summaries and resolver calls over the filtered roots
               only, then composition into view records
    3. SORT    explicit field + direction, id ascending as tie-break

and hands the sorted views to the pagination engine.

VALIDATION:
-----------
build() validates everything it can without touching the store: unknown
intent, unknown or unsupported filter, blank search text, malformed id,
unknown sort field or direction, missing mandatory filter. These raise
InvalidQuery / InvalidReference before a single stage runs.

NOT FOUND vs EMPTY:
-------------------
A mandatory filter naming a specific record (a video id, a channel id) that
matches nothing raises NotFound from the first filter stage. A valid query
that simply has no rows (no comments yet) is an empty page, not an error.

NESTING:
--------
Each intent declares the depth of its joins (1 or 2). Nothing recurses.
"""

import logging
import uuid
from collections import defaultdict, namedtuple
from dataclasses import dataclass, field
from functools import reduce
from operator import and_
from typing import Any, Callable, Optional

from django.db.models import Q

from .composer import (
    CHANNEL_SUMMARY_FIELDS,
    CHANNEL_VIDEO_FIELDS,
    COMMENT_FIELDS,
    LATEST_VIDEO_FIELDS,
    PLAYLIST_FIELDS,
    TWEET_FIELDS,
    VIDEO_CARD_FIELDS,
    VIDEO_DETAIL_FIELDS,
    ViewComposer,
    project,
    with_owner_field,
)
from .exceptions import InvalidQuery, InvalidReference, NotFound
from .pagination import PageResult, paginate
from .resolver import INBOUND, OUTBOUND, RelationshipResolver
from .store import EntityStore, default_store

logger = logging.getLogger(__name__)

FILTER = 'filter'
JOIN = 'join'
SORT = 'sort'

FEED = 'feed'
CHANNEL_STATS = 'channel-stats'
CHANNEL_VIDEOS = 'channel-videos'
VIDEO_DETAIL = 'video-detail'
COMMENTS_FOR_VIDEO = 'comments-for-video'
PLAYLIST_DETAIL = 'playlist-detail'
USER_PLAYLISTS = 'user-playlists'
SUBSCRIBERS_OF_CHANNEL = 'subscribers-of-channel'
CHANNELS_SUBSCRIBED_BY = 'channels-subscribed-by'
TWEETS_OF_USER = 'tweets-of-user'
LIKED_VIDEOS = 'liked-videos'
WATCH_HISTORY = 'watch-history'

FILTER_ALIASES = {
    'text': 'text',
    'owner_id': 'owner_id',
    'ownerId': 'owner_id',
    'target_id': 'target_id',
    'targetId': 'target_id',
    'published_only': 'published_only',
    'publishedOnly': 'published_only',
}

SORT_ALIASES = {
    'createdAt': 'created_at',
    'updatedAt': 'updated_at',
    'watchedAt': 'watched_at',
    'likedAt': 'liked_at',
    'likesCount': 'likes_count',
    'subscribedAt': 'subscribed_at',
}

DIRECTIONS = ('asc', 'desc')
DEFAULT_DIRECTION = 'desc'

VIDEO_SORTS = {
    'created_at': 'created_at',
    'views': 'views',
    'duration': 'duration',
    'title': 'title',
    'likes_count': 'likes_count',
}

IntentSpec = namedtuple(
    'IntentSpec',
    ['required', 'accepts', 'sortable', 'default_sort', 'viewer_required'],
)

INTENT_SPECS = {
    FEED: IntentSpec((), {'text', 'owner_id'}, VIDEO_SORTS, 'created_at', False),
    CHANNEL_STATS: IntentSpec(('owner_id',), {'owner_id'}, {}, None, False),
    CHANNEL_VIDEOS: IntentSpec(
        ('owner_id',), {'owner_id', 'published_only', 'text'}, VIDEO_SORTS, 'created_at', False,
    ),
    VIDEO_DETAIL: IntentSpec(('target_id',), {'target_id'}, {}, None, False),
    COMMENTS_FOR_VIDEO: IntentSpec(
        ('target_id',), {'target_id'},
        {'created_at': 'created_at', 'likes_count': 'likes_count'}, 'created_at', False,
    ),
    PLAYLIST_DETAIL: IntentSpec(('target_id',), {'target_id'}, {}, None, False),
    USER_PLAYLISTS: IntentSpec(
        ('owner_id',), {'owner_id'},
        {'created_at': 'created_at', 'updated_at': 'updated_at', 'name': 'name'}, 'created_at', False,
    ),
    SUBSCRIBERS_OF_CHANNEL: IntentSpec(
        ('target_id',), {'target_id'},
        {'created_at': 'subscribed_at', 'subscribed_at': 'subscribed_at', 'username': 'username'},
        'created_at', False,
    ),
    CHANNELS_SUBSCRIBED_BY: IntentSpec(
        ('owner_id',), {'owner_id'},
        {'created_at': 'subscribed_at', 'subscribed_at': 'subscribed_at', 'username': 'username'},
        'created_at', False,
    ),
    TWEETS_OF_USER: IntentSpec(
        ('owner_id',), {'owner_id'},
        {'created_at': 'created_at', 'likes_count': 'likes_count'}, 'created_at', False,
    ),
    LIKED_VIDEOS: IntentSpec((), set(), dict(VIDEO_SORTS, liked_at='liked_at'), 'liked_at', True),
    WATCH_HISTORY: IntentSpec(
        (), set(),
        {'watched_at': 'watched_at', 'created_at': 'created_at', 'views': 'views', 'duration': 'duration', 'title': 'title'},
        'watched_at', True,
    ),
}

INTENTS = tuple(INTENT_SPECS)


@dataclass
class QueryIntent:
    """Normalized request handed over by the HTTP layer."""
    intent: str
    filters: dict = field(default_factory=dict)
    sort: dict = field(default_factory=dict)
    viewer_id: Any = None
    page: Any = None
    page_size: Any = None


@dataclass(frozen=True)
class Stage:
    kind: str
    name: str
    run: Callable = field(repr=False, compare=False)
    depth: int = 0


class PipelineContext:
    """Mutable state threaded through the stages of one request."""

    def __init__(self, store, resolver, composer, viewer_id):
        self.store = store
        self.resolver = resolver
        self.composer = composer
        self.viewer_id = viewer_id
        self.predicates = []
        self.records = []
        self.owners = {}
        self.derived = defaultdict(dict)
        self.scratch = {}
        self.items = []

    def predicate(self) -> Q:
        return reduce(and_, self.predicates, Q())


# ============================================================================
# VALIDATION
# ============================================================================

def parse_id(value, label: str = 'id') -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value).strip())
    except (TypeError, ValueError, AttributeError):
        raise InvalidReference(f"Invalid {label}: {value!r}")


def parse_viewer(viewer_id) -> Optional[uuid.UUID]:
    if viewer_id is None:
        return None
    return parse_id(viewer_id, 'viewer id')


def parse_bool(value, label: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ('true', '1', 'yes'):
        return True
    if text in ('false', '0', 'no'):
        return False
    raise InvalidQuery(f"Invalid value for {label}: {value!r}")


def normalize_filters(intent: str, spec: IntentSpec, raw: Optional[dict]) -> dict:
    if raw is not None and not isinstance(raw, dict):
        raise InvalidQuery('Filters must be a mapping')
    filters = {}
    for key, value in (raw or {}).items():
        name = FILTER_ALIASES.get(key) if isinstance(key, str) else None
        if name is None:
            raise InvalidQuery(f"Unknown filter: {key!r}")
        if value is None:
            continue
        # an empty query-string flag means the flag was not given
        if name == 'published_only' and isinstance(value, str) and not value.strip():
            continue
        if name not in spec.accepts:
            raise InvalidQuery(f"Filter '{key}' is not supported for {intent}")
        filters[name] = value

    if 'text' in filters:
        text = filters['text']
        if not isinstance(text, str) or not text.strip():
            raise InvalidQuery('Provide a valid search query')
        filters['text'] = text.strip()
    for name in ('owner_id', 'target_id'):
        if name in filters:
            filters[name] = parse_id(filters[name], name)
    if 'published_only' in filters:
        filters['published_only'] = parse_bool(filters['published_only'], 'published_only')

    for name in spec.required:
        if name not in filters:
            raise InvalidQuery(f"{intent} requires the {name} filter")
    return filters


def normalize_sort(intent: str, spec: IntentSpec, raw: Optional[dict]):
    """
    Returns (item key, direction), or None for single-record intents.

    An omitted field falls back to the intent's default field and an omitted
    direction to 'desc', independently of each other.
    """
    if raw is not None and not isinstance(raw, dict):
        raise InvalidQuery('Sort must be a mapping')
    raw = raw or {}
    field_name = raw.get('field') or None
    direction = raw.get('direction') or None
    if field_name is not None and not isinstance(field_name, str):
        raise InvalidQuery(f"Invalid sort field: {field_name!r}")
    if direction is not None and not isinstance(direction, str):
        raise InvalidQuery(f"Invalid sort direction: {direction!r}")

    if not spec.sortable:
        if field_name or direction:
            raise InvalidQuery(f"{intent} does not support sorting")
        return None

    canonical = SORT_ALIASES.get(field_name, field_name) if field_name else spec.default_sort
    if canonical not in spec.sortable:
        raise InvalidQuery(f"Cannot sort {intent} by {field_name!r}")

    direction = str(direction or DEFAULT_DIRECTION).lower()
    if direction not in DIRECTIONS:
        raise InvalidQuery(f"Sort direction must be 'asc' or 'desc', got {direction!r}")

    return spec.sortable[canonical], direction


def sort_items(items: list, key: str, direction: str) -> list:
    """
    Stable two-pass sort: id ascending first, then the sort key. Python's
    sort is stable (also with reverse=True), so equal keys keep id order.
    """
    by_id = sorted(items, key=lambda item: item['id'])
    return sorted(by_id, key=lambda item: item[key], reverse=(direction == 'desc'))


def _ids(records, key='id'):
    return [record[key] for record in records]


def _visible(video: dict, viewer_id) -> bool:
    return bool(video['is_published']) or (viewer_id is not None and video['owner_id'] == viewer_id)


def _visible_predicate(viewer_id) -> Q:
    predicate = Q(is_published=True)
    if viewer_id is not None:
        predicate |= Q(owner_id=viewer_id)
    return predicate


# ============================================================================
# STAGE FACTORIES
# ============================================================================

def where(name: str, predicate: Q) -> Stage:
    def run(ctx):
        ctx.predicates.append(predicate)
    return Stage(FILTER, name, run)


def require(collection: str, record_id, message: str, fields=('id',), visible: bool = False, keep: bool = False) -> Stage:
    """Point lookup of the record a mandatory filter names; NotFound if absent."""
    def run(ctx):
        record = ctx.store.get_by_id(collection, record_id, fields=fields)
        if record is None or (visible and not _visible(record, ctx.viewer_id)):
            raise NotFound(message)
        if keep:
            ctx.records = [record]
    return Stage(FILTER, f'require {collection}', run)


def scan(collection: str, fields) -> Stage:
    def run(ctx):
        ctx.records = ctx.store.scan(collection, ctx.predicate(), fields=fields)
        logger.debug(f"Scanned {len(ctx.records)} {collection} candidates")
    return Stage(FILTER, f'scan {collection}', run)


def join_owners(depth: int, owner_field: str = 'owner_id') -> Stage:
    def run(ctx):
        ctx.owners.update(ctx.composer.load_owner_summaries(
            _ids(ctx.records, owner_field), depth=depth, viewer_id=ctx.viewer_id,
        ))
    return Stage(JOIN, 'owner summaries', run, depth)


def join_likes(target_kind: str) -> Stage:
    def run(ctx):
        resolved = ctx.resolver.resolve(
            _ids(ctx.records), f'like:{target_kind}', INBOUND, viewer_id=ctx.viewer_id,
        )
        for root_id, resolution in resolved.items():
            ctx.derived[root_id]['likes_count'] = resolution.count
            ctx.derived[root_id]['is_liked'] = resolution.viewer_has_edge
    return Stage(JOIN, f'likes on {target_kind}', run, 1)


def join_comment_counts() -> Stage:
    def run(ctx):
        resolved = ctx.resolver.resolve(_ids(ctx.records), 'comment', INBOUND)
        for root_id, resolution in resolved.items():
            ctx.derived[root_id]['comments_count'] = resolution.count
    return Stage(JOIN, 'comment counts', run, 1)


def compose(fields, owner_field: Optional[str] = 'owner_id') -> Stage:
    def run(ctx):
        if owner_field is None:
            ctx.items = [
                ctx.composer.compose(record, derived=ctx.derived[record['id']], fields=fields)
                for record in ctx.records
            ]
            return
        ctx.items = [
            ctx.composer.compose(
                record, ctx.owners.get(record[owner_field]), ctx.derived[record['id']], fields,
            )
            for record in ctx.records
        ]
    return Stage(JOIN, 'compose views', run)


def sort_stage(key: str, direction: str) -> Stage:
    def run(ctx):
        ctx.items = sort_items(ctx.items, key, direction)
    return Stage(SORT, f'sort {key} {direction}', run)


# ============================================================================
# INTENTS
# ============================================================================

def _text_predicate(text: str) -> Q:
    return Q(title__icontains=text) | Q(description__icontains=text)


def _feed(filters, viewer_id):
    stages = [where('published', Q(is_published=True))]
    if 'text' in filters:
        stages.append(where('text', _text_predicate(filters['text'])))
    if 'owner_id' in filters:
        stages.append(where('owner', Q(owner_id=filters['owner_id'])))
    return stages + [
        scan('videos', with_owner_field(VIDEO_CARD_FIELDS)),
        join_owners(1),
        join_likes('video'),
        join_comment_counts(),
        compose(VIDEO_CARD_FIELDS),
    ]


def _channel_stats(filters, viewer_id):
    owner_id = filters['owner_id']

    def require_videos(ctx):
        if not ctx.records:
            raise NotFound('No videos found for this channel')

    def totals(ctx):
        store = ctx.store
        owner = ctx.composer.load_owner_summaries([owner_id], depth=1).get(owner_id)
        derived = [ctx.derived[video_id] for video_id in _ids(ctx.records)]
        ctx.items = [{
            'id': owner_id,
            'owner': owner,
            'total_videos': len(ctx.records),
            'total_views': sum(record['views'] for record in ctx.records),
            'total_likes': sum(entry['likes_count'] for entry in derived),
            'total_comments': sum(entry['comments_count'] for entry in derived),
            'total_subscribers': store.count_where('subscriptions', Q(channel_id=owner_id)),
            'total_channels_subscribed_to': store.count_where('subscriptions', Q(subscriber_id=owner_id)),
            'total_tweets': store.count_where('tweets', Q(owner_id=owner_id)),
            'total_playlists': store.count_where('playlists', Q(owner_id=owner_id)),
        }]

    return [
        where('owner', Q(owner_id=owner_id)),
        scan('videos', ('id', 'views')),
        Stage(FILTER, 'require videos', require_videos),
        join_likes('video'),
        join_comment_counts(),
        Stage(JOIN, 'channel totals', totals, 1),
    ]


def _channel_videos(filters, viewer_id):
    owner_id = filters['owner_id']
    stages = [
        require('users', owner_id, 'Channel not found'),
        where('owner', Q(owner_id=owner_id)),
    ]
    if filters.get('published_only') or viewer_id != owner_id:
        stages.append(where('published', Q(is_published=True)))
    if 'text' in filters:
        stages.append(where('text', _text_predicate(filters['text'])))
    return stages + [
        scan('videos', with_owner_field(CHANNEL_VIDEO_FIELDS)),
        join_owners(1),
        join_likes('video'),
        join_comment_counts(),
        compose(CHANNEL_VIDEO_FIELDS),
    ]


def _video_detail(filters, viewer_id):
    return [
        require(
            'videos', filters['target_id'], 'Video not found',
            fields=with_owner_field(VIDEO_DETAIL_FIELDS), visible=True, keep=True,
        ),
        join_owners(2),
        join_likes('video'),
        join_comment_counts(),
        compose(VIDEO_DETAIL_FIELDS),
    ]


def _comments_for_video(filters, viewer_id):
    video_id = filters['target_id']
    return [
        require('videos', video_id, 'Video not found', fields=('id', 'is_published', 'owner_id'), visible=True),
        where('video', Q(video_id=video_id)),
        scan('comments', with_owner_field(COMMENT_FIELDS)),
        join_owners(1),
        join_likes('comment'),
        compose(COMMENT_FIELDS),
    ]


def _playlist_detail(filters, viewer_id):
    playlist_id = filters['target_id']
    video_fields = with_owner_field(VIDEO_CARD_FIELDS) + ['is_published']

    def members(ctx):
        resolution = ctx.resolver.resolve([playlist_id], 'membership', INBOUND, sample=True)[playlist_id]
        member_ids = resolution.sample_edges
        videos = ctx.store.scan('videos', Q(id__in=member_ids), fields=video_fields) if member_ids else []
        by_id = {video['id']: video for video in videos if _visible(video, ctx.viewer_id)}
        ctx.scratch['members'] = [by_id[video_id] for video_id in member_ids if video_id in by_id]

    def owners(ctx):
        owner_ids = _ids(ctx.records, 'owner_id') + _ids(ctx.scratch['members'], 'owner_id')
        ctx.owners.update(ctx.composer.load_owner_summaries(owner_ids, depth=1))

    def assemble(ctx):
        playlist = ctx.records[0]
        videos = [
            ctx.composer.compose(video, ctx.owners.get(video['owner_id']), fields=VIDEO_CARD_FIELDS)
            for video in ctx.scratch['members']
        ]
        derived = {
            'videos': videos,
            'total_video_count': len(videos),
            'total_views': sum(video['views'] for video in videos),
        }
        ctx.items = [ctx.composer.compose(playlist, ctx.owners.get(playlist['owner_id']), derived, PLAYLIST_FIELDS)]

    return [
        require(
            'playlists', playlist_id, 'Playlist not found',
            fields=with_owner_field(PLAYLIST_FIELDS), keep=True,
        ),
        Stage(JOIN, 'playlist members', members, 1),
        Stage(JOIN, 'owner summaries', owners, 2),
        Stage(JOIN, 'compose playlist', assemble, 2),
    ]


def _user_playlists(filters, viewer_id):
    owner_id = filters['owner_id']

    def members(ctx):
        resolved = ctx.resolver.resolve(_ids(ctx.records), 'membership', INBOUND, sample=True)
        first_ids = {
            playlist_id: resolution.sample_edges[0]
            for playlist_id, resolution in resolved.items()
            if resolution.sample_edges
        }
        thumbnails = {}
        if first_ids:
            rows = ctx.store.scan('videos', Q(id__in=set(first_ids.values())), fields=('id', 'thumbnail_url'))
            thumbnails = {row['id']: row['thumbnail_url'] for row in rows}
        for playlist_id, resolution in resolved.items():
            ctx.derived[playlist_id]['total_videos'] = resolution.count
            ctx.derived[playlist_id]['first_video_thumbnail'] = thumbnails.get(first_ids.get(playlist_id))

    return [
        require('users', owner_id, 'User not found'),
        where('owner', Q(owner_id=owner_id)),
        scan('playlists', PLAYLIST_FIELDS),
        Stage(JOIN, 'playlist members', members, 1),
        compose(PLAYLIST_FIELDS, owner_field=None),
    ]


def _subscription_people(person_field: str, back_edge_from=None):
    """
    Join for subscription listings: the root records are subscription edges,
    the views are summaries of the user on the other end.
    """
    def run(ctx):
        person_ids = _ids(ctx.records, person_field)
        summaries = ctx.composer.load_owner_summaries(
            person_ids, depth=2, viewer_id=ctx.viewer_id, fields=CHANNEL_SUMMARY_FIELDS,
        )
        back = set()
        if back_edge_from is not None:
            back = ctx.resolver.viewer_edges(person_ids, 'subscription', back_edge_from)
        items = []
        for record in ctx.records:
            summary = summaries.get(record[person_field])
            if summary is None:
                continue
            item = dict(summary, subscribed_at=record['created_at'])
            if back_edge_from is not None:
                item['subscribed_to_subscriber'] = record[person_field] in back
            items.append(item)
        ctx.items = items
    return Stage(JOIN, 'subscription summaries', run, 2)


def _subscribers_of_channel(filters, viewer_id):
    channel_id = filters['target_id']
    return [
        require('users', channel_id, 'Channel not found'),
        where('channel', Q(channel_id=channel_id)),
        scan('subscriptions', ('id', 'subscriber_id', 'created_at')),
        _subscription_people('subscriber_id', back_edge_from=channel_id),
    ]


def _channels_subscribed_by(filters, viewer_id):
    subscriber_id = filters['owner_id']

    def latest_videos(ctx):
        channel_ids = _ids(ctx.items)
        latest = {}
        if channel_ids:
            videos = ctx.store.scan(
                'videos',
                Q(owner_id__in=channel_ids, is_published=True),
                fields=with_owner_field(LATEST_VIDEO_FIELDS),
            )
            for video in sorted(videos, key=lambda row: (row['created_at'], row['id'])):
                latest[video['owner_id']] = project(video, LATEST_VIDEO_FIELDS)
        for item in ctx.items:
            item['latest_video'] = latest.get(item['id'])

    return [
        require('users', subscriber_id, 'User not found'),
        where('subscriber', Q(subscriber_id=subscriber_id)),
        scan('subscriptions', ('id', 'channel_id', 'created_at')),
        _subscription_people('channel_id'),
        Stage(JOIN, 'latest videos', latest_videos, 2),
    ]


def _tweets_of_user(filters, viewer_id):
    owner_id = filters['owner_id']
    return [
        require('users', owner_id, 'User not found'),
        where('owner', Q(owner_id=owner_id)),
        scan('tweets', with_owner_field(TWEET_FIELDS)),
        join_owners(1),
        join_likes('tweet'),
        compose(TWEET_FIELDS),
    ]


def _liked_videos(filters, viewer_id):
    def liked_by_viewer(ctx):
        resolution = ctx.resolver.resolve([viewer_id], 'like:video', OUTBOUND, sample=True)[viewer_id]
        ctx.scratch['liked_at'] = resolution.sample_times
        ctx.predicates.append(Q(id__in=resolution.sample_edges))

    def liked_at(ctx):
        for video_id in _ids(ctx.records):
            ctx.derived[video_id]['liked_at'] = ctx.scratch['liked_at'][video_id]

    return [
        Stage(FILTER, 'liked by viewer', liked_by_viewer),
        where('visible', _visible_predicate(viewer_id)),
        scan('videos', with_owner_field(VIDEO_CARD_FIELDS)),
        join_owners(1),
        join_likes('video'),
        Stage(JOIN, 'liked at', liked_at, 1),
        compose(VIDEO_CARD_FIELDS),
    ]


def _watch_history(filters, viewer_id):
    def watched_by_viewer(ctx):
        entries = ctx.store.scan('watch_history', Q(user_id=viewer_id), fields=('video_id', 'watched_at'))
        ctx.scratch['watched_at'] = {entry['video_id']: entry['watched_at'] for entry in entries}
        ctx.predicates.append(Q(id__in=list(ctx.scratch['watched_at'])))

    def watched_at(ctx):
        for video_id in _ids(ctx.records):
            ctx.derived[video_id]['watched_at'] = ctx.scratch['watched_at'][video_id]

    return [
        Stage(FILTER, 'watched by viewer', watched_by_viewer),
        where('visible', _visible_predicate(viewer_id)),
        scan('videos', with_owner_field(VIDEO_CARD_FIELDS)),
        join_owners(1),
        Stage(JOIN, 'watched at', watched_at, 1),
        compose(VIDEO_CARD_FIELDS),
    ]


INTENT_BUILDERS = {
    FEED: _feed,
    CHANNEL_STATS: _channel_stats,
    CHANNEL_VIDEOS: _channel_videos,
    VIDEO_DETAIL: _video_detail,
    COMMENTS_FOR_VIDEO: _comments_for_video,
    PLAYLIST_DETAIL: _playlist_detail,
    USER_PLAYLISTS: _user_playlists,
    SUBSCRIBERS_OF_CHANNEL: _subscribers_of_channel,
    CHANNELS_SUBSCRIBED_BY: _channels_subscribed_by,
    TWEETS_OF_USER: _tweets_of_user,
    LIKED_VIDEOS: _liked_videos,
    WATCH_HISTORY: _watch_history,
}


def build(intent: str, filters: Optional[dict] = None, sort: Optional[dict] = None, viewer_id=None) -> list[Stage]:
    """
    Validate the query and return its stages in execution order.

    Raises InvalidQuery / InvalidReference; never touches the store.
    """
    spec = INTENT_SPECS.get(intent)
    if spec is None:
        raise InvalidQuery(f"Unknown query intent: {intent!r}")

    viewer_id = parse_viewer(viewer_id)
    if spec.viewer_required and viewer_id is None:
        raise InvalidQuery(f"{intent} requires a signed-in viewer")

    normalized = normalize_filters(intent, spec, filters)
    ordering = normalize_sort(intent, spec, sort)

    stages = INTENT_BUILDERS[intent](normalized, viewer_id)
    if ordering is not None:
        stages.append(sort_stage(*ordering))
    return stages


@dataclass
class AggregationEngine:
    store: EntityStore = field(default_factory=lambda: default_store)
    resolver: Optional[RelationshipResolver] = None
    composer: Optional[ViewComposer] = None

    def __post_init__(self):
        if self.resolver is None:
            self.resolver = RelationshipResolver(store=self.store)
        if self.composer is None:
            self.composer = ViewComposer(store=self.store, resolver=self.resolver)

    def run(self, query: QueryIntent) -> PageResult:
        try:
            stages = build(query.intent, query.filters, query.sort, query.viewer_id)
        except (InvalidQuery, InvalidReference) as exc:
            logger.warning(f"Rejected {query.intent} query: {exc.detail}")
            raise

        ctx = PipelineContext(self.store, self.resolver, self.composer, parse_viewer(query.viewer_id))
        for stage in stages:
            logger.debug(f"{query.intent}: {stage.kind} stage '{stage.name}'")
            stage.run(ctx)

        return paginate(ctx.items, query.page, query.page_size)


def execute(query: QueryIntent, store: Optional[EntityStore] = None) -> PageResult:
    """Run one query intent against the store and return the paginated views."""
    engine = AggregationEngine(store=store) if store is not None else AggregationEngine()
    return engine.run(query)

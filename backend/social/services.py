"""
Write-side Services
===================

Everything that mutates the store goes through here:
1. Toggling engagement and social edges (likes, subscriptions)
2. Video / comment / tweet / playlist CRUD with ownership checks
3. View counting and watch-history maintenance

CONCURRENCY STRATEGY:
---------------------
Problem: Two requests toggle the same like at the same moment.
Naive: Check if exists -> Create if not -> RACE CONDITION!

Both toggles go through EntityStore.toggle_edge(): delete-or-insert in one
transaction, with the insert in a savepoint. The unique constraint on
(liked_by, target_kind, target_id) rejects the second insert, so at most one
edge survives and the loser reports 'already_exists'.

View counts use F() expressions, so concurrent views never lose an
increment.

OWNERSHIP:
----------
Updates and deletes load the record first (NotFound if missing), then compare
owner_id with the acting user (PermissionDenied otherwise).
"""

import logging

from django.db import IntegrityError, transaction
from django.db.models import F, Max
from django.utils import timezone

from .conf import engine_setting
from .exceptions import InvalidQuery, NotFound, PermissionDenied
from .models import (
    Comment,
    Like,
    Playlist,
    PlaylistEntry,
    Tweet,
    User,
    Video,
    WatchHistoryEntry,
)
from .pipeline import parse_id
from .store import ToggleResult, default_store, upstream

logger = logging.getLogger(__name__)

LIKE_TARGETS = {
    Like.TargetKind.VIDEO: Video,
    Like.TargetKind.COMMENT: Comment,
    Like.TargetKind.TWEET: Tweet,
}


def _get(model, record_id, label: str):
    record_id = parse_id(record_id, f'{label} id')
    try:
        return model.objects.get(pk=record_id)
    except model.DoesNotExist:
        raise NotFound(f"{label.capitalize()} not found")


def _get_owned(model, record_id, user, label: str):
    record = _get(model, record_id, label)
    if record.owner_id != user.id:
        raise PermissionDenied(f"Only the owner can modify this {label}")
    return record


def _get_visible_video(video_id, user) -> Video:
    """Published videos are visible to everyone, drafts only to their owner."""
    video = _get(Video, video_id, 'video')
    if not video.is_published and video.owner_id != getattr(user, 'id', None):
        raise NotFound("Video not found")
    return video


def _apply(record, changes: dict, allowed):
    for name in allowed:
        if name in changes:
            setattr(record, name, changes[name])
    record.save()
    return record


# ============================================================================
# EDGES
# ============================================================================

def toggle_like(user: User, target_kind: str, target_id) -> ToggleResult:
    """
    Like or unlike a video, comment or tweet.

    The target has to exist when the like is created; unliking a target that
    was deleted in the meantime is not possible since the sweep already
    removed the edge.
    """
    model = LIKE_TARGETS.get(target_kind)
    if model is None:
        raise InvalidQuery(f"Cannot like a {target_kind!r}")

    if model is Video:
        target = _get_visible_video(target_id, user)
    else:
        target = _get(model, target_id, target_kind)

    result = default_store.toggle_edge(
        'likes', liked_by_id=user.id, target_kind=target_kind, target_id=target.id,
    )
    logger.info(f"User {user.id} toggled like on {target_kind} {target.id}: {result.action}")
    return result


def toggle_subscription(user: User, channel_id) -> ToggleResult:
    channel = _get(User, channel_id, 'channel')
    if channel.id == user.id:
        raise InvalidQuery("You cannot subscribe to your own channel")

    result = default_store.toggle_edge('subscriptions', subscriber_id=user.id, channel_id=channel.id)
    logger.info(f"User {user.id} toggled subscription to {channel.id}: {result.action}")
    return result


# ============================================================================
# VIDEOS
# ============================================================================

VIDEO_EDITABLE_FIELDS = ('title', 'description', 'thumbnail_url')


def create_video(owner: User, data: dict) -> Video:
    """
    Register a video record. Media live elsewhere; only their URLs are stored.
    """
    video = Video.objects.create(owner=owner, **data)
    logger.info(f"User {owner.id} created video {video.id}")
    return video


def update_video(user: User, video_id, changes: dict) -> Video:
    video = _get_owned(Video, video_id, user, 'video')
    return _apply(video, changes, VIDEO_EDITABLE_FIELDS)


def delete_video(user: User, video_id) -> None:
    """Delete a video. Its likes, comments, playlist entries and history entries are swept by signals."""
    video = _get_owned(Video, video_id, user, 'video')
    video.delete()
    logger.info(f"User {user.id} deleted video {video_id}")


def toggle_publish(user: User, video_id) -> Video:
    video = _get_owned(Video, video_id, user, 'video')
    video.is_published = not video.is_published
    video.save(update_fields=['is_published', 'updated_at'])
    return video


def record_view(user, video_id) -> None:
    """
    Count one view and, for a signed-in viewer, refresh their watch history.

    The history keeps one entry per video; watching again moves it to the
    front. Entries beyond WATCH_HISTORY_LIMIT (oldest first) are trimmed.
    """
    video_id = parse_id(video_id, 'video id')
    with upstream('record_view', 'videos'):
        Video.objects.filter(pk=video_id).update(views=F('views') + 1)

    if user is None or not user.is_authenticated:
        return

    limit = engine_setting('WATCH_HISTORY_LIMIT')
    with upstream('record_view', 'watch_history'), transaction.atomic():
        WatchHistoryEntry.objects.update_or_create(
            user=user,
            video_id=video_id,
            defaults={'watched_at': timezone.now()},
        )
        stale = list(
            WatchHistoryEntry.objects
            .filter(user=user)
            .order_by('-watched_at', 'id')
            .values_list('id', flat=True)[limit:]
        )
        if stale:
            WatchHistoryEntry.objects.filter(id__in=stale).delete()
            logger.debug(f"Trimmed {len(stale)} watch history entries for user {user.id}")


# ============================================================================
# COMMENTS & TWEETS
# ============================================================================

def add_comment(user: User, video_id, content: str) -> Comment:
    video = _get_visible_video(video_id, user)
    return Comment.objects.create(owner=user, video_id=video.id, content=content)


def update_comment(user: User, comment_id, content: str) -> Comment:
    comment = _get_owned(Comment, comment_id, user, 'comment')
    return _apply(comment, {'content': content}, ('content',))


def delete_comment(user: User, comment_id) -> None:
    _get_owned(Comment, comment_id, user, 'comment').delete()


def create_tweet(user: User, content: str) -> Tweet:
    return Tweet.objects.create(owner=user, content=content)


def update_tweet(user: User, tweet_id, content: str) -> Tweet:
    tweet = _get_owned(Tweet, tweet_id, user, 'tweet')
    return _apply(tweet, {'content': content}, ('content',))


def delete_tweet(user: User, tweet_id) -> None:
    _get_owned(Tweet, tweet_id, user, 'tweet').delete()


# ============================================================================
# PLAYLISTS
# ============================================================================

def create_playlist(user: User, name: str, description: str = '') -> Playlist:
    return Playlist.objects.create(owner=user, name=name, description=description)


def update_playlist(user: User, playlist_id, changes: dict) -> Playlist:
    playlist = _get_owned(Playlist, playlist_id, user, 'playlist')
    return _apply(playlist, changes, ('name', 'description'))


def delete_playlist(user: User, playlist_id) -> None:
    _get_owned(Playlist, playlist_id, user, 'playlist').delete()


def add_to_playlist(user: User, playlist_id, video_id) -> PlaylistEntry:
    """
    Append a published video to the end of a playlist.

    Adding a video that is already a member is a no-op that returns the
    existing entry, so the playlist stays a de-duplicated ordered set.
    """
    playlist = _get_owned(Playlist, playlist_id, user, 'playlist')
    video = _get(Video, video_id, 'video')
    if not video.is_published:
        raise InvalidQuery("Only published videos can be added to a playlist")

    existing = PlaylistEntry.objects.filter(playlist=playlist, video_id=video.id).first()
    if existing is not None:
        return existing

    try:
        with transaction.atomic():
            last = playlist.entries.aggregate(last=Max('position'))['last']
            entry = PlaylistEntry.objects.create(
                playlist=playlist,
                video_id=video.id,
                position=0 if last is None else last + 1,
            )
    except IntegrityError:
        # Concurrent add of the same video won the insert
        return PlaylistEntry.objects.get(playlist=playlist, video_id=video.id)

    playlist.save(update_fields=['updated_at'])
    return entry


def remove_from_playlist(user: User, playlist_id, video_id) -> bool:
    """Returns True when an entry was removed. The video itself need not exist anymore."""
    playlist = _get_owned(Playlist, playlist_id, user, 'playlist')
    video_id = parse_id(video_id, 'video id')
    deleted, _ = PlaylistEntry.objects.filter(playlist=playlist, video_id=video_id).delete()
    if deleted:
        playlist.save(update_fields=['updated_at'])
    return bool(deleted)

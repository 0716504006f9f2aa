"""
Data Models for VidStream
=========================

Record kinds:
-------------
- User: the identity. Custom AUTH_USER_MODEL so every id in the system is a UUID.
- Video: content owned by exactly one user.
- Like: engagement edge (user -> video | comment | tweet).
- Subscription: social edge (subscriber -> channel, both users).
- Comment: annotation on a video.
- Tweet: short post.
- Playlist + PlaylistEntry: ordered, de-duplicated collection of videos.
- WatchHistoryEntry: bounded per-user log of watched videos.

Counts:
-------
No model stores a like/subscriber/comment counter. Every count shown to a
caller is computed from the edge tables at read time (see resolver.py).

References that may dangle:
---------------------------
Like.target_id, Comment.video_id, PlaylistEntry.video_id and
WatchHistoryEntry.video_id are plain UUID columns, not foreign keys. The
store enforces no cascade for them; signals.py sweeps them when the target
is deleted, and the resolver only ever counts them against live root ids.

Uniqueness:
-----------
(liked_by, target_kind, target_id), (subscriber, channel),
(playlist, video_id) and (user, video_id) are unique at the DB level. The
toggle primitive in store.py relies on these constraints for atomicity.
"""

import uuid

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone


class User(AbstractUser):
    """
    Identity record.

    Credential material (password, last_login, permission flags) lives on
    the AbstractUser base and is never part of any projection in composer.py.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    full_name = models.CharField(max_length=150, blank=True)
    avatar_url = models.URLField(max_length=500, blank=True)
    cover_image_url = models.URLField(max_length=500, blank=True)

    def __str__(self):
        return self.username


class Video(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='videos',
        db_index=True
    )
    title = models.CharField(max_length=300)
    description = models.TextField()
    video_url = models.URLField(max_length=500)
    thumbnail_url = models.URLField(max_length=500)
    duration = models.FloatField(default=0)
    views = models.PositiveIntegerField(default=0)
    is_published = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', 'id']
        indexes = [
            # Public feed: published videos, newest first
            models.Index(fields=['is_published', '-created_at'], name='social_vide_is_publ_3f1c2a_idx'),
            # Channel listings
            models.Index(fields=['owner', '-created_at'], name='social_vide_owner_i_8b7e4d_idx'),
        ]

    def __str__(self):
        return f"{self.title[:50]} by {self.owner_id}"


class Like(models.Model):
    """
    Polymorphic engagement edge.

    target_kind + target_id address a Video, Comment or Tweet. The target is
    not a foreign key, so a like may briefly outlive its target until the
    delete signal sweeps it.
    """

    class TargetKind(models.TextChoices):
        VIDEO = 'video', 'Video'
        COMMENT = 'comment', 'Comment'
        TWEET = 'tweet', 'Tweet'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    liked_by = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='likes'
    )
    target_kind = models.CharField(max_length=10, choices=TargetKind.choices)
    target_id = models.UUIDField()
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['liked_by', 'target_kind', 'target_id'],
                name='unique_like_per_user_per_target'
            )
        ]
        indexes = [
            # For counting likes on a batch of targets
            models.Index(fields=['target_kind', 'target_id'], name='social_like_target__6e2b9c_idx'),
        ]

    def __str__(self):
        return f"{self.liked_by_id} liked {self.target_kind} {self.target_id}"


class Subscription(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    subscriber = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='subscriptions'
    )
    channel = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='subscribers'
    )
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['subscriber', 'channel'],
                name='unique_subscription_per_pair'
            )
        ]
        indexes = [
            models.Index(fields=['channel'], name='social_subs_channel_4c0d1f_idx'),
        ]

    def __str__(self):
        return f"{self.subscriber_id} -> {self.channel_id}"


class Comment(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    video_id = models.UUIDField(db_index=True)
    owner = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='comments'
    )
    content = models.TextField()
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', 'id']
        indexes = [
            models.Index(fields=['video_id', '-created_at'], name='social_comm_video_i_5d6a0e_idx'),
        ]

    def __str__(self):
        return f"Comment by {self.owner_id} on {self.video_id}"


class Tweet(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='tweets'
    )
    content = models.TextField()
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', 'id']

    def __str__(self):
        return f"{self.content[:50]} by {self.owner_id}"


class Playlist(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='playlists'
    )
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', 'id']

    def __str__(self):
        return self.name


class PlaylistEntry(models.Model):
    """
    Membership edge. position keeps insertion order, the unique constraint
    keeps a video from appearing twice in one playlist.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    playlist = models.ForeignKey(
        Playlist,
        on_delete=models.CASCADE,
        related_name='entries'
    )
    video_id = models.UUIDField(db_index=True)
    position = models.PositiveIntegerField(default=0)
    added_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['position', 'id']
        constraints = [
            models.UniqueConstraint(
                fields=['playlist', 'video_id'],
                name='unique_video_per_playlist'
            )
        ]

    def __str__(self):
        return f"{self.video_id} in {self.playlist_id}"


class WatchHistoryEntry(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='watch_history'
    )
    video_id = models.UUIDField(db_index=True)
    watched_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-watched_at', 'id']
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'video_id'],
                name='unique_history_entry_per_video'
            )
        ]
        indexes = [
            models.Index(fields=['user', '-watched_at'], name='social_watc_user_id_9a3e5b_idx'),
        ]

    def __str__(self):
        return f"{self.user_id} watched {self.video_id}"

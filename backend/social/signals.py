"""
Reference sweeps.

Likes, comments, playlist entries and watch-history entries reference their
target by a bare UUID, so the database never cascades them. These receivers
do the cleanup explicitly when a target is deleted.

Signals fire for Model.delete(), QuerySet.delete() and for rows removed by an
FK cascade (e.g. a deleted User takes its videos with it, and each of those
videos is swept here). They do NOT fire for raw SQL deletes; anything left
behind that way is still ignored at read time because the resolver only
counts edges against live roots.
"""

import logging

from django.db.models.signals import post_delete
from django.dispatch import receiver

from .models import Comment, Like, PlaylistEntry, Tweet, Video, WatchHistoryEntry

logger = logging.getLogger(__name__)


@receiver(post_delete, sender=Video)
def sweep_video_references(sender, instance, **kwargs):
    """
    Remove everything pointing at a deleted video.

    Comments are deleted through the queryset so that their own post_delete
    sweeps the likes on each comment.
    """
    likes, _ = Like.objects.filter(target_kind=Like.TargetKind.VIDEO, target_id=instance.id).delete()
    comments, _ = Comment.objects.filter(video_id=instance.id).delete()
    entries, _ = PlaylistEntry.objects.filter(video_id=instance.id).delete()
    history, _ = WatchHistoryEntry.objects.filter(video_id=instance.id).delete()
    logger.info(
        f"Swept video {instance.id}: {likes} likes, {comments} comment rows, "
        f"{entries} playlist entries, {history} history entries"
    )


@receiver(post_delete, sender=Comment)
def sweep_comment_likes(sender, instance, **kwargs):
    Like.objects.filter(target_kind=Like.TargetKind.COMMENT, target_id=instance.id).delete()


@receiver(post_delete, sender=Tweet)
def sweep_tweet_likes(sender, instance, **kwargs):
    Like.objects.filter(target_kind=Like.TargetKind.TWEET, target_id=instance.id).delete()

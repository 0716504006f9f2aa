"""
Builders shared by the test modules.

Timestamps are always explicit (minutes before a fixed reference time) so
ordering assertions never depend on how fast the test runs.
"""

from datetime import timedelta

from django.utils import timezone

from ..models import Comment, Like, Playlist, PlaylistEntry, Subscription, Tweet, User, Video

NOW = timezone.now()


def ago(minutes):
    return NOW - timedelta(minutes=minutes)


def make_user(username, **extra):
    return User.objects.create_user(
        username=username,
        email=f'{username}@test.com',
        password='pass',
        **extra
    )


def make_video(owner, title='Video', published=True, minutes_ago=0, **extra):
    extra.setdefault('description', f'About {title}')
    extra.setdefault('created_at', ago(minutes_ago))
    return Video.objects.create(
        owner=owner,
        title=title,
        video_url='https://cdn.test/video.mp4',
        thumbnail_url=f'https://cdn.test/{title.replace(" ", "-")}.jpg',
        is_published=published,
        **extra
    )


def like(user, target, kind=Like.TargetKind.VIDEO):
    target_id = getattr(target, 'id', target)
    return Like.objects.create(liked_by=user, target_kind=kind, target_id=target_id)


def subscribe(subscriber, channel, minutes_ago=0):
    return Subscription.objects.create(subscriber=subscriber, channel=channel, created_at=ago(minutes_ago))


def comment(user, video, content='Nice', minutes_ago=0):
    return Comment.objects.create(owner=user, video_id=video.id, content=content, created_at=ago(minutes_ago))


def tweet(user, content='Hello', minutes_ago=0):
    return Tweet.objects.create(owner=user, content=content, created_at=ago(minutes_ago))


def playlist(owner, name='Favourites', videos=()):
    collection = Playlist.objects.create(owner=owner, name=name)
    for position, video in enumerate(videos):
        PlaylistEntry.objects.create(playlist=collection, video_id=getattr(video, 'id', video), position=position)
    return collection

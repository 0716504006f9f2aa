"""
Management command to seed the database with sample data.

Usage: python manage.py seed_data [--users N] [--videos N] [--comments N] [--clear]
"""

import random
from datetime import timedelta
from django.core.management.base import BaseCommand
from django.utils import timezone

from social.models import Comment, Like, Playlist, Subscription, Tweet, User, Video
from social.services import (
    add_to_playlist,
    create_playlist,
    record_view,
    toggle_like,
    toggle_subscription,
)

TITLES = [
    "Building a REST API from scratch",
    "Morning routine for productive days",
    "Street food tour",
    "Beginner guitar lesson",
    "Home workout, no equipment",
    "Understanding database indexes",
    "Weekend hiking vlog",
    "How I edit my videos",
    "Cooking pasta like a pro",
    "Reviewing my old code",
]

COMMENT_TEXTS = [
    "Great video!",
    "This helped me a lot, thanks.",
    "Can you do a follow-up on this?",
    "The audio is a bit low around the middle.",
    "Subscribed!",
    "I tried this and it worked.",
    "What camera do you use?",
]

TWEET_TEXTS = [
    "New video is up!",
    "Working on something big this week.",
    "Thanks for 100 subscribers!",
    "What should I make next?",
]


class Command(BaseCommand):
    help = 'Seed the database with sample data for testing'

    def add_arguments(self, parser):
        parser.add_argument(
            '--users',
            type=int,
            default=10,
            help='Number of users to create'
        )
        parser.add_argument(
            '--videos',
            type=int,
            default=30,
            help='Number of videos to create'
        )
        parser.add_argument(
            '--comments',
            type=int,
            default=100,
            help='Number of comments to create'
        )
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing data before seeding'
        )

    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write('Clearing existing data...')
            Like.objects.all().delete()
            Subscription.objects.all().delete()
            Playlist.objects.all().delete()
            Tweet.objects.all().delete()
            Video.objects.all().delete()
            User.objects.filter(is_superuser=False).delete()

        self.stdout.write('Creating users...')
        users = self._create_users(options['users'])

        self.stdout.write('Creating videos...')
        videos = self._create_videos(users, options['videos'])
        published = [video for video in videos if video.is_published]

        self.stdout.write('Creating comments and tweets...')
        comments = self._create_comments(users, published, options['comments'])
        tweets = self._create_tweets(users)

        self.stdout.write('Creating likes, subscriptions and playlists...')
        self._create_likes(users, published, comments)
        self._create_subscriptions(users)
        self._create_playlists(users, published)
        self._create_history(users, published)

        self.stdout.write(self.style.SUCCESS(
            f'Successfully created:\n'
            f'  - {len(users)} users\n'
            f'  - {len(videos)} videos ({len(published)} published)\n'
            f'  - {len(comments)} comments\n'
            f'  - {len(tweets)} tweets\n'
            f'  - Likes, subscriptions, playlists and watch history'
        ))

    def _create_users(self, count):
        users = []
        for i in range(count):
            username = f'user{i+1}'
            user = User.objects.filter(username=username).first()
            if user is None:
                user = User.objects.create_user(
                    username=username,
                    email=f'{username}@example.com',
                    password='password123',
                    full_name=f'User {i+1}',
                    avatar_url=f'https://picsum.photos/seed/{username}/128',
                )
            users.append(user)
        return users

    def _create_videos(self, users, count):
        videos = []
        for i in range(count):
            video = Video.objects.create(
                owner=random.choice(users),
                title=f"{random.choice(TITLES)} #{i+1}",
                description=f"Episode {i+1}. Like and subscribe!",
                video_url=f'https://cdn.example.com/videos/{i+1}.mp4',
                thumbnail_url=f'https://cdn.example.com/thumbnails/{i+1}.jpg',
                duration=round(random.uniform(30, 1200), 1),
                views=random.randint(0, 5000),
                # 80% published
                is_published=random.random() < 0.8,
                created_at=timezone.now() - timedelta(hours=random.randint(0, 240))
            )
            videos.append(video)
        return videos

    def _create_comments(self, users, videos, count):
        if not videos:
            return []
        comments = []
        for _ in range(count):
            comment = Comment.objects.create(
                video_id=random.choice(videos).id,
                owner=random.choice(users),
                content=random.choice(COMMENT_TEXTS),
                created_at=timezone.now() - timedelta(hours=random.randint(0, 48))
            )
            comments.append(comment)
        return comments

    def _create_tweets(self, users):
        return [
            Tweet.objects.create(owner=user, content=random.choice(TWEET_TEXTS))
            for user in users
        ]

    def _create_likes(self, users, videos, comments):
        # Each user likes about half of the published videos
        for user in users:
            for video in random.sample(videos, k=len(videos) // 2):
                toggle_like(user, Like.TargetKind.VIDEO, video.id)

        # A few likes per comment on 30% of the comments
        for comment in comments:
            if random.random() < 0.3:
                for liker in random.sample(users, k=min(3, len(users))):
                    toggle_like(liker, Like.TargetKind.COMMENT, comment.id)

    def _create_subscriptions(self, users):
        for user in users:
            others = [other for other in users if other.id != user.id]
            for channel in random.sample(others, k=min(3, len(others))):
                toggle_subscription(user, channel.id)

    def _create_playlists(self, users, videos):
        if not videos:
            return
        for user in users:
            playlist = create_playlist(user, f"{user.username}'s favourites", 'Best of the week')
            for video in random.sample(videos, k=min(5, len(videos))):
                add_to_playlist(user, playlist.id, video.id)

    def _create_history(self, users, videos):
        for user in users:
            for video in random.sample(videos, k=min(5, len(videos))):
                record_view(user, video.id)

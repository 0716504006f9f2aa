"""
Social App URL Configuration

Ids are captured as plain strings so a malformed id reaches the engine and
comes back as a 400, not as a resolver 404.
"""
from django.urls import path
from .views import (
    ChannelStatsView,
    ChannelSubscribersView,
    ChannelVideosView,
    CommentDetailView,
    LikedVideosView,
    LikeToggleView,
    PlaylistCreateView,
    PlaylistDetailView,
    PlaylistVideoView,
    SubscribedChannelsView,
    TweetCreateView,
    TweetDetailView,
    UserPlaylistsView,
    UserTweetsView,
    VideoCommentsView,
    VideoDetailView,
    VideoListView,
    VideoPublishView,
    WatchHistoryView,
)

urlpatterns = [
    # Videos
    path('videos/', VideoListView.as_view(), name='video-list'),
    path('videos/<str:video_id>/', VideoDetailView.as_view(), name='video-detail'),
    path('videos/<str:video_id>/publish/', VideoPublishView.as_view(), name='video-publish'),

    # Comments
    path('comments/c/<str:comment_id>/', CommentDetailView.as_view(), name='comment-detail'),
    path('comments/<str:video_id>/', VideoCommentsView.as_view(), name='video-comments'),

    # Dashboard
    path('dashboard/stats/<str:channel_id>/', ChannelStatsView.as_view(), name='channel-stats'),
    path('dashboard/videos/<str:channel_id>/', ChannelVideosView.as_view(), name='channel-videos'),

    # Playlists
    path('playlists/', PlaylistCreateView.as_view(), name='playlist-create'),
    path('playlists/user/<str:user_id>/', UserPlaylistsView.as_view(), name='user-playlists'),
    path('playlists/<str:playlist_id>/', PlaylistDetailView.as_view(), name='playlist-detail'),
    path(
        'playlists/<str:playlist_id>/add/<str:video_id>/',
        PlaylistVideoView.as_view(membership_action='add'),
        name='playlist-add-video',
    ),
    path(
        'playlists/<str:playlist_id>/remove/<str:video_id>/',
        PlaylistVideoView.as_view(membership_action='remove'),
        name='playlist-remove-video',
    ),

    # Subscriptions
    path('subscriptions/c/<str:channel_id>/', ChannelSubscribersView.as_view(), name='channel-subscribers'),
    path('subscriptions/u/<str:subscriber_id>/', SubscribedChannelsView.as_view(), name='subscribed-channels'),

    # Tweets
    path('tweets/', TweetCreateView.as_view(), name='tweet-create'),
    path('tweets/user/<str:user_id>/', UserTweetsView.as_view(), name='user-tweets'),
    path('tweets/<str:tweet_id>/', TweetDetailView.as_view(), name='tweet-detail'),

    # Likes
    path('likes/videos/', LikedVideosView.as_view(), name='liked-videos'),
    path('likes/toggle/<str:kind>/<str:target_id>/', LikeToggleView.as_view(), name='like-toggle'),

    # Users
    path('users/history/', WatchHistoryView.as_view(), name='watch-history'),
]

"""
DRF Views
=========

API endpoints for VidStream.

READS:
------
Every read endpoint turns its URL and query parameters into a QueryIntent
and runs it through the aggregation engine. List endpoints return the
paginate-shaped dict as-is:

    {items, total_count, total_pages, current_page, has_next_page, next_page, empty}

Single-record endpoints (video detail, playlist detail, channel stats)
return the one composed view.

Query parameter names follow the public API: query, userId, sortBy,
sortType, page, limit.

WRITES:
-------
Validated by serializers, executed by services.py. Errors raised by either
are rendered by exceptions.custom_exception_handler.

AUTHENTICATION NOTE:
--------------------
Session authentication, configured in settings. Reads are open to
anonymous viewers; viewer-relative fields are then simply False.
"""

from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from . import services
from .pipeline import (
    CHANNEL_STATS,
    CHANNEL_VIDEOS,
    CHANNELS_SUBSCRIBED_BY,
    COMMENTS_FOR_VIDEO,
    FEED,
    LIKED_VIDEOS,
    PLAYLIST_DETAIL,
    SUBSCRIBERS_OF_CHANNEL,
    TWEETS_OF_USER,
    USER_PLAYLISTS,
    VIDEO_DETAIL,
    WATCH_HISTORY,
    QueryIntent,
    execute,
)
from .serializers import (
    ContentSerializer,
    PlaylistSerializer,
    VideoCreateSerializer,
    VideoUpdateSerializer,
)


def viewer_of(request):
    return request.user.id if request.user.is_authenticated else None


def run_list_query(request, intent: str, filters=None) -> Response:
    params = request.query_params
    query = QueryIntent(
        intent=intent,
        filters=filters or {},
        sort={'field': params.get('sortBy'), 'direction': params.get('sortType')},
        viewer_id=viewer_of(request),
        page=params.get('page'),
        page_size=params.get('limit'),
    )
    return Response(execute(query).to_dict())


def run_single_query(request, intent: str, filters) -> dict:
    query = QueryIntent(intent=intent, filters=filters, viewer_id=viewer_of(request))
    return execute(query).items[0]


def toggle_response(result):
    return Response({'active': result.active, 'action': result.action})


# ============================================================================
# VIDEOS
# ============================================================================

class VideoListView(APIView):
    """
    GET  /api/videos/?query=&userId=&sortBy=&sortType=&page=&limit=
         Published videos. `query` searches title and description.
    POST /api/videos/
         Register a video (authenticated).
    """
    permission_classes = [permissions.IsAuthenticatedOrReadOnly]

    def get(self, request):
        params = request.query_params
        return run_list_query(request, FEED, {
            'text': params.get('query'),
            'owner_id': params.get('userId'),
        })

    def post(self, request):
        serializer = VideoCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        video = services.create_video(request.user, serializer.validated_data)
        return Response(
            run_single_query(request, VIDEO_DETAIL, {'target_id': video.id}),
            status=status.HTTP_201_CREATED,
        )


class VideoDetailView(APIView):
    """
    GET    /api/videos/<video_id>/   detail view; counts a view afterwards
    PATCH  /api/videos/<video_id>/   title, description, thumbnail_url
    DELETE /api/videos/<video_id>/
    """
    permission_classes = [permissions.IsAuthenticatedOrReadOnly]

    def get(self, request, video_id):
        view = run_single_query(request, VIDEO_DETAIL, {'target_id': video_id})
        services.record_view(request.user, video_id)
        return Response(view)

    def patch(self, request, video_id):
        serializer = VideoUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        services.update_video(request.user, video_id, serializer.validated_data)
        return Response(run_single_query(request, VIDEO_DETAIL, {'target_id': video_id}))

    def delete(self, request, video_id):
        services.delete_video(request.user, video_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class VideoPublishView(APIView):
    """PATCH /api/videos/<video_id>/publish/ flips is_published."""
    permission_classes = [permissions.IsAuthenticated]

    def patch(self, request, video_id):
        video = services.toggle_publish(request.user, video_id)
        return Response({'id': video.id, 'is_published': video.is_published})


# ============================================================================
# COMMENTS
# ============================================================================

class VideoCommentsView(APIView):
    """
    GET  /api/comments/<video_id>/?page=&limit=&sortBy=&sortType=
    POST /api/comments/<video_id>/   {"content": "..."}
    """
    permission_classes = [permissions.IsAuthenticatedOrReadOnly]

    def get(self, request, video_id):
        return run_list_query(request, COMMENTS_FOR_VIDEO, {'target_id': video_id})

    def post(self, request, video_id):
        serializer = ContentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        comment = services.add_comment(request.user, video_id, serializer.validated_data['content'])
        return Response(
            {'id': comment.id, 'video_id': comment.video_id, 'content': comment.content},
            status=status.HTTP_201_CREATED,
        )


class CommentDetailView(APIView):
    """PATCH / DELETE /api/comments/c/<comment_id>/"""
    permission_classes = [permissions.IsAuthenticated]

    def patch(self, request, comment_id):
        serializer = ContentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        comment = services.update_comment(request.user, comment_id, serializer.validated_data['content'])
        return Response({'id': comment.id, 'video_id': comment.video_id, 'content': comment.content})

    def delete(self, request, comment_id):
        services.delete_comment(request.user, comment_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


# ============================================================================
# DASHBOARD
# ============================================================================

class ChannelStatsView(APIView):
    """GET /api/dashboard/stats/<channel_id>/"""
    permission_classes = [permissions.AllowAny]

    def get(self, request, channel_id):
        return Response(run_single_query(request, CHANNEL_STATS, {'owner_id': channel_id}))


class ChannelVideosView(APIView):
    """
    GET /api/dashboard/videos/<channel_id>/?publishedOnly=&query=

    The channel owner also sees unpublished videos unless publishedOnly=true.
    """
    permission_classes = [permissions.AllowAny]

    def get(self, request, channel_id):
        params = request.query_params
        return run_list_query(request, CHANNEL_VIDEOS, {
            'owner_id': channel_id,
            'published_only': params.get('publishedOnly'),
            'text': params.get('query'),
        })


# ============================================================================
# PLAYLISTS
# ============================================================================

class PlaylistCreateView(APIView):
    """POST /api/playlists/   {"name": "...", "description": "..."}"""
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = PlaylistSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        playlist = services.create_playlist(request.user, **serializer.validated_data)
        return Response(
            run_single_query(request, PLAYLIST_DETAIL, {'target_id': playlist.id}),
            status=status.HTTP_201_CREATED,
        )


class PlaylistDetailView(APIView):
    """GET / PATCH / DELETE /api/playlists/<playlist_id>/"""
    permission_classes = [permissions.IsAuthenticatedOrReadOnly]

    def get(self, request, playlist_id):
        return Response(run_single_query(request, PLAYLIST_DETAIL, {'target_id': playlist_id}))

    def patch(self, request, playlist_id):
        serializer = PlaylistSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        services.update_playlist(request.user, playlist_id, serializer.validated_data)
        return Response(run_single_query(request, PLAYLIST_DETAIL, {'target_id': playlist_id}))

    def delete(self, request, playlist_id):
        services.delete_playlist(request.user, playlist_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class PlaylistVideoView(APIView):
    """
    PATCH /api/playlists/<playlist_id>/add/<video_id>/
    PATCH /api/playlists/<playlist_id>/remove/<video_id>/
    """
    permission_classes = [permissions.IsAuthenticated]
    membership_action = None

    def patch(self, request, playlist_id, video_id):
        if self.membership_action == 'add':
            services.add_to_playlist(request.user, playlist_id, video_id)
        else:
            services.remove_from_playlist(request.user, playlist_id, video_id)
        return Response(run_single_query(request, PLAYLIST_DETAIL, {'target_id': playlist_id}))


class UserPlaylistsView(APIView):
    """GET /api/playlists/user/<user_id>/"""
    permission_classes = [permissions.AllowAny]

    def get(self, request, user_id):
        return run_list_query(request, USER_PLAYLISTS, {'owner_id': user_id})


# ============================================================================
# SUBSCRIPTIONS
# ============================================================================

class ChannelSubscribersView(APIView):
    """
    GET  /api/subscriptions/c/<channel_id>/   subscribers of the channel
    POST /api/subscriptions/c/<channel_id>/   subscribe / unsubscribe
    """
    permission_classes = [permissions.IsAuthenticatedOrReadOnly]

    def get(self, request, channel_id):
        return run_list_query(request, SUBSCRIBERS_OF_CHANNEL, {'target_id': channel_id})

    def post(self, request, channel_id):
        return toggle_response(services.toggle_subscription(request.user, channel_id))


class SubscribedChannelsView(APIView):
    """GET /api/subscriptions/u/<subscriber_id>/"""
    permission_classes = [permissions.AllowAny]

    def get(self, request, subscriber_id):
        return run_list_query(request, CHANNELS_SUBSCRIBED_BY, {'owner_id': subscriber_id})


# ============================================================================
# TWEETS
# ============================================================================

class TweetCreateView(APIView):
    """POST /api/tweets/   {"content": "..."}"""
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = ContentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        tweet = services.create_tweet(request.user, serializer.validated_data['content'])
        return Response({'id': tweet.id, 'content': tweet.content}, status=status.HTTP_201_CREATED)


class TweetDetailView(APIView):
    """PATCH / DELETE /api/tweets/<tweet_id>/"""
    permission_classes = [permissions.IsAuthenticated]

    def patch(self, request, tweet_id):
        serializer = ContentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        tweet = services.update_tweet(request.user, tweet_id, serializer.validated_data['content'])
        return Response({'id': tweet.id, 'content': tweet.content})

    def delete(self, request, tweet_id):
        services.delete_tweet(request.user, tweet_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class UserTweetsView(APIView):
    """GET /api/tweets/user/<user_id>/"""
    permission_classes = [permissions.AllowAny]

    def get(self, request, user_id):
        return run_list_query(request, TWEETS_OF_USER, {'owner_id': user_id})


# ============================================================================
# LIKES & HISTORY
# ============================================================================

class LikeToggleView(APIView):
    """
    POST /api/likes/toggle/<kind>/<target_id>/

    kind is one of video, comment, tweet. Returns
    {"active": true|false, "action": "created"|"removed"|"already_exists"}.
    """
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, kind, target_id):
        return toggle_response(services.toggle_like(request.user, kind, target_id))


class LikedVideosView(APIView):
    """GET /api/likes/videos/   videos the signed-in viewer liked, most recent like first"""
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        return run_list_query(request, LIKED_VIDEOS)


class WatchHistoryView(APIView):
    """GET /api/users/history/   the signed-in viewer's watch history, most recent first"""
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        return run_list_query(request, WATCH_HISTORY)

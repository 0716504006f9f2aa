"""
DRF Serializers
===============

Serializers here only validate incoming write payloads. Read responses are
built by the aggregation engine (pipeline.py) as plain dicts and returned
as-is, so there are no output serializers for videos, comments, etc.

DESIGN DECISIONS:
-----------------
1. Owner is never taken from the payload; views pass request.user.
2. Text fields are stripped; blank content is rejected.
3. Update serializers are used with partial=True.
"""

from rest_framework import serializers

from .models import Playlist, Video


def _non_blank(value, message):
    if not value or not value.strip():
        raise serializers.ValidationError(message)
    return value.strip()


class VideoCreateSerializer(serializers.ModelSerializer):
    """
    Payload for registering a video. Media are referenced by URL;
    upload and transcoding happen outside this service.
    """

    class Meta:
        model = Video
        fields = ['title', 'description', 'video_url', 'thumbnail_url', 'duration', 'is_published']
        extra_kwargs = {'is_published': {'required': False}}

    def validate_title(self, value):
        return _non_blank(value, "Title is required.")

    def validate_description(self, value):
        return _non_blank(value, "Description is required.")

    def validate_duration(self, value):
        if value < 0:
            raise serializers.ValidationError("Duration cannot be negative.")
        return value


class VideoUpdateSerializer(serializers.ModelSerializer):

    class Meta:
        model = Video
        fields = ['title', 'description', 'thumbnail_url']

    def validate_title(self, value):
        return _non_blank(value, "Title cannot be empty.")


class ContentSerializer(serializers.Serializer):
    """Comments and tweets: a single non-blank text body."""
    content = serializers.CharField(trim_whitespace=False, allow_blank=True)

    def validate_content(self, value):
        return _non_blank(value, "Content cannot be empty.")


class PlaylistSerializer(serializers.ModelSerializer):

    class Meta:
        model = Playlist
        fields = ['name', 'description']
        extra_kwargs = {'description': {'required': False}}

    def validate_name(self, value):
        return _non_blank(value, "Playlist name is required.")

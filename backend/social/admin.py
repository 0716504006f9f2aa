"""
Django Admin Configuration for Social Models

Edges (likes, subscriptions, playlist entries, watch history) are read-only
here: they are created and removed through the toggle services only.
"""
from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import (
    Comment,
    Like,
    Playlist,
    PlaylistEntry,
    Subscription,
    Tweet,
    User,
    Video,
    WatchHistoryEntry,
)


class ReadOnlyEdgeAdmin(admin.ModelAdmin):

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['username', 'email', 'full_name', 'is_staff', 'date_joined']
    search_fields = ['username', 'email', 'full_name']
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Channel', {'fields': ('full_name', 'avatar_url', 'cover_image_url')}),
    )


@admin.register(Video)
class VideoAdmin(admin.ModelAdmin):
    list_display = ['title', 'owner', 'views', 'is_published', 'created_at']
    list_filter = ['is_published', 'created_at']
    search_fields = ['title', 'description', 'owner__username']
    readonly_fields = ['views', 'created_at', 'updated_at']


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = ['id', 'video_id', 'owner', 'created_at']
    list_filter = ['created_at']
    search_fields = ['content', 'owner__username']
    readonly_fields = ['video_id', 'created_at', 'updated_at']


@admin.register(Tweet)
class TweetAdmin(admin.ModelAdmin):
    list_display = ['id', 'owner', 'created_at']
    search_fields = ['content', 'owner__username']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(Playlist)
class PlaylistAdmin(admin.ModelAdmin):
    list_display = ['name', 'owner', 'created_at', 'updated_at']
    search_fields = ['name', 'owner__username']


@admin.register(Like)
class LikeAdmin(ReadOnlyEdgeAdmin):
    list_display = ['liked_by', 'target_kind', 'target_id', 'created_at']
    list_filter = ['target_kind', 'created_at']
    search_fields = ['liked_by__username']


@admin.register(Subscription)
class SubscriptionAdmin(ReadOnlyEdgeAdmin):
    list_display = ['subscriber', 'channel', 'created_at']
    search_fields = ['subscriber__username', 'channel__username']


@admin.register(PlaylistEntry)
class PlaylistEntryAdmin(ReadOnlyEdgeAdmin):
    list_display = ['playlist', 'video_id', 'position', 'added_at']


@admin.register(WatchHistoryEntry)
class WatchHistoryEntryAdmin(ReadOnlyEdgeAdmin):
    list_display = ['user', 'video_id', 'watched_at']
    search_fields = ['user__username']

"""
VidStream URL Configuration
"""
from django.contrib import admin
from django.urls import path, include
from django.http import JsonResponse


def api_root(request):
    """Root endpoint with API information."""
    return JsonResponse({
        'message': 'VidStream API Server',
        'version': '1.0',
        'endpoints': {
            'videos': '/api/videos/',
            'comments': '/api/comments/<video_id>/',
            'dashboard': '/api/dashboard/stats/<channel_id>/',
            'playlists': '/api/playlists/',
            'subscriptions': '/api/subscriptions/c/<channel_id>/',
            'tweets': '/api/tweets/',
            'likes': '/api/likes/toggle/<kind>/<target_id>/',
            'history': '/api/users/history/',
        },
        'admin': '/admin/',
    })


urlpatterns = [
    path('', api_root, name='api-root'),
    path('admin/', admin.site.urls),
    path('api/', include('social.urls')),
]

"""
WSGI config for vidstream project.
"""
import os
from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'vidstream.settings')
application = get_wsgi_application()

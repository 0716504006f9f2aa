"""
Engine settings, read from settings.SOCIAL_ENGINE at call time so that
override_settings works in tests.
"""
from django.conf import settings

DEFAULTS = {
    'DEFAULT_PAGE_SIZE': 10,
    'MAX_PAGE_SIZE': 100,
    'WATCH_HISTORY_LIMIT': 100,
}


def engine_setting(name: str):
    if name not in DEFAULTS:
        raise KeyError(f"Unknown engine setting: {name}")
    overrides = getattr(settings, 'SOCIAL_ENGINE', {}) or {}
    return overrides.get(name, DEFAULTS[name])

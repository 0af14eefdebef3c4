"""
================================================================================
CONNECTUP - CUSTOM MIDDLEWARE
================================================================================

@file        middleware.py
@description Request timing, bearer sessions, API errors, timezone, presence

MODULE PURPOSE
================================================================================
1. APITimeMiddleware
   - Logs method, path, status and duration of every /api/ request

2. SessionTokenMiddleware
   - Resolves "Authorization: Bearer <token>" to a UserSession
   - Sets request.user and request.app_session
   - Caches the resolved user id for SESSION_TOKEN_CACHE_SECONDS

3. ApiErrorMiddleware
   - Converts ClientError, Http404 and unexpected exceptions raised by
     /api/ views into the JSON error body

4. TimezoneMiddleware
   - Activates the user's pytz timezone, UTC otherwise

5. UpdateLastSeenMiddleware
   - Writes last_seen at most once every 30 seconds per user

CACHING STRATEGY
================================================================================
Session context:
    Key: "user_context:<token>"
    Value: {"user_id": <id>, "session_id": <id>}
    TTL: SESSION_TOKEN_CACHE_SECONDS (5 minutes)
    Cleared when a session ends or a user is deleted.

Presence:
    Key: "last_seen_update_<user_id>"  write throttle, 30 seconds
    Key: "user_<user_id>_last_seen"    read cache, 5 minutes

================================================================================
"""

import logging
import time
from datetime import timedelta

import pytz
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.http import Http404
from django.utils import timezone

from .errors import ClientError, respond_client_error, respond_server_error
from .models import UserSession


logger = logging.getLogger(__name__)

USER_CONTEXT_CACHE_PREFIX = "user_context:"


def user_context_cache_key(token):
    return f"{USER_CONTEXT_CACHE_PREFIX}{token}"


def clear_user_context(token):
    if token:
        cache.delete(user_context_cache_key(token))


def get_bearer_token(request):
    """Return the session token from the Authorization header, if any."""
    header = request.META.get('HTTP_AUTHORIZATION', '').strip()
    if not header:
        return ''
    if header.lower().startswith('bearer '):
        return header[7:].strip()
    return header


# ============================================================================
# REQUEST TIMING
# ============================================================================

class APITimeMiddleware:
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if not request.path.startswith('/api/'):
            return self.get_response(request)

        start = time.monotonic()
        response = self.get_response(request)
        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.info(f"{request.method} {request.path} {response.status_code} {elapsed_ms}ms")
        return response


# ============================================================================
# BEARER SESSION AUTHENTICATION
# ============================================================================

class SessionTokenMiddleware:
    """
    Authenticate API calls with a session token.

    Runs after Django's AuthenticationMiddleware, so admin-site cookie
    logins keep working. A valid bearer token replaces request.user with
    the session's owner.

    Flow:
        1. Read the token from the Authorization header
        2. Look up "user_context:<token>" in the cache
        3. On a miss, load the active UserSession and cache its ids
        4. Attach request.app_session and request.user
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.app_session = None
        token = get_bearer_token(request)
        if token:
            session = self._resolve(token)
            if session is not None:
                request.app_session = session
                request.user = session.user
        return self.get_response(request)

    def _resolve(self, token):
        key = user_context_cache_key(token)
        context = cache.get(key)

        if context:
            try:
                session = UserSession.objects.select_related('user').get(
                    id=context['session_id'], ended_at__isnull=True
                )
            except UserSession.DoesNotExist:
                cache.delete(key)
                return None
            return session

        session = (
            UserSession.objects.select_related('user')
            .filter(token=token, ended_at__isnull=True)
            .first()
        )
        if session is None:
            return None

        cache.set(
            key,
            {"user_id": session.user_id, "session_id": session.id},
            settings.SESSION_TOKEN_CACHE_SECONDS,
        )
        return session


# ============================================================================
# API ERROR CONVERSION
# ============================================================================

class ApiErrorMiddleware:
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        return self.get_response(request)

    def process_exception(self, request, exception):
        if not request.path.startswith('/api/'):
            return None

        if isinstance(exception, ClientError):
            return respond_client_error(
                request, exception.dev_info, exception.status, exception.message_to_user
            )
        if isinstance(exception, Http404):
            return respond_client_error(request, exception, 404, "not found")
        return respond_server_error(request, exception, "something went wrong")


# ============================================================================
# TIMEZONE MIDDLEWARE
# ============================================================================

class TimezoneMiddleware:
    """
    Activate user-specific timezone for datetime rendering.

    Falls back to UTC for anonymous users or invalid timezone strings.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if request.user.is_authenticated:
            try:
                timezone.activate(pytz.timezone(request.user.timezone))
            except (pytz.UnknownTimeZoneError, AttributeError):
                timezone.activate(pytz.UTC)
        else:
            timezone.activate(pytz.UTC)

        return self.get_response(request)


# ============================================================================
# LAST SEEN / PRESENCE TRACKING MIDDLEWARE
# ============================================================================

class UpdateLastSeenMiddleware:
    """
    Update the user's last_seen timestamp, throttled through the cache.

    A user counts as online while last_seen is within ONLINE_WINDOW_MINUTES,
    so a 30 second write throttle keeps the indicator accurate without a
    database write per request.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if getattr(request, 'user', None) and request.user.is_authenticated:
            touch_last_seen(request.user)
        return self.get_response(request)


def touch_last_seen(user, force=False):
    now = timezone.now()
    cache_key = f"last_seen_update_{user.id}"
    last_update = cache.get(cache_key)

    if force or not last_update or (now - last_update) > timedelta(seconds=30):
        user.last_seen = now
        get_user_model().objects.filter(id=user.id).update(last_seen=now)
        cache.set(cache_key, now, 30)
        cache.set(f"user_{user.id}_last_seen", now, 300)
    return user.last_seen

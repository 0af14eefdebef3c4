"""
View decorators for the JSON API.

``api_view`` marks a view as a token authenticated endpoint: CSRF exempt and
restricted to the given HTTP methods. The ``*_required`` decorators answer
with the standard JSON error body when a check fails.
"""

import functools

from django.conf import settings
from django.shortcuts import get_object_or_404
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from .errors import respond_client_error
from .models import ChatGroup, ChatGroupMember, Group, GroupMember, MEMBER_JOINED


def api_view(*methods):
    def decorator(view):
        return csrf_exempt(require_http_methods(list(methods))(view))
    return decorator


def auth_required(view):
    @functools.wraps(view)
    def wrapper(request, *args, **kwargs):
        if getattr(request, 'app_session', None) is None:
            return respond_client_error(request, "no active session", 401, "Unauthorized")
        if request.user.is_suspended:
            return respond_client_error(request, "user suspended", 403, "Your account has been suspended")
        return view(request, *args, **kwargs)
    return wrapper


def admin_required(view):
    @functools.wraps(view)
    @auth_required
    def wrapper(request, *args, **kwargs):
        if not request.user.is_admin:
            return respond_client_error(request, "admin role required", 403, "Forbidden")
        return view(request, *args, **kwargs)
    return wrapper


def local_env_only(view):
    @functools.wraps(view)
    def wrapper(request, *args, **kwargs):
        if settings.BRANCH in ('dev', 'main'):
            return respond_client_error(request, "local only endpoint", 404, "not found")
        return view(request, *args, **kwargs)
    return wrapper


# ============================================================================
# MEMBERSHIP CHECKS
# ============================================================================
# Each of these runs after auth_required and attaches the loaded objects to
# the request so the view does not fetch them again.

def chat_group_member_required(view):
    @functools.wraps(view)
    def wrapper(request, chat_group_id, *args, **kwargs):
        chat_group = get_object_or_404(ChatGroup, id=chat_group_id)
        member = ChatGroupMember.objects.filter(chat_group=chat_group, user=request.user).first()
        if member is None:
            return respond_client_error(request, "not a member", 403, "You are not a member of this chat")
        request.chat_group = chat_group
        request.chat_member = member
        return view(request, chat_group_id, *args, **kwargs)
    return wrapper


def chat_group_admin_required(view):
    @functools.wraps(view)
    @chat_group_member_required
    def wrapper(request, chat_group_id, *args, **kwargs):
        if not request.chat_member.is_admin:
            return respond_client_error(request, "not an admin", 403, "Only admins can do this")
        return view(request, chat_group_id, *args, **kwargs)
    return wrapper


def group_member_required(view):
    @functools.wraps(view)
    def wrapper(request, group_id, *args, **kwargs):
        group = get_object_or_404(Group, id=group_id, is_deleted=False)
        member = GroupMember.objects.filter(group=group, user=request.user, status=MEMBER_JOINED).first()
        if member is None:
            return respond_client_error(request, "not a member", 403, "You are not a member of this group")
        if group.is_suspended:
            return respond_client_error(request, "group suspended", 403, "This group has been suspended")
        request.group = group
        request.group_member = member
        return view(request, group_id, *args, **kwargs)
    return wrapper


def group_admin_required(view):
    @functools.wraps(view)
    @group_member_required
    def wrapper(request, group_id, *args, **kwargs):
        if not request.group_member.is_group_admin:
            return respond_client_error(request, "not a group admin", 403, "Only group admins can do this")
        return view(request, group_id, *args, **kwargs)
    return wrapper

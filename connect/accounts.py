"""
================================================================================
CONNECTUP - ACCOUNT & SESSION SERVICES
================================================================================

@file        accounts.py
@description Session lifecycle and account deletion used by several views

SESSIONS
================================================================================
A UserSession token is the bearer credential. Mobile platforms (android,
ios) may hold only one active session per device id: a device already
running a session for another user is refused. Ending a session also drops
its cached user context.

ACCOUNT DELETION
================================================================================
Deleting a user (by themselves or by an admin):
    1. Hands every chat group they administer alone to another member
    2. Leaves every community group, handing ownership over
    3. Ends all sessions and clears their cached contexts
    4. Deletes the user row (cascades the rest)

================================================================================
"""

import logging

from django.db import transaction
from django.utils import timezone

from .errors import ClientError
from .memberships import leave_chat_group, leave_group
from .middleware import clear_user_context
from .models import ChatGroupMember, GroupMember, UserSession


logger = logging.getLogger(__name__)

MOBILE_PLATFORMS = ('android', 'ios')


def device_has_other_session(user, platform, device_id):
    if platform not in MOBILE_PLATFORMS or not device_id:
        return False
    return (
        UserSession.objects.filter(device_id=device_id, platform=platform, ended_at__isnull=True)
        .exclude(user=user)
        .exists()
    )


def start_session(user, platform='web', device_id=''):
    platform = (platform or 'web').lower()
    if device_has_other_session(user, platform, device_id):
        raise ClientError(400, "Another session is running on this device", "not valid")

    session = UserSession.objects.create(user=user, platform=platform, device_id=device_id or '')
    logger.info(f"start_session: user {user.id} on {platform}")
    return session


def end_session(session):
    session.ended_at = timezone.now()
    session.save(update_fields=['ended_at'])
    clear_user_context(session.token)


def end_all_sessions(user):
    sessions = list(UserSession.objects.filter(user=user, ended_at__isnull=True))
    for session in sessions:
        clear_user_context(session.token)
    UserSession.objects.filter(id__in=[s.id for s in sessions]).update(ended_at=timezone.now())
    return len(sessions)


def clear_cached_contexts(user):
    for token in UserSession.objects.filter(user=user, ended_at__isnull=True).values_list('token', flat=True):
        clear_user_context(token)


@transaction.atomic
def delete_account(user):
    for member in ChatGroupMember.objects.filter(user=user).select_related('chat_group'):
        leave_chat_group(member)

    for membership in GroupMember.objects.filter(user=user).select_related('group'):
        leave_group(membership)

    ended = end_all_sessions(user)
    user_id = user.id
    user.delete()
    logger.info(f"delete_account: user {user_id} deleted, {ended} session(s) ended")

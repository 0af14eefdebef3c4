"""
Notification fan-out.

``notify`` stores a Notification row and publishes it on the ``notifications``
messenger under ``user.<id>``. When the recipient wants push notifications
and has an active session with a device token, a push envelope is published
on the ``push`` messenger as well; the push transport itself subscribes to
that messenger outside this codebase.
"""

import logging

from .models import Notification, UserSettings
from .realtime import hub
from .serializers import serialize_notification


logger = logging.getLogger(__name__)

NOTIFICATIONS_MESSENGER = 'notifications'
PUSH_MESSENGER = 'push'


def user_topic(user_id):
    return f"user.{user_id}"


def _push_targets(user):
    sessions = user.app_sessions.filter(ended_at__isnull=True).exclude(fcm_token='', voip_token='')
    return [
        {"platform": s.platform, "fcmToken": s.fcm_token, "voipToken": s.voip_token}
        for s in sessions
    ]


def wants_push(user):
    prefs = UserSettings.objects.filter(user=user).first()
    return prefs is None or prefs.push_notifications


def send_push(user, payload, silent=False):
    """
    Publish a push payload for each of the user's devices.

    Returns the number of device targets published to.
    """
    targets = _push_targets(user)
    if not targets:
        return 0
    hub.publish(
        PUSH_MESSENGER,
        user_topic(user.id),
        payload,
        {"silent": silent, "targets": targets},
    )
    return len(targets)


def notify(user, type, title, body='', actor=None, data=None, push=True):
    if actor is not None and actor.id == user.id:
        return None

    notification = Notification.objects.create(
        user=user,
        actor=actor,
        type=type,
        title=title,
        body=body,
        data=data or {},
    )
    payload = serialize_notification(notification)
    hub.publish(
        NOTIFICATIONS_MESSENGER,
        user_topic(user.id),
        payload,
        {"type": type, "actorId": actor.id if actor else None},
    )

    if push and wants_push(user):
        send_push(user, payload)

    logger.info(f"notify: {type} for user {user.id}")
    return notification


def notify_many(users, type, title, body='', actor=None, data=None):
    return [n for n in (notify(u, type, title, body, actor, data) for u in users) if n]

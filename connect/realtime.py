"""
================================================================================
CONNECTUP - IN-PROCESS REALTIME HUB
================================================================================

@file        realtime.py
@description Named messengers that fan payloads out to topic subscribers

MODULE PURPOSE
================================================================================
Views publish events (new chat messages, notifications, push payloads) on a
named messenger:

    hub.messenger('chat').publish('chat_group.12', payload, {'senderId': 4})

Each publish wraps the payload in an Envelope and calls, synchronously and in
subscription order, every subscriber whose topic pattern matches. Patterns
use shell-style wildcards (``user.*``). A failing subscriber is logged and
the remaining subscribers still run.

Delivery is in-process only. A socket gateway or push sender subscribes to
the messengers it forwards; nothing is queued for absent subscribers.

MESSENGERS
================================================================================
chat            topic chat_group.<id>
notifications   topic user.<id>
push            topic user.<id>, headers carry the device tokens

================================================================================
"""

import fnmatch
import logging
import threading
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

from django.utils import timezone


logger = logging.getLogger(__name__)


@dataclass
class Envelope:
    messenger: str
    topic: str
    payload: Any
    headers: Dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    published_at: Any = field(default_factory=timezone.now)


@dataclass
class Subscription:
    pattern: str
    callback: Callable[[Envelope], Any]

    def matches(self, topic):
        return fnmatch.fnmatchcase(topic, self.pattern)


class Messenger:
    def __init__(self, name):
        self.name = name
        self._subscriptions: List[Subscription] = []
        self._lock = threading.Lock()

    def subscribe(self, pattern, callback):
        subscription = Subscription(pattern, callback)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription):
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def publish(self, topic, payload, headers=None):
        """
        Deliver ``payload`` to every matching subscriber.

        Returns:
            Envelope: the published envelope
        """
        envelope = Envelope(
            messenger=self.name,
            topic=topic,
            payload=payload,
            headers=dict(headers or {}),
        )
        with self._lock:
            subscribers = [s for s in self._subscriptions if s.matches(topic)]

        for subscription in subscribers:
            try:
                subscription.callback(envelope)
            except Exception:
                logger.exception(
                    f"realtime: subscriber {subscription.pattern!r} on {self.name} failed for {topic}"
                )

        logger.debug(f"realtime: {self.name} {topic} delivered to {len(subscribers)} subscriber(s)")
        return envelope


class Hub:
    def __init__(self):
        self._messengers: Dict[str, Messenger] = {}
        self._lock = threading.Lock()

    def messenger(self, name):
        with self._lock:
            if name not in self._messengers:
                self._messengers[name] = Messenger(name)
            return self._messengers[name]

    def publish(self, messenger, topic, payload, headers=None):
        return self.messenger(messenger).publish(topic, payload, headers)


hub = Hub()

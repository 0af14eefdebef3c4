from django.test import SimpleTestCase

from connect.realtime import Hub


class HubTests(SimpleTestCase):
    def setUp(self):
        self.hub = Hub()

    def test_messengers_are_named_singletons(self):
        self.assertIs(self.hub.messenger('chat'), self.hub.messenger('chat'))
        self.assertIsNot(self.hub.messenger('chat'), self.hub.messenger('push'))

    def test_publish_reaches_matching_subscribers_only(self):
        received = []
        chat = self.hub.messenger('chat')
        chat.subscribe('chat_group.1', lambda e: received.append(('exact', e.topic)))
        chat.subscribe('chat_group.*', lambda e: received.append(('wildcard', e.topic)))
        chat.subscribe('user.*', lambda e: received.append(('other', e.topic)))

        envelope = self.hub.publish('chat', 'chat_group.1', {'content': 'hi'}, {'senderId': 4})

        self.assertEqual(received, [('exact', 'chat_group.1'), ('wildcard', 'chat_group.1')])
        self.assertEqual(envelope.messenger, 'chat')
        self.assertEqual(envelope.headers, {'senderId': 4})
        self.assertEqual(envelope.payload, {'content': 'hi'})

    def test_failing_subscriber_does_not_stop_fan_out(self):
        received = []

        def broken(envelope):
            raise RuntimeError("socket closed")

        messenger = self.hub.messenger('notifications')
        messenger.subscribe('user.*', broken)
        messenger.subscribe('user.*', received.append)

        with self.assertLogs('connect.realtime', level='ERROR'):
            messenger.publish('user.9', {'title': 'hello'})
        self.assertEqual(len(received), 1)

    def test_unsubscribe(self):
        received = []
        messenger = self.hub.messenger('push')
        subscription = messenger.subscribe('user.1', received.append)
        messenger.unsubscribe(subscription)
        messenger.publish('user.1', {})
        self.assertEqual(received, [])

    def test_envelope_ids_are_unique(self):
        first = self.hub.publish('chat', 'chat_group.1', {})
        second = self.hub.publish('chat', 'chat_group.1', {})
        self.assertNotEqual(first.id, second.id)

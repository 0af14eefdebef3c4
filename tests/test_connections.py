from connect.models import Block, Connection, Notification
from connect.realtime import hub

from .base import ApiTestCase


class ConnectionRequestTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.ada = self.make_user('ada@example.com', 'Ada')
        self.bob = self.make_user('bob@example.com', 'Bob')

    def send(self, sender, receiver):
        return self.post('/api/user/connection/request/send', sender, {'userId': receiver.id})

    def test_request_accept_and_list(self):
        response = self.send(self.ada, self.bob)
        self.assertEqual(response.status_code, 201)
        connection_id = response.json()['id']

        inbound = self.get('/api/user/connection/request/inbound', self.bob).json()
        self.assertEqual(inbound['total'], 1)
        outbound = self.get('/api/user/connection/request/outbound', self.ada).json()
        self.assertEqual(outbound['total'], 1)

        response = self.put(f'/api/user/connection/request/{connection_id}/status', self.bob, {'status': 'accepted'})
        self.assertEqual(response.status_code, 200)

        connections = self.get('/api/user/connections/all', self.ada).json()
        self.assertEqual([u['id'] for u in connections['items']], [self.bob.id])
        self.assertEqual(self.get('/api/user/connections_count', self.bob).json()['connections'], 1)
        self.assertEqual(
            set(Notification.objects.values_list('type', flat=True)),
            {'connection_request', 'connection_accepted'},
        )

    def test_self_duplicate_and_blocked_requests(self):
        self.assertError(self.send(self.ada, self.ada), 400, "You cannot connect with yourself")
        self.send(self.ada, self.bob)
        self.assertError(self.send(self.ada, self.bob), 400, "A connection request is already pending")

        carl = self.make_user('carl@example.com')
        Block.objects.create(blocker=carl, blocked=self.ada)
        self.assertError(self.send(self.ada, carl), 400, "You cannot connect with this user")

    def test_malformed_user_id(self):
        for user_id in ('abc', 1.5, True, None, [self.bob.id]):
            response = self.post('/api/user/connection/request/send', self.ada, {'userId': user_id})
            self.assertError(response, 400, "invalid user id")
        self.assertError(self.post('/api/user/toggle_block', self.ada, {'userId': 'abc'}), 400, "invalid user id")
        self.assertFalse(Connection.objects.exists())
        self.assertFalse(Block.objects.exists())

    def test_only_receiver_can_answer(self):
        connection_id = self.send(self.ada, self.bob).json()['id']
        response = self.put(f'/api/user/connection/request/{connection_id}/status', self.ada, {'status': 'accepted'})
        self.assertError(response, 404)
        response = self.put(f'/api/user/connection/request/{connection_id}/status', self.bob, {'status': 'maybe'})
        self.assertError(response, 400, "invalid status")

    def test_remove_connection(self):
        Connection.objects.create(sender=self.ada, receiver=self.bob, status='accepted')
        self.assertEqual(self.delete(f'/api/user/connection/{self.bob.id}/remove', self.ada).status_code, 200)
        self.assertEqual(Connection.connected_user_ids(self.ada), set())
        self.assertError(self.delete(f'/api/user/connection/{self.bob.id}/remove', self.ada), 400)

    def test_notification_is_published(self):
        events = []
        subscription = hub.messenger('notifications').subscribe(f'user.{self.bob.id}', events.append)
        self.addCleanup(hub.messenger('notifications').unsubscribe, subscription)
        self.send(self.ada, self.bob)
        self.assertEqual(len(events), 1)
        self.assertEqual(events[0].headers['type'], 'connection_request')
        self.assertEqual(events[0].headers['actorId'], self.ada.id)


class BlockTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.ada = self.make_user('ada@example.com', 'Ada')
        self.bob = self.make_user('bob@example.com', 'Bob')

    def test_toggle_block_removes_connection(self):
        Connection.objects.create(sender=self.ada, receiver=self.bob, status='accepted')
        response = self.post('/api/user/toggle_block', self.ada, {'userId': self.bob.id})
        self.assertTrue(response.json()['isBlocked'])
        self.assertFalse(Connection.between(self.ada, self.bob).exists())
        self.assertError(self.get(f'/api/user/profile/{self.ada.id}', self.bob), 403)

        response = self.post('/api/user/toggle_block', self.ada, {'userId': self.bob.id})
        self.assertFalse(response.json()['isBlocked'])

    def test_replace_block_list(self):
        carl = self.make_user('carl@example.com', 'Carl')
        Block.objects.create(blocker=self.ada, blocked=self.bob)
        response = self.post('/api/user/blocked_contacts', self.ada, {'userIds': [carl.id]})
        self.assertEqual([u['id'] for u in response.json()['blockedContacts']], [carl.id])
        self.assertEqual(
            [u['id'] for u in self.get('/api/user/blocked_contacts', self.ada).json()['blockedContacts']],
            [carl.id],
        )


class NotificationListTests(ApiTestCase):
    def test_read_notifications(self):
        ada = self.make_user('ada@example.com')
        first = Notification.objects.create(user=ada, type='broadcast', title='One')
        Notification.objects.create(user=ada, type='broadcast', title='Two')

        self.assertEqual(self.get('/api/user/notifications_count', ada).json()['unreadCount'], 2)
        self.put('/api/user/read_notification', ada, {'notificationIds': [first.id]})
        self.assertEqual(self.get('/api/user/notifications_count', ada).json()['unreadCount'], 1)
        self.put('/api/user/read_notification', ada, {'all': True})
        self.assertEqual(self.get('/api/user/notifications_count', ada).json()['unreadCount'], 0)

        listing = self.get('/api/user/notifications', ada).json()
        self.assertEqual(listing['total'], 2)
        self.assertTrue(all(n['isRead'] for n in listing['items']))

from datetime import timedelta, timezone as dt_timezone

from django.utils import timezone

from connect.models import Block, ChatGroup, ChatGroupMember, ChatMessage, UserSession
from connect.realtime import hub

from .base import ApiTestCase


class ChatGroupTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.ada = self.make_user('ada@example.com', 'Ada')
        self.bob = self.make_user('bob@example.com', 'Bob')
        self.carl = self.make_user('carl@example.com', 'Carl')

    def create(self, user, **data):
        return self.post('/api/chat/chat_group/', user, data)

    def test_direct_chat_is_reused(self):
        first = self.create(self.ada, participantIds=[self.bob.id])
        self.assertEqual(first.status_code, 201)
        self.assertTrue(first.json()['isDirect'])

        again = self.create(self.bob, participantIds=[self.ada.id])
        self.assertEqual(again.status_code, 200)
        self.assertEqual(again.json()['id'], first.json()['id'])
        self.assertEqual(ChatGroup.objects.count(), 1)

    def test_group_chat_needs_a_name(self):
        response = self.create(self.ada, participantIds=[self.bob.id, self.carl.id])
        self.assertError(response, 400, "group name is required")

        response = self.create(self.ada, name='Team', participantIds=[self.bob.id, self.carl.id])
        self.assertEqual(response.status_code, 201)
        self.assertTrue(response.json()['isAdmin'])

    def test_cannot_chat_with_blocked_user(self):
        Block.objects.create(blocker=self.bob, blocked=self.ada)
        self.assertError(self.create(self.ada, participantIds=[self.bob.id]), 400,
                         "You cannot chat with a blocked user")

    def test_non_member_is_rejected(self):
        chat_id = self.create(self.ada, participantIds=[self.bob.id]).json()['id']
        self.assertError(self.get(f'/api/chat/chat_group/{chat_id}/details', self.carl), 403)

    def test_last_admin_leaving_promotes_earliest_member(self):
        chat_id = self.create(self.ada, name='Team', participantIds=[self.bob.id, self.carl.id]).json()['id']
        response = self.post(f'/api/chat/chat_group/{chat_id}/leave', self.ada)
        new_admin = response.json()['newAdminId']
        self.assertIn(new_admin, (self.bob.id, self.carl.id))
        self.assertTrue(ChatGroupMember.objects.get(chat_group_id=chat_id, user_id=new_admin).is_admin)

    def test_cannot_leave_direct_chat(self):
        chat_id = self.create(self.ada, participantIds=[self.bob.id]).json()['id']
        self.assertError(self.post(f'/api/chat/chat_group/{chat_id}/leave', self.ada), 400)

    def test_admin_only_actions(self):
        chat_id = self.create(self.ada, name='Team', participantIds=[self.bob.id]).json()['id']
        url = f'/api/chat/chat_group/{chat_id}/admin/edit_participants'
        self.assertError(self.post(url, self.bob, {'add': [self.carl.id]}), 403)

        response = self.post(url, self.ada, {'add': [self.carl.id], 'remove': [self.bob.id]})
        member_ids = {m['id'] for m in response.json()['members']}
        self.assertEqual(member_ids, {self.ada.id, self.carl.id})

        self.assertError(self.post(url, self.ada, {'remove': [self.ada.id]}), 400)

        response = self.post(f'/api/chat/chat_group/{chat_id}/admin/toggle_admins', self.ada,
                             {'userIds': [self.carl.id]})
        self.assertTrue(ChatGroupMember.objects.get(chat_group_id=chat_id, user=self.carl).is_admin)

        response = self.put(f'/api/chat/chat_group/{chat_id}/admin/', self.ada, {'name': 'Renamed'})
        self.assertEqual(response.json()['name'], 'Renamed')

        self.assertEqual(self.delete(f'/api/chat/chat_group/{chat_id}/admin/delete', self.ada).status_code, 200)
        self.assertFalse(ChatGroup.objects.filter(id=chat_id).exists())

    def test_mute_toggle(self):
        chat_id = self.create(self.ada, participantIds=[self.bob.id]).json()['id']
        self.assertTrue(self.put(f'/api/chat/chat_group/{chat_id}/toggle_notification', self.ada).json()['isMuted'])
        response = self.post(f'/api/chat/chat_group/{chat_id}/notification', self.ada, {'enabled': True})
        self.assertFalse(response.json()['isMuted'])
        self.assertError(self.post(f'/api/chat/chat_group/{chat_id}/notification', self.ada, {'enabled': 'yes'}), 400)


class MessageTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.ada = self.make_user('ada@example.com', 'Ada')
        self.bob = self.make_user('bob@example.com', 'Bob')
        self.chat_id = self.post('/api/chat/chat_group/', self.ada, {'participantIds': [self.bob.id]}).json()['id']
        self.base = f'/api/chat/chat_group/{self.chat_id}/message'

    def send(self, user, content):
        return self.post(f'{self.base}/send', user, {'content': content})

    def test_send_publishes_and_pushes(self):
        chat_events, push_events = [], []
        chat_sub = hub.messenger('chat').subscribe(f'chat_group.{self.chat_id}', chat_events.append)
        push_sub = hub.messenger('push').subscribe(f'user.{self.bob.id}', push_events.append)
        self.addCleanup(hub.messenger('chat').unsubscribe, chat_sub)
        self.addCleanup(hub.messenger('push').unsubscribe, push_sub)
        UserSession.objects.create(user=self.bob, platform='android', device_id='d1', fcm_token='fcm-bob')

        response = self.send(self.ada, 'hello')
        self.assertEqual(response.status_code, 201)
        self.assertEqual(chat_events[0].payload['content'], 'hello')
        self.assertEqual(chat_events[0].headers['senderId'], self.ada.id)
        self.assertEqual(push_events[0].payload['body'], 'hello')

        # hidden previews and muted chats
        self.bob.preferences.message_previews = False
        self.bob.preferences.save()
        self.send(self.ada, 'secret')
        self.assertEqual(push_events[-1].payload['body'], 'New message')

        ChatGroupMember.objects.filter(chat_group_id=self.chat_id, user=self.bob).update(is_muted=True)
        self.send(self.ada, 'quiet')
        self.assertEqual(len(push_events), 2)

    def test_empty_message(self):
        self.assertError(self.send(self.ada, '   '), 400, "message cannot be empty")

    def test_blocked_direct_chat(self):
        Block.objects.create(blocker=self.bob, blocked=self.ada)
        self.assertError(self.send(self.ada, 'hi'), 403)

    def test_list_and_unread_count(self):
        self.send(self.ada, 'one')
        self.send(self.ada, 'two')
        listing = self.get('/api/chat/chat_group/', self.bob).json()
        self.assertEqual(listing['items'][0]['unreadCount'], 2)
        self.assertEqual(listing['items'][0]['lastMessage']['content'], 'two')

        messages = self.get(f'{self.base}/', self.bob).json()
        self.assertEqual([m['content'] for m in messages['items']], ['two', 'one'])
        # reading the first page marks the chat read
        self.assertEqual(self.get('/api/chat/chat_group/', self.bob).json()['items'][0]['unreadCount'], 0)

    def test_delete_for_me_and_clear(self):
        first = self.send(self.ada, 'one').json()['id']
        self.send(self.ada, 'two')

        self.post(f'{self.base}/delete', self.bob, {'messageIds': [first]})
        contents = [m['content'] for m in self.get(f'{self.base}/', self.bob).json()['items']]
        self.assertEqual(contents, ['two'])
        self.assertEqual(self.get(f'{self.base}/', self.ada).json()['total'], 2)

        self.delete(f'{self.base}/clear_all', self.bob)
        self.assertEqual(self.get(f'{self.base}/', self.bob).json()['total'], 0)
        self.assertEqual(self.get(f'{self.base}/', self.ada).json()['total'], 2)

    def test_messages_after_timestamp(self):
        old = ChatMessage.objects.create(chat_group_id=self.chat_id, sender=self.ada, content='old')
        ChatMessage.objects.filter(id=old.id).update(created_at=timezone.now() - timedelta(hours=2))
        self.send(self.ada, 'new')

        since = (timezone.now() - timedelta(hours=1)).replace(tzinfo=None).isoformat()
        response = self.get(f'{self.base}/after_time', self.bob, {'timestamp': since})
        self.assertEqual([m['content'] for m in response.json()['messages']], ['new'])

        self.assertError(self.get(f'{self.base}/after_time', self.bob, {'timestamp': 'yesterday'}), 400,
                         "invalid timestamp")

    def test_messages_after_timestamp_with_unencoded_offset(self):
        self.send(self.ada, 'new')
        since = (timezone.now() - timedelta(hours=1)).astimezone(dt_timezone(timedelta(hours=5)))
        raw = since.replace(microsecond=0).isoformat().replace('+', ' ')
        response = self.get(f'{self.base}/after_time', self.bob, {'timestamp': raw})
        self.assertEqual(response.status_code, 200, response.content)
        self.assertEqual([m['content'] for m in response.json()['messages']], ['new'])

        later = (timezone.now() + timedelta(hours=1)).astimezone(dt_timezone(timedelta(hours=5)))
        raw = later.replace(microsecond=0).isoformat().replace('+', ' ')
        self.assertEqual(self.get(f'{self.base}/after_time', self.bob, {'timestamp': raw}).json()['messages'], [])

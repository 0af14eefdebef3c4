from datetime import timedelta

from django.core import mail
from django.test import override_settings
from django.utils import timezone

from connect import dynamic_config
from connect.models import Connection, EmailVerificationLink, OneTimePassword, User, UserSession
from connect.realtime import hub

from .base import ApiTestCase


class RegisterAndLoginTests(ApiTestCase):
    def test_register_creates_user_and_session(self):
        response = self.post('/api/register', data={
            'name': 'Ada', 'email': 'Ada@Example.com', 'password': 'password123',
        })
        self.assertEqual(response.status_code, 201, response.content)
        body = response.json()
        user = User.objects.get(email='ada@example.com')
        self.assertEqual(body['user']['id'], user.id)
        self.assertTrue(UserSession.objects.filter(user=user, token=body['token']).exists())

    def test_register_rejects_duplicate_email(self):
        self.make_user('ada@example.com')
        response = self.post('/api/register', data={
            'name': 'Ada', 'email': 'ada@example.com', 'password': 'password123',
        })
        self.assertError(response, 400, "Email already registered.")

    def test_register_rejects_short_password(self):
        response = self.post('/api/register', data={'name': 'Ada', 'email': 'a@b.co', 'password': 'x'})
        self.assertError(response, 400)

    def test_malformed_json(self):
        response = self.client.post('/api/register', 'not json', content_type='application/json')
        self.assertError(response, 400, "error parsing request")

    def test_login(self):
        self.make_user('ada@example.com')
        response = self.post('/api/login', data={'email': 'ada@example.com', 'password': 'password123'})
        self.assertEqual(response.status_code, 200)
        self.assertIn('token', response.json())

    def test_login_wrong_password(self):
        self.make_user('ada@example.com')
        response = self.post('/api/login', data={'email': 'ada@example.com', 'password': 'nope'})
        self.assertError(response, 401)

    def test_admin_login_requires_admin_role(self):
        self.make_user('ada@example.com')
        response = self.post('/api/admin/login', data={'email': 'ada@example.com', 'password': 'password123'})
        self.assertError(response, 403)

        self.make_admin('boss@example.com')
        response = self.post('/api/admin/login', data={'email': 'boss@example.com', 'password': 'password123'})
        self.assertEqual(response.status_code, 200)


class PasswordResetTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.user = self.make_user('ada@example.com')

    def test_full_otp_flow(self):
        token = self.token_for(self.user)
        response = self.post('/api/send_otp', data={'email': 'ada@example.com'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(mail.outbox), 1)

        otp = OneTimePassword.objects.get(email='ada@example.com')
        self.assertIn(otp.code, mail.outbox[0].body)

        response = self.post('/api/verify_otp', data={'email': 'ada@example.com', 'otp': otp.code})
        reset_token = response.json()['token']

        response = self.post('/api/change_password_using_otp', data={
            'token': reset_token, 'password': 'new-password-1',
        })
        self.assertEqual(response.status_code, 200)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password('new-password-1'))
        # every session is ended after a reset
        self.assertError(self.get('/api/user/info', token=token), 401)

        response = self.post('/api/change_password_using_otp', data={
            'token': reset_token, 'password': 'another-pass',
        })
        self.assertError(response, 400, "invalid token")

    def test_unknown_email_gets_same_answer(self):
        response = self.post('/api/send_otp', data={'email': 'ghost@example.com'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(mail.outbox), 0)

    def test_wrong_and_expired_otp(self):
        OneTimePassword.objects.create(
            email='ada@example.com', code='123456', reason='reset_password',
            expires_at=timezone.now() - timedelta(minutes=1),
        )
        self.assertError(self.post('/api/verify_otp', data={'email': 'ada@example.com', 'otp': '000000'}),
                         400, "invalid otp")
        self.assertError(self.post('/api/verify_otp', data={'email': 'ada@example.com', 'otp': '123456'}),
                         400, "otp expired")

    def test_change_password(self):
        response = self.post('/api/user/change_password', self.user, {
            'oldPassword': 'wrong', 'newPassword': 'new-password-1',
        })
        self.assertError(response, 400, "Old password is incorrect.")
        response = self.post('/api/user/change_password', self.user, {
            'oldPassword': 'password123', 'newPassword': 'new-password-1',
        })
        self.assertEqual(response.status_code, 200)


class LocalHelperTests(ApiTestCase):
    def test_token_for_user_locally(self):
        user = self.make_user('ada@example.com')
        response = self.get(f'/api/{user.id}/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['userId'], user.id)

    @override_settings(BRANCH='main')
    def test_token_for_user_hidden_outside_local(self):
        user = self.make_user('ada@example.com')
        self.assertError(self.get(f'/api/{user.id}/'), 404)

    def test_create_test_admin(self):
        response = self.post('/api/test/create', data={'email': 'root@example.com', 'password': 'password123'})
        self.assertEqual(response.status_code, 201)
        self.assertTrue(User.objects.get(email='root@example.com').is_admin)


class AuthMiddlewareTests(ApiTestCase):
    def test_missing_token(self):
        self.assertError(self.get('/api/user/info'), 401, "Unauthorized")

    def test_unknown_token(self):
        self.assertError(self.get('/api/user/info', token='nope'), 401)

    def test_bare_token_is_accepted(self):
        user = self.make_user('ada@example.com')
        token = self.token_for(user)
        response = self.client.get('/api/user/info', HTTP_AUTHORIZATION=token)
        self.assertEqual(response.status_code, 200)

    def test_suspended_user(self):
        user = self.make_user('ada@example.com', is_suspended=True)
        self.assertError(self.get('/api/user/info', user), 403)

    def test_unknown_object_is_json_404(self):
        user = self.make_user('ada@example.com')
        self.assertError(self.get('/api/user/profile/999999', user), 404, "not found")

    def test_wrong_method(self):
        self.assertEqual(self.client.get('/api/register').status_code, 405)


class SessionTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.user = self.make_user('ada@example.com')

    def test_validate_and_end_session(self):
        token = self.token_for(self.user)
        self.assertEqual(self.get('/api/user/session', token=token).status_code, 200)
        self.assertEqual(self.put('/api/user/session/end', token=token).status_code, 200)
        self.assertError(self.get('/api/user/session', token=token), 401)

    def test_device_bound_to_one_user(self):
        other = self.make_user('bob@example.com')
        data = {'platform': 'android', 'deviceId': 'device-1'}
        self.assertEqual(self.post('/api/user/session', self.user, data).status_code, 200)
        self.assertError(self.post('/api/user/session', other, data), 400,
                         "Another session is running on this device")
        # web sessions are never device bound
        self.assertEqual(
            self.post('/api/user/session', other, {'platform': 'web', 'deviceId': 'device-1'}).status_code, 200
        )

    def test_push_tokens(self):
        token = self.token_for(self.user)
        self.put('/api/user/session/fcm', token=token, data={'fcmToken': 'fcm-1'})
        self.put('/api/user/session/voip_token', token=token, data={'voipToken': 'voip-1'})
        session = UserSession.objects.get(token=token)
        self.assertEqual((session.fcm_token, session.voip_token), ('fcm-1', 'voip-1'))


class UserInfoTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.user = self.make_user('ada@example.com')

    def test_verification_flows_come_from_dynamic_config(self):
        dynamic_config.set_value(dynamic_config.EMAIL_VERIFICATION_FLOW, 'true')
        body = self.get('/api/user/info', self.user).json()
        flows = body['verificationFlows']
        self.assertTrue(flows['emailVerificationFlows']['isEmailVerificationFlowNeeded'])
        self.assertFalse(flows['phoneVerificationFlows']['isPhoneVerificationFlowNeeded'])
        self.assertFalse(body['isAllDataAvailable'])

    def test_send_and_verify_email_link(self):
        events = []
        subscription = hub.messenger('push').subscribe(f'user.{self.user.id}', events.append)
        self.addCleanup(hub.messenger('push').unsubscribe, subscription)

        token = self.token_for(self.user)
        self.put('/api/user/session/fcm', token=token, data={'fcmToken': 'fcm-1'})
        response = self.post('/api/user/send_verification_email', token=token)
        self.assertEqual(response.status_code, 200)
        link = EmailVerificationLink.objects.get(user=self.user)
        self.assertIn(f'/verify/{link.token}/email', mail.outbox[0].body)

        self.assertEqual(self.post('/api/verify_email_link', data={'token': link.token}).status_code, 200)
        self.user.refresh_from_db()
        self.assertTrue(self.user.is_email_verified)
        self.assertTrue(events and events[-1].headers['silent'])

        self.assertError(self.post('/api/user/send_verification_email', token=token), 400,
                         "You are already Verified, Please reopen the app")

    def test_verification_email_escapes_the_name(self):
        self.user.name = '<b>Ada</b>'
        self.user.save()
        self.post('/api/user/send_verification_email', self.user)
        html, mimetype = mail.outbox[0].alternatives[0]
        self.assertEqual(mimetype, 'text/html')
        self.assertIn('&lt;b&gt;Ada&lt;/b&gt;', html)
        self.assertNotIn('<b>Ada</b>', html)

    def test_invalid_and_expired_links(self):
        self.assertError(self.post('/api/verify_email_link', data={'token': 'nope'}), 400, "invalid token")
        link = EmailVerificationLink.objects.create(
            user=self.user, email=self.user.email, expires_at=timezone.now() - timedelta(hours=1),
        )
        self.assertError(self.post('/api/verify_email_link', data={'token': link.token}), 400, "token expired")

    def test_email_rate_limit(self):
        dynamic_config.set_value(dynamic_config.EMAIL_LIMIT, '1')
        self.assertEqual(self.post('/api/user/send_verification_email', self.user).status_code, 200)
        self.assertError(self.post('/api/user/send_verification_email', self.user), 429, "too many attempts")

    def test_profile_update_and_settings(self):
        response = self.put('/api/user/profile/', self.user, {
            'headline': 'Builder', 'gender': 'female', 'dateOfBirth': '1990-02-03', 'timezone': 'Asia/Dhaka',
        })
        self.assertEqual(response.status_code, 200, response.content)
        self.assertEqual(response.json()['headline'], 'Builder')
        self.assertError(self.put('/api/user/profile/', self.user, {'timezone': 'Mars/Base'}), 400)

        response = self.post('/api/user/settings', self.user, {'showOnlineStatus': False})
        self.assertFalse(response.json()['showOnlineStatus'])

    def test_online_status_respects_visibility(self):
        other = self.make_user('bob@example.com')
        self.post('/api/user/ping', other)
        statuses = self.post('/api/user/online_status', self.user, {'userIds': [other.id]}).json()['statuses']
        self.assertTrue(statuses[0]['isOnline'])

        other.preferences.show_online_status = False
        other.preferences.save()
        statuses = self.post('/api/user/online_status', self.user, {'userIds': [other.id]}).json()['statuses']
        self.assertFalse(statuses[0]['isOnline'])
        self.assertIsNone(statuses[0]['lastSeen'])

    def test_hidden_presence_stays_out_of_profiles(self):
        other = self.make_user('bob.com')
        Connection.objects.create(sender=self.user, receiver=other, status='accepted')
        self.post('/api/user/ping', other)
        other.preferences.show_online_status = False
        other.preferences.save()

        profile = self.get(f'/api/user/profile/{other.id}', self.user).json()
        self.assertFalse(profile['isOnline'])
        self.assertIsNone(profile['lastSeen'])

        connections = self.get('/api/user/connections/all', self.user).json()
        self.assertEqual([(u['id'], u['isOnline']) for u in connections['items']], [(other.id, False)])

        own = self.get('/api/user/profile/', other).json()
        self.assertTrue(own['isOnline'])
        self.assertIsNotNone(own['lastSeen'])

    def test_visible_presence_shows_in_profiles(self):
        other = self.make_user('bob.com')
        self.post('/api/user/ping', other)
        profile = self.get(f'/api/user/profile/{other.id}', self.user).json()
        self.assertTrue(profile['isOnline'])
        self.assertIsNotNone(profile['lastSeen'])

    def test_delete_account(self):
        token = self.token_for(self.user)
        self.assertEqual(self.delete('/api/user/', token=token).status_code, 200)
        self.assertFalse(User.objects.filter(id=self.user.id).exists())
        self.assertError(self.get('/api/user/info', token=token), 401)

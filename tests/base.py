import json

from django.core.cache import cache
from django.test import TestCase

from connect.accounts import start_session
from connect.models import User, UserSettings, ROLE_ADMIN


def make_user(email, name=None, password='password123', **extra):
    user = User.objects.create_user(
        username=email, email=email, password=password, name=name or email.split('@')[0], **extra
    )
    UserSettings.objects.create(user=user)
    return user


class ApiTestCase(TestCase):
    """TestCase with bearer token helpers for the JSON API."""

    def setUp(self):
        cache.clear()

    def make_user(self, email, name=None, **extra):
        return make_user(email, name, **extra)

    def make_admin(self, email='admin@example.com'):
        return make_user(email, 'Admin', role=ROLE_ADMIN)

    def token_for(self, user):
        return start_session(user).token

    def call(self, method, url, user=None, data=None, token=None):
        kwargs = {}
        if user is not None or token is not None:
            kwargs['HTTP_AUTHORIZATION'] = f"Bearer {token or self.token_for(user)}"
        if method in ('get', 'delete') and data is None:
            return getattr(self.client, method)(url, **kwargs)
        if method == 'get':
            return self.client.get(url, data, **kwargs)
        return getattr(self.client, method)(
            url, json.dumps(data or {}), content_type='application/json', **kwargs
        )

    def get(self, url, user=None, params=None, **kw):
        return self.call('get', url, user, params, **kw)

    def post(self, url, user=None, data=None, **kw):
        return self.call('post', url, user, data, **kw)

    def put(self, url, user=None, data=None, **kw):
        return self.call('put', url, user, data, **kw)

    def delete(self, url, user=None, data=None, **kw):
        return self.call('delete', url, user, data, **kw)

    def assertError(self, response, status, message_to_user=None):
        self.assertEqual(response.status_code, status, response.content)
        body = response.json()
        self.assertEqual(body['statusCode'], status)
        if message_to_user is not None:
            self.assertEqual(body['messageToUser'], message_to_user)

import io
import shutil
import tempfile
from unittest import mock

import requests
from PIL import Image
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import SimpleTestCase, override_settings

from connect.errors import ClientError
from connect.models import Upload
from connect.storage import build_upload_path, check_image_bytes, fetch_image

from .base import ApiTestCase


def png_bytes():
    buffer = io.BytesIO()
    Image.new('RGB', (4, 4), 'red').save(buffer, format='PNG')
    return buffer.getvalue()


class StorageHelperTests(SimpleTestCase):
    def test_upload_path(self):
        self.assertEqual(build_upload_path('image', 'profile', 'me.png', now=1700000000),
                         'images/profile/1700000000-me.png')
        with self.assertRaises(ClientError) as ctx:
            build_upload_path('spreadsheet', 'profile', 'x.xls')
        self.assertEqual(ctx.exception.status, 400)

    def test_check_image_bytes(self):
        self.assertEqual(check_image_bytes(png_bytes()), 'png')
        self.assertEqual(check_image_bytes(b'<svg xmlns="http://www.w3.org/2000/svg"></svg>'), 'svg')
        with self.assertRaises(ClientError):
            check_image_bytes(b'definitely not an image')

    @override_settings(MAX_INDUSTRY_IMAGE_BYTES=10)
    def test_image_size_limit(self):
        with self.assertRaises(ClientError) as ctx:
            check_image_bytes(png_bytes())
        self.assertEqual(ctx.exception.message_to_user, "file size cannot be more then 5 mb")

    def test_fetch_failure_is_a_client_error(self):
        with mock.patch('connect.storage.requests.get', side_effect=requests.ConnectionError("down")):
            with self.assertLogs('connect.storage', level='ERROR'):
                with self.assertRaises(ClientError) as ctx:
                    fetch_image('https://example.com/a.png')
        self.assertEqual(ctx.exception.message_to_user, "unable to get image from url")


class UploadEndpointTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        media_root = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, media_root, ignore_errors=True)
        settings_override = override_settings(MEDIA_ROOT=media_root)
        settings_override.enable()
        self.addCleanup(settings_override.disable)
        self.user = self.make_user('ada@example.com')

    def upload(self, binary_type='image'):
        token = self.token_for(self.user)
        file = SimpleUploadedFile('me.png', png_bytes(), content_type='image/png')
        return self.client.post(
            '/api/user/upload_image',
            {'file': file, 'upload_binary_type': binary_type, 'type': 'profile'},
            HTTP_AUTHORIZATION=f'Bearer {token}',
        )

    def test_upload_image(self):
        response = self.upload()
        self.assertEqual(response.status_code, 200, response.content)
        body = response.json()
        upload = Upload.objects.get(id=body['id'])
        self.assertTrue(upload.path.startswith('images/profile/'))
        self.assertEqual(body['thumbnailUrl'], body['url'])

        detail = self.get(f'/api/attachment/{upload.uid}', self.user)
        self.assertEqual(detail.status_code, 200)

    def test_invalid_binary_type(self):
        self.assertError(self.upload('spreadsheet'), 400, "invalid file type")

    def test_missing_file(self):
        token = self.token_for(self.user)
        response = self.client.post('/api/user/upload_image', {'type': 'profile'}, HTTP_AUTHORIZATION=f'Bearer {token}')
        self.assertError(response, 400, "unable to read file")

    def test_attachment_is_public(self):
        upload = Upload.objects.get(id=self.upload().json()['id'])
        response = self.get(f'/api/attachment/{upload.uid}')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['url'], upload.url)

    def test_malformed_content_length(self):
        token = self.token_for(self.user)
        response = self.client.post('/api/user/upload_image', {'type': 'profile'},
                                    HTTP_AUTHORIZATION=f'Bearer {token}', CONTENT_LENGTH='abc')
        self.assertError(response, 400, "unable to parse file")

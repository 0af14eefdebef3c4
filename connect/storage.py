"""
================================================================================
CONNECTUP - FILE STORAGE
================================================================================

@file        storage.py
@description Uploads through Django's default storage backend

MODULE PURPOSE
================================================================================
- Builds the storage path of an upload:
      images/<type>/<unix>-<filename>
      videos/<type>/<unix>-<filename>
      audios/<type>/<unix>-<filename>
      documents/<type>/<unix>-<filename>
- Saves the file through ``default_storage`` (Cloudinary in production,
  the local filesystem in development) and records an Upload row whose
  url expires after a year
- Downloads remote industry images with requests and checks them with
  Pillow before storing them

================================================================================
"""

import io
import logging
import time
from datetime import timedelta

import requests
from PIL import Image, UnidentifiedImageError
from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.utils import timezone

from .errors import ClientError
from .models import Upload


logger = logging.getLogger(__name__)

BINARY_TYPE_FOLDERS = {
    'image': 'images',
    'video': 'videos',
    'audio': 'audios',
    'document': 'documents',
}

URL_EXPIRY = timedelta(days=365)
FETCH_TIMEOUT_SECONDS = 15


def build_upload_path(binary_type, upload_type, filename, now=None):
    folder = BINARY_TYPE_FOLDERS.get(binary_type)
    if folder is None:
        raise ClientError(400, "invalid file type", f"file type {binary_type!r} not valid")
    unix = int(now if now is not None else time.time())
    return f"{folder}/{upload_type}/{unix}-{filename}"


def sharable_url(path):
    return default_storage.url(path)


def store_upload(content, filename, binary_type, upload_type, user=None):
    """
    Save ``content`` (a Django File) and record it as an Upload.

    Thumbnails are the file itself for everything except videos, which get
    no thumbnail here.
    """
    path = build_upload_path(binary_type, upload_type, filename)
    saved_path = default_storage.save(path, content)
    url = sharable_url(saved_path)

    upload = Upload.objects.create(
        name=filename,
        bucket=settings.UPLOADS_BUCKET,
        path=saved_path,
        type=upload_type,
        binary_type=binary_type,
        uploaded_by=user,
        url=url,
        thumbnail_url='' if binary_type == 'video' else url,
        url_expiration_time=timezone.now() + URL_EXPIRY,
    )
    logger.info(f"store_upload: {saved_path} for user {user.id if user else None}")
    return upload


def _looks_like_svg(data):
    head = data[:512].lstrip().lower()
    return head.startswith(b'<svg') or (head.startswith(b'<?xml') and b'<svg' in data[:2048].lower())


def check_image_bytes(data):
    """Raise ClientError unless ``data`` is an image within the size limit."""
    if len(data) > settings.MAX_INDUSTRY_IMAGE_BYTES:
        raise ClientError(400, "file size cannot be more then 5 mb")

    if _looks_like_svg(data):
        return 'svg'

    try:
        with Image.open(io.BytesIO(data)) as image:
            image.verify()
            return (image.format or 'png').lower()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise ClientError(400, "file is not an image", str(e))


def fetch_image(url):
    try:
        response = requests.get(
            url,
            timeout=FETCH_TIMEOUT_SECONDS,
            headers={"User-Agent": "ConnectUp/1.0 (industry images)"},
        )
        response.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"fetch_image: unable to get image from url {url}: {e}")
        raise ClientError(400, "unable to get image from url", str(e))
    return response.content


def upload_industry_image(url, user=None):
    data = fetch_image(url)
    extension = check_image_bytes(data)
    filename = f"{int(time.time())}-industry.{extension}"
    return store_upload(ContentFile(data), filename, 'image', 'industry', user)


def upload_images_from_list(industries, user=None):
    """
    Resolve the ``url`` of each industry payload to an Upload.

    Every entry needs a category; entries without a url get no image.
    Returns the uploads in input order.
    """
    for item in industries:
        if not item.get('category'):
            raise ClientError(400, "category cannot be empty")

    uploads = []
    for item in industries:
        uploads.append(upload_industry_image(item['url'], user) if item.get('url') else None)
    return uploads

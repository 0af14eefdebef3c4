"""
Runtime configuration stored in the DynamicConfig table.

Values are cached for a minute so hot endpoints like /api/user/info do not
query the table on every call. Writes through ``set_value`` refresh the cache.
"""

import logging

from django.core.cache import cache

from .filters import FALSE_VALUES, TRUE_VALUES
from .models import DynamicConfig


logger = logging.getLogger(__name__)

EMAIL_VERIFICATION_FLOW = 'email_verification_flow'
EMAIL_VERIFICATION_COMPULSORY = 'email_verification_compulsory'
PHONE_VERIFICATION_FLOW = 'phone_verification_flow'
PHONE_VERIFICATION_COMPULSORY = 'phone_verification_compulsory'
EMAIL_LIMIT = 'email_limit'
DEFAULT_COVER_IMAGE = 'default_cover_image'

CACHE_SECONDS = 60


def _cache_key(key):
    return f"dynamic_config:{key}"


def get_str(key, default=''):
    value = cache.get(_cache_key(key))
    if value is None:
        row = DynamicConfig.objects.filter(key=key).first()
        value = row.value if row else ''
        cache.set(_cache_key(key), value, CACHE_SECONDS)
    return value if value != '' else default


def get_bool(key, default=False):
    value = get_str(key).strip()
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    if value:
        logger.warning(f"dynamic config {key}={value!r} is not a boolean")
    return default


def get_int(key, default=0):
    value = get_str(key).strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"dynamic config {key}={value!r} is not an integer")
        return default


def set_value(key, value):
    DynamicConfig.objects.update_or_create(key=key, defaults={'value': str(value)})
    cache.delete(_cache_key(key))

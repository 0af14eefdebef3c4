"""
================================================================================
CONNECTUP - API ERROR RESPONSES
================================================================================

@file        errors.py
@description JSON error bodies shared by every API view

MODULE PURPOSE
================================================================================
Every failing API call answers with the same JSON shape:

    {
        "error": "<developer facing detail>",
        "messageToUser": "<text the app may show>",
        "statusCode": 400
    }

Views either return ``respond_client_error`` / ``respond_server_error``
directly, or raise ``ClientError`` and let ``ApiErrorMiddleware`` turn it
into a response.

LOGGING
================================================================================
- 4xx responses are logged at WARNING
- 5xx responses are logged at ERROR with the traceback

================================================================================
"""

import json
import logging

from django.http import JsonResponse


logger = logging.getLogger(__name__)

# largest value a BigAutoField can hold
MAX_ID = 2 ** 63 - 1


class ClientError(Exception):
    """
    A request the client can fix.

    Args:
        status: HTTP status code (4xx)
        message_to_user: text shown to the user
        dev_info: optional detail for developers, defaults to message_to_user
    """

    def __init__(self, status, message_to_user, dev_info=None):
        super().__init__(dev_info or message_to_user)
        self.status = status
        self.message_to_user = message_to_user
        self.dev_info = dev_info or message_to_user


def _error_body(err, status, message_to_user, dev_info=None):
    if dev_info is None:
        dev_info = str(err) if err is not None else message_to_user
    return {
        "error": dev_info,
        "messageToUser": message_to_user,
        "statusCode": status,
    }


def respond_client_error(request, err, status, message_to_user, dev_info=None):
    logger.warning(
        f"{request.method} {request.path}: {status} {message_to_user} ({err})"
    )
    return JsonResponse(_error_body(err, status, message_to_user, dev_info), status=status)


def respond_server_error(request, err, message_to_user):
    logger.error(
        f"{request.method} {request.path}: {message_to_user} ({err})",
        exc_info=isinstance(err, BaseException),
    )
    return JsonResponse(_error_body(err, 500, message_to_user), status=500)


def parse_json_body(request):
    """Decode a JSON request body. An empty body decodes to ``{}``."""
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ClientError(400, "error parsing request", str(e))
    if not isinstance(data, dict):
        raise ClientError(400, "error parsing request", "expected a JSON object")
    return data


def int_value(value, message_to_user="invalid id"):
    """
    Coerce a JSON id to an int.

    Accepts ints and digit strings. Booleans, fractions and anything else
    raise ClientError(400).
    """
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ClientError(400, message_to_user, f"expected an integer, got {value!r}")
    try:
        result = int(value)
    except (TypeError, ValueError, OverflowError):
        raise ClientError(400, message_to_user, f"expected an integer, got {value!r}")
    if not 0 <= result <= MAX_ID:
        raise ClientError(400, message_to_user, f"id {result} out of range")
    return result


def int_or_none(value, message_to_user="invalid id"):
    """Like int_value, but a missing or empty id is None."""
    if value in (None, '', 0):
        return None
    return int_value(value, message_to_user)


def int_list(values, message_to_user="invalid ids"):
    """Coerce a JSON list of ids to ints."""
    if values is None:
        return []
    if not isinstance(values, list):
        raise ClientError(400, message_to_user, "expected a list")
    return [int_value(v, message_to_user) for v in values]

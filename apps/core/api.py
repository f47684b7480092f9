"""
JSON API helpers shared by every app.

  api_view(*methods)  — decorator: method check, CSRF exemption for bearer
                        token clients, JSON body parsing, and translation of
                        BookingEngineError into a JSON error response.
  json_body(request)  — parsed JSON object body (cached on the request).
  error_response(exc) — JsonResponse for a BookingEngineError.

Error payload:
  {"error": "<message>", "code": "SLOT_CONFLICT", "retryable": true, "details": {...}}
"""
import json
import logging
from functools import wraps

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt

from apps.bookings.exceptions import BookingEngineError, ValidationError

logger = logging.getLogger(__name__)


def json_body(request) -> dict:
    if not hasattr(request, '_json_body'):
        if not request.body:
            request._json_body = {}
        else:
            try:
                data = json.loads(request.body)
            except (ValueError, UnicodeDecodeError) as exc:
                raise ValidationError('Request body is not valid JSON.') from exc
            if not isinstance(data, dict):
                raise ValidationError('Request body must be a JSON object.')
            request._json_body = data
    return request._json_body


def error_response(exc: BookingEngineError) -> JsonResponse:
    payload = {
        'error': exc.message,
        'code': exc.code,
        'retryable': exc.retryable,
    }
    if exc.details:
        payload['details'] = exc.details
    return JsonResponse(payload, status=exc.status_code)


def api_view(*methods):
    """
    Wrap a view that returns a dict/list (or a JsonResponse).
    Domain errors become JSON error responses with their status code.
    """
    allowed = {m.upper() for m in methods} or {'GET'}

    def decorator(view_func):
        @csrf_exempt
        @wraps(view_func)
        def wrapper(request, *args, **kwargs):
            if request.method not in allowed:
                return JsonResponse(
                    {'error': f'Method {request.method} not allowed.', 'code': 'METHOD_NOT_ALLOWED'},
                    status=405,
                    headers={'Allow': ', '.join(sorted(allowed))},
                )
            try:
                result = view_func(request, *args, **kwargs)
            except BookingEngineError as exc:
                logger.info(
                    '%s %s -> %s (%s)', request.method, request.path, exc.code, exc.message,
                )
                return error_response(exc)

            if isinstance(result, JsonResponse):
                return result
            status = 200
            if isinstance(result, tuple):
                result, status = result
            return JsonResponse(result, status=status, safe=False)
        return wrapper
    return decorator

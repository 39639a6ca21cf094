# core/api.py - Shared helpers for the JSON endpoints
import json
from decimal import Decimal

from django.http import JsonResponse


def parse_json_body(request):
    """Decode a JSON object body; returns None when the body is not one"""
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except (ValueError, UnicodeDecodeError):
        return None
    return data if isinstance(data, dict) else None


def invalid_json_response():
    return JsonResponse({'error': 'VALIDATION_ERROR', 'message': 'Request body must be a JSON object'}, status=400)


def form_error_response(form):
    return JsonResponse(
        {
            'error': 'VALIDATION_ERROR',
            'fields': {name: [str(e) for e in errors] for name, errors in form.errors.items()},
        },
        status=400
    )


def validation_error_response(exc):
    """Render a django ValidationError raised below the form layer"""
    if hasattr(exc, 'message_dict'):
        fields = exc.message_dict
    else:
        fields = {'__all__': exc.messages}
    return JsonResponse({'error': 'VALIDATION_ERROR', 'fields': fields}, status=400)


def money(value):
    """Decimal amounts travel as strings to keep their exact cents"""
    if value is None:
        return None
    return str(Decimal(value).quantize(Decimal('0.01')))

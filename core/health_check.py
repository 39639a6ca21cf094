from django.db import connection
from django.http import JsonResponse
from django.views.decorators.http import require_http_methods
import logging

logger = logging.getLogger(__name__)


@require_http_methods(["GET", "HEAD"])
def health_check(request):
    """
    Lightweight health check endpoint for uptime monitoring.
    Returns 200 OK when the app is running and the database answers.
    """
    try:
        with connection.cursor() as cursor:
            cursor.execute('SELECT 1')
    except Exception as e:
        logger.error(f"Health check failed: {str(e)}")
        return JsonResponse(
            {
                'status': 'error',
                'message': 'Database unavailable'
            },
            status=503
        )
    return JsonResponse(
        {
            'status': 'ok',
            'message': 'Dental office app is running'
        },
        status=200
    )

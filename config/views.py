import logging

from django.db import connection
from django.http import JsonResponse

logger = logging.getLogger('apps')


def health_check(request):
    """Health check that also touches the database."""
    with connection.cursor() as cursor:
        cursor.execute('SELECT 1')
    return JsonResponse({'status': 'ok'})


def error_404(request, exception):
    return JsonResponse({'error': f'No budget resource at {request.path}', 'status': 404}, status=404)


def error_500(request):
    logger.error("Unhandled error serving %s %s", request.method, request.path)
    return JsonResponse({'error': 'The budget service failed to handle this request', 'status': 500}, status=500)

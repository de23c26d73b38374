from django.http import JsonResponse
from django.views.decorators.http import require_GET

from blockchain.exceptions import NotFoundError

from .services import resolve_identifier


@require_GET
def trace_identifier(request, identifier):
    """
    Consumer lookup: the ordered journey behind a product or batch code.
    """
    try:
        journey = resolve_identifier(identifier)
    except NotFoundError as exc:
        return JsonResponse({'error': 'QR code not found', 'identifier': exc.identifier}, status=404)
    return JsonResponse(journey.to_dict())

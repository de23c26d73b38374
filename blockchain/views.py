from django.http import JsonResponse
from django.views.decorators.http import require_GET

from .services import ledger_appender, verify_chain
from .utils import format_timestamp


def _block_to_dict(block):
    return {
        'block_number': block.block_number,
        'block_hash': block.block_hash,
        'previous_hash': block.previous_hash,
        'merkle_root': block.merkle_root,
        'transaction_type': block.transaction_type,
        'transaction_data': block.transaction_data,
        'entity_id': block.entity_id,
        'timestamp': format_timestamp(block.timestamp),
    }


@require_GET
def chain_verification(request):
    """Integrity report of the whole chain."""
    report = verify_chain()
    return JsonResponse(report.to_dict())


@require_GET
def entity_history(request, entity_id):
    """Every block that documents one entity, oldest first."""
    blocks = ledger_appender.history(entity_id)
    return JsonResponse({
        'entity_id': entity_id,
        'blocks': [_block_to_dict(block) for block in blocks],
    })

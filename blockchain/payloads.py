"""
Typed ``transaction_data`` payloads, one shape per transaction type.

The ledger stores payloads as JSON; these dataclasses are the tagged union the
workflow services build them from.
"""
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from .exceptions import UnknownTransactionType
from .models import TransactionType


@dataclass(frozen=True)
class CollectionRecorded:
    collection_event_id: str
    herb_id: str
    quantity_kg: float
    collector_id: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


@dataclass(frozen=True)
class BatchCreated:
    batch_id: str
    herb_id: str
    total_quantity_kg: float
    collections: int
    aggregator_id: Optional[str] = None


@dataclass(frozen=True)
class BatchSentToLab:
    batch_id: str
    status: str = 'lab_testing'


@dataclass(frozen=True)
class QualityTestRecorded:
    quality_test_id: str
    batch_id: str
    test_type: str
    test_status: Optional[str] = None
    lab_id: Optional[str] = None


@dataclass(frozen=True)
class ProcessingStepRecorded:
    processing_step_id: str
    batch_id: str
    process_type: str
    input_quantity_kg: float
    output_quantity_kg: Optional[float] = None
    processor_id: Optional[str] = None


@dataclass(frozen=True)
class CustodyTransferred:
    handoff_id: str
    item_id: str
    item_type: str
    from_entity_id: str
    to_entity_id: str
    quantity: Optional[float] = None


PAYLOAD_TYPES = {
    TransactionType.COLLECTION_RECORDED: CollectionRecorded,
    TransactionType.BATCH_CREATED: BatchCreated,
    TransactionType.BATCH_SENT_TO_LAB: BatchSentToLab,
    TransactionType.QUALITY_TEST: QualityTestRecorded,
    TransactionType.PROCESSING_STEP: ProcessingStepRecorded,
    TransactionType.CUSTODY_TRANSFERRED: CustodyTransferred,
}


def payload_for(transaction_type):
    try:
        return PAYLOAD_TYPES[TransactionType(transaction_type)]
    except ValueError:
        raise UnknownTransactionType(transaction_type) from None


def payload_to_data(payload) -> Dict[str, Any]:
    """Accept a payload dataclass or a plain mapping and return a JSON dict."""
    if payload is None:
        return {}
    if isinstance(payload, tuple(PAYLOAD_TYPES.values())):
        return asdict(payload)
    return dict(payload)

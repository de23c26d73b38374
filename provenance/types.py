"""
Journey and Stage value types returned by the provenance resolver.

``Stage.metadata`` is a tagged union keyed by ``Stage.stage_type``: one
metadata dataclass per stage type, registered in ``METADATA_TYPES``.
"""
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Any, Dict, Optional, Tuple, Union

from blockchain.models import TransactionType
from blockchain.utils import format_timestamp


class StageType(IntEnum):
    # Value doubles as the tie-break priority when timestamps are equal
    COLLECTION = 0
    QUALITY_TEST = 1
    PROCESSING = 2

    @property
    def label(self):
        return STAGE_LABELS[self]

    @property
    def transaction_type(self):
        return STAGE_TRANSACTIONS[self]


STAGE_LABELS = {
    StageType.COLLECTION: 'Collection',
    StageType.QUALITY_TEST: 'QualityTest',
    StageType.PROCESSING: 'Processing',
}

# Ledger transaction that documents each stage type
STAGE_TRANSACTIONS = {
    StageType.COLLECTION: TransactionType.COLLECTION_RECORDED,
    StageType.QUALITY_TEST: TransactionType.QUALITY_TEST,
    StageType.PROCESSING: TransactionType.PROCESSING_STEP,
}


class VerificationStatus:
    VERIFIED = 'VERIFIED'
    PARTIALLY_VERIFIED = 'PARTIALLY_VERIFIED'
    UNVERIFIED = 'UNVERIFIED'


@dataclass(frozen=True)
class CollectionMetadata:
    collection_event_id: Optional[str] = None
    herb_name: Optional[str] = None
    botanical_name: Optional[str] = None
    plant_part: Optional[str] = None
    quantity_kg: Optional[float] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    initial_condition: Optional[str] = None
    collector_id: Optional[str] = None
    collector_name: Optional[str] = None
    contribution_percentage: Optional[float] = None


@dataclass(frozen=True)
class QualityTestMetadata:
    quality_test_id: str
    test_type: str
    sample_id: str
    test_status: Optional[str] = None
    results: Dict[str, Any] = field(default_factory=dict)
    lab_id: Optional[str] = None
    lab_name: Optional[str] = None
    certificate_url: Optional[str] = None


@dataclass(frozen=True)
class ProcessingMetadata:
    processing_step_id: str
    process_type: str
    input_quantity_kg: Optional[float] = None
    output_quantity_kg: Optional[float] = None
    parameters: Dict[str, Any] = field(default_factory=dict)
    processor_id: Optional[str] = None
    processor_name: Optional[str] = None


StageMetadata = Union[CollectionMetadata, QualityTestMetadata, ProcessingMetadata]

METADATA_TYPES = {
    StageType.COLLECTION: CollectionMetadata,
    StageType.QUALITY_TEST: QualityTestMetadata,
    StageType.PROCESSING: ProcessingMetadata,
}


@dataclass(frozen=True)
class PartialJoinFailure:
    """A relation of a stage's record that could not be joined."""

    relation: str
    record_id: str


@dataclass(frozen=True)
class Stage:
    stage_type: StageType
    metadata: StageMetadata
    timestamp: datetime
    data_integrity: bool
    on_chain_verified: bool
    record_id: str
    batch_id: Optional[str] = None
    entity_id: Optional[str] = None
    block_number: Optional[int] = None
    block_hash: Optional[str] = None
    issues: Tuple[PartialJoinFailure, ...] = ()

    def __post_init__(self):
        expected = METADATA_TYPES[self.stage_type]
        if not isinstance(self.metadata, expected):
            raise TypeError(f"{self.stage_type.label} stage needs {expected.__name__} metadata")

    def sort_key(self):
        block_order = self.block_number if self.block_number is not None else float('inf')
        return (self.timestamp, block_order, int(self.stage_type), self.record_id)

    def to_dict(self):
        return {
            'stage_type': int(self.stage_type),
            'stage_name': self.stage_type.label,
            'metadata': asdict(self.metadata),
            'timestamp': format_timestamp(self.timestamp),
            'data_integrity': self.data_integrity,
            'on_chain_verified': self.on_chain_verified,
            'record_id': self.record_id,
            'batch_id': self.batch_id,
            'entity_id': self.entity_id,
            'block_number': self.block_number,
            'block_hash': self.block_hash,
            'issues': [asdict(issue) for issue in self.issues],
        }


@dataclass(frozen=True)
class BatchSummary:
    id: str
    batch_id: str
    qr_code: Optional[str]
    herb_name: Optional[str]
    aggregator_name: Optional[str]
    total_quantity_kg: float
    batch_status: str
    creation_timestamp: datetime


@dataclass(frozen=True)
class ProductSummary:
    id: str
    qr_code: str
    product_name: str
    product_type: str
    manufacturer_name: Optional[str]
    manufacturing_date: datetime


@dataclass(frozen=True)
class JourneySummary:
    total_stages: int
    verified_stages: int
    verification_status: str

    @classmethod
    def from_stages(cls, stages):
        total = len(stages)
        verified = sum(1 for stage in stages if stage.on_chain_verified)
        if total and verified == total:
            status = VerificationStatus.VERIFIED
        elif verified:
            status = VerificationStatus.PARTIALLY_VERIFIED
        else:
            status = VerificationStatus.UNVERIFIED
        return cls(total_stages=total, verified_stages=verified, verification_status=status)


@dataclass(frozen=True)
class Journey:
    identifier: str
    resolved_as: str
    stages: Tuple[Stage, ...]
    summary: JourneySummary
    batches: Tuple[BatchSummary, ...] = ()
    product: Optional[ProductSummary] = None
    missing_batch_ids: Tuple[str, ...] = ()

    def to_dict(self):
        def _summary(obj):
            data = asdict(obj)
            for key, value in data.items():
                if isinstance(value, datetime):
                    data[key] = format_timestamp(value)
            return data

        return {
            'identifier': self.identifier,
            'resolved_as': self.resolved_as,
            'product': _summary(self.product) if self.product else None,
            'batches': [_summary(batch) for batch in self.batches],
            'missing_batch_ids': list(self.missing_batch_ids),
            'stages': [stage.to_dict() for stage in self.stages],
            'summary': asdict(self.summary),
        }

"""
Query surface over the relational store consumed by the ledger and the
provenance resolver. Views and workflow services keep using the ORM directly;
the core goes through ``EntityStore`` so it never depends on a workflow screen.
"""
import uuid

from django.core.exceptions import ValidationError

from blockchain.models import Block, TransactionType
from blockchain.utils import is_batch_code

from .models import (
    Batch, BatchCollection, CollectionEvent, Handoff, ProcessingStep, Product, QualityTest,
)

ENTITY_MODELS = {
    TransactionType.COLLECTION_RECORDED: CollectionEvent,
    TransactionType.BATCH_CREATED: Batch,
    TransactionType.BATCH_SENT_TO_LAB: Batch,
    TransactionType.QUALITY_TEST: QualityTest,
    TransactionType.PROCESSING_STEP: ProcessingStep,
    TransactionType.CUSTODY_TRANSFERRED: Handoff,
}


def _valid_uuids(values):
    valid = []
    for value in values:
        try:
            valid.append(uuid.UUID(str(value)))
        except (TypeError, ValueError):
            continue
    return valid


class EntityStore:

    # --- Ledger blocks ---

    def get_latest_block(self):
        return Block.objects.order_by('-block_number').first()

    def insert_block(self, **fields):
        return Block.objects.create(**fields)

    def iter_blocks(self, chunk_size=500):
        return Block.objects.order_by('block_number').iterator(chunk_size=chunk_size)

    def get_blocks_for_entity(self, entity_id):
        return list(Block.objects.filter(entity_id=str(entity_id)).order_by('block_number'))

    def get_blocks_for_entities(self, entity_ids, transaction_types=None):
        queryset = Block.objects.filter(entity_id__in=[str(e) for e in entity_ids])
        if transaction_types:
            queryset = queryset.filter(transaction_type__in=list(transaction_types))
        return list(queryset.order_by('block_number'))

    def get_blocks_by_numbers(self, block_numbers):
        return Block.objects.in_bulk(list(block_numbers), field_name='block_number')

    # --- Domain entities ---

    def entity_model_for(self, transaction_type):
        return ENTITY_MODELS[TransactionType(transaction_type)]

    def entity_exists(self, transaction_type, entity_id):
        model = self.entity_model_for(transaction_type)
        try:
            return model.objects.filter(pk=entity_id).exists()
        except (ValidationError, ValueError):
            return False

    def get_product_by_code(self, code):
        return Product.objects.select_related('manufacturer').filter(qr_code=code).first()

    def get_batch_by_code(self, code):
        """Batch by its human ``BATCH_<millis>`` id or by its QR code."""
        lookup = 'batch_id' if is_batch_code(code) else 'qr_code'
        return Batch.objects.select_related('herb', 'aggregator').filter(**{lookup: code}).first()

    def get_batches_by_ids(self, batch_ids):
        ids = _valid_uuids(batch_ids)
        return list(Batch.objects.select_related('herb', 'aggregator').filter(pk__in=ids).order_by('creation_timestamp'))

    def get_batch_collections_by_batch_ids(self, batch_ids):
        return list(
            BatchCollection.objects.filter(batch_id__in=batch_ids).select_related(
                'batch',
                'collection_event',
                'collection_event__herb',
                'collection_event__collector',
                'collection_event__collector__profile',
            )
        )

    def get_quality_tests_by_batch_ids(self, batch_ids):
        return list(QualityTest.objects.filter(batch_id__in=batch_ids).select_related('batch', 'lab'))

    def get_processing_steps_by_batch_ids(self, batch_ids):
        return list(ProcessingStep.objects.filter(batch_id__in=batch_ids).select_related('batch', 'processor'))


# Shared instance
entity_store = EntityStore()

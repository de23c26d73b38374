import logging

from blockchain.exceptions import NotFoundError
from blockchain.services import ChainVerifier
from blockchain.utils import compute_block_hash, is_batch_code, is_qr_code
from supply.store import entity_store

from .types import (
    BatchSummary, CollectionMetadata, Journey, JourneySummary, PartialJoinFailure, ProcessingMetadata,
    ProductSummary, QualityTestMetadata, Stage, StageType,
)

logger = logging.getLogger(__name__)


def _float(value):
    return float(value) if value is not None else None


def _str(value):
    return str(value) if value is not None else None


class ProvenanceResolver:
    """
    Resolves a public identifier (Product QR, Batch QR or Batch human id)
    into the ordered journey of every recorded stage behind it.

    Stage integrity comes from the ledger: the block documenting the stage's
    record must re-hash to its stored hash and link to its predecessor.
    """

    def __init__(self, store=None):
        self.store = store or entity_store

    def resolve(self, identifier):
        identifier = (identifier or '').strip()
        if not identifier:
            raise NotFoundError(identifier)

        batch_code = is_batch_code(identifier)
        if not (batch_code or is_qr_code(identifier)):
            logger.info("Identifier %s is neither a QR code nor a batch id", identifier)
            raise NotFoundError(identifier)

        # Products only carry QR codes
        product = None if batch_code else self.store.get_product_by_code(identifier)
        missing_batch_ids = ()
        if product is not None:
            resolved_as = 'product'
            requested = [str(batch_id) for batch_id in product.batch_ids or []]
            batches = self.store.get_batches_by_ids(requested)
            found = {str(batch.pk) for batch in batches}
            missing_batch_ids = tuple(batch_id for batch_id in requested if batch_id not in found)
            if missing_batch_ids:
                logger.warning("Product %s references missing batches: %s", product.qr_code, ', '.join(missing_batch_ids))
        else:
            batch = self.store.get_batch_by_code(identifier)
            if batch is None:
                logger.info("Identifier %s did not match a product or batch", identifier)
                raise NotFoundError(identifier)
            resolved_as = 'batch'
            batches = [batch]

        stages = self._collect_stages(batches)
        stages.sort(key=Stage.sort_key)

        return Journey(
            identifier=identifier,
            resolved_as=resolved_as,
            stages=tuple(stages),
            summary=JourneySummary.from_stages(stages),
            batches=tuple(self._batch_summary(batch) for batch in batches),
            product=self._product_summary(product) if product is not None else None,
            missing_batch_ids=missing_batch_ids,
        )

    # ------------------------------------------------------------------
    # Joins
    # ------------------------------------------------------------------

    def _collect_stages(self, batches):
        batch_ids = [batch.pk for batch in batches]
        if not batch_ids:
            return []

        drafts = []
        for link in self.store.get_batch_collections_by_batch_ids(batch_ids):
            drafts.append(self._collection_draft(link))
        for test in self.store.get_quality_tests_by_batch_ids(batch_ids):
            drafts.append(self._quality_test_draft(test))
        for step in self.store.get_processing_steps_by_batch_ids(batch_ids):
            drafts.append(self._processing_draft(step))

        integrity = LedgerIntegrity(self.store)
        integrity.load([(draft['stage_type'], draft['entity_id']) for draft in drafts if draft['entity_id']])

        stages = []
        for draft in drafts:
            block, data_integrity, on_chain_verified = integrity.check(draft['stage_type'], draft['entity_id'])
            if draft['issues']:
                logger.warning(
                    "Partial join for %s stage %s: %s",
                    draft['stage_type'].label, draft['record_id'],
                    ', '.join(issue.relation for issue in draft['issues']),
                )
                data_integrity = on_chain_verified = False
            stages.append(Stage(
                stage_type=draft['stage_type'],
                metadata=draft['metadata'],
                timestamp=draft['timestamp'],
                data_integrity=data_integrity,
                on_chain_verified=on_chain_verified,
                record_id=draft['record_id'],
                batch_id=draft['batch_id'],
                entity_id=draft['entity_id'],
                block_number=block.block_number if block else None,
                block_hash=block.block_hash if block else None,
                issues=tuple(draft['issues']),
            ))
        return stages

    def _collection_draft(self, link):
        record_id = str(link.pk)
        event = link.collection_event
        issues = []
        if event is None:
            issues.append(PartialJoinFailure('collection_event', record_id))
            metadata = CollectionMetadata(contribution_percentage=_float(link.contribution_percentage))
            return self._draft(StageType.COLLECTION, metadata, link.created_at, record_id, link.batch, None, issues)

        collector = event.collector
        profile = collector.profile if collector else None
        herb = event.herb
        if collector is None or profile is None:
            issues.append(PartialJoinFailure('collector', str(event.pk)))
        if herb is None:
            issues.append(PartialJoinFailure('herb', str(event.pk)))

        metadata = CollectionMetadata(
            collection_event_id=str(event.pk),
            herb_name=herb.local_name if herb else None,
            botanical_name=herb.botanical_name if herb else None,
            plant_part=event.plant_part,
            quantity_kg=_float(event.quantity_kg),
            latitude=event.latitude,
            longitude=event.longitude,
            initial_condition=event.initial_condition,
            collector_id=_str(collector.pk) if collector else None,
            collector_name=profile.full_name if profile else None,
            contribution_percentage=_float(link.contribution_percentage),
        )
        return self._draft(StageType.COLLECTION, metadata, event.collection_timestamp, record_id, link.batch, str(event.pk), issues)

    def _quality_test_draft(self, test):
        issues = []
        if test.lab is None:
            issues.append(PartialJoinFailure('lab', str(test.pk)))
        metadata = QualityTestMetadata(
            quality_test_id=str(test.pk),
            test_type=test.test_type,
            sample_id=test.sample_id,
            test_status=test.test_status,
            results=test.test_results or {},
            lab_id=_str(test.lab_id),
            lab_name=test.lab.full_name if test.lab else None,
            certificate_url=test.certificate_url,
        )
        return self._draft(StageType.QUALITY_TEST, metadata, test.test_date, str(test.pk), test.batch, str(test.pk), issues)

    def _processing_draft(self, step):
        issues = []
        if step.processor is None:
            issues.append(PartialJoinFailure('processor', str(step.pk)))
        metadata = ProcessingMetadata(
            processing_step_id=str(step.pk),
            process_type=step.process_type,
            input_quantity_kg=_float(step.input_quantity_kg),
            output_quantity_kg=_float(step.output_quantity_kg),
            parameters=step.process_parameters or {},
            processor_id=_str(step.processor_id),
            processor_name=step.processor.full_name if step.processor else None,
        )
        return self._draft(StageType.PROCESSING, metadata, step.process_date, str(step.pk), step.batch, str(step.pk), issues)

    @staticmethod
    def _draft(stage_type, metadata, timestamp, record_id, batch, entity_id, issues):
        return {
            'stage_type': stage_type,
            'metadata': metadata,
            'timestamp': timestamp,
            'record_id': record_id,
            'batch_id': batch.batch_id if batch else None,
            'entity_id': entity_id,
            'issues': issues,
        }

    # ------------------------------------------------------------------
    # Summaries
    # ------------------------------------------------------------------

    @staticmethod
    def _batch_summary(batch):
        return BatchSummary(
            id=str(batch.pk),
            batch_id=batch.batch_id,
            qr_code=batch.qr_code,
            herb_name=batch.herb.local_name if batch.herb else None,
            aggregator_name=batch.aggregator.full_name if batch.aggregator else None,
            total_quantity_kg=float(batch.total_quantity_kg),
            batch_status=batch.batch_status,
            creation_timestamp=batch.creation_timestamp,
        )

    @staticmethod
    def _product_summary(product):
        return ProductSummary(
            id=str(product.pk),
            qr_code=product.qr_code,
            product_name=product.product_name,
            product_type=product.product_type,
            manufacturer_name=product.manufacturer.full_name if product.manufacturer else None,
            manufacturing_date=product.manufacturing_date,
        )


class LedgerIntegrity:
    """Bulk-loads the blocks behind a set of stages and checks them."""

    def __init__(self, store):
        self.store = store
        self._blocks = {}
        self._by_number = {}

    def load(self, keys):
        entity_ids = {entity_id for _, entity_id in keys}
        types = {stage_type.transaction_type for stage_type, _ in keys}
        if not entity_ids:
            return
        for block in self.store.get_blocks_for_entities(entity_ids, types):
            # Blocks arrive ordered by number; the first one documenting the record wins
            self._blocks.setdefault((block.transaction_type, block.entity_id), block)

        predecessor_numbers = {block.block_number - 1 for block in self._blocks.values() if block.block_number > 1}
        if predecessor_numbers:
            self._by_number = self.store.get_blocks_by_numbers(predecessor_numbers)

    def check(self, stage_type, entity_id):
        """Return ``(block, data_integrity, on_chain_verified)`` for one stage."""
        if entity_id is None:
            return None, False, False
        block = self._blocks.get((stage_type.transaction_type.value, entity_id))
        if block is None:
            return None, False, False

        data_integrity = compute_block_hash(block) == block.block_hash
        if not data_integrity:
            logger.warning("Block #%s for %s no longer matches its hash", block.block_number, entity_id)
            return block, False, False

        predecessor = self._by_number.get(block.block_number - 1) if block.block_number > 1 else None
        linked = not ChainVerifier.check_link(block, predecessor)
        return block, True, linked


# Shared instance
provenance_resolver = ProvenanceResolver()


def resolve_identifier(identifier):
    return provenance_resolver.resolve(identifier)

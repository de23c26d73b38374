"""
Workflow actions of the supply chain. Each recorded action writes its entity
and the ledger block documenting it in one atomic transaction; products are
labelled off-ledger.
"""
import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from blockchain.exceptions import InvalidBatchComposition
from blockchain.payloads import (
    BatchCreated, BatchSentToLab, CollectionRecorded, CustodyTransferred, ProcessingStepRecorded,
    QualityTestRecorded,
)
from blockchain.models import TransactionType
from blockchain.services import append_block
from blockchain.utils import generate_batch_code, generate_qr_code, now_millis

from .models import (
    Batch, BatchCollection, BatchStatus, CollectionEvent, Handoff, ProcessingStep, Product, QualityTest,
)

logger = logging.getLogger(__name__)

HUNDRED = Decimal('100')


def record_collection(collector, herb, plant_part, quantity_kg, latitude=0, longitude=0,
                      initial_condition='fresh', storage_conditions=None, environmental_data=None,
                      compliance_validated=False, collection_timestamp=None):
    collection_timestamp = collection_timestamp or timezone.now()
    with transaction.atomic():
        event = CollectionEvent.objects.create(
            collector=collector,
            herb=herb,
            plant_part=plant_part,
            quantity_kg=Decimal(str(quantity_kg)),
            latitude=latitude,
            longitude=longitude,
            initial_condition=initial_condition,
            harvest_season=collection_timestamp.strftime('%Y-%m'),
            collection_timestamp=collection_timestamp,
            storage_conditions=storage_conditions or None,
            environmental_data=environmental_data,
            compliance_validated=compliance_validated,
        )
        append_block(TransactionType.COLLECTION_RECORDED, CollectionRecorded(
            collection_event_id=str(event.pk),
            herb_id=str(herb.pk),
            quantity_kg=float(event.quantity_kg),
            collector_id=str(collector.pk) if collector else None,
            latitude=latitude,
            longitude=longitude,
        ), event.pk)
    logger.info("Collection %s recorded (%s kg of %s)", event.pk, event.quantity_kg, herb.local_name)
    return event


def contribution_percentages(collection_events):
    """Share of each collection event in the batch total, by quantity."""
    total = sum((event.quantity_kg for event in collection_events), Decimal('0'))
    if total <= 0:
        raise InvalidBatchComposition("selected collections have no quantity")
    return total, [(event, (event.quantity_kg / total * HUNDRED).quantize(Decimal('0.001'))) for event in collection_events]


def create_batch(aggregator, herb, collection_events, quality_notes=None, storage_location=None):
    """
    Aggregate collection events of one herb into a new batch with a
    ``BATCH_<millis>`` id and a QR code.
    """
    collection_events = list(collection_events)
    if not collection_events:
        raise InvalidBatchComposition("a batch needs at least one collection")
    foreign = [str(event.pk) for event in collection_events if event.herb_id != herb.pk]
    if foreign:
        raise InvalidBatchComposition(f"collections {', '.join(foreign)} are not {herb.local_name}")

    total, shares = contribution_percentages(collection_events)

    with transaction.atomic():
        millis = now_millis()
        # Batch ids are unique; two batches in the same millisecond take the next one
        while Batch.objects.filter(batch_id=generate_batch_code(millis)).exists():
            millis += 1
        batch_code = generate_batch_code(millis)
        batch = Batch.objects.create(
            batch_id=batch_code,
            qr_code=generate_qr_code({'type': 'batch', 'batchId': batch_code, 'herbId': str(herb.pk)}, millis),
            herb=herb,
            aggregator=aggregator,
            total_quantity_kg=total,
            quality_notes=quality_notes,
            storage_location=storage_location,
        )
        BatchCollection.objects.bulk_create([
            BatchCollection(batch=batch, collection_event=event, contribution_percentage=share)
            for event, share in shares
        ])
        append_block(TransactionType.BATCH_CREATED, BatchCreated(
            batch_id=batch_code,
            herb_id=str(herb.pk),
            total_quantity_kg=float(total),
            collections=len(collection_events),
            aggregator_id=str(aggregator.pk) if aggregator else None,
        ), batch.pk)
    logger.info("Batch %s created from %s collections (%s kg)", batch_code, len(collection_events), total)
    return batch


def send_batch_to_lab(batch):
    with transaction.atomic():
        batch.advance_status(BatchStatus.LAB_TESTING)
        append_block(TransactionType.BATCH_SENT_TO_LAB, BatchSentToLab(batch_id=batch.batch_id), batch.pk)
    return batch


def record_quality_test(batch, lab, test_type, sample_id, test_results=None, test_parameters=None,
                        test_status='pending', certificate_url=None, test_date=None, verdict=None):
    """
    Record a lab result. ``verdict`` ('approved' or 'rejected') also moves the
    batch out of lab testing.
    """
    with transaction.atomic():
        test = QualityTest.objects.create(
            batch=batch,
            lab=lab,
            sample_id=sample_id,
            test_type=test_type,
            test_parameters=test_parameters or {},
            test_results=test_results or {},
            test_status=test_status,
            test_date=test_date or timezone.now(),
            certificate_url=certificate_url,
        )
        if verdict:
            batch.advance_status(verdict)
        append_block(TransactionType.QUALITY_TEST, QualityTestRecorded(
            quality_test_id=str(test.pk),
            batch_id=batch.batch_id,
            test_type=test_type,
            test_status=test_status,
            lab_id=str(lab.pk) if lab else None,
        ), test.pk)
    return test


def record_processing_step(batch, processor, process_type, input_quantity_kg, output_quantity_kg=None,
                           process_parameters=None, process_conditions=None, process_date=None):
    with transaction.atomic():
        step = ProcessingStep.objects.create(
            batch=batch,
            processor=processor,
            process_type=process_type,
            process_parameters=process_parameters or {},
            process_conditions=process_conditions,
            input_quantity_kg=Decimal(str(input_quantity_kg)),
            output_quantity_kg=Decimal(str(output_quantity_kg)) if output_quantity_kg is not None else None,
            process_date=process_date or timezone.now(),
        )
        append_block(TransactionType.PROCESSING_STEP, ProcessingStepRecorded(
            processing_step_id=str(step.pk),
            batch_id=batch.batch_id,
            process_type=process_type,
            input_quantity_kg=float(step.input_quantity_kg),
            output_quantity_kg=float(step.output_quantity_kg) if step.output_quantity_kg is not None else None,
            processor_id=str(processor.pk) if processor else None,
        ), step.pk)
    return step


def create_product(manufacturer, batches, product_name, product_type, final_quantity,
                   unit_type='units', formulation_details=None, expiry_date=None):
    """Label finished goods with a QR code. No block: the ledger has no product transaction."""
    batches = list(batches)
    if not batches:
        raise InvalidBatchComposition("a product needs at least one batch")
    batch_ids = [str(batch.pk) for batch in batches]
    product = Product.objects.create(
        qr_code=generate_qr_code({'type': 'product', 'name': product_name, 'batches': batch_ids}),
        product_name=product_name,
        product_type=product_type,
        manufacturer=manufacturer,
        batch_ids=batch_ids,
        final_quantity=Decimal(str(final_quantity)),
        unit_type=unit_type,
        formulation_details=formulation_details or {},
        expiry_date=expiry_date,
    )
    logger.info("Product %s created from batches %s", product.qr_code, ', '.join(batch_ids))
    return product


def record_handoff(from_profile, to_profile, item_id, item_type, handoff_type, quantity=None, conditions=None):
    """Custody transfer of a collection, batch or product between two profiles."""
    with transaction.atomic():
        previous = (
            Handoff.objects.filter(item_id=str(item_id), item_type=item_type)
            .order_by('-handoff_timestamp')
            .first()
        )
        custody = list(previous.chain_of_custody) if previous else [str(from_profile.pk)]
        custody.append(str(to_profile.pk))
        handoff = Handoff.objects.create(
            from_entity=from_profile,
            to_entity=to_profile,
            item_id=str(item_id),
            item_type=item_type,
            handoff_type=handoff_type,
            quantity=Decimal(str(quantity)) if quantity is not None else None,
            conditions=conditions,
            chain_of_custody=custody,
        )
        append_block(TransactionType.CUSTODY_TRANSFERRED, CustodyTransferred(
            handoff_id=str(handoff.pk),
            item_id=str(item_id),
            item_type=item_type,
            from_entity_id=str(from_profile.pk),
            to_entity_id=str(to_profile.pk),
            quantity=float(quantity) if quantity is not None else None,
        ), handoff.pk)
    return handoff

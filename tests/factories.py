"""Small builders for supply-chain records used across the test suite."""
import itertools
from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal

from supply.models import (
    Batch, BatchCollection, CollectionEvent, Collector, Herb, ProcessingStep, Product, Profile, QualityTest,
)

_counter = itertools.count(1)

BASE_TIME = datetime(2025, 3, 1, 8, 0, tzinfo=dt_timezone.utc)


def at(hours):
    return BASE_TIME + timedelta(hours=hours)


def make_profile(role='collector', full_name=None):
    n = next(_counter)
    return Profile.objects.create(
        full_name=full_name or f"{role.title()} {n}",
        email=f"{role}{n}@example.com",
        role=role,
    )


def make_herb(local_name='Ashwagandha', botanical_name='Withania somnifera'):
    return Herb.objects.create(local_name=local_name, botanical_name=botanical_name)


def make_collector(full_name=None):
    return Collector.objects.create(profile=make_profile('collector', full_name))


def make_collection(herb, collector=None, quantity_kg='10.00', collected_at=None):
    return CollectionEvent.objects.create(
        collector=collector or make_collector(),
        herb=herb,
        plant_part='root',
        quantity_kg=Decimal(quantity_kg),
        latitude=26.9124,
        longitude=75.7873,
        collection_timestamp=collected_at or at(0),
    )


def make_batch(herb, events=(), aggregator=None, qr_code=None):
    n = next(_counter)
    events = list(events)
    total = sum((e.quantity_kg for e in events), Decimal('0')) or Decimal('1')
    batch = Batch.objects.create(
        batch_id=f"BATCH_{1700000000000 + n}",
        qr_code=qr_code or f"QR_{n:08x}_{1700000000000 + n}",
        herb=herb,
        aggregator=aggregator or make_profile('aggregator'),
        total_quantity_kg=total,
    )
    for event in events:
        BatchCollection.objects.create(
            batch=batch,
            collection_event=event,
            contribution_percentage=(event.quantity_kg / total * 100).quantize(Decimal('0.001')),
        )
    return batch


def make_quality_test(batch, lab=None, tested_at=None, test_type='heavy_metals'):
    return QualityTest.objects.create(
        batch=batch,
        lab=lab or make_profile('lab'),
        sample_id=f"S-{next(_counter)}",
        test_type=test_type,
        test_results={'lead_ppm': 0.4},
        test_status='passed',
        test_date=tested_at or at(0),
    )


def make_processing_step(batch, processor=None, processed_at=None):
    return ProcessingStep.objects.create(
        batch=batch,
        processor=processor or make_profile('factory'),
        process_type='drying',
        process_parameters={'temperature_c': 45},
        input_quantity_kg=Decimal('10.00'),
        output_quantity_kg=Decimal('8.50'),
        process_date=processed_at or at(0),
    )


def make_product(batch_ids, qr_code=None, manufacturer=None):
    n = next(_counter)
    return Product.objects.create(
        qr_code=qr_code or f"QR_ff{n:06x}_{1700000000000 + n}",
        product_name='Ashwagandha Churna',
        product_type='powder',
        manufacturer=manufacturer or make_profile('factory'),
        batch_ids=[str(b) for b in batch_ids],
        final_quantity=Decimal('100'),
    )

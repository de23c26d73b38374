from unittest import mock

from django.test import TestCase

from blockchain.exceptions import NotFoundError
from blockchain.models import Block, TransactionType
from blockchain.services import append_block, verify_chain
from provenance.services import ProvenanceResolver, resolve_identifier
from provenance.types import StageType, VerificationStatus
from supply.store import EntityStore

from .factories import (
    at, make_batch, make_collection, make_herb, make_processing_step, make_product, make_quality_test,
)


class EndToEndScenarioTests(TestCase):
    def test_collection_then_batch_resolves_to_one_verified_stage(self):
        herb = make_herb()
        collection = make_collection(herb, collected_at=at(1))
        batch = make_batch(herb, [collection])

        first = append_block(TransactionType.COLLECTION_RECORDED, {'quantity_kg': 10.0}, collection.pk)
        second = append_block(TransactionType.BATCH_CREATED, {'batch_id': batch.batch_id}, batch.pk)

        self.assertEqual((first.block_number, first.previous_hash), (1, None))
        self.assertEqual((second.block_number, second.previous_hash), (2, first.block_hash))
        self.assertTrue(verify_chain().is_valid)

        journey = resolve_identifier(batch.qr_code)

        self.assertEqual(journey.resolved_as, 'batch')
        self.assertEqual(len(journey.stages), 1)
        stage = journey.stages[0]
        self.assertEqual(stage.stage_type, StageType.COLLECTION)
        self.assertTrue(stage.data_integrity)
        self.assertTrue(stage.on_chain_verified)
        self.assertEqual(stage.block_number, 1)
        self.assertEqual(journey.summary.verification_status, VerificationStatus.VERIFIED)

    def test_unknown_code_is_not_found(self):
        with self.assertRaises(NotFoundError) as ctx:
            resolve_identifier('unknown-code')
        self.assertEqual(ctx.exception.identifier, 'unknown-code')

    def test_blank_code_is_not_found(self):
        with self.assertRaises(NotFoundError):
            resolve_identifier('   ')


class ResolverTests(TestCase):
    def setUp(self):
        self.herb = make_herb()
        self.c1 = make_collection(self.herb, collected_at=at(1))
        self.c2 = make_collection(self.herb, collected_at=at(2))
        self.batch = make_batch(self.herb, [self.c2, self.c1])
        self.test = make_quality_test(self.batch, tested_at=at(3))

    def _record_all(self):
        # Ledger order deliberately differs from event order
        append_block(TransactionType.QUALITY_TEST, {}, self.test.pk)
        append_block(TransactionType.COLLECTION_RECORDED, {}, self.c2.pk)
        append_block(TransactionType.COLLECTION_RECORDED, {}, self.c1.pk)

    def test_stages_are_ordered_by_event_time(self):
        self._record_all()

        journey = resolve_identifier(self.batch.qr_code)

        self.assertEqual(
            [(s.stage_type, s.timestamp) for s in journey.stages],
            [(StageType.COLLECTION, at(1)), (StageType.COLLECTION, at(2)), (StageType.QUALITY_TEST, at(3))],
        )
        self.assertEqual(journey.stages[0].metadata.collection_event_id, str(self.c1.pk))
        self.assertEqual(journey.summary.total_stages, 3)
        self.assertEqual(journey.summary.verification_status, VerificationStatus.VERIFIED)

    def test_equal_timestamps_fall_back_to_block_number_then_type(self):
        step = make_processing_step(self.batch, processed_at=at(3))
        append_block(TransactionType.PROCESSING_STEP, {}, step.pk)
        append_block(TransactionType.QUALITY_TEST, {}, self.test.pk)

        stages = resolve_identifier(self.batch.qr_code).stages
        tail = [s.stage_type for s in stages if s.timestamp == at(3)]

        # Processing was recorded first on the ledger
        self.assertEqual(tail, [StageType.PROCESSING, StageType.QUALITY_TEST])

    def test_stage_without_block_is_unverified_and_sorted_after_ties(self):
        append_block(TransactionType.COLLECTION_RECORDED, {}, self.c1.pk)
        twin = make_collection(self.herb, collected_at=at(1))
        batch = make_batch(self.herb, [self.c1, twin])

        journey = resolve_identifier(batch.batch_id)

        self.assertEqual([s.entity_id for s in journey.stages], [str(self.c1.pk), str(twin.pk)])
        self.assertFalse(journey.stages[1].data_integrity)
        self.assertIsNone(journey.stages[1].block_number)
        self.assertEqual(journey.summary.verification_status, VerificationStatus.PARTIALLY_VERIFIED)

    def test_batch_resolves_by_human_id(self):
        self._record_all()
        journey = resolve_identifier(self.batch.batch_id)
        self.assertEqual(journey.batches[0].batch_id, self.batch.batch_id)

    def test_batch_id_goes_straight_to_batches(self):
        store = EntityStore()
        with mock.patch.object(store, 'get_product_by_code') as product_lookup:
            journey = ProvenanceResolver(store).resolve(self.batch.batch_id)

        product_lookup.assert_not_called()
        self.assertEqual(journey.resolved_as, 'batch')

    def test_unrecognised_identifier_is_rejected_without_queries(self):
        with self.assertNumQueries(0), self.assertRaises(NotFoundError):
            resolve_identifier('LOT-42')

    def test_nothing_recorded_is_unverified(self):
        journey = resolve_identifier(self.batch.qr_code)
        self.assertEqual(journey.summary.verified_stages, 0)
        self.assertEqual(journey.summary.verification_status, VerificationStatus.UNVERIFIED)

    def test_resolution_is_idempotent(self):
        self._record_all()
        self.assertEqual(resolve_identifier(self.batch.qr_code), resolve_identifier(self.batch.qr_code))
        self.assertEqual(
            resolve_identifier(self.batch.qr_code).to_dict(),
            resolve_identifier(self.batch.qr_code).to_dict(),
        )

    def test_tampered_block_data_fails_integrity(self):
        self._record_all()
        Block.objects.filter(entity_id=str(self.c1.pk)).update(transaction_data={'quantity_kg': 999})

        stages = {s.entity_id: s for s in resolve_identifier(self.batch.qr_code).stages}

        self.assertFalse(stages[str(self.c1.pk)].data_integrity)
        self.assertFalse(stages[str(self.c1.pk)].on_chain_verified)
        self.assertTrue(stages[str(self.c2.pk)].on_chain_verified)

    def test_broken_link_keeps_data_integrity_but_not_chain_verification(self):
        self._record_all()
        block = Block.objects.get(entity_id=str(self.c2.pk))
        # Rewrite the predecessor so the stored previous_hash no longer matches it
        Block.objects.filter(block_number=block.block_number - 1).update(block_hash='f' * 64)

        stages = {s.entity_id: s for s in resolve_identifier(self.batch.qr_code).stages}
        stage = stages[str(self.c2.pk)]

        self.assertTrue(stage.data_integrity)
        self.assertFalse(stage.on_chain_verified)

    def test_deleted_collection_event_degrades_one_stage(self):
        self._record_all()
        self.c2.delete()

        journey = resolve_identifier(self.batch.qr_code)

        self.assertEqual(journey.summary.total_stages, 3)
        broken = [s for s in journey.stages if s.issues]
        self.assertEqual(len(broken), 1)
        self.assertEqual(broken[0].issues[0].relation, 'collection_event')
        self.assertFalse(broken[0].data_integrity)
        self.assertEqual(journey.summary.verification_status, VerificationStatus.PARTIALLY_VERIFIED)

    def test_deleted_lab_profile_degrades_quality_test_stage(self):
        self._record_all()
        self.test.lab.delete()

        stages = resolve_identifier(self.batch.qr_code).stages
        quality = [s for s in stages if s.stage_type == StageType.QUALITY_TEST][0]

        self.assertFalse(quality.data_integrity)
        self.assertEqual([i.relation for i in quality.issues], ['lab'])
        self.assertIsNone(quality.metadata.lab_name)


class ProductResolutionTests(TestCase):
    def setUp(self):
        herb = make_herb()
        self.c1 = make_collection(herb, collected_at=at(1))
        self.c2 = make_collection(herb, collected_at=at(5))
        self.batch_a = make_batch(herb, [self.c1])
        self.batch_b = make_batch(herb, [self.c2])
        self.step = make_processing_step(self.batch_a, processed_at=at(8))
        append_block(TransactionType.COLLECTION_RECORDED, {}, self.c1.pk)
        append_block(TransactionType.COLLECTION_RECORDED, {}, self.c2.pk)
        append_block(TransactionType.PROCESSING_STEP, {}, self.step.pk)

    def test_product_expands_to_all_of_its_batches(self):
        product = make_product([self.batch_a.pk, self.batch_b.pk])

        journey = resolve_identifier(product.qr_code)

        self.assertEqual(journey.resolved_as, 'product')
        self.assertEqual(journey.product.qr_code, product.qr_code)
        self.assertEqual({b.batch_id for b in journey.batches}, {self.batch_a.batch_id, self.batch_b.batch_id})
        self.assertEqual(
            [s.stage_type for s in journey.stages],
            [StageType.COLLECTION, StageType.COLLECTION, StageType.PROCESSING],
        )
        self.assertEqual(journey.summary.verification_status, VerificationStatus.VERIFIED)

    def test_product_code_wins_over_batch_code(self):
        product = make_product([self.batch_b.pk], qr_code=self.batch_a.qr_code)

        journey = resolve_identifier(self.batch_a.qr_code)

        self.assertEqual(journey.resolved_as, 'product')
        self.assertEqual(journey.product.id, str(product.pk))
        self.assertEqual([b.batch_id for b in journey.batches], [self.batch_b.batch_id])

    def test_missing_batches_are_reported(self):
        self.batch_b.delete()
        product = make_product([self.batch_a.pk, '3f1a7c2e-0000-4000-8000-000000000000', 'garbage'])

        journey = resolve_identifier(product.qr_code)

        self.assertEqual([b.batch_id for b in journey.batches], [self.batch_a.batch_id])
        self.assertEqual(
            journey.missing_batch_ids,
            ('3f1a7c2e-0000-4000-8000-000000000000', 'garbage'),
        )

    def test_product_without_batches_has_empty_unverified_journey(self):
        product = make_product([])

        journey = ProvenanceResolver().resolve(product.qr_code)

        self.assertEqual(journey.stages, ())
        self.assertEqual(journey.summary.verification_status, VerificationStatus.UNVERIFIED)

from unittest import mock

from django.db import DatabaseError
from django.test import TestCase

from blockchain.models import Block, TransactionType
from blockchain.services import (
    HASH_MISMATCH, SCAN_FAILED, SEQUENCE_GAP, ChainVerifier, append_block, verify_chain,
)
from supply.store import EntityStore

from .factories import make_batch, make_collection, make_herb


class ChainVerifierTests(TestCase):
    def setUp(self):
        herb = make_herb()
        self.collection = make_collection(herb)
        self.batch = make_batch(herb, [self.collection])

    def _build_chain(self, length):
        append_block(TransactionType.COLLECTION_RECORDED, {'n': 1}, self.collection.pk)
        for n in range(2, length + 1):
            append_block(TransactionType.BATCH_SENT_TO_LAB, {'n': n}, self.batch.pk)

    def test_empty_chain_is_valid(self):
        report = verify_chain()
        self.assertTrue(report.is_valid)
        self.assertEqual(report.blocks_checked, 0)

    def test_untouched_chain_is_valid(self):
        self._build_chain(5)

        report = verify_chain()

        self.assertTrue(report.is_valid)
        self.assertEqual(report.violations, [])
        self.assertEqual(report.blocks_checked, 5)

    def test_corrupted_previous_hash_is_reported_only_where_it_breaks(self):
        self._build_chain(5)
        Block.objects.filter(block_number=3).update(previous_hash='0' * 64)

        report = verify_chain()

        self.assertFalse(report.is_valid)
        self.assertEqual([(v.block_number, v.kind) for v in report.violations], [(3, HASH_MISMATCH)])

    def test_every_violation_is_reported(self):
        self._build_chain(6)
        Block.objects.filter(block_number=2).update(previous_hash='bad')
        Block.objects.filter(block_number=6).update(block_number=9)

        report = verify_chain()

        self.assertEqual(
            [(v.block_number, v.kind) for v in report.violations],
            [(2, HASH_MISMATCH), (9, SEQUENCE_GAP)],
        )

    def test_missing_block_breaks_hash_and_sequence(self):
        self._build_chain(4)
        Block.objects.filter(block_number=3).delete()

        report = verify_chain()

        self.assertEqual(
            sorted((v.block_number, v.kind) for v in report.violations),
            [(4, HASH_MISMATCH), (4, SEQUENCE_GAP)],
        )

    def test_genesis_must_start_the_chain(self):
        self._build_chain(2)
        Block.objects.filter(block_number=1).update(previous_hash='abc')

        report = verify_chain()

        self.assertEqual([(v.block_number, v.kind) for v in report.violations], [(1, HASH_MISMATCH)])

    def test_verification_is_idempotent(self):
        self._build_chain(3)
        Block.objects.filter(block_number=2).update(previous_hash='bad')

        self.assertEqual(verify_chain(), verify_chain())

    def test_scan_failure_is_reported_not_raised(self):
        store = EntityStore()
        with mock.patch.object(store, 'iter_blocks', side_effect=DatabaseError('connection lost')):
            report = ChainVerifier(store).verify()

        self.assertFalse(report.is_valid)
        self.assertEqual(report.violations[0].kind, SCAN_FAILED)
        self.assertIsNone(report.violations[0].block_number)

    def test_report_serialises(self):
        self._build_chain(2)
        data = verify_chain().to_dict()
        self.assertEqual(data, {'is_valid': True, 'violations': [], 'blocks_checked': 2})

import json
import unittest
from datetime import datetime, timezone as dt_timezone

from django.test import SimpleTestCase, override_settings

from blockchain.exceptions import UnknownTransactionType
from blockchain.models import TransactionType
from blockchain.payloads import BatchCreated, payload_for, payload_to_data
from blockchain.utils import (
    build_transaction_string, format_timestamp, generate_batch_code, generate_hash, generate_qr_code,
    is_batch_code, is_qr_code, rolling32_hash, truncate_to_millis,
)

TS = datetime(2025, 3, 1, 8, 30, 15, 123456, tzinfo=dt_timezone.utc)


class TransactionStringTests(SimpleTestCase):
    def test_fields_keep_fixed_order(self):
        text = build_transaction_string('BATCH_CREATED', {'b': 1, 'a': 2}, 'entity-1', TS, 'abc', 7)
        self.assertEqual(list(json.loads(text)), ['type', 'data', 'entity', 'timestamp', 'previous', 'block'])

    def test_nested_data_is_key_sorted_and_compact(self):
        text = build_transaction_string('BATCH_CREATED', {'b': 1, 'a': 2}, 'entity-1', TS, None, 1)
        self.assertEqual(
            text,
            '{"type":"BATCH_CREATED","data":{"a":2,"b":1},"entity":"entity-1",'
            '"timestamp":"2025-03-01T08:30:15.123Z","previous":null,"block":1}',
        )

    def test_same_inputs_same_string(self):
        first = build_transaction_string('QualityTest', {'x': [1, 2]}, 'e', TS, 'p', 3)
        second = build_transaction_string('QualityTest', {'x': [1, 2]}, 'e', TS, 'p', 3)
        self.assertEqual(first, second)

    def test_timestamp_format_matches_millisecond_iso(self):
        self.assertEqual(format_timestamp(TS), '2025-03-01T08:30:15.123Z')
        self.assertEqual(truncate_to_millis(TS).microsecond, 123000)


class HashTests(SimpleTestCase):
    def test_sha256_by_default(self):
        self.assertEqual(
            generate_hash('abc'),
            'ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad',
        )

    def test_rolling32_matches_legacy_values(self):
        self.assertEqual(rolling32_hash('a'), '61')
        self.assertEqual(rolling32_hash('ab'), 'c21')
        self.assertEqual(rolling32_hash(''), '0')

    @override_settings(LEDGER_HASH_ALGORITHM='rolling32')
    def test_algorithm_is_configurable(self):
        self.assertEqual(generate_hash('ab'), 'c21')


class IdentifierTests(SimpleTestCase):
    def test_qr_code_shape(self):
        code = generate_qr_code({'type': 'batch', 'batchId': 'BATCH_1'}, millis=1700000000000)
        self.assertTrue(is_qr_code(code))
        self.assertTrue(code.startswith('QR_'))
        self.assertTrue(code.endswith('_1700000000000'))

    def test_batch_code_shape(self):
        self.assertEqual(generate_batch_code(1700000000000), 'BATCH_1700000000000')
        self.assertTrue(is_batch_code('BATCH_1700000000000'))
        self.assertFalse(is_batch_code('BATCH_abc'))

    def test_recognisers_reject_other_values(self):
        self.assertFalse(is_qr_code('unknown-code'))
        self.assertFalse(is_batch_code('QR_ab_12'))
        self.assertFalse(is_qr_code('QR_xyz_12'))


class PayloadTests(unittest.TestCase):
    def test_unknown_type_has_no_payload(self):
        with self.assertRaises(UnknownTransactionType):
            payload_for('HARVEST_EATEN')

    def test_payload_to_data_accepts_dataclass_and_mapping(self):
        payload = BatchCreated(batch_id='BATCH_1', herb_id='h', total_quantity_kg=3.5, collections=2)
        self.assertEqual(payload_to_data(payload)['collections'], 2)
        self.assertEqual(payload_to_data({'k': 'v'}), {'k': 'v'})
        self.assertEqual(payload_to_data(None), {})

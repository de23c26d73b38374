import hashlib
import json
import re
import time
from datetime import timezone as dt_timezone

from django.conf import settings

QR_CODE_RE = re.compile(r'^QR_(?P<digest>[0-9a-f]+)_(?P<millis>\d+)$')
BATCH_CODE_RE = re.compile(r'^BATCH_(?P<millis>\d+)$')

# Fixed field order of the canonical transaction string. Changing it changes every hash.
TRANSACTION_FIELDS = ('type', 'data', 'entity', 'timestamp', 'previous', 'block')


def canonical_json(obj):
    return json.dumps(obj, sort_keys=True, separators=(',', ':'), default=str)


def rolling32_hash(data):
    """
    32-bit rolling hash used by the first ledger deployment.
    Kept only to re-verify chains written with it; not collision resistant.
    """
    value = 0
    encoded = data.encode('utf-16-le', 'surrogatepass')
    for i in range(0, len(encoded), 2):
        code_unit = encoded[i] | (encoded[i + 1] << 8)
        value = ((value << 5) - value + code_unit) & 0xFFFFFFFF
    if value & 0x80000000:
        value -= 0x100000000
    return format(abs(value), 'x')


def generate_hash(data, algorithm=None):
    """Hex digest of ``data`` with the configured ledger hash algorithm."""
    algorithm = algorithm or getattr(settings, 'LEDGER_HASH_ALGORITHM', 'sha256')
    if algorithm == 'rolling32':
        return rolling32_hash(data)
    return hashlib.new(algorithm, data.encode('utf-8')).hexdigest()


def now_millis():
    return int(time.time() * 1000)


def format_timestamp(value):
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""
    value = value.astimezone(dt_timezone.utc)
    return value.strftime('%Y-%m-%dT%H:%M:%S.') + f"{value.microsecond // 1000:03d}Z"


def truncate_to_millis(value):
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


def build_transaction_string(transaction_type, transaction_data, entity_id, timestamp, previous_hash, block_number):
    """
    Canonical string a block hash is computed from.

    Top-level keys keep the order of TRANSACTION_FIELDS; nested data is
    rendered with sorted keys so JSON storage that reorders keys does not
    change the hash.
    """
    values = {
        'type': str(transaction_type),
        'data': transaction_data,
        'entity': str(entity_id),
        'timestamp': format_timestamp(timestamp),
        'previous': previous_hash,
        'block': block_number,
    }
    body = ','.join(f"{json.dumps(key)}:{canonical_json(values[key])}" for key in TRANSACTION_FIELDS)
    return '{' + body + '}'


def compute_block_hash(block):
    """Re-derive the hash of a stored block from its own fields."""
    transaction_string = build_transaction_string(
        block.transaction_type,
        block.transaction_data,
        block.entity_id,
        block.timestamp,
        block.previous_hash,
        block.block_number,
    )
    return generate_hash(transaction_string)


def compute_merkle_root(block_hash, millis=None):
    millis = now_millis() if millis is None else millis
    return generate_hash(f"{block_hash}_{millis}")


# ----------------------------------------------------------------------
# Public identifiers
# ----------------------------------------------------------------------

def generate_qr_code(data, millis=None):
    """QR value ``QR_<hex-hash>_<unix-millis>`` for a product or batch label."""
    millis = now_millis() if millis is None else millis
    return f"QR_{generate_hash(canonical_json(data))}_{millis}"


def generate_batch_code(millis=None):
    millis = now_millis() if millis is None else millis
    return f"BATCH_{millis}"


def is_qr_code(value):
    return bool(QR_CODE_RE.match(value or ''))


def is_batch_code(value):
    return bool(BATCH_CODE_RE.match(value or ''))


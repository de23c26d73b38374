import json
import logging
import time
from dataclasses import asdict, dataclass, field
from typing import List, Optional

from django.conf import settings
from django.db import DatabaseError, IntegrityError, OperationalError, transaction
from django.utils import timezone

from supply.store import entity_store

from .exceptions import AppendFailed, ConcurrentAppendConflict, EntityNotFound, UnknownTransactionType
from .models import TransactionType
from .payloads import PAYLOAD_TYPES, payload_for, payload_to_data
from .utils import (
    build_transaction_string, canonical_json, compute_merkle_root, generate_hash, now_millis,
    truncate_to_millis,
)

logger = logging.getLogger(__name__)

HASH_MISMATCH = 'HASH_MISMATCH'
SEQUENCE_GAP = 'SEQUENCE_GAP'
SCAN_FAILED = 'SCAN_FAILED'

# Driver messages of a writer that lost the database write lock
LOCK_CONTENTION_MARKERS = ('is locked', 'deadlock detected', 'could not serialize', 'lock wait timeout')


def is_lock_contention(exc):
    message = str(exc).lower()
    return any(marker in message for marker in LOCK_CONTENTION_MARKERS)


class LedgerAppender:
    """
    Appends hash-linked blocks to the global chain.

    "Read latest, link, insert" runs inside one atomic block. A lost race
    surfaces either as an IntegrityError on the unique ``block_number`` or,
    on SQLite, as a locked database; both are retried with capped
    exponential backoff.
    """

    def __init__(self, store=None, max_attempts=None, backoff=None, backoff_cap=None, sleep=time.sleep):
        self.store = store or entity_store
        self._max_attempts = max_attempts
        self._backoff = backoff
        self._backoff_cap = backoff_cap
        self._sleep = sleep

    @property
    def max_attempts(self):
        if self._max_attempts is not None:
            return self._max_attempts
        return getattr(settings, 'LEDGER_APPEND_MAX_ATTEMPTS', 5)

    def backoff_delay(self, attempt):
        base = self._backoff if self._backoff is not None else getattr(settings, 'LEDGER_APPEND_BACKOFF_SECONDS', 0.05)
        cap = self._backoff_cap if self._backoff_cap is not None else getattr(settings, 'LEDGER_APPEND_BACKOFF_CAP_SECONDS', 1.0)
        return min(base * (2 ** (attempt - 1)), cap)

    def append(self, transaction_type, transaction_data, entity_id):
        transaction_type = self._validate_type(transaction_type)
        data = self._validate_payload(transaction_type, transaction_data)
        entity_id = str(entity_id)

        if not self.store.entity_exists(transaction_type, entity_id):
            model = self.store.entity_model_for(transaction_type)
            raise EntityNotFound(entity_id, model.__name__)

        max_attempts = self.max_attempts
        conflict = None
        for attempt in range(1, max_attempts + 1):
            try:
                block = self._append_once(transaction_type, data, entity_id)
            except ConcurrentAppendConflict as exc:
                conflict = exc
                logger.warning(
                    "Append conflict for %s: %s (attempt %s/%s)",
                    entity_id, exc.detail, attempt, max_attempts,
                )
                if attempt < max_attempts:
                    self._sleep(self.backoff_delay(attempt))
                continue

            logger.info("Block #%s appended: %s %s [%s]", block.block_number, transaction_type, entity_id, block.block_hash[:10])
            return block

        logger.error("Append for %s abandoned after %s attempts", entity_id, max_attempts)
        raise AppendFailed(max_attempts, conflict, entity_id=entity_id)

    def history(self, entity_id):
        """Blocks that reference ``entity_id``, oldest first."""
        return self.store.get_blocks_for_entity(entity_id)

    def _append_once(self, transaction_type, data, entity_id):
        """
        One read-link-insert round in its own atomic block. Losing a race to
        another writer, whether on the unique ``block_number`` or on the
        database write lock, raises ``ConcurrentAppendConflict``.
        """
        block_number = None
        try:
            with transaction.atomic():
                # 1. Head of the chain; none means genesis
                latest = self.store.get_latest_block()
                if latest:
                    previous_hash = latest.block_hash
                    block_number = latest.block_number + 1
                else:
                    previous_hash = None
                    block_number = 1

                # 2. Canonical string and hash
                timestamp = truncate_to_millis(timezone.now())
                transaction_string = build_transaction_string(
                    transaction_type, data, entity_id, timestamp, previous_hash, block_number,
                )
                block_hash = generate_hash(transaction_string)

                # 3. Persist
                return self.store.insert_block(
                    block_number=block_number,
                    block_hash=block_hash,
                    previous_hash=previous_hash,
                    merkle_root=compute_merkle_root(block_hash, now_millis()),
                    transaction_type=transaction_type,
                    transaction_data=data,
                    entity_id=entity_id,
                    timestamp=timestamp,
                )
        except IntegrityError:
            raise ConcurrentAppendConflict(block_number, entity_id=entity_id) from None
        except OperationalError as exc:
            if not is_lock_contention(exc):
                raise
            raise ConcurrentAppendConflict(block_number, entity_id=entity_id, reason=str(exc)) from None

    @staticmethod
    def _validate_type(transaction_type):
        try:
            return TransactionType(transaction_type).value
        except ValueError:
            raise UnknownTransactionType(transaction_type) from None

    @staticmethod
    def _validate_payload(transaction_type, transaction_data):
        if isinstance(transaction_data, tuple(PAYLOAD_TYPES.values())):
            expected = payload_for(transaction_type)
            if not isinstance(transaction_data, expected):
                raise TypeError(
                    f"{transaction_type} expects {expected.__name__}, got {type(transaction_data).__name__}"
                )
        # JSON round-trip so the stored payload hashes exactly like the one just computed
        return json.loads(canonical_json(payload_to_data(transaction_data)))


# ----------------------------------------------------------------------
# Verification
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class ChainViolation:
    block_number: Optional[int]
    kind: str
    detail: str


@dataclass
class ChainReport:
    is_valid: bool
    violations: List[ChainViolation] = field(default_factory=list)
    blocks_checked: int = 0

    def to_dict(self):
        return asdict(self)


class ChainVerifier:
    """Scans the whole chain and reports every linkage violation it finds."""

    def __init__(self, store=None):
        self.store = store or entity_store

    def verify(self):
        violations = []
        checked = 0
        predecessor = None
        try:
            for block in self.store.iter_blocks():
                violations.extend(self.check_link(block, predecessor))
                predecessor = block
                checked += 1
        except DatabaseError as exc:
            logger.exception("Chain scan aborted after %s blocks", checked)
            violations.append(ChainViolation(None, SCAN_FAILED, str(exc)))

        if violations:
            logger.warning("Chain verification found %s violation(s) in %s blocks", len(violations), checked)
        return ChainReport(is_valid=not violations, violations=violations, blocks_checked=checked)

    @staticmethod
    def check_link(block, predecessor):
        """
        Local segment check of ``block`` against its immediate predecessor.
        ``predecessor`` is None for the first block of the chain.
        """
        violations = []
        if predecessor is None:
            if block.block_number != 1:
                violations.append(ChainViolation(
                    block.block_number, SEQUENCE_GAP, f"chain starts at block #{block.block_number}, expected #1",
                ))
            if block.previous_hash:
                violations.append(ChainViolation(
                    block.block_number, HASH_MISMATCH, "genesis block must not reference a previous hash",
                ))
            return violations

        if block.previous_hash != predecessor.block_hash:
            violations.append(ChainViolation(
                block.block_number, HASH_MISMATCH,
                f"previous hash does not match block #{predecessor.block_number}",
            ))
        if block.block_number != predecessor.block_number + 1:
            violations.append(ChainViolation(
                block.block_number, SEQUENCE_GAP,
                f"expected block #{predecessor.block_number + 1}",
            ))
        return violations


# Shared instances
ledger_appender = LedgerAppender()
chain_verifier = ChainVerifier()


def append_block(transaction_type, transaction_data, entity_id):
    return ledger_appender.append(transaction_type, transaction_data, entity_id)


def verify_chain():
    return chain_verifier.verify()

"""
Error taxonomy for the ledger and the provenance resolver.

Every error carries a ``kind`` and the offending id so callers can render a
precise message without parsing strings.
"""


class LedgerError(Exception):
    kind = 'LEDGER_ERROR'

    def __init__(self, detail, *, entity_id=None):
        super().__init__(f"{self.kind}: {detail}")
        self.detail = detail
        self.entity_id = entity_id

    def to_dict(self):
        return {'kind': self.kind, 'entity_id': self.entity_id, 'detail': self.detail}


class UnknownTransactionType(LedgerError):
    kind = 'UNKNOWN_TRANSACTION_TYPE'

    def __init__(self, transaction_type):
        super().__init__(f"'{transaction_type}' is not a ledger transaction type")
        self.transaction_type = transaction_type


class EntityNotFound(LedgerError):
    kind = 'ENTITY_NOT_FOUND'

    def __init__(self, entity_id, model_name=None):
        where = f" in {model_name}" if model_name else ""
        super().__init__(f"entity {entity_id} does not exist{where}", entity_id=entity_id)
        self.model_name = model_name


class ConcurrentAppendConflict(LedgerError):
    """Another writer claimed the block number, or held the write lock, between read and insert."""

    kind = 'CONCURRENT_APPEND_CONFLICT'

    def __init__(self, block_number, *, entity_id=None, reason=None):
        if reason:
            detail = f"chain head locked by another writer ({reason})"
        else:
            detail = f"block #{block_number} was appended concurrently"
        super().__init__(detail, entity_id=entity_id)
        self.block_number = block_number
        self.reason = reason


class AppendFailed(LedgerError):
    kind = 'APPEND_FAILED'

    def __init__(self, attempts, last_conflict, *, entity_id=None):
        super().__init__(
            f"gave up after {attempts} attempts (last conflict: {last_conflict.detail})",
            entity_id=entity_id,
        )
        self.attempts = attempts
        self.last_conflict = last_conflict


class NotFoundError(LedgerError):
    """No Product or Batch matches a public identifier."""

    kind = 'NOT_FOUND'

    def __init__(self, identifier):
        super().__init__(f"no product or batch matches '{identifier}'", entity_id=identifier)
        self.identifier = identifier


class InvalidStatusTransition(LedgerError):
    kind = 'INVALID_STATUS_TRANSITION'

    def __init__(self, entity_id, current, target):
        super().__init__(f"cannot move from '{current}' to '{target}'", entity_id=entity_id)
        self.current = current
        self.target = target


class InvalidBatchComposition(LedgerError):
    kind = 'INVALID_BATCH_COMPOSITION'

from django.db import models


class TransactionType(models.TextChoices):
    """Closed taxonomy of ledger transactions. Add members, never repurpose them."""

    COLLECTION_RECORDED = 'COLLECTION_RECORDED', 'Collection Recorded'
    BATCH_CREATED = 'BATCH_CREATED', 'Batch Created'
    BATCH_SENT_TO_LAB = 'BATCH_SENT_TO_LAB', 'Batch Sent To Lab'
    QUALITY_TEST = 'QualityTest', 'Quality Test'
    PROCESSING_STEP = 'ProcessingStep', 'Processing Step'
    CUSTODY_TRANSFERRED = 'CUSTODY_TRANSFERRED', 'Custody Transferred'


class Block(models.Model):
    block_number = models.PositiveIntegerField(unique=True, verbose_name="Block Number")
    timestamp = models.DateTimeField(verbose_name="Block Timestamp")

    # Hash linkage
    block_hash = models.CharField(max_length=128, unique=True, verbose_name="Block Hash")
    previous_hash = models.CharField(max_length=128, null=True, blank=True, verbose_name="Previous Hash")
    merkle_root = models.CharField(max_length=128, null=True, blank=True, verbose_name="Merkle Root")

    # Transaction
    transaction_type = models.CharField(max_length=50, choices=TransactionType.choices, verbose_name="Transaction Type")
    transaction_data = models.JSONField(default=dict, verbose_name="Transaction Data (JSON)")
    entity_id = models.CharField(max_length=64, db_index=True, verbose_name="Entity ID")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'blockchain_records'
        ordering = ['block_number']
        verbose_name = 'Blockchain Block'
        verbose_name_plural = 'Blockchain Blocks'

    def __str__(self):
        return f"Block #{self.block_number} [{self.block_hash[:8]}] - {self.transaction_type}"

    @property
    def is_genesis(self):
        return self.block_number == 1

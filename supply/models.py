import uuid

from django.db import models
from django.utils import timezone

from blockchain.exceptions import InvalidStatusTransition

# ----------------------------------------------------------------------
# 1. CONSTANTS AND CHOICES
# ----------------------------------------------------------------------

ROLE_CHOICES = [
    ('collector', 'Collector'),
    ('aggregator', 'Aggregator'),
    ('lab', 'Laboratory'),
    ('factory', 'Factory'),
    ('consumer', 'Consumer'),
]

COLLECTOR_TYPE_CHOICES = [('farmer', 'Farmer'), ('wild_collector', 'Wild Collector')]

INITIAL_CONDITION_CHOICES = [('fresh', 'Fresh'), ('dried', 'Dried'), ('semi_dried', 'Semi-dried')]

TEST_STATUS_CHOICES = [('pending', 'Pending'), ('passed', 'Passed'), ('failed', 'Failed')]

HANDOFF_ITEM_CHOICES = [('collection', 'Collection Event'), ('batch', 'Batch'), ('product', 'Product')]


class BatchStatus(models.TextChoices):
    CREATED = 'created', 'Created'
    LAB_TESTING = 'lab_testing', 'Lab Testing'
    APPROVED = 'approved', 'Approved'
    REJECTED = 'rejected', 'Rejected'
    DISPATCHED = 'dispatched', 'Dispatched'
    SOLD = 'sold', 'Sold'


# Forward-only lifecycle of a batch
BATCH_TRANSITIONS = {
    BatchStatus.CREATED: {BatchStatus.LAB_TESTING},
    BatchStatus.LAB_TESTING: {BatchStatus.APPROVED, BatchStatus.REJECTED},
    BatchStatus.APPROVED: {BatchStatus.DISPATCHED},
    BatchStatus.REJECTED: set(),
    BatchStatus.DISPATCHED: {BatchStatus.SOLD},
    BatchStatus.SOLD: set(),
}


class UUIDModel(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        abstract = True


# ----------------------------------------------------------------------
# 2. PARTICIPANTS AND REFERENCE DATA
# ----------------------------------------------------------------------

class Profile(UUIDModel):
    full_name = models.CharField(max_length=150, verbose_name="Full Name")
    email = models.EmailField()
    role = models.CharField(max_length=20, choices=ROLE_CHOICES)
    organization = models.CharField(max_length=150, blank=True, null=True)
    location = models.CharField(max_length=255, blank=True, null=True)
    phone = models.CharField(max_length=20, blank=True, null=True)

    class Meta: db_table = 'profiles'
    def __str__(self): return f"{self.full_name} ({self.get_role_display()})"


class Herb(UUIDModel):
    botanical_name = models.CharField(max_length=150, verbose_name="Botanical Name")
    local_name = models.CharField(max_length=150, verbose_name="Local Name")
    plant_family = models.CharField(max_length=100, blank=True, null=True)
    conservation_status = models.CharField(max_length=50, blank=True, null=True)
    approved_regions = models.JSONField(default=list, blank=True)
    harvest_season = models.JSONField(default=list, blank=True)

    class Meta: db_table = 'herbs'
    def __str__(self): return f"{self.local_name} ({self.botanical_name})"


class Collector(UUIDModel):
    profile = models.ForeignKey(Profile, on_delete=models.SET_NULL, null=True, blank=True, related_name='collector_records')
    collector_type = models.CharField(max_length=20, choices=COLLECTOR_TYPE_CHOICES, default='farmer')
    cooperative_id = models.CharField(max_length=64, blank=True, null=True)
    verification_status = models.CharField(max_length=20, blank=True, null=True)

    class Meta: db_table = 'collectors'
    def __str__(self): return f"Collector {self.pk} - {self.profile.full_name if self.profile else 'N/A'}"


# ----------------------------------------------------------------------
# 3. SUPPLY-CHAIN EVENTS
# ----------------------------------------------------------------------

class CollectionEvent(UUIDModel):
    collector = models.ForeignKey(Collector, on_delete=models.SET_NULL, null=True, blank=True, related_name='collection_events')
    herb = models.ForeignKey(Herb, on_delete=models.SET_NULL, null=True, blank=True, related_name='collection_events')
    plant_part = models.CharField(max_length=50, verbose_name="Plant Part")
    quantity_kg = models.DecimalField(max_digits=10, decimal_places=2, verbose_name="Quantity (Kg)")
    latitude = models.FloatField(default=0)
    longitude = models.FloatField(default=0)
    initial_condition = models.CharField(max_length=20, choices=INITIAL_CONDITION_CHOICES, default='fresh')
    harvest_season = models.CharField(max_length=7, blank=True, verbose_name="Harvest Season (YYYY-MM)")
    collection_timestamp = models.DateTimeField(default=timezone.now, verbose_name="Collected At")
    storage_conditions = models.JSONField(null=True, blank=True)
    environmental_data = models.JSONField(null=True, blank=True)
    compliance_validated = models.BooleanField(default=False)

    class Meta: db_table = 'collection_events'
    def __str__(self): return f"Collection {self.pk} - {self.quantity_kg} kg"


class Batch(UUIDModel):
    batch_id = models.CharField(max_length=32, unique=True, verbose_name="Batch ID")
    qr_code = models.CharField(max_length=160, unique=True, null=True, blank=True, verbose_name="QR Code")
    herb = models.ForeignKey(Herb, on_delete=models.SET_NULL, null=True, blank=True, related_name='batches')
    aggregator = models.ForeignKey(Profile, on_delete=models.SET_NULL, null=True, blank=True, related_name='aggregated_batches')
    total_quantity_kg = models.DecimalField(max_digits=10, decimal_places=2, verbose_name="Total Quantity (Kg)")
    batch_status = models.CharField(max_length=20, choices=BatchStatus.choices, default=BatchStatus.CREATED)
    quality_notes = models.TextField(blank=True, null=True)
    storage_location = models.CharField(max_length=255, blank=True, null=True)
    creation_timestamp = models.DateTimeField(default=timezone.now)
    collection_events = models.ManyToManyField(CollectionEvent, through='BatchCollection', related_name='batches')

    class Meta: db_table = 'batches'
    def __str__(self): return f"{self.batch_id} ({self.get_batch_status_display()})"

    def can_advance_to(self, target):
        return target in BATCH_TRANSITIONS.get(self.batch_status, set())

    def advance_status(self, target):
        """Move along the batch lifecycle; only forward transitions are allowed."""
        if not self.can_advance_to(target):
            raise InvalidStatusTransition(str(self.pk), self.batch_status, target)
        self.batch_status = target
        self.save(update_fields=['batch_status'])


class BatchCollection(UUIDModel):
    batch = models.ForeignKey(Batch, on_delete=models.CASCADE, related_name='batch_collections')
    collection_event = models.ForeignKey(CollectionEvent, on_delete=models.SET_NULL, null=True, blank=True, related_name='batch_links')
    contribution_percentage = models.DecimalField(max_digits=6, decimal_places=3, verbose_name="Contribution (%)")

    class Meta:
        db_table = 'batch_collections'
        unique_together = ('batch', 'collection_event')
    def __str__(self): return f"{self.batch_id} <- {self.collection_event_id} ({self.contribution_percentage}%)"


class QualityTest(UUIDModel):
    batch = models.ForeignKey(Batch, on_delete=models.CASCADE, related_name='quality_tests')
    lab = models.ForeignKey(Profile, on_delete=models.SET_NULL, null=True, blank=True, related_name='quality_tests')
    sample_id = models.CharField(max_length=64)
    test_type = models.CharField(max_length=100)
    test_parameters = models.JSONField(default=dict, blank=True)
    test_results = models.JSONField(default=dict, blank=True)
    test_status = models.CharField(max_length=20, choices=TEST_STATUS_CHOICES, default='pending')
    test_date = models.DateTimeField(default=timezone.now)
    completion_date = models.DateTimeField(null=True, blank=True)
    certificate_url = models.URLField(max_length=500, blank=True, null=True)

    class Meta: db_table = 'quality_tests'
    def __str__(self): return f"Test {self.test_type} on {self.batch_id} ({self.test_status})"


class ProcessingStep(UUIDModel):
    batch = models.ForeignKey(Batch, on_delete=models.CASCADE, related_name='processing_steps')
    processor = models.ForeignKey(Profile, on_delete=models.SET_NULL, null=True, blank=True, related_name='processing_steps')
    process_type = models.CharField(max_length=100)
    process_parameters = models.JSONField(default=dict, blank=True)
    process_conditions = models.JSONField(null=True, blank=True)
    quality_metrics = models.JSONField(null=True, blank=True)
    input_quantity_kg = models.DecimalField(max_digits=10, decimal_places=2)
    output_quantity_kg = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    process_date = models.DateTimeField(default=timezone.now)
    completion_date = models.DateTimeField(null=True, blank=True)

    class Meta: db_table = 'processing_steps'
    def __str__(self): return f"{self.process_type} on {self.batch_id}"


class Product(UUIDModel):
    qr_code = models.CharField(max_length=160, unique=True, verbose_name="QR Code")
    product_name = models.CharField(max_length=150)
    product_type = models.CharField(max_length=100)
    manufacturer = models.ForeignKey(Profile, on_delete=models.SET_NULL, null=True, blank=True, related_name='products')
    batch_ids = models.JSONField(default=list, verbose_name="Batch IDs")
    final_quantity = models.DecimalField(max_digits=10, decimal_places=2)
    unit_type = models.CharField(max_length=30, default='units')
    formulation_details = models.JSONField(default=dict, blank=True)
    manufacturing_date = models.DateTimeField(default=timezone.now)
    expiry_date = models.DateTimeField(null=True, blank=True)

    class Meta: db_table = 'products'
    def __str__(self): return f"{self.product_name} [{self.qr_code}]"


class Handoff(UUIDModel):
    from_entity = models.ForeignKey(Profile, on_delete=models.SET_NULL, null=True, related_name='handoffs_sent')
    to_entity = models.ForeignKey(Profile, on_delete=models.SET_NULL, null=True, related_name='handoffs_received')
    item_id = models.CharField(max_length=64)
    item_type = models.CharField(max_length=20, choices=HANDOFF_ITEM_CHOICES)
    handoff_type = models.CharField(max_length=50)
    quantity = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    conditions = models.JSONField(null=True, blank=True)
    chain_of_custody = models.JSONField(default=list, blank=True)
    handoff_timestamp = models.DateTimeField(default=timezone.now)

    class Meta: db_table = 'handoffs'
    def __str__(self): return f"Handoff {self.item_type} {self.item_id}: {self.from_entity_id} -> {self.to_entity_id}"

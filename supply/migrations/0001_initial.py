import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Profile',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('full_name', models.CharField(max_length=150, verbose_name='Full Name')),
                ('email', models.EmailField(max_length=254)),
                ('role', models.CharField(choices=[('collector', 'Collector'), ('aggregator', 'Aggregator'), ('lab', 'Laboratory'), ('factory', 'Factory'), ('consumer', 'Consumer')], max_length=20)),
                ('organization', models.CharField(blank=True, max_length=150, null=True)),
                ('location', models.CharField(blank=True, max_length=255, null=True)),
                ('phone', models.CharField(blank=True, max_length=20, null=True)),
            ],
            options={'db_table': 'profiles'},
        ),
        migrations.CreateModel(
            name='Herb',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('botanical_name', models.CharField(max_length=150, verbose_name='Botanical Name')),
                ('local_name', models.CharField(max_length=150, verbose_name='Local Name')),
                ('plant_family', models.CharField(blank=True, max_length=100, null=True)),
                ('conservation_status', models.CharField(blank=True, max_length=50, null=True)),
                ('approved_regions', models.JSONField(blank=True, default=list)),
                ('harvest_season', models.JSONField(blank=True, default=list)),
            ],
            options={'db_table': 'herbs'},
        ),
        migrations.CreateModel(
            name='Collector',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('collector_type', models.CharField(choices=[('farmer', 'Farmer'), ('wild_collector', 'Wild Collector')], default='farmer', max_length=20)),
                ('cooperative_id', models.CharField(blank=True, max_length=64, null=True)),
                ('verification_status', models.CharField(blank=True, max_length=20, null=True)),
                ('profile', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='collector_records', to='supply.profile')),
            ],
            options={'db_table': 'collectors'},
        ),
        migrations.CreateModel(
            name='CollectionEvent',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('plant_part', models.CharField(max_length=50, verbose_name='Plant Part')),
                ('quantity_kg', models.DecimalField(decimal_places=2, max_digits=10, verbose_name='Quantity (Kg)')),
                ('latitude', models.FloatField(default=0)),
                ('longitude', models.FloatField(default=0)),
                ('initial_condition', models.CharField(choices=[('fresh', 'Fresh'), ('dried', 'Dried'), ('semi_dried', 'Semi-dried')], default='fresh', max_length=20)),
                ('harvest_season', models.CharField(blank=True, max_length=7, verbose_name='Harvest Season (YYYY-MM)')),
                ('collection_timestamp', models.DateTimeField(default=django.utils.timezone.now, verbose_name='Collected At')),
                ('storage_conditions', models.JSONField(blank=True, null=True)),
                ('environmental_data', models.JSONField(blank=True, null=True)),
                ('compliance_validated', models.BooleanField(default=False)),
                ('collector', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='collection_events', to='supply.collector')),
                ('herb', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='collection_events', to='supply.herb')),
            ],
            options={'db_table': 'collection_events'},
        ),
        migrations.CreateModel(
            name='Batch',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('batch_id', models.CharField(max_length=32, unique=True, verbose_name='Batch ID')),
                ('qr_code', models.CharField(blank=True, max_length=160, null=True, unique=True, verbose_name='QR Code')),
                ('total_quantity_kg', models.DecimalField(decimal_places=2, max_digits=10, verbose_name='Total Quantity (Kg)')),
                ('batch_status', models.CharField(choices=[('created', 'Created'), ('lab_testing', 'Lab Testing'), ('approved', 'Approved'), ('rejected', 'Rejected'), ('dispatched', 'Dispatched'), ('sold', 'Sold')], default='created', max_length=20)),
                ('quality_notes', models.TextField(blank=True, null=True)),
                ('storage_location', models.CharField(blank=True, max_length=255, null=True)),
                ('creation_timestamp', models.DateTimeField(default=django.utils.timezone.now)),
                ('aggregator', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='aggregated_batches', to='supply.profile')),
                ('herb', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='batches', to='supply.herb')),
            ],
            options={'db_table': 'batches'},
        ),
        migrations.CreateModel(
            name='BatchCollection',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('contribution_percentage', models.DecimalField(decimal_places=3, max_digits=6, verbose_name='Contribution (%)')),
                ('batch', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='batch_collections', to='supply.batch')),
                ('collection_event', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='batch_links', to='supply.collectionevent')),
            ],
            options={
                'db_table': 'batch_collections',
                'unique_together': {('batch', 'collection_event')},
            },
        ),
        migrations.AddField(
            model_name='batch',
            name='collection_events',
            field=models.ManyToManyField(related_name='batches', through='supply.BatchCollection', to='supply.collectionevent'),
        ),
        migrations.CreateModel(
            name='QualityTest',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('sample_id', models.CharField(max_length=64)),
                ('test_type', models.CharField(max_length=100)),
                ('test_parameters', models.JSONField(blank=True, default=dict)),
                ('test_results', models.JSONField(blank=True, default=dict)),
                ('test_status', models.CharField(choices=[('pending', 'Pending'), ('passed', 'Passed'), ('failed', 'Failed')], default='pending', max_length=20)),
                ('test_date', models.DateTimeField(default=django.utils.timezone.now)),
                ('completion_date', models.DateTimeField(blank=True, null=True)),
                ('certificate_url', models.URLField(blank=True, max_length=500, null=True)),
                ('batch', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='quality_tests', to='supply.batch')),
                ('lab', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='quality_tests', to='supply.profile')),
            ],
            options={'db_table': 'quality_tests'},
        ),
        migrations.CreateModel(
            name='ProcessingStep',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('process_type', models.CharField(max_length=100)),
                ('process_parameters', models.JSONField(blank=True, default=dict)),
                ('process_conditions', models.JSONField(blank=True, null=True)),
                ('quality_metrics', models.JSONField(blank=True, null=True)),
                ('input_quantity_kg', models.DecimalField(decimal_places=2, max_digits=10)),
                ('output_quantity_kg', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('process_date', models.DateTimeField(default=django.utils.timezone.now)),
                ('completion_date', models.DateTimeField(blank=True, null=True)),
                ('batch', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='processing_steps', to='supply.batch')),
                ('processor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='processing_steps', to='supply.profile')),
            ],
            options={'db_table': 'processing_steps'},
        ),
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('qr_code', models.CharField(max_length=160, unique=True, verbose_name='QR Code')),
                ('product_name', models.CharField(max_length=150)),
                ('product_type', models.CharField(max_length=100)),
                ('batch_ids', models.JSONField(default=list, verbose_name='Batch IDs')),
                ('final_quantity', models.DecimalField(decimal_places=2, max_digits=10)),
                ('unit_type', models.CharField(default='units', max_length=30)),
                ('formulation_details', models.JSONField(blank=True, default=dict)),
                ('manufacturing_date', models.DateTimeField(default=django.utils.timezone.now)),
                ('expiry_date', models.DateTimeField(blank=True, null=True)),
                ('manufacturer', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='products', to='supply.profile')),
            ],
            options={'db_table': 'products'},
        ),
        migrations.CreateModel(
            name='Handoff',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('item_id', models.CharField(max_length=64)),
                ('item_type', models.CharField(choices=[('collection', 'Collection Event'), ('batch', 'Batch'), ('product', 'Product')], max_length=20)),
                ('handoff_type', models.CharField(max_length=50)),
                ('quantity', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('conditions', models.JSONField(blank=True, null=True)),
                ('chain_of_custody', models.JSONField(blank=True, default=list)),
                ('handoff_timestamp', models.DateTimeField(default=django.utils.timezone.now)),
                ('from_entity', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='handoffs_sent', to='supply.profile')),
                ('to_entity', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='handoffs_received', to='supply.profile')),
            ],
            options={'db_table': 'handoffs'},
        ),
    ]

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Block',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('block_number', models.PositiveIntegerField(unique=True, verbose_name='Block Number')),
                ('timestamp', models.DateTimeField(verbose_name='Block Timestamp')),
                ('block_hash', models.CharField(max_length=128, unique=True, verbose_name='Block Hash')),
                ('previous_hash', models.CharField(blank=True, max_length=128, null=True, verbose_name='Previous Hash')),
                ('merkle_root', models.CharField(blank=True, max_length=128, null=True, verbose_name='Merkle Root')),
                ('transaction_type', models.CharField(
                    choices=[
                        ('COLLECTION_RECORDED', 'Collection Recorded'),
                        ('BATCH_CREATED', 'Batch Created'),
                        ('BATCH_SENT_TO_LAB', 'Batch Sent To Lab'),
                        ('QualityTest', 'Quality Test'),
                        ('ProcessingStep', 'Processing Step'),
                        ('CUSTODY_TRANSFERRED', 'Custody Transferred'),
                    ],
                    max_length=50,
                    verbose_name='Transaction Type',
                )),
                ('transaction_data', models.JSONField(default=dict, verbose_name='Transaction Data (JSON)')),
                ('entity_id', models.CharField(db_index=True, max_length=64, verbose_name='Entity ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'verbose_name': 'Blockchain Block',
                'verbose_name_plural': 'Blockchain Blocks',
                'db_table': 'blockchain_records',
                'ordering': ['block_number'],
            },
        ),
    ]

from django.db import migrations


def populate_herbs(apps, schema_editor):
    Herb = apps.get_model('supply', 'Herb')

    herbs = [
        {'local_name': 'Ashwagandha', 'botanical_name': 'Withania somnifera', 'plant_family': 'Solanaceae'},
        {'local_name': 'Tulsi', 'botanical_name': 'Ocimum tenuiflorum', 'plant_family': 'Lamiaceae'},
        {'local_name': 'Brahmi', 'botanical_name': 'Bacopa monnieri', 'plant_family': 'Plantaginaceae'},
        {'local_name': 'Neem', 'botanical_name': 'Azadirachta indica', 'plant_family': 'Meliaceae'},
        {'local_name': 'Turmeric', 'botanical_name': 'Curcuma longa', 'plant_family': 'Zingiberaceae'},
    ]

    for item in herbs:
        Herb.objects.get_or_create(botanical_name=item['botanical_name'], defaults=item)


class Migration(migrations.Migration):

    dependencies = [
        ('supply', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(populate_herbs, migrations.RunPython.noop),
    ]

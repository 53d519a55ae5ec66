from django.db import migrations, models


def seed_vat_rate(apps, schema_editor):
    SystemSetting = apps.get_model('settings', 'SystemSetting')
    SystemSetting.objects.get_or_create(
        key='vat_rate',
        defaults={'value': '0.18', 'description': 'VAT rate applied to VAT registered customers'},
    )


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='SystemSetting',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('key', models.CharField(max_length=100, unique=True)),
                ('value', models.TextField()),
                ('description', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'system_settings',
                'ordering': ['key'],
            },
        ),
        migrations.RunPython(seed_vat_rate, migrations.RunPython.noop),
    ]

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Customer',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('customer_display_id', models.CharField(editable=False, max_length=20, unique=True)),
                ('name', models.CharField(max_length=200)),
                ('address', models.TextField()),
                ('email', models.EmailField(blank=True, max_length=254)),
                ('phone_number', models.CharField(max_length=20)),
                ('type', models.CharField(choices=[('Cash', 'Cash'), ('Credit', 'Credit'), ('Cheque', 'Cheque'), ('Bank Transfer', 'Bank Transfer')], default='Cash', max_length=20)),
                ('customer_category', models.CharField(choices=[('Dealer', 'Dealer'), ('Hotel', 'Hotel'), ('Other', 'Other')], default='Dealer', max_length=10)),
                ('vat_status', models.CharField(choices=[('VAT', 'VAT'), ('Non-VAT', 'Non-VAT')], default='Non-VAT', max_length=10)),
                ('tin_number', models.CharField(blank=True, max_length=50)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'customers',
                'ordering': ['name'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('type__in', ['Cash', 'Credit', 'Cheque', 'Bank Transfer'])), name='customers_type_check'),
                    models.CheckConstraint(condition=models.Q(('customer_category__in', ['Dealer', 'Hotel', 'Other'])), name='customers_customer_category_check'),
                    models.CheckConstraint(condition=models.Q(('vat_status__in', ['VAT', 'Non-VAT'])), name='customers_vat_status_check'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ContactPerson',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('phone_number', models.CharField(max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('customer', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='contact_persons', to='customers.customer')),
            ],
            options={
                'db_table': 'contact_persons',
                'ordering': ['name'],
            },
        ),
    ]

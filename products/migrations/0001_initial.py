import django.core.validators
import django.db.models.deletion
from decimal import Decimal
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Category',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('category_display_id', models.CharField(editable=False, max_length=20, unique=True)),
                ('category_name', models.CharField(max_length=50, unique=True, validators=[django.core.validators.MinLengthValidator(3)])),
                ('category_code', models.CharField(help_text="Short code used in product IDs, e.g. 'WC'", max_length=3, unique=True, validators=[django.core.validators.RegexValidator('^[A-Z]{2,3}$', 'Category code must be 2-3 uppercase letters')])),
                ('description', models.CharField(blank=True, max_length=200)),
                ('status', models.BooleanField(default=True, help_text='Inactive categories are hidden from product entry')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'categories',
                'ordering': ['category_name'],
                'verbose_name_plural': 'categories',
            },
        ),
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('product_display_id', models.CharField(editable=False, max_length=20, unique=True)),
                ('product_id', models.CharField(blank=True, editable=False, help_text='Category scoped code, e.g. WC-00001-2025', max_length=30, null=True, unique=True)),
                ('name', models.CharField(max_length=200)),
                ('sku', models.CharField(max_length=50, unique=True)),
                ('quantity', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
                ('price_dealer_cash', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
                ('price_dealer_credit', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
                ('price_hotel_cash', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
                ('price_hotel_credit', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
                ('threshold', models.DecimalField(decimal_places=2, default=Decimal('0.00'), help_text='Stock level at or below which the product is flagged as low stock', max_digits=12)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('category', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='products', to='products.category')),
            ],
            options={
                'db_table': 'products',
                'ordering': ['name'],
                'constraints': [models.CheckConstraint(condition=models.Q(('quantity__gte', 0)), name='products_quantity_check')],
                'indexes': [models.Index(fields=['category', 'name'], name='products_category_idx')],
            },
        ),
    ]

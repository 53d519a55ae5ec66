import django.core.validators
import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


ORDER_STATUSES = [
    'Pending', 'In Progress', 'Assigned', 'Products Loaded', 'Product Reloaded',
    'Security Check Incomplete', 'Security Checked', 'Departed Farm', 'Delivered',
    'Cancelled', 'Completed', 'Security Check Bypassed Due to Off Hours',
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('customers', '0001_initial'),
        ('products', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Order',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('order_display_id', models.CharField(editable=False, max_length=20, unique=True)),
                ('status', models.CharField(choices=[(s, s) for s in ORDER_STATUSES], default='Pending', max_length=50)),
                ('request_id', models.CharField(blank=True, help_text='Customer purchase order / request reference', max_length=100)),
                ('delivery_date', models.DateField(blank=True, null=True)),
                ('vehicle_number', models.CharField(blank=True, max_length=30)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('security_check_status', models.CharField(choices=[('pending', 'Pending'), ('completed', 'Completed'), ('incomplete', 'Incomplete'), ('bypassed', 'Bypassed')], default='pending', max_length=20)),
                ('security_check_notes', models.TextField(blank=True, help_text='JSON encoded check details', null=True)),
                ('total_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('vat_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('is_vat_applicable', models.BooleanField(default=False)),
                ('payment_method', models.CharField(blank=True, choices=[('Net', 'Net'), ('Cash', 'Cash')], max_length=10, null=True)),
                ('payment_status', models.CharField(choices=[('unpaid', 'Unpaid'), ('partially_paid', 'Partially Paid'), ('fully_paid', 'Fully Paid')], default='unpaid', max_length=20)),
                ('collected_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('receipt_no', models.CharField(blank=True, max_length=20, null=True, unique=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('assigned_to', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='assigned_orders', to=settings.AUTH_USER_MODEL)),
                ('completed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='completed_orders', to=settings.AUTH_USER_MODEL)),
                ('created_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='created_orders', to=settings.AUTH_USER_MODEL)),
                ('customer', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='orders', to='customers.customer')),
            ],
            options={
                'db_table': 'orders',
                'ordering': ['-created_at'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('status__in', ORDER_STATUSES)), name='orders_status_check'),
                    models.CheckConstraint(condition=models.Q(('security_check_status__in', ['pending', 'completed', 'incomplete', 'bypassed'])), name='orders_security_check_status_check'),
                    models.CheckConstraint(condition=models.Q(('payment_status__in', ['unpaid', 'partially_paid', 'fully_paid'])), name='orders_payment_status_check'),
                ],
                'indexes': [
                    models.Index(fields=['status', 'created_at'], name='orders_status_idx'),
                    models.Index(fields=['assigned_to', 'status'], name='orders_assigned_idx'),
                    models.Index(fields=['request_id'], name='orders_request_id_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='OrderItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.01'))])),
                ('price', models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
                ('discount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
                ('returned_quantity', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='orders.order')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='order_items', to='products.product')),
            ],
            options={
                'db_table': 'order_items',
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('quantity__gt', 0)), name='order_items_quantity_check'),
                    models.CheckConstraint(condition=models.Q(('returned_quantity__gte', 0), ('returned_quantity__lte', models.F('quantity'))), name='order_items_returned_quantity_check'),
                ],
            },
        ),
        migrations.CreateModel(
            name='OrderReturn',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('returned_quantity', models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.01'))])),
                ('return_reason', models.TextField()),
                ('returned_at', models.DateTimeField(auto_now_add=True)),
                ('order_item', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='returns', to='orders.orderitem')),
                ('returned_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='processed_returns', to=settings.AUTH_USER_MODEL)),
                ('sales_rep', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='sales_rep_returns', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'order_returns',
                'ordering': ['-returned_at'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('returned_quantity__gt', 0)), name='order_returns_quantity_check'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Vehicle',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('vehicle_number', models.CharField(max_length=30, unique=True)),
                ('vehicle_type', models.CharField(max_length=50)),
                ('capacity_cbm', models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True)),
                ('status', models.CharField(choices=[('Available', 'Available'), ('In Use', 'In Use'), ('Maintenance', 'Maintenance')], default='Available', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('sales_rep', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='vehicles', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'vehicles',
                'ordering': ['vehicle_number'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('status__in', ['Available', 'In Use', 'Maintenance'])), name='vehicles_status_check'),
                ],
            },
        ),
    ]

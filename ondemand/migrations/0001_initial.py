import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('customers', '0001_initial'),
        ('products', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='OnDemandAssignment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('assignment_date', models.DateField(default=django.utils.timezone.localdate)),
                ('notes', models.TextField(blank=True)),
                ('vehicle_number', models.CharField(blank=True, max_length=30)),
                ('status', models.CharField(choices=[('active', 'Active'), ('completed', 'Completed'), ('cancelled', 'Cancelled')], default='active', max_length=20)),
                ('assignment_type', models.CharField(choices=[('admin_assigned', 'Assigned by Admin'), ('sales_rep_requested', 'Requested by Sales Rep')], default='admin_assigned', max_length=30)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('assigned_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='on_demand_assignments_made', to=settings.AUTH_USER_MODEL)),
                ('sales_rep', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='on_demand_assignments', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'on_demand_assignments',
                'ordering': ['-assignment_date', '-created_at'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('status__in', ['active', 'completed', 'cancelled'])), name='on_demand_assignments_status_check'),
                    models.CheckConstraint(condition=models.Q(('assignment_type__in', ['admin_assigned', 'sales_rep_requested'])), name='on_demand_assignments_type_check'),
                ],
                'indexes': [
                    models.Index(fields=['sales_rep', 'status'], name='on_demand_rep_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='OnDemandAssignmentItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('assigned_quantity', models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.01'))])),
                ('sold_quantity', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('returned_quantity', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('assignment', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='ondemand.ondemandassignment')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='on_demand_items', to='products.product')),
            ],
            options={
                'db_table': 'on_demand_assignment_items',
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('assigned_quantity__gt', 0)), name='on_demand_items_assigned_check'),
                    models.CheckConstraint(condition=models.Q(('sold_quantity__gte', 0)), name='on_demand_items_sold_check'),
                    models.CheckConstraint(condition=models.Q(('returned_quantity__gte', 0)), name='on_demand_items_returned_check'),
                    models.CheckConstraint(condition=models.Q(('assigned_quantity__gte', models.F('sold_quantity') + models.F('returned_quantity'))), name='valid_quantities'),
                ],
            },
        ),
        migrations.CreateModel(
            name='OnDemandOrder',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('on_demand_order_display_id', models.CharField(editable=False, max_length=20, unique=True)),
                ('customer_name', models.CharField(max_length=200)),
                ('customer_phone', models.CharField(blank=True, max_length=20)),
                ('customer_type', models.CharField(choices=[('existing', 'Existing Customer'), ('walk-in', 'Walk-in')], default='walk-in', max_length=10)),
                ('quantity_sold', models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.01'))])),
                ('selling_price', models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.01'))])),
                ('total_amount', models.DecimalField(decimal_places=2, max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal('0.01'))])),
                ('sale_date', models.DateTimeField(default=django.utils.timezone.now)),
                ('notes', models.TextField(blank=True)),
                ('payment_method', models.CharField(blank=True, choices=[('Net', 'Net'), ('Cash', 'Cash')], max_length=10, null=True)),
                ('receipt_no', models.CharField(editable=False, max_length=20, unique=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('assignment_item', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='orders', to='ondemand.ondemandassignmentitem')),
                ('existing_customer', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='on_demand_orders', to='customers.customer')),
                ('sales_rep', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='on_demand_orders', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'on_demand_orders',
                'ordering': ['-sale_date'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('quantity_sold__gt', 0)), name='on_demand_orders_quantity_check'),
                    models.CheckConstraint(condition=models.Q(('selling_price__gt', 0)), name='on_demand_orders_price_check'),
                    models.CheckConstraint(condition=models.Q(('total_amount__gt', 0)), name='on_demand_orders_total_check'),
                    models.CheckConstraint(condition=models.Q(('customer_type__in', ['existing', 'walk-in'])), name='on_demand_orders_customer_type_check'),
                    models.CheckConstraint(condition=models.Q(('payment_method__isnull', True), ('payment_method__in', ['Net', 'Cash']), _connector='OR'), name='on_demand_orders_payment_method_check'),
                ],
                'indexes': [
                    models.Index(fields=['sales_rep', 'sale_date'], name='on_demand_orders_rep_idx'),
                ],
            },
        ),
    ]

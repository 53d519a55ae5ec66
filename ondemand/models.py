from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from sequences.services import next_display_id

User = get_user_model()


class OnDemandAssignment(models.Model):
    """Stock loaded onto a sales rep's vehicle for field sales"""
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    ]

    ASSIGNMENT_TYPE_CHOICES = [
        ('admin_assigned', 'Assigned by Admin'),
        ('sales_rep_requested', 'Requested by Sales Rep'),
    ]

    sales_rep = models.ForeignKey(User, on_delete=models.PROTECT, related_name='on_demand_assignments')
    assigned_by = models.ForeignKey(User, on_delete=models.PROTECT, related_name='on_demand_assignments_made')
    assignment_date = models.DateField(default=timezone.localdate)
    notes = models.TextField(blank=True)
    vehicle_number = models.CharField(max_length=30, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    assignment_type = models.CharField(max_length=30, choices=ASSIGNMENT_TYPE_CHOICES, default='admin_assigned')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'on_demand_assignments'
        ordering = ['-assignment_date', '-created_at']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(status__in=['active', 'completed', 'cancelled']),
                name='on_demand_assignments_status_check',
            ),
            models.CheckConstraint(
                condition=models.Q(assignment_type__in=['admin_assigned', 'sales_rep_requested']),
                name='on_demand_assignments_type_check',
            ),
        ]
        indexes = [
            models.Index(fields=['sales_rep', 'status'], name='on_demand_rep_status_idx'),
        ]

    @property
    def is_active(self):
        return self.status == 'active'

    def __str__(self):
        return f"Assignment {self.pk} to {self.sales_rep.display_name} on {self.assignment_date} ({self.status})"


class OnDemandAssignmentItem(models.Model):
    assignment = models.ForeignKey(OnDemandAssignment, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey('products.Product', on_delete=models.PROTECT, related_name='on_demand_items')
    assigned_quantity = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))])
    sold_quantity = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    returned_quantity = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'on_demand_assignment_items'
        constraints = [
            models.CheckConstraint(condition=models.Q(assigned_quantity__gt=0), name='on_demand_items_assigned_check'),
            models.CheckConstraint(condition=models.Q(sold_quantity__gte=0), name='on_demand_items_sold_check'),
            models.CheckConstraint(condition=models.Q(returned_quantity__gte=0), name='on_demand_items_returned_check'),
            models.CheckConstraint(
                condition=models.Q(
                    assigned_quantity__gte=models.F('sold_quantity') + models.F('returned_quantity')
                ),
                name='valid_quantities',
            ),
        ]

    @property
    def remaining_quantity(self):
        return self.assigned_quantity - self.sold_quantity - self.returned_quantity

    def clean(self):
        super().clean()
        if None in (self.assigned_quantity, self.sold_quantity, self.returned_quantity):
            return
        if self.sold_quantity + self.returned_quantity > self.assigned_quantity:
            raise ValidationError('Sold and returned quantities cannot exceed the assigned quantity.')

    def __str__(self):
        return f"{self.product.name}: {self.assigned_quantity} assigned, {self.sold_quantity} sold"


class OnDemandOrder(models.Model):
    """A sale made in the field from an assignment item"""
    CUSTOMER_TYPE_CHOICES = [
        ('existing', 'Existing Customer'),
        ('walk-in', 'Walk-in'),
    ]

    PAYMENT_METHOD_CHOICES = [
        ('Net', 'Net'),
        ('Cash', 'Cash'),
    ]

    on_demand_order_display_id = models.CharField(max_length=20, unique=True, editable=False)
    assignment_item = models.ForeignKey(OnDemandAssignmentItem, on_delete=models.PROTECT, related_name='orders')
    sales_rep = models.ForeignKey(User, on_delete=models.PROTECT, related_name='on_demand_orders')

    # Customer
    customer_name = models.CharField(max_length=200)
    customer_phone = models.CharField(max_length=20, blank=True)
    customer_type = models.CharField(max_length=10, choices=CUSTOMER_TYPE_CHOICES, default='walk-in')
    existing_customer = models.ForeignKey(
        'customers.Customer', on_delete=models.SET_NULL, null=True, blank=True, related_name='on_demand_orders'
    )

    # Sale
    quantity_sold = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))])
    selling_price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))])
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))])
    sale_date = models.DateTimeField(default=timezone.now)
    notes = models.TextField(blank=True)
    payment_method = models.CharField(max_length=10, choices=PAYMENT_METHOD_CHOICES, null=True, blank=True)
    receipt_no = models.CharField(max_length=20, unique=True, editable=False)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'on_demand_orders'
        ordering = ['-sale_date']
        constraints = [
            models.CheckConstraint(condition=models.Q(quantity_sold__gt=0), name='on_demand_orders_quantity_check'),
            models.CheckConstraint(condition=models.Q(selling_price__gt=0), name='on_demand_orders_price_check'),
            models.CheckConstraint(condition=models.Q(total_amount__gt=0), name='on_demand_orders_total_check'),
            models.CheckConstraint(
                condition=models.Q(customer_type__in=['existing', 'walk-in']),
                name='on_demand_orders_customer_type_check',
            ),
            models.CheckConstraint(
                condition=models.Q(payment_method__isnull=True) | models.Q(payment_method__in=['Net', 'Cash']),
                name='on_demand_orders_payment_method_check',
            ),
        ]
        indexes = [
            models.Index(fields=['sales_rep', 'sale_date'], name='on_demand_orders_rep_idx'),
        ]

    def save(self, *args, **kwargs):
        # Auto-generate display ID and receipt number
        if not self.on_demand_order_display_id:
            self.on_demand_order_display_id = next_display_id('on_demand_order')
        if not self.receipt_no:
            self.receipt_no = next_display_id('on_demand_receipt')
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.on_demand_order_display_id} - {self.customer_name} ({self.total_amount})"

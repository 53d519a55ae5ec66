from django.db import models
from django.contrib.auth import get_user_model
from django.core.validators import MinValueValidator
from django.core.exceptions import ValidationError
from decimal import Decimal

from sequences.services import next_display_id

User = get_user_model()


class Order(models.Model):
    PENDING = 'Pending'
    IN_PROGRESS = 'In Progress'
    ASSIGNED = 'Assigned'
    PRODUCTS_LOADED = 'Products Loaded'
    PRODUCT_RELOADED = 'Product Reloaded'
    SECURITY_CHECK_INCOMPLETE = 'Security Check Incomplete'
    SECURITY_CHECKED = 'Security Checked'
    DEPARTED_FARM = 'Departed Farm'
    DELIVERED = 'Delivered'
    CANCELLED = 'Cancelled'
    COMPLETED = 'Completed'
    SECURITY_CHECK_BYPASSED = 'Security Check Bypassed Due to Off Hours'

    STATUS_CHOICES = [
        (PENDING, 'Pending'),
        (IN_PROGRESS, 'In Progress'),
        (ASSIGNED, 'Assigned'),
        (PRODUCTS_LOADED, 'Products Loaded'),
        (PRODUCT_RELOADED, 'Product Reloaded'),
        (SECURITY_CHECK_INCOMPLETE, 'Security Check Incomplete'),
        (SECURITY_CHECKED, 'Security Checked'),
        (DEPARTED_FARM, 'Departed Farm'),
        (DELIVERED, 'Delivered'),
        (CANCELLED, 'Cancelled'),
        (COMPLETED, 'Completed'),
        (SECURITY_CHECK_BYPASSED, 'Security Check Bypassed Due to Off Hours'),
    ]
    STATUSES = [choice[0] for choice in STATUS_CHOICES]
    TERMINAL_STATUSES = [DELIVERED, CANCELLED, COMPLETED]

    SECURITY_CHECK_STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('completed', 'Completed'),
        ('incomplete', 'Incomplete'),
        ('bypassed', 'Bypassed'),
    ]

    PAYMENT_METHOD_CHOICES = [
        ('Net', 'Net'),
        ('Cash', 'Cash'),
    ]

    PAYMENT_STATUS_CHOICES = [
        ('unpaid', 'Unpaid'),
        ('partially_paid', 'Partially Paid'),
        ('fully_paid', 'Fully Paid'),
    ]

    # Basic order info
    order_display_id = models.CharField(max_length=20, unique=True, editable=False)
    customer = models.ForeignKey('customers.Customer', on_delete=models.PROTECT, related_name='orders')
    status = models.CharField(max_length=50, choices=STATUS_CHOICES, default=PENDING)
    request_id = models.CharField(max_length=100, blank=True, help_text="Customer purchase order / request reference")
    delivery_date = models.DateField(null=True, blank=True)
    vehicle_number = models.CharField(max_length=30, blank=True)

    # People
    created_by = models.ForeignKey(User, on_delete=models.PROTECT, related_name='created_orders')
    assigned_to = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='assigned_orders')
    completed_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='completed_orders')
    completed_at = models.DateTimeField(null=True, blank=True)

    # Security gate
    security_check_status = models.CharField(max_length=20, choices=SECURITY_CHECK_STATUS_CHOICES, default='pending')
    security_check_notes = models.TextField(null=True, blank=True, help_text="JSON encoded check details")

    # Pricing
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    vat_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    is_vat_applicable = models.BooleanField(default=False)

    # Payment
    payment_method = models.CharField(max_length=10, choices=PAYMENT_METHOD_CHOICES, null=True, blank=True)
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default='unpaid')
    collected_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    receipt_no = models.CharField(max_length=20, unique=True, null=True, blank=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'orders'
        ordering = ['-created_at']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(status__in=[
                    'Pending', 'In Progress', 'Assigned', 'Products Loaded', 'Product Reloaded',
                    'Security Check Incomplete', 'Security Checked', 'Departed Farm', 'Delivered',
                    'Cancelled', 'Completed', 'Security Check Bypassed Due to Off Hours',
                ]),
                name='orders_status_check',
            ),
            models.CheckConstraint(
                condition=models.Q(security_check_status__in=['pending', 'completed', 'incomplete', 'bypassed']),
                name='orders_security_check_status_check',
            ),
            models.CheckConstraint(
                condition=models.Q(payment_status__in=['unpaid', 'partially_paid', 'fully_paid']),
                name='orders_payment_status_check',
            ),
        ]
        indexes = [
            models.Index(fields=['status', 'created_at'], name='orders_status_idx'),
            models.Index(fields=['assigned_to', 'status'], name='orders_assigned_idx'),
            models.Index(fields=['request_id'], name='orders_request_id_idx'),
        ]

    def save(self, *args, **kwargs):
        # Auto-generate display ID
        if not self.order_display_id:
            self.order_display_id = next_display_id('order')
        super().save(*args, **kwargs)

    @property
    def subtotal(self):
        return self.total_amount - self.vat_amount

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES

    def __str__(self):
        return f"Order {self.order_display_id} - {self.customer.name} ({self.status})"


class OrderItem(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey('products.Product', on_delete=models.PROTECT, related_name='order_items')
    quantity = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))])
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.00'))])
    discount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'), validators=[MinValueValidator(Decimal('0.00'))])
    returned_quantity = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))

    class Meta:
        db_table = 'order_items'
        constraints = [
            models.CheckConstraint(condition=models.Q(quantity__gt=0), name='order_items_quantity_check'),
            models.CheckConstraint(
                condition=models.Q(returned_quantity__gte=0) & models.Q(returned_quantity__lte=models.F('quantity')),
                name='order_items_returned_quantity_check',
            ),
        ]

    @property
    def line_total(self):
        return self.quantity * self.price - self.discount

    @property
    def returnable_quantity(self):
        return self.quantity - self.returned_quantity

    def clean(self):
        super().clean()
        if self.returned_quantity is not None and self.quantity is not None and self.returned_quantity > self.quantity:
            raise ValidationError({'returned_quantity': 'Cannot return more than was ordered.'})

    def __str__(self):
        return f"{self.product.name} x {self.quantity} ({self.order.order_display_id})"


class OrderReturn(models.Model):
    order_item = models.ForeignKey(OrderItem, on_delete=models.CASCADE, related_name='returns')
    returned_quantity = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))])
    return_reason = models.TextField()
    returned_by = models.ForeignKey(User, on_delete=models.PROTECT, related_name='processed_returns')
    sales_rep = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='sales_rep_returns')
    returned_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'order_returns'
        ordering = ['-returned_at']
        constraints = [
            models.CheckConstraint(condition=models.Q(returned_quantity__gt=0), name='order_returns_quantity_check'),
        ]

    def __str__(self):
        return f"Return of {self.returned_quantity} x {self.order_item.product.name}"


class Vehicle(models.Model):
    STATUS_CHOICES = [
        ('Available', 'Available'),
        ('In Use', 'In Use'),
        ('Maintenance', 'Maintenance'),
    ]

    vehicle_number = models.CharField(max_length=30, unique=True)
    vehicle_type = models.CharField(max_length=50)
    capacity_cbm = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='Available')
    sales_rep = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='vehicles')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'vehicles'
        ordering = ['vehicle_number']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(status__in=['Available', 'In Use', 'Maintenance']),
                name='vehicles_status_check',
            ),
        ]

    def __str__(self):
        return f"{self.vehicle_number} ({self.vehicle_type})"

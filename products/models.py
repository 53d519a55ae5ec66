from django.db import models
from django.core.validators import MinLengthValidator, MinValueValidator, RegexValidator
from decimal import Decimal

from sequences.services import generate_product_id, next_display_id


class Category(models.Model):
    category_display_id = models.CharField(max_length=20, unique=True, editable=False)
    category_name = models.CharField(
        max_length=50,
        unique=True,
        validators=[MinLengthValidator(3)],
    )
    category_code = models.CharField(
        max_length=3,
        unique=True,
        validators=[RegexValidator(r'^[A-Z]{2,3}$', 'Category code must be 2-3 uppercase letters')],
        help_text="Short code used in product IDs, e.g. 'WC'",
    )
    description = models.CharField(max_length=200, blank=True)
    status = models.BooleanField(default=True, help_text="Inactive categories are hidden from product entry")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'categories'
        ordering = ['category_name']
        verbose_name_plural = 'categories'

    def save(self, *args, **kwargs):
        if not self.category_display_id:
            self.category_display_id = next_display_id('category')
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.category_name} ({self.category_code})"


class Product(models.Model):
    PRICE_FIELDS = {
        ('Dealer', 'Cash'): 'price_dealer_cash',
        ('Dealer', 'Credit'): 'price_dealer_credit',
        ('Hotel', 'Cash'): 'price_hotel_cash',
        ('Hotel', 'Credit'): 'price_hotel_credit',
    }

    product_display_id = models.CharField(max_length=20, unique=True, editable=False)
    product_id = models.CharField(
        max_length=30,
        unique=True,
        null=True,
        blank=True,
        editable=False,
        help_text="Category scoped code, e.g. WC-00001-2025",
    )
    name = models.CharField(max_length=200)
    category = models.ForeignKey(
        Category,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='products',
    )
    sku = models.CharField(max_length=50, unique=True)
    quantity = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))],
    )
    price_dealer_cash = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'), validators=[MinValueValidator(Decimal('0.00'))])
    price_dealer_credit = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'), validators=[MinValueValidator(Decimal('0.00'))])
    price_hotel_cash = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'), validators=[MinValueValidator(Decimal('0.00'))])
    price_hotel_credit = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'), validators=[MinValueValidator(Decimal('0.00'))])
    threshold = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal('0.00'),
        help_text="Stock level at or below which the product is flagged as low stock",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'products'
        ordering = ['name']
        constraints = [
            models.CheckConstraint(condition=models.Q(quantity__gte=0), name='products_quantity_check'),
        ]
        indexes = [
            models.Index(fields=['category', 'name'], name='products_category_idx'),
        ]

    def save(self, *args, **kwargs):
        if not self.product_display_id:
            self.product_display_id = next_display_id('product')
        if not self.product_id and self.category_id:
            self.product_id = generate_product_id(self.category.category_code)
        super().save(*args, **kwargs)

    @property
    def is_low_stock(self):
        return self.quantity <= self.threshold

    def get_customer_price(self, customer):
        """Price tier for a customer's category and payment type.

        Anything other than cash pays the credit price. Customers outside the
        Dealer and Hotel categories pay the dealer cash price.
        """
        payment = 'Cash' if customer.type == 'Cash' else 'Credit'
        field = self.PRICE_FIELDS.get((customer.customer_category, payment), 'price_dealer_cash')
        return getattr(self, field)

    def __str__(self):
        return f"{self.name} ({self.product_display_id})"

from django.db import models

from sequences.services import next_display_id


class Customer(models.Model):
    PAYMENT_TYPE_CHOICES = [
        ('Cash', 'Cash'),
        ('Credit', 'Credit'),
        ('Cheque', 'Cheque'),
        ('Bank Transfer', 'Bank Transfer'),
    ]

    CATEGORY_CHOICES = [
        ('Dealer', 'Dealer'),
        ('Hotel', 'Hotel'),
        ('Other', 'Other'),
    ]

    VAT_STATUS_CHOICES = [
        ('VAT', 'VAT'),
        ('Non-VAT', 'Non-VAT'),
    ]

    customer_display_id = models.CharField(max_length=20, unique=True, editable=False)
    name = models.CharField(max_length=200)
    address = models.TextField()
    email = models.EmailField(blank=True)
    phone_number = models.CharField(max_length=20)
    type = models.CharField(max_length=20, choices=PAYMENT_TYPE_CHOICES, default='Cash')
    customer_category = models.CharField(max_length=10, choices=CATEGORY_CHOICES, default='Dealer')
    vat_status = models.CharField(max_length=10, choices=VAT_STATUS_CHOICES, default='Non-VAT')
    tin_number = models.CharField(max_length=50, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'customers'
        ordering = ['name']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(type__in=['Cash', 'Credit', 'Cheque', 'Bank Transfer']),
                name='customers_type_check',
            ),
            models.CheckConstraint(
                condition=models.Q(customer_category__in=['Dealer', 'Hotel', 'Other']),
                name='customers_customer_category_check',
            ),
            models.CheckConstraint(
                condition=models.Q(vat_status__in=['VAT', 'Non-VAT']),
                name='customers_vat_status_check',
            ),
        ]

    def save(self, *args, **kwargs):
        if not self.customer_display_id:
            self.customer_display_id = next_display_id('customer')
        super().save(*args, **kwargs)

    @property
    def is_vat_registered(self):
        return self.vat_status == 'VAT'

    def __str__(self):
        return f"{self.name} ({self.customer_display_id})"


class ContactPerson(models.Model):
    customer = models.ForeignKey(Customer, on_delete=models.CASCADE, related_name='contact_persons')
    name = models.CharField(max_length=200)
    phone_number = models.CharField(max_length=20)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'contact_persons'
        ordering = ['name']

    def __str__(self):
        return f"{self.name} - {self.customer.name}"

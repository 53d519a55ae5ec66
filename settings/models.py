from decimal import Decimal, InvalidOperation

from django.conf import settings as django_settings
from django.db import models


class SystemSetting(models.Model):
    """System-wide configuration settings"""
    VAT_RATE = 'vat_rate'

    key = models.CharField(max_length=100, unique=True)
    value = models.TextField()
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'system_settings'
        ordering = ['key']

    def __str__(self):
        return f"{self.key}: {self.value}"

    @classmethod
    def get_value(cls, key, default=None):
        setting = cls.objects.filter(key=key).first()
        return setting.value if setting else default

    @classmethod
    def get_vat_rate(cls):
        """VAT rate as a decimal fraction, e.g. 0.18"""
        raw = cls.get_value(cls.VAT_RATE, django_settings.DEFAULT_VAT_RATE)
        try:
            return Decimal(str(raw))
        except InvalidOperation:
            return Decimal(str(django_settings.DEFAULT_VAT_RATE))

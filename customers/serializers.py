from django.db import transaction
from rest_framework import serializers

from .models import ContactPerson, Customer


class ContactPersonSerializer(serializers.ModelSerializer):
    class Meta:
        model = ContactPerson
        fields = ['id', 'customer', 'name', 'phone_number', 'created_at']


class NestedContactPersonSerializer(serializers.ModelSerializer):
    class Meta:
        model = ContactPerson
        fields = ['id', 'name', 'phone_number']


class CustomerSerializer(serializers.ModelSerializer):
    """Customer with its contact persons.

    Contact persons sent on write replace the existing list.
    """
    contact_persons = NestedContactPersonSerializer(many=True, required=False)
    total_orders = serializers.SerializerMethodField()

    class Meta:
        model = Customer
        fields = [
            'id', 'customer_display_id', 'name', 'address', 'email', 'phone_number',
            'type', 'customer_category', 'vat_status', 'tin_number',
            'contact_persons', 'total_orders', 'created_at', 'updated_at'
        ]
        read_only_fields = ['customer_display_id']

    def get_total_orders(self, obj):
        return obj.orders.count()

    def validate(self, data):
        vat_status = data.get('vat_status', getattr(self.instance, 'vat_status', 'Non-VAT'))
        tin_number = data.get('tin_number', getattr(self.instance, 'tin_number', ''))
        if vat_status == 'VAT' and not tin_number:
            raise serializers.ValidationError({'tin_number': 'TIN number is required for VAT registered customers.'})
        if vat_status != 'VAT':
            data['tin_number'] = ''
        return data

    @transaction.atomic
    def create(self, validated_data):
        contacts = validated_data.pop('contact_persons', [])
        customer = Customer.objects.create(**validated_data)
        for contact in contacts:
            ContactPerson.objects.create(customer=customer, **contact)
        return customer

    @transaction.atomic
    def update(self, instance, validated_data):
        contacts = validated_data.pop('contact_persons', None)
        for field, value in validated_data.items():
            setattr(instance, field, value)
        instance.save()

        if contacts is not None:
            instance.contact_persons.all().delete()
            for contact in contacts:
                ContactPerson.objects.create(customer=instance, **contact)
        return instance

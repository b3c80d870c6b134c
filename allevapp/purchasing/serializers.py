from rest_framework import serializers
from .models import OrderConfirmation, OrderSequence


class OrderConfirmationSerializer(serializers.ModelSerializer):
    """Order confirmation; only status, delivery date and notes are writable"""
    quote_title = serializers.CharField(source='quote.title', read_only=True)
    farm_name = serializers.CharField(source='farm.name', read_only=True)
    supplier_name = serializers.CharField(source='supplier.name', read_only=True)
    supplier_email = serializers.CharField(source='supplier.email', read_only=True)
    created_by_name = serializers.CharField(source='created_by.get_display_name', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = OrderConfirmation
        fields = [
            'id', 'quote', 'quote_title', 'order_number', 'company', 'sequential_number',
            'farm', 'farm_name', 'supplier', 'supplier_name', 'supplier_email',
            'total_amount', 'order_date', 'delivery_date', 'notes', 'status', 'status_display',
            'created_by', 'created_by_name', 'created_at', 'updated_at'
        ]
        read_only_fields = [
            'quote', 'order_number', 'company', 'sequential_number', 'farm', 'supplier',
            'total_amount', 'order_date', 'created_by', 'created_at', 'updated_at'
        ]


class QuoteAcceptSerializer(serializers.Serializer):
    """Optional overrides when accepting a quote"""
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True, min_value=0)
    order_date = serializers.DateField(required=False, allow_null=True)
    delivery_date = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate(self, attrs):
        order_date = attrs.get('order_date')
        delivery_date = attrs.get('delivery_date')
        if order_date and delivery_date and delivery_date < order_date:
            raise serializers.ValidationError({'delivery_date': 'Delivery date cannot be before the order date'})
        return attrs


class OrderSequenceSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderSequence
        fields = ['id', 'company', 'scope', 'last_number', 'updated_at']

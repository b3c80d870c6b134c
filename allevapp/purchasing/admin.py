from django.contrib import admin
from .models import OrderConfirmation, OrderSequence


@admin.register(OrderConfirmation)
class OrderConfirmationAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'company', 'supplier', 'farm', 'total_amount', 'order_date', 'status', 'created_at']
    list_filter = ['company', 'status', 'order_date']
    search_fields = ['order_number', 'quote__title', 'supplier__name']
    readonly_fields = ['quote', 'order_number', 'company', 'sequential_number', 'created_at']


@admin.register(OrderSequence)
class OrderSequenceAdmin(admin.ModelAdmin):
    list_display = ['company', 'scope', 'last_number', 'updated_at']
    list_filter = ['scope']
    readonly_fields = ['updated_at']

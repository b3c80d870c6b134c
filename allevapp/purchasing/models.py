from django.db import models
from decimal import Decimal
from allevapp.core.models import User
from allevapp.farms.models import Farm
from allevapp.parties.models import Supplier


class OrderSequence(models.Model):
    """Last allocated sequential number per company and numbering scope"""
    SCOPE_ORDER = 'order'
    SCOPE_PROJECT = 'project'
    SCOPE_CHOICES = [
        (SCOPE_ORDER, 'Order'),
        (SCOPE_PROJECT, 'Project'),
    ]

    company = models.CharField(max_length=200)
    scope = models.CharField(max_length=20, choices=SCOPE_CHOICES, default=SCOPE_ORDER)
    last_number = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.company} ({self.scope}): {self.last_number}"

    class Meta:
        db_table = 'order_sequences'
        constraints = [
            models.UniqueConstraint(fields=['company', 'scope'], name='uniq_order_sequence_company_scope'),
        ]


class OrderConfirmation(models.Model):
    """Order issued to a supplier when one of its quotes is accepted"""
    STATUS_CHOICES = [
        ('pending', 'In Attesa'),
        ('confirmed', 'Confermato'),
        ('delivered', 'Consegnato'),
        ('cancelled', 'Annullato'),
    ]

    quote = models.OneToOneField('quotes.Quote', on_delete=models.PROTECT, related_name='order_confirmation')
    order_number = models.CharField(max_length=50, unique=True)
    company = models.CharField(max_length=200)
    sequential_number = models.PositiveIntegerField()
    farm = models.ForeignKey(Farm, on_delete=models.SET_NULL, null=True, blank=True, related_name='orders')
    supplier = models.ForeignKey(Supplier, on_delete=models.SET_NULL, null=True, blank=True, related_name='orders')
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    order_date = models.DateField()
    delivery_date = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True, null=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='orders_created')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.order_number

    class Meta:
        db_table = 'order_confirmations'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(fields=['company', 'sequential_number'], name='uniq_order_company_sequence'),
        ]
        indexes = [
            models.Index(fields=['status'], name='idx_order_status'),
            models.Index(fields=['company', '-sequential_number'], name='idx_order_company_seq'),
        ]

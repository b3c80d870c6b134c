from django.db import models
from django.utils import timezone
from allevapp.core.models import User
from allevapp.farms.models import Farm
from allevapp.parties.models import Supplier
from allevapp.reports.models import Report


class Quote(models.Model):
    """Price request sent to one supplier, and the supplier's answer"""
    STATUS_REQUESTED = 'requested'
    STATUS_RECEIVED = 'received'
    STATUS_ACCEPTED = 'accepted'
    STATUS_REJECTED = 'rejected'
    STATUS_CHOICES = [
        (STATUS_REQUESTED, 'Richiesto'),
        (STATUS_RECEIVED, 'Ricevuto'),
        (STATUS_ACCEPTED, 'Accettato'),
        (STATUS_REJECTED, 'Rifiutato'),
    ]
    # Quotes still competing for an order
    OPEN_STATUSES = [STATUS_REQUESTED, STATUS_RECEIVED]

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    report = models.ForeignKey(Report, on_delete=models.SET_NULL, null=True, blank=True, related_name='quotes')
    supplier = models.ForeignKey(Supplier, on_delete=models.CASCADE, related_name='quotes')
    farm = models.ForeignKey(Farm, on_delete=models.CASCADE, null=True, blank=True, related_name='quotes')
    project = models.ForeignKey('projects.Project', on_delete=models.SET_NULL, null=True, blank=True, related_name='quotes')
    amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_REQUESTED)
    requested_at = models.DateTimeField(default=timezone.now)
    due_date = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True, null=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='quotes_created')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.title} - {self.supplier.name}"

    @property
    def is_open(self):
        return self.status in self.OPEN_STATUSES

    class Meta:
        db_table = 'quotes'
        ordering = ['-requested_at']
        indexes = [
            models.Index(fields=['status'], name='idx_quote_status'),
            models.Index(fields=['farm', 'title', 'status'], name='idx_quote_farm_title_status'),
            models.Index(fields=['report', 'status'], name='idx_quote_report_status'),
        ]

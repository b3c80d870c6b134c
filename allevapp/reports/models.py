from django.db import models
from allevapp.core.models import User
from allevapp.farms.models import Farm, Equipment
from allevapp.parties.models import Supplier


class Report(models.Model):
    """Incident or maintenance ticket raised on a farm"""
    URGENCY_CHOICES = [
        ('low', 'Bassa'),
        ('medium', 'Media'),
        ('high', 'Alta'),
        ('critical', 'Critica'),
    ]
    STATUS_CHOICES = [
        ('open', 'Aperto'),
        ('in_progress', 'In Corso'),
        ('resolved', 'Risolto'),
        ('closed', 'Chiuso'),
    ]
    URGENT_LEVELS = ['high', 'critical']
    CLOSED_STATUSES = ['resolved', 'closed']

    title = models.CharField(max_length=255)
    description = models.TextField()
    farm = models.ForeignKey(Farm, on_delete=models.CASCADE, related_name='reports')
    equipment = models.ForeignKey(Equipment, on_delete=models.SET_NULL, null=True, blank=True, related_name='reports')
    supplier = models.ForeignKey(Supplier, on_delete=models.SET_NULL, null=True, blank=True, related_name='reports')
    assigned_to = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='assigned_reports')
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='reports_created')
    urgency = models.CharField(max_length=10, choices=URGENCY_CHOICES, default='medium')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='open')
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.title

    @property
    def is_urgent(self):
        return self.urgency in self.URGENT_LEVELS

    @property
    def is_open(self):
        return self.status not in self.CLOSED_STATUSES

    class Meta:
        db_table = 'reports'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['urgency', 'status'], name='idx_report_urgency_status'),
            models.Index(fields=['-created_at'], name='idx_report_created'),
        ]

from django.db import models
from allevapp.core.models import User
from allevapp.farms.models import Farm


class Project(models.Model):
    """Farm project grouping related quotes, numbered per company"""
    STATUS_CHOICES = [
        ('open', 'Aperto'),
        ('defined', 'Definito'),
        ('in_progress', 'In Corso'),
        ('completed', 'Completato'),
        ('discarded', 'Scartato'),
    ]
    ACTIVE_STATUSES = ['open', 'defined', 'in_progress']

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    project_number = models.CharField(max_length=50, unique=True)
    company = models.CharField(max_length=200)
    sequential_number = models.PositiveIntegerField()
    farm = models.ForeignKey(Farm, on_delete=models.CASCADE, related_name='projects')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='open')
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='projects_created')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.project_number} - {self.title}"

    class Meta:
        db_table = 'projects'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(fields=['company', 'sequential_number'], name='uniq_project_company_sequence'),
        ]

from datetime import timedelta

from django.db import models
from allevapp.core.models import User
from .maintenance import is_maintenance_overdue, is_maintenance_due_soon


class Farm(models.Model):
    """Farm (allevamento) owned by one of the operating companies"""
    COMPANY_CHOICES = [
        ('Zoogamma Spa', 'Zoogamma Spa'),
        ('So. Agr. Zooagri Srl', 'So. Agr. Zooagri Srl'),
        ('Soc. Agr. Zooallevamenti Srl', 'Soc. Agr. Zooallevamenti Srl'),
    ]

    name = models.CharField(max_length=200)
    address = models.TextField(blank=True, null=True)
    company = models.CharField(max_length=200, choices=COMPANY_CHOICES, default='Zoogamma Spa')
    technicians = models.ManyToManyField(User, through='FarmTechnician', related_name='assigned_farms', blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='farms_created')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'farms'
        ordering = ['name']


class FarmTechnician(models.Model):
    """Technician assignment to a farm"""
    farm = models.ForeignKey(Farm, on_delete=models.CASCADE, related_name='technician_assignments')
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='farm_assignments')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'farm_technicians'
        unique_together = [('farm', 'user')]


class Barn(models.Model):
    """Barn (stalla) within a farm"""
    name = models.CharField(max_length=200)
    farm = models.ForeignKey(Farm, on_delete=models.CASCADE, related_name='barns')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.farm.name} - {self.name}"

    class Meta:
        db_table = 'barns'
        ordering = ['name']


class MaintainedAsset(models.Model):
    """Maintenance schedule shared by equipment and facilities"""
    last_maintenance = models.DateField(null=True, blank=True)
    next_maintenance_due = models.DateField(null=True, blank=True)
    maintenance_interval_days = models.PositiveIntegerField(default=365)

    @property
    def is_maintenance_overdue(self):
        return is_maintenance_overdue(self.next_maintenance_due)

    @property
    def is_maintenance_due_soon(self):
        return is_maintenance_due_soon(self.next_maintenance_due)

    def record_maintenance(self, performed_on):
        """Register a maintenance and schedule the next one after the interval"""
        self.last_maintenance = performed_on
        self.next_maintenance_due = performed_on + timedelta(days=self.maintenance_interval_days)

    class Meta:
        abstract = True


class Equipment(MaintainedAsset):
    """Farm equipment (attrezzatura)"""
    STATUS_CHOICES = [
        ('working', 'Working'),
        ('not_working', 'Not Working'),
        ('regenerated', 'Regenerated'),
        ('repaired', 'Repaired'),
    ]

    name = models.CharField(max_length=200)
    model = models.CharField(max_length=200, blank=True, null=True)
    serial_number = models.CharField(max_length=200, blank=True, null=True)
    farm = models.ForeignKey(Farm, on_delete=models.CASCADE, related_name='equipment')
    barn = models.ForeignKey(Barn, on_delete=models.SET_NULL, null=True, blank=True, related_name='equipment')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='working')
    description = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'equipment'
        ordering = ['name']
        indexes = [
            models.Index(fields=['next_maintenance_due'], name='idx_equipment_next_due'),
        ]


class Facility(MaintainedAsset):
    """Farm facility/plant (impianto)"""
    TYPE_CHOICES = [
        ('electrical', 'Elettrico'),
        ('plumbing', 'Idraulico'),
        ('ventilation', 'Ventilazione'),
        ('heating', 'Riscaldamento'),
        ('cooling', 'Raffreddamento'),
        ('lighting', 'Illuminazione'),
        ('security', 'Sicurezza'),
        ('other', 'Altro'),
    ]
    STATUS_CHOICES = [
        ('working', 'Working'),
        ('not_working', 'Not Working'),
        ('maintenance_required', 'Maintenance Required'),
        ('under_maintenance', 'Under Maintenance'),
    ]

    name = models.CharField(max_length=200)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='other')
    farm = models.ForeignKey(Farm, on_delete=models.CASCADE, related_name='facilities')
    description = models.TextField(blank=True, null=True)
    status = models.CharField(max_length=30, choices=STATUS_CHOICES, default='working')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'facilities'
        ordering = ['name']
        verbose_name_plural = 'facilities'
        indexes = [
            models.Index(fields=['next_maintenance_due'], name='idx_facility_next_due'),
        ]

from django.contrib import admin
from .models import Farm, FarmTechnician, Barn, Equipment, Facility


class BarnInline(admin.TabularInline):
    model = Barn
    extra = 0


class FarmTechnicianInline(admin.TabularInline):
    model = FarmTechnician
    extra = 0


@admin.register(Farm)
class FarmAdmin(admin.ModelAdmin):
    list_display = ['name', 'company', 'address', 'created_at']
    list_filter = ['company']
    search_fields = ['name', 'address']
    inlines = [BarnInline, FarmTechnicianInline]


@admin.register(Equipment)
class EquipmentAdmin(admin.ModelAdmin):
    list_display = ['name', 'farm', 'barn', 'status', 'last_maintenance', 'next_maintenance_due']
    list_filter = ['status', 'farm']
    search_fields = ['name', 'model', 'serial_number']


@admin.register(Facility)
class FacilityAdmin(admin.ModelAdmin):
    list_display = ['name', 'type', 'farm', 'status', 'last_maintenance', 'next_maintenance_due']
    list_filter = ['type', 'status', 'farm']
    search_fields = ['name', 'description']

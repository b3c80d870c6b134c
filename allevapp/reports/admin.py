from django.contrib import admin
from .models import Report


@admin.register(Report)
class ReportAdmin(admin.ModelAdmin):
    list_display = ['title', 'farm', 'urgency', 'status', 'assigned_to', 'created_at']
    list_filter = ['urgency', 'status', 'farm']
    search_fields = ['title', 'description']
    raw_id_fields = ['equipment', 'supplier', 'assigned_to', 'created_by']

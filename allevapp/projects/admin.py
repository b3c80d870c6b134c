from django.contrib import admin
from .models import Project


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ['project_number', 'title', 'farm', 'company', 'status', 'created_at']
    list_filter = ['company', 'status']
    search_fields = ['project_number', 'title', 'description']
    readonly_fields = ['project_number', 'company', 'sequential_number', 'created_at']

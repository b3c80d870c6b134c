from django.contrib import admin
from .models import Quote


@admin.register(Quote)
class QuoteAdmin(admin.ModelAdmin):
    list_display = ['title', 'supplier', 'farm', 'amount', 'status', 'requested_at', 'due_date']
    list_filter = ['status', 'farm', 'supplier']
    search_fields = ['title', 'description', 'supplier__name']
    raw_id_fields = ['report', 'project', 'created_by']

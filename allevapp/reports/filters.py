import django_filters
from django.db.models import Q
from .models import Report


class ReportFilter(django_filters.FilterSet):
    """Filters for the report list, including the 'urgent' shortcut"""

    search = django_filters.CharFilter(method='filter_search', label='Search')
    farm = django_filters.NumberFilter(field_name='farm_id', lookup_expr='exact')
    equipment = django_filters.NumberFilter(field_name='equipment_id', lookup_expr='exact')
    supplier = django_filters.NumberFilter(field_name='supplier_id', lookup_expr='exact')
    assigned_to = django_filters.NumberFilter(field_name='assigned_to_id', lookup_expr='exact')
    status = django_filters.CharFilter(method='filter_status', label='Status')
    urgency = django_filters.CharFilter(method='filter_urgency', label='Urgency')
    open_only = django_filters.BooleanFilter(method='filter_open_only', label='Open only')
    date_from = django_filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='created_at', lookup_expr='date__lte')

    class Meta:
        model = Report
        fields = ['search', 'farm', 'equipment', 'supplier', 'assigned_to', 'status', 'urgency', 'open_only']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(title__icontains=value) |
            Q(description__icontains=value) |
            Q(farm__name__icontains=value) |
            Q(equipment__name__icontains=value)
        )

    def filter_status(self, queryset, name, value):
        """Comma separated list of statuses"""
        statuses = [s.strip() for s in value.split(',') if s.strip()]
        if not statuses:
            return queryset
        return queryset.filter(status__in=statuses)

    def filter_urgency(self, queryset, name, value):
        """Comma separated urgencies; 'urgent' expands to high and critical"""
        levels = []
        for level in value.split(','):
            level = level.strip()
            if level == 'urgent':
                levels.extend(Report.URGENT_LEVELS)
            elif level:
                levels.append(level)
        if not levels:
            return queryset
        return queryset.filter(urgency__in=levels)

    def filter_open_only(self, queryset, name, value):
        if value:
            return queryset.exclude(status__in=Report.CLOSED_STATUSES)
        return queryset

import django_filters
from django.db.models import Q
from .models import Quote


class QuoteFilter(django_filters.FilterSet):
    """Filters for the quote list"""

    search = django_filters.CharFilter(method='filter_search', label='Search')
    status = django_filters.CharFilter(method='filter_status', label='Status')
    supplier = django_filters.CharFilter(method='filter_supplier', label='Supplier IDs')
    farm = django_filters.CharFilter(method='filter_farm', label='Farm IDs')
    report = django_filters.NumberFilter(field_name='report_id', lookup_expr='exact')
    project = django_filters.NumberFilter(field_name='project_id', lookup_expr='exact')
    due_before = django_filters.DateFilter(field_name='due_date', lookup_expr='lte')
    requested_from = django_filters.DateFilter(field_name='requested_at', lookup_expr='date__gte')
    requested_to = django_filters.DateFilter(field_name='requested_at', lookup_expr='date__lte')

    class Meta:
        model = Quote
        fields = ['search', 'status', 'supplier', 'farm', 'report', 'project']

    @staticmethod
    def _split(value):
        return [v.strip() for v in value.split(',') if v.strip()]

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(title__icontains=value) |
            Q(description__icontains=value) |
            Q(supplier__name__icontains=value)
        )

    def filter_status(self, queryset, name, value):
        statuses = self._split(value)
        return queryset.filter(status__in=statuses) if statuses else queryset

    def filter_supplier(self, queryset, name, value):
        ids = [v for v in self._split(value) if v.isdigit()]
        return queryset.filter(supplier_id__in=ids) if ids else queryset

    def filter_farm(self, queryset, name, value):
        ids = [v for v in self._split(value) if v.isdigit()]
        return queryset.filter(farm_id__in=ids) if ids else queryset

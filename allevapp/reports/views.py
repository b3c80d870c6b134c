import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.conf import settings
from django.core.cache import cache
from django.core.paginator import Paginator
from django.db.models import Count, Q
from django.shortcuts import get_object_or_404

from allevapp.core.cache_utils import make_cache_key
from allevapp.core.utils import (
    can_access_farm, create_audit_log, get_pagination_params, get_user_farm_ids, restrict_to_user_farms
)
from allevapp.farms.models import Equipment
from allevapp.quotes.models import Quote
from allevapp.quotes.serializers import QuoteSerializer
from .filters import ReportFilter
from .models import Report
from .serializers import ReportSerializer
from .signals import DASHBOARD_CACHE_PREFIX

logger = logging.getLogger('allevapp.reports')


def _report_queryset(user):
    queryset = Report.objects.select_related(
        'farm', 'equipment', 'supplier', 'assigned_to', 'created_by'
    ).annotate(
        active_quotes_count=Count('quotes', filter=Q(quotes__status__in=Quote.OPEN_STATUSES))
    )
    return restrict_to_user_farms(queryset, user)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def report_list_create(request):
    """List reports (paginated, filterable) or open a new report"""
    if request.method == 'GET':
        filterset = ReportFilter(request.query_params, queryset=_report_queryset(request.user))
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        queryset = filterset.qs

        page, limit = get_pagination_params(request)
        paginator = Paginator(queryset, limit)
        page_obj = paginator.get_page(page)

        return Response({
            'results': ReportSerializer(page_obj, many=True).data,
            'count': paginator.count,
            'next': page_obj.next_page_number() if page_obj.has_next() else None,
            'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
            'page': page,
            'page_size': limit,
            'total_pages': paginator.num_pages,
        })

    serializer = ReportSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    if not can_access_farm(request.user, serializer.validated_data['farm']):
        return Response({'error': 'You are not assigned to this farm'}, status=status.HTTP_403_FORBIDDEN)

    report = serializer.save(created_by=request.user)
    logger.info(f"Report {report.id} '{report.title}' ({report.urgency}) opened by {request.user.username}")
    create_audit_log(
        request=request,
        action='create',
        model_name='Report',
        object_id=report.id,
        object_name=report.title,
        changes={'farm': report.farm_id, 'urgency': report.urgency},
    )
    return Response(ReportSerializer(report).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def report_detail(request, pk):
    """Retrieve, update or delete a report"""
    report = get_object_or_404(_report_queryset(request.user), pk=pk)

    if request.method == 'GET':
        return Response(ReportSerializer(report).data)
    elif request.method in ('PUT', 'PATCH'):
        old_status = report.status
        serializer = ReportSerializer(report, data=request.data, partial=request.method == 'PATCH')
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        if 'farm' in serializer.validated_data and not can_access_farm(request.user, serializer.validated_data['farm']):
            return Response({'error': 'You are not assigned to this farm'}, status=status.HTTP_403_FORBIDDEN)
        report = serializer.save()
        if report.status != old_status:
            create_audit_log(
                request=request,
                action='status_change',
                model_name='Report',
                object_id=report.id,
                object_name=report.title,
                changes={'status': {'old': old_status, 'new': report.status}},
            )
        return Response(serializer.data)
    else:  # DELETE
        report_id = report.id
        title = report.title
        report.delete()
        create_audit_log(
            request=request,
            action='delete',
            model_name='Report',
            object_id=report_id,
            object_name=title,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def report_quotes(request, pk):
    """Quotes requested for a report"""
    report = get_object_or_404(restrict_to_user_farms(Report.objects.all(), request.user), pk=pk)
    quotes = report.quotes.select_related('supplier', 'farm', 'report', 'project', 'created_by').order_by('-requested_at')
    return Response(QuoteSerializer(quotes, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard(request):
    """Dashboard KPIs: report counters, equipment total and latest reports"""
    farm_ids = get_user_farm_ids(request.user)
    cache_key = make_cache_key(DASHBOARD_CACHE_PREFIX, farm_ids=tuple(sorted(farm_ids)) if farm_ids is not None else None)
    cached_data = cache.get(cache_key)
    if cached_data is not None:
        return Response(cached_data)

    reports = restrict_to_user_farms(Report.objects.all(), request.user)
    counters = reports.aggregate(
        total_reports=Count('id'),
        open_reports=Count('id', filter=Q(status='open')),
        urgent_reports=Count('id', filter=Q(urgency__in=Report.URGENT_LEVELS)),
    )
    total_equipment = restrict_to_user_farms(Equipment.objects.all(), request.user).count()
    recent_reports = reports.select_related('farm', 'equipment', 'supplier', 'assigned_to', 'created_by')[:5]

    data = {
        'total_reports': counters['total_reports'],
        'open_reports': counters['open_reports'],
        'urgent_reports': counters['urgent_reports'],
        'total_equipment': total_equipment,
        'recent_reports': ReportSerializer(recent_reports, many=True).data,
    }
    cache.set(cache_key, data, settings.DASHBOARD_CACHE_TTL)
    return Response(data)

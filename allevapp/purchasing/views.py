import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.core.paginator import Paginator
from django.db.models import Q
from django.shortcuts import get_object_or_404

from allevapp.core.utils import create_audit_log, get_pagination_params, is_manager_or_admin, restrict_to_user_farms
from .models import OrderConfirmation, OrderSequence
from .serializers import OrderConfirmationSerializer, OrderSequenceSerializer

logger = logging.getLogger('allevapp.purchasing')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_list(request):
    """List order confirmations with filters and pagination"""
    queryset = OrderConfirmation.objects.select_related('quote', 'farm', 'supplier', 'created_by')
    queryset = restrict_to_user_farms(queryset, request.user)

    company = request.query_params.get('company', None)
    status_filter = request.query_params.get('status', None)
    farm = request.query_params.get('farm', None)
    supplier = request.query_params.get('supplier', None)
    date_from = request.query_params.get('date_from', None)
    date_to = request.query_params.get('date_to', None)
    search = request.query_params.get('search', None)

    if company:
        queryset = queryset.filter(company=company)
    if status_filter:
        queryset = queryset.filter(status__in=status_filter.split(','))
    if farm:
        queryset = queryset.filter(farm_id=farm)
    if supplier:
        queryset = queryset.filter(supplier_id=supplier)
    if date_from:
        queryset = queryset.filter(order_date__gte=date_from)
    if date_to:
        queryset = queryset.filter(order_date__lte=date_to)
    if search:
        queryset = queryset.filter(
            Q(order_number__icontains=search) |
            Q(quote__title__icontains=search) |
            Q(supplier__name__icontains=search)
        )

    page, limit = get_pagination_params(request)
    paginator = Paginator(queryset, limit)
    page_obj = paginator.get_page(page)

    return Response({
        'results': OrderConfirmationSerializer(page_obj, many=True).data,
        'count': paginator.count,
        'next': page_obj.next_page_number() if page_obj.has_next() else None,
        'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
        'page': page,
        'page_size': limit,
        'total_pages': paginator.num_pages,
    })


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def order_detail(request, pk):
    """Retrieve an order, update its status/delivery date/notes, or delete it"""
    order = get_object_or_404(
        restrict_to_user_farms(OrderConfirmation.objects.select_related('quote', 'farm', 'supplier'), request.user),
        pk=pk
    )

    if request.method == 'GET':
        return Response(OrderConfirmationSerializer(order).data)
    elif request.method == 'PATCH':
        old_status = order.status
        serializer = OrderConfirmationSerializer(order, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        order = serializer.save()
        if order.status != old_status:
            logger.info(f"Order {order.order_number} moved from {old_status} to {order.status}")
            create_audit_log(
                request=request,
                action='status_change',
                model_name='OrderConfirmation',
                object_id=order.id,
                object_name=order.quote.title,
                object_reference=order.order_number,
                changes={'status': {'old': old_status, 'new': order.status}},
            )
        return Response(serializer.data)
    else:  # DELETE
        if not is_manager_or_admin(request.user):
            return Response({'error': 'Only administrators and managers can delete orders'}, status=status.HTTP_403_FORBIDDEN)
        order_id = order.id
        order_number = order.order_number
        title = order.quote.title
        # The number stays consumed; sequences never move backwards
        order.delete()
        create_audit_log(
            request=request,
            action='delete',
            model_name='OrderConfirmation',
            object_id=order_id,
            object_name=title,
            object_reference=order_number,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_sequence_list(request):
    """Current numbering state per company (admin/manager)"""
    if not is_manager_or_admin(request.user):
        return Response({'error': 'Only administrators and managers can view order sequences'}, status=status.HTTP_403_FORBIDDEN)
    sequences = OrderSequence.objects.all().order_by('scope', 'company')
    return Response(OrderSequenceSerializer(sequences, many=True).data)

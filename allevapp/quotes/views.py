import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.core.paginator import Paginator
from django.db.models import ProtectedError
from django.shortcuts import get_object_or_404

from allevapp.core.utils import (
    can_access_farm, create_audit_log, get_pagination_params, restrict_to_user_farms
)
from allevapp.farms.models import Equipment, Facility
from allevapp.integrations.graph_service import GraphError, default_contact_info, send_quote_request_email
from allevapp.projects.models import Project
from allevapp.purchasing.numbering import peek_next_order_number
from allevapp.purchasing.serializers import OrderConfirmationSerializer, QuoteAcceptSerializer
from allevapp.purchasing.services import QuoteAcceptanceError, accept_quote, competing_quotes
from allevapp.reports.models import Report
from .filters import QuoteFilter
from .models import Quote
from .serializers import QuoteSerializer, QuoteRequestSerializer

logger = logging.getLogger('allevapp.quotes')

# entity_type -> model a quote request can be raised from
REQUEST_ENTITIES = {
    'report': Report,
    'equipment': Equipment,
    'facility': Facility,
}


def _quote_queryset(user):
    queryset = Quote.objects.select_related(
        'supplier', 'farm', 'report', 'project', 'created_by', 'order_confirmation'
    )
    return restrict_to_user_farms(queryset, user)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def quote_list_create(request):
    """List quotes (paginated, filterable) or record a single quote"""
    if request.method == 'GET':
        filterset = QuoteFilter(request.query_params, queryset=_quote_queryset(request.user))
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        queryset = filterset.qs

        page, limit = get_pagination_params(request)
        paginator = Paginator(queryset, limit)
        page_obj = paginator.get_page(page)

        return Response({
            'results': QuoteSerializer(page_obj, many=True).data,
            'count': paginator.count,
            'next': page_obj.next_page_number() if page_obj.has_next() else None,
            'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
            'page': page,
            'page_size': limit,
            'total_pages': paginator.num_pages,
        })

    serializer = QuoteSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    if not can_access_farm(request.user, serializer.validated_data.get('farm')):
        return Response({'error': 'You are not assigned to this farm'}, status=status.HTTP_403_FORBIDDEN)

    quote = serializer.save(created_by=request.user)
    create_audit_log(
        request=request,
        action='create',
        model_name='Quote',
        object_id=quote.id,
        object_name=quote.title,
        changes={'supplier': quote.supplier_id, 'farm': quote.farm_id},
    )
    return Response(QuoteSerializer(quote).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def quote_detail(request, pk):
    """Retrieve, update or delete a quote (acceptance has its own endpoint)"""
    quote = get_object_or_404(_quote_queryset(request.user), pk=pk)

    if request.method == 'GET':
        return Response(QuoteSerializer(quote).data)
    elif request.method in ('PUT', 'PATCH'):
        old_status = quote.status
        serializer = QuoteSerializer(quote, data=request.data, partial=request.method == 'PATCH')
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        if 'farm' in serializer.validated_data and not can_access_farm(request.user, serializer.validated_data['farm']):
            return Response({'error': 'You are not assigned to this farm'}, status=status.HTTP_403_FORBIDDEN)
        quote = serializer.save()
        if quote.status != old_status:
            logger.info(f"Quote {quote.id} moved from {old_status} to {quote.status}")
            create_audit_log(
                request=request,
                action='status_change',
                model_name='Quote',
                object_id=quote.id,
                object_name=quote.title,
                changes={'status': {'old': old_status, 'new': quote.status}},
            )
        return Response(serializer.data)
    else:  # DELETE
        quote_id = quote.id
        title = quote.title
        try:
            quote.delete()
        except ProtectedError:
            return Response(
                {'error': 'Quote has an order confirmation and cannot be deleted'},
                status=status.HTTP_400_BAD_REQUEST
            )
        create_audit_log(
            request=request,
            action='delete',
            model_name='Quote',
            object_id=quote_id,
            object_name=title,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def quote_request(request):
    """
    Request the same quote from several suppliers.

    Creates one quote per supplier for the farm of the report, equipment or
    facility, then emails each supplier. Every supplier is handled on its own:
    a failed email does not undo the quotes already created.
    """
    serializer = QuoteRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    entity_model = REQUEST_ENTITIES[data['entity_type']]
    entity = get_object_or_404(
        restrict_to_user_farms(entity_model.objects.select_related('farm'), request.user),
        pk=data['entity_id']
    )
    farm = entity.farm

    project = None
    if data.get('project'):
        project = Project.objects.filter(pk=data['project'], farm=farm).first()
        if project is None:
            return Response({'error': 'Project not found for this farm'}, status=status.HTTP_400_BAD_REQUEST)

    contact_info = default_contact_info(request.user.email or None)
    results = []
    for supplier in data['supplier_ids']:
        quote = Quote.objects.create(
            title=data['subject'],
            description=data['description'],
            supplier=supplier,
            farm=farm,
            report=entity if data['entity_type'] == 'report' else None,
            project=project,
            due_date=data.get('due_date'),
            notes=data.get('notes') or None,
            created_by=request.user,
        )
        create_audit_log(
            request=request,
            action='quote_request',
            model_name='Quote',
            object_id=quote.id,
            object_name=quote.title,
            changes={'supplier': supplier.id, 'entity_type': data['entity_type'], 'entity_id': entity.id},
        )

        result = {
            'quote_id': quote.id,
            'supplier_id': supplier.id,
            'supplier': supplier.name,
            'email': supplier.email,
            'success': True,
        }
        if data.get('send_email', True):
            try:
                send_quote_request_email(
                    to=supplier.email,
                    supplier_name=supplier.name,
                    quote_title=quote.title,
                    quote_description=quote.description,
                    farm_name=farm.name,
                    due_date=quote.due_date,
                    contact_info=contact_info,
                )
            except GraphError as e:
                logger.warning(f"Quote request email to {supplier.email} failed: {e.error}")
                result.update({'success': False, 'error': e.error, 'message': e.message})
        results.append(result)

    success_count = sum(1 for r in results if r['success'])
    failure_count = len(results) - success_count
    logger.info(
        f"Quote request '{data['subject']}' for {data['entity_type']} {entity.id}: "
        f"{success_count} sent, {failure_count} failed"
    )

    return Response({
        'success': success_count > 0,
        'farm': farm.id,
        'quotes_created': len(results),
        'success_count': success_count,
        'failure_count': failure_count,
        'results': results,
    }, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def quote_accept(request, pk):
    """Accept a quote: create its numbered order and reject competing quotes"""
    quote = get_object_or_404(_quote_queryset(request.user), pk=pk)

    serializer = QuoteAcceptSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        order, rejected_ids = accept_quote(
            quote.id,
            user=request.user,
            total_amount=serializer.validated_data.get('total_amount'),
            delivery_date=serializer.validated_data.get('delivery_date'),
            notes=serializer.validated_data.get('notes'),
            order_date=serializer.validated_data.get('order_date'),
            request=request,
        )
    except QuoteAcceptanceError as e:
        return Response({'error': e.message}, status=status.HTTP_400_BAD_REQUEST)

    return Response({
        'order': OrderConfirmationSerializer(order).data,
        'rejected_quote_ids': rejected_ids,
        'rejected_count': len(rejected_ids),
    }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def quote_order_preview(request, pk):
    """Order number the quote would receive if accepted now (not reserved)"""
    quote = get_object_or_404(_quote_queryset(request.user), pk=pk)
    if quote.farm_id is None:
        return Response({'error': 'Quote has no farm: cannot determine the ordering company'}, status=status.HTTP_400_BAD_REQUEST)

    preview = peek_next_order_number(quote.farm.company)
    preview.update({
        'quote': quote.id,
        'quote_title': quote.title,
        'supplier_name': quote.supplier.name,
        'farm_name': quote.farm.name,
        'total_amount': quote.amount,
        'competing_quotes': competing_quotes(quote).count(),
    })
    return Response(preview)

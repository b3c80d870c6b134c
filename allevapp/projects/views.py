import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.db.models import Count, DecimalField, Q, Sum, Value
from django.db.models.functions import Coalesce
from django.shortcuts import get_object_or_404

from allevapp.core.utils import create_audit_log, get_user_farm_ids, restrict_to_user_farms
from allevapp.purchasing.models import OrderSequence
from allevapp.purchasing.numbering import get_next_order_number, generate_order_number
from allevapp.quotes.models import Quote
from allevapp.quotes.serializers import QuoteSerializer
from .models import Project
from .serializers import ProjectSerializer

logger = logging.getLogger('allevapp.projects')


def _project_queryset(user):
    queryset = Project.objects.select_related('farm', 'created_by').annotate(
        quotes_count=Count('quotes', distinct=True),
        # Rejected quotes do not count towards the project value
        total_quotes_value=Coalesce(
            Sum('quotes__amount', filter=~Q(quotes__status=Quote.STATUS_REJECTED)),
            Value(0),
            output_field=DecimalField(max_digits=14, decimal_places=2),
        ),
    )
    return restrict_to_user_farms(queryset, user)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def project_list_create(request):
    """List projects or create a project numbered for the farm's company"""
    if request.method == 'GET':
        queryset = _project_queryset(request.user)
        status_filter = request.query_params.get('status', None)
        farm = request.query_params.get('farm', None)
        company = request.query_params.get('company', None)
        search = request.query_params.get('search', None)
        if status_filter:
            queryset = queryset.filter(status__in=status_filter.split(','))
        if farm:
            queryset = queryset.filter(farm_id=farm)
        if company:
            queryset = queryset.filter(company=company)
        if search:
            queryset = queryset.filter(
                Q(title__icontains=search) |
                Q(project_number__icontains=search) |
                Q(description__icontains=search)
            )
        return Response(ProjectSerializer(queryset, many=True).data)

    serializer = ProjectSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    farm = serializer.validated_data['farm']
    farm_ids = get_user_farm_ids(request.user)
    if farm_ids is not None and farm.id not in farm_ids:
        return Response({'error': 'You are not assigned to this farm'}, status=status.HTTP_403_FORBIDDEN)

    with transaction.atomic():
        sequential_number = get_next_order_number(farm.company, scope=OrderSequence.SCOPE_PROJECT)
        project = serializer.save(
            company=farm.company,
            sequential_number=sequential_number,
            project_number=generate_order_number(farm.company, sequential_number, scope=OrderSequence.SCOPE_PROJECT),
            created_by=request.user,
        )

    logger.info(f"Project {project.project_number} '{project.title}' created by {request.user.username}")
    create_audit_log(
        request=request,
        action='create',
        model_name='Project',
        object_id=project.id,
        object_name=project.title,
        object_reference=project.project_number,
    )
    project = _project_queryset(request.user).get(pk=project.pk)
    return Response(ProjectSerializer(project).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def project_detail(request, pk):
    """Retrieve, update or delete a project"""
    project = get_object_or_404(_project_queryset(request.user), pk=pk)

    if request.method == 'GET':
        return Response(ProjectSerializer(project).data)
    elif request.method in ('PUT', 'PATCH'):
        old_status = project.status
        serializer = ProjectSerializer(project, data=request.data, partial=request.method == 'PATCH')
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        project = serializer.save()
        if project.status != old_status:
            create_audit_log(
                request=request,
                action='status_change',
                model_name='Project',
                object_id=project.id,
                object_name=project.title,
                object_reference=project.project_number,
                changes={'status': {'old': old_status, 'new': project.status}},
            )
        return Response(serializer.data)
    else:  # DELETE
        project_id = project.id
        project_number = project.project_number
        title = project.title
        project.delete()
        create_audit_log(
            request=request,
            action='delete',
            model_name='Project',
            object_id=project_id,
            object_name=title,
            object_reference=project_number,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def project_quotes(request, pk):
    """Quotes attached to a project"""
    project = get_object_or_404(restrict_to_user_farms(Project.objects.all(), request.user), pk=pk)
    quotes = project.quotes.select_related('supplier', 'farm', 'report', 'project', 'created_by')
    return Response(QuoteSerializer(quotes, many=True).data)
